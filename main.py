#!/usr/bin/env python3
"""
mcstat - Minecraft server status from the command line
"""

import asyncio
import argparse
import logging
import sys
import os
from pathlib import Path
from typing import List, Optional

# Add the current directory to Python path for imports
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from core import __version__
from core.client import StatusClient
from core.config import ConfigManager, create_default_config
from core.config_types import LoggingConfig
from core.exceptions import ConfigError, InvalidAddress, QueryError
from ui.cli import CLIInterface
from utils.network import ServerAddress, parse_address

EXIT_OK = 0
EXIT_QUERY_FAILED = 1
EXIT_USAGE = 2
EXIT_CONFIG = 3

def setup_logging(config: LoggingConfig, verbose: bool = False) -> None:
    """Setup logging configuration"""
    level = logging.DEBUG if verbose else getattr(logging, config.level.upper(), logging.WARNING)

    handlers: List[logging.Handler] = []
    if config.file:
        Path(config.file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(config.file))
    handlers.append(logging.StreamHandler(sys.stderr) if verbose else logging.NullHandler())

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers
    )

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mcstat",
        description="Query the status of a Minecraft server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  mcstat play.example.com
  mcstat 192.168.1.10:25566 --raw
  mcstat modded.example.com --mods --timeout 3
        """
    )

    parser.add_argument(
        "address",
        nargs="?",
        help="Server address as host or host:port"
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        help="Server port (skips the SRV lookup)"
    )

    parser.add_argument(
        "--protocol-version",
        type=int,
        help="Protocol version sent in the handshake"
    )

    parser.add_argument(
        "--timeout", "-t",
        type=float,
        help="Overall query timeout in seconds"
    )

    parser.add_argument(
        "--no-srv",
        action="store_true",
        help="Do not look up _minecraft._tcp SRV records"
    )

    parser.add_argument(
        "--no-legacy",
        action="store_true",
        help="Do not fall back to the legacy ping"
    )

    # Output options
    parser.add_argument(
        "--raw",
        action="store_true",
        help="Print the raw status JSON"
    )

    parser.add_argument(
        "--mods",
        action="store_true",
        help="List Forge mods and channels"
    )

    # Configuration
    parser.add_argument(
        "--config", "-c",
        help="Configuration file path"
    )

    parser.add_argument(
        "--create-config",
        metavar="PATH",
        help="Write a default configuration file and exit"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"mcstat {__version__}"
    )

    return parser

def apply_overrides(config: ConfigManager, args: argparse.Namespace) -> None:
    """Override configuration with command line arguments"""
    if args.timeout is not None:
        config.query.timeout = args.timeout
    if args.protocol_version is not None:
        config.query.protocol_version = args.protocol_version
    if args.no_srv:
        config.resolver.srv_enabled = False
    if args.no_legacy:
        config.query.legacy_support = False
    if args.mods:
        config.output.show_mods = True
    config.validate()

def target_address(args: argparse.Namespace, config: ConfigManager) -> ServerAddress:
    address = parse_address(args.address, config.resolver.default_port)
    if args.port is not None:
        if not 1 <= args.port <= 65535:
            raise InvalidAddress(f"Port out of range: {args.port}")
        address = ServerAddress(host=address.host, port=args.port, explicit_port=True)
    return address

async def run(argv: Optional[List[str]] = None) -> int:
    """Main application entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)
    cli = CLIInterface()

    if args.create_config:
        try:
            create_default_config(args.create_config)
        except ConfigError as e:
            cli.error_console.print(f"Could not create config: {e}", markup=False)
            return EXIT_CONFIG
        cli.console.print(f"Default configuration created: {args.create_config}", markup=False)
        return EXIT_OK

    if not args.address:
        parser.print_usage(sys.stderr)
        return EXIT_USAGE

    try:
        config = ConfigManager(args.config)
        apply_overrides(config, args)
    except ConfigError as e:
        cli.error_console.print(f"Configuration error: {e}", markup=False)
        return EXIT_CONFIG

    setup_logging(config.logging, args.verbose)
    cli.output = config.output

    try:
        address = target_address(args, config)
        response = await StatusClient(config).query(address)
    except InvalidAddress as e:
        cli.print_error(e)
        return EXIT_USAGE
    except QueryError as e:
        cli.print_error(e)
        return EXIT_QUERY_FAILED

    if args.raw:
        cli.print_raw(response)
    else:
        cli.print_status(response)
    return EXIT_OK

def main() -> None:
    try:
        sys.exit(asyncio.run(run()))
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        sys.exit(130)

if __name__ == "__main__":
    main()

"""
Server address parsing and resolution
"""

import asyncio
import ipaddress
import logging
import socket
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional, Union

import dns.asyncresolver
import dns.exception

from core.config_types import ResolverConfig
from core.exceptions import InvalidAddress, ResolutionFailed

logger = logging.getLogger(__name__)

DEFAULT_PORT = 25565
SRV_SERVICE = "_minecraft._tcp"

HostLookup = Callable[[str, int], Awaitable[Any]]

@dataclass(frozen=True)
class ServerAddress:
    host: str
    port: int = DEFAULT_PORT
    explicit_port: bool = False

    def __str__(self) -> str:
        host = f"[{self.host}]" if ':' in self.host else self.host
        return f"{host}:{self.port}"

@dataclass(frozen=True)
class ResolvedTarget:
    connect_host: str
    connect_port: int
    source: str = "literal"

    def __str__(self) -> str:
        host = f"[{self.connect_host}]" if ':' in self.connect_host else self.connect_host
        return f"{host}:{self.connect_port}"


def is_ip_literal(host: str) -> bool:
    """Check if host is an IPv4 or IPv6 address"""
    try:
        ipaddress.ip_address(host)
        return True
    except ValueError:
        return False


def _parse_port(text: str, original: str) -> int:
    if not (text.isascii() and text.isdigit()):
        raise InvalidAddress(f"Invalid port in address: {original}")
    port = int(text)
    if not 1 <= port <= 65535:
        raise InvalidAddress(f"Port out of range in address: {original}")
    return port


def parse_address(text: str, default_port: int = DEFAULT_PORT) -> ServerAddress:
    """Split ``host[:port]`` into a ServerAddress.

    Accepts bracketed IPv6 (``[::1]:25565``) and bare IPv6 literals.
    """
    original = text
    text = text.strip()
    if not text:
        raise InvalidAddress("Empty server address")

    if text.startswith('['):
        end = text.find(']')
        if end == -1:
            raise InvalidAddress(f"Unterminated IPv6 literal: {original}")
        host = text[1:end]
        rest = text[end + 1:]
        if not rest:
            port = None
        elif rest.startswith(':'):
            port = _parse_port(rest[1:], original)
        else:
            raise InvalidAddress(f"Unexpected text after IPv6 literal: {original}")
    elif text.count(':') > 1:
        host, port = text, None
    elif ':' in text:
        host, port_text = text.rsplit(':', 1)
        port = _parse_port(port_text, original)
    else:
        host, port = text, None

    host = host.rstrip('.') if not is_ip_literal(host) else host
    if not host:
        raise InvalidAddress(f"Missing host in address: {original}")

    if port is None:
        return ServerAddress(host=host, port=default_port, explicit_port=False)
    return ServerAddress(host=host, port=port, explicit_port=True)


class ResolutionStrategy(ABC):
    """One step of the resolution chain"""

    @abstractmethod
    async def resolve(self, address: ServerAddress) -> Optional[ResolvedTarget]:
        """Return a target, or None to let the next strategy try"""
        pass


class SrvRecordStrategy(ResolutionStrategy):
    """Follows the ``_minecraft._tcp`` SRV record when no port was given"""

    def __init__(self, resolver: Optional[Any] = None, timeout: float = 5.0):
        self.resolver = resolver
        self.timeout = timeout

    async def resolve(self, address: ServerAddress) -> Optional[ResolvedTarget]:
        if address.explicit_port or is_ip_literal(address.host):
            return None

        name = f"{SRV_SERVICE}.{address.host}"
        try:
            if self.resolver is None:
                # Reads the system resolver config, which may be missing
                self.resolver = dns.asyncresolver.Resolver()
            answer = await self.resolver.resolve(name, "SRV", lifetime=self.timeout)
        except dns.exception.DNSException as e:
            logger.debug(f"No SRV record for {name}: {e.__class__.__name__}")
            return None

        records = sorted(answer, key=lambda r: (r.priority, -r.weight))
        if not records:
            return None

        record = records[0]
        target = str(record.target).rstrip('.')
        if not target:
            # A target of "." means the service is explicitly unavailable
            logger.debug(f"SRV record for {name} points nowhere")
            return None

        logger.debug(f"SRV {name} -> {target}:{record.port}")
        return ResolvedTarget(connect_host=target, connect_port=int(record.port), source="srv")


class LiteralHostStrategy(ResolutionStrategy):
    """Uses the host as given, after checking that it resolves"""

    def __init__(self, lookup: Optional[HostLookup] = None, timeout: float = 5.0):
        self.lookup = lookup
        self.timeout = timeout

    async def _default_lookup(self, host: str, port: int) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.getaddrinfo(host, port, type=socket.SOCK_STREAM)

    async def resolve(self, address: ServerAddress) -> Optional[ResolvedTarget]:
        if not is_ip_literal(address.host):
            lookup = self.lookup or self._default_lookup
            try:
                addr_info = await asyncio.wait_for(
                    lookup(address.host, address.port),
                    timeout=self.timeout
                )
            except (socket.gaierror, UnicodeError) as e:
                raise ResolutionFailed(f"Could not resolve {address.host}: {e}") from e
            except asyncio.TimeoutError as e:
                raise ResolutionFailed(f"Timed out resolving {address.host}") from e

            if not addr_info:
                raise ResolutionFailed(f"No addresses found for {address.host}")

        return ResolvedTarget(connect_host=address.host, connect_port=address.port, source="literal")


class AddressResolver:
    """Runs the resolution strategies in order until one yields a target"""

    def __init__(self, strategies: List[ResolutionStrategy], default_port: int = DEFAULT_PORT):
        self.strategies = strategies
        self.default_port = default_port

    @classmethod
    def from_config(cls, config: ResolverConfig, dns_resolver: Optional[Any] = None,
                    lookup: Optional[HostLookup] = None) -> 'AddressResolver':
        strategies: List[ResolutionStrategy] = []
        if config.srv_enabled:
            strategies.append(SrvRecordStrategy(dns_resolver, timeout=config.dns_timeout))
        strategies.append(LiteralHostStrategy(lookup, timeout=config.dns_timeout))
        return cls(strategies, default_port=config.default_port)

    async def resolve(self, address: Union[str, ServerAddress]) -> ResolvedTarget:
        if isinstance(address, str):
            address = parse_address(address, self.default_port)

        for strategy in self.strategies:
            target = await strategy.resolve(address)
            if target is not None:
                logger.debug(f"Resolved {address} via {strategy.__class__.__name__} to {target}")
                return target

        raise ResolutionFailed(f"Could not resolve {address}")

"""
Terminal output of a status response
"""

import logging
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.style import Style as RichStyle
from rich.table import Table
from rich.text import Text

from core.config_types import OutputConfig
from core.exceptions import (
    QueryError, InvalidAddress, ResolutionFailed, ConnectError,
    QueryTimeout, OversizedPacket, ProtocolError
)
from parsers.description import Description, Style, iter_spans, strip_formatting
from parsers.status_parser import StatusResponse

logger = logging.getLogger(__name__)

# Colors as the game client renders them
COLOR_HEX = {
    'black': '#000000', 'dark_blue': '#0000AA', 'dark_green': '#00AA00',
    'dark_aqua': '#00AAAA', 'dark_red': '#AA0000', 'dark_purple': '#AA00AA',
    'gold': '#FFAA00', 'gray': '#AAAAAA', 'dark_gray': '#555555',
    'blue': '#5555FF', 'green': '#55FF55', 'aqua': '#55FFFF',
    'red': '#FF5555', 'light_purple': '#FF55FF', 'yellow': '#FFFF55',
    'white': '#FFFFFF'
}


def to_rich_style(style: Style) -> RichStyle:
    color = COLOR_HEX.get(style.color or '')
    if color is None and style.color and style.color.startswith('#') and len(style.color) == 7:
        color = style.color
    return RichStyle(
        color=color,
        bold=style.bold,
        italic=style.italic,
        underline=style.underlined,
        strike=style.strikethrough,
        blink=style.obfuscated
    )


def description_to_text(tree: Description) -> Text:
    """Colorize a description tree for the terminal"""
    text = Text()
    for chunk, style in iter_spans(tree):
        text.append(strip_formatting(chunk), style=to_rich_style(style))
    return text


def describe_error(error: QueryError) -> str:
    """One-line diagnostic per error kind"""
    if isinstance(error, InvalidAddress):
        return f"Invalid address: {error}"
    if isinstance(error, ResolutionFailed):
        return f"Could not resolve server: {error}"
    if isinstance(error, ConnectError):
        return f"Connection failed: {error}"
    if isinstance(error, QueryTimeout):
        return f"Timed out: {error}"
    if isinstance(error, OversizedPacket):
        return f"Server sent an oversized response: {error}"
    if isinstance(error, ProtocolError):
        return f"Server spoke an unsupported protocol: {error}"
    return f"Query failed: {error}"


class CLIInterface:
    """Renders query results and errors"""

    def __init__(self, console: Optional[Console] = None, output: Optional[OutputConfig] = None):
        self.console = console or Console()
        self.output = output or OutputConfig()
        self.error_console = Console(stderr=True)

    def print_status(self, response: StatusResponse) -> None:
        if response.motd is not None:
            motd = description_to_text(response.motd)
            if motd.plain.strip():
                self.console.print(Panel(motd, title="Description", expand=False))

        if self.output.show_player_sample and response.player_sample:
            names = Text("\n").join(
                Text(strip_formatting(player.name)) for player in response.player_sample
            )
            self.console.print(Panel(names, title="Player Sample", expand=False))

        table = Table(show_header=False, box=None, pad_edge=False)
        table.add_column(style="bold")
        table.add_column()
        if response.server_version:
            table.add_row("Server Version", Text(strip_formatting(response.server_version)))
        table.add_row("Online Players", str(response.players_online))
        table.add_row("Max Players", str(response.players_max))
        table.add_row("Server Protocol", str(response.protocol_version))
        if response.server_type.value != 'unknown':
            table.add_row("Server Type", response.server_type.value)
        if response.mod_loader:
            table.add_row("Mod Loader", response.mod_loader)
        if response.mod_list is not None:
            table.add_row("Mods", str(len(response.mod_list)))
        if response.legacy:
            table.add_row("Ping Protocol", "legacy")
        if response.latency is not None:
            table.add_row("Latency", f"{response.latency:.0f} ms")
        self.console.print(table)

        if self.output.show_mods:
            self.print_mods(response)

    def print_mods(self, response: StatusResponse) -> None:
        if response.mod_list:
            mods = Table(title="Mods")
            mods.add_column("Mod")
            mods.add_column("Version")
            for mod in response.mod_list:
                mods.add_row(Text(mod.modid), Text(mod.version))
            self.console.print(mods)

        if response.forge_channels:
            channels = Table(title="Channels")
            channels.add_column("Channel")
            channels.add_column("Version")
            channels.add_column("Required")
            for channel in response.forge_channels:
                channels.add_row(Text(channel.name), Text(channel.version), "yes" if channel.required else "no")
            self.console.print(channels)

        if response.forge_truncated:
            self.console.print(Text("The server truncated its mod list", style="yellow"))

    def print_raw(self, response: StatusResponse) -> None:
        # Printed without markup so the JSON is copyable
        self.console.print(response.raw_json, markup=False, highlight=False, soft_wrap=True)

    def print_error(self, error: QueryError) -> None:
        self.error_console.print(Text(describe_error(error), style="bold red"))

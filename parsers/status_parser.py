"""
Status response decoder
"""

import base64
import binascii
import json
import re
import logging
from typing import Dict, Any, Optional, List
from dataclasses import dataclass
from enum import Enum

from core.exceptions import MalformedStatusPayload, ProtocolError
from .description import Description, render_plain
from .forge import ForgeChannel, ModInfo, parse_forge_data

logger = logging.getLogger(__name__)

FAVICON_PREFIX = 'data:image/png;base64,'

class ServerType(Enum):
    """Server software types"""
    VANILLA = "vanilla"
    PAPER = "paper"
    SPIGOT = "spigot"
    BUKKIT = "bukkit"
    PURPUR = "purpur"
    FOLIA = "folia"
    FORGE = "forge"
    NEOFORGE = "neoforge"
    FABRIC = "fabric"
    QUILT = "quilt"
    VELOCITY = "velocity"
    BUNGEECORD = "bungeecord"
    WATERFALL = "waterfall"
    UNKNOWN = "unknown"

@dataclass(frozen=True)
class Player:
    name: str
    uuid: str

@dataclass
class StatusResponse:
    """Decoded server status"""
    protocol_version: int
    players_online: int
    players_max: int
    server_version: Optional[str] = None
    motd: Optional[Description] = None
    player_sample: Optional[List[Player]] = None
    favicon: Optional[bytes] = None
    mod_list: Optional[List[ModInfo]] = None
    forge_channels: Optional[List[ForgeChannel]] = None
    mod_loader: Optional[str] = None
    forge_truncated: Optional[bool] = None
    server_type: ServerType = ServerType.UNKNOWN
    enforces_secure_chat: Optional[bool] = None
    prevents_chat_reports: Optional[bool] = None
    raw_json: str = ""
    legacy: bool = False
    latency: Optional[float] = None

    @property
    def motd_text(self) -> str:
        return render_plain(self.motd) if self.motd else ""


class StatusParser:
    """Turns the JSON text of a status response into a StatusResponse"""

    def decode(self, json_text: str) -> StatusResponse:
        try:
            data = json.loads(json_text)
        except ValueError as e:
            raise MalformedStatusPayload(f"Invalid JSON: {e}") from e

        if not isinstance(data, dict):
            raise MalformedStatusPayload("Status payload is not a JSON object")

        players = data.get('players')
        if not isinstance(players, dict):
            raise MalformedStatusPayload("Missing 'players' object")
        online = _require_int(players, 'online')
        maximum = _require_int(players, 'max')

        version_name = None
        protocol_version = -1
        version_info = data.get('version')
        if isinstance(version_info, dict):
            if version_info.get('name') is not None:
                version_name = str(version_info['name'])
            protocol = version_info.get('protocol')
            if isinstance(protocol, int) and not isinstance(protocol, bool):
                protocol_version = protocol

        response = StatusResponse(
            protocol_version=protocol_version,
            players_online=online,
            players_max=maximum,
            server_version=version_name,
            motd=self._parse_description(data),
            player_sample=self._parse_sample(players),
            favicon=self._parse_favicon(data.get('favicon')),
            enforces_secure_chat=_optional_bool(data.get('enforcesSecureChat')),
            prevents_chat_reports=_optional_bool(data.get('preventsChatReports')),
            raw_json=json_text
        )

        forge = parse_forge_data(data)
        if forge is not None:
            response.mod_list = forge.mods
            response.forge_channels = forge.channels
            response.mod_loader = forge.mod_loader
            response.forge_truncated = forge.truncated

        response.server_type = detect_server_type(data, version_name, response.motd_text)
        return response

    def decode_legacy(self, text: str) -> StatusResponse:
        """Decode the kick message sent in reply to a legacy ping.

        1.4 - 1.6 servers send ``§1`` followed by NUL-separated fields,
        beta 1.8 - 1.3 servers send ``motd§online§max``.
        """
        version_name = None
        if text.startswith('§1\x00'):
            parts = text.split('\x00')
            if len(parts) == 6:
                _, protocol, version_name, motd, online, maximum = parts
            elif len(parts) == 5:
                _, protocol, motd, online, maximum = parts
            else:
                raise ProtocolError(f"Legacy response has {len(parts)} fields")
        else:
            parts = text.split('§')
            if len(parts) < 3:
                raise ProtocolError("Unrecognized legacy response")
            # The MOTD itself may contain section signs
            motd = '§'.join(parts[:-2])
            protocol, online, maximum = '-1', parts[-2], parts[-1]

        try:
            response = StatusResponse(
                protocol_version=int(protocol),
                players_online=int(online),
                players_max=int(maximum),
                server_version=version_name or None,
                motd=Description.from_legacy(motd),
                raw_json=text,
                legacy=True
            )
        except ValueError as e:
            raise ProtocolError(f"Invalid number in legacy response: {e}") from e

        response.server_type = detect_server_type({}, response.server_version)
        return response

    def _parse_description(self, data: Dict[str, Any]) -> Optional[Description]:
        if 'description' not in data:
            return None
        try:
            return Description.from_json(data['description'])
        except ValueError as e:
            raise MalformedStatusPayload(f"Invalid description: {e}") from e

    def _parse_sample(self, players: Dict[str, Any]) -> Optional[List[Player]]:
        sample = players.get('sample')
        if sample is None:
            return None
        if not isinstance(sample, list):
            logger.debug(f"Ignoring non-list player sample: {sample!r}")
            return None

        result = []
        for player in sample:
            if isinstance(player, dict) and 'name' in player:
                result.append(Player(name=str(player['name']), uuid=str(player.get('id', ''))))
            else:
                logger.debug(f"Skipping malformed player sample entry: {player!r}")
        return result

    def _parse_favicon(self, favicon: Any) -> Optional[bytes]:
        if not isinstance(favicon, str) or not favicon:
            return None

        encoded = favicon[len(FAVICON_PREFIX):] if favicon.startswith(FAVICON_PREFIX) else favicon
        # Some servers wrap the base64 text every 76 characters
        encoded = encoded.replace('\n', '').replace('\r', '')
        try:
            return base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as e:
            logger.debug(f"Ignoring undecodable favicon: {e}")
            return None


def _require_int(players: Dict[str, Any], key: str) -> int:
    value = players.get(key)
    if not isinstance(value, int) or isinstance(value, bool):
        raise MalformedStatusPayload(f"'players.{key}' missing or not an integer")
    return value


def _optional_bool(value: Any) -> Optional[bool]:
    return value if isinstance(value, bool) else None


def detect_server_type(data: Dict[str, Any], version_name: Optional[str], motd_text: str = "") -> ServerType:
    """Detect server software type"""
    if 'forgeData' in data or 'modinfo' in data:
        if 'neoforge' in (version_name or '').lower():
            return ServerType.NEOFORGE
        return ServerType.FORGE

    version_lower = version_name.lower() if version_name else ""

    # Paper forks mention both names
    if 'purpur' in version_lower:
        return ServerType.PURPUR
    elif 'folia' in version_lower:
        return ServerType.FOLIA
    elif 'paper' in version_lower:
        return ServerType.PAPER
    elif 'spigot' in version_lower:
        return ServerType.SPIGOT
    elif 'bukkit' in version_lower:
        return ServerType.BUKKIT
    elif 'neoforge' in version_lower:
        return ServerType.NEOFORGE
    elif 'forge' in version_lower or 'fml' in version_lower:
        return ServerType.FORGE
    elif 'fabric' in version_lower:
        return ServerType.FABRIC
    elif 'quilt' in version_lower:
        return ServerType.QUILT
    elif 'velocity' in version_lower:
        return ServerType.VELOCITY
    elif 'bungeecord' in version_lower:
        return ServerType.BUNGEECORD
    elif 'waterfall' in version_lower:
        return ServerType.WATERFALL

    motd_lower = motd_text.lower()
    if 'fabric' in motd_lower:
        return ServerType.FABRIC

    if re.match(r'^1\.\d+(\.\d+)?$', version_name or ""):
        return ServerType.VANILLA

    return ServerType.UNKNOWN

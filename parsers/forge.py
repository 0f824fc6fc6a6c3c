"""
Forge mod list and channel extension of the status response
"""

import logging
import struct
from typing import Any, Dict, List, Optional, Tuple
from dataclasses import dataclass, field

from core.exceptions import MalformedStatusPayload, ProtocolError
from core.packet import unpack_string
from core.varint import decode_varint

logger = logging.getLogger(__name__)

# Version reported for mods that only need to be present on the server
IGNORE_SERVER_ONLY = "OHNOES\U0001F631\U0001F631\U0001F631\U0001F631"

@dataclass(frozen=True)
class ModInfo:
    modid: str
    version: str

@dataclass(frozen=True)
class ForgeChannel:
    """A network channel the server registers, with its version rule"""
    name: str
    version: str
    required: bool = False

    def accepts(self, remote_version: Optional[str]) -> bool:
        """Check whether a client advertising ``remote_version`` is compatible.

        ``None`` means the client does not have the channel at all.
        """
        if remote_version is None:
            return not self.required
        return remote_version == self.version

@dataclass
class ForgeData:
    mod_loader: str
    mods: List[ModInfo] = field(default_factory=list)
    channels: Optional[List[ForgeChannel]] = None
    truncated: Optional[bool] = None


def parse_forge_data(response_data: Dict[str, Any]) -> Optional[ForgeData]:
    """Extract Forge data from a status response.

    Returns None for servers without any Forge fields.
    """
    try:
        if isinstance(response_data.get('forgeData'), dict):
            return _parse_forge_data_v2(response_data['forgeData'])
        if isinstance(response_data.get('modinfo'), dict):
            return _parse_modinfo(response_data['modinfo'])
    except (ProtocolError, ValueError, TypeError, KeyError) as e:
        raise MalformedStatusPayload(f"Invalid forge data: {e}") from e
    return None


def _parse_modinfo(modinfo: Dict[str, Any]) -> ForgeData:
    """FML 1.7 - 1.12 format"""
    mods = []
    for mod in modinfo.get('modList') or []:
        if isinstance(mod, dict) and mod.get('modid'):
            mods.append(ModInfo(modid=str(mod['modid']), version=str(mod.get('version', ''))))
        else:
            logger.debug(f"Skipping malformed modList entry: {mod!r}")
    return ForgeData(mod_loader=str(modinfo.get('type') or 'FML'), mods=mods)


def _parse_forge_data_v2(forge_data: Dict[str, Any]) -> ForgeData:
    """FML2+ format, with the optimized encoding used since 1.18.1"""
    network_version = forge_data.get('fmlNetworkVersion')
    mod_loader = f"FML{network_version}" if network_version is not None else "FML"

    if isinstance(forge_data.get('d'), str):
        truncated, mods, channels = read_optimized(decode_optimized(forge_data['d']))
        return ForgeData(mod_loader=mod_loader, mods=mods, channels=channels, truncated=truncated)

    mods = []
    for mod in forge_data.get('mods') or []:
        if isinstance(mod, dict) and (mod.get('modId') or mod.get('modid')):
            mods.append(ModInfo(
                modid=str(mod.get('modId') or mod.get('modid')),
                version=str(mod.get('modmarker') or mod.get('version') or '')
            ))
        else:
            logger.debug(f"Skipping malformed forge mod entry: {mod!r}")

    channels = []
    for channel in forge_data.get('channels') or []:
        if isinstance(channel, dict) and channel.get('res'):
            channels.append(ForgeChannel(
                name=str(channel['res']),
                version=str(channel.get('version', '')),
                required=bool(channel.get('required', False))
            ))
        else:
            logger.debug(f"Skipping malformed forge channel entry: {channel!r}")

    truncated = forge_data.get('truncated')
    return ForgeData(
        mod_loader=mod_loader,
        mods=mods,
        channels=channels,
        truncated=bool(truncated) if truncated is not None else None
    )


def decode_optimized(data: str) -> bytes:
    """Unpack the 15-bits-per-character string into raw bytes.

    The first two characters hold the byte count (low 15 bits, then high).
    """
    if len(data) < 2:
        raise ValueError("Optimized forge data too short")

    size = (ord(data[0]) & 0x7FFF) | ((ord(data[1]) & 0x7FFF) << 15)
    output = bytearray()
    buffer = 0
    bits = 0
    for char in data[2:]:
        while bits >= 8:
            output.append(buffer & 0xFF)
            buffer >>= 8
            bits -= 8
        buffer |= (ord(char) & 0x7FFF) << bits
        bits += 15

    while len(output) < size:
        if bits <= 0:
            raise ValueError("Optimized forge data shorter than declared size")
        output.append(buffer & 0xFF)
        buffer >>= 8
        bits -= 8

    return bytes(output[:size])


class _BufferReader:
    def __init__(self, data: bytes):
        self.data = data
        self.pos = 0

    def read_bool(self) -> bool:
        return self.read_bytes(1)[0] != 0

    def read_ushort(self) -> int:
        return struct.unpack('>H', self.read_bytes(2))[0]

    def read_varint(self) -> int:
        value, consumed = decode_varint(self.data, self.pos)
        self.pos += consumed
        return value

    def read_string(self) -> str:
        text, self.pos = unpack_string(self.data, self.pos)
        return text

    def read_bytes(self, count: int) -> bytes:
        if self.pos + count > len(self.data):
            raise ValueError("Unexpected end of forge data")
        chunk = self.data[self.pos:self.pos + count]
        self.pos += count
        return chunk


def read_optimized(data: bytes) -> Tuple[bool, List[ModInfo], List[ForgeChannel]]:
    """Read the mod and channel tables from a decoded buffer"""
    reader = _BufferReader(data)
    truncated = reader.read_bool()

    mods = []
    channels = []
    for _ in range(reader.read_ushort()):
        flags = reader.read_varint()
        channel_count = flags >> 1
        server_only = bool(flags & 0x1)

        modid = reader.read_string()
        version = IGNORE_SERVER_ONLY if server_only else reader.read_string()
        mods.append(ModInfo(modid=modid, version=version))

        for _ in range(channel_count):
            path = reader.read_string()
            channel_version = reader.read_string()
            required = reader.read_bool()
            channels.append(ForgeChannel(
                name=f"{modid}:{path}", version=channel_version, required=required
            ))

    for _ in range(reader.read_varint()):
        name = reader.read_string()
        channel_version = reader.read_string()
        required = reader.read_bool()
        channels.append(ForgeChannel(name=name, version=channel_version, required=required))

    return truncated, mods, channels

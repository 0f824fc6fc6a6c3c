"""
Length-prefixed packet framing
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Tuple

from .exceptions import OversizedPacket, TruncatedPacket
from .varint import decode_varint, encode_varint, read_varint

logger = logging.getLogger(__name__)

# Upper bound for a status response frame
MAX_PACKET_LENGTH = 2 * 1024 * 1024

@dataclass(frozen=True)
class Packet:
    """A single decoded frame"""
    packet_id: int
    payload: bytes = b''


def encode_packet(packet_id: int, payload: bytes = b'') -> bytes:
    """Create a packet with ID and data"""
    packet_data = encode_varint(packet_id) + payload
    return encode_varint(len(packet_data)) + packet_data


async def write_packet(writer: asyncio.StreamWriter, packet_id: int, payload: bytes = b'') -> None:
    """Write one packet as a single unit and flush it"""
    writer.write(encode_packet(packet_id, payload))
    await writer.drain()


async def read_packet(reader: asyncio.StreamReader, max_length: int = MAX_PACKET_LENGTH) -> Packet:
    """Read a packet from the stream.

    The declared length is checked against ``max_length`` before any of the
    body is read, so a hostile length never causes a large allocation.
    """
    length = await read_varint(reader)
    if length > max_length:
        raise OversizedPacket(length, max_length)
    if length == 0:
        raise TruncatedPacket("Packet has no id")

    try:
        data = await reader.readexactly(length)
    except asyncio.IncompleteReadError as e:
        raise TruncatedPacket(
            f"Expected {length} bytes, connection closed after {len(e.partial)}"
        ) from e

    packet_id, pos = decode_varint(data)
    logger.debug(f"Read packet 0x{packet_id:02x} ({length} bytes)")
    return Packet(packet_id=packet_id, payload=data[pos:])


def pack_string(text: str) -> bytes:
    """Encode a VarInt-length-prefixed UTF-8 string"""
    data = text.encode('utf-8')
    return encode_varint(len(data)) + data


def unpack_string(data: bytes, offset: int = 0) -> Tuple[str, int]:
    """Decode a VarInt-length-prefixed UTF-8 string.

    Returns the string and the offset just past it.
    """
    length, consumed = decode_varint(data, offset)
    start = offset + consumed
    end = start + length
    if end > len(data):
        raise TruncatedPacket(f"String of {length} bytes overruns packet")
    return data[start:end].decode('utf-8', errors='replace'), end

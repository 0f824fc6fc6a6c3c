"""
VarInt encoding used for packet lengths and ids
"""

import asyncio
from typing import Tuple

from .exceptions import MalformedVarInt

MAX_VARINT_BYTES = 5
UINT32_MAX = 0xFFFFFFFF


def encode_varint(value: int) -> bytes:
    """Encode an unsigned 32-bit integer as a VarInt"""
    if value < 0 or value > UINT32_MAX:
        raise ValueError(f"VarInt value out of range: {value}")

    result = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            byte |= 0x80
        result.append(byte)
        if not value:
            break
    return bytes(result)


def decode_varint(data: bytes, offset: int = 0) -> Tuple[int, int]:
    """Decode a VarInt from ``data`` starting at ``offset``.

    Returns the value and the number of bytes consumed.
    """
    value = 0
    for i in range(MAX_VARINT_BYTES):
        pos = offset + i
        if pos >= len(data):
            raise MalformedVarInt("Data ended inside a VarInt")

        byte = data[pos]
        value |= (byte & 0x7F) << (7 * i)
        if not byte & 0x80:
            return value & UINT32_MAX, i + 1

    raise MalformedVarInt("VarInt too big")


async def read_varint(reader: asyncio.StreamReader) -> int:
    """Read a VarInt from the stream"""
    value = 0
    for i in range(MAX_VARINT_BYTES):
        byte = await reader.read(1)
        if not byte:
            raise MalformedVarInt("Stream ended inside a VarInt")

        value |= (byte[0] & 0x7F) << (7 * i)
        if not byte[0] & 0x80:
            return value & UINT32_MAX

    raise MalformedVarInt("VarInt too big")


def to_signed32(value: int) -> int:
    """Reinterpret a decoded uint32 as a two's complement int32"""
    return value - (1 << 32) if value & 0x80000000 else value

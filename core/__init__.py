"""
mcstat core package

The session and client live in ``core.protocol`` and ``core.client``; they
depend on ``parsers`` and ``utils``, which import from this package, so they
are not re-exported here.
"""

from .packet import Packet, encode_packet, read_packet, write_packet
from .varint import encode_varint, decode_varint, read_varint
from .config import ConfigManager, create_default_config
from .exceptions import *

__version__ = "0.3.0"

__all__ = [
    'Packet',
    'encode_packet',
    'read_packet',
    'write_packet',
    'encode_varint',
    'decode_varint',
    'read_varint',
    'ConfigManager',
    'create_default_config',
    'McStatError',
    'ConfigError',
    'QueryError',
    'InvalidAddress',
    'ResolutionFailed',
    'ConnectError',
    'QueryTimeout',
    'ProtocolError',
    'MalformedVarInt',
    'TruncatedPacket',
    'OversizedPacket',
    'MalformedStatusPayload'
]

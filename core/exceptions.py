"""
Custom exceptions for mcstat
"""

class McStatError(Exception):
    """Base exception for mcstat"""
    pass

class ConfigError(McStatError):
    """Configuration-related errors"""
    pass

class QueryError(McStatError):
    """Base class for everything a status query can fail with"""
    pass

class InvalidAddress(QueryError):
    """The address string could not be parsed"""
    pass

class ResolutionFailed(QueryError):
    """The host could not be resolved by any strategy"""
    pass

class ConnectError(QueryError):
    """The TCP connection could not be established"""
    pass

class QueryTimeout(QueryError):
    """The overall query deadline expired"""
    pass

class ProtocolError(QueryError):
    """Protocol-related errors"""
    pass

class MalformedVarInt(ProtocolError):
    """VarInt longer than 5 bytes or cut off by end of stream"""
    pass

class TruncatedPacket(ProtocolError):
    """Connection closed before a full packet was read"""
    pass

class OversizedPacket(ProtocolError):
    """Declared packet length exceeds the allowed bound"""

    def __init__(self, length: int, limit: int):
        super().__init__(f"Packet length {length} exceeds limit of {limit} bytes")
        self.length = length
        self.limit = limit

class MalformedStatusPayload(ProtocolError):
    """Status JSON could not be parsed or lacks required fields"""
    pass

"""
Server List Ping session with legacy fallback
"""

import asyncio
import struct
import logging
import time
from enum import Enum
from typing import Optional, Dict, Callable, Awaitable
from dataclasses import dataclass

from .exceptions import ConnectError, ProtocolError, QueryError
from .config_types import QueryConfig
from .packet import MAX_PACKET_LENGTH, pack_string, read_packet, unpack_string, write_packet
from .varint import encode_varint
from parsers.status_parser import StatusParser, StatusResponse
from utils.network import ResolvedTarget

logger = logging.getLogger(__name__)

@dataclass
class ProtocolConfig:
    connect_timeout: float = 5.0
    protocol_version: int = 770
    legacy_support: bool = True
    max_packet_length: int = MAX_PACKET_LENGTH

    @classmethod
    def from_query_config(cls, query_config: QueryConfig) -> 'ProtocolConfig':
        """Create ProtocolConfig from QueryConfig"""
        return cls(
            connect_timeout=query_config.connect_timeout,
            protocol_version=query_config.protocol_version,
            legacy_support=query_config.legacy_support,
            max_packet_length=query_config.max_packet_length
        )

class SessionState(Enum):
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"
    HANDSHAKE_SENT = "handshake_sent"
    STATUS_REQUESTED = "status_requested"
    STATUS_RECEIVED = "status_received"
    LEGACY_FALLBACK = "legacy_fallback"
    LEGACY_RESPONSE_RECEIVED = "legacy_response_received"
    FAILED = "failed"

TERMINAL_STATES = frozenset({
    SessionState.STATUS_RECEIVED,
    SessionState.LEGACY_RESPONSE_RECEIVED,
    SessionState.FAILED
})

# Packet constants
HANDSHAKE_PACKET = 0x00
STATUS_REQUEST_PACKET = 0x00
STATUS_RESPONSE_PACKET = 0x00
STATE_STATUS = 1

LEGACY_PING = b'\xfe\x01'
LEGACY_PLUGIN_MESSAGE = 0xFA
LEGACY_KICK_PACKET = 0xFF
LEGACY_PROTOCOL_VERSION = 74  # 1.6.2


def build_handshake(host: str, port: int, protocol_version: int) -> bytes:
    """Payload of the handshake packet requesting the status state"""
    return (
        encode_varint(protocol_version)
        + pack_string(host)
        + struct.pack('>H', port)
        + encode_varint(STATE_STATUS)
    )


def build_legacy_request(host: str, port: int) -> bytes:
    """0xFE 0x01 ping followed by the 1.6 MC|PingHost plugin message.

    Servers older than 1.6 stop reading after the first two bytes.
    """
    channel = 'MC|PingHost'.encode('utf-16-be')
    host_bytes = host.encode('utf-16-be')
    return (
        LEGACY_PING
        + bytes([LEGACY_PLUGIN_MESSAGE])
        + struct.pack('>H', len(channel) // 2)
        + channel
        + struct.pack('>H', 7 + len(host_bytes))
        + bytes([LEGACY_PROTOCOL_VERSION])
        + struct.pack('>H', len(host_bytes) // 2)
        + host_bytes
        + struct.pack('>i', port)
    )


def _reason(error: BaseException) -> str:
    return str(error) or error.__class__.__name__


class StatusSession:
    """Drives one status exchange with a single server.

    Every call to ``step`` performs exactly one transition of the state
    machine. The session owns its connection exclusively.
    """

    def __init__(self, target: ResolvedTarget, config: Optional[ProtocolConfig] = None,
                 parser: Optional[StatusParser] = None):
        self.target = target
        self.config = config or ProtocolConfig()
        self.parser = parser or StatusParser()

        self.state = SessionState.DISCONNECTED
        self.response: Optional[StatusResponse] = None
        self.error: Optional[QueryError] = None
        self.fallback_reason: Optional[BaseException] = None

        self._reader: Optional[asyncio.StreamReader] = None
        self._writer: Optional[asyncio.StreamWriter] = None
        self._request_started: Optional[float] = None

        self._handlers: Dict[SessionState, Callable[[], Awaitable[SessionState]]] = {
            SessionState.DISCONNECTED: self._connect,
            SessionState.CONNECTED: self._send_handshake,
            SessionState.HANDSHAKE_SENT: self._send_status_request,
            SessionState.STATUS_REQUESTED: self._read_status,
            SessionState.LEGACY_FALLBACK: self._legacy_ping,
        }

    @property
    def finished(self) -> bool:
        return self.state in TERMINAL_STATES

    async def step(self) -> SessionState:
        """Perform one transition and return the new state"""
        if self.finished:
            return self.state

        previous = self.state
        self.state = await self._handlers[previous]()
        logger.debug(f"{self.target}: {previous.name} -> {self.state.name}")

        if self.finished:
            await self.close()
        return self.state

    async def run(self) -> StatusResponse:
        """Step until a terminal state; return the response or raise the error"""
        try:
            while not self.finished:
                await self.step()
        finally:
            await self.close()

        if self.state is SessionState.FAILED:
            raise self.error
        return self.response

    async def close(self) -> None:
        writer, self._writer, self._reader = self._writer, None, None
        if writer is None:
            return
        writer.close()
        try:
            await writer.wait_closed()
        except OSError as e:
            logger.debug(f"Error closing connection to {self.target}: {e}")

    def _fail(self, error: QueryError) -> SessionState:
        self.error = error
        return SessionState.FAILED

    def _fall_back(self, error: BaseException) -> SessionState:
        if not self.config.legacy_support:
            if isinstance(error, QueryError):
                return self._fail(error)
            return self._fail(ProtocolError(f"Status exchange failed: {_reason(error)}"))

        logger.debug(f"Status exchange with {self.target} failed ({_reason(error)}), trying legacy ping")
        self.fallback_reason = error
        return SessionState.LEGACY_FALLBACK

    async def _open(self) -> None:
        try:
            self._reader, self._writer = await asyncio.wait_for(
                asyncio.open_connection(self.target.connect_host, self.target.connect_port),
                timeout=self.config.connect_timeout
            )
        except (asyncio.TimeoutError, OSError) as e:
            raise ConnectError(f"Could not connect to {self.target}: {_reason(e)}") from e

    async def _connect(self) -> SessionState:
        try:
            await self._open()
        except ConnectError as e:
            return self._fail(e)
        return SessionState.CONNECTED

    async def _send_handshake(self) -> SessionState:
        payload = build_handshake(
            self.target.connect_host, self.target.connect_port, self.config.protocol_version
        )
        try:
            await write_packet(self._writer, HANDSHAKE_PACKET, payload)
        except OSError as e:
            return self._fall_back(e)
        return SessionState.HANDSHAKE_SENT

    async def _send_status_request(self) -> SessionState:
        try:
            await write_packet(self._writer, STATUS_REQUEST_PACKET)
        except OSError as e:
            return self._fall_back(e)
        self._request_started = time.perf_counter()
        return SessionState.STATUS_REQUESTED

    async def _read_status(self) -> SessionState:
        try:
            packet = await read_packet(self._reader, self.config.max_packet_length)
            if packet.packet_id != STATUS_RESPONSE_PACKET:
                raise ProtocolError(f"Unexpected packet 0x{packet.packet_id:02x} in status state")
            json_text, _ = unpack_string(packet.payload)
            response = self.parser.decode(json_text)
        except (ProtocolError, OSError) as e:
            return self._fall_back(e)

        response.latency = (time.perf_counter() - self._request_started) * 1000
        self.response = response
        return SessionState.STATUS_RECEIVED

    async def _legacy_ping(self) -> SessionState:
        await self.close()
        try:
            await self._open()
        except ConnectError as e:
            return self._fail(e)

        try:
            started = time.perf_counter()
            self._writer.write(build_legacy_request(self.target.connect_host, self.target.connect_port))
            await self._writer.drain()

            header = await self._reader.readexactly(3)
            if header[0] != LEGACY_KICK_PACKET:
                raise ProtocolError(f"Unexpected legacy packet 0x{header[0]:02x}")
            length = struct.unpack('>H', header[1:])[0]
            body = await self._reader.readexactly(length * 2)
            response = self.parser.decode_legacy(body.decode('utf-16-be'))
        except ProtocolError as e:
            return self._fail(e)
        except (asyncio.IncompleteReadError, UnicodeDecodeError, OSError) as e:
            return self._fail(ProtocolError(f"Legacy ping failed: {_reason(e)}"))

        response.latency = (time.perf_counter() - started) * 1000
        self.response = response
        return SessionState.LEGACY_RESPONSE_RECEIVED

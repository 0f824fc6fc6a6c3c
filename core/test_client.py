import asyncio
import json

import pytest

from core.client import StatusClient, query
from core.config import ConfigManager
from core.exceptions import ConnectError, InvalidAddress, QueryTimeout
from core.packet import encode_packet, pack_string, read_packet
from utils.network import AddressResolver, LiteralHostStrategy, ServerAddress

STATUS_JSON = json.dumps({
    "version": {"name": "Paper 1.20.4", "protocol": 765},
    "players": {"online": 0, "max": 100},
    "description": "Lobby"
})


async def serve_status(reader, writer):
    try:
        await read_packet(reader)
        await read_packet(reader)
        writer.write(encode_packet(0x00, pack_string(STATUS_JSON)))
        await writer.drain()
    finally:
        writer.close()


@pytest.mark.asyncio
async def test_query_explicit_address():
    server = await asyncio.start_server(serve_status, '127.0.0.1', 0)
    port = server.sockets[0].getsockname()[1]
    try:
        response = await query(f"127.0.0.1:{port}", timeout=5.0)
        assert response.server_version == "Paper 1.20.4"
        assert response.players_max == 100
        assert response.player_sample is None
        assert response.motd_text == "Lobby"
    finally:
        server.close()
        await server.wait_closed()


@pytest.mark.asyncio
async def test_query_accepts_server_address():
    server = await asyncio.start_server(serve_status, '127.0.0.1', 0)
    port = server.sockets[0].getsockname()[1]
    try:
        client = StatusClient()
        response = await client.query(ServerAddress('127.0.0.1', port, explicit_port=True))
        assert response.protocol_version == 765
    finally:
        server.close()
        await server.wait_closed()


@pytest.mark.asyncio
async def test_overall_timeout_closes_connection():
    closed = asyncio.Event()

    async def silent(reader, writer):
        try:
            # Returns once the client closes its side
            await reader.read()
            closed.set()
        finally:
            writer.close()

    server = await asyncio.start_server(silent, '127.0.0.1', 0)
    port = server.sockets[0].getsockname()[1]
    try:
        with pytest.raises(QueryTimeout):
            await query(f"127.0.0.1:{port}", timeout=0.3)
        await asyncio.wait_for(closed.wait(), timeout=2.0)
    finally:
        server.close()
        await server.wait_closed()


@pytest.mark.asyncio
async def test_timeout_covers_dns_resolution():
    async def hanging_lookup(host, port):
        await asyncio.sleep(10)

    resolver = AddressResolver([LiteralHostStrategy(hanging_lookup, timeout=30.0)])
    client = StatusClient(resolver=resolver)
    with pytest.raises(QueryTimeout):
        await client.query("slow.example.com:25565", timeout=0.2)


@pytest.mark.asyncio
async def test_connect_error_is_not_retried():
    server = await asyncio.start_server(serve_status, '127.0.0.1', 0)
    port = server.sockets[0].getsockname()[1]
    server.close()
    await server.wait_closed()

    with pytest.raises(ConnectError):
        await query(f"127.0.0.1:{port}", timeout=5.0)


@pytest.mark.asyncio
async def test_invalid_address():
    with pytest.raises(InvalidAddress):
        await query("example.com:notaport")


def test_client_uses_configured_probe_version():
    config = ConfigManager()
    config.query.protocol_version = 47
    client = StatusClient(config)
    assert client.protocol_config.protocol_version == 47

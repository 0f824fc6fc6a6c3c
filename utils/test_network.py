import socket
from types import SimpleNamespace

import dns.exception
import dns.name
import dns.resolver
import pytest

from core.config_types import ResolverConfig
from core.exceptions import InvalidAddress, ResolutionFailed
from utils.network import (
    AddressResolver, LiteralHostStrategy, ResolvedTarget, ServerAddress,
    SrvRecordStrategy, is_ip_literal, parse_address
)


def srv(target, port, priority=0, weight=5):
    return SimpleNamespace(
        target=dns.name.from_text(target), port=port, priority=priority, weight=weight
    )


class FakeResolver:
    """Answers SRV queries from a fixed table and records what was asked"""

    def __init__(self, answers=None):
        self.answers = answers or {}
        self.queries = []

    async def resolve(self, name, rdtype, lifetime=None):
        self.queries.append((name, rdtype))
        if name not in self.answers:
            raise dns.resolver.NXDOMAIN()
        return self.answers[name]


async def resolving_lookup(host, port):
    return [(socket.AF_INET, socket.SOCK_STREAM, 6, '', ('192.0.2.1', port))]


async def failing_lookup(host, port):
    raise socket.gaierror(socket.EAI_NONAME, "Name or service not known")


def make_resolver(dns_resolver, lookup=resolving_lookup, srv_enabled=True):
    config = ResolverConfig(srv_enabled=srv_enabled)
    return AddressResolver.from_config(config, dns_resolver=dns_resolver, lookup=lookup)


@pytest.mark.parametrize("text, expected", [
    ("mc.example.com", ServerAddress("mc.example.com", 25565, False)),
    ("mc.example.com:25566", ServerAddress("mc.example.com", 25566, True)),
    ("mc.example.com.", ServerAddress("mc.example.com", 25565, False)),
    ("192.168.1.10", ServerAddress("192.168.1.10", 25565, False)),
    ("192.168.1.10:25570", ServerAddress("192.168.1.10", 25570, True)),
    ("[::1]:25570", ServerAddress("::1", 25570, True)),
    ("[2001:db8::1]", ServerAddress("2001:db8::1", 25565, False)),
    ("2001:db8::1", ServerAddress("2001:db8::1", 25565, False)),
    ("  padded.example.com  ", ServerAddress("padded.example.com", 25565, False)),
])
def test_parse_address(text, expected):
    assert parse_address(text) == expected


@pytest.mark.parametrize("text", [
    "", "   ", "host:", "host:abc", "host:0", "host:65536", ":25565", "[::1", "[::1]x",
    "host:²", "[::1]:٣"
])
def test_parse_address_rejects(text):
    with pytest.raises(InvalidAddress):
        parse_address(text)


def test_parse_address_custom_default_port():
    assert parse_address("example.com", default_port=19132).port == 19132


def test_is_ip_literal():
    assert is_ip_literal("127.0.0.1")
    assert is_ip_literal("::1")
    assert not is_ip_literal("localhost")


def test_address_str_brackets_ipv6():
    assert str(ServerAddress("::1", 25565)) == "[::1]:25565"
    assert str(ResolvedTarget("example.com", 25566)) == "example.com:25566"


@pytest.mark.asyncio
async def test_srv_record_redirects():
    dns_resolver = FakeResolver({
        "_minecraft._tcp.example.com": [srv("backend.example.com.", 25570)]
    })
    target = await make_resolver(dns_resolver).resolve("example.com")

    assert target == ResolvedTarget("backend.example.com", 25570, source="srv")
    assert dns_resolver.queries == [("_minecraft._tcp.example.com", "SRV")]


@pytest.mark.asyncio
async def test_explicit_port_skips_srv():
    dns_resolver = FakeResolver({
        "_minecraft._tcp.example.com": [srv("backend.example.com.", 25570)]
    })
    target = await make_resolver(dns_resolver).resolve("example.com:25565")

    assert target == ResolvedTarget("example.com", 25565, source="literal")
    assert dns_resolver.queries == []


@pytest.mark.asyncio
async def test_missing_srv_falls_back_to_host():
    dns_resolver = FakeResolver()
    target = await make_resolver(dns_resolver).resolve("example.com")

    assert target == ResolvedTarget("example.com", 25565, source="literal")
    assert dns_resolver.queries == [("_minecraft._tcp.example.com", "SRV")]


@pytest.mark.asyncio
async def test_dns_timeout_falls_back_to_host():
    class TimingOutResolver:
        async def resolve(self, name, rdtype, lifetime=None):
            raise dns.exception.Timeout()

    target = await make_resolver(TimingOutResolver()).resolve("example.com")
    assert target.source == "literal"


@pytest.mark.asyncio
async def test_unresolvable_host_fails():
    with pytest.raises(ResolutionFailed):
        await make_resolver(FakeResolver(), lookup=failing_lookup).resolve("nowhere.invalid")


@pytest.mark.asyncio
async def test_empty_lookup_result_fails():
    async def empty_lookup(host, port):
        return []

    with pytest.raises(ResolutionFailed):
        await make_resolver(FakeResolver(), lookup=empty_lookup).resolve("example.com")


@pytest.mark.asyncio
async def test_srv_prefers_lowest_priority_then_highest_weight():
    dns_resolver = FakeResolver({
        "_minecraft._tcp.example.com": [
            srv("backup.example.com.", 25580, priority=10, weight=100),
            srv("light.example.com.", 25571, priority=0, weight=1),
            srv("heavy.example.com.", 25572, priority=0, weight=50),
        ]
    })
    target = await make_resolver(dns_resolver).resolve("example.com")
    assert target == ResolvedTarget("heavy.example.com", 25572, source="srv")


@pytest.mark.asyncio
async def test_srv_target_root_is_ignored():
    dns_resolver = FakeResolver({"_minecraft._tcp.example.com": [srv(".", 25570)]})
    target = await make_resolver(dns_resolver).resolve("example.com")
    assert target.source == "literal"


@pytest.mark.asyncio
async def test_ip_literal_skips_all_lookups():
    dns_resolver = FakeResolver()
    target = await make_resolver(dns_resolver, lookup=failing_lookup).resolve("127.0.0.1")

    assert target == ResolvedTarget("127.0.0.1", 25565, source="literal")
    assert dns_resolver.queries == []


@pytest.mark.asyncio
async def test_srv_disabled():
    dns_resolver = FakeResolver({
        "_minecraft._tcp.example.com": [srv("backend.example.com.", 25570)]
    })
    target = await make_resolver(dns_resolver, srv_enabled=False).resolve("example.com")

    assert target.source == "literal"
    assert dns_resolver.queries == []


@pytest.mark.asyncio
async def test_resolver_accepts_parsed_address():
    resolver = AddressResolver([LiteralHostStrategy(resolving_lookup)])
    target = await resolver.resolve(ServerAddress("example.com", 25600, explicit_port=True))
    assert target == ResolvedTarget("example.com", 25600)


@pytest.mark.asyncio
async def test_no_strategy_yields_target():
    resolver = AddressResolver([SrvRecordStrategy(FakeResolver())])
    with pytest.raises(ResolutionFailed):
        await resolver.resolve("example.com")

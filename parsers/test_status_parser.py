import base64
import json

import pytest

from core.exceptions import MalformedStatusPayload, ProtocolError
from parsers.forge import ModInfo
from parsers.status_parser import Player, ServerType, StatusParser, detect_server_type

ALICE_UUID = "4566e69f-c907-48ee-8d71-d7ba5aa00d20"


@pytest.fixture
def parser():
    return StatusParser()


def test_decode_basic_status(parser):
    payload = json.dumps({
        "version": {"name": "1.20", "protocol": 763},
        "players": {"online": 5, "max": 20, "sample": [{"name": "Alice", "id": ALICE_UUID}]},
        "description": "A server"
    })
    response = parser.decode(payload)

    assert response.protocol_version == 763
    assert response.server_version == "1.20"
    assert response.players_online == 5
    assert response.players_max == 20
    assert response.player_sample == [Player(name="Alice", uuid=ALICE_UUID)]
    assert response.favicon is None
    assert response.mod_list is None
    assert response.motd_text == "A server"
    assert response.raw_json == payload
    assert response.legacy is False
    assert response.server_type == ServerType.VANILLA


def test_absent_fields_differ_from_empty(parser):
    response = parser.decode('{"players": {"online": 0, "max": 0, "sample": []}}')
    assert response.player_sample == []
    assert response.motd is None
    assert response.server_version is None
    assert response.protocol_version == -1

    response = parser.decode('{"players": {"online": 0, "max": 0}}')
    assert response.player_sample is None


def test_sample_larger_than_max_is_kept(parser):
    sample = [{"name": f"p{i}", "id": str(i)} for i in range(5)]
    response = parser.decode(json.dumps({"players": {"online": 5, "max": 2, "sample": sample}}))
    assert len(response.player_sample) == 5


def test_structured_description(parser):
    response = parser.decode(json.dumps({
        "players": {"online": 1, "max": 10},
        "description": {"text": "", "extra": [{"text": "Hello ", "color": "gold"}, {"text": "World", "bold": True}]}
    }))
    assert response.motd_text == "Hello World"
    assert response.motd.children[0].color == "gold"


def test_favicon_is_decoded(parser):
    png = b'\x89PNG\r\n\x1a\nfake'
    response = parser.decode(json.dumps({
        "players": {"online": 1, "max": 10},
        "favicon": "data:image/png;base64," + base64.b64encode(png).decode()
    }))
    assert response.favicon == png


def test_undecodable_favicon_is_absent(parser):
    response = parser.decode(json.dumps({
        "players": {"online": 1, "max": 10},
        "favicon": "data:image/png;base64,@@not base64@@"
    }))
    assert response.favicon is None


@pytest.mark.parametrize("payload", [
    "not json",
    "[1, 2, 3]",
    '{"version": {"name": "1.20", "protocol": 763}}',
    '{"players": {"max": 20}}',
    '{"players": {"online": "5", "max": 20}}',
    '{"players": {"online": 5, "max": 20.5}}',
    '{"players": {"online": true, "max": 20}}',
    '{"players": []}',
])
def test_malformed_payloads(parser, payload):
    with pytest.raises(MalformedStatusPayload):
        parser.decode(payload)


def test_chat_flags(parser):
    response = parser.decode(json.dumps({
        "players": {"online": 1, "max": 10},
        "enforcesSecureChat": True,
        "preventsChatReports": "yes"
    }))
    assert response.enforces_secure_chat is True
    assert response.prevents_chat_reports is None


def test_modinfo_mod_list(parser):
    response = parser.decode(json.dumps({
        "version": {"name": "1.12.2", "protocol": 340},
        "players": {"online": 0, "max": 20},
        "modinfo": {"type": "FML", "modList": [
            {"modid": "minecraft", "version": "1.12.2"},
            {"modid": "jei", "version": "4.16.1"}
        ]}
    }))
    assert response.mod_loader == "FML"
    assert response.mod_list == [ModInfo("minecraft", "1.12.2"), ModInfo("jei", "4.16.1")]
    assert response.forge_channels is None
    assert response.server_type == ServerType.FORGE


def test_forge_data_mods_and_channels(parser):
    response = parser.decode(json.dumps({
        "players": {"online": 0, "max": 20},
        "forgeData": {
            "fmlNetworkVersion": 2,
            "mods": [{"modId": "forge", "modmarker": "36.2.0"}],
            "channels": [{"res": "forge:handshake", "version": "1", "required": True}],
            "truncated": False
        }
    }))
    assert response.mod_loader == "FML2"
    assert response.mod_list == [ModInfo("forge", "36.2.0")]
    assert [c.name for c in response.forge_channels] == ["forge:handshake"]
    assert response.forge_truncated is False


def test_invalid_forge_data(parser):
    with pytest.raises(MalformedStatusPayload):
        parser.decode(json.dumps({
            "players": {"online": 0, "max": 20},
            "forgeData": {"fmlNetworkVersion": 3, "d": "x"}
        }))


@pytest.mark.parametrize("version_name, expected", [
    ("Paper 1.20.4", ServerType.PAPER),
    ("Purpur 1.20.4", ServerType.PURPUR),
    ("Velocity 3.3.0", ServerType.VELOCITY),
    ("BungeeCord 1.8.x-1.20.x", ServerType.BUNGEECORD),
    ("1.20.1", ServerType.VANILLA),
    ("Something custom", ServerType.UNKNOWN),
    (None, ServerType.UNKNOWN),
])
def test_detect_server_type(version_name, expected):
    assert detect_server_type({}, version_name) == expected


def test_decode_legacy_without_version(parser):
    response = parser.decode_legacy("§1\x00127\x00MOTD\x005\x0020")
    assert response.legacy is True
    assert response.protocol_version == 127
    assert response.server_version is None
    assert response.motd_text == "MOTD"
    assert (response.players_online, response.players_max) == (5, 20)


def test_decode_legacy_with_version(parser):
    response = parser.decode_legacy("§1\x0078\x001.6.4\x00§aGreen §lbold\x0012\x00100")
    assert response.protocol_version == 78
    assert response.server_version == "1.6.4"
    assert response.motd_text == "Green bold"
    assert response.players_max == 100


def test_decode_beta_legacy(parser):
    response = parser.decode_legacy("A §cred§r server§3§10")
    assert response.protocol_version == -1
    assert response.motd_text == "A red server"
    assert (response.players_online, response.players_max) == (3, 10)


@pytest.mark.parametrize("text", [
    "§1\x00127\x00MOTD",
    "§1\x00abc\x00MOTD\x005\x0020",
    "no separators",
    "motd§x§20",
])
def test_decode_legacy_rejects(parser, text):
    with pytest.raises(ProtocolError):
        parser.decode_legacy(text)

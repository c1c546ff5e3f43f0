import argparse
import json

import pytest

from sockets_live.config import CFG, apply_settings, init_cfg_from_args, load_config_file
from sockets_live.models import AddressFamily, Protocol


def args(**kw):
    base = dict(config=None, interval=None, backend=None, families=None, protocols=None,
                events=None, log_file=None, log_level=None)
    base.update(kw)
    return argparse.Namespace(**base)


def test_defaults():
    cfg = init_cfg_from_args(args())
    assert cfg == CFG()
    assert cfg.families == {AddressFamily.IPV4, AddressFamily.IPV6}
    assert cfg.protocols == {Protocol.TCP, Protocol.UDP}
    assert cfg.tick_rate == 0.25


def test_cli_values_are_parsed():
    cfg = init_cfg_from_args(args(interval=1, backend="psutil", families="ipv4", protocols=" TCP ,",
                                  log_level="debug"))
    assert cfg.tick_rate == 1.0
    assert cfg.backend == "psutil"
    assert cfg.families == {AddressFamily.IPV4}
    assert cfg.protocols == {Protocol.TCP}
    assert cfg.log_level == "DEBUG"


def test_yaml_file_then_cli_override(tmp_path):
    path = tmp_path / "live.yaml"
    path.write_text("tick_rate: 2\nfamilies: [ipv6]\nprotocols: udp\nevent_limit: 50\n", encoding="utf-8")
    cfg = init_cfg_from_args(args(config=str(path), interval=0.5))
    assert cfg.tick_rate == 0.5
    assert cfg.families == {AddressFamily.IPV6}
    assert cfg.protocols == {Protocol.UDP}
    assert cfg.event_limit == 50


def test_json_file(tmp_path):
    path = tmp_path / "live.json"
    path.write_text(json.dumps({"backend": "ss", "log_file": "x.log"}), encoding="utf-8")
    assert load_config_file(str(path)) == {"backend": "ss", "log_file": "x.log"}


def test_missing_file_is_ignored(tmp_path, caplog):
    assert load_config_file(str(tmp_path / "nope.yaml")) == {}
    assert "config not found" in caplog.text


def test_empty_yaml_file(tmp_path):
    path = tmp_path / "empty.yml"
    path.write_text("", encoding="utf-8")
    assert load_config_file(str(path)) == {}


def test_non_mapping_file_is_rejected(tmp_path):
    path = tmp_path / "list.yaml"
    path.write_text("- 1\n- 2\n", encoding="utf-8")
    with pytest.raises(ValueError, match="mapping"):
        load_config_file(str(path))


@pytest.mark.parametrize("settings,message", [
    ({"colour": "blue"}, "unknown config keys"),
    ({"families": "ipx"}, "unknown AddressFamily"),
    ({"protocols": ""}, "at least one"),
    ({"families": 5}, "comma-separated string or a list"),
    ({"idle_ms": [1]}, "idle_ms must be a number"),
    ({"tick_rate": "fast"}, "tick_rate must be a number"),
    ({"event_limit": True}, "event_limit must be a number"),
    ({"tick_rate": 0}, "positive"),
    ({"event_limit": -1}, "positive"),
    ({"backend": "netstat"}, "unknown backend"),
    ({"log_level": "LOUD"}, "unknown log level"),
])
def test_invalid_settings(settings, message):
    with pytest.raises(ValueError, match=message):
        apply_settings(CFG(), settings)


def test_malformed_yaml_is_a_value_error(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("tick_rate: [1\n", encoding="utf-8")
    with pytest.raises(ValueError, match="bad.yaml"):
        load_config_file(str(path))


def test_malformed_json_is_a_value_error(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text("{\"tick_rate\": ", encoding="utf-8")
    with pytest.raises(ValueError, match="bad.json"):
        load_config_file(str(path))

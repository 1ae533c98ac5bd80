import json
from pathlib import Path

import pytest

from spdz_client.config import ClientConfig, ProxyConfig, Timeouts

KEY_HEX = "00" * 32


def test_defaults_and_plain_urls() -> None:
    config = ClientConfig.from_dict({"proxies": ["http://p0", "http://p1"]})
    assert config.api_root == "/spdzapi"
    assert config.proxy_urls == ["http://p0", "http://p1"]
    assert config.worker_count == 2
    assert config.timeouts.consume_wait_ms == 0
    assert config.timeouts.poll_retries == 10


def test_encrypted_proxy_parses_hex_key() -> None:
    config = ClientConfig.from_dict(
        {"proxies": [{"url": "http://p0", "encrypted": True, "encryption_key": KEY_HEX}]}
    )
    assert config.proxies[0] == ProxyConfig(url="http://p0", encrypted=True, encryption_key=bytes(32))


@pytest.mark.parametrize(
    "data",
    [
        {},
        {"proxies": []},
        {"proxies": ["http://p0", "http://p0"]},
        {"proxies": [{"url": ""}]},
        {"proxies": [{"url": "http://p0", "encrypted": True}]},
        {"proxies": [{"url": "http://p0", "encryption_key": "abcd"}]},
        {"proxies": ["http://p0"], "api_root": "spdzapi"},
        {"proxies": ["http://p0"], "max_workers": 0},
        {"proxies": ["http://p0"], "client_public_key": "12"},
    ],
)
def test_invalid_configs_rejected(data) -> None:
    with pytest.raises(ValueError):
        ClientConfig.from_dict(data)


def test_timeouts_validation() -> None:
    timeouts = Timeouts.from_mapping({"consume_wait_ms": 2000, "poll_backoff_seconds": 1})
    assert timeouts.consume_wait_ms == 2000
    assert timeouts.poll_backoff_seconds == 1.0
    with pytest.raises(ValueError):
        Timeouts.from_mapping({"unknown": 1})
    with pytest.raises(ValueError):
        Timeouts.from_mapping({"poll_retries": -1})


def test_from_json_and_yaml_files(tmp_path: Path) -> None:
    data = {
        "api_root": "/api",
        "client_id": "client-7",
        "client_public_key": "AB" * 32,
        "proxies": [{"url": "http://p0", "encrypted": True, "encryption_key": KEY_HEX}, {"url": "http://p1"}],
        "timeouts": {"consume_wait_ms": 500},
    }
    json_path = tmp_path / "client.json"
    json_path.write_text(json.dumps(data))
    yaml_path = tmp_path / "client.yaml"
    yaml_path.write_text(
        "api_root: /api\n"
        "client_id: client-7\n"
        f"client_public_key: {'AB' * 32}\n"
        "proxies:\n"
        "  - url: http://p0\n"
        "    encrypted: true\n"
        f"    encryption_key: '{KEY_HEX}'\n"
        "  - url: http://p1\n"
        "timeouts:\n"
        "  consume_wait_ms: 500\n"
    )
    from_json = ClientConfig.from_file(json_path)
    from_yaml = ClientConfig.from_file(yaml_path)
    assert from_json == from_yaml
    assert from_json.client_public_key == "ab" * 32
    assert from_json.timeouts.consume_wait_ms == 500


def test_to_dict_round_trips() -> None:
    config = ClientConfig.from_dict(
        {"proxies": [{"url": "http://p0", "encrypted": True, "encryption_key": KEY_HEX}], "max_workers": 4}
    )
    assert ClientConfig.from_dict(config.to_dict()) == config


def test_invalid_yaml_is_value_error(tmp_path: Path) -> None:
    path = tmp_path / "bad.yml"
    path.write_text("proxies: [unclosed\n")
    with pytest.raises(ValueError):
        ClientConfig.from_file(path)

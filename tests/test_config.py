import json

import pytest

from jobhistory_fetcher.config import DEFAULT_TIMEOUT, FetcherConfig

ENV_KEYS = [
    "MAPREDUCE_JOBHISTORY_ADDRESS",
    "FETCHER_SAMPLING_ENABLED",
    "FETCHER_TIMEOUT",
    "FETCHER_AUTH_USER",
    "FETCHER_AUTH_PASSWORD",
    "FETCHER_PSEUDO_AUTH_USER",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_from_env_defaults():
    cfg = FetcherConfig.from_env()
    assert cfg.history_address == ""
    assert cfg.params == {}
    assert cfg.timeout == DEFAULT_TIMEOUT
    assert cfg.auth_user is None


def test_from_env(monkeypatch):
    monkeypatch.setenv("MAPREDUCE_JOBHISTORY_ADDRESS", "jhs.example.com:19888")
    monkeypatch.setenv("FETCHER_SAMPLING_ENABLED", "true")
    monkeypatch.setenv("FETCHER_TIMEOUT", "12.5")
    monkeypatch.setenv("FETCHER_PSEUDO_AUTH_USER", "elephant")
    cfg = FetcherConfig.from_env()
    assert cfg.history_address == "jhs.example.com:19888"
    assert cfg.params == {"sampling_enabled": "true"}
    assert cfg.timeout == 12.5
    assert cfg.pseudo_auth_user == "elephant"


def test_from_yaml_file(tmp_path, monkeypatch):
    monkeypatch.setenv("FETCHER_AUTH_USER", "alice")
    path = tmp_path / "fetcher.yaml"
    path.write_text(
        "history_address: jhs.example.com:19888\n"
        "timeout: 5\n"
        "params:\n"
        "  sampling_enabled: true\n"
        "  extra: 3\n"
        "unknown_key: ignored\n"
    )
    cfg = FetcherConfig.from_file(path)
    assert cfg.history_address == "jhs.example.com:19888"
    assert cfg.timeout == 5.0
    assert cfg.params == {"sampling_enabled": "true", "extra": "3"}
    assert cfg.auth_user == "alice"
    assert not hasattr(cfg, "unknown_key")


def test_from_json_file_overrides_env(tmp_path, monkeypatch):
    monkeypatch.setenv("MAPREDUCE_JOBHISTORY_ADDRESS", "env-host:19888")
    monkeypatch.setenv("FETCHER_SAMPLING_ENABLED", "true")
    path = tmp_path / "fetcher.json"
    path.write_text(json.dumps({"history_address": "file-host:19888", "sampling_enabled": False}))
    cfg = FetcherConfig.from_file(path)
    assert cfg.history_address == "file-host:19888"
    assert cfg.params["sampling_enabled"] == "false"


def test_from_file_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        FetcherConfig.from_file(tmp_path / "nope.yaml")


def test_from_file_unsupported_format(tmp_path):
    path = tmp_path / "fetcher.ini"
    path.write_text("[fetcher]\n")
    with pytest.raises(ValueError):
        FetcherConfig.from_file(path)


def test_from_file_requires_mapping(tmp_path):
    path = tmp_path / "fetcher.yaml"
    path.write_text("- a\n- b\n")
    with pytest.raises(ValueError):
        FetcherConfig.from_file(path)


def test_to_dict_masks_password():
    cfg = FetcherConfig(history_address="jhs:19888", auth_user="alice", auth_password="secret")
    data = cfg.to_dict()
    assert data["auth_password"] == "***"
    assert data["auth_user"] == "alice"
    assert FetcherConfig().to_dict()["auth_password"] is None

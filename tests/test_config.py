from __future__ import annotations

import json
from pathlib import Path

import pytest

from peeklib.config import (
    RUNTIME_ENV_KEY,
    RUNTIME_ENV_VALUE,
    Config,
    ConfigError,
    ErrorKind,
    RawOptions,
    check_in_container,
    normalize_config,
    resolve_save_dir,
)


def no_env(_key):
    return None


def test_defaults():
    cfg = normalize_config(RawOptions(), getenv=no_env, home=lambda: Path("/home/me"))
    assert cfg == Config(save_dir=Path("/home/me"))
    assert cfg.docker_interval == 1000
    assert cfg.timestamp and cfg.show_self and cfg.gui
    assert not cfg.color and not cfg.raw and not cfg.use_cli
    assert cfg.host is None
    assert cfg.base_url_map is None


@pytest.mark.parametrize("field", ["timestamp", "show_self", "gui"])
def test_suppress_flags_are_inverted(field):
    cfg = normalize_config(RawOptions(**{field: True}), getenv=no_env, home=lambda: None)
    assert getattr(cfg, field) is False


def test_pass_through_fields():
    raw = RawOptions(color=True, use_cli=True, host="tcp://10.0.0.2:2375")
    cfg = normalize_config(raw, getenv=no_env, home=lambda: None)
    assert cfg.color is True
    assert cfg.raw is False
    assert cfg.use_cli is True
    assert cfg.host == "tcp://10.0.0.2:2375"


def test_raw_passes_through():
    cfg = normalize_config(RawOptions(raw=True), getenv=no_env, home=lambda: None)
    assert cfg.raw is True and cfg.color is False


def test_zero_interval_is_fatal():
    with pytest.raises(ConfigError) as exc:
        normalize_config(RawOptions(docker_interval=0), getenv=no_env, home=lambda: None)
    assert exc.value.kind is ErrorKind.INVALID_INTERVAL
    assert "-d" in str(exc.value)


@pytest.mark.parametrize("interval", [1, 500, 500000])
def test_small_and_large_intervals_are_accepted(interval):
    cfg = normalize_config(RawOptions(docker_interval=interval), getenv=no_env, home=lambda: None)
    assert cfg.docker_interval == interval


def test_base_url_map_absent_is_none():
    cfg = normalize_config(RawOptions(base_url_map=None), getenv=no_env, home=lambda: None)
    assert cfg.base_url_map is None


def test_base_url_map_empty_stays_empty():
    cfg = normalize_config(RawOptions(base_url_map=[]), getenv=no_env, home=lambda: None)
    assert cfg.base_url_map == ()


def test_save_dir_is_literal():
    assert resolve_save_dir("/tmp/x", home=lambda: Path("/home/me")) == Path("/tmp/x")
    assert resolve_save_dir("~/logs", home=lambda: Path("/home/me")) == Path("~/logs")


def test_save_dir_falls_back_to_home():
    assert resolve_save_dir(None, home=lambda: Path("/home/me")) == Path("/home/me")


def test_save_dir_none_without_home():
    assert resolve_save_dir(None, home=lambda: None) is None


def test_save_dir_default_home(monkeypatch, tmp_path):
    monkeypatch.setenv("HOME", str(tmp_path))
    assert resolve_save_dir(None) == Path.home()


@pytest.mark.parametrize(
    "env, expected",
    [
        ({}, False),
        ({RUNTIME_ENV_KEY: ""}, False),
        ({RUNTIME_ENV_KEY: "Container"}, False),
        ({RUNTIME_ENV_KEY: "true"}, False),
        ({RUNTIME_ENV_KEY: RUNTIME_ENV_VALUE}, True),
    ],
)
def test_container_probe(env, expected):
    assert check_in_container(env.get) is expected


def test_container_probe_real_env(monkeypatch):
    monkeypatch.delenv(RUNTIME_ENV_KEY, raising=False)
    assert check_in_container() is False
    monkeypatch.setenv(RUNTIME_ENV_KEY, RUNTIME_ENV_VALUE)
    assert check_in_container() is True


def test_in_container_flows_into_config():
    env = {RUNTIME_ENV_KEY: RUNTIME_ENV_VALUE}
    cfg = normalize_config(RawOptions(), getenv=env.get, home=lambda: None)
    assert cfg.in_container is True


def test_config_is_immutable():
    cfg = normalize_config(RawOptions(), getenv=no_env, home=lambda: None)
    with pytest.raises(AttributeError):
        cfg.docker_interval = 5  # type: ignore[misc]


def test_to_json():
    raw = RawOptions(save_dir="/tmp/x", base_url_map=["name;web;http://localhost:8080"])
    cfg = normalize_config(raw, getenv=no_env, home=lambda: None)
    data = json.loads(cfg.to_json())
    assert data["save_dir"] == "/tmp/x"
    assert data["timestamp"] is True
    assert data["base_url_map"] == [
        {"name": "web", "image": None, "label": None, "base_url": "http://localhost:8080"}
    ]

"""
Tests for config loading: defaults, YAML profile overrides, env overrides.
"""

from pathlib import Path

import pytest

from chat.core.config import load_config

ENV_KEYS = [
    "CHAT_PROVIDER",
    "CHAT_MODEL",
    "CHAT_MAX_TOKENS",
    "CHAT_STORAGE_DIR",
    "CHAT_STORAGE_KEY",
    "CHAT_ANSWER_DELAY",
    "CHAT_LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for k in ENV_KEYS:
        monkeypatch.delenv(k, raising=False)


def test_defaults_without_yaml(tmp_path):
    cfg = load_config("default", config_dir=tmp_path)
    assert cfg.profile == "default"
    assert cfg.provider == "simulated"
    assert cfg.storage_key == "aiChatHistory"
    assert cfg.storage_dir == Path("runtime")
    assert cfg.answer_delay_s == 1.5
    assert cfg.max_input_chars == 2000
    assert cfg.title_max_chars == 30
    assert cfg.log_level == "INFO"


def test_yaml_overrides_known_keys_only(tmp_path):
    (tmp_path / "dev.yaml").write_text(
        "provider: DeepSeek\n"
        "title_max_chars: 20\n"
        "storage_dir: /tmp/chats\n"
        "unknown_key: ignored\n"
    )
    cfg = load_config("dev", config_dir=tmp_path)
    assert cfg.profile == "dev"
    assert cfg.provider == "deepseek"
    assert cfg.title_max_chars == 20
    assert cfg.storage_dir == Path("/tmp/chats")
    assert not hasattr(cfg, "unknown_key")


def test_env_beats_yaml(tmp_path, monkeypatch):
    (tmp_path / "default.yaml").write_text("answer_delay_s: 3\nlog_level: warning\n")
    monkeypatch.setenv("CHAT_ANSWER_DELAY", "0")
    monkeypatch.setenv("CHAT_STORAGE_KEY", "alt")
    cfg = load_config(config_dir=tmp_path)
    assert cfg.answer_delay_s == 0.0
    assert cfg.storage_key == "alt"
    assert cfg.log_level == "WARNING"


def test_bad_numeric_yaml_value_falls_back_to_default(tmp_path):
    (tmp_path / "default.yaml").write_text("title_max_chars: lots\n")
    cfg = load_config(config_dir=tmp_path)
    assert cfg.title_max_chars == 30


def test_bad_numeric_env_value_is_skipped(tmp_path, monkeypatch):
    (tmp_path / "default.yaml").write_text("max_tokens: 2048\nanswer_delay_s: 0.25\n")
    monkeypatch.setenv("CHAT_MAX_TOKENS", "abc")
    monkeypatch.setenv("CHAT_ANSWER_DELAY", "soon")
    cfg = load_config(config_dir=tmp_path)
    assert cfg.max_tokens == 2048
    assert cfg.answer_delay_s == 0.25


def test_bad_numeric_env_value_without_yaml_keeps_default(tmp_path, monkeypatch):
    monkeypatch.setenv("CHAT_MAX_TOKENS", "many")
    cfg = load_config(config_dir=tmp_path)
    assert cfg.max_tokens == 1024


def test_broken_yaml_is_ignored(tmp_path):
    (tmp_path / "default.yaml").write_text("provider: [unclosed\n")
    cfg = load_config(config_dir=tmp_path)
    assert cfg.provider == "simulated"


def test_shipped_default_profile_loads():
    root = Path(__file__).resolve().parents[1]
    cfg = load_config(config_dir=root / "configs")
    assert cfg.provider == "simulated"
    assert cfg.storage_key == "aiChatHistory"

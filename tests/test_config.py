import pytest

from pacechat.config import ChatConfig, ConfigError, resolve_model_alias


def test_resolve_model_alias():
    assert resolve_model_alias("sonnet") == "claude-sonnet-4-20250514"
    assert resolve_model_alias("MINI") == "gpt-4o-mini"
    assert resolve_model_alias("ollama/llama3") == "ollama/llama3"


def test_from_env_reads_overrides(monkeypatch):
    monkeypatch.setenv("PACECHAT_MODEL", "haiku")
    monkeypatch.setenv("PACECHAT_TEMPERATURE", "0.2")
    monkeypatch.setenv("PACECHAT_MAX_TOKENS", "512")
    monkeypatch.setenv("PACECHAT_STORAGE_DIR", "/tmp/pacechat-test")
    monkeypatch.setenv("PACECHAT_STORAGE_KEY", "athlete")

    config = ChatConfig.from_env()

    assert config.model == "claude-3-5-haiku-20241022"
    assert config.temperature == 0.2
    assert config.max_tokens == 512
    assert config.storage_dir == "/tmp/pacechat-test"
    assert config.storage_key == "athlete"
    config.validate()


def test_from_env_defaults(monkeypatch):
    for name in (
        "PACECHAT_MODEL",
        "PACECHAT_TEMPERATURE",
        "PACECHAT_MAX_TOKENS",
        "PACECHAT_STORAGE_DIR",
        "PACECHAT_STORAGE_KEY",
    ):
        monkeypatch.delenv(name, raising=False)

    config = ChatConfig.from_env()

    assert config.model == "gpt-4o"
    assert config.storage_dir == ".pacechat"
    assert config.storage_key == "chats"
    assert config.system_prompt


def test_from_env_rejects_non_numeric(monkeypatch):
    monkeypatch.setenv("PACECHAT_TEMPERATURE", "warm")
    with pytest.raises(ConfigError):
        ChatConfig.from_env()


@pytest.mark.parametrize(
    "overrides",
    [
        {"model": " "},
        {"temperature": 3.0},
        {"max_tokens": 0},
        {"storage_dir": ""},
        {"storage_key": "../chats"},
    ],
)
def test_validate_rejects_bad_values(overrides):
    config = ChatConfig(**overrides)
    with pytest.raises(ConfigError):
        config.validate()

import logging
import os
from dataclasses import dataclass, field

from pacechat.prompts import Prompts
from pacechat.sessions.storage import check_key

logger = logging.getLogger(__name__)

MODEL_ALIASES = {
    "sonnet": "claude-sonnet-4-20250514",
    "opus": "claude-opus-4-20250514",
    "haiku": "claude-3-5-haiku-20241022",
    "4o": "gpt-4o",
    "mini": "gpt-4o-mini",
    "flash": "gemini/gemini-2.5-flash",
    "deepseek": "deepseek/deepseek-chat",
}


class ConfigError(Exception):
    pass


def resolve_model_alias(name: str) -> str:
    return MODEL_ALIASES.get(name.lower(), name)


def get_optional_env(name: str, default: str) -> str:
    return os.environ.get(name) or default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from e


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from e


@dataclass
class ChatConfig:
    model: str = "gpt-4o"
    temperature: float = 0.7
    max_tokens: int = 2048
    system_prompt: str | None = Prompts.main_system
    storage_dir: str = field(
        default_factory=lambda: get_optional_env("PACECHAT_STORAGE_DIR", ".pacechat")
    )
    storage_key: str = field(
        default_factory=lambda: get_optional_env("PACECHAT_STORAGE_KEY", "chats")
    )

    @classmethod
    def from_env(cls) -> "ChatConfig":
        return cls(
            model=resolve_model_alias(get_optional_env("PACECHAT_MODEL", "gpt-4o")),
            temperature=_env_float("PACECHAT_TEMPERATURE", 0.7),
            max_tokens=_env_int("PACECHAT_MAX_TOKENS", 2048),
        )

    def validate(self) -> None:
        if not self.model.strip():
            raise ConfigError("model must not be empty")
        if not 0.0 <= self.temperature <= 2.0:
            raise ConfigError("temperature must be between 0 and 2")
        if self.max_tokens < 1:
            raise ConfigError("max_tokens must be at least 1")
        if not self.storage_dir.strip():
            raise ConfigError("storage_dir must not be empty")
        try:
            check_key(self.storage_key)
        except ValueError as e:
            raise ConfigError(f"storage_key is not usable: {e}") from e
        logger.debug("Configuration validated successfully")

import os
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

DEFAULT_PLAYGROUND_URL = "https://www.typescriptlang.org/play/"

DEFAULT_COMPILER_OPTIONS: MappingProxyType[str, Any] = MappingProxyType(
    {
        "strict": True,
        "target": 99,  # esnext
        "allowJs": True,
    }
)


@dataclass(frozen=True)
class Settings:
    playground_url: str = DEFAULT_PLAYGROUND_URL
    log_level: str = "WARNING"


def get_settings() -> Settings:
    return Settings(
        playground_url=os.getenv("CODEX_TWOSLASH_PLAYGROUND_URL", DEFAULT_PLAYGROUND_URL),
        log_level=os.getenv("CODEX_TWOSLASH_LOG_LEVEL", "WARNING").upper(),
    )

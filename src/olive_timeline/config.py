import os
from dataclasses import dataclass
from functools import lru_cache

from olive_timeline.core.models import Interpolation

ENV_PREFIX = "OLIVE_TIMELINE_"


@dataclass(frozen=True)
class Settings:
    # 0 keeps the whole history.
    undo_limit: int = 0
    default_interpolation: Interpolation = Interpolation.LINEAR
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls) -> "Settings":
        raw_limit = os.getenv(f"{ENV_PREFIX}UNDO_LIMIT", "0")
        try:
            undo_limit = int(raw_limit)
        except ValueError:
            raise ValueError(f"{ENV_PREFIX}UNDO_LIMIT must be an integer, got {raw_limit!r}") from None
        if undo_limit < 0:
            raise ValueError(f"{ENV_PREFIX}UNDO_LIMIT must be >= 0, got {undo_limit}")

        raw_mode = os.getenv(f"{ENV_PREFIX}DEFAULT_INTERPOLATION", Interpolation.LINEAR.value)
        try:
            mode = Interpolation(raw_mode.strip().lower())
        except ValueError:
            choices = ", ".join(m.value for m in Interpolation)
            raise ValueError(
                f"{ENV_PREFIX}DEFAULT_INTERPOLATION must be one of {choices}, got {raw_mode!r}"
            ) from None

        return cls(
            undo_limit=undo_limit,
            default_interpolation=mode,
            log_level=os.getenv(f"{ENV_PREFIX}LOG_LEVEL", "WARNING").upper(),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()


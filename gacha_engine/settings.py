import logging
import os
from functools import lru_cache
from typing import Optional

from pydantic import BaseModel, Field


class EngineSettings(BaseModel):
    model_config = {"frozen": True}

    log_level: str = Field(default="WARNING", description="Level for gacha_engine loggers")
    seed: Optional[int] = Field(
        default=None,
        description="Seed for the shared process-wide generator. None = OS entropy",
    )


def load_settings() -> EngineSettings:
    level = os.getenv("GACHA_ENGINE_LOG_LEVEL", "WARNING").strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        raise RuntimeError(f"GACHA_ENGINE_LOG_LEVEL is not a logging level: {level}")

    seed_str = os.getenv("GACHA_ENGINE_SEED", "").strip()
    seed = None
    if seed_str:
        try:
            seed = int(seed_str)
        except ValueError as e:
            raise RuntimeError("GACHA_ENGINE_SEED must be an integer") from e

    return EngineSettings(log_level=level, seed=seed)


@lru_cache(maxsize=1)
def get_settings() -> EngineSettings:
    return load_settings()

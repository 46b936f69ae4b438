"""Process settings.

All settings load from environment variables (a ``.env`` file in the
working directory is honoured) with defaults suitable for a local checkout.
Scoring policy is NOT a setting: it lives in ``trust_policy.json`` under the
config directory and is read through PolicyResolver.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv


PROJECT_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_CONFIG_DIR = PROJECT_ROOT / "config"
DEFAULT_DATA_DIR = PROJECT_ROOT / "data"

_TRUTHY = {"1", "true", "yes", "on"}


class Settings:
    def __init__(self) -> None:
        self.config_dir = Path(os.getenv("PRAMAAN_CONFIG_DIR", str(DEFAULT_CONFIG_DIR)))
        self.data_dir = Path(os.getenv("PRAMAAN_DATA_DIR", str(DEFAULT_DATA_DIR)))
        self.log_level = os.getenv("PRAMAAN_LOG_LEVEL", "WARNING").upper()
        self.log_json = os.getenv("PRAMAAN_LOG_JSON", "false").strip().lower() in _TRUTHY


@lru_cache()
def get_settings() -> Settings:
    load_dotenv()
    return Settings()

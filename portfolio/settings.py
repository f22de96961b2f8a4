import json
import logging
import os
from dataclasses import asdict, dataclass, replace
from pathlib import Path
from typing import Mapping, Optional

from portfolio.windows import DEFAULT_FILTER_ID, find_filter

logger = logging.getLogger(__name__)

SETTINGS_PATH_ENV = "PORTFOLIO_SETTINGS_PATH"
SEED_PATH_ENV = "PORTFOLIO_SEED_PATH"
DEFAULT_SETTINGS_PATH = "data/settings.json"
DEFAULT_SEED_PATH = "data/seed.json"


@dataclass(frozen=True)
class AppSettings:
    dark_mode: bool = False
    default_time_filter: str = DEFAULT_FILTER_ID


def settings_path(env: Optional[Mapping[str, str]] = None) -> Path:
    env = os.environ if env is None else env
    return Path(env.get(SETTINGS_PATH_ENV, DEFAULT_SETTINGS_PATH))


def seed_path(env: Optional[Mapping[str, str]] = None) -> Path:
    env = os.environ if env is None else env
    return Path(env.get(SEED_PATH_ENV, DEFAULT_SEED_PATH))


def _normalize(settings: AppSettings) -> AppSettings:
    if find_filter(settings.default_time_filter) is None:
        logger.warning("Unknown default time filter %r, using %r",
                       settings.default_time_filter, DEFAULT_FILTER_ID)
        return replace(settings, default_time_filter=DEFAULT_FILTER_ID)
    return settings


def load_settings(path: Optional[Path] = None) -> AppSettings:
    path = Path(path) if path is not None else settings_path()
    if not path.exists():
        return AppSettings()
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError:
        logger.warning("Settings file %s is not valid JSON, using defaults", path)
        return AppSettings()
    if not isinstance(raw, dict):
        return AppSettings()
    return _normalize(AppSettings(
        dark_mode=bool(raw.get("dark_mode", False)),
        default_time_filter=str(raw.get("default_time_filter", DEFAULT_FILTER_ID)),
    ))


def save_settings(settings: AppSettings, path: Optional[Path] = None) -> Path:
    path = Path(path) if path is not None else settings_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(asdict(_normalize(settings)), indent=2), encoding="utf-8")
    logger.info("Saved settings to %s", path)
    return path

"""
Application settings for Shift Calendar

Settings live in a JSON file; keys missing from the file fall back to the
defaults below.
"""

import json
import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict

from .events import DEFAULT_UID_DOMAIN
from .ics import DEFAULT_LOCALE, DEFAULT_PRODUCT_ID, MONTH_NAMES

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_FILE = "settings.json"


class SettingsError(Exception):
    """Raised when the settings file cannot be read or holds invalid values"""
    pass


@dataclass
class Settings:
    data_dir: str = "data"
    output_dir: str = "exports"
    log_dir: str = "logs"
    log_level: str = "INFO"
    locale: str = DEFAULT_LOCALE
    product_id: str = DEFAULT_PRODUCT_ID
    uid_domain: str = DEFAULT_UID_DOMAIN

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Settings':
        known = {f.name for f in fields(cls)}
        for key in data:
            if key not in known:
                logger.warning(f"Ignoring unknown setting '{key}'")
        settings = cls(**{key: value for key, value in data.items() if key in known})
        settings.validate()
        return settings

    def validate(self):
        if self.locale not in MONTH_NAMES:
            raise SettingsError(f"Unsupported locale '{self.locale}', "
                                f"expected one of {', '.join(sorted(MONTH_NAMES))}")
        if not isinstance(logging.getLevelName(str(self.log_level).upper()), int):
            raise SettingsError(f"Unknown log level '{self.log_level}'")


def load_settings(path=DEFAULT_SETTINGS_FILE) -> Settings:
    """Load settings from a JSON file, using defaults when the file does not exist"""
    settings_file = Path(path)
    if not settings_file.exists():
        logger.info(f"No settings file at {settings_file}, using defaults")
        return Settings()

    try:
        with open(settings_file, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (json.JSONDecodeError, IOError) as e:
        raise SettingsError(f"Failed to read settings file {settings_file}: {e}")

    if not isinstance(data, dict):
        raise SettingsError(f"Settings file {settings_file} must contain a JSON object")

    return Settings.from_dict(data)


def save_settings(settings: Settings, path=DEFAULT_SETTINGS_FILE):
    settings_file = Path(path)
    settings_file.parent.mkdir(parents=True, exist_ok=True)
    with open(settings_file, 'w', encoding='utf-8') as f:
        json.dump(settings.to_dict(), f, indent=2, ensure_ascii=False)

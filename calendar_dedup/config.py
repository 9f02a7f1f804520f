"""Configuration persistence for Calendar Dedup."""

from __future__ import annotations

import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .cleanup.detector import SearchMode

logger = logging.getLogger(__name__)


def get_config_dir() -> Path:
    """Get platform-appropriate config directory."""
    if os.name == 'nt':
        base = Path(os.environ.get('APPDATA', Path.home() / 'AppData' / 'Roaming'))
    elif sys.platform == 'darwin':
        base = Path.home() / 'Library' / 'Application Support'
    else:
        base = Path(os.environ.get('XDG_CONFIG_HOME', Path.home() / '.config'))
    config_dir = base / 'CoreSystems' / 'CalendarDedup'
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


class Config:
    """Manages application configuration."""

    def __init__(self, config_dir: Optional[Path] = None):
        self.config_dir = Path(config_dir) if config_dir else get_config_dir()
        self.config_file = self.config_dir / 'config.json'
        self.data: dict[str, Any] = self._load()

    def _load(self) -> dict:
        data = self._defaults()
        if self.config_file.exists():
            try:
                data.update(json.loads(self.config_file.read_text(encoding='utf-8')))
            except (json.JSONDecodeError, OSError) as e:
                logger.warning("Ignoring unreadable config %s: %s", self.config_file, e)
                return self._defaults()
        return data

    def _defaults(self) -> dict:
        return {
            'sources': [],
            'active_source': '',
            'search_mode': SearchMode.EXACT.value,
            'include_birthday_events': False,
            'timezone': '',
            'delete_workers': 4,
            'log_level': 'INFO',
            'window_geometry': '1000x700',
        }

    def save(self):
        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
            self.config_file.write_text(
                json.dumps(self.data, indent=2, ensure_ascii=False),
                encoding='utf-8'
            )
        except OSError as e:
            logger.error("Failed to save config: %s", e)

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def set(self, key: str, value: Any):
        self.data[key] = value
        self.save()

    def add_source(self, source: dict):
        sources = self.data.setdefault('sources', [])
        sources.append(source)
        self.save()

    def remove_source(self, index: int):
        sources = self.data.get('sources', [])
        if 0 <= index < len(sources):
            removed = sources.pop(index)
            if removed.get('name') == self.data.get('active_source'):
                self.data['active_source'] = ''
            self.save()

    def get_source(self, name: str) -> Optional[dict]:
        for src in self.data.get('sources', []):
            if src.get('name') == name:
                return src
        return None

    def search_mode(self) -> SearchMode:
        try:
            return SearchMode(self.data.get('search_mode'))
        except ValueError:
            return SearchMode.EXACT

    def timezone(self) -> Optional[ZoneInfo]:
        """Configured zone for day boundaries, or None for local time."""
        name = self.data.get('timezone') or ''
        if not name:
            return None
        try:
            return ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning("Unknown timezone %r, using local time", name)
            return None

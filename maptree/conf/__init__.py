"""Lazy settings for the map tree.

Usage:
    # In your project's settings.py
    DEFAULT_MAP_WIDTH = 40

    # Anywhere else
    from maptree.conf import settings

    print(settings.DEFAULT_MAP_WIDTH)  # 40

The settings module is named by the MAPTREE_SETTINGS_MODULE environment
variable and defaults to "settings".
"""

import importlib
import os
from typing import Any, Optional

from maptree.conf import global_settings


class LazySettings:
    """Settings proxy that loads the user's overrides on first access."""

    def __init__(self) -> None:
        self._wrapped: Optional[Settings] = None

    def _setup(self) -> None:
        settings_module = os.environ.get("MAPTREE_SETTINGS_MODULE", "settings")

        self._wrapped = Settings()

        try:
            mod = importlib.import_module(settings_module)
        except ImportError:
            # No user settings, defaults only
            return

        for setting in dir(mod):
            if setting.isupper():
                setattr(self._wrapped, setting, getattr(mod, setting))

    def __getattr__(self, name: str) -> Any:
        if self._wrapped is None:
            self._setup()
        return getattr(self._wrapped, name)

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "_wrapped":
            self.__dict__["_wrapped"] = value
        else:
            if self._wrapped is None:
                self._setup()
            setattr(self._wrapped, name, value)

    def configure(self, **options: Any) -> None:
        """Set settings by hand, e.g. from tests.

        Example:
            settings.configure(DEFAULT_LAYER_ENCODING="csv")
        """
        if self._wrapped is None:
            self._wrapped = Settings()
        for name, value in options.items():
            setattr(self._wrapped, name, value)

    def reset(self) -> None:
        """Drop all loaded and configured values; the next access reloads."""
        self._wrapped = None

    def is_configured(self) -> bool:
        return self._wrapped is not None


class Settings:
    """Container for all settings with attribute access."""

    def __init__(self) -> None:
        for setting in dir(global_settings):
            if setting.isupper():
                setattr(self, setting, getattr(global_settings, setting))


settings = LazySettings()

__all__ = ["LazySettings", "Settings", "global_settings", "settings"]

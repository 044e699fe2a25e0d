"""
Configuration management for Rail Authz.

This module provides a settings proxy that resolves configuration from the
Django ``RAIL_AUTHZ`` setting first and the library defaults second.
"""

from typing import Any, Optional

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.core.signals import setting_changed
from django.dispatch import receiver

from .defaults import LIBRARY_DEFAULTS

SETTINGS_NAME = "RAIL_AUTHZ"


class SettingsProxy:
    """
    Proxy for accessing Rail Authz settings with hierarchical resolution.

    Settings are resolved in the following order:
    1. Global Django settings (RAIL_AUTHZ)
    2. Library defaults (LIBRARY_DEFAULTS)
    """

    def __init__(self):
        self._cache: dict[str, Any] = {}

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a setting value with hierarchical resolution and caching.

        Args:
            key: Setting key to retrieve, dot notation for nested sections
            default: Default value if setting is not found

        Returns:
            The setting value from the highest priority source
        """
        if key in self._cache:
            return self._cache[key]

        value = self._get_django_setting(key)
        if value is None:
            value = self._get_nested_value(LIBRARY_DEFAULTS, key)
        if value is None:
            return default

        self._cache[key] = value
        return value

    def _get_django_setting(self, key: str) -> Any:
        try:
            django_settings = getattr(settings, SETTINGS_NAME, {})
        except ImproperlyConfigured:
            # Used outside a Django project
            return None
        return self._get_nested_value(django_settings, key)

    def _get_nested_value(self, data: dict[str, Any], key: str) -> Any:
        """
        Get nested value from dictionary using dot notation.

        Args:
            data: Dictionary to search in
            key: Key to retrieve (supports dot notation for nested access)

        Returns:
            The value or None if not found
        """
        if not isinstance(data, dict):
            return None

        current = data
        for k in key.split("."):
            if not isinstance(current, dict) or k not in current:
                return None
            current = current[k]
        return current

    def clear_cache(self) -> None:
        """Clear the settings cache."""
        self._cache.clear()


# Global settings proxy instance
settings_proxy = SettingsProxy()


def get_setting(key: str, default: Any = None) -> Any:
    """
    Get a setting value using the hierarchical settings system.

    Args:
        key: Setting key to retrieve
        default: Default value if setting is not found

    Returns:
        The setting value from the highest priority source
    """
    return settings_proxy.get(key, default)


@receiver(setting_changed)
def _reset_settings_cache(sender, setting: Optional[str] = None, **kwargs) -> None:
    if setting == SETTINGS_NAME:
        settings_proxy.clear_cache()

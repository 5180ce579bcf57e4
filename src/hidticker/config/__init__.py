"""Configuration management for hidticker.

Loads and validates YAML-based configuration with Pydantic models.
Supports environment variable overrides with the HIDTICKER_ prefix.
"""

from hidticker.config.settings import Settings, load_settings

__all__ = ["Settings", "load_settings"]

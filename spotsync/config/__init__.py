"""
Configuration package
Settings loading and Spotify authentication (spotsync.config.auth)
"""

from .settings import Settings, get_settings, reload_settings

__all__ = [
    'Settings',
    'get_settings',
    'reload_settings',
]

"""
Configuration management for spotsync

This module handles loading, validation, and management of application settings
from YAML files and environment variables.

The configuration is organized into logical sections using dataclasses:
- Spotify API settings (credentials, scopes)
- Synchronization behavior (folder, concurrency, cache TTL, playlist files)
- Content provider search tuning (order, thresholds, tolerances)
- Download, lyrics and metadata preferences
- Logging, network and storage locations

A top-level ``aliases`` mapping lets users refer to albums and playlists by
short names on the command line ("chill: spotify:playlist:...").

Sensitive data (API keys, secrets) can be loaded from environment variables or
a ``.env`` file, while non-sensitive settings live in YAML.
"""

import os
import yaml
from pathlib import Path
from typing import Dict, Any, List, Optional
from dataclasses import dataclass, field
from dotenv import load_dotenv

# Load environment variables from .env file if present
load_dotenv()


@dataclass
class SpotifyConfig:
    """
    Spotify API configuration and authentication settings

    client_id and client_secret should come from the environment.
    """
    client_id: str = ""
    client_secret: str = ""
    redirect_url: str = "http://127.0.0.1:8080/callback"
    scope: str = "playlist-read-private playlist-read-collaborative user-library-read"
    open_browser: bool = True


@dataclass
class SyncConfig:
    """
    Synchronization behavior

    folder is the local music collection. concurrency bounds the number of
    tracks post-processed at once; searching always stays sequential.
    """
    folder: str = "~/Music"
    concurrency: int = 4
    cache_ttl: int = 1800  # seconds
    normalization: bool = True
    indexing: bool = True
    playlist_files: bool = True
    playlist_format: str = "m3u"  # m3u, pls


@dataclass
class ProvidersConfig:
    """
    Content provider search configuration

    order is the fixed priority in which providers are tried. The scoring
    parameters tune candidate acceptance for every provider.
    """
    order: List[str] = field(default_factory=lambda: ["ytmusic", "youtube"])
    max_results: int = 5
    score_threshold: int = 65
    duration_tolerance: int = 10
    prefer_official: bool = True
    exclude_live: bool = True
    exclude_covers: bool = True


@dataclass
class DownloadConfig:
    """yt-dlp download settings"""
    bitrate: int = 320
    retries: int = 3
    timeout: int = 300


@dataclass
class LyricsConfig:
    """
    Lyrics retrieval configuration

    sources are tried in order, first success wins.
    """
    enabled: bool = True
    sources: List[str] = field(default_factory=lambda: ["genius", "syncedlyrics"])
    genius_api_key: str = ""
    min_length: int = 50
    timeout: int = 15


@dataclass
class MetadataConfig:
    """ID3 tag configuration"""
    include_artwork: bool = True
    include_lyrics: bool = True
    id3_version: str = "2.4"
    artwork_max_size: int = 1000


@dataclass
class LoggingConfig:
    """
    Logging configuration and output settings

    file is relative to the config directory unless absolute.
    """
    level: str = "INFO"
    file: str = ""
    max_size: str = "10MB"
    backup_count: int = 3
    console_output: bool = True
    colored_output: bool = True


@dataclass
class NetworkConfig:
    """HTTP settings for artwork downloads and API pacing"""
    user_agent: str = "spotsync/1.0"
    request_timeout: int = 30
    rate_limit_delay: float = 0.5


@dataclass
class StorageConfig:
    """
    Where persistent state lives

    The cache directory holds metadata snapshots and the rename index.
    """
    config_directory: str = "~/.spotsync/"
    cache_directory: str = "~/.spotsync/cache/"
    token_cache: str = "~/.spotsync/token.json"


class Settings:
    """
    Main settings class that manages all configuration

    Loads settings from the first YAML file found, then overrides them with
    environment variables, and offers helpers for resolved paths and aliases.
    """

    SECTIONS = (
        'spotify', 'sync', 'providers', 'download', 'lyrics',
        'metadata', 'logging', 'network', 'storage'
    )

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize settings from config file or environment variables

        Args:
            config_path: Path to custom config file, if None uses default locations
        """
        self.config_path = config_path
        self.config_dir = Path.home() / ".spotsync"

        self.spotify = SpotifyConfig()
        self.sync = SyncConfig()
        self.providers = ProvidersConfig()
        self.download = DownloadConfig()
        self.lyrics = LyricsConfig()
        self.metadata = MetadataConfig()
        self.logging = LoggingConfig()
        self.network = NetworkConfig()
        self.storage = StorageConfig()
        self.aliases: Dict[str, str] = {}

        self._load_config()
        self._load_environment_variables()

    def _load_config(self) -> None:
        """
        Load configuration from YAML file

        Searches for configuration files in order of precedence; the first
        file found is used. A missing file is not an error.
        """
        config_paths = [
            self.config_path,
            self.config_dir / "config.yaml",
            Path("config/config.yaml"),
            Path("config.yaml")
        ]

        config_data = {}
        for path in config_paths:
            if path and Path(path).exists():
                try:
                    with open(path, 'r', encoding='utf-8') as f:
                        config_data = yaml.safe_load(f) or {}
                    break
                except (OSError, yaml.YAMLError) as e:
                    print(f"Warning: Failed to load config from {path}: {e}")

        self._apply_config(config_data)

    def _apply_config(self, config_data: Dict[str, Any]) -> None:
        """
        Apply configuration data to dataclass instances

        Only keys that exist on the matching dataclass are applied.

        Args:
            config_data: Dictionary containing configuration sections
        """
        for section_name, section_data in config_data.items():
            if section_name == 'aliases' and isinstance(section_data, dict):
                self.aliases = {str(k): str(v) for k, v in section_data.items()}
            elif section_name in self.SECTIONS and isinstance(section_data, dict):
                config_obj = getattr(self, section_name)
                for key, value in section_data.items():
                    if hasattr(config_obj, key):
                        setattr(config_obj, key, value)

    def _load_environment_variables(self) -> None:
        """Load sensitive configuration from environment variables"""
        env_mappings = {
            'SPOTIFY_CLIENT_ID': lambda v: setattr(self.spotify, 'client_id', v),
            'SPOTIFY_CLIENT_SECRET': lambda v: setattr(self.spotify, 'client_secret', v),
            'SPOTIFY_REDIRECT_URL': lambda v: setattr(self.spotify, 'redirect_url', v),
            'GENIUS_API_KEY': lambda v: setattr(self.lyrics, 'genius_api_key', v),
            'SPOTSYNC_FOLDER': lambda v: setattr(self.sync, 'folder', v),
        }

        for env_var, setter in env_mappings.items():
            value = os.getenv(env_var)
            if value:
                setter(value)

    def get_folder(self) -> Path:
        """Expanded local music folder"""
        return Path(self.sync.folder).expanduser()

    def get_config_directory(self) -> Path:
        """Expanded configuration directory"""
        return Path(self.storage.config_directory).expanduser()

    def get_cache_directory(self) -> Path:
        """Expanded metadata cache directory"""
        return Path(self.storage.cache_directory).expanduser()

    def get_index_path(self) -> Path:
        """Location of the persisted rename index"""
        return self.get_cache_directory() / "index.json"

    def get_token_cache_path(self) -> Path:
        """Location of the spotipy token cache"""
        return Path(self.storage.token_cache).expanduser()

    def resolve_alias(self, uri: str) -> str:
        """
        Resolve a user-defined alias to its Spotify URI

        Args:
            uri: Alias name or URI

        Returns:
            Aliased URI, or the input unchanged when it is not an alias
        """
        return self.aliases.get(uri, uri)

    def validate(self) -> List[str]:
        """
        Validate current configuration

        Returns:
            List of human-readable problems, empty when the configuration is valid
        """
        errors = []

        if not self.spotify.client_id or not self.spotify.client_secret:
            errors.append("Spotify client_id and client_secret are required")

        if self.sync.playlist_format not in ('m3u', 'pls'):
            errors.append(f"Invalid playlist format: {self.sync.playlist_format}")

        if int(self.sync.concurrency) < 1:
            errors.append(f"Concurrency must be at least 1: {self.sync.concurrency}")

        if int(self.sync.cache_ttl) < 0:
            errors.append(f"Cache TTL cannot be negative: {self.sync.cache_ttl}")

        known_providers = {'ytmusic', 'youtube'}
        unknown = [p for p in self.providers.order if p not in known_providers]
        if unknown or not self.providers.order:
            errors.append(f"Invalid provider order: {self.providers.order}")

        known_sources = {'genius', 'syncedlyrics'}
        unknown = [s for s in self.lyrics.sources if s not in known_sources]
        if unknown:
            errors.append(f"Invalid lyrics sources: {unknown}")

        return errors


# Global settings instance for singleton pattern
settings = Settings()


def get_settings() -> Settings:
    """
    Get the global settings instance

    Returns:
        The global Settings instance
    """
    return settings


def reload_settings(config_path: Optional[str] = None) -> Settings:
    """
    Reload settings from configuration files

    Args:
        config_path: Optional path to specific config file

    Returns:
        New Settings instance with reloaded configuration
    """
    global settings
    settings = Settings(config_path)
    return settings

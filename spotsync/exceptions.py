"""
Exception classes for spotsync.

Every error raised by the package derives from SpotSyncError so callers can
catch the whole family with a single except clause. The hierarchy mirrors how
the synchronizer treats failures:

    SpotSyncError (base)
        ConfigError - working folder, cache directory or settings problems (fatal)
        AuthenticationError - Spotify authentication failed (fatal)
        SourceFetchError - library/album/playlist fetch failed (fatal for the run)
        CacheError - metadata snapshot unusable (fall through to a live fetch)
            CacheMissError
            CacheExpiredError
        TrackNotIndexedError - rename index has nothing for a track
        ProviderError - content provider problems (per track)
            SearchError
            CandidateRejected
            UnsupportedURLError
            DownloadError
        LyricsNotFoundError - no lyrics source produced text (per track)
        ArtworkError - artwork download or decoding failed (per track)
        NormalizationError - loudness measurement/adjustment failed (per track)
        MetadataError - tag read/write failed (per track)
"""

from typing import Any, Dict, Optional


class SpotSyncError(Exception):
    """
    Base exception for all spotsync errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context (track id, url, path...).
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


class ConfigError(SpotSyncError):
    """
    Raised when the run cannot be set up.

    This is a CRITICAL error: missing working folder, uncreatable cache
    directory or invalid settings abort before the sync loop starts.
    """
    pass


class AuthenticationError(SpotSyncError):
    """Raised when Spotify authentication fails. CRITICAL."""
    pass


class SourceFetchError(SpotSyncError):
    """
    Raised when a remote source (library, album, playlist) cannot be fetched.

    Only raised once the cache fallback is exhausted. The run halts because an
    incomplete working set would mislead the user.
    """
    pass


class CacheError(SpotSyncError):
    """Base class for unusable metadata snapshots."""
    pass


class CacheMissError(CacheError):
    """No snapshot exists (or it cannot be read) for the requested key."""
    pass


class CacheExpiredError(CacheError):
    """A snapshot exists but is older than the cache TTL."""
    pass


class TrackNotIndexedError(SpotSyncError):
    """The rename index holds no usable entry for a remote track ID."""
    pass


class ProviderError(SpotSyncError):
    """Base class for content provider failures. NON-CRITICAL."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        provider: Optional[str] = None
    ) -> None:
        super().__init__(message, details)
        self.provider = provider


class SearchError(ProviderError):
    """A provider search call failed (network, API change, quota)."""
    pass


class CandidateRejected(ProviderError):
    """A candidate did not pass the provider's acceptance heuristics."""
    pass


class UnsupportedURLError(ProviderError):
    """No provider recognizes the domain of a URL."""
    pass


class DownloadError(ProviderError):
    """Audio download or conversion failed."""
    pass


class LyricsNotFoundError(SpotSyncError):
    """No lyrics source returned usable text."""
    pass


class ArtworkError(SpotSyncError):
    """Artwork could not be downloaded or decoded."""
    pass


class NormalizationError(SpotSyncError):
    """Loudness measurement or gain adjustment failed."""
    pass


class MetadataError(SpotSyncError):
    """Tags could not be read from or written to an audio file."""
    pass

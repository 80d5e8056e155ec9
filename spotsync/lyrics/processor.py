"""
Ordered lyrics lookup across sources

Sources are tried in configured order and the first one returning lyrics
wins. A failing source never prevents the next one from being asked.
"""

from typing import List, Optional

from ..config.settings import get_settings
from ..exceptions import LyricsNotFoundError
from ..spotify.models import Track
from ..utils.logger import get_logger
from .base import LyricsSource
from .genius import GeniusLyrics
from .syncedlyrics import SyncedLyricsSource


SOURCES = {
    'genius': GeniusLyrics,
    'syncedlyrics': SyncedLyricsSource,
}


class LyricsFetcher:
    """Queries lyrics sources in order until one answers"""

    def __init__(self, sources: List[LyricsSource]):
        self.sources = sources
        self.logger = get_logger(__name__)

    def fetch(self, track: Track) -> str:
        """
        Lyrics for a track from the first source that has them

        Args:
            track: Track to look up (title and primary artist are used)

        Returns:
            Lyrics text

        Raises:
            LyricsNotFoundError: If every source came back empty
        """
        for source in self.sources:
            if not source.available:
                continue
            try:
                lyrics = source.query(track.title, track.artist)
            except LyricsNotFoundError as e:
                self.logger.debug(f"{source.name}: {e}")
                continue
            self.logger.debug(f"Lyrics for {track} found on {source.name}")
            return lyrics

        raise LyricsNotFoundError(f"No lyrics found for {track}", {'track': track.id})


def build_lyrics_fetcher(names: Optional[List[str]] = None) -> LyricsFetcher:
    """
    LyricsFetcher over the configured sources

    Args:
        names: Source names in priority order, defaults to the configured ones

    Returns:
        LyricsFetcher instance
    """
    names = names if names is not None else get_settings().lyrics.sources
    return LyricsFetcher([SOURCES[name]() for name in names if name in SOURCES])

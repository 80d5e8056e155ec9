"""
syncedlyrics lyrics source

syncedlyrics aggregates several public providers (Musixmatch, Lrclib,
NetEase...) and needs no credentials. Only plain lyrics are requested since
they end up in an unsynchronized USLT frame. The library prints provider
noise to stderr, which is swallowed.
"""

import io
from contextlib import redirect_stderr

import syncedlyrics

from ..config.settings import get_settings
from ..exceptions import LyricsNotFoundError
from ..utils.helpers import clean_lyrics_text, validate_lyrics_content
from ..utils.logger import get_logger
from .base import LyricsSource


class SyncedLyricsSource(LyricsSource):
    """Lyrics from the providers aggregated by syncedlyrics"""

    name = "syncedlyrics"
    min_request_interval = 0.5

    def __init__(self):
        super().__init__()
        self.logger = get_logger(__name__)
        self.min_length = get_settings().lyrics.min_length

    def query(self, title: str, artist: str) -> str:
        query = f"{artist} {title}"
        self._rate_limit()

        with redirect_stderr(io.StringIO()):
            lyrics = syncedlyrics.search(query, plain_only=True)

        if not lyrics:
            raise LyricsNotFoundError(f"No syncedlyrics result for {query}")

        cleaned = clean_lyrics_text(lyrics)
        if not validate_lyrics_content(cleaned, self.min_length):
            raise LyricsNotFoundError(f"syncedlyrics result for {query} failed validation")

        return cleaned

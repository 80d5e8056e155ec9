"""
Genius lyrics source

Uses lyricsgenius to search Genius for the best hit and scrape its lyrics.
Genius requires an API key (GENIUS_API_KEY); without one the source reports
itself unavailable and is skipped.

The free tier tolerates roughly one request per second, so requests are
spaced accordingly.
"""

from typing import Optional

import lyricsgenius
import requests

from ..config.settings import get_settings
from ..exceptions import LyricsNotFoundError
from ..utils.helpers import clean_lyrics_text, validate_lyrics_content
from ..utils.logger import get_logger
from .base import LyricsSource


class GeniusLyrics(LyricsSource):
    """Lyrics from genius.com"""

    name = "genius"
    min_request_interval = 1.0

    def __init__(self, api_key: Optional[str] = None):
        super().__init__()
        self.settings = get_settings()
        self.logger = get_logger(__name__)
        self.api_key = api_key if api_key is not None else self.settings.lyrics.genius_api_key
        self.min_length = self.settings.lyrics.min_length
        self._genius_client: Optional[lyricsgenius.Genius] = None

    @property
    def available(self) -> bool:
        return bool(self.api_key)

    @property
    def genius_client(self) -> lyricsgenius.Genius:
        """Lazily initialized lyricsgenius client"""
        if not self._genius_client:
            self._genius_client = lyricsgenius.Genius(
                access_token=self.api_key,
                timeout=self.settings.lyrics.timeout,
                retries=1,
                remove_section_headers=False,  # cleaned by clean_lyrics_text
                skip_non_songs=True,
                excluded_terms=["(Remix)", "(Live)", "(Cover)", "(Karaoke)"],
                verbose=False
            )
        return self._genius_client

    def query(self, title: str, artist: str) -> str:
        if not self.available:
            raise LyricsNotFoundError("Genius API key not configured")

        self._rate_limit()
        try:
            song = self.genius_client.search_song(title, artist)
        except (requests.RequestException, ValueError, KeyError, TypeError) as e:
            self.logger.debug(f"Genius search failed for {artist} - {title}: {e}")
            raise LyricsNotFoundError(f"Genius search failed: {e}") from e

        if not song or not getattr(song, 'lyrics', None):
            raise LyricsNotFoundError(f"No Genius lyrics for {artist} - {title}")

        lyrics = clean_lyrics_text(song.lyrics)
        if not validate_lyrics_content(lyrics, self.min_length):
            raise LyricsNotFoundError(f"Genius lyrics for {artist} - {title} failed validation")

        return lyrics

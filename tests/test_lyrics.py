# tests/test_lyrics.py
"""Test lyrics sources and the ordered fetcher"""

import pytest
import requests
from unittest.mock import Mock, patch
from spotsync.exceptions import LyricsNotFoundError
from spotsync.lyrics.base import LyricsSource
from spotsync.lyrics.genius import GeniusLyrics
from spotsync.lyrics.processor import LyricsFetcher, build_lyrics_fetcher
from spotsync.lyrics.syncedlyrics import SyncedLyricsSource


LYRICS = "First line of the song goes here\nSecond line of the song follows\nAnd a third one"


class StaticSource(LyricsSource):
    """Source answering with a fixed text, or nothing"""

    def __init__(self, name, lyrics=None, available=True):
        super().__init__()
        self.name = name
        self.lyrics = lyrics
        self._available = available
        self.queries = []

    @property
    def available(self):
        return self._available

    def query(self, title, artist):
        self.queries.append((title, artist))
        if self.lyrics is None:
            raise LyricsNotFoundError(f"{self.name} has nothing")
        return self.lyrics


class TestLyricsFetcher:
    """Test source ordering"""

    def test_first_success_wins(self, make_track):
        first = StaticSource("first")
        second = StaticSource("second", LYRICS)
        third = StaticSource("third", "other")

        assert LyricsFetcher([first, second, third]).fetch(make_track()) == LYRICS
        assert first.queries == [("Song", "Artist")]
        assert third.queries == []

    def test_unavailable_sources_are_skipped(self, make_track):
        offline = StaticSource("offline", LYRICS, available=False)
        online = StaticSource("online", "found")

        assert LyricsFetcher([offline, online]).fetch(make_track()) == "found"
        assert offline.queries == []

    def test_nothing_found(self, make_track):
        with pytest.raises(LyricsNotFoundError):
            LyricsFetcher([StaticSource("a"), StaticSource("b")]).fetch(make_track())

    def test_build_from_names(self):
        fetcher = build_lyrics_fetcher(["syncedlyrics", "unknown"])
        assert [s.name for s in fetcher.sources] == ["syncedlyrics"]


class TestGeniusLyrics:
    """Test Genius source with a mocked client"""

    def test_unavailable_without_key(self):
        source = GeniusLyrics(api_key="")
        assert not source.available
        with pytest.raises(LyricsNotFoundError):
            source.query("Song", "Artist")

    def test_lyrics_are_cleaned(self):
        source = GeniusLyrics(api_key="token")
        source.min_request_interval = 0
        source._genius_client = Mock()
        source._genius_client.search_song.return_value = Mock(lyrics=f"[Verse 1]\n{LYRICS}\n7Embed")

        assert source.query("Song", "Artist") == LYRICS
        source._genius_client.search_song.assert_called_once_with("Song", "Artist")

    def test_no_song(self):
        source = GeniusLyrics(api_key="token")
        source.min_request_interval = 0
        source._genius_client = Mock()
        source._genius_client.search_song.return_value = None

        with pytest.raises(LyricsNotFoundError):
            source.query("Song", "Artist")

    def test_network_error(self):
        source = GeniusLyrics(api_key="token")
        source.min_request_interval = 0
        source._genius_client = Mock()
        source._genius_client.search_song.side_effect = requests.Timeout("slow")

        with pytest.raises(LyricsNotFoundError):
            source.query("Song", "Artist")


class TestSyncedLyricsSource:
    """Test syncedlyrics source with a patched search"""

    def test_query(self):
        source = SyncedLyricsSource()
        source.min_request_interval = 0
        with patch('spotsync.lyrics.syncedlyrics.syncedlyrics.search', return_value=LYRICS) as search:
            assert source.query("Song", "Artist") == LYRICS
        search.assert_called_once_with("Artist Song", plain_only=True)

    def test_too_short(self):
        source = SyncedLyricsSource()
        source.min_request_interval = 0
        with patch('spotsync.lyrics.syncedlyrics.syncedlyrics.search', return_value="la"):
            with pytest.raises(LyricsNotFoundError):
                source.query("Song", "Artist")

    def test_no_result(self):
        source = SyncedLyricsSource()
        source.min_request_interval = 0
        with patch('spotsync.lyrics.syncedlyrics.syncedlyrics.search', return_value=None):
            with pytest.raises(LyricsNotFoundError):
                source.query("Song", "Artist")

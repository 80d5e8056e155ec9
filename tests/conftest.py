"""Test configuration and fixtures"""

import pytest
import tempfile
from pathlib import Path
from typing import List, Optional, Set
from unittest.mock import Mock

from spotsync.exceptions import CandidateRejected, DownloadError, SearchError
from spotsync.providers.base import Candidate, Provider
from spotsync.spotify.models import Track


@pytest.fixture
def temp_dir():
    """Create temporary directory for tests"""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def music_dir(temp_dir):
    """Music folder inside the temporary directory"""
    folder = temp_dir / "music"
    folder.mkdir()
    return folder


@pytest.fixture
def mock_settings(temp_dir):
    """Mock settings for synchronizer tests"""
    settings = Mock()
    settings.sync.normalization = True
    settings.sync.concurrency = 2
    settings.sync.cache_ttl = 1800
    settings.sync.playlist_files = True
    settings.sync.playlist_format = "m3u"
    settings.lyrics.enabled = False
    settings.metadata.include_artwork = False
    settings.get_cache_directory.return_value = temp_dir / "cache"
    settings.get_index_path.return_value = temp_dir / "cache" / "index.json"
    settings.resolve_alias.side_effect = lambda uri: uri
    return settings


@pytest.fixture
def make_track():
    """Factory for Track instances"""
    def factory(track_id="track_1", title="Song", artists=None, duration_ms=210000, **kwargs):
        return Track(
            id=track_id,
            title=title,
            artists=list(artists) if artists is not None else ["Artist"],
            album=kwargs.pop('album', "Album"),
            duration_ms=duration_ms,
            **kwargs
        )
    return factory


@pytest.fixture
def sample_track_data():
    """Sample track data for testing"""
    return {
        'track': {
            'id': 'test_track_123',
            'name': 'Test Song',
            'artists': [{'id': 'artist_123', 'name': 'Test Artist'}],
            'album': {
                'id': 'album_123',
                'name': 'Test Album',
                'album_type': 'album',
                'total_tracks': 12,
                'release_date': '2023-01-01',
                'release_date_precision': 'day',
                'images': [
                    {'url': 'https://i.scdn.co/image/large', 'width': 640, 'height': 640},
                    {'url': 'https://i.scdn.co/image/small', 'width': 64, 'height': 64},
                ],
                'artists': [{'id': 'artist_123', 'name': 'Test Artist'}]
            },
            'duration_ms': 210000,  # 3:30
            'explicit': False,
            'popularity': 75,
            'track_number': 3,
            'disc_number': 1,
            'external_urls': {'spotify': 'https://open.spotify.com/track/test_track_123'}
        }
    }


class FakeProvider(Provider):
    """In-memory provider: fixed results, optional rejections and failures"""

    def __init__(
        self,
        name: str = "fake",
        domains=("fake.example",),
        results: Optional[List[Candidate]] = None,
        rejected: Optional[Set[str]] = None,
        search_error: bool = False,
        download_error: bool = False
    ):
        self.name = name
        self.domains = tuple(domains)
        self.results = results or []
        self.rejected = rejected or set()
        self.search_error = search_error
        self.download_error = download_error
        self.searches: List[str] = []
        self.downloads: List[str] = []

    def search(self, track):
        self.searches.append(track.id)
        if self.search_error:
            raise SearchError(f"{self.name} unavailable", provider=self.name)
        return list(self.results)

    def validate(self, candidate, track):
        if candidate.url in self.rejected:
            raise CandidateRejected("not the right song", provider=self.name)

    def download(self, candidate, destination):
        self.downloads.append(candidate.url)
        if self.download_error:
            raise DownloadError("connection reset", provider=self.name)
        Path(destination).write_bytes(b"ID3fake-audio")


def make_candidate(provider="fake", video_id="abc", title="Song", uploader="Artist", duration=210):
    return Candidate(
        provider=provider,
        id=video_id,
        url=f"https://fake.example/watch?v={video_id}",
        title=title,
        uploader=uploader,
        duration=duration,
    )


class FakeNormalizer:
    """Records gain adjustments instead of touching audio"""

    def __init__(self, level: float = -2.5, error=None):
        self.level = level
        self.error = error
        self.gains = []

    def measure(self, path):
        if self.error is not None:
            raise self.error
        return self.level

    def apply_gain(self, delta, path):
        self.gains.append((delta, Path(path).name))


class FakeTagger:
    """Records tag flushes"""

    def __init__(self, error=None):
        self.error = error
        self.flushed = []

    def flush(self, track, path):
        if self.error is not None:
            raise self.error
        self.flushed.append((track.id, Path(path).name))

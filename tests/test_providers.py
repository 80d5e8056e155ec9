# tests/test_providers.py
"""Test candidate scoring and the YouTube providers"""

import pytest
from unittest.mock import Mock, patch
from spotsync.exceptions import CandidateRejected, SearchError, UnsupportedURLError
from spotsync.providers.base import Candidate
from spotsync.providers.scoring import MatchScorer, analyze_flags
from spotsync.providers.youtube import YouTubeProvider
from spotsync.providers.ytmusic import YouTubeMusicProvider


@pytest.fixture
def scorer():
    return MatchScorer(
        threshold=65,
        duration_tolerance=10,
        prefer_official=True,
        exclude_live=True,
        exclude_covers=True
    )


def candidate(title="Song", uploader="Artist", duration=210, flags=None):
    return Candidate(
        provider="ytmusic",
        id="vid",
        url="https://music.youtube.com/watch?v=vid",
        title=title,
        uploader=uploader,
        duration=duration,
        flags=flags or set(),
    )


class TestAnalyzeFlags:
    """Test quality flag detection"""

    def test_official_sources(self):
        assert 'official' in analyze_flags("Song (Official Audio)")
        assert 'official' in analyze_flags("Song", uploader="Artist - Topic")
        assert 'official' in analyze_flags("Song", uploader="ArtistVEVO")

    def test_negative_indicators(self):
        assert 'live' in analyze_flags("Song (Live at Wembley)")
        assert 'cover' in analyze_flags("Song - acoustic cover")
        assert 'karaoke' in analyze_flags("Song (Karaoke Version)")
        assert 'remix' in analyze_flags("Song (Club Remix)")

    def test_verified(self):
        assert 'verified' in analyze_flags("Song", verified=True)
        assert analyze_flags("Song") == set()


class TestMatchScorer:
    """Test scoring and acceptance"""

    def test_duration_score(self, scorer):
        assert scorer.duration_score(200, 205) == 20.0
        assert scorer.duration_score(200, 220) == 10.0
        assert scorer.duration_score(200, 260) == 0.0
        assert scorer.duration_score(200, None) == 10.0

    def test_exact_match_is_accepted(self, scorer, make_track):
        track = make_track(title="Song", artists=["Artist"], duration_ms=210000)
        result = candidate(flags={'official'})

        assert scorer.score(result, track) == pytest.approx(95.0)
        scorer.check(result, track)

    def test_featured_artist_matches(self, scorer, make_track):
        track = make_track(title="Song", artists=["Main", "Guest"])
        assert scorer.score(candidate(uploader="Guest"), track) >= 85

    def test_wrong_song_is_rejected(self, scorer, make_track):
        track = make_track(title="Song", artists=["Artist"])
        result = candidate(title="Completely Different", uploader="Somebody Else")
        scorer.score(result, track)

        with pytest.raises(CandidateRejected):
            scorer.check(result, track)

    def test_duration_mismatch_is_rejected(self, scorer, make_track):
        track = make_track(duration_ms=210000)
        result = candidate(duration=300)
        scorer.score(result, track)

        with pytest.raises(CandidateRejected, match="duration"):
            scorer.check(result, track)

    def test_live_penalty_only_when_not_requested(self, scorer, make_track):
        flags = analyze_flags("Song (Live)")
        assert scorer.quality_bonus(flags, make_track(title="Song")) == -8.0
        assert scorer.quality_bonus(flags, make_track(title="Song (Live)")) == 0.0

    def test_bonus_is_clamped(self, scorer, make_track):
        flags = {'karaoke', 'live', 'cover', 'remix'}
        assert scorer.quality_bonus(flags, make_track()) == -10.0


class TestYouTubeMusicProvider:
    """Test YouTube Music search with a mocked API"""

    @pytest.fixture
    def provider(self, scorer):
        provider = YouTubeMusicProvider(scorer=scorer, downloader=Mock())
        provider._ytmusic = Mock()
        provider.min_request_interval = 0
        return provider

    def test_search_scores_and_sorts(self, provider, make_track):
        provider.ytmusic.search.return_value = [
            {
                'videoId': 'cover1',
                'title': 'Song (Piano Cover)',
                'artists': [{'name': 'Someone', 'id': None}],
                'duration': '3:30',
            },
            {
                'videoId': 'real1',
                'title': 'Song',
                'artists': [{'name': 'Artist', 'id': 'UC123'}],
                'album': {'name': 'Album'},
                'duration_seconds': 210,
            },
            {'title': 'No video id'},
        ]

        results = provider.search(make_track())

        assert [c.id for c in results] == ['real1', 'cover1']
        best = results[0]
        assert best.url == "https://music.youtube.com/watch?v=real1"
        assert best.album == 'Album'
        assert 'verified' in best.flags
        assert results[1].duration == 210

    def test_search_failure(self, provider, make_track):
        provider.ytmusic.search.side_effect = RuntimeError("HTTP 500")

        with pytest.raises(SearchError):
            provider.search(make_track())

    def test_empty_results(self, provider, make_track):
        provider.ytmusic.search.return_value = []
        assert provider.search(make_track()) == []

    def test_download_delegates(self, provider, temp_dir):
        destination = temp_dir / "x.mp3"
        provider.download(candidate(), destination)
        provider.downloader.download.assert_called_once_with(
            "https://music.youtube.com/watch?v=vid", destination, provider="ytmusic"
        )

    def test_candidate_for_url(self, provider):
        assert provider.candidate_for_url("https://music.youtube.com/watch?v=a").provider == "ytmusic"
        with pytest.raises(UnsupportedURLError):
            provider.candidate_for_url("https://www.youtube.com/watch?v=a")


class TestYouTubeProvider:
    """Test YouTube search through a mocked yt-dlp"""

    def test_search(self, scorer, make_track):
        provider = YouTubeProvider(scorer=scorer, downloader=Mock())
        info = {'entries': [
            {'id': 'abc', 'title': 'Artist - Song (Official Video)', 'channel': 'ArtistVEVO', 'duration': 212.0},
            None,
        ]}

        with patch('spotsync.providers.youtube.yt_dlp.YoutubeDL') as ydl_class:
            ydl_class.return_value.__enter__.return_value.extract_info.return_value = info
            results = provider.search(make_track())

        assert len(results) == 1
        assert results[0].url == "https://www.youtube.com/watch?v=abc"
        assert results[0].duration == 212
        assert 'official' in results[0].flags

    def test_supports_short_links(self, scorer):
        provider = YouTubeProvider(scorer=scorer, downloader=Mock())
        assert provider.supports("https://youtu.be/abc")
        assert provider.supports("https://www.youtube.com/watch?v=abc")
        assert not provider.supports("https://music.youtube.com/watch?v=abc")

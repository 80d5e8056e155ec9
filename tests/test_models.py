# tests/test_models.py
"""Test track and playlist models"""

import pytest
from spotsync.spotify.models import Playlist, Track, best_image_url


class TestTrack:
    """Test Track model"""

    def test_track_from_spotify_data(self, sample_track_data):
        """Test track creation from Spotify API data"""
        track = Track.from_spotify_data(sample_track_data)

        assert track.id == 'test_track_123'
        assert track.title == 'Test Song'
        assert track.artists == ['Test Artist']
        assert track.album == 'Test Album'
        assert track.duration_ms == 210000
        assert track.track_number == 3
        assert track.artwork_url == 'https://i.scdn.co/image/large'
        assert track.spotify_url == 'https://open.spotify.com/track/test_track_123'

    def test_track_from_album_listing(self):
        """Test simplified album tracks take the album passed alongside"""
        album = {'name': 'Album', 'release_date': '1999', 'images': []}
        track = Track.from_spotify_data(
            {'id': 'x', 'name': 'Song', 'artists': [{'name': 'A'}], 'duration_ms': 1000},
            album=album
        )

        assert track.album == 'Album'
        assert track.year == '1999'
        assert track.artwork_url is None

    def test_track_properties(self, sample_track_data):
        """Test derived properties"""
        track = Track.from_spotify_data(sample_track_data)

        assert track.duration == 210
        assert track.duration_str == "3:30"
        assert track.year == "2023"
        assert track.basename == "Test Artist - Test Song"
        assert track.filename == "Test Artist - Test Song.mp3"
        assert track.temporary_filename == ".Test Artist - Test Song.part.mp3"
        assert str(track) == "Test Artist - Test Song"

    def test_track_without_artists(self, make_track):
        """Test fallback artist name"""
        track = make_track(artists=[])
        assert track.artist == "Unknown Artist"
        assert track.all_artists == "Unknown Artist"

    def test_track_filename_is_sanitized(self, make_track):
        """Test unsafe characters never reach the filename"""
        track = make_track(title="What? / Why:", artists=["AC/DC"])
        assert "/" not in track.filename
        assert "?" not in track.filename
        assert ":" not in track.filename

    def test_track_dict_round_trip_drops_run_state(self, make_track):
        """Test cached form keeps metadata but not lyrics or artwork"""
        track = make_track(release_date="2020-05-01", url="https://music.youtube.com/watch?v=abc")
        track.lyrics = "la la la"
        track.artwork = b"jpeg"

        restored = Track.from_dict(track.to_dict())

        assert restored.id == track.id
        assert restored.artists == track.artists
        assert restored.release_date == "2020-05-01"
        assert restored.url == "https://music.youtube.com/watch?v=abc"
        assert restored.lyrics is None
        assert restored.artwork is None

    def test_track_is_local(self, make_track, temp_dir):
        """Test local presence check uses the canonical filename"""
        track = make_track()
        assert not track.is_local(temp_dir)

        track.path(temp_dir).write_bytes(b"audio")
        assert track.is_local(temp_dir)
        assert track.temporary_path(temp_dir).parent == temp_dir


class TestArtwork:
    """Test artwork selection"""

    def test_prefers_largest_suitable_image(self):
        images = [
            {'url': 'small', 'width': 64, 'height': 64},
            {'url': 'large', 'width': 640, 'height': 640},
            {'url': 'medium', 'width': 300, 'height': 300},
        ]
        assert best_image_url(images) == 'large'

    def test_falls_back_to_largest_available(self):
        images = [
            {'url': 'tiny', 'width': 32, 'height': 32},
            {'url': 'small', 'width': 64, 'height': 64},
        ]
        assert best_image_url(images) == 'small'

    def test_no_images(self):
        assert best_image_url([]) is None


class TestPlaylist:
    """Test Playlist model"""

    def test_display_name_falls_back_to_id(self):
        assert Playlist(id="abc").display_name == "abc"
        assert Playlist(id="abc", name="Road Trip").display_name == "Road Trip"

    def test_to_m3u_lists_local_tracks_in_order(self, make_track, temp_dir):
        """Test extended M3U output skips missing files"""
        first = make_track("1", "First")
        missing = make_track("2", "Missing")
        last = make_track("3", "Last", duration_ms=61000)
        first.path(temp_dir).write_bytes(b"a")
        last.path(temp_dir).write_bytes(b"a")

        content = Playlist(id="p", name="Mix", tracks=[first, missing, last]).to_m3u(temp_dir)

        assert content.splitlines() == [
            "#EXTM3U",
            "#EXTINF:210,Artist - First",
            "Artist - First.mp3",
            "#EXTINF:61,Artist - Last",
            "Artist - Last.mp3",
        ]

    def test_to_pls(self, make_track, temp_dir):
        """Test PLS output"""
        track = make_track("1", "First")
        track.path(temp_dir).write_bytes(b"a")

        content = Playlist(id="p", tracks=[track]).to_pls(temp_dir)

        assert content.startswith("[playlist]\n")
        assert "File1=Artist - First.mp3" in content
        assert "Title1=Artist - First" in content
        assert "Length1=210" in content
        assert "NumberOfEntries=1" in content
        assert "Version=2" in content

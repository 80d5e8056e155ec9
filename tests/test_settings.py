# tests/test_settings.py
"""Test configuration loading"""

import os
import pytest
from unittest.mock import patch
from spotsync.config.settings import Settings


@pytest.fixture
def config_file(temp_dir, monkeypatch):
    for name in ('SPOTSYNC_FOLDER', 'GENIUS_API_KEY'):
        monkeypatch.delenv(name, raising=False)
    path = temp_dir / "config.yaml"
    path.write_text(
        "sync:\n"
        "  folder: ~/Tunes\n"
        "  concurrency: 2\n"
        "  unknown_key: ignored\n"
        "providers:\n"
        "  order: [youtube]\n"
        "aliases:\n"
        "  gym: spotify:playlist:37i9dQZF1DX76Wlfdnj7AP\n",
        encoding='utf-8'
    )
    return path


class TestSettings:
    """Test the settings sections"""

    def test_file_values_applied(self, config_file):
        settings = Settings(str(config_file))

        assert settings.sync.concurrency == 2
        assert settings.providers.order == ["youtube"]
        assert not hasattr(settings.sync, 'unknown_key')
        assert settings.get_folder().name == "Tunes"
        assert settings.sync.cache_ttl == 1800

    def test_aliases(self, config_file):
        settings = Settings(str(config_file))

        assert settings.resolve_alias("gym") == "spotify:playlist:37i9dQZF1DX76Wlfdnj7AP"
        assert settings.resolve_alias("spotify:album:xyz") == "spotify:album:xyz"

    def test_environment_overrides(self, config_file):
        with patch.dict(os.environ, {'SPOTSYNC_FOLDER': '/srv/music', 'GENIUS_API_KEY': 'key'}):
            settings = Settings(str(config_file))

        assert settings.sync.folder == '/srv/music'
        assert settings.lyrics.genius_api_key == 'key'

    def test_index_lives_in_cache_directory(self, config_file):
        settings = Settings(str(config_file))
        assert settings.get_index_path() == settings.get_cache_directory() / "index.json"

    def test_validate(self, config_file):
        settings = Settings(str(config_file))
        settings.spotify.client_id = "id"
        settings.spotify.client_secret = "secret"
        assert settings.validate() == []

        settings.sync.playlist_format = "xspf"
        settings.providers.order = []
        problems = settings.validate()
        assert any("playlist format" in p for p in problems)
        assert any("provider order" in p for p in problems)

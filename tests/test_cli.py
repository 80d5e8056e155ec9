# tests/test_cli.py
"""Test the command-line interface"""

import pytest
from click.testing import CliRunner
from unittest.mock import Mock, patch
from spotsync import __version__
from spotsync.main import cli
from spotsync.sync.report import SyncReport


@pytest.fixture
def runner():
    return CliRunner()


class TestCli:
    """Test commands that do not reach Spotify"""

    def test_version(self, runner):
        result = runner.invoke(cli, ['--version'])
        assert result.exit_code == 0
        assert f"spotsync v{__version__}" in result.output

    def test_help_without_command(self, runner):
        result = runner.invoke(cli, [])
        assert result.exit_code == 0
        assert "clean-junks" in result.output
        assert "sync" in result.output

    def test_clean_junks(self, runner, temp_dir):
        (temp_dir / ".Artist - Song.part.mp3").write_bytes(b"x")
        (temp_dir / "video.webm.part").write_bytes(b"x")
        (temp_dir / "Artist - Song.mp3").write_bytes(b"x")

        result = runner.invoke(cli, ['clean-junks', '--folder', str(temp_dir)])

        assert result.exit_code == 0
        assert "Removed 2 junk file(s)" in result.output
        assert [p.name for p in temp_dir.iterdir()] == ["Artist - Song.mp3"]

    def test_clean_junks_missing_folder(self, runner, temp_dir):
        result = runner.invoke(cli, ['clean-junks', '--folder', str(temp_dir / "nope")])

        assert result.exit_code == 1
        assert "does not exist" in result.output

    def test_sync_missing_folder(self, runner, temp_dir):
        result = runner.invoke(cli, ['sync', '--folder', str(temp_dir / "nope")])

        assert result.exit_code == 1
        assert "Music folder does not exist" in result.output

    def test_sync_builds_request_and_prints_report(self, runner, temp_dir):
        report = SyncReport(total=3, fetched=1, flushed=1, skipped=2)

        with patch('spotsync.main.Synchronizer') as synchronizer_class:
            synchronizer_class.return_value.run.return_value = report
            result = runner.invoke(cli, [
                'sync', '--folder', str(temp_dir), '-p', 'gym', '-p', 'spotify:playlist:abc',
                '--flush-metadata', '--pls-file', '--disable-lyrics'
            ])

        assert result.exit_code == 0, result.output
        request = synchronizer_class.call_args[0][0]
        assert request.folder == temp_dir
        assert request.playlists == ['gym', 'spotify:playlist:abc']
        assert request.library is False
        assert request.flush_metadata and request.pls_file and request.disable_lyrics
        assert "Tracks: 3" in result.output
        assert "Synchronization completed." in result.output

    def test_sync_defaults_to_library(self, runner, temp_dir):
        with patch('spotsync.main.Synchronizer') as synchronizer_class:
            synchronizer_class.return_value.run.return_value = SyncReport()
            runner.invoke(cli, ['sync', '--folder', str(temp_dir)])

        assert synchronizer_class.call_args[0][0].library is True

    def test_auth_status(self, runner):
        auth = Mock()
        auth.is_authenticated.return_value = False

        with patch('spotsync.config.auth.get_auth', return_value=auth):
            result = runner.invoke(cli, ['auth', 'status'])

        assert result.exit_code == 0
        assert "Not authenticated" in result.output

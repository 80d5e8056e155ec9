# tests/test_provider_chain.py
"""Test provider fallback, interactive decisions and acquisition"""

import pytest
from unittest.mock import Mock
from conftest import FakeProvider, make_candidate
from spotsync.exceptions import UnsupportedURLError
from spotsync.providers.chain import AcquireStatus, ProviderChain
from spotsync.sync.planner import SyncOptions


def never_prompt(track):
    raise AssertionError("URL prompt should not be shown")


class TestResolve:
    """Test candidate resolution"""

    def test_first_accepted_candidate_wins(self, make_track):
        first = FakeProvider("first", results=[make_candidate("first", "a"), make_candidate("first", "b")])
        second = FakeProvider("second", results=[make_candidate("second", "c")])
        chain = ProviderChain([first, second], prompt_url=never_prompt)

        provider, candidate = chain.resolve(make_track())

        assert provider is first
        assert candidate.id == "a"
        assert second.searches == []

    def test_rejected_candidates_are_skipped(self, make_track):
        a, b = make_candidate(video_id="a"), make_candidate(video_id="b")
        provider = FakeProvider(results=[a, b], rejected={a.url})

        _, candidate = ProviderChain([provider]).resolve(make_track())

        assert candidate is b

    def test_failing_provider_falls_back(self, make_track):
        broken = FakeProvider("broken", search_error=True)
        backup = FakeProvider("backup", results=[make_candidate("backup", "z")])

        provider, candidate = ProviderChain([broken, backup]).resolve(make_track())

        assert provider is backup
        assert broken.searches == ["track_1"]

    def test_all_rejected_falls_through_to_next_provider(self, make_track):
        bad = make_candidate("first", "a")
        first = FakeProvider("first", results=[bad], rejected={bad.url})
        second = FakeProvider("second", results=[make_candidate("second", "b")])

        provider, _ = ProviderChain([first, second]).resolve(make_track())

        assert provider is second

    def test_nothing_found(self, make_track):
        chain = ProviderChain([FakeProvider(), FakeProvider("other")], prompt_url=never_prompt)
        assert chain.resolve(make_track()) is None

    def test_provider_for(self):
        ytm = FakeProvider("ytmusic", domains=("music.youtube.com",))
        yt = FakeProvider("youtube", domains=("youtube.com", "youtu.be"))
        chain = ProviderChain([ytm, yt])

        assert chain.provider_for("https://music.youtube.com/watch?v=x") is ytm
        assert chain.provider_for("https://www.youtube.com/watch?v=x") is yt
        with pytest.raises(UnsupportedURLError):
            chain.provider_for("https://example.org/song.mp3")


class TestInteractive:
    """Test interactive and manual input modes"""

    def test_confirmation_can_override_rejection(self, make_track):
        bad = make_candidate(video_id="a")
        provider = FakeProvider(results=[bad], rejected={bad.url})
        confirm = Mock(return_value=True)
        chain = ProviderChain([provider], interactive=True, confirm=confirm)

        _, candidate = chain.resolve(make_track())

        assert candidate is bad
        confirm.assert_called_once()
        assert confirm.call_args[0][2] is False

    def test_declining_everything_asks_for_url(self, make_track):
        provider = FakeProvider(results=[make_candidate(video_id="a")])
        prompt = Mock(return_value="https://fake.example/watch?v=manual")
        chain = ProviderChain([provider], interactive=True, confirm=Mock(return_value=False), prompt_url=prompt)

        _, candidate = chain.resolve(make_track())

        assert candidate.url == "https://fake.example/watch?v=manual"
        prompt.assert_called_once()

    def test_manual_input_skips_search(self, make_track):
        provider = FakeProvider(results=[make_candidate()])
        chain = ProviderChain([provider], manual_input=True, prompt_url=lambda t: " https://fake.example/v ")

        _, candidate = chain.resolve(make_track())

        assert provider.searches == []
        assert candidate.url == "https://fake.example/v"

    def test_empty_or_unsupported_url_means_not_found(self, make_track):
        provider = FakeProvider()
        assert ProviderChain([provider], manual_input=True, prompt_url=lambda t: "").resolve(make_track()) is None
        assert ProviderChain(
            [provider], manual_input=True, prompt_url=lambda t: "https://elsewhere.org/x"
        ).resolve(make_track()) is None
        assert ProviderChain(
            [provider], manual_input=True, prompt_url=lambda t: "not a url"
        ).resolve(make_track()) is None


class TestAcquire:
    """Test downloads"""

    def test_download(self, make_track, temp_dir):
        provider = FakeProvider(results=[make_candidate(video_id="a")])
        track = make_track()
        destination = track.temporary_path(temp_dir)

        acquisition = ProviderChain([provider]).acquire(track, SyncOptions.flush(), destination)

        assert acquisition.status == AcquireStatus.DOWNLOADED
        assert acquisition.downloaded and not acquisition.failed
        assert acquisition.provider == "fake"
        assert destination.is_file()
        assert track.url == "https://fake.example/watch?v=a"

    def test_not_found(self, make_track, temp_dir):
        acquisition = ProviderChain([FakeProvider()]).acquire(make_track(), SyncOptions.flush(), temp_dir / "x.mp3")

        assert acquisition.status == AcquireStatus.NOT_FOUND
        assert acquisition.failed
        assert acquisition.reason

    def test_simulation_never_downloads(self, make_track, temp_dir):
        provider = FakeProvider(results=[make_candidate()])
        track = make_track()

        acquisition = ProviderChain([provider]).acquire(track, SyncOptions.flush(), temp_dir / "x.mp3", simulate=True)

        assert acquisition.status == AcquireStatus.SIMULATED
        assert provider.downloads == []
        assert track.url is None

    def test_already_optimal_skips_download(self, make_track, temp_dir):
        candidate = make_candidate(video_id="a")
        provider = FakeProvider(results=[candidate])
        track = make_track(url=candidate.url)

        acquisition = ProviderChain([provider]).acquire(track, SyncOptions.flush(), temp_dir / "x.mp3")

        assert acquisition.status == AcquireStatus.ALREADY_OPTIMAL
        assert not acquisition.downloaded and not acquisition.failed
        assert provider.downloads == []

    def test_download_failure(self, make_track, temp_dir):
        provider = FakeProvider(results=[make_candidate()], download_error=True)

        acquisition = ProviderChain([provider]).acquire(make_track(), SyncOptions.flush(), temp_dir / "x.mp3")

        assert acquisition.status == AcquireStatus.FAILED
        assert "connection reset" in acquisition.reason

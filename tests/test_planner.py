# tests/test_planner.py
"""Test working set planning"""

import pytest
from spotsync.exceptions import MetadataError
from spotsync.sync.planner import SyncOptions, SyncPlanner, WorkingSet


class TestSyncOptions:
    """Test option presets"""

    def test_presets(self):
        assert not SyncOptions.default().needs_anything

        flush = SyncOptions.flush()
        assert flush.needs_source and flush.needs_metadata_flush and flush.needs_normalization
        assert not SyncOptions.flush(normalization=False).needs_normalization

        fix = SyncOptions.metadata_only()
        assert fix.needs_metadata_flush and not fix.needs_source


class TestWorkingSet:
    """Test deduplication"""

    def test_dedup_by_temporary_filename(self, make_track):
        working_set = WorkingSet()
        assert working_set.add(make_track("1"), SyncOptions.default()) is True
        # Same artist and title, different remote ID
        assert working_set.add(make_track("2"), SyncOptions.flush()) is False

        assert len(working_set) == 1
        track, options = working_set.get(make_track("1"))
        assert track.id == "1"
        assert not options.needs_anything

    def test_iteration_is_a_snapshot(self, make_track):
        working_set = WorkingSet()
        working_set.add(make_track("1", "One"), SyncOptions.default())

        for track, _ in working_set:
            working_set.add(make_track("2", "Two"), SyncOptions.default())

        assert len(working_set) == 2


class TestSyncPlanner:
    """Test planning from sources"""

    def test_missing_track_needs_everything(self, make_track, temp_dir):
        planner = SyncPlanner(temp_dir)
        track = make_track()

        assert planner.ingest(track) is True

        _, options = planner.working_set.get(track)
        assert options.needs_source
        assert options.needs_metadata_flush
        assert options.needs_normalization

    def test_local_track_needs_nothing(self, make_track, temp_dir):
        planner = SyncPlanner(temp_dir)
        track = make_track()
        track.path(temp_dir).write_bytes(b"audio")

        planner.ingest(track)

        _, options = planner.working_set.get(track)
        assert not options.needs_anything

    def test_normalization_disabled(self, make_track, temp_dir):
        planner = SyncPlanner(temp_dir, normalization=False)
        track = make_track()
        planner.ingest(track)

        _, options = planner.working_set.get(track)
        assert options.needs_source and not options.needs_normalization

    def test_track_from_several_sources_is_planned_once(self, make_track, temp_dir):
        planner = SyncPlanner(temp_dir)
        library = [make_track("1", "One"), make_track("2", "Two")]
        playlist = [make_track("2", "Two"), make_track("3", "Three")]

        assert planner.ingest_many(library) == 2
        assert planner.ingest_many(playlist) == 1
        assert len(planner.working_set) == 3

    def test_ingest_fix(self, make_track, temp_dir):
        fix_file = temp_dir / "elsewhere.mp3"
        fix_file.write_bytes(b"audio")
        planner = SyncPlanner(temp_dir / "music")

        track = planner.ingest_fix(fix_file, reader=lambda path: make_track("9", "Fixed"))

        assert track.local_path == fix_file
        _, options = planner.working_set.get(track)
        assert options.needs_metadata_flush
        assert not options.needs_source

    def test_ingest_fix_does_not_override_remote_plan(self, make_track, temp_dir):
        planner = SyncPlanner(temp_dir)
        planner.ingest(make_track("1"))

        planner.ingest_fix(temp_dir / "x.mp3", reader=lambda path: make_track("1"))

        _, options = planner.working_set.get(make_track("1"))
        assert options.needs_source

    def test_ingest_fix_unreadable(self, temp_dir):
        def reader(path):
            raise MetadataError("no ID tag")

        planner = SyncPlanner(temp_dir)
        with pytest.raises(MetadataError):
            planner.ingest_fix(temp_dir / "x.mp3", reader=reader)
        assert len(planner.working_set) == 0

    def test_flush_local_override(self, make_track, temp_dir):
        planner = SyncPlanner(temp_dir)
        track = make_track()
        track.path(temp_dir).write_bytes(b"audio")
        planner.ingest(track)

        planner.apply_overrides(flush_local=True)

        _, options = planner.working_set.get(track)
        assert options.needs_source and options.needs_metadata_flush

    def test_flush_metadata_override(self, make_track, temp_dir):
        planner = SyncPlanner(temp_dir)
        track = make_track()
        track.path(temp_dir).write_bytes(b"audio")
        planner.ingest(track)

        planner.apply_overrides(flush_metadata=True)

        _, options = planner.working_set.get(track)
        assert options.needs_metadata_flush and not options.needs_source

    def test_summary(self, make_track, temp_dir):
        planner = SyncPlanner(temp_dir)
        local = make_track("1", "Local")
        local.path(temp_dir).write_bytes(b"audio")
        planner.ingest(local)
        planner.ingest(make_track("2", "Missing"))

        summary = planner.summary()

        assert (summary.fetch, summary.flush, summary.ignore) == (1, 1, 1)

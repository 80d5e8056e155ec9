"""
Working set construction

The planner collects tracks from every requested source into a single
working set keyed by the canonical temporary filename, so a track present in
the library, an album and two playlists is processed once. Each entry
carries SyncOptions telling the pipeline what the track needs:

    needs_source          acquire audio from a provider
    needs_metadata_flush  rewrite the tags
    needs_normalization   adjust loudness

Tracks already present locally need nothing by default; missing ones need
everything. Global overrides (--flush-local, --flush-metadata) are applied
as a second pass once all sources are ingested.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Iterable, Iterator, Optional, Tuple, Union

from ..spotify.models import Track
from ..utils.logger import get_logger


logger = get_logger(__name__)


@dataclass
class SyncOptions:
    needs_source: bool = False
    needs_metadata_flush: bool = False
    needs_normalization: bool = False

    @classmethod
    def default(cls) -> 'SyncOptions':
        return cls()

    @classmethod
    def flush(cls, normalization: bool = True) -> 'SyncOptions':
        return cls(needs_source=True, needs_metadata_flush=True, needs_normalization=normalization)

    @classmethod
    def metadata_only(cls) -> 'SyncOptions':
        return cls(needs_metadata_flush=True)

    @property
    def needs_anything(self) -> bool:
        return self.needs_source or self.needs_metadata_flush or self.needs_normalization


@dataclass
class PlanSummary:
    fetch: int
    flush: int
    ignore: int


class WorkingSet:
    """Deduplicated (track, options) entries plus the run's artwork cache"""

    def __init__(self):
        self._entries: Dict[str, Tuple[Track, SyncOptions]] = {}
        self.artworks: Dict[str, bytes] = {}

    def add(self, track: Track, options: SyncOptions) -> bool:
        """
        Add a track unless its temporary filename is already present

        Returns:
            True if the track was added
        """
        key = track.temporary_filename
        if key in self._entries:
            return False
        self._entries[key] = (track, options)
        return True

    def get(self, track: Track) -> Optional[Tuple[Track, SyncOptions]]:
        return self._entries.get(track.temporary_filename)

    def __contains__(self, track: Track) -> bool:
        return track.temporary_filename in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Tuple[Track, SyncOptions]]:
        return iter(list(self._entries.values()))


class SyncPlanner:
    """Fills a WorkingSet from remote sources and local fix requests"""

    def __init__(
        self,
        folder: Union[str, Path],
        working_set: Optional[WorkingSet] = None,
        normalization: bool = True
    ):
        self.folder = Path(folder)
        self.working_set = working_set if working_set is not None else WorkingSet()
        self.normalization = normalization

    def ingest(self, track: Track, is_local: Optional[bool] = None) -> bool:
        """
        Add a remote track with options derived from the local folder

        Args:
            track: Track to add
            is_local: Override for the local presence check

        Returns:
            True if the track was new to the working set
        """
        if track in self.working_set:
            return False

        local = track.is_local(self.folder) if is_local is None else is_local
        options = SyncOptions.default() if local else SyncOptions.flush(self.normalization)
        return self.working_set.add(track, options)

    def ingest_many(self, tracks: Iterable[Track]) -> int:
        """Ingest tracks, returning how many were new"""
        return sum(1 for track in tracks if self.ingest(track))

    def ingest_fix(self, path: Union[str, Path], reader: Optional[Callable[[Path], Track]] = None) -> Track:
        """
        Add a local file for a metadata-only refresh

        Args:
            path: MP3 file carrying a remote track ID
            reader: Function rebuilding a Track from a file's tags

        Returns:
            The track read from the file

        Raises:
            MetadataError: If the file cannot be read or has no remote ID
        """
        if reader is None:
            from ..audio.metadata import read_local_track
            reader = read_local_track

        path = Path(path).expanduser()
        track = reader(path)
        track.local_path = path
        if not self.working_set.add(track, SyncOptions.metadata_only()):
            logger.debug(f"{track} already queued, fix request merged")
        return track

    def apply_overrides(self, flush_local: bool = False, flush_metadata: bool = False) -> None:
        """
        Force options across the whole working set

        Args:
            flush_local: Re-acquire and re-tag every track
            flush_metadata: Re-tag every track
        """
        if not flush_local and not flush_metadata:
            return

        for track, options in self.working_set:
            if flush_local:
                options.needs_source = True
                options.needs_metadata_flush = True
            if flush_metadata:
                options.needs_metadata_flush = True

    def summary(self) -> PlanSummary:
        fetch = flush = ignore = 0
        for _, options in self.working_set:
            if options.needs_source:
                fetch += 1
            if options.needs_metadata_flush:
                flush += 1
            if not options.needs_anything:
                ignore += 1
        return PlanSummary(fetch, flush, ignore)

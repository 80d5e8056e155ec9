"""
Synchronization coordinator

Drives one run from the requested sources to the final report:

1. Setup checks: the music folder must exist and the cache directory must be
   creatable. Both are fatal.
2. The rename index is built on a background thread while remote listings
   are fetched (cache first, live on miss or expiry).
3. Tracks are gathered into a deduplicated working set, fix requests are
   added and the global overrides applied.
4. A single sequential loop repairs renamed files, acquires audio, and
   fetches lyrics and artwork. Everything that must reach the disk is
   dispatched to the bounded post-processing pool.
5. After the pool barrier, failures are collected, playlist files written
   and the index persisted.

Per-track problems never abort the run; they end up in the failure list and
the report.
"""

import os
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from ..config.settings import Settings, get_settings
from ..exceptions import (
    ArtworkError, CacheError, ConfigError, LyricsNotFoundError, MetadataError,
    SourceFetchError, TrackNotIndexedError
)
from ..spotify.models import Playlist, Track
from ..utils.logger import create_operation_logger, get_logger
from .cache import CacheKey, MetadataCache
from .index import RenameIndex
from .planner import SyncOptions, SyncPlanner, WorkingSet
from .playlists import PlaylistExporter
from .pool import ProcessingPool
from .report import FailureList, SyncReport


@dataclass
class SyncRequest:
    """Everything a run was asked to do"""
    folder: Path
    library: bool = False
    albums: List[str] = field(default_factory=list)
    playlists: List[str] = field(default_factory=list)
    fixes: List[Path] = field(default_factory=list)
    flush_cache: bool = False
    flush_local: bool = False
    flush_metadata: bool = False
    disable_normalization: bool = False
    disable_playlist_file: bool = False
    pls_file: bool = False
    disable_lyrics: bool = False
    disable_indexing: bool = False
    interactive: bool = False
    manual_input: bool = False
    debug: bool = False
    simulate: bool = False

    @property
    def needs_remote(self) -> bool:
        return bool(self.library or self.albums or self.playlists)


class Synchronizer:
    """Runs one synchronization of a folder against remote sources"""

    def __init__(
        self,
        request: SyncRequest,
        settings: Optional[Settings] = None,
        client=None,
        chain=None,
        cache: Optional[MetadataCache] = None,
        pipeline=None,
        lyrics=None,
        artwork=None,
        pool: Optional[ProcessingPool] = None,
        index_reader: Optional[Callable[[Path], Optional[str]]] = None,
        origin_reader: Optional[Callable[[Path], Optional[str]]] = None,
        fix_reader: Optional[Callable[[Path], Track]] = None,
        index_path: Optional[Path] = None
    ):
        """
        Args:
            request: What to synchronize
            settings: Settings, defaults to the global ones
            client: Remote metadata source, defaults to the Spotify client
            chain: ProviderChain, defaults to the configured providers
            cache: MetadataCache, defaults to one in the cache directory
            pipeline: PostProcessPipeline, defaults to pydub/mutagen backed stages
            lyrics: LyricsFetcher, defaults to the configured sources
            artwork: ArtworkFetcher
            pool: ProcessingPool, defaults to the configured concurrency
            index_reader: Reads the remote ID of a file (index build)
            origin_reader: Reads the origin URL of a file
            fix_reader: Rebuilds a Track from a local file (fix requests)
            index_path: Where the rename index is persisted
        """
        self.request = request
        self.settings = settings or get_settings()
        self.logger = get_logger(__name__)
        self.folder = Path(request.folder).expanduser()

        self._client = client
        self._chain = chain
        self._cache = cache
        self._pipeline = pipeline
        self._lyrics = lyrics
        self._artwork = artwork
        self._pool = pool
        self.index_reader = index_reader
        self.origin_reader = origin_reader
        self.fix_reader = fix_reader
        self.index_path = index_path or self.settings.get_index_path()

        self.working_set = WorkingSet()
        self.planner = SyncPlanner(
            self.folder,
            self.working_set,
            normalization=self.settings.sync.normalization and not request.disable_normalization
        )
        self.playlists: List[Playlist] = []
        self.failures = FailureList()
        self.index: Optional[RenameIndex] = None
        self._dispatched: List[Tuple[Track, Future]] = []

    @property
    def client(self):
        if self._client is None:
            from ..spotify.client import get_spotify_client
            self._client = get_spotify_client()
        return self._client

    @property
    def chain(self):
        if self._chain is None:
            from ..providers import ProviderChain, build_default_providers
            self._chain = ProviderChain(
                build_default_providers(self.settings),
                interactive=self.request.interactive,
                manual_input=self.request.manual_input
            )
        return self._chain

    @property
    def cache(self) -> MetadataCache:
        if self._cache is None:
            self._cache = MetadataCache(
                self.settings.get_cache_directory(),
                ttl=timedelta(seconds=int(self.settings.sync.cache_ttl))
            )
        return self._cache

    @property
    def pipeline(self):
        if self._pipeline is None:
            from ..audio.metadata import TagWriter
            from ..audio.processor import LoudnessNormalizer
            from .pipeline import PostProcessPipeline
            self._pipeline = PostProcessPipeline(self.folder, LoudnessNormalizer(), TagWriter())
        return self._pipeline

    @property
    def lyrics(self):
        if self.request.disable_lyrics or not self.settings.lyrics.enabled:
            return None
        if self._lyrics is None:
            from ..lyrics.processor import build_lyrics_fetcher
            self._lyrics = build_lyrics_fetcher()
        return self._lyrics

    @property
    def artwork(self):
        if not self.settings.metadata.include_artwork:
            return None
        if self._artwork is None:
            from ..audio.metadata import ArtworkFetcher
            self._artwork = ArtworkFetcher()
        return self._artwork

    @property
    def pool(self) -> ProcessingPool:
        if self._pool is None:
            self._pool = ProcessingPool(int(self.settings.sync.concurrency), synchronous=self.request.debug)
        return self._pool

    def run(self) -> SyncReport:
        """
        Execute the synchronization

        Returns:
            SyncReport of the run

        Raises:
            ConfigError: If the folder or cache directory is unusable
            AuthenticationError: If Spotify authentication fails
            SourceFetchError: If a remote listing cannot be fetched
        """
        self._setup()

        with ThreadPoolExecutor(max_workers=1, thread_name_prefix="spotsync-index") as background:
            index_future = None
            if not self.request.disable_indexing:
                index_future = background.submit(self._build_index)

            self._fetch_sources()
            self._ingest_fixes()

            if index_future is not None:
                self.index = index_future.result()

        self.planner.apply_overrides(self.request.flush_local, self.request.flush_metadata)

        report = SyncReport(total=len(self.working_set), simulated=self.request.simulate)
        if not len(self.working_set):
            self.logger.console_info("No song needs to be downloaded.")
            return report

        self._process_all(report)
        self._finish(report)
        return report

    def abort(self) -> None:
        """Stop dispatching and drop queued post-processing (interrupt path)"""
        if self._pool is not None:
            self._pool.abandon()

    def _setup(self) -> None:
        if not self.folder.is_dir():
            raise ConfigError(f"Music folder does not exist: {self.folder}", {'folder': str(self.folder)})
        try:
            self.settings.get_cache_directory().mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigError(f"Cannot create cache directory: {e}") from e

    def _build_index(self) -> RenameIndex:
        previous = RenameIndex.load(self.index_path, self.folder)
        return RenameIndex.build(self.folder, previous=previous, reader=self.index_reader)

    def _cached(self, key: CacheKey, fetch: Callable[[], List[Track]]) -> List[Track]:
        if self.request.flush_cache:
            self.cache.invalidate(key)
        else:
            try:
                return self.cache.fetch(key).tracks
            except CacheError as e:
                self.logger.debug(f"Live fetch, {e}")

        tracks = fetch()
        self.cache.store(key, tracks)
        return tracks

    def _fetch_sources(self) -> None:
        if not self.request.needs_remote:
            return

        user_id = self.client.current_user_id()

        if self.request.library:
            tracks = self._cached(CacheKey(user_id, 'library'), self.client.fetch_library)
            self.logger.console_info(f"📚 Library: {len(tracks)} tracks")
            self.planner.ingest_many(tracks)

        for uri in self.request.albums:
            album_id = self.client.extract_id(self.settings.resolve_alias(uri), 'album')
            tracks = self._cached(CacheKey(user_id, 'album', album_id), lambda: self.client.fetch_album(album_id))
            self.logger.console_info(f"💿 Album {album_id}: {len(tracks)} tracks")
            self.planner.ingest_many(tracks)

        for uri in self.request.playlists:
            self.playlists.append(self._fetch_playlist(user_id, self.settings.resolve_alias(uri)))

    def _fetch_playlist(self, user_id: str, uri: str) -> Playlist:
        playlist_id = self.client.extract_id(uri, 'playlist')
        fetched: List[Playlist] = []

        def live() -> List[Track]:
            playlist = self.client.fetch_playlist(playlist_id)
            fetched.append(playlist)
            return playlist.tracks

        tracks = self._cached(CacheKey(user_id, 'playlist', playlist_id), live)
        if fetched:
            playlist = fetched[0]
        else:
            playlist = Playlist(id=playlist_id, tracks=tracks)
            try:
                info = self.client.playlist_info(playlist_id)
                playlist.name, playlist.owner = info['name'], info['owner']
            except SourceFetchError as e:
                self.logger.warning(f"Unable to look up playlist {playlist_id}: {e}")

        self.logger.console_info(f"🎶 Playlist {playlist.display_name}: {len(tracks)} tracks")
        self.planner.ingest_many(tracks)
        return playlist

    def _ingest_fixes(self) -> None:
        for path in self.request.fixes:
            try:
                track = self.planner.ingest_fix(path, reader=self.fix_reader)
            except MetadataError as e:
                self.logger.warning(f"Unable to fix {path}: {e}")
                continue
            self.logger.console_info(f"🔧 Fix: {track}")

    def _process_all(self, report: SyncReport) -> None:
        summary = self.planner.summary()
        self.logger.console_info(
            f"{summary.fetch} will be downloaded, {summary.flush} flushed and {summary.ignore} ignored"
        )

        operation = create_operation_logger(__name__, "Synchronization")
        operation.start()
        total = len(self.working_set)
        for position, (track, options) in enumerate(self.working_set, 1):
            operation.progress(str(track), position, total)
            self._process(track, options, report)

        for track, future in self._collect():
            exception = future.exception()
            if exception is not None:
                self.logger.error(f"Processing of \"{track}\" crashed: {exception}")
                self.failures.add(track, str(exception))
                continue

            result = future.result()
            if result.succeeded:
                report.flushed += 1
                if self.index is not None:
                    self.index.record(track.id, track.filename)
            else:
                self.failures.add(track, result.reason or "post-processing failed")

        operation.complete()

    def _collect(self) -> List[Tuple[Track, Future]]:
        if not self._dispatched:
            return []
        self.pool.join()
        dispatched, self._dispatched = self._dispatched, []
        return dispatched

    def _is_local(self, track: Track) -> bool:
        if track.is_local(self.folder):
            return True
        return track.local_path is not None and Path(track.local_path).is_file()

    def _process(self, track: Track, options: SyncOptions, report: SyncReport) -> None:
        local = self._is_local(track)
        if self.index is not None:
            local = self._repair_rename(track, options, report) or local

        downloaded = False
        if not local or options.needs_source or self.request.simulate:
            if local and options.needs_source and not track.url:
                track.url = self._read_origin(track)

            acquisition = self.chain.acquire(
                track, options, track.temporary_path(self.folder), simulate=self.request.simulate
            )
            if acquisition.failed:
                self.logger.warning(f"\"{track}\": {acquisition.reason}")
                self.failures.add(track, acquisition.reason)
                return
            if self.request.simulate:
                return
            if acquisition.downloaded:
                report.fetched += 1
                downloaded = True

        if local and not downloaded and not options.needs_metadata_flush:
            report.skipped += 1
            return

        if options.needs_metadata_flush:
            self._fetch_lyrics(track)
            self._fetch_artwork(track)

        self.logger.debug(f"Launching processing of \"{track}\"")
        self._dispatched.append((track, self.pool.dispatch(self.pipeline.run, track, options)))

    def _repair_rename(self, track: Track, options: SyncOptions, report: SyncReport) -> bool:
        """Move a renamed local file back to its canonical name; True when the track is local"""
        try:
            match = self.index.match(track.id, track.filename)
        except TrackNotIndexedError:
            return False

        if match.matches:
            return match.path.is_file()

        destination = track.path(self.folder)
        if destination.exists():
            return True

        if self.request.simulate:
            self.logger.console_info(f"🔎 Would move {match.path.name} to {track.filename}")
            return False

        self.logger.console_info(f"✏️  Track {match.path.name} has been renamed: moving to {track.filename}")
        try:
            os.rename(match.path, destination)
        except OSError as e:
            self.logger.warning(f"Unable to rename {match.path.name}: {e}")
            return False

        self.index.rename(track.id, track.filename)
        report.renamed += 1
        if not self.request.flush_local:
            options.needs_source = False
        return True

    def _read_origin(self, track: Track) -> Optional[str]:
        reader = self.origin_reader
        if reader is None:
            from ..audio.metadata import read_origin_url
            reader = read_origin_url
        return reader(track.local_path or track.path(self.folder))

    def _fetch_lyrics(self, track: Track) -> None:
        fetcher = self.lyrics
        if fetcher is None or track.lyrics:
            return
        try:
            track.lyrics = fetcher.fetch(track)
        except LyricsNotFoundError as e:
            self.logger.warning(str(e))

    def _fetch_artwork(self, track: Track) -> None:
        fetcher = self.artwork
        if fetcher is None or not track.artwork_url or track.artwork:
            return

        artwork = self.working_set.artworks.get(track.artwork_url)
        if artwork is None:
            try:
                artwork = fetcher.fetch(track.artwork_url)
            except ArtworkError as e:
                self.logger.warning(f"Unable to fetch artwork for \"{track}\": {e}")
                return
            self.working_set.artworks[track.artwork_url] = artwork
        track.artwork = artwork

    def _finish(self, report: SyncReport) -> None:
        if self._pool is not None:
            self._pool.shutdown()

        if not self.request.simulate:
            self._export_playlists()
            if self.index is not None:
                self.index.persist(self.index_path)

        report.failed = self.failures.drain()
        if report.failed:
            self.logger.console_warning(f"{len(report.failed)} tracks failed to synchronize.")
            for track, reason in report.failed:
                self.logger.console_warning(f" - {track}: {reason}")

    def _export_playlists(self) -> None:
        if self.request.disable_playlist_file or not self.settings.sync.playlist_files or not self.playlists:
            return
        fmt = 'pls' if self.request.pls_file else self.settings.sync.playlist_format
        exporter = PlaylistExporter(self.folder, fmt)
        for path in exporter.export_all(self.playlists):
            self.logger.console_info(f"📝 Playlist file {path.name} written")

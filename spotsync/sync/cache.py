"""
TTL-bounded cache of remote metadata snapshots

Fetching a large library or playlist from Spotify takes many paged requests.
Each fetched listing is stored as a JSON snapshot per (user, source) and
reused for a limited time (30 minutes by default). An expired snapshot is
treated exactly like a missing one: it is never served.
"""

import json
import time
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Callable, List, Optional, Union

from ..exceptions import CacheExpiredError, CacheMissError
from ..spotify.models import Track
from ..utils.helpers import atomic_write_text, ensure_directory, sanitize_filename
from ..utils.logger import get_logger


DEFAULT_TTL = timedelta(minutes=30)

KINDS = ('library', 'album', 'playlist')


@dataclass(frozen=True)
class CacheKey:
    """Identifies one cached listing"""
    user_id: str
    kind: str
    source_id: Optional[str] = None

    def __post_init__(self):
        if self.kind not in KINDS:
            raise ValueError(f"Unknown cache kind: {self.kind}")

    @property
    def filename(self) -> str:
        parts = [self.user_id, self.kind]
        if self.source_id:
            parts.append(self.source_id)
        return sanitize_filename("_".join(parts), replace_spaces=True) + ".json"


@dataclass
class CacheEntry:
    key: CacheKey
    fetched_at: float
    tracks: List[Track]


class MetadataCache:
    """JSON snapshots of remote listings with a single expiry policy"""

    def __init__(
        self,
        directory: Union[str, Path],
        ttl: timedelta = DEFAULT_TTL,
        clock: Callable[[], float] = time.time
    ):
        """
        Args:
            directory: Where snapshots are written
            ttl: Maximum snapshot age
            clock: Time source returning epoch seconds
        """
        self.directory = Path(directory)
        self.ttl = ttl
        self.clock = clock
        self.logger = get_logger(__name__)

    def _path(self, key: CacheKey) -> Path:
        return self.directory / key.filename

    def fetch(self, key: CacheKey) -> CacheEntry:
        """
        Cached snapshot for key

        Raises:
            CacheMissError: If there is no readable snapshot
            CacheExpiredError: If the snapshot is older than the TTL
        """
        path = self._path(key)
        if not path.is_file():
            raise CacheMissError(f"No cached {key.kind} for {key.source_id or key.user_id}")

        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            fetched_at = float(data['fetched_at'])
            tracks = [Track.from_dict(raw) for raw in data['tracks']]
        except (OSError, ValueError, KeyError, TypeError) as e:
            raise CacheMissError(f"Unreadable cache {path.name}: {e}") from e

        age = self.clock() - fetched_at
        if age > self.ttl.total_seconds():
            raise CacheExpiredError(f"Cached {key.kind} expired {int(age)}s old", {'age': age})

        self.logger.debug(f"Cache hit {path.name}: {len(tracks)} tracks, {int(age)}s old")
        return CacheEntry(key, fetched_at, tracks)

    def store(self, key: CacheKey, tracks: List[Track]) -> bool:
        """
        Save a snapshot stamped with the current time

        Returns:
            True on success; failures are logged as warnings
        """
        path = self._path(key)
        payload = {
            'kind': key.kind,
            'source_id': key.source_id,
            'fetched_at': self.clock(),
            'tracks': [track.to_dict() for track in tracks],
        }
        try:
            ensure_directory(self.directory)
            atomic_write_text(path, json.dumps(payload, ensure_ascii=False))
        except OSError as e:
            self.logger.warning(f"Unable to cache {key.kind} metadata: {e}")
            return False
        return True

    def invalidate(self, key: CacheKey) -> None:
        """Drop a snapshot, if any"""
        path = self._path(key)
        try:
            path.unlink()
        except FileNotFoundError:
            return
        except OSError as e:
            self.logger.warning(f"Unable to invalidate cache {path.name}: {e}")

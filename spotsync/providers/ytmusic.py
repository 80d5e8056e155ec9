"""
YouTube Music content provider

Searches the YouTube Music song catalogue with ytmusicapi (no
authentication needed for public search) and downloads with yt-dlp.
Song results are auto-generated "Topic" uploads of the label audio, which
makes this the preferred provider.
"""

import time
from pathlib import Path
from typing import Any, Dict, List, Optional

from ytmusicapi import YTMusic

from ..config.settings import get_settings
from ..exceptions import SearchError
from ..spotify.models import Track
from ..utils.helpers import create_search_query, parse_duration_string
from ..utils.logger import get_logger
from .base import Candidate, Provider
from .downloader import AudioDownloader
from .scoring import MatchScorer, analyze_flags


class YouTubeMusicProvider(Provider):
    """Provider backed by music.youtube.com"""

    name = "ytmusic"
    domains = ("music.youtube.com",)

    def __init__(self, scorer: Optional[MatchScorer] = None, downloader: Optional[AudioDownloader] = None):
        self.settings = get_settings()
        self.logger = get_logger(__name__)
        self.scorer = scorer or MatchScorer()
        self.downloader = downloader or AudioDownloader()
        self.max_results = self.settings.providers.max_results
        self._ytmusic: Optional[YTMusic] = None

        self.last_request_time = 0.0
        self.min_request_interval = 1.0

    @property
    def ytmusic(self) -> YTMusic:
        """Lazily initialized ytmusicapi client"""
        if not self._ytmusic:
            self._ytmusic = YTMusic()
            self.logger.debug("YouTube Music API initialized")
        return self._ytmusic

    def _rate_limit(self) -> None:
        elapsed = time.time() - self.last_request_time
        if elapsed < self.min_request_interval:
            time.sleep(self.min_request_interval - elapsed)
        self.last_request_time = time.time()

    def _search_ytmusic(self, query: str) -> List[Dict[str, Any]]:
        self._rate_limit()
        try:
            results = self.ytmusic.search(query=query, filter='songs', limit=self.max_results)
        except Exception as e:
            # ytmusicapi surfaces HTTP, JSON and parser failures with assorted types
            raise SearchError(f"YouTube Music search failed for '{query}': {e}", provider=self.name) from e
        self.logger.debug(f"YTMusic search '{query}' returned {len(results)} results")
        return results

    def _to_candidate(self, result: Dict[str, Any]) -> Optional[Candidate]:
        video_id = result.get('videoId')
        if not video_id:
            return None

        artists = result.get('artists') or []
        uploader = artists[0].get('name', '') if artists else ''
        verified = bool(artists and artists[0].get('id'))

        duration = result.get('duration_seconds')
        if duration is None and result.get('duration'):
            duration = parse_duration_string(result['duration'])

        album = (result.get('album') or {}).get('name')
        title = result.get('title', '')

        return Candidate(
            provider=self.name,
            id=video_id,
            url=f"https://music.youtube.com/watch?v={video_id}",
            title=title,
            uploader=uploader,
            duration=duration,
            album=album,
            flags=analyze_flags(title, uploader, verified),
        )

    def search(self, track: Track) -> List[Candidate]:
        """
        Scored candidates for a track, best first

        The first query that returns anything is used; the remaining ones
        only broaden the search when the catalogue has nothing.

        Raises:
            SearchError: If every query failed
        """
        queries = create_search_query(track.artist, track.title, include_official=False)
        candidates: List[Candidate] = []
        seen = set()
        last_error: Optional[SearchError] = None

        for query in queries:
            try:
                results = self._search_ytmusic(query)
            except SearchError as e:
                self.logger.debug(str(e))
                last_error = e
                continue

            for result in results:
                candidate = self._to_candidate(result)
                if candidate is None or candidate.id in seen:
                    continue
                seen.add(candidate.id)
                self.scorer.score(candidate, track)
                candidates.append(candidate)

            if candidates:
                break

        if not candidates and last_error is not None:
            raise last_error

        candidates.sort(key=lambda c: c.score, reverse=True)
        return candidates

    def validate(self, candidate: Candidate, track: Track) -> None:
        if candidate.title:
            self.scorer.check(candidate, track)

    def download(self, candidate: Candidate, destination: Path) -> None:
        self.downloader.download(candidate.url, destination, provider=self.name)

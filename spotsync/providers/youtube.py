"""
YouTube content provider

Fallback provider searching plain YouTube through yt-dlp's "ytsearchN:"
pseudo URLs. Flat extraction returns title, channel and duration without
resolving every video, which keeps a search to a single request.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional

import yt_dlp
from yt_dlp.utils import DownloadError as YtDlpDownloadError

from ..config.settings import get_settings
from ..exceptions import SearchError
from ..spotify.models import Track
from ..utils.helpers import create_search_query
from ..utils.logger import get_logger
from .base import Candidate, Provider
from .downloader import AudioDownloader
from .scoring import MatchScorer, analyze_flags


class YouTubeProvider(Provider):
    """Provider backed by youtube.com"""

    name = "youtube"
    domains = ("youtube.com", "m.youtube.com", "youtu.be")

    def __init__(self, scorer: Optional[MatchScorer] = None, downloader: Optional[AudioDownloader] = None):
        self.settings = get_settings()
        self.logger = get_logger(__name__)
        self.scorer = scorer or MatchScorer()
        self.downloader = downloader or AudioDownloader()
        self.max_results = self.settings.providers.max_results

    def _extract(self, query: str) -> Dict[str, Any]:
        options = {
            'quiet': True,
            'no_warnings': True,
            'extract_flat': True,
            'skip_download': True,
        }
        try:
            with yt_dlp.YoutubeDL(options) as ydl:
                return ydl.extract_info(f"ytsearch{self.max_results}:{query}", download=False) or {}
        except YtDlpDownloadError as e:
            raise SearchError(f"YouTube search failed for '{query}': {e}", provider=self.name) from e

    def _to_candidate(self, entry: Dict[str, Any]) -> Optional[Candidate]:
        video_id = entry.get('id')
        if not video_id:
            return None

        title = entry.get('title') or ''
        uploader = entry.get('channel') or entry.get('uploader') or ''
        duration = entry.get('duration')

        return Candidate(
            provider=self.name,
            id=video_id,
            url=f"https://www.youtube.com/watch?v={video_id}",
            title=title,
            uploader=uploader,
            duration=int(duration) if duration else None,
            flags=analyze_flags(title, uploader, bool(entry.get('channel_is_verified'))),
        )

    def search(self, track: Track) -> List[Candidate]:
        """
        Scored candidates for a track, best first

        Raises:
            SearchError: If yt-dlp cannot run the search
        """
        query = create_search_query(track.artist, track.title, include_official=True)[0]
        self.logger.debug(f"YouTube search '{query}'")
        info = self._extract(query)

        candidates = []
        for entry in info.get('entries') or []:
            candidate = self._to_candidate(entry or {})
            if candidate is None:
                continue
            self.scorer.score(candidate, track)
            candidates.append(candidate)

        candidates.sort(key=lambda c: c.score, reverse=True)
        return candidates

    def validate(self, candidate: Candidate, track: Track) -> None:
        if candidate.title:
            self.scorer.check(candidate, track)

    def download(self, candidate: Candidate, destination: Path) -> None:
        self.downloader.download(candidate.url, destination, provider=self.name)

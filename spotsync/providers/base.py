"""
Content provider interface

A provider turns a Track into ranked download candidates, judges whether a
candidate really is the track, and downloads an accepted candidate to a
local MP3 file.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Set, Tuple

from ..exceptions import UnsupportedURLError
from ..spotify.models import Track
from ..utils.helpers import url_domain


@dataclass
class Candidate:
    """
    A provider search result

    Attributes:
        provider: Name of the provider that produced it
        id: Provider specific ID (video ID)
        url: Downloadable URL, stored as the track origin once downloaded
        title: Result title
        uploader: Artist or channel name
        duration: Duration in seconds, None when unknown
        album: Album name when the provider knows it
        score: Match score (0-100) computed by MatchScorer
        flags: Quality flags (official, verified, live, cover, karaoke, remix, music_video)
    """
    provider: str
    id: str
    url: str
    title: str = ""
    uploader: str = ""
    duration: Optional[int] = None
    album: Optional[str] = None
    score: float = 0.0
    flags: Set[str] = field(default_factory=set)

    def __str__(self) -> str:
        if self.title:
            return f"{self.uploader} - {self.title} ({self.url})"
        return self.url


class Provider(ABC):
    """
    Base class of content providers

    Subclasses set name and domains and implement search/validate/download.
    """

    name = "provider"
    domains: Tuple[str, ...] = ()

    @abstractmethod
    def search(self, track: Track) -> List[Candidate]:
        """
        Candidates for a track, best first

        Raises:
            SearchError: If the provider cannot be queried
        """

    @abstractmethod
    def validate(self, candidate: Candidate, track: Track) -> None:
        """
        Accept or reject a candidate

        Raises:
            CandidateRejected: With the reason the candidate does not match
        """

    @abstractmethod
    def download(self, candidate: Candidate, destination: Path) -> None:
        """
        Download a candidate as MP3 to destination

        Raises:
            DownloadError: If the download or conversion fails
        """

    def supports(self, url: str) -> bool:
        """Whether url belongs to this provider"""
        return url_domain(url) in self.domains

    def candidate_for_url(self, url: str) -> Candidate:
        """
        Wrap a user supplied URL

        Raises:
            UnsupportedURLError: If the URL does not belong to this provider
        """
        if not self.supports(url):
            raise UnsupportedURLError(f"{url} is not a {self.name} URL", provider=self.name)
        return Candidate(provider=self.name, id=url, url=url)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.name}>"

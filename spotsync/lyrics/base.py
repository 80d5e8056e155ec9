"""
Common interface of lyrics sources
"""

import time
from abc import ABC, abstractmethod


class LyricsSource(ABC):
    """
    A service able to return plain lyrics for an artist/title pair

    Subclasses raise LyricsNotFoundError from query() when they have nothing
    usable; any other outcome is a lyrics string ready to embed.
    """

    name = "lyrics"
    min_request_interval = 0.0

    def __init__(self):
        self.last_request_time = 0.0

    @property
    def available(self) -> bool:
        """Whether the source is configured and can be queried"""
        return True

    def _rate_limit(self) -> None:
        elapsed = time.time() - self.last_request_time
        if elapsed < self.min_request_interval:
            time.sleep(self.min_request_interval - elapsed)
        self.last_request_time = time.time()

    @abstractmethod
    def query(self, title: str, artist: str) -> str:
        """
        Look up lyrics

        Args:
            title: Track title
            artist: Primary artist

        Returns:
            Cleaned lyrics text

        Raises:
            LyricsNotFoundError: If the source has no usable lyrics
        """

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.name}>"

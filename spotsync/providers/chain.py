"""
Ordered provider fallback

ProviderChain asks each provider in priority order for candidates and takes
the first one that passes validation. A provider that cannot be searched is
skipped with a warning; a rejected candidate only moves on to the next one.

Interactive mode lets the user confirm or override every decision, and falls
back to asking for a URL when nothing was accepted. Manual input mode skips
searching entirely and always asks for the URL.

acquire() then downloads the accepted candidate to the track's temporary
file, unless the local file already came from that very URL.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Tuple

import click

from ..exceptions import CandidateRejected, DownloadError, SearchError, UnsupportedURLError
from ..spotify.models import Track
from ..utils.helpers import is_valid_url
from ..utils.logger import get_logger
from .base import Candidate, Provider


class AcquireStatus(Enum):
    DOWNLOADED = "downloaded"
    ALREADY_OPTIMAL = "already_optimal"
    SIMULATED = "simulated"
    NOT_FOUND = "not_found"
    FAILED = "failed"


@dataclass
class Acquisition:
    """Outcome of acquiring the audio of one track"""
    status: AcquireStatus
    candidate: Optional[Candidate] = None
    provider: Optional[str] = None
    reason: str = ""

    @property
    def downloaded(self) -> bool:
        return self.status == AcquireStatus.DOWNLOADED

    @property
    def failed(self) -> bool:
        return self.status in (AcquireStatus.NOT_FOUND, AcquireStatus.FAILED)


def _confirm_candidate(track: Track, candidate: Candidate, accepted: bool) -> bool:
    duration = f"{candidate.duration}s" if candidate.duration else "unknown"
    click.echo(
        f"\nTrack:    {track.basename} ({track.duration}s)\n"
        f"Result:   {candidate.uploader} - {candidate.title}\n"
        f"Duration: {duration}\n"
        f"URL:      {candidate.url}\n"
        f"Score:    {candidate.score:.1f} ({'matching' if accepted else 'not matching'})"
    )
    return click.confirm("Download this result?", default=accepted)


def _prompt_url(track: Track) -> str:
    return click.prompt(f"Enter URL for \"{track.basename}\" (empty to skip)", default="", show_default=False)


class ProviderChain:
    """Fixed-order list of providers with fallback semantics"""

    def __init__(
        self,
        providers: List[Provider],
        interactive: bool = False,
        manual_input: bool = False,
        confirm: Optional[Callable[[Track, Candidate, bool], bool]] = None,
        prompt_url: Optional[Callable[[Track], str]] = None
    ):
        """
        Args:
            providers: Providers in priority order
            interactive: Ask the user to confirm each candidate
            manual_input: Never search, always ask for a URL
            confirm: Confirmation callback (track, candidate, accepted) -> bool
            prompt_url: URL prompt callback (track) -> url or ""
        """
        self.providers = providers
        self.interactive = interactive
        self.manual_input = manual_input
        self.confirm = confirm or _confirm_candidate
        self.prompt_url = prompt_url or _prompt_url
        self.logger = get_logger(__name__)

    def provider_for(self, url: str) -> Provider:
        """
        First provider supporting url

        Raises:
            UnsupportedURLError: If no provider recognizes the URL
        """
        for provider in self.providers:
            if provider.supports(url):
                return provider
        raise UnsupportedURLError(f"No provider supports {url}", {'url': url})

    def _search(self, track: Track) -> Optional[Tuple[Provider, Candidate]]:
        for provider in self.providers:
            self.logger.debug(f"Searching {track} on {provider.name}")
            try:
                candidates = provider.search(track)
            except SearchError as e:
                self.logger.warning(f"Unable to search {track} on {provider.name}: {e}")
                continue

            for candidate in candidates:
                self.logger.debug(
                    f"Result: {candidate.uploader} - {candidate.title} "
                    f"[{candidate.duration}s, score {candidate.score:.1f}] {candidate.url}"
                )
                try:
                    provider.validate(candidate, track)
                    accepted = True
                except CandidateRejected as e:
                    self.logger.debug(f"Rejected {candidate.url}: {e}")
                    accepted = False

                if self.interactive:
                    accepted = self.confirm(track, candidate, accepted)

                if accepted:
                    self.logger.debug(f"\"{candidate.title}\" is good to go for \"{track}\"")
                    return provider, candidate

        return None

    def _ask_url(self, track: Track) -> Optional[Tuple[Provider, Candidate]]:
        url = (self.prompt_url(track) or "").strip()
        if not url:
            return None
        if not is_valid_url(url):
            self.logger.warning(f"Ignoring malformed URL for {track}: {url}")
            return None
        try:
            provider = self.provider_for(url)
        except UnsupportedURLError as e:
            self.logger.warning(f"Ignoring URL for {track}: {e}")
            return None
        return provider, provider.candidate_for_url(url)

    def resolve(self, track: Track) -> Optional[Tuple[Provider, Candidate]]:
        """
        Pick the candidate to download for a track

        Args:
            track: Track to resolve

        Returns:
            (provider, candidate), or None when nothing was accepted
        """
        if self.manual_input:
            return self._ask_url(track)

        resolved = self._search(track)
        if resolved is None and self.interactive:
            resolved = self._ask_url(track)
        return resolved

    def acquire(self, track: Track, options, destination: Path, simulate: bool = False) -> Acquisition:
        """
        Resolve and download the audio of a track

        Args:
            track: Track to acquire, track.url is updated on download
            options: SyncOptions of the track
            destination: Temporary file to download to
            simulate: Resolve only, never download

        Returns:
            Acquisition describing what happened
        """
        resolved = self.resolve(track)
        if resolved is None:
            self.logger.debug(f"No entry to download has been found for {track}")
            return Acquisition(AcquireStatus.NOT_FOUND, reason="no matching result found")

        provider, candidate = resolved

        if simulate:
            self.logger.console_info(f"🔎 Would download {candidate.url} for \"{track}\"")
            return Acquisition(AcquireStatus.SIMULATED, candidate, provider.name)

        if options.needs_source and track.url and track.url == candidate.url:
            self.logger.debug(f"Local origin {track.url} of {track} is still the best result")
            return Acquisition(AcquireStatus.ALREADY_OPTIMAL, candidate, provider.name)

        self.logger.debug(f"Downloading {candidate.url} for {track}")
        try:
            provider.download(candidate, destination)
        except DownloadError as e:
            self.logger.warning(f"Download of \"{track}\" failed: {e}")
            return Acquisition(AcquireStatus.FAILED, candidate, provider.name, reason=str(e))

        track.url = candidate.url
        return Acquisition(AcquireStatus.DOWNLOADED, candidate, provider.name)

"""
Candidate scoring and acceptance

Scores a provider result against the track it should represent on a 0-100
scale:

    title similarity   x 40
    artist similarity  x 30
    duration match     20 within tolerance, linearly down to 0 at 3x tolerance
                       (10 when the candidate duration is unknown)
    quality bonus      clamped to [-10, 10]

The quality bonus rewards official uploads and verified artists and punishes
live recordings, covers, karaoke and remixes. Flags that the remote title
itself carries ("Song (Live)") are not held against a candidate.

A candidate is accepted when its duration is within 3x tolerance (or
unknown) and its score reaches the threshold.
"""

from typing import Optional, Set

from ..config.settings import get_settings
from ..exceptions import CandidateRejected
from ..spotify.models import Track
from ..utils.helpers import calculate_similarity, normalize_artist_name, normalize_track_title
from .base import Candidate


OFFICIAL_INDICATORS = [
    'official audio', 'official video', 'official music video',
    'provided to youtube', 'auto-generated'
]

NEGATIVE_INDICATORS = {
    'live': ['live', 'concert', 'tour'],
    'cover': ['cover', 'covered by', 'covers'],
    'karaoke': ['karaoke', 'instrumental', 'piano version'],
    'remix': ['remix', 'extended', 'mashup', 'mix'],
}


def analyze_flags(title: str, uploader: str = "", verified: bool = False) -> Set[str]:
    """
    Quality flags of a result from its title and uploader

    Args:
        title: Result title
        uploader: Channel or artist name
        verified: Whether the provider marks the uploader as an artist channel

    Returns:
        Set of flags
    """
    flags = set()
    title_lower = title.lower()
    uploader_lower = uploader.lower()

    if any(indicator in title_lower for indicator in OFFICIAL_INDICATORS):
        flags.add('official')
    if uploader_lower.endswith(' - topic') or uploader_lower.endswith('vevo'):
        flags.add('official')

    for flag, indicators in NEGATIVE_INDICATORS.items():
        if any(indicator in title_lower for indicator in indicators):
            flags.add(flag)

    if 'music video' in title_lower or 'official video' in title_lower:
        flags.add('music_video')

    if verified:
        flags.add('verified')

    return flags


class MatchScorer:
    """Scores and accepts candidates with configurable tolerances"""

    def __init__(
        self,
        threshold: Optional[float] = None,
        duration_tolerance: Optional[int] = None,
        prefer_official: Optional[bool] = None,
        exclude_live: Optional[bool] = None,
        exclude_covers: Optional[bool] = None
    ):
        config = get_settings().providers
        self.threshold = config.score_threshold if threshold is None else threshold
        self.duration_tolerance = config.duration_tolerance if duration_tolerance is None else duration_tolerance
        self.prefer_official = config.prefer_official if prefer_official is None else prefer_official
        self.exclude_live = config.exclude_live if exclude_live is None else exclude_live
        self.exclude_covers = config.exclude_covers if exclude_covers is None else exclude_covers

    def duration_score(self, target: Optional[int], actual: Optional[int]) -> float:
        if not target or not actual:
            return 10.0

        diff = abs(target - actual)
        if diff <= self.duration_tolerance:
            return 20.0
        if diff <= self.duration_tolerance * 3:
            penalty = (diff - self.duration_tolerance) / (self.duration_tolerance * 2)
            return 20.0 * (1 - penalty)
        return 0.0

    def quality_bonus(self, flags: Set[str], track: Track) -> float:
        """Bonus in [-10, 10] for the candidate flags, given the remote title"""
        wanted = analyze_flags(track.title)
        bonus = 0

        if 'official' in flags:
            bonus += 5
        if 'verified' in flags:
            bonus += 2
        if 'music_video' in flags and self.prefer_official:
            bonus -= 1
        if 'live' in flags and 'live' not in wanted and self.exclude_live:
            bonus -= 8
        if 'cover' in flags and 'cover' not in wanted and self.exclude_covers:
            bonus -= 6
        if 'karaoke' in flags and 'karaoke' not in wanted:
            bonus -= 10
        if 'remix' in flags and 'remix' not in wanted:
            bonus -= 3

        return float(max(-10, min(10, bonus)))

    def score(self, candidate: Candidate, track: Track) -> float:
        """
        Compute and store the candidate score

        Args:
            candidate: Candidate to score (score attribute is updated)
            track: Track the candidate should match

        Returns:
            Total score
        """
        title_similarity = calculate_similarity(
            normalize_track_title(track.title),
            normalize_track_title(candidate.title)
        )
        artist_similarity = max(
            calculate_similarity(normalize_artist_name(artist), normalize_artist_name(candidate.uploader))
            for artist in (track.artists or [track.artist])
        )

        candidate.score = (
            title_similarity * 40
            + artist_similarity * 30
            + self.duration_score(track.duration, candidate.duration)
            + self.quality_bonus(candidate.flags, track)
        )
        return candidate.score

    def check(self, candidate: Candidate, track: Track) -> None:
        """
        Accept or reject a scored candidate

        Raises:
            CandidateRejected: If the duration is too far off or the score is too low
        """
        if track.duration and candidate.duration:
            delta = abs(track.duration - candidate.duration)
            if delta > self.duration_tolerance * 3:
                raise CandidateRejected(
                    f"duration differs by {delta}s",
                    {'url': candidate.url, 'delta': delta},
                    provider=candidate.provider
                )

        if candidate.score < self.threshold:
            raise CandidateRejected(
                f"score {candidate.score:.1f} below {self.threshold}",
                {'url': candidate.url, 'score': candidate.score},
                provider=candidate.provider
            )

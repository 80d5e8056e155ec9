"""
Content providers package
Provider interface, YouTube Music and YouTube providers, and the fallback chain
"""

from typing import List, Optional

from ..config.settings import Settings, get_settings
from .base import Candidate, Provider
from .chain import AcquireStatus, Acquisition, ProviderChain
from .scoring import MatchScorer
from .youtube import YouTubeProvider
from .ytmusic import YouTubeMusicProvider


PROVIDERS = {
    YouTubeMusicProvider.name: YouTubeMusicProvider,
    YouTubeProvider.name: YouTubeProvider,
}


def build_default_providers(settings: Optional[Settings] = None) -> List[Provider]:
    """
    Providers in configured priority order

    Args:
        settings: Settings to read the order from, defaults to the global ones

    Returns:
        Provider instances
    """
    settings = settings or get_settings()
    scorer = MatchScorer()
    return [PROVIDERS[name](scorer=scorer) for name in settings.providers.order if name in PROVIDERS]


__all__ = [
    'Candidate',
    'Provider',
    'ProviderChain',
    'Acquisition',
    'AcquireStatus',
    'MatchScorer',
    'YouTubeMusicProvider',
    'YouTubeProvider',
    'build_default_providers',
]

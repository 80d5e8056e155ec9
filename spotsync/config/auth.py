"""
OAuth2 authentication and token management for Spotify API

spotipy drives the authorization code flow: it opens the browser (or prints
the authorization URL when the browser is disabled), listens for the callback
on the configured redirect URL and keeps the token in a cache file. Cached
tokens are refreshed transparently on later runs.

Token storage lives in the configured storage directory and is readable by
the owner only.
"""

from typing import Any, Dict, Optional

import spotipy
from spotipy.cache_handler import CacheFileHandler
from spotipy.oauth2 import SpotifyOAuth, SpotifyOauthError

from .settings import get_settings
from ..exceptions import AuthenticationError
from ..utils.logger import get_logger


class SpotifyAuth:
    """
    Authentication manager for Spotify API access

    Wraps spotipy's SpotifyOAuth manager and hands out an authenticated
    spotipy.Spotify client. The client is created once and reused; spotipy
    refreshes its token through the auth manager when needed.
    """

    def __init__(self):
        """
        Initialize authentication manager with application settings

        Raises:
            AuthenticationError: If Spotify credentials are not configured
        """
        self.settings = get_settings()
        self.logger = get_logger(__name__)

        self.token_file = self.settings.get_token_cache_path()
        self.client_id = self.settings.spotify.client_id
        self.client_secret = self.settings.spotify.client_secret
        self.redirect_uri = self.settings.spotify.redirect_url
        self.scope = self.settings.spotify.scope

        self._oauth: Optional[SpotifyOAuth] = None
        self._spotify_client: Optional[spotipy.Spotify] = None

    @property
    def oauth(self) -> SpotifyOAuth:
        """Lazily built spotipy OAuth manager"""
        if self._oauth is None:
            if not self.client_id or not self.client_secret:
                raise AuthenticationError(
                    "Spotify credentials missing: set SPOTIFY_CLIENT_ID and SPOTIFY_CLIENT_SECRET"
                )

            self.token_file.parent.mkdir(parents=True, exist_ok=True)
            self._oauth = SpotifyOAuth(
                client_id=self.client_id,
                client_secret=self.client_secret,
                redirect_uri=self.redirect_uri,
                scope=self.scope,
                cache_handler=CacheFileHandler(cache_path=str(self.token_file)),
                open_browser=self.settings.spotify.open_browser,
            )
        return self._oauth

    def get_token(self) -> Dict[str, Any]:
        """
        Get a valid token, authorizing interactively when none is cached

        Returns:
            spotipy token info dictionary

        Raises:
            AuthenticationError: If authorization fails
        """
        try:
            token_info = self.oauth.validate_token(self.oauth.cache_handler.get_cached_token())
            if not token_info:
                self.logger.console_info("🔐 Authorization required, follow the instructions in your browser")
                self.oauth.get_access_token(as_dict=False)
                token_info = self.oauth.cache_handler.get_cached_token()
        except SpotifyOauthError as e:
            raise AuthenticationError(f"Spotify authorization failed: {e}") from e

        if not token_info:
            raise AuthenticationError("Spotify authorization failed: no token received")

        self._restrict_token_file()
        return token_info

    def get_spotify_client(self) -> spotipy.Spotify:
        """
        Get authenticated Spotify API client instance

        Returns:
            Authenticated spotipy client

        Raises:
            AuthenticationError: If authentication fails
        """
        if self._spotify_client is None:
            self.get_token()
            self._spotify_client = spotipy.Spotify(
                auth_manager=self.oauth,
                requests_timeout=self.settings.network.request_timeout,
            )
        return self._spotify_client

    def is_authenticated(self) -> bool:
        """Whether a usable token is cached, without triggering authorization"""
        try:
            cached = self.oauth.cache_handler.get_cached_token()
            return bool(cached and self.oauth.validate_token(cached))
        except (AuthenticationError, SpotifyOauthError):
            return False

    def logout(self) -> bool:
        """
        Delete the cached token and forget the client

        Returns:
            True if a token file was removed
        """
        self._spotify_client = None
        self._oauth = None

        if not self.token_file.exists():
            return False
        try:
            self.token_file.unlink()
        except OSError as e:
            self.logger.warning(f"Failed to delete token file {self.token_file}: {e}")
            return False
        self.logger.debug(f"Token cache removed: {self.token_file}")
        return True

    def _restrict_token_file(self) -> None:
        try:
            if self.token_file.exists():
                self.token_file.chmod(0o600)
        except OSError:
            # Windows does not honour chmod
            pass


# Global authentication instance
_auth_instance: Optional[SpotifyAuth] = None


def get_auth() -> SpotifyAuth:
    """
    Get the global authentication instance (singleton pattern)

    Returns:
        Global SpotifyAuth instance
    """
    global _auth_instance
    if not _auth_instance:
        _auth_instance = SpotifyAuth()
    return _auth_instance


def reset_auth() -> None:
    """
    Reset the global authentication instance

    Clears the in-memory instance only. Use SpotifyAuth.logout() to delete
    the stored token.
    """
    global _auth_instance
    _auth_instance = None

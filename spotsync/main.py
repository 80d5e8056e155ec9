"""
Main CLI interface for spotsync

Command-line entry point built with click:
- sync: synchronize library, albums and playlists into a local folder
- clean-junks: remove leftovers of interrupted runs
- auth: Spotify login, logout and status
- config: show the effective configuration
"""

import functools
import logging
import os
import sys
from pathlib import Path

import click

from . import __version__
from .config.settings import get_settings, reload_settings
from .exceptions import ConfigError, SpotSyncError
from .spotify.models import JUNK_WILDCARDS
from .sync.synchronizer import SyncRequest, Synchronizer
from .utils.helpers import delete_wildcards
from .utils.logger import configure_from_settings, get_current_log_file, get_logger


logger = get_logger(__name__)


def handle_error(func):
    """
    Decorator to handle common CLI errors gracefully

    KeyboardInterrupt exits with 130; any other failure is logged and exits
    with 1.
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except KeyboardInterrupt:
            click.echo(click.style("\n\nOperation cancelled by user", fg='yellow'))
            sys.exit(130)
        except SpotSyncError as e:
            logger.debug(f"Command failed: {e} {e.details}")
            click.echo(click.style(f"Error: {e}", fg='red'), err=True)
            sys.exit(1)
        except Exception as e:
            logger.error(f"Command failed: {e}", exc_info=True)
            click.echo(click.style(f"Error: {e}", fg='red'), err=True)
            sys.exit(1)
    return wrapper


@click.group(invoke_without_command=True)
@click.option('--version', is_flag=True, help='Show version information')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose output')
@click.option('--config', type=click.Path(), help='Path to config file')
@click.pass_context
def cli(ctx, version, verbose, config):
    """
    spotsync - keep a local MP3 folder in sync with Spotify

    Tracks from your library, albums and playlists are matched on YouTube
    Music or YouTube, downloaded, normalized and tagged with lyrics and
    artwork.
    """
    ctx.ensure_object(dict)

    if version:
        click.echo(f"spotsync v{__version__}")
        return

    if config:
        reload_settings(config)
        configure_from_settings()
        logger.debug(f"Loaded config: {config}")

    if verbose:
        ctx.obj['verbose'] = True
        configure_from_settings(level="DEBUG")

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command()
@click.option('--folder', '-f', type=click.Path(file_okay=False), help='Music folder (default from config)')
@click.option('--library', '-l', is_flag=True, help='Synchronize liked songs')
@click.option('--album', '-a', 'albums', multiple=True, help='Album URI, URL or alias (repeatable)')
@click.option('--playlist', '-p', 'playlists', multiple=True, help='Playlist URI, URL or alias (repeatable)')
@click.option('--fix', 'fixes', multiple=True, type=click.Path(dir_okay=False), help='Local file to re-tag (repeatable)')
@click.option('--flush-cache', is_flag=True, help='Ignore cached Spotify metadata')
@click.option('--flush-local', is_flag=True, help='Re-download tracks already present locally')
@click.option('--flush-metadata', is_flag=True, help='Rewrite tags of every track')
@click.option('--disable-normalization', is_flag=True, help='Skip loudness normalization')
@click.option('--disable-playlist-file', is_flag=True, help='Do not write playlist files')
@click.option('--pls-file', is_flag=True, help='Write .pls instead of .m3u playlist files')
@click.option('--disable-lyrics', is_flag=True, help='Do not fetch lyrics')
@click.option('--disable-indexing', is_flag=True, help='Do not detect renamed local files')
@click.option('--interactive', '-i', is_flag=True, help='Confirm every search result')
@click.option('--input', 'manual_input', is_flag=True, help='Always enter the download URL manually')
@click.option('--log', 'log_file', type=click.Path(dir_okay=False), help='Also log to this file')
@click.option('--debug', is_flag=True, help='Debug logging, process tracks one at a time')
@click.option('--simulate', is_flag=True, help='Show what would be done without writing anything')
@handle_error
def sync(folder, library, albums, playlists, fixes, flush_cache, flush_local, flush_metadata,
         disable_normalization, disable_playlist_file, pls_file, disable_lyrics, disable_indexing,
         interactive, manual_input, log_file, debug, simulate):
    """
    Synchronize Spotify sources into the music folder

    Without any source flag the liked songs library is synchronized.
    """
    settings = get_settings()

    if debug or log_file:
        configure_from_settings(level="DEBUG" if debug else None, log_file=log_file)

    target = Path(folder).expanduser() if folder else settings.get_folder()
    if not (library or albums or playlists or fixes):
        library = True

    request = SyncRequest(
        folder=target,
        library=library,
        albums=list(albums),
        playlists=list(playlists),
        fixes=[Path(f) for f in fixes],
        flush_cache=flush_cache,
        flush_local=flush_local,
        flush_metadata=flush_metadata,
        disable_normalization=disable_normalization,
        disable_playlist_file=disable_playlist_file,
        pls_file=pls_file,
        disable_lyrics=disable_lyrics,
        disable_indexing=disable_indexing,
        interactive=interactive,
        manual_input=manual_input,
        debug=debug,
        simulate=simulate,
    )

    synchronizer = Synchronizer(request, settings=settings)
    try:
        report = synchronizer.run()
    except KeyboardInterrupt:
        click.echo(click.style("\n\nSynchronization interrupted, cleaning up...", fg='yellow'))
        synchronizer.abort()
        delete_wildcards(target, JUNK_WILDCARDS)
        logging.shutdown()
        os._exit(130)

    click.echo()
    for line in report.summary_lines():
        click.echo(line)

    log_path = get_current_log_file()
    if log_path:
        click.echo(f"\nLog: {log_path}")
    click.echo(click.style("\nSynchronization completed.", fg='green'))


@cli.command('clean-junks')
@click.option('--folder', '-f', type=click.Path(file_okay=False), help='Music folder (default from config)')
@handle_error
def clean_junks(folder):
    """Remove temporary and partial download files"""
    target = Path(folder).expanduser() if folder else get_settings().get_folder()
    if not target.is_dir():
        raise ConfigError(f"Music folder does not exist: {target}")

    removed = delete_wildcards(target, JUNK_WILDCARDS)
    click.echo(f"Removed {removed} junk file(s) from {target}")


@cli.group()
def auth():
    """Spotify authentication management"""
    pass


@auth.command()
@handle_error
def login():
    """Authenticate with Spotify"""
    from .config.auth import get_auth

    click.echo("Starting Spotify authentication...")
    auth_manager = get_auth()
    auth_manager.get_token()
    profile = auth_manager.get_spotify_client().current_user() or {}
    click.echo(f"Successfully authenticated as: {profile.get('display_name') or profile.get('id', 'Unknown')}")


@auth.command()
@handle_error
def logout():
    """Remove stored authentication"""
    from .config.auth import get_auth, reset_auth

    if get_auth().logout():
        click.echo("Successfully logged out")
    else:
        click.echo("No stored authentication found")
    reset_auth()


@auth.command()
@handle_error
def status():
    """Check authentication status"""
    from .config.auth import get_auth

    if get_auth().is_authenticated():
        click.echo(click.style("Authenticated with Spotify", fg='green'))
    else:
        click.echo(click.style("Not authenticated", fg='yellow'))
        click.echo("Run 'spotsync auth login' to authenticate")


@cli.group()
def config():
    """Configuration management"""
    pass


@config.command()
@handle_error
def show():
    """Show current configuration"""
    settings = get_settings()

    click.echo("Current Configuration:\n")

    click.echo("Sync:")
    click.echo(f"   Folder: {settings.get_folder()}")
    click.echo(f"   Concurrency: {settings.sync.concurrency}")
    click.echo(f"   Cache TTL: {settings.sync.cache_ttl}s")
    click.echo(f"   Normalization: {settings.sync.normalization}")
    click.echo(f"   Playlist files: {settings.sync.playlist_format if settings.sync.playlist_files else 'disabled'}")

    click.echo("\nProviders:")
    click.echo(f"   Order: {', '.join(settings.providers.order)}")
    click.echo(f"   Score threshold: {settings.providers.score_threshold}")
    click.echo(f"   Duration tolerance: {settings.providers.duration_tolerance}s")

    click.echo("\nLyrics:")
    click.echo(f"   Enabled: {settings.lyrics.enabled}")
    click.echo(f"   Sources: {', '.join(settings.lyrics.sources)}")
    click.echo(f"   Genius API key: {'set' if settings.lyrics.genius_api_key else 'missing'}")

    click.echo("\nStorage:")
    click.echo(f"   Cache: {settings.get_cache_directory()}")
    click.echo(f"   Token: {settings.get_token_cache_path()}")

    if settings.aliases:
        click.echo("\nAliases:")
        for name, uri in sorted(settings.aliases.items()):
            click.echo(f"   {name}: {uri}")

    problems = settings.validate()
    if problems:
        click.echo("\nProblems:")
        for problem in problems:
            click.echo(click.style(f"   {problem}", fg='yellow'))


if __name__ == '__main__':
    cli()

# spotsync/utils/__init__.py
"""
Utilities package
Common helpers, logging, and utility functions
"""

from .logger import (
    get_logger,
    configure_from_settings,
    setup_logging,
    OperationLogger,
    create_operation_logger,
    log_performance,
    get_current_log_file
)
from .helpers import (
    sanitize_filename,
    slugify,
    filename_signature,
    format_duration,
    calculate_similarity,
    normalize_artist_name,
    normalize_track_title,
    create_search_query,
    parse_duration_string,
    clean_lyrics_text,
    validate_lyrics_content,
    is_valid_url,
    url_domain,
    ensure_directory,
    atomic_write_text,
    delete_wildcards
)

__all__ = [
    # Logger exports
    'get_logger',
    'configure_from_settings',
    'setup_logging',
    'OperationLogger',
    'create_operation_logger',
    'log_performance',
    'get_current_log_file',

    # Helper exports
    'sanitize_filename',
    'slugify',
    'filename_signature',
    'format_duration',
    'calculate_similarity',
    'normalize_artist_name',
    'normalize_track_title',
    'create_search_query',
    'parse_duration_string',
    'clean_lyrics_text',
    'validate_lyrics_content',
    'is_valid_url',
    'url_domain',
    'ensure_directory',
    'atomic_write_text',
    'delete_wildcards',
]

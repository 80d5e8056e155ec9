"""
Utility functions and helpers for spotsync
Common functions for filenames, string matching, text cleanup and small file operations
"""

import os
import re
import unicodedata
from pathlib import Path
from typing import Iterable, List, Optional, Union
from urllib.parse import urlparse


def sanitize_filename(filename: str, max_length: int = 200, replace_spaces: bool = False) -> str:
    """
    Sanitize filename for cross-platform compatibility

    Args:
        filename: Original filename
        max_length: Maximum filename length
        replace_spaces: Whether to replace spaces with underscores

    Returns:
        Sanitized filename
    """
    if not filename:
        return "unknown"

    filename = filename.strip()

    # Remove wrapping quotes
    while filename and filename[0] in ['"', "'"]:
        filename = filename[1:]
    while filename and filename[-1] in ['"', "'"]:
        filename = filename[:-1]

    filename = filename.strip()
    if not filename:
        return "unknown"

    filename = unicodedata.normalize('NFKC', filename)

    # Characters not allowed in Windows filenames plus control characters
    invalid_chars = r'[<>:"/\\|?*\x00-\x1f\x7f-\x9f]'
    filename = re.sub(invalid_chars, '', filename)

    # Emoji and other symbols that break some filesystems
    filename = re.sub(r"[^\w\s\-_.,()[\]{}!@#$%^&+='’]", '', filename, flags=re.UNICODE)

    filename = re.sub(r'\s+', ' ', filename)

    if replace_spaces:
        filename = filename.replace(' ', '_')

    filename = filename.strip(' .')

    reserved_names = {
        'CON', 'PRN', 'AUX', 'NUL',
        'COM1', 'COM2', 'COM3', 'COM4', 'COM5', 'COM6', 'COM7', 'COM8', 'COM9',
        'LPT1', 'LPT2', 'LPT3', 'LPT4', 'LPT5', 'LPT6', 'LPT7', 'LPT8', 'LPT9'
    }
    name_part = filename.split('.')[0].upper() if '.' in filename else filename.upper()
    if name_part in reserved_names:
        filename = f"_{filename}"

    if len(filename) > max_length:
        filename = filename[:max_length].rstrip(' .')

    if not filename or filename in ['.', '..']:
        filename = "unknown"

    return filename


def slugify(text: str, max_length: int = 100) -> str:
    """
    Turn a free-form name into a lowercase, dash separated slug

    Used for playlist export filenames so that "Summer Hits '24" becomes
    "summer-hits-24".

    Args:
        text: Original text
        max_length: Maximum slug length

    Returns:
        Slug string ("playlist" when nothing usable remains)
    """
    normalized = unicodedata.normalize('NFKD', text or '')
    normalized = normalized.encode('ascii', 'ignore').decode('ascii').lower()
    slug = re.sub(r'[^a-z0-9]+', '-', normalized).strip('-')
    slug = slug[:max_length].rstrip('-')
    return slug or "playlist"


def filename_signature(filename: str) -> str:
    """
    Fuzzy signature of a track filename

    The extension is dropped, accents and case are folded and the remaining
    alphanumeric tokens are sorted, so "Artist - Title.mp3", "artist_title.MP3"
    and "Title - Artist.mp3" share one signature.

    Args:
        filename: File name (with or without directory and extension)

    Returns:
        Space separated, sorted token string
    """
    stem = Path(filename).stem if Path(filename).suffix else Path(filename).name
    folded = unicodedata.normalize('NFKD', stem)
    folded = ''.join(c for c in folded if not unicodedata.combining(c)).lower()
    tokens = re.findall(r'[^\W_]+', folded, flags=re.UNICODE)
    return ' '.join(sorted(tokens))


def format_duration(seconds: Union[int, float]) -> str:
    """
    Format duration in seconds to human-readable string

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted duration string
    """
    if seconds < 0:
        return "0:00"

    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = int(seconds % 60)

    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def calculate_similarity(str1: str, str2: str) -> float:
    """
    Calculate string similarity using Levenshtein distance

    Args:
        str1: First string
        str2: Second string

    Returns:
        Similarity score between 0.0 and 1.0
    """
    if not str1 and not str2:
        return 1.0
    if not str1 or not str2:
        return 0.0

    s1 = str1.lower().strip()
    s2 = str2.lower().strip()

    if s1 == s2:
        return 1.0

    len1, len2 = len(s1), len(s2)

    # Two-row Levenshtein
    previous = list(range(len2 + 1))
    for i in range(1, len1 + 1):
        current = [i] + [0] * len2
        for j in range(1, len2 + 1):
            cost = 0 if s1[i - 1] == s2[j - 1] else 1
            current[j] = min(
                previous[j] + 1,         # deletion
                current[j - 1] + 1,      # insertion
                previous[j - 1] + cost   # substitution
            )
        previous = current

    max_len = max(len1, len2)
    similarity = 1 - (previous[len2] / max_len)
    return max(0.0, similarity)


def normalize_artist_name(artist: str) -> str:
    """
    Normalize artist name for better matching

    Args:
        artist: Original artist name

    Returns:
        Normalized artist name
    """
    normalized = artist.lower()

    for prefix in ['the ', 'a ', 'an ']:
        if normalized.startswith(prefix):
            normalized = normalized[len(prefix):]

    feat_patterns = [
        r'\s*\(feat\.?.*?\)',
        r'\s*\(ft\.?.*?\)',
        r'\s*\bfeat\b\.?.*',
        r'\s*\bft\b\.?.*',
        r'\s*\bfeaturing\b.*',
        r'\s+\bwith\b\s.*'
    ]
    for pattern in feat_patterns:
        normalized = re.sub(pattern, '', normalized, flags=re.IGNORECASE)

    return re.sub(r'\s+', ' ', normalized).strip()


def normalize_track_title(title: str) -> str:
    """
    Normalize track title for better matching

    Args:
        title: Original track title

    Returns:
        Normalized track title
    """
    normalized = title.lower()

    version_patterns = [
        r'\s*[\(\[].*?version.*?[\)\]]',
        r'\s*[\(\[].*?mix.*?[\)\]]',
        r'\s*[\(\[].*?edit.*?[\)\]]',
        r'\s*[\(\[].*?remaster.*?[\)\]]',
        r'\s+-\s+.*remaster.*$',
    ]
    for pattern in version_patterns:
        normalized = re.sub(pattern, '', normalized, flags=re.IGNORECASE)

    feat_patterns = [
        r'\s*\(feat\.?.*?\)',
        r'\s*\(ft\.?.*?\)',
        r'\s*\bfeat\b\.?.*',
        r'\s*\bft\b\.?.*',
        r'\s*\bfeaturing\b.*'
    ]
    for pattern in feat_patterns:
        normalized = re.sub(pattern, '', normalized, flags=re.IGNORECASE)

    return re.sub(r'\s+', ' ', normalized).strip()


def create_search_query(artist: str, title: str, include_official: bool = True) -> List[str]:
    """
    Create provider search queries for a track

    Args:
        artist: Artist name
        title: Track title
        include_official: Whether to include "official audio" in queries

    Returns:
        List of search queries in order of preference
    """
    norm_artist = normalize_artist_name(artist)
    norm_title = normalize_track_title(title)

    queries = [f"{norm_artist} - {norm_title}"]
    if include_official:
        queries.append(f"{norm_artist} - {norm_title} official audio")
    queries.append(f"{norm_artist} {norm_title}")
    queries.append(f"{artist.strip()} {title.strip()}")

    # Drop duplicates, keep order
    return list(dict.fromkeys(queries))


def parse_duration_string(duration_str: str) -> Optional[int]:
    """
    Parse duration string to seconds

    Args:
        duration_str: Duration string (e.g., "3:45", "1:23:45")

    Returns:
        Duration in seconds or None if invalid
    """
    try:
        parts = duration_str.split(':')
        if len(parts) == 2:
            minutes, seconds = map(int, parts)
            return minutes * 60 + seconds
        elif len(parts) == 3:
            hours, minutes, seconds = map(int, parts)
            return hours * 3600 + minutes * 60 + seconds
        return None
    except (AttributeError, ValueError):
        return None


def clean_lyrics_text(lyrics: str) -> str:
    """
    Clean lyrics text by removing section headers and provider boilerplate

    Args:
        lyrics: Raw lyrics text

    Returns:
        Cleaned lyrics text
    """
    if not lyrics:
        return ""

    cleaned = re.sub(r'\[.*?\]', '', lyrics)
    # Genius appends "123Embed" to the last line
    cleaned = re.sub(r'\d*Embed\s*$', '', cleaned.strip())
    # and prefixes "<n> Contributors<Title> Lyrics" to the first one
    cleaned = re.sub(r'^\d+\s+Contributors.*?Lyrics', '', cleaned)

    lines = [line.strip() for line in cleaned.split('\n')]
    return '\n'.join(line for line in lines if line)


def validate_lyrics_content(lyrics: str, min_length: int = 50) -> bool:
    """
    Validate if lyrics content is meaningful

    Args:
        lyrics: Lyrics text to validate
        min_length: Minimum length for valid lyrics

    Returns:
        True if lyrics are valid
    """
    if not lyrics or len(lyrics) < min_length:
        return False

    no_lyrics_indicators = [
        '[instrumental]',
        'no lyrics',
        'lyrics not available',
        'sorry, no lyrics'
    ]
    lyrics_lower = lyrics.lower()
    if any(indicator in lyrics_lower for indicator in no_lyrics_indicators):
        return False

    # Mostly non-text characters
    text_chars = sum(1 for c in lyrics if c.isalnum() or c.isspace())
    return text_chars / len(lyrics) >= 0.7


def is_valid_url(url: str) -> bool:
    """
    Check if string is a valid URL

    Args:
        url: URL string to validate

    Returns:
        True if valid URL
    """
    try:
        result = urlparse(url)
        return all([result.scheme, result.netloc])
    except (AttributeError, ValueError):
        return False


def url_domain(url: str) -> str:
    """
    Host part of a URL without a leading "www."

    Args:
        url: URL string

    Returns:
        Lower-case host name, empty string when the URL has none
    """
    try:
        host = (urlparse(url).hostname or '').lower()
    except ValueError:
        return ''
    return host[4:] if host.startswith('www.') else host


def ensure_directory(path: Union[str, Path]) -> Path:
    """
    Ensure directory exists, create if necessary

    Args:
        path: Directory path

    Returns:
        Path object
    """
    path_obj = Path(path).expanduser()
    path_obj.mkdir(parents=True, exist_ok=True)
    return path_obj


def atomic_write_text(path: Union[str, Path], content: str) -> None:
    """
    Write text through a sibling temporary file and os.replace

    Args:
        path: Destination file
        content: Text to write

    Raises:
        OSError: If the file cannot be written
    """
    path = Path(path)
    tmp_path = path.with_name(f".{path.name}.tmp")
    try:
        with open(tmp_path, 'w', encoding='utf-8') as f:
            f.write(content)
        os.replace(tmp_path, path)
    finally:
        if tmp_path.exists():
            tmp_path.unlink()


def delete_wildcards(folder: Union[str, Path], patterns: Iterable[str]) -> int:
    """
    Delete files in folder matching any of the glob patterns

    Args:
        folder: Directory to clean (not recursive)
        patterns: Glob patterns such as ".*.part.mp3"

    Returns:
        Number of removed files
    """
    removed = 0
    folder = Path(folder)
    seen = set()
    for pattern in patterns:
        for path in folder.glob(pattern):
            if path in seen or not path.is_file():
                continue
            seen.add(path)
            try:
                path.unlink()
                removed += 1
            except FileNotFoundError:
                continue
    return removed

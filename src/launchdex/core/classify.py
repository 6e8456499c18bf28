"""
Launchdex Query Classification

Decides whether the trimmed input is itself something navigable, a URL
or a filesystem path, and turns it into synthetic results the conductor
injects ahead of provider results.

Order of checks:

1. whole-string link detection (explicit scheme kept, else ``https://``)
2. contains a dot and no whitespace: implicit ``https://`` URL
3. path-like input: directory listing, single file, or prefix filter
   over the parent directory's listing
"""

import logging
import os
import re
from typing import List, Optional

from launchdex.core.models import FileSystemEntry, SearchResult, UrlTarget

logger = logging.getLogger(__name__)

_SCHEME_PREFIX = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]*:")
_SCHEME_URL = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]*://[^\s/?#]+[^\s]*$")
_MAILTO = re.compile(r"^mailto:[^\s@]+@[^\s@]+$", re.IGNORECASE)
_EMAIL = re.compile(r"^[^\s@/]+@[^\s@/]+\.[a-zA-Z]{2,}$")
_BARE_HOST = re.compile(
    r"^(?:[a-zA-Z0-9](?:[a-zA-Z0-9\-]*[a-zA-Z0-9])?\.)+[a-zA-Z]{2,63}"
    r"(?::\d{1,5})?(?:[/?#][^\s]*)?$"
)
_PATH_ANCHORS = ("/", "~", ".")


def detect_link(text: str) -> Optional[str]:
    """
    Return a URL when the *entire* string is recognizable as a link.

    Explicit-scheme links are returned unchanged; bare hosts get
    ``https://`` and bare e-mail addresses get ``mailto:``.
    """
    if not text or any(ch.isspace() for ch in text):
        return None
    if _SCHEME_URL.match(text) or _MAILTO.match(text):
        return text
    if _EMAIL.match(text):
        return "mailto:" + text
    if _BARE_HOST.match(text):
        return "https://" + text
    return None


def resolve_url(text: str) -> Optional[str]:
    """URL for *text* per checks 1 and 2, or None."""
    if not text:
        return None
    link = detect_link(text)
    if link:
        return link
    if "." in text and not any(ch.isspace() for ch in text) and not text.startswith(_PATH_ANCHORS):
        if _SCHEME_PREFIX.match(text):
            return text
        return "https://" + text
    return None


def looks_like_path(text: str) -> bool:
    if not text:
        return False
    if not (text.startswith(_PATH_ANCHORS) or "/" in text):
        return False
    return not _SCHEME_PREFIX.match(text)


def expand_path(text: str, home_dir: str) -> str:
    """Expand ``~`` and resolve relative input against *home_dir*."""
    if text == "~" or text.startswith("~/"):
        text = home_dir + text[1:]
    elif not os.path.isabs(text):
        text = os.path.join(home_dir, text)
    return os.path.normpath(text)


def _entry_for(path: str) -> FileSystemEntry:
    return FileSystemEntry(path=path, is_directory=os.path.isdir(path))


def list_directory(directory: str, prefix: str = "", limit: int = 200) -> List[FileSystemEntry]:
    """
    Children of *directory*, directories first then case-insensitive name.

    Hidden entries are skipped unless *prefix* itself starts with a dot.
    Only names starting with *prefix* (case-insensitive) are kept.
    """
    prefix_lower = prefix.lower()
    show_hidden = prefix.startswith(".")
    try:
        names = os.listdir(directory)
    except OSError as e:
        logger.debug(f"Cannot list {directory}: {e}")
        return []

    entries = []
    for name in names:
        if name.startswith(".") and not show_hidden:
            continue
        if prefix_lower and not name.lower().startswith(prefix_lower):
            continue
        entries.append(_entry_for(os.path.join(directory, name)))

    entries.sort(key=lambda e: (not e.is_directory, os.path.basename(e.path).lower()))
    return entries[:limit]


def filesystem_results(text: str, home_dir: str, limit: int = 200) -> List[FileSystemEntry]:
    """Results for path-like input; ``[]`` when nothing on disk matches."""
    if not looks_like_path(text):
        return []
    path = expand_path(text, home_dir)

    if os.path.isdir(path):
        return list_directory(path, limit=limit)
    if os.path.isfile(path):
        return [FileSystemEntry(path=path, is_directory=False)]

    parent, partial = os.path.split(path)
    if partial and os.path.isdir(parent):
        return list_directory(parent, prefix=partial, limit=limit)
    return []


def classify(text: str, home_dir: str, max_entries: int = 200) -> List[SearchResult]:
    """Synthetic URL/path results for the trimmed query *text*."""
    url = resolve_url(text)
    if url:
        return [UrlTarget(url=url)]
    return list(filesystem_results(text, home_dir, max_entries))

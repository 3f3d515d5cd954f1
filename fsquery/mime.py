import logging
import mimetypes
from pathlib import Path
from typing import Optional

import filetype

logger = logging.getLogger(__name__)

SNIFF_BYTES = 8192

# Extensions the platform registry often lacks or maps inconsistently
_EXTRA_TYPES = {
    '.log': 'text/plain',
    '.md': 'text/markdown',
    '.ts': 'application/typescript',
    '.tsx': 'application/typescript',
    '.sh': 'application/x-sh',
    '.yaml': 'application/yaml',
    '.yml': 'application/yaml',
    '.toml': 'application/toml',
    '.csv': 'text/csv',
    '.json': 'application/json',
}

# Structured-text types registered under application/ rather than text/
_TEXT_MARKERS = ('json', 'xml', 'yaml', 'toml')


def sniff_mime_type(file_path: str) -> Optional[str]:
    """Best-effort MIME detection for a regular file. Never raises."""
    try:
        with open(file_path, 'rb') as f:
            head = f.read(SNIFF_BYTES)
    except OSError as e:
        logger.debug(f"Could not read {file_path} for MIME detection: {e}")
        return None

    kind = filetype.guess(head) if head else None
    if kind is not None:
        return kind.mime

    suffix = Path(file_path).suffix.lower()
    guessed = _EXTRA_TYPES.get(suffix) or mimetypes.guess_type(file_path)[0]
    if guessed:
        return guessed

    if not head:
        return None
    if b'\x00' in head:
        return 'application/octet-stream'
    try:
        head.decode('utf-8')
    except UnicodeDecodeError as e:
        # A multi-byte sequence cut at the sniff boundary is still text
        if e.start < len(head) - 3:
            return 'application/octet-stream'
    return 'text/plain'


def is_searchable_text(mime_type: Optional[str]) -> bool:
    """Default allow-list for content search when no extensions are given."""
    if not mime_type:
        return False
    mime_type = mime_type.lower()
    if mime_type.startswith('text/'):
        return True
    return any(
        marker in mime_type
        for marker in _TEXT_MARKERS + ('javascript', 'typescript', 'shell', 'x-sh', 'csv')
    )


def looks_like_text(mime_type: Optional[str]) -> bool:
    """Looser check used when the caller restricted the extensions."""
    if not mime_type:
        return False
    mime_type = mime_type.lower()
    return mime_type.startswith('text/') or any(
        marker in mime_type for marker in _TEXT_MARKERS + ('script',)
    )

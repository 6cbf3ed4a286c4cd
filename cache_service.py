"""Filesystem caching for retrieved code snippets.

Stores one artifact per query:
  <key>.txt

The key is the URL-safe base64 encoding of the exact query text, so it is
filesystem safe and reversible. Queries whose encoding would be longer than
MAX_KEY_LENGTH fall back to a sha256 digest key. Entries carry no metadata,
are never evicted and only disappear when the directory is cleared.
"""

import base64
import binascii
import hashlib
import logging
import shutil
from pathlib import Path
from typing import Dict, List, Optional

import logger_service

MAX_KEY_LENGTH = 200
DIGEST_PREFIX = "sha256-"
SUFFIX = ".txt"


def encode_key(query: str) -> str:
    token = base64.urlsafe_b64encode(query.encode('utf-8')).decode('ascii')
    if len(token) > MAX_KEY_LENGTH:
        return DIGEST_PREFIX + hashlib.sha256(query.encode('utf-8')).hexdigest()
    return token


def decode_key(key: str) -> Optional[str]:
    """Recover the query behind a key, or None for digest keys."""
    if key.startswith(DIGEST_PREFIX):
        return None
    try:
        return base64.urlsafe_b64decode(key.encode('ascii')).decode('utf-8')
    except (binascii.Error, UnicodeError, ValueError):
        return None


def cache_path(cache_dir: Path, query: str) -> Path:
    return Path(cache_dir) / f"{encode_key(query)}{SUFFIX}"


class FileCacheStore:
    """One file per query under `cache_dir`. Reads fail soft to a miss."""

    def __init__(self, cache_dir: Path):
        self.cache_dir = Path(cache_dir)

    def get(self, query: str) -> Optional[str]:
        path = cache_path(self.cache_dir, query)
        if not path.is_file():
            return None
        try:
            return path.read_text(encoding='utf-8')
        except (OSError, UnicodeDecodeError):
            return None

    def set(self, query: str, text: str) -> None:
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            cache_path(self.cache_dir, query).write_text(text, encoding='utf-8')
        except OSError as e:
            logger_service.log_event("cache_write_failed", level=logging.WARNING, error=str(e))

    def keys(self) -> List[str]:
        if not self.cache_dir.is_dir():
            return []
        return sorted(p.name[:-len(SUFFIX)] for p in self.cache_dir.iterdir() if p.is_file() and p.name.endswith(SUFFIX))

    def clear(self) -> int:
        """Remove every entry. Best effort: a concurrent `set` may survive or be lost."""
        if not self.cache_dir.is_dir():
            return 0
        removed = 0
        for path in self.cache_dir.iterdir():
            try:
                if path.is_dir():
                    shutil.rmtree(path)
                else:
                    path.unlink()
                removed += 1
            except OSError:
                continue
        return removed


class MemoryCacheStore:
    """Dict-backed store with the same contract, for tests and dry runs."""

    def __init__(self, entries: Optional[Dict[str, str]] = None):
        self.entries: Dict[str, str] = dict(entries or {})

    def get(self, query: str) -> Optional[str]:
        return self.entries.get(query)

    def set(self, query: str, text: str) -> None:
        self.entries[query] = text

    def keys(self) -> List[str]:
        return sorted(encode_key(q) for q in self.entries)

    def clear(self) -> int:
        removed = len(self.entries)
        self.entries.clear()
        return removed

"""On-disk token cache.

The cache is a single JSON-serialised
:class:`~sptty.models.AccessTokenRecord`, normally at
``~/.cache/sptty/token`` (see :func:`sptty.config.token_cache_path`).
The path is always passed in explicitly so the cache can be pointed at a
temporary directory in tests.

Writes go through :func:`sptty.config.atomic_write` with ``0o600``
permissions, so a reader never sees a half-written file. There is no
locking: two processes refreshing at the same time can lose one of the
updates.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from sptty.config import atomic_write
from sptty.exceptions import CacheError
from sptty.models import AccessTokenRecord


class TokenCache:
    """Load and store the cached token record.

    Args:
        path: Location of the cache file.

    Example::

        cache = TokenCache(token_cache_path())
        record = cache.load()
        if record is None:
            ...  # not authenticated yet
    """

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        """The filesystem path of the cache file."""
        return self._path

    def load(self) -> Optional[AccessTokenRecord]:
        """Read the cached record.

        Returns:
            The record, or ``None`` if the file does not exist.

        Raises:
            CacheError: If the file exists but cannot be read or parsed.
        """
        if not self._path.is_file():
            return None
        try:
            text = self._path.read_text(encoding="utf-8")
            return AccessTokenRecord.model_validate_json(text)
        except (OSError, ValidationError) as exc:
            raise CacheError(f"Invalid token cache at {self._path}: {exc}") from exc

    def store(self, record: AccessTokenRecord) -> None:
        """Persist *record*, creating the parent directory if needed.

        Raises:
            CacheError: If the file cannot be written.
        """
        data = record.model_dump(mode="json")
        try:
            atomic_write(self._path, json.dumps(data, indent=2) + "\n", mode=0o600)
        except OSError as exc:
            raise CacheError(f"Cannot write token cache at {self._path}: {exc}") from exc

    def clear(self) -> None:
        """Delete the cache file. A no-op when it is already gone."""
        try:
            self._path.unlink(missing_ok=True)
        except OSError as exc:
            raise CacheError(f"Cannot remove token cache at {self._path}: {exc}") from exc

"""On-disk content-addressed cache.

Used to skip recompressing images that were already processed with the
same parameters. Layout:

    <directory>/<key[:2]>/<key>

Each entry holds the md5 of its payload on the first line followed by the
payload. Entries are written atomically, so concurrent writers of the same
key never produce a torn file; an entry whose checksum does not match is
reported and treated as a miss.
"""

import json
import logging
import shutil
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from .exceptions import CacheError
from .fileutil import atomic_write, get_md5

logger = logging.getLogger(__name__)


class ContentCache:
    """Key/value store of bytes on disk.

    Example:
        cache = ContentCache('.frontbuild-cache')
        key = cache.key('img/logo.png', data, {'png_colors': 256})
        if cache.get(key) is None:
            cache.put(key, compress(data))
    """

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)

    @staticmethod
    def key(path: str, contents: bytes, params: Mapping[str, Any]) -> str:
        """Cache key for (file path, content hash, transform parameters)."""
        parts = [path, get_md5(contents), json.dumps(params, sort_keys=True, default=str)]
        return get_md5('\0'.join(parts).encode('utf-8'))

    def _entry(self, key: str) -> Path:
        return self.directory / key[:2] / key

    def get(self, key: str) -> Optional[bytes]:
        """Return the cached bytes, or None on a miss.

        Unreadable or corrupt entries count as misses.
        """
        try:
            return self._read(key)
        except FileNotFoundError:
            return None
        except (OSError, CacheError) as e:
            logger.warning("Ignoring cache entry %s: %s", key, e)
            return None

    def _read(self, key: str) -> bytes:
        raw = self._entry(key).read_bytes()
        header, sep, payload = raw.partition(b'\n')
        if not sep or header != get_md5(payload).encode('ascii'):
            raise CacheError(f"checksum mismatch in {self._entry(key)}")
        return payload

    def put(self, key: str, data: bytes) -> None:
        """Store data under key, replacing any previous entry."""
        atomic_write(self._entry(key), get_md5(data).encode('ascii') + b'\n' + data)

    def clear(self) -> int:
        """Remove every entry. Returns the number of entries removed."""
        if not self.directory.exists():
            return 0
        count = len(self)
        shutil.rmtree(self.directory)
        logger.info("Cleared %d cache entries from %s", count, self.directory)
        return count

    def __contains__(self, key: str) -> bool:
        return self._entry(key).is_file()

    def __len__(self) -> int:
        if not self.directory.exists():
            return 0
        return sum(1 for p in self.directory.glob('*/*')
                   if p.is_file() and not p.name.startswith('.'))

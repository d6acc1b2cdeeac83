"""Small file helpers shared by the pipeline and the cache."""

import hashlib
import os
import tempfile
from pathlib import Path
from typing import Union


def get_md5(data: bytes) -> str:
    """Return the md5 hex digest of data."""
    return hashlib.md5(data).hexdigest()


def atomic_write(path: Union[str, Path], data: bytes) -> None:
    """Write data to path so readers never see a partial file.

    Data goes to a temp file in the same directory which then replaces
    the target in one rename.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f'.{path.name}.', suffix='.tmp')
    try:
        with os.fdopen(fd, 'wb') as f:
            f.write(data)
        os.replace(tmp, path)
    except BaseException:
        try:
            os.unlink(tmp)
        except OSError:
            pass
        raise

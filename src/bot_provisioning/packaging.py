"""Deployment package builder.

Zips a local bot folder into the opaque bytes pushed to the zip-deploy
endpoint. Output is deterministic: entries are sorted and stamped with a
fixed timestamp, so the same tree always produces the same digest.
"""

from __future__ import annotations

import fnmatch
import hashlib
import io
import zipfile
from pathlib import Path
from typing import Iterable, Iterator

from .errors import PackagingError

DEFAULT_IGNORES = (
    '.git',
    '.git/*',
    'node_modules',
    'node_modules/*',
    '__pycache__',
    '*/__pycache__/*',
    '*.pyc',
    '.env',
    '.DS_Store',
)

_FIXED_TIMESTAMP = (1980, 1, 1, 0, 0, 0)


def zip_folder(root: Path, ignore: Iterable[str] = DEFAULT_IGNORES) -> bytes:
    """Zip every file under *root*, skipping paths matching *ignore*.

    Patterns are matched with :mod:`fnmatch` against POSIX paths relative
    to *root* and against each path component.

    Raises:
        PackagingError: If *root* is missing, not a directory, or contains
            no files after filtering.
    """
    root = Path(root)
    if not root.is_dir():
        raise PackagingError(f'Deployment folder not found: {root}')

    patterns = tuple(ignore)
    files = sorted(_iter_files(root, patterns))
    if not files:
        raise PackagingError(f'Deployment folder is empty: {root}')

    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, 'w', compression=zipfile.ZIP_DEFLATED) as archive:
        for relative in files:
            info = zipfile.ZipInfo(relative, date_time=_FIXED_TIMESTAMP)
            info.compress_type = zipfile.ZIP_DEFLATED
            info.external_attr = 0o644 << 16
            archive.writestr(info, (root / relative).read_bytes())
    return buffer.getvalue()


def package_digest(data: bytes) -> str:
    """SHA-256 hex digest of a built package."""
    return hashlib.sha256(data).hexdigest()


def _iter_files(root: Path, patterns: tuple[str, ...]) -> Iterator[str]:
    for path in root.rglob('*'):
        if not path.is_file():
            continue
        relative = path.relative_to(root).as_posix()
        if _is_ignored(relative, patterns):
            continue
        yield relative


def _is_ignored(relative: str, patterns: tuple[str, ...]) -> bool:
    parts = relative.split('/')
    for pattern in patterns:
        if fnmatch.fnmatch(relative, pattern):
            return True
        if any(fnmatch.fnmatch(part, pattern) for part in parts):
            return True
    return False

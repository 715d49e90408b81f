"""Document discovery: recursive markdown walk following symlinks."""

from __future__ import annotations

import os
from pathlib import Path

from utils.errors import DiscoveryError

MARKDOWN_SUFFIX = ".md"


def discover_documents(root: str | Path) -> list[Path]:
    """Return every ``*.md`` file below ``root`` in a stable order.

    Unreadable subdirectories are skipped; only a missing or non-directory
    root is an error.
    """
    base = Path(root).expanduser()
    if not base.is_dir():
        raise DiscoveryError(f"documents directory not found: {base}")

    documents: list[Path] = []
    # real paths of each walked directory and its ancestors
    lineage: dict[str, tuple[str, ...]] = {}
    for dirpath, dirnames, filenames in os.walk(base, followlinks=True):
        real = os.path.realpath(dirpath)
        ancestors = lineage.get(os.path.dirname(dirpath), ())
        if real in ancestors:
            # symlink cycle
            dirnames.clear()
            continue
        lineage[dirpath] = (*ancestors, real)
        dirnames.sort()
        for filename in sorted(filenames):
            if filename.endswith(MARKDOWN_SUFFIX):
                documents.append(Path(dirpath) / filename)
    return documents

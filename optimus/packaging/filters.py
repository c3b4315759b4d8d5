"""Inclusion filter for archive entries.

Pure predicate: no filesystem access, so the caller says whether the
candidate is a directory.

Matching rules, in order:
  1. Any exclusion entry occurring as a substring of the path excludes it.
     This is containment on the whole string, not a segment match, so
     "target" also drops "src/retargeting.py".
  2. The root itself ("" or ".") is never an entry.
  3. For formats with an allow-list, files must end with an allowed suffix.
     Directories skip this check so the tree structure survives.
  4. Everything else is included.
"""

from typing import Iterable

from optimus.packaging.types import ArchiveFormat

_ROOT_MARKERS = ("", ".", "./")


def is_excluded(relative_path: str, exclusions: Iterable[str]) -> bool:
    """True if any exclusion entry occurs anywhere in the path string."""
    return any(entry in relative_path for entry in exclusions)


def matches_format(relative_path: str, archive_format: ArchiveFormat) -> bool:
    suffixes = archive_format.allowed_suffixes
    if suffixes is None:
        return True
    return relative_path.endswith(suffixes)


def should_include(
    relative_path: str,
    exclusions: Iterable[str],
    archive_format: ArchiveFormat,
    is_dir: bool = False,
) -> bool:
    """Decide whether an entry relative to the archive root is archived."""
    if is_excluded(relative_path, exclusions):
        return False

    if relative_path in _ROOT_MARKERS:
        return False

    if not is_dir and not matches_format(relative_path, archive_format):
        return False

    return True

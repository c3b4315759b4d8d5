"""Archive bundler — packs a working directory into a single zip.

Walks the tree under root, filters every entry through
`optimus.packaging.filters.should_include`, and writes:
- one deflated entry per regular file, named by its POSIX relative path
- one zero-length "name/" entry per directory, so empty dirs survive

The destination is deterministic ({tempdir}/{root-name}.zip by default)
and any stale file there is removed before writing starts.
"""

import logging
import os
import tempfile
import zipfile
from pathlib import Path
from typing import Iterable, Optional

from optimus.core.errors import ArchiveIOError
from optimus.packaging.filters import is_excluded, should_include
from optimus.packaging.types import (
    ARCHIVE_EXTENSION,
    SECRET_FILENAMES,
    ArchiveArtifact,
    ArchiveFormat,
)

logger = logging.getLogger(__name__)


def default_archive_path(root: Path, scratch_dir: Optional[Path] = None) -> Path:
    """Return {scratch_dir}/{root-name}.zip, scratch_dir defaulting to the temp dir."""
    name = Path(root).resolve().name or "archive"
    base = Path(scratch_dir) if scratch_dir is not None else Path(tempfile.gettempdir())
    return base / f"{name}{ARCHIVE_EXTENSION}"


def remove_stale_archive(destination: Path) -> None:
    """Delete a leftover archive from a previous run, if any."""
    if not destination.exists():
        return
    try:
        destination.unlink()
    except OSError as exc:
        raise ArchiveIOError(
            f"Cannot remove existing archive {destination}: {exc}", str(destination)
        ) from exc
    logger.info("Removed stale archive %s", destination)


def build_archive(
    root: Path,
    archive_format: ArchiveFormat,
    exclusions: Iterable[str],
    compression_level: int,
    destination: Optional[Path] = None,
    config_path: Optional[Path] = None,
) -> ArchiveArtifact:
    """Build the submission archive for root.

    Args:
        root: Directory to archive. Becomes the implicit top level.
        archive_format: Decides which files are eligible.
        exclusions: Substrings; any path containing one is skipped.
        compression_level: 0 (stored) to 9 (best).
        destination: Output path. Defaults to default_archive_path(root).
        config_path: The configuration file in use. Skipped whatever its
            name, as are submission.yml and .env anywhere in the tree.

    Raises:
        ArchiveIOError: If root cannot be read, a file cannot be opened,
            or the destination cannot be written.
    """
    root = Path(root).resolve()
    if not root.is_dir():
        raise ArchiveIOError(f"Cannot archive {root}: not a readable directory", str(root))

    exclusions = tuple(exclusions)
    destination = Path(destination) if destination is not None else default_archive_path(root)
    destination = destination.resolve()

    skipped_config = Path(config_path).resolve() if config_path is not None else None

    remove_stale_archive(destination)

    compression = zipfile.ZIP_STORED if compression_level == 0 else zipfile.ZIP_DEFLATED

    logger.info(
        "Building %s archive of %s (level %d) -> %s",
        archive_format.label, root, compression_level, destination,
    )

    artifact = ArchiveArtifact(path=destination, archive_format=archive_format)

    try:
        with zipfile.ZipFile(
            destination,
            mode="w",
            compression=compression,
            compresslevel=None if compression_level == 0 else compression_level,
        ) as archive:
            for path, relative, is_dir in _walk(root, exclusions):
                if path == destination:
                    continue
                if not is_dir and (path.name in SECRET_FILENAMES or path == skipped_config):
                    continue
                if not should_include(relative, exclusions, archive_format, is_dir=is_dir):
                    continue

                if is_dir:
                    info = zipfile.ZipInfo.from_file(path, relative)
                    archive.writestr(info, b"")
                    artifact.directory_count += 1
                else:
                    archive.write(path, relative)
                    artifact.file_count += 1
    except ArchiveIOError:
        raise
    except OSError as exc:
        raise ArchiveIOError(
            f"Failed to build archive {destination}: {exc}",
            getattr(exc, "filename", None) or str(destination),
        ) from exc

    artifact.size_bytes = destination.stat().st_size
    logger.info(
        "Archive complete: %d files, %d directories, %d bytes",
        artifact.file_count, artifact.directory_count, artifact.size_bytes,
    )
    return artifact


def _walk(root: Path, exclusions: tuple[str, ...]):
    """Yield (path, posix_relative_path, is_dir) for everything under root.

    Sorted for deterministic archives. An excluded directory is yielded
    once but not descended into: every path below it contains the same
    substring, so nothing inside could be included anyway.
    """

    def _raise(exc: OSError) -> None:
        raise ArchiveIOError(
            f"Cannot read {exc.filename}: {exc.strerror or exc}", exc.filename
        ) from exc

    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise):
        current = Path(dirpath)
        kept: list[str] = []
        for name in sorted(dirnames):
            path = current / name
            relative = path.relative_to(root).as_posix()
            yield path, relative, True
            if not is_excluded(relative, exclusions):
                kept.append(name)
        dirnames[:] = kept
        for name in sorted(filenames):
            path = current / name
            yield path, path.relative_to(root).as_posix(), False

"""Packaging module for building and uploading the submission archive.

Public API:
    build_archive(root, archive_format, exclusions, compression_level) -> ArchiveArtifact
    upload_archive(artifact, api_key, server_url, competition_id) -> UploadResult
"""

from optimus.packaging.bundler import build_archive
from optimus.packaging.uploader import upload_archive

__all__ = ["build_archive", "upload_archive"]

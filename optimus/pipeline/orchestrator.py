"""Submission orchestrator — drives one `optimus send` run.

State machine:
  RESOLVING_CONFIG
    ├─ forced format (--format) ........... skip /check
    ├─ format in submission.yml ........... skip /check
    └─ otherwise ......................... CHECKING_ELIGIBILITY
  CHECKING_ELIGIBILITY
    └─ not approved ...................... ABORTED (nothing built, nothing sent)
  AWAITING_CONFIRMATION (unless auto-confirm is forced or configured)
    └─ declined .......................... ABORTED
  BUILDING_ARCHIVE -> UPLOADING -> DONE

Every OptimusError raised along the way is fatal and propagates to the
caller untouched. ABORTED is a clean early exit, not an error.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

import structlog

from optimus.core.config import CliOverrides, SubmissionConfig, resolve_target
from optimus.core.logging import new_run_id
from optimus.eligibility.checker import check_eligibility
from optimus.eligibility.types import EligibilityDecision
from optimus.packaging.bundler import build_archive, default_archive_path
from optimus.packaging.types import (
    ArchiveArtifact,
    ArchiveFormat,
    UploadResult,
    build_exclusions,
)
from optimus.packaging.uploader import upload_archive

logger = structlog.get_logger(__name__)

ConfirmCallback = Callable[[str], bool]
ProgressCallback = Callable[[str], None]


class PipelineState(str, Enum):
    RESOLVING_CONFIG = "resolving_config"
    CHECKING_ELIGIBILITY = "checking_eligibility"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    BUILDING_ARCHIVE = "building_archive"
    UPLOADING = "uploading"
    DONE = "done"
    ABORTED = "aborted"


@dataclass
class SubmissionOutcome:
    """Terminal result of a run. state is always DONE or ABORTED."""

    state: PipelineState
    message: str
    run_id: str = ""
    archive_format: Optional[ArchiveFormat] = None
    decision: Optional[EligibilityDecision] = None
    artifact: Optional[ArchiveArtifact] = None
    upload: Optional[UploadResult] = None

    @property
    def is_aborted(self) -> bool:
        return self.state is PipelineState.ABORTED


def _decline(_prompt: str) -> bool:
    return False


def run_submission(
    root: Path,
    config: SubmissionConfig,
    overrides: CliOverrides,
    confirm: ConfirmCallback = _decline,
    on_progress: Optional[ProgressCallback] = None,
    fallback_api_key: str = "",
    dry_run: bool = False,
    scratch_dir: Optional[Path] = None,
    config_path: Optional[Path] = None,
    checker: Callable[..., EligibilityDecision] = check_eligibility,
    builder: Callable[..., ArchiveArtifact] = build_archive,
    uploader: Callable[..., UploadResult] = upload_archive,
) -> SubmissionOutcome:
    """Run the full check → confirm → build → upload sequence.

    Args:
        root: Directory to submit.
        config: Parsed submission.yml.
        overrides: Command-line values; they win over config.
        confirm: Asked once before anything is built. Defaults to declining.
        on_progress: Receives human-readable progress lines.
        fallback_api_key: Used when neither overrides nor config have a key.
        dry_run: Build the archive but skip the upload; the archive is kept.
        scratch_dir: Where the archive is written (default: system temp dir).
        config_path: The loaded configuration file; never archived.

    Raises:
        ConfigError, ArchiveIOError, NetworkError, ProtocolError,
        ServerRejected: all fatal for the run.
    """
    run_id = new_run_id()
    notify = on_progress or (lambda _msg: None)
    state = PipelineState.RESOLVING_CONFIG
    log = logger.bind(root=str(root))

    target = resolve_target(config, overrides, fallback_api_key)
    exclusions = build_exclusions([*config.exclude, *overrides.extra_exclusions])
    auto_confirm = overrides.auto_confirm or config.preferences.auto_confirm

    decision: Optional[EligibilityDecision] = None
    if overrides.forced_format:
        raw_format, source = overrides.forced_format, "--format"
    elif config.format is not None:
        raw_format, source = config.format, "submission.yml"
    else:
        state = PipelineState.CHECKING_ELIGIBILITY
        log.info("state", state=state.value)
        notify(f"Checking eligibility with {target.server_url} ...")
        decision = checker(target.server_url, target.api_key, target.competition_id)
        notify(
            f"Competition: {decision.competition_name or target.competition_id or 'default'} | "
            f"remaining attempts: {decision.remaining_attempts} | "
            f"last submission: {decision.describe_last_submission()} | "
            f"required format: {decision.required_format}"
        )

        if not decision.approved:
            log.info("not_approved", remaining=decision.remaining_attempts)
            return SubmissionOutcome(
                state=PipelineState.ABORTED,
                message=_not_approved_message(decision),
                run_id=run_id,
                decision=decision,
            )
        raw_format, source = decision.required_format, "server"

    archive_format = ArchiveFormat.parse(raw_format, source)
    log = log.bind(format=archive_format.value, format_source=source)
    notify(f"Using format '{archive_format.value}' ({archive_format.label}) from {source}.")

    if not auto_confirm:
        state = PipelineState.AWAITING_CONFIRMATION
        log.info("state", state=state.value)
        if not confirm(_confirmation_prompt(root, target.server_url, archive_format, decision)):
            log.info("declined")
            return SubmissionOutcome(
                state=PipelineState.ABORTED,
                message="Submission cancelled.",
                run_id=run_id,
                archive_format=archive_format,
                decision=decision,
            )

    state = PipelineState.BUILDING_ARCHIVE
    log.info("state", state=state.value)
    notify("Creating archive ...")
    artifact = builder(
        root,
        archive_format,
        exclusions,
        target.compression_level,
        destination=default_archive_path(root, scratch_dir),
        config_path=config_path,
    )
    notify(
        f"Archive ready: {artifact.filename} "
        f"({artifact.file_count} files, {artifact.size_bytes} bytes)."
    )

    if dry_run:
        return SubmissionOutcome(
            state=PipelineState.DONE,
            message=f"Dry run: archive left at {artifact.path}, nothing uploaded.",
            run_id=run_id,
            archive_format=archive_format,
            decision=decision,
            artifact=artifact,
        )

    state = PipelineState.UPLOADING
    log.info("state", state=state.value)
    notify(f"Uploading to {target.server_url} ...")
    upload = uploader(
        artifact,
        target.api_key,
        target.server_url,
        target.competition_id,
    )

    log.info("done", status=upload.status_code)
    return SubmissionOutcome(
        state=PipelineState.DONE,
        message=f"Submission accepted: {upload.message}",
        run_id=run_id,
        archive_format=archive_format,
        decision=decision,
        artifact=artifact,
        upload=upload,
    )


def _confirmation_prompt(
    root: Path,
    server_url: str,
    archive_format: ArchiveFormat,
    decision: Optional[EligibilityDecision],
) -> str:
    target_name = Path(root).resolve().name
    prompt = f"Submit '{target_name}' ({archive_format.label}) to {server_url}"
    if decision is not None:
        name = decision.competition_name or "the competition"
        prompt += f" for {name}; {decision.remaining_attempts} attempt(s) remaining"
    return prompt + "?"


def _not_approved_message(decision: EligibilityDecision) -> str:
    if decision.remaining_attempts == 0:
        return "Submission not approved by the server: no remaining attempts."
    return (
        "Submission not approved by the server "
        f"({decision.remaining_attempts} attempt(s) remaining)."
    )

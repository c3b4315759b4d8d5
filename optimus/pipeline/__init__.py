"""Pipeline module: sequences check, confirmation, build and upload."""

from optimus.pipeline.orchestrator import PipelineState, SubmissionOutcome, run_submission

__all__ = ["PipelineState", "SubmissionOutcome", "run_submission"]

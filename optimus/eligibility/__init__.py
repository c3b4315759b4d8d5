"""Eligibility module: the remote /check and /competitions calls."""

from optimus.eligibility.checker import check_eligibility, list_competitions
from optimus.eligibility.types import EligibilityDecision

__all__ = ["EligibilityDecision", "check_eligibility", "list_competitions"]

"""Types for the self-update module."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class ReleaseAsset(BaseModel):
    model_config = {"extra": "ignore"}

    name: str
    browser_download_url: str
    size: Optional[int] = None


class ReleaseInfo(BaseModel):
    """Subset of a GitHub "latest release" payload."""

    model_config = {"extra": "ignore"}

    tag_name: str
    name: Optional[str] = None
    html_url: Optional[str] = None
    assets: list[ReleaseAsset] = Field(default_factory=list)

    @property
    def version(self) -> str:
        return self.tag_name.lstrip("vV")


class InstallOutcome(str, Enum):
    EXECUTED = "executed"
    NEEDS_MANUAL_EXTRACTION = "needs_manual_extraction"
    UNSUPPORTED = "unsupported"

"""Self-update module: release feed lookup, download and installer dispatch."""

from optimus.update.feed import check_for_update, current_version, download_asset, select_asset
from optimus.update.installers import InstallerAction, installer_for
from optimus.update.types import InstallOutcome, ReleaseInfo

__all__ = [
    "InstallOutcome",
    "InstallerAction",
    "ReleaseInfo",
    "check_for_update",
    "current_version",
    "download_asset",
    "installer_for",
    "select_asset",
]

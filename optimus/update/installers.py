"""Installer actions for downloaded release assets.

installer_for() maps (file extension, host platform) to an action; callers
only ever see the InstallOutcome, never the raw filename checks.

  .sh              linux/darwin   bash <file>
  .pkg             darwin         installer -pkg <file> -target CurrentUserHomeDirectory
  .msi             win32          msiexec /i <file>
  .exe             win32          <file>
  .zip / .tar.gz   any            extract manually
  anything else                   unsupported
"""

import logging
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from optimus.core.errors import OptimusError
from optimus.update.types import InstallOutcome

logger = logging.getLogger(__name__)

INSTALL_TIMEOUT = 600


class InstallerError(OptimusError):
    """Raised when an installer command exits non-zero."""


class InstallerAction(ABC):
    """One way of installing a downloaded asset."""

    def __init__(self, path: Path):
        self.path = Path(path)

    @abstractmethod
    def run(self) -> InstallOutcome:
        ...

    def describe(self) -> str:
        return f"{type(self).__name__}({self.path.name})"


class _CommandInstaller(InstallerAction):
    @abstractmethod
    def command(self) -> list[str]:
        ...

    def run(self) -> InstallOutcome:
        cmd = self.command()
        logger.info("Running installer: %s", " ".join(cmd))
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=INSTALL_TIMEOUT,
            )
        except (OSError, subprocess.TimeoutExpired) as exc:
            raise InstallerError(f"Could not run installer {cmd[0]}: {exc}") from exc
        if result.returncode != 0:
            raise InstallerError(
                f"Installer failed (exit {result.returncode}): {result.stderr.strip()}"
            )
        return InstallOutcome.EXECUTED


class ScriptInstaller(_CommandInstaller):
    def command(self) -> list[str]:
        return ["bash", str(self.path)]


class PackageInstaller(_CommandInstaller):
    def command(self) -> list[str]:
        return ["installer", "-pkg", str(self.path), "-target", "CurrentUserHomeDirectory"]


class WindowsInstaller(_CommandInstaller):
    def command(self) -> list[str]:
        if self.path.suffix.lower() == ".msi":
            return ["msiexec", "/i", str(self.path)]
        return [str(self.path)]


class ArchiveInstaller(InstallerAction):
    def run(self) -> InstallOutcome:
        logger.info("%s must be extracted manually", self.path)
        return InstallOutcome.NEEDS_MANUAL_EXTRACTION


class UnsupportedInstaller(InstallerAction):
    def run(self) -> InstallOutcome:
        logger.warning("No installer for %s on this platform", self.path.name)
        return InstallOutcome.UNSUPPORTED


# (extension, platform) -> action; platform None matches any host
INSTALLER_REGISTRY: dict[tuple[str, Optional[str]], type[InstallerAction]] = {
    (".sh", "linux"): ScriptInstaller,
    (".sh", "darwin"): ScriptInstaller,
    (".pkg", "darwin"): PackageInstaller,
    (".msi", "win32"): WindowsInstaller,
    (".exe", "win32"): WindowsInstaller,
    (".zip", None): ArchiveInstaller,
    (".tar.gz", None): ArchiveInstaller,
    (".tgz", None): ArchiveInstaller,
}


def installer_for(path: Path, platform: str) -> InstallerAction:
    """Return the action for path on platform (a sys.platform value)."""
    key = "linux" if platform.startswith("linux") else platform
    name = Path(path).name.lower()

    for (extension, wanted_platform), action_cls in INSTALLER_REGISTRY.items():
        if name.endswith(extension) and wanted_platform in (key, None):
            return action_cls(path)
    return UnsupportedInstaller(path)

"""
1Password CLI installation.

If ``op --version`` works and reports a supported version nothing happens.
Otherwise the provisioning script is run once; the first line of its output
names the install directory, which is added to PATH for the rest of the job.
"""

import logging
import os
import re
import subprocess
import sys
from enum import Enum
from typing import Dict, Any, Optional, Tuple

import actions_core
from errors import ToolInstallError

logger = logging.getLogger("load-secrets.installer")

INSTALL_DIR_PREFIX = "::debug::OP_INSTALL_DIR: "
VERSION_PATTERN = re.compile(r'(\d+)\.(\d+)\.(\d+)')


class InstallStatus(Enum):
    ALREADY_INSTALLED = "already_installed"
    INSTALLED = "installed"


class InstallResult:
    """Outcome of ensuring the CLI is available"""

    def __init__(self, status: InstallStatus, path: str = None, version: str = None):
        self.status = status
        self.path = path
        self.version = version

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "path": self.path,
            "version": self.version,
        }


def parse_version(text: str) -> Optional[Tuple[int, int, int]]:
    match = VERSION_PATTERN.search(text or "")
    if not match:
        return None
    return tuple(int(part) for part in match.groups())


def parse_install_output(stdout: str) -> str:
    """
    Extract the install directory from the provisioning script's output

    The directory is the first output line, optionally prefixed by the
    ``::debug::OP_INSTALL_DIR: `` marker.

    Raises:
        ToolInstallError: If the line is missing or not an absolute path
    """
    lines = (stdout or "").split("\n")
    first_line = lines[0].strip() if lines else ""
    prefix = INSTALL_DIR_PREFIX.strip()
    if first_line.startswith(prefix):
        first_line = first_line[len(prefix):].strip()

    if not first_line:
        raise ToolInstallError("Install script produced no install directory")
    if not os.path.isabs(first_line):
        raise ToolInstallError(f"Install script produced an unusable install directory: {first_line}")
    return first_line


class CliInstaller:
    """Checks for the 1Password CLI and provisions it when missing"""

    def __init__(self, config: Dict[str, Any] = None):
        config = config or {}
        self.binary = config.get("binary", "op")
        self.min_version = str(config.get("min_version", "2.18.0"))
        self.install_script = config.get("install_script")
        self.install_timeout = int(config.get("install_timeout", 300))

    def validate_cli(self) -> str:
        """
        Check that a supported CLI is on PATH

        Returns:
            The installed version string

        Raises:
            ToolInstallError: If the CLI is missing, broken or too old
        """
        try:
            result = subprocess.run(
                [self.binary, '--version'],
                capture_output=True,
                text=True,
                check=True
            )
        except (OSError, subprocess.CalledProcessError) as e:
            raise ToolInstallError(f"1Password CLI not available: {e}") from e

        version = result.stdout.strip()
        installed = parse_version(version)
        required = parse_version(self.min_version)
        if installed is None:
            raise ToolInstallError(f"Could not determine 1Password CLI version from '{version}'")
        if required and installed < required:
            raise ToolInstallError(
                f"1Password CLI version {version} is older than the required {self.min_version}"
            )
        return version

    def _install_command(self) -> list:
        if not self.install_script:
            raise ToolInstallError("No install script configured for the 1Password CLI")
        if not os.path.exists(self.install_script):
            raise ToolInstallError(f"Install script not found: {self.install_script}")
        if self.install_script.endswith('.py'):
            return [sys.executable, self.install_script]
        return ['sh', '-c', self.install_script]

    def run_install_script(self) -> str:
        """Run the provisioning script and return the install directory"""
        command = self._install_command()
        logger.info(f"Installing 1Password CLI with {self.install_script}")
        try:
            result = subprocess.run(
                command,
                capture_output=True,
                text=True,
                check=True,
                timeout=self.install_timeout
            )
        except subprocess.CalledProcessError as e:
            detail = (e.stderr or e.stdout or "").strip()
            raise ToolInstallError(
                f"Install script failed with exit code {e.returncode}: {detail}"
            ) from e
        except (OSError, subprocess.TimeoutExpired) as e:
            raise ToolInstallError(f"Failed to run install script: {e}") from e

        install_dir = parse_install_output(result.stdout)
        if not os.path.isdir(install_dir):
            raise ToolInstallError(f"Install directory does not exist: {install_dir}")
        return install_dir

    def ensure_installed(self) -> InstallResult:
        """Make sure the CLI is available, installing it if needed"""
        try:
            version = self.validate_cli()
            logger.info(f"Found 1Password CLI {version}")
            return InstallResult(InstallStatus.ALREADY_INSTALLED, version=version)
        except ToolInstallError as e:
            # A failed check only means the CLI still has to be installed
            logger.info(f"{e}; installing")

        install_dir = self.run_install_script()
        actions_core.add_path(install_dir)
        logger.info(f"1Password CLI installed to {install_dir}")
        return InstallResult(InstallStatus.INSTALLED, path=install_dir)

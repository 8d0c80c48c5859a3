#!/usr/bin/env python3
"""
Install the 1Password CLI on a pipeline runner.

Downloads the CLI release archive for the current platform, extracts the
``op`` binary and prints the install directory as the FIRST line of output:

    ::debug::OP_INSTALL_DIR: /tmp/op-cli-xxxx

The load-secrets step reads that line and adds the directory to PATH.

Usage:
    python install_cli.py [--version VERSION] [--dest DIR]
"""

import argparse
import io
import os
import platform
import stat
import sys
import tempfile
import zipfile

import requests

UPDATE_CHECK_URL = "https://app-updates.agilebits.com/check/1/0/CLI2/en/2.0.0/N"
DOWNLOAD_URL = "https://cache.agilebits.com/dist/1P/op2/pkg/v{version}/op_{os}_{arch}_v{version}.zip"
INSTALL_DIR_PREFIX = "::debug::OP_INSTALL_DIR: "
REQUEST_TIMEOUT = 60

OS_NAMES = {
    "linux": "linux",
    "darwin": "darwin",
    "windows": "windows",
}

ARCH_NAMES = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "i386": "386",
    "i686": "386",
    "aarch64": "arm64",
    "arm64": "arm64",
    "armv7l": "arm",
    "armv6l": "arm",
}


class InstallError(Exception):
    """Raised when the CLI cannot be downloaded or unpacked."""
    pass


def setup_argparse():
    """Set up argument parser."""
    parser = argparse.ArgumentParser(description='Install the 1Password CLI')
    parser.add_argument('--version', default=os.environ.get('OP_CLI_VERSION'),
                        help='CLI version to install (default: latest)')
    parser.add_argument('--dest', default=None,
                        help='Directory to install into (default: a new temp directory)')
    return parser


def detect_platform():
    """Map the running platform to the names used in release archives."""
    system = platform.system().lower()
    machine = platform.machine().lower()

    if system not in OS_NAMES:
        raise InstallError(f"Unsupported operating system: {system}")
    if machine not in ARCH_NAMES:
        raise InstallError(f"Unsupported architecture: {machine}")
    return OS_NAMES[system], ARCH_NAMES[machine]


def latest_version(session):
    """Ask the update service for the current CLI version."""
    try:
        response = session.get(UPDATE_CHECK_URL, timeout=REQUEST_TIMEOUT)
        response.raise_for_status()
        version = response.json().get("version")
    except (requests.RequestException, ValueError) as e:
        raise InstallError(f"Failed to determine latest CLI version: {e}")

    if not version:
        raise InstallError("Update service returned no CLI version")
    return version.lstrip("v")


def download_archive(session, version, os_name, arch):
    url = DOWNLOAD_URL.format(version=version, os=os_name, arch=arch)
    try:
        response = session.get(url, timeout=REQUEST_TIMEOUT)
        response.raise_for_status()
    except requests.RequestException as e:
        raise InstallError(f"Failed to download {url}: {e}")
    return response.content


def extract_binary(archive, dest, os_name):
    """Extract the op binary from a release archive into dest."""
    binary_name = "op.exe" if os_name == "windows" else "op"
    try:
        with zipfile.ZipFile(io.BytesIO(archive)) as zf:
            if binary_name not in zf.namelist():
                raise InstallError(f"Archive does not contain {binary_name}")
            zf.extract(binary_name, dest)
    except zipfile.BadZipFile as e:
        raise InstallError(f"Downloaded archive is not a valid zip file: {e}")

    binary_path = os.path.join(dest, binary_name)
    mode = os.stat(binary_path).st_mode
    os.chmod(binary_path, mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return binary_path


def install(version=None, dest=None, session=None):
    """Install the CLI and return the install directory."""
    session = session or requests.Session()
    os_name, arch = detect_platform()
    version = version.lstrip("v") if version else latest_version(session)

    dest = os.path.abspath(dest) if dest else tempfile.mkdtemp(prefix="op-cli-")
    os.makedirs(dest, exist_ok=True)

    archive = download_archive(session, version, os_name, arch)
    extract_binary(archive, dest, os_name)
    return dest, version


def main(argv=None):
    parser = setup_argparse()
    args = parser.parse_args(argv)

    try:
        install_dir, version = install(args.version, args.dest)
    except InstallError as e:
        print(f"Error installing 1Password CLI: {e}", file=sys.stderr)
        sys.exit(1)

    # The install directory must be the first line of output
    print(f"{INSTALL_DIR_PREFIX}{install_dir}")
    print(f"1Password CLI v{version} installed to {install_dir}")


if __name__ == "__main__":
    main()

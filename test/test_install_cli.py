"""
Tests for the CLI provisioning script.
"""

import io
import os
import sys
import zipfile
from unittest.mock import MagicMock, patch

import pytest
import requests

sys.path.append(os.path.join(os.path.dirname(__file__), '..', 'scripts'))

import install_cli


def make_archive(names=("op",)):
    """Helper function to build a release archive in memory."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        for name in names:
            zf.writestr(name, "#!/bin/sh\necho 2.24.0\n")
    return buffer.getvalue()


def make_session(archive=None, version="2.24.0"):
    """Helper function to create a requests session double."""
    session = MagicMock(spec=requests.Session)

    def get(url, timeout=None):
        response = MagicMock()
        response.raise_for_status.return_value = None
        if url == install_cli.UPDATE_CHECK_URL:
            response.json.return_value = {"version": version}
        else:
            response.content = archive if archive is not None else make_archive()
        return response

    session.get.side_effect = get
    return session


class TestDetectPlatform:
    """Test class for detect_platform."""

    @pytest.mark.parametrize("system,machine,expected", [
        ("Linux", "x86_64", ("linux", "amd64")),
        ("Linux", "aarch64", ("linux", "arm64")),
        ("Darwin", "arm64", ("darwin", "arm64")),
        ("Windows", "AMD64", ("windows", "amd64")),
    ])
    def test_supported(self, system, machine, expected):
        with patch("install_cli.platform.system", return_value=system), \
                patch("install_cli.platform.machine", return_value=machine):
            assert install_cli.detect_platform() == expected

    def test_unsupported_os(self):
        with patch("install_cli.platform.system", return_value="Plan9"), \
                patch("install_cli.platform.machine", return_value="x86_64"):
            with pytest.raises(install_cli.InstallError):
                install_cli.detect_platform()


class TestInstall:
    """Test class for install."""

    @pytest.fixture(autouse=True)
    def linux_amd64(self):
        with patch("install_cli.detect_platform", return_value=("linux", "amd64")):
            yield

    def test_install_latest(self, tmp_path):
        """Test that the latest version is downloaded and op is made executable."""
        session = make_session()

        install_dir, version = install_cli.install(dest=str(tmp_path), session=session)

        assert version == "2.24.0"
        assert install_dir == str(tmp_path)
        binary = tmp_path / "op"
        assert binary.exists()
        assert os.access(str(binary), os.X_OK)
        urls = [c[0][0] for c in session.get.call_args_list]
        assert urls[1].endswith("/v2.24.0/op_linux_amd64_v2.24.0.zip")

    def test_pinned_version(self, tmp_path):
        """Test that a pinned version skips the update check."""
        session = make_session()

        install_cli.install(version="v2.20.0", dest=str(tmp_path), session=session)

        session.get.assert_called_once()
        assert "op_linux_amd64_v2.20.0.zip" in session.get.call_args[0][0]

    def test_archive_without_binary(self, tmp_path):
        session = make_session(archive=make_archive(names=("README",)))

        with pytest.raises(install_cli.InstallError):
            install_cli.install(version="2.24.0", dest=str(tmp_path), session=session)

    def test_download_failure(self, tmp_path):
        session = MagicMock(spec=requests.Session)
        session.get.side_effect = requests.ConnectionError("offline")

        with pytest.raises(install_cli.InstallError):
            install_cli.install(version="2.24.0", dest=str(tmp_path), session=session)


class TestMain:
    """Test class for the script entry point."""

    def test_first_line_is_install_dir(self, capsys):
        """Test that the install directory is printed first, with its marker."""
        with patch("install_cli.install", return_value=("/opt/op", "2.24.0")):
            install_cli.main([])

        first_line = capsys.readouterr().out.splitlines()[0]
        assert first_line == "::debug::OP_INSTALL_DIR: /opt/op"

    def test_failure_exits_non_zero(self, capsys):
        with patch("install_cli.install", side_effect=install_cli.InstallError("no network")):
            with pytest.raises(SystemExit) as excinfo:
                install_cli.main([])

        assert excinfo.value.code == 1
        assert capsys.readouterr().out == ""

"""
Shared fixtures for the load-secrets tests.
"""

import logging
import os
import sys

import pytest

# Add the src and scripts directories to the path so we can import the modules
sys.path.append(os.path.join(os.path.dirname(__file__), '..', 'src'))
sys.path.append(os.path.join(os.path.dirname(__file__), '..', 'scripts'))

import masking


@pytest.fixture(autouse=True)
def isolated_environ():
    """Restore os.environ after each test; the code under test exports variables."""
    saved = dict(os.environ)
    for name in ("GITHUB_OUTPUT", "GITHUB_ENV", "GITHUB_PATH", "RUNNER_DEBUG",
                 "LOAD_SECRETS_CONFIG", "OP_VAULT", "OP_MANAGED_VARIABLES"):
        os.environ.pop(name, None)
    yield
    os.environ.clear()
    os.environ.update(saved)


@pytest.fixture(autouse=True)
def reset_masking():
    """Each test starts with no registered secrets."""
    masking.masking_filter.clear()
    yield
    masking.masking_filter.clear()


@pytest.fixture
def masked_caplog(caplog):
    """caplog with the secret masking filter attached to its handler."""
    caplog.set_level(logging.DEBUG)
    masking.install([caplog.handler])
    yield caplog
    caplog.handler.removeFilter(masking.masking_filter)


@pytest.fixture
def runner_files(tmp_path, monkeypatch):
    """Point the runner file commands at temporary files."""
    files = {
        "GITHUB_OUTPUT": tmp_path / "output",
        "GITHUB_ENV": tmp_path / "env",
        "GITHUB_PATH": tmp_path / "path",
    }
    for name, path in files.items():
        path.write_text("")
        monkeypatch.setenv(name, str(path))
    return files


def read_file_command(path):
    """Parse a heredoc-style runner file into a dict."""
    result = {}
    lines = path.read_text().splitlines()
    i = 0
    while i < len(lines):
        key, delimiter = lines[i].split("<<", 1)
        i += 1
        value_lines = []
        while lines[i] != delimiter:
            value_lines.append(lines[i])
            i += 1
        result[key] = "\n".join(value_lines)
        i += 1
    return result

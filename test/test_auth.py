"""
Tests for the authentication pre-flight check.
"""

import os
import sys

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), '..', 'src'))

from auth import AuthMode, validate_auth
from errors import AuthConfigurationError


class TestValidateAuth:
    """Test class for validate_auth."""

    def test_service_account(self):
        """Test that a service account token is accepted."""
        environ = {"OP_SERVICE_ACCOUNT_TOKEN": "ops_token"}
        assert validate_auth(environ) == AuthMode.SERVICE_ACCOUNT

    def test_connect(self):
        """Test that Connect host and token are accepted together."""
        environ = {"OP_CONNECT_HOST": "https://connect.example.com", "OP_CONNECT_TOKEN": "token"}
        assert validate_auth(environ) == AuthMode.CONNECT

    def test_connect_takes_priority(self, capsys):
        """Test that Connect wins over a service account, with a runner warning."""
        environ = {
            "OP_CONNECT_HOST": "https://connect.example.com",
            "OP_CONNECT_TOKEN": "token",
            "OP_SERVICE_ACCOUNT_TOKEN": "ops_token",
        }

        assert validate_auth(environ) == AuthMode.CONNECT
        out = capsys.readouterr().out
        assert out.startswith("::warning::")
        assert "Connect credentials will take priority" in out

    def test_no_credentials(self):
        """Test that a missing credential fails with the accepted options named."""
        with pytest.raises(AuthConfigurationError) as excinfo:
            validate_auth({})

        message = str(excinfo.value)
        assert "OP_SERVICE_ACCOUNT_TOKEN" in message
        assert "OP_CONNECT_HOST" in message
        assert "OP_CONNECT_TOKEN" in message

    @pytest.mark.parametrize("environ", [
        {"OP_CONNECT_HOST": "https://connect.example.com"},
        {"OP_CONNECT_TOKEN": "token"},
        {"OP_SERVICE_ACCOUNT_TOKEN": ""},
    ])
    def test_incomplete_credentials(self, environ):
        """Test that partial or empty credentials are rejected."""
        with pytest.raises(AuthConfigurationError):
            validate_auth(environ)

    def test_defaults_to_process_environment(self, monkeypatch):
        """Test that os.environ is inspected when no mapping is given."""
        monkeypatch.setenv("OP_SERVICE_ACCOUNT_TOKEN", "ops_token")
        assert validate_auth() == AuthMode.SERVICE_ACCOUNT

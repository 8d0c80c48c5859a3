"""
Authentication pre-flight check.

Runs before the CLI is installed or called so a misconfigured job fails
without touching the network.
"""

import logging
import os
from enum import Enum
from typing import Dict

import actions_core
from errors import AuthConfigurationError

logger = logging.getLogger("load-secrets.auth")

SERVICE_ACCOUNT_TOKEN = "OP_SERVICE_ACCOUNT_TOKEN"
CONNECT_HOST = "OP_CONNECT_HOST"
CONNECT_TOKEN = "OP_CONNECT_TOKEN"

AUTH_ERROR_MESSAGE = (
    "Authentication error with environment variables: you must set either "
    f"1) {SERVICE_ACCOUNT_TOKEN}, or 2) both {CONNECT_HOST} and {CONNECT_TOKEN}."
)


class AuthMode(Enum):
    """Supported ways for the CLI to authenticate"""
    SERVICE_ACCOUNT = "service_account"
    CONNECT = "connect"


def validate_auth(environ: Dict[str, str] = None) -> AuthMode:
    """
    Check that a supported credential is configured

    Args:
        environ: Environment to inspect (default: os.environ)

    Returns:
        The authentication mode the CLI will use

    Raises:
        AuthConfigurationError: If no supported credential is set
    """
    environ = os.environ if environ is None else environ

    is_connect = bool(environ.get(CONNECT_HOST)) and bool(environ.get(CONNECT_TOKEN))
    is_service_account = bool(environ.get(SERVICE_ACCOUNT_TOKEN))

    if is_connect and is_service_account:
        actions_core.warning(
            "WARNING: Both service account and Connect credentials are provided. "
            "Connect credentials will take priority."
        )

    if is_connect:
        logger.info("Using Connect credentials")
        return AuthMode.CONNECT
    if is_service_account:
        logger.info("Using service account credentials")
        return AuthMode.SERVICE_ACCOUNT

    raise AuthConfigurationError(AUTH_ERROR_MESSAGE)

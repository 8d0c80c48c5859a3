"""
Error types for the load-secrets pipeline step.

Every failure the workflow can produce is one of these kinds, so the
failure reporter never has to inspect arbitrary exception shapes.
"""

UNKNOWN_ERROR_MESSAGE = "Unknown Error"


class LoadSecretsError(Exception):
    """Base exception for load-secrets errors"""
    pass


class InputError(LoadSecretsError):
    """An action input could not be coerced to its declared type"""
    pass


class ConfigurationError(LoadSecretsError):
    """Configuration file could not be read or parsed"""
    pass


class AuthConfigurationError(LoadSecretsError):
    """No supported authentication credential is configured"""
    pass


class ToolInstallError(LoadSecretsError):
    """The 1Password CLI is missing and could not be provisioned"""
    pass


class RemoteCallError(LoadSecretsError):
    """A call through the 1Password CLI failed"""

    def __init__(self, message: str, command: list = None, stderr: str = None):
        super().__init__(message)
        self.command = command or []
        self.stderr = stderr


class UnknownError(LoadSecretsError):
    """Wraps any failure that is not one of the known kinds"""

    @classmethod
    def wrap(cls, error: BaseException) -> 'UnknownError':
        message = str(error).strip() if error is not None else ""
        wrapped = cls(message or UNKNOWN_ERROR_MESSAGE)
        wrapped.__cause__ = error
        return wrapped

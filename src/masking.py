"""
Secret masking for log output.

The runner masks values announced with ``::add-mask::`` in the job log, but
records emitted by this process also go through the standard logging
handlers first. SecretMaskingFilter redacts every registered value from
those records so nothing depends on the runner alone.
"""

import logging
from typing import Iterable, List, Set

REDACTED = "***"

_formatter = logging.Formatter()


class SecretMaskingFilter(logging.Filter):
    """Replace registered secret values in log records with ``***``"""

    def __init__(self):
        super().__init__()
        self._secrets: Set[str] = set()

    def add(self, value: str) -> None:
        if value:
            self._secrets.add(value)

    def clear(self) -> None:
        self._secrets.clear()

    @property
    def secrets(self) -> List[str]:
        # Longest first so a secret containing another is redacted whole
        return sorted(self._secrets, key=len, reverse=True)

    def redact(self, text: str) -> str:
        for secret in self.secrets:
            text = text.replace(secret, REDACTED)
        return text

    def filter(self, record: logging.LogRecord) -> bool:
        if not self._secrets:
            return True
        record.msg = self.redact(record.getMessage())
        record.args = None
        if record.exc_info and not record.exc_text:
            record.exc_text = _formatter.formatException(record.exc_info)
        if record.exc_text:
            record.exc_text = self.redact(record.exc_text)
        return True


masking_filter = SecretMaskingFilter()


def install(handlers: Iterable[logging.Handler] = None) -> None:
    """Attach the masking filter to the given (default: root) handlers"""
    if handlers is None:
        handlers = logging.getLogger().handlers
    for handler in handlers:
        if masking_filter not in handler.filters:
            handler.addFilter(masking_filter)


def register(value: str) -> None:
    """Register a value, and each of its lines, for redaction"""
    if not value:
        return
    masking_filter.add(value)
    for line in value.splitlines():
        if line.strip():
            masking_filter.add(line)

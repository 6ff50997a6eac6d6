"""Secret redaction for command logs and failure messages.

Administrative commands carry passwords on the command line (``cf auth``,
``cf create-user``) and ``cf oauth-token`` prints a bearer token. None of
these may reach log output or a test report.

Usage:
    redactor = SecretRedactor()
    redactor.register('admin-secret')
    safe = redactor.redact('auth failed for admin-secret')
    # -> 'auth failed for [REDACTED]'
"""
from __future__ import annotations

import logging
import re
from typing import Any, Sequence

REDACTED = '[REDACTED]'

# Fixture passwords are short ("meow"); anything below this is too common
# to replace safely.
MIN_SECRET_LENGTH = 4

SECRET_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r'[Bb]earer\s+[A-Za-z0-9._~+/=-]{20,}'),
    re.compile(r'\b[a-f0-9]{32,}\b'),
)

# Command name -> positions (after the command name) holding a password.
SENSITIVE_ARG_POSITIONS: dict[str, tuple[int, ...]] = {
    'auth': (2,),
    'create-user': (2,),
}


def redact_command(args: Sequence[str]) -> list[str]:
    """Return a copy of ``args`` with password arguments masked."""
    redacted = list(args)
    if not redacted:
        return redacted
    for position in SENSITIVE_ARG_POSITIONS.get(redacted[0], ()):
        if position < len(redacted):
            redacted[position] = REDACTED
    return redacted


class SecretRedactor:
    """Replaces registered secrets and token-shaped strings with [REDACTED]."""

    def __init__(self, *, enable_pattern_matching: bool = True) -> None:
        self._secrets: set[str] = set()
        self._enable_patterns = enable_pattern_matching

    def register(self, secret: str) -> None:
        if not secret or len(secret) < MIN_SECRET_LENGTH:
            return
        self._secrets.add(secret)

    def register_many(self, secrets: Sequence[str]) -> None:
        for s in secrets:
            self.register(s)

    def redact(self, text: str) -> str:
        if not text:
            return text

        result = text
        # Longest first to avoid partial matches.
        for secret in sorted(self._secrets, key=len, reverse=True):
            if secret in result:
                result = result.replace(secret, REDACTED)

        if self._enable_patterns:
            for pattern in SECRET_PATTERNS:
                result = pattern.sub(REDACTED, result)

        return result

    def redact_value(self, value: Any) -> Any:
        """Redact strings inside lists, tuples and dicts; other values pass through."""
        if isinstance(value, str):
            return self.redact(value)
        if isinstance(value, (list, tuple)):
            return type(value)(self.redact_value(v) for v in value)
        if isinstance(value, dict):
            return {k: self.redact_value(v) for k, v in value.items()}
        return value

    def is_clean(self, text: str) -> bool:
        return self.redact(text) == text

    @property
    def registered_count(self) -> int:
        return len(self._secrets)


class RedactingFilter(logging.Filter):
    """Logging filter that redacts secrets from log records.

    Usage:
        handler.addFilter(RedactingFilter(redactor))
    """

    def __init__(self, redactor: SecretRedactor, name: str = ''):
        super().__init__(name)
        self.redactor = redactor

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = self.redactor.redact(record.msg)
        if record.args:
            if isinstance(record.args, dict):
                record.args = {
                    k: self.redactor.redact(v) if isinstance(v, str) else v
                    for k, v in record.args.items()
                }
            elif isinstance(record.args, tuple):
                record.args = tuple(
                    self.redactor.redact(a) if isinstance(a, str) else a
                    for a in record.args
                )
        return True


# Process-wide redactor shared by the runner and the logging setup.
default_redactor = SecretRedactor()

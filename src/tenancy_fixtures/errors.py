"""Error types raised by tenancy fixtures.

Failures are loud by default. Only the small table in
``tenancy_fixtures.control.outcomes`` downgrades a non-zero command exit to a
non-fatal outcome; everything else surfaces as one of these errors, carrying
the (redacted) command output for diagnosis in the test report.
"""

from __future__ import annotations

from typing import Sequence


class TenancyFixtureError(Exception):
    """Base error for all tenancy fixture operations."""


class SettingsError(TenancyFixtureError, ValueError):
    """Raised when the fixture configuration cannot be loaded."""


class CLINotFoundError(TenancyFixtureError):
    """Raised when the control-plane CLI binary is not on PATH."""


class CommandFailedError(TenancyFixtureError):
    """An administrative command exited non-zero outside the allow-list.

    Attributes:
        args_redacted: Command arguments with passwords masked.
        exit_code: Process exit code (124 for a timeout).
        output: Combined stdout/stderr, redacted and truncated in ``str()``.
    """

    def __init__(
        self,
        args: Sequence[str],
        exit_code: int,
        output: str,
    ) -> None:
        self.args_redacted = tuple(args)
        self.exit_code = exit_code
        self.output = output
        detail = output.strip()[-500:] or '(no output)'
        super().__init__(
            f'cf {" ".join(self.args_redacted)} failed '
            f'(exit {exit_code}): {detail}'
        )


class CommandTimeoutError(CommandFailedError):
    """An administrative command did not finish within its timeout."""

    def __init__(
        self,
        args: Sequence[str],
        timeout_seconds: float,
        output: str,
    ) -> None:
        self.timeout_seconds = timeout_seconds
        super().__init__(args, 124, output)
        self.args = (
            f'cf {" ".join(self.args_redacted)} timed out after '
            f'{timeout_seconds:g}s: {output.strip()[-500:] or "(no output)"}',
        )


class InventoryError(TenancyFixtureError):
    """HTTP error from the control-plane listing API."""

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(f'control plane API error {status_code}: {message}')

"""Synchronous command runner for the control-plane CLI.

Runs exactly one ``cf`` invocation per call, blocking until it exits or the
timeout elapses. Output is captured with stderr folded into stdout so callers
can pattern-match a single stream. Timeouts are reported, not raised: the
result carries exit code 124, whatever output was produced, and
``timed_out=True``. Deciding whether that is fatal belongs to the caller.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Mapping, Protocol, Sequence, runtime_checkable

from ..errors import CLINotFoundError
from ..redaction import default_redactor, redact_command

logger = logging.getLogger(__name__)

TIMEOUT_EXIT_CODE = 124


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Outcome of one CLI invocation."""

    args: tuple[str, ...]
    exit_code: int
    output: bytes = b''
    timed_out: bool = False

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0 and not self.timed_out

    @property
    def text(self) -> str:
        return self.output.decode('utf-8', errors='replace')


@runtime_checkable
class CommandRunner(Protocol):
    """Executes one administrative command with a bounded timeout.

    ``cf_home`` selects the CLI's config directory and therefore the ambient
    identity commands run as. ``None`` means the inherited environment.
    """

    cf_home: str | None

    def run(self, args: Sequence[str], timeout: timedelta) -> CommandResult: ...


class SubprocessCommandRunner:
    """Runs the ``cf`` CLI as a child process.

    Args:
        cli_command: Executable plus any leading arguments, e.g. ``('cf',)``
            or ``(sys.executable, 'stub_cf.py')``.
        cf_home: Initial CF_HOME for child processes.
        env: Extra environment variables for child processes.
    """

    def __init__(
        self,
        cli_command: Sequence[str] = ('cf',),
        *,
        cf_home: str | None = None,
        env: Mapping[str, str] | None = None,
    ) -> None:
        if not cli_command:
            raise ValueError('cli_command must name an executable')
        self._cli_command = tuple(cli_command)
        self._env = dict(env or {})
        self.cf_home = cf_home
        self._verify_cli_available()

    def _verify_cli_available(self) -> None:
        """Fail fast if the CLI is not installed."""
        if not shutil.which(self._cli_command[0]):
            raise CLINotFoundError(
                f"CLI not found at '{self._cli_command[0]}'. "
                'Install the cf CLI and ensure it is on PATH.'
            )

    def _child_env(self) -> dict[str, str]:
        env = dict(os.environ)
        env.update(self._env)
        if self.cf_home is not None:
            env['CF_HOME'] = self.cf_home
        return env

    def run(self, args: Sequence[str], timeout: timedelta) -> CommandResult:
        args = tuple(args)
        seconds = timeout.total_seconds()
        safe_args = redact_command(args)
        started = time.monotonic()
        try:
            completed = subprocess.run(
                [*self._cli_command, *args],
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                env=self._child_env(),
                timeout=seconds,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            partial = exc.output or b''
            if isinstance(partial, str):
                partial = partial.encode('utf-8')
            logger.warning(
                'cf command timed out',
                extra={
                    'command': safe_args,
                    'timeout_s': seconds,
                    'output': default_redactor.redact(
                        partial.decode('utf-8', errors='replace')[-500:]
                    ),
                },
            )
            return CommandResult(
                args=args,
                exit_code=TIMEOUT_EXIT_CODE,
                output=partial,
                timed_out=True,
            )

        duration_ms = int((time.monotonic() - started) * 1000)
        logger.info(
            'cf command finished',
            extra={
                'command': safe_args,
                'exit_code': completed.returncode,
                'duration_ms': duration_ms,
            },
        )
        return CommandResult(
            args=args,
            exit_code=completed.returncode,
            output=completed.stdout or b'',
        )

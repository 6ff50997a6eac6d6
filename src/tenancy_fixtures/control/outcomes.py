"""Classification of administrative command outcomes.

The control plane's only failure signal is the text it prints, so outcomes
are classified by matching substrings of the captured output against a short
enumerated table. Any non-zero exit that is not listed below is fatal.
Forced deletes (``-f``) are never inspected; the CLI exits zero when the
target is missing.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from enum import Enum
from typing import Collection, Sequence

from ..errors import CommandFailedError, CommandTimeoutError
from ..redaction import default_redactor, redact_command
from .runner import CommandResult, CommandRunner

logger = logging.getLogger(__name__)


class Outcome(str, Enum):
    OK = 'ok'
    ALREADY_EXISTS = 'already_exists'
    TIMED_OUT = 'timed_out'
    FAILED = 'failed'


# (command, output substring, outcome)
EXPECTED_FAILURES: tuple[tuple[str, str, Outcome], ...] = (
    ('create-user', 'scim_resource_already_exists', Outcome.ALREADY_EXISTS),
)


def classify(result: CommandResult) -> Outcome:
    if result.timed_out:
        return Outcome.TIMED_OUT
    if result.exit_code == 0:
        return Outcome.OK

    command = result.args[0] if result.args else ''
    text = result.text
    for expected_command, signature, outcome in EXPECTED_FAILURES:
        if command == expected_command and signature in text:
            return outcome
    return Outcome.FAILED


def execute(
    runner: CommandRunner,
    args: Sequence[str],
    timeout: timedelta,
    *,
    tolerate: Collection[Outcome] = (),
) -> Outcome:
    """Run one command and raise unless the outcome is OK or tolerated.

    Raises:
        CommandTimeoutError: The command did not finish in time.
        CommandFailedError: Non-zero exit not listed in ``tolerate``.
    """
    result = runner.run(args, timeout)
    return _check(result, timeout, tolerate)


def capture(
    runner: CommandRunner,
    args: Sequence[str],
    timeout: timedelta,
) -> str:
    """Run one command that must succeed and return its output text."""
    result = runner.run(args, timeout)
    _check(result, timeout, ())
    return result.text


def _check(
    result: CommandResult,
    timeout: timedelta,
    tolerate: Collection[Outcome],
) -> Outcome:
    outcome = classify(result)
    if outcome is Outcome.OK:
        return outcome

    safe_args = redact_command(result.args)
    output = default_redactor.redact(result.text)
    if outcome is Outcome.TIMED_OUT:
        raise CommandTimeoutError(safe_args, timeout.total_seconds(), output)
    if outcome in tolerate:
        logger.info(
            'Tolerated cf command outcome',
            extra={'command': safe_args, 'outcome': outcome.value},
        )
        return outcome
    raise CommandFailedError(safe_args, result.exit_code, output)

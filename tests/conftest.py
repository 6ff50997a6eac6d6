"""Pytest configuration for tenancy_fixtures tests."""
import sys
from datetime import timedelta
from pathlib import Path

# Add src/ to path for src-layout imports
_PROJECT_ROOT = Path(__file__).parent.parent
_SRC = _PROJECT_ROOT / 'src'
if str(_SRC) not in sys.path:
    sys.path.insert(0, str(_SRC))

import pytest

from tenancy_fixtures.control.runner import CommandResult
from tenancy_fixtures.settings import FixtureSettings

pytest_plugins = ['pytester']

LOGIN_COMMANDS = frozenset({'api', 'auth', 'logout'})


class RecordingRunner:
    """In-memory CommandRunner that records calls and replays canned results.

    Unconfigured commands succeed with empty output.
    """

    def __init__(self) -> None:
        self.cf_home: str | None = None
        self.calls: list[tuple[str, ...]] = []
        self.homes: list[str | None] = []
        self.timeouts: list[timedelta] = []
        self._responses: dict[str, CommandResult] = {}

    def respond(
        self,
        command: str,
        *,
        exit_code: int = 0,
        output: str = '',
        timed_out: bool = False,
    ) -> None:
        self._responses[command] = CommandResult(
            args=(command,),
            exit_code=exit_code,
            output=output.encode(),
            timed_out=timed_out,
        )

    def run(self, args, timeout):
        args = tuple(args)
        self.calls.append(args)
        self.homes.append(self.cf_home)
        self.timeouts.append(timeout)
        canned = self._responses.get(args[0])
        if canned is None:
            return CommandResult(args=args, exit_code=0)
        return CommandResult(
            args=args,
            exit_code=canned.exit_code,
            output=canned.output,
            timed_out=canned.timed_out,
        )

    @property
    def commands(self) -> list[tuple[str, ...]]:
        """Calls other than login/logout plumbing."""
        return [c for c in self.calls if c[0] not in LOGIN_COMMANDS]


@pytest.fixture
def recording_runner() -> RecordingRunner:
    return RecordingRunner()


@pytest.fixture
def settings() -> FixtureSettings:
    return FixtureSettings(
        api='https://api.example.test',
        admin_user='admin',
        admin_password='admin-secret',
    )

"""Scoped identity switching for CLI commands.

The ``cf`` CLI keeps its login session in ``$CF_HOME/.cf/config.json``. To run
a block of commands as a given user, ``as_user`` points the runner at a fresh
temporary CF_HOME, logs in there, and on every exit path logs out, restores
the previous CF_HOME and removes the temporary directory. The previous ambient
identity is therefore untouched whether the block succeeds or raises.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import timedelta
from typing import Iterator

from ..redaction import default_redactor
from .outcomes import execute
from .runner import CommandRunner

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class UserContext:
    """Credentials bundle for one control-plane identity.

    Admin contexts leave ``org`` and ``space`` empty.
    """

    api_url: str
    username: str
    password: str
    org: str = ''
    space: str = ''
    skip_ssl_validation: bool = False

    def login_commands(self) -> list[list[str]]:
        api = ['api', self.api_url]
        if self.skip_ssl_validation:
            api.append('--skip-ssl-validation')
        commands = [api, ['auth', self.username, self.password]]
        if self.org:
            target = ['target', '-o', self.org]
            if self.space:
                target.extend(['-s', self.space])
            commands.append(target)
        return commands


@contextmanager
def as_user(
    runner: CommandRunner,
    user: UserContext,
    timeout: timedelta,
) -> Iterator[UserContext]:
    """Run the enclosed block with ``user`` as the ambient identity."""
    default_redactor.register(user.password)
    previous_home = runner.cf_home
    home = tempfile.mkdtemp(prefix='cf-home-')
    runner.cf_home = home
    logger.debug(
        'Switching cf identity',
        extra={'username': user.username, 'cf_home': home},
    )
    try:
        try:
            for args in user.login_commands():
                execute(runner, args, timeout)
            yield user
        finally:
            result = runner.run(['logout'], timeout)
            if not result.succeeded:
                logger.warning(
                    'cf logout failed',
                    extra={
                        'username': user.username,
                        'exit_code': result.exit_code,
                    },
                )
    finally:
        runner.cf_home = previous_home
        shutil.rmtree(home, ignore_errors=True)

"""Command execution against the control-plane CLI and API."""

from .identity import UserContext, as_user
from .inventory import ControlPlaneInventory
from .outcomes import EXPECTED_FAILURES, Outcome, capture, classify, execute
from .runner import (
    TIMEOUT_EXIT_CODE,
    CommandResult,
    CommandRunner,
    SubprocessCommandRunner,
)

__all__ = [
    'EXPECTED_FAILURES',
    'TIMEOUT_EXIT_CODE',
    'CommandResult',
    'CommandRunner',
    'ControlPlaneInventory',
    'Outcome',
    'SubprocessCommandRunner',
    'UserContext',
    'as_user',
    'capture',
    'classify',
    'execute',
]

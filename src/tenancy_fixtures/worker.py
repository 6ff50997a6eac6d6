"""Parallel worker numbering."""

from __future__ import annotations

import os
import re
from typing import Mapping

_XDIST_WORKER = re.compile(r'^gw(\d+)$')


def worker_id_from_env(env: Mapping[str, str] | None = None) -> int:
    """Return the stable number of the current parallel test worker.

    pytest-xdist exports ``PYTEST_XDIST_WORKER=gw<N>``; ``TENANCY_WORKER_ID``
    takes precedence for other runners. Serial runs are worker 0.
    """
    if env is None:
        env = os.environ

    explicit = env.get('TENANCY_WORKER_ID', '').strip()
    if explicit:
        if not explicit.isdigit():
            raise ValueError(f'TENANCY_WORKER_ID must be a non-negative integer, got {explicit!r}')
        return int(explicit)

    match = _XDIST_WORKER.match(env.get('PYTEST_XDIST_WORKER', '').strip())
    if match:
        return int(match.group(1))
    return 0

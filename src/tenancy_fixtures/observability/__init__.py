"""Observability for tenancy fixtures: structured, worker-tagged logging.

Quick start::

    from tenancy_fixtures.observability import configure_logging, get_logger

    configure_logging(worker_id=worker_id_from_env())
"""

from .logging import configure_logging, get_logger, worker_id_ctx

__all__ = [
    "configure_logging",
    "get_logger",
    "worker_id_ctx",
]

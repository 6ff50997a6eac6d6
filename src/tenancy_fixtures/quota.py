"""Quota definitions bound to fixture orgs."""

from __future__ import annotations

from dataclasses import dataclass

RUNAWAY_QUOTA_MEM_LIMIT = '99999G'
UNLIMITED = '-1'


@dataclass(frozen=True, slots=True)
class QuotaDefinition:
    """Named bundle of resource limits.

    Defaults are generous but bounded so a misbehaving test cannot exhaust
    the platform.
    """

    name: str
    total_services: str = '100'
    total_routes: str = '1000'
    memory_limit: str = '10G'
    allow_paid_service_plans: bool = True

    def create_args(self) -> list[str]:
        args = [
            'create-quota',
            self.name,
            '-m', self.memory_limit,
            '-r', self.total_routes,
            '-s', self.total_services,
        ]
        if self.allow_paid_service_plans:
            args.append('--allow-paid-service-plans')
        return args


def runaway_update_args(name: str) -> list[str]:
    """Arguments widening ``name`` to effectively unlimited memory and services."""
    return [
        'update-quota',
        name,
        '-m', RUNAWAY_QUOTA_MEM_LIMIT,
        f'-i={UNLIMITED}',
        f'-s={UNLIMITED}',
    ]

"""Collision-resistant fixture names.

Every parallel worker derives its org, space, quota and user names from its
worker number and the instant the fixture was created::

    CATS-ORG-3-2024_01_01-10h00m00.000s

Workers never coordinate; two fixtures collide only if they share both the
worker number and the millisecond they were created at. Externally supplied
names replace the generated ones when fixtures are meant to be shared across
runs, and mark the corresponding resources as shared.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime

DEFAULT_PREFIX = 'CATS'
DEFAULT_USER_PASSWORD = 'meow'


@dataclass(frozen=True, slots=True)
class FixtureNames:
    """The names one fixture operates on."""

    org: str
    space: str
    quota: str
    username: str
    password: str
    shared_org_and_space: bool = False
    shared_user: bool = False


@dataclass(frozen=True, slots=True)
class NameOverrides:
    """Externally supplied names. ``None`` keeps the generated value."""

    org: str | None = None
    space: str | None = None
    quota: str | None = None
    username: str | None = None
    password: str | None = None


def format_time_tag(moment: datetime) -> str:
    """Render ``moment`` as ``YYYY_MM_DD-HHhMMmSS.mmms``."""
    millis = moment.microsecond // 1000
    return f'{moment:%Y_%m_%d-%Hh%Mm%S}.{millis:03d}s'


def generate_names(
    worker_id: int,
    moment: datetime,
    *,
    prefix: str = DEFAULT_PREFIX,
) -> FixtureNames:
    suffix = f'{worker_id}-{format_time_tag(moment)}'
    return FixtureNames(
        org=f'{prefix}-ORG-{suffix}',
        space=f'{prefix}-SPACE-{suffix}',
        quota=f'{prefix}-QUOTA-{suffix}',
        username=f'{prefix}-USER-{suffix}',
        password=DEFAULT_USER_PASSWORD,
    )


def resolve_names(
    worker_id: int,
    moment: datetime,
    overrides: NameOverrides | None = None,
    *,
    prefix: str = DEFAULT_PREFIX,
) -> FixtureNames:
    """Generate names, then apply any overrides.

    Overriding any of org, space or quota marks the org-and-space group as
    shared; overriding the username marks the user as shared.
    """
    names = generate_names(worker_id, moment, prefix=prefix)
    if overrides is None:
        return names

    group = {
        field: value
        for field, value in (
            ('org', overrides.org),
            ('space', overrides.space),
            ('quota', overrides.quota),
        )
        if value is not None
    }
    if group:
        names = replace(names, shared_org_and_space=True, **group)

    if overrides.username is not None:
        names = replace(
            names,
            username=overrides.username,
            password=(
                overrides.password
                if overrides.password is not None
                else names.password
            ),
            shared_user=True,
        )
    elif overrides.password is not None:
        names = replace(names, password=overrides.password)
    return names

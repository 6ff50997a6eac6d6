"""Fixture configuration settings.

FixtureSettings is the single configuration object accepted by the fixture
manager. It is a plain frozen dataclass so tests can inject config without
touching os.environ or the filesystem; ``from_env`` reads the JSON file named
by the ``CONFIG`` environment variable for real runs.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, fields
from datetime import timedelta
from pathlib import Path
from typing import Any, Mapping

from .errors import SettingsError

logger = logging.getLogger(__name__)

SHORT_TIMEOUT_BASE = timedelta(minutes=1)
LONG_TIMEOUT_BASE = timedelta(minutes=5)


@dataclass(frozen=True, slots=True)
class FixtureSettings:
    """Configuration for tenancy fixtures.

    Defaults describe a fully ephemeral run: every org, space, quota and user
    is generated per worker and removed at teardown.
    """

    # ── Control plane ──────────────────────────────────────────────
    api: str = ''
    """Admin endpoint URL (e.g. https://api.example.com)."""

    admin_user: str = ''
    admin_password: str = ''
    """Admin credentials. Never log the password."""

    skip_ssl_validation: bool = False

    # ── Regular user reuse ─────────────────────────────────────────
    use_existing_user: bool = False
    existing_user: str = ''
    existing_user_password: str = ''

    keep_user_at_suite_end: bool | None = None
    """Keep the regular user at teardown. ``None`` keeps reused users only."""

    # ── Shared org and space ───────────────────────────────────────
    use_existing_organization: bool = False
    existing_organization: str = ''
    existing_space: str = ''
    existing_quota: str = ''

    # ── Persistent application fixtures ────────────────────────────
    persistent_app_org: str = 'CATS-persistent-org'
    persistent_app_space: str = 'CATS-persistent-space'
    persistent_app_quota_name: str = 'CATS-persistent-quota'

    # ── Timeouts ───────────────────────────────────────────────────
    timeout_scale: float = 1.0
    """Multiplier applied to both the short and the long timeout."""

    @property
    def should_delete_user(self) -> bool:
        if self.keep_user_at_suite_end is not None:
            return not self.keep_user_at_suite_end
        return not self.use_existing_user

    @property
    def short_timeout(self) -> timedelta:
        return self.scaled_timeout(SHORT_TIMEOUT_BASE)

    @property
    def long_timeout(self) -> timedelta:
        return self.scaled_timeout(LONG_TIMEOUT_BASE)

    def scaled_timeout(self, base: timedelta) -> timedelta:
        return base * self.timeout_scale

    def validate(self) -> list[str]:
        """Return a list of configuration errors. Empty means valid."""
        errors: list[str] = []
        if not self.api:
            errors.append('api is required')
        if not self.admin_user or not self.admin_password:
            errors.append('admin_user and admin_password are required')
        if self.use_existing_user and not self.existing_user:
            errors.append('use_existing_user requires existing_user')
        if self.use_existing_organization:
            for name in ('existing_organization', 'existing_space', 'existing_quota'):
                if not getattr(self, name):
                    errors.append(f'use_existing_organization requires {name}')
        if self.timeout_scale <= 0:
            errors.append('timeout_scale must be > 0')
        return errors

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> FixtureSettings:
        """Build settings from a decoded JSON object.

        Unrecognised keys are ignored (with a warning); values of the wrong
        type raise SettingsError.
        """
        known = {f.name: f for f in fields(cls)}
        values: dict[str, Any] = {}
        for key, value in data.items():
            if key not in known:
                logger.warning(
                    'Ignoring unrecognised fixture setting',
                    extra={'setting': key},
                )
                continue
            values[key] = _coerce(key, value)
        return cls(**values)

    @classmethod
    def from_file(cls, path: str | Path) -> FixtureSettings:
        path = Path(path)
        try:
            raw = json.loads(path.read_text(encoding='utf-8'))
        except OSError as exc:
            raise SettingsError(f'cannot read config file {path}: {exc}') from exc
        except json.JSONDecodeError as exc:
            raise SettingsError(f'config file {path} is not valid JSON: {exc}') from exc
        if not isinstance(raw, dict):
            raise SettingsError(f'config file {path} must contain a JSON object')
        return cls.from_mapping(raw)

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> FixtureSettings:
        """Load settings from the JSON file named by ``CONFIG``."""
        if env is None:
            env = os.environ
        config_path = env.get('CONFIG', '').strip()
        if not config_path:
            raise SettingsError('CONFIG must point at a fixture config JSON file')
        return cls.from_file(config_path)


_BOOL_KEYS = frozenset({
    'skip_ssl_validation',
    'use_existing_user',
    'use_existing_organization',
})


def _coerce(key: str, value: Any) -> Any:
    if key in _BOOL_KEYS:
        if not isinstance(value, bool):
            raise SettingsError(f'{key} must be a boolean, got {value!r}')
        return value
    if key == 'keep_user_at_suite_end':
        if value is not None and not isinstance(value, bool):
            raise SettingsError(f'{key} must be a boolean or null, got {value!r}')
        return value
    if key == 'timeout_scale':
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise SettingsError(f'{key} must be a number, got {value!r}')
        return float(value)
    if not isinstance(value, str):
        raise SettingsError(f'{key} must be a string, got {value!r}')
    return value

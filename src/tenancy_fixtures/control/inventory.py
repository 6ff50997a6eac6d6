"""Read-only listing of control-plane resources over the v3 HTTP API.

Used to verify that teardown left nothing behind. Lookups go through the
API rather than the CLI so they can be made without switching the CLI's
ambient identity; the bearer token is obtained once via ``cf oauth-token``.

Example::

    with ControlPlaneInventory.from_runner(runner, admin, timeout) as inventory:
        leftovers = inventory.residual_resources(descriptor, delete_user=True)
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any

import httpx

from ..descriptor import FixtureDescriptor
from ..errors import InventoryError
from ..redaction import default_redactor
from .identity import UserContext, as_user
from .outcomes import capture
from .runner import CommandRunner

logger = logging.getLogger(__name__)


class ControlPlaneInventory:
    """Looks up orgs, spaces, quotas and users by name.

    Args:
        api_url: Control-plane API base URL.
        token: OAuth access token, with or without the ``bearer`` prefix.
        verify: Verify TLS certificates.
        http_client: Pre-built client (tests inject a MockTransport here).
        timeout_seconds: Per-request timeout.
    """

    def __init__(
        self,
        api_url: str,
        token: str,
        *,
        verify: bool = True,
        http_client: httpx.Client | None = None,
        timeout_seconds: float = 30.0,
    ) -> None:
        if not token:
            raise ValueError('token is required')
        token = token.strip()
        if token.lower().startswith('bearer '):
            token = token[len('bearer '):].strip()
        default_redactor.register(token)

        self._owns_client = http_client is None
        self._http = http_client or httpx.Client(
            base_url=api_url.rstrip('/'),
            verify=verify,
            timeout=timeout_seconds,
        )
        self._headers = {'Authorization': f'bearer {token}'}

    @classmethod
    def from_runner(
        cls,
        runner: CommandRunner,
        admin: UserContext,
        timeout: timedelta,
        **kwargs: Any,
    ) -> ControlPlaneInventory:
        """Log in as ``admin`` and build an inventory from its OAuth token."""
        with as_user(runner, admin, timeout):
            output = capture(runner, ['oauth-token'], timeout)
        token = output.strip().splitlines()[-1] if output.strip() else ''
        return cls(
            admin.api_url,
            token,
            verify=not admin.skip_ssl_validation,
            **kwargs,
        )

    # ------ lifecycle ------

    def close(self) -> None:
        if self._owns_client:
            self._http.close()

    def __enter__(self) -> ControlPlaneInventory:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    # ------ lookups ------

    def _first(self, path: str, params: dict[str, str]) -> dict[str, Any] | None:
        try:
            resp = self._http.get(path, params=params, headers=self._headers)
        except httpx.HTTPError as exc:
            raise InventoryError(0, f'request failed: {exc}') from exc

        if resp.status_code >= 400:
            raise InventoryError(
                resp.status_code,
                default_redactor.redact(resp.text[:500]),
            )
        resources = resp.json().get('resources', [])
        return resources[0] if resources else None

    def find_org(self, name: str) -> dict[str, Any] | None:
        return self._first('/v3/organizations', {'names': name})

    def find_space(self, org_name: str, space_name: str) -> dict[str, Any] | None:
        org = self.find_org(org_name)
        if org is None:
            return None
        return self._first(
            '/v3/spaces',
            {'names': space_name, 'organization_guids': org['guid']},
        )

    def find_quota(self, name: str) -> dict[str, Any] | None:
        return self._first('/v3/organization_quotas', {'names': name})

    def find_user(self, username: str) -> dict[str, Any] | None:
        return self._first('/v3/users', {'usernames': username})

    def residual_resources(
        self,
        descriptor: FixtureDescriptor,
        *,
        delete_user: bool,
    ) -> list[str]:
        """Resources teardown should have removed but that still exist."""
        leftovers: list[str] = []
        if delete_user and self.find_user(descriptor.username) is not None:
            leftovers.append(f'user:{descriptor.username}')

        lifecycle = descriptor.lifecycle
        if lifecycle.deletes_org_and_quota:
            if self.find_org(descriptor.org_name) is not None:
                leftovers.append(f'org:{descriptor.org_name}')
            if self.find_quota(descriptor.quota_name) is not None:
                leftovers.append(f'quota:{descriptor.quota_name}')
        elif lifecycle.deletes_own_space_only:
            if self.find_space(descriptor.org_name, descriptor.space_name) is not None:
                leftovers.append(
                    f'space:{descriptor.org_name}/{descriptor.space_name}'
                )

        if leftovers:
            logger.warning(
                'Residual fixture resources found',
                extra={'resources': leftovers},
            )
        return leftovers

"""Fixture lifecycle variants.

Configuration arrives as two independent booleans (org-and-space persistence,
app persistence). Each combination maps to exactly one variant:

  - ``EPHEMERAL``: quota, org and user are created at setup and deleted at
    teardown.
  - ``SHARED_ORG_AND_SPACE``: org and quota pre-exist and are shared; setup
    skips creating them and teardown deletes only this fixture's space.
  - ``PERSISTENT_APP``: org and quota host long-lived applications spanning
    suites; setup creates them if missing, teardown never deletes them.
  - ``PERSISTENT_APP_IN_SHARED_GROUP``: a persistent app fixture whose org
    and quota are pre-existing and shared; setup skips creating them,
    teardown never deletes them and deletes only this fixture's space.

Org and quota survive teardown whenever either flag is set.
"""

from __future__ import annotations

from enum import Enum


class Lifecycle(str, Enum):
    EPHEMERAL = 'ephemeral'
    SHARED_ORG_AND_SPACE = 'shared_org_and_space'
    PERSISTENT_APP = 'persistent_app'
    PERSISTENT_APP_IN_SHARED_GROUP = 'persistent_app_in_shared_group'

    @classmethod
    def from_flags(
        cls,
        *,
        org_and_space_persistent: bool,
        app_persistent: bool,
    ) -> Lifecycle:
        if app_persistent:
            if org_and_space_persistent:
                return cls.PERSISTENT_APP_IN_SHARED_GROUP
            return cls.PERSISTENT_APP
        if org_and_space_persistent:
            return cls.SHARED_ORG_AND_SPACE
        return cls.EPHEMERAL

    @property
    def shares_org_and_space(self) -> bool:
        return self in _SHARED_GROUP

    @property
    def is_persistent_app(self) -> bool:
        return self in _PERSISTENT_APP

    @property
    def creates_org_and_quota(self) -> bool:
        return not self.shares_org_and_space

    @property
    def deletes_org_and_quota(self) -> bool:
        return self is Lifecycle.EPHEMERAL

    @property
    def deletes_own_space_only(self) -> bool:
        return self.shares_org_and_space


_SHARED_GROUP = frozenset({
    Lifecycle.SHARED_ORG_AND_SPACE,
    Lifecycle.PERSISTENT_APP_IN_SHARED_GROUP,
})
_PERSISTENT_APP = frozenset({
    Lifecycle.PERSISTENT_APP,
    Lifecycle.PERSISTENT_APP_IN_SHARED_GROUP,
})

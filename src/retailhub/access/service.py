"""Role and permission assignment inside a tenant database."""

import logging
from typing import Iterable, Sequence, Union

from sqlalchemy import delete, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from retailhub.access.models import (
    DEFAULT_GUARD,
    PermissionModel,
    RoleModel,
    role_has_permissions,
    user_permissions,
    user_roles,
)
from retailhub.access.permissions import MODULE_MARKERS

logger = logging.getLogger(__name__)

# A role or permission given either by id or by name.
Ref = Union[int, str]
RolePermissionPair = tuple[Ref, Ref]


def resolve_module(permission_name: str) -> str:
    """Group a permission name under the UI module it belongs to."""
    name = permission_name.lower()
    for module, markers in MODULE_MARKERS:
        if any(marker in name for marker in markers):
            return module
    return "other"


def parse_permission_pairs(raw: str | None) -> list[RolePermissionPair]:
    """Parse the `(perm,role),(perm,role)` package format.

    Numeric parts become ids, anything else is kept as a name. Pairs that do
    not split into exactly two parts are dropped.
    """
    if not raw or not raw.strip("() "):
        return []
    pairs: list[RolePermissionPair] = []
    for chunk in raw.strip().strip("()").split("),("):
        parts = [part.strip() for part in chunk.split(",")]
        if len(parts) != 2 or not all(parts):
            logger.warning("Ignoring malformed permission pair %r", chunk)
            continue
        pairs.append(tuple(int(p) if p.isdigit() else p for p in parts))  # type: ignore[arg-type]
    return pairs


class PermissionService:
    """Writes roles, permissions and their grants without ever duplicating a pair."""

    def __init__(self, guard: str = DEFAULT_GUARD):
        self.guard = guard

    async def permission_ids(self, session: AsyncSession) -> dict[str, int]:
        result = await session.execute(
            select(PermissionModel.name, PermissionModel.id).where(
                PermissionModel.guard_name == self.guard
            )
        )
        return {name: pk for name, pk in result.all()}

    async def role_ids(self, session: AsyncSession) -> dict[str, int]:
        result = await session.execute(
            select(RoleModel.name, RoleModel.id).where(RoleModel.guard_name == self.guard)
        )
        return {name: pk for name, pk in result.all()}

    async def ensure_roles(
        self, session: AsyncSession, roles: Iterable[tuple[str, str | None]]
    ) -> int:
        """Insert roles missing for this guard. Returns the number inserted."""
        existing = set(await self.role_ids(session))
        created = 0
        for name, description in roles:
            if name in existing:
                continue
            session.add(RoleModel(name=name, description=description, guard_name=self.guard))
            existing.add(name)
            created += 1
        await session.flush()
        return created

    async def ensure_permissions(self, session: AsyncSession, names: Iterable[str]) -> int:
        """Insert `(name, guard)` permissions that do not exist yet."""
        existing = set(await self.permission_ids(session))
        created = 0
        for name in names:
            if name in existing:
                continue
            session.add(
                PermissionModel(name=name, guard_name=self.guard, module=resolve_module(name))
            )
            existing.add(name)
            created += 1
        await session.flush()
        return created

    async def _existing_pairs(self, session: AsyncSession) -> set[tuple[int, int]]:
        result = await session.execute(
            select(role_has_permissions.c.permission_id, role_has_permissions.c.role_id)
        )
        return {(perm, role) for perm, role in result.all()}

    async def grant(
        self, session: AsyncSession, mappings: Iterable[RolePermissionPair]
    ) -> int:
        """Write role-permission rows for `(permission, role)` mappings.

        Names are resolved by `(name, guard)`. Mappings that do not resolve
        are skipped, as are pairs already present or repeated in the batch.
        Returns the number of rows written.
        """
        permission_ids = await self.permission_ids(session)
        role_ids = await self.role_ids(session)
        seen = await self._existing_pairs(session)

        rows = []
        for permission, role in mappings:
            permission_id = permission if isinstance(permission, int) else permission_ids.get(permission)
            role_id = role if isinstance(role, int) else role_ids.get(role)
            if permission_id is None or role_id is None:
                continue
            if (permission_id, role_id) in seen:
                continue
            seen.add((permission_id, role_id))
            rows.append({"permission_id": permission_id, "role_id": role_id})

        if rows:
            await session.execute(insert(role_has_permissions), rows)
            await session.flush()
        return len(rows)

    async def grant_ids_to_role(
        self, session: AsyncSession, permission_ids: Iterable[int], role_id: int
    ) -> int:
        return await self.grant(session, ((int(pid), role_id) for pid in permission_ids))

    async def revoke(self, session: AsyncSession, permission_ids: Sequence[int]) -> int:
        """Remove every role grant of the given permission ids."""
        if not permission_ids:
            return 0
        result = await session.execute(
            delete(role_has_permissions).where(
                role_has_permissions.c.permission_id.in_([int(p) for p in permission_ids])
            )
        )
        await session.flush()
        return result.rowcount or 0

    async def _resolve_roles(self, session: AsyncSession, roles: Iterable[Ref]) -> list[int]:
        by_name = await self.role_ids(session)
        known_ids = set(by_name.values())
        resolved: list[int] = []
        for role in roles:
            role_id = role if isinstance(role, int) else by_name.get(role)
            if role_id is None or role_id not in known_ids:
                logger.warning("Unknown role %r", role)
                continue
            if role_id not in resolved:
                resolved.append(role_id)
        return resolved

    async def _resolve_permissions(
        self, session: AsyncSession, permissions: Iterable[Ref]
    ) -> list[int]:
        by_name = await self.permission_ids(session)
        known_ids = set(by_name.values())
        resolved = []
        for permission in permissions:
            permission_id = permission if isinstance(permission, int) else by_name.get(permission)
            if permission_id is not None and permission_id in known_ids:
                resolved.append(permission_id)
        return resolved

    async def role_permission_ids(
        self, session: AsyncSession, role_ids: Sequence[int]
    ) -> list[int]:
        if not role_ids:
            return []
        result = await session.execute(
            select(role_has_permissions.c.permission_id)
            .where(role_has_permissions.c.role_id.in_(role_ids))
            .order_by(role_has_permissions.c.permission_id)
        )
        return list(result.scalars().all())

    async def assign_roles_and_permissions(
        self,
        session: AsyncSession,
        user_id: int,
        roles: Sequence[Ref] | None = None,
        permissions: Sequence[Ref] | None = None,
    ) -> list[int]:
        """Sync a user's roles and direct permissions.

        The user ends up with the given roles (when any are given) and with
        the permissions those roles grant plus `permissions`, deduplicated by
        id. Calling this twice with the same input changes nothing. Returns
        the user's permission ids.
        """
        if roles:
            role_ids = await self._resolve_roles(session, roles)
            await session.execute(delete(user_roles).where(user_roles.c.user_id == user_id))
            if role_ids:
                await session.execute(
                    insert(user_roles),
                    [{"role_id": rid, "user_id": user_id} for rid in role_ids],
                )
        else:
            result = await session.execute(
                select(user_roles.c.role_id).where(user_roles.c.user_id == user_id)
            )
            role_ids = list(result.scalars().all())

        merged: list[int] = []
        for pid in await self.role_permission_ids(session, role_ids):
            if pid not in merged:
                merged.append(pid)
        for pid in await self._resolve_permissions(session, permissions or []):
            if pid not in merged:
                merged.append(pid)

        await session.execute(
            delete(user_permissions).where(user_permissions.c.user_id == user_id)
        )
        if merged:
            await session.execute(
                insert(user_permissions),
                [{"permission_id": pid, "user_id": user_id} for pid in merged],
            )
        await session.flush()
        return merged

"""Repository for the users container (partitioned by /id, read-only)."""

from __future__ import annotations

from bidflow.database.repositories.base import BaseRepository
from bidflow.models.user import Role, User


class UserRepository(BaseRepository[User]):
    container_name = "users"
    model_class = User

    async def list_all(self) -> list[User]:
        return await self.query("SELECT * FROM c WHERE NOT IS_DEFINED(c.deleted_at)")

    async def list_by_role(self, role: Role) -> list[User]:
        return await self.query(
            "SELECT * FROM c WHERE c.role = @role AND NOT IS_DEFINED(c.deleted_at)",
            [{"name": "@role", "value": role.value}],
        )

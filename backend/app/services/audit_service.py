from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.audit import AuditLog
from app.models.user import User


def entity_type_of(entity) -> str:
    return type(entity).__name__.lower()


class AuditService:
    """Append-only trail of the mutations made through the API."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def log(
        self,
        actor: Optional[User],
        action: str,
        entity,
        before_state: Optional[dict] = None,
        after_state: Optional[dict] = None,
    ) -> AuditLog:
        entry = AuditLog(
            actor_id=actor.id if actor is not None else None,
            action=action,
            entity_type=entity_type_of(entity),
            entity_id=entity.id,
            before_state=before_state,
            after_state=after_state,
        )
        self.db.add(entry)
        await self.db.flush()
        return entry

    async def history(self, entity) -> List[AuditLog]:
        result = await self.db.execute(
            select(AuditLog)
            .where(
                AuditLog.entity_type == entity_type_of(entity),
                AuditLog.entity_id == entity.id,
            )
            .order_by(AuditLog.created_at.asc(), AuditLog.id)
        )
        return list(result.scalars().all())

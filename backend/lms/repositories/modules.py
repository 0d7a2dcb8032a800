"""Module content repository."""

from collections.abc import Iterable
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lms.db.models import Module
from lms.repositories.base import translate_store_errors


class ModuleRepository:
    """Read access to stored module snapshots."""

    def __init__(self, session: AsyncSession):
        self.session = session

    @translate_store_errors
    async def get(self, module_id: str) -> Optional[Module]:
        return await self.session.get(Module, module_id)

    @translate_store_errors
    async def existing_ids(self, module_ids: Iterable[str]) -> set[str]:
        """Return the subset of module_ids that still exist."""
        ids = set(module_ids)
        if not ids:
            return set()
        result = await self.session.execute(select(Module.id).where(Module.id.in_(ids)))
        return set(result.scalars().all())

    @translate_store_errors
    async def add(self, module: Module) -> Module:
        self.session.add(module)
        await self.session.flush()
        return module

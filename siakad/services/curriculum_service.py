# siakad/services/curriculum_service.py
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select, delete, func, desc
from sqlalchemy.ext.asyncio import AsyncSession

from .base_service import BaseService, set_single_active
from ..core.database import transactional
from ..core.exceptions import CurriculumNotFoundError, ResourceInUseError, NoDataError
from ..models.academic import Curriculum
from ..models.rombel import Rombel
from ..schemas.academic import CurriculumCreate, CurriculumUpdate

logger = logging.getLogger(__name__)


class CurriculumService(BaseService[Curriculum]):
    def __init__(self, db: AsyncSession):
        super().__init__(Curriculum, db)

    async def list_all(self) -> List[Dict[str, Any]]:
        """All curricula, newest first, with the number of rombels using each"""
        usage = (
            select(func.count())
            .select_from(Rombel)
            .where(Rombel.curriculum_id == Curriculum.id)
            .correlate(Curriculum)
            .scalar_subquery()
        )
        stmt = select(Curriculum, usage.label("rombel_count")).order_by(desc(Curriculum.year), desc(Curriculum.id))
        rows = (await self.db.execute(stmt)).all()
        return [
            {
                "id": curriculum.id,
                "name": curriculum.name,
                "code": curriculum.code,
                "year": curriculum.year,
                "description": curriculum.description,
                "is_active": curriculum.is_active,
                "rombel_count": rombel_count,
            }
            for curriculum, rombel_count in rows
        ]

    async def get_active(self) -> Optional[Curriculum]:
        stmt = select(Curriculum).where(Curriculum.is_active.is_(True))
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def get_or_404(self, curriculum_id: int) -> Curriculum:
        curriculum = await self.get(curriculum_id)
        if not curriculum:
            raise CurriculumNotFoundError(curriculum_id)
        return curriculum

    async def create_curriculum(self, data: CurriculumCreate) -> Curriculum:
        async with transactional(self.db):
            curriculum = Curriculum(**data.model_dump(exclude={"is_active"}), is_active=False)
            self.db.add(curriculum)
            await self.db.flush()
            if data.is_active:
                await set_single_active(self.db, Curriculum, curriculum.id)
            await self.db.refresh(curriculum)

        logger.info(f"Created curriculum {curriculum.code}")
        return curriculum

    async def update_curriculum(self, curriculum_id: int, data: CurriculumUpdate) -> Curriculum:
        changes = data.model_dump(exclude_unset=True)
        if not changes:
            raise NoDataError()

        async with transactional(self.db):
            curriculum = await self.get_or_404(curriculum_id)
            activate = changes.pop("is_active", None)

            for key, value in changes.items():
                setattr(curriculum, key, value)
            if activate is False:
                curriculum.is_active = False

            await self.db.flush()
            if activate:
                await set_single_active(self.db, Curriculum, curriculum.id)
            await self.db.refresh(curriculum)

        return curriculum

    async def activate(self, curriculum_id: int) -> Curriculum:
        async with transactional(self.db):
            curriculum = await self.get_or_404(curriculum_id)
            await set_single_active(self.db, Curriculum, curriculum.id)
            await self.db.refresh(curriculum)

        logger.info(f"Curriculum {curriculum.code} is now active")
        return curriculum

    async def delete_curriculum(self, curriculum_id: int) -> None:
        async with transactional(self.db):
            curriculum = await self.get_or_404(curriculum_id)

            stmt = select(func.count()).select_from(Rombel).where(Rombel.curriculum_id == curriculum_id)
            usage = (await self.db.execute(stmt)).scalar() or 0
            if usage:
                raise ResourceInUseError("Curriculum", curriculum_id, usage)

            await self.db.execute(delete(Curriculum).where(Curriculum.id == curriculum_id))

        logger.info(f"Deleted curriculum {curriculum_id}")

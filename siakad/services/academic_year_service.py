# siakad/services/academic_year_service.py
import logging
from datetime import date
from typing import List, Optional

from sqlalchemy import select, delete, func, desc
from sqlalchemy.ext.asyncio import AsyncSession

from .base_service import BaseService, set_single_active
from ..core.database import transactional
from ..core.exceptions import AcademicYearNotFoundError, ResourceInUseError, NoDataError
from ..models.academic import AcademicYear
from ..models.rombel import Rombel
from ..schemas.academic import AcademicYearCreate, AcademicYearUpdate

logger = logging.getLogger(__name__)


def default_academic_year_name(today: Optional[date] = None) -> str:
    """School years start in July: 2025/2026 runs from July 2025 to June 2026"""
    today = today or date.today()
    start = today.year if today.month >= 7 else today.year - 1
    return f"{start}/{start + 1}"


class AcademicYearService(BaseService[AcademicYear]):
    def __init__(self, db: AsyncSession):
        super().__init__(AcademicYear, db)

    async def list_all(self) -> List[AcademicYear]:
        stmt = select(AcademicYear).order_by(desc(AcademicYear.start_year), desc(AcademicYear.id))
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def get_active(self) -> Optional[AcademicYear]:
        stmt = select(AcademicYear).where(AcademicYear.is_active.is_(True))
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def get_or_404(self, academic_year_id: int) -> AcademicYear:
        academic_year = await self.get(academic_year_id)
        if not academic_year:
            raise AcademicYearNotFoundError(academic_year_id)
        return academic_year

    async def create_academic_year(self, data: AcademicYearCreate) -> AcademicYear:
        async with transactional(self.db):
            academic_year = await self._insert(data.model_dump(exclude={"is_active"}))
            if data.is_active:
                await set_single_active(self.db, AcademicYear, academic_year.id)
            await self.db.refresh(academic_year)

        logger.info(f"Created academic year {academic_year.name} (active={academic_year.is_active})")
        return academic_year

    async def update_academic_year(self, academic_year_id: int, data: AcademicYearUpdate) -> AcademicYear:
        changes = data.model_dump(exclude_unset=True)
        if not changes:
            raise NoDataError()

        async with transactional(self.db):
            academic_year = await self.get_or_404(academic_year_id)
            activate = changes.pop("is_active", None)

            for key, value in changes.items():
                setattr(academic_year, key, value)
            if activate is False:
                academic_year.is_active = False

            await self.db.flush()
            if activate:
                await set_single_active(self.db, AcademicYear, academic_year.id)
            await self.db.refresh(academic_year)

        return academic_year

    async def activate(self, academic_year_id: int) -> AcademicYear:
        async with transactional(self.db):
            academic_year = await self.get_or_404(academic_year_id)
            await set_single_active(self.db, AcademicYear, academic_year.id)
            await self.db.refresh(academic_year)

        logger.info(f"Academic year {academic_year.name} is now active")
        return academic_year

    async def delete_academic_year(self, academic_year_id: int) -> None:
        async with transactional(self.db):
            academic_year = await self.get_or_404(academic_year_id)

            stmt = select(func.count()).select_from(Rombel).where(Rombel.academic_year_id == academic_year_id)
            usage = (await self.db.execute(stmt)).scalar() or 0
            if usage:
                raise ResourceInUseError("Academic year", academic_year_id, usage)

            await self.db.execute(delete(AcademicYear).where(AcademicYear.id == academic_year_id))

        logger.info(f"Deleted academic year {academic_year_id}")

    async def get_or_create_active(self) -> AcademicYear:
        """Active academic year, creating the current school year when none is active.

        Runs inside the caller's transaction.
        """
        academic_year = await self.get_active()
        if academic_year:
            return academic_year

        name = default_academic_year_name()
        stmt = select(AcademicYear).where(AcademicYear.name == name)
        academic_year = (await self.db.execute(stmt)).scalar_one_or_none()

        if not academic_year:
            start_year, end_year = (int(part) for part in name.split("/"))
            academic_year = await self._insert({"name": name, "start_year": start_year, "end_year": end_year})
            logger.info(f"No active academic year, created {name}")

        await set_single_active(self.db, AcademicYear, academic_year.id)
        academic_year.is_active = True
        return academic_year

    async def _insert(self, values: dict) -> AcademicYear:
        academic_year = AcademicYear(**values, is_active=False)
        self.db.add(academic_year)
        await self.db.flush()
        return academic_year

# siakad/services/assessment_type_service.py
"""Assessment types (TUGAS, UH, UTS, UAS) and their default weights."""
import logging
from typing import Any, Dict, List

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from .base_service import BaseService
from ..core.database import transactional
from ..core.exceptions import (
    AssessmentTypeNotFoundError,
    DuplicateValueError,
    NoDataError,
    ResourceInUseError,
)
from ..models.scores import AssessmentType, StudentScore
from ..schemas.scores import AssessmentTypeCreate, AssessmentTypeUpdate

logger = logging.getLogger(__name__)


def normalize_code(code: str) -> str:
    return code.strip().upper()


class AssessmentTypeService(BaseService[AssessmentType]):
    def __init__(self, db: AsyncSession):
        super().__init__(AssessmentType, db)

    async def list_all(self, active_only: bool = False) -> List[Dict[str, Any]]:
        """Assessment types with the number of scores recorded against each"""
        usage = (
            select(func.count())
            .select_from(StudentScore)
            .where(StudentScore.assessment_type_id == AssessmentType.id)
            .correlate(AssessmentType)
            .scalar_subquery()
        )
        stmt = select(AssessmentType, usage.label("usage_count")).order_by(AssessmentType.code)
        if active_only:
            stmt = stmt.where(AssessmentType.is_active.is_(True))

        rows = (await self.db.execute(stmt)).all()
        return [
            {
                "id": assessment_type.id,
                "code": assessment_type.code,
                "name": assessment_type.name,
                "default_weight": assessment_type.default_weight,
                "is_active": assessment_type.is_active,
                "usage_count": usage_count,
            }
            for assessment_type, usage_count in rows
        ]

    async def get_stats(self) -> Dict[str, int]:
        total = (await self.db.execute(select(func.count()).select_from(AssessmentType))).scalar() or 0
        active = (await self.db.execute(
            select(func.count()).select_from(AssessmentType).where(AssessmentType.is_active.is_(True))
        )).scalar() or 0
        scores = (await self.db.execute(select(func.count()).select_from(StudentScore))).scalar() or 0
        return {
            "total": total,
            "active": active,
            "inactive": total - active,
            "total_scores_recorded": scores,
        }

    async def get_or_404(self, assessment_type_id: int) -> AssessmentType:
        assessment_type = await self.get(assessment_type_id)
        if not assessment_type:
            raise AssessmentTypeNotFoundError(assessment_type_id)
        return assessment_type

    async def create_assessment_type(self, data: AssessmentTypeCreate) -> AssessmentType:
        code = normalize_code(data.code)

        async with transactional(self.db):
            await self._ensure_unique_code(code)
            assessment_type = AssessmentType(
                code=code,
                name=data.name.strip(),
                default_weight=data.default_weight,
                is_active=True,
            )
            self.db.add(assessment_type)
            await self.db.flush()
            await self.db.refresh(assessment_type)

        logger.info(f"Created assessment type {code} (weight={data.default_weight})")
        return assessment_type

    async def update_assessment_type(self, assessment_type_id: int, data: AssessmentTypeUpdate) -> AssessmentType:
        changes = data.model_dump(exclude_unset=True)
        if not changes:
            raise NoDataError()

        async with transactional(self.db):
            assessment_type = await self.get_or_404(assessment_type_id)

            if "code" in changes:
                changes["code"] = normalize_code(changes["code"])
                if changes["code"] != assessment_type.code:
                    await self._ensure_unique_code(changes["code"])
            if "name" in changes:
                changes["name"] = changes["name"].strip()

            for key, value in changes.items():
                setattr(assessment_type, key, value)

            await self.db.flush()
            await self.db.refresh(assessment_type)

        logger.info(f"Updated assessment type {assessment_type_id}: {sorted(changes)}")
        return assessment_type

    async def toggle_status(self, assessment_type_id: int) -> AssessmentType:
        """Switch an assessment type on or off; inactive types drop out of weighting"""
        async with transactional(self.db):
            assessment_type = await self.get_or_404(assessment_type_id)
            assessment_type.is_active = not assessment_type.is_active
            await self.db.flush()
            await self.db.refresh(assessment_type)

        logger.info(f"Assessment type {assessment_type.code} active={assessment_type.is_active}")
        return assessment_type

    async def delete_assessment_type(self, assessment_type_id: int) -> None:
        """Delete an unused assessment type; used ones can only be deactivated"""
        async with transactional(self.db):
            assessment_type = await self.get_or_404(assessment_type_id)

            stmt = select(func.count()).select_from(StudentScore).where(
                StudentScore.assessment_type_id == assessment_type_id
            )
            usage = (await self.db.execute(stmt)).scalar() or 0
            if usage:
                raise ResourceInUseError("Assessment type", assessment_type_id, usage, "score(s)")

            await self.db.delete(assessment_type)

        logger.info(f"Deleted assessment type {assessment_type_id}")

    async def _ensure_unique_code(self, code: str) -> None:
        stmt = select(AssessmentType.id).where(AssessmentType.code == code)
        if (await self.db.execute(stmt)).scalar_one_or_none() is not None:
            raise DuplicateValueError("Assessment type", "code", code)

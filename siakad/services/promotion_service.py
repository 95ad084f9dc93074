# siakad/services/promotion_service.py
"""Promotion of students into the next class level's rombels."""
import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import select, func, desc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .base_service import BaseService
from .membership_service import MembershipService
from ..core.database import transactional
from ..core.exceptions import CapacityExceededError, TargetRombelNotFoundError
from ..models.academic import AcademicYear
from ..models.rombel import ClassLevel, Rombel, RombelStudent
from ..models.student import Student, StudentStatus
from ..schemas.common import BatchResult
from ..schemas.rombel import TargetRombel

logger = logging.getLogger(__name__)

# SMA (X-XII) and SMP (VII-IX) share ranks 1-3
CLASS_LEVEL_RANKS = {"X": 1, "XI": 2, "XII": 3, "VII": 1, "VIII": 2, "IX": 3}
FINAL_GRADES = {"XII", "IX", "12", "9", "6", "3", "VI", "III"}
UNRANKED = 99


def class_level_rank(class_name: str) -> int:
    if class_name in CLASS_LEVEL_RANKS:
        return CLASS_LEVEL_RANKS[class_name]
    match = re.match(r"\s*(\d+)", class_name or "")
    if match and int(match.group(1)):
        return int(match.group(1))
    return UNRANKED


def is_final_grade(class_name: str) -> bool:
    return class_name in FINAL_GRADES


def sort_class_levels(levels: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Order class levels by grade, ties broken by id"""
    return sorted(levels, key=lambda level: (class_level_rank(level["class_name"]), level["id"]))


class PromotionService(BaseService[RombelStudent]):
    def __init__(self, db: AsyncSession):
        super().__init__(RombelStudent, db)
        self.memberships = MembershipService(db)

    async def get_class_levels(self) -> List[Dict[str, Any]]:
        result = await self.db.execute(select(ClassLevel.id, ClassLevel.class_name))
        levels = [{"id": row.id, "class_name": row.class_name} for row in result.all()]
        return sort_class_levels(levels)

    async def get_academic_years(self) -> List[Dict[str, Any]]:
        stmt = (
            select(AcademicYear.id, AcademicYear.name, AcademicYear.is_active)
            .order_by(desc(AcademicYear.start_year), desc(AcademicYear.id))
        )
        result = await self.db.execute(stmt)
        return [{"id": row.id, "name": row.name, "is_active": row.is_active} for row in result.all()]

    async def get_active_academic_year_id(self) -> Optional[int]:
        stmt = select(AcademicYear.id).where(AcademicYear.is_active.is_(True))
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def get_rombels_for_promotion(self, academic_year_id: Optional[int] = None) -> List[Dict[str, Any]]:
        """Rombels of an academic year (default: the active one) with their ACTIVE student counts"""
        year_id = academic_year_id or await self.get_active_academic_year_id()
        if not year_id:
            return []

        active_count = (
            select(func.count())
            .select_from(RombelStudent)
            .join(Student, RombelStudent.student_id == Student.id)
            .where(
                RombelStudent.rombel_id == Rombel.id,
                RombelStudent.is_active.is_(True),
                Student.status == StudentStatus.ACTIVE.value,
            )
            .correlate(Rombel)
            .scalar_subquery()
        )

        stmt = (
            select(
                Rombel.id,
                Rombel.code,
                Rombel.name,
                Rombel.class_id,
                ClassLevel.class_name,
                Rombel.academic_year_id,
                active_count.label("active_student_count"),
            )
            .join(ClassLevel, Rombel.class_id == ClassLevel.id)
            .where(Rombel.academic_year_id == year_id)
            .order_by(Rombel.name)
        )
        rows = (await self.db.execute(stmt)).all()

        return [
            {
                "id": row.id,
                "code": row.code,
                "name": row.name,
                "class_id": row.class_id,
                "class_name": row.class_name,
                "academic_year_id": row.academic_year_id,
                "active_student_count": row.active_student_count or 0,
                "is_final_grade": is_final_grade(row.class_name),
            }
            for row in rows
        ]

    async def get_students_for_promotion(self, rombel_id: int) -> List[Dict[str, Any]]:
        stmt = (
            select(Student.id, Student.nisn, Student.student_name, Student.gender, Student.status)
            .join(RombelStudent, RombelStudent.student_id == Student.id)
            .where(
                RombelStudent.rombel_id == rombel_id,
                RombelStudent.is_active.is_(True),
                Student.status == StudentStatus.ACTIVE.value,
            )
            .order_by(Student.student_name)
        )
        rows = (await self.db.execute(stmt)).all()
        return [
            {"id": row.id, "nisn": row.nisn, "name": row.student_name, "gender": row.gender, "status": row.status}
            for row in rows
        ]

    async def get_target_rombels(self, source_class_id: int) -> List[TargetRombel]:
        """Rombels of the next class level in the active academic year"""
        levels = await self.get_class_levels()
        index = next((i for i, level in enumerate(levels) if level["id"] == source_class_id), None)
        if index is None:
            return []

        source = levels[index]
        if is_final_grade(source["class_name"]) or index + 1 >= len(levels):
            return []
        next_level = levels[index + 1]

        year_id = await self.get_active_academic_year_id()
        if not year_id:
            return []

        current_count = (
            select(func.count())
            .select_from(RombelStudent)
            .where(RombelStudent.rombel_id == Rombel.id, RombelStudent.is_active.is_(True))
            .correlate(Rombel)
            .scalar_subquery()
        )
        stmt = (
            select(Rombel, current_count.label("current_count"))
            .where(Rombel.class_id == next_level["id"], Rombel.academic_year_id == year_id)
            .order_by(Rombel.name)
        )
        rows = (await self.db.execute(stmt)).all()

        return [
            TargetRombel(
                id=rombel.id,
                code=rombel.code,
                name=rombel.name,
                class_id=rombel.class_id,
                class_name=next_level["class_name"],
                capacity=rombel.student_capacity,
                current_count=count or 0,
                available_slots=rombel.student_capacity - (count or 0),
            )
            for rombel, count in rows
        ]

    async def promote_students(self, student_ids: List[int], target_rombel_id: int) -> BatchResult:
        """Move students into the target rombel.

        Capacity is checked for the whole request up front while the target row
        is locked; after that every student is processed in its own savepoint.
        """
        student_ids = list(dict.fromkeys(student_ids))
        result = BatchResult(total_processed=len(student_ids))

        async with transactional(self.db):
            target = await self.memberships.lock_rombel(target_rombel_id)
            if not target:
                raise TargetRombelNotFoundError(target_rombel_id)

            available = await self.memberships.available_slots(target)
            if len(student_ids) > available:
                raise CapacityExceededError(available, len(student_ids), target.name)

            already = set(await self.memberships.get_active_student_ids(target_rombel_id, student_ids))
            now = datetime.now(timezone.utc)

            # Student rows are locked in id order, as in rombel registration
            for student_id in sorted(student_ids):
                try:
                    async with self.db.begin_nested():
                        student = await self._get_student_for_update(student_id)
                        if not student:
                            result.add_failure(student_id, "Student not found")
                            continue
                        if student.status != StudentStatus.ACTIVE:
                            result.add_failure(student_id, "Student is not active", name=student.student_name)
                            continue
                        if student_id in already:
                            result.add_failure(student_id, "Already in target rombel", name=student.student_name)
                            continue

                        await self.memberships.assign(student, target_rombel_id, now)
                    result.add_success(student_id, student.student_name)
                except SQLAlchemyError as e:
                    logger.warning(f"Promotion failed for student {student_id}: {e}")
                    result.add_failure(student_id, "Database error while promoting student")

        logger.info(
            f"Promoted {result.success_count} student(s) into rombel {target_rombel_id}, "
            f"{result.failed_count} failed"
        )
        return result

    async def _get_student_for_update(self, student_id: int) -> Optional[Student]:
        stmt = select(Student).where(Student.id == student_id).with_for_update()
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

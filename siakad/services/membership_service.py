# siakad/services/membership_service.py
"""Rombel membership bookkeeping.

Every write to rombel_students and to Student.rombel_id goes through this
service. A student has at most one active membership, and Student.rombel_id
always mirrors it (or is None when the student has none).
"""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select, func, and_
from sqlalchemy.ext.asyncio import AsyncSession

from .base_service import BaseService
from ..models.rombel import Rombel, RombelStudent
from ..models.student import Student

logger = logging.getLogger(__name__)


class MembershipService(BaseService[RombelStudent]):
    def __init__(self, db: AsyncSession):
        super().__init__(RombelStudent, db)

    async def get_active(self, student_id: int) -> Optional[RombelStudent]:
        """Get the active membership of a student"""
        stmt = select(RombelStudent).where(
            RombelStudent.student_id == student_id,
            RombelStudent.is_active.is_(True)
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def count_active(self, rombel_id: int) -> int:
        """Count active memberships of a rombel"""
        stmt = select(func.count()).select_from(RombelStudent).where(
            RombelStudent.rombel_id == rombel_id,
            RombelStudent.is_active.is_(True)
        )
        result = await self.db.execute(stmt)
        return result.scalar() or 0

    async def lock_rombel(self, rombel_id: int) -> Optional[Rombel]:
        """Load a rombel and hold its row lock for the rest of the transaction"""
        stmt = select(Rombel).where(Rombel.id == rombel_id).with_for_update()
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def available_slots(self, rombel: Rombel) -> int:
        return rombel.student_capacity - await self.count_active(rombel.id)

    async def deactivate_active(self, student_id: int, left_at: datetime) -> Optional[RombelStudent]:
        """Close every active membership of a student, returning the one that was open"""
        stmt = select(RombelStudent).where(
            RombelStudent.student_id == student_id,
            RombelStudent.is_active.is_(True)
        )
        result = await self.db.execute(stmt)
        active = result.scalars().all()

        for membership in active:
            membership.is_active = False
            membership.left_at = left_at

        if len(active) > 1:
            logger.warning(f"Student {student_id} had {len(active)} active memberships; all closed")

        return active[0] if active else None

    async def assign(self, student: Student, rombel_id: int, joined_at: datetime) -> RombelStudent:
        """Move a student into a rombel, closing any membership still open"""
        await self.deactivate_active(student.id, joined_at)

        membership = RombelStudent(
            rombel_id=rombel_id,
            student_id=student.id,
            is_active=True,
            joined_at=joined_at,
        )
        self.db.add(membership)
        student.rombel_id = rombel_id
        return membership

    async def release(self, student: Student, left_at: datetime) -> Optional[RombelStudent]:
        """Take a student out of their current rombel"""
        previous = await self.deactivate_active(student.id, left_at)
        student.rombel_id = None
        return previous

    async def get_active_student_ids(self, rombel_id: int, student_ids: List[int]) -> List[int]:
        """Subset of student_ids already active in the rombel"""
        stmt = select(RombelStudent.student_id).where(
            RombelStudent.rombel_id == rombel_id,
            RombelStudent.is_active.is_(True),
            RombelStudent.student_id.in_(student_ids)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def find_back_reference_mismatches(self, limit: int = 100) -> List[dict]:
        """Students whose cached rombel_id disagrees with their active membership"""
        stmt = (
            select(
                Student.id,
                Student.student_name,
                Student.rombel_id,
                RombelStudent.rombel_id.label("membership_rombel_id"),
            )
            .outerjoin(
                RombelStudent,
                and_(
                    RombelStudent.student_id == Student.id,
                    RombelStudent.is_active.is_(True)
                )
            )
            .where(Student.rombel_id.is_distinct_from(RombelStudent.rombel_id))
            .order_by(Student.id)
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return [
            {
                "student_id": row.id,
                "name": row.student_name,
                "cached_rombel_id": row.rombel_id,
                "membership_rombel_id": row.membership_rombel_id,
            }
            for row in result.all()
        ]

# siakad/services/rombel_service.py
"""Rombel registration, membership additions and deletion."""
import logging
import re
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import select, func, update, delete, and_
from sqlalchemy.ext.asyncio import AsyncSession

from .academic_year_service import AcademicYearService
from .base_service import BaseService
from .membership_service import MembershipService
from ..core.config import settings
from ..core.database import transactional
from ..core.exceptions import (
    CapacityExceededError,
    DuplicateStudentError,
    InvalidCapacityError,
    NoDataError,
    RombelNotFoundError,
    StudentAlreadyInRombelError,
    StudentNotActiveError,
    StudentNotFoundError,
)
from ..models.academic import AcademicYear
from ..models.attendance import StudentAttendance
from ..models.history import StudentHistory
from ..models.rombel import ClassLevel, Rombel, RombelStudent
from ..models.student import Student, StudentStatus
from ..models.teacher import Teacher
from ..schemas.rombel import RombelRegisterItem

logger = logging.getLogger(__name__)


def generate_rombel_code(name: str) -> str:
    compact = re.sub(r"\s+", "", name).upper()
    return f"{compact}-{uuid.uuid4().hex[:8]}"


def validate_register_batch(items: List[RombelRegisterItem]) -> None:
    """Reject a registration batch before anything is written"""
    if not items:
        raise NoDataError("No rombel to register")

    seen = set()
    duplicates = []

    for item in items:
        capacity = item.student_capacity if item.student_capacity is not None else settings.default_rombel_capacity
        if capacity <= 0:
            raise InvalidCapacityError(capacity, item.nama_rombel)

        students = list(dict.fromkeys(item.siswa))
        if len(students) > capacity:
            raise CapacityExceededError(capacity, len(students), item.nama_rombel)

        for student_id in students:
            if student_id in seen:
                duplicates.append(student_id)
            seen.add(student_id)

    if duplicates:
        raise DuplicateStudentError(sorted(set(duplicates)))


class RombelService(BaseService[Rombel]):
    def __init__(self, db: AsyncSession):
        super().__init__(Rombel, db)
        self.memberships = MembershipService(db)
        self.academic_years = AcademicYearService(db)

    async def register_rombel(self, items: List[RombelRegisterItem]) -> Dict[str, Any]:
        """Create rombels and enroll their students in one transaction"""
        validate_register_batch(items)

        all_ids = [student_id for item in items for student_id in dict.fromkeys(item.siswa)]
        created = []

        async with transactional(self.db):
            academic_year = await self.academic_years.get_or_create_active()
            students = await self._load_active_students(all_ids)
            now = datetime.now(timezone.utc)

            for item in items:
                rombel = Rombel(
                    code=item.kode_rombel or generate_rombel_code(item.nama_rombel),
                    name=item.nama_rombel,
                    class_id=item.tingkat_kelas,
                    academic_year_id=academic_year.id,
                    class_advisor_id=item.wali_kelas,
                    curriculum_id=item.kurikulum,
                    classroom=item.nama_ruangan,
                    student_capacity=(
                        item.student_capacity if item.student_capacity is not None
                        else settings.default_rombel_capacity
                    ),
                )
                self.db.add(rombel)
                await self.db.flush()

                student_ids = list(dict.fromkeys(item.siswa))
                for student_id in student_ids:
                    await self.memberships.assign(students[student_id], rombel.id, now)

                created.append({
                    "id": rombel.id,
                    "code": rombel.code,
                    "name": rombel.name,
                    "student_count": len(student_ids),
                })

            await self.db.flush()

        logger.info(
            f"Registered {len(created)} rombel(s) in academic year {academic_year.name} "
            f"with {len(all_ids)} student(s)"
        )
        return {"success": True, "rombels": created}

    async def add_students_to_rombel(self, rombel_id: int, student_ids: List[int]) -> Dict[str, Any]:
        """Enroll students into an existing rombel, all or nothing"""
        student_ids = list(dict.fromkeys(student_ids))

        async with transactional(self.db):
            rombel = await self.memberships.lock_rombel(rombel_id)
            if not rombel:
                raise RombelNotFoundError(rombel_id)

            already = await self.memberships.get_active_student_ids(rombel_id, student_ids)
            if already:
                raise StudentAlreadyInRombelError(rombel_id, sorted(already))

            available = await self.memberships.available_slots(rombel)
            if len(student_ids) > available:
                raise CapacityExceededError(available, len(student_ids), rombel.name)

            students = await self._load_active_students(student_ids)
            now = datetime.now(timezone.utc)
            for student_id in student_ids:
                await self.memberships.assign(students[student_id], rombel_id, now)

            await self.db.flush()

        logger.info(f"Added {len(student_ids)} student(s) to rombel {rombel_id}")
        return {"rombel_id": rombel_id, "added": len(student_ids)}

    async def delete_rombel(self, rombel_id: int) -> Dict[str, Any]:
        """Delete a rombel and detach everything that points at it"""
        async with transactional(self.db):
            rombel = await self.memberships.lock_rombel(rombel_id)
            if not rombel:
                raise RombelNotFoundError(rombel_id)

            # Order matters: children first, the rombel row last
            await self.db.execute(
                update(Student).where(Student.rombel_id == rombel_id).values(rombel_id=None)
            )
            await self.db.execute(
                delete(StudentAttendance).where(StudentAttendance.rombel_id == rombel_id)
            )
            await self.db.execute(
                update(StudentHistory).where(StudentHistory.rombel_id == rombel_id).values(rombel_id=None)
            )
            await self.db.execute(
                delete(RombelStudent).where(RombelStudent.rombel_id == rombel_id)
            )
            await self.db.execute(
                delete(Rombel).where(Rombel.id == rombel_id)
            )

        logger.info(f"Deleted rombel {rombel_id} ({rombel.name})")
        return {"success": True}

    async def list_rombels(self, academic_year_id: Optional[int] = None) -> List[Dict[str, Any]]:
        active_count = (
            select(func.count())
            .select_from(RombelStudent)
            .where(
                RombelStudent.rombel_id == Rombel.id,
                RombelStudent.is_active.is_(True),
            )
            .correlate(Rombel)
            .scalar_subquery()
        )

        stmt = (
            select(
                Rombel,
                ClassLevel.class_name,
                AcademicYear.name.label("academic_year"),
                Teacher.full_name.label("class_advisor"),
                active_count.label("student_count"),
            )
            .join(ClassLevel, Rombel.class_id == ClassLevel.id)
            .join(AcademicYear, Rombel.academic_year_id == AcademicYear.id)
            .outerjoin(Teacher, Rombel.class_advisor_id == Teacher.id)
            .order_by(ClassLevel.class_name, Rombel.name)
        )
        if academic_year_id:
            stmt = stmt.where(Rombel.academic_year_id == academic_year_id)

        rows = (await self.db.execute(stmt)).all()
        return [
            {
                "id": rombel.id,
                "code": rombel.code,
                "name": rombel.name,
                "class_id": rombel.class_id,
                "class_name": class_name,
                "academic_year_id": rombel.academic_year_id,
                "academic_year": academic_year,
                "class_advisor": class_advisor,
                "classroom": rombel.classroom,
                "capacity": rombel.student_capacity,
                "student_count": student_count,
                "available_slots": rombel.student_capacity - student_count,
            }
            for rombel, class_name, academic_year, class_advisor, student_count in rows
        ]

    async def get_rombel_detail(self, rombel_id: int) -> Dict[str, Any]:
        stmt = (
            select(Rombel, ClassLevel.class_name, Teacher.full_name)
            .join(ClassLevel, Rombel.class_id == ClassLevel.id)
            .outerjoin(Teacher, Rombel.class_advisor_id == Teacher.id)
            .where(Rombel.id == rombel_id)
        )
        row = (await self.db.execute(stmt)).first()
        if not row:
            raise RombelNotFoundError(rombel_id)
        rombel, class_name, class_advisor = row

        students_stmt = (
            select(Student.id, Student.nisn, Student.student_name, Student.gender, RombelStudent.joined_at)
            .join(RombelStudent, and_(
                RombelStudent.student_id == Student.id,
                RombelStudent.rombel_id == rombel_id,
                RombelStudent.is_active.is_(True),
            ))
            .order_by(Student.student_name)
        )
        students = [
            {
                "id": s.id,
                "nisn": s.nisn,
                "name": s.student_name,
                "gender": s.gender,
                "joined_at": s.joined_at.isoformat() if s.joined_at else None,
            }
            for s in (await self.db.execute(students_stmt)).all()
        ]

        return {
            "id": rombel.id,
            "code": rombel.code,
            "name": rombel.name,
            "class_id": rombel.class_id,
            "class_name": class_name,
            "academic_year_id": rombel.academic_year_id,
            "curriculum_id": rombel.curriculum_id,
            "class_advisor": class_advisor,
            "classroom": rombel.classroom,
            "capacity": rombel.student_capacity,
            "student_count": len(students),
            "available_slots": rombel.student_capacity - len(students),
            "students": students,
        }

    async def _load_active_students(self, student_ids: List[int]) -> Dict[int, Student]:
        """Lock the given students; every one must exist and be ACTIVE"""
        if not student_ids:
            return {}

        stmt = select(Student).where(Student.id.in_(student_ids)).order_by(Student.id).with_for_update()
        result = await self.db.execute(stmt)
        students = {student.id: student for student in result.scalars().all()}

        missing = [student_id for student_id in student_ids if student_id not in students]
        if missing:
            raise StudentNotFoundError(missing[0] if len(missing) == 1 else missing)

        for student in students.values():
            if student.status != StudentStatus.ACTIVE:
                raise StudentNotActiveError(student.id, student.status)

        return students

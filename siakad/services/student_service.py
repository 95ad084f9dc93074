# siakad/services/student_service.py
"""Student registration and profile maintenance.

Lifecycle status and rombel membership are owned by the enrollment and
membership services; this service never writes either of them.
"""
import logging
from typing import Any, Dict, Optional

from sqlalchemy import select, delete, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from .base_service import BaseService
from ..core.database import transactional
from ..core.exceptions import (
    DuplicateValueError,
    NoDataError,
    ResourceInUseError,
    StudentNotFoundError,
)
from ..models.history import StudentHistory
from ..models.rombel import RombelStudent
from ..models.scores import StudentScore
from ..models.student import Student, StudentStatus
from ..schemas.student import StudentCreate, StudentUpdate

logger = logging.getLogger(__name__)


class StudentService(BaseService[Student]):
    def __init__(self, db: AsyncSession):
        super().__init__(Student, db)

    async def list_students(
        self,
        page: int = 1,
        size: int = 10,
        status: Optional[str] = None,
        search: Optional[str] = None,
    ) -> Dict[str, Any]:
        conditions = []
        if status:
            conditions.append(Student.status == status)
        if search:
            pattern = f"%{search}%"
            conditions.append(or_(Student.student_name.ilike(pattern), Student.nisn.ilike(pattern)))

        count_stmt = select(func.count()).select_from(Student).where(*conditions)
        total = (await self.db.execute(count_stmt)).scalar() or 0

        stmt = (
            select(Student)
            .where(*conditions)
            .order_by(Student.student_name, Student.id)
            .offset((page - 1) * size)
            .limit(size)
        )
        students = (await self.db.execute(stmt)).scalars().all()

        return {
            "items": [
                {
                    "id": student.id,
                    "nisn": student.nisn,
                    "name": student.student_name,
                    "gender": student.gender,
                    "status": student.status,
                    "rombel_id": student.rombel_id,
                }
                for student in students
            ],
            "total": total,
            "page": page,
            "size": size,
            "total_pages": (total + size - 1) // size,
        }

    async def get_or_404(self, student_id: int) -> Student:
        student = await self.get(student_id)
        if not student:
            raise StudentNotFoundError(student_id)
        return student

    async def create_student(self, data: StudentCreate) -> Student:
        """Register a new ACTIVE student without a rombel"""
        async with transactional(self.db):
            await self._ensure_unique("nisn", data.nisn)
            if data.local_nis:
                await self._ensure_unique("local_nis", data.local_nis)

            student = Student(
                **data.model_dump(),
                status=StudentStatus.ACTIVE.value,
                rombel_id=None,
            )
            self.db.add(student)
            await self.db.flush()
            await self.db.refresh(student)

        logger.info(f"Registered student {student.id} ({student.nisn})")
        return student

    async def update_student(self, student_id: int, data: StudentUpdate) -> Student:
        changes = data.model_dump(exclude_unset=True)
        if not changes:
            raise NoDataError()

        async with transactional(self.db):
            student = await self.get_or_404(student_id)

            for field in ("nisn", "local_nis"):
                value = changes.get(field)
                if value and value != getattr(student, field):
                    await self._ensure_unique(field, value, exclude_id=student_id)

            for key, value in changes.items():
                setattr(student, key, value)

            await self.db.flush()
            await self.db.refresh(student)

        logger.info(f"Updated student {student_id}: {sorted(changes)}")
        return student

    async def delete_student(self, student_id: int) -> None:
        """Delete a student that has no enrollment, history or score records"""
        async with transactional(self.db):
            stmt = select(Student).where(Student.id == student_id).with_for_update()
            student = (await self.db.execute(stmt)).scalar_one_or_none()
            if not student:
                raise StudentNotFoundError(student_id)

            usage = 0
            for model in (RombelStudent, StudentHistory, StudentScore):
                count_stmt = select(func.count()).select_from(model).where(model.student_id == student_id)
                usage += (await self.db.execute(count_stmt)).scalar() or 0
            if usage:
                raise ResourceInUseError("Student", student_id, usage, "enrollment record(s)")

            # Child collections stay unloaded; the counts above show they are empty
            await self.db.execute(delete(Student).where(Student.id == student_id))

        logger.info(f"Deleted student {student_id}")

    async def _ensure_unique(self, field: str, value: str, exclude_id: Optional[int] = None) -> None:
        column = getattr(Student, field)
        stmt = select(Student.id).where(column == value)
        if exclude_id is not None:
            stmt = stmt.where(Student.id != exclude_id)
        if (await self.db.execute(stmt)).scalar_one_or_none() is not None:
            raise DuplicateValueError("Student", field, value)

# siakad/services/enrollment_service.py
"""Student lifecycle: ACTIVE -> GRADUATE and ACTIVE -> MUTASI transitions."""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import select, func, desc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .base_service import BaseService
from .membership_service import MembershipService
from ..core.database import transactional
from ..core.exceptions import (
    StudentNotFoundError,
    StudentNotActiveError,
    StudentNotGraduateError,
    HistoryNotFoundError,
    NoDataError,
)
from ..models.history import StudentHistory
from ..models.rombel import ClassLevel, Rombel
from ..models.student import Student, StudentStatus
from ..schemas.common import BatchResult
from ..schemas.enrollment import (
    GraduateRequest,
    BulkGraduateRequest,
    UpdateHistoryRequest,
    WithdrawRequest,
    StudentSummary,
    HistoryResponse,
    TransitionResult,
)

logger = logging.getLogger(__name__)


class EnrollmentService(BaseService[StudentHistory]):
    def __init__(self, db: AsyncSession):
        super().__init__(StudentHistory, db)
        self.memberships = MembershipService(db)

    # TRANSITIONS

    async def graduate_student(self, student_id: int, request: GraduateRequest) -> TransitionResult:
        """Graduate an ACTIVE student and record the graduation history"""
        async with transactional(self.db):
            student = await self._get_active_student(student_id)
            history, left = await self._close_enrollment(
                student,
                StudentStatus.GRADUATE,
                completion_date=request.completion_date,
                graduation_year=request.graduation_year,
                certificate_number=request.certificate_number,
                final_grade=request.final_grade,
                scores=request.scores,
            )

        last_class = await self._get_rombel_name(left.rombel_id) if left else None
        logger.info(f"Graduated student {student_id} ({request.graduation_year}) from rombel {last_class}")

        return self._to_result(student, history, last_class)

    async def withdraw_student(self, student_id: int, request: WithdrawRequest) -> TransitionResult:
        """Record a MUTASI (transfer out / withdrawal) for an ACTIVE student"""
        async with transactional(self.db):
            student = await self._get_active_student(student_id)
            history, left = await self._close_enrollment(
                student,
                StudentStatus.MUTASI,
                completion_date=request.completion_date,
                reason=request.reason,
                mutasi_type=request.mutasi_type,
                destination_school=request.destination_school,
                scores=request.scores,
            )

        last_class = await self._get_rombel_name(left.rombel_id) if left else None
        logger.info(f"Student {student_id} left via mutasi ({request.mutasi_type}) from rombel {last_class}")

        return self._to_result(student, history, last_class)

    async def bulk_graduate_students(self, request: BulkGraduateRequest) -> BatchResult:
        """Graduate many students in one transaction, one savepoint per student"""
        result = BatchResult(total_processed=len(request.students))

        async with transactional(self.db):
            for item in request.students:
                try:
                    async with self.db.begin_nested():
                        student = await self._get_student_for_update(item.student_id)
                        if not student:
                            result.add_failure(item.student_id, "Student not found")
                            continue
                        if student.status != StudentStatus.ACTIVE:
                            result.add_failure(
                                item.student_id,
                                f"Student is {student.status}, not ACTIVE",
                                name=student.student_name,
                            )
                            continue

                        await self._close_enrollment(
                            student,
                            StudentStatus.GRADUATE,
                            completion_date=request.completion_date,
                            graduation_year=request.graduation_year,
                            certificate_number=item.certificate_number,
                            final_grade=item.final_grade,
                            scores=item.scores,
                        )
                    result.add_success(item.student_id, student.student_name)
                except SQLAlchemyError as e:
                    logger.warning(f"Bulk graduation failed for student {item.student_id}: {e}")
                    result.add_failure(item.student_id, "Database error while graduating student")

        logger.info(
            f"Bulk graduation {request.graduation_year}: "
            f"{result.success_count} graduated, {result.failed_count} failed"
        )
        return result

    async def update_graduate_history(self, student_id: int, request: UpdateHistoryRequest) -> HistoryResponse:
        """Correct clerical fields of a graduation record"""
        async with transactional(self.db):
            student = await self._get_student(student_id)
            if not student:
                raise StudentNotFoundError(student_id)
            if student.status != StudentStatus.GRADUATE:
                raise StudentNotGraduateError(student_id, student.status)

            history = await self._get_graduation_history(student_id)
            if not history:
                raise HistoryNotFoundError(student_id)

            changes = request.model_dump(exclude_unset=True)
            if not changes:
                raise NoDataError()

            for key, value in changes.items():
                setattr(history, key, value)

            await self.db.flush()
            await self.db.refresh(history)

        logger.info(f"Updated graduation history of student {student_id}: {sorted(changes)}")
        return HistoryResponse.model_validate(history)

    # READS

    async def list_graduates(self, page: int = 1, size: int = 10, year: Optional[str] = None) -> Dict[str, Any]:
        """Alumni with their graduation record and last class, newest first"""
        conditions = [
            Student.status == StudentStatus.GRADUATE.value,
            StudentHistory.status_type == StudentStatus.GRADUATE.value,
        ]
        if year:
            conditions.append(StudentHistory.graduation_year == year)

        base = (
            select(Student, StudentHistory, Rombel)
            .join(StudentHistory, StudentHistory.student_id == Student.id)
            .outerjoin(Rombel, StudentHistory.rombel_id == Rombel.id)
            .where(*conditions)
        )

        count_stmt = select(func.count()).select_from(base.subquery())
        total = (await self.db.execute(count_stmt)).scalar() or 0

        stmt = base.order_by(desc(StudentHistory.completion_date)).offset((page - 1) * size).limit(size)
        rows = (await self.db.execute(stmt)).all()

        return {
            "items": [self._graduate_row(student, history, rombel) for student, history, rombel in rows],
            "total": total,
            "page": page,
            "size": size,
            "total_pages": (total + size - 1) // size,
        }

    async def get_graduate(self, student_id: int) -> Optional[Dict[str, Any]]:
        stmt = (
            select(Student, StudentHistory, Rombel, ClassLevel.class_name)
            .join(StudentHistory, StudentHistory.student_id == Student.id)
            .outerjoin(Rombel, StudentHistory.rombel_id == Rombel.id)
            .outerjoin(ClassLevel, Rombel.class_id == ClassLevel.id)
            .where(
                Student.id == student_id,
                Student.status == StudentStatus.GRADUATE.value,
                StudentHistory.status_type == StudentStatus.GRADUATE.value,
            )
        )
        row = (await self.db.execute(stmt)).first()
        if not row:
            return None

        student, history, rombel, class_level = row
        data = self._graduate_row(student, history, rombel)
        data.update({
            "local_nis": student.local_nis,
            "religion": student.religion,
            "reason": history.reason,
            "last_class_level": class_level,
        })
        return data

    async def count_graduates(self) -> int:
        stmt = select(func.count()).select_from(Student).where(
            Student.status == StudentStatus.GRADUATE.value
        )
        return (await self.db.execute(stmt)).scalar() or 0

    async def count_graduates_by_year(self) -> List[Dict[str, Any]]:
        stmt = (
            select(StudentHistory.graduation_year, func.count().label("count"))
            .where(StudentHistory.status_type == StudentStatus.GRADUATE.value)
            .group_by(StudentHistory.graduation_year)
            .order_by(desc(StudentHistory.graduation_year))
        )
        rows = (await self.db.execute(stmt)).all()
        return [{"year": row.graduation_year, "count": row.count} for row in rows]

    async def get_graduation_years(self) -> List[str]:
        stmt = (
            select(StudentHistory.graduation_year)
            .where(
                StudentHistory.status_type == StudentStatus.GRADUATE.value,
                StudentHistory.graduation_year.is_not(None),
            )
            .distinct()
            .order_by(desc(StudentHistory.graduation_year))
        )
        result = await self.db.execute(stmt)
        return [year for year in result.scalars().all() if year]

    async def get_student_history(self, student_id: int) -> List[HistoryResponse]:
        student = await self._get_student(student_id)
        if not student:
            raise StudentNotFoundError(student_id)

        stmt = (
            select(StudentHistory)
            .where(StudentHistory.student_id == student_id)
            .order_by(desc(StudentHistory.completion_date))
        )
        result = await self.db.execute(stmt)
        return [HistoryResponse.model_validate(h) for h in result.scalars().all()]

    # HELPERS

    async def _get_student(self, student_id: int) -> Optional[Student]:
        stmt = select(Student).where(Student.id == student_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def _get_student_for_update(self, student_id: int) -> Optional[Student]:
        stmt = select(Student).where(Student.id == student_id).with_for_update()
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def _get_active_student(self, student_id: int) -> Student:
        student = await self._get_student_for_update(student_id)
        if not student:
            raise StudentNotFoundError(student_id)
        if student.status != StudentStatus.ACTIVE:
            raise StudentNotActiveError(student_id, student.status)
        return student

    async def _get_graduation_history(self, student_id: int) -> Optional[StudentHistory]:
        stmt = (
            select(StudentHistory)
            .where(
                StudentHistory.student_id == student_id,
                StudentHistory.status_type == StudentStatus.GRADUATE.value,
            )
            .order_by(desc(StudentHistory.id))
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def _get_rombel_name(self, rombel_id: int) -> Optional[str]:
        result = await self.db.execute(select(Rombel.name).where(Rombel.id == rombel_id))
        return result.scalar_one_or_none()

    async def _close_enrollment(self, student: Student, status: StudentStatus, **history_fields):
        """Apply a terminal transition: status, membership and history in one go"""
        now = datetime.now(timezone.utc)

        left = await self.memberships.release(student, now)
        student.status = status.value

        history = StudentHistory(
            student_id=student.id,
            rombel_id=left.rombel_id if left else None,
            status_type=status.value,
            **history_fields,
        )
        self.db.add(history)
        await self.db.flush()
        return history, left

    def _to_result(self, student: Student, history: StudentHistory, last_class: Optional[str]) -> TransitionResult:
        return TransitionResult(
            student=StudentSummary(id=student.id, name=student.student_name, status=student.status),
            history=HistoryResponse.model_validate(history),
            last_class=last_class,
        )

    def _graduate_row(self, student: Student, history: StudentHistory, rombel: Optional[Rombel]) -> Dict[str, Any]:
        return {
            "id": student.id,
            "nisn": student.nisn,
            "name": student.student_name,
            "gender": student.gender,
            "birth_place": student.birth_place,
            "birth_date": student.birth_date.isoformat() if student.birth_date else None,
            "status": student.status,
            "history_id": history.id,
            "scores": history.scores,
            "completion_date": history.completion_date.isoformat() if history.completion_date else None,
            "graduation_year": history.graduation_year,
            "certificate_number": history.certificate_number,
            "final_grade": float(history.final_grade) if history.final_grade is not None else None,
            "last_rombel_id": rombel.id if rombel else None,
            "last_class_name": rombel.name if rombel else None,
            "last_class_code": rombel.code if rombel else None,
        }

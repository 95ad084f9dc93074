# siakad/services/score_service.py
"""Score aggregation and per-class-subject score sheets."""
import logging
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from .base_service import BaseService
from ..core.database import transactional
from ..core.exceptions import ClassSubjectNotFoundError, RombelNotFoundError
from ..models.rombel import ClassLevel, Rombel, RombelStudent
from ..models.scores import AssessmentType, ClassSubject, StudentScore, Subject
from ..models.student import Student
from ..schemas.scores import ScoreEntry, ScoreTotals

logger = logging.getLogger(__name__)

_TWO_PLACES = Decimal("0.01")


def round_half_up(value: float) -> float:
    # str() first so 2.675 rounds as written, not as its binary approximation
    return float(Decimal(str(value)).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP))


def calculate_score_totals(
    scores: Mapping[str, Optional[float]],
    weight_map: Optional[Mapping[str, float]] = None,
) -> ScoreTotals:
    """Total, average and weighted average of one student's assessment scores.

    Missing (None) scores are ignored. Only assessment codes with a positive
    weight take part in the weighted average; with none of those present it
    equals the plain average.
    """
    weight_map = weight_map or {}
    present = {code: score for code, score in scores.items() if score is not None}
    if not present:
        return ScoreTotals(total=0, average=0, weighted_average=0)

    total = sum(present.values())
    average = round_half_up(total / len(present))

    weighted_sum = 0.0
    weight_total = 0.0
    for code, score in present.items():
        weight = weight_map.get(code) or 0
        if weight > 0:
            weighted_sum += score * weight
            weight_total += weight

    weighted_average = round_half_up(weighted_sum / weight_total) if weight_total > 0 else average

    return ScoreTotals(total=total, average=average, weighted_average=weighted_average)


class ScoreService(BaseService[StudentScore]):
    def __init__(self, db: AsyncSession):
        super().__init__(StudentScore, db)

    async def get_weight_map(self) -> Dict[str, float]:
        """Default weight of every active assessment type, keyed by code"""
        stmt = select(AssessmentType.code, AssessmentType.default_weight).where(
            AssessmentType.is_active.is_(True)
        )
        rows = (await self.db.execute(stmt)).all()
        return {row.code: row.default_weight or 0 for row in rows}

    async def get_scores_by_class_subject(self, class_subject_id: int) -> Dict[str, Any]:
        """Score sheet of a class subject: one row per student, one column per assessment code"""
        info_stmt = (
            select(ClassLevel.class_name, Subject.name)
            .select_from(ClassSubject)
            .join(ClassLevel, ClassSubject.class_id == ClassLevel.id)
            .join(Subject, ClassSubject.subject_id == Subject.id)
            .where(ClassSubject.id == class_subject_id)
        )
        info = (await self.db.execute(info_stmt)).first()
        if not info:
            raise ClassSubjectNotFoundError(class_subject_id)
        class_name, subject_name = info

        types_stmt = select(AssessmentType).where(AssessmentType.is_active.is_(True)).order_by(AssessmentType.id)
        assessment_types = (await self.db.execute(types_stmt)).scalars().all()
        weight_map = {t.code: t.default_weight or 0 for t in assessment_types}

        scores_stmt = (
            select(
                StudentScore.student_id,
                Student.student_name,
                Student.nisn,
                AssessmentType.code,
                StudentScore.score,
            )
            .join(Student, StudentScore.student_id == Student.id)
            .join(AssessmentType, StudentScore.assessment_type_id == AssessmentType.id)
            .where(StudentScore.class_subject_id == class_subject_id)
            .order_by(Student.student_name)
        )
        rows = (await self.db.execute(scores_stmt)).all()

        students: Dict[int, Dict[str, Any]] = {}
        for row in rows:
            entry = students.setdefault(row.student_id, {
                "student_id": row.student_id,
                "name": row.student_name,
                "nisn": row.nisn,
                "scores": {},
            })
            entry["scores"][row.code] = row.score

        for entry in students.values():
            entry["totals"] = calculate_score_totals(entry["scores"], weight_map).model_dump()

        return {
            "class_subject_id": class_subject_id,
            "class_name": class_name,
            "subject_name": subject_name,
            "assessment_types": [
                {"id": t.id, "code": t.code, "name": t.name, "default_weight": t.default_weight}
                for t in assessment_types
            ],
            "data": list(students.values()),
        }

    async def save_bulk_scores(
        self,
        class_subject_id: int,
        assessment_type_id: int,
        items: List[ScoreEntry],
    ) -> Dict[str, Any]:
        """Insert or overwrite one assessment's scores for many students"""
        if not await self.db.get(ClassSubject, class_subject_id):
            raise ClassSubjectNotFoundError(class_subject_id)

        today = date.today()
        # Last entry wins when a student is sent twice
        values = list({
            item.student_id: {
                "student_id": item.student_id,
                "class_subject_id": class_subject_id,
                "assessment_type_id": assessment_type_id,
                "score": item.score,
                "assessment_date": today,
            }
            for item in items
        }.values())

        stmt = insert(StudentScore).values(values)
        stmt = stmt.on_conflict_do_update(
            constraint="uq_student_assessment",
            set_={
                "score": stmt.excluded.score,
                "assessment_date": stmt.excluded.assessment_date,
            },
        )

        async with transactional(self.db):
            await self.db.execute(stmt)

        logger.info(
            f"Saved {len(values)} score(s) for class subject {class_subject_id}, "
            f"assessment type {assessment_type_id}"
        )
        return {"saved": len(values)}

    async def get_rombel_report(self, rombel_id: int) -> Dict[str, Any]:
        """Weighted average of every active student in every subject of the rombel's class level"""
        rombel = await self.db.get(Rombel, rombel_id)
        if not rombel:
            raise RombelNotFoundError(rombel_id)

        subjects_stmt = (
            select(ClassSubject.id, Subject.name)
            .join(Subject, ClassSubject.subject_id == Subject.id)
            .where(ClassSubject.class_id == rombel.class_id)
            .order_by(Subject.name)
        )
        subjects = [{"id": row.id, "name": row.name} for row in (await self.db.execute(subjects_stmt)).all()]

        students_stmt = (
            select(Student.id, Student.nisn, Student.student_name)
            .join(RombelStudent, RombelStudent.student_id == Student.id)
            .where(RombelStudent.rombel_id == rombel_id, RombelStudent.is_active.is_(True))
            .order_by(Student.student_name)
        )
        students = (await self.db.execute(students_stmt)).all()

        weight_map = await self.get_weight_map()

        sheet: Dict[tuple, Dict[str, float]] = {}
        if students and subjects:
            scores_stmt = (
                select(StudentScore.student_id, StudentScore.class_subject_id, AssessmentType.code, StudentScore.score)
                .join(AssessmentType, StudentScore.assessment_type_id == AssessmentType.id)
                .where(
                    StudentScore.student_id.in_([s.id for s in students]),
                    StudentScore.class_subject_id.in_([s["id"] for s in subjects]),
                )
            )
            for row in (await self.db.execute(scores_stmt)).all():
                sheet.setdefault((row.student_id, row.class_subject_id), {})[row.code] = row.score

        report = []
        for student in students:
            per_subject = {}
            for subject in subjects:
                entries = sheet.get((student.id, subject["id"]))
                per_subject[str(subject["id"])] = (
                    calculate_score_totals(entries, weight_map).weighted_average if entries else None
                )
            graded = [value for value in per_subject.values() if value is not None]
            report.append({
                "student_id": student.id,
                "nisn": student.nisn,
                "name": student.student_name,
                "subjects": per_subject,
                "average": round_half_up(sum(graded) / len(graded)) if graded else None,
            })

        return {
            "rombel_id": rombel.id,
            "rombel_name": rombel.name,
            "subjects": subjects,
            "students": report,
        }

"""Student lifecycle and reference data against a real database."""
from datetime import date

import pytest
from sqlalchemy import select

from siakad.core.exceptions import ResourceInUseError, StudentNotActiveError
from siakad.models import AcademicYear, AssessmentType, RombelStudent, Student, StudentHistory
from siakad.schemas.enrollment import (
    BulkGraduateItem,
    BulkGraduateRequest,
    GraduateRequest,
    WithdrawRequest,
)
from siakad.schemas.scores import AssessmentTypeCreate
from siakad.schemas.student import StudentCreate
from siakad.services.academic_year_service import AcademicYearService
from siakad.services.assessment_type_service import AssessmentTypeService
from siakad.services.enrollment_service import EnrollmentService
from siakad.services.membership_service import MembershipService
from siakad.services.promotion_service import PromotionService
from siakad.services.rombel_service import RombelService
from siakad.services.score_service import ScoreService
from siakad.services.student_service import StudentService

from .store import (
    active_membership_counts,
    back_reference,
    count_rows,
    register,
    rombel_members,
    student_status,
)


async def history_rows(session, student_id):
    stmt = (
        select(StudentHistory.status_type, StudentHistory.rombel_id, StudentHistory.graduation_year)
        .where(StudentHistory.student_id == student_id)
        .order_by(StudentHistory.id)
    )
    return (await session.execute(stmt)).all()


class TestGraduationStore:

    @pytest.mark.asyncio
    async def test_graduation_records_last_rombel(self, db_session, school):
        s1, s2 = school.students[:2]
        rombel_id = await register(db_session, "XII IPA 1", school.class_xii, [s1, s2])

        result = await EnrollmentService(db_session).graduate_student(
            s1, GraduateRequest(completion_date=date(2026, 6, 20), graduation_year="2025/2026")
        )

        assert result.student.status == "GRADUATE"
        assert result.history.rombel_id == rombel_id
        assert result.last_class == "XII IPA 1"

        assert await student_status(db_session, s1) == "GRADUATE"
        assert await back_reference(db_session, s1) is None
        assert [tuple(row) for row in await history_rows(db_session, s1)] == [
            ("GRADUATE", rombel_id, "2025/2026")
        ]
        assert await rombel_members(db_session, rombel_id) == [s2]
        assert await MembershipService(db_session).find_back_reference_mismatches() == []

    @pytest.mark.asyncio
    async def test_graduate_twice_is_rejected(self, db_session, school):
        s1 = school.students[0]
        request = GraduateRequest(completion_date=date(2026, 6, 20), graduation_year="2025/2026")
        await EnrollmentService(db_session).graduate_student(s1, request)

        with pytest.raises(StudentNotActiveError):
            await EnrollmentService(db_session).graduate_student(s1, request)

        assert await count_rows(db_session, StudentHistory, StudentHistory.student_id == s1) == 1

    @pytest.mark.asyncio
    async def test_bulk_graduation_keeps_going_past_failures(self, db_session, school):
        s1, s2, s3 = school.students[:3]
        rombel_id = await register(db_session, "XII IPS 1", school.class_xii, [s1, s2, s3])

        result = await EnrollmentService(db_session).bulk_graduate_students(
            BulkGraduateRequest(
                completion_date=date(2026, 6, 20),
                graduation_year="2025/2026",
                students=[
                    BulkGraduateItem(student_id=s1, certificate_number="DN-01"),
                    BulkGraduateItem(student_id=999999),
                    BulkGraduateItem(student_id=school.graduate),
                    BulkGraduateItem(student_id=s3),
                ],
            )
        )

        assert result.success_count == 2
        assert sorted(item.student_id for item in result.failed) == sorted([999999, school.graduate])

        for student_id in (s1, s3):
            assert await student_status(db_session, student_id) == "GRADUATE"
            assert [row.rombel_id for row in await history_rows(db_session, student_id)] == [rombel_id]
        assert await student_status(db_session, school.graduate) == "GRADUATE"
        assert await history_rows(db_session, school.graduate) == []
        assert await rombel_members(db_session, rombel_id) == [s2]
        assert await MembershipService(db_session).find_back_reference_mismatches() == []


class TestSingleActiveMembership:

    @pytest.mark.asyncio
    async def test_at_most_one_active_membership_throughout(self, db_session, school):
        s1, s2, s3, s4, s5 = school.students
        memberships = MembershipService(db_session)

        async def assert_consistent():
            counts = await active_membership_counts(db_session)
            assert all(count == 1 for count in counts.values()), counts
            assert await memberships.find_back_reference_mismatches() == []

        x_a = await register(db_session, "X A", school.class_x, [s1, s2])
        x_b = await register(db_session, "X B", school.class_x)
        xi_a = await register(db_session, "XI A", school.class_xi)
        await assert_consistent()

        await RombelService(db_session).add_students_to_rombel(x_b, [s3, s4, s5])
        await assert_consistent()

        await PromotionService(db_session).promote_students([s1, s3], xi_a)
        await assert_consistent()

        # Moving again from the new rombel closes the one just opened
        await PromotionService(db_session).promote_students([s1], x_b)
        await assert_consistent()

        await EnrollmentService(db_session).graduate_student(
            s2, GraduateRequest(completion_date=date(2026, 6, 20), graduation_year="2025/2026")
        )
        await EnrollmentService(db_session).withdraw_student(
            s4,
            WithdrawRequest(
                completion_date=date(2026, 1, 10),
                mutasi_type="pindah_sekolah",
                reason="Ikut orang tua pindah tugas",
                destination_school="SMA Negeri 3 Malang",
            ),
        )
        await assert_consistent()

        assert await active_membership_counts(db_session) == {s1: 1, s3: 1, s5: 1}
        assert await rombel_members(db_session, x_a) == []
        assert await rombel_members(db_session, x_b) == [s1, s5]
        assert await rombel_members(db_session, xi_a) == [s3]
        assert await student_status(db_session, s4) == "MUTASI"
        assert [tuple(row)[:2] for row in await history_rows(db_session, s4)] == [("MUTASI", x_b)]


class TestReferenceDataStore:

    @pytest.mark.asyncio
    async def test_activating_a_year_leaves_one_active(self, db_session, school):
        db_session.add(AcademicYear(name="2026/2027", start_year=2026, end_year=2027, is_active=False))
        await db_session.commit()
        next_year = (await db_session.execute(
            select(AcademicYear.id).where(AcademicYear.name == "2026/2027")
        )).scalar_one()

        await AcademicYearService(db_session).activate(next_year)

        active = (await db_session.execute(
            select(AcademicYear.id).where(AcademicYear.is_active.is_(True))
        )).scalars().all()
        assert active == [next_year]

    @pytest.mark.asyncio
    async def test_new_student_starts_active_without_rombel(self, db_session, school):
        student = await StudentService(db_session).create_student(
            StudentCreate(nisn="0061234567", student_name="Rina Wulandari", gender="P")
        )

        row = (await db_session.execute(
            select(Student.status, Student.rombel_id).where(Student.id == student.id)
        )).one()
        assert tuple(row) == ("ACTIVE", None)
        assert await count_rows(db_session, RombelStudent, RombelStudent.student_id == student.id) == 0

    @pytest.mark.asyncio
    async def test_enrolled_student_cannot_be_deleted(self, db_session, school):
        s1 = school.students[0]
        await register(db_session, "X C", school.class_x, [s1])

        with pytest.raises(ResourceInUseError):
            await StudentService(db_session).delete_student(s1)

        assert await count_rows(db_session, Student, Student.id == s1) == 1

    @pytest.mark.asyncio
    async def test_unenrolled_student_can_be_deleted(self, db_session, school):
        s5 = school.students[4]

        await StudentService(db_session).delete_student(s5)

        assert await count_rows(db_session, Student, Student.id == s5) == 0

    @pytest.mark.asyncio
    async def test_inactive_assessment_type_drops_out_of_weights(self, db_session, school):
        service = AssessmentTypeService(db_session)
        await service.create_assessment_type(AssessmentTypeCreate(code="uts", name="UTS", default_weight=30))
        uas = await service.create_assessment_type(AssessmentTypeCreate(code="UAS", name="UAS", default_weight=40))

        assert await ScoreService(db_session).get_weight_map() == {"UTS": 30, "UAS": 40}

        await service.toggle_status(uas.id)

        assert await ScoreService(db_session).get_weight_map() == {"UTS": 30}
        assert await count_rows(db_session, AssessmentType, AssessmentType.is_active.is_(False)) == 1

    @pytest.mark.asyncio
    async def test_unused_academic_year_can_be_deleted(self, db_session, school):
        db_session.add(AcademicYear(name="2019/2020", start_year=2019, end_year=2020, is_active=False))
        await db_session.commit()
        old_year = (await db_session.execute(
            select(AcademicYear.id).where(AcademicYear.name == "2019/2020")
        )).scalar_one()

        await AcademicYearService(db_session).delete_academic_year(old_year)

        assert await count_rows(db_session, AcademicYear) == 1

    @pytest.mark.asyncio
    async def test_year_with_rombels_cannot_be_deleted(self, db_session, school):
        await register(db_session, "X D", school.class_x)

        with pytest.raises(ResourceInUseError):
            await AcademicYearService(db_session).delete_academic_year(school.academic_year)

        assert await count_rows(db_session, AcademicYear) == 1

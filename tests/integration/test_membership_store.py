"""Rombel membership against a real database: promotion, registration, capacity and deletion."""
from datetime import date

import pytest
from sqlalchemy import select

from siakad.core.exceptions import CapacityExceededError, StudentNotFoundError
from siakad.models import (
    Rombel,
    RombelStudent,
    StudentAttendance,
    StudentHistory,
)
from siakad.schemas.rombel import RombelRegisterItem
from siakad.services.membership_service import MembershipService
from siakad.services.promotion_service import PromotionService
from siakad.services.rombel_service import RombelService

from .store import (
    back_reference,
    count_rows,
    register,
    rombel_members,
)


class TestPromotionStore:

    @pytest.mark.asyncio
    async def test_promote_mix_of_valid_and_missing_ids(self, db_session, school):
        s1, s2, s3 = school.students[:3]
        source = await register(db_session, "X IPA 1", school.class_x, [s1, s2, s3])
        target = await register(db_session, "XI IPA 1", school.class_xi)

        result = await PromotionService(db_session).promote_students(
            [s1, 999999, s2, school.graduate], target
        )

        assert result.success_count == 2
        assert sorted(item.student_id for item in result.success) == [s1, s2]
        assert {item.student_id: item.reason for item in result.failed} == {
            999999: "Student not found",
            school.graduate: "Student is not active",
        }

        assert await rombel_members(db_session, target) == [s1, s2]
        assert await rombel_members(db_session, source) == [s3]
        assert await back_reference(db_session, s1) == target
        assert await back_reference(db_session, s3) == source
        assert await back_reference(db_session, school.graduate) is None
        assert await MembershipService(db_session).find_back_reference_mismatches() == []

    @pytest.mark.asyncio
    async def test_previous_membership_is_closed(self, db_session, school):
        s1 = school.students[0]
        source = await register(db_session, "X IPS 1", school.class_x, [s1])
        target = await register(db_session, "XI IPS 1", school.class_xi)

        await PromotionService(db_session).promote_students([s1], target)

        stmt = (
            select(RombelStudent.rombel_id, RombelStudent.is_active, RombelStudent.left_at)
            .where(RombelStudent.student_id == s1)
            .order_by(RombelStudent.id)
        )
        rows = (await db_session.execute(stmt)).all()
        assert [(row.rombel_id, row.is_active) for row in rows] == [(source, False), (target, True)]
        assert rows[0].left_at is not None
        assert rows[1].left_at is None

    @pytest.mark.asyncio
    async def test_rejected_capacity_leaves_no_rows(self, db_session, school):
        s1, s2, s3 = school.students[:3]
        target = await register(db_session, "XI Bahasa", school.class_xi, [s1], capacity=2)
        memberships_before = await count_rows(db_session, RombelStudent)

        with pytest.raises(CapacityExceededError) as exc_info:
            await PromotionService(db_session).promote_students([s2, s3], target)

        assert exc_info.value.available == 1
        assert exc_info.value.requested == 2
        assert await count_rows(db_session, RombelStudent) == memberships_before
        assert await rombel_members(db_session, target) == [s1]
        assert await back_reference(db_session, s2) is None


class TestRombelStore:

    @pytest.mark.asyncio
    async def test_registration_with_unknown_student_writes_nothing(self, db_session, school):
        with pytest.raises(StudentNotFoundError):
            await RombelService(db_session).register_rombel([
                _item("X IPA 2", school.class_x, school.students[:2]),
                _item("X IPA 3", school.class_x, [school.students[2], 999999]),
            ])

        assert await count_rows(db_session, Rombel) == 0
        assert await count_rows(db_session, RombelStudent) == 0
        for student_id in school.students:
            assert await back_reference(db_session, student_id) is None

    @pytest.mark.asyncio
    async def test_registration_enrolls_every_listed_student(self, db_session, school):
        s1, s2, s3, s4 = school.students[:4]

        result = await RombelService(db_session).register_rombel([
            _item("X IPA 4", school.class_x, [s1, s2]),
            _item("X IPA 5", school.class_x, [s3, s4]),
        ])

        first, second = (rombel["id"] for rombel in result["rombels"])
        assert await rombel_members(db_session, first) == [s1, s2]
        assert await rombel_members(db_session, second) == [s3, s4]

        stmt = select(Rombel.academic_year_id).where(Rombel.id.in_([first, second]))
        assert set((await db_session.execute(stmt)).scalars().all()) == {school.academic_year}
        assert await MembershipService(db_session).find_back_reference_mismatches() == []

    @pytest.mark.asyncio
    async def test_add_over_capacity_leaves_no_rows(self, db_session, school):
        s1, s2, s3 = school.students[:3]
        rombel_id = await register(db_session, "X Agama", school.class_x, [s1], capacity=2)

        with pytest.raises(CapacityExceededError):
            await RombelService(db_session).add_students_to_rombel(rombel_id, [s2, s3])

        assert await rombel_members(db_session, rombel_id) == [s1]
        assert await count_rows(db_session, RombelStudent) == 1
        assert await back_reference(db_session, s2) is None
        assert await back_reference(db_session, s3) is None

    @pytest.mark.asyncio
    async def test_add_with_unknown_student_leaves_no_rows(self, db_session, school):
        s1 = school.students[0]
        rombel_id = await register(db_session, "X Seni", school.class_x)

        with pytest.raises(StudentNotFoundError):
            await RombelService(db_session).add_students_to_rombel(rombel_id, [s1, 999999])

        assert await count_rows(db_session, RombelStudent) == 0
        assert await back_reference(db_session, s1) is None

    @pytest.mark.asyncio
    async def test_delete_cascades_to_dependents(self, db_session, school):
        s1, s2 = school.students[:2]
        rombel_id = await register(db_session, "X Teknik", school.class_x, [s1, s2])
        other = await register(db_session, "X Boga", school.class_x, [school.students[2]])

        db_session.add_all([
            StudentAttendance(student_id=s1, rombel_id=rombel_id, date=date(2025, 8, 4), status="hadir"),
            StudentAttendance(student_id=school.students[2], rombel_id=other, date=date(2025, 8, 4), status="sakit"),
            StudentHistory(
                student_id=s2,
                rombel_id=rombel_id,
                status_type="MUTASI",
                reason="Pindah domisili",
                mutasi_type="pindah_sekolah",
                completion_date=date(2025, 9, 1),
            ),
        ])
        await db_session.commit()

        assert await RombelService(db_session).delete_rombel(rombel_id) == {"success": True}

        assert await count_rows(db_session, Rombel, Rombel.id == rombel_id) == 0
        assert await count_rows(db_session, RombelStudent, RombelStudent.rombel_id == rombel_id) == 0
        assert await count_rows(db_session, StudentAttendance, StudentAttendance.rombel_id == rombel_id) == 0
        assert await back_reference(db_session, s1) is None
        assert await back_reference(db_session, s2) is None

        # Histories survive with the rombel detached
        stmt = select(StudentHistory.rombel_id).where(StudentHistory.student_id == s2)
        assert (await db_session.execute(stmt)).scalars().all() == [None]

        # Other rombels are untouched
        assert await rombel_members(db_session, other) == [school.students[2]]
        assert await count_rows(db_session, StudentAttendance) == 1
        assert await MembershipService(db_session).find_back_reference_mismatches() == []


def _item(name, class_id, students):
    return RombelRegisterItem(nama_rombel=name, tingkat_kelas=class_id, siswa=list(students))

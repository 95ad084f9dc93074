"""Unit tests for score sheets, bulk score saving and the rombel report."""
from unittest.mock import MagicMock

import pytest
from sqlalchemy.dialects import postgresql

from conftest import make_result
from siakad.core.exceptions import ClassSubjectNotFoundError, RombelNotFoundError
from siakad.schemas.scores import ScoreEntry
from siakad.services.score_service import ScoreService


@pytest.fixture
def score_service(mock_db):
    return ScoreService(mock_db)


def subject_row(subject_id, name):
    row = MagicMock(id=subject_id)
    row.name = name
    return row


def assessment_type(type_id, code, weight):
    at = MagicMock()
    at.id = type_id
    at.code = code
    at.name = code
    at.default_weight = weight
    return at


class TestSaveBulkScores:

    @pytest.mark.asyncio
    async def test_unknown_class_subject(self, score_service, mock_db):
        mock_db.get.return_value = None

        with pytest.raises(ClassSubjectNotFoundError):
            await score_service.save_bulk_scores(9, 1, [ScoreEntry(student_id=1, score=80)])

        mock_db.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_upserts_once_and_commits(self, score_service, mock_db):
        mock_db.get.return_value = MagicMock(id=9)

        result = await score_service.save_bulk_scores(9, 1, [
            ScoreEntry(student_id=1, score=80),
            ScoreEntry(student_id=2, score=75),
        ])

        assert result == {"saved": 2}
        mock_db.execute.assert_called_once()
        stmt = mock_db.execute.call_args.args[0]
        assert "ON CONFLICT" in str(stmt.compile(dialect=postgresql.dialect()))
        mock_db.commit.assert_called_once()

    @pytest.mark.asyncio
    async def test_duplicate_student_keeps_last_entry(self, score_service, mock_db):
        mock_db.get.return_value = MagicMock(id=9)

        result = await score_service.save_bulk_scores(9, 1, [
            ScoreEntry(student_id=1, score=60),
            ScoreEntry(student_id=1, score=95),
        ])

        assert result == {"saved": 1}


class TestScoreSheets:

    @pytest.mark.asyncio
    async def test_unknown_class_subject_sheet(self, score_service, mock_db):
        mock_db.execute.return_value = make_result(rows=[])

        with pytest.raises(ClassSubjectNotFoundError):
            await score_service.get_scores_by_class_subject(5)

    @pytest.mark.asyncio
    async def test_sheet_groups_scores_per_student(self, score_service, mock_db):
        rows = [
            MagicMock(student_id=1, student_name="Ani", nisn="001", code="UTS", score=70),
            MagicMock(student_id=1, student_name="Ani", nisn="001", code="UAS", score=90),
            MagicMock(student_id=2, student_name="Budi", nisn="002", code="UTS", score=60),
        ]
        mock_db.execute.side_effect = [
            make_result(rows=[("VII", "Matematika")]),
            make_result(scalars=[assessment_type(1, "UTS", 40), assessment_type(2, "UAS", 60)]),
            make_result(rows=rows),
        ]

        sheet = await score_service.get_scores_by_class_subject(5)

        assert sheet["class_name"] == "VII"
        assert sheet["subject_name"] == "Matematika"
        assert [a["code"] for a in sheet["assessment_types"]] == ["UTS", "UAS"]
        ani, budi = sheet["data"]
        assert ani["scores"] == {"UTS": 70, "UAS": 90}
        assert ani["totals"]["weighted_average"] == 82.0
        assert budi["totals"]["average"] == 60.0


class TestRombelReport:

    @pytest.mark.asyncio
    async def test_unknown_rombel(self, score_service, mock_db):
        mock_db.get.return_value = None

        with pytest.raises(RombelNotFoundError):
            await score_service.get_rombel_report(4)

    @pytest.mark.asyncio
    async def test_report_averages_graded_subjects(self, score_service, mock_db):
        mock_db.get.return_value = MagicMock(id=4, class_id=2)
        mock_db.get.return_value.name = "VII A"
        mock_db.execute.side_effect = [
            make_result(rows=[subject_row(11, "IPA"), subject_row(12, "Matematika")]),
            make_result(rows=[MagicMock(id=1, nisn="001", student_name="Ani")]),
            make_result(rows=[MagicMock(code="UTS", default_weight=40), MagicMock(code="UAS", default_weight=60)]),
            make_result(rows=[
                MagicMock(student_id=1, class_subject_id=11, code="UTS", score=70),
                MagicMock(student_id=1, class_subject_id=11, code="UAS", score=90),
            ]),
        ]

        report = await score_service.get_rombel_report(4)

        assert report["rombel_name"] == "VII A"
        student = report["students"][0]
        assert student["subjects"] == {"11": 82.0, "12": None}
        assert student["average"] == 82.0

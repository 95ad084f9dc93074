"""Shared fixtures: a mocked AsyncSession and execute() result builders."""
from itertools import count
from unittest.mock import AsyncMock, MagicMock

import pytest

import siakad.models  # noqa: F401  registers every mapper


def make_result(scalar=None, scalars=None, rows=None):
    """Build what AsyncSession.execute() returns for the accessors the services use."""
    result = MagicMock()
    result.scalar_one_or_none.return_value = scalar
    result.scalar.return_value = scalar
    result.scalars.return_value.all.return_value = list(scalars or [])
    result.scalars.return_value.first.return_value = scalars[0] if scalars else scalar
    result.all.return_value = list(rows or [])
    result.first.return_value = rows[0] if rows else None
    return result


@pytest.fixture
def mock_db():
    """Create mock database session.

    flush() gives every added object without an id a fresh one, the way the
    database would on INSERT.
    """
    db = AsyncMock()
    db.add = MagicMock()
    db.delete = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.refresh = AsyncMock()
    db.execute = AsyncMock()
    db.get = AsyncMock()

    ids = count(100)

    async def flush():
        for call in db.add.call_args_list:
            obj = call.args[0]
            if getattr(obj, "id", None) is None:
                obj.id = next(ids)

    db.flush = AsyncMock(side_effect=flush)

    savepoint = MagicMock()
    savepoint.__aenter__ = AsyncMock(return_value=None)
    # False so exceptions raised inside the block propagate
    savepoint.__aexit__ = AsyncMock(return_value=False)
    db.begin_nested = MagicMock(return_value=savepoint)

    return db


@pytest.fixture
def make_student():
    def _make(student_id=1, name="Budi Santoso", status="ACTIVE", rombel_id=None):
        student = MagicMock()
        student.id = student_id
        student.student_name = name
        student.status = status
        student.rombel_id = rombel_id
        return student
    return _make


@pytest.fixture
def make_membership():
    def _make(student_id=1, rombel_id=7):
        membership = MagicMock()
        membership.student_id = student_id
        membership.rombel_id = rombel_id
        membership.is_active = True
        membership.left_at = None
        return membership
    return _make

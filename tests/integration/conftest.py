"""Fixtures for store-backed tests.

Every test gets a fresh schema and a real AsyncSession. SQLite (aiosqlite) is
used unless TEST_DATABASE_URL points at another database, e.g. a disposable
PostgreSQL instance.
"""
import os
from types import SimpleNamespace
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from siakad.models import AcademicYear, Base, ClassLevel, Student, StudentStatus


@pytest.fixture
def database_url(tmp_path) -> str:
    return os.environ.get("TEST_DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'siakad_test.db'}")


def _configure_sqlite(engine) -> None:
    # Emit BEGIN ourselves so SAVEPOINT works, and enforce foreign keys
    @event.listens_for(engine.sync_engine, "connect")
    def on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def on_begin(conn):
        conn.exec_driver_sql("BEGIN")


@pytest_asyncio.fixture
async def db_engine(database_url: str):
    """Create async engine with an empty schema."""
    engine = create_async_engine(database_url, echo=False)
    if engine.dialect.name == "sqlite":
        _configure_sqlite(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Session configured like the application's request sessions."""
    session_factory = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def school(db_session: AsyncSession) -> SimpleNamespace:
    """Class levels X-XII, an active academic year, five ACTIVE students and a graduate.

    Only ids are handed out: ORM instances expire whenever a service rolls back.
    """
    levels = [ClassLevel(class_name=name) for name in ("X", "XI", "XII")]
    year = AcademicYear(name="2025/2026", start_year=2025, end_year=2026, is_active=True)
    students = [
        Student(nisn=f"00500000{i}", student_name=f"Siswa {i}", status=StudentStatus.ACTIVE.value)
        for i in range(1, 6)
    ]
    alumnus = Student(nisn="004999999", student_name="Alumni", status=StudentStatus.GRADUATE.value)

    db_session.add_all([*levels, year, *students, alumnus])
    await db_session.commit()

    return SimpleNamespace(
        class_x=levels[0].id,
        class_xi=levels[1].id,
        class_xii=levels[2].id,
        academic_year=year.id,
        students=[student.id for student in students],
        graduate=alumnus.id,
    )

"""Shared fixtures: throwaway SQLite databases for the primary and external stores."""

import pytest
from datetime import date
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

import sims.models  # noqa: F401  registers tables on Base.metadata
from sims.core.database import Base
from sims.models import Attendance, Course, Enrollment, Result, Student


@pytest.fixture
async def primary_engine(tmp_path):
    """Primary database with the full application schema."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'primary.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def secondary_engine(tmp_path):
    """Empty external database; tests create the (possibly drifted) tables they need."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'secondary.db'}")
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(primary_engine):
    return async_sessionmaker(primary_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def run_ddl():
    """Execute DDL statements against an engine."""
    async def _run(engine, *statements):
        async with engine.begin() as conn:
            for statement in statements:
                await conn.execute(text(statement))
    return _run


@pytest.fixture
async def report_records(session_factory):
    """
    Two students, three courses (one without enrollments), five attendance
    marks and four results. Returns the ids tests need.
    """
    async with session_factory() as session:
        cs101 = Course(name="Programming", code="CS101", credits=3)
        cs102 = Course(name="Data Structures", code="CS102", credits=4)
        ma101 = Course(name="Calculus", code="MA101", credits=3)
        ada = Student(student_id="STU25010001", name="Ada Lovelace", email="ada@example.edu")
        grace = Student(student_id="STU25010002", name="Grace Hopper", email="grace@example.edu")
        session.add_all([cs101, cs102, ma101, ada, grace])
        await session.flush()

        session.add_all([
            Enrollment(student_id=ada.id, course_id=cs101.id, status="enrolled"),
            Enrollment(student_id=ada.id, course_id=cs102.id, status="enrolled"),
            Enrollment(student_id=grace.id, course_id=cs101.id, status="dropped"),
            Attendance(student_id=ada.id, course_id=cs101.id, date=date(2025, 1, 6), status="present"),
            Attendance(student_id=ada.id, course_id=cs101.id, date=date(2025, 1, 7), status="late"),
            Attendance(student_id=ada.id, course_id=cs101.id, date=date(2025, 1, 8), status="absent"),
            Attendance(student_id=ada.id, course_id=cs102.id, date=date(2025, 1, 6), status="present"),
            Attendance(student_id=grace.id, course_id=cs101.id, date=date(2025, 1, 6), status="excused"),
            Result(student_id=ada.id, course_id=cs101.id, exam_type="midterm",
                   marks_obtained=45, total_marks=50, grade="A+"),
            Result(student_id=ada.id, course_id=cs101.id, exam_type="final",
                   marks_obtained=70, total_marks=100, grade="B"),
            Result(student_id=ada.id, course_id=cs102.id, exam_type="final",
                   marks_obtained=55, total_marks=100, grade="D"),
            Result(student_id=grace.id, course_id=cs101.id, exam_type="final",
                   marks_obtained=80, total_marks=100, grade="A"),
        ])
        await session.commit()

        return {"ada": ada.id, "grace": grace.id, "cs101": cs101.id, "cs102": cs102.id}

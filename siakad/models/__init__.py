"""Import all models here so Alembic and the mappers see every table."""
from .base import Base

from .academic import AcademicYear, Curriculum
from .teacher import Teacher
from .student import Student, StudentStatus
from .rombel import ClassLevel, Rombel, RombelStudent
from .history import StudentHistory
from .attendance import StudentAttendance
from .scores import Subject, ClassSubject, AssessmentType, StudentScore
from .audit_log import AuditLog

__all__ = [
    "Base",
    "AcademicYear",
    "Curriculum",
    "Teacher",
    "Student",
    "StudentStatus",
    "ClassLevel",
    "Rombel",
    "RombelStudent",
    "StudentHistory",
    "StudentAttendance",
    "Subject",
    "ClassSubject",
    "AssessmentType",
    "StudentScore",
    "AuditLog",
]

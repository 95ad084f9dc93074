# siakad/models/rombel.py
from sqlalchemy import Column, String, Integer, DateTime, Boolean, ForeignKey, CheckConstraint, Index
from sqlalchemy.orm import relationship
from .base import Base


class ClassLevel(Base):
    """Grade tier independent of academic year (X, XI, XII)."""
    __tablename__ = "classes"

    class_name = Column(String(10), nullable=False, unique=True)

    rombels = relationship("Rombel", back_populates="class_level")
    class_subjects = relationship("ClassSubject", back_populates="class_level")


class Rombel(Base):
    """Class group: one class level in one academic year."""
    __tablename__ = "rombels"

    code = Column(String(60), nullable=False, unique=True)
    name = Column(String(100), nullable=False)

    class_id = Column(Integer, ForeignKey("classes.id"), nullable=False, index=True)
    academic_year_id = Column(Integer, ForeignKey("academic_years.id"), nullable=False, index=True)
    class_advisor_id = Column(Integer, ForeignKey("teachers.id"), nullable=True)
    curriculum_id = Column(Integer, ForeignKey("curricula.id"), nullable=True)

    student_capacity = Column(Integer, nullable=False, default=30)
    classroom = Column(String(50))

    __table_args__ = (
        CheckConstraint("student_capacity > 0", name="ck_rombel_capacity_positive"),
    )

    class_level = relationship("ClassLevel", back_populates="rombels")
    academic_year = relationship("AcademicYear", back_populates="rombels")
    class_advisor = relationship("Teacher")
    curriculum = relationship("Curriculum", back_populates="rombels")
    memberships = relationship("RombelStudent", back_populates="rombel")


class RombelStudent(Base):
    """Membership of a student in a rombel; at most one active row per student."""
    __tablename__ = "rombel_students"

    rombel_id = Column(Integer, ForeignKey("rombels.id"), nullable=False, index=True)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False, index=True)
    is_active = Column(Boolean, default=True, nullable=False)
    joined_at = Column(DateTime(timezone=True), nullable=False)
    left_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("idx_rombel_students_active", "student_id", "is_active"),
        Index("idx_rombel_students_rombel_active", "rombel_id", "is_active"),
    )

    rombel = relationship("Rombel", back_populates="memberships")
    student = relationship("Student", back_populates="memberships")

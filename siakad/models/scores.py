# siakad/models/scores.py
from sqlalchemy import Column, String, Integer, Float, Date, Boolean, Text, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from .base import Base


class Subject(Base):
    __tablename__ = "subjects"

    name = Column(String(100), nullable=False, unique=True)
    subject_code = Column(String(20), unique=True)
    kkm = Column(Integer)  # minimum competency score


class ClassSubject(Base):
    __tablename__ = "class_subjects"

    class_id = Column(Integer, ForeignKey("classes.id", ondelete="CASCADE"), nullable=False, index=True)
    subject_id = Column(Integer, ForeignKey("subjects.id"), nullable=False)
    teacher_id = Column(Integer, ForeignKey("teachers.id"), nullable=True)

    __table_args__ = (
        UniqueConstraint("class_id", "subject_id", name="uq_class_subject"),
    )

    class_level = relationship("ClassLevel", back_populates="class_subjects")
    subject = relationship("Subject")
    teacher = relationship("Teacher")


class AssessmentType(Base):
    __tablename__ = "assessment_types"

    code = Column(String(20), nullable=False, unique=True)   # TUGAS, UH, UTS, UAS
    name = Column(String(100), nullable=False)
    default_weight = Column(Integer)
    is_active = Column(Boolean, default=True, nullable=False)


class StudentScore(Base):
    __tablename__ = "student_scores"

    student_id = Column(Integer, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    class_subject_id = Column(Integer, ForeignKey("class_subjects.id", ondelete="CASCADE"), nullable=False, index=True)
    assessment_type_id = Column(Integer, ForeignKey("assessment_types.id"), nullable=False)
    score = Column(Float, nullable=False)
    assessment_date = Column(Date)
    note = Column(Text)

    __table_args__ = (
        UniqueConstraint("student_id", "class_subject_id", "assessment_type_id", name="uq_student_assessment"),
    )

    student = relationship("Student", back_populates="scores")
    class_subject = relationship("ClassSubject")
    assessment_type = relationship("AssessmentType")

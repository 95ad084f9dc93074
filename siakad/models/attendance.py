# siakad/models/attendance.py
from sqlalchemy import Column, String, Integer, Date, Time, Text, ForeignKey, UniqueConstraint, CheckConstraint, Index
from .base import Base


class StudentAttendance(Base):
    __tablename__ = "student_attendance"

    student_id = Column(Integer, ForeignKey("students.id", ondelete="CASCADE"), nullable=False)
    rombel_id = Column(Integer, ForeignKey("rombels.id"), nullable=False)
    date = Column(Date, nullable=False)
    status = Column(String(10), nullable=False)
    check_in_time = Column(Time)
    check_out_time = Column(Time)
    note = Column(Text)

    __table_args__ = (
        UniqueConstraint("student_id", "rombel_id", "date", name="uq_student_attendance"),
        CheckConstraint("status IN ('hadir', 'sakit', 'izin', 'alpha')", name="ck_attendance_status"),
        Index("idx_student_attendance_student", "student_id"),
        Index("idx_student_attendance_date", "date"),
    )

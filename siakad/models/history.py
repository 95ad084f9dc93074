# siakad/models/history.py
from sqlalchemy import Column, String, Integer, Date, ForeignKey, Numeric, Text, JSON
from sqlalchemy.orm import relationship
from .base import Base


class StudentHistory(Base):
    """Terminal lifecycle transition record (GRADUATE or MUTASI)."""
    __tablename__ = "student_histories"

    student_id = Column(Integer, ForeignKey("students.id"), nullable=False, index=True)
    # Nulled when the rombel is deleted
    rombel_id = Column(Integer, ForeignKey("rombels.id"), nullable=True, index=True)

    status_type = Column(String(20), nullable=False, index=True)
    scores = Column(JSON)
    reason = Column(Text)

    # MUTASI
    mutasi_type = Column(String(50))          # pindah_sekolah, keluar, dikeluarkan
    destination_school = Column(String(150))

    # GRADUATE
    completion_date = Column(Date, nullable=False)
    graduation_year = Column(String(9), index=True)   # 2024/2025
    certificate_number = Column(String(50))
    final_grade = Column(Numeric(5, 2))

    student = relationship("Student", back_populates="histories")
    rombel = relationship("Rombel")

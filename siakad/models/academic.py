# siakad/models/academic.py
from sqlalchemy import Column, String, Integer, Date, Boolean, Text
from sqlalchemy.orm import relationship
from .base import Base


class AcademicYear(Base):
    __tablename__ = "academic_years"

    name = Column(String(20), nullable=False, unique=True)   # 2025/2026
    start_year = Column(Integer)
    end_year = Column(Integer)
    start_date = Column(Date)
    end_date = Column(Date)
    is_active = Column(Boolean, default=False, nullable=False)

    rombels = relationship("Rombel", back_populates="academic_year")


class Curriculum(Base):
    __tablename__ = "curricula"

    name = Column(String(100), nullable=False)
    code = Column(String(30), nullable=False, unique=True)
    year = Column(String(10), nullable=False)
    description = Column(Text)
    is_active = Column(Boolean, default=False, nullable=False)

    rombels = relationship("Rombel", back_populates="curriculum")

# siakad/models/student.py
import enum

from sqlalchemy import Column, String, Integer, Date, ForeignKey
from sqlalchemy.orm import relationship
from .base import Base


class StudentStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    MUTASI = "MUTASI"      # withdrawn / transferred out
    GRADUATE = "GRADUATE"


class Student(Base):
    __tablename__ = "students"

    # Identity
    nisn = Column(String(20), nullable=False, unique=True)
    local_nis = Column(String(20), unique=True)
    student_name = Column(String(150), nullable=False)

    # Demographics
    gender = Column(String(10))
    religion = Column(String(30))
    birth_place = Column(String(100))
    birth_date = Column(Date)
    previous_school = Column(String(150))
    phone_number = Column(String(20))
    nationality = Column(String(50), default="Indonesia")

    # Lifecycle, mutated only through the enrollment and membership services
    status = Column(String(20), default=StudentStatus.ACTIVE.value, nullable=False, index=True)
    # Cached copy of the active membership's rombel
    rombel_id = Column(Integer, ForeignKey("rombels.id"), nullable=True, index=True)

    # Relationships
    memberships = relationship("RombelStudent", back_populates="student")
    histories = relationship("StudentHistory", back_populates="student")
    scores = relationship("StudentScore", back_populates="student")

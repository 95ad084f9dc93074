# siakad/models/teacher.py
from sqlalchemy import Column, String
from .base import Base


class Teacher(Base):
    __tablename__ = "teachers"

    full_name = Column(String(150), nullable=False)
    nip = Column(String(30), unique=True)
    phone = Column(String(20))

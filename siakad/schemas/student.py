# siakad/schemas/student.py
from datetime import date
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class StudentCreate(BaseModel):
    """New student. Status always starts as ACTIVE and no rombel is assigned."""
    model_config = ConfigDict(str_strip_whitespace=True)

    nisn: str = Field(..., min_length=1, max_length=20)
    local_nis: Optional[str] = Field(None, max_length=20)
    student_name: str = Field(..., min_length=1, max_length=150)
    gender: Optional[str] = Field(None, max_length=10)
    religion: Optional[str] = Field(None, max_length=30)
    birth_place: Optional[str] = Field(None, max_length=100)
    birth_date: Optional[date] = None
    previous_school: Optional[str] = Field(None, max_length=150)
    phone_number: Optional[str] = Field(None, max_length=20)
    nationality: Optional[str] = Field("Indonesia", max_length=50)


class StudentUpdate(BaseModel):
    """Profile corrections. Lifecycle status and rombel are not editable here."""
    model_config = ConfigDict(str_strip_whitespace=True)

    nisn: Optional[str] = Field(None, min_length=1, max_length=20)
    local_nis: Optional[str] = Field(None, max_length=20)
    student_name: Optional[str] = Field(None, min_length=1, max_length=150)
    gender: Optional[str] = Field(None, max_length=10)
    religion: Optional[str] = Field(None, max_length=30)
    birth_place: Optional[str] = Field(None, max_length=100)
    birth_date: Optional[date] = None
    previous_school: Optional[str] = Field(None, max_length=150)
    phone_number: Optional[str] = Field(None, max_length=20)
    nationality: Optional[str] = Field(None, max_length=50)

    @field_validator("nisn", "student_name")
    @classmethod
    def required_fields_not_null(cls, value):
        if value is None:
            raise ValueError("field cannot be null")
        return value


class StudentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    nisn: str
    local_nis: Optional[str] = None
    student_name: str
    gender: Optional[str] = None
    religion: Optional[str] = None
    birth_place: Optional[str] = None
    birth_date: Optional[date] = None
    previous_school: Optional[str] = None
    phone_number: Optional[str] = None
    nationality: Optional[str] = None
    status: str
    rombel_id: Optional[int] = None

# siakad/schemas/enrollment.py
from datetime import date
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class GraduateRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    completion_date: date
    graduation_year: str = Field(..., min_length=4, max_length=9, description="e.g. 2024/2025")
    certificate_number: Optional[str] = None
    final_grade: Optional[float] = Field(None, ge=0, le=100)
    scores: Optional[Dict[str, Any]] = None


class BulkGraduateItem(BaseModel):
    student_id: int
    certificate_number: Optional[str] = None
    final_grade: Optional[float] = Field(None, ge=0, le=100)
    scores: Optional[Dict[str, Any]] = None


class BulkGraduateRequest(BaseModel):
    students: List[BulkGraduateItem] = Field(..., min_length=1)
    completion_date: date
    graduation_year: str = Field(..., min_length=4, max_length=9)


class UpdateHistoryRequest(BaseModel):
    """Clerical corrections; only fields that are sent get updated."""
    certificate_number: Optional[str] = None
    final_grade: Optional[float] = Field(None, ge=0, le=100)
    scores: Optional[Dict[str, Any]] = None
    graduation_year: Optional[str] = Field(None, min_length=4, max_length=9)
    completion_date: Optional[date] = None

    @field_validator("completion_date")
    @classmethod
    def completion_date_not_null(cls, value):
        # Omit the field to keep the stored date; it cannot be cleared
        if value is None:
            raise ValueError("completion_date cannot be null")
        return value


class WithdrawRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    completion_date: date
    mutasi_type: str = Field(..., min_length=1, description="pindah_sekolah, keluar, dikeluarkan")
    reason: str = Field(..., min_length=1)
    destination_school: Optional[str] = None
    scores: Optional[Dict[str, Any]] = None


class StudentSummary(BaseModel):
    id: int
    name: str
    status: str


class HistoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    student_id: int
    rombel_id: Optional[int] = None
    status_type: str
    scores: Optional[Dict[str, Any]] = None
    reason: Optional[str] = None
    mutasi_type: Optional[str] = None
    destination_school: Optional[str] = None
    completion_date: date
    graduation_year: Optional[str] = None
    certificate_number: Optional[str] = None
    final_grade: Optional[float] = None


class TransitionResult(BaseModel):
    student: StudentSummary
    history: HistoryResponse
    last_class: Optional[str] = None

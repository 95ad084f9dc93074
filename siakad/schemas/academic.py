# siakad/schemas/academic.py
from datetime import date
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class AcademicYearCreate(BaseModel):
    name: str = Field(..., min_length=4, max_length=20)
    start_year: Optional[int] = None
    end_year: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_active: bool = False


class AcademicYearUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=4, max_length=20)
    start_year: Optional[int] = None
    end_year: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_active: Optional[bool] = None


class AcademicYearResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    start_year: Optional[int] = None
    end_year: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_active: bool


class CurriculumCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    code: str = Field(..., min_length=1, max_length=30)
    year: str = Field(..., min_length=4, max_length=10)
    description: Optional[str] = None
    is_active: bool = False


class CurriculumUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    code: Optional[str] = Field(None, min_length=1, max_length=30)
    year: Optional[str] = Field(None, min_length=4, max_length=10)
    description: Optional[str] = None
    is_active: Optional[bool] = None


class CurriculumResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    code: str
    year: str
    description: Optional[str] = None
    is_active: bool

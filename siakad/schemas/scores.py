# siakad/schemas/scores.py
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class ScoreTotals(BaseModel):
    total: float = 0
    average: float = 0
    weighted_average: float = 0


class ScoreEntry(BaseModel):
    student_id: int
    score: float = Field(..., ge=0, le=100)


class BulkScoreRequest(BaseModel):
    assessment_type_id: int
    scores: List[ScoreEntry] = Field(..., min_length=1)


class ScoreTotalsRequest(BaseModel):
    scores: Dict[str, Optional[float]]
    # Falls back to the assessment types' default weights when omitted
    weights: Optional[Dict[str, float]] = None


class AssessmentTypeCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=20, description="TUGAS, UH, UTS, UAS")
    name: str = Field(..., min_length=1, max_length=100)
    default_weight: Optional[int] = Field(None, ge=0, le=100)


class AssessmentTypeUpdate(BaseModel):
    code: Optional[str] = Field(None, min_length=1, max_length=20)
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    default_weight: Optional[int] = Field(None, ge=0, le=100)

    @field_validator("code", "name")
    @classmethod
    def required_fields_not_null(cls, value):
        if value is None:
            raise ValueError("field cannot be null")
        return value


class AssessmentTypeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    code: str
    name: str
    default_weight: Optional[int] = None
    is_active: bool

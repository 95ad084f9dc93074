# siakad/schemas/common.py
from typing import List, Optional
from pydantic import BaseModel, Field, computed_field


class BatchSuccess(BaseModel):
    student_id: int
    name: Optional[str] = None


class BatchFailure(BaseModel):
    student_id: int
    name: Optional[str] = None
    reason: str


class BatchResult(BaseModel):
    """Per-item outcome of a bulk lifecycle operation."""
    total_processed: int = 0
    success: List[BatchSuccess] = Field(default_factory=list)
    failed: List[BatchFailure] = Field(default_factory=list)

    @computed_field
    @property
    def success_count(self) -> int:
        return len(self.success)

    @computed_field
    @property
    def failed_count(self) -> int:
        return len(self.failed)

    def add_success(self, student_id: int, name: Optional[str] = None) -> None:
        self.success.append(BatchSuccess(student_id=student_id, name=name))

    def add_failure(self, student_id: int, reason: str, name: Optional[str] = None) -> None:
        self.failed.append(BatchFailure(student_id=student_id, name=name, reason=reason))

# siakad/schemas/rombel.py
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class RombelRegisterItem(BaseModel):
    """One rombel of a registration batch, as sent by the registration form."""
    model_config = ConfigDict(str_strip_whitespace=True)

    nama_rombel: str = Field(..., min_length=1, max_length=100)
    tingkat_kelas: int = Field(..., description="Class level id")
    wali_kelas: Optional[int] = Field(None, description="Class advisor (teacher) id")
    nama_ruangan: Optional[str] = None
    # Checked by the service so the batch guard can report it
    student_capacity: Optional[int] = None
    kurikulum: Optional[int] = Field(None, description="Curriculum id")
    kode_rombel: Optional[str] = Field(None, max_length=60)
    siswa: List[int] = Field(default_factory=list)


class AddStudentsRequest(BaseModel):
    student_ids: List[int] = Field(..., min_length=1)


class PromoteRequest(BaseModel):
    student_ids: List[int] = Field(..., min_length=1)
    target_rombel_id: int


class TargetRombel(BaseModel):
    id: int
    code: str
    name: str
    class_id: int
    class_name: str
    capacity: int
    current_count: int
    available_slots: int

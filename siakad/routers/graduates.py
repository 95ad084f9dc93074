# siakad/routers/graduates.py
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.cache_decorators import cache_response, invalidate_cache_pattern
from ..core.database import get_db
from ..core.exceptions import NotFoundError
from ..schemas.common import BatchResult
from ..schemas.enrollment import (
    BulkGraduateRequest,
    GraduateRequest,
    HistoryResponse,
    TransitionResult,
    UpdateHistoryRequest,
)
from ..services.enrollment_service import EnrollmentService

router = APIRouter(prefix="/api/v1/graduates", tags=["Graduates"])

@router.get("/", response_model=dict)
async def list_graduates(
    page: int = Query(1, ge=1),
    size: int = Query(10, ge=1, le=100),
    year: Optional[str] = Query(None, description="Graduation year, e.g. 2024/2025"),
    db: AsyncSession = Depends(get_db)
):
    """Paginated alumni list"""
    service = EnrollmentService(db)
    return await service.list_graduates(page=page, size=size, year=year)

@router.get("/stats", response_model=dict)
@cache_response("graduates:stats", ttl=600)
async def graduate_stats(db: AsyncSession = Depends(get_db)):
    service = EnrollmentService(db)
    return {
        "total": await service.count_graduates(),
        "by_year": await service.count_graduates_by_year(),
    }

@router.get("/years", response_model=dict)
@cache_response("graduates:years", ttl=600)
async def graduation_years(db: AsyncSession = Depends(get_db)):
    service = EnrollmentService(db)
    return {"years": await service.get_graduation_years()}

@router.get("/{student_id}", response_model=dict)
async def get_graduate(student_id: int, db: AsyncSession = Depends(get_db)):
    service = EnrollmentService(db)
    graduate = await service.get_graduate(student_id)
    if not graduate:
        raise NotFoundError("Graduate", student_id)
    return graduate

@router.post("/bulk", response_model=BatchResult)
@invalidate_cache_pattern("graduates:*")
async def bulk_graduate(request: BulkGraduateRequest, db: AsyncSession = Depends(get_db)):
    """Graduate many students; failures are reported per student"""
    service = EnrollmentService(db)
    return await service.bulk_graduate_students(request)

@router.post("/{student_id}", response_model=TransitionResult)
@invalidate_cache_pattern("graduates:*")
async def graduate_student(student_id: int, request: GraduateRequest, db: AsyncSession = Depends(get_db)):
    service = EnrollmentService(db)
    return await service.graduate_student(student_id, request)

@router.put("/{student_id}", response_model=HistoryResponse)
@invalidate_cache_pattern("graduates:*")
async def update_graduate_history(
    student_id: int,
    request: UpdateHistoryRequest,
    db: AsyncSession = Depends(get_db)
):
    """Correct certificate number, final grade and other clerical fields"""
    service = EnrollmentService(db)
    return await service.update_graduate_history(student_id, request)

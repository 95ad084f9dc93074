# siakad/routers/academic_years.py
from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.cache_decorators import cache_response, invalidate_cache_pattern
from ..core.database import get_db
from ..core.exceptions import NotFoundError
from ..schemas.academic import AcademicYearCreate, AcademicYearResponse, AcademicYearUpdate
from ..services.academic_year_service import AcademicYearService

router = APIRouter(prefix="/api/v1/academic-years", tags=["Academic Years"])

@router.get("/", response_model=List[AcademicYearResponse])
@cache_response("academic_years:list")
async def list_academic_years(db: AsyncSession = Depends(get_db)):
    service = AcademicYearService(db)
    years = await service.list_all()
    return [AcademicYearResponse.model_validate(year).model_dump(mode="json") for year in years]

@router.get("/active", response_model=AcademicYearResponse)
async def get_active_academic_year(db: AsyncSession = Depends(get_db)):
    service = AcademicYearService(db)
    academic_year = await service.get_active()
    if not academic_year:
        raise NotFoundError("Active academic year")
    return academic_year

@router.get("/{academic_year_id}", response_model=AcademicYearResponse)
async def get_academic_year(academic_year_id: int, db: AsyncSession = Depends(get_db)):
    service = AcademicYearService(db)
    return await service.get_or_404(academic_year_id)

@router.post("/", response_model=AcademicYearResponse, status_code=201)
@invalidate_cache_pattern("academic_years:*")
async def create_academic_year(data: AcademicYearCreate, db: AsyncSession = Depends(get_db)):
    service = AcademicYearService(db)
    return await service.create_academic_year(data)

@router.put("/{academic_year_id}", response_model=AcademicYearResponse)
@invalidate_cache_pattern("academic_years:*")
async def update_academic_year(
    academic_year_id: int,
    data: AcademicYearUpdate,
    db: AsyncSession = Depends(get_db)
):
    service = AcademicYearService(db)
    return await service.update_academic_year(academic_year_id, data)

@router.post("/{academic_year_id}/activate", response_model=AcademicYearResponse)
@invalidate_cache_pattern("academic_years:*")
async def activate_academic_year(academic_year_id: int, db: AsyncSession = Depends(get_db)):
    """Make this the only active academic year"""
    service = AcademicYearService(db)
    return await service.activate(academic_year_id)

@router.delete("/{academic_year_id}", response_model=dict)
@invalidate_cache_pattern("academic_years:*")
async def delete_academic_year(academic_year_id: int, db: AsyncSession = Depends(get_db)):
    service = AcademicYearService(db)
    await service.delete_academic_year(academic_year_id)
    return {"success": True}

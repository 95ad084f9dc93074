# siakad/routers/rombels.py
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.cache_decorators import invalidate_cache_pattern
from ..core.database import get_db
from ..schemas.rombel import AddStudentsRequest, RombelRegisterItem
from ..services.membership_service import MembershipService
from ..services.rombel_service import RombelService

router = APIRouter(prefix="/api/v1/rombels", tags=["Rombels"])

@router.get("/", response_model=list)
async def list_rombels(
    academic_year_id: Optional[int] = Query(None),
    db: AsyncSession = Depends(get_db)
):
    service = RombelService(db)
    return await service.list_rombels(academic_year_id=academic_year_id)

@router.get("/consistency", response_model=dict)
async def check_consistency(
    limit: int = Query(100, ge=1, le=1000),
    db: AsyncSession = Depends(get_db)
):
    """Students whose rombel_id disagrees with their active membership"""
    service = MembershipService(db)
    mismatches = await service.find_back_reference_mismatches(limit=limit)
    return {"consistent": not mismatches, "mismatches": mismatches}

@router.get("/{rombel_id}", response_model=dict)
async def get_rombel(rombel_id: int, db: AsyncSession = Depends(get_db)):
    service = RombelService(db)
    return await service.get_rombel_detail(rombel_id)

@router.post("/register", response_model=dict)
@invalidate_cache_pattern(["promotion:*", "academic_years:*"])
async def register_rombels(items: List[RombelRegisterItem], db: AsyncSession = Depends(get_db)):
    """Create rombels with their students in one transaction"""
    service = RombelService(db)
    return await service.register_rombel(items)

@router.post("/{rombel_id}/students", response_model=dict)
async def add_students(rombel_id: int, request: AddStudentsRequest, db: AsyncSession = Depends(get_db)):
    service = RombelService(db)
    return await service.add_students_to_rombel(rombel_id, request.student_ids)

@router.delete("/{rombel_id}", response_model=dict)
async def delete_rombel(rombel_id: int, db: AsyncSession = Depends(get_db)):
    service = RombelService(db)
    return await service.delete_rombel(rombel_id)

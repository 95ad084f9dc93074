# siakad/routers/promotion.py
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.cache_decorators import cache_response
from ..core.database import get_db
from ..schemas.common import BatchResult
from ..schemas.rombel import PromoteRequest, TargetRombel
from ..services.promotion_service import PromotionService

router = APIRouter(prefix="/api/v1/promotion", tags=["Promotion"])

@router.get("/rombels", response_model=list)
async def rombels_for_promotion(
    academic_year_id: Optional[int] = Query(None),
    db: AsyncSession = Depends(get_db)
):
    service = PromotionService(db)
    return await service.get_rombels_for_promotion(academic_year_id)

@router.get("/students/{rombel_id}", response_model=list)
async def students_for_promotion(rombel_id: int, db: AsyncSession = Depends(get_db)):
    service = PromotionService(db)
    return await service.get_students_for_promotion(rombel_id)

@router.get("/targets/{class_id}", response_model=List[TargetRombel])
async def target_rombels(class_id: int, db: AsyncSession = Depends(get_db)):
    """Rombels of the next class level with their free seats"""
    service = PromotionService(db)
    return await service.get_target_rombels(class_id)

@router.post("/promote", response_model=BatchResult)
async def promote_students(request: PromoteRequest, db: AsyncSession = Depends(get_db)):
    service = PromotionService(db)
    return await service.promote_students(request.student_ids, request.target_rombel_id)

@router.get("/class-levels", response_model=list)
@cache_response("promotion:class_levels", ttl=3600)
async def class_levels(db: AsyncSession = Depends(get_db)):
    service = PromotionService(db)
    return await service.get_class_levels()

@router.get("/academic-years", response_model=list)
@cache_response("academic_years:promotion")
async def academic_years(db: AsyncSession = Depends(get_db)):
    service = PromotionService(db)
    return await service.get_academic_years()

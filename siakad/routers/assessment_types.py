# siakad/routers/assessment_types.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..schemas.scores import AssessmentTypeCreate, AssessmentTypeResponse, AssessmentTypeUpdate
from ..services.assessment_type_service import AssessmentTypeService

router = APIRouter(prefix="/api/v1/assessment-types", tags=["Assessment Types"])

@router.get("/", response_model=list)
async def list_assessment_types(
    active_only: bool = Query(False),
    db: AsyncSession = Depends(get_db)
):
    """Assessment types with the number of scores recorded against each"""
    service = AssessmentTypeService(db)
    return await service.list_all(active_only=active_only)

@router.get("/stats", response_model=dict)
async def assessment_type_stats(db: AsyncSession = Depends(get_db)):
    service = AssessmentTypeService(db)
    return await service.get_stats()

@router.get("/{assessment_type_id}", response_model=AssessmentTypeResponse)
async def get_assessment_type(assessment_type_id: int, db: AsyncSession = Depends(get_db)):
    service = AssessmentTypeService(db)
    return await service.get_or_404(assessment_type_id)

@router.post("/", response_model=AssessmentTypeResponse, status_code=201)
async def create_assessment_type(data: AssessmentTypeCreate, db: AsyncSession = Depends(get_db)):
    service = AssessmentTypeService(db)
    return await service.create_assessment_type(data)

@router.put("/{assessment_type_id}", response_model=AssessmentTypeResponse)
async def update_assessment_type(
    assessment_type_id: int,
    data: AssessmentTypeUpdate,
    db: AsyncSession = Depends(get_db)
):
    service = AssessmentTypeService(db)
    return await service.update_assessment_type(assessment_type_id, data)

@router.post("/{assessment_type_id}/toggle", response_model=AssessmentTypeResponse)
async def toggle_assessment_type(assessment_type_id: int, db: AsyncSession = Depends(get_db)):
    """Activate or deactivate; inactive types no longer weigh into averages"""
    service = AssessmentTypeService(db)
    return await service.toggle_status(assessment_type_id)

@router.delete("/{assessment_type_id}", response_model=dict)
async def delete_assessment_type(assessment_type_id: int, db: AsyncSession = Depends(get_db)):
    service = AssessmentTypeService(db)
    await service.delete_assessment_type(assessment_type_id)
    return {"success": True}

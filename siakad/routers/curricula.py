# siakad/routers/curricula.py
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.exceptions import NotFoundError
from ..schemas.academic import CurriculumCreate, CurriculumResponse, CurriculumUpdate
from ..services.curriculum_service import CurriculumService

router = APIRouter(prefix="/api/v1/curricula", tags=["Curricula"])

@router.get("/", response_model=list)
async def list_curricula(db: AsyncSession = Depends(get_db)):
    """Curricula with the number of rombels using each"""
    service = CurriculumService(db)
    return await service.list_all()

@router.get("/active", response_model=CurriculumResponse)
async def get_active_curriculum(db: AsyncSession = Depends(get_db)):
    service = CurriculumService(db)
    curriculum = await service.get_active()
    if not curriculum:
        raise NotFoundError("Active curriculum")
    return curriculum

@router.get("/{curriculum_id}", response_model=CurriculumResponse)
async def get_curriculum(curriculum_id: int, db: AsyncSession = Depends(get_db)):
    service = CurriculumService(db)
    return await service.get_or_404(curriculum_id)

@router.post("/", response_model=CurriculumResponse, status_code=201)
async def create_curriculum(data: CurriculumCreate, db: AsyncSession = Depends(get_db)):
    service = CurriculumService(db)
    return await service.create_curriculum(data)

@router.put("/{curriculum_id}", response_model=CurriculumResponse)
async def update_curriculum(curriculum_id: int, data: CurriculumUpdate, db: AsyncSession = Depends(get_db)):
    service = CurriculumService(db)
    return await service.update_curriculum(curriculum_id, data)

@router.post("/{curriculum_id}/activate", response_model=CurriculumResponse)
async def activate_curriculum(curriculum_id: int, db: AsyncSession = Depends(get_db)):
    service = CurriculumService(db)
    return await service.activate(curriculum_id)

@router.delete("/{curriculum_id}", response_model=dict)
async def delete_curriculum(curriculum_id: int, db: AsyncSession = Depends(get_db)):
    service = CurriculumService(db)
    await service.delete_curriculum(curriculum_id)
    return {"success": True}

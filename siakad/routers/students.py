# siakad/routers/students.py
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..schemas.enrollment import HistoryResponse, TransitionResult, WithdrawRequest
from ..schemas.student import StudentCreate, StudentResponse, StudentUpdate
from ..services.enrollment_service import EnrollmentService
from ..services.student_service import StudentService

router = APIRouter(prefix="/api/v1/students", tags=["Students"])

@router.get("/", response_model=dict)
async def list_students(
    page: int = Query(1, ge=1),
    size: int = Query(10, ge=1, le=100),
    status: Optional[str] = Query(None, description="ACTIVE, GRADUATE or MUTASI"),
    search: Optional[str] = Query(None, description="Name or NISN"),
    db: AsyncSession = Depends(get_db)
):
    service = StudentService(db)
    return await service.list_students(page=page, size=size, status=status, search=search)

@router.post("/", response_model=StudentResponse, status_code=201)
async def create_student(data: StudentCreate, db: AsyncSession = Depends(get_db)):
    """Register a new student; every new student starts ACTIVE without a rombel"""
    service = StudentService(db)
    return await service.create_student(data)

@router.get("/{student_id}", response_model=StudentResponse)
async def get_student(student_id: int, db: AsyncSession = Depends(get_db)):
    service = StudentService(db)
    return await service.get_or_404(student_id)

@router.put("/{student_id}", response_model=StudentResponse)
async def update_student(student_id: int, data: StudentUpdate, db: AsyncSession = Depends(get_db)):
    service = StudentService(db)
    return await service.update_student(student_id, data)

@router.delete("/{student_id}", response_model=dict)
async def delete_student(student_id: int, db: AsyncSession = Depends(get_db)):
    service = StudentService(db)
    await service.delete_student(student_id)
    return {"success": True}

@router.post("/{student_id}/withdraw", response_model=TransitionResult)
async def withdraw_student(student_id: int, request: WithdrawRequest, db: AsyncSession = Depends(get_db)):
    """Record a mutasi (transfer out or withdrawal)"""
    service = EnrollmentService(db)
    return await service.withdraw_student(student_id, request)

@router.get("/{student_id}/history", response_model=List[HistoryResponse])
async def student_history(student_id: int, db: AsyncSession = Depends(get_db)):
    service = EnrollmentService(db)
    return await service.get_student_history(student_id)

# siakad/routers/scores.py
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..schemas.scores import BulkScoreRequest, ScoreTotals, ScoreTotalsRequest
from ..services.score_service import ScoreService, calculate_score_totals

router = APIRouter(prefix="/api/v1/scores", tags=["Scores"])

@router.get("/class-subjects/{class_subject_id}", response_model=dict)
async def class_subject_scores(class_subject_id: int, db: AsyncSession = Depends(get_db)):
    """Score sheet pivoted by student and assessment code"""
    service = ScoreService(db)
    return await service.get_scores_by_class_subject(class_subject_id)

@router.post("/class-subjects/{class_subject_id}/bulk", response_model=dict)
async def save_bulk_scores(class_subject_id: int, request: BulkScoreRequest, db: AsyncSession = Depends(get_db)):
    service = ScoreService(db)
    return await service.save_bulk_scores(class_subject_id, request.assessment_type_id, request.scores)

@router.post("/totals", response_model=ScoreTotals)
async def score_totals(request: ScoreTotalsRequest, db: AsyncSession = Depends(get_db)):
    """Aggregate one student's scores; uses the active assessment weights unless weights are given"""
    weights = request.weights
    if weights is None:
        weights = await ScoreService(db).get_weight_map()
    return calculate_score_totals(request.scores, weights)

@router.get("/rombels/{rombel_id}/report", response_model=dict)
async def rombel_report(rombel_id: int, db: AsyncSession = Depends(get_db)):
    service = ScoreService(db)
    return await service.get_rombel_report(rombel_id)

from .academic_year_service import AcademicYearService
from .assessment_type_service import AssessmentTypeService
from .curriculum_service import CurriculumService
from .enrollment_service import EnrollmentService
from .membership_service import MembershipService
from .promotion_service import PromotionService
from .rombel_service import RombelService
from .score_service import ScoreService, calculate_score_totals
from .student_service import StudentService

__all__ = [
    "AcademicYearService",
    "AssessmentTypeService",
    "CurriculumService",
    "EnrollmentService",
    "MembershipService",
    "PromotionService",
    "RombelService",
    "ScoreService",
    "StudentService",
    "calculate_score_totals",
]

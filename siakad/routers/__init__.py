from . import health, graduates, students, rombels, promotion, academic_years, curricula, scores, assessment_types

__all__ = [
    "health",
    "graduates",
    "students",
    "rombels",
    "promotion",
    "academic_years",
    "curricula",
    "scores",
    "assessment_types",
]

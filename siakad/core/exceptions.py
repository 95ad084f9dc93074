# siakad/core/exceptions.py
"""Custom exceptions for the SIAKAD application."""
from typing import Any, Dict, Optional


class SiakadException(Exception):
    """Base exception for SIAKAD domain errors."""
    status_code: int = 500
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, "code": self.code, "details": self.details}


# Not found

class NotFoundError(SiakadException):
    """Referenced entity does not exist."""
    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, resource: str, id: Any = None):
        message = f"{resource} not found"
        if id is not None:
            message += f" with id: {id}"
        super().__init__(message, {"resource": resource, "id": id})


class StudentNotFoundError(NotFoundError):
    def __init__(self, student_id: Any):
        super().__init__("Student", student_id)


class RombelNotFoundError(NotFoundError):
    code = "ROMBEL_NOT_FOUND"

    def __init__(self, rombel_id: Any):
        super().__init__("Rombel", rombel_id)


class TargetRombelNotFoundError(NotFoundError):
    code = "TARGET_NOT_FOUND"

    def __init__(self, rombel_id: Any):
        super().__init__("Target rombel", rombel_id)


class HistoryNotFoundError(NotFoundError):
    code = "HISTORY_NOT_FOUND"

    def __init__(self, student_id: Any):
        super().__init__("Graduation history for student", student_id)


class AcademicYearNotFoundError(NotFoundError):
    def __init__(self, academic_year_id: Any):
        super().__init__("Academic year", academic_year_id)


class CurriculumNotFoundError(NotFoundError):
    def __init__(self, curriculum_id: Any):
        super().__init__("Curriculum", curriculum_id)


class ClassSubjectNotFoundError(NotFoundError):
    def __init__(self, class_subject_id: Any):
        super().__init__("Class subject", class_subject_id)


class AssessmentTypeNotFoundError(NotFoundError):
    def __init__(self, assessment_type_id: Any):
        super().__init__("Assessment type", assessment_type_id)


# Lifecycle guards

class StudentNotActiveError(SiakadException):
    """Transition requires an ACTIVE student."""
    status_code = 409
    code = "NOT_ACTIVE"

    def __init__(self, student_id: Any, status: str):
        super().__init__(
            f"Only ACTIVE students can be processed, student {student_id} is {status}",
            {"student_id": student_id, "status": status},
        )


class StudentNotGraduateError(SiakadException):
    status_code = 409
    code = "NOT_GRADUATE"

    def __init__(self, student_id: Any, status: str):
        super().__init__(
            f"Student {student_id} is not a graduate",
            {"student_id": student_id, "status": status},
        )


class StudentAlreadyInRombelError(SiakadException):
    status_code = 409
    code = "ALREADY_IN_ROMBEL"

    def __init__(self, rombel_id: Any, student_ids: list):
        super().__init__(
            f"Students already active in rombel {rombel_id}: {student_ids}",
            {"rombel_id": rombel_id, "student_ids": student_ids},
        )


class ResourceInUseError(SiakadException):
    status_code = 409
    code = "IN_USE"

    def __init__(self, resource: str, id: Any, usage: int, referenced_by: str = "rombel(s)"):
        super().__init__(
            f"{resource} {id} is still referenced by {usage} {referenced_by}",
            {"resource": resource, "id": id, "usage": usage},
        )


class DuplicateValueError(SiakadException):
    """A unique business key is already taken."""
    status_code = 409
    code = "DUPLICATE"

    def __init__(self, resource: str, field: str, value: Any):
        super().__init__(
            f"{resource} with {field} '{value}' already exists",
            {"resource": resource, "field": field, "value": value},
        )


# Capacity and input validation

class CapacityExceededError(SiakadException):
    status_code = 400
    code = "CAPACITY_EXCEEDED"

    def __init__(self, available: int, requested: int, rombel: Optional[str] = None):
        self.available = available
        self.requested = requested
        message = f"Not enough capacity. Available: {available}, Requested: {requested}"
        if rombel:
            message = f"{message} (rombel {rombel})"
        details = {"available": available, "requested": requested}
        if rombel:
            details["rombel"] = rombel
        super().__init__(message, details)


class InvalidCapacityError(SiakadException):
    status_code = 400
    code = "INVALID_CAPACITY"

    def __init__(self, capacity: Any, rombel: Optional[str] = None):
        super().__init__(
            f"Rombel capacity must be a positive integer, got {capacity}",
            {"capacity": capacity, "rombel": rombel},
        )


class DuplicateStudentError(SiakadException):
    status_code = 400
    code = "DUPLICATE_STUDENT"

    def __init__(self, student_ids: list):
        super().__init__(
            f"Students listed in more than one rombel: {student_ids}",
            {"student_ids": student_ids},
        )


class NoDataError(SiakadException):
    status_code = 400
    code = "NO_DATA"

    def __init__(self, message: str = "No updatable field supplied"):
        super().__init__(message)

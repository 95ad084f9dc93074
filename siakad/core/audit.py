# siakad/core/audit.py
"""Audit trail of successful API calls.

Each 2xx response to a mutating request is recorded in audit_logs from its
own session, after the response has been produced. Reads are recorded only
when AUDIT_INCLUDE_READS is set.
"""
import logging
import re
from typing import Any, Callable, Dict, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from .config import settings
from .database import AsyncSessionLocal
from ..models.audit_log import AuditLog

logger = logging.getLogger(__name__)

MUTATING_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})
SKIPPED_PATHS = ("/health", "/docs", "/redoc", "/openapi.json")
SENSITIVE_FIELDS = frozenset({"password", "token", "secret", "api_key", "apikey"})
USER_HEADER = "X-User-Id"

_ID_PART = re.compile(r"^(\d+|[a-f0-9-]{36})$")
_NOISE_PART = re.compile(r"^(api|v\d+)$")

# First match wins
_AUDIT_TYPES = (
    (("grade", "score", "assessment"), "grades"),
    (("attendance",), "attendance"),
    (("user", "auth"), "users"),
    (("rombel", "promotion"), "rombels"),
    (("student", "graduate"), "students"),
    (("teacher", "guru"), "teachers"),
)

_METHOD_VERBS = {
    "POST": "Created",
    "PUT": "Updated",
    "PATCH": "Updated",
    "DELETE": "Deleted",
    "GET": "Viewed",
}

_METHOD_STATUSES = {
    "POST": "created",
    "PUT": "changed",
    "PATCH": "changed",
    "DELETE": "deleted",
    "GET": "viewed",
}


def describe_action(method: str, path: str) -> str:
    """POST /api/v1/rombels/register -> 'Created rombels register'"""
    parts = [
        part.replace("-", " ")
        for part in path.split("/")
        if part and not _ID_PART.match(part) and not _NOISE_PART.match(part)
    ]
    subject = " ".join(parts).strip() or "resource"
    verb = _METHOD_VERBS.get(method.upper())
    action = f"{verb} {subject}" if verb else f"{method.upper()} {subject}"
    return action[0].upper() + action[1:]


def determine_audit_type(path: str) -> str:
    lowered = path.lower()
    for keywords, audit_type in _AUDIT_TYPES:
        if any(keyword in lowered for keyword in keywords):
            return audit_type
    return "system"


def determine_status(method: str, path: str) -> str:
    if "update" in path or "change-password" in path:
        return "changed"
    return _METHOD_STATUSES.get(method.upper(), "completed")


def determine_target(path_params: Dict[str, Any]) -> Optional[str]:
    for key in ("student_id", "rombel_id", "class_id", "academic_year_id", "curriculum_id", "assessment_type_id", "id"):
        if path_params.get(key) is not None:
            return f"{key}: {path_params[key]}"
    return None


def sanitize(data: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not data:
        return data
    return {
        key: "[REDACTED]" if key.lower() in SENSITIVE_FIELDS else value
        for key, value in data.items()
    }


def should_audit(method: str, path: str, status_code: int) -> bool:
    if not settings.audit_enabled:
        return False
    if not 200 <= status_code < 300:
        return False
    if path.startswith(SKIPPED_PATHS):
        return False
    return method.upper() in MUTATING_METHODS or settings.audit_include_reads


class AuditLogMiddleware(BaseHTTPMiddleware):
    """Writes an AuditLog row for every audited request."""

    def __init__(self, app: ASGIApp, session_factory: Callable = AsyncSessionLocal) -> None:
        super().__init__(app)
        self._session_factory = session_factory

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)

        if should_audit(request.method, request.url.path, response.status_code):
            await self.record(request)

        return response

    async def record(self, request: Request) -> None:
        path = request.url.path
        path_params = dict(request.path_params)

        entry = AuditLog(
            audit_type=determine_audit_type(path),
            user_id=request.headers.get(USER_HEADER, "anonymous"),
            action=describe_action(request.method, path),
            target=determine_target(path_params),
            status=determine_status(request.method, path),
            request_metadata={
                "method": request.method,
                "path": path,
                "query": sanitize(dict(request.query_params)),
                "params": sanitize(path_params),
            },
            ip_address=request.client.host if request.client else "unknown",
            user_agent=request.headers.get("user-agent", "unknown"),
        )

        try:
            async with self._session_factory() as session:
                session.add(entry)
                await session.commit()
            logger.debug(f"Audit logged: {entry.action}")
        except Exception as e:
            logger.error(f"Failed to save audit log for {request.method} {path}: {e}")

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
import logging

from .exceptions import SiakadException

logger = logging.getLogger(__name__)

async def siakad_exception_handler(request: Request, exc: SiakadException):
    """Handle domain exceptions raised by the services"""
    if exc.status_code >= 500:
        logger.error(f"SIAKAD error: {exc.message} - Path: {request.url.path}")
    else:
        logger.info(f"{exc.code}: {exc.message} - Path: {request.url.path}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    """Handle store-level failures; the transaction has already been rolled back"""
    logger.error(f"Database error: {exc} - Path: {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "type": "DatabaseError"}
    )

async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions"""
    logger.exception(f"Unexpected error: {str(exc)} - Path: {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "type": "InternalError"}
    )

def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(SiakadException, siakad_exception_handler)
    app.add_exception_handler(SQLAlchemyError, database_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

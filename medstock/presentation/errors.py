# medstock/presentation/errors.py
import logging

from fastapi import HTTPException, status

from medstock.domain.errors import CollaboratorFailure, DecodeError, ValidationError

logger = logging.getLogger("medstock.api")


def raise_http(e: Exception):
    """Peta error domain -> HTTP."""
    if isinstance(e, HTTPException):
        raise e
    if isinstance(e, ValidationError):
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    if isinstance(e, DecodeError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if isinstance(e, CollaboratorFailure):
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    logger.exception("unhandled error")
    raise HTTPException(status_code=500, detail=str(e))

"""Project-wide DRF exception handler.

Framework errors (authentication, parsing, validation, throttling,
method not allowed) are rendered in one shape::

    {"type": "client_error", "errors": [{"code": ..., "detail": ..., "attr": ...}]}

Domain exceptions never reach this handler: views translate them into
``{"detail": ...}`` responses themselves.
"""

from __future__ import annotations

from typing import Any, List, Optional

import structlog
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = structlog.get_logger(__name__)


def standardized_exception_handler(exc: Exception, context: dict) -> Any:
    response = exception_handler(exc, context)
    if response is None:
        # Unhandled: let Django turn it into a 500 and log the traceback.
        return None

    if isinstance(exc, ValidationError):
        error_type = "validation_error"
        errors = _flatten_validation_errors(exc.detail)
    else:
        error_type = "server_error" if response.status_code >= 500 else "client_error"
        code = exc.get_codes() if isinstance(exc, APIException) else "error"
        errors = [
            {
                "code": code if isinstance(code, str) else "error",
                "detail": str(getattr(exc, "detail", exc)),
                "attr": None,
            }
        ]

    logger.info(
        "api.error_response",
        status_code=response.status_code,
        error_type=error_type,
    )
    response.data = {"type": error_type, "errors": errors}
    return response


def _flatten_validation_errors(
    detail: Any, attr: Optional[str] = None
) -> List[dict]:
    if isinstance(detail, dict):
        errors: List[dict] = []
        for key, value in detail.items():
            child = key if attr is None else f"{attr}.{key}"
            if key == "non_field_errors":
                child = attr
            errors.extend(_flatten_validation_errors(value, child))
        return errors
    if isinstance(detail, list):
        errors = []
        for index, value in enumerate(detail):
            if isinstance(value, (dict, list)):
                child = str(index) if attr is None else f"{attr}.{index}"
                errors.extend(_flatten_validation_errors(value, child))
            else:
                errors.extend(_flatten_validation_errors(value, attr))
        return errors
    return [
        {
            "code": getattr(detail, "code", "invalid"),
            "detail": str(detail),
            "attr": attr,
        }
    ]


def invalid_input_response(exc: PydanticValidationError) -> Response:
    """400 for a request body rejected by a service-layer DTO."""
    errors = [
        {
            "attr": ".".join(str(part) for part in error["loc"]) or None,
            "detail": error["msg"],
        }
        for error in exc.errors()
    ]
    return Response(
        {"detail": "Invalid input.", "errors": errors},
        status=status.HTTP_400_BAD_REQUEST,
    )

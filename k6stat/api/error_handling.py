"""
Centralized API error handling helpers.

Goal: keep ClickHouse connectivity problems distinguishable from empty
results, and keep storage error codes (bad filters, unknown tests) intact
on their way to the client.
"""

from __future__ import annotations

import logging
import traceback
from dataclasses import dataclass
from typing import Any

from fastapi import HTTPException, status

from k6stat.config import settings
from k6stat.core.errors import QueryError
from k6stat.core.sort_by import InvalidSortByError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ApiError:
    status_code: int
    code: str
    message: str
    hint: str | None = None
    debug: str | None = None


def _maybe_debug(exc: BaseException) -> str | None:
    if settings.APP_DEBUG:
        return str(exc)
    return None


def classify_clickhouse_error(exc: BaseException) -> ApiError | None:
    """
    Classify storage failures into user-actionable errors.
    """
    if isinstance(exc, InvalidSortByError):
        return ApiError(
            status_code=status.HTTP_400_BAD_REQUEST,
            code="INVALID_SORT",
            message=str(exc),
        )

    if not isinstance(exc, QueryError):
        return None

    if exc.code == status.HTTP_503_SERVICE_UNAVAILABLE:
        return ApiError(
            status_code=exc.code,
            code="CLICKHOUSE_CONNECTION_FAILED",
            message="Failed to connect to ClickHouse.",
            hint="Check K6_STAT_DB_ADDR and network access, then retry.",
            debug=_maybe_debug(exc),
        )
    if exc.code == status.HTTP_400_BAD_REQUEST:
        return ApiError(status_code=exc.code, code="INVALID_FILTER", message=str(exc))
    if exc.code == status.HTTP_404_NOT_FOUND:
        return ApiError(status_code=exc.code, code="NOT_FOUND", message=str(exc))

    debug = _maybe_debug(exc)
    if debug and exc.query:
        debug = f"{debug}, sql: {exc.query}"
    return ApiError(
        status_code=exc.code,
        code="QUERY_FAILED",
        message="ClickHouse query failed.",
        debug=debug,
    )


def http_exception(operation: str, exc: BaseException) -> HTTPException:
    """
    Convert an exception into a consistent HTTPException payload.
    """
    api_error = classify_clickhouse_error(exc)
    if api_error is not None and api_error.status_code < 500:
        logger.info("API request '%s' rejected: %s", operation, exc)
    else:
        logger.error(
            "API error during '%s': %s\n%s",
            operation,
            exc,
            traceback.format_exc(),
        )
        if isinstance(exc, QueryError) and exc.query:
            logger.error("Failed query: %s", exc.query)

    if api_error is not None:
        detail: dict[str, Any] = {
            "code": api_error.code,
            "message": api_error.message,
            "operation": operation,
        }
        if api_error.hint:
            detail["hint"] = api_error.hint
        if api_error.debug:
            detail["debug"] = api_error.debug
        return HTTPException(status_code=api_error.status_code, detail=detail)

    # Default: preserve a safe summary + optional debug.
    base_detail: dict[str, Any] = {
        "code": "INTERNAL_ERROR",
        "message": f"{operation} failed.",
        "operation": operation,
    }
    dbg = _maybe_debug(exc)
    if dbg:
        base_detail["debug"] = dbg
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=base_detail,
    )

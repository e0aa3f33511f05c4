"""
Custom exception classes and FastAPI exception handlers.

The service layer raises domain-specific errors (like DuplicateNationalIdError)
without importing HTTP concepts. The handlers registered here translate them
into one consistent JSON error body:

    {"status": 404, "error": "Not Found", "message": "...",
     "path": "/api/clientes/123", "timestamp": "2024-05-01T12:00:00.000+00:00"}

Exception hierarchy:
    ClienteAPIError (base)
    ├── CustomerNotFoundError      — 404, no customer with that national ID
    ├── InvalidInputError          — 400, business rule rejected the input
    │   ├── DuplicateNationalIdError
    │   ├── UnknownProductError
    │   └── DuplicateUsernameError
    ├── InvalidCredentialsError    — 401, signin rejected
    ├── NotAuthenticatedError      — 401, no usable identity on a protected route
    ├── ForbiddenError             — 403, identity lacks the required role
    └── ReferenceDataMissingError  — 500, startup seeding did not run

Authentication failures always carry a generic message so a client cannot
tell which part of credential validation failed.
"""

import logging
from datetime import datetime, timezone
from http import HTTPStatus

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Base exception
# ---------------------------------------------------------------------------

class ClienteAPIError(Exception):
    """Base exception for all Cliente API domain errors."""

    status_code: int = 400

    def __init__(self, detail: str = "An error occurred"):
        self.detail = detail
        super().__init__(self.detail)


# ---------------------------------------------------------------------------
# Domain exceptions
# ---------------------------------------------------------------------------

class CustomerNotFoundError(ClienteAPIError):
    """Raised at the HTTP boundary when no customer has the given national ID."""

    status_code = 404

    def __init__(self, national_id: str):
        self.national_id = national_id
        super().__init__(f"Customer not found with national ID: {national_id}")


class InvalidInputError(ClienteAPIError):
    """Raised when the input is well-formed but violates a business rule."""

    status_code = 400


class DuplicateNationalIdError(InvalidInputError):
    """Raised when a customer with the same national ID already exists."""

    def __init__(self, national_id: str):
        self.national_id = national_id
        super().__init__(f"A customer with national ID {national_id} already exists.")


class UnknownProductError(InvalidInputError):
    """Raised when a referenced banking product code does not exist."""

    def __init__(self, codes: list[str]):
        self.codes = codes
        super().__init__(
            f"Banking product with code {', '.join(codes)} not found."
        )


class DuplicateUsernameError(InvalidInputError):
    """Raised when attempting to register a username that's already in use."""

    def __init__(self, username: str):
        self.username = username
        super().__init__("Error: Username is already taken!")


class InvalidCredentialsError(ClienteAPIError):
    """Raised when signin credentials are incorrect."""

    status_code = 401

    def __init__(self):
        super().__init__("Invalid username or password.")


class NotAuthenticatedError(ClienteAPIError):
    """Raised when a protected route is reached without a usable identity."""

    status_code = 401

    def __init__(self):
        super().__init__(
            "Unauthorized access. Invalid credentials or missing/expired token."
        )


class ForbiddenError(ClienteAPIError):
    """Raised when the authenticated principal lacks every required role."""

    status_code = 403

    def __init__(self):
        super().__init__(
            "Access denied. You do not have permission to perform this action."
        )


class ReferenceDataMissingError(ClienteAPIError):
    """Raised when seeded reference rows (roles, products) are absent."""

    status_code = 500

    def __init__(self, what: str):
        self.what = what
        super().__init__(f"Reference data missing: {what}.")


# ---------------------------------------------------------------------------
# Error body
# ---------------------------------------------------------------------------

def error_body(status_code: int, message: str, path: str) -> dict:
    """Build the error payload shared by every handler."""
    return {
        "status": status_code,
        "error": HTTPStatus(status_code).phrase,
        "message": message,
        "path": path,
        "timestamp": datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
    }


def _format_location(loc: tuple) -> str:
    # ("body", 0, "nationalId") -> "0.nationalId"
    parts = [str(part) for part in loc if part != "body"]
    return ".".join(parts) or "body"


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

def register_exception_handlers(app: FastAPI) -> None:
    """
    Register custom exception handlers with the FastAPI application.

    Called once during app creation in main.py.
    """

    @app.exception_handler(ClienteAPIError)
    async def domain_error_handler(
        request: Request, exc: ClienteAPIError
    ) -> JSONResponse:
        log = logger.error if exc.status_code >= 500 else logger.warning
        log("%s: %s for path: %s", type(exc).__name__, exc.detail, request.url.path)
        headers = None
        if exc.status_code == 401:
            headers = {"WWW-Authenticate": "Bearer"}
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.status_code, exc.detail, request.url.path),
            headers=headers,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        # Validation failures are client errors: 400, reported per field
        field_errors: dict[str, str] = {}
        for error in exc.errors():
            field_errors.setdefault(_format_location(error["loc"]), error["msg"])

        detail = "; ".join(f"'{field}': '{msg}'" for field, msg in field_errors.items())
        logger.warning("Validation error: %s for path: %s", detail, request.url.path)

        content = error_body(400, f"Validation error: {detail}", request.url.path)
        content["errors"] = field_errors
        return JSONResponse(status_code=400, content=content)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.status_code, str(exc.detail), request.url.path),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled exception for path: %s", request.url.path)
        return JSONResponse(
            status_code=500,
            content=error_body(
                500,
                "An unexpected error occurred. Please try again later.",
                request.url.path,
            ),
        )

"""Exception handlers rendering every error as ``{success, message, errors}``."""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.integrations.fastapi import register_exception_handlers

from marketplace.shared.errors import error_message


def error_body(message: str, errors=None) -> dict:
    return {"success": False, "message": message, "errors": errors or {}}


def register_error_handlers(app: FastAPI) -> None:
    # Protean's handlers cover the framework's remaining exceptions
    register_exception_handlers(app)

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        status_code = getattr(exc, "status_code", 400)
        messages = exc.messages if isinstance(exc.messages, dict) else {"error": [str(exc.messages)]}
        return JSONResponse(status_code=status_code, content=error_body(error_message(exc), messages))

    @app.exception_handler(ObjectNotFoundError)
    async def handle_not_found(request: Request, exc: ObjectNotFoundError):
        return JSONResponse(status_code=404, content=error_body(error_message(exc) or "Not found"))

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = {}
        for error in exc.errors():
            field = ".".join(str(part) for part in error.get("loc", ()) if part != "body") or "body"
            errors.setdefault(field, []).append(error.get("msg", "Invalid value"))
        return JSONResponse(status_code=400, content=error_body("Invalid request", errors))

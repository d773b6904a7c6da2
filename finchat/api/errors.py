from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from finchat.utils.errors import AppError
from finchat.utils.logging import logger


def register_error_handlers(app: FastAPI) -> None:
    """Render AppError subclasses as the JSON error envelope."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        user_id = getattr(request.state, "user_id", "anonymous")
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(f"HTTP {exc.status_code}: {exc} | path={request.url.path} | user={user_id}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

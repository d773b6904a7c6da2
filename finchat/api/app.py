from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI
from finchat.config.settings import settings
from finchat.core.services.chat_service import ChatService
from finchat.core.services.completion import CompletionService
from finchat.core.services.context import ContextAssembler
from finchat.core.services.db_service import DatabaseService
from finchat.core.services.embedding import EmbeddingService
from finchat.utils.logging import logger
from .errors import register_error_handlers
from .middleware import configure_cors
from .routes import chat_router

def build_chat_service(db_service: DatabaseService) -> ChatService:
    """Wire the process-wide clients into one ChatService."""
    context_assembler = ContextAssembler(db_service, EmbeddingService())
    return ChatService(db_service, context_assembler, CompletionService())

@asynccontextmanager
async def lifespan(app: FastAPI):
    if app.state.chat_service is not None:
        # Services were injected by the caller, nothing to manage here
        yield
        return

    # Startup: Create and verify database connection
    db_service = DatabaseService()
    await db_service.open()
    if not await db_service.check_health():
        await db_service.close()
        raise RuntimeError("Failed to connect to database")

    app.state.chat_service = build_chat_service(db_service)

    yield  # Server is running and handling requests

    # Shutdown: Cleanup
    app.state.chat_service = None
    await db_service.close()

def create_app(chat_service: Optional[ChatService] = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.API_TITLE,
        description=settings.API_DESCRIPTION,
        version=settings.API_VERSION,
        lifespan=lifespan
    )
    app.state.chat_service = chat_service

    if settings.DEMO_USER_ID and settings.ENV == "prod":
        logger.warning("DEMO_USER_ID is set but ignored because ENV=prod")

    configure_cors(app)
    register_error_handlers(app)

    app.include_router(chat_router)

    return app

app = create_app()

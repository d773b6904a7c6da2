from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError
from finchat.api.models.chat import ChatRequest, ChatResponse, ErrorResponse
from finchat.api.dependencies.auth import get_current_user
from finchat.core.services.chat_service import ChatService
from finchat.utils.errors import AppError, BadRequest, InternalError
from finchat.utils.logging import logger

router = APIRouter()

def get_chat_service(request: Request) -> ChatService:
    chat_service = getattr(request.app.state, "chat_service", None)
    if chat_service is None:
        raise InternalError("chat service is not initialised")
    return chat_service

async def parse_chat_request(request: Request) -> ChatRequest:
    """Read the JSON body; anything but a non-empty string question is a 400."""
    try:
        payload = await request.json()
    except ValueError:
        raise BadRequest("body is not valid JSON")

    if not isinstance(payload, dict):
        raise BadRequest("body is not a JSON object")

    try:
        return ChatRequest.model_validate(payload)
    except ValidationError as e:
        raise BadRequest(str(e))

@router.post(
    "/",
    response_model=ChatResponse,
    response_model_exclude_none=True,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}, 500: {"model": ErrorResponse}}
)
async def chat_endpoint(
    request: Request,
    user_id: str = Depends(get_current_user),
    chat_service: ChatService = Depends(get_chat_service)
):
    chat_request = await parse_chat_request(request)

    try:
        answer = await chat_service.answer(user_id, chat_request.question)
    except AppError as e:
        logger.error(f"Error in chat endpoint for user {user_id}: {e}")
        raise
    except Exception as e:
        logger.error(f"Error in chat endpoint for user {user_id}: {e}")
        raise InternalError(str(e)) from e

    return ChatResponse(answer=answer)

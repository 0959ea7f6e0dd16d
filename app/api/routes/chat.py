from fastapi import APIRouter, Depends, Request

from app.core.errors import ValidationAppError
from app.core.rate_limit import enforce_rate_limit
from app.schemas.chat import ChatReply, ErrorResponse
from app.services.chat_service import ChatService

router = APIRouter(tags=["Chat"])

INVALID_JSON_MESSAGE = "Invalid JSON"

_chat_service = ChatService()


def get_chat_service() -> ChatService:
    """Dependency returning the shared chat service."""
    return _chat_service


@router.post(
    "/chat",
    response_model=ChatReply,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
    dependencies=[Depends(enforce_rate_limit)],
)
async def chat(
    request: Request,
    service: ChatService = Depends(get_chat_service),
) -> ChatReply:
    """Relay a conversation to Gemini and return its reply.

    The body is parsed by hand rather than through a Pydantic parameter so
    that malformed JSON and missing fields map to the API's own messages.

    Raises:
        ValidationAppError: 400 for malformed JSON or missing fields.
    """
    try:
        payload = await request.json()
    except ValueError as exc:
        raise ValidationAppError(code="invalid_json", message=INVALID_JSON_MESSAGE) from exc

    return await service.reply(payload)

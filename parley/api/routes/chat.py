"""Chat endpoints: send a message, read session history."""

from fastapi import APIRouter, Query

from parley.api.dependencies import OrchestratorDep, SettingsDep
from parley.api.exceptions import InvalidRequestError, SessionNotFoundError
from parley.api.models.chat import ChatHistoryResponse, ChatRequest, ChatResponseModel
from parley.api.models.errors import ErrorResponse
from parley.conversation.orchestrator import DEFAULT_PAGE_SIZE
from parley.observability.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/chat")


@router.post(
    "/message",
    response_model=ChatResponseModel,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def send_message(
    request: ChatRequest,
    orchestrator: OrchestratorDep,
) -> ChatResponseModel:
    """Send a message to the chatbot and return its reply.

    Raises:
        InvalidRequestError: Blank message or session id
    """
    if not request.message.strip():
        raise InvalidRequestError("Message cannot be empty")
    if not request.session_id.strip():
        raise InvalidRequestError("SessionId is required")

    context = request.context.to_domain() if request.context else None
    result = await orchestrator.respond(request.session_id, request.message, context)
    return ChatResponseModel.from_domain(result)


@router.get(
    "/sessions/{session_id}/history",
    response_model=ChatHistoryResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def get_chat_history(
    session_id: str,
    orchestrator: OrchestratorDep,
    settings: SettingsDep,
    limit: int | None = Query(default=None, description="Maximum number of messages to return"),
) -> ChatHistoryResponse:
    """Return the most recent messages of a session.

    Raises:
        InvalidRequestError: ``limit`` outside 1..max page size
        SessionNotFoundError: Session has no retained messages
    """
    max_limit = settings.conversation.max_history_page_size
    if limit is None:
        limit = min(DEFAULT_PAGE_SIZE, max_limit)
    elif limit < 1 or limit > max_limit:
        raise InvalidRequestError(f"Limit must be between 1 and {max_limit}")

    page = await orchestrator.get_history_page(session_id, limit)
    if not page.messages:
        raise SessionNotFoundError(f"Session {session_id} not found")

    return ChatHistoryResponse.from_domain(page)

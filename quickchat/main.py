import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Response, Request, Depends, HTTPException, status
from fastapi.responses import JSONResponse

from quickchat.accounts import Account, LOGIN_FAILED
from quickchat.actions import apply_action
from quickchat.config import settings
from quickchat.ledger import MessageLedger
from quickchat.logging_utils import setup_logging, RequestLoggingMiddleware, log_message_data
from quickchat.metrics import get_metrics, get_metrics_content_type
from quickchat.models import MessageAction
from quickchat.schemas import (
    AuthResponse,
    CreateMessageRequest,
    CreateMessageResponse,
    ErrorResponse,
    HealthResponse,
    LoginRequest,
    MessageResponse,
    MessagesListResponse,
    RegistrationRequest,
    RejectedMessageResponse,
    RenderResponse,
    StatsResponse,
    StoredMessagesResponse,
)
from quickchat.storage import check_store_health, read_stored_messages


# Setup structured JSON logging
setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.
    - Startup: Create a fresh ledger and account registry for this process
    """
    app.state.ledger = MessageLedger()
    app.state.accounts = {}
    logger.info(f"QuickChat started, message store: {settings.MESSAGES_FILE}")
    yield


app = FastAPI(
    title="QuickChat API",
    description="Compose, validate and store short text messages",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(RequestLoggingMiddleware)


# =============================================================================
# Dependencies
# =============================================================================

def get_ledger(request: Request) -> MessageLedger:
    return request.app.state.ledger


def get_store_path() -> str:
    return settings.MESSAGES_FILE


# =============================================================================
# Health Check Routes
# =============================================================================

@app.get("/health/live", response_model=HealthResponse)
async def health_live() -> HealthResponse:
    """Liveness probe - always returns 200 once the app is running."""
    return HealthResponse(status="ok")


@app.get("/health/ready", response_model=HealthResponse)
async def health_ready(response: Response, store_path: str = Depends(get_store_path)) -> HealthResponse:
    """
    Readiness probe - returns 200 only if the message store can be appended to.
    Otherwise returns 503 (Service Unavailable).
    """
    if not check_store_health(store_path):
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return HealthResponse(
            status="not_ready",
            reason="Message store not writable"
        )

    return HealthResponse(status="ready")


# =============================================================================
# Message Routes
# =============================================================================

@app.post(
    "/messages",
    response_model=CreateMessageResponse,
    responses={
        422: {"model": RejectedMessageResponse, "description": "Message rejected"},
        500: {"model": ErrorResponse, "description": "Message store write failed"},
    }
)
def create_message(
    payload: CreateMessageRequest,
    request: Request,
    ledger: MessageLedger = Depends(get_ledger),
    store_path: str = Depends(get_store_path),
):
    """
    Compose a message and apply the requested action.

    - The ledger assigns an id, sequence number and hash and decides acceptance
    - Rejected messages return 422 with the rejection reason
    - Send and Store append the message to the JSON-lines store
    """
    logger.info("Create message request received")

    message = ledger.create_message(payload.recipient, payload.message)

    if not message.accepted:
        log_message_data(request, message_id=message.message_id, result=message.rejection.value)
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=RejectedMessageResponse(
                detail="message rejected",
                rejection=message.rejection,
                message_id=message.message_id,
            ).model_dump(mode="json"),
        )

    result = apply_action(message, lambda _: payload.action, store_path)
    log_message_data(
        request,
        message_id=message.message_id,
        result="accepted",
        action=result.action.value,
    )

    if result.action is not MessageAction.DISREGARD and not result.persisted:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=result.status
        )

    return CreateMessageResponse(
        **MessageResponse.from_message(message).model_dump(),
        action=result.action,
        persisted=result.persisted,
        status=result.status,
    )


@app.get("/messages", response_model=MessagesListResponse)
def list_messages(ledger: MessageLedger = Depends(get_ledger)) -> MessagesListResponse:
    """List accepted messages in construction order."""
    data = [MessageResponse.from_message(msg) for msg in ledger.list_accepted()]
    logger.info(f"GET /messages: returned {len(data)} messages")
    return MessagesListResponse(data=data, total=len(data))


@app.get("/messages/render", response_model=RenderResponse)
def render_messages(ledger: MessageLedger = Depends(get_ledger)) -> RenderResponse:
    """Printable summary of accepted messages."""
    return RenderResponse(text=ledger.render())


@app.get("/messages/stored", response_model=StoredMessagesResponse)
def stored_messages(store_path: str = Depends(get_store_path)) -> StoredMessagesResponse:
    """Messages read back from the JSON-lines store."""
    try:
        data = read_stored_messages(store_path)
    except OSError as e:
        logger.error(f"Failed to read message store: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to read message store"
        )
    return StoredMessagesResponse(data=data, total=len(data))


# =============================================================================
# Stats Route
# =============================================================================

@app.get("/stats", response_model=StatsResponse)
def get_statistics(ledger: MessageLedger = Depends(get_ledger)) -> StatsResponse:
    """Ledger counter and accepted message count."""
    return StatsResponse(total_messages=ledger.total_attempts(), accepted=len(ledger))


# =============================================================================
# Account Routes
# =============================================================================

@app.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(payload: RegistrationRequest, request: Request) -> AuthResponse:
    """
    Register a user. Credential format errors are rejected with 422 by the
    request schema before this handler runs.
    """
    account = Account(payload.username, payload.password, payload.cell_phone)
    result = account.register_user()
    request.app.state.accounts[payload.username] = account
    return AuthResponse(status=result)


@app.post("/login", response_model=AuthResponse, responses={401: {"model": ErrorResponse}})
def login(payload: LoginRequest, request: Request) -> AuthResponse:
    account = request.app.state.accounts.get(payload.username)
    if account is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=LOGIN_FAILED)

    result = account.return_login_status(
        payload.username, payload.password, payload.first_name, payload.last_name
    )
    if result == LOGIN_FAILED:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=result)
    return AuthResponse(status=result)


# =============================================================================
# Metrics Route
# =============================================================================

@app.get("/metrics")
async def metrics() -> Response:
    """Expose Prometheus-style metrics."""
    return Response(
        content=get_metrics(),
        media_type=get_metrics_content_type()
    )

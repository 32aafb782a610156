"""FastAPI web application for learnplan."""

import base64
import binascii
import json
import logging
import uuid
from datetime import date, datetime, timedelta
from typing import List, Optional, Tuple

from fastapi import FastAPI, HTTPException, Depends, Query, Request, Response, status
from sqlalchemy.orm import Session

from learnplan.accounting import ledger, sessions as session_service
from learnplan.accounting.errors import (
    AccountingError,
    InsufficientCreditsError,
    NotFoundError,
    SessionAlreadyEndedError,
    UnauthorizedError,
)
from learnplan.accounting.stats_jobs import get_user_rank
from learnplan.accounting.streaks import update_streak
from learnplan.api.auth_models import AuthResponse, GoogleOAuthCallbackRequest
from learnplan.api.request_models import (
    AskRequest,
    AttachmentIn,
    CostEstimateRequest,
    LearningTimeRequest,
    PlanCreateRequest,
    PlanUpdateRequest,
    PlaylistPlanRequest,
    SessionStartRequest,
    ShiftTodosRequest,
    TodoStatusUpdate,
    UploadFilesRequest,
)
from learnplan.auth.dependencies import get_current_user
from learnplan.auth.google_oauth import verify_google_token
from learnplan.auth.jwt import create_access_token
from learnplan.auth.webhook_signature import verify_webhook_signature
from learnplan.database.badge_repository import BadgeRepository
from learnplan.database.chat_repository import ChatRepository, UploadRepository, chat_title_from_question
from learnplan.database.database import get_db, init_db
from learnplan.database.event_repository import EventRepository
from learnplan.database.leaderboard_repository import LeaderboardRepository
from learnplan.database.plan_repository import PlanRepository
from learnplan.database.stats_repository import UserStatsRepository
from learnplan.database.user_repository import UserRepository
from learnplan.engine.credit_costs import (
    attachment_flat_charge,
    build_history_sample,
    estimate_chat_cost,
    estimate_youtube_playlist_cost,
)
from learnplan.engine.leaderboards import STREAK_PERIOD, month_period, week_period
from learnplan.engine.streaks import utc_today
from learnplan.integrations.openai_client import AssistantUnavailableError, OpenAIClient
from learnplan.integrations.youtube import YouTubeClient, YouTubeError, extract_playlist_id
from learnplan.models.chat import MessageRole
from learnplan.models.constants import ALLOWED_ATTACHMENT_TYPES, CHAT_HISTORY_SAMPLE_SIZE, DEFAULT_SESSION_LIST_LIMIT
from learnplan.models.credit_transaction import CreditReason
from learnplan.models.leaderboard import LeaderboardType
from learnplan.models.plan import Plan, PlanStatus, Todo, TodoPriority, TodoStatus
from learnplan.models.user import User
from learnplan.storage.file_store import FileStore

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="learnplan API",
    description="Learning plans, an AI study assistant, session tracking, streaks and credits",
    version="0.1.0"
)


@app.on_event("startup")
def on_startup():
    init_db()


def _http_error(error: AccountingError) -> HTTPException:
    """Map an accounting error to its HTTP status."""
    if isinstance(error, InsufficientCreditsError):
        return HTTPException(
            status_code=status.HTTP_402_PAYMENT_REQUIRED,
            detail={
                "message": str(error),
                "required": error.required,
                "available": error.available,
            },
        )
    if isinstance(error, SessionAlreadyEndedError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(error))
    if isinstance(error, UnauthorizedError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(error))
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))


def _default_period(leaderboard_type: LeaderboardType) -> str:
    today = utc_today()
    if leaderboard_type == LeaderboardType.WEEKLY_TIME:
        return week_period(today)
    if leaderboard_type == LeaderboardType.MONTHLY_TIME:
        return month_period(today)
    return STREAK_PERIOD


def _decode_attachments(attachments: List[AttachmentIn]) -> List[Tuple[AttachmentIn, bytes]]:
    decoded = []
    for attachment in attachments:
        try:
            decoded.append((attachment, base64.b64decode(attachment.data, validate=True)))
        except (binascii.Error, ValueError):
            raise HTTPException(status_code=400, detail=f"Attachment {attachment.file_name} is not valid base64")
    return decoded


def _check_session_refs(db: Session, user_id: str, plan_id: Optional[str], todo_id: Optional[str]) -> None:
    """Reject session references to plans/todos the caller does not own."""
    plan_repo = PlanRepository(db)
    if plan_id:
        owner_id = plan_repo.get_owner(plan_id)
        if owner_id is None:
            raise NotFoundError(f"Plan {plan_id} not found")
        if owner_id != user_id:
            raise UnauthorizedError(f"Plan {plan_id} belongs to another user")
    if todo_id:
        found = plan_repo.get_todo_with_owner(todo_id)
        if found is None:
            raise NotFoundError(f"Todo {todo_id} not found")
        todo, owner_id = found
        if owner_id != user_id:
            raise UnauthorizedError(f"Todo {todo_id} belongs to another user")
        if plan_id and todo.plan_id != plan_id:
            raise HTTPException(status_code=400, detail="Todo does not belong to the given plan")


@app.get("/health")
async def health():
    return {"status": "ok"}


# --- Auth ---

@app.post("/auth/google/callback", response_model=AuthResponse)
def google_oauth_callback(request: GoogleOAuthCallbackRequest, db: Session = Depends(get_db)):
    """Sign in with a Google ID token.

    Creates the account on first sign-in (with the sign-up credit grant) and
    returns a bearer token.
    """
    user_info = verify_google_token(request.id_token)
    if not user_info:
        raise HTTPException(status_code=401, detail="Invalid Google ID token")

    user, created = UserRepository(db).upsert_from_sign_in(
        email=user_info["email"],
        name=user_info.get("name"),
        image_url=user_info.get("picture"),
    )
    if created:
        logger.info(f"New user signed up: {user.id}")

    return AuthResponse(
        access_token=create_access_token(user.id, email=user.email),
        user=user.dict(),
        created=created,
    )


@app.get("/auth/me")
def get_me(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    user = UserRepository(db).get(current_user.id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return {"user": user}


# --- Ask / chats ---

@app.post("/ask")
def ask_question(
    request: AskRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Ask the assistant a question, optionally continuing a chat and attaching files.

    The flat charge is taken before anything is written. If the user cannot
    afford it the request fails with 402 and nothing is stored.
    """
    question = (request.question or "").strip()
    if not question:
        raise HTTPException(status_code=400, detail="Question is required")

    chat_repo = ChatRepository(db)
    chat = None
    history = []
    if request.chat_id:
        chat = chat_repo.get(current_user.id, request.chat_id)
        if not chat:
            raise HTTPException(status_code=404, detail="Conversation not found")
        history = chat_repo.get_recent_messages(chat.id, CHAT_HISTORY_SAMPLE_SIZE)

    # Decode up front so a malformed attachment fails before the charge
    decoded = _decode_attachments(request.attachments)

    estimate = estimate_chat_cost(question, build_history_sample([m.content for m in history]))
    cost = attachment_flat_charge(bool(decoded))
    try:
        remaining = ledger.charge_if_affordable(
            db,
            current_user.id,
            cost,
            CreditReason.CHAT,
            metadata={
                "input_tokens": estimate.input_tokens,
                "output_tokens": estimate.output_tokens,
                "effective_tokens": estimate.effective_tokens,
                "attachments": len(decoded),
            },
        )
    except AccountingError as e:
        raise _http_error(e)

    if chat is None:
        chat = chat_repo.create(current_user.id, chat_title_from_question(question))
    user_message = chat_repo.add_message(chat.id, MessageRole.USER, question)

    uploads = []
    file_store = FileStore()
    for attachment, data in decoded:
        if attachment.file_type not in ALLOWED_ATTACHMENT_TYPES:
            logger.info(f"Skipping attachment with type {attachment.file_type}")
            continue
        storage_id = file_store.save(data)
        uploads.append(chat_repo.add_upload(
            user_id=current_user.id,
            chat_id=chat.id,
            file_name=attachment.file_name,
            file_type=attachment.file_type,
            file_size=len(data),
            storage_id=storage_id,
        ))

    try:
        reply = OpenAIClient().generate_reply(
            question,
            history=history,
            attachment_names=[upload.file_name for upload in uploads],
        )
    except AssistantUnavailableError as e:
        # The charge stands; the question and attachments are already stored
        logger.warning(f"Assistant failed for chat {chat.id} after charging {cost} credits: {e}")
        raise HTTPException(status_code=502, detail="Assistant is unavailable, please try again")

    assistant_message = chat_repo.add_message(chat.id, MessageRole.ASSISTANT, reply.content)

    return {
        "chat_id": chat.id,
        "user_message": user_message,
        "reply": assistant_message,
        "uploads": uploads,
        "credits_charged": cost,
        "remaining_credits": remaining,
        "estimate": estimate._asdict(),
    }


@app.get("/chats")
def list_chats(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    chats = ChatRepository(db).get_all(current_user.id)
    return {"chats": chats, "count": len(chats)}


@app.get("/chats/{chat_id}")
def get_chat(chat_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    chat_repo = ChatRepository(db)
    chat = chat_repo.get(current_user.id, chat_id)
    if not chat:
        raise HTTPException(status_code=404, detail="Conversation not found")
    return {
        "chat": chat,
        "messages": chat_repo.get_messages(chat_id),
        "uploads": chat_repo.get_uploads(chat_id),
    }


@app.delete("/chats/{chat_id}")
def delete_chat(chat_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    if not ChatRepository(db).delete(current_user.id, chat_id):
        raise HTTPException(status_code=404, detail="Conversation not found")
    return {"message": "Conversation deleted"}


# --- Uploads ---

@app.get("/uploads")
def list_uploads(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    uploads = UploadRepository(db).get_all(current_user.id)
    return {"uploads": uploads, "count": len(uploads)}


@app.post("/uploads", status_code=201)
def upload_files(
    request: UploadFilesRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Store files outside of any chat. Uploading is free."""
    if not request.files:
        raise HTTPException(status_code=400, detail="No files provided")
    decoded = _decode_attachments(request.files)

    chat_repo = ChatRepository(db)
    file_store = FileStore()
    uploaded = []
    for attachment, data in decoded:
        storage_id = file_store.save(data)
        uploaded.append(chat_repo.add_upload(
            user_id=current_user.id,
            chat_id=None,
            file_name=attachment.file_name,
            file_type=attachment.file_type or "application/octet-stream",
            file_size=len(data),
            storage_id=storage_id,
        ))
    return {"uploaded": uploaded, "count": len(uploaded)}


@app.get("/uploads/{upload_id}/download")
def download_upload(upload_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    upload = UploadRepository(db).get(current_user.id, upload_id)
    if not upload:
        raise HTTPException(status_code=404, detail="Upload not found")
    try:
        data = FileStore().read(upload.storage_id)
    except FileNotFoundError:
        logger.warning(f"Blob {upload.storage_id} for upload {upload_id} is missing")
        raise HTTPException(status_code=404, detail="No file data available")

    file_name = upload.file_name.replace('"', "")
    return Response(
        content=data,
        media_type=upload.file_type or "application/octet-stream",
        headers={"Content-Disposition": f'attachment; filename="{file_name}"'},
    )


@app.delete("/uploads/{upload_id}")
def delete_upload(upload_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    upload = UploadRepository(db).delete(current_user.id, upload_id)
    if not upload:
        raise HTTPException(status_code=404, detail="Upload not found")
    if not FileStore().delete(upload.storage_id):
        logger.warning(f"Blob {upload.storage_id} for deleted upload {upload_id} was already gone")
    return {"message": "Upload deleted"}


# --- Plans / todos ---

@app.post("/plans", status_code=201)
def create_plan(
    request: PlanCreateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if request.chat_id and not ChatRepository(db).get(current_user.id, request.chat_id):
        raise HTTPException(status_code=404, detail="Conversation not found")

    now = datetime.utcnow()
    plan_id = str(uuid.uuid4())
    todos = [
        Todo(
            id=str(uuid.uuid4()),
            plan_id=plan_id,
            title=todo.title,
            description=todo.description,
            order=todo.order if todo.order is not None else index,
            priority=todo.priority,
            status=TodoStatus.PENDING,
            due_date=todo.due_date,
            estimated_time=todo.estimated_time,
            resources=todo.resources,
            created_at=now,
            updated_at=now,
        )
        for index, todo in enumerate(request.todos)
    ]
    plan = Plan(
        id=plan_id,
        user_id=current_user.id,
        chat_id=request.chat_id,
        title=request.title,
        description=request.description,
        difficulty=request.difficulty,
        estimated_duration=request.estimated_duration,
        status=request.status,
        created_at=now,
        updated_at=now,
    )
    created = PlanRepository(db).create(plan, todos)
    return {"plan": created}


@app.get("/plans")
def list_plans(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    plans = PlanRepository(db).get_all(current_user.id)
    return {"plans": plans, "count": len(plans)}


@app.get("/plans/{plan_id}")
def get_plan(plan_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    plan = PlanRepository(db).get(current_user.id, plan_id)
    if not plan:
        raise HTTPException(status_code=404, detail="Plan not found")
    return {"plan": plan}


@app.patch("/plans/{plan_id}")
def update_plan(
    plan_id: str,
    request: PlanUpdateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    plan = PlanRepository(db).update_plan(
        current_user.id, plan_id, request.dict(exclude_unset=True, exclude_none=True)
    )
    if not plan:
        raise HTTPException(status_code=404, detail="Plan not found")
    return {"plan": plan}


@app.delete("/plans/{plan_id}")
def delete_plan(plan_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    if not PlanRepository(db).delete_plan(current_user.id, plan_id):
        raise HTTPException(status_code=404, detail="Plan not found")
    return {"message": "Plan deleted"}


@app.post("/plans/from-playlist", status_code=201)
def create_plan_from_playlist(
    request: PlaylistPlanRequest,
    response: Response,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Build a plan with one todo per playlist video, due one day apart.

    With `dry_run` only the price is reported.
    """
    playlist_id = extract_playlist_id(request.playlist_url)
    if not playlist_id:
        raise HTTPException(status_code=400, detail="Invalid YouTube playlist URL")

    try:
        videos = YouTubeClient().fetch_playlist(playlist_id)
    except YouTubeError as e:
        raise HTTPException(status_code=502, detail=str(e))
    if not videos:
        raise HTTPException(status_code=400, detail="No videos found in playlist")

    price = estimate_youtube_playlist_cost(len(videos))
    if request.dry_run:
        response.status_code = status.HTTP_200_OK
        return {"estimated_cost": price, "videos_count": len(videos)}

    try:
        remaining = ledger.charge_if_affordable(
            db,
            current_user.id,
            price,
            CreditReason.YOUTUBE_PLAYLIST,
            metadata={"playlist_id": playlist_id, "videos_count": len(videos)},
        )
    except AccountingError as e:
        raise _http_error(e)

    now = datetime.utcnow()
    plan_id = str(uuid.uuid4())
    todos = [
        Todo(
            id=str(uuid.uuid4()),
            plan_id=plan_id,
            title=video.title,
            description=video.description or None,
            order=index,
            priority=TodoPriority.MEDIUM,
            status=TodoStatus.PENDING,
            due_date=now + timedelta(days=index),
            resources=[video.watch_url],
            created_at=now,
            updated_at=now,
        )
        for index, video in enumerate(videos)
    ]
    plan = Plan(
        id=plan_id,
        user_id=current_user.id,
        title=request.title or videos[0].title or "YouTube Playlist",
        description=request.description or f"Learning plan from YouTube playlist with {len(videos)} videos",
        difficulty=request.difficulty,
        estimated_duration=len(videos),
        status=PlanStatus.ACTIVE,
        created_at=now,
        updated_at=now,
    )
    created = PlanRepository(db).create(plan, todos)
    return {"plan": created, "credits_charged": price, "remaining_credits": remaining}


@app.get("/todos/by-date")
def list_todos_by_date(
    day: date = Query(..., alias="date", description="UTC calendar day, YYYY-MM-DD"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Todos across all of the caller's plans that are due on one day."""
    due = PlanRepository(db).todos_due_on(current_user.id, day)
    todos = [dict(todo.dict(), plan_title=plan_title) for todo, plan_title in due]
    return {"todos": todos, "date": day.isoformat(), "count": len(todos)}


@app.delete("/todos/{todo_id}")
def delete_todo(todo_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    if not PlanRepository(db).delete_todo(current_user.id, todo_id):
        raise HTTPException(status_code=404, detail="Todo not found")
    return {"message": "Todo deleted"}


@app.patch("/todos/{todo_id}")
def update_todo_status(
    todo_id: str,
    request: TodoStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    todo = PlanRepository(db).update_todo_status(current_user.id, todo_id, request.status)
    if not todo:
        raise HTTPException(status_code=404, detail="Todo not found")
    return {"todo": todo}


@app.post("/todos/shift")
def shift_todos(
    request: ShiftTodosRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Move due dates of unfinished todos by a number of days."""
    plan_repo = PlanRepository(db)
    if request.plan_id and not plan_repo.get(current_user.id, request.plan_id):
        raise HTTPException(status_code=404, detail="Plan not found")
    todos = plan_repo.shift_due_dates(current_user.id, request.days, plan_id=request.plan_id)
    return {"todos": todos, "count": len(todos)}


# --- Credits ---

@app.get("/credits")
def get_credits(
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        balance = ledger.get_balance(db, current_user.id)
    except AccountingError as e:
        raise _http_error(e)
    return {
        "credits": balance,
        "transactions": ledger.list_transactions(db, current_user.id, limit=limit),
    }


@app.post("/credits/estimate")
def estimate_question_cost(
    request: CostEstimateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Report what asking this question would cost, without charging."""
    history_text = ""
    if request.chat_id:
        chat_repo = ChatRepository(db)
        if not chat_repo.get(current_user.id, request.chat_id):
            raise HTTPException(status_code=404, detail="Conversation not found")
        recent = chat_repo.get_recent_messages(request.chat_id, CHAT_HISTORY_SAMPLE_SIZE)
        history_text = build_history_sample([m.content for m in recent])

    estimate = estimate_chat_cost(request.question, history_text)
    return {
        "credits": attachment_flat_charge(request.has_attachments),
        "estimate": estimate._asdict(),
    }


@app.get("/credits/playlist-estimate")
async def estimate_playlist_cost(
    video_count: int = Query(..., ge=0),
    current_user: User = Depends(get_current_user),
):
    return {"credits": estimate_youtube_playlist_cost(video_count), "videos_count": video_count}


@app.post("/webhooks/payments")
async def payment_webhook(request: Request, db: Session = Depends(get_db)):
    """Credit purchases reported by the payment provider.

    This is the only way to buy credits. Deliveries must carry a valid
    signature; the credited user and amount come from the payment's
    metadata set at checkout.
    """
    body = await request.body()
    webhook_id = request.headers.get("webhook-id")
    if not verify_webhook_signature(
        webhook_id,
        request.headers.get("webhook-timestamp"),
        request.headers.get("webhook-signature"),
        body,
    ):
        raise HTTPException(status_code=401, detail="Invalid webhook signature")

    try:
        payload = json.loads(body)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid JSON payload")
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Invalid JSON payload")

    event_type = payload.get("type")
    if event_type != "payment.succeeded":
        logger.info(f"Ignoring payment webhook {webhook_id} of type {event_type}")
        return {"received": True, "type": event_type}

    data = payload.get("data") or {}
    metadata = data.get("metadata") or {}
    user_id = metadata.get("userId") or metadata.get("user_id")
    try:
        credits = int(metadata.get("credits"))
    except (TypeError, ValueError):
        credits = 0
    if not user_id or credits <= 0:
        logger.error(f"Payment webhook {webhook_id} is missing userId or credits metadata")
        return {"received": True, "type": event_type, "credited": False}

    payment_id = data.get("payment_id") or webhook_id
    try:
        balance, granted = ledger.grant_purchase(db, user_id, credits, payment_id)
    except AccountingError as e:
        raise _http_error(e)
    if granted:
        logger.info(f"Credited {credits} purchased credits to user {user_id} (balance {balance})")
    return {"received": True, "type": event_type, "credited": granted}


# --- Sessions / stats ---

@app.post("/sessions", status_code=201)
def start_learning_session(
    request: SessionStartRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        _check_session_refs(db, current_user.id, request.plan_id, request.todo_id)
    except AccountingError as e:
        raise _http_error(e)
    session = session_service.start_session(
        db,
        current_user.id,
        source=request.source,
        plan_id=request.plan_id,
        todo_id=request.todo_id,
    )
    return {"session": session}


@app.post("/sessions/{session_id}/end")
def end_learning_session(
    session_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        session = session_service.end_session(db, current_user.id, session_id)
    except AccountingError as e:
        raise _http_error(e)
    return {"session": session}


@app.get("/sessions")
def list_learning_sessions(
    limit: int = Query(DEFAULT_SESSION_LIST_LIMIT, ge=1, le=200),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    sessions = session_service.list_sessions(db, current_user.id, limit=limit)
    return {"sessions": sessions, "count": len(sessions)}


@app.get("/sessions/active")
def get_active_learning_session(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return {"session": session_service.get_active_session(db, current_user.id)}


@app.get("/stats")
def get_stats(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    stats = UserStatsRepository(db).get_or_create(current_user.id)
    return {"stats": stats}


@app.post("/stats/streak")
def record_streak_activity(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Count today towards the caller's streak (no-op if already counted)."""
    UserStatsRepository(db).get_or_create(current_user.id)
    try:
        stats = update_streak(db, current_user.id)
    except AccountingError as e:
        raise _http_error(e)
    return {"stats": stats}


@app.post("/stats/learning-time")
def record_learning_time(
    request: LearningTimeRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    UserStatsRepository(db).get_or_create(current_user.id)
    try:
        stats = session_service.add_learning_time(db, current_user.id, request.duration_ms)
    except AccountingError as e:
        raise _http_error(e)
    return {"stats": stats}


@app.get("/badges")
def list_badges(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    badges = BadgeRepository(db).list_for_user(current_user.id)
    return {"badges": badges, "count": len(badges)}


@app.get("/stats/top-streaks")
def list_top_streaks(
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Live current-streak ranking, without waiting for the streak leaderboard job."""
    streaks = [
        {
            "user_id": stats.user_id,
            "current_streak": stats.current_streak,
            "longest_streak": stats.longest_streak,
        }
        for stats in UserStatsRepository(db).top_streaks(limit)
    ]
    return {"streaks": streaks, "count": len(streaks)}


@app.get("/events")
def list_events(
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """The caller's recent domain events, newest first."""
    events = EventRepository(db).list_for_user(current_user.id, limit=limit)
    return {"events": events, "count": len(events)}


# --- Leaderboards ---

@app.get("/leaderboards/{leaderboard_type}")
def get_leaderboard(
    leaderboard_type: LeaderboardType,
    period: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    period = period or _default_period(leaderboard_type)
    board = LeaderboardRepository(db).get(leaderboard_type, period)
    if not board:
        raise HTTPException(status_code=404, detail=f"No {leaderboard_type.value} leaderboard for {period}")
    return {"leaderboard": board}


@app.get("/leaderboards/{leaderboard_type}/rank")
def get_my_rank(
    leaderboard_type: LeaderboardType,
    period: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    period = period or _default_period(leaderboard_type)
    return {
        "type": leaderboard_type.value,
        "period": period,
        "rank": get_user_rank(db, leaderboard_type, period, current_user.id),
    }

"""
Push delivery for reminder notifications.

``PushSender`` is what the sweep talks to. In production that is
``CeleryPushSender``, which enqueues a ``reminders.dispatch`` task and returns
immediately; the task then calls ``send_push_via_fcm`` on a worker.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional
import json
import logging
import os
import uuid

from firebase_admin import messaging, credentials, initialize_app, _apps  # type: ignore

from dreamseeker.db.session import SessionLocal
from .celery_app import celery_app
from .config import settings
from .metrics import reminders_dispatch_success_total, reminders_dispatch_failed_total
from .repository import list_tokens_for_user, delete_token

logger = logging.getLogger(__name__)


class PushSender(ABC):
    @abstractmethod
    def send(self, user_id: str, title: str, body: str, data: Optional[Dict[str, Any]] = None) -> None:
        """Fire-and-forget: implementations must not wait for delivery receipts."""


class CeleryPushSender(PushSender):
    def __init__(self, app=None):
        self.app = app or celery_app

    def send(self, user_id: str, title: str, body: str, data: Optional[Dict[str, Any]] = None) -> None:
        event = {"user_id": user_id, "title": title, "body": body, "data": data or {}}
        self.app.send_task(
            "reminders.dispatch",
            args=[event],
            queue=settings.DISPATCH_QUEUE,
            routing_key=settings.DISPATCH_ROUTING_KEY,
        )


@dataclass
class SendResult:
    success: bool
    sent: int = 0
    failed: int = 0
    errors: List[str] = field(default_factory=list)

    def as_dict(self) -> Dict[str, Any]:
        return {"success": self.success, "sent": self.sent, "failed": self.failed, "errors": self.errors}


def _ensure_firebase_initialized() -> None:
    if _apps:
        return

    proj = settings.FCM_PROJECT_ID
    cfg_val = settings.FCM_CREDENTIALS_JSON
    env_gac_json = os.getenv("GOOGLE_APPLICATION_CREDENTIALS_JSON")
    env_gac = os.getenv("GOOGLE_APPLICATION_CREDENTIALS")
    creds_json: Optional[str] = cfg_val or env_gac_json or env_gac
    options = {"projectId": proj} if proj else None

    try:
        if creds_json and creds_json.strip().startswith("{"):
            initialize_app(credentials.Certificate(json.loads(creds_json)), options=options)
            logger.info("[FCM] Firebase app initialized (inline JSON)")
        elif creds_json and os.path.exists(creds_json):
            initialize_app(credentials.Certificate(creds_json), options=options)
            logger.info(f"[FCM] Firebase app initialized (file {creds_json})")
        elif proj:
            initialize_app(options=options)
            logger.info("[FCM] Firebase app initialized (projectId only)")
        else:
            logger.warning("[FCM] No credentials provided - push notifications disabled")
    except Exception as e:
        logger.error(f"[FCM] Failed to initialize Firebase: {e!r}")


def _truncate(value: str, limit: int) -> str:
    if len(value) <= limit:
        return value
    return value[: max(limit - 1, 0)] + "…"


def build_message(token: str, title: str, body: str, data: Dict[str, Any]) -> messaging.Message:
    notification_id = str(uuid.uuid4())
    return messaging.Message(
        token=token,
        notification=messaging.Notification(title=title, body=body),
        # FCM data payloads only carry strings
        data={str(k): str(v) for k, v in data.items()},
        apns=messaging.APNSConfig(
            headers={
                "apns-push-type": "alert",
                "apns-priority": "10",
                "apns-collapse-id": notification_id,
            },
            payload=messaging.APNSPayload(aps=messaging.Aps(sound="default")),
        ),
        android=messaging.AndroidConfig(priority="high"),
    )


def send_push_via_fcm(
    event: Dict[str, Any],
    session_factory: Callable = SessionLocal,
) -> SendResult:
    """Send one notification to every registered device of ``event['user_id']``.

    Never raises: failures are logged, counted and reported in the result so
    the Celery task does not go into a retry storm.
    """
    user_id = str(event.get("user_id") or "")
    if not user_id:
        return SendResult(success=False, errors=["Missing user_id"])

    _ensure_firebase_initialized()
    if not _apps:
        logger.warning(f"[FCM] Firebase not initialized - skipping push for user {user_id}")
        return SendResult(success=False, errors=["FCM not configured"])

    title = _truncate(event.get("title") or "Reminder", settings.PUSH_TITLE_MAX_LENGTH)
    body = _truncate(event.get("body") or "", settings.PUSH_BODY_MAX_LENGTH)
    data = event.get("data") or {}

    db = session_factory()
    try:
        tokens = list_tokens_for_user(db, user_id)
        if not tokens:
            logger.info(f"[FCM] No push tokens for user {user_id}")
            return SendResult(success=False, errors=["No push tokens for user"])

        result = SendResult(success=True)
        for token in tokens:
            try:
                messaging.send(build_message(token, title, body, data))
                result.sent += 1
                reminders_dispatch_success_total.inc()
            except messaging.UnregisteredError:
                logger.info(f"[FCM] Token {token[:12]}... is no longer registered; removing it")
                delete_token(db, token)
                result.failed += 1
                result.errors.append(f"{token[:12]}...: unregistered")
                reminders_dispatch_failed_total.inc()
            except Exception as e:
                logger.error(f"[FCM] Failed to send notification to {token[:12]}...: {e!r}")
                result.failed += 1
                result.errors.append(f"{token[:12]}...: {e}")
                reminders_dispatch_failed_total.inc()
        result.success = result.failed == 0
        return result
    finally:
        db.close()

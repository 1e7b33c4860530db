"""
Webhook Service

Best-effort delivery of lifecycle events to the workspace's configured URL.
Deliveries run on a background thread pool and are never awaited by the
operation that triggered them; failures are logged and dropped.
"""
import hashlib
import hmac
import json
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait as wait_for_futures
from datetime import datetime, timezone
from typing import Optional, Dict, Any

import httpx
from fastapi import Request
from sqlalchemy.orm import Session

from momentum.config.settings import settings
from momentum.constants import ErrorMessages, WebhookEvents
from momentum.models import Webhook
from momentum.schemas import WebhookSaveRequest

logger = logging.getLogger("momentum.webhooks")

SIGNATURE_HEADER = "X-Webhook-Signature"
TEST_EVENT = "test"


def generate_signature(payload: str, secret: str) -> str:
    """
    HMAC-SHA256 of the raw body, hex encoded.
    """
    return hmac.new(secret.encode(), payload.encode(), hashlib.sha256).hexdigest()


def verify_signature(payload: str, secret: str, header_value: str) -> bool:
    expected = f"sha256={generate_signature(payload, secret)}"
    return hmac.compare_digest(expected, header_value or "")


def build_payload(event: str, workspace_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "event": event,
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "workspaceId": workspace_id,
        "data": data,
    }


def build_headers(body: str, secret: Optional[str]) -> Dict[str, str]:
    headers = {
        "Content-Type": "application/json",
        "User-Agent": settings.WEBHOOK_USER_AGENT,
    }
    if secret:
        headers[SIGNATURE_HEADER] = f"sha256={generate_signature(body, secret)}"
    return headers


class WebhookDispatcher:
    """Sends webhook deliveries through a bounded background pool"""

    def __init__(
        self,
        client: Optional[httpx.Client] = None,
        max_workers: Optional[int] = None,
        timeout: Optional[float] = None,
    ):
        self.client = client or httpx.Client(timeout=timeout or settings.WEBHOOK_TIMEOUT_SECONDS)
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers or settings.WEBHOOK_MAX_WORKERS,
            thread_name_prefix="webhook",
        )
        self._pending = set()
        self._lock = threading.Lock()

    @staticmethod
    def get_config(db: Session, workspace_id: int) -> Optional[Webhook]:
        return db.query(Webhook).filter(Webhook.workspace_id == workspace_id).first()

    def notify(
        self,
        db: Session,
        workspace_id: int,
        event: str,
        data: Dict[str, Any],
    ) -> Optional[Future]:
        """
        Queues delivery of a lifecycle event.

        Silently does nothing when the workspace has no webhook, the webhook
        is disabled, or it is not subscribed to `event`.

        Args:
            db: Database session used to read the configuration
            workspace_id: Workspace the event belongs to
            event: Event name, e.g. ``issue.created``
            data: ``{"action", "resource", "changes"?}``

        Returns:
            Future: The pending delivery, or None when nothing was sent
        """
        try:
            webhook = self.get_config(db, workspace_id)
            if not webhook or not webhook.enabled:
                return None
            if event not in (webhook.events or []):
                return None

            body = json.dumps(build_payload(event, workspace_id, data))
            headers = build_headers(body, webhook.secret)
            url = webhook.url

            future = self._executor.submit(self._deliver, url, body, headers)
            with self._lock:
                self._pending.add(future)
            future.add_done_callback(lambda f: self._on_delivered(url, event, f))
            return future
        except Exception:
            logger.exception(f"Error processing webhook {event} for workspace {workspace_id}")
            return None

    def send_test(self, db: Session, workspace_id: int) -> Dict[str, Any]:
        """
        Synchronously posts a ``test`` event to the configured URL.

        Returns:
            dict: ``{"success": bool}`` plus ``status_code`` and/or ``error``
        """
        webhook = self.get_config(db, workspace_id)
        if not webhook:
            return {"success": False, "error": ErrorMessages.NO_WEBHOOK}

        body = json.dumps(build_payload(TEST_EVENT, workspace_id, {
            "action": TEST_EVENT,
            "message": "This is a test webhook from Momentum",
        }))
        headers = build_headers(body, webhook.secret)

        try:
            response = self.client.post(webhook.url, content=body, headers=headers)
        except httpx.HTTPError as e:
            logger.warning(f"Test webhook to {webhook.url} failed: {e}")
            return {"success": False, "error": str(e) or e.__class__.__name__}

        if response.is_success:
            return {"success": True, "status_code": response.status_code}
        return {
            "success": False,
            "status_code": response.status_code,
            "error": f"HTTP {response.status_code}: {response.reason_phrase}",
        }

    def _deliver(self, url: str, body: str, headers: Dict[str, str]) -> int:
        response = self.client.post(url, content=body, headers=headers)
        if response.is_error:
            logger.warning(f"Webhook delivery to {url} returned HTTP {response.status_code}")
        return response.status_code

    def _on_delivered(self, url: str, event: str, future: Future):
        with self._lock:
            self._pending.discard(future)
        error = future.exception()
        if error is not None:
            logger.error(f"Failed to deliver {event} webhook to {url}: {error}")
        else:
            logger.debug(f"Delivered {event} webhook to {url}")

    def flush(self, timeout: Optional[float] = None):
        """Blocks until every queued delivery has finished or `timeout` passes."""
        with self._lock:
            pending = list(self._pending)
        if pending:
            wait_for_futures(pending, timeout=timeout)

    def shutdown(self, wait: bool = True):
        self._executor.shutdown(wait=wait)
        self.client.close()


def get_webhook_dispatcher(request: Request) -> WebhookDispatcher:
    return request.app.state.webhook_dispatcher


# ---------------- CONFIGURATION ---------------- #

def save_webhook(db: Session, workspace_id: int, data: WebhookSaveRequest) -> Webhook:
    """
    Creates or replaces the workspace's webhook configuration.
    """
    webhook = WebhookDispatcher.get_config(db, workspace_id)
    if webhook is None:
        webhook = Webhook(workspace_id=workspace_id)
        db.add(webhook)

    webhook.url = data.url
    webhook.secret = data.secret or None
    webhook.enabled = data.enabled
    # Keep the fixed event order and drop duplicates
    chosen = {event.value for event in data.events}
    webhook.events = [event for event in WebhookEvents.ALL if event in chosen]

    db.commit()
    db.refresh(webhook)
    logger.info(f"Webhook for workspace {workspace_id} saved ({len(webhook.events)} events)")
    return webhook


def delete_webhook(db: Session, workspace_id: int) -> bool:
    webhook = WebhookDispatcher.get_config(db, workspace_id)
    if webhook is None:
        return False
    db.delete(webhook)
    db.commit()
    return True

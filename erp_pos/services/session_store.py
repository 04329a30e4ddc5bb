# erp_pos/services/session_store.py
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Dict
from uuid import UUID

from erp_pos.domain.cart import Cart
from erp_pos.domain.exceptions import PermissionDeniedError, SessionNotFoundError
from erp_pos.utils.settings import CART_TTL_SECONDS
from erp_pos.utils.logging import get_logger

logger = get_logger(__name__)


class CheckoutState(str, Enum):
    IDLE = "idle"
    COLLECTING_BUYER_INFO = "collecting_buyer_info"
    SUBMITTING = "submitting"
    COMMITTED = "committed"
    FAILED = "failed"


@dataclass
class CartSession:
    """One register tab: a volatile cart plus its checkout state."""

    session_id: str
    user_id: UUID
    company_id: UUID
    expires_at: datetime
    cart: Cart = field(default_factory=Cart)
    state: CheckoutState = CheckoutState.IDLE
    last_error: str | None = None
    #guards state transitions; held only for the transition, never across I/O
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def touch(self, ttl: int) -> None:
        self.expires_at = datetime.now(timezone.utc) + timedelta(seconds=ttl)


class CartSessionStore:
    """
    In-process registry of POS sessions.

    Nothing here survives a restart: carts are volatile by design of the
    register flow. Idle sessions are dropped after ttl seconds, lazily on
    the next access; a session that is submitting is never dropped.
    """

    def __init__(self, ttl: int = CART_TTL_SECONDS):
        self.ttl = ttl
        self._sessions: Dict[str, CartSession] = {}
        self._lock = threading.Lock()

    def create(self, user_id: UUID, company_id: UUID) -> CartSession:
        self.expire_idle()

        session = CartSession(
            session_id=uuid.uuid4().hex,
            user_id=user_id,
            company_id=company_id,
            expires_at=datetime.now(timezone.utc) + timedelta(seconds=self.ttl),
        )
        with self._lock:
            self._sessions[session.session_id] = session

        logger.info(f"Opened POS session {session.session_id} for user {user_id}")
        return session

    def get(self, session_id: str, user_id: UUID) -> CartSession:
        self.expire_idle()

        with self._lock:
            session = self._sessions.get(session_id)

        if session is None:
            raise SessionNotFoundError(session_id)
        if session.user_id != user_id:
            raise PermissionDeniedError("POS session belongs to another user", details={"session_id": session_id})

        session.touch(self.ttl)
        return session

    def expire_idle(self, now: datetime | None = None) -> int:
        now = now or datetime.now(timezone.utc)
        with self._lock:
            expired = [
                sid for sid, s in self._sessions.items()
                if s.expires_at < now and s.state != CheckoutState.SUBMITTING
            ]
            for sid in expired:
                del self._sessions[sid]

        if expired:
            logger.info(f"Expired {len(expired)} idle POS sessions")
        return len(expired)


#process-wide registry used by the API
session_store = CartSessionStore()

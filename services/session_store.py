"""
Temporary storage for supplier update sessions.
Keeps sessions in memory with TTL expiration.
Single-server only; sessions do not survive a restart.
"""
import threading
from datetime import datetime, timedelta
from typing import Optional

import structlog

from config.settings import Settings
from exceptions import SessionNotFoundError
from integrations.catalog_gateway import CatalogGateway
from services.supplier_update_service import SupplierUpdateSession

logger = structlog.get_logger(__name__)

DEFAULT_TTL_MINUTES = 60


class SessionStore:
    """Sessions keyed by id. Access refreshes the expiry; running sessions never expire."""

    def __init__(self, ttl_minutes: int = DEFAULT_TTL_MINUTES):
        self.ttl = timedelta(minutes=ttl_minutes)
        self._sessions: dict[str, tuple[datetime, SupplierUpdateSession]] = {}
        self._lock = threading.Lock()

    def create(self, gateway: CatalogGateway, settings: Optional[Settings] = None) -> SupplierUpdateSession:
        """Create a session, return it."""
        session = SupplierUpdateSession(gateway, settings)
        with self._lock:
            self._cleanup_expired()
            self._sessions[session.session_id] = (datetime.now() + self.ttl, session)
        logger.info("supplier_session_created", session_id=session.session_id)
        return session

    def get(self, session_id: str) -> SupplierUpdateSession:
        """
        Raises:
            SessionNotFoundError: Unknown or expired id
        """
        with self._lock:
            entry = self._sessions.get(session_id)
            if entry is None:
                raise SessionNotFoundError(session_id)
            expires_at, session = entry
            if datetime.now() > expires_at and not session.is_running:
                del self._sessions[session_id]
                raise SessionNotFoundError(session_id)
            self._sessions[session_id] = (datetime.now() + self.ttl, session)
            return session

    def delete(self, session_id: str) -> None:
        """Remove a session. Unknown ids are ignored."""
        with self._lock:
            self._sessions.pop(session_id, None)

    def __len__(self) -> int:
        return len(self._sessions)

    def _cleanup_expired(self) -> None:
        """Remove all expired, idle entries."""
        now = datetime.now()
        expired = [
            k for k, (exp, session) in self._sessions.items()
            if now > exp and not session.is_running
        ]
        for k in expired:
            del self._sessions[k]
        if expired:
            logger.debug("supplier_sessions_expired", count=len(expired))

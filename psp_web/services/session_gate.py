from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

from psp_web.adapters.auth_provider import AuthSession

logger = logging.getLogger(__name__)


class GateState(Enum):
    PENDING = "pending"
    AUTHENTICATED = "authenticated"
    ANONYMOUS = "anonymous"


class SessionGate:
    """
    Guards protected pages.

    While open, the gate listens for session changes, so a sign-out elsewhere
    flips it to anonymous. The initial check and the change notifications
    write the same state and the most recent answer wins. A failed check
    counts as "no session"; there is no retry.
    """

    def __init__(self, auth):
        self._auth = auth
        self._subscription = None
        self.state = GateState.PENDING
        self.session: Optional[AuthSession] = None

    def open(self) -> "SessionGate":
        self._subscription = self._auth.on_session_change(self._resolve)
        try:
            session = self._auth.get_session()
        except Exception:
            logger.warning("Session check failed; treating visitor as signed out", exc_info=True)
            session = None
        self._resolve(session)
        return self

    def close(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    def __enter__(self) -> "SessionGate":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _resolve(self, session: Optional[AuthSession]) -> None:
        self.session = session
        self.state = GateState.AUTHENTICATED if session else GateState.ANONYMOUS

    @property
    def pending(self) -> bool:
        return self.state is GateState.PENDING

    @property
    def allowed(self) -> bool:
        return self.state is GateState.AUTHENTICATED

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional

from psp_web.domain.errors import SignInError


@dataclass(frozen=True)
class AuthSession:
    access_token: str
    user_id: str
    email: str


def _to_auth_session(session: Any) -> Optional[AuthSession]:
    if not session or not getattr(session, "access_token", None):
        return None
    user = getattr(session, "user", None)
    return AuthSession(
        access_token=session.access_token,
        user_id=str(getattr(user, "id", "") or ""),
        email=str(getattr(user, "email", "") or ""),
    )


class SupabaseAuthProvider:
    """
    Adapter around supabase auth. Once a session is known, table calls on the
    same client are authorized as that user.
    """

    def __init__(self, client):
        self._client = client

    def _authorize_tables(self, auth_session: Optional[AuthSession]) -> None:
        if auth_session is not None:
            self._client.postgrest.auth(auth_session.access_token)

    def get_session(self) -> Optional[AuthSession]:
        auth_session = _to_auth_session(self._client.auth.get_session())
        self._authorize_tables(auth_session)
        return auth_session

    def on_session_change(self, callback: Callable[[Optional[AuthSession]], None]):
        """Returns a subscription; call `unsubscribe()` on it when done."""

        def _listener(_event, session) -> None:
            callback(_to_auth_session(session))

        return self._client.auth.on_auth_state_change(_listener)

    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        try:
            response = self._client.auth.sign_in_with_password({"email": email, "password": password})
        except Exception as e:
            raise SignInError(str(e)) from e

        auth_session = _to_auth_session(getattr(response, "session", None))
        if auth_session is None:
            raise SignInError("No se pudo iniciar sesión.")
        self._authorize_tables(auth_session)
        return auth_session

    def sign_out(self) -> None:
        self._client.auth.sign_out()

    def reset_password_for_email(self, email: str, redirect_url: str) -> None:
        try:
            self._client.auth.reset_password_for_email(email, {"redirect_to": redirect_url})
        except Exception as e:
            raise SignInError(str(e)) from e

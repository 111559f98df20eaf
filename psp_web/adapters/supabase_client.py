from __future__ import annotations

from dataclasses import dataclass

from flask import session
from supabase import Client, ClientOptions, create_client

SESSION_KEY_PREFIX = "sb:"


class FlaskSessionStorage:
    """
    Auth storage for the supabase client backed by the signed Flask session,
    so a browser keeps its Supabase session between requests.
    """

    def get_item(self, key: str):
        return session.get(SESSION_KEY_PREFIX + key)

    def set_item(self, key: str, value: str) -> None:
        session[SESSION_KEY_PREFIX + key] = value

    def remove_item(self, key: str) -> None:
        session.pop(SESSION_KEY_PREFIX + key, None)


@dataclass(frozen=True)
class SupabaseClientFactory:
    """Builds one client per request; clients must not be shared between visitors."""
    url: str
    anon_key: str

    def create(self) -> Client:
        options = ClientOptions(
            storage=FlaskSessionStorage(),
            auto_refresh_token=False,
            persist_session=True,
        )
        return create_client(self.url, self.anon_key, options=options)

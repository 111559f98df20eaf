from __future__ import annotations

import json
import logging
from typing import Any, Mapping, Sequence

from psp_web.domain.errors import (
    ApplicationError,
    AuthenticationRequired,
    MissingResultError,
    TransportError,
)

logger = logging.getLogger(__name__)


def _decode(raw: Any, function_name: str) -> Any:
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8")
    if isinstance(raw, str):
        try:
            return json.loads(raw) if raw.strip() else {}
        except json.JSONDecodeError as e:
            raise TransportError(f"Edge Function error: invalid JSON ({e})", function_name=function_name) from e
    return raw


class GenerationClient:
    """
    Calls the generation Edge Functions with the visitor's bearer token.

    Every failure comes out as a GenerationError subclass:
      TransportError     the call itself failed
      ApplicationError   2xx body carrying an `error` field
      MissingResultError 2xx body without a field the caller requires
    No retries and no timeout beyond the transport's own.
    """

    def __init__(self, client, auth):
        self._client = client
        self._auth = auth

    def _access_token(self) -> str:
        try:
            session = self._auth.get_session()
        except Exception as e:
            raise AuthenticationRequired("No hay sesión activa") from e
        if session is None or not session.access_token:
            raise AuthenticationRequired("No hay sesión activa")
        return session.access_token

    def invoke(self, function_name: str, payload: Mapping[str, Any], *, required: Sequence[str] = ()) -> Any:
        token = self._access_token()

        try:
            raw = self._client.functions.invoke(
                function_name,
                invoke_options={
                    "body": dict(payload),
                    "headers": {"Authorization": f"Bearer {token}"},
                    "responseType": "json",
                },
            )
        except Exception as e:
            raise TransportError(f"Edge Function error: {e}", function_name=function_name) from e

        data = _decode(raw, function_name)

        if isinstance(data, Mapping) and data.get("error"):
            raise ApplicationError(str(data["error"]), function_name=function_name)

        for field in required:
            if not isinstance(data, Mapping) or not data.get(field):
                logger.error("%s answered without %r: %r", function_name, field, data)
                raise MissingResultError(
                    f"La respuesta de {function_name} no incluye {field}.",
                    function_name=function_name,
                    field=field,
                    payload=data,
                )

        return data

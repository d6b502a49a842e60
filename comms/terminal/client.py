"""HTTP client for the portal chat API, driving a ChatLog."""

from __future__ import annotations

import asyncio
from collections.abc import Callable

import httpx
import structlog

from comms.terminal.session import GREETING, ChatLog
from shared.schemas.messages import Credentials
from shared.streaming import iter_messages

logger = structlog.get_logger()


class ChatClient:
    """Sends chat turns to ``/api/chat`` and merges the streamed events.

    ``on_update`` is called with the new log after every change, which is
    how a UI renders streaming text. ``cancel()`` aborts the turn in flight.
    """

    def __init__(
        self,
        base_url: str,
        credentials: Credentials | None = None,
        on_update: Callable[[ChatLog], None] | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.credentials = credentials
        self.on_update = on_update
        self.timeout = timeout
        self._transport = transport
        self.log = ChatLog.initial(GREETING)
        self._current: asyncio.Task | None = None

    @property
    def busy(self) -> bool:
        return self._current is not None and not self._current.done()

    def _set_log(self, log: ChatLog) -> None:
        if log is self.log:
            return
        self.log = log
        if self.on_update:
            self.on_update(log)

    def _http(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
        )

    async def send(self, text: str) -> ChatLog:
        """Run one turn to completion, failure or cancellation.

        Raises:
            asyncio.CancelledError: If the turn was cancelled; the log already
                ends with the cancellation notice.
        """
        if not text.strip() or self.credentials is None or self.busy:
            return self.log

        history = self.log.history()
        log, turn = self.log.begin_turn(text)
        self._set_log(log)
        self._current = asyncio.current_task()

        payload = {
            "message": text,
            "history": [m.model_dump(mode="json") for m in history],
            "settings": self.credentials.model_dump(),
        }
        try:
            async with self._http() as client:
                async with client.stream("POST", "/api/chat", json=payload) as resp:
                    if resp.status_code != 200:
                        body = (await resp.aread()).decode("utf-8", errors="replace")
                        self._set_log(self.log.fail_turn(
                            turn, f"Server responded with an error: {resp.status_code} {body}"
                        ))
                        return self.log
                    async for message in iter_messages(resp.aiter_bytes()):
                        self._set_log(self.log.apply(turn, message))
        except asyncio.CancelledError:
            logger.info("chat_request_cancelled", turn=turn)
            self._set_log(self.log.cancel_turn(turn))
            raise
        except httpx.HTTPError as e:
            logger.error("chat_request_failed", turn=turn, error=str(e))
            self._set_log(self.log.fail_turn(turn, str(e) or type(e).__name__))
        else:
            self._set_log(self.log.complete_turn(turn))
        finally:
            self._current = None
        return self.log

    def cancel(self) -> bool:
        """Abort the turn in flight. Returns False when nothing is running."""
        if not self.busy:
            return False
        return self._current.cancel()

    async def verify(self, credentials: Credentials) -> tuple[bool, str]:
        """Ask the portal to probe TestRail with these credentials."""
        async with self._http() as client:
            resp = await client.post("/api/verify", json=credentials.model_dump())
        try:
            data = resp.json() if resp.content else {}
        except ValueError:
            # plain-text or HTML error page from the portal or a proxy
            data = {"error": resp.text.strip()}
        if resp.status_code == 200:
            return True, data.get("message", "Connection successful.")
        return False, data.get("error") or f"Verification failed with status {resp.status_code}"

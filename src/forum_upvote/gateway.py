"""Single-shard Discord gateway connection."""

from __future__ import annotations

import asyncio
import json
import logging
import random
from typing import Any, Mapping

import aiohttp

from .errors import GatewayError
from .models import DEFAULT_GATEWAY_URL, GatewayEvent, Settings
from .utils import raw_token

logger = logging.getLogger(__name__)

# Gateway opcodes
OP_DISPATCH = 0
OP_HEARTBEAT = 1
OP_IDENTIFY = 2
OP_RESUME = 6
OP_RECONNECT = 7
OP_INVALID_SESSION = 9
OP_HELLO = 10
OP_HEARTBEAT_ACK = 11

INTENT_GUILDS = 1 << 0

CLOSE_NORMAL = 1000
CLOSE_ZOMBIED = 4000

# Close codes after which reconnecting can never succeed.
FATAL_CLOSE_CODES = frozenset({4004, 4010, 4011, 4012, 4013, 4014})


class GatewayShard:
    """Yield gateway dispatches one at a time, reconnecting between calls.

    Transport problems surface from :meth:`next_event` as :class:`GatewayError`.
    Non-fatal errors leave the shard usable: the next call reconnects and
    resumes the session when possible.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        token: str,
        *,
        url: str = DEFAULT_GATEWAY_URL,
        intents: int = INTENT_GUILDS,
        proxy_url: str | None = None,
        proxy_auth: aiohttp.BasicAuth | None = None,
        max_reconnect_delay: float = 60.0,
    ):
        self._session = session
        self._token = raw_token(token)
        self._url = url
        self._intents = intents
        self._proxy_url = proxy_url
        self._proxy_auth = proxy_auth
        self._max_reconnect_delay = max_reconnect_delay
        self._consecutive_failures = 0
        self._ws: aiohttp.ClientWebSocketResponse | None = None
        self._heartbeat_task: asyncio.Task[None] | None = None
        self._heartbeat_acked = True
        self._session_id: str | None = None
        self._resume_url: str | None = None
        self._sequence: int | None = None
        self._closed = False

    @classmethod
    def from_settings(
        cls, session: aiohttp.ClientSession, settings: Settings
    ) -> "GatewayShard":
        proxy_auth = None
        if settings.proxy_login:
            proxy_auth = aiohttp.BasicAuth(settings.proxy_login, settings.proxy_password or "")
        return cls(
            session,
            settings.token,
            url=settings.gateway_url,
            proxy_url=settings.proxy_url,
            proxy_auth=proxy_auth,
        )

    @property
    def session_id(self) -> str | None:
        return self._session_id

    @property
    def sequence(self) -> int | None:
        return self._sequence

    async def next_event(self) -> GatewayEvent:
        while True:
            if self._closed:
                raise GatewayError("gateway shard is closed", is_fatal=True)
            if self._ws is None:
                await self._connect()
            ws = self._ws
            assert ws is not None

            msg = await ws.receive()
            if msg.type == aiohttp.WSMsgType.TEXT:
                try:
                    payload = json.loads(msg.data)
                except ValueError as exc:
                    raise GatewayError(f"could not decode gateway payload: {exc}") from exc
                if not isinstance(payload, Mapping):
                    raise GatewayError("gateway sent a payload that is not an object")
                event = await self._handle_payload(payload)
                if event is not None:
                    return event
            elif msg.type in (
                aiohttp.WSMsgType.CLOSE,
                aiohttp.WSMsgType.CLOSING,
                aiohttp.WSMsgType.CLOSED,
            ):
                close_code = ws.close_code
                await self._disconnect()
                fatal = close_code in FATAL_CLOSE_CODES
                raise GatewayError(
                    f"gateway connection closed (close_code={close_code})",
                    is_fatal=fatal,
                    close_code=close_code,
                )
            elif msg.type == aiohttp.WSMsgType.ERROR:
                error = ws.exception()
                await self._disconnect()
                raise GatewayError(f"gateway websocket error: {error}")

    async def close(self, code: int = CLOSE_NORMAL) -> None:
        """Send a close frame and stop the shard for good."""
        self._closed = True
        await self._stop_heartbeat()
        ws = self._ws
        self._ws = None
        if ws is not None and not ws.closed:
            await ws.close(code=code)
        logger.info("Gateway shard closed with code %s", code)

    async def _connect(self) -> None:
        if self._consecutive_failures:
            delay = min(self._max_reconnect_delay, 2.0 ** (self._consecutive_failures - 1))
            logger.info("Reconnecting to the gateway in %.1fs", delay)
            await asyncio.sleep(delay)

        url = self._resume_url if self._can_resume() else self._url
        try:
            self._ws = await self._session.ws_connect(
                url,
                proxy=self._proxy_url,
                proxy_auth=self._proxy_auth,
                max_msg_size=0,
            )
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            self._consecutive_failures += 1
            raise GatewayError(f"could not connect to the gateway: {exc}") from exc
        logger.info("Connected to Discord gateway")

    async def _disconnect(self, code: int = CLOSE_ZOMBIED) -> None:
        self._consecutive_failures += 1
        await self._stop_heartbeat()
        ws = self._ws
        self._ws = None
        if ws is not None and not ws.closed:
            try:
                await ws.close(code=code)
            except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
                logger.debug("Failed to close gateway websocket cleanly: %s", exc)

    def _can_resume(self) -> bool:
        return bool(self._session_id and self._resume_url and self._sequence is not None)

    async def _handle_payload(self, payload: Mapping[str, Any]) -> GatewayEvent | None:
        opcode = payload.get("op")

        if opcode == OP_HELLO:
            data = payload.get("d")
            if not isinstance(data, Mapping):
                await self._disconnect()
                raise GatewayError("gateway sent a HELLO without a payload object")
            try:
                interval = float(data.get("heartbeat_interval", 41250)) / 1000.0
            except (TypeError, ValueError) as exc:
                await self._disconnect()
                raise GatewayError(f"gateway sent an invalid heartbeat interval: {exc}") from exc
            if interval <= 0:
                await self._disconnect()
                raise GatewayError(f"gateway sent a non-positive heartbeat interval: {interval}")
            self._start_heartbeat(interval)
            await self._identify_or_resume()
            return None

        if opcode == OP_HEARTBEAT_ACK:
            self._heartbeat_acked = True
            return None

        if opcode == OP_HEARTBEAT:
            await self._send_heartbeat()
            return None

        if opcode == OP_RECONNECT:
            await self._disconnect()
            raise GatewayError("gateway requested a reconnect")

        if opcode == OP_INVALID_SESSION:
            resumable = bool(payload.get("d"))
            if not resumable:
                self._session_id = None
                self._resume_url = None
                self._sequence = None
            await self._disconnect()
            raise GatewayError(f"gateway invalidated the session (resumable={resumable})")

        if opcode == OP_DISPATCH:
            sequence = payload.get("s")
            if isinstance(sequence, int):
                self._sequence = sequence
            name = str(payload.get("t") or "")
            data = payload.get("d")
            if not isinstance(data, Mapping):
                data = {}
            if name == "READY":
                self._session_id = str(data.get("session_id") or "") or None
                resume_url = str(data.get("resume_gateway_url") or "")
                self._resume_url = f"{resume_url}/?v=10&encoding=json" if resume_url else None
                self._consecutive_failures = 0
                logger.info("Gateway session ready")
            elif name == "RESUMED":
                self._consecutive_failures = 0
                logger.info("Gateway session resumed")
            return GatewayEvent(name=name, data=data, sequence=self._sequence)

        logger.debug("Ignoring gateway payload with opcode %s", opcode)
        return None

    async def _identify_or_resume(self) -> None:
        ws = self._ws
        if ws is None:
            return
        if self._can_resume():
            op_name = "RESUME"
            payload: dict[str, Any] = {
                "op": OP_RESUME,
                "d": {
                    "token": self._token,
                    "session_id": self._session_id,
                    "seq": self._sequence,
                },
            }
        else:
            op_name = "IDENTIFY"
            payload = {
                "op": OP_IDENTIFY,
                "d": {
                    "token": self._token,
                    "intents": self._intents,
                    "properties": {
                        "os": "linux",
                        "browser": "forum-upvote",
                        "device": "forum-upvote",
                    },
                },
            }
        try:
            await ws.send_json(payload)
        except (aiohttp.ClientError, ConnectionResetError) as exc:
            await self._disconnect()
            raise GatewayError(f"failed to send gateway {op_name}: {exc}") from exc
        logger.debug("Sent gateway %s", op_name)

    def _start_heartbeat(self, interval: float) -> None:
        if self._heartbeat_task is not None:
            self._heartbeat_task.cancel()
        self._heartbeat_acked = True
        self._heartbeat_task = asyncio.create_task(
            self._heartbeat_loop(interval), name="gateway-heartbeat"
        )

    async def _stop_heartbeat(self) -> None:
        task = self._heartbeat_task
        self._heartbeat_task = None
        if task is None or task is asyncio.current_task():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _heartbeat_loop(self, interval: float) -> None:
        await asyncio.sleep(random.random() * interval)
        while True:
            ws = self._ws
            if ws is None or ws.closed:
                return
            if not self._heartbeat_acked:
                logger.warning("Gateway heartbeat was not acknowledged, reconnecting")
                await ws.close(code=CLOSE_ZOMBIED)
                return
            self._heartbeat_acked = False
            await self._send_heartbeat()
            await asyncio.sleep(interval)

    async def _send_heartbeat(self) -> None:
        ws = self._ws
        if ws is None or ws.closed:
            return
        try:
            await ws.send_json({"op": OP_HEARTBEAT, "d": self._sequence})
        except (aiohttp.ClientError, ConnectionResetError) as exc:
            logger.warning("Failed to send gateway heartbeat: %s", exc)

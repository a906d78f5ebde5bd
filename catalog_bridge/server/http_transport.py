"""
HTTP transport for MCP with session continuity.

A single endpoint accepts protocol messages by POST. Each session is bound to
one handler (a streamable HTTP transport connected to the shared MCP server)
and identified by the ``mcp-session-id`` header:

- header names a live session    -> request goes to that session's handler
- no header, initialize message  -> a new session is minted and registered
- anything else                  -> 400
- GET (or any other method)      -> 405 with ``Allow: POST``
- body over the size limit       -> 413

Sessions idle for longer than the configured timeout are evicted and their
handlers terminated.
"""

import asyncio
import json
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any, Protocol
from uuid import uuid4

import anyio
import uvicorn
from anyio.abc import TaskGroup, TaskStatus
from mcp.server.streamable_http import StreamableHTTPServerTransport
from mcp.types import InitializeRequestParams
from pydantic import ValidationError as PydanticValidationError
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse
from starlette.routing import Route
from starlette.types import Message, Receive, Scope, Send

from catalog_bridge.runtime.dispatcher import ToolDispatcher
from catalog_bridge.runtime.upstream import UpstreamClient

from .config import DEFAULT_MAX_BODY_BYTES, Config
from .mcp_server import BridgeMCPServer
from .schemas import TransportError
from .session_store import SessionStore

logger = logging.getLogger(__name__)

SESSION_HEADER = "mcp-session-id"
BAD_REQUEST_MESSAGE = "Bad Request: missing/invalid session or initialize first"
PAYLOAD_TOO_LARGE_MESSAGE = "Payload Too Large"
INTERNAL_ERROR_MESSAGE = "Internal server error"


class SessionHandler(Protocol):
    """A transport/protocol handler bound to one session."""

    @property
    def session_id(self) -> str | None:
        """Identifier the handler reports, or None once it has terminated."""
        ...

    async def start(self, task_group: TaskGroup) -> None: ...

    async def handle_request(self, scope: Scope, receive: Receive, send: Send) -> None: ...

    async def close(self) -> None: ...


class MCPSessionHandler:
    """Streamable HTTP transport connected to the shared MCP server."""

    def __init__(
        self,
        bridge: BridgeMCPServer,
        session_id: str,
        json_response: bool = False,
    ) -> None:
        self.bridge = bridge
        self.transport = StreamableHTTPServerTransport(
            mcp_session_id=session_id,
            is_json_response_enabled=json_response,
        )
        self._cancel_scope: anyio.CancelScope | None = None
        self._stopped = False

    @property
    def session_id(self) -> str | None:
        if self._stopped or self.transport.is_terminated:
            return None
        return self.transport.mcp_session_id

    async def start(self, task_group: TaskGroup) -> None:
        await task_group.start(self._run)

    async def _run(self, *, task_status: TaskStatus[None] = anyio.TASK_STATUS_IGNORED) -> None:
        with anyio.CancelScope() as cancel_scope:
            self._cancel_scope = cancel_scope
            async with self.transport.connect() as (read_stream, write_stream):
                task_status.started()
                try:
                    await self.bridge.server.run(
                        read_stream,
                        write_stream,
                        self.bridge.create_initialization_options(),
                        stateless=False,
                    )
                except Exception:
                    logger.exception(
                        "MCP session %s crashed",
                        self.transport.mcp_session_id,
                        extra={"session_id": self.transport.mcp_session_id},
                    )
                finally:
                    self._stopped = True

    async def handle_request(self, scope: Scope, receive: Receive, send: Send) -> None:
        await self.transport.handle_request(scope, receive, send)

    async def close(self) -> None:
        await self.transport.terminate()
        if self._cancel_scope is not None:
            self._cancel_scope.cancel()


def _is_initialize_message(message: Any) -> bool:
    if not isinstance(message, dict) or message.get("method") != "initialize":
        return False
    try:
        InitializeRequestParams.model_validate(message.get("params"))
    except PydanticValidationError:
        return False
    return True


def is_initialize_request(body: Any) -> bool:
    """True if the body is, or a batch containing, an initialize request."""
    if isinstance(body, list):
        return any(_is_initialize_message(message) for message in body)
    return _is_initialize_message(body)


def _parse_json(body: bytes) -> Any:
    try:
        return json.loads(body)
    except ValueError:
        return None


class BodyTooLargeError(Exception):
    """Request body exceeded the configured limit."""


async def read_body(request: Request, limit: int) -> bytes:
    """Read the request body, stopping once it grows past ``limit`` bytes.

    Raises:
        BodyTooLargeError: If the body is larger than ``limit``
    """
    chunks: list[bytes] = []
    size = 0
    async for chunk in request.stream():
        size += len(chunk)
        if size > limit:
            raise BodyTooLargeError(size)
        chunks.append(chunk)
    return b"".join(chunks)


def _replay_body(body: bytes, receive: Receive) -> Receive:
    """Return a receive callable that yields the already-read body first."""
    delivered = False

    async def replay() -> Message:
        nonlocal delivered
        if not delivered:
            delivered = True
            return {"type": "http.request", "body": body, "more_body": False}
        return await receive()

    return replay


class SessionTransportManager:
    """Routes HTTP requests to per-session handlers.

    Attributes:
        handler_factory: Builds a handler for a freshly minted session identifier
        store: Session identifier -> handler mapping
        sweep_interval_s: Seconds between idle-eviction sweeps
        max_body_bytes: Largest request body read before answering 413
    """

    def __init__(
        self,
        handler_factory: Callable[[str], SessionHandler],
        store: SessionStore | None = None,
        sweep_interval_s: float = 60.0,
        max_body_bytes: int = DEFAULT_MAX_BODY_BYTES,
    ) -> None:
        self.handler_factory = handler_factory
        self.store = store if store is not None else SessionStore()
        self.sweep_interval_s = sweep_interval_s
        self.max_body_bytes = max_body_bytes
        self._task_group: TaskGroup | None = None

    @asynccontextmanager
    async def run(self) -> AsyncIterator["SessionTransportManager"]:
        """Own the task group that session handlers run in.

        On exit every remaining session is closed.
        """
        async with anyio.create_task_group() as tg:
            self._task_group = tg
            tg.start_soon(self._sweep_loop)
            logger.info("Session manager started")
            try:
                yield self
            finally:
                await self.close_all()
                self._task_group = None
                tg.cancel_scope.cancel()
                logger.info("Session manager stopped")

    async def _sweep_loop(self) -> None:
        while True:
            await anyio.sleep(self.sweep_interval_s)
            await self.evict_expired()

    async def evict_expired(self) -> int:
        """Close and remove sessions that have been idle too long."""
        expired = self.store.evict_expired()
        for record in expired:
            logger.info(
                "Evicting idle session %s",
                record.session_id,
                extra={"session_id": record.session_id},
            )
            await record.handler.close()
        return len(expired)

    async def close_all(self) -> None:
        for record in self.store.drain():
            await record.handler.close()

    async def handle_request(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Handle one POST to the MCP endpoint."""
        response_started = False

        async def tracking_send(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self._route(scope, receive, tracking_send)
        except Exception:
            logger.exception("Error handling MCP request")
            if response_started:
                return
            response = JSONResponse(
                TransportError(error=INTERNAL_ERROR_MESSAGE).model_dump(),
                status_code=500,
            )
            await response(scope, receive, send)

    async def _route(self, scope: Scope, receive: Receive, send: Send) -> None:
        request = Request(scope, receive)
        session_id = request.headers.get(SESSION_HEADER) or None
        try:
            body = await read_body(request, self.max_body_bytes)
        except BodyTooLargeError:
            logger.warning(
                "Rejected request: body larger than %s bytes",
                self.max_body_bytes,
                extra={"session_id": session_id, "status_code": 413},
            )
            response = JSONResponse(
                TransportError(error=PAYLOAD_TOO_LARGE_MESSAGE).model_dump(),
                status_code=413,
            )
            await response(scope, receive, send)
            return
        receive = _replay_body(body, receive)

        # Reuse an existing session
        if session_id is not None:
            handler = self.store.get(session_id)
            if handler is not None and handler.session_id == session_id:
                logger.debug("Routing request to session %s", session_id)
                await handler.handle_request(scope, receive, send)
                return

        # Create a new session on initialize
        elif is_initialize_request(_parse_json(body)):
            await self._create_session(scope, receive, send)
            return

        logger.warning(
            "Rejected request: %s",
            "unknown session" if session_id else "no session and not initialize",
            extra={"session_id": session_id, "status_code": 400},
        )
        response = JSONResponse(
            TransportError(error=BAD_REQUEST_MESSAGE).model_dump(),
            status_code=400,
        )
        await response(scope, receive, send)

    async def _create_session(self, scope: Scope, receive: Receive, send: Send) -> None:
        if self._task_group is None:
            msg = "Session manager is not running"
            raise RuntimeError(msg)

        status_codes: list[int] = []

        async def status_send(message: Message) -> None:
            if message["type"] == "http.response.start":
                status_codes.append(message["status"])
            await send(message)

        handler = self.handler_factory(uuid4().hex)
        try:
            await handler.start(self._task_group)
            await handler.handle_request(scope, receive, status_send)
        except BaseException:
            with anyio.CancelScope(shield=True):
                await handler.close()
            raise

        # The handler fixes its identifier up front, so only a 2xx answer to
        # the initialize request means the session actually exists
        status = status_codes[0] if status_codes else None
        accepted = status is not None and 200 <= status < 300
        reported = handler.session_id
        if accepted and reported and self.store.insert_if_absent(reported, handler):
            logger.info("Created session %s", reported, extra={"session_id": reported})
            return

        if not accepted:
            logger.info(
                "Initialize rejected by handler with status %s; discarding",
                status,
                extra={"status_code": status},
            )
        elif reported:
            logger.error("Session id collision for %s", reported, extra={"session_id": reported})
        else:
            logger.info("Handler reported no session after initialize; discarding")
        await handler.close()


class MCPEndpoint:
    """ASGI endpoint for the single MCP path."""

    def __init__(self, manager: SessionTransportManager) -> None:
        self.manager = manager

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["method"] == "POST":
            await self.manager.handle_request(scope, receive, send)
            return

        response = PlainTextResponse(
            "Method Not Allowed",
            status_code=405,
            headers={"Allow": "POST"},
        )
        await response(scope, receive, send)


def create_app(
    manager: SessionTransportManager,
    path: str = "/",
    debug: bool = False,
) -> Starlette:
    """Create the Starlette application for the MCP endpoint.

    The app's lifespan runs the session manager, so sessions are closed when
    the server shuts down.
    """

    @asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        async with manager.run():
            yield

    app = Starlette(
        debug=debug,
        routes=[Route(path, endpoint=MCPEndpoint(manager))],
        lifespan=lifespan,
    )
    app.state.session_manager = manager
    return app


def build_manager(bridge: BridgeMCPServer, config: Config) -> SessionTransportManager:
    """Wire a session manager to the shared MCP server."""

    def handler_factory(session_id: str) -> MCPSessionHandler:
        return MCPSessionHandler(
            bridge,
            session_id,
            json_response=config.server.json_response,
        )

    store = SessionStore(idle_timeout_s=config.server.session_idle_timeout_seconds)
    return SessionTransportManager(
        handler_factory,
        store=store,
        sweep_interval_s=config.server.session_sweep_interval_seconds,
        max_body_bytes=config.server.max_body_bytes,
    )


async def run_http_server(config: Config) -> None:
    """
    Run the MCP HTTP server.

    Args:
        config: Loaded and validated configuration
    """
    host = config.server.http_host
    port = config.server.http_port

    async with UpstreamClient(
        config.upstream.base_url,
        timeout_s=config.upstream.timeout_seconds,
    ) as upstream:
        bridge = BridgeMCPServer(
            ToolDispatcher(upstream),
            server_name=config.server_name,
            server_version=config.server_version,
        )
        app = create_app(build_manager(bridge, config))

        uvicorn_config = uvicorn.Config(
            app,
            host=host,
            port=port,
            log_level=config.server.log_level.lower(),
            log_config=None,
            access_log=False,
        )
        server = uvicorn.Server(uvicorn_config)

        logger.info("MCP HTTP server listening on %s:%s", host, port)
        try:
            await server.serve()
        except Exception as e:
            logger.exception("HTTP server error: %s", e)
            raise


def run(config: Config) -> None:  # pragma: no cover - exercised in real runtime
    """Entry point to start the HTTP transport."""
    asyncio.run(run_http_server(config))

"""Slash-command webhook server for slashbot.

Hosts the webhook route on an aiohttp application. Each request is
verified and parsed inline, acknowledged with an empty 200, and only
then dispatched to its command handler on a background task whose
reply is posted to the request's response_url.

Key classes:
    SlashBot: Owns the registry, dispatcher, responder, client session
        and web application.

Key functions:
    log_task_exception: Done-callback that logs failures of background
        reply tasks.
"""

import asyncio
from typing import Iterable, Optional, Set

import aiohttp
import structlog
from aiohttp import web

from .commands import BaseCommandHandler, HandlerRegistry, default_handlers
from .config import Config, get_config
from .dispatcher import Dispatcher
from .exceptions import DeliveryError, ParseError, VerificationError
from .models import CommandInvocation
from .parser import parse_invocation
from .responder import Responder
from .security import verify_request

logger = structlog.get_logger("slashbot.bot")

# Extra grace on shutdown beyond one reply timeout
_DRAIN_GRACE_SECONDS = 5.0


def log_task_exception(task: asyncio.Task):
    """Log exceptions from fire-and-forget tasks instead of silently swallowing them."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc:
        logger.error("background_task_failed", error=str(exc), exc_type=type(exc).__name__)


class SlashBot:
    """Slash-command webhook server.

    The registry, dispatcher and config are read-only once built, so
    concurrent requests share them without locking. Per-request state
    lives only in the request handler and its reply task.

    Args:
        config: Loaded configuration. Defaults to the global config.
        handlers: Command handlers in help order. Defaults to the
            built-in handlers. The help handler is always added.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        handlers: Optional[Iterable[BaseCommandHandler]] = None,
    ):
        self.config = config or get_config()
        if handlers is None:
            handlers = default_handlers()
        self.registry = HandlerRegistry(handlers)
        self.dispatcher = Dispatcher(self.registry)

        self.session: Optional[aiohttp.ClientSession] = None
        self.responder: Optional[Responder] = None
        self._pending: Set[asyncio.Task] = set()
        self._runner: Optional[web.AppRunner] = None

        self.app = self.create_app()

    def create_app(self) -> web.Application:
        """Build the aiohttp application serving the webhook route."""
        app = web.Application()
        # Any method reaches the verifier so rejections look alike
        app.router.add_route("*", self.config.webhook_path, self.handle_webhook)
        app.on_startup.append(self._on_startup)
        app.on_cleanup.append(self._on_cleanup)
        return app

    async def _on_startup(self, app: web.Application) -> None:
        self.session = aiohttp.ClientSession()
        self.responder = Responder(self.session, timeout=self.config.reply_timeout)
        logger.info(
            "bot_started",
            commands=list(self.registry.command_names),
            webhook_path=self.config.webhook_path,
        )

    async def _on_cleanup(self, app: web.Application) -> None:
        if self._pending:
            logger.info("draining_replies", pending=len(self._pending))
            _, still_pending = await asyncio.wait(
                set(self._pending),
                timeout=self.config.reply_timeout + _DRAIN_GRACE_SECONDS,
            )
            for task in still_pending:
                task.cancel()
        if self.session:
            await self.session.close()
            self.session = None
        logger.info("bot_stopped")

    async def start(self) -> None:
        """Start listening on the configured host and port."""
        self._runner = web.AppRunner(self.app)
        await self._runner.setup()
        site = web.TCPSite(self._runner, self.config.host, self.config.port)
        await site.start()
        logger.info("server_listening", host=self.config.host, port=self.config.port)

    async def stop(self) -> None:
        """Stop the server, wait for in-flight replies and close the session."""
        if self._runner is None:
            return
        await self._runner.cleanup()
        self._runner = None

    async def handle_webhook(self, request: web.Request) -> web.StreamResponse:
        """Verify, parse and acknowledge one slash-command request.

        Verification failures get a bare 401 whatever the cause.
        Malformed bodies and health probes are acknowledged without
        dispatch. Everything else is acknowledged first and then
        handed to a background reply task.
        """
        body = await request.read()
        try:
            verify_request(
                request.method,
                request.headers,
                body,
                self.config.signing_secret,
                replay_window=self.config.replay_window,
            )
        except VerificationError:
            return web.Response(status=401)

        try:
            invocation, is_ssl_check = parse_invocation(body)
        except ParseError as e:
            logger.warning(
                "request_parse_failed",
                error=e.message,
                detail=e.context.get("error"),
            )
            return web.Response(status=200)

        if is_ssl_check:
            logger.debug("ssl_check_acknowledged")
            return web.Response(status=200)

        # Write the ack before any handler runs
        response = web.Response(status=200)
        await response.prepare(request)
        await response.write_eof()

        self._spawn(self.process_invocation(invocation))
        return response

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        task.add_done_callback(log_task_exception)
        return task

    async def process_invocation(self, invocation: CommandInvocation) -> None:
        """Dispatch an acknowledged invocation and deliver its reply, if any."""
        reply = await self.dispatcher.dispatch(invocation)
        if reply is None:
            return
        if self.responder is None:
            raise RuntimeError("Bot not started: responder not available")
        try:
            await self.responder.respond(invocation.raw.response_url, reply)
        except DeliveryError as e:
            logger.error(
                "reply_delivery_failed",
                command=invocation.command_name,
                error=e.message,
                status=e.status,
            )

    async def wait_for_pending(self) -> None:
        """Wait until every background reply task has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

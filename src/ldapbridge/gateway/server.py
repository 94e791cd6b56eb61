"""
LDAP Bridge HTTP Server

aiohttp application answering auth requests from a front-end proxy.

Per request:
1. translate headers into an AuthAttempt (no I/O)
2. run the directory protocol in a worker thread, bounded by
   config.auth_timeout
3. render the outcome into response headers, HTTP 200

Requests share no mutable state; each one opens and closes its own
directory connection.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, Mapping, Optional

import attrs
import structlog
from aiohttp import web
from returns.result import Failure

from ldapbridge.config import BridgeConfig
from ldapbridge.core.types import AuthAttempt, DirectoryOutcome, FailureReason
from ldapbridge.directory.authenticator import DirectoryAuthenticator, create_authenticator
from ldapbridge.directory.client import Directory, create_directory
from ldapbridge.gateway import headers as h
from ldapbridge.gateway.response import ResponseHeaders, render
from ldapbridge.gateway.translator import translate

logger = structlog.get_logger()

INTERNAL_ERROR_STATUS = "Authentication failed: internal error"


def loggable_headers(request_headers: Mapping[str, str]) -> Dict[str, str]:
    """Request headers with secret values removed."""
    return {
        name: value
        for name, value in request_headers.items()
        if name.lower() not in h.SECRET_HEADERS
    }


@attrs.define
class AuthRequestHandler:
    """
    Handles one auth request end to end.

    Example:
        handler = AuthRequestHandler(config, create_authenticator(directory))
        app.router.add_route("*", "/{tail:.*}", handler.handle)
    """

    config: BridgeConfig
    authenticator: DirectoryAuthenticator

    _logger: Any = attrs.Factory(lambda: structlog.get_logger())

    async def handle(self, request: web.Request) -> web.Response:
        log = self._logger.bind(remote=request.remote, path=request.path)
        log.info("auth_request_received", headers=loggable_headers(request.headers))

        translated = translate(request.headers, require_domain=self.config.require_domain)
        if isinstance(translated, Failure):
            error = translated.failure()
            log.warning(
                "auth_request_invalid",
                error_type=type(error).__name__,
                error=error.message,
            )
            return self._respond(render(error))

        attempt = translated.unwrap()
        try:
            outcome = await self.authenticate(attempt)
        except Exception:
            log.exception("auth_request_error", user=str(attempt.user))
            return self._respond(ResponseHeaders(headers={h.AUTH_STATUS: INTERNAL_ERROR_STATUS}))

        response = render(
            outcome,
            attempt,
            expose_transient=self.config.expose_transient_failures,
            retry_wait=self.config.retry_wait,
        )
        if outcome.success:
            log.info("auth_request_succeeded", user=str(attempt.user))
        else:
            log.info(
                "auth_request_failed",
                user=str(attempt.user),
                outcome=outcome.kind.name,
                reason=outcome.reason.value,
            )
        return self._respond(response)

    async def authenticate(self, attempt: AuthAttempt) -> DirectoryOutcome:
        """
        Run the blocking directory protocol off the event loop.

        Returns ConnectionFailed(timeout) if it does not finish within
        config.auth_timeout. The worker thread still runs to completion
        and closes its connection; ldap3's own timeouts bound it.
        """
        loop = asyncio.get_running_loop()
        try:
            return await asyncio.wait_for(
                loop.run_in_executor(None, self.authenticator.authenticate, attempt),
                timeout=self.config.auth_timeout,
            )
        except asyncio.TimeoutError:
            self._logger.warning(
                "directory_auth_timeout",
                user=str(attempt.user),
                timeout=self.config.auth_timeout,
            )
            return DirectoryOutcome.connection_failed(FailureReason.TIMEOUT)

    @staticmethod
    def _respond(response: ResponseHeaders) -> web.Response:
        return web.Response(status=response.status, headers=response.headers)


HANDLER_KEY = web.AppKey("auth_handler", AuthRequestHandler)


def create_app(
    config: BridgeConfig,
    directory: Optional[Directory] = None,
) -> web.Application:
    """
    Create the aiohttp application.

    Args:
        config: Bridge configuration
        directory: Directory capability (defaults to ldap3 with
            config.auth_timeout as connect/receive timeout)

    Returns:
        Application routing every method and path to the auth handler
    """
    if directory is None:
        directory = create_directory(timeout=config.auth_timeout)

    handler = AuthRequestHandler(
        config=config,
        authenticator=create_authenticator(directory),
    )

    app = web.Application()
    app[HANDLER_KEY] = handler
    app.router.add_route("*", "/{tail:.*}", handler.handle)
    return app


def run_server(config: BridgeConfig, directory: Optional[Directory] = None) -> None:
    """
    Serve until interrupted.

    Raises:
        OSError: the listen socket could not be set up
    """
    logger.info("server_starting", host=config.host, port=config.port)
    web.run_app(
        create_app(config, directory),
        host=config.host,
        port=config.port,
        access_log=None,
        print=None,
    )

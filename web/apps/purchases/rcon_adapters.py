"""RCON adapter implementing the remote command ports.

This module implements ``CommandSessionFactory`` and ``CommandSession`` on top
of the Source RCON client from the ``rcon`` library. Each ``open()`` creates a
fresh TCP connection with a socket timeout and logs in with the configured
password; sessions are never pooled or reused across attempts.

Every library or socket failure (refused connection, timeout, wrong password,
empty or mismatched reply) is mapped to ``TransientRemoteError`` so the
provisioner can apply its retry policy without knowing about RCON.
"""

import logging
from contextlib import ExitStack

from django.conf import settings
from rcon.exceptions import EmptyResponse, SessionTimeout, WrongPassword
from rcon.source import Client

from .domain import CommandSession, CommandSessionFactory, TransientRemoteError

logger = logging.getLogger(__name__)

# OSError covers ConnectionRefusedError and socket timeouts (TimeoutError)
_RCON_ERRORS = (OSError, EmptyResponse, SessionTimeout, WrongPassword)


def _describe(exc: Exception) -> str:
    if isinstance(exc, WrongPassword):
        return "RCON login rejected (wrong password)"
    if isinstance(exc, TimeoutError):
        return "RCON timed out"
    text = str(exc)
    return f"{type(exc).__name__}: {text}" if text else type(exc).__name__


class RconCommandSession(CommandSession):
    """An authenticated RCON connection used for a single attempt.

    Args:
        client: Logged-in ``rcon.source.Client``.
        stack: Exit stack owning the client's connection.
        endpoint: ``host:port`` label used in errors and logs.
    """

    def __init__(self, client: Client, stack: ExitStack, endpoint: str):
        self._client = client
        self._stack = stack
        self.endpoint = endpoint

    def send(self, command: str) -> str:
        """Run ``command`` on the server and return its textual reply.

        Raises:
            TransientRemoteError: For any transport or protocol failure.
        """
        try:
            reply = self._client.run(command)
        except _RCON_ERRORS as e:
            raise TransientRemoteError(f"{_describe(e)} while sending to {self.endpoint}") from e
        logger.debug("rcon reply", extra={"endpoint": self.endpoint, "reply": reply})
        return reply

    def close(self) -> None:
        try:
            self._stack.close()
        except OSError:
            logger.warning("rcon close failed", extra={"endpoint": self.endpoint}, exc_info=True)


class RconSessionFactory(CommandSessionFactory):
    """Opens RCON sessions against the configured game server."""

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        password: str | None = None,
        timeout: float | None = None,
    ):
        self.host = host or settings.MC_RCON_HOST
        self.port = int(port or settings.MC_RCON_PORT)
        self.password = password if password is not None else settings.MC_RCON_PASSWORD
        self.timeout = timeout or settings.MC_RCON_TIMEOUT

    @property
    def endpoint(self) -> str:
        return f"{self.host}:{self.port}"

    def open(self) -> RconCommandSession:
        """Connect and log in, bounded by the configured timeout.

        Returns:
            RconCommandSession: An open session the caller must close.

        Raises:
            TransientRemoteError: When the connection or login fails.
        """
        stack = ExitStack()
        try:
            client = stack.enter_context(
                Client(self.host, self.port, passwd=self.password, timeout=self.timeout)
            )
        except _RCON_ERRORS as e:
            stack.close()
            raise TransientRemoteError(f"{_describe(e)} while connecting to {self.endpoint}") from e
        return RconCommandSession(client, stack, self.endpoint)

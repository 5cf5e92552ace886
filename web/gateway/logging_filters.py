"""Logging filters for enriching log records with request context.

This module provides a logging filter that injects the current request id
into log records using the ContextVar set by the gateway middleware. The
filter is attached to the JSON console handler in ``config.settings.LOGGING``,
so webhook handling and the provisioning threads it spawns share one id.
"""

from logging import Filter, LogRecord
from .middleware import REQUEST_ID_CTX


class RequestIdFilter(Filter):
    """Attach ``request_id`` to every record passing through the handler.

    Records emitted outside a request (startup, management commands) get
    ``"-"``, so the JSON formatter can always reference the field.
    """

    def filter(self, record: LogRecord) -> bool:
        if not getattr(record, "request_id", None):
            record.request_id = REQUEST_ID_CTX.get()
        return True

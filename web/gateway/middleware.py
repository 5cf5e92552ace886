"""Middleware that assigns and propagates a request identifier.

This module provides a small Django middleware that ensures every incoming
HTTP request receives a request identifier. The identifier is read from the
incoming ``X-Request-Id`` header when provided by the client, falls back to
the storefront's ``X-Shopify-Webhook-Id`` delivery id, and is generated
server-side (UUIDv4) otherwise. The middleware stores the id on the
``request`` object and in a context variable so code running downstream,
including detached provisioning threads started from the request, can log it
without passing the value explicitly.

Behavior contract:
- The response will include the same id in the ``X-Request-ID`` header.
- One ``request handled`` log line is emitted per request.

A second middleware rejects oversized bodies on the API and webhook paths
before they are read.
"""

import uuid
import os
import logging
import contextvars
from django.http import JsonResponse

from django.utils.deprecation import MiddlewareMixin

REQUEST_ID_CTX = contextvars.ContextVar("request_id", default="-")
MAX_API_BYTES = int(os.getenv("API_MAX_BYTES", str(10 * 1024 * 1024)))
LIMITED_PREFIXES = ("/api/", "/webhook/")

logger = logging.getLogger("gateway")


class RequestIdMiddleware(MiddlewareMixin):
    """Django middleware that sets and returns a per-request identifier.

    Attributes:
        HEADERS (tuple[str, ...]): Incoming headers (in Django's
            ``request.META`` casing) that may carry an id, in priority order.
        RESPONSE_HEADER (str): The name of the header returned on responses.
    """

    HEADERS = ("HTTP_X_REQUEST_ID", "HTTP_X_SHOPIFY_WEBHOOK_ID")
    RESPONSE_HEADER = "X-Request-ID"

    def process_request(self, request):
        """Populate the request with a request id and set a context var.

        Args:
            request: Django HttpRequest instance.
        """
        rid = next((request.META[h] for h in self.HEADERS if request.META.get(h)), None)
        if not rid:
            rid = str(uuid.uuid4())
        request.request_id = rid
        REQUEST_ID_CTX.set(rid)

    def process_response(self, request, response):
        """Ensure the response contains the request id header and return it.

        The method prefers the id attached to the request object but falls
        back to the ContextVar value when the request object is not present
        (for example in some error handlers).
        """
        rid = getattr(request, "request_id", REQUEST_ID_CTX.get())
        response[self.RESPONSE_HEADER] = rid
        logger.info(
            "request handled",
            extra={"path": request.path, "method": request.method, "status": response.status_code},
        )
        return response


class ApiSizeLimitMiddleware(MiddlewareMixin):
    def process_request(self, request):
        if request.path.startswith(LIMITED_PREFIXES):
            clen = request.META.get("CONTENT_LENGTH")
            if clen and clen.isdigit() and int(clen) > MAX_API_BYTES:
                return JsonResponse({"detail": "PAYLOAD_TOO_LARGE"}, status=413)

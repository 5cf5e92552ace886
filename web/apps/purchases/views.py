"""HTTP views for the purchases app.

Views are kept intentionally small: they read the request, delegate to the
``WebhookIngress`` obtained from ``providers.get_webhook_ingress()`` or to the
ledger, and map outcomes to HTTP responses.

The webhook endpoint answers 200 as soon as the order's purchase records are
stored; provisioning continues detached from the request. Signature failures
map to 401, malformed payloads to 400 and unexpected faults to 500, in which
case nothing from the order is committed and the storefront may redeliver.
"""
import logging

from pydantic import ValidationError as PayloadError
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from . import providers
from .authentication import AdminBasicAuthentication
from .domain import AuthError
from .ingress import SIGNATURE_HEADER
from .schemas import PurchaseReadDTO
from .throttling import WindowedScopedRateThrottle

logger = logging.getLogger(__name__)

ADMIN_LIST_LIMIT = 100


class OrderPaidWebhookView(APIView):
    """Receive a paid-order notification and schedule rank provisioning."""

    authentication_classes = []
    permission_classes = []
    throttle_classes = [WindowedScopedRateThrottle]
    throttle_scope = "webhook"

    def post(self, request):
        """Handle the notification.

        Returns:
            Response: One of the following responses.
            - 200 with {status: "success"} when the order was processed.
            - 200 with {status: "already_processed"} for a redelivery.
            - 400 with {detail: "INVALID_PAYLOAD"} for an unparseable body.
            - 401 with {detail: "INVALID_SIGNATURE"} on signature mismatch.
            - 500 with {detail: "INTERNAL_ERROR"} for anything else.
        """
        # raw bytes, exactly as signed; request.data is never touched
        raw_body = request.body
        signature = request.headers.get(SIGNATURE_HEADER)

        try:
            outcome = providers.get_webhook_ingress().handle(raw_body, signature)
        except AuthError as e:
            logger.warning("webhook rejected: invalid signature", extra={"remote_addr": request.META.get("REMOTE_ADDR")})
            return Response({"detail": str(e)}, status=status.HTTP_401_UNAUTHORIZED)
        except PayloadError as e:
            logger.warning("webhook rejected: invalid payload", extra={"errors": e.error_count()})
            return Response({"detail": "INVALID_PAYLOAD"}, status=status.HTTP_400_BAD_REQUEST)
        except Exception:
            logger.exception("webhook processing failed")
            return Response({"detail": "INTERNAL_ERROR"}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

        return Response({"status": outcome}, status=status.HTTP_200_OK)


class PurchaseListView(APIView):
    """List the most recent purchase records for operators."""

    authentication_classes = [AdminBasicAuthentication]
    permission_classes = [IsAuthenticated]
    throttle_classes = [WindowedScopedRateThrottle]
    throttle_scope = "admin"

    def get(self, request):
        records = providers.get_ledger().recent(limit=ADMIN_LIST_LIMIT)
        results = [
            PurchaseReadDTO(
                id=r.id,
                order_id=r.order_id,
                identity=r.identity,
                entitlement=r.entitlement,
                status=r.status.value,
                error_message=r.error_message,
                created_at=r.created_at,
                updated_at=r.updated_at,
            ).model_dump(mode="json")
            for r in records
        ]
        return Response(results, status=200)

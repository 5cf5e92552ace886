"""Service provider helpers for wiring the webhook pipeline.

``get_webhook_ingress`` returns a ``WebhookIngress`` assembled from Django
settings. By default the provisioner talks RCON to the configured game server
(``settings.USE_RCON_ADAPTER``) and runs detached on threads
(``settings.PROVISIONING_DISPATCH == "thread"``). Tests and local
development switch to the in-process stub sessions and inline dispatch.
"""

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from .adapters import StubCommandSessionFactory
from .dispatch import InlineDispatcher, ThreadDispatcher
from .domain import CommandSessionFactory, Dispatcher
from .ingress import WebhookIngress
from .processor import DEFAULT_IDENTITY_PROPERTY, OrderLineProcessor
from .provisioner import RankProvisioner
from .rcon_adapters import RconSessionFactory
from .repository import PurchaseLedger

_stub_sessions = StubCommandSessionFactory()


def get_session_factory() -> CommandSessionFactory:
    """Return the RCON session factory, or the shared stub when disabled."""
    if getattr(settings, "USE_RCON_ADAPTER", True):
        return RconSessionFactory()
    return _stub_sessions


def get_dispatcher() -> Dispatcher:
    mode = getattr(settings, "PROVISIONING_DISPATCH", "thread")
    if mode == "thread":
        return ThreadDispatcher()
    if mode == "inline":
        return InlineDispatcher()
    raise ImproperlyConfigured(f"Unknown PROVISIONING_DISPATCH {mode!r}")


def get_ledger() -> PurchaseLedger:
    return PurchaseLedger()


def get_webhook_ingress() -> WebhookIngress:
    """Return a configured WebhookIngress instance.

    Raises:
        ImproperlyConfigured: If no webhook secret is configured.
    """
    secret = getattr(settings, "SHOPIFY_WEBHOOK_SECRET", "")
    if not secret:
        raise ImproperlyConfigured("SHOPIFY_WEBHOOK_SECRET is not set")

    ledger = get_ledger()
    provisioner = RankProvisioner(ledger=ledger, sessions=get_session_factory())
    processor = OrderLineProcessor(
        ledger=ledger,
        provisioner=provisioner,
        dispatcher=get_dispatcher(),
        identity_property=getattr(settings, "IDENTITY_PROPERTY", DEFAULT_IDENTITY_PROPERTY),
    )
    return WebhookIngress(secret=secret, ledger=ledger, processor=processor)

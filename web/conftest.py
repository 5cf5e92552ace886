# Shared fixtures: stub RCON sessions, inline dispatch and signed requests
import json

import pytest

from apps.purchases import providers
from apps.purchases.adapters import StubCommandSessionFactory
from apps.purchases.ingress import SIGNATURE_HEADER, compute_signature


@pytest.fixture(autouse=True)
def use_stubs_for_tests(settings):
    settings.USE_RCON_ADAPTER = False
    settings.PROVISIONING_DISPATCH = "inline"


@pytest.fixture
def stub_sessions(monkeypatch):
    """Fresh stub session factory used by the provider for this test."""
    factory = StubCommandSessionFactory()
    monkeypatch.setattr(providers, "get_session_factory", lambda: factory)
    return factory


@pytest.fixture
def post_webhook(client, settings):
    """POST a JSON order to the webhook, signed with the test secret."""

    def _post(order, signature=None, raw=None):
        body = raw if raw is not None else json.dumps(order).encode("utf-8")
        if signature is None:
            signature = compute_signature(settings.SHOPIFY_WEBHOOK_SECRET, body)
        headers = {"HTTP_" + SIGNATURE_HEADER.upper().replace("-", "_"): signature}
        return client.post("/webhook/orders/paid", data=body, content_type="application/json", **headers)

    return _post

import base64
from datetime import timedelta

import pytest
from django.utils import timezone

from apps.purchases.models import PurchaseModel

LIST_URL = "/api/purchases"


def _basic(user, password):
    token = base64.b64encode(f"{user}:{password}".encode()).decode()
    return {"HTTP_AUTHORIZATION": f"Basic {token}"}


@pytest.mark.django_db
def test_list_requires_credentials(client):
    r = client.get(LIST_URL)
    assert r.status_code == 401
    assert r.headers["WWW-Authenticate"].startswith("Basic")


@pytest.mark.django_db
@pytest.mark.parametrize("user,password", [("admin", "wrong"), ("root", "s3cret-pass"), ("", "")])
def test_list_rejects_wrong_credentials(client, user, password):
    r = client.get(LIST_URL, **_basic(user, password))
    assert r.status_code == 401


@pytest.mark.django_db
def test_list_rejects_malformed_header(client):
    r = client.get(LIST_URL, HTTP_AUTHORIZATION="Basic !!!not-base64!!!")
    assert r.status_code == 401


@pytest.mark.django_db
def test_list_returns_newest_first(client, settings):
    old = PurchaseModel.objects.create(order_id="1", identity="Alex99", entitlement="vip")
    new = PurchaseModel.objects.create(
        order_id="2", identity="Steve_123", entitlement="mvp", status="failed", error_message="RCON timed out"
    )
    PurchaseModel.objects.filter(pk=old.pk).update(created_at=timezone.now() - timedelta(hours=1))

    r = client.get(LIST_URL, **_basic(settings.ADMIN_USER, settings.ADMIN_PASS))
    assert r.status_code == 200
    body = r.json()
    assert [x["order_id"] for x in body] == ["2", "1"]
    assert body[0]["id"] == new.pk
    assert body[0]["status"] == "failed"
    assert body[0]["error_message"] == "RCON timed out"
    assert {"id", "order_id", "identity", "entitlement", "status", "created_at", "updated_at"} <= set(body[1])


@pytest.mark.django_db
def test_list_is_capped_at_100(client, settings):
    PurchaseModel.objects.bulk_create(
        [PurchaseModel(order_id=str(i), identity="Alex99", entitlement="vip") for i in range(105)]
    )
    r = client.get(LIST_URL, **_basic(settings.ADMIN_USER, settings.ADMIN_PASS))
    assert r.status_code == 200
    assert len(r.json()) == 100

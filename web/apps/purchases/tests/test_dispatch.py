"""Tests for the detached provisioning dispatchers."""

import threading

import pytest
from django.db import transaction

from apps.purchases.dispatch import InlineDispatcher, ThreadDispatcher
from gateway.middleware import REQUEST_ID_CTX


def _join(name):
    for t in threading.enumerate():
        if t.name == name:
            t.join(5)


def test_inline_dispatcher_contains_task_errors(caplog):
    def boom():
        raise RuntimeError("kaboom")

    InlineDispatcher().submit(boom, name="provision-1-Alex99")  # must not raise
    assert "provisioning task crashed" in caplog.messages


@pytest.mark.django_db(transaction=True)
def test_thread_dispatcher_returns_before_task_finishes():
    release, done = threading.Event(), threading.Event()

    def slow():
        release.wait(5)
        done.set()

    ThreadDispatcher().submit(slow, name="slow-task")
    assert not done.is_set()
    release.set()
    assert done.wait(5)


@pytest.mark.django_db(transaction=True)
def test_thread_dispatcher_logs_crash_and_siblings_still_run(caplog):
    sibling = threading.Event()

    def boom():
        raise RuntimeError("kaboom")

    dispatcher = ThreadDispatcher()
    dispatcher.submit(boom, name="crashing-task")
    dispatcher.submit(sibling.set, name="sibling-task")
    _join("crashing-task")

    assert sibling.wait(5)
    assert "provisioning task crashed" in caplog.messages


@pytest.mark.django_db(transaction=True)
def test_thread_dispatcher_waits_for_commit():
    ran = threading.Event()
    with transaction.atomic():
        ThreadDispatcher().submit(ran.set, name="after-commit")
        assert not ran.wait(0.2)
    assert ran.wait(5)


@pytest.mark.django_db(transaction=True)
def test_thread_dispatcher_skips_rolled_back_work():
    ran = threading.Event()
    with pytest.raises(RuntimeError):
        with transaction.atomic():
            ThreadDispatcher().submit(ran.set, name="rolled-back")
            raise RuntimeError("abort order")
    assert not ran.wait(0.2)


@pytest.mark.django_db(transaction=True)
def test_thread_dispatcher_keeps_request_id():
    seen = {}
    done = threading.Event()

    def task():
        seen["rid"] = REQUEST_ID_CTX.get()
        done.set()

    token = REQUEST_ID_CTX.set("req-123")
    try:
        ThreadDispatcher().submit(task, name="rid-task")
    finally:
        REQUEST_ID_CTX.reset(token)
    assert done.wait(5)
    assert seen["rid"] == "req-123"

"""Unit tests for RankProvisioner.

These tests drive the provisioner with the in-memory ledger and scripted
stub sessions. Backoff sleeps are recorded instead of slept, so the retry
schedule can be asserted exactly.
"""

import pytest

from apps.purchases.adapters import InMemoryPurchaseLedger, StubCommandSessionFactory
from apps.purchases.domain import PurchaseRecord, PurchaseStatus, TransientRemoteError
from apps.purchases.provisioner import RankProvisioner


class SleepRecorder:
    def __init__(self):
        self.calls = []

    def __call__(self, seconds):
        self.calls.append(seconds)


def _setup(identity="Steve_123", entitlement="vip", **stub_kwargs):
    ledger = InMemoryPurchaseLedger()
    record = ledger.insert(PurchaseRecord(order_id="1001", identity=identity, entitlement=entitlement))
    sessions = StubCommandSessionFactory(**stub_kwargs)
    sleep = SleepRecorder()
    provisioner = RankProvisioner(ledger, sessions, sleep=sleep, max_attempts=3, backoff_base=2)
    return ledger, record, sessions, sleep, provisioner


def test_success_on_first_attempt():
    ledger, record, sessions, sleep, provisioner = _setup()
    assert provisioner.provision(record) is PurchaseStatus.COMPLETED
    assert ledger.records[0].status is PurchaseStatus.COMPLETED
    assert ledger.records[0].error_message is None
    assert sessions.commands == ["lp user Steve_123 parent add vip"]
    assert sleep.calls == []


@pytest.mark.parametrize("nick", ["ab", "this_name_is_way_too_long", "bad name!", ""])
def test_invalid_nick_fails_fast_without_any_session(nick):
    ledger, record, sessions, sleep, provisioner = _setup(identity=nick)
    assert provisioner.provision(record) is PurchaseStatus.FAILED
    assert ledger.records[0].status is PurchaseStatus.FAILED
    assert "Invalid player nick" in ledger.records[0].error_message
    assert sessions.opened == 0 and sessions.commands == []
    assert sleep.calls == []


def test_rank_with_whitespace_fails_fast():
    ledger, record, sessions, sleep, provisioner = _setup(entitlement="vip\nop Steve_123")
    assert provisioner.provision(record) is PurchaseStatus.FAILED
    assert "Invalid rank group" in ledger.records[0].error_message
    assert sessions.opened == 0


def test_converges_after_two_failures():
    ledger, record, sessions, sleep, provisioner = _setup(failures=[True, True, False])
    assert provisioner.provision(record) is PurchaseStatus.COMPLETED
    assert len(sessions.commands) == 3
    assert sleep.calls == [2, 4]
    assert ledger.records[0].status is PurchaseStatus.COMPLETED
    assert ledger.records[0].error_message is None


def test_exhausted_retries_store_last_error():
    ledger, record, sessions, sleep, provisioner = _setup(failures=[True, True, True])
    assert provisioner.provision(record) is PurchaseStatus.FAILED
    assert len(sessions.commands) == 3
    # no wait after the final attempt
    assert sleep.calls == [2, 4]
    assert sum(sleep.calls) == 6
    assert ledger.records[0].error_message == "command failed (stub attempt 3)"


def test_connect_failures_are_retried_too():
    ledger, record, sessions, sleep, provisioner = _setup(connect_failures=[True, False])
    assert provisioner.provision(record) is PurchaseStatus.COMPLETED
    assert sessions.opened == 1
    assert sleep.calls == [2]


def test_session_closed_after_every_attempt():
    ledger, record, sessions, sleep, provisioner = _setup(failures=[True, True, True])
    provisioner.provision(record)
    assert sessions.opened == sessions.closed == 3


def test_unexpected_error_marks_failed_and_propagates():
    ledger = InMemoryPurchaseLedger()
    record = ledger.insert(PurchaseRecord(order_id="1", identity="Alex99", entitlement="vip"))

    class BrokenSession:
        closed = False

        def send(self, command):
            raise KeyError("bug")

        def close(self):
            BrokenSession.closed = True

    class BrokenFactory:
        def open(self):
            return BrokenSession()

    provisioner = RankProvisioner(ledger, BrokenFactory(), sleep=SleepRecorder())
    with pytest.raises(KeyError):
        provisioner.provision(record)
    assert BrokenSession.closed is True
    assert ledger.records[0].status is PurchaseStatus.FAILED
    assert ledger.records[0].error_message.startswith("Unexpected error")


def test_failure_of_one_item_does_not_touch_another():
    ledger = InMemoryPurchaseLedger()
    a = ledger.insert(PurchaseRecord(order_id="1001", identity="Alex99", entitlement="vip"))
    b = ledger.insert(PurchaseRecord(order_id="1001", identity="Steve_123", entitlement="mvp"))

    class PerNickFactory(StubCommandSessionFactory):
        def _handle(self, command):
            if "Alex99" in command:
                with self._lock:
                    self.commands.append(command)
                raise TransientRemoteError("player server offline")
            return super()._handle(command)

    sessions = PerNickFactory()
    provisioner = RankProvisioner(ledger, sessions, sleep=SleepRecorder())
    assert provisioner.provision(a) is PurchaseStatus.FAILED
    assert provisioner.provision(b) is PurchaseStatus.COMPLETED

    by_nick = {r.identity: r for r in ledger.records}
    assert by_nick["Alex99"].status is PurchaseStatus.FAILED
    assert by_nick["Steve_123"].status is PurchaseStatus.COMPLETED
    assert by_nick["Steve_123"].error_message is None


def test_custom_command_template(settings):
    settings.RCON_GRANT_COMMAND = "lp user {identity} group set {entitlement}"
    ledger, record, sessions, sleep, _ = _setup()
    provisioner = RankProvisioner(ledger, sessions, sleep=sleep)
    provisioner.provision(record)
    assert sessions.commands == ["lp user Steve_123 group set vip"]

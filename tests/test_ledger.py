"""Tests for the credit ledger."""

import pytest
from unittest.mock import patch

from learnplan.accounting import ledger
from learnplan.accounting.errors import InsufficientCreditsError, NotFoundError
from learnplan.database.event_repository import EventRepository
from learnplan.models.credit_transaction import CreditReason


class TestChargeIfAffordable:
    """Test charging for paid actions."""

    def test_charge_decrements_balance(self, db_session, test_user_id):
        remaining = ledger.charge_if_affordable(db_session, test_user_id, 5, CreditReason.CHAT)
        assert remaining == 45
        assert ledger.get_balance(db_session, test_user_id) == 45

    def test_charge_logs_negative_transaction(self, db_session, test_user_id):
        ledger.charge_if_affordable(
            db_session, test_user_id, 7, CreditReason.YOUTUBE_PLAYLIST, metadata={"videos_count": 2}
        )
        transactions = ledger.list_transactions(db_session, test_user_id)
        assert len(transactions) == 1
        assert transactions[0].amount == -7
        assert transactions[0].reason == "youtube_playlist"
        assert transactions[0].balance_after == 43
        assert transactions[0].metadata == {"videos_count": 2}

    def test_charge_emits_event(self, db_session, test_user_id):
        ledger.charge_if_affordable(db_session, test_user_id, 5, CreditReason.CHAT)
        events = EventRepository(db_session).list_by_type("credits_charged", test_user_id)
        assert len(events) == 1
        assert events[0].payload.amount == 5
        assert events[0].payload.remaining == 45

    def test_insufficient_credits_rejected_without_writes(self, db_session, test_user_id, set_credits):
        set_credits(test_user_id, 5)

        with pytest.raises(InsufficientCreditsError) as exc_info:
            ledger.charge_if_affordable(db_session, test_user_id, 10, CreditReason.CHAT)

        assert exc_info.value.required == 10
        assert exc_info.value.available == 5
        assert ledger.get_balance(db_session, test_user_id) == 5
        assert ledger.list_transactions(db_session, test_user_id) == []
        assert EventRepository(db_session).list_by_type("credits_charged", test_user_id) == []

    def test_charge_exact_balance_leaves_zero(self, db_session, test_user_id, set_credits):
        set_credits(test_user_id, 10)
        assert ledger.charge_if_affordable(db_session, test_user_id, 10, CreditReason.CHAT) == 0

    @pytest.mark.parametrize("amount", [0, -3])
    def test_non_positive_amount_rejected(self, db_session, test_user_id, amount):
        with pytest.raises(ValueError):
            ledger.charge_if_affordable(db_session, test_user_id, amount, CreditReason.CHAT)
        assert ledger.get_balance(db_session, test_user_id) == 50

    def test_unknown_user(self, db_session):
        with pytest.raises(NotFoundError):
            ledger.charge_if_affordable(db_session, "missing-user", 1, CreditReason.CHAT)

    def test_event_failure_does_not_undo_charge(self, db_session, test_user_id):
        with patch("learnplan.accounting.events.EventRepository.record", side_effect=RuntimeError("sink down")):
            remaining = ledger.charge_if_affordable(db_session, test_user_id, 5, CreditReason.CHAT)
        assert remaining == 45
        assert ledger.get_balance(db_session, test_user_id) == 45

    def test_charge_does_not_touch_other_users(self, db_session, test_user_id, other_user_id):
        ledger.charge_if_affordable(db_session, test_user_id, 5, CreditReason.CHAT)
        assert ledger.get_balance(db_session, other_user_id) == 50


class TestGrantAndDeduct:
    """Test grants and administrative deductions."""

    def test_grant_adds_credits(self, db_session, test_user_id):
        assert ledger.grant(db_session, test_user_id, 25, CreditReason.PURCHASE) == 75
        transactions = ledger.list_transactions(db_session, test_user_id)
        assert transactions[0].amount == 25
        assert transactions[0].reason == "purchase"

    def test_grant_purchase_credits_each_payment_once(self, db_session, test_user_id):
        assert ledger.grant_purchase(db_session, test_user_id, 100, "pay_1") == (150, True)
        assert ledger.grant_purchase(db_session, test_user_id, 100, "pay_1") == (150, False)
        assert ledger.grant_purchase(db_session, test_user_id, 20, "pay_2") == (170, True)

        purchases = [t for t in ledger.list_transactions(db_session, test_user_id) if t.reason == "purchase"]
        assert sorted(t.metadata["payment_id"] for t in purchases) == ["pay_1", "pay_2"]

    def test_grant_rejects_non_positive(self, db_session, test_user_id):
        with pytest.raises(ValueError):
            ledger.grant(db_session, test_user_id, 0)

    def test_deduct_floors_at_zero(self, db_session, test_user_id, set_credits):
        set_credits(test_user_id, 5)
        assert ledger.deduct(db_session, test_user_id, 10) == 0
        assert ledger.get_balance(db_session, test_user_id) == 0

        transactions = ledger.list_transactions(db_session, test_user_id)
        assert transactions[0].amount == -5
        assert transactions[0].reason == "adjustment"
        assert transactions[0].metadata == {"requested": 10}

    def test_deduct_partial(self, db_session, test_user_id):
        assert ledger.deduct(db_session, test_user_id, 8) == 42

    def test_deduct_unknown_user(self, db_session):
        with pytest.raises(NotFoundError):
            ledger.deduct(db_session, "missing-user", 1)

    def test_get_balance_unknown_user(self, db_session):
        with pytest.raises(NotFoundError):
            ledger.get_balance(db_session, "missing-user")

"""
Tests for loan models.

These tests cover:
1. Status sets and the on-time/late decision
2. Date validation on LoanRecord
3. Derived values (loan period, days overdue)
"""

from datetime import date, timedelta

import pytest
from pydantic import ValidationError

from lending_engine.models import LoanRecord, LoanStatus
from lending_engine.models.loan import resolve_return_status

BORROWED_ON = date(2024, 3, 1)
DEADLINE = BORROWED_ON + timedelta(days=14)


def make_loan(**overrides) -> LoanRecord:
    data = {
        "borrower_id": "member-1",
        "book_id": 1,
        "borrow_date": BORROWED_ON,
        "return_deadline": DEADLINE,
    }
    data.update(overrides)
    return LoanRecord(**data)


class TestLoanStatus:
    def test_values_are_uppercase_names(self):
        assert [status.value for status in LoanStatus] == [
            "BORROWED",
            "RETURNED",
            "RETURNED_LATE",
            "OVERDUE",
        ]

    def test_active_and_terminal_partition(self):
        assert set(LoanStatus.active()) == {LoanStatus.BORROWED, LoanStatus.OVERDUE}
        assert set(LoanStatus.terminal()) == {LoanStatus.RETURNED, LoanStatus.RETURNED_LATE}
        assert set(LoanStatus.active()) | set(LoanStatus.terminal()) == set(LoanStatus)

    @pytest.mark.parametrize(
        ("returned_on", "expected"),
        [
            (BORROWED_ON, LoanStatus.RETURNED),
            (DEADLINE - timedelta(days=1), LoanStatus.RETURNED),
            (DEADLINE, LoanStatus.RETURNED),
            (DEADLINE + timedelta(days=1), LoanStatus.RETURNED_LATE),
            (DEADLINE + timedelta(days=100), LoanStatus.RETURNED_LATE),
        ],
    )
    def test_resolve_return_status(self, returned_on, expected):
        assert resolve_return_status(DEADLINE, returned_on) == expected


class TestLoanRecord:
    def test_new_loan_defaults(self):
        loan = make_loan()

        assert loan.id is None
        assert loan.status == LoanStatus.BORROWED
        assert loan.status == "BORROWED"
        assert loan.actual_return_date is None
        assert loan.version == 0
        assert loan.is_active is True
        assert loan.is_terminal is False
        assert loan.loan_period_days == 14

    def test_deadline_must_follow_borrow_date(self):
        with pytest.raises(ValidationError, match="Return deadline must be after borrow date"):
            make_loan(return_deadline=BORROWED_ON)

    def test_return_cannot_precede_borrow(self):
        with pytest.raises(ValidationError, match="Return date cannot be before borrow date"):
            make_loan(actual_return_date=BORROWED_ON - timedelta(days=1))

    def test_borrower_id_required(self):
        with pytest.raises(ValidationError):
            make_loan(borrower_id="")

    def test_invalid_status(self):
        with pytest.raises(ValidationError):
            make_loan(status="LOST")

    def test_past_deadline(self):
        loan = make_loan()

        assert loan.is_past_deadline(DEADLINE) is False
        assert loan.is_past_deadline(DEADLINE + timedelta(days=1)) is True

    def test_days_overdue_for_open_loan(self):
        loan = make_loan(status=LoanStatus.OVERDUE)

        assert loan.days_overdue(DEADLINE) == 0
        assert loan.days_overdue(DEADLINE + timedelta(days=4)) == 4

    def test_days_overdue_frozen_at_return(self):
        loan = make_loan(
            status=LoanStatus.RETURNED_LATE,
            actual_return_date=DEADLINE + timedelta(days=6),
        )

        assert loan.is_terminal is True
        assert loan.days_overdue(DEADLINE + timedelta(days=60)) == 6

    def test_serializes_status_as_string(self):
        data = make_loan(id=3).model_dump(mode="json")

        assert data["status"] == "BORROWED"
        assert data["borrow_date"] == "2024-03-01"
        assert data["return_deadline"] == "2024-03-15"

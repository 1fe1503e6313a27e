# Overview: Service-layer operations for daily bank deposits (cash submissions).

"""
Deposits are append-only. Each one records what the employee handed in
and, for reference, the expected cash figure at the moment of submission.
Reconciliation never trusts that stored figure; it recomputes expected
cash from sales and debt-payment audit entries.
"""

from __future__ import annotations

from datetime import datetime

from flask import current_app

from ..extensions import db
from ..models import DailyDeposit, User
from ..models.audit import ACTION_DEPOSIT_RECORDED
from ..models.deposits import SUBMISSION_DEBT, SUBMISSION_REVENUE, SUBMISSION_TYPES
from ..money import MAX_AMOUNT_CENTS, format_cents
from ..validation import ValidationError, clean_text
from pharmapos.time_utils import today_key
from . import audit_service, reconciliation, state_store

NOTE_PREFIXES = {
    SUBMISSION_REVENUE: "[REVENUE] ",
    SUBMISSION_DEBT: "[DEBT] ",
}

DEFAULT_NOTE_MIN_LENGTH = 5


def prefixed_note(submission_type: str, notes: str) -> str:
    return f"{NOTE_PREFIXES[submission_type]}{notes}"


def record_deposit(
    *,
    employee: User,
    amount_submitted_cents: int,
    notes: str,
    submission_type: str = SUBMISSION_REVENUE,
    now: datetime | None = None,
) -> DailyDeposit:
    """
    Record one cash submission for today.

    Raises ValidationError when the amount is not positive, the type is
    unknown, or the note is shorter than DEPOSIT_NOTE_MIN_LENGTH.
    """
    if submission_type not in SUBMISSION_TYPES:
        raise ValidationError(
            f"Invalid submission type: {submission_type}",
            details={"allowed": list(SUBMISSION_TYPES)},
        )
    if amount_submitted_cents <= 0:
        raise ValidationError("Amount submitted must be greater than zero")
    if amount_submitted_cents > MAX_AMOUNT_CENTS:
        raise ValidationError("Amount submitted is too large")

    min_length = current_app.config.get("DEPOSIT_NOTE_MIN_LENGTH", DEFAULT_NOTE_MIN_LENGTH)
    notes = clean_text(notes, "notes")
    if len(notes) < min_length:
        raise ValidationError(
            f"Notes must be at least {min_length} characters",
            details={"minLength": min_length},
        )

    day = today_key(now)
    store = state_store.get_state_store()
    expected = reconciliation.settlement_for_day(
        store.sales(),
        store.audit_logs(),
        store.deposits(),
        day,
        employee_id=employee.id,
    )

    deposit = DailyDeposit(
        date=day,
        employee_id=employee.id,
        employee_name=employee.name,
        cash_revenue_cents=expected.expected_cents,
        amount_submitted_cents=amount_submitted_cents,
        submission_type=submission_type,
        notes=prefixed_note(submission_type, notes),
    )
    db.session.add(deposit)
    db.session.flush()

    audit_service.record_event(
        user=employee,
        action=ACTION_DEPOSIT_RECORDED,
        details=(
            f"Submitted ${format_cents(amount_submitted_cents)} ({submission_type}) "
            f"against expected ${format_cents(expected.expected_cents)}"
        ),
        metadata={
            "depositId": deposit.id,
            "date": day,
            "amountSubmittedCents": amount_submitted_cents,
            "expectedCents": expected.expected_cents,
            "submissionType": submission_type,
        },
    )

    db.session.commit()
    state_store.invalidate(state_store.DEPOSITS, state_store.AUDIT_LOGS)

    balance = reconciliation.lifetime_balance(
        store.sales(), store.audit_logs(), store.deposits(), employee_id=employee.id
    )
    if balance.balance_cents < 0:
        current_app.logger.warning(
            "Employee %s has an outstanding cash shortage of %s cents after deposit %s",
            employee.id,
            -balance.balance_cents,
            deposit.id,
        )
    return deposit

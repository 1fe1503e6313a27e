# Overview: Cash settlement reconciliation over immutable sale, audit and deposit records.

"""
Expected cash for a day is derived, never stored:

    expected = cash sales total + debt payments logged that day

Debt payments are read from debt_updated audit entries (metadata
paymentAmountCents). Submitted cash is the sum of the employee's bank
deposits for the day. discrepancy = submitted - expected.

All functions here are pure: they take iterables of records and return
new values. Day keys are the UTC "YYYY-MM-DD" of each record's timestamp;
deposits carry their own date field.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Iterable, Optional

from pharmapos.models.audit import ACTION_DEBT_UPDATED
from pharmapos.models.sales import PAYMENT_CASH
from pharmapos.money import MoneyError, to_cents
from pharmapos.records import AuditRecord, DepositRecord, SaleRecord
from pharmapos.time_utils import day_key

STATUS_SHORTAGE = "Shortage"
STATUS_EXCESS = "Excess"
STATUS_BALANCED = "Balanced"


def classify(discrepancy_cents: int) -> str:
    if discrepancy_cents < 0:
        return STATUS_SHORTAGE
    if discrepancy_cents > 0:
        return STATUS_EXCESS
    return STATUS_BALANCED


def debt_payment_cents(log: AuditRecord) -> int:
    """
    Cash collected against customer debt recorded by one audit entry.

    Entries written before amounts moved to cents carry paymentAmount in
    currency units; those are converted. Anything unparseable counts as 0.
    """
    if log.action != ACTION_DEBT_UPDATED:
        return 0
    meta = log.metadata or {}
    if meta.get("paymentAmountCents") is not None:
        raw = meta["paymentAmountCents"]
        if isinstance(raw, bool):
            return 0
        try:
            amount = Decimal(str(raw))
        except (InvalidOperation, ValueError):
            return 0
        # cents are whole numbers; fractional or non-finite values are unreadable
        if not amount.is_finite() or amount != amount.to_integral_value():
            return 0
        cents = int(amount)
    elif meta.get("paymentAmount") is not None:
        try:
            cents = to_cents(meta["paymentAmount"], field="paymentAmount")
        except MoneyError:
            return 0
    else:
        return 0
    return cents if cents > 0 else 0


@dataclass(frozen=True)
class DaySettlement:
    date: str
    sales_expected_cents: int
    debt_expected_cents: int
    submitted_cents: int
    deposits: tuple[DepositRecord, ...] = ()

    @property
    def expected_cents(self) -> int:
        return self.sales_expected_cents + self.debt_expected_cents

    @property
    def discrepancy_cents(self) -> int:
        return self.submitted_cents - self.expected_cents

    @property
    def status(self) -> str:
        return classify(self.discrepancy_cents)

    @property
    def submission_count(self) -> int:
        return len(self.deposits)

    @property
    def is_empty(self) -> bool:
        return self.expected_cents == 0 and self.submitted_cents == 0

    def to_dict(self) -> dict:
        return {
            "date": self.date,
            "salesExpectedCents": self.sales_expected_cents,
            "debtExpectedCents": self.debt_expected_cents,
            "expectedCents": self.expected_cents,
            "submittedCents": self.submitted_cents,
            "discrepancyCents": self.discrepancy_cents,
            "status": self.status,
            "submissionCount": self.submission_count,
            "deposits": [d.to_dict() for d in self.deposits],
        }


@dataclass(frozen=True)
class Balance:
    """Lifetime totals; balance is the running sum of every daily discrepancy."""
    sales_expected_cents: int
    debt_expected_cents: int
    submitted_cents: int

    @property
    def expected_cents(self) -> int:
        return self.sales_expected_cents + self.debt_expected_cents

    @property
    def balance_cents(self) -> int:
        return self.submitted_cents - self.expected_cents

    @property
    def status(self) -> str:
        return classify(self.balance_cents)

    def to_dict(self) -> dict:
        return {
            "salesExpectedCents": self.sales_expected_cents,
            "debtExpectedCents": self.debt_expected_cents,
            "expectedCents": self.expected_cents,
            "submittedCents": self.submitted_cents,
            "balanceCents": self.balance_cents,
            "status": self.status,
        }


def _scoped(records, attr: str, employee_id: Optional[int]):
    if employee_id is None:
        return list(records)
    return [r for r in records if getattr(r, attr) == employee_id]


def _buckets(
    sales: Iterable[SaleRecord],
    audit_logs: Iterable[AuditRecord],
    deposits: Iterable[DepositRecord],
    employee_id: Optional[int],
):
    sales_by_day: dict[str, int] = defaultdict(int)
    debt_by_day: dict[str, int] = defaultdict(int)
    deposits_by_day: dict[str, list[DepositRecord]] = defaultdict(list)

    for sale in _scoped(sales, "employee_id", employee_id):
        if sale.payment_method == PAYMENT_CASH:
            sales_by_day[day_key(sale.timestamp)] += sale.total_amount_cents

    for log in _scoped(audit_logs, "user_id", employee_id):
        payment = debt_payment_cents(log)
        if payment:
            debt_by_day[day_key(log.timestamp)] += payment

    for deposit in _scoped(deposits, "employee_id", employee_id):
        deposits_by_day[deposit.date].append(deposit)

    return sales_by_day, debt_by_day, deposits_by_day


def _settlement(day, sales_by_day, debt_by_day, deposits_by_day) -> DaySettlement:
    day_deposits = sorted(
        deposits_by_day.get(day, ()),
        key=lambda d: (d.created_at is None, d.created_at, d.id),
    )
    return DaySettlement(
        date=day,
        sales_expected_cents=sales_by_day.get(day, 0),
        debt_expected_cents=debt_by_day.get(day, 0),
        submitted_cents=sum(d.amount_submitted_cents for d in day_deposits),
        deposits=tuple(day_deposits),
    )


def daily_settlements(
    sales: Iterable[SaleRecord],
    audit_logs: Iterable[AuditRecord],
    deposits: Iterable[DepositRecord],
    *,
    employee_id: Optional[int] = None,
) -> list[DaySettlement]:
    """
    One settlement per day that had either expected cash or a submission.

    Newest day first. employee_id=None aggregates every employee.
    """
    buckets = _buckets(sales, audit_logs, deposits, employee_id)
    days = set().union(*(b.keys() for b in buckets))
    result = [_settlement(day, *buckets) for day in days]
    return sorted(
        (s for s in result if not s.is_empty),
        key=lambda s: s.date,
        reverse=True,
    )


def settlement_for_day(
    sales: Iterable[SaleRecord],
    audit_logs: Iterable[AuditRecord],
    deposits: Iterable[DepositRecord],
    day: str,
    *,
    employee_id: Optional[int] = None,
) -> DaySettlement:
    """Settlement for a single day, returned even when it is all zeros."""
    return _settlement(day, *_buckets(sales, audit_logs, deposits, employee_id))


def lifetime_balance(
    sales: Iterable[SaleRecord],
    audit_logs: Iterable[AuditRecord],
    deposits: Iterable[DepositRecord],
    *,
    employee_id: Optional[int] = None,
) -> Balance:
    sales_by_day, debt_by_day, deposits_by_day = _buckets(sales, audit_logs, deposits, employee_id)
    return Balance(
        sales_expected_cents=sum(sales_by_day.values()),
        debt_expected_cents=sum(debt_by_day.values()),
        submitted_cents=sum(
            d.amount_submitted_cents for day in deposits_by_day.values() for d in day
        ),
    )


def employee_summary(
    sales: Iterable[SaleRecord],
    audit_logs: Iterable[AuditRecord],
    deposits: Iterable[DepositRecord],
    *,
    employee_id: int,
    today: str,
    pending_amount_cents: int = 0,
) -> dict:
    """
    Payload for the POS "daily cash settlement" panel.

    projectedBalanceCents is the lifetime balance as it would read after
    submitting pending_amount_cents.
    """
    sales, audit_logs, deposits = list(sales), list(audit_logs), list(deposits)
    day = settlement_for_day(sales, audit_logs, deposits, today, employee_id=employee_id)
    balance = lifetime_balance(sales, audit_logs, deposits, employee_id=employee_id)
    projected = balance.balance_cents + pending_amount_cents
    return {
        "today": day.to_dict(),
        "lifetime": balance.to_dict(),
        "pendingAmountCents": pending_amount_cents,
        "projectedBalanceCents": projected,
        "projectedStatus": classify(projected),
    }

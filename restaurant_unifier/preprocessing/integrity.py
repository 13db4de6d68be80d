"""
Source-versus-snapshot integrity check.

Counts what each platform export should have produced and compares it with
what the snapshot holds. Differences are warnings, not errors: dropped
records are expected, but an operator should see how many.
"""

from typing import Dict, List

from pydantic import BaseModel, Field

from restaurant_unifier.models.snapshot import Snapshot
from restaurant_unifier.models.sources import SourceData
from restaurant_unifier.parsers.square_mapper import is_fully_refunded
from restaurant_unifier.parsers.toast_mapper import FULL_REFUND

PLATFORMS = ('toast', 'doordash', 'square')
REPORT_WIDTH = 41


class IntegritySummary(BaseModel):
    source_orders: Dict[str, int] = Field(default_factory=dict)
    source_payments: Dict[str, int] = Field(default_factory=dict)
    snapshot_orders: int = 0
    snapshot_payments: int = 0
    orders_with_payments: int = 0
    orders_without_payments: int = 0

    @property
    def total_source_orders(self) -> int:
        return sum(self.source_orders.values())

    @property
    def total_source_payments(self) -> int:
        return sum(self.source_payments.values())


class IntegrityResult(BaseModel):
    success: bool
    warnings: List[str] = Field(default_factory=list)
    summary: IntegritySummary


def count_source_orders(sources: SourceData) -> Dict[str, int]:
    counts = dict.fromkeys(PLATFORMS, 0)
    if sources.toast is not None:
        counts['toast'] = sum(1 for o in sources.toast.orders if not o.voided and not o.deleted)
    if sources.doordash is not None:
        counts['doordash'] = len(sources.doordash.orders)
    if sources.square is not None:
        counts['square'] = len(sources.square.orders.orders)
    return counts


def count_source_payments(sources: SourceData) -> Dict[str, int]:
    counts = dict.fromkeys(PLATFORMS, 0)
    if sources.toast is not None:
        counts['toast'] = sum(
            1
            for order in sources.toast.orders if not order.voided and not order.deleted
            for check in order.checks if not check.voided and not check.deleted
            for payment in check.payments if payment.refundStatus != FULL_REFUND
        )
    if sources.doordash is not None:
        # One payout per order
        counts['doordash'] = len(sources.doordash.orders)
    if sources.square is not None:
        counts['square'] = sum(1 for p in sources.square.payments.payments if not is_fully_refunded(p))
    return counts


def check_data_integrity(sources: SourceData, snapshot: Snapshot) -> IntegrityResult:
    normalized = snapshot.normalized
    order_ids_with_payments = {p.order_id for p in normalized.payments}

    summary = IntegritySummary(
        source_orders=count_source_orders(sources),
        source_payments=count_source_payments(sources),
        snapshot_orders=len(normalized.orders),
        snapshot_payments=len(normalized.payments),
        orders_with_payments=len(order_ids_with_payments),
    )
    summary.orders_without_payments = summary.snapshot_orders - summary.orders_with_payments

    warnings = []
    if summary.snapshot_orders != summary.total_source_orders:
        breakdown = ", ".join(f"{p}: {n}" for p, n in summary.source_orders.items())
        warnings.append(
            f"Order count mismatch: {summary.total_source_orders} source orders -> "
            f"{summary.snapshot_orders} in snapshot ({breakdown})"
        )
    if summary.snapshot_payments != summary.total_source_payments:
        breakdown = ", ".join(f"{p}: {n}" for p, n in summary.source_payments.items())
        warnings.append(
            f"Payment count mismatch: {summary.total_source_payments} source payments -> "
            f"{summary.snapshot_payments} in snapshot ({breakdown})"
        )
    if summary.orders_without_payments > 0:
        warnings.append(f"{summary.orders_without_payments} orders have no payments (expected 0)")

    return IntegrityResult(success=not warnings, warnings=warnings, summary=summary)


def format_integrity_report(result: IntegrityResult) -> str:
    summary = result.summary

    def row(text: str) -> str:
        return f"|{text:<{REPORT_WIDTH}}|"

    rule = '+' + '-' * REPORT_WIDTH + '+'
    lines = [rule, row('Data Integrity Report'.center(REPORT_WIDTH)), rule, row(' Orders:')]
    for platform in PLATFORMS:
        lines.append(row(f"   {platform.capitalize() + ':':<11} {summary.source_orders.get(platform, 0):>4} orders"))
    lines.append(row(f"   {'Total:':<11} {summary.total_source_orders:>4} -> {summary.snapshot_orders:>4} kept"))
    lines += [rule, row(' Payments:')]
    for platform in PLATFORMS:
        lines.append(row(f"   {platform.capitalize() + ':':<11} {summary.source_payments.get(platform, 0):>4} payments"))
    lines.append(row(f"   {'Total:':<11} {summary.total_source_payments:>4} -> {summary.snapshot_payments:>4} kept"))
    lines += [
        rule,
        row(' Payment coverage:'),
        row(f"   Orders with payments:    {summary.orders_with_payments:>4}"),
        row(f"   Orders without payments: {summary.orders_without_payments:>4}"),
        rule,
    ]

    if result.success:
        lines.append("Data integrity check passed")
    else:
        lines.append("Data integrity warnings:")
        lines += [f"  - {w}" for w in result.warnings]
    return '\n'.join(lines)

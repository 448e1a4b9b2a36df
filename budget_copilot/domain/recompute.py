"""Recompute trigger - decides whether proposed data changes invalidate today's decision"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class ProposedChanges:
    """
    Change set reported by an upstream collaborator (advisor confirm,
    manual entry, statement import). Only emptiness matters here; the
    payloads are carried opaquely.
    """

    new_transactions: Tuple[Dict[str, Any], ...] = ()
    transaction_updates: Tuple[Dict[str, Any], ...] = ()
    transaction_deletions: Tuple[str, ...] = ()
    income_change: Optional[Dict[str, Any]] = None
    debt_changes: Tuple[Dict[str, Any], ...] = ()
    bill_changes: Tuple[Dict[str, Any], ...] = ()
    file_import: Optional[Dict[str, Any]] = field(default=None)

    def changed_categories(self) -> Tuple[str, ...]:
        categories = []
        if self.new_transactions:
            categories.append("new_transactions")
        if self.transaction_updates:
            categories.append("transaction_updates")
        if self.transaction_deletions:
            categories.append("transaction_deletions")
        if self.income_change:
            categories.append("income_change")
        if self.debt_changes:
            categories.append("debt_changes")
        if self.bill_changes:
            categories.append("bill_changes")
        if self.file_import:
            categories.append("file_import")
        return tuple(categories)


def should_recompute(changes: ProposedChanges) -> bool:
    """
    Any change to a financial fact forces recomputation.

    Deliberately not magnitude-based: stale advice is worse than an extra
    computation. Pure and side-effect free; the caller runs the recompute.
    """
    return bool(changes.changed_categories())

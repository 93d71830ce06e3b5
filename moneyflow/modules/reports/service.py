"""Reporting service layer: envelope rollups and the monthly dashboard."""
from decimal import Decimal
from typing import Dict, List, Optional
import logging

from moneyflow.core.money import ZERO
from moneyflow.core.time import utc_timestamp
from moneyflow.modules.ledger.service import LedgerService
from moneyflow.modules.ledger.store import LedgerStore

logger = logging.getLogger(__name__)

SNAPSHOT_FIELDS = (
    'total_income', 'total_expense', 'total_budget', 'total_remaining',
    'saved_amount', 'budget_utilization', 'over_budget_count',
)


class ReportService:
    """Read-only rollups over ledger state, plus snapshot caching."""

    def __init__(self, store: LedgerStore, ledger: Optional[LedgerService] = None):
        self.store = store
        self.ledger = ledger or LedgerService(store)

    def get_envelope_total(self, envelope_id: int, period: str) -> Decimal:
        """Sum of remaining budget over the envelope's categories."""
        return sum(
            (self.ledger.get_budget_remaining(category['id'], period)
             for category in self.ledger.get_categories_by_envelope(envelope_id)),
            ZERO,
        )

    def get_dashboard_summary(self, period: str) -> Dict:
        """Whole-period summary.

        total_expense counts real expenses only; subsidies given are not
        added here, unlike the per-category total_spent.
        """
        total_income = self.ledger.get_total_income(period)
        expenses = self.ledger.get_expenses_by_period(period)
        total_expense = sum((e['amount'] for e in expenses), ZERO)

        total_remaining = sum(
            (self.get_envelope_total(envelope['id'], period)
             for envelope in self.ledger.get_all_envelopes()),
            ZERO,
        )
        total_budget = sum(
            (b['total_budget'] for b in self.ledger.get_budgets_by_period(period)),
            ZERO,
        )

        return {
            'period': period,
            'total_income': total_income,
            'total_expense': total_expense,
            'total_budget': total_budget,
            'total_remaining': total_remaining,
            'saved_amount': total_income - total_expense,
            'budget_utilization': float(total_expense / total_budget * 100) if total_budget > 0 else 0.0,
            'over_budget_count': len([e for e in expenses if e['is_over_budget']]),
        }

    def get_envelope_card(self, envelope_id: int, period: str) -> Dict:
        """Envelope with its total and per-category breakdowns."""
        envelope = self.ledger.get_envelope(envelope_id)
        categories = [
            dict(category, breakdown=self.ledger.get_budget_breakdown(category['id'], period))
            for category in self.ledger.get_categories_by_envelope(envelope_id)
        ]
        return {
            'envelope': envelope,
            'total': self.get_envelope_total(envelope_id, period),
            'categories': categories,
        }

    def get_envelope_totals(self, period: str) -> List[Dict]:
        return [
            {
                'envelope': envelope,
                'total': self.get_envelope_total(envelope['id'], period),
                'categories': self.ledger.get_categories_by_envelope(envelope['id']),
            }
            for envelope in self.ledger.get_all_envelopes()
        ]

    def get_period_budgets(self, period: str) -> List[Dict]:
        """Every budget of the period together with its breakdown."""
        return [
            dict(budget, breakdown=self.ledger.get_budget_breakdown(budget['category_id'], period))
            for budget in self.ledger.get_budgets_by_period(period)
        ]

    # ===== Monthly snapshots =====

    def get_monthly_snapshot(self, period: str) -> Optional[Dict]:
        snapshots = self.store.monthly_snapshots.query_by_field('period', period)
        return snapshots[0] if snapshots else None

    def save_monthly_snapshot(self, period: str) -> Dict:
        """Upsert the dashboard summary of ``period`` as its snapshot."""
        summary = self.get_dashboard_summary(period)
        fields = {key: summary[key] for key in SNAPSHOT_FIELDS}
        fields['updated_at'] = utc_timestamp()

        with self.store.atomic():
            existing = self.get_monthly_snapshot(period)
            if existing:
                snapshot = self.store.monthly_snapshots.update(existing['id'], fields)
            else:
                fields['period'] = period
                fields['created_at'] = fields['updated_at']
                snapshot = self.store.monthly_snapshots.get_by_id(
                    self.store.monthly_snapshots.insert(fields)
                )

        logger.info(f'Saved monthly snapshot for {period}')
        return snapshot

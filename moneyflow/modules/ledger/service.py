"""Budget ledger service layer.

Remaining budget of a category in a period is always derived, never stored:

    remaining = total_budget + subsidies received - expenses - subsidies given

``budget_amount`` is the nominal figure; subsidy and carry-over handling
never change it.
"""
from decimal import Decimal
from typing import Any, Dict, List, Optional
import logging

from moneyflow.core.errors import InsufficientBudget, DonorBudgetInsufficient, NotFound
from moneyflow.core.money import ZERO, to_amount, round_percent
from moneyflow.core.time import format_date, period_from_date, utc_timestamp
from .store import LedgerStore

logger = logging.getLogger(__name__)


def _positive_amount(value, field: str = 'amount') -> Decimal:
    amount = to_amount(value)
    if amount <= 0:
        raise ValueError(f'{field} must be positive')
    return amount


def _sum_amounts(records: List[Dict[str, Any]]) -> Decimal:
    return sum((record['amount'] for record in records), ZERO)


class LedgerService:
    """Budget ledger business logic service."""

    def __init__(self, store: LedgerStore):
        self.store = store

    # ===== Envelopes =====

    def create_envelope(self, name: str, description: str = '', display_order: int = 0) -> Dict:
        """Create new envelope."""
        now = utc_timestamp()
        envelope_id = self.store.envelopes.insert({
            'name': name,
            'description': description,
            'display_order': display_order,
            'created_at': now,
            'updated_at': now,
        })
        logger.info(f'Created envelope {name} ({envelope_id})')
        return self.store.envelopes.get_by_id(envelope_id)

    def get_envelope(self, envelope_id: int) -> Dict:
        envelope = self.store.envelopes.get_by_id(envelope_id)
        if envelope is None:
            raise NotFound('envelope', envelope_id)
        return envelope

    def get_all_envelopes(self) -> List[Dict]:
        """Get all envelopes ordered by display order."""
        return sorted(self.store.envelopes.get_all(), key=lambda e: e['display_order'] or 0)

    def update_envelope(self, envelope_id: int, **fields) -> Dict:
        """Update envelope name, description or display order."""
        fields['updated_at'] = utc_timestamp()
        envelope = self.store.envelopes.update(envelope_id, fields)
        logger.info(f'Updated envelope {envelope_id}')
        return envelope

    def delete_envelope(self, envelope_id: int) -> None:
        """Delete envelope together with its categories."""
        self.get_envelope(envelope_id)
        with self.store.atomic():
            for category in self.store.categories.query_by_field('envelope_id', envelope_id):
                self._delete_category_records(category['id'])
            self.store.envelopes.delete(envelope_id)
        logger.info(f'Deleted envelope {envelope_id}')

    # ===== Categories =====

    def create_category(self, envelope_id: int, name: str, description: str = '',
                        display_order: int = 0) -> Dict:
        """Create new category inside an envelope."""
        self.get_envelope(envelope_id)
        now = utc_timestamp()
        category_id = self.store.categories.insert({
            'envelope_id': envelope_id,
            'name': name,
            'description': description,
            'display_order': display_order,
            'created_at': now,
            'updated_at': now,
        })
        logger.info(f'Created category {name} ({category_id}) in envelope {envelope_id}')
        return self.store.categories.get_by_id(category_id)

    def get_category(self, category_id: int) -> Dict:
        category = self.store.categories.get_by_id(category_id)
        if category is None:
            raise NotFound('category', category_id)
        return category

    def get_all_categories(self) -> List[Dict]:
        """All categories in insertion order."""
        return self.store.categories.get_all()

    def get_categories_by_envelope(self, envelope_id: int) -> List[Dict]:
        categories = self.store.categories.query_by_field('envelope_id', envelope_id)
        return sorted(categories, key=lambda c: c['display_order'] or 0)

    def update_category(self, category_id: int, **fields) -> Dict:
        if 'envelope_id' in fields:
            self.get_envelope(fields['envelope_id'])
        fields['updated_at'] = utc_timestamp()
        category = self.store.categories.update(category_id, fields)
        logger.info(f'Updated category {category_id}')
        return category

    def delete_category(self, category_id: int) -> None:
        """Delete category with its expenses, budgets and settlement records."""
        self.get_category(category_id)
        with self.store.atomic():
            self._delete_category_records(category_id)
        logger.info(f'Deleted category {category_id}')

    def _delete_category_records(self, category_id: int) -> None:
        for expense in self.store.expenses.query_by_field('category_id', category_id):
            self._delete_expense_records(expense['id'])
        for budget in self.store.budgets.query_by_field('category_id', category_id):
            self.store.allocations.delete_where('budget_id', budget['id'])
            self.store.budgets.delete(budget['id'])
        self.store.carryovers.delete_where('category_id', category_id)
        self.store.categories.delete(category_id)

    # ===== Budgets =====

    def get_budget(self, category_id: int, period: str) -> Optional[Dict]:
        return self.store.budgets.query_by_composite_key(['category_id', 'period'], [category_id, period])

    def get_budgets_by_period(self, period: str) -> List[Dict]:
        return self.store.budgets.query_by_field('period', period)

    def set_budget(self, category_id: int, period: str, budget_amount, carried_over=0) -> Dict:
        """Upsert the (category, period) budget, overwriting previous figures."""
        budget_amount = to_amount(budget_amount)
        carried_over = to_amount(carried_over)
        now = utc_timestamp()
        fields = {
            'category_id': category_id,
            'period': period,
            'budget_amount': budget_amount,
            'carried_over': carried_over,
            'total_budget': budget_amount + carried_over,
            'updated_at': now,
        }

        with self.store.atomic():
            existing = self.get_budget(category_id, period)
            if existing:
                budget = self.store.budgets.update(existing['id'], fields)
            else:
                fields['created_at'] = now
                budget = self.store.budgets.get_by_id(self.store.budgets.insert(fields))

        logger.info(f'Set budget {budget_amount} (+{carried_over}) for category {category_id} in {period}')
        return budget

    # ===== Incomes =====

    def create_income(self, date, source: str, amount, note: str = '') -> Dict:
        """Record income; its period is derived from the date."""
        date_str = format_date(date)
        amount = _positive_amount(amount)
        now = utc_timestamp()
        income_id = self.store.incomes.insert({
            'date': date_str,
            'period': period_from_date(date_str),
            'source': source,
            'amount': amount,
            'note': note,
            'is_allocated': False,
            'created_at': now,
            'updated_at': now,
        })
        logger.info(f'Added income {amount} from {source} on {date_str}')
        return self.store.incomes.get_by_id(income_id)

    def get_income(self, income_id: int) -> Dict:
        income = self.store.incomes.get_by_id(income_id)
        if income is None:
            raise NotFound('income', income_id)
        return income

    def get_incomes_by_period(self, period: str) -> List[Dict]:
        return self.store.incomes.query_by_field('period', period)

    def get_total_income(self, period: str) -> Decimal:
        return _sum_amounts(self.get_incomes_by_period(period))

    def mark_income_as_allocated(self, income_id: int) -> Dict:
        income = self.store.incomes.update(income_id, {
            'is_allocated': True,
            'updated_at': utc_timestamp(),
        })
        logger.info(f'Marked income {income_id} as allocated')
        return income

    # ===== Expenses and subsidies (reads) =====

    def get_expense(self, expense_id: int) -> Dict:
        expense = self.store.expenses.get_by_id(expense_id)
        if expense is None:
            raise NotFound('expense', expense_id)
        return expense

    def get_expenses_by_period(self, period: str) -> List[Dict]:
        return self.store.expenses.query_by_field('period', period)

    def get_expenses_by_category(self, category_id: int, period: str) -> List[Dict]:
        return [e for e in self.store.expenses.query_by_field('category_id', category_id)
                if e['period'] == period]

    def sum_expenses(self, category_id: int, period: str) -> Decimal:
        return _sum_amounts(self.get_expenses_by_category(category_id, period))

    def get_subsidies_given(self, category_id: int, period: str) -> List[Dict]:
        return [s for s in self.store.subsidies.query_by_field('from_category_id', category_id)
                if s['period'] == period]

    def get_subsidies_received(self, category_id: int, period: str) -> List[Dict]:
        return [s for s in self.store.subsidies.query_by_field('to_category_id', category_id)
                if s['period'] == period]

    def sum_subsidies_given(self, category_id: int, period: str) -> Decimal:
        return _sum_amounts(self.get_subsidies_given(category_id, period))

    def sum_subsidies_received(self, category_id: int, period: str) -> Decimal:
        return _sum_amounts(self.get_subsidies_received(category_id, period))

    # ===== Computed values =====

    def get_budget_remaining(self, category_id: int, period: str) -> Decimal:
        """Effective spendable balance; zero when no budget is set."""
        budget = self.get_budget(category_id, period)
        if not budget:
            return to_amount(0)

        return (budget['total_budget']
                + self.sum_subsidies_received(category_id, period)
                - self.sum_expenses(category_id, period)
                - self.sum_subsidies_given(category_id, period))

    def get_budget_breakdown(self, category_id: int, period: str) -> Dict:
        """Per-category report; subsidies given count as virtual spend."""
        budget = self.get_budget(category_id, period)
        if not budget:
            zero = to_amount(0)
            return {
                'category_id': category_id,
                'period': period,
                'original_budget': zero,
                'carried_over': zero,
                'total_budget': zero,
                'actual_spent': zero,
                'subsidy_received': zero,
                'subsidy_given': zero,
                'total_spent': zero,
                'remaining': zero,
                'utilization_percent': 0.0,
            }

        actual_spent = self.sum_expenses(category_id, period)
        subsidy_received = self.sum_subsidies_received(category_id, period)
        subsidy_given = self.sum_subsidies_given(category_id, period)
        total_spent = actual_spent + subsidy_given

        return {
            'category_id': category_id,
            'period': period,
            'original_budget': budget['budget_amount'],
            'carried_over': budget['carried_over'],
            'total_budget': budget['total_budget'],
            'actual_spent': actual_spent,
            'subsidy_received': subsidy_received,
            'subsidy_given': subsidy_given,
            'total_spent': total_spent,
            'remaining': budget['total_budget'] + subsidy_received - actual_spent - subsidy_given,
            'utilization_percent': round_percent(total_spent, budget['budget_amount']),
        }

    # ===== Expense operations =====

    def _insert_expense(self, date_str: str, category_id: int, amount: Decimal,
                        note: str, is_over_budget: bool) -> int:
        now = utc_timestamp()
        return self.store.expenses.insert({
            'date': date_str,
            'period': period_from_date(date_str),
            'category_id': category_id,
            'amount': amount,
            'note': note,
            'is_over_budget': is_over_budget,
            'created_at': now,
            'updated_at': now,
        })

    def create_expense(self, date, category_id: int, amount, note: str = '') -> Dict:
        """Record an expense the category can cover on its own.

        Raises InsufficientBudget without writing anything otherwise; the
        caller decides whether to retry through create_expense_with_subsidy.
        """
        date_str = format_date(date)
        period = period_from_date(date_str)
        amount = _positive_amount(amount)
        self.get_category(category_id)

        remaining = self.get_budget_remaining(category_id, period)
        if remaining < amount:
            logger.warning(
                f'Expense {amount} rejected for category {category_id} in {period}: {remaining} available'
            )
            raise InsufficientBudget(category_id, period, required=amount, available=remaining)

        expense_id = self._insert_expense(date_str, category_id, amount, note, is_over_budget=False)
        logger.info(f'Added expense {amount} for category {category_id} on {date_str}')
        return self.store.expenses.get_by_id(expense_id)

    def create_expense_with_subsidy(self, date, category_id: int, amount, from_category_id: int,
                                    note: str = '', subsidy_note: str = '') -> Dict:
        """Record an expense whose deficit is covered by a donor category.

        The recipient's total_budget grows by the deficit while both
        categories keep their budget_amount; the donor pays through the
        subsidy-given term of its remaining.
        """
        date_str = format_date(date)
        period = period_from_date(date_str)
        amount = _positive_amount(amount)
        self.get_category(category_id)
        self.get_category(from_category_id)

        recipient_remaining = self.get_budget_remaining(category_id, period)
        deficit = amount - recipient_remaining
        if deficit <= 0:
            # Permissive: the caller chose the subsidy path anyway
            logger.warning(
                f'Subsidized expense for category {category_id} in {period} has no deficit ({deficit})'
            )

        donor_remaining = self.get_budget_remaining(from_category_id, period)
        if donor_remaining < deficit:
            logger.warning(
                f'Subsidy of {deficit} from category {from_category_id} rejected: {donor_remaining} available'
            )
            raise DonorBudgetInsufficient(from_category_id, period, deficit=deficit, available=donor_remaining)

        with self.store.atomic():
            expense_id = self._insert_expense(date_str, category_id, amount, note, is_over_budget=True)
            subsidy_id = self.store.subsidies.insert({
                'expense_id': expense_id,
                'from_category_id': from_category_id,
                'to_category_id': category_id,
                'amount': deficit,
                'period': period,
                'note': subsidy_note,
                'created_at': utc_timestamp(),
            })

            budget = self.get_budget(category_id, period)
            if budget:
                self.store.budgets.update(budget['id'], {
                    'total_budget': budget['total_budget'] + deficit,
                    'updated_at': utc_timestamp(),
                })
            else:
                now = utc_timestamp()
                self.store.budgets.insert({
                    'category_id': category_id,
                    'period': period,
                    'budget_amount': to_amount(0),
                    'carried_over': to_amount(0),
                    'total_budget': deficit,
                    'created_at': now,
                    'updated_at': now,
                })

        logger.info(
            f'Added expense {amount} for category {category_id} with subsidy {deficit} '
            f'from category {from_category_id} in {period}'
        )
        return {
            'expense_id': expense_id,
            'subsidy_id': subsidy_id,
            'deficit': deficit,
            'expense': self.store.expenses.get_by_id(expense_id),
            'subsidy': self.store.subsidies.get_by_id(subsidy_id),
        }

    def delete_expense(self, expense_id: int) -> None:
        """Delete expense and the subsidies it triggered.

        The total_budget increase applied to a subsidized recipient is kept.
        """
        self.get_expense(expense_id)
        with self.store.atomic():
            self._delete_expense_records(expense_id)
        logger.info(f'Deleted expense {expense_id}')

    def _delete_expense_records(self, expense_id: int) -> None:
        self.store.subsidies.delete_where('expense_id', expense_id)
        self.store.expenses.delete(expense_id)

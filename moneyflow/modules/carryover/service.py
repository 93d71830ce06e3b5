"""Carry-over service layer: end-of-period settlement of remaining budgets."""
from typing import Dict, List, Optional
import logging

from moneyflow.core.errors import ExcessCarryAmount
from moneyflow.core.money import to_amount
from moneyflow.core.time import next_period, utc_timestamp
from moneyflow.modules.ledger.service import LedgerService
from moneyflow.modules.ledger.store import LedgerStore

logger = logging.getLogger(__name__)

CARRYOVER_ACTIONS = ('carry', 'reset')


class CarryoverService:
    """Carry-over business logic service."""

    def __init__(self, store: LedgerStore, ledger: Optional[LedgerService] = None):
        self.store = store
        self.ledger = ledger or LedgerService(store)

    def process_carry_over(self, category_id: int, from_period: str, action: str,
                           carried_amount=None, note: str = '') -> Dict:
        """Settle a category's remaining balance at the end of ``from_period``.

        ``carry`` moves ``carried_amount`` (default: everything remaining) into
        the next period's carried_over; ``reset`` forfeits the balance. Either
        way one Carryover record is written, unless nothing remains or the
        period was already settled for the category.
        """
        if action not in CARRYOVER_ACTIONS:
            raise ValueError(f'Invalid carry-over action: {action}')

        to_period = next_period(from_period)
        existing = self.store.carryovers.query_by_composite_key(
            ['category_id', 'from_period'], [category_id, from_period]
        )
        if existing:
            logger.info(f'Carry-over for category {category_id} in {from_period} already processed')
            return {
                'processed': False,
                'category_id': category_id,
                'from_period': from_period,
                'to_period': to_period,
                'remaining_budget': existing['remaining_budget'],
                'carryover': existing,
                'message': 'Carry-over already processed',
            }

        remaining = self.ledger.get_budget_remaining(category_id, from_period)

        if remaining <= 0:
            logger.info(f'Nothing to carry for category {category_id} in {from_period}')
            return {
                'processed': False,
                'category_id': category_id,
                'from_period': from_period,
                'to_period': to_period,
                'remaining_budget': remaining,
                'message': 'Nothing to carry over',
            }

        amount_to_carry = remaining if carried_amount is None else to_amount(carried_amount)
        if amount_to_carry < 0:
            raise ValueError('Carried amount must not be negative')
        if amount_to_carry > remaining:
            logger.warning(
                f'Carry of {amount_to_carry} rejected for category {category_id} in {from_period}: '
                f'{remaining} remaining'
            )
            raise ExcessCarryAmount(category_id, from_period, requested=amount_to_carry, available=remaining)

        next_budget = None
        allocation_id = None
        with self.store.atomic():
            carryover_id = self.store.carryovers.insert({
                'category_id': category_id,
                'from_period': from_period,
                'to_period': to_period,
                'remaining_budget': remaining,
                'carried_amount': amount_to_carry if action == 'carry' else to_amount(0),
                'action': action,
                'note': note,
                'created_at': utc_timestamp(),
            })

            if action == 'carry' and amount_to_carry > 0:
                next_budget = self._add_carried_over(category_id, to_period, amount_to_carry)
                allocation_id = self.store.allocations.insert({
                    'income_id': None,
                    'budget_id': next_budget['id'],
                    'amount': amount_to_carry,
                    'type': 'carryover',
                    'note': f'Carried over from {from_period}',
                    'created_at': utc_timestamp(),
                })

        logger.info(
            f'Processed carry-over ({action}) for category {category_id}: '
            f'{amount_to_carry} of {remaining} from {from_period} to {to_period}'
        )
        return {
            'processed': True,
            'action': action,
            'category_id': category_id,
            'from_period': from_period,
            'to_period': to_period,
            'remaining_budget': remaining,
            'carried_amount': amount_to_carry if action == 'carry' else to_amount(0),
            'carryover': self.store.carryovers.get_by_id(carryover_id),
            'next_budget': next_budget,
            'allocation_id': allocation_id,
        }

    def _add_carried_over(self, category_id: int, period: str, amount) -> Dict:
        """Grow carried_over and total_budget of the period's budget, creating it if needed."""
        budget = self.ledger.get_budget(category_id, period)
        if budget is None:
            return self.ledger.set_budget(category_id, period, 0, amount)

        return self.store.budgets.update(budget['id'], {
            'carried_over': budget['carried_over'] + amount,
            'total_budget': budget['total_budget'] + amount,
            'updated_at': utc_timestamp(),
        })

    def get_categories_with_remaining_budget(self, period: str) -> List[Dict]:
        """Categories with a positive remaining balance, in insertion order."""
        results = []
        for category in self.ledger.get_all_categories():
            remaining = self.ledger.get_budget_remaining(category['id'], period)
            if remaining > 0:
                results.append({
                    'category': category,
                    'remaining': remaining,
                    'breakdown': self.ledger.get_budget_breakdown(category['id'], period),
                })
        return results

    def get_carryovers(self, from_period: str) -> List[Dict]:
        """Settlement decisions already made for a period."""
        return self.store.carryovers.query_by_field('from_period', from_period)

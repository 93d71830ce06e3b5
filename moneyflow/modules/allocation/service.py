"""Allocation service layer: distributes income into category budgets."""
from typing import Dict, List, Optional, Sequence
import logging

from moneyflow.core.money import to_amount
from moneyflow.core.time import prev_period, utc_timestamp
from moneyflow.modules.ledger.service import LedgerService
from moneyflow.modules.ledger.store import LedgerStore

logger = logging.getLogger(__name__)

ALLOCATION_TYPES = ('income', 'carryover')


class AllocationService:
    """Income allocation business logic service."""

    def __init__(self, store: LedgerStore, ledger: Optional[LedgerService] = None):
        self.store = store
        self.ledger = ledger or LedgerService(store)

    def allocate_income_to_budgets(self, income_id: Optional[int], allocations: Sequence[Dict],
                                   allocation_type: str = 'income') -> List[Dict]:
        """Add each entry to its (category, period) budget and record provenance.

        Entries are applied in input order, one budget update and one
        allocation row per entry. The income is then marked allocated without
        checking that the entries add up to its amount.
        """
        if allocation_type not in ALLOCATION_TYPES:
            raise ValueError(f'Invalid allocation type: {allocation_type}')

        results = []
        with self.store.atomic():
            for entry in allocations:
                category_id = entry['category_id']
                period = entry['period']
                amount = to_amount(entry['amount'])
                if amount <= 0:
                    raise ValueError('Allocation amount must be positive')

                budget = self._add_allocated(category_id, period, amount)

                allocation_id = self.store.allocations.insert({
                    'income_id': income_id,
                    'budget_id': budget['id'],
                    'amount': amount,
                    'type': allocation_type,
                    'note': entry.get('note', ''),
                    'created_at': utc_timestamp(),
                })
                results.append({
                    'allocation_id': allocation_id,
                    'budget_id': budget['id'],
                    'category_id': category_id,
                    'amount': amount,
                })

            if income_id is not None:
                self.ledger.mark_income_as_allocated(income_id)

        logger.info(f'Allocated {len(results)} entries from income {income_id} ({allocation_type})')
        return results

    def _add_allocated(self, category_id: int, period: str, amount) -> Dict:
        """Grow budget_amount and total_budget of the period's budget, creating it if needed."""
        budget = self.ledger.get_budget(category_id, period)
        if budget is None:
            return self.ledger.set_budget(category_id, period, amount, 0)

        # total_budget can include subsidy deficits
        return self.store.budgets.update(budget['id'], {
            'budget_amount': budget['budget_amount'] + amount,
            'total_budget': budget['total_budget'] + amount,
            'updated_at': utc_timestamp(),
        })

    def get_allocations_for_income(self, income_id: int) -> List[Dict]:
        return self.store.allocations.query_by_field('income_id', income_id)

    def get_allocations_for_budget(self, budget_id: int) -> List[Dict]:
        return self.store.allocations.query_by_field('budget_id', budget_id)

    def autofill_from_previous_period(self, period: str) -> List[Dict]:
        """Copy last period's nominal budgets into categories still unbudgeted in ``period``."""
        source_period = prev_period(period)
        created = []
        with self.store.atomic():
            for previous in self.ledger.get_budgets_by_period(source_period):
                if self.ledger.get_budget(previous['category_id'], period):
                    continue
                created.append(self.ledger.set_budget(
                    previous['category_id'], period, previous['budget_amount'], 0
                ))

        logger.info(f'Auto-filled {len(created)} budgets for {period} from {source_period}')
        return created

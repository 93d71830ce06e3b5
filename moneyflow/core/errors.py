"""Ledger error taxonomy and global error handlers."""
from decimal import Decimal
from typing import Any, Dict, Optional

from flask import current_app, jsonify, request
import logging

logger = logging.getLogger(__name__)


def _plain(value: Any) -> Any:
    """JSON-friendly value for error context fields."""
    if isinstance(value, Decimal):
        return float(value)
    return value


class LedgerError(Exception):
    """Base class for business-rule violations raised by the ledger engine."""
    code = 'ledger_error'
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def details(self) -> Dict[str, Any]:
        """Structured context fields of the condition."""
        return {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            'code': self.code,
            'message': self.message,
            'details': {key: _plain(value) for key, value in self.details.items()},
        }


class InsufficientBudget(LedgerError):
    """The category cannot cover the expense on its own."""
    code = 'budget_insufficient'
    status_code = 409

    def __init__(self, category_id: int, period: str, required: Decimal, available: Decimal):
        self.category_id = category_id
        self.period = period
        self.required = required
        self.available = available
        super().__init__(
            f'Category {category_id} has {available} available in {period}, {required} required'
        )

    @property
    def details(self):
        return {
            'category_id': self.category_id,
            'period': self.period,
            'required': self.required,
            'available': self.available,
        }


class DonorBudgetInsufficient(LedgerError):
    """The subsidy donor cannot cover the recipient's deficit."""
    code = 'donor_budget_insufficient'
    status_code = 409

    def __init__(self, from_category_id: int, period: str, deficit: Decimal, available: Decimal):
        self.from_category_id = from_category_id
        self.period = period
        self.deficit = deficit
        self.available = available
        super().__init__(
            f'Donor category {from_category_id} has {available} available in {period}, '
            f'deficit is {deficit}'
        )

    @property
    def details(self):
        return {
            'from_category_id': self.from_category_id,
            'period': self.period,
            'deficit': self.deficit,
            'available': self.available,
        }


class ExcessCarryAmount(LedgerError):
    """Requested carry-over exceeds the remaining balance."""
    code = 'excess_carry_amount'

    def __init__(self, category_id: int, period: str, requested: Decimal, available: Decimal):
        self.category_id = category_id
        self.period = period
        self.requested = requested
        self.available = available
        super().__init__(
            f'Cannot carry {requested} from category {category_id} in {period}: '
            f'only {available} remaining'
        )

    @property
    def details(self):
        return {
            'category_id': self.category_id,
            'period': self.period,
            'requested': self.requested,
            'available': self.available,
        }


class InvalidBackupFormat(LedgerError):
    """Backup document is malformed."""
    code = 'invalid_backup_format'

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f'Invalid backup format: {reason}')

    @property
    def details(self):
        return {'reason': self.reason}


class NotFound(LedgerError):
    """Operation references a missing record."""
    code = 'not_found'
    status_code = 404

    def __init__(self, entity: str, entity_id: Optional[int]):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f'{entity} {entity_id} not found')

    @property
    def details(self):
        return {'entity': self.entity, 'entity_id': self.entity_id}


def register_error_handlers(app):
    """Register error handlers for the application."""
    from moneyflow.api.v1.schemas import APIResponse

    @app.errorhandler(LedgerError)
    def ledger_error(error):
        if error.status_code >= 500:
            logger.error(f'Ledger error: {error}')
        else:
            logger.info(f'Rejected request {request.path}: {error.code}')
        payload = error.to_dict()
        return jsonify(APIResponse.error(
            payload['message'], code=payload['code'], details=payload['details']
        )), error.status_code

    @app.errorhandler(404)
    def not_found_error(error):
        return jsonify(APIResponse.error('Not found', code='not_found')), 404

    @app.errorhandler(405)
    def method_not_allowed_error(error):
        return jsonify(APIResponse.error('Method not allowed', code='method_not_allowed')), 405

    @app.errorhandler(500)
    def internal_error(error):
        current_app.logger.error(f'Server Error: {error}')
        return jsonify(APIResponse.error('Internal server error', code='internal_error')), 500

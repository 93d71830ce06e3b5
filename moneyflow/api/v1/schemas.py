"""API v1 schemas for request/response validation."""
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict

from flask import request

from moneyflow.core.time import current_period, parse_year_month


def to_json(value: Any) -> Any:
    """Convert ledger records (Decimal amounts, nested dicts) to JSON-safe values."""
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, dict):
        return {key: to_json(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json(item) for item in value]
    return value


class APIResponse:
    """Standard API response format."""

    @staticmethod
    def success(data: Any = None, message: str = None) -> Dict:
        """Create success response."""
        response = {
            'success': True,
            'timestamp': datetime.utcnow().isoformat()
        }

        if data is not None:
            response['data'] = to_json(data)

        if message:
            response['message'] = message

        return response

    @staticmethod
    def error(message: str, code: str = None, details: Any = None) -> Dict:
        """Create error response."""
        response = {
            'success': False,
            'error': {
                'message': message,
                'timestamp': datetime.utcnow().isoformat()
            }
        }

        if code:
            response['error']['code'] = code

        if details:
            response['error']['details'] = to_json(details)

        return response


# Request validation helpers
class RequestValidator:
    """Request data validation."""

    @staticmethod
    def json_body() -> Dict:
        """Request JSON object, or ValueError when missing."""
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            raise ValueError('No data provided')
        return data

    @staticmethod
    def validate_year_month(ym_string: str) -> tuple:
        """Validate and parse year-month string."""
        try:
            year_month = parse_year_month(ym_string)
            return year_month.to_string(), None
        except ValueError as e:
            return None, str(e)

    @staticmethod
    def period_arg() -> str:
        """Period from the ``ym`` query parameter, defaulting to the current month."""
        ym_param = request.args.get('ym')
        if not ym_param:
            return current_period()
        period, error = RequestValidator.validate_year_month(ym_param)
        if error:
            raise ValueError(f'Invalid year-month: {error}')
        return period

    @staticmethod
    def validate_envelope(data: Dict, partial: bool = False) -> Dict:
        from moneyflow.modules.ledger.schemas import EnvelopeData
        return EnvelopeData.validate(data, partial=partial)

    @staticmethod
    def validate_category(data: Dict, partial: bool = False) -> Dict:
        from moneyflow.modules.ledger.schemas import CategoryData
        return CategoryData.validate(data, partial=partial)

    @staticmethod
    def validate_budget(data: Dict) -> Dict:
        from moneyflow.modules.ledger.schemas import BudgetData
        return BudgetData.validate(data)

    @staticmethod
    def validate_income_create(data: Dict) -> Dict:
        from moneyflow.modules.ledger.schemas import IncomeData
        return IncomeData.validate(data)

    @staticmethod
    def validate_allocations(data: Dict) -> Dict:
        from moneyflow.modules.ledger.schemas import AllocationData
        return AllocationData.validate(data)

    @staticmethod
    def validate_expense_create(data: Dict) -> Dict:
        from moneyflow.modules.ledger.schemas import ExpenseData
        return ExpenseData.validate(data)

    @staticmethod
    def validate_subsidized_expense(data: Dict) -> Dict:
        from moneyflow.modules.ledger.schemas import SubsidizedExpenseData
        return SubsidizedExpenseData.validate(data)

    @staticmethod
    def validate_carryover(data: Dict) -> Dict:
        from moneyflow.modules.ledger.schemas import CarryoverData
        return CarryoverData.validate(data)

"""Ledger module data validation schemas."""
from datetime import datetime
from decimal import Decimal

from moneyflow.core.money import parse_amount
from moneyflow.core.time import YearMonth


def _required(data: dict, fields) -> None:
    for field in fields:
        if field not in data or data[field] is None:
            raise ValueError(f'Field {field} is required')


def _int_field(data: dict, field: str) -> int:
    try:
        return int(data[field])
    except (ValueError, TypeError):
        raise ValueError(f'Invalid {field}')


def _amount_field(data: dict, field: str = 'amount', allow_zero: bool = False) -> Decimal:
    try:
        amount = parse_amount(data[field])
    except (ValueError, TypeError):
        raise ValueError(f'Invalid {field} format')
    if amount < 0 or (amount == 0 and not allow_zero):
        raise ValueError(f'{field} must be positive')
    return amount


def _text_field(data: dict, field: str, max_length: int = 500) -> str:
    value = data.get(field)
    if value is None:
        return ''
    value = str(value).strip()
    if len(value) > max_length:
        raise ValueError(f'{field} must not exceed {max_length} characters')
    return value


def _name_field(data: dict, field: str = 'name') -> str:
    _required(data, [field])
    name = str(data[field]).strip()
    if not (1 <= len(name) <= 100):
        raise ValueError(f'{field} must be 1-100 characters')
    return name


def _date_field(data: dict) -> str:
    if 'date' not in data or not data['date']:
        return datetime.utcnow().date().isoformat()
    try:
        return datetime.strptime(str(data['date']), '%Y-%m-%d').date().isoformat()
    except ValueError:
        raise ValueError('Invalid date format (use YYYY-MM-DD)')


def _period_field(data: dict, field: str = 'period') -> str:
    _required(data, [field])
    try:
        return YearMonth.from_string(str(data[field])).to_string()
    except ValueError:
        raise ValueError(f'Invalid {field} (use YYYY-MM)')


class EnvelopeData:
    """Envelope data validation schema."""

    @staticmethod
    def validate(data: dict, partial: bool = False) -> dict:
        cleaned = {}
        if not partial or 'name' in data:
            cleaned['name'] = _name_field(data)
        if not partial or 'description' in data:
            cleaned['description'] = _text_field(data, 'description', 1000)
        if 'display_order' in data:
            cleaned['display_order'] = _int_field(data, 'display_order')
        elif not partial:
            cleaned['display_order'] = 0
        return cleaned


class CategoryData:
    """Category data validation schema."""

    @staticmethod
    def validate(data: dict, partial: bool = False) -> dict:
        cleaned = EnvelopeData.validate(data, partial=partial)
        if not partial:
            _required(data, ['envelope_id'])
        if 'envelope_id' in data:
            cleaned['envelope_id'] = _int_field(data, 'envelope_id')
        return cleaned


class BudgetData:
    """Budget upsert validation schema."""

    @staticmethod
    def validate(data: dict) -> dict:
        _required(data, ['category_id', 'period', 'budget_amount'])
        return {
            'category_id': _int_field(data, 'category_id'),
            'period': _period_field(data),
            'budget_amount': _amount_field(data, 'budget_amount', allow_zero=True),
            'carried_over': _amount_field(data, 'carried_over', allow_zero=True)
            if data.get('carried_over') is not None else Decimal('0'),
        }


class IncomeData:
    """Income data validation schema."""

    @staticmethod
    def validate(data: dict) -> dict:
        _required(data, ['amount'])
        return {
            'date': _date_field(data),
            'source': _name_field(data, 'source'),
            'amount': _amount_field(data),
            'note': _text_field(data, 'note'),
        }


class AllocationData:
    """Income allocation request validation schema."""

    @staticmethod
    def validate(data: dict) -> dict:
        _required(data, ['allocations'])
        entries = data['allocations']
        if not isinstance(entries, list) or not entries:
            raise ValueError('allocations must be a non-empty list')

        cleaned = []
        for entry in entries:
            if not isinstance(entry, dict):
                raise ValueError('Each allocation must be an object')
            _required(entry, ['category_id', 'period', 'amount'])
            cleaned.append({
                'category_id': _int_field(entry, 'category_id'),
                'period': _period_field(entry),
                'amount': _amount_field(entry),
                'note': _text_field(entry, 'note'),
            })
        return {'allocations': cleaned}


class ExpenseData:
    """Expense data validation schema."""

    @staticmethod
    def validate(data: dict) -> dict:
        _required(data, ['category_id', 'amount'])
        return {
            'date': _date_field(data),
            'category_id': _int_field(data, 'category_id'),
            'amount': _amount_field(data),
            'note': _text_field(data, 'note'),
        }


class SubsidizedExpenseData:
    """Expense-with-subsidy data validation schema."""

    @staticmethod
    def validate(data: dict) -> dict:
        cleaned = ExpenseData.validate(data)
        _required(data, ['from_category_id'])
        cleaned['from_category_id'] = _int_field(data, 'from_category_id')
        if cleaned['from_category_id'] == cleaned['category_id']:
            raise ValueError('A category cannot subsidize itself')
        cleaned['subsidy_note'] = _text_field(data, 'subsidy_note')
        return cleaned


class CarryoverData:
    """Carry-over decision validation schema."""

    VALID_ACTIONS = ['carry', 'reset']

    @staticmethod
    def validate(data: dict) -> dict:
        _required(data, ['category_id', 'from_period', 'action'])
        if data['action'] not in CarryoverData.VALID_ACTIONS:
            raise ValueError('Invalid action')
        cleaned = {
            'category_id': _int_field(data, 'category_id'),
            'from_period': _period_field(data, 'from_period'),
            'action': data['action'],
            'carried_amount': None,
            'note': _text_field(data, 'note'),
        }
        if data.get('carried_amount') is not None:
            cleaned['carried_amount'] = _amount_field(data, 'carried_amount', allow_zero=True)
        return cleaned

"""Ledger API endpoints: envelopes, categories, budgets, incomes, expenses, carry-overs."""
from flask import request

from moneyflow.modules.allocation.service import AllocationService
from moneyflow.modules.carryover.service import CarryoverService
from moneyflow.modules.ledger.store import get_store
from .schemas import APIResponse, RequestValidator
from . import api_v1_bp, bad_request, ledger_service


# ===== Envelopes =====

@api_v1_bp.route('/envelopes')
def get_envelopes():
    """List envelopes in display order."""
    return APIResponse.success(ledger_service().get_all_envelopes())


@api_v1_bp.route('/envelopes', methods=['POST'])
def create_envelope():
    try:
        data = RequestValidator.validate_envelope(RequestValidator.json_body())
    except ValueError as e:
        return bad_request(e)

    envelope = ledger_service().create_envelope(**data)
    return APIResponse.success(envelope, "Envelope created successfully"), 201


@api_v1_bp.route('/envelopes/<int:envelope_id>', methods=['PATCH'])
def update_envelope(envelope_id):
    try:
        data = RequestValidator.validate_envelope(RequestValidator.json_body(), partial=True)
    except ValueError as e:
        return bad_request(e)

    envelope = ledger_service().update_envelope(envelope_id, **data)
    return APIResponse.success(envelope, "Envelope updated successfully")


@api_v1_bp.route('/envelopes/<int:envelope_id>', methods=['DELETE'])
def delete_envelope(envelope_id):
    """Delete an envelope and everything recorded under its categories."""
    ledger_service().delete_envelope(envelope_id)
    return APIResponse.success(message="Envelope deleted successfully")


# ===== Categories =====

@api_v1_bp.route('/categories')
def get_categories():
    """List categories, optionally filtered by envelope."""
    envelope_id = request.args.get('envelope_id', type=int)
    ledger = ledger_service()
    if envelope_id:
        categories = ledger.get_categories_by_envelope(envelope_id)
    else:
        categories = ledger.get_all_categories()
    return APIResponse.success(categories)


@api_v1_bp.route('/categories', methods=['POST'])
def create_category():
    try:
        data = RequestValidator.validate_category(RequestValidator.json_body())
    except ValueError as e:
        return bad_request(e)

    category = ledger_service().create_category(**data)
    return APIResponse.success(category, "Category created successfully"), 201


@api_v1_bp.route('/categories/<int:category_id>', methods=['PATCH'])
def update_category(category_id):
    try:
        data = RequestValidator.validate_category(RequestValidator.json_body(), partial=True)
    except ValueError as e:
        return bad_request(e)

    category = ledger_service().update_category(category_id, **data)
    return APIResponse.success(category, "Category updated successfully")


@api_v1_bp.route('/categories/<int:category_id>', methods=['DELETE'])
def delete_category(category_id):
    ledger_service().delete_category(category_id)
    return APIResponse.success(message="Category deleted successfully")


@api_v1_bp.route('/categories/<int:category_id>/breakdown')
def get_category_breakdown(category_id):
    """Budget breakdown of a category for a period."""
    try:
        period = RequestValidator.period_arg()
    except ValueError as e:
        return bad_request(e)

    ledger = ledger_service()
    ledger.get_category(category_id)
    return APIResponse.success(ledger.get_budget_breakdown(category_id, period))


# ===== Budgets =====

@api_v1_bp.route('/budgets')
def get_budgets():
    try:
        period = RequestValidator.period_arg()
    except ValueError as e:
        return bad_request(e)

    return APIResponse.success(ledger_service().get_budgets_by_period(period))


@api_v1_bp.route('/budgets', methods=['PUT'])
def set_budget():
    """Create or replace the budget of a category for a period."""
    try:
        data = RequestValidator.validate_budget(RequestValidator.json_body())
    except ValueError as e:
        return bad_request(e)

    ledger = ledger_service()
    ledger.get_category(data['category_id'])
    budget = ledger.set_budget(**data)
    return APIResponse.success(budget, "Budget saved successfully")


@api_v1_bp.route('/budgets/autofill', methods=['POST'])
def autofill_budgets():
    """Copy last period's budgets into the requested period."""
    try:
        period = RequestValidator.period_arg()
    except ValueError as e:
        return bad_request(e)

    created = AllocationService(get_store()).autofill_from_previous_period(period)
    return APIResponse.success(created, f"Created {len(created)} budgets")


# ===== Incomes =====

@api_v1_bp.route('/incomes')
def get_incomes():
    try:
        period = RequestValidator.period_arg()
    except ValueError as e:
        return bad_request(e)

    ledger = ledger_service()
    data = {
        'incomes': ledger.get_incomes_by_period(period),
        'total': ledger.get_total_income(period),
        'period': period,
    }
    return APIResponse.success(data)


@api_v1_bp.route('/incomes', methods=['POST'])
def create_income():
    try:
        data = RequestValidator.validate_income_create(RequestValidator.json_body())
    except ValueError as e:
        return bad_request(e)

    income = ledger_service().create_income(**data)
    return APIResponse.success(income, "Income created successfully"), 201


@api_v1_bp.route('/incomes/<int:income_id>/allocations', methods=['POST'])
def allocate_income(income_id):
    """Distribute an income over category budgets."""
    try:
        data = RequestValidator.validate_allocations(RequestValidator.json_body())
    except ValueError as e:
        return bad_request(e)

    store = get_store()
    service = AllocationService(store)
    service.ledger.get_income(income_id)
    for entry in data['allocations']:
        service.ledger.get_category(entry['category_id'])

    results = service.allocate_income_to_budgets(income_id, data['allocations'])
    return APIResponse.success(results, "Income allocated successfully"), 201


# ===== Expenses =====

@api_v1_bp.route('/expenses')
def get_expenses():
    """Get expenses for a period, optionally for one category."""
    try:
        period = RequestValidator.period_arg()
    except ValueError as e:
        return bad_request(e)

    category_id = request.args.get('category_id', type=int)
    ledger = ledger_service()
    if category_id:
        expenses = ledger.get_expenses_by_category(category_id, period)
    else:
        expenses = ledger.get_expenses_by_period(period)

    data = {
        'expenses': expenses,
        'filters': {
            'period': period,
            'category_id': category_id
        }
    }
    return APIResponse.success(data)


@api_v1_bp.route('/expenses', methods=['POST'])
def create_expense():
    """Record an expense covered by the category's own remaining budget."""
    try:
        data = RequestValidator.validate_expense_create(RequestValidator.json_body())
    except ValueError as e:
        return bad_request(e)

    expense = ledger_service().create_expense(**data)
    return APIResponse.success(expense, "Expense created successfully"), 201


@api_v1_bp.route('/expenses/subsidized', methods=['POST'])
def create_subsidized_expense():
    """Record an expense whose deficit is covered by another category."""
    try:
        data = RequestValidator.validate_subsidized_expense(RequestValidator.json_body())
    except ValueError as e:
        return bad_request(e)

    ledger = ledger_service()
    ledger.get_category(data['from_category_id'])
    result = ledger.create_expense_with_subsidy(**data)
    return APIResponse.success(result, "Expense created with subsidy"), 201


@api_v1_bp.route('/expenses/<int:expense_id>', methods=['DELETE'])
def delete_expense(expense_id):
    ledger_service().delete_expense(expense_id)
    return APIResponse.success(message="Expense deleted successfully")


# ===== Carry-overs =====

@api_v1_bp.route('/carryovers/candidates')
def get_carryover_candidates():
    """Categories that still hold budget at the end of a period."""
    try:
        period = RequestValidator.period_arg()
    except ValueError as e:
        return bad_request(e)

    service = CarryoverService(get_store())
    data = {
        'period': period,
        'candidates': service.get_categories_with_remaining_budget(period),
        'processed': service.get_carryovers(period),
    }
    return APIResponse.success(data)


@api_v1_bp.route('/carryovers', methods=['POST'])
def process_carryover():
    try:
        data = RequestValidator.validate_carryover(RequestValidator.json_body())
    except ValueError as e:
        return bad_request(e)

    service = CarryoverService(get_store())
    service.ledger.get_category(data['category_id'])
    result = service.process_carry_over(**data)
    status = 201 if result['processed'] else 200
    return APIResponse.success(result, result.get('message')), status

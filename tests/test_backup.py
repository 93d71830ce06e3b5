"""Backup export/import tests."""
import json

import pytest

from moneyflow.core.errors import InvalidBackupFormat

TOP_LEVEL_KEYS = [
    'version', 'exportDate', 'envelopes', 'categories', 'budgets', 'incomes', 'allocations',
    'expenses', 'subsidies', 'carryovers', 'monthlySnapshots',
]


@pytest.fixture
def populated(ledger, allocation, carryover, reports, meals, household):
    income = ledger.create_income('2025-03-01', 'Salary', 2000000)
    allocation.allocate_income_to_budgets(income['id'], [
        {'category_id': meals['id'], 'period': '2025-03', 'amount': 800000},
        {'category_id': household['id'], 'period': '2025-03', 'amount': 500000},
    ])
    ledger.create_expense('2025-03-04', meals['id'], 300000)
    ledger.create_expense_with_subsidy('2025-03-08', meals['id'], 700000, household['id'])
    carryover.process_carry_over(household['id'], '2025-03', 'carry', 100000)
    reports.save_monthly_snapshot('2025-03')


def test_export_document_shape(backup, populated):
    data = backup.export_all_data()
    assert list(data) == TOP_LEVEL_KEYS
    assert data['version'] == '1.0'
    assert len(data['subsidies']) == 1
    assert len(data['monthlySnapshots']) == 1


def test_round_trip(backup, ledger, populated):
    data = backup.export_all_data()
    remaining = {c['id']: ledger.get_budget_remaining(c['id'], '2025-03') for c in ledger.get_all_categories()}

    # through JSON, the way documents are stored on disk
    document = json.loads(json.dumps(data, default=str))
    ledger.create_envelope('Scratch')
    counts = backup.import_all_data(document)

    assert counts['expenses'] == 2
    restored = backup.export_all_data()
    for key in TOP_LEVEL_KEYS[2:]:
        assert restored[key] == data[key]
    for category_id, value in remaining.items():
        assert ledger.get_budget_remaining(category_id, '2025-03') == value


def test_import_replaces_existing_data(backup, ledger, populated):
    counts = backup.import_all_data({'version': '1.0', 'envelopes': []})
    assert counts['envelopes'] == 0
    assert ledger.get_all_envelopes() == []
    assert ledger.get_all_categories() == []


@pytest.mark.parametrize('document', [
    None,
    [],
    {'envelopes': []},
    {'version': '1.0'},
    {'version': '1.0', 'envelopes': [], 'budgets': 'nope'},
])
def test_invalid_documents_rejected(backup, ledger, populated, document):
    with pytest.raises(InvalidBackupFormat):
        backup.import_all_data(document)
    assert len(ledger.get_all_categories()) == 2


def test_bad_record_rolls_back(backup, ledger, populated):
    document = {'version': '1.0', 'envelopes': [{'id': 1, 'name': 'X', 'mood': 'sad'}]}
    with pytest.raises(InvalidBackupFormat):
        backup.import_all_data(document)
    assert len(ledger.get_all_categories()) == 2

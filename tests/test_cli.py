"""CLI command tests."""
import json

import pytest


@pytest.fixture
def runner(app):
    return app.test_cli_runner()


@pytest.fixture
def month(ledger, meals):
    ledger.create_income('2025-03-01', 'Salary', 1000000)
    ledger.set_budget(meals['id'], '2025-03', 400000)
    ledger.create_expense('2025-03-02', meals['id'], 150000)


def test_summary(runner, month):
    result = runner.invoke(args=['ledger', 'summary', '--ym', '2025-03'])
    assert result.exit_code == 0
    assert 'Total income: Rp 1,000,000' in result.output
    assert 'Remaining: Rp 250,000' in result.output


def test_review_and_carry_over(runner, ledger, meals, month):
    review = runner.invoke(args=['ledger', 'review', '--ym', '2025-03'])
    assert 'Meals: Rp 250,000' in review.output

    result = runner.invoke(args=[
        'ledger', 'carry-over', '--category-id', str(meals['id']), '--ym', '2025-03', '--amount', '100000',
    ])
    assert result.exit_code == 0
    assert ledger.get_budget(meals['id'], '2025-04')['carried_over'] == 100000


def test_carry_over_rejects_excess(runner, meals, month):
    result = runner.invoke(args=[
        'ledger', 'carry-over', '--category-id', str(meals['id']), '--ym', '2025-03', '--amount', '900000',
    ])
    assert result.exit_code != 0
    assert 'Cannot carry' in result.output


def test_autofill_and_snapshot(runner, reports, month):
    assert 'Created 1 budgets' in runner.invoke(args=['ledger', 'autofill', '--ym', '2025-04']).output
    result = runner.invoke(args=['ledger', 'snapshot', '--ym', '2025-03'])
    assert result.exit_code == 0
    assert reports.get_monthly_snapshot('2025-03') is not None


def test_export_import(runner, ledger, month, tmp_path):
    path = tmp_path / 'backup.json'
    assert runner.invoke(args=['ledger', 'export', str(path)]).exit_code == 0
    assert json.loads(path.read_text())['version'] == '1.0'

    ledger.create_envelope('Scratch')
    result = runner.invoke(args=['ledger', 'import', str(path), '--yes'])
    assert result.exit_code == 0
    assert [e['name'] for e in ledger.get_all_envelopes()] == ['Daily']

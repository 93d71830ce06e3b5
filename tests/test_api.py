"""JSON API v1 tests."""
import pytest


def _post(client, url, payload):
    return client.post(url, json=payload)


@pytest.fixture
def categories(client):
    envelope = _post(client, '/api/v1/envelopes', {'name': 'Daily'}).get_json()['data']
    meals = _post(client, '/api/v1/categories', {'envelope_id': envelope['id'], 'name': 'Meals'}).get_json()['data']
    household = _post(client, '/api/v1/categories', {
        'envelope_id': envelope['id'], 'name': 'Household', 'display_order': 1,
    }).get_json()['data']
    client.put('/api/v1/budgets', json={'category_id': meals['id'], 'period': '2025-02', 'budget_amount': 3000000})
    client.put('/api/v1/budgets', json={'category_id': household['id'], 'period': '2025-02', 'budget_amount': 1000000})
    return envelope, meals, household


def test_create_envelope(client):
    response = _post(client, '/api/v1/envelopes', {'name': 'Bills', 'description': 'Monthly'})
    assert response.status_code == 201
    body = response.get_json()
    assert body['success'] is True
    assert body['data']['name'] == 'Bills'

    listing = client.get('/api/v1/envelopes').get_json()
    assert [e['name'] for e in listing['data']] == ['Bills']


def test_validation_error(client):
    response = _post(client, '/api/v1/envelopes', {'description': 'no name'})
    assert response.status_code == 400
    assert response.get_json()['success'] is False
    assert 'name' in response.get_json()['error']['message']


def test_missing_category_is_404(client):
    response = client.get('/api/v1/categories/77/breakdown?ym=2025-02')
    assert response.status_code == 404
    assert response.get_json()['error']['code'] == 'not_found'


def test_invalid_period(client, categories):
    response = client.get('/api/v1/budgets?ym=2025-13')
    assert response.status_code == 400


def test_insufficient_budget_is_409(client, categories):
    _, meals, _ = categories
    response = _post(client, '/api/v1/expenses', {
        'date': '2025-02-05', 'category_id': meals['id'], 'amount': 3200000, 'note': 'lunch',
    })
    assert response.status_code == 409
    error = response.get_json()['error']
    assert error['code'] == 'budget_insufficient'
    assert error['details']['required'] == 3200000
    assert error['details']['available'] == 3000000


def test_subsidized_expense(client, categories):
    _, meals, household = categories
    response = _post(client, '/api/v1/expenses/subsidized', {
        'date': '2025-02-05', 'category_id': meals['id'], 'amount': 3200000,
        'from_category_id': household['id'], 'note': 'lunch', 'subsidy_note': 'borrow',
    })
    assert response.status_code == 201
    data = response.get_json()['data']
    assert data['deficit'] == 200000
    assert data['expense']['is_over_budget'] is True

    breakdown = client.get(f"/api/v1/categories/{household['id']}/breakdown?ym=2025-02").get_json()['data']
    assert breakdown['subsidy_given'] == 200000
    assert breakdown['remaining'] == 800000

    expenses = client.get('/api/v1/expenses?ym=2025-02').get_json()['data']
    assert len(expenses['expenses']) == 1

    deleted = client.delete(f"/api/v1/expenses/{data['expense_id']}")
    assert deleted.status_code == 200


def test_self_subsidy_rejected(client, categories):
    _, meals, _ = categories
    response = _post(client, '/api/v1/expenses/subsidized', {
        'category_id': meals['id'], 'amount': 10, 'from_category_id': meals['id'],
    })
    assert response.status_code == 400


def test_income_allocation(client, categories):
    _, meals, _ = categories
    income = _post(client, '/api/v1/incomes', {'date': '2025-03-01', 'source': 'Salary', 'amount': 5000000})
    income_id = income.get_json()['data']['id']

    response = _post(client, f'/api/v1/incomes/{income_id}/allocations', {
        'allocations': [{'category_id': meals['id'], 'period': '2025-03', 'amount': 1000000}],
    })
    assert response.status_code == 201

    budgets = client.get('/api/v1/budgets?ym=2025-03').get_json()['data']
    assert budgets[0]['total_budget'] == 1000000

    incomes = client.get('/api/v1/incomes?ym=2025-03').get_json()['data']
    assert incomes['incomes'][0]['is_allocated'] is True
    assert incomes['total'] == 5000000


def test_allocation_to_missing_income(client, categories):
    _, meals, _ = categories
    response = _post(client, '/api/v1/incomes/99/allocations', {
        'allocations': [{'category_id': meals['id'], 'period': '2025-03', 'amount': 1000}],
    })
    assert response.status_code == 404


def test_carryover_flow(client, categories):
    _, meals, _ = categories
    candidates = client.get('/api/v1/carryovers/candidates?ym=2025-02').get_json()['data']
    assert len(candidates['candidates']) == 2

    excess = _post(client, '/api/v1/carryovers', {
        'category_id': meals['id'], 'from_period': '2025-02', 'action': 'carry', 'carried_amount': 4000000,
    })
    assert excess.status_code == 400
    assert excess.get_json()['error']['code'] == 'excess_carry_amount'

    response = _post(client, '/api/v1/carryovers', {
        'category_id': meals['id'], 'from_period': '2025-02', 'action': 'carry', 'carried_amount': 500000,
    })
    assert response.status_code == 201
    assert response.get_json()['data']['next_budget']['carried_over'] == 500000


def test_autofill(client, categories):
    response = client.post('/api/v1/budgets/autofill?ym=2025-03')
    assert response.status_code == 200
    assert len(response.get_json()['data']) == 2


def test_dashboard_and_snapshot(client, categories):
    envelope, _, _ = categories
    dashboard = client.get('/api/v1/dashboard?ym=2025-02').get_json()['data']
    assert dashboard['summary']['total_budget'] == 4000000
    assert dashboard['envelopes'][0]['total'] == 4000000

    card = client.get(f"/api/v1/envelopes/{envelope['id']}/card?ym=2025-02").get_json()['data']
    assert len(card['categories']) == 2

    assert client.get('/api/v1/snapshots/2025-02').status_code == 404
    assert client.post('/api/v1/snapshots?ym=2025-02').status_code == 201
    snapshot = client.get('/api/v1/snapshots/2025-02').get_json()['data']
    assert snapshot['total_budget'] == 4000000


def test_update_and_delete(client, categories):
    envelope, meals, _ = categories
    response = client.patch(f"/api/v1/categories/{meals['id']}", json={'name': 'Food'})
    assert response.get_json()['data']['name'] == 'Food'

    assert client.delete(f"/api/v1/categories/{meals['id']}").status_code == 200
    assert client.delete(f"/api/v1/envelopes/{envelope['id']}").status_code == 200
    assert client.get('/api/v1/categories').get_json()['data'] == []


def test_backup_endpoints(client, categories):
    exported = client.get('/api/v1/backup').get_json()['data']
    assert exported['version'] == '1.0'
    assert len(exported['budgets']) == 2

    response = _post(client, '/api/v1/backup', exported)
    assert response.status_code == 200
    assert response.get_json()['data']['categories'] == 2

    invalid = _post(client, '/api/v1/backup', {'envelopes': []})
    assert invalid.status_code == 400
    assert invalid.get_json()['error']['code'] == 'invalid_backup_format'


def test_backup_response_body_can_be_imported(client, categories):
    exported = client.get('/api/v1/backup').get_json()
    client.post('/api/v1/envelopes', json={'name': 'Scratch'})

    response = client.post('/api/v1/backup', json=exported)

    assert response.status_code == 200
    assert response.get_json()['data']['envelopes'] == 1
    assert [e['name'] for e in client.get('/api/v1/envelopes').get_json()['data']] == ['Daily']

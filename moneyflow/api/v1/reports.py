"""Reporting API endpoints."""
from moneyflow.core.time import parse_year_month
from moneyflow.modules.ledger.store import get_store
from moneyflow.modules.reports.service import ReportService
from .schemas import APIResponse, RequestValidator
from . import api_v1_bp, bad_request


@api_v1_bp.route('/dashboard')
def dashboard():
    """Period summary with per-envelope totals."""
    try:
        period = RequestValidator.period_arg()
    except ValueError as e:
        return bad_request(e)

    service = ReportService(get_store())
    data = {
        'summary': service.get_dashboard_summary(period),
        'envelopes': service.get_envelope_totals(period),
        'budgets': service.get_period_budgets(period),
    }
    return APIResponse.success(data)


@api_v1_bp.route('/envelopes/<int:envelope_id>/card')
def envelope_card(envelope_id):
    try:
        period = RequestValidator.period_arg()
    except ValueError as e:
        return bad_request(e)

    return APIResponse.success(ReportService(get_store()).get_envelope_card(envelope_id, period))


@api_v1_bp.route('/snapshots', methods=['POST'])
def save_snapshot():
    """Store the dashboard summary of a period."""
    try:
        period = RequestValidator.period_arg()
    except ValueError as e:
        return bad_request(e)

    snapshot = ReportService(get_store()).save_monthly_snapshot(period)
    return APIResponse.success(snapshot, "Snapshot saved successfully"), 201


@api_v1_bp.route('/snapshots/<period>')
def get_snapshot(period):
    try:
        period = parse_year_month(period).to_string()
    except ValueError as e:
        return bad_request(e)

    snapshot = ReportService(get_store()).get_monthly_snapshot(period)
    if snapshot is None:
        return APIResponse.error(f"No snapshot for {period}", code='not_found'), 404
    return APIResponse.success(snapshot)

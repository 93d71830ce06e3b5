"""Backup API endpoints."""
from flask import request

from moneyflow.modules.backup.service import BackupService
from moneyflow.modules.ledger.store import get_store
from .schemas import APIResponse
from . import api_v1_bp


@api_v1_bp.route('/backup')
def export_backup():
    """Full ledger export in the backup document format."""
    return APIResponse.success(BackupService(get_store()).export_all_data())


@api_v1_bp.route('/backup', methods=['POST'])
def import_backup():
    """Replace the whole ledger with a backup document.

    Accepts the bare document or the response body of GET /backup.
    Malformed documents are rejected by the service before anything is cleared.
    """
    data = request.get_json(silent=True)
    if isinstance(data, dict) and data.get('success') is True and isinstance(data.get('data'), dict):
        data = data['data']

    counts = BackupService(get_store()).import_all_data(data)
    return APIResponse.success(counts, "Backup imported successfully")

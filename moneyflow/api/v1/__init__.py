from flask import Blueprint, current_app, request

from moneyflow.modules.ledger.service import LedgerService
from moneyflow.modules.ledger.store import get_store
from .schemas import APIResponse

api_v1_bp = Blueprint('api_v1', __name__, url_prefix='/api/v1')


def ledger_service() -> LedgerService:
    """Ledger service bound to the request's store."""
    return LedgerService(get_store())


def bad_request(error: ValueError):
    current_app.logger.info(f"Invalid request to {request.path}: {error}")
    return APIResponse.error(str(error), code='invalid_request'), 400


# Import API endpoints to register them
from . import budget, reports, backup  # noqa: E402,F401

from datetime import datetime

from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import jwt_required

from ..billing import (
    PaymentRecorder,
    SQLAlchemyBillingStore,
    ValidationError,
    aggregate_history,
    process_overdue_payments,
)
from ..utils.auth_utils import require_role

bp = Blueprint("payments", __name__)

MANAGER_ROLES = ['super_admin', 'admin', 'fleet_manager']
ADMIN_ROLES = ['super_admin', 'admin']


def build_recorder():
    """Recorder wired to the app's database and configured default rate."""
    return PaymentRecorder(
        SQLAlchemyBillingStore(),
        default_daily_rate=current_app.config.get("DEFAULT_DAILY_LATE_FEE"),
    )


def _parse_datetime(value, field):
    if value in (None, ""):
        return None
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        raise ValidationError(f"Invalid {field}. Use ISO 8601, e.g. 2024-03-06 or 2024-03-06T10:30:00",
                              field=field)


@bp.get("/agreements/<int:agreement_id>/payments/quote")
@jwt_required()
def quote_payment(agreement_id):
    """Due amount for the current cycle: rent plus the applicable late fee"""
    as_of = _parse_datetime(request.args.get("as_of"), "as_of")
    quote = build_recorder().quote(agreement_id, as_of=as_of)
    return jsonify(quote.serialize()), 200


@bp.post("/agreements/<int:agreement_id>/payments")
@jwt_required()
def record_payment(agreement_id):
    """Record a payment, accruing this month's late fee at most once"""
    data = request.get_json(silent=True) or {}

    for field in ('amount_paid', 'payment_method'):
        if data.get(field) in (None, ""):
            raise ValidationError(f"{field} is required", field=field)

    payment = build_recorder().record_payment(
        agreement_id,
        amount_paid=data['amount_paid'],
        payment_method=data['payment_method'],
        description=data.get('description', ''),
        payment_date=_parse_datetime(data.get('payment_date'), 'payment_date'),
    )
    return jsonify(payment.serialize()), 201


@bp.get("/agreements/<int:agreement_id>/payments")
@jwt_required()
def payment_history(agreement_id):
    """Payment history grouped by month, newest first"""
    store = SQLAlchemyBillingStore()
    store.get_agreement_billing(agreement_id)  # 404 for unknown agreements
    history = aggregate_history(store.list_payment_history(agreement_id))
    return jsonify(history.serialize()), 200


@bp.delete("/payments/<int:payment_id>")
@jwt_required()
@require_role(MANAGER_ROLES)
def delete_payment(payment_id):
    build_recorder().delete_payment(payment_id)
    return jsonify({"message": "Payment deleted successfully"}), 200


@bp.post("/billing/process-overdue")
@jwt_required()
@require_role(ADMIN_ROLES)
def process_overdue():
    """Assess the monthly late fee for active agreements without a payment"""
    data = request.get_json(silent=True) or {}
    run_date = _parse_datetime(data.get("date"), "date")
    result = process_overdue_payments(
        SQLAlchemyBillingStore(),
        run_date=run_date,
        default_daily_rate=current_app.config.get("DEFAULT_DAILY_LATE_FEE"),
    )
    return jsonify(result), 200

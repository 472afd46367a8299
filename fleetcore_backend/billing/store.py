"""
Persistence collaborator for the billing engine.

``BillingStore`` is the contract the engine talks to; ``SQLAlchemyBillingStore``
implements it on top of the Flask-SQLAlchemy session. Each write method is a
single transaction: it either commits everything or rolls back and raises.
"""
import logging
from decimal import Decimal
from typing import NamedTuple, Optional

from sqlalchemy.exc import SQLAlchemyError

from fleetcore_backend.extensions import db
from fleetcore_backend.models import Agreement, AuditLog, LateFeeRecord, PaymentKind, PaymentRecord, RegularPayment
from .errors import AgreementNotFound, FeeLookupError, PaymentNotFound, RecordingError
from .history import AUTO_GENERATED_MARKER, HISTORICAL_MARKER

log = logging.getLogger(__name__)


class AgreementBilling(NamedTuple):
    agreement_id: int
    rent_amount: Decimal
    daily_late_fee: Optional[Decimal]
    rent_due_day: int


class BillingStore:
    def get_agreement_billing(self, agreement_id) -> AgreementBilling:
        raise NotImplementedError

    def find_late_fee_record(self, agreement_id, anchor):
        raise NotImplementedError

    def record_payment_with_late_fee(self, agreement_id, amount_due, amount_paid, balance,
                                     payment_method, description, payment_date,
                                     late_fine_amount, days_overdue, original_due_date,
                                     existing_fee_id=None):
        try:
            fee_record_id = existing_fee_id
            if existing_fee_id is not None:
                if self.session.get(LateFeeRecord, existing_fee_id) is None:
                    raise RecordingError(
                        f"late fee record {existing_fee_id} no longer exists",
                        agreement_id=agreement_id,
                    )
            elif late_fine_amount > 0:
                fee_record, created = self._upsert_late_fee(
                    agreement_id=agreement_id,
                    amount_due=amount_due,
                    amount_paid=Decimal("0"),
                    balance=amount_due,
                    late_fine_amount=late_fine_amount,
                    days_overdue=days_overdue,
                    payment_date=None,
                    original_due_date=original_due_date,
                    description=f"Late payment fee for {original_due_date:%B %Y}",
                )
                if not created and fee_record.late_fine_amount != late_fine_amount:
                    # The persisted fee wins over the one computed by the caller.
                    log.warning(
                        "Agreement %s already has a late fee of %s for %s; using it instead of %s",
                        agreement_id, fee_record.late_fine_amount, original_due_date.date(), late_fine_amount,
                    )
                    adjustment = fee_record.late_fine_amount - late_fine_amount
                    late_fine_amount = fee_record.late_fine_amount
                    amount_due += adjustment
                    balance += adjustment
                fee_record_id = fee_record.id

            if fee_record_id is not None:
                self._settle_late_fee(fee_record_id, amount_paid)

            payment = RegularPayment(
                agreement_id=agreement_id,
                amount_due=amount_due,
                amount_paid=amount_paid,
                balance=balance,
                payment_method=payment_method,
                description=description,
                payment_date=payment_date,
                late_fine_amount=late_fine_amount,
                days_overdue=days_overdue,
                original_due_date=original_due_date,
                late_fee_record_id=fee_record_id,
            )
            self.session.add(payment)
            self.session.commit()
            return payment
        except RecordingError:
            self.session.rollback()
            raise
        except SQLAlchemyError as e:
            self.session.rollback()
            raise RecordingError(f"payment could not be recorded: {e}", agreement_id=agreement_id) from e

    def create_late_fee_record(self, **fields):
        try:
            record, created = self._upsert_late_fee(**fields)
            self.session.commit()
            return record, created
        except SQLAlchemyError as e:
            self.session.rollback()
            raise RecordingError(
                f"late fee could not be recorded: {e}",
                agreement_id=fields.get("agreement_id"),
            ) from e

    def delete_payment_record(self, payment_id, changes):
        record = self.session.get(PaymentRecord, payment_id)
        if record is None:
            raise PaymentNotFound(f"payment {payment_id} not found", payment_id=payment_id)
        try:
            self.session.add(AuditLog(
                entity_type='payment',
                entity_id=str(payment_id),
                action='delete_payment',
                changes={**record.serialize(), **changes},
            ))
            self.session.flush()
            self.session.delete(record)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise RecordingError(f"payment {payment_id} could not be deleted: {e}", payment_id=payment_id) from e

    def migrate_legacy_markers(self):
        """Copy the free-text description markers into the explicit flag columns."""
        try:
            auto = (
                self.session.query(PaymentRecord)
                .filter(
                    PaymentRecord.is_auto_generated.is_(False),
                    PaymentRecord.description.contains(AUTO_GENERATED_MARKER, autoescape=True),
                )
                .update({PaymentRecord.is_auto_generated: True}, synchronize_session=False)
            )
            historical = (
                self.session.query(PaymentRecord)
                .filter(
                    PaymentRecord.is_historical.is_(False),
                    PaymentRecord.description.icontains(HISTORICAL_MARKER, autoescape=True),
                )
                .update({PaymentRecord.is_historical: True}, synchronize_session=False)
            )
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise RecordingError(f"marker migration failed: {e}") from e
        log.info("Migrated legacy markers: %s auto-generated, %s historical", auto, historical)
        return {"auto_generated": auto, "historical": historical}

    # ---------- helpers ----------

    def _late_fee_for_period(self, agreement_id, period):
        return (
            self.session.query(LateFeeRecord)
            .filter(
                LateFeeRecord.agreement_id == agreement_id,
                LateFeeRecord.late_fee_period == period,
            )
            .first()
        )

    def _settle_late_fee(self, fee_record_id, amount_paid):
        """Apply a payment to the fee row it consumes, in the caller's transaction."""
        self.session.query(PaymentRecord).filter(PaymentRecord.id == fee_record_id).update(
            {
                PaymentRecord.amount_paid: PaymentRecord.amount_paid + amount_paid,
                PaymentRecord.balance: PaymentRecord.balance - amount_paid,
            },
            synchronize_session=False,
        )

    def _upsert_late_fee(self, **fields):
        """
        Insert the fee row for ``(agreement_id, original_due_date)`` unless one
        exists. Returns ``(record, created)``; does not commit.
        """
        period = fields["original_due_date"].date()
        insert = _conflict_insert(self.session.get_bind().dialect.name)
        if insert is None:
            existing = self._late_fee_for_period(fields["agreement_id"], period)
            if existing is not None:
                return existing, False
            record = LateFeeRecord(**fields)
            self.session.add(record)
            self.session.flush()
            return record, True

        values = dict(fields, kind=PaymentKind.LATE_PAYMENT_FEE, late_fee_period=period)
        stmt = (
            insert(PaymentRecord.__table__)
            .values(**values)
            .on_conflict_do_nothing(index_elements=["agreement_id", "late_fee_period"])
        )
        result = self.session.execute(stmt)
        created = result.rowcount == 1
        record = self._late_fee_for_period(fields["agreement_id"], period)
        if created:
            log.info("Assessed late fee %s for agreement %s period %s",
                     fields["late_fine_amount"], fields["agreement_id"], period)
        return record, created


def _conflict_insert(dialect_name):
    if dialect_name == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
        return insert
    if dialect_name == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
        return insert
    return None

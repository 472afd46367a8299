from . import db
from datetime import datetime


class PaymentKind:
    RENT_PAYMENT = 'RENT_PAYMENT'
    LATE_PAYMENT_FEE = 'LATE_PAYMENT_FEE'


class PaymentRecord(db.Model):
    """
    One row of an agreement's payment ledger.

    Rows are either a ``RegularPayment`` (money received against a cycle) or a
    ``LateFeeRecord`` (the fee assessed for a cycle), discriminated by ``kind``.
    ``late_fee_period`` is only populated for fee rows, so the unique
    constraint allows a single assessed fee per agreement and month while
    leaving regular payments unconstrained.
    """
    __tablename__ = 'payment_records'
    __table_args__ = (
        db.UniqueConstraint('agreement_id', 'late_fee_period', name='uq_payment_records_late_fee_period'),
    )

    id = db.Column(db.Integer, primary_key=True)
    agreement_id = db.Column(db.Integer, db.ForeignKey('agreements.id'), nullable=False, index=True)
    kind = db.Column(db.String(30), nullable=False, index=True)

    # Ledger
    amount_due = db.Column(db.Numeric(10, 2), nullable=False)
    amount_paid = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    balance = db.Column(db.Numeric(10, 2), nullable=False)
    late_fine_amount = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    days_overdue = db.Column(db.Integer, nullable=False, default=0)

    # Dates
    payment_date = db.Column(db.DateTime, nullable=True, index=True)
    original_due_date = db.Column(db.DateTime, nullable=True)
    late_fee_period = db.Column(db.Date, nullable=True)

    # Details
    payment_method = db.Column(db.String(50), nullable=True)  # 'Cash', 'WireTransfer', 'Cheque', ...
    description = db.Column(db.Text, nullable=True)
    is_auto_generated = db.Column(db.Boolean, nullable=False, default=False)
    is_historical = db.Column(db.Boolean, nullable=False, default=False)

    # Fee row consumed by a regular payment
    late_fee_record_id = db.Column(
        db.Integer,
        db.ForeignKey('payment_records.id', ondelete='SET NULL'),
        nullable=True,
    )

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    agreement = db.relationship('Agreement', back_populates='payments')

    __mapper_args__ = {'polymorphic_on': kind}

    def __repr__(self):
        return f'<{type(self).__name__} {self.id}: due {self.amount_due}, paid {self.amount_paid}>'

    @property
    def status(self):
        """Derived from the balance: settled rows are completed."""
        if self.balance is not None and self.balance <= 0:
            return 'completed'
        return 'pending'

    def serialize(self):
        return {
            'id': self.id,
            'agreement_id': self.agreement_id,
            'type': self.kind,
            'amount_due': float(self.amount_due or 0),
            'amount_paid': float(self.amount_paid or 0),
            'balance': float(self.balance or 0),
            'late_fine_amount': float(self.late_fine_amount or 0),
            'days_overdue': self.days_overdue or 0,
            'payment_date': self.payment_date.isoformat() if self.payment_date else None,
            'original_due_date': self.original_due_date.isoformat() if self.original_due_date else None,
            'status': self.status,
            'payment_method': self.payment_method,
            'description': self.description,
            'is_auto_generated': bool(self.is_auto_generated),
            'is_historical': bool(self.is_historical),
            'late_fee_record_id': self.late_fee_record_id,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


class RegularPayment(PaymentRecord):
    __mapper_args__ = {'polymorphic_identity': PaymentKind.RENT_PAYMENT}


class LateFeeRecord(PaymentRecord):
    __mapper_args__ = {'polymorphic_identity': PaymentKind.LATE_PAYMENT_FEE}

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        if self.late_fee_period is None and self.original_due_date is not None:
            due = self.original_due_date
            self.late_fee_period = due.date() if isinstance(due, datetime) else due

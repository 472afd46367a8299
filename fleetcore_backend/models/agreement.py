from . import db
from datetime import datetime


class Agreement(db.Model):
    __tablename__ = 'agreements'

    id = db.Column(db.Integer, primary_key=True)
    agreement_number = db.Column(db.String(50), unique=True, nullable=False)
    status = db.Column(db.String(20), default='active', index=True)  # draft, active, closed, cancelled
    start_date = db.Column(db.Date, nullable=True)

    # Financial Terms
    rent_amount = db.Column(db.Numeric(10, 2), nullable=False)
    daily_late_fee = db.Column(db.Numeric(10, 2), nullable=True)  # falls back to config when unset
    rent_due_day = db.Column(db.Integer, default=1)  # captured, anchor is still the 1st

    # Metadata
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    payments = db.relationship(
        'PaymentRecord',
        back_populates='agreement',
        lazy=True,
        cascade='all, delete-orphan',
    )

    def __repr__(self):
        return f'<Agreement {self.agreement_number}: {self.rent_amount}/month>'

    def serialize(self):
        return {
            'id': self.id,
            'agreement_number': self.agreement_number,
            'status': self.status,
            'start_date': self.start_date.isoformat() if self.start_date else None,
            'rent_amount': float(self.rent_amount),
            'daily_late_fee': float(self.daily_late_fee) if self.daily_late_fee is not None else None,
            'rent_due_day': self.rent_due_day,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    @property
    def is_active(self):
        return self.status == 'active'

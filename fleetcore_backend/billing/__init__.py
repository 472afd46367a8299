from .anchor import due_anchor
from .errors import (
    AgreementNotFound,
    BillingError,
    FeeLookupError,
    PaymentNotFound,
    RecordingError,
    ValidationError,
)
from .fee_lookup import FeeResolution, resolve_late_fine
from .history import aggregate_history
from .late_fee import days_overdue, late_fee, resolve_daily_rate
from .ledger import Ledger, compute_ledger
from .overdue import process_overdue_payments
from .recorder import PaymentQuote, PaymentRecorder
from .store import AgreementBilling, BillingStore, SQLAlchemyBillingStore


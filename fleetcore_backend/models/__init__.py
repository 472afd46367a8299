from fleetcore_backend.extensions import db

# Billing Models
from .agreement import Agreement
from .payment import PaymentRecord, RegularPayment, LateFeeRecord, PaymentKind
from .audit_log import AuditLog

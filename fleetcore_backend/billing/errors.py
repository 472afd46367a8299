class BillingError(Exception):
    """Base class for billing engine failures."""

    code = "billing_error"

    def __init__(self, message, **details):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(BillingError):
    """Rejected input; raised before anything is written."""

    code = "validation_error"


class RecordingError(BillingError):
    """The atomic payment write failed; nothing was committed."""

    code = "recording_error"


class FeeLookupError(BillingError, LookupError):
    """The existing-fee query failed. Callers fall back to computing the fee."""

    code = "lookup_error"


class AgreementNotFound(BillingError):
    code = "not_found"


class PaymentNotFound(BillingError):
    code = "not_found"

# backend/lib/solar_estimate_core/errors.py

class InvalidInputError(ValueError):
    """Estimator input is missing, not a finite number, or not positive."""


class InvalidRecordError(ValueError):
    """A calculation record is missing fields or has the wrong types."""


class PersistenceFailure(Exception):
    """Raised by a storage sink when a calculation record could not be written."""

"""Custom exceptions for the POS ledger."""


class LedgerError(Exception):
    """Base exception for all ledger errors."""
    def __init__(self, message="An internal error occurred", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['message'] = self.message
        rv['status'] = 'error'
        return rv


class ValidationError(LedgerError):
    """Raised when a draft or a field value is invalid."""
    def __init__(self, message, payload=None):
        super().__init__(message, 400, payload)


class NotFoundError(LedgerError):
    """Exception raised when a sale or variant is not found."""
    def __init__(self, message="Resource not found", payload=None):
        super().__init__(message, 404, payload)


class InvalidStateError(LedgerError):
    """Raised when a sale is not in a state that allows the operation."""
    def __init__(self, message, payload=None):
        super().__init__(message, 409, payload)


class AlreadyCancelledError(InvalidStateError):
    """Raised when cancelling a sale that is already cancelled."""
    def __init__(self, sale_id):
        super().__init__(f'Sale #{sale_id} is already cancelled', payload={'sale_id': sale_id})
        self.sale_id = sale_id


class PersistenceError(LedgerError):
    """Raised when the underlying store rejects a read or write."""
    def __init__(self, message, cause=None, payload=None):
        if cause is not None:
            message = f'{message}: {cause}'
        super().__init__(message, 500, payload)
        self.cause = cause

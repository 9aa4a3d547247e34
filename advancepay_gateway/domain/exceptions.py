"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class PersistenceError(DomainException):
    """Advance Pay store read or write failed"""

    pass


class CompletionTimeoutError(DomainException):
    """No completion event arrived for a correlation id within the wait budget"""

    def __init__(self, correlation_id: str, timeout: float):
        super().__init__(f"No completion event for {correlation_id} after {timeout}s")
        self.correlation_id = correlation_id
        self.timeout = timeout


class CardValetError(DomainException):
    """Card valet SSO service returned an error or is unavailable"""

    pass

class NotFoundError(RuntimeError):
    """Raised when a shop, service, appointment or promotion does not exist."""
    pass


class InvalidTransition(RuntimeError):
    """Raised when a status change is not in the transition table or its time guard is not met."""
    pass


class Unauthorized(RuntimeError):
    """Raised when the caller is not allowed to act on an appointment."""
    pass


class PersistenceError(RuntimeError):
    """Raised by store adapters when a write cannot be completed."""
    pass


class PaymentGatewayError(RuntimeError):
    """Raised when the payment provider fails (timeouts, network errors, bad responses)."""
    pass


class InvariantViolation(RuntimeError):
    """Raised when stored data breaks an appointment invariant (data corruption)."""
    pass

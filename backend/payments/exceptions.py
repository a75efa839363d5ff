class PaymentError(Exception):
    """
    Base class for payment errors. `payment` holds the provider object
    (e.g. the Stripe PaymentIntent) when there is one.
    """

    def __init__(self, message, payment=None):
        super().__init__(message)
        self.payment = payment


class PaymentActionRequired(PaymentError):
    """The payment needs an extra confirmation step from the client (3D Secure)."""


class PaymentFailure(PaymentError):
    """The provider declined the payment."""


class InvalidCustomer(PaymentError):
    """The client has no usable customer record at the provider."""


class PaymentProviderError(PaymentError):
    """The provider could not be reached or answered with an unexpected error."""

class OrderException(Exception):
    """
    A checkout or order business rule was violated. The message is safe to
    show to the client.
    """


class DeliveryDateUnavailable(OrderException):
    """No deliverable day was found within the configured scan window."""

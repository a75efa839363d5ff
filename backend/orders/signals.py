import logging

from django.db import transaction
from django.dispatch import Signal

logger = logging.getLogger(__name__)

# Sent after a checkout commits, with order=<Order>
order_ready = Signal()

# Sent after a checkout commits, with event=<dict> describing the order for the CRM
salesforce_event = Signal()

# Sent after Order.complete() commits, with order=<Order>
order_approved = Signal()


def send_on_commit(signal: Signal, sender, **kwargs):
    """
    Defer `signal` until the surrounding transaction commits. Receiver
    failures are logged and never reach the caller.
    """

    def emit():
        try:
            signal.send(sender=sender, **kwargs)
        except Exception as e:
            # Log but don't raise - order is already committed
            logger.error(f"Error in signal handlers for {sender.__name__}: {e}", exc_info=True)

    transaction.on_commit(emit)

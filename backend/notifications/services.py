import logging

from django.conf import settings
from django.core.mail import send_mail
from django.template.loader import render_to_string

from checkout_backend.utils.pii import PIIProtection

logger = logging.getLogger(__name__)


class EmailService:
    def __init__(self):
        # Format the sender's email to include a display name
        from_email_address = getattr(settings, "DEFAULT_FROM_EMAIL", "orders@example.com")
        from_name = getattr(settings, "EMAIL_FROM_NAME", "Kit Orders")
        self.default_from_email = f"{from_name} <{from_email_address}>"

    def send_email(self, recipient_list, subject, template_name, context):
        """
        Sends an email using a Django template.

        Args:
            recipient_list (list): A list of recipient email addresses.
            subject (str): The subject of the email.
            template_name (str): The path to the email template (e.g., 'emails/order-shipped.html').
            context (dict): A dictionary of data to render in the template.
        """
        html_message = render_to_string(template_name, context)
        send_mail(
            subject,
            "",  # Empty message, as we are sending HTML
            self.default_from_email,
            recipient_list,
            html_message=html_message,
            fail_silently=False,
        )

    def send_order_shipped(self, order, invoice, email, show_billing=True):
        """
        Order confirmation with the invoice. `show_billing` hides the billing
        address and prices when the copy goes to someone other than the payer.
        """
        try:
            lines = [
                {
                    "name": line.name,
                    "sku": line.sku,
                    "quantity": line.quantity,
                    "unit_price": line.unit_price,
                    "total": line.total,
                }
                for line in invoice.lines.all()
            ]
            context = {
                "order": order,
                "invoice": invoice,
                "lines": lines,
                "client": order.client,
                "show_billing": show_billing,
                "delivery_date": order.human_delivery_date,
                "advisor_email": order.advisor_email,
            }
            self.send_email(
                [email],
                f"Your order #{order.po_number} is confirmed",
                "emails/order-shipped.html",
                context,
            )
            logger.info(
                f"Order confirmation for order {order.uuid} sent to {PIIProtection.mask_email(email)}"
            )
            return True
        except Exception as e:
            logger.error(f"Failed to send order confirmation for order {order.uuid}: {e}", exc_info=True)
            return False

    def send_order_refund(self, order, amount, email, for_delegator=False):
        try:
            context = {
                "order": order,
                "client": order.client,
                "amount": amount if amount is not None else order.refund_amount,
                "for_delegator": for_delegator,
            }
            self.send_email(
                [email],
                f"Your order #{order.po_number} was refunded",
                "emails/order-refund.html",
                context,
            )
            logger.info(f"Refund email for order {order.uuid} sent to {PIIProtection.mask_email(email)}")
            return True
        except Exception as e:
            logger.error(f"Failed to send refund email for order {order.uuid}: {e}", exc_info=True)
            return False

    def send_telehealth_consult(self, client, email):
        try:
            self.send_email(
                [email],
                "Book your telehealth consultation",
                "emails/telehealth-consult.html",
                {"client": client},
            )
            return True
        except Exception as e:
            logger.error(f"Failed to send telehealth consult email for client {client.pk}: {e}", exc_info=True)
            return False

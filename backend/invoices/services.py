import logging
from typing import Optional

from django.db import transaction

from orders.calculators import OrderPricingCalculator
from .models import Invoice, InvoiceLine

logger = logging.getLogger(__name__)


class InvoiceService:
    @staticmethod
    @transaction.atomic
    def generate(order, email: str, discount_response=None, discount_uses=None) -> Invoice:
        """
        Bill `order`: one line per package and one per item outside a package.

        The subtotal is the raw order total. With an applied discount the
        total and savings come from the discount response.
        """
        package_lines = [
            InvoiceLine.objects.create(
                type=InvoiceLine.LineType.PACKAGE,
                package=order_package.package,
                name=order_package.package.name,
                sku=f"{order_package.package.pk}-{order_package.pk}",
                quantity=order_package.quantity,
                unit_price=order_package.price,
                total=OrderPricingCalculator.package_line_total(order_package),
            )
            for order_package in order.order_packages.select_related("package")
        ]

        items = (
            order.items.filter(package__isnull=True)
            .select_related("product")
            .prefetch_related("addons")
        )
        item_lines = [
            InvoiceLine.objects.create(
                type=InvoiceLine.LineType.ITEM,
                item=item,
                name=item.title,
                sku=item.product.sku,
                quantity=item.quantity,
                unit_price=item.get_unit_price(),
                total=item.get_total_price(),
            )
            for item in items
        ]

        subtotal = order.total()
        invoice = Invoice.objects.create(
            order=order,
            client=order.client,
            discount_uses=discount_uses,
            email=email,
            status=Invoice.InvoiceStatus.DRAFT,
            discount_savings=discount_response.savings if discount_response else None,
            subtotal=subtotal,
            total=discount_response.total if discount_response else subtotal,
            billing_address=order.billing_address,
            shipping_address=order.shipping_address,
        )

        InvoiceLine.objects.filter(
            pk__in=[line.pk for line in item_lines + package_lines]
        ).update(invoice=invoice)

        logger.info(
            f"Invoice {invoice.uuid} generated for order {order.uuid}: "
            f"{len(item_lines)} item line(s), {len(package_lines)} package line(s), total {invoice.total}"
        )
        return invoice

    @staticmethod
    def get_for_order(order) -> Optional[Invoice]:
        return Invoice.objects.filter(order=order).first()

from decimal import Decimal

from rest_framework import serializers

from invoices.models import Invoice, InvoiceLine
from orders.models import Addon, Item, Order, OrderPackage


class AddonSerializer(serializers.ModelSerializer):
    class Meta:
        model = Addon
        fields = ["code", "name", "price"]
        read_only_fields = fields


class ItemSerializer(serializers.ModelSerializer):
    product = serializers.UUIDField(source="product.uuid", read_only=True)
    package = serializers.UUIDField(source="package.uuid", read_only=True, allow_null=True)
    addons = AddonSerializer(many=True, read_only=True)
    total_price = serializers.DecimalField(
        source="get_total_price", max_digits=10, decimal_places=2, read_only=True
    )

    class Meta:
        model = Item
        fields = [
            "uuid",
            "product",
            "package",
            "title",
            "price",
            "quantity",
            "number_of_kits",
            "po_number",
            "considering_freezing",
            "shipping_status",
            "notes",
            "addons",
            "total_price",
        ]
        read_only_fields = fields


class OrderPackageSerializer(serializers.ModelSerializer):
    package = serializers.UUIDField(source="package.uuid", read_only=True)
    name = serializers.CharField(source="package.name", read_only=True)
    price = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)
    total_price = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)
    addons = AddonSerializer(many=True, read_only=True)

    class Meta:
        model = OrderPackage
        fields = ["package", "name", "quantity", "price", "total_price", "addons"]
        read_only_fields = fields


class InvoiceLineSerializer(serializers.ModelSerializer):
    class Meta:
        model = InvoiceLine
        fields = ["type", "name", "sku", "quantity", "unit_price", "total"]
        read_only_fields = fields


class InvoiceSerializer(serializers.ModelSerializer):
    lines = InvoiceLineSerializer(many=True, read_only=True)

    class Meta:
        model = Invoice
        fields = ["uuid", "status", "subtotal", "discount_savings", "total", "lines"]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """
    Read-only representation returned by checkout and refund.
    """

    client = serializers.UUIDField(source="client.uuid", read_only=True)
    items = ItemSerializer(many=True, read_only=True)
    packages = OrderPackageSerializer(source="order_packages", many=True, read_only=True)
    invoice = serializers.SerializerMethodField()
    coupon = serializers.CharField(read_only=True, allow_null=True)
    human_delivery_date = serializers.CharField(read_only=True)

    class Meta:
        model = Order
        fields = [
            "uuid",
            "po_number",
            "status",
            "shipping_status",
            "client",
            "final_price",
            "refund_amount",
            "payment_service",
            "coupon",
            "preferred_delivery_date",
            "human_delivery_date",
            "billing_address",
            "shipping_address",
            "notes",
            "items",
            "packages",
            "invoice",
            "created_at",
        ]
        read_only_fields = fields

    def get_invoice(self, obj):
        invoice = Invoice.objects.filter(order=obj).prefetch_related("lines").first()
        if invoice is None:
            return None
        return InvoiceSerializer(invoice).data


class RefundRequestSerializer(serializers.Serializer):
    amount = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=Decimal("0.01"), required=False, allow_null=True
    )
    reason = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=255)

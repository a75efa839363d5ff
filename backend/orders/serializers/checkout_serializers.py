from rest_framework import serializers

from clients.models import Affiliate
from orders.checkout import Cart, CheckoutAddon, CheckoutItem, CheckoutPackage
from orders.models import Item, Order
from payments.data import PaymentData
from products.models import AddonOption, Package, Product


class AddressSerializer(serializers.Serializer):
    first_name = serializers.CharField(required=False, allow_blank=True, max_length=150)
    last_name = serializers.CharField(required=False, allow_blank=True, max_length=150)
    address_1 = serializers.CharField(required=False, allow_blank=True, max_length=255)
    address_2 = serializers.CharField(required=False, allow_blank=True, max_length=255)
    city = serializers.CharField(required=False, allow_blank=True, max_length=100)
    state = serializers.CharField(required=False, allow_blank=True, max_length=100)
    postcode = serializers.CharField(required=False, allow_blank=True, max_length=20)
    country = serializers.CharField(required=False, allow_blank=True, max_length=2)
    phone = serializers.CharField(required=False, allow_blank=True, max_length=30)


class ShippingAddressSerializer(AddressSerializer):
    # Kept as the raw string; "empty" means the client skipped the date.
    preferred_delivery_date = serializers.CharField(
        required=False, allow_blank=True, allow_null=True, max_length=50
    )


class CheckoutClientSerializer(serializers.Serializer):
    email = serializers.EmailField()
    first_name = serializers.CharField(required=False, allow_blank=True, max_length=150)
    last_name = serializers.CharField(required=False, allow_blank=True, max_length=150)
    phone = serializers.CharField(required=False, allow_blank=True, max_length=30)
    date_of_birth = serializers.DateField(required=False, allow_null=True)


class AddonCodesField(serializers.SlugRelatedField):
    def __init__(self, **kwargs):
        super().__init__(
            slug_field="code",
            queryset=AddonOption.objects.filter(is_active=True),
            **kwargs,
        )


class CheckoutItemSerializer(serializers.Serializer):
    product = serializers.SlugRelatedField(
        slug_field="uuid", queryset=Product.objects.filter(is_active=True)
    )
    quantity = serializers.IntegerField(min_value=1, default=1)
    number_of_kits = serializers.IntegerField(min_value=1, default=1)
    considering_freezing = serializers.ChoiceField(
        choices=Item.ConsideringFreezing.choices, required=False, allow_null=True
    )
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    addons = serializers.ListField(child=AddonCodesField(), required=False, default=list)


class CheckoutPackageSerializer(serializers.Serializer):
    package = serializers.SlugRelatedField(
        slug_field="uuid", queryset=Package.objects.filter(is_active=True)
    )
    quantity = serializers.IntegerField(min_value=1, default=1)
    addons = serializers.ListField(child=AddonCodesField(), required=False, default=list)


class CheckoutDiscountSerializer(serializers.Serializer):
    code = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=100)


class CheckoutPaymentSerializer(serializers.Serializer):
    provider = serializers.ChoiceField(
        choices=Order.PaymentService.choices, default=Order.PaymentService.STRIPE
    )
    payment_method = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    installment_plan_number = serializers.CharField(
        required=False, allow_blank=True, allow_null=True
    )


class CheckoutDelegateSerializer(serializers.Serializer):
    email = serializers.EmailField()
    first_name = serializers.CharField(required=False, allow_blank=True, max_length=150)
    last_name = serializers.CharField(required=False, allow_blank=True, max_length=150)


class CheckoutSerializer(serializers.Serializer):
    """
    Validates a checkout request and turns it into the cart, payment data
    and order payload consumed by CheckoutService.

    Prices are never read from the request: products, packages and add-ons
    are looked up by uuid/code and priced from the catalogue.
    """

    client = CheckoutClientSerializer()
    items = CheckoutItemSerializer(many=True, required=False, default=list)
    packages = CheckoutPackageSerializer(many=True, required=False, default=list)
    discount = CheckoutDiscountSerializer(required=False, allow_null=True)
    payment = CheckoutPaymentSerializer(required=False)
    delegate = CheckoutDelegateSerializer(required=False, allow_null=True)
    affiliate = serializers.SlugRelatedField(
        slug_field="code",
        queryset=Affiliate.objects.filter(is_active=True),
        required=False,
        allow_null=True,
    )
    billing_address = AddressSerializer(required=False)
    shipping_address = ShippingAddressSerializer(required=False)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)

    def validate(self, attrs):
        if not attrs.get("items") and not attrs.get("packages"):
            raise serializers.ValidationError("The cart is empty.")

        delegate = attrs.get("delegate")
        if delegate and delegate["email"].lower() == attrs["client"]["email"].lower():
            raise serializers.ValidationError(
                {"delegate": "The delegate must be someone other than the client."}
            )
        return attrs

    def cart(self) -> Cart:
        data = self.validated_data
        shipping_address = dict(data.get("shipping_address") or {})

        items = [
            CheckoutItem(
                product=item["product"],
                quantity=item["quantity"],
                number_of_kits=item["number_of_kits"],
                considering_freezing=item.get("considering_freezing"),
                notes=item.get("notes"),
                shipping_address=shipping_address,
                addons=[CheckoutAddon(option) for option in item.get("addons", [])],
            )
            for item in data.get("items", [])
        ]
        packages = [
            CheckoutPackage(
                package=package["package"],
                quantity=package["quantity"],
                shipping_address=shipping_address,
                addons=[CheckoutAddon(option) for option in package.get("addons", [])],
            )
            for package in data.get("packages", [])
        ]
        return Cart(items=items, packages=packages)

    def payment_data(self) -> PaymentData:
        payment = self.validated_data.get("payment") or {}
        return PaymentData(
            provider=payment.get("provider", Order.PaymentService.STRIPE),
            payment_method=payment.get("payment_method") or None,
            installment_plan_number=payment.get("installment_plan_number") or None,
        )

    def payload(self) -> dict:
        data = self.validated_data
        client = dict(data["client"])
        return {
            "client": client,
            "discount": dict(data.get("discount") or {}),
            "delegate": dict(data["delegate"]) if data.get("delegate") else None,
            "affiliate": data.get("affiliate"),
            "billing_address": dict(data.get("billing_address") or {}),
            "shipping_address": dict(data.get("shipping_address") or {}),
            "notes": data.get("notes"),
        }

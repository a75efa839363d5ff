from dataclasses import dataclass
from typing import Optional


@dataclass
class PaymentData:
    """
    Payment details sent with a checkout: which provider to charge and the
    provider specific reference (Stripe payment method or SplitIt plan).
    """

    provider: str
    payment_method: Optional[str] = None
    installment_plan_number: Optional[str] = None

    def get_provider(self) -> str:
        return self.provider

    def resolve_payment_provider(self):
        from .factories import PaymentProviderFactory

        return PaymentProviderFactory.get_provider(self.provider)

from .providers import PaymentProvider, SplitItPaymentProvider, StripePaymentProvider


class PaymentProviderFactory:
    """
    A factory for creating payment provider instances.
    """

    _providers = {
        StripePaymentProvider.name: StripePaymentProvider,
        SplitItPaymentProvider.name: SplitItPaymentProvider,
    }

    @staticmethod
    def get_provider(name: str) -> PaymentProvider:
        """
        Returns an instance of the provider registered under `name`.
        """
        provider_class = PaymentProviderFactory._providers.get(name)
        if provider_class is None:
            raise ValueError(f"Unknown payment provider: {name}")
        return provider_class()

    @staticmethod
    def provider_names():
        return list(PaymentProviderFactory._providers.keys())

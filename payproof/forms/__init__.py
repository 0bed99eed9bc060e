from .payment_form import EMAIL_PATTERN, PaymentForm

__all__ = ["EMAIL_PATTERN", "PaymentForm"]

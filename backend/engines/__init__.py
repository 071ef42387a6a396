from engines.payments import PaymentEngine, get_payment_engine

__all__ = [
    "PaymentEngine",
    "get_payment_engine",
]

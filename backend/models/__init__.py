from models.payment import (
    PaymentStatus,
    PaymentResponse,
    PostPaymentRequest,
    PostPaymentResponse,
    GetPaymentsRequest,
)

__all__ = [
    "PaymentStatus",
    "PaymentResponse",
    "PostPaymentRequest",
    "PostPaymentResponse",
    "GetPaymentsRequest",
]

# shop/domain/ports.py
"""Ports used by the order workflow.

The workflow only sees these shapes, never a payment provider's wire format.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Protocol, Any


@dataclass(frozen=True)
class PaymentAssertion:
    """Client-side claim that a gateway payment succeeded.

    Attributes:
        imp_uid: Transaction id issued by the payment provider.
        merchant_uid: Merchant order reference the client paid for.
    """

    imp_uid: str
    merchant_uid: str


@dataclass
class VerificationResult:
    success: bool
    data: dict[str, Any] = field(default_factory=dict)
    message: str | None = None


class PaymentVerifier(Protocol):
    def verify(self, imp_uid: str, merchant_uid: str) -> VerificationResult:
        """Re-confirm a payment with the provider. Must not raise."""
        raise NotImplementedError()


class SequenceAllocator(Protocol):
    def next_sequence(self, day: date) -> int:
        """Return the daily sequence number for the next order created on ``day``."""
        raise NotImplementedError()

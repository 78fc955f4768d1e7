# backend/farewelly/services/payment_provider.py
"""
Payment provider shim.

Simulates the card processor used at checkout: a short fixed latency, amount
limits, and a configurable success rate. A decline is a terminal business
error for the caller; nothing here retries.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
import logging
import random
import time
from typing import Callable, Optional

import ulid

from ..core.config import settings

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ProviderResult:
    success: bool
    reference: Optional[str] = None
    error: Optional[str] = None


class MockPaymentProvider:
    def __init__(
        self,
        *,
        success_rate: Optional[float] = None,
        refund_success_rate: Optional[float] = None,
        latency_seconds: Optional[float] = None,
        min_amount: Optional[float] = None,
        max_amount: Optional[float] = None,
        rng: Optional[random.Random] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.success_rate = settings.payment_success_rate if success_rate is None else success_rate
        self.refund_success_rate = (
            settings.refund_success_rate if refund_success_rate is None else refund_success_rate
        )
        self.latency_seconds = (
            settings.provider_latency_seconds if latency_seconds is None else latency_seconds
        )
        self.min_amount = Decimal(str(settings.payment_min_amount if min_amount is None else min_amount))
        self.max_amount = Decimal(str(settings.payment_max_amount if max_amount is None else max_amount))
        self._rng = rng or random.Random()
        self._sleep = sleep

    def _simulate_latency(self) -> None:
        if self.latency_seconds > 0:
            self._sleep(self.latency_seconds)

    def charge(self, amount: Decimal, payment_method: str, token: Optional[str] = None) -> ProviderResult:
        self._simulate_latency()
        if amount < self.min_amount:
            return ProviderResult(success=False, error="Amount too small")
        if amount > self.max_amount:
            return ProviderResult(success=False, error="Amount exceeds limit")
        if self._rng.random() < self.success_rate:
            reference = f"mock_{ulid.ULID()}"
            logger.info("Mock charge succeeded amount=%s method=%s ref=%s", amount, payment_method, reference)
            return ProviderResult(success=True, reference=reference)
        logger.info("Mock charge declined amount=%s method=%s", amount, payment_method)
        return ProviderResult(success=False, error="Payment declined")

    def refund(self, provider_payment_id: Optional[str], amount: Decimal) -> ProviderResult:
        self._simulate_latency()
        if self._rng.random() < self.refund_success_rate:
            reference = f"refund_{ulid.ULID()}"
            logger.info("Mock refund succeeded payment=%s amount=%s", provider_payment_id, amount)
            return ProviderResult(success=True, reference=reference)
        logger.warning("Mock refund failed payment=%s amount=%s", provider_payment_id, amount)
        return ProviderResult(success=False, error="Refund processing failed at payment provider")

"""
Settlement strategies: how tuition funds move once the ledger accepts them.

hold_funds    payments stay in the settlement pool; refunds are paid from it.
pass_through  payments are forwarded to the university wallet immediately;
              refunds are paid from explicit refund-pool deposits only.

The ledger calls the same interface in both modes, so its transactional logic
does not depend on which one is configured.
"""

import asyncio
import itertools
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

from tuition_ledger.core.addresses import short_wallet
from tuition_ledger.core.enums import SettlementMode
from tuition_ledger.core.exceptions import (
    InsufficientFundsError,
    ServiceError,
    TransferFailedError,
    TransferTimeoutError,
)
from tuition_ledger.core.models import Payment

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Transfer:
    reference: str
    to_wallet: str
    amount: int


class TransferGateway(ABC):
    """Outbound value transfer to a wallet. Implementations may block or fail."""

    @abstractmethod
    async def send(self, to_wallet: str, amount: int) -> str:
        """Send `amount` to `to_wallet`, returning a transfer reference."""


class InMemoryTransferGateway(TransferGateway):
    """Records transfers in process. Stands in for the external settlement layer."""

    def __init__(self) -> None:
        self.transfers: List[Transfer] = []
        self._ids = itertools.count(1)

    async def send(self, to_wallet: str, amount: int) -> str:
        reference = f"tx-{next(self._ids)}"
        self.transfers.append(Transfer(reference=reference, to_wallet=to_wallet, amount=amount))
        return reference

    def total_sent_to(self, wallet: str) -> int:
        return sum(t.amount for t in self.transfers if t.to_wallet == wallet)


class SettlementStrategy(ABC):
    mode: SettlementMode

    def __init__(
        self,
        gateway: TransferGateway,
        university_wallet: str,
        transfer_timeout: float = 10.0,
    ) -> None:
        self.gateway = gateway
        self.university_wallet = university_wallet
        self.transfer_timeout = transfer_timeout
        self._pool = 0

    @property
    def available_balance(self) -> int:
        return self._pool

    @abstractmethod
    async def settle(self, payment: Payment) -> None:
        """Take custody of (or forward) a freshly accepted payment."""

    @abstractmethod
    def restore_held(self, payment: Payment) -> None:
        """Account for a payment replayed from the snapshot, without moving funds."""

    async def refund(self, wallet: str, amount: int) -> Optional[str]:
        if amount <= 0:
            return None
        if self._pool < amount:
            raise InsufficientFundsError(
                f"Insufficient funds for refund: need {amount}, available {self._pool}"
            )
        reference = await self._transfer(wallet, amount)
        self._pool -= amount
        return reference

    async def deposit(self, amount: int) -> None:
        self._pool += amount

    async def _transfer(self, to_wallet: str, amount: int) -> str:
        try:
            reference = await asyncio.wait_for(
                self.gateway.send(to_wallet, amount), timeout=self.transfer_timeout
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Transfer of %s to %s timed out after %ss",
                amount, short_wallet(to_wallet), self.transfer_timeout,
            )
            raise TransferTimeoutError(
                f"Transfer to {to_wallet} timed out after {self.transfer_timeout}s"
            )
        except ServiceError:
            raise
        except Exception as exc:
            logger.warning("Transfer of %s to %s failed: %s", amount, short_wallet(to_wallet), exc)
            raise TransferFailedError(f"Transfer to {to_wallet} failed: {exc}") from exc
        logger.info("Transferred %s to %s (%s)", amount, short_wallet(to_wallet), reference)
        return reference


class HoldFundsSettlement(SettlementStrategy):
    mode = SettlementMode.HOLD_FUNDS

    async def settle(self, payment: Payment) -> None:
        self._pool += payment.amount

    def restore_held(self, payment: Payment) -> None:
        self._pool += payment.remaining


class PassThroughSettlement(SettlementStrategy):
    mode = SettlementMode.PASS_THROUGH

    async def settle(self, payment: Payment) -> None:
        await self._transfer(self.university_wallet, payment.amount)

    def restore_held(self, payment: Payment) -> None:
        # Forwarded at payment time; nothing is held.
        return None


def build_settlement(
    mode: SettlementMode,
    university_wallet: str,
    gateway: Optional[TransferGateway] = None,
    transfer_timeout: float = 10.0,
) -> SettlementStrategy:
    gateway = gateway or InMemoryTransferGateway()
    if mode == SettlementMode.PASS_THROUGH:
        return PassThroughSettlement(gateway, university_wallet, transfer_timeout)
    return HoldFundsSettlement(gateway, university_wallet, transfer_timeout)

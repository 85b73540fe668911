"""Deposit decision - pure rules deciding whether a booking needs an upfront payment"""

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Optional

from ...config import CENTS
from ...models import ProviderProfile, Slot
from ...shared.validators import is_valid_iban, normalize_bic, normalize_iban

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


@dataclass(frozen=True)
class BankDetails:
    """Payee details shown to the customer for the bank-transfer alternative"""

    iban: str
    bic: Optional[str]
    account_name: str


@dataclass(frozen=True)
class DepositDecision:
    required: bool
    amount: Decimal
    payee: Optional[BankDetails]
    use_deposit: bool


def to_amount(value) -> Decimal:
    """Coerce a stored amount to a non-negative cent-precision Decimal"""
    if value is None:
        return ZERO
    try:
        amount = Decimal(str(value)).quantize(CENTS)
    except (InvalidOperation, ValueError):
        return ZERO
    return amount if amount > 0 else ZERO


def resolve_payee(provider: ProviderProfile) -> Optional[BankDetails]:
    """Bank details of the provider, or None when the IBAN is missing or malformed"""
    iban = normalize_iban(provider.iban)
    if not iban or not is_valid_iban(iban):
        return None
    return BankDetails(
        iban=iban,
        bic=normalize_bic(provider.bic),
        account_name=provider.display_name,
    )


def decide_deposit(slot: Slot, provider: ProviderProfile) -> DepositDecision:
    """
    Decide whether reserving `slot` goes through the deposit path.

    A deposit is required when either the slot or the provider asks for one. The
    slot amount overrides the provider amount when positive. The deposit is only
    enforced when there is a positive amount and a valid payee IBAN; otherwise the
    booking degrades to the direct path so a misconfigured provider never blocks
    customers.
    """
    required = bool(slot.deposit_required) or bool(provider.deposit_enabled)

    slot_amount = to_amount(slot.deposit_amount)
    amount = slot_amount if slot_amount > 0 else to_amount(provider.deposit_amount)

    payee = resolve_payee(provider)
    use_deposit = required and amount > 0 and payee is not None

    if required and not use_deposit:
        logger.info(
            f"⚠️ Deposit requested for slot {slot.id} but not enforceable "
            f"(amount={amount}, payee={'ok' if payee else 'missing'}); booking directly"
        )

    return DepositDecision(required=required, amount=amount, payee=payee, use_deposit=use_deposit)

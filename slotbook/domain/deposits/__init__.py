"""Deposits domain - Pure rules for upfront deposit payments"""

from .decision import BankDetails, DepositDecision, decide_deposit

__all__ = ["BankDetails", "DepositDecision", "decide_deposit"]

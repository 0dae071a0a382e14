"""Exceptions raised while selecting inputs, building and signing transactions."""

from typing import Dict, Iterable, Optional


class CardanoTxError(Exception):
    """Base exception for transaction construction errors."""


class InsufficientFunds(CardanoTxError):
    """No input set within the allowed bound covers the required amounts."""

    def __init__(self, shortfall: Dict, available: Optional[Dict] = None):
        self.shortfall = dict(shortfall)
        self.available = dict(available or {})
        details = ", ".join(f"{token} short by {amount}" for token, amount in self.shortfall.items())
        super().__init__(f"not enough funds to generate the transaction: {details}")


class BuilderMisuse(CardanoTxError):
    """Builder operation called from a state that does not allow it."""

    def __init__(self, operation: str, expected_states: Iterable, actual_state, reason: Optional[str] = None):
        self.operation = operation
        self.expected_states = tuple(expected_states)
        self.actual_state = actual_state
        self.reason = reason
        expected = " or ".join(s.name for s in self.expected_states)
        message = f"{operation}: builder is {actual_state.name}, expected {expected}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class NegativeChange(CardanoTxError):
    """Change output would go below zero after paying the fee."""

    def __init__(self, change: int, fee: int = 0):
        self.change = change
        self.fee = fee
        super().__init__(f"change output cannot cover the fee: change={change}, fee={fee}")


class OutputNotRemovable(CardanoTxError):
    """Removing the output would drop the native tokens it carries."""

    def __init__(self, index: int, tokens: list):
        self.index = index
        self.tokens = list(tokens)
        super().__init__(f"output {index} carries {len(self.tokens)} tokens and cannot be removed")


class InvalidTokenName(CardanoTxError):
    def __init__(self, raw: str):
        self.raw = raw
        super().__init__(f"invalid full token name: {raw}")


class PolicyScriptInvalid(CardanoTxError):
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"invalid policy script: {reason}")


class ProviderUnavailable(CardanoTxError):
    """Chain data provider failed; wraps the underlying error."""

    def __init__(self, provider: str, reason: str):
        self.provider = provider
        self.reason = reason
        super().__init__(f"{provider} provider error: {reason}")


class ConfirmationTimeout(CardanoTxError):
    """Submitted transaction was not observed within the retry budget."""

    def __init__(self, tx_hash: str, attempts: int):
        self.tx_hash = tx_hash
        self.attempts = attempts
        super().__init__(f"transaction {tx_hash} not observed after {attempts} attempts")

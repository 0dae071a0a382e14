"""
Submission and confirmation polling.

Only the "not visible yet" condition is retried; provider errors propagate
on the first occurrence.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

from .errors import CardanoTxError, ConfirmationTimeout
from .providers.base import TxProvider
from .types import LOVELACE, Token, get_utxos_sum

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_RETRY_COUNT = 60
DEFAULT_RETRY_WAIT = 2.0


class NotYetVisible(CardanoTxError):
    """Raised by a polled function when the expected state is not on chain yet."""


async def _call_before(fn: Callable[[], Awaitable[T]], remaining: float, label: str, attempt: int) -> T:
    task = asyncio.ensure_future(fn())
    try:
        done, _ = await asyncio.wait({task}, timeout=max(remaining, 0))
    except asyncio.CancelledError:
        task.cancel()
        raise
    if not done:
        task.cancel()
        logger.debug(f"{label or 'poll'}: deadline passed during attempt {attempt}")
        raise ConfirmationTimeout(label, attempt)
    return task.result()


async def execute_with_retry(
    fn: Callable[[], Awaitable[T]],
    retry_count: int = DEFAULT_RETRY_COUNT,
    retry_wait: float = DEFAULT_RETRY_WAIT,
    timeout: Optional[float] = None,
    label: str = "",
) -> T:
    """
    Call `fn` until it returns, retrying only while it raises NotYetVisible.

    A call still running when `timeout` expires is cancelled.

    Raises:
        ConfirmationTimeout: `retry_count` attempts or `timeout` seconds used up.
    """
    if retry_count < 1:
        raise ValueError(f"retry_count must be positive, got {retry_count}")

    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout if timeout is not None else None

    for attempt in range(1, retry_count + 1):
        try:
            if deadline is None:
                return await fn()
            return await _call_before(fn, deadline - loop.time(), label, attempt)
        except NotYetVisible:
            logger.debug(f"{label or 'poll'}: not visible yet (attempt {attempt}/{retry_count})")

        if attempt == retry_count:
            break
        if deadline is not None and loop.time() + retry_wait > deadline:
            break
        await asyncio.sleep(retry_wait)

    raise ConfirmationTimeout(label, attempt)


async def wait_for_amount(
    provider: TxProvider,
    address: str,
    token: Token = LOVELACE,
    expected_at_least: int = 0,
    retry_count: int = DEFAULT_RETRY_COUNT,
    retry_wait: float = DEFAULT_RETRY_WAIT,
    timeout: Optional[float] = None,
) -> int:
    """Poll `address` until its balance of `token` reaches `expected_at_least`; returns the balance."""

    async def balance() -> int:
        utxos = await provider.get_utxos(address)
        amount = get_utxos_sum(utxos).get(token, 0)
        if amount < expected_at_least:
            raise NotYetVisible(f"{token} balance {amount} < {expected_at_least}")
        return amount

    return await execute_with_retry(balance, retry_count, retry_wait, timeout, label=address)


async def wait_for_tx(
    provider: TxProvider,
    tx_hash: str,
    retry_count: int = DEFAULT_RETRY_COUNT,
    retry_wait: float = DEFAULT_RETRY_WAIT,
    timeout: Optional[float] = None,
) -> Dict[str, Any]:
    """Poll the provider until it knows `tx_hash`."""

    async def lookup() -> Dict[str, Any]:
        tx = await provider.get_tx_by_hash(tx_hash)
        if tx is None:
            raise NotYetVisible(tx_hash)
        return tx

    return await execute_with_retry(lookup, retry_count, retry_wait, timeout, label=tx_hash)


async def is_tx_in_utxos(provider: TxProvider, address: str, tx_hash: str) -> bool:
    """True if any UTxO at `address` was created by `tx_hash`."""
    return any(u.tx_hash == tx_hash for u in await provider.get_utxos(address))


async def submit_tx_and_wait(
    provider: TxProvider,
    tx_signed: bytes,
    tx_hash: str,
    address: str,
    token: Token = LOVELACE,
    amount_increment: int = 0,
    retry_count: int = DEFAULT_RETRY_COUNT,
    retry_wait: float = DEFAULT_RETRY_WAIT,
    timeout: Optional[float] = None,
) -> int:
    """
    Submit and wait until the balance of `token` at `address` grows by `amount_increment`.

    The balance is read before submitting. Returns the new balance.
    """
    before = get_utxos_sum(await provider.get_utxos(address)).get(token, 0)
    await provider.submit_tx(tx_signed)
    logger.info(f"Transaction submitted, hash = {tx_hash}")

    try:
        balance = await wait_for_amount(provider, address, token, before + amount_increment,
                                        retry_count, retry_wait, timeout)
    except ConfirmationTimeout as e:
        raise ConfirmationTimeout(tx_hash, e.attempts) from None
    logger.info(f"Transaction included in block, hash = {tx_hash}, balance = {balance}")
    return balance

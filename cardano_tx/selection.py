"""
Coin selection over multi-asset UTxO sets.

select_utxos walks the UTxOs in the order the provider returned them and keeps
a window of at most `max_inputs` candidates. When the window is full the
lightest candidate (by its amounts of the required tokens) is swapped out for
the next UTxO. The first window whose totals cover every requirement wins and
is padded up to `min_inputs` with the lightest leftover UTxOs. If no window
covers, the heaviest UTxOs are tried and then an exhaustive search over
subsets within `max_inputs`, so a shortfall is only reported when no covering
subset exists.

Requirements are always processed in a fixed order (native tokens by their
canonical string, lovelace last) so that identical inputs give identical
selections regardless of how `desired` was built.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from .errors import InsufficientFunds
from .types import LOVELACE, Token, TxInput, Utxo, get_utxos_sum

logger = logging.getLogger(__name__)

Requirements = List[Tuple[Token, int]]
Desired = Union[Mapping[Token, int], Iterable[Tuple[Token, int]]]


@dataclass
class SelectionResult:
    """Chosen inputs and the sum of everything they carry."""
    inputs: List[TxInput] = field(default_factory=list)
    totals: Dict[Token, int] = field(default_factory=dict)

    @property
    def lovelace(self) -> int:
        return self.totals.get(LOVELACE, 0)


def order_requirements(desired: Desired) -> Requirements:
    """Merge duplicate tokens and sort: native tokens by canonical string, lovelace last."""
    items = desired.items() if isinstance(desired, Mapping) else desired
    merged: Dict[Token, int] = defaultdict(int)
    for token, amount in items:
        if amount < 0:
            raise ValueError(f"negative desired amount {amount} for {token}")
        merged[token] += amount
    return sorted(merged.items(), key=lambda item: (item[0].is_lovelace, str(item[0])))


def _weight(utxo: Utxo, requirements: Requirements) -> Tuple[int, ...]:
    return tuple(utxo.get_token_amount(token) for token, _ in requirements)


def _update_sum(totals: Dict[Token, int], utxo: Utxo, sign: int):
    totals[LOVELACE] += sign * utxo.amount
    for t in utxo.tokens:
        totals[t.token] += sign * t.amount


def _is_covered(totals: Mapping[Token, int], requirements: Requirements) -> bool:
    return all(totals.get(token, 0) >= amount for token, amount in requirements)


def _find_min_utxo(chosen: Sequence[Utxo], requirements: Requirements) -> int:
    min_idx = 0
    min_weight = _weight(chosen[0], requirements)
    for idx in range(1, len(chosen)):
        weight = _weight(chosen[idx], requirements)
        if weight < min_weight:
            min_idx, min_weight = idx, weight
    return min_idx


def _pad(chosen: List[Utxo], totals: Dict[Token, int], utxos: Sequence[Utxo],
         requirements: Requirements, target: int):
    """Top up with unchosen UTxOs, lightest (dust) first."""
    if len(chosen) >= target:
        return
    taken = {(u.tx_hash, u.output_index) for u in chosen}
    leftovers = [u for u in utxos if (u.tx_hash, u.output_index) not in taken]
    leftovers.sort(key=lambda u: _weight(u, requirements))
    for utxo in leftovers[:target - len(chosen)]:
        chosen.append(utxo)
        _update_sum(totals, utxo, 1)


def _result(chosen: Sequence[Utxo], totals: Mapping[Token, int], requirements: Requirements) -> SelectionResult:
    required = {token for token, _ in requirements} | {LOVELACE}
    return SelectionResult(
        inputs=[u.to_input() for u in chosen],
        totals={t: amount for t, amount in totals.items() if amount > 0 or t in required},
    )


def _shortfall(totals: Mapping[Token, int], requirements: Requirements) -> Dict[Token, int]:
    return {
        token: amount - totals.get(token, 0)
        for token, amount in requirements
        if totals.get(token, 0) < amount
    }


def select_utxos(
    utxos: Sequence[Utxo],
    desired: Desired,
    max_inputs: int,
    min_inputs: int = 1,
) -> SelectionResult:
    """
    Select at most `max_inputs` UTxOs covering every desired token amount.

    Args:
        utxos: Candidate UTxOs, in provider order (order affects the result).
        desired: Token -> amount, or (token, amount) pairs.
        max_inputs: Upper bound on the number of inputs.
        min_inputs: Try to consume at least this many inputs (cleans up dust).

    Raises:
        InsufficientFunds: No subset within `max_inputs` was found.
    """
    if max_inputs < 1:
        raise ValueError(f"max_inputs must be positive, got {max_inputs}")

    requirements = order_requirements(desired)
    target = min(min_inputs, max_inputs)
    chosen: List[Utxo] = []
    totals: Dict[Token, int] = defaultdict(int)

    for utxo in utxos:
        if len(chosen) == max_inputs:
            idx = _find_min_utxo(chosen, requirements)
            _update_sum(totals, chosen[idx], -1)
            chosen[idx] = chosen[-1]
            chosen.pop()

        chosen.append(utxo)
        _update_sum(totals, utxo, 1)

        if _is_covered(totals, requirements):
            _pad(chosen, totals, utxos, requirements, target)
            logger.debug(f"Selected {len(chosen)} of {len(utxos)} UTxOs")
            return _result(chosen, totals, requirements)

    # Window walk failed; the heaviest UTxOs are the best remaining candidate.
    heaviest = sorted(utxos, key=lambda u: _weight(u, requirements), reverse=True)[:max_inputs]
    totals = defaultdict(int, get_utxos_sum(heaviest))
    if _is_covered(totals, requirements):
        _pad(heaviest, totals, utxos, requirements, target)
        logger.debug(f"Selected {len(heaviest)} heaviest of {len(utxos)} UTxOs")
        return _result(heaviest, totals, requirements)

    found = _search(utxos, requirements, max_inputs)
    if found is not None:
        totals = defaultdict(int, get_utxos_sum(found))
        _pad(found, totals, utxos, requirements, target)
        logger.debug(f"Selected {len(found)} of {len(utxos)} UTxOs by exhaustive search")
        return _result(found, totals, requirements)

    raise InsufficientFunds(_shortfall(totals, requirements), get_utxos_sum(utxos))


def _search(utxos: Sequence[Utxo], requirements: Requirements, max_inputs: int) -> Optional[List[Utxo]]:
    """
    Depth-first search for any covering subset of at most `max_inputs` UTxOs.

    Sizes are tried in increasing order and candidates in provider order, so
    the first hit is the smallest covering set with the lowest indices. A branch
    is cut when even `slots` copies of the largest remaining amount of some
    still-missing token cannot close the gap.
    """
    candidates = [u for u in utxos if any(_weight(u, requirements))]
    weights = [_weight(u, requirements) for u in candidates]
    n = len(candidates)

    # Per token, even the best `max_inputs` amounts must reach the target.
    for j, (_, amount) in enumerate(requirements):
        if sum(sorted((w[j] for w in weights), reverse=True)[:max_inputs]) < amount:
            return None

    # suffix_max[i][j]: largest amount of requirement j among candidates[i:]
    suffix_max = [[0] * len(requirements) for _ in range(n + 1)]
    for i in range(n - 1, -1, -1):
        suffix_max[i] = [max(a, b) for a, b in zip(weights[i], suffix_max[i + 1])]

    picked: List[int] = []

    def walk(start: int, deficit: List[int], slots: int) -> bool:
        if all(d <= 0 for d in deficit):
            return True
        if slots == 0:
            return False
        if any(d > 0 and slots * m < d for d, m in zip(deficit, suffix_max[start])):
            return False
        for i in range(start, n):
            picked.append(i)
            if walk(i + 1, [d - w for d, w in zip(deficit, weights[i])], slots - 1):
                return True
            picked.pop()
        return False

    need = [amount for _, amount in requirements]
    for size in range(1, min(max_inputs, n) + 1):
        if walk(0, need, size):
            return [candidates[i] for i in picked]
    return None


def get_utxos_for_amount(utxos: Sequence[Utxo], desired: int, token: Token = LOVELACE) -> SelectionResult:
    """Single-token selection: one UTxO covering the amount if any, else the shortest covering prefix."""
    requirements = [(token, desired)]
    for utxo in utxos:
        if utxo.get_token_amount(token) >= desired:
            return _result([utxo], get_utxos_sum([utxo]), requirements)

    chosen: List[Utxo] = []
    total = 0
    for utxo in utxos:
        chosen.append(utxo)
        total += utxo.get_token_amount(token)
        if total >= desired:
            return _result(chosen, get_utxos_sum(chosen), requirements)

    raise InsufficientFunds({token: desired - total}, get_utxos_sum(utxos))


def get_all_utxos(utxos: Sequence[Utxo], desired: int, token: Token = LOVELACE) -> SelectionResult:
    """Take every UTxO; fail if even all of them do not cover the amount."""
    totals = get_utxos_sum(utxos)
    available = totals.get(token, 0)
    if available < desired:
        raise InsufficientFunds({token: desired - available}, totals)
    return _result(list(utxos), totals, [(token, desired)])

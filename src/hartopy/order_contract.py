"""Deterministic ordering for names, keys and import lines.

Every place where hartopy output depends on iteration order goes through
`ordered_or_sorted`, so generated code never depends on dict or set order.
"""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from contextvars import ContextVar, Token
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable, Iterator, TypeVar

from hartopy.exceptions import OrderViolationError

T = TypeVar("T")

logger = logging.getLogger(__name__)

ORDER_POLICY_ENV = "HARTOPY_ORDER_POLICY"

_policy_override: ContextVar[OrderPolicy | None] = ContextVar(
    "hartopy_order_policy", default=None
)


class OrderPolicy(str, Enum):
    SORT = "sort"
    CHECK = "check"
    TRUST = "trust"
    ENFORCE = "enforce"


@dataclass(frozen=True)
class _Violation:
    previous_index: int
    current_index: int
    previous_key: Any
    current_key: Any
    kind: str

    def payload(self, *, source: str, reverse: bool, policy: OrderPolicy) -> dict[str, object]:
        return {
            "source": source,
            "previous_index": self.previous_index,
            "current_index": self.current_index,
            "previous_key": repr(self.previous_key),
            "current_key": repr(self.current_key),
            "violation_kind": self.kind,
            "reverse": reverse,
            "policy": policy.value,
        }


def ordered_or_sorted(
    values: Iterable[T],
    *,
    source: str,
    key: Callable[[T], Any] | None = None,
    reverse: bool = False,
    policy: OrderPolicy | str | None = None,
) -> list[T]:
    """Return `values` in a deterministic order.

    `sort` always sorts. `trust` keeps caller order unchecked. `check` keeps
    caller order when it is already sorted and otherwise logs the first
    regression at DEBUG and sorts. `enforce` raises
    `OrderViolationError` on the first regression.

    The policy comes from the `policy` argument, then `order_policy(...)`,
    then `HARTOPY_ORDER_POLICY`, and defaults to `sort`.
    """
    items = list(values)
    active = _resolve_policy(policy)
    match active:
        case OrderPolicy.SORT:
            return sorted(items, key=key, reverse=reverse)
        case OrderPolicy.TRUST:
            return items
    violation = _find_violation(items, key=key, reverse=reverse)
    if violation is None:
        return items
    payload = violation.payload(source=source, reverse=reverse, policy=active)
    if active is OrderPolicy.CHECK:
        logger.debug("unsorted input, sorting: %s", payload)
        return sorted(items, key=key, reverse=reverse)
    if violation.kind == "incomparable":
        raise OrderViolationError("ordered values have incomparable keys", payload=payload)
    raise OrderViolationError("ordered values are out of order", payload=payload)


def sort_once(
    values: Iterable[T],
    *,
    source: str,
    key: Callable[[T], Any] | None = None,
    reverse: bool = False,
) -> list[T]:
    return ordered_or_sorted(
        values, source=source, key=key, reverse=reverse, policy=OrderPolicy.SORT
    )


def get_order_policy() -> OrderPolicy:
    return _resolve_policy(None)


def set_order_policy(policy: OrderPolicy | str) -> Token[OrderPolicy | None]:
    return _policy_override.set(_parse_policy(policy))


def reset_order_policy(token: Token[OrderPolicy | None]) -> None:
    _policy_override.reset(token)


@contextmanager
def order_policy(policy: OrderPolicy | str) -> Iterator[None]:
    token = set_order_policy(policy)
    try:
        yield
    finally:
        reset_order_policy(token)


def _resolve_policy(policy: OrderPolicy | str | None) -> OrderPolicy:
    if policy is not None:
        return _parse_policy(policy)
    override = _policy_override.get()
    if override is not None:
        return override
    from_env = os.environ.get(ORDER_POLICY_ENV, "").strip()
    return _parse_policy(from_env) if from_env else OrderPolicy.SORT


def _parse_policy(policy: OrderPolicy | str) -> OrderPolicy:
    if isinstance(policy, OrderPolicy):
        return policy
    try:
        return OrderPolicy(policy.strip().lower())
    except ValueError:
        choices = ", ".join(member.value for member in OrderPolicy)
        raise ValueError(f"unknown order policy {policy!r} (expected one of: {choices})") from None


def _find_violation(
    items: list[T],
    *,
    key: Callable[[T], Any] | None,
    reverse: bool,
) -> _Violation | None:
    markers = [key(item) if key is not None else item for item in items]
    for index in range(1, len(markers)):
        previous, current = markers[index - 1], markers[index]
        try:
            regressed = previous < current if reverse else previous > current
        except TypeError:
            return _Violation(index - 1, index, previous, current, "incomparable")
        if regressed:
            return _Violation(index - 1, index, previous, current, "out_of_order")
    return None

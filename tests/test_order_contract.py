from __future__ import annotations

import logging

import pytest

from hartopy.exceptions import OrderViolationError
from hartopy.order_contract import (
    OrderPolicy,
    get_order_policy,
    order_policy,
    ordered_or_sorted,
    reset_order_policy,
    set_order_policy,
    sort_once,
)


def test_ordered_or_sorted_sorts_by_default() -> None:
    values = ["b", "a", "c"]
    assert ordered_or_sorted(values, source="test") == ["a", "b", "c"]


def test_ordered_or_sorted_respects_key_and_reverse() -> None:
    values = [(2, "b"), (1, "a"), (3, "c")]
    ordered = ordered_or_sorted(values, source="test", key=lambda item: item[0], reverse=True)
    assert ordered == [(3, "c"), (2, "b"), (1, "a")]


def test_ordered_or_sorted_check_policy_sorts_only_on_regression(caplog) -> None:
    values = ["b", "a", "c"]
    with caplog.at_level(logging.DEBUG, logger="hartopy.order_contract"):
        with order_policy(OrderPolicy.CHECK):
            ordered = ordered_or_sorted(values, source="test")
    assert ordered == ["a", "b", "c"]
    assert len(caplog.records) == 1
    assert "out_of_order" in caplog.records[0].getMessage()
    assert "'source': 'test'" in caplog.records[0].getMessage()


def test_ordered_or_sorted_check_policy_keeps_sorted_input(caplog) -> None:
    with caplog.at_level(logging.DEBUG, logger="hartopy.order_contract"):
        with order_policy(OrderPolicy.CHECK):
            ordered = ordered_or_sorted(["a", "b"], source="test")
    assert ordered == ["a", "b"]
    assert caplog.records == []


def test_ordered_or_sorted_trust_policy_keeps_caller_order() -> None:
    values = ["b", "a", "c"]
    with order_policy(OrderPolicy.TRUST):
        assert ordered_or_sorted(values, source="test") == values


def test_ordered_or_sorted_policy_argument_overrides_context() -> None:
    values = ["b", "a", "c"]
    with order_policy(OrderPolicy.TRUST):
        assert ordered_or_sorted(
            values,
            source="test",
            policy=OrderPolicy.SORT,
        ) == ["a", "b", "c"]


def test_ordered_or_sorted_enforce_policy_raises_on_regression() -> None:
    with order_policy(OrderPolicy.ENFORCE):
        with pytest.raises(OrderViolationError) as excinfo:
            ordered_or_sorted(["b", "a"], source="test")
    assert excinfo.value.payload["previous_index"] == 0
    assert excinfo.value.payload["current_index"] == 1


def test_ordered_or_sorted_check_handles_incomparable_values() -> None:
    with order_policy(OrderPolicy.CHECK):
        with pytest.raises(TypeError):
            ordered_or_sorted([{"a": 1}, {"b": 2}], source="incomparable")


def test_ordered_or_sorted_enforce_rejects_incomparable_values() -> None:
    with order_policy(OrderPolicy.ENFORCE):
        with pytest.raises(OrderViolationError) as excinfo:
            ordered_or_sorted([{"a": 1}, {"b": 2}], source="incomparable")
    assert excinfo.value.payload["violation_kind"] == "incomparable"


def test_ordered_or_sorted_accepts_string_policy() -> None:
    with order_policy(OrderPolicy.TRUST):
        ordered = ordered_or_sorted(["a", "b"], source="string-policy", policy="enforce")
    assert ordered == ["a", "b"]


def test_sort_once_ignores_context_policy() -> None:
    with order_policy(OrderPolicy.ENFORCE):
        assert sort_once(["b", "a"], source="test") == ["a", "b"]


def test_get_order_policy_reads_env(env_scope) -> None:
    with env_scope({"HARTOPY_ORDER_POLICY": "Check"}):
        assert get_order_policy() is OrderPolicy.CHECK
    with env_scope({"HARTOPY_ORDER_POLICY": "   "}):
        assert get_order_policy() is OrderPolicy.SORT
    with env_scope({"HARTOPY_ORDER_POLICY": None}):
        assert get_order_policy() is OrderPolicy.SORT


def test_context_policy_overrides_env(env_scope) -> None:
    with env_scope({"HARTOPY_ORDER_POLICY": "enforce"}):
        token = set_order_policy("trust")
        try:
            assert get_order_policy() is OrderPolicy.TRUST
        finally:
            reset_order_policy(token)
        assert get_order_policy() is OrderPolicy.ENFORCE


def test_get_order_policy_rejects_unknown_env_policy(env_scope) -> None:
    with env_scope({"HARTOPY_ORDER_POLICY": "nonsense"}):
        with pytest.raises(ValueError):
            get_order_policy()

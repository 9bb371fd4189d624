"""Unit tests for $key variable expansion."""

from __future__ import annotations

from hostpolicy.policy.expansion import expand_variables


def test_multiple_references() -> None:
    assert expand_variables("$env/$env2", {"env": "a", "env2": "b"}) == "a/b"


def test_unknown_reference_left_verbatim() -> None:
    assert expand_variables("$unknown/$env", {"env": "a"}) == "$unknown/a"


def test_no_dollar_is_untouched() -> None:
    assert expand_variables("plain.policy", {"plain": "x"}) == "plain.policy"


def test_longest_key_wins_over_prefix_key() -> None:
    values = {"env": "short", "environment": "long"}

    assert expand_variables("$environment", values) == "long"
    assert expand_variables("$env.$environment", values) == "short.long"


def test_prefix_key_does_not_shadow_unknown_longer_name() -> None:
    assert expand_variables("$environment", {"env": "short"}) == "$environment"


def test_result_independent_of_key_order() -> None:
    forward = {"env": "a", "env2": "b", "environment": "c"}
    backward = dict(reversed(list(forward.items())))

    expr = "$env-$env2-$environment"
    assert expand_variables(expr, forward) == expand_variables(expr, backward) == "a-b-c"


def test_substituted_values_are_not_expanded_again() -> None:
    assert expand_variables("$a", {"a": "$b", "b": "nope"}) == "$b"


def test_repeated_references() -> None:
    assert expand_variables("$role/$role.py", {"role": "web"}) == "web/web.py"


def test_undefined_value_expands_to_empty() -> None:
    assert expand_variables("x$role.py", {"role": None}) == "x.py"

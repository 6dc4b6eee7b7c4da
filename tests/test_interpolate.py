"""Unit tests for variable interpolation."""

from __future__ import annotations

import pytest

from kvboot.core.errors import CircularReferenceError, MissingVariableError
from kvboot.core.interpolate import (
    Interpolator,
    Variables,
    expand_key_values,
    interpolate_key_values,
)
from kvboot.core.types import KeyValue, KeyValueFlag


class TestVariables:
    """Test suite for layered variables."""

    def test_first_layer_wins(self):
        """Test layers are consulted in order."""
        variables = Variables({"a": "1"}, {"a": "2", "b": "3"})
        assert variables.get("a") == "1"
        assert variables.get("b") == "3"
        assert variables.get("c") is None

    def test_callable_layer(self):
        """Test a callable layer is used as a lookup."""
        variables = Variables(lambda name: name.upper() if name == "x" else None)
        assert variables("x") == "X"
        assert variables("y") is None

    def test_find_entry(self):
        """Test the first defined name is returned."""
        variables = Variables({"b": "2", "c": "3"})
        assert variables.find_entry("a", "b", "c") == "2"
        assert variables.find_entry("a") is None


class TestInterpolator:
    """Test suite for ${name} substitution."""

    def test_no_dollar_is_unchanged(self):
        """Test text without '$' is returned as is."""
        interpolator = Interpolator({})
        for text in ["", "plain", "{a}", "a}b{"]:
            assert interpolator.interpolate("k", text) == text

    def test_simple_substitution(self):
        """Test a single reference."""
        interpolator = Interpolator({"name": "world"})
        assert interpolator.interpolate("k", "hello ${name}!") == "hello world!"

    def test_recursive_substitution(self):
        """Test substituted text is scanned again."""
        interpolator = Interpolator({"a": "${b}-a", "b": "b"})
        assert interpolator.interpolate("k", "${a}") == "b-a"

    def test_default_value(self):
        """Test the default is used when the variable is missing."""
        interpolator = Interpolator({})
        assert interpolator.interpolate("x", "${missing:-fallback}") == "fallback"

    def test_empty_default_value(self):
        """Test an empty default."""
        assert Interpolator({}).interpolate("x", "[${missing:-}]") == "[]"

    def test_default_ignored_when_defined(self):
        """Test a defined variable wins over the default."""
        assert Interpolator({"a": "1"}).interpolate("x", "${a:-2}") == "1"

    def test_missing_raises(self):
        """Test a missing variable without default raises."""
        with pytest.raises(MissingVariableError) as exc_info:
            Interpolator({}).interpolate("x", "${missing}")
        assert exc_info.value.variable == "missing"
        assert exc_info.value.key == "x"
        assert str(exc_info.value) == (
            "Variable is missing for key. key: 'x', variable: 'missing', raw: '${missing}'"
        )

    def test_self_reference_left_unresolved(self):
        """Test a reference to the key itself is not reported missing."""
        assert Interpolator({}).interpolate("path", "${path}:/bin") == "${path}:/bin"

    def test_escape(self):
        """Test $${name} renders a literal reference."""
        interpolator = Interpolator({"a": "1"})
        assert interpolator.interpolate("k", "$${a} ${a}") == "${a} 1"

    def test_nested_name(self):
        """Test references inside a name are resolved first."""
        interpolator = Interpolator({"env": "prod", "db.prod": "pg"})
        assert interpolator.interpolate("k", "${db.${env}}") == "pg"

    def test_cycle_raises_with_chain(self):
        """Test a cycle names every variable in it."""
        interpolator = Interpolator({"a": "${b}", "b": "${a}"})
        with pytest.raises(CircularReferenceError) as exc_info:
            interpolator.interpolate("x", "${a}")
        assert exc_info.value.chain == ["a", "b", "a"]
        message = str(exc_info.value)
        assert "a->b->a" in message
        assert "key: 'x'" in message

    def test_cycle_chain_starts_at_first_occurrence(self):
        """Test the chain leaves out names resolved before the cycle."""
        interpolator = Interpolator({"a": "${b}", "b": "${c}", "c": "${b}"})
        with pytest.raises(CircularReferenceError) as exc_info:
            interpolator.interpolate("x", "${a}")
        assert exc_info.value.chain == ["b", "c", "b"]

    def test_same_variable_twice_is_not_a_cycle(self):
        """Test repeated siblings do not count as recursion."""
        assert Interpolator({"a": "1"}).interpolate("k", "${a}${a}") == "11"

    def test_unclosed_reference_left_alone(self):
        """Test an unterminated reference is kept verbatim."""
        assert Interpolator({"a": "1"}).interpolate("k", "${a") == "${a"


class TestInterpolateKeyValues:
    """Test interpolation of a batch of key/values."""

    def test_batch_references(self):
        """Test key/values reference each other regardless of order."""
        kvs = [KeyValue.of("greeting", "hello ${name}"), KeyValue.of("name", "${first}"), KeyValue.of("first", "bob")]
        assert interpolate_key_values(kvs, {}) == {
            "greeting": "hello bob",
            "name": "bob",
            "first": "bob",
        }

    def test_batch_wins_over_variables(self):
        """Test raw values in the batch come before variables."""
        kvs = [KeyValue.of("a", "batch"), KeyValue.of("b", "${a}")]
        assert interpolate_key_values(kvs, {"a": "var"})["b"] == "batch"

    def test_variables_fallback(self):
        """Test variables are consulted last."""
        kvs = [KeyValue.of("b", "${a}")]
        assert interpolate_key_values(kvs, Variables({"a": "var"})) == {"b": "var"}

    def test_self_reference_uses_variable(self):
        """Test a key referencing itself sees the variable, not its raw value."""
        kvs = [KeyValue.of("path", "${path}:/opt")]
        assert interpolate_key_values(kvs, {"path": "/bin"}) == {"path": "/bin:/opt"}

    def test_batch_cycle_chain_starts_at_key(self):
        """Test a cycle between key/values is reported from the key being resolved."""
        kvs = [KeyValue.of("a", "${b}"), KeyValue.of("b", "${a}")]
        with pytest.raises(CircularReferenceError) as exc_info:
            interpolate_key_values(kvs, {})
        assert exc_info.value.chain == ["a", "b", "a"]
        assert "a->b->a" in str(exc_info.value)
        assert exc_info.value.key == "a"

    def test_no_interpolation_flag(self):
        """Test flagged key/values keep their raw value."""
        kvs = [KeyValue.of("a", "${missing}", flags=[KeyValueFlag.NO_INTERPOLATION])]
        assert interpolate_key_values(kvs, {}) == {"a": "${missing}"}

    def test_missing_is_fatal(self):
        """Test missing variables propagate."""
        with pytest.raises(MissingVariableError):
            interpolate_key_values([KeyValue.of("a", "${missing}")], {})

    def test_missing_skipped_when_not_strict(self):
        """Test lenient interpolation leaves the key out."""
        kvs = [KeyValue.of("a", "${missing}"), KeyValue.of("b", "1")]
        assert interpolate_key_values(kvs, {}, strict=False) == {"b": "1"}

    def test_strict_predicate(self):
        """Test strictness decided per key."""
        kvs = [KeyValue.of("a", "${missing}"), KeyValue.of("_load_x", "${missing}")]
        with pytest.raises(MissingVariableError) as exc_info:
            interpolate_key_values(kvs, {}, strict=lambda key: key.startswith("_"))
        assert exc_info.value.key == "_load_x"

    def test_expand_key_values(self):
        """Test expansion keeps raw values."""
        kvs = expand_key_values([KeyValue.of("a", "${b}"), KeyValue.of("b", "2")], {})
        assert [(kv.key, kv.raw, kv.expanded) for kv in kvs] == [
            ("a", "${b}", "2"),
            ("b", "2", "2"),
        ]

    def test_expand_not_strict_keeps_expanded(self):
        """Test lenient expansion keeps the current expanded value."""
        kvs = expand_key_values([KeyValue.of("a", "${b}")], {}, strict=False)
        assert kvs[0].expanded == "${b}"

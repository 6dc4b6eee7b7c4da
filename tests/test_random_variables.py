"""Tests for ${random.*} variables."""

from __future__ import annotations

import re
import uuid
from pathlib import Path
from random import Random

import pytest

from kvboot.core.environment import Environment
from kvboot.core.errors import VariableLookupError
from kvboot.core.host import Host
from kvboot.core.random_variables import RandomVariables


def _host(tmp_path: Path, seed: int) -> Host:
    return Host(
        env={}, argv=[], system_properties={}, stdin=lambda: "", resource_roots=[tmp_path], random=Random(seed)
    )


class TestRandomVariables:
    """Test suite for the random variable layer."""

    def test_other_names_unknown(self):
        """Test names without the prefix are left to other layers."""
        assert RandomVariables(Random(1))("user.home") is None

    def test_int_and_long(self):
        """Test unbounded integers fit their width."""
        variables = RandomVariables(Random(1))
        assert -(2 ** 31) <= int(variables("random.int")) < 2 ** 31
        assert -(2 ** 63) <= int(variables("random.long")) < 2 ** 63

    def test_ranges(self):
        """Test ranges are half open and default to start at zero."""
        variables = RandomVariables(Random(1))
        for _ in range(50):
            assert 0 <= int(variables("random.int[10]")) < 10
            assert 5 <= int(variables("random.long[5, 9]")) < 9

    def test_uuid(self):
        """Test version 4 UUIDs."""
        assert uuid.UUID(RandomVariables(Random(1))("random.uuid")).version == 4

    def test_anything_else_is_hex(self):
        """Test other names give 16 random bytes as hex."""
        assert re.fullmatch("[0-9a-f]{32}", RandomVariables(Random(1))("random.secret"))

    def test_same_seed_same_values(self):
        """Test a seeded source repeats its values."""
        names = ["random.int", "random.long", "random.int[3,7]", "random.uuid", "random.x"]
        first = RandomVariables(Random(42))
        second = RandomVariables(Random(42))
        assert [first(n) for n in names] == [second(n) for n in names]

    @pytest.mark.parametrize(
        "name, message",
        [
            ("random.int[0]", "Bound must be positive"),
            ("random.int[-3]", "Bound must be positive"),
            ("random.long[9,2]", "Lower bound must be less than upper bound"),
            ("random.int[4,4]", "Lower bound must be less than upper bound"),
            ("random.int[]", "Invalid random range"),
            ("random.int[a,b]", "Invalid random range"),
        ],
    )
    def test_bad_ranges(self, name, message):
        """Test malformed ranges are rejected."""
        with pytest.raises(VariableLookupError, match=message):
            RandomVariables(Random(1))(name)


class TestEnvironmentRandom:
    """Test random variables during resolution."""

    def test_resolved_values(self, tmp_path):
        """Test random references are interpolated."""
        env = Environment("dev", host=_host(tmp_path, 7), use_config_file=False)
        env.register_key_values("app", {"port": "${random.int[1000,2000]}", "id": "${random.uuid}"})
        values = env.get_config().values()
        assert 1000 <= int(values["port"]) < 2000
        assert uuid.UUID(values["id"]).version == 4

    def test_seeded_host_is_repeatable(self, tmp_path):
        """Test two runs with the same seed resolve the same values."""
        results = []
        for _ in range(2):
            env = Environment("dev", host=_host(tmp_path, 7), use_config_file=False)
            env.register_key_values("app", {"token": "${random.value}", "n": "${random.long}"})
            results.append(env.get_config().values())
        assert results[0] == results[1]

    def test_user_variables_win(self, tmp_path):
        """Test variables added to the environment shadow random ones."""
        env = Environment("dev", host=_host(tmp_path, 7), use_config_file=False)
        env.register_key_values("app", {"n": "${random.int}"})
        env.add_variables({"random.int": "4"})
        assert env.get_config().values() == {"n": "4"}

    def test_bad_range_names_resource(self, tmp_path):
        """Test range errors carry the load chain."""
        env = Environment("dev", host=_host(tmp_path, 7), use_config_file=False)
        env.register_key_values("app", {"n": "${random.int[-1]}"})
        with pytest.raises(VariableLookupError) as exc_info:
            env.get_config()
        assert exc_info.value.load_chain == "uri='null:///app'"

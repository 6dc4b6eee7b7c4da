"""Unit tests for the Environment class."""

from __future__ import annotations

from pathlib import Path

import pytest

from kvboot.core.config import Config
from kvboot.core.environment import Environment
from kvboot.core.errors import FlagError, MissingVariableError
from kvboot.core.flags import LoadFlag
from kvboot.core.host import Host
from kvboot.core.resource import Filter, NamedKeyValues


def _host(tmp_path: Path) -> Host:
    return Host(env={}, argv=[], system_properties={}, stdin=lambda: "", resource_roots=[tmp_path])


class TestEnvironment:
    """Test suite for Environment class."""

    def test_init(self, tmp_path):
        """Test Environment initialization."""
        env = Environment("production", host=_host(tmp_path), use_config_file=False)
        assert env.name == "production"
        assert env.seeds == []

    def test_register_sources_multiple(self, tmp_path):
        """Test registering multiple sources."""
        env = Environment("dev", host=_host(tmp_path), use_config_file=False)
        env.register_sources(tmp_path / ".env", "classpath:/a.yaml", "env:///")
        assert [seed.uri for seed in env.seeds] == [str(tmp_path / ".env"), "classpath:/a.yaml", "env:///"]

    def test_register_source_with_options(self, tmp_path):
        """Test registering a source with options."""
        env = Environment("dev", host=_host(tmp_path), use_config_file=False)
        env.register_source(
            "classpath:/a.conf",
            name="a",
            flags="optional",
            media_type="properties",
            parameters={"p": "1"},
            filters=[Filter("grep", "^db"), {"id": "join", "expression": ","}],
        )
        [seed] = env.seeds
        assert seed.name == "a"
        assert seed.load_flags == {LoadFlag.NO_REQUIRE}
        assert seed.media_type == "properties"
        assert seed.parameters == {"p": "1"}
        assert seed.filters == (Filter("grep", "^db"), Filter("join", ","))

    def test_register_source_bad_flag(self, tmp_path):
        """Test unknown flags are rejected at registration."""
        env = Environment("dev", host=_host(tmp_path), use_config_file=False)
        with pytest.raises(FlagError):
            env.register_source("env:///", flags="sometimes")

    def test_seeds_is_a_copy(self, tmp_path):
        """Test callers cannot change the registered seeds."""
        env = Environment("dev", host=_host(tmp_path), use_config_file=False)
        env.seeds.append(object())
        assert env.seeds == []

    def test_register_key_values(self, tmp_path):
        """Test in-memory key/values are seeded."""
        env = Environment("dev", host=_host(tmp_path), use_config_file=False)
        env.register_key_values("defaults", {"a": "1"})
        [seed] = env.seeds
        assert isinstance(seed, NamedKeyValues)
        assert env.get_config().values() == {"a": "1"}

    def test_seed_order(self, tmp_path):
        """Test seeds resolve in registration order."""
        (tmp_path / "app.properties").write_text("a=file\nb=${c}\n")
        env = Environment("dev", host=_host(tmp_path), use_config_file=False)
        env.register_key_values("defaults", {"a": "default", "c": "from defaults"})
        env.register_source("classpath:/app.properties", name="app")
        assert env.get_config().values() == {"a": "file", "c": "from defaults", "b": "from defaults"}

    def test_add_variables(self, tmp_path):
        """Test variables are used by interpolation but not returned."""
        env = Environment("dev", host=_host(tmp_path), use_config_file=False)
        env.register_key_values("app", {"url": "http://${host}:${port}"})
        env.add_variables({"host": "localhost", "port": 8080})
        assert env.get_config().values() == {"url": "http://localhost:8080"}

    def test_missing_variable(self, tmp_path):
        """Test resolution fails on an unknown variable."""
        env = Environment("dev", host=_host(tmp_path), use_config_file=False)
        env.register_key_values("app", {"url": "${host}"})
        with pytest.raises(MissingVariableError):
            env.get_config()

    def test_default_seed_missing(self, tmp_path):
        """Test the optional default seed is used when nothing is registered."""
        env = Environment("dev", host=_host(tmp_path), use_config_file=False)
        assert env.resolve() == []

    def test_default_seed_present(self, tmp_path):
        """Test the default seed is loaded from the resource roots."""
        (tmp_path / "boot.properties").write_text("a=1\n")
        env = Environment("dev", host=_host(tmp_path), use_config_file=False)
        [kv] = env.resolve()
        assert kv.source.uri == "classpath:/boot.properties"

    def test_get_config_reload(self, tmp_path):
        """Test the config reloads from the same seeds."""
        props = tmp_path / "a.properties"
        props.write_text("a=1\n")
        env = Environment("dev", host=_host(tmp_path), use_config_file=False)
        env.register_source(props)
        cfg = env.get_config()
        assert isinstance(cfg, Config)
        props.write_text("a=2\n")
        cfg.reload()
        assert cfg.get("a") == "2"


class TestEnvironmentConfigFile:
    """Test Environment integration with kvboot.yaml."""

    def test_sources_and_variables_from_file(self, tmp_path):
        """Test seeds and variables listed for the environment."""
        (tmp_path / "app.properties").write_text("greeting=hello ${who}\n")
        config_file = tmp_path / "kvboot.yaml"
        config_file.write_text(
            "environments:\n"
            "  dev:\n"
            "    variables:\n"
            "      who: world\n"
            "    sources:\n"
            "      - classpath:/app.properties\n"
            "      - uri: classpath:/local.properties\n"
            "        flags: optional\n"
        )
        env = Environment("dev", host=_host(tmp_path), config_path=config_file)
        assert [seed.uri for seed in env.seeds] == ["classpath:/app.properties", "classpath:/local.properties"]
        assert env.get_config().values() == {"greeting": "hello world"}

    def test_other_environment(self, tmp_path):
        """Test environments without entries have no seeds."""
        config_file = tmp_path / "kvboot.yaml"
        config_file.write_text("environments:\n  dev:\n    sources:\n      - env:///\n")
        env = Environment("prod", host=_host(tmp_path), config_path=config_file)
        assert env.seeds == []

    def test_found_in_cwd(self, tmp_path, monkeypatch):
        """Test kvboot.yaml is found from the working directory."""
        (tmp_path / "kvboot.yaml").write_text("environments:\n  dev:\n    sources:\n      - env:///\n")
        monkeypatch.chdir(tmp_path)
        env = Environment("dev", host=_host(tmp_path))
        assert [seed.uri for seed in env.seeds] == ["env:///"]

    def test_registered_after_file(self, tmp_path):
        """Test sources registered in code come after the file's."""
        config_file = tmp_path / "kvboot.yaml"
        config_file.write_text("environments:\n  dev:\n    sources:\n      - env:///\n")
        env = Environment("dev", host=_host(tmp_path), config_path=config_file)
        env.register_source("system:///", name="sys")
        assert [seed.uri for seed in env.seeds] == ["env:///", "system:///"]

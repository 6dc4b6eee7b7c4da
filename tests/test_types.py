"""Unit tests for key/values, sources and resources."""

from __future__ import annotations

import base64

import pytest

from kvboot.core.errors import ResourceDeclarationError
from kvboot.core.flags import LoadFlag
from kvboot.core.resource import (
    Filter,
    make_resource,
    name_from_uri,
    named_key_values,
    validate_name,
    validate_names,
)
from kvboot.core.types import KeyValue, KeyValueFlag, KeyValueReference, Source, to_map


class TestKeyValue:
    """Test suite for KeyValue."""

    def test_of(self):
        """Test a new key/value has its raw value as expanded value."""
        kv = KeyValue.of("a", "${b}")
        assert kv.key == kv.original_key == "a"
        assert kv.raw == kv.value == "${b}"
        assert kv.source.is_null()
        assert kv.flags == frozenset()

    def test_with_key_keeps_original(self):
        """Test renaming keeps the original key and value."""
        kv = KeyValue.of("db.url", "x").with_key("url")
        assert kv.key == "url"
        assert kv.original_key == "db.url"
        assert kv.value == "x"

    def test_with_expanded(self):
        """Test a new expanded value keeps the raw value."""
        kv = KeyValue.of("a", "${b}").with_expanded("1")
        assert kv.value == "1"
        assert kv.raw == "${b}"
        assert kv.with_expanded(None) is kv

    def test_no_interpolation_keeps_raw(self):
        """Test no-interpolation key/values ignore expansion."""
        kv = KeyValue.of("a", "${b}").with_expanded("1").add_flags([KeyValueFlag.NO_INTERPOLATION])
        assert kv.value == "${b}"
        assert kv.with_expanded("2").value == "${b}"

    def test_add_flags_unchanged(self):
        """Test adding flags already present returns the same key/value."""
        kv = KeyValue.of("a", "1", flags=[KeyValueFlag.SENSITIVE])
        assert kv.add_flags([KeyValueFlag.SENSITIVE]) is kv

    def test_with_raw(self):
        """Test replacing the raw value also resets the expanded value."""
        kv = KeyValue.of("a", "${x}").with_expanded("1").with_raw("2")
        assert (kv.raw, kv.value) == ("2", "2")

    def test_redact(self):
        """Test sensitive values are replaced."""
        kv = KeyValue.of("token", "s3cr3t", flags=[KeyValueFlag.SENSITIVE])
        redacted = kv.redact()
        assert (redacted.raw, redacted.value) == ("REDACTED", "REDACTED")
        assert not redacted.is_sensitive()
        assert kv.redact("***").value == "***"
        plain = KeyValue.of("a", "1")
        assert plain.redact() is plain

    def test_str(self):
        """Test the string form."""
        source = Source("file:///a.properties", KeyValueReference("_load_a", "null:///seed"), 2)
        kv = KeyValue.of("db.url", "x", source).with_key("url")
        assert str(kv) == (
            "KeyValue[key='url', originalKey='db.url', raw='x', expanded='x', "
            "source=Source[uri=file:///a.properties, reference=[key='_load_a', in='null:///seed'], index=2]]"
        )

    def test_str_redacts(self):
        """Test the string form never shows sensitive values."""
        kv = KeyValue.of("token", "s3cr3t", flags=[KeyValueFlag.SENSITIVE, KeyValueFlag.NO_INTERPOLATION])
        assert str(kv) == (
            "KeyValue[key='token', raw='REDACTED', expanded='REDACTED', "
            "source=Source[empty], flags=[NO_INTERPOLATION]]"
        )
        assert repr(kv) == str(kv)

    def test_to_reference(self):
        """Test references carry the source chain."""
        parent = KeyValueReference("_load_a", "classpath:/boot.properties")
        kv = KeyValue.of("_load_b", "x", Source("file:///a", parent, 1), [KeyValueFlag.SENSITIVE])
        ref = kv.to_reference()
        assert (ref.key, ref.uri, ref.sensitive) == ("_load_b", "file:///a", True)
        assert ref.chain() == [ref, parent]

    def test_to_map(self):
        """Test later values win and keys keep their first position."""
        kvs = [KeyValue.of("a", "1"), KeyValue.of("b", "2"), KeyValue.of("a", "3")]
        assert list(to_map(kvs).items()) == [("a", "3"), ("b", "2")]


class TestSource:
    """Test suite for Source."""

    def test_redact_sensitive_reference(self):
        """Test sources declared by sensitive keys hide their URI."""
        ref = KeyValueReference("_load_a", "null:///seed", sensitive=True)
        source = Source("file:///secret.properties", ref, 1)
        assert source.redact().uri == "REDACTED"
        assert "secret" not in str(source)

    def test_redact_plain(self):
        """Test other sources are untouched."""
        source = Source("file:///a.properties", None, 1)
        assert source.redact() is source
        assert str(source) == "Source[uri=file:///a.properties, index=1]"


class TestResource:
    """Test suite for resources."""

    def test_name_from_uri(self):
        """Test the default name is the unpadded base32 of the URI."""
        resource = make_resource("classpath:/boot.properties")
        expected = base64.b32encode(b"classpath:/boot.properties").decode("ascii").rstrip("=")
        assert resource.name == expected == name_from_uri("classpath:/boot.properties")

    def test_validate_name(self):
        """Test names must be alphanumeric."""
        assert validate_name("db1") == "db1"
        for bad in ("", None, "my_db", "my-db"):
            with pytest.raises(ResourceDeclarationError, match="Invalid source name"):
                validate_name(bad)

    def test_validate_names(self):
        """Test duplicate names are rejected."""
        validate_names([make_resource("env:///", name="a"), make_resource("env:///", name="b")])
        with pytest.raises(ResourceDeclarationError, match="name=a"):
            validate_names([make_resource("env:///", name="a"), named_key_values("a", {})])

    def test_flags(self):
        """Test flags given as CSV, spellings or members."""
        assert make_resource("env:///", flags="optional,lock").load_flags == {LoadFlag.NO_REQUIRE, LoadFlag.LOCK}
        assert make_resource("env:///", flags=["sensitive", LoadFlag.NO_EMPTY]).load_flags == {
            LoadFlag.SENSITIVE,
            LoadFlag.NO_EMPTY,
        }

    def test_filters_from_dicts(self):
        """Test filters given as dicts."""
        resource = make_resource("env:///", filters=[{"id": "sed", "expression": "s/a/b/", "name": "x"}])
        assert resource.filters == (Filter("sed", "s/a/b/", "x"),)

    def test_describe(self):
        """Test descriptions used by log messages."""
        ref = KeyValueReference("_load_b", "classpath:/a.properties")
        resource = make_resource("classpath:/b.properties", name="b", flags="optional", reference=ref)
        assert resource.describe() == "uri='classpath:/b.properties' flags=[NO_REQUIRE]"
        assert resource.describe(include_reference=True) == (
            "uri='classpath:/b.properties' flags=[NO_REQUIRE] "
            "specified with key: '_load_b' in uri='classpath:/a.properties'"
        )

    def test_describe_chain_redacted(self):
        """Test the chain hides the URI of resources declared by sensitive keys."""
        seed_ref = KeyValueReference("_load_a", "classpath:/boot.properties")
        ref = KeyValueReference("_load_b", "classpath:/a.properties", sensitive=True, parent=seed_ref)
        resource = make_resource("file:///secret.properties", name="b", reference=ref)
        assert resource.describe_chain() == (
            "uri='REDACTED'\n"
            "\t<-- specified with key: '_load_b' in uri='classpath:/a.properties'\n"
            "\t<-- specified with key: '_load_a' in uri='classpath:/boot.properties'"
        )

    def test_key_values(self):
        """Test loaded pairs are sourced from the resource."""
        resource = make_resource("file:///a.properties", name="a")
        kvs = resource.key_values([("x", "1"), ("y", "2")])
        assert [(kv.source.uri, kv.source.index) for kv in kvs] == [("file:///a.properties", 1), ("file:///a.properties", 2)]

    def test_named_key_values(self):
        """Test in-memory key/values are sourced from null:///<name>."""
        seed = named_key_values("mem", [("a", "1"), KeyValue.of("b", "2", Source("file:///b", None, 4))])
        assert [kv.source.uri for kv in seed.key_values] == ["null:///mem", "file:///b"]
        assert seed.describe() == "uri='null:///mem'"

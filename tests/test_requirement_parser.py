"""Tests for requirement parsing, formatting and version matching."""

import pytest
import semantic_version

from errors import ParseError
from versioning.models import ConstraintKind, Requirement
from versioning.parser import (
    format_requirement,
    import_name,
    is_url,
    normalize_identity,
    parse_constraint,
    parse_requirement,
    parse_requires,
    parse_version,
)


def _v(text):
    return semantic_version.Version(text)


class TestParseVersion:
    """Tests for lenient version parsing."""

    def test_partial_versions_are_coerced(self):
        assert parse_version("0.9") == _v("0.9.0")
        assert parse_version("2") == _v("2.0.0")

    def test_v_prefix_is_stripped(self):
        assert parse_version("v1.2.3") == _v("1.2.3")

    def test_non_versions_return_none(self):
        assert parse_version("") is None
        assert parse_version("master") is None
        assert parse_version("release-1.0") is None


class TestParseRequirement:
    """Tests for single requirement parsing."""

    def test_bare_name_is_any(self):
        req = parse_requirement("foo")
        assert req.identity == "foo"
        assert req.constraint.kind == ConstraintKind.ANY
        assert req.constraint.matches(_v("0.0.1"))

    def test_star_is_any(self):
        assert parse_requirement("foo *").constraint.kind == ConstraintKind.ANY

    def test_identity_is_normalized(self):
        assert parse_requirement("Foo_Bar >= 1.0").identity == "foobar"
        assert normalize_identity("Foo_Bar") == "foobar"

    def test_comparison(self):
        req = parse_requirement("foo >= 1.2")
        assert req.constraint.clauses == ((">=", "1.2.0"),)
        assert req.constraint.matches(_v("1.2.0"))
        assert not req.constraint.matches(_v("1.1.9"))

    def test_single_equals_means_equality(self):
        req = parse_requirement("foo = 1.0")
        assert req.constraint.clauses == (("==", "1.0.0"),)

    def test_conjunction(self):
        req = parse_requirement("foo >= 1.0 & < 2.0")
        assert req.constraint.matches(_v("1.5.0"))
        assert not req.constraint.matches(_v("2.0.0"))

    def test_release_reference(self):
        req = parse_requirement("foo#head")
        assert req.constraint.kind == ConstraintKind.RELEASE
        assert req.constraint.reference == "head"

    def test_url_identity_keeps_url(self):
        req = parse_requirement("https://github.com/someone/nim-alpha.git >= 1.0")
        assert req.identity == "alpha"
        assert req.url == "https://github.com/someone/nim-alpha.git"
        assert req.constraint.matches(_v("1.0.0"))

    def test_url_identity_with_reference(self):
        req = parse_requirement("https://github.com/someone/alpha#v1.0")
        assert req.identity == "alpha"
        assert req.constraint.reference == "v1.0"

    def test_source_is_not_part_of_equality(self):
        left = parse_requirement("foo > 1.0", source="a.nimble")
        right = parse_requirement("foo > 1.0", source="cli")
        assert left == right
        assert hash(left) == hash(right)

    @pytest.mark.parametrize("text", ["", "   ", "foo >", "foo >= banana", "foo#", ">= 1.0"])
    def test_malformed_raises_parse_error(self, text):
        with pytest.raises(ParseError):
            parse_requirement(text)


class TestWildcards:
    """Tests for wildcard, caret and tilde expansion."""

    @pytest.mark.parametrize(
        "text,clauses",
        [
            ("== 2.*", ((">=", "2.0.0"), ("<", "3.0.0"))),
            ("> 2.*", ((">=", "3.0.0"),)),
            (">= 2.*", ((">=", "2.0.0"),)),
            ("< 2.*", (("<", "2.0.0"),)),
            ("<= 2.*", (("<", "3.0.0"),)),
            ("== 2.1.*", ((">=", "2.1.0"), ("<", "2.2.0"))),
            ("^= 1.2", ((">=", "1.2.0"), ("<", "2.0.0"))),
            ("^= 0.2", ((">=", "0.2.0"), ("<", "0.3.0"))),
            ("~= 1.2.3", ((">=", "1.2.3"), ("<", "1.3.0"))),
            ("~= 1.2", ((">=", "1.2.0"), ("<", "2.0.0"))),
        ],
    )
    def test_expansion(self, text, clauses):
        assert parse_constraint(text).clauses == clauses

    def test_wildcard_matches_any_minor(self):
        req = parse_requirement("foo 2.*")
        assert req.constraint.matches(_v("2.9.1"))
        assert not req.constraint.matches(_v("3.0.0"))


class TestParseRequires:
    """Tests for parsing requirement lists."""

    def test_comma_separated_string(self):
        reqs = parse_requires("foo >= 1.0, bar, baz#head", source="x.nimble")
        assert [r.identity for r in reqs] == ["foo", "bar", "baz"]
        assert all(r.source == "x.nimble" for r in reqs)

    def test_collects_every_failure(self):
        with pytest.raises(ParseError) as excinfo:
            parse_requires(["foo >", "bar", "baz >= nope"])
        assert excinfo.value.failures == ["foo >", "baz >= nope"]

    def test_empty_input_is_no_requirements(self):
        assert parse_requires("") == []
        assert parse_requires([]) == []

    def test_items_are_split_on_commas(self):
        reqs = parse_requires(["foo > 1, bar", "baz#head"])
        assert [r.identity for r in reqs] == ["foo", "bar", "baz"]
        with pytest.raises(ParseError) as excinfo:
            parse_requires(["foo > 1, bar >= nope"])
        assert excinfo.value.failures == ["bar >= nope"]


class TestFormatRequirement:
    """Tests for rendering requirements back to text."""

    @pytest.mark.parametrize(
        "text",
        [
            "foo",
            "foo >= 1.0",
            "foo > 2.*",
            "foo ^= 0.2",
            "foo >= 1.0 & < 2.0",
            "foo#v1.2.3",
            "https://example.com/x/alpha.git < 3",
        ],
    )
    def test_format_then_parse_is_stable(self, text):
        first = parse_requirement(text)
        again = parse_requirement(format_requirement(first))
        assert again == first
        assert again.url == first.url

    def test_str_uses_format(self):
        req = parse_requirement("foo >= 1")
        assert str(req) == "foo >= 1.0.0"
        assert isinstance(req, Requirement)


class TestUrls:
    """Tests for URL helpers."""

    def test_import_name(self):
        assert import_name("https://github.com/a/nim-foo.git") == "foo"
        assert import_name("git@github.com:a/bar.git") == "bar"
        assert import_name("https://github.com/a/baz/") == "baz"

    def test_is_url(self):
        assert is_url("https://github.com/a/b")
        assert is_url("git@github.com:a/b.git")
        assert not is_url("foo")

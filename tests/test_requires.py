"""
Unit tests for require discovery and Literal/Dynamic classification.
"""
import pytest

from luabundler.models import RequireKind
from luabundler.parser import get_parser
from luabundler.requires import RequireCollector, collect_requires
from luabundler.transformer import DYNAMIC, fold


@pytest.fixture
def parser():
    return get_parser()


def requires_of(parser, source):
    return collect_requires(parser.parse(source))


class TestLiteralRequires:
    """Requires whose module id is known at bundle time."""

    def test_call_forms(self, parser):
        source = (
            'local a = require("a")\n'
            'local b = require "b"\n'
            'local c = require [[c]]\n'
            "local d = require('d')\n"
        )
        requires = requires_of(parser, source)
        assert [r.value for r in requires] == ["a", "b", "c", "d"]
        assert all(r.kind == RequireKind.LITERAL for r in requires)

    def test_location(self, parser):
        requires = requires_of(parser, 'local x = 1\nlocal a = require("a")')
        assert (requires[0].line, requires[0].column) == (2, 11)

    def test_constant_concatenation(self, parser):
        requires = requires_of(parser, 'require("ui." .. "button")\nrequire(("core") .. "." .. "io")')
        assert [r.value for r in requires] == ["ui.button", "core.io"]

    def test_integer_concatenation(self, parser):
        requires = requires_of(parser, 'require("level" .. 2)')
        assert requires[0].value == "level2"

    def test_escapes_are_decoded(self, parser):
        requires = requires_of(parser, r'require("\x61.b")')
        assert requires[0].value == "a.b"

    def test_utf8_byte_escapes(self, parser):
        requires = requires_of(parser, r'require("caf\xc3\xa9")')
        assert requires[0].value == "café"

    def test_non_utf8_bytes_are_dynamic(self, parser):
        requires = requires_of(parser, r'require("mod\xff")')
        assert requires[0].kind == RequireKind.DYNAMIC

    def test_nested_calls(self, parser):
        source = '''
        print(require("a").x)
        local lazy = function() return require("b") end
        local t = { dep = require("c") }
        '''
        assert [r.value for r in requires_of(parser, source)] == ["a", "b", "c"]

    def test_source_order_and_duplicates(self, parser):
        source = 'local b = require("b")\nlocal a = require("a")\nlocal b2 = require("b")'
        assert [r.value for r in requires_of(parser, source)] == ["b", "a", "b"]


class TestIgnoredCalls:
    """Text that looks like a require but is not one."""

    def test_comments_and_strings(self, parser):
        source = '''
        -- require("x")
        --[[ require("y") ]]
        local s = "require('z')"
        local l = [[require("w")]]
        '''
        assert requires_of(parser, source) == []

    def test_method_and_field_calls(self, parser):
        source = 'obj:require("x")\npkg.require("y")\nlocal r = myrequire("z")'
        assert requires_of(parser, source) == []


class TestDynamicRequires:
    """Requires that can only be resolved at runtime."""

    @pytest.mark.parametrize("call", [
        'require(name)',
        'require("ui." .. name)',
        'require()',
        'require("a", "b")',
        'require{}',
        'require(1 + 2)',
        'require(("a"):upper())',
    ])
    def test_is_dynamic(self, parser, call):
        requires = requires_of(parser, "local m = " + call)
        assert len(requires) == 1
        assert requires[0].kind == RequireKind.DYNAMIC
        assert requires[0].value is None

    def test_dynamic_location(self, parser):
        source = 'local name = "x"\n\nlocal m = require(name)'
        requires = requires_of(parser, source)
        assert (requires[0].line, requires[0].column) == (3, 11)
        assert not requires[0].is_literal


class TestCollector:
    """Collector configuration and the folder itself."""

    def test_custom_require_name(self, parser):
        tree = parser.parse('local a = import("a")\nlocal b = require("b")')
        requires = RequireCollector(require_name="import").collect(tree)
        assert [r.value for r in requires] == ["a"]

    def test_fold_variable_is_dynamic(self, parser):
        tree = parser.parse("x = y")
        explist = tree.children[0].children[0].children[1]
        assert fold(explist.children[0]) is DYNAMIC

    def test_fold_number_token(self, parser):
        tree = parser.parse("x = 5")
        explist = tree.children[0].children[0].children[1]
        assert fold(explist.children[0]) == "5"

"""
Unit tests for the Lua grammar and parse().
"""
import time

import pytest

from luabundler.errors import ParseError
from luabundler.parser import get_parser, parse, strip_bom, strip_shebang


@pytest.fixture
def parser():
    """The shared Lua parser."""
    return get_parser()


class TestStatements:
    """Statement forms across Lua versions."""

    def test_empty_chunk(self, parser):
        tree = parser.parse("")
        assert tree.data == "start"

    def test_locals_and_assignment(self, parser):
        code = '''
        local a, b = 1, 2
        a, b = b, a
        local t = {}
        t.x, t["y"] = 3, 4
        '''
        assert parser.parse(code) is not None

    def test_control_flow(self, parser):
        code = '''
        for i = 1, 10, 2 do
            if i > 5 then break elseif i == 3 then print(i) else end
        end
        for k, v in pairs({}) do end
        while false do end
        repeat local x = 1 until x == 1
        do local y = 2 end
        '''
        assert parser.parse(code) is not None

    def test_functions(self, parser):
        code = '''
        local function f(a, b, ...) return select('#', ...) end
        function M.g(x) return x end
        function M.obj:method() return self end
        local h = function(...) return ... end
        '''
        assert parser.parse(code) is not None

    def test_lua54_features(self, parser):
        code = '''
        local x <const> = 5
        local f <close> = nil
        for i = 1, 3 do
            if i == 2 then goto continue end
            ::continue::
        end
        local z = 7 // 2 + (3 & 1) | (4 ~ 2) << 1 >> 1
        local w = ~x
        '''
        assert parser.parse(code) is not None

    def test_return_with_semicolon(self, parser):
        assert parser.parse("return 1, 2;") is not None

    def test_semicolons_between_statements(self, parser):
        assert parser.parse("local a = 1; ; local b = 2;") is not None

    def test_paren_on_next_line_continues_call(self, parser):
        tree = parser.parse("a = b\n(f)()")
        block = tree.children[0]
        assert len(block.children) == 1
        assign = block.children[0]
        assert assign.data == "assign"
        assert assign.children[1].children[0].data == "call"

    def test_call_statement_after_call(self, parser):
        tree = parser.parse("f()\ng()")
        assert [s.data for s in tree.children[0].children] == ["call", "call"]


class TestExpressions:
    """Literals and operators."""

    def test_numbers(self, parser):
        code = "local n = {0x1F, 0x1p4, 1e10, .5, 3., 3.14e-2, 0xffULL, 12i}"
        assert parser.parse(code) is not None

    def test_strings(self, parser):
        code = r'''
        local a = "double \"quoted\""
        local b = 'single \'quoted\''
        local c = [[long
        string]]
        local d = [==[with ]] inside]==]
        local e = "skip \z
                   whitespace"
        '''
        assert parser.parse(code) is not None

    def test_comments(self, parser):
        code = '''
        -- line comment
        --[[ block
        comment ]]
        --[==[ level two ]] still comment ]==]
        local x = 1 -- trailing
        '''
        assert parser.parse(code) is not None

    def test_call_forms(self, parser):
        code = '''
        print "hello"
        print [[hello]]
        setmetatable {}
        obj:method "arg"
        obj:method { x = 1 }
        a.b.c(1)(2)
        '''
        assert parser.parse(code) is not None

    def test_operator_precedence(self, parser):
        tree = parser.parse("x = -a ^ 2")
        assign = tree.children[0].children[0]
        unop = assign.children[1].children[0]
        assert unop.data == "unop"
        assert unop.children[1].data == "binop"

    def test_concat_is_right_associative(self, parser):
        tree = parser.parse('x = "a" .. "b" .. "c"')
        binop = tree.children[0].children[0].children[1].children[0]
        assert binop.data == "binop"
        assert binop.children[0].data == "string"
        assert binop.children[2].data == "binop"

    def test_table_constructor(self, parser):
        code = 'local t = {1, 2; x = 3, ["y"] = 4, f(),}'
        assert parser.parse(code) is not None


class TestParseFunction:
    """Tests for parse() and its error reporting."""

    def test_returns_tree_and_requires(self):
        tree, requires = parse('local m = require("m")')
        assert tree.data == "start"
        assert [r.value for r in requires] == ["m"]

    def test_shebang_is_ignored(self):
        tree, requires = parse('#!/usr/bin/env lua\nlocal m = require("m")\n')
        assert requires[0].line == 2

    def test_strip_shebang_keeps_line_count(self):
        assert strip_shebang("#!/bin/lua\nx = 1\n") == "\nx = 1\n"
        assert strip_shebang("x = 1\n") == "x = 1\n"

    def test_syntax_error_location(self):
        with pytest.raises(ParseError) as excinfo:
            parse("local ok = 1\nlocal = 5\n", module_id="broken", path="broken.lua")
        error = excinfo.value
        assert error.module_id == "broken"
        assert error.line == 2
        assert error.context == "local = 5"
        assert "broken.lua" in str(error)

    def test_unterminated_string(self):
        with pytest.raises(ParseError) as excinfo:
            parse('local s = "abc\n')
        assert excinfo.value.line == 1

    def test_unexpected_end_of_file(self):
        with pytest.raises(ParseError) as excinfo:
            parse("function f()\n  return 1\n")
        assert "end of file" in excinfo.value.message

    def test_chain_in_message(self):
        with pytest.raises(ParseError) as excinfo:
            parse("x = = 1", module_id="lib", chain=["main", "lib"])
        assert "main -> lib" in str(excinfo.value)

    def test_expression_is_not_a_statement(self):
        with pytest.raises(ParseError) as excinfo:
            parse("local a = 1\na.b\n")
        assert excinfo.value.line == 2
        assert "not a statement" in excinfo.value.message

    def test_cannot_assign_to_call(self):
        with pytest.raises(ParseError) as excinfo:
            parse("x, f() = 1, 2")
        assert "cannot assign" in excinfo.value.message
        assert excinfo.value.column == 4

    def test_byte_order_mark(self):
        assert strip_bom('\ufeffx = 1') == 'x = 1'
        tree, requires = parse('\ufeffreturn require("lib")\n')
        assert (requires[0].line, requires[0].column) == (1, 8)

    def test_byte_order_mark_before_shebang(self):
        tree, requires = parse('\ufeff#!/usr/bin/env lua\nreturn require("lib")\n')
        assert requires[0].line == 2


class TestParserSpeed:
    """Large modules parse in linear time."""

    def test_thousands_of_lines(self):
        lines = []
        for n in range(1500):
            lines.append(f"local v{n} = {{ a = {n}, b = 'x' .. tostring({n}) }}")
            lines.append(f"if v{n}.a > 3 then print(v{n}.b, require('mod{n % 7}')) end")
        source = "\n".join(lines) + "\n"

        start = time.perf_counter()
        tree, requires = parse(source)
        elapsed = time.perf_counter() - start

        assert len(requires) == 1500
        assert elapsed < 15

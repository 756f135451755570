"""
Require call extraction.

This module contains the RequireCollector, a Lark Visitor that finds every
call whose callee is the plain name `require` and classifies its argument as
a Literal (statically known module id) or Dynamic (computed at runtime).
"""

from lark import Token, Tree, Visitor

from .models import RequireExpression, RequireKind
from .transformer import DYNAMIC, fold

REQUIRE_NAME = "require"


class RequireCollector(Visitor):
    """
    Collects RequireExpressions from a parsed Lua chunk.

    Method calls (`obj:require "x"`) and field calls (`pkg.require "x"`) are
    not module loads and are left alone. Results are kept in source order.
    """

    def __init__(self, require_name=REQUIRE_NAME):
        super().__init__()
        self.require_name = require_name
        self.requires = []

    def collect(self, tree):
        self.requires = []
        self.visit(tree)
        self.requires.sort(key=lambda r: (r.line, r.column))
        return self.requires

    def call(self, tree):
        callee, args = tree.children
        if not (isinstance(callee, Tree) and callee.data == "name"):
            return
        name = callee.children[0]
        if name != self.require_name:
            return

        value = classify_arguments(args)
        if value is DYNAMIC:
            expression = RequireExpression(
                kind=RequireKind.DYNAMIC,
                line=name.line,
                column=name.column,
            )
        else:
            expression = RequireExpression(
                kind=RequireKind.LITERAL,
                value=value,
                line=name.line,
                column=name.column,
            )
        self.requires.append(expression)


def classify_arguments(call_args):
    """
    Compute the module id passed in a require call, or DYNAMIC.

    Only a single argument can name a module: `require "x"`, `require [[x]]`,
    `require("x")` and `require("a" .. "b")` are literal. `require()`, table
    arguments and extra arguments are dynamic.
    """
    children = [c for c in call_args.children if c is not None]
    if len(children) != 1:
        return DYNAMIC

    arg = children[0]
    if isinstance(arg, Token):
        return DYNAMIC
    if arg.data == "string":
        return fold(arg)
    if arg.data == "explist":
        if len(arg.children) != 1:
            return DYNAMIC
        return fold(arg.children[0])
    return DYNAMIC


def collect_requires(tree, require_name=REQUIRE_NAME):
    return RequireCollector(require_name).collect(tree)

"""
Lua source parsing.

Builds the Lark parser once per process and turns lark's syntax exceptions
into ParseError with the module's location attached.
"""
from lark import Lark, Tree
from lark.exceptions import UnexpectedCharacters, UnexpectedEOF, UnexpectedInput, UnexpectedToken

from .errors import ParseError, get_line_context
from .grammar import lua_grammar
from .requires import collect_requires

BOM = '\ufeff'

_TARGETS = ('name', 'index', 'field')
# Prefix expressions that are neither calls nor valid on their own
_NOT_STATEMENTS = _TARGETS + ('paren',)

_parser = None


def get_parser():
    """Return the shared Lua parser, building it on first use."""
    global _parser
    if _parser is None:
        _parser = Lark(lua_grammar, parser='lalr', lexer='contextual', propagate_positions=True)
    return _parser


def strip_bom(source):
    """Drop a leading UTF-8 byte order mark, as Lua's loader does."""
    if source.startswith(BOM):
        return source[1:]
    return source


def strip_shebang(source):
    """Blank out a leading '#!' line, keeping the line count intact."""
    if source.startswith('#'):
        newline = source.find('\n')
        return '' if newline < 0 else source[newline:]
    return source


def _describe(error):
    if isinstance(error, UnexpectedEOF):
        return "Unexpected end of file"
    if isinstance(error, UnexpectedToken):
        token = error.token
        if token.type == '$END':
            return "Unexpected end of file"
        return f"Unexpected token '{token}'"
    if isinstance(error, UnexpectedCharacters):
        return f"Unexpected character '{error.char}'"
    return "Syntax error"


def find_invalid_statement(tree):
    """
    Return (message, tree) for the first prefix expression used where Lua
    needs a call statement or an assignment target, or None.
    """
    for block in tree.find_data('block'):
        for stat in block.children:
            if isinstance(stat, Tree) and stat.data in _NOT_STATEMENTS:
                return "Syntax error: expression is not a statement", stat
    for assign in tree.find_data('assign'):
        for target in assign.children[0].children:
            if target.data not in _TARGETS:
                return "Syntax error: cannot assign to this expression", target
    return None


def parse(source, module_id=None, path=None, chain=()):
    """
    Parse Lua source and collect its require calls.

    Returns:
        (tree, requires): the Lark parse tree and the RequireExpressions in
        source order.

    Raises:
        ParseError: If the source is not valid Lua.
    """
    text = strip_shebang(strip_bom(source))
    try:
        tree = get_parser().parse(text)
    except UnexpectedInput as e:
        line = getattr(e, 'line', None)
        column = getattr(e, 'column', None)
        if line is None or line < 1:
            line = text.count('\n') + 1
            column = None
        raise ParseError(
            _describe(e),
            module_id=module_id,
            path=path,
            line=line,
            column=column,
            context=get_line_context(text, line),
            chain=chain,
        ) from e

    invalid = find_invalid_statement(tree)
    if invalid is not None:
        message, node = invalid
        raise ParseError(
            message,
            module_id=module_id,
            path=path,
            line=node.meta.line,
            column=node.meta.column,
            context=get_line_context(text, node.meta.line),
            chain=chain,
        )
    return tree, collect_requires(tree)

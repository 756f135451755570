"""
Compile-time evaluation of require arguments.

The ConstantFolder transforms an expression subtree into its string value
when it is made only of string literals, integer literals, parentheses and
the `..` operator. Anything else folds to DYNAMIC.
"""

from lark import Token, Transformer

from .strings import decode_string


class _Marker:
    def __init__(self, name):
        self._name = name

    def __repr__(self):
        return self._name


DYNAMIC = _Marker("DYNAMIC")
_CONCAT = _Marker("CONCAT")


class ConstantFolder(Transformer):
    """
    Folds a parsed Lua expression into a Python string or DYNAMIC.

    Tokens other than strings, numbers and the concatenation operator fold to
    DYNAMIC, so a NAME token is never mistaken for a string value.
    """

    def __default__(self, data, children, meta):
        return DYNAMIC

    def __default_token__(self, token):
        return DYNAMIC

    def STRING(self, token):
        try:
            return decode_string(str(token))
        except ValueError:
            return DYNAMIC

    def LONG_STRING(self, token):
        return self.STRING(token)

    def NUMBER(self, token):
        """Lua converts integers to their decimal text when concatenated."""
        text = str(token)
        if text.isdigit():
            return str(int(text))
        return DYNAMIC

    def CONCAT(self, token):
        return _CONCAT

    def string(self, children):
        return children[0]

    def paren(self, children):
        return children[0]

    def binop(self, children):
        left, op, right = children
        if op is _CONCAT and isinstance(left, str) and isinstance(right, str):
            return left + right
        return DYNAMIC


def fold(tree):
    """Return the constant string value of an expression tree, or DYNAMIC."""
    folder = ConstantFolder()
    if isinstance(tree, Token):
        return getattr(folder, tree.type, folder.__default_token__)(tree)
    return folder.transform(tree)

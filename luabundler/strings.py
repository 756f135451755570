"""
Lua string literals: decoding source tokens and quoting Python strings.
"""
import re

_SIMPLE_ESCAPES = {
    'a': '\a',
    'b': '\b',
    'f': '\f',
    'n': '\n',
    'r': '\r',
    't': '\t',
    'v': '\v',
    '\\': '\\',
    '"': '"',
    "'": "'",
    '\n': '\n',
    '\r': '\n',
}

_LONG_BRACKET = re.compile(r'^\[(=*)\[(.*)\]\1\]$', re.DOTALL)


def decode_short_string(token):
    """
    Decode a quoted Lua string token such as '"a\\tb"' into its value.

    Escapes produce bytes, as in Lua. The result must be valid UTF-8, so that
    quoting it again yields the same bytes; otherwise ValueError is raised.
    """
    body = token[1:-1]
    out = bytearray()
    i, n = 0, len(body)
    while i < n:
        c = body[i]
        if c != '\\':
            out += c.encode('utf-8')
            i += 1
            continue

        i += 1
        if i >= n:
            raise ValueError("unfinished escape sequence")
        c = body[i]
        if c in _SIMPLE_ESCAPES:
            out += _SIMPLE_ESCAPES[c].encode('ascii')
            i += 1
            # \ followed by \r\n or \n\r counts as one line break
            if c in '\r\n' and i < n and body[i] in '\r\n' and body[i] != c:
                i += 1
        elif c == 'z':
            i += 1
            while i < n and body[i].isspace():
                i += 1
        elif c == 'x':
            digits = body[i + 1:i + 3]
            if len(digits) != 2 or not all(d in '0123456789abcdefABCDEF' for d in digits):
                raise ValueError("hexadecimal digit expected")
            out.append(int(digits, 16))
            i += 3
        elif c in '0123456789':
            j = i
            while j < n and j - i < 3 and body[j] in '0123456789':
                j += 1
            value = int(body[i:j])
            if value > 255:
                raise ValueError("decimal escape too large")
            out.append(value)
            i = j
        elif c == 'u':
            close = body.find('}', i)
            if i + 1 >= n or body[i + 1] != '{' or close < 0:
                raise ValueError("malformed \\u escape")
            out += chr(int(body[i + 2:close], 16)).encode('utf-8')
            i = close + 1
        else:
            raise ValueError(f"invalid escape sequence '\\{c}'")
    return bytes(out).decode('utf-8')


def decode_long_string(token):
    """Decode a [==[ ... ]==] token. A newline right after the opener is dropped."""
    m = _LONG_BRACKET.match(token)
    if not m:
        raise ValueError("malformed long string")
    body = m.group(2)
    if body.startswith('\r\n') or body.startswith('\n\r'):
        body = body[2:]
    elif body[:1] in ('\n', '\r'):
        body = body[1:]
    return body


def decode_string(token):
    if token.startswith('['):
        return decode_long_string(token)
    return decode_short_string(token)


def quote(value):
    """Quote a Python string as a double-quoted Lua literal."""
    out = ['"']
    for c in value:
        if c == '"':
            out.append('\\"')
        elif c == '\\':
            out.append('\\\\')
        elif c == '\n':
            out.append('\\n')
        elif c == '\r':
            out.append('\\r')
        elif c == '\t':
            out.append('\\t')
        elif ord(c) < 32 or ord(c) == 127:
            out.append(f'\\{ord(c):03d}')
        else:
            out.append(c)
    out.append('"')
    return "".join(out)

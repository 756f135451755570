"""
Lua Grammar Definition.

This module contains the Lark grammar for Lua 5.1 through 5.4 (goto, labels,
integer division, bitwise operators and local attributes included), plus the
LuaJIT integer/imaginary number suffixes. It is written for the LALR parser
with the contextual lexer.

Statements use Lua's own approach: a prefix expression is parsed first, and
only then known to be a call or an assignment target. The parser checks
that afterwards. A "(" after an expression always continues it as a call,
even on the next line, which is how Lua reads it too.

Long brackets ([[...]], [==[...]==]) need a backreference to match their
closing level, so they use named groups; the names differ between strings
and comments because all terminals share one compiled pattern.
"""

lua_grammar = r"""
    start: block

    block: stat* retstat?

    // --- Statements ---
    ?stat: ";"                                                   -> empty_stat
         | varlist "=" explist                                   -> assign
         | prefixexp
         | label
         | "break"                                               -> break_stat
         | "goto" NAME                                           -> goto_stat
         | "do" block "end"                                      -> do_stat
         | "while" exp "do" block "end"                          -> while_stat
         | "repeat" block "until" exp                            -> repeat_stat
         | "if" exp "then" block elseif_clause* else_clause? "end" -> if_stat
         | "for" NAME "=" exp "," exp ("," exp)? "do" block "end"   -> numeric_for
         | "for" namelist "in" explist "do" block "end"          -> generic_for
         | "function" funcname funcbody                          -> function_stat
         | "local" "function" NAME funcbody                      -> local_function
         | "local" attnamelist ("=" explist)?                    -> local_stat

    retstat: "return" explist? ";"?
    label: "::" NAME "::"
    elseif_clause: "elseif" exp "then" block
    else_clause: "else" block

    funcname: NAME ("." NAME)* (":" NAME)?
    varlist: prefixexp ("," prefixexp)*
    namelist: NAME ("," NAME)*
    explist: exp ("," exp)*
    attnamelist: attname ("," attname)*
    attname: NAME attrib?
    attrib: LT NAME GT

    // --- Expressions, lowest precedence first ---
    ?exp: or_exp

    ?or_exp: and_exp
           | or_exp OR and_exp                                   -> binop
    ?and_exp: cmp_exp
            | and_exp AND cmp_exp                                -> binop
    ?cmp_exp: bor_exp
            | cmp_exp (LT | GT | LE | GE | NE | EQ) bor_exp      -> binop
    ?bor_exp: bxor_exp
            | bor_exp PIPE bxor_exp                              -> binop
    ?bxor_exp: band_exp
             | bxor_exp TILDE band_exp                           -> binop
    ?band_exp: shift_exp
             | band_exp AMP shift_exp                            -> binop
    ?shift_exp: concat_exp
              | shift_exp (SHL | SHR) concat_exp                 -> binop
    ?concat_exp: add_exp
               | add_exp CONCAT concat_exp                       -> binop
    ?add_exp: mul_exp
            | add_exp (PLUS | MINUS) mul_exp                     -> binop
    ?mul_exp: unary_exp
            | mul_exp (STAR | SLASH | DSLASH | PERCENT) unary_exp -> binop
    ?unary_exp: pow_exp
              | (NOT | HASH | MINUS | TILDE) unary_exp           -> unop
    ?pow_exp: simple_exp
            | simple_exp CARET unary_exp                         -> binop

    ?simple_exp: NIL
               | TRUE
               | FALSE
               | NUMBER
               | string
               | ELLIPSIS
               | functiondef
               | prefixexp
               | tableconstructor

    ?prefixexp: NAME                                             -> name
              | "(" exp ")"                                      -> paren
              | prefixexp "[" exp "]"                            -> index
              | prefixexp "." NAME                               -> field
              | prefixexp call_args                              -> call
              | prefixexp ":" NAME call_args                     -> method_call

    call_args: "(" explist? ")"
             | tableconstructor
             | string

    functiondef: "function" funcbody
    funcbody: "(" parlist? ")" block "end"
    parlist: NAME ("," NAME)* ("," ELLIPSIS)?
           | ELLIPSIS

    tableconstructor: "{" fieldlist? "}"
    fieldlist: field (("," | ";") field)* ("," | ";")?
    ?field: "[" exp "]" "=" exp                                  -> keyed_field
          | NAME "=" exp                                         -> named_field
          | exp                                                  -> positional_field

    string: STRING | LONG_STRING

    // --- Terminals ---
    OR: "or"
    AND: "and"
    NOT: "not"
    NIL: "nil"
    TRUE: "true"
    FALSE: "false"

    EQ: "=="
    NE: "~="
    LE: "<="
    GE: ">="
    LT: "<"
    GT: ">"
    SHL: "<<"
    SHR: ">>"
    PIPE: "|"
    TILDE: "~"
    AMP: "&"
    CONCAT: ".."
    ELLIPSIS: "..."
    PLUS: "+"
    MINUS: "-"
    STAR: "*"
    SLASH: "/"
    DSLASH: "//"
    PERCENT: "%"
    HASH: "#"
    CARET: "^"

    NAME: /[A-Za-z_][A-Za-z0-9_]*/
    NUMBER: /(?:0[xX](?:[0-9a-fA-F]+(?:\.[0-9a-fA-F]*)?|\.[0-9a-fA-F]+)(?:[pP][+-]?[0-9]+)?|(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?)(?:[uU]?[lL][lL]|[iI])?/
    STRING: /"(?:[^"\\\n]|\\z\s*|\\[\s\S])*"|'(?:[^'\\\n]|\\z\s*|\\[\s\S])*'/
    LONG_STRING: /\[(?P<string_level>=*)\[[\s\S]*?\](?P=string_level)\]/

    COMMENT.2: /--(?:\[(?P<comment_level>=*)\[[\s\S]*?\](?P=comment_level)\]|[^\n]*)/

    %import common.WS
    %ignore WS
    %ignore COMMENT
"""

"""Pretty printers for the JSON, HTML and JavaScript found in packages."""

from __future__ import annotations

import json
import re
from typing import NamedTuple

from bs4 import BeautifulSoup

_SCRIPT_IN_HTML = re.compile(r" *<script.*?>(.*?)</script>", re.S)


def count_leading_spaces(data: bytes | str) -> int:
    """Return how many space characters ``data`` starts with."""
    return len(data) - len(data.lstrip(b" " if isinstance(data, bytes) else " "))


class _RawNumber(str):
    """A JSON number kept exactly as written."""


class _Pairs(list):
    """A JSON object kept as ordered key/value pairs."""


def _render_json(value: object, depth: int) -> str:
    pad, inner = "  " * depth, "  " * (depth + 1)
    if isinstance(value, _Pairs):
        if not value:
            return "{}"
        items = ",\n".join(
            f"{inner}{json.dumps(k, ensure_ascii=False)}: {_render_json(v, depth + 1)}" for k, v in value
        )
        return "{\n" + items + "\n" + pad + "}"
    if isinstance(value, list):
        if not value:
            return "[]"
        parts = [_render_json(item, depth + 1) for item in value]
        single = "[" + ", ".join(parts) + "]"
        if "\n" not in single and len(pad) + len(single) <= 80:
            return single
        return "[\n" + ",\n".join(inner + p for p in parts) + "\n" + pad + "]"
    if isinstance(value, _RawNumber):
        return str(value)
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    return {True: "true", False: "false"}.get(value, "null") if value is not None else "null"


def pretty_json(data: bytes) -> bytes:
    """Indent a JSON document keeping key order and number spelling; invalid JSON is returned as is."""
    try:
        value = json.loads(
            data, object_pairs_hook=_Pairs, parse_int=_RawNumber,
            parse_float=_RawNumber, parse_constant=_RawNumber,
        )
    except ValueError:
        return data
    return (_render_json(value, 0) + "\n").encode("utf-8")


class _Token(NamedTuple):
    kind: str
    text: str
    newline_before: bool


_TOKEN_RE = re.compile(
    r"(?P<ws>\s+)"
    r"|(?P<comment>//[^\n]*|/\*[\s\S]*?(?:\*/|\Z))"
    r"""|(?P<string>"(?:\\[\s\S]|[^"\\\n])*"?|'(?:\\[\s\S]|[^'\\\n])*'?|`(?:\\[\s\S]|[^`\\])*`?)"""
    r"|(?P<number>0[xXbBoO][0-9a-fA-F_]+n?|(?:\d[\d_]*(?:\.[\d_]*)?|\.\d[\d_]*)(?:[eE][+-]?\d+)?n?)"
    r"|(?P<word>[A-Za-z_$\u0080-\uffff][\w$\u0080-\uffff]*)"
    r"|(?P<op>>>>=|\.\.\.|===|!==|\*\*=|<<=|>>=|>>>|&&=|\|\|=|\?\?=|=>|==|!=|<=|>=|&&|\|\||\?\?"
    r"|\?\.|\+\+|--|[-+*/%&|^]=|\*\*|<<|>>|[\s\S])"
)
_REGEX_LITERAL = re.compile(r"/(?:\\.|\[(?:\\.|[^\]\\\n])*\]|[^/\\\n\[])+/[A-Za-z]*")
_KEYWORDS_BEFORE_EXPR = frozenset(
    "return typeof instanceof in of new delete void throw case do else yield await".split()
)
_SPACE_BEFORE_PAREN = frozenset(
    "if for while switch catch with return typeof in of await yield do else void delete throw case".split()
)
_STAY_AFTER_BRACE = frozenset({")", "]", ",", ";", ".", "?.", "(", "else", "catch", "finally"})
_NO_SPACE_BEFORE = frozenset({")", "]", ",", ";", ".", "?."})
_NO_SPACE_AFTER = frozenset({"(", "[", ".", "?.", "...", "!", "~"})


def _ends_operand(prev: _Token | None, prev_unary: bool) -> bool:
    if prev is None:
        return False
    if prev.kind in ("number", "string", "regex"):
        return True
    if prev.kind == "word":
        return prev.text not in _KEYWORDS_BEFORE_EXPR
    if prev.text in ("++", "--"):
        return not prev_unary
    return prev.text in (")", "]", "}")


def _expects_operand(prev: _Token | None) -> bool:
    if prev is None:
        return True
    if prev.kind == "op":
        return prev.text not in (")", "]", "}", "++", "--")
    return prev.kind == "word" and prev.text in _KEYWORDS_BEFORE_EXPR


def _tokenize(code: str) -> list[_Token]:
    tokens: list[_Token] = []
    pos, newline, prev = 0, False, None
    while pos < len(code):
        match = None
        if code.startswith("/", pos) and not code.startswith(("//", "/*"), pos) and _expects_operand(prev):
            match = _REGEX_LITERAL.match(code, pos)
        if match:
            kind = "regex"
        else:
            match = _TOKEN_RE.match(code, pos)
            kind = match.lastgroup
        pos = match.end()
        if kind == "ws":
            newline = newline or "\n" in match.group()
            continue
        tok = _Token(kind, match.group(), newline)
        tokens.append(tok)
        newline = False
        if kind != "comment":
            prev = tok
    return tokens


def _space_before(prev: _Token | None, prev_unary: bool, tok: _Token, unary: bool, ternary: int) -> bool:
    if prev is None:
        return False
    if tok.kind == "op":
        if tok.text in _NO_SPACE_BEFORE:
            return False
        if tok.text == ":":
            return ternary > 0
        if tok.text in ("++", "--") and not unary:
            return False
    if prev.kind == "op" and (prev.text in _NO_SPACE_AFTER or prev_unary):
        return False
    if tok.kind == "op" and tok.text in ("(", "["):
        if prev.kind == "word":
            return prev.text in _SPACE_BEFORE_PAREN
        return prev.kind == "op" and prev.text not in (")", "]", "}")
    return True


class _Printer:
    """Collects output lines, each indented by the level it was started at."""

    def __init__(self, base: str) -> None:
        self.base, self.lines, self.parts = base, [], []
        self.line_indent = self.indent = 0

    def write(self, text: str, space: bool = False) -> None:
        if not self.parts:
            self.line_indent = self.indent
        elif space:
            self.parts.append(" ")
        self.parts.append(text)

    def newline(self) -> None:
        if self.parts:
            self.lines.append(self.base + "    " * self.line_indent + "".join(self.parts).rstrip())
            self.parts = []


def _beautify_js(code: str) -> str:
    body = code.lstrip(" \t")
    out = _Printer(code[: len(code) - len(body)])
    tokens = _tokenize(body)
    stack: list[str] = []
    ternary, in_case, prev, prev_unary = 0, False, None, False

    for index, tok in enumerate(tokens):
        nxt = tokens[index + 1] if index + 1 < len(tokens) else None
        text = tok.text
        if tok.kind == "comment":
            if tok.newline_before:
                out.newline()
            out.write(text, space=True)
            if text.startswith("//") or nxt is None or nxt.newline_before:
                out.newline()
            continue

        unary = tok.kind == "op" and (
            text in ("!", "~") or (text in ("+", "-", "++", "--") and not _ends_operand(prev, prev_unary))
        )
        starts = tok.kind in ("word", "number", "string", "regex") or text in ("++", "--", "!", "~")
        if tok.newline_before and out.parts and _ends_operand(prev, prev_unary) and starts:
            out.newline()
        space = _space_before(prev, prev_unary, tok, unary, ternary)

        if tok.kind != "op":
            out.write(text, space)
            if tok.kind == "word" and (text == "case" or (text == "default" and nxt is not None and nxt.text == ":")):
                in_case = True
        elif text == "{":
            out.write(text, space)
            stack.append("{")
            if nxt is None or nxt.text != "}":
                out.indent += 1
                out.newline()
        elif text == "}":
            if stack:
                stack.pop()
            if prev is None or prev.text != "{":
                out.indent = max(0, out.indent - 1)
                out.newline()
            out.write(text)
            if nxt is None or nxt.text not in _STAY_AFTER_BRACE:
                out.newline()
        elif text in ("(", "["):
            out.write(text, space)
            stack.append(text)
        elif text in (")", "]"):
            if stack:
                stack.pop()
            out.write(text)
        elif text == ";":
            out.write(text)
            if not stack or stack[-1] != "(":
                out.newline()
        elif text == ",":
            out.write(text)
            if stack and stack[-1] == "{":
                out.newline()
        elif text == ":" and in_case:
            in_case = False
            out.write(text)
            out.newline()
        else:
            out.write(text, space)
            if text == "?":
                ternary += 1
            elif text == ":" and ternary > 0:
                ternary -= 1
        prev, prev_unary = tok, unary

    out.newline()
    return "\n".join(out.lines)


def pretty_javascript(data: bytes) -> bytes:
    """Re-indent JavaScript source; undecodable data is returned unchanged."""
    try:
        code = data.decode("utf-8")
    except UnicodeDecodeError:
        return data
    return _beautify_js(code.strip()).encode("utf-8")


def _format_script(match: re.Match[str]) -> str:
    script, js_code = match.group(0), match.group(1)
    if not js_code:
        return script
    space = count_leading_spaces(script)
    formatted = _beautify_js(" " * (space + 2) + js_code.strip())
    return script.replace(js_code, "\n" + formatted + "\n" + " " * space, 1)


def pretty_html(data: bytes) -> bytes:
    """Indent an HTML document and the scripts embedded in it."""
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError:
        return data
    formatted = BeautifulSoup(text.strip(), "html.parser").prettify().rstrip("\n")
    return _SCRIPT_IN_HTML.sub(_format_script, formatted).encode("utf-8")
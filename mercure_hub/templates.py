"""Compile URI templates into regular expressions matching their expansions."""

from __future__ import annotations

import re

__all__ = ["TemplateError", "template_regexp"]


class TemplateError(ValueError):
    """Raised when a string is not a valid URI template."""


_PCT = r"%[0-9A-Fa-f]{2}"
_UNRESERVED = rf"(?:[A-Za-z0-9\-._~]|{_PCT})"
_RESERVED = rf"(?:[A-Za-z0-9\-._~:/?#\[\]@!$&'()*+,;=]|{_PCT})"
# operator -> (first, separator, named)
_OPERATORS = {
    "": ("", ",", False), "+": ("", ",", False), "#": ("#", ",", False),
    ".": (".", ".", False), "/": ("/", "/", False), ";": (";", ";", True),
    "?": ("?", "&", True), "&": ("&", "&", True),
}
_VARNAME = re.compile(rf"(?:\w|{_PCT})(?:\.?(?:\w|{_PCT}))*", re.ASCII)
_LITERAL = re.compile(rf"(?:{_PCT}|[^\x00-\x20\x7f\"'<>\\^`|{{}}%])+")


def _varspec(spec: str, unit: str, operator: str, named: bool) -> str:
    explode = spec.endswith("*")
    name, _, prefix = (spec[:-1] if explode else spec).partition(":")
    if prefix and not re.fullmatch(r"[1-9][0-9]{0,3}", prefix):
        raise TemplateError(f"invalid prefix modifier in {spec!r}")
    if not _VARNAME.fullmatch(name):
        raise TemplateError(f"invalid variable name {name!r}")
    value = f"{unit}{{0,{prefix}}}" if prefix else f"{unit}*"
    if explode:
        return f"(?:{unit}+(?:={value})?)" if named else f"(?:(?:{unit}+=)?{value})"
    if not prefix:
        value = f"{value}(?:,{value})*"
    if not named:
        return f"(?:{value})"
    optional = "?" if operator == ";" else ""
    return f"(?:{re.escape(name)}(?:={value}){optional})"


def _expression(body: str) -> str:
    operator = body[:1] if body[:1] in _OPERATORS else ""
    specs = body[len(operator):]
    if not specs or specs[0] in "=,!@|":
        raise TemplateError(f"invalid expression {{{body}}}")
    first, separator, named = _OPERATORS[operator]
    unit = _RESERVED if operator in ("+", "#") else _UNRESERVED
    item = "(?:" + "|".join(_varspec(s, unit, operator, named) for s in specs.split(",")) + ")"
    return f"(?:{re.escape(first)}{item}(?:{re.escape(separator)}{item})*)?"


def template_regexp(template: str) -> re.Pattern[str]:
    """Return a pattern fully matching every expansion of ``template``.

    Raises TemplateError if ``template`` is not a valid URI template.
    """
    parts = []
    pos = 0
    while pos < len(template):
        if template[pos] == "{":
            end = template.find("}", pos)
            if end == -1:
                raise TemplateError(f"unclosed expression at position {pos}")
            parts.append(_expression(template[pos + 1:end]))
            pos = end + 1
            continue
        literal = _LITERAL.match(template, pos)
        if literal is None:
            raise TemplateError(f"invalid literal at position {pos}")
        parts.append(re.escape(literal.group()))
        pos = literal.end()
    return re.compile(r"\A" + "".join(parts) + r"\Z")
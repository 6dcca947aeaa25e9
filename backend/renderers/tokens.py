from __future__ import annotations

import re
from typing import Any, Mapping

_TEMPLATE_TOKEN = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*)\}")
_SUBSTITUTION_TOKEN = re.compile(r"!([A-Za-z_][A-Za-z0-9_]*)!")


def sql_value(v: Any) -> str:
    if isinstance(v, bool):
        return "true" if v else "false"
    if isinstance(v, float) and v.is_integer():
        return str(int(v))
    return str(v)


def _merge(mappings: tuple[Mapping[str, Any], ...]) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for m in mappings:
        values.update(m)
    return values


def format_template(template: str, *mappings: Mapping[str, Any]) -> str:
    """
    Replace `{name}` tokens with values from the given mappings (later ones win).

    Unknown tokens are left as-is and substituted values are not rescanned, so SQL
    carried inside a value keeps its own braces.
    """
    values = _merge(mappings)

    def _sub(m: re.Match) -> str:
        key = m.group(1)
        if key not in values or values[key] is None:
            return m.group(0)
        return sql_value(values[key])

    return _TEMPLATE_TOKEN.sub(_sub, template)


def replace_substitution_tokens(sql: str, values: Mapping[str, Any]) -> str:
    """
    Replace layer-SQL substitution tokens such as `!bbox!` or `!scale_denominator!`.
    """

    def _sub(m: re.Match) -> str:
        key = m.group(1)
        if key not in values:
            return m.group(0)
        return sql_value(values[key])

    return _SUBSTITUTION_TOKEN.sub(_sub, sql)

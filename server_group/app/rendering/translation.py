"""String translation with placeholder substitution."""
from __future__ import annotations

import html
import re
from typing import Any, Dict, Mapping, Optional

_PLACEHOLDER_PATTERN = re.compile(r"([@%])(\w+)")

CATALOGS: Dict[str, Dict[str, str]] = {
    "fr": {
        "Hi @user_name, @link if you would like to subscribe to this group called @group_name": (
            "Bonjour @user_name, @link si vous souhaitez vous abonner au groupe @group_name"
        ),
        "click here": "cliquez ici",
        "Please login to register to this group by @link": (
            "Veuillez vous connecter pour rejoindre ce groupe en @link"
        ),
        "clicking here": "cliquant ici",
    },
}


def get_catalog(language: Optional[str]) -> Optional[Mapping[str, str]]:
    """Return the translation catalog for ``language``; source strings are English."""

    if not language:
        return None
    return CATALOGS.get(language.lower())


class Markup(str):
    """A string that is already safe HTML and must not be escaped again."""

    def __html__(self) -> str:
        return str(self)


def escape(value: Any) -> Markup:
    if value is None:
        return Markup("")
    if isinstance(value, Markup):
        return value
    return Markup(html.escape(str(value), quote=True))


def t(
    source: str,
    args: Optional[Mapping[str, Any]] = None,
    *,
    catalog: Optional[Mapping[str, str]] = None,
) -> Markup:
    """Translate ``source`` and substitute its placeholders.

    ``@name`` inserts the escaped value and ``%name`` inserts it escaped and
    emphasized. Values that are already :class:`Markup` are inserted as-is.
    The source string itself is escaped before substitution.
    """

    translated = (catalog or {}).get(source, source)
    values = args or {}

    def _replace(match: re.Match[str]) -> str:
        key = match.group(0)
        if key not in values:
            return key
        value = escape(values[key])
        if match.group(1) == "%":
            return f"<em class=\"placeholder\">{value}</em>"
        return value

    return Markup(_PLACEHOLDER_PATTERN.sub(_replace, html.escape(translated, quote=False)))

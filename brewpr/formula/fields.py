"""Field rules that keep the generated formula passing ``brew audit``.

See Homebrew's desc audit (rubocops/shared/desc_helper.rb): descriptions
must not start with an article and must spell "command-line" that way.
Licenses must be SPDX identifiers or the explicit ``:cannot_represent``.
"""

import re
from functools import lru_cache
from typing import Optional

from license_expression import get_spdx_licensing

_COMMAND_LINE = re.compile(r"command[ -]?line", re.IGNORECASE)
# Only a single article at the very start; "The A tool" keeps its "A".
_LEADING_ARTICLE = re.compile(r"^(the|an?)(?=\s)", re.IGNORECASE)
# Ruby interpolates "#{", "#@" and "#$" inside double quotes
_INTERPOLATION = re.compile(r"#(?=[{@$])")

CANNOT_REPRESENT = ":cannot_represent"


def sanitize_description(description: str) -> str:
    """``"A command line tool for X"`` -> ``"command-line tool for X"``."""
    text = _COMMAND_LINE.sub("command-line", description)
    text = _LEADING_ARTICLE.sub("", text, count=1)
    return text.strip()


@lru_cache(maxsize=1)
def spdx_license_ids() -> frozenset[str]:
    """Recognized SPDX license identifiers (exceptions and LicenseRefs excluded)."""
    licensing = get_spdx_licensing()
    return frozenset(
        symbol.key
        for symbol in licensing.known_symbols.values()
        if not getattr(symbol, "is_exception", False)
        and not symbol.key.startswith("LicenseRef-")
    )


def render_license(license_id: Optional[str]) -> str:
    """Render the value of the formula's ``license`` stanza.

    Unknown identifiers never fail generation; they become
    ``:cannot_represent`` with the original string kept as a comment.
    """
    if license_id and license_id in spdx_license_ids():
        return ruby_string(license_id)
    if not license_id:
        return CANNOT_REPRESENT
    return f"{CANNOT_REPRESENT} # {license_id}"


def ruby_string(value: str) -> str:
    """Double-quoted Ruby literal; escapes quotes, backslashes and interpolation."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    escaped = _INTERPOLATION.sub(r"\\#", escaped)
    return f'"{escaped}"'

"""Variable expansion for directive expressions.

``$key`` references are replaced with configuration values in a single pass:
- the longest matching key wins, so ``$environment`` is never shadowed by a
  shorter ``env`` key
- a reference only matches when it is not followed by another identifier
  character, so ``$envx`` does not expand ``env``
- substituted values are not expanded again
- unknown references are left verbatim
- keys whose value is undefined expand to the empty string
"""

from __future__ import annotations

import re
from collections.abc import Mapping


def _reference_pattern(keys: list[str]) -> re.Pattern[str]:
    ordered = sorted(keys, key=lambda k: (-len(k), k))
    alternatives = "|".join(re.escape(k) for k in ordered)
    return re.compile(r"\$(" + alternatives + r")(?![A-Za-z0-9_])")


def expand_variables(expr: str, values: Mapping[str, str | None]) -> str:
    """Expand ``$key`` references in *expr* using *values*."""

    if "$" not in expr:
        return expr

    keys = [key for key in values if key]
    if not keys:
        return expr

    pattern = _reference_pattern(keys)

    def _substitute(match: re.Match[str]) -> str:
        value = values[match.group(1)]
        return "" if value is None else value

    return pattern.sub(_substitute, expr)

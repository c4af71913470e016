"""Version-constraint operator handling shared by every ecosystem."""

from __future__ import annotations

import re

# Longest / most specific first: ">=" must win over ">", "~=" over "~".
OPERATORS: tuple[str, ...] = (">=", "<=", "==", "!=", "~=", "^", "~", ">", "<")

_LEADING_OPERATOR_RE = re.compile(r"^[\^~>=<!]+")
_NON_NUMERIC_PREFIX_RE = re.compile(r"^([^0-9]*)[0-9]")


def extract_operator(constraint: str) -> str:
    """Return the known operator prefixing *constraint*, or ``""`` if none."""
    for op in OPERATORS:
        if constraint.startswith(op):
            return op
    return ""


def extract_prefix(constraint: str) -> str:
    """Return the operator to keep when rewriting *constraint*.

    Known operators are matched first; otherwise whatever precedes the
    first digit is preserved literally (``"v1.2.3"`` → ``"v"``,
    ``"=1.0.0"`` → ``"="``). Constraints without any digit (``"*"``,
    ``"latest"``) have no prefix to keep.
    """
    op = extract_operator(constraint)
    if op:
        return op
    m = _NON_NUMERIC_PREFIX_RE.match(constraint)
    return m.group(1) if m else ""


def strip_operators(constraint: str) -> str:
    """Drop any leading operator characters (``"^4.17.1"`` → ``"4.17.1"``)."""
    return _LEADING_OPERATOR_RE.sub("", constraint.strip())


def render_constraint(original: str, new_version: str) -> str:
    """Rewrite *original* to point at *new_version*, keeping its operator."""
    return f"{extract_prefix(original.strip())}{new_version}"

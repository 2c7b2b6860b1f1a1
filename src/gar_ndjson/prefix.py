"""Dataset prefixes for GAR file names.

GAR exports carry version, date and GUID tokens after the dataset name,
for example ``AS_ADDR_OBJ_2_251_01_04_01_01.xsd`` or
``AS_HOUSES_20240101_1a2b3c4d.XML``. Files sharing a dataset prefix share a
schema.
"""

from __future__ import annotations

from pathlib import PurePath

PARAMS_SUFFIX = "_PARAMS"
PARAM_SUFFIX = "_PARAM"


def derive_prefix(file_name: str | PurePath) -> str:
    """Derive the dataset prefix from a file name.

    Tokens are taken up to (not including) the first all-digit token. A name
    that starts with a digit token keeps its full base name.

    Example:
        >>> derive_prefix("AS_ADDR_OBJ_2_251_01_04_01_01.xsd")
        'AS_ADDR_OBJ'
    """
    base = PurePath(file_name).stem
    tokens: list[str] = []
    for token in base.split("_"):
        if token.isdigit():
            break
        tokens.append(token)
    if not tokens:
        return base
    return "_".join(tokens)


def normalize_prefix(prefix: str) -> str:
    """Map a per-dataset parameter prefix to the shared parameter schema.

    ``AS_HOUSES_PARAMS`` becomes ``AS_PARAM``. Anything else is returned
    unchanged, so the function is idempotent.
    """
    if not prefix.endswith(PARAMS_SUFFIX):
        return prefix
    first = prefix.split("_", 1)[0]
    return f"{first}{PARAM_SUFFIX}"


def lookup_candidates(prefix: str) -> list[str]:
    """Keys to try, in order, when looking up a prefix."""
    candidates = [prefix]
    alias = normalize_prefix(prefix)
    if alias != prefix:
        candidates.append(alias)
    return candidates

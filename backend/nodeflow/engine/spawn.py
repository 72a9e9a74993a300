"""Array parameter spawning: grow and shrink `base[n]` parameter families.

A parameter declared with ``spawn=True`` accepts any number of producers.
The first connection lands on the declared key; every further producer gets
its own sibling slot ``base[1]``, ``base[2]``, ... cloned from the base
parameter and kept right after the key that was connected.
"""
import re
from dataclasses import replace

from .graph import Parameter

MAX_SPAWNED_PARAMS = 32

_SUFFIX_RE = re.compile(r"\[(\d*)\]$")


def base_key(key: str) -> str:
    """Strip a trailing ``[n]`` suffix: ``"x[3]" -> "x"``."""
    return _SUFFIX_RE.sub("", key)


def spawn_index(key: str) -> int:
    """Suffix of a spawned key, 0 for the bare base key."""
    match = _SUFFIX_RE.search(key)
    if not match or not match.group(1):
        return 0
    return int(match.group(1))


def family_keys(params: dict[str, Parameter], base: str) -> list[str]:
    """All keys of the family rooted at ``base``, in parameter order."""
    return [k for k in params if base_key(k) == base]


def is_spawnable(params: dict[str, Parameter], key: str) -> bool:
    """True when ``key`` belongs to a family whose base parameter can spawn."""
    base = params.get(base_key(key))
    return bool(base and base.spawn)


def is_spawned_slot(params: dict[str, Parameter], key: str | None) -> bool:
    """True for ``base[n]`` keys (n >= 1) of a spawn-enabled family."""
    if key is None or key not in params:
        return False
    return key != base_key(key) and is_spawnable(params, key)


def next_spawn_key(params: dict[str, Parameter], base: str) -> str:
    indices = [spawn_index(k) for k in family_keys(params, base)]
    return f"{base}[{max(indices, default=0) + 1}]"


def spawn_parameter(
    params: dict[str, Parameter],
    after_key: str,
    max_params: int = MAX_SPAWNED_PARAMS,
) -> tuple[dict[str, Parameter], str] | None:
    """Clone the family base into a new slot inserted after ``after_key``.

    Returns the new parameter map and the spawned key, or None when the
    family already holds ``max_params`` keys.
    """
    base = base_key(after_key)
    if base not in params:
        return None
    if len(family_keys(params, base)) >= max_params:
        return None

    new_key = next_spawn_key(params, base)
    clone = replace(params[base])
    ordered: dict[str, Parameter] = {}
    for key, param in params.items():
        ordered[key] = param
        if key == after_key:
            ordered[new_key] = clone
    if new_key not in ordered:
        ordered[new_key] = clone
    return ordered, new_key


def retract_parameter(params: dict[str, Parameter], key: str) -> dict[str, Parameter]:
    """Drop a spawned slot; any other key is left in place."""
    if not is_spawned_slot(params, key):
        return params
    return {k: v for k, v in params.items() if k != key}

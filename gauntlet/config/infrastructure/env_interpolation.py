"""Recursive ${ENV_VAR} / ${ENV_VAR:-default} interpolation for raw config data."""

import os
import re
from collections.abc import Mapping

# group(1) is the variable name, group(2) the optional default (may be empty).
_REFERENCE = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-([^}]*))?\}")

type RawValue = (
    str | int | float | bool | None | list["RawValue"] | dict[str, "RawValue"]
)


def collect_missing_vars(
    data: RawValue, environ: Mapping[str, str] | None = None
) -> list[str]:
    """
    Return the names of every referenced variable that is unset and has no
    default, in first-seen order. The whole tree is walked before returning.
    """
    env = os.environ if environ is None else environ
    missing: list[str] = []
    for text in _strings(data):
        for match in _REFERENCE.finditer(text):
            name, default = match.group(1), match.group(2)
            if default is None and name not in env and name not in missing:
                missing.append(name)
    return missing


def interpolate(data: RawValue, environ: Mapping[str, str] | None = None) -> RawValue:
    """
    Return a copy of data with every reference substituted.

    Call `collect_missing_vars` first; an unset variable without a default
    raises KeyError here.
    """
    env = os.environ if environ is None else environ

    def _substitute(match: re.Match[str]) -> str:
        name, default = match.group(1), match.group(2)
        if name in env:
            return env[name]
        if default is not None:
            return default
        raise KeyError(name)

    if isinstance(data, str):
        return _REFERENCE.sub(_substitute, data)
    if isinstance(data, list):
        return [interpolate(item, env) for item in data]
    if isinstance(data, dict):
        return {key: interpolate(value, env) for key, value in data.items()}
    return data


def _strings(data: RawValue) -> list[str]:
    if isinstance(data, str):
        return [data]
    if isinstance(data, list):
        return [text for item in data for text in _strings(item)]
    if isinstance(data, dict):
        return [text for value in data.values() for text in _strings(value)]
    return []

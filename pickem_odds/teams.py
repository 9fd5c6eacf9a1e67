from __future__ import annotations

from config import ODDSAPI_TO_ABBR, ESPN_ABBR_ALIASES

_ABBR_TO_NAME = {abbr: name for name, abbr in ODDSAPI_TO_ABBR.items()}


def to_abbreviation(full_name: str) -> str:
    """Translate an Odds API team name ('Kansas City Chiefs') to 'KC'.

    Unknown names come back unchanged so they simply never match a game.
    """
    if not full_name:
        return full_name
    return ODDSAPI_TO_ABBR.get(full_name.strip(), full_name)


def normalize_abbreviation(code: str) -> str:
    code = (code or "").strip().upper()
    return ESPN_ABBR_ALIASES.get(code, code)


def full_name(code: str) -> str:
    return _ABBR_TO_NAME.get(normalize_abbreviation(code), code)


def is_known(code: str) -> bool:
    return code in _ABBR_TO_NAME

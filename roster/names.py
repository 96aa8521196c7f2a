"""Display-name handling for names read off a scoresheet."""

import re
from typing import Callable

_PART_SPLIT_RE = re.compile(r'[\s-]+')


def title_case(name: str) -> str:
    """Turn an upper-case OCR name into title case.

    Hyphenated parts become separate words: ``JEAN-PIERRE`` -> ``Jean Pierre``.
    """
    if not name:
        return ''
    parts = _PART_SPLIT_RE.split(name.lower())
    return ' '.join(part[:1].upper() + part[1:] for part in parts)


def _split(
    raw_name: str,
    last_name_first: bool,
    case: Callable[[str], str],
) -> tuple[str, str, str]:
    parts = raw_name.split() if raw_name else []
    if not parts:
        return '', '', ''
    if len(parts) == 1:
        last_name = case(parts[0])
        return last_name, '', last_name

    if last_name_first:
        last_name = case(parts[0])
        first_name = ' '.join(case(p) for p in parts[1:])
    else:
        last_name = case(parts[-1])
        first_name = ' '.join(case(p) for p in parts[:-1])
    return last_name, first_name, f'{first_name} {last_name}'


def split_player_name(
    raw_name: str,
    case: Callable[[str], str] = title_case,
) -> tuple[str, str, str]:
    """Split a player name written ``LASTNAME FIRSTNAME [MIDDLENAME]``.

    Args:
        raw_name: Name as read by OCR.
        case: Casing applied to every name part.

    Returns:
        Tuple of (last_name, first_name, display_name).
    """
    return _split(raw_name, True, case)


def split_official_name(
    raw_name: str,
    case: Callable[[str], str] = title_case,
) -> tuple[str, str, str]:
    """Split an official name written ``Firstname [Middlename] Lastname``.

    Args:
        raw_name: Name as read by OCR.
        case: Casing applied to every name part.

    Returns:
        Tuple of (last_name, first_name, display_name).
    """
    return _split(raw_name, False, case)

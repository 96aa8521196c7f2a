"""File input: OCR text files and tab-separated reference rosters."""

import csv
import io
import logging
import re
from pathlib import Path
from typing import Optional

from rapidfuzz.distance import JaroWinkler

from roster import MissingReferenceError, ReferencePerson, ReferenceTeam
from roster.scoring import normalize

log = logging.getLogger(__name__)

TEAM_NAME_THRESHOLD = 0.80

REQUIRED_COLUMNS = {'Team', 'Extern ID', 'Last Name', 'First Name'}
TRUE_VALUES = {'1', 'true', 'yes', 'ja', 'x', 'l'}

# Matches any sequence of whitespace (including Unicode whitespace like U+2006)
_WHITESPACE_RE = re.compile(r'\s+')


def detect_encoding(path: Path) -> str:
    """Detect file encoding by checking for BOM bytes.

    Args:
        path: Path to the file.

    Returns:
        Encoding string suitable for open().
    """
    with open(path, 'rb') as f:
        bom = f.read(2)
    if bom == b'\xff\xfe':
        return 'utf-16-le'
    return 'utf-8-sig'


def normalize_whitespace(value: str) -> str:
    """Collapse any run of whitespace into one space and strip the ends."""
    return _WHITESPACE_RE.sub(' ', value).strip()


def _read_text(path: Path) -> str:
    with open(path, 'r', encoding=detect_encoding(path), newline='') as f:
        content = f.read()
    return content.lstrip('\ufeff')


def read_ocr_text(path: str | Path) -> str:
    """Read OCR output saved as a text file.

    Tabs inside lines are kept; line endings are normalized to ``\\n``.

    Raises:
        FileNotFoundError: If the file does not exist.
    """
    path = Path(path)
    text = _read_text(path).replace('\r\n', '\n').replace('\r', '\n')
    log.info("OCR-Text gelesen aus %s (%d Zeichen)", path, len(text))
    return text


def _parse_shirt_number(value: str) -> Optional[int]:
    return int(value) if value else None


def _person_from_row(cleaned: dict[str, str]) -> tuple[str, ReferencePerson]:
    last_name = cleaned.get('Last Name', '')
    first_name = cleaned.get('First Name', '')
    display_name = cleaned.get('Display Name') or f'{first_name} {last_name}'.strip()
    kind = (cleaned.get('Kind') or 'player').lower()
    person = ReferencePerson(
        id=cleaned['Extern ID'],
        first_name=first_name,
        last_name=last_name,
        display_name=display_name,
        shirt_number=_parse_shirt_number(cleaned.get('Shirt Number', '')),
        is_libero=cleaned.get('Libero', '').lower() in TRUE_VALUES,
        role=cleaned.get('Role') or None,
    )
    return kind, person


def read_reference_teams(
    path: str | Path,
    shirt_numbers: bool = False,
) -> list[ReferenceTeam]:
    """Read reference teams from a tab-separated roster file.

    One row per person. Required columns: ``Team``, ``Extern ID``,
    ``Last Name``, ``First Name``. Optional: ``Kind`` (player/official),
    ``Display Name``, ``Shirt Number``, ``Libero``, ``Role``. Teams come
    out in the order they first appear.

    Args:
        path: Path to the roster file.
        shirt_numbers: Mark the teams as providing shirt numbers, which
            enables the shirt-number bonus during matching.

    Returns:
        List of ReferenceTeam.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If required columns are missing.
    """
    path = Path(path)
    reader = csv.DictReader(io.StringIO(_read_text(path)), delimiter='\t')

    if reader.fieldnames is None:
        raise ValueError(f"Datei {path} ist leer oder hat keine Header-Zeile.")
    actual_cols = {normalize_whitespace(c) for c in reader.fieldnames}
    missing = REQUIRED_COLUMNS - actual_cols
    if missing:
        raise ValueError(
            f"Fehlende Spalten in {path}: {', '.join(sorted(missing))}"
        )

    players: dict[str, list[ReferencePerson]] = {}
    officials: dict[str, list[ReferencePerson]] = {}
    for row_num, row in enumerate(reader, start=2):
        cleaned = {normalize_whitespace(k): normalize_whitespace(v or '')
                   for k, v in row.items() if k is not None}
        team_name = cleaned.get('Team', '')
        if not team_name or not cleaned.get('Extern ID'):
            log.warning("Zeile %d in %s uebersprungen: Team oder ID fehlt", row_num, path)
            continue
        try:
            kind, person = _person_from_row(cleaned)
        except ValueError as exc:
            log.warning("Zeile %d in %s uebersprungen: %s", row_num, path, exc)
            continue

        players.setdefault(team_name, [])
        officials.setdefault(team_name, [])
        if kind == 'official':
            officials[team_name].append(person)
        else:
            players[team_name].append(person)

    teams = [
        ReferenceTeam(
            id=f'team-{index}',
            name=name,
            players=tuple(players[name]),
            officials=tuple(officials[name]),
            provides_shirt_numbers=shirt_numbers,
        )
        for index, name in enumerate(players, start=1)
    ]
    log.info("%d Referenzteams gelesen aus %s", len(teams), path)
    return teams


def find_team_by_name(
    teams: list[ReferenceTeam],
    name: str,
    threshold: float = TEAM_NAME_THRESHOLD,
) -> Optional[ReferenceTeam]:
    """Look up a reference team by approximate name.

    A normalized name contained in the other counts as a hit; otherwise
    the best Jaro-Winkler similarity at or above *threshold* wins.

    Args:
        teams: Candidate reference teams.
        name: Team name as written on the scoresheet or given by the user.
        threshold: Minimum Jaro-Winkler similarity (0–1).

    Returns:
        The best matching team, or None.
    """
    wanted = normalize(name)
    if not wanted:
        return None

    best: Optional[ReferenceTeam] = None
    best_sim = -1.0
    for team in teams:
        candidate = normalize(team.name)
        if not candidate:
            continue
        if wanted in candidate or candidate in wanted:
            sim = 1.0
        else:
            sim = JaroWinkler.similarity(wanted, candidate)
        if sim >= threshold and sim > best_sim:
            best_sim = sim
            best = team

    return best


def get_reference_teams(
    teams: list[ReferenceTeam],
    team_a_name: Optional[str] = None,
    team_b_name: Optional[str] = None,
) -> tuple[ReferenceTeam, ReferenceTeam]:
    """Pick the reference teams expected on the left and right column.

    Named teams are looked up approximately; unnamed sides take the
    remaining teams in file order.

    Raises:
        MissingReferenceError: If two distinct teams cannot be determined.
    """
    team_a = find_team_by_name(teams, team_a_name) if team_a_name else None
    team_b = find_team_by_name(teams, team_b_name) if team_b_name else None
    if team_a_name and team_a is None:
        raise MissingReferenceError(f"Referenzteam nicht gefunden: {team_a_name}")
    if team_b_name and team_b is None:
        raise MissingReferenceError(f"Referenzteam nicht gefunden: {team_b_name}")

    remaining = [t for t in teams if t is not team_a and t is not team_b]
    if team_a is None and remaining:
        team_a = remaining.pop(0)
    if team_b is None and remaining:
        team_b = remaining.pop(0)

    if team_a is None or team_b is None or team_a is team_b:
        raise MissingReferenceError("Es werden zwei verschiedene Referenzteams benoetigt.")
    return team_a, team_b

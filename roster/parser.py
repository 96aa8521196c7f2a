"""Section-aware parser for electronic scoresheet OCR text.

Expected layout (tab-separated, one row per line)::

    TeamA Name<tab>TeamB Name
    N.<tab>Name of the player<tab>...                  (column header)
    5<tab>LASTNAME FIRSTNAME<tab>OK<tab>7<tab>...      (players, A then B)
    LIBERO
    L1<tab>1 LASTNAME FIRSTNAME<tab>OK<tab>L1<tab>...  (liberos)
    OFFICIAL MEMBERS
    C<tab>Firstname Lastname<tab>C<tab>...             (officials)
    SIGNATURES                                         (end of roster)
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, NamedTuple, Optional

from roster import OFFICIAL_ROLES, ParsedGameSheet, ParsedPerson, ParsedTeam, SheetType
from roster.manuscript import parse_manuscript_sheet
from roster.names import split_official_name, split_player_name

log = logging.getLogger(__name__)

MAX_HEADER_ROWS = 3
TEAM_NAME_LOOKBACK = 3
MAX_SHIRT_NUMBER = 99

# Minimum field counts per row
MIN_FIELDS_PLAYER_A = 3
MIN_FIELDS_PLAYER_B = 6
MIN_FIELDS_OFFICIAL_A = 2
MIN_FIELDS_OFFICIAL_B = 4

SIGNATURE_MARKERS = ('SIGNATURES', 'TEAM CAPTAIN')
OFFICIALS_MARKERS = ('OFFICIAL MEMBERS', 'ADMITTED ON THE BENCH')
COLUMN_HEADER_MARKERS = ('LIBERO', 'N.', 'NAME OF THE PLAYER')
LIBERO_POSITIONS = ('L1', 'L2')

_INT_RE = re.compile(r'\s*([+-]?\d+)')
_LIBERO_ENTRY_RE = re.compile(r'^(\d{1,2})\s+(\S.*)$')
_SIDE_LABEL_RE = re.compile(r'^[AB]\s+')
_ALPHA_RE = re.compile(r'[a-zA-Z]{3,}')
_PLAYER_NAME_RE = re.compile(r'^[A-ZÀ-Þ\s]+$')


class Section(str, Enum):
    """Parser states, in document order."""

    HEADER = 'header'
    PLAYERS = 'players'
    LIBERO = 'libero'
    OFFICIALS = 'officials'
    DONE = 'done'


@dataclass(frozen=True)
class ParserState:
    """Current section and the number of rows consumed in the header."""

    section: Section = Section.HEADER
    header_rows: int = 0


class Entry(NamedTuple):
    """Something a single line contributed to one team."""

    side: str   # 'A' or 'B'
    kind: str   # 'name', 'player', 'official'
    value: ParsedPerson | str


def split_fields(line: str) -> list[str]:
    """Split a row on tabs and trim every field.

    Trailing blanks are dropped, leading tabs are kept so that a row
    holding only a Team-B entry keeps its column positions.
    """
    return [f.strip() for f in line.rstrip().split('\t')]


def _parse_int(text: str) -> Optional[int]:
    """Parse the leading integer of *text*, None if there is none."""
    match = _INT_RE.match(text or '')
    return int(match.group(1)) if match else None


def clean_team_name(name: str) -> str:
    """Strip a leading ``A ``/``B `` side label from a team name."""
    return _SIDE_LABEL_RE.sub('', name).strip()


# ---------------------------------------------------------------------------
# Marker detection
# ---------------------------------------------------------------------------

def is_signatures_marker(line: str) -> bool:
    upper = line.upper()
    return any(m in upper for m in SIGNATURE_MARKERS)


def is_officials_marker(line: str) -> bool:
    upper = line.upper()
    return any(m in upper for m in OFFICIALS_MARKERS)


def is_libero_marker(line: str, fields: list[str]) -> bool:
    return 'LIBERO' in line.upper() and len([f for f in fields if f]) <= 2


def is_column_header(line: str) -> bool:
    upper = line.upper()
    return any(m in upper for m in COLUMN_HEADER_MARKERS)


# ---------------------------------------------------------------------------
# Entry extraction
# ---------------------------------------------------------------------------

def _player_from_fields(fields: list[str], start: int) -> Optional[ParsedPerson]:
    """Build a player from ``[number, name, license]`` at *start*."""
    number = _parse_int(fields[start])
    raw_name = fields[start + 1]
    if number is None or not raw_name:
        return None

    last_name, first_name, display_name = split_player_name(raw_name)
    return ParsedPerson(
        raw_name=raw_name,
        last_name=last_name,
        first_name=first_name,
        display_name=display_name,
        shirt_number=number,
        license_status=fields[start + 2],
    )


def parse_libero_entry(entry: str) -> tuple[Optional[int], str]:
    """Split ``"<number> <name>"`` into (number, name)."""
    trimmed = (entry or '').strip()
    match = _LIBERO_ENTRY_RE.match(trimmed)
    if match:
        return int(match.group(1)), match.group(2).strip()
    return None, trimmed


def _libero_from_fields(fields: list[str], start: int) -> Optional[ParsedPerson]:
    """Build a libero from ``[position, "number name", license]`` at *start*."""
    number, raw_name = parse_libero_entry(fields[start + 1])
    if not raw_name:
        return None

    position = fields[start].upper()
    last_name, first_name, display_name = split_player_name(raw_name)
    return ParsedPerson(
        raw_name=raw_name,
        last_name=last_name,
        first_name=first_name,
        display_name=display_name,
        shirt_number=number,
        license_status=fields[start + 2],
        is_libero=True,
        libero_position=position if position in LIBERO_POSITIONS else None,
    )


def _official_from_fields(fields: list[str], start: int) -> Optional[ParsedPerson]:
    """Build an official from ``[role, name]`` at *start*."""
    role = fields[start].upper()
    raw_name = fields[start + 1]
    if role not in OFFICIAL_ROLES or not raw_name:
        return None

    last_name, first_name, display_name = split_official_name(raw_name)
    return ParsedPerson(
        raw_name=raw_name,
        last_name=last_name,
        first_name=first_name,
        display_name=display_name,
        role=role,
    )


def _paired_entries(
    fields: list[str],
    kind: str,
    build: Callable[[list[str], int], Optional[ParsedPerson]],
    min_a: int,
    min_b: int,
) -> list[Entry]:
    entries: list[Entry] = []
    if len(fields) < min_a:
        return entries
    left = build(fields, 0)
    if left:
        entries.append(Entry('A', kind, left))
    if len(fields) >= min_b:
        right = build(fields, min_a)
        if right:
            entries.append(Entry('B', kind, right))
    return entries


def _header_step(
    state: ParserState,
    line: str,
    fields: list[str],
) -> tuple[ParserState, list[Entry]]:
    if state.header_rows == 0 and not is_column_header(line):
        names = [f for f in fields if f]
        entries = [Entry(side, 'name', clean_team_name(name))
                   for side, name in zip('AB', names[:2])]
        return ParserState(Section.HEADER, 1), entries

    if is_column_header(line):
        return ParserState(Section.PLAYERS), []

    rows = state.header_rows + 1
    if rows > MAX_HEADER_ROWS:
        return ParserState(Section.PLAYERS), []
    return ParserState(Section.HEADER, rows), []


def step(state: ParserState, line: str) -> tuple[ParserState, list[Entry]]:
    """Advance the parser by one line.

    Section markers win over per-section handling, in the order
    signatures, officials header, libero header.

    Args:
        state: State before the line.
        line: One line of OCR text.

    Returns:
        Tuple of (state after the line, entries the line produced).
    """
    if is_signatures_marker(line):
        return ParserState(Section.DONE), []
    if state.section is Section.DONE:
        return state, []
    if is_officials_marker(line):
        return ParserState(Section.OFFICIALS), []

    fields = split_fields(line)
    if is_libero_marker(line, fields):
        return ParserState(Section.LIBERO), []

    if state.section is Section.HEADER:
        return _header_step(state, line, fields)
    if state.section is Section.PLAYERS:
        return state, _paired_entries(
            fields, 'player', _player_from_fields,
            MIN_FIELDS_PLAYER_A, MIN_FIELDS_PLAYER_B,
        )
    if state.section is Section.LIBERO:
        return state, _paired_entries(
            fields, 'player', _libero_from_fields,
            MIN_FIELDS_PLAYER_A, MIN_FIELDS_PLAYER_B,
        )
    return state, _paired_entries(
        fields, 'official', _official_from_fields,
        MIN_FIELDS_OFFICIAL_A, MIN_FIELDS_OFFICIAL_B,
    )


# ---------------------------------------------------------------------------
# Roster start detection
# ---------------------------------------------------------------------------

def _looks_like_team_names(line: str) -> bool:
    names = [f for f in split_fields(line) if f]
    return len(names) >= 2 and any(_ALPHA_RE.search(n) for n in names)


def _is_player_row(line: str) -> bool:
    fields = split_fields(line)
    if len(fields) < MIN_FIELDS_PLAYER_A:
        return False
    if not re.fullmatch(r'\d{1,2}', fields[0]):
        return False
    if not 1 <= int(fields[0]) <= MAX_SHIRT_NUMBER:
        return False
    return bool(_PLAYER_NAME_RE.match(fields[1])) and len(fields[1]) > 3


def find_roster_start(lines: list[str]) -> tuple[int, int, Section]:
    """Find where the roster begins, skipping score and set information.

    Returns:
        Tuple of (index of the first line to parse, index of the team-names
        line or -1, section to start in).
    """
    for i, line in enumerate(lines):
        upper = line.upper()
        if 'NAME OF THE PLAYER' in upper or ('N.' in upper and 'NAME' in upper):
            for j in range(i - 1, max(0, i - TEAM_NAME_LOOKBACK) - 1, -1):
                if _looks_like_team_names(lines[j]):
                    return j, j, Section.HEADER
            return i, -1, Section.HEADER

    for i, line in enumerate(lines):
        if _is_player_row(line):
            names_index = i - 1 if i > 0 and _looks_like_team_names(lines[i - 1]) else -1
            return i, names_index, Section.PLAYERS

    return 0, -1, Section.HEADER


# ---------------------------------------------------------------------------
# Main parser
# ---------------------------------------------------------------------------

def _apply(entries: list[Entry], team_a: ParsedTeam, team_b: ParsedTeam) -> None:
    for entry in entries:
        team = team_a if entry.side == 'A' else team_b
        if entry.kind == 'name':
            team.name = entry.value
        elif entry.kind == 'player':
            team.players.append(entry.value)
        else:
            team.officials.append(entry.value)


def parse_electronic_sheet(ocr_text: Optional[str]) -> ParsedGameSheet:
    """Parse OCR text of an electronic scoresheet into both team rosters.

    Never raises on malformed input; problems end up in ``warnings``.

    Args:
        ocr_text: Full OCR text, lines separated by ``\\n``, fields by tabs.

    Returns:
        ParsedGameSheet, possibly with empty teams.
    """
    warnings: list[str] = []
    team_a = ParsedTeam()
    team_b = ParsedTeam()

    if not ocr_text or not isinstance(ocr_text, str):
        warnings.append('No OCR text provided')
        return ParsedGameSheet(team_a, team_b, warnings)

    lines = [line.rstrip() for line in ocr_text.split('\n') if line.strip()]
    if not lines:
        warnings.append('OCR text contains no lines')
        return ParsedGameSheet(team_a, team_b, warnings)

    start, names_index, section = find_roster_start(lines)
    skipped = names_index if section is Section.PLAYERS and names_index >= 0 else start
    if skipped > 0:
        warnings.append(
            f'Skipped {skipped} lines of non-player data (score/set information)'
        )
    if section is Section.PLAYERS and names_index >= 0:
        _, entries = _header_step(ParserState(), lines[names_index],
                                  split_fields(lines[names_index]))
        _apply(entries, team_a, team_b)

    state = ParserState(section)
    for line in lines[start:]:
        state, entries = step(state, line)
        _apply(entries, team_a, team_b)
        if state.section is Section.DONE:
            break

    if not team_a.players:
        warnings.append('No players found for Team A')
    if not team_b.players:
        warnings.append('No players found for Team B')
    if not team_a.officials and not team_b.officials:
        warnings.append(
            'No officials (coaches) found - the OFFICIAL MEMBERS section '
            'may not have been recognized'
        )

    log.info(
        "Spielbericht gelesen: %d/%d Spieler, %d/%d Offizielle, %d Warnungen",
        len(team_a.players), len(team_b.players),
        len(team_a.officials), len(team_b.officials), len(warnings),
    )
    return ParsedGameSheet(team_a, team_b, warnings)


def parse_game_sheet(
    ocr_text: Optional[str],
    sheet_type: SheetType | str = SheetType.ELECTRONIC,
) -> ParsedGameSheet:
    """Parse OCR text with the dialect matching the scoresheet type.

    Raises:
        ValueError: If *sheet_type* is not a known sheet type.
    """
    if SheetType(sheet_type) is SheetType.MANUSCRIPT:
        return parse_manuscript_sheet(ocr_text)
    return parse_electronic_sheet(ocr_text)

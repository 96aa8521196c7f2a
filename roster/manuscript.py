"""Parser for OCR text of handwritten (manuscript) scoresheets.

Handwriting gives no reliable tab structure, so rows are recognized by
pattern instead of by column, and common OCR misreads are corrected in
shirt numbers (``O`` -> ``0``, ``l`` -> ``1``, ...) and names.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Optional

from roster import OFFICIAL_ROLES, ParsedGameSheet, ParsedPerson, ParsedTeam
from roster.names import split_official_name, split_player_name, title_case

log = logging.getLogger(__name__)

MAX_SHIRT_NUMBER = 99
MIN_NAME_LENGTH = 2
MIN_TEAM_NAME_LENGTH = 3
MIN_LETTER_RATIO = 0.6

DIGIT_CORRECTIONS: dict[str, str] = {
    'O': '0', 'o': '0', 'Q': '0', 'D': '0',
    'I': '1', 'l': '1', 'i': '1', '|': '1',
    'Z': '2', 'z': '2',
    'E': '3',
    'A': '4',
    'S': '5', 's': '5',
    'G': '6', 'b': '6',
    'T': '7',
    'B': '8',
    'g': '9', 'q': '9',
}

LETTER_CORRECTIONS: dict[str, str] = {
    '0': 'O',
    '1': 'I', '|': 'I',
    '5': 'S',
    '8': 'B',
    '@': 'A', '&': 'A',
    '€': 'E',
    '£': 'L',
    '¢': 'C',
}

TEAM_A_MARKERS = ('TEAM A', 'ÉQUIPE A', 'MANNSCHAFT A', 'HOME', 'HEIM')
TEAM_B_MARKERS = ('TEAM B', 'ÉQUIPE B', 'MANNSCHAFT B', 'AWAY', 'GAST')
OFFICIALS_MARKERS = ('OFFICIAL', 'COACH', 'TRAINER')
END_MARKERS = ('SIGNATURE', 'CAPTAIN', 'REFEREE', 'ARBITRE')

_TEAM_A_STRIP_RE = re.compile(r'TEAM\s*A|ÉQUIPE\s*A|MANNSCHAFT\s*A|HOME|HEIM', re.IGNORECASE)
_TEAM_B_STRIP_RE = re.compile(r'TEAM\s*B|ÉQUIPE\s*B|MANNSCHAFT\s*B|AWAY|GAST', re.IGNORECASE)

_PLAYER_LINE_RE = re.compile(r'^(\d{1,2})[\s.:_-]+([A-Za-zÀ-ÿ\s]+)')
# Also accepts characters commonly misread for digits
_PLAYER_LINE_LENIENT_RE = re.compile(r'^([0-9OoIlZzSsGgBb]{1,2})[\s.:_-]+([A-Za-zÀ-ÿ\s]+)')
_OFFICIAL_LINE_RE = re.compile(r'^(C|AC\d?|M)[\s.:_-]+([A-Za-zÀ-ÿ\s]+)', re.IGNORECASE)
_LETTER_RE = re.compile(r'[A-Za-zÀ-ÿ]')


def correct_digits(text: str) -> str:
    """Replace characters commonly misread for digits."""
    return ''.join(DIGIT_CORRECTIONS.get(ch, ch) for ch in text)


def correct_letters(text: str) -> str:
    """Replace characters commonly misread for letters."""
    return ''.join(LETTER_CORRECTIONS.get(ch, ch) for ch in text)


def extract_shirt_number(text: str) -> Optional[int]:
    """Read a shirt number (1–99) after digit correction, None if invalid."""
    if not text:
        return None
    corrected = correct_digits(text.strip())
    if re.fullmatch(r'\d{1,2}', corrected):
        number = int(corrected)
        if 1 <= number <= MAX_SHIRT_NUMBER:
            return number
    return None


def _case(part: str) -> str:
    return title_case(correct_letters(part))


def _contains_any(line: str, markers: tuple[str, ...]) -> bool:
    upper = line.upper()
    return any(m in upper for m in markers)


def _try_player(line: str) -> Optional[ParsedPerson]:
    match = _PLAYER_LINE_RE.match(line) or _PLAYER_LINE_LENIENT_RE.match(line)
    if not match:
        return None

    raw_name = match.group(2).strip()
    if len(raw_name) < MIN_NAME_LENGTH:
        return None

    last_name, first_name, display_name = split_player_name(raw_name, case=_case)
    return ParsedPerson(
        raw_name=raw_name,
        last_name=last_name,
        first_name=first_name,
        display_name=display_name,
        shirt_number=extract_shirt_number(match.group(1)),
        license_status='',
    )


def _try_official(line: str) -> Optional[ParsedPerson]:
    match = _OFFICIAL_LINE_RE.match(line)
    if not match:
        return None

    role = match.group(1).upper()
    raw_name = match.group(2).strip()
    if role not in OFFICIAL_ROLES or len(raw_name) < MIN_NAME_LENGTH:
        return None

    last_name, first_name, display_name = split_official_name(raw_name, case=_case)
    return ParsedPerson(
        raw_name=raw_name,
        last_name=last_name,
        first_name=first_name,
        display_name=display_name,
        role=role,
    )


def extract_team_name(line: str) -> Optional[str]:
    """Return *line* if it looks like a team name, else None."""
    trimmed = line.strip()
    if len(trimmed) < MIN_TEAM_NAME_LENGTH:
        return None
    if _PLAYER_LINE_RE.match(trimmed) or _PLAYER_LINE_LENIENT_RE.match(trimmed):
        return None
    if (
        'LIBERO' in trimmed.upper()
        or _contains_any(trimmed, OFFICIALS_MARKERS)
        or _contains_any(trimmed, END_MARKERS)
    ):
        return None

    letters = len(_LETTER_RE.findall(trimmed))
    if letters >= MIN_TEAM_NAME_LENGTH and letters / len(trimmed) > MIN_LETTER_RATIO:
        return trimmed
    return None


@dataclass
class _TeamSections:
    a_lines: list[str] = field(default_factory=list)
    b_lines: list[str] = field(default_factory=list)
    a_name: str = ''
    b_name: str = ''


def _split_sections(lines: list[str]) -> _TeamSections:
    """Distribute lines to Team A and Team B by section markers."""
    sections = _TeamSections()
    current: Optional[str] = None
    marker_a_seen = False

    for line in lines:
        if _contains_any(line, TEAM_A_MARKERS):
            name = extract_team_name(_TEAM_A_STRIP_RE.sub('', line, count=1).strip())
            if name:
                sections.a_name = name
            current = 'A'
            marker_a_seen = True
            continue
        if _contains_any(line, TEAM_B_MARKERS):
            name = extract_team_name(_TEAM_B_STRIP_RE.sub('', line, count=1).strip())
            if name:
                sections.b_name = name
            current = 'B'
            continue

        if not marker_a_seen and not sections.a_name:
            name = extract_team_name(line)
            if name:
                sections.a_name = name
                current = 'A'
                continue

        if current == 'B':
            sections.b_lines.append(line)
        else:
            sections.a_lines.append(line)

    return sections


def _parse_team(lines: list[str], name: str) -> ParsedTeam:
    team = ParsedTeam(name=name)
    in_officials = False

    for line in lines:
        if _contains_any(line, OFFICIALS_MARKERS):
            in_officials = True
            continue
        if _contains_any(line, END_MARKERS):
            break
        if 'LIBERO' in line.upper():
            continue

        if not in_officials:
            player = _try_player(line)
            if player:
                team.players.append(player)
                continue
        # Officials may also be written inline with the players
        official = _try_official(line)
        if official:
            team.officials.append(official)

    return team


def parse_manuscript_sheet(ocr_text: Optional[str]) -> ParsedGameSheet:
    """Parse OCR text of a handwritten scoresheet.

    Args:
        ocr_text: Full OCR text.

    Returns:
        ParsedGameSheet; never raises on malformed input.
    """
    warnings: list[str] = []

    if not ocr_text or not isinstance(ocr_text, str):
        warnings.append('No OCR text provided')
        return ParsedGameSheet(ParsedTeam(), ParsedTeam(), warnings)

    lines = [line.strip() for line in ocr_text.split('\n') if line.strip()]
    if not lines:
        warnings.append('OCR text contains no lines')
        return ParsedGameSheet(ParsedTeam(), ParsedTeam(), warnings)

    sections = _split_sections(lines)
    team_a = _parse_team(sections.a_lines, sections.a_name)
    team_b = _parse_team(sections.b_lines, sections.b_name)

    if not team_a.players:
        warnings.append('No players found for Team A')
    if not team_b.players and sections.b_lines:
        warnings.append('No players found for Team B')

    log.info(
        "Handschriftlicher Spielbericht gelesen: %d/%d Spieler",
        len(team_a.players), len(team_b.players),
    )
    return ParsedGameSheet(team_a, team_b, warnings)

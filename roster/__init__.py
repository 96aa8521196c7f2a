"""Core module for scoresheet roster reconciliation."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class SheetType(str, Enum):
    """Scoresheet dialect, selects the parser and the gate strictness."""

    ELECTRONIC = 'electronic'
    MANUSCRIPT = 'manuscript'


class MatchStatus(str, Enum):
    """Classification of a single comparison row."""

    MATCH = 'match'
    OCR_ONLY = 'ocr-only'
    REF_ONLY = 'ref-only'


OFFICIAL_ROLES = frozenset({'C', 'AC', 'AC2', 'AC3', 'AC4', 'M'})


class MissingReferenceError(ValueError):
    """Raised when a matcher or resolver is called without reference data."""


@dataclass(frozen=True)
class ParsedPerson:
    """A player or official as read from the scoresheet."""

    raw_name: str
    last_name: str
    first_name: str
    display_name: str
    shirt_number: Optional[int] = None     # players only, display only
    license_status: Optional[str] = None   # players only
    role: Optional[str] = None             # officials only
    is_libero: bool = False
    libero_position: Optional[str] = None  # L1, L2


@dataclass
class ParsedTeam:
    """One column of the scoresheet."""

    name: str = ''
    players: list[ParsedPerson] = field(default_factory=list)
    officials: list[ParsedPerson] = field(default_factory=list)


@dataclass
class ParsedGameSheet:
    """Parser output: both teams plus non-fatal warnings."""

    team_a: ParsedTeam
    team_b: ParsedTeam
    warnings: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ReferencePerson:
    """A player or official from the reference roster source."""

    id: str
    first_name: str
    last_name: str
    display_name: str
    shirt_number: Optional[int] = None
    is_libero: bool = False
    role: Optional[str] = None


@dataclass(frozen=True)
class ReferenceTeam:
    """A team from the reference roster source."""

    id: str
    name: str
    players: tuple[ReferencePerson, ...] = ()
    officials: tuple[ReferencePerson, ...] = ()
    provides_shirt_numbers: bool = False


@dataclass(frozen=True)
class MatchResult:
    """Result of pairing one OCR entry with one reference entry."""

    status: MatchStatus
    ocr_entry: Optional[ParsedPerson]
    ref_entry: Optional[ReferencePerson]
    confidence: int  # 0 – 100


def _count(results: tuple[MatchResult, ...], status: MatchStatus) -> int:
    return sum(1 for r in results if r.status == status)


@dataclass(frozen=True)
class TeamComparison:
    """OCR team compared against one reference team."""

    ocr_team_name: str
    ref_team_name: str
    player_results: tuple[MatchResult, ...]
    official_results: tuple[MatchResult, ...]

    @property
    def match_count(self) -> int:
        return (_count(self.player_results, MatchStatus.MATCH)
                + _count(self.official_results, MatchStatus.MATCH))

    @property
    def ocr_only_count(self) -> int:
        return (_count(self.player_results, MatchStatus.OCR_ONLY)
                + _count(self.official_results, MatchStatus.OCR_ONLY))

    @property
    def ref_only_count(self) -> int:
        return (_count(self.player_results, MatchStatus.REF_ONLY)
                + _count(self.official_results, MatchStatus.REF_ONLY))

    def counts(self) -> dict[str, int]:
        """Aggregate counts per status, split by section."""
        return {
            'players_matched': _count(self.player_results, MatchStatus.MATCH),
            'players_ocr_only': _count(self.player_results, MatchStatus.OCR_ONLY),
            'players_ref_only': _count(self.player_results, MatchStatus.REF_ONLY),
            'officials_matched': _count(self.official_results, MatchStatus.MATCH),
            'officials_ocr_only': _count(self.official_results, MatchStatus.OCR_ONLY),
            'officials_ref_only': _count(self.official_results, MatchStatus.REF_ONLY),
        }


@dataclass(frozen=True)
class TeamMapping:
    """Which reference team belongs to which scoresheet column.

    ``team_a`` is always the comparison for the left OCR column and
    ``team_b`` for the right one, whatever ``swapped`` says.
    """

    swapped: bool
    is_confident: bool
    confidence_score: int  # 0 – 100
    team_a: TeamComparison
    team_b: TeamComparison
    user_confirmed: bool = False

"""Decide which reference team belongs to which scoresheet column."""

import logging
from dataclasses import dataclass

from roster import MissingReferenceError, ParsedTeam, ReferenceTeam, TeamComparison, TeamMapping
from roster.matching import MATCH_THRESHOLD, match_team
from roster.scoring import round_half_up

log = logging.getLogger(__name__)

MIN_SCORE_GAP = 2
MIN_CONFIDENCE = 50


@dataclass(frozen=True)
class Resolution:
    """Both pairing hypotheses and the one picked automatically.

    ``straight`` pairs OCR-A with Ref-A and OCR-B with Ref-B, ``crossed``
    pairs OCR-A with Ref-B and OCR-B with Ref-A.
    """

    mapping: TeamMapping
    straight: tuple[TeamComparison, TeamComparison]
    crossed: tuple[TeamComparison, TeamComparison]
    straight_score: int
    crossed_score: int

    def comparisons_for(self, swapped: bool) -> tuple[TeamComparison, TeamComparison]:
        return self.crossed if swapped else self.straight


def calculate_confidence(score1: int, score2: int, total_possible: int) -> int:
    """Confidence (0–100) that the better hypothesis is the right one.

    Half of it rewards how much matched at all, the other half how
    clearly the winner beat the other hypothesis.

    Args:
        score1: Match count of the straight hypothesis.
        score2: Match count of the crossed hypothesis.
        total_possible: Number of OCR players and officials on both teams.

    Returns:
        Integer confidence, 0 when there is nothing to match.
    """
    if total_possible == 0:
        return 0
    max_score = max(score1, score2)
    diff = abs(score1 - score2)
    match_ratio = max_score / total_possible
    diff_ratio = diff / max(1, max_score)
    return round_half_up(match_ratio * 50 + diff_ratio * 50)


def is_confident(score1: int, score2: int, confidence: int) -> bool:
    """Both an absolute score gap and a confidence floor are required."""
    return abs(score1 - score2) >= MIN_SCORE_GAP and confidence >= MIN_CONFIDENCE


def resolve(
    ocr_a: ParsedTeam,
    ocr_b: ParsedTeam,
    ref_a: ReferenceTeam,
    ref_b: ReferenceTeam,
    threshold: float = MATCH_THRESHOLD,
) -> Resolution:
    """Evaluate both left/right pairings and pick the one with more matches.

    Ties keep the unswapped pairing.

    Args:
        ocr_a: Left scoresheet column.
        ocr_b: Right scoresheet column.
        ref_a: Reference team expected on the left.
        ref_b: Reference team expected on the right.
        threshold: Match threshold passed on to the matcher.

    Returns:
        Resolution carrying the pre-gate TeamMapping.

    Raises:
        MissingReferenceError: If a reference team is None.
    """
    if ref_a is None or ref_b is None:
        raise MissingReferenceError("Beide Referenzteams werden benoetigt.")

    straight = (match_team(ocr_a, ref_a, threshold), match_team(ocr_b, ref_b, threshold))
    crossed = (match_team(ocr_a, ref_b, threshold), match_team(ocr_b, ref_a, threshold))
    score1 = sum(c.match_count for c in straight)
    score2 = sum(c.match_count for c in crossed)

    swapped = score2 > score1
    total_possible = (
        len(ocr_a.players) + len(ocr_b.players)
        + len(ocr_a.officials) + len(ocr_b.officials)
    )
    confidence = calculate_confidence(score1, score2, total_possible)
    chosen = crossed if swapped else straight

    mapping = TeamMapping(
        swapped=swapped,
        is_confident=is_confident(score1, score2, confidence),
        confidence_score=confidence,
        team_a=chosen[0],
        team_b=chosen[1],
    )
    log.info(
        "Teamzuordnung: gerade=%d, vertauscht=%d -> %s (Konfidenz %d%%)",
        score1, score2, 'vertauscht' if swapped else 'gerade', confidence,
    )
    return Resolution(
        mapping=mapping,
        straight=straight,
        crossed=crossed,
        straight_score=score1,
        crossed_score=score2,
    )

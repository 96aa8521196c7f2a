"""Greedy identity matching of an OCR team against a reference team."""

import logging
from typing import Optional, Sequence

from roster import (
    MatchResult,
    MatchStatus,
    MissingReferenceError,
    ParsedPerson,
    ParsedTeam,
    ReferencePerson,
    ReferenceTeam,
    TeamComparison,
)
from roster.scoring import person_score, round_half_up

log = logging.getLogger(__name__)

MATCH_THRESHOLD = 50
MAX_CONFIDENCE = 100

STATUS_ORDER: dict[MatchStatus, int] = {
    MatchStatus.MATCH: 0,
    MatchStatus.OCR_ONLY: 1,
    MatchStatus.REF_ONLY: 2,
}


def _find_best_candidate(
    ocr: ParsedPerson,
    candidates: Sequence[ReferencePerson],
    claimed: set[str],
    use_shirt_numbers: bool,
) -> tuple[Optional[ReferencePerson], float]:
    """Return the best unclaimed candidate and its score.

    Ties go to the candidate listed first.
    """
    best: Optional[ReferencePerson] = None
    best_score = -1.0

    for ref in candidates:
        if ref.id in claimed:
            continue
        score = person_score(ocr, ref, use_shirt_numbers)
        if score > best_score:
            best_score = score
            best = ref

    return best, best_score


def match_entries(
    ocr_entries: Sequence[ParsedPerson],
    ref_entries: Sequence[ReferencePerson],
    threshold: float = MATCH_THRESHOLD,
    use_shirt_numbers: bool = False,
) -> tuple[MatchResult, ...]:
    """Pair OCR entries with reference entries, best-first per OCR entry.

    Greedy in OCR list order: earlier OCR entries get the first choice of
    reference entries, and a claimed reference entry is not offered again.
    This is not a globally optimal assignment.

    Args:
        ocr_entries: Entries parsed from the scoresheet.
        ref_entries: Entries from the reference roster.
        threshold: Minimum weighted score to accept a pairing (0–100).
        use_shirt_numbers: Whether equal shirt numbers add a bonus.

    Returns:
        Results sorted match, then ocr-only, then ref-only; production
        order is kept within each status.
    """
    results: list[MatchResult] = []
    claimed: set[str] = set()

    for ocr in ocr_entries:
        ref, score = _find_best_candidate(ocr, ref_entries, claimed, use_shirt_numbers)
        if ref is not None and score >= threshold:
            claimed.add(ref.id)
            results.append(MatchResult(
                status=MatchStatus.MATCH,
                ocr_entry=ocr,
                ref_entry=ref,
                confidence=round_half_up(min(MAX_CONFIDENCE, score)),
            ))
        else:
            results.append(MatchResult(
                status=MatchStatus.OCR_ONLY,
                ocr_entry=ocr,
                ref_entry=None,
                confidence=0,
            ))

    for ref in ref_entries:
        if ref.id in claimed:
            continue
        claimed.add(ref.id)
        results.append(MatchResult(
            status=MatchStatus.REF_ONLY,
            ocr_entry=None,
            ref_entry=ref,
            confidence=0,
        ))

    return tuple(sorted(results, key=lambda r: STATUS_ORDER[r.status]))


def match_team(
    ocr_team: ParsedTeam,
    ref_team: ReferenceTeam,
    threshold: float = MATCH_THRESHOLD,
) -> TeamComparison:
    """Compare one OCR team against one reference team.

    Players and officials are matched separately and never against each
    other. The shirt-number bonus applies to players only, and only when
    the reference team provides shirt numbers.

    Args:
        ocr_team: Team parsed from the scoresheet.
        ref_team: Team from the reference roster source.
        threshold: Minimum weighted score to accept a pairing (0–100).

    Returns:
        TeamComparison with player and official results.

    Raises:
        MissingReferenceError: If *ref_team* is None.
    """
    if ref_team is None:
        raise MissingReferenceError("Referenzteam fehlt fuer den Abgleich.")
    if ocr_team is None:
        raise ValueError("OCR-Team fehlt fuer den Abgleich.")

    player_results = match_entries(
        ocr_team.players, ref_team.players, threshold,
        use_shirt_numbers=ref_team.provides_shirt_numbers,
    )
    official_results = match_entries(ocr_team.officials, ref_team.officials, threshold)

    comparison = TeamComparison(
        ocr_team_name=ocr_team.name,
        ref_team_name=ref_team.name,
        player_results=player_results,
        official_results=official_results,
    )
    log.debug(
        "Abgleich %r -> %r: %d Treffer, %d nur OCR, %d nur Referenz",
        ocr_team.name, ref_team.name, comparison.match_count,
        comparison.ocr_only_count, comparison.ref_only_count,
    )
    return comparison

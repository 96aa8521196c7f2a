"""End-to-end reconciliation of one scoresheet against a reference pair."""

import logging
from dataclasses import dataclass
from typing import Optional

from roster import ParsedGameSheet, ReferenceTeam, SheetType, TeamMapping
from roster.gate import PresentSwapChoice, confirm_mapping
from roster.matching import MATCH_THRESHOLD
from roster.parser import parse_game_sheet
from roster.resolver import resolve

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Reconciliation:
    """Final result of one reconciliation run."""

    sheet: ParsedGameSheet
    mapping: TeamMapping

    @property
    def warnings(self) -> list[str]:
        return self.sheet.warnings


async def reconcile(
    ocr_text: str,
    reference_teams: tuple[ReferenceTeam, ReferenceTeam],
    present_swap_choice: PresentSwapChoice,
    sheet_type: SheetType | str = SheetType.ELECTRONIC,
    threshold: float = MATCH_THRESHOLD,
    timeout: Optional[float] = None,
) -> Reconciliation:
    """Parse, match, resolve and gate one scoresheet.

    Args:
        ocr_text: Full OCR text of the scoresheet.
        reference_teams: Reference teams expected on the left and right.
        present_swap_choice: Async confirmation channel, awaited at most once.
        sheet_type: Scoresheet dialect; manuscripts always ask for confirmation.
        threshold: Match threshold (0–100).
        timeout: Seconds to wait for confirmation, None waits indefinitely.

    Returns:
        Reconciliation with the parsed sheet and the final mapping.
    """
    sheet_type = SheetType(sheet_type)
    sheet = parse_game_sheet(ocr_text, sheet_type)
    ref_a, ref_b = reference_teams

    resolution = resolve(sheet.team_a, sheet.team_b, ref_a, ref_b, threshold)
    mapping = await confirm_mapping(
        resolution,
        is_manuscript=sheet_type is SheetType.MANUSCRIPT,
        present_swap_choice=present_swap_choice,
        timeout=timeout,
    )
    log.info(
        "Abgleich abgeschlossen: %d + %d Treffer",
        mapping.team_a.match_count, mapping.team_b.match_count,
    )
    return Reconciliation(sheet=sheet, mapping=mapping)

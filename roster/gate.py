"""Auto-accept a team mapping or hand it to a human for confirmation.

Confirmation is modelled as a continuation: ``gate`` either returns the
final mapping or a ``PendingConfirmation`` holding the resolution, which
is finished exactly once by ``resolve`` (the user's answer) or ``cancel``
(fall back to the automatic guess). ``confirm_mapping`` wires this to an
async confirmation channel.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Union

from roster import TeamComparison, TeamMapping
from roster.resolver import Resolution

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class TeamInfo:
    """What the user sees of one scoresheet column."""

    name: str
    count: int


@dataclass(frozen=True)
class SwapChoice:
    """The user's answer: did they flip the displayed sides?"""

    swapped: bool


PresentSwapChoice = Callable[
    [TeamInfo, TeamInfo, int], Awaitable[Optional[SwapChoice]]
]


def needs_confirmation(mapping: TeamMapping, is_manuscript: bool) -> bool:
    """Handwritten sheets always need a human look, confident or not."""
    return not mapping.is_confident or is_manuscript


def final_swapped(resolver_swapped: bool, user_swapped: bool) -> bool:
    """Compose the automatic guess with the user's flip of what was shown."""
    return resolver_swapped != user_swapped


def finalize(
    resolution: Resolution,
    user_swapped: bool = False,
    user_confirmed: bool = False,
) -> TeamMapping:
    """Build the final mapping for the composed swap decision."""
    pre = resolution.mapping
    swapped = final_swapped(pre.swapped, user_swapped)
    team_a, team_b = resolution.comparisons_for(swapped)
    return TeamMapping(
        swapped=swapped,
        is_confident=pre.is_confident,
        confidence_score=pre.confidence_score,
        team_a=team_a,
        team_b=team_b,
        user_confirmed=user_confirmed,
    )


def _team_info(comparison: TeamComparison) -> TeamInfo:
    counts = comparison.counts()
    return TeamInfo(
        name=comparison.ref_team_name or comparison.ocr_team_name,
        count=counts['players_matched'] + counts['players_ocr_only'],
    )


class PendingConfirmation:
    """A mapping waiting for the user's swap/keep answer."""

    def __init__(self, resolution: Resolution) -> None:
        self.resolution = resolution
        self.left = _team_info(resolution.mapping.team_a)
        self.right = _team_info(resolution.mapping.team_b)
        self.confidence = resolution.mapping.confidence_score
        self._done = False

    @property
    def done(self) -> bool:
        return self._done

    def _finish(self, user_swapped: bool, confirmed: bool) -> TeamMapping:
        if self._done:
            raise RuntimeError("Bestaetigung wurde bereits abgeschlossen.")
        self._done = True
        return finalize(self.resolution, user_swapped, confirmed)

    def resolve(self, user_swapped: bool) -> TeamMapping:
        """Finish with the user's answer."""
        log.info("Teamzuordnung bestaetigt (getauscht: %s)", user_swapped)
        return self._finish(user_swapped, True)

    def cancel(self) -> TeamMapping:
        """Finish without an answer, keeping the automatic guess."""
        log.info("Bestaetigung abgebrochen, automatische Zuordnung wird verwendet")
        return self._finish(False, False)


def gate(
    resolution: Resolution,
    is_manuscript: bool = False,
) -> Union[TeamMapping, PendingConfirmation]:
    """Auto-apply the resolver's pairing or suspend for confirmation.

    Args:
        resolution: Output of ``resolver.resolve``.
        is_manuscript: Whether the sheet is handwritten.

    Returns:
        The final TeamMapping, or a PendingConfirmation to be finished by
        the caller.
    """
    if needs_confirmation(resolution.mapping, is_manuscript):
        log.info(
            "Teamzuordnung braucht Bestaetigung (Konfidenz %d%%, handschriftlich: %s)",
            resolution.mapping.confidence_score, is_manuscript,
        )
        return PendingConfirmation(resolution)
    return finalize(resolution)


async def confirm_mapping(
    resolution: Resolution,
    is_manuscript: bool,
    present_swap_choice: PresentSwapChoice,
    timeout: Optional[float] = None,
) -> TeamMapping:
    """Run the gate, awaiting the user's answer when one is needed.

    A ``None`` answer keeps the automatic guess, as does a prompt that
    is cancelled or times out.

    Args:
        resolution: Output of ``resolver.resolve``.
        is_manuscript: Whether the sheet is handwritten.
        present_swap_choice: Async channel showing left/right team and
            confidence to the user.
        timeout: Seconds to wait for the answer; None waits indefinitely.

    Returns:
        The final TeamMapping.
    """
    outcome = gate(resolution, is_manuscript)
    if isinstance(outcome, TeamMapping):
        return outcome

    prompt = asyncio.ensure_future(
        present_swap_choice(outcome.left, outcome.right, outcome.confidence)
    )
    try:
        done, _ = await asyncio.wait({prompt}, timeout=timeout)
    except asyncio.CancelledError:
        prompt.cancel()
        raise

    if not done:
        prompt.cancel()
        log.warning("Keine Antwort nach %s s, automatische Zuordnung wird verwendet", timeout)
        return outcome.cancel()
    # a cancelled prompt counts as a cancelled answer
    if prompt.cancelled():
        return outcome.cancel()

    choice = prompt.result()
    if choice is None:
        return outcome.cancel()
    return outcome.resolve(choice.swapped)

"""Rotation engine: who enters the court after a match, and who gets borrowed.

Rules:
1. The winner keeps its side of the court.
2. The loser goes to the back of the waiting queue, except players locked to
   the losing side, who stay on court and join the entering team.
3. The team at the front of the queue enters on the loser's side.
4. If the entering team has fewer than six players it borrows unlocked
   players from the next team in line, taking them from the end of that
   team's list first. When the queue held a single team, the next in line
   is the outgoing loser itself. If the entering team is still short, the
   outgoing loser's unlocked players are used as a last resort.
"""

from copy import deepcopy
from dataclasses import dataclass, replace
from typing import Optional

from volleyscore.models import MAX_TEAM_SIZE, Player, RosterSystem, RotationReport, Team, TeamId
from volleyscore.validation import assert_unique_players


@dataclass
class RotationResult:
    """New roster after a rotation plus its audit report."""

    roster: RosterSystem
    report: RotationReport


def _take_from_end(donor: Team, needed: int) -> list[Player]:
    """Remove up to ``needed`` unlocked players from the end of ``donor``."""
    if needed <= 0:
        return []
    candidates = [p for p in donor.players if not p.is_fixed]
    taken = candidates[max(len(candidates) - needed, 0):]
    taken_ids = {p.id for p in taken}
    donor.players = [p for p in donor.players if p.id not in taken_ids]
    return taken


def compute_rotation(winner_side: TeamId, roster: RosterSystem) -> RotationResult:
    """Rotate the losing court team out and the next queued team in.

    Pure: works on a copy of ``roster``.

    Args:
        winner_side: Side of the team that won the match
        roster: Current courts and queue

    Returns:
        RotationResult with the new roster and the committed report

    Raises:
        ValueError: If the queue is empty (there is nobody to rotate in)
    """
    if not roster.queue:
        raise ValueError("Cannot rotate without a waiting queue")

    work = deepcopy(roster)
    winner_side = TeamId(winner_side)
    loser_side = winner_side.other()
    winner = work.court(winner_side)
    loser = work.court(loser_side)

    fixed_staying = [p for p in loser.players if p.is_fixed and p.fixed_side == loser_side]
    staying_ids = {p.id for p in fixed_staying}
    outgoing = Team(
        id=loser.id,
        name=loser.name,
        players=[p for p in loser.players if p.id not in staying_ids],
    )

    # The outgoing team joins the back of the line before the front is popped
    line = [*work.queue, outgoing]
    next_up = line.pop(0)
    entering = Team(id=next_up.id, name=next_up.name, players=[*fixed_staying, *next_up.players])

    donors = [line[0]]
    if line[0] is not outgoing:
        donors.append(outgoing)

    borrowed: list[Player] = []
    donor_team_name: Optional[str] = None
    for donor in donors:
        taken = _take_from_end(donor, MAX_TEAM_SIZE - entering.size)
        if taken:
            entering.players.extend(taken)
            borrowed.extend(taken)
            donor_team_name = donor_team_name or donor.name

    if winner_side == TeamId.A:
        new_roster = RosterSystem(court_a=winner, court_b=entering, queue=line)
    else:
        new_roster = RosterSystem(court_a=entering, court_b=winner, queue=line)
    assert_unique_players(new_roster)

    report = RotationReport(
        winner_side=winner_side,
        winner_team_name=winner.name,
        loser_team_name=loser.name,
        entering_team_name=entering.name,
        entering_players=entering.player_names,
        going_to_queue=outgoing.player_names,
        fixed_staying=[p.name for p in fixed_staying],
        was_completed=bool(borrowed),
        borrowed_players=[p.name for p in borrowed],
        donor_team_name=donor_team_name,
    )
    return RotationResult(roster=new_roster, report=report)


def preview_rotation(winner_side: TeamId, roster: RosterSystem) -> Optional[RotationReport]:
    """Report what ``compute_rotation`` would do, without committing anything.

    Returns None when the queue is empty.
    """
    if not roster.queue:
        return None
    return replace(compute_rotation(winner_side, roster).report, is_preview=True)

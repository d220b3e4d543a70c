"""Roster and waiting-queue operations.

All functions return a new RosterSystem and leave their input untouched.
When an operation has nothing to do the input object itself is returned.
"""

import re
from copy import deepcopy
from typing import Optional

from volleyscore.i18n import DEFAULT_LANGUAGE, get_string
from volleyscore.models import MAX_TEAM_SIZE, Player, RosterSystem, Team, TeamId
from volleyscore.validation import assert_unique_players

MIN_PLAYERS_TO_GENERATE = 2

COURT_TEAM_IDS = {TeamId.A: "team-a", TeamId.B: "team-b"}


class RosterInputError(Exception):
    """Roster input the operator has to correct (e.g. too few names)."""

    pass


def parse_names(raw: str) -> list[str]:
    """Split a newline/comma separated list of names.

    Examples:
        >>> parse_names("Ana, Bia\\n\\n  Caio ")
        ['Ana', 'Bia', 'Caio']
    """
    return [name.strip() for name in re.split(r"[\n,]", raw or "") if name.strip()]


def default_team_name(index: int, lang: str = DEFAULT_LANGUAGE) -> str:
    """Translated default name for the team at ``index`` (0 = A, 1 = B, 2 = C...)."""
    return get_string("team.default_name", lang, letter=chr(ord("A") + index))


def generate_teams(
    raw_names: str,
    team_names: Optional[dict[int, str]] = None,
    fixed_assignments: Optional[dict[str, TeamId]] = None,
    lang: str = DEFAULT_LANGUAGE,
) -> RosterSystem:
    """Build both court teams and the waiting queue from a list of names.

    Court A is filled first (players locked to side A, then rotating players)
    up to six, then court B the same way; everyone left is chunked into queue
    teams of up to six, incomplete teams included.

    Args:
        raw_names: Names separated by newlines or commas
        team_names: Custom names by team index (0 = A, 1 = B, 2.. = queue)
        fixed_assignments: Player name -> side the player is locked to
        lang: Language for default team names

    Returns:
        New RosterSystem

    Raises:
        RosterInputError: If fewer than two names were given

    Examples:
        14 names, no locks -> court A: 6, court B: 6, queue: [2]
    """
    names = parse_names(raw_names)
    if len(names) < MIN_PLAYERS_TO_GENERATE:
        raise RosterInputError(get_string("roster.not_enough_players", lang))

    team_names = team_names or {}
    fixed_assignments = {
        name: TeamId(side) for name, side in (fixed_assignments or {}).items() if side
    }

    players = []
    for number, name in enumerate(names, start=1):
        side = fixed_assignments.get(name)
        players.append(
            Player(id=f"p{number}", name=name, is_fixed=side is not None, fixed_side=side)
        )

    available = [p for p in players if p.fixed_side is None]
    courts = {}
    for index, side in enumerate((TeamId.A, TeamId.B)):
        fixed = [p for p in players if p.fixed_side == side]
        slots = max(MAX_TEAM_SIZE - len(fixed), 0)
        fill, available = available[:slots], available[slots:]
        courts[side] = Team(
            id=COURT_TEAM_IDS[side],
            name=team_names.get(index) or default_team_name(index, lang),
            players=[*fixed, *fill],
        )

    queue = []
    for offset, start in enumerate(range(0, len(available), MAX_TEAM_SIZE)):
        index = offset + 2
        queue.append(
            Team(
                id=f"team-q-{offset}",
                name=team_names.get(index) or default_team_name(index, lang),
                players=available[start:start + MAX_TEAM_SIZE],
            )
        )

    roster = RosterSystem(court_a=courts[TeamId.A], court_b=courts[TeamId.B], queue=queue)
    assert_unique_players(roster)
    return roster


def move_player(
    roster: RosterSystem, player_id: str, source_team_id: str, target_team_id: str
) -> RosterSystem:
    """Transfer a player between any two teams (court or queue).

    The six-player cap is not enforced here; callers check ``open_slots``.
    """
    if source_team_id == target_team_id:
        return roster

    source = roster.find_team(source_team_id)
    target = roster.find_team(target_team_id)
    if source is None or target is None:
        return roster
    if not any(p.id == player_id for p in source.players):
        return roster

    updated = deepcopy(roster)
    source = updated.find_team(source_team_id)
    target = updated.find_team(target_team_id)
    player = next(p for p in source.players if p.id == player_id)
    source.players.remove(player)
    target.players.append(player)
    assert_unique_players(updated)
    return updated


def remove_player(roster: RosterSystem, player_id: str) -> RosterSystem:
    """Delete a player from whichever team holds them."""
    if roster.find_player(player_id) is None:
        return roster
    updated = deepcopy(roster)
    team, player = updated.find_player(player_id)
    team.players.remove(player)
    return updated


def add_player(roster: RosterSystem, team_id: str, name: str) -> RosterSystem:
    """Append a new player called ``name`` to the team ``team_id``."""
    name = (name or "").strip()
    if not name or roster.find_team(team_id) is None:
        return roster
    updated = deepcopy(roster)
    taken = {p.id for team in updated.all_teams() for p in team.players}
    number = len(taken) + 1
    while f"p{number}" in taken:
        number += 1
    updated.find_team(team_id).players.append(Player(id=f"p{number}", name=name))
    return updated


def toggle_player_fixed(roster: RosterSystem, player_id: str) -> RosterSystem:
    """Flip a player's lock. Unlocking also drops any side assignment."""
    if roster.find_player(player_id) is None:
        return roster
    updated = deepcopy(roster)
    _, player = updated.find_player(player_id)
    player.is_fixed = not player.is_fixed
    if not player.is_fixed:
        player.fixed_side = None
    return updated


def set_player_fixed_side(
    roster: RosterSystem, player_id: str, side: Optional[TeamId]
) -> RosterSystem:
    """Lock a player to a court side, or unlock them with ``side=None``."""
    if roster.find_player(player_id) is None:
        return roster
    updated = deepcopy(roster)
    _, player = updated.find_player(player_id)
    player.fixed_side = TeamId(side) if side else None
    player.is_fixed = player.fixed_side is not None
    return updated


def update_team_name(roster: RosterSystem, team_id: str, name: str) -> RosterSystem:
    if roster.find_team(team_id) is None:
        return roster
    updated = deepcopy(roster)
    updated.find_team(team_id).name = name
    return updated


def open_slots(team: Team) -> int:
    """Free places left before the team reaches six players."""
    return max(MAX_TEAM_SIZE - team.size, 0)

"""Validation rules for volleyball sets and rosters.

Set rules (rally scoring):
- A set is won by the first team to reach the target (25, or the tie-break
  target in the deciding set) with a lead of at least 2 points
- No upper limit exists (e.g., 26-24, 30-28 are valid)
- Under the sudden-death variant, a tie one point short of the target resets
  the set to 0-0 and the first team to 3 points wins
"""

from typing import Optional

from volleyscore.models import (
    MIN_LEAD_TO_WIN,
    SUDDEN_DEATH_TARGET,
    DeuceType,
    RosterSystem,
    TeamId,
)


def standard_winner(score_a: int, score_b: int, target: int) -> Optional[TeamId]:
    """Return the set winner under the win-by-2 law, or None if play goes on.

    Examples:
        >>> standard_winner(25, 23, 25)
        <TeamId.A: 'A'>
        >>> standard_winner(25, 24, 25) is None
        True
        >>> standard_winner(24, 26, 25)
        <TeamId.B: 'B'>
    """
    if score_a >= target and score_a >= score_b + MIN_LEAD_TO_WIN:
        return TeamId.A
    if score_b >= target and score_b >= score_a + MIN_LEAD_TO_WIN:
        return TeamId.B
    return None


def validate_set_score(
    score_a: int,
    score_b: int,
    target: int,
    deuce_type: DeuceType = DeuceType.STANDARD,
    sudden_death: bool = False,
) -> tuple[bool, str]:
    """Validate the final score of a completed set.

    Args:
        score_a: Points scored by team A
        score_b: Points scored by team B
        target: Points needed to win the set
        deuce_type: Deuce rule in force
        sudden_death: True if the score was recorded after a sudden-death reset

    Returns:
        Tuple of (is_valid, error_message)
        - is_valid: True if the score is a legal final set score
        - error_message: Empty string if valid, otherwise the error description

    Examples:
        >>> validate_set_score(25, 20, 25)
        (True, '')
        >>> validate_set_score(26, 24, 25)
        (True, '')
        >>> validate_set_score(25, 24, 25)[0]
        False
    """
    if score_a < 0 or score_b < 0:
        return False, "Scores cannot be negative"

    if score_a == score_b:
        return False, "A set cannot end tied (there must be a winner)"

    winner_score = max(score_a, score_b)
    loser_score = min(score_a, score_b)
    diff = winner_score - loser_score

    if sudden_death:
        if deuce_type != DeuceType.SUDDEN_DEATH_3:
            return False, "Sudden death only applies to the sudden_death_3pt deuce rule"
        if winner_score != SUDDEN_DEATH_TARGET:
            return False, f"Sudden death is won at exactly {SUDDEN_DEATH_TARGET} points (current: {winner_score})"
        return True, ""

    if winner_score < target:
        return False, f"Winner must reach at least {target} points (current: {winner_score})"

    if deuce_type == DeuceType.SUDDEN_DEATH_3 and loser_score >= target - 1:
        return False, f"A {target - 1}-{target - 1} tie goes to sudden death"

    # Past the target a corrected score can end with a wider lead than 2
    if diff < MIN_LEAD_TO_WIN:
        return False, f"Winner needs a lead of at least {MIN_LEAD_TO_WIN} points (current difference: {diff})"

    return True, ""


def assert_unique_players(roster: RosterSystem) -> None:
    """Fail fast if a player id is held by more than one team."""
    seen: dict[str, str] = {}
    for team in roster.all_teams():
        for player in team.players:
            assert player.id not in seen, (
                f"Player {player.id!r} found in both {seen[player.id]!r} and {team.id!r}"
            )
            seen[player.id] = team.id

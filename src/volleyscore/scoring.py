"""Score engine: set and match lifecycle for one volleyball match.

Every function takes a MatchState and returns the next one. Inputs are never
mutated; a no-op returns the very same object so callers can detect it with
``is``.
"""

from dataclasses import replace
from typing import Optional

from volleyscore.models import (
    MAX_TIMEOUTS_PER_SET,
    SUDDEN_DEATH_TARGET,
    DeuceType,
    MatchState,
    SetResult,
    TeamId,
)
from volleyscore.validation import standard_winner, validate_set_score


def is_deciding_set(state: MatchState) -> bool:
    """True if the current set is the last one a best-of match can reach."""
    return state.config.max_sets > 1 and state.current_set == state.config.max_sets


def resolve_target(state: MatchState) -> int:
    """Points needed to win the current set."""
    if state.in_sudden_death:
        return SUDDEN_DEATH_TARGET
    if is_deciding_set(state) and state.config.has_tie_break:
        return state.config.tie_break_points
    return state.config.points_per_set


def _set_winner_after(state: MatchState, score_a: int, score_b: int) -> Optional[TeamId]:
    target = resolve_target(state)
    if state.in_sudden_death:
        if score_a >= target:
            return TeamId.A
        if score_b >= target:
            return TeamId.B
        return None
    return standard_winner(score_a, score_b, target)


def _triggers_sudden_death(state: MatchState, score_a: int, score_b: int) -> bool:
    if state.config.deuce_type != DeuceType.SUDDEN_DEATH_3 or state.in_sudden_death:
        return False
    deuce_point = resolve_target(state) - 1
    return score_a == deuce_point and score_b == deuce_point


def add_point(state: MatchState, team: TeamId) -> MatchState:
    """Score one rally for ``team``.

    Side effects carried in the returned state: the timer starts, the scoring
    team takes the serve, a sudden-death reset or a set/match completion.
    """
    if state.is_match_over:
        return state

    team = TeamId(team)
    score_a = state.score_a + (1 if team == TeamId.A else 0)
    score_b = state.score_b + (1 if team == TeamId.B else 0)
    rally = dict(is_timer_running=True, serving_team=team)

    if _triggers_sudden_death(state, score_a, score_b):
        # The deuce point is consumed by the reset, not scored
        return replace(state, score_a=0, score_b=0, in_sudden_death=True, **rally)

    winner = _set_winner_after(state, score_a, score_b)
    if winner is None:
        return replace(state, score_a=score_a, score_b=score_b, **rally)

    return _complete_set(replace(state, **rally), winner, score_a, score_b)


def _complete_set(state: MatchState, winner: TeamId, score_a: int, score_b: int) -> MatchState:
    valid, message = validate_set_score(
        score_a, score_b, resolve_target(state), state.config.deuce_type, state.in_sudden_death
    )
    assert valid, f"Set {state.current_set} closed on an illegal score {score_a}-{score_b}: {message}"

    sets_a = state.sets_a + (1 if winner == TeamId.A else 0)
    sets_b = state.sets_b + (1 if winner == TeamId.B else 0)
    result = SetResult(set_number=state.current_set, score_a=score_a, score_b=score_b, winner=winner)

    needed = state.config.sets_to_win_match
    match_winner = None
    if sets_a == needed:
        match_winner = TeamId.A
    elif sets_b == needed:
        match_winner = TeamId.B
    match_over = match_winner is not None

    return replace(
        state,
        # Final score stays on the board when the match ends
        score_a=score_a if match_over else 0,
        score_b=score_b if match_over else 0,
        sets_a=sets_a,
        sets_b=sets_b,
        history=[*state.history, result],
        current_set=state.current_set if match_over else state.current_set + 1,
        is_match_over=match_over,
        match_winner=match_winner,
        in_sudden_death=False,
        is_timer_running=False if match_over else state.is_timer_running,
        serving_team=None,
        timeouts_a=0,
        timeouts_b=0,
    )


def subtract_point(state: MatchState, team: TeamId) -> MatchState:
    """Take one point back from ``team`` (floored at 0).

    Serve and timeout side effects of the removed point are not reverted.
    """
    if state.is_match_over:
        return state
    team = TeamId(team)
    if state.score(team) <= 0:
        return state
    if team == TeamId.A:
        return replace(state, score_a=state.score_a - 1)
    return replace(state, score_b=state.score_b - 1)


def toggle_service(state: MatchState) -> MatchState:
    if state.is_match_over:
        return state
    serving = TeamId.B if state.serving_team == TeamId.A else TeamId.A
    return replace(state, serving_team=serving)


def use_timeout(state: MatchState, team: TeamId) -> MatchState:
    """Charge a timeout to ``team``; no-op once two were used in this set."""
    if state.is_match_over:
        return state
    team = TeamId(team)
    if state.timeouts(team) >= MAX_TIMEOUTS_PER_SET:
        return state
    if team == TeamId.A:
        return replace(state, timeouts_a=state.timeouts_a + 1)
    return replace(state, timeouts_b=state.timeouts_b + 1)


def toggle_sides(state: MatchState) -> MatchState:
    return replace(state, swapped_sides=not state.swapped_sides)


def tick(state: MatchState) -> MatchState:
    """Advance the match clock by one second while it runs."""
    if not state.is_timer_running:
        return state
    return replace(state, match_duration_seconds=state.match_duration_seconds + 1)


def initial_state(previous: Optional[MatchState] = None, config=None) -> MatchState:
    """Fresh scoring state keeping names, orientation and config of ``previous``."""
    if previous is None:
        return MatchState() if config is None else MatchState(config=config)
    return MatchState(
        config=config or previous.config,
        team_a_name=previous.team_a_name,
        team_b_name=previous.team_b_name,
        swapped_sides=previous.swapped_sides,
    )


# ============================================================================
# Critical Points
# ============================================================================


def is_set_point(state: MatchState, team: TeamId) -> bool:
    """True if the next point for ``team`` wins the current set."""
    if state.is_match_over:
        return False
    after = add_point(state, team)
    return len(after.history) > len(state.history) and after.history[-1].winner == TeamId(team)


def is_match_point(state: MatchState, team: TeamId) -> bool:
    """True if the next point for ``team`` wins the match."""
    if state.is_match_over:
        return False
    return add_point(state, team).match_winner == TeamId(team)

"""Plain-text rendering of the scoreboard, rosters and rotation reports."""

from typing import Optional

from volleyscore import scoring
from volleyscore.i18n import DEFAULT_LANGUAGE, get_string
from volleyscore.models import MAX_TEAM_SIZE, MatchState, RosterSystem, RotationReport, Team, TeamId


def format_duration(total_seconds: int) -> str:
    """Format elapsed match time as MM:SS, or H:MM:SS past the hour.

    Examples:
        >>> format_duration(75)
        '01:15'
        >>> format_duration(3725)
        '1:02:05'
    """
    hours, rest = divmod(max(total_seconds, 0), 3600)
    minutes, seconds = divmod(rest, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes:02d}:{seconds:02d}"


def display_name(state: MatchState, team: TeamId, lang: str = DEFAULT_LANGUAGE) -> str:
    """Team name, or the translated HOME / GUEST label when it is blank."""
    name = state.team_name(team).strip()
    if name:
        return name
    return get_string("team.home" if team == TeamId.A else "team.guest", lang)


def _team_line(state: MatchState, team: TeamId, lang: str) -> str:
    flags = []
    if state.serving_team == team:
        flags.append(get_string("score.serving", lang))
    if scoring.is_match_point(state, team):
        flags.append(get_string("score.match_point", lang))
    elif scoring.is_set_point(state, team):
        flags.append(get_string("score.set_point", lang))
    timeouts = "T" * state.timeouts(team)
    line = f"  {display_name(state, team, lang):<20} {state.score(team):>3}  [{state.sets(team)}] {timeouts}"
    if flags:
        line += "  " + " ".join(flags)
    return line.rstrip()


def render_scoreboard(state: MatchState, lang: str = DEFAULT_LANGUAGE) -> str:
    """Multi-line scoreboard: set, clock, both teams, completed sets."""
    header = f"{get_string('score.set', lang)} {state.current_set}  {format_duration(state.match_duration_seconds)}"
    if state.in_sudden_death:
        header += f"  ({get_string('score.sudden_death', lang)})"
    sides = (TeamId.B, TeamId.A) if state.swapped_sides else (TeamId.A, TeamId.B)
    lines = [header, *(_team_line(state, team, lang) for team in sides)]
    if state.history:
        lines.append("  " + "  ".join(str(result) for result in state.history))
    if state.is_match_over:
        winner = display_name(state, state.match_winner, lang)
        lines.append(
            f"{get_string('score.match_over', lang)}: {get_string('score.winner', lang)} {winner}"
        )
    return "\n".join(lines)


def _team_block(label: str, team: Team) -> list[str]:
    lines = [f"{label} {team.name} ({team.size}/{MAX_TEAM_SIZE})"]
    lines.extend(f"  - {p.name}{' *' if p.is_fixed else ''}  [{p.id}]" for p in team.players)
    return lines


def render_roster(roster: RosterSystem, lang: str = DEFAULT_LANGUAGE) -> str:
    """Courts and queue, one player per line; locked players are starred."""
    lines = [
        *_team_block("[A]", roster.court_a),
        *_team_block("[B]", roster.court_b),
        f"{get_string('report.queue', lang)}:",
    ]
    if not roster.queue:
        lines.append(f"  {get_string('report.empty_queue', lang)}")
    for position, team in enumerate(roster.queue, start=1):
        lines.extend("  " + line for line in _team_block(f"{position}.", team))
    return "\n".join(lines)


def render_rotation_report(report: Optional[RotationReport], lang: str = DEFAULT_LANGUAGE) -> str:
    """Human-auditable account of a rotation (or its preview)."""
    if report is None:
        return get_string("report.empty_queue", lang)

    title = get_string("report.preview" if report.is_preview else "report.next_match", lang)
    lines = [
        title,
        f"  {get_string('score.winner', lang)}: {report.winner_team_name}",
        f"  {get_string('report.leaving', lang)}: {report.loser_team_name}",
        f"  {get_string('report.entering', lang)}: {report.entering_team_name}"
        f" ({', '.join(report.entering_players)})",
    ]
    if report.fixed_staying:
        lines.append(f"  {get_string('report.fixed', lang)}: {', '.join(report.fixed_staying)}")
    if report.was_completed:
        donor = get_string("report.donor", lang, team=report.donor_team_name or "?")
        lines.append(f"  {donor}: {', '.join(report.borrowed_players)}")
    going = ", ".join(report.going_to_queue) or "-"
    lines.append(f"  {get_string('report.queue', lang)}: {going}")
    return "\n".join(lines)

"""Command-line operator console for volleyscore.

Every command loads the saved match, applies one event and saves it again,
so a sequence of invocations plays a whole match.
"""

import logging
import time

import click

from volleyscore.models import TeamId

TEAM_CHOICE = click.Choice(["A", "B"], case_sensitive=False)


def _echo_state(ctx):
    from volleyscore.reports import render_scoreboard

    engine = ctx.obj["engine"]
    click.echo(render_scoreboard(engine.state, ctx.obj["lang"]))


def _parse_pairs(values: tuple, option: str) -> dict[str, str]:
    pairs = {}
    for value in values:
        key, sep, item = value.partition("=")
        if not sep or not key.strip() or not item.strip():
            raise click.BadParameter(f"expected KEY=VALUE, got '{value}'", param_hint=option)
        pairs[key.strip()] = item.strip()
    return pairs


@click.group()
@click.version_option(version="0.1.0")
@click.option("--db", "db_path", required=False, help="Path to the SQLite state file")
@click.option("--lang", required=False, type=click.Choice(["pt", "en"]), help="Output language")
@click.option("--config", "config_path", required=False, help="Path to settings YAML file")
@click.option("-v", "--verbose", is_flag=True, help="Log engine events")
@click.pass_context
def cli(ctx, db_path: str, lang: str, config_path: str, verbose: bool):
    """VolleyScore - scoreboard and team rotation for volleyball matches."""
    from volleyscore.config_loader import ConfigError, load_and_validate_settings, validate_settings
    from volleyscore.engine import MatchEngine
    from volleyscore.storage import SQLiteStateStore

    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        app_settings = load_and_validate_settings(config_path) if config_path else validate_settings({})
    except ConfigError as e:
        click.echo(f"[ERROR] Configuration Error: {e}", err=True)
        raise click.Abort()

    lang = lang or app_settings["lang"]
    store = SQLiteStateStore(db_path or app_settings["db_path"])
    engine = MatchEngine.load(
        store,
        config=app_settings["match"],
        undo_depth=app_settings["undo_depth"],
        lang=lang,
    )

    ctx.ensure_object(dict)
    ctx.obj.update(engine=engine, lang=lang, settings=app_settings, store=store)


@cli.command()
@click.pass_context
def status(ctx):
    """Show the scoreboard (and the rotation report once the match is over)."""
    from volleyscore.reports import render_rotation_report

    _echo_state(ctx)
    state = ctx.obj["engine"].state
    if state.rotation_report is not None:
        click.echo("")
        click.echo(render_rotation_report(state.rotation_report, ctx.obj["lang"]))


@cli.command()
@click.argument("team", type=TEAM_CHOICE)
@click.pass_context
def point(ctx, team: str):
    """Score a point for TEAM (A or B).

    Example:
        volleyscore point A
    """
    from volleyscore.reports import render_rotation_report

    engine = ctx.obj["engine"]
    state = engine.add_point(TeamId(team.upper()))
    _echo_state(ctx)
    if state.is_match_over and state.rotation_report is not None:
        click.echo("")
        click.echo(render_rotation_report(state.rotation_report, ctx.obj["lang"]))


@cli.command()
@click.argument("team", type=TEAM_CHOICE)
@click.pass_context
def minus(ctx, team: str):
    """Take a point back from TEAM."""
    ctx.obj["engine"].subtract_point(TeamId(team.upper()))
    _echo_state(ctx)


@cli.command()
@click.pass_context
def serve(ctx):
    """Hand the serve to the other team."""
    ctx.obj["engine"].toggle_service()
    _echo_state(ctx)


@cli.command()
@click.argument("team", type=TEAM_CHOICE)
@click.pass_context
def timeout(ctx, team: str):
    """Charge a timeout to TEAM (two per set)."""
    ctx.obj["engine"].use_timeout(TeamId(team.upper()))
    _echo_state(ctx)


@cli.command()
@click.pass_context
def swap(ctx):
    """Swap the court sides on the display."""
    ctx.obj["engine"].toggle_sides()
    _echo_state(ctx)


@cli.command()
@click.pass_context
def undo(ctx):
    """Undo the last action."""
    from volleyscore.i18n import get_string

    engine = ctx.obj["engine"]
    lang = ctx.obj["lang"]
    if not engine.can_undo:
        click.echo(f"[INFO] {get_string('cli.nothing_to_undo', lang)}")
        return
    engine.undo()
    click.echo(f"[INFO] {get_string('cli.undo_done', lang)}")
    _echo_state(ctx)


@cli.command()
@click.pass_context
def reset(ctx):
    """Start the match over with the same teams."""
    from volleyscore.i18n import get_string

    ctx.obj["engine"].reset_match()
    click.echo(f"[INFO] {get_string('cli.match_reset', ctx.obj['lang'])}")
    _echo_state(ctx)


@cli.command()
@click.option("--preset", required=False, help="Preset name (official, monday, short_set)")
@click.option("--config-file", required=False, help="YAML settings file with a 'match' section")
@click.option("--name-a", required=False, help="Name for the team on court A")
@click.option("--name-b", required=False, help="Name for the team on court B")
@click.pass_context
def settings(ctx, preset: str, config_file: str, name_a: str, name_b: str):
    """Apply match rules and team names. This resets the match.

    Example:
        volleyscore settings --preset monday --name-a Sharks --name-b Eagles
    """
    from volleyscore.config_loader import ConfigError, get_preset, load_and_validate_settings
    from volleyscore.i18n import get_string

    engine = ctx.obj["engine"]
    try:
        if config_file:
            config = load_and_validate_settings(config_file)["match"]
            label = config_file
        elif preset:
            config = get_preset(preset)
            label = preset
        else:
            config = engine.state.config
            label = "-"
    except ConfigError as e:
        click.echo(f"[ERROR] Configuration Error: {e}", err=True)
        raise click.Abort()

    engine.apply_settings(config, name_a, name_b)
    click.echo(f"[SUCCESS] {get_string('cli.settings_applied', ctx.obj['lang'], preset=label)}")
    _echo_state(ctx)


@cli.command()
@click.pass_context
def rotate(ctx):
    """Rotate the losing team out and the next queued team in."""
    from volleyscore.i18n import get_string
    from volleyscore.reports import render_rotation_report

    engine = ctx.obj["engine"]
    lang = ctx.obj["lang"]
    if not engine.has_queue:
        click.echo(f"[WARNING] {get_string('cli.cant_rotate', lang)}")
        return
    if not engine.state.is_match_over:
        click.echo(f"[WARNING] {get_string('cli.match_not_over', lang)}")
        return

    state = engine.rotate_teams()
    click.echo(render_rotation_report(state.rotation_report, lang))
    click.echo("")
    _echo_state(ctx)


@cli.command()
@click.option("--seconds", type=int, default=0, help="Stop after this many seconds (0 = until Ctrl+C)")
@click.pass_context
def watch(ctx, seconds: int):
    """Run the match clock and redraw the scoreboard every second."""
    from volleyscore.i18n import get_string
    from volleyscore.timer import IntervalTicker

    engine = ctx.obj["engine"]
    lang = ctx.obj["lang"]
    ticker = IntervalTicker()
    engine.ticker = ticker
    if engine.state.is_timer_running:
        ticker.start(engine.tick)

    started = time.monotonic()
    try:
        while not seconds or time.monotonic() - started < seconds:
            click.clear()
            click.echo(get_string("app.title", lang))
            _echo_state(ctx)
            time.sleep(1)
    except KeyboardInterrupt:
        click.echo(f"\n[INFO] {get_string('cli.shutting_down', lang)}")
    finally:
        ticker.stop()


# ============================================================================
# Teams
# ============================================================================


@cli.group()
def teams():
    """Manage court teams and the waiting queue."""
    pass


@teams.command("generate")
@click.option("--file", "names_file", required=False, type=click.Path(exists=True), help="Text file with one name per line")
@click.option("--names", required=False, help="Comma separated names")
@click.option("--fixed", multiple=True, help="Lock a player to a side: NAME=A or NAME=B")
@click.option("--team-name", multiple=True, help="Custom team name: INDEX=NAME (0 = A, 1 = B, 2.. = queue)")
@click.pass_context
def teams_generate(ctx, names_file: str, names: str, fixed: tuple, team_name: tuple):
    """Split a list of players into court teams and a queue.

    Example:
        volleyscore teams generate --file players.txt --fixed Ana=A
    """
    from volleyscore.i18n import get_string
    from volleyscore.reports import render_roster
    from volleyscore.roster import RosterInputError

    raw = names or ""
    if names_file:
        with open(names_file, "r", encoding="utf-8") as f:
            raw = f.read() + "\n" + raw

    fixed_assignments = {
        name: TeamId(side.upper())
        for name, side in _parse_pairs(fixed, "--fixed").items()
        if side.upper() in ("A", "B")
    }
    try:
        team_names = {int(k): v for k, v in _parse_pairs(team_name, "--team-name").items()}
    except ValueError:
        raise click.BadParameter("team index must be a number", param_hint="--team-name")

    engine = ctx.obj["engine"]
    lang = ctx.obj["lang"]
    try:
        roster = engine.generate_teams(raw, team_names, fixed_assignments)
    except RosterInputError as e:
        click.echo(f"[ERROR] {e}", err=True)
        raise click.Abort()

    count = sum(team.size for team in roster.all_teams())
    click.echo(
        f"[SUCCESS] {get_string('cli.teams_generated', lang, count=count, teams=len(roster.all_teams()))}"
    )
    click.echo(render_roster(roster, lang))


@teams.command("show")
@click.pass_context
def teams_show(ctx):
    """List courts and queue."""
    from volleyscore.reports import render_roster

    click.echo(render_roster(ctx.obj["engine"].roster, ctx.obj["lang"]))


@teams.command("move")
@click.argument("player_id")
@click.argument("target_team_id")
@click.pass_context
def teams_move(ctx, player_id: str, target_team_id: str):
    """Move PLAYER_ID to the team TARGET_TEAM_ID."""
    from volleyscore.i18n import get_string
    from volleyscore.reports import render_roster
    from volleyscore.roster import open_slots

    engine = ctx.obj["engine"]
    lang = ctx.obj["lang"]
    found = engine.roster.find_player(player_id)
    target = engine.roster.find_team(target_team_id)
    if found is None:
        click.echo(f"[ERROR] {get_string('cli.unknown_player', lang, player=player_id)}", err=True)
        raise click.Abort()
    if target is None:
        click.echo(f"[ERROR] {get_string('cli.unknown_team', lang, team=target_team_id)}", err=True)
        raise click.Abort()
    if open_slots(target) == 0:
        click.echo(f"[WARNING] {get_string('cli.team_full', lang, team=target.name)}")
        return

    source, _ = found
    engine.move_player(player_id, source.id, target_team_id)
    click.echo(render_roster(engine.roster, lang))


@teams.command("remove")
@click.argument("player_id")
@click.pass_context
def teams_remove(ctx, player_id: str):
    """Remove PLAYER_ID from the roster."""
    from volleyscore.i18n import get_string
    from volleyscore.reports import render_roster

    engine = ctx.obj["engine"]
    if engine.roster.find_player(player_id) is None:
        click.echo(f"[ERROR] {get_string('cli.unknown_player', ctx.obj['lang'], player=player_id)}", err=True)
        raise click.Abort()
    engine.remove_player(player_id)
    click.echo(render_roster(engine.roster, ctx.obj["lang"]))


@teams.command("add")
@click.argument("team_id")
@click.argument("name")
@click.pass_context
def teams_add(ctx, team_id: str, name: str):
    """Add a player called NAME to TEAM_ID."""
    from volleyscore.i18n import get_string
    from volleyscore.reports import render_roster

    engine = ctx.obj["engine"]
    if engine.roster.find_team(team_id) is None:
        click.echo(f"[ERROR] {get_string('cli.unknown_team', ctx.obj['lang'], team=team_id)}", err=True)
        raise click.Abort()
    engine.add_player(team_id, name)
    click.echo(render_roster(engine.roster, ctx.obj["lang"]))


@teams.command("lock")
@click.argument("player_id")
@click.option("--side", required=False, type=TEAM_CHOICE, help="Tie the player to a court side")
@click.pass_context
def teams_lock(ctx, player_id: str, side: str):
    """Toggle the lock on PLAYER_ID (or lock them to --side)."""
    from volleyscore.i18n import get_string
    from volleyscore.reports import render_roster

    engine = ctx.obj["engine"]
    if engine.roster.find_player(player_id) is None:
        click.echo(f"[ERROR] {get_string('cli.unknown_player', ctx.obj['lang'], player=player_id)}", err=True)
        raise click.Abort()
    if side:
        engine.set_player_fixed_side(player_id, TeamId(side.upper()))
    else:
        engine.toggle_player_fixed(player_id)
    click.echo(render_roster(engine.roster, ctx.obj["lang"]))


@teams.command("rename")
@click.argument("team_id")
@click.argument("name")
@click.pass_context
def teams_rename(ctx, team_id: str, name: str):
    """Rename TEAM_ID to NAME."""
    from volleyscore.i18n import get_string
    from volleyscore.reports import render_roster

    engine = ctx.obj["engine"]
    if engine.roster.find_team(team_id) is None:
        click.echo(f"[ERROR] {get_string('cli.unknown_team', ctx.obj['lang'], team=team_id)}", err=True)
        raise click.Abort()
    engine.update_team_name(team_id, name)
    click.echo(render_roster(engine.roster, ctx.obj["lang"]))


if __name__ == "__main__":
    cli()

"""Tests for the MatchEngine facade."""

import pytest

from volleyscore.engine import MatchEngine
from volleyscore.models import DeuceType, MatchConfig, TeamId
from volleyscore.roster import RosterInputError
from volleyscore.storage import MemoryStateStore
from volleyscore.timer import ManualTicker

QUICK = MatchConfig(points_per_set=5, has_tie_break=False, max_sets=1)
FOURTEEN = ", ".join(f"Player {n}" for n in range(1, 15))


@pytest.fixture
def store():
    return MemoryStateStore()


@pytest.fixture
def ticker():
    return ManualTicker()


@pytest.fixture
def engine(store, ticker):
    return MatchEngine(store=store, ticker=ticker, config=QUICK, lang="en")


def score_points(engine, team, count):
    for _ in range(count):
        engine.add_point(team)


class TestScoringEvents:
    """Scoring through the engine."""

    def test_add_point_returns_new_state(self, engine, store):
        state = engine.add_point(TeamId.A)
        assert state.score_a == 1
        assert engine.state is state
        assert store.saves == 1

    def test_noop_not_recorded(self, engine, store):
        """Rejected events leave history and storage untouched."""
        engine.subtract_point(TeamId.A)
        assert not engine.can_undo
        assert store.saves == 0

    def test_service_and_sides_are_undoable(self, engine):
        engine.toggle_service()
        assert engine.state.serving_team == TeamId.A
        engine.toggle_sides()
        assert engine.state.swapped_sides

        engine.undo()
        assert not engine.state.swapped_sides
        engine.undo()
        assert engine.state.serving_team is None

    def test_target_points_and_critical_points(self, engine):
        assert engine.target_points == 5
        score_points(engine, TeamId.B, 4)
        assert engine.is_match_point(TeamId.B)
        assert engine.is_set_point(TeamId.B)
        assert not engine.is_set_point(TeamId.A)


class TestUndo:
    """Undo history."""

    def test_undo_with_nothing_to_undo(self, engine):
        state = engine.state
        assert engine.undo() is state

    def test_undo_restores_previous_state(self, engine):
        score_points(engine, TeamId.A, 3)
        state = engine.undo()
        assert state.score_a == 2
        assert engine.can_undo

    def test_undo_depth_is_bounded(self, store):
        engine = MatchEngine(store=store, undo_depth=10)
        score_points(engine, TeamId.A, 12)

        undos = 0
        while engine.can_undo:
            engine.undo()
            undos += 1
        assert undos == 9
        assert engine.state.score_a == 3

    def test_undo_restores_roster(self, engine):
        engine.generate_teams(FOURTEEN)
        engine.remove_player("p1")
        assert engine.roster.find_player("p1") is None

        engine.undo()
        assert engine.roster.find_player("p1") is not None


class TestTimer:
    """Match clock handling."""

    def test_first_point_starts_clock(self, engine, ticker):
        assert not ticker.running
        engine.add_point(TeamId.A)
        assert ticker.running
        assert ticker.starts == 1

        ticker.fire(3)
        assert engine.state.match_duration_seconds == 3

    def test_ticks_are_saved_but_not_undoable(self, engine, ticker, store):
        engine.add_point(TeamId.A)
        saves = store.saves
        ticker.fire(2)
        assert store.saves == saves + 2

        state = engine.undo()
        assert state.score_a == 0
        assert not engine.can_undo

    def test_undo_keeps_elapsed_time(self, engine, ticker):
        engine.add_point(TeamId.A)
        ticker.fire(5)
        engine.add_point(TeamId.A)

        state = engine.undo()
        assert state.score_a == 1
        assert state.match_duration_seconds == 5

        state = engine.undo()
        assert state.score_a == 0
        assert state.match_duration_seconds == 5
        assert not state.is_timer_running
        assert not ticker.running

    def test_match_end_stops_clock(self, engine, ticker):
        score_points(engine, TeamId.A, 5)
        assert engine.state.is_match_over
        assert not ticker.running
        assert ticker.stops == 1


class TestRotation:
    """Match end preview and rotation commit."""

    def test_match_end_stores_preview(self, engine):
        engine.generate_teams(FOURTEEN)
        score_points(engine, TeamId.A, 5)

        report = engine.state.rotation_report
        assert report is not None
        assert report.is_preview
        assert report.entering_team_name == "Team C"
        assert engine.roster.queue[0].name == "Team C"

    def test_match_end_without_queue(self, engine):
        engine.generate_teams("Ana, Bia, Caio, Duda")
        score_points(engine, TeamId.A, 5)
        assert engine.state.is_match_over
        assert engine.state.rotation_report is None
        assert engine.preview_rotation() is None

        state = engine.state
        assert engine.rotate_teams() is state

    def test_rotate_before_match_over_is_noop(self, engine):
        engine.generate_teams(FOURTEEN)
        engine.add_point(TeamId.A)
        state = engine.state
        assert engine.rotate_teams() is state
        assert engine.preview_rotation() is None

    def test_rotate_commits(self, engine):
        engine.generate_teams(FOURTEEN)
        score_points(engine, TeamId.A, 5)

        state = engine.rotate_teams()

        assert not state.rotation_report.is_preview
        assert state.rotation_report.was_completed
        assert state.score_a == 0
        assert state.match_winner is None
        assert state.config == QUICK
        assert state.team_a_name == "Team A"
        assert state.team_b_name == "Team C"
        assert engine.roster.court_b.size == 6
        assert [t.name for t in engine.roster.queue] == ["Team B"]
        assert not engine.can_undo

    def test_preview_follows_roster_edits(self, engine):
        """Roster edits after the final point refresh the pending rotation."""
        engine.generate_teams(FOURTEEN)
        score_points(engine, TeamId.A, 5)
        assert "Player 13" in engine.state.rotation_report.entering_players

        engine.remove_player("p13")
        report = engine.state.rotation_report
        assert report.is_preview
        assert "Player 13" not in report.entering_players
        assert report == engine.preview_rotation()

        engine.update_team_name("team-q-0", "Late")
        assert engine.state.rotation_report.entering_team_name == "Late"

        engine.undo()
        assert engine.state.rotation_report.entering_team_name == "Team C"

    def test_committed_report_cleared_by_first_point(self, engine):
        engine.generate_teams(FOURTEEN)
        score_points(engine, TeamId.A, 5)
        engine.rotate_teams()
        assert engine.state.rotation_report is not None

        state = engine.add_point(TeamId.B)
        assert state.rotation_report is None

        engine.undo()
        assert engine.state.rotation_report is not None


class TestRosterEvents:
    """Roster operations through the engine."""

    def test_generate_teams_sets_court_names(self, engine):
        roster = engine.generate_teams(FOURTEEN)
        assert engine.roster is roster
        assert engine.has_queue
        assert engine.state.team_a_name == "Team A"
        assert engine.state.team_b_name == "Team B"

    def test_generate_teams_rejects_short_list(self, engine):
        with pytest.raises(RosterInputError):
            engine.generate_teams("Ana")
        assert not engine.can_undo

    def test_rename_court_team_mirrors_scoreboard(self, engine):
        engine.generate_teams(FOURTEEN)
        engine.update_team_name("team-a", "Sharks")
        assert engine.state.team_a_name == "Sharks"

        engine.update_team_name("team-q-0", "Late")
        assert engine.state.team_b_name == "Team B"
        assert engine.roster.queue[0].name == "Late"

    def test_player_operations(self, engine):
        engine.generate_teams(FOURTEEN)
        engine.move_player("p1", "team-a", "team-q-0")
        assert engine.roster.queue[0].size == 3

        engine.add_player("team-a", "Zé")
        assert engine.roster.court_a.player_names[-1] == "Zé"

        engine.toggle_player_fixed("p2")
        assert engine.roster.find_player("p2")[1].is_fixed

        engine.set_player_fixed_side("p3", TeamId.A)
        assert engine.roster.find_player("p3")[1].fixed_side == TeamId.A


class TestSettings:
    """Reset and settings."""

    def test_reset_match(self, engine):
        engine.generate_teams(FOURTEEN)
        score_points(engine, TeamId.B, 2)
        state = engine.reset_match()
        assert state.score_b == 0
        assert state.team_a_name == "Team A"
        assert not engine.can_undo

    def test_apply_settings(self, engine):
        engine.generate_teams(FOURTEEN)
        engine.add_point(TeamId.A)
        monday = MatchConfig(
            points_per_set=15, tie_break_points=11, has_tie_break=False, max_sets=1,
            deuce_type=DeuceType.SUDDEN_DEATH_3,
        )

        state = engine.apply_settings(monday, name_a="Sharks", name_b="Eagles")

        assert state.config == monday
        assert state.score_a == 0
        assert (state.team_a_name, state.team_b_name) == ("Sharks", "Eagles")
        assert engine.roster.court_a.name == "Sharks"
        assert engine.roster.court_b.name == "Eagles"
        assert not engine.can_undo


class TestPersistence:
    """Loading and saving through a store."""

    def test_load_restores_state_and_undo(self, engine, store):
        engine.generate_teams(FOURTEEN)
        score_points(engine, TeamId.A, 2)

        restored = MatchEngine.load(store, lang="en")
        assert restored.state.score_a == 2
        assert restored.roster == engine.roster

        assert restored.undo().score_a == 1

    def test_load_without_saved_state(self, store):
        engine = MatchEngine.load(store, config=QUICK)
        assert engine.state.score_a == 0
        assert engine.state.config == QUICK

    def test_corrupt_blob_starts_fresh(self):
        engine = MatchEngine.load(MemoryStateStore("{not json"), config=QUICK)
        assert engine.state.score_a == 0
        assert not engine.can_undo

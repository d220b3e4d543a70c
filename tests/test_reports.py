"""Tests for scoreboard and report rendering."""

from dataclasses import replace

import pytest

from volleyscore.models import MatchConfig, MatchState, RotationReport, SetResult, TeamId
from volleyscore.reports import (
    display_name,
    format_duration,
    render_roster,
    render_rotation_report,
    render_scoreboard,
)
from volleyscore.roster import generate_teams, toggle_player_fixed


@pytest.mark.parametrize(
    "seconds, expected",
    [
        (0, "00:00"),
        (75, "01:15"),
        (599, "09:59"),
        (3600, "1:00:00"),
        (3725, "1:02:05"),
        (-5, "00:00"),
    ],
)
def test_format_duration(seconds, expected):
    assert format_duration(seconds) == expected


def test_display_name_falls_back_to_labels():
    state = MatchState(team_a_name="Sharks", team_b_name="  ")
    assert display_name(state, TeamId.A, "en") == "Sharks"
    assert display_name(state, TeamId.B, "en") == "GUEST"
    assert display_name(MatchState(), TeamId.A, "pt") == "CASA"


class TestRenderScoreboard:
    """Test render_scoreboard function."""

    def test_fresh_match(self):
        lines = render_scoreboard(MatchState(), "en").splitlines()
        assert lines[0] == "SET 1  00:00"
        assert "HOME" in lines[1]
        assert "GUEST" in lines[2]

    def test_swapped_sides(self):
        lines = render_scoreboard(MatchState(swapped_sides=True), "en").splitlines()
        assert "GUEST" in lines[1]
        assert "HOME" in lines[2]

    def test_flags_and_timeouts(self):
        state = MatchState(
            team_a_name="Sharks", team_b_name="Eagles", score_a=24, score_b=20,
            serving_team=TeamId.A, timeouts_b=2, match_duration_seconds=754,
        )
        text = render_scoreboard(state, "en")
        sharks, eagles = text.splitlines()[1:3]

        assert text.splitlines()[0] == "SET 1  12:34"
        assert "Serving" in sharks
        assert "SET POINT" in sharks
        assert "TT" in eagles

    def test_match_point_flag(self):
        state = MatchState(team_a_name="Sharks", sets_a=2, current_set=3, score_a=24)
        assert "MATCH POINT" in render_scoreboard(state, "en")

    def test_sudden_death_header(self):
        config = MatchConfig(points_per_set=15, has_tie_break=False, max_sets=1, deuce_type="sudden_death_3pt")
        state = MatchState(config=config, in_sudden_death=True)
        assert "(Quem fizer 3)" in render_scoreboard(state, "pt").splitlines()[0]

    def test_match_over(self):
        state = MatchState(
            team_a_name="Sharks", team_b_name="Eagles", score_a=25, score_b=20,
            sets_a=3, sets_b=1, current_set=4, is_match_over=True, match_winner=TeamId.A,
            history=[
                SetResult(1, 25, 20, TeamId.A),
                SetResult(2, 20, 25, TeamId.B),
            ],
        )
        text = render_scoreboard(state, "en")
        assert "25-20  20-25" in text
        assert text.splitlines()[-1] == "Match Over: Winner Sharks"
        assert render_scoreboard(state, "pt").splitlines()[-1] == "Fim de Jogo: Vencedor Sharks"


class TestRenderRoster:
    """Test render_roster function."""

    def test_roster_listing(self):
        roster = generate_teams(", ".join(f"Player {n}" for n in range(1, 15)), lang="en")
        roster = toggle_player_fixed(roster, "p1")
        text = render_roster(roster, "en")

        assert "[A] Team A (6/6)" in text
        assert "- Player 1 *  [p1]" in text
        assert "Waiting Queue:" in text
        assert "1. Team C (2/6)" in text

    def test_empty_queue(self):
        roster = generate_teams("Ana, Bia", lang="pt")
        text = render_roster(roster, "pt")
        assert "Fila de Espera:" in text
        assert "Fila vazia" in text


class TestRenderRotationReport:
    """Test render_rotation_report function."""

    def setup_method(self):
        self.report = RotationReport(
            winner_side=TeamId.A,
            winner_team_name="Team A",
            loser_team_name="Team B",
            entering_team_name="Team C",
            entering_players=["C1", "C2", "C3", "C4", "B5", "B6"],
            going_to_queue=["B1", "B2", "B3", "B4"],
            was_completed=True,
            borrowed_players=["B5", "B6"],
            donor_team_name="Team B",
        )

    def test_committed_report(self):
        text = render_rotation_report(self.report, "en")
        lines = text.splitlines()
        assert lines[0] == "Next Match"
        assert "  Leaving: Team B" in lines
        assert "  Entering: Team C (C1, C2, C3, C4, B5, B6)" in lines
        assert "  Completed (Team B): B5, B6" in lines
        assert "  Waiting Queue: B1, B2, B3, B4" in lines

    def test_preview_in_portuguese(self):
        report = replace(self.report, is_preview=True, fixed_staying=["B7"])
        text = render_rotation_report(report, "pt")
        assert text.splitlines()[0] == "Prévia da rotação"
        assert "  Fixos (Ficaram): B7" in text
        assert "  Completado (Team B): B5, B6" in text

    def test_no_report(self):
        assert render_rotation_report(None, "en") == "Empty queue"

"""Data models for volleyscore.

Domain model hierarchy:
- Snapshot contains a MatchState and a RosterSystem
- MatchState contains the MatchConfig and the SetResult history
- RosterSystem contains the two court Teams and the waiting queue
- Team contains Players

Every model serializes to the camelCase dict layout used by the saved
blobs (``to_dict`` / ``from_dict``). Decoding tolerates unknown keys and
falls back to defaults for missing ones.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

MAX_TEAM_SIZE = 6
MAX_TIMEOUTS_PER_SET = 2
MIN_LEAD_TO_WIN = 2
SUDDEN_DEATH_TARGET = 3


class TeamId(str, Enum):
    """Court side."""

    A = "A"
    B = "B"

    def other(self) -> "TeamId":
        """Return the opposite side."""
        return TeamId.B if self is TeamId.A else TeamId.A


class DeuceType(str, Enum):
    """Rule applied when both teams reach the set point."""

    STANDARD = "standard"  # Win by 2, no upper bound
    SUDDEN_DEATH_3 = "sudden_death_3pt"  # Reset to 0-0, first to 3


def _team_id_or_none(value: Any) -> Optional[TeamId]:
    if value in (None, ""):
        return None
    return TeamId(value)


# ============================================================================
# Match Rules
# ============================================================================


@dataclass(frozen=True)
class MatchConfig:
    """Rules of a match.

    Immutable once the match starts; changing it means starting a new match.
    """

    points_per_set: int = 25
    tie_break_points: int = 15
    has_tie_break: bool = True
    max_sets: int = 5
    deuce_type: DeuceType = DeuceType.STANDARD

    def __post_init__(self):
        if self.points_per_set <= 0:
            raise ValueError(f"points_per_set must be positive, got {self.points_per_set}")
        if self.tie_break_points <= 0:
            raise ValueError(f"tie_break_points must be positive, got {self.tie_break_points}")
        if self.max_sets < 1 or self.max_sets % 2 == 0:
            raise ValueError(f"max_sets must be odd and >= 1, got {self.max_sets}")
        if not isinstance(self.deuce_type, DeuceType):
            object.__setattr__(self, "deuce_type", DeuceType(self.deuce_type))

    @property
    def sets_to_win_match(self) -> int:
        """Sets needed to take the match (best of ``max_sets``)."""
        return math.ceil(self.max_sets / 2)

    def to_dict(self) -> dict:
        return {
            "pointsPerSet": self.points_per_set,
            "tieBreakPoints": self.tie_break_points,
            "hasTieBreak": self.has_tie_break,
            "maxSets": self.max_sets,
            "deuceType": self.deuce_type.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "MatchConfig":
        default = cls()
        return cls(
            points_per_set=int(data.get("pointsPerSet", default.points_per_set)),
            tie_break_points=int(data.get("tieBreakPoints", default.tie_break_points)),
            has_tie_break=bool(data.get("hasTieBreak", default.has_tie_break)),
            max_sets=int(data.get("maxSets", default.max_sets)),
            deuce_type=DeuceType(data.get("deuceType", default.deuce_type.value)),
        )


# ============================================================================
# Roster Models
# ============================================================================


@dataclass
class Player:
    """A player on the roster.

    ``is_fixed`` locks the player: rotation never borrows or displaces them.
    ``fixed_side`` additionally ties a locked player to one physical court,
    so they stay on that court when their team loses there.
    """

    id: str
    name: str
    is_fixed: bool = False
    fixed_side: Optional[TeamId] = None

    def __str__(self) -> str:
        lock = "*" if self.is_fixed else ""
        return f"{self.name}{lock}"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "isFixed": self.is_fixed,
            "fixedSide": self.fixed_side.value if self.fixed_side else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Player":
        is_fixed = data.get("isFixed", False)
        fixed_side = _team_id_or_none(data.get("fixedSide"))
        # Older blobs stored the side directly in isFixed ('A' / 'B' / null)
        if isinstance(is_fixed, str):
            fixed_side = _team_id_or_none(is_fixed)
            is_fixed = True
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", data["id"])),
            is_fixed=bool(is_fixed),
            fixed_side=fixed_side,
        )


@dataclass
class Team:
    """A team of up to six players."""

    id: str
    name: str
    players: list[Player] = field(default_factory=list)

    @property
    def size(self) -> int:
        """Number of players in the team."""
        return len(self.players)

    @property
    def player_names(self) -> list[str]:
        return [p.name for p in self.players]

    def __str__(self) -> str:
        return f"{self.name} ({self.size}/{MAX_TEAM_SIZE})"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "players": [p.to_dict() for p in self.players],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Team":
        return cls(
            id=str(data.get("id", "empty")),
            name=str(data.get("name", "")),
            players=[Player.from_dict(p) for p in data.get("players", [])],
        )


@dataclass
class RosterSystem:
    """The two court teams plus the FIFO waiting queue (index 0 is next up)."""

    court_a: Team = field(default_factory=lambda: Team(id="team-a", name=""))
    court_b: Team = field(default_factory=lambda: Team(id="team-b", name=""))
    queue: list[Team] = field(default_factory=list)

    def court(self, side: TeamId) -> Team:
        """Return the team playing on ``side``."""
        return self.court_a if side == TeamId.A else self.court_b

    def all_teams(self) -> list[Team]:
        return [self.court_a, self.court_b, *self.queue]

    def find_team(self, team_id: str) -> Optional[Team]:
        for team in self.all_teams():
            if team.id == team_id:
                return team
        return None

    def find_player(self, player_id: str) -> Optional[tuple[Team, Player]]:
        """Return ``(team, player)`` for the team currently holding the player."""
        for team in self.all_teams():
            for player in team.players:
                if player.id == player_id:
                    return team, player
        return None

    def court_side_of(self, team_id: str) -> Optional[TeamId]:
        if self.court_a.id == team_id:
            return TeamId.A
        if self.court_b.id == team_id:
            return TeamId.B
        return None

    def to_dict(self) -> dict:
        return {
            "courtA": self.court_a.to_dict(),
            "courtB": self.court_b.to_dict(),
            "queue": [t.to_dict() for t in self.queue],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "RosterSystem":
        roster = cls()
        if "courtA" in data:
            roster.court_a = Team.from_dict(data["courtA"])
        if "courtB" in data:
            roster.court_b = Team.from_dict(data["courtB"])
        roster.queue = [Team.from_dict(t) for t in data.get("queue", [])]
        return roster


# ============================================================================
# Match Models
# ============================================================================


@dataclass(frozen=True)
class SetResult:
    """Final score of a completed set."""

    set_number: int
    score_a: int
    score_b: int
    winner: TeamId

    def __str__(self) -> str:
        return f"{self.score_a}-{self.score_b}"

    def to_dict(self) -> dict:
        return {
            "setNumber": self.set_number,
            "scoreA": self.score_a,
            "scoreB": self.score_b,
            "winner": self.winner.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SetResult":
        return cls(
            set_number=int(data["setNumber"]),
            score_a=int(data["scoreA"]),
            score_b=int(data["scoreB"]),
            winner=TeamId(data["winner"]),
        )


@dataclass(frozen=True)
class RotationReport:
    """Audit record of who left, who entered and who was borrowed."""

    winner_side: TeamId
    winner_team_name: str
    loser_team_name: str
    entering_team_name: str
    entering_players: list[str] = field(default_factory=list)
    going_to_queue: list[str] = field(default_factory=list)
    fixed_staying: list[str] = field(default_factory=list)
    was_completed: bool = False
    borrowed_players: list[str] = field(default_factory=list)
    donor_team_name: Optional[str] = None
    is_preview: bool = False

    def to_dict(self) -> dict:
        return {
            "winnerSide": self.winner_side.value,
            "winnerTeamName": self.winner_team_name,
            "loserTeamName": self.loser_team_name,
            "enteringTeamName": self.entering_team_name,
            "enteringPlayers": list(self.entering_players),
            "goingToQueue": list(self.going_to_queue),
            "fixedStaying": list(self.fixed_staying),
            "wasCompleted": self.was_completed,
            "borrowedPlayers": list(self.borrowed_players),
            "donorTeamName": self.donor_team_name,
            "isPreview": self.is_preview,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "RotationReport":
        return cls(
            winner_side=TeamId(data.get("winnerSide", "A")),
            winner_team_name=data.get("winnerTeamName", ""),
            loser_team_name=data.get("loserTeamName", ""),
            entering_team_name=data.get("enteringTeamName", ""),
            entering_players=list(data.get("enteringPlayers", [])),
            going_to_queue=list(data.get("goingToQueue", [])),
            fixed_staying=list(data.get("fixedStaying", [])),
            was_completed=bool(data.get("wasCompleted", False)),
            borrowed_players=list(data.get("borrowedPlayers", [])),
            donor_team_name=data.get("donorTeamName"),
            is_preview=bool(data.get("isPreview", False)),
        )


@dataclass
class MatchState:
    """Mutable aggregate of one match.

    Treated as a value by the score engine: operations build a new instance
    with ``dataclasses.replace`` instead of mutating this one.
    """

    config: MatchConfig = field(default_factory=MatchConfig)
    team_a_name: str = ""
    team_b_name: str = ""
    score_a: int = 0
    score_b: int = 0
    sets_a: int = 0
    sets_b: int = 0
    current_set: int = 1
    history: list[SetResult] = field(default_factory=list)
    is_match_over: bool = False
    match_winner: Optional[TeamId] = None
    serving_team: Optional[TeamId] = None
    timeouts_a: int = 0
    timeouts_b: int = 0
    in_sudden_death: bool = False
    swapped_sides: bool = False
    match_duration_seconds: int = 0
    is_timer_running: bool = False
    rotation_report: Optional[RotationReport] = None

    def score(self, team: TeamId) -> int:
        return self.score_a if team == TeamId.A else self.score_b

    def sets(self, team: TeamId) -> int:
        return self.sets_a if team == TeamId.A else self.sets_b

    def timeouts(self, team: TeamId) -> int:
        return self.timeouts_a if team == TeamId.A else self.timeouts_b

    def team_name(self, team: TeamId) -> str:
        return self.team_a_name if team == TeamId.A else self.team_b_name

    def __str__(self) -> str:
        return (
            f"Set {self.current_set}: {self.team_a_name or 'A'} {self.score_a}-{self.score_b} "
            f"{self.team_b_name or 'B'} (sets {self.sets_a}-{self.sets_b})"
        )

    def to_dict(self) -> dict:
        return {
            "teamAName": self.team_a_name,
            "teamBName": self.team_b_name,
            "scoreA": self.score_a,
            "scoreB": self.score_b,
            "setsA": self.sets_a,
            "setsB": self.sets_b,
            "currentSet": self.current_set,
            "history": [s.to_dict() for s in self.history],
            "isMatchOver": self.is_match_over,
            "matchWinner": self.match_winner.value if self.match_winner else None,
            "servingTeam": self.serving_team.value if self.serving_team else None,
            "swappedSides": self.swapped_sides,
            "inSuddenDeath": self.in_sudden_death,
            "config": self.config.to_dict(),
            "matchDurationSeconds": self.match_duration_seconds,
            "isTimerRunning": self.is_timer_running,
            "timeoutsA": self.timeouts_a,
            "timeoutsB": self.timeouts_b,
            "rotationReport": self.rotation_report.to_dict() if self.rotation_report else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "MatchState":
        match_winner = _team_id_or_none(data.get("matchWinner"))
        report = data.get("rotationReport")
        return cls(
            config=MatchConfig.from_dict(data.get("config") or {}),
            team_a_name=data.get("teamAName", ""),
            team_b_name=data.get("teamBName", ""),
            score_a=int(data.get("scoreA", 0)),
            score_b=int(data.get("scoreB", 0)),
            sets_a=int(data.get("setsA", 0)),
            sets_b=int(data.get("setsB", 0)),
            current_set=int(data.get("currentSet", 1)),
            history=[SetResult.from_dict(s) for s in data.get("history", [])],
            is_match_over=match_winner is not None,
            match_winner=match_winner,
            serving_team=_team_id_or_none(data.get("servingTeam")),
            timeouts_a=int(data.get("timeoutsA", 0)),
            timeouts_b=int(data.get("timeoutsB", 0)),
            in_sudden_death=bool(data.get("inSuddenDeath", False)),
            swapped_sides=bool(data.get("swappedSides", False)),
            match_duration_seconds=int(data.get("matchDurationSeconds", 0)),
            is_timer_running=bool(data.get("isTimerRunning", False)),
            rotation_report=RotationReport.from_dict(report) if report else None,
        )


@dataclass
class Snapshot:
    """Full engine state: what the undo stack and the store hold."""

    match: MatchState = field(default_factory=MatchState)
    roster: RosterSystem = field(default_factory=RosterSystem)

    def to_dict(self) -> dict:
        return {"match": self.match.to_dict(), "roster": self.roster.to_dict()}

    @classmethod
    def from_dict(cls, data: dict) -> "Snapshot":
        return cls(
            match=MatchState.from_dict(data.get("match") or {}),
            roster=RosterSystem.from_dict(data.get("roster") or {}),
        )

"""Match engine: the single object a scoreboard front end talks to.

It owns the match state, the roster, the undo stack and its collaborators
(a state store and a clock ticker). Every operation returns the new state;
nothing lives at module level.
"""

import logging
import threading
from dataclasses import replace
from typing import Callable, Optional

from volleyscore import roster as roster_ops
from volleyscore import rotation, scoring
from volleyscore.history import DEFAULT_UNDO_DEPTH, UndoStack
from volleyscore.i18n import DEFAULT_LANGUAGE
from volleyscore.models import (
    MatchConfig,
    MatchState,
    RosterSystem,
    RotationReport,
    Snapshot,
    TeamId,
)
from volleyscore.storage import StateStore
from volleyscore.timer import Ticker

logger = logging.getLogger(__name__)


class MatchEngine:
    """Scoreboard engine for one device.

    Every mutation except clock ticks is pushed onto the undo stack, and
    every mutation is handed to the store. Resetting the match, applying new
    settings and committing a rotation start a new undo history.
    """

    def __init__(
        self,
        store: Optional[StateStore] = None,
        ticker: Optional[Ticker] = None,
        config: Optional[MatchConfig] = None,
        undo_depth: int = DEFAULT_UNDO_DEPTH,
        lang: str = DEFAULT_LANGUAGE,
        snapshot: Optional[Snapshot] = None,
        undo: Optional[list[Snapshot]] = None,
    ):
        self.store = store
        self.ticker = ticker
        self.lang = lang
        self._lock = threading.RLock()

        if snapshot is None:
            snapshot = Snapshot(match=scoring.initial_state(config=config))
            undo = None
        self._match = snapshot.match
        self._roster = snapshot.roster

        # Older entries first; pushing evicts whatever exceeds undo_depth
        entries = [*(undo or []), snapshot]
        self._history: UndoStack[Snapshot] = UndoStack(entries[0], max_depth=undo_depth)
        for entry in entries[1:]:
            self._history.push(entry)
        self._sync_timer()

    @classmethod
    def load(cls, store: StateStore, **kwargs) -> "MatchEngine":
        """Build an engine from the store's saved state and undo history, or a fresh match."""
        snapshot = store.load()
        if snapshot is None:
            logger.info("No usable saved state; starting a fresh match")
            return cls(store=store, **kwargs)
        return cls(store=store, snapshot=snapshot, undo=store.load_undo(), **kwargs)

    # =========================================================
    # READ API
    # =========================================================

    @property
    def state(self) -> MatchState:
        return self._match

    @property
    def roster(self) -> RosterSystem:
        return self._roster

    @property
    def snapshot(self) -> Snapshot:
        return Snapshot(match=self._match, roster=self._roster)

    @property
    def can_undo(self) -> bool:
        return self._history.can_undo

    @property
    def has_queue(self) -> bool:
        return bool(self._roster.queue)

    @property
    def target_points(self) -> int:
        """Points needed to win the current set."""
        return scoring.resolve_target(self._match)

    def is_set_point(self, team: TeamId) -> bool:
        return scoring.is_set_point(self._match, team)

    def is_match_point(self, team: TeamId) -> bool:
        return scoring.is_match_point(self._match, team)

    # =========================================================
    # SCORING
    # =========================================================

    def add_point(self, team: TeamId) -> MatchState:
        with self._lock:
            before = self._match
            after = scoring.add_point(before, team)
            if after is before:
                return before

            if after.rotation_report is not None and not after.is_match_over:
                # The last rotation's report is only shown until play resumes
                after = replace(after, rotation_report=None)

            if after.is_match_over:
                # Show who comes in next without touching the queue yet
                after = self._with_preview(after, self._roster)
                logger.info(
                    "Match won by %s (%d-%d in sets)",
                    after.team_name(after.match_winner) or after.match_winner.value,
                    after.sets_a,
                    after.sets_b,
                )
            elif len(after.history) > len(before.history):
                result = after.history[-1]
                logger.info("Set %d won by %s %s", result.set_number, result.winner.value, result)
            elif after.in_sudden_death and not before.in_sudden_death:
                logger.info("Set %d reset to 0-0: sudden death", after.current_set)

            self._commit(match=after)
            return after

    def subtract_point(self, team: TeamId) -> MatchState:
        return self._apply(scoring.subtract_point, team)

    def toggle_service(self) -> MatchState:
        return self._apply(scoring.toggle_service)

    def use_timeout(self, team: TeamId) -> MatchState:
        return self._apply(scoring.use_timeout, team)

    def toggle_sides(self) -> MatchState:
        return self._apply(scoring.toggle_sides)

    def tick(self) -> MatchState:
        """One clock tick from the ticker; not recorded for undo."""
        with self._lock:
            after = scoring.tick(self._match)
            if after is not self._match:
                self._match = after
                self._persist()
            return self._match

    # =========================================================
    # HISTORY & SETTINGS
    # =========================================================

    def undo(self) -> MatchState:
        """Step back one mutation. The match clock keeps its elapsed time."""
        with self._lock:
            if not self._history.can_undo:
                return self._match
            elapsed = self._match.match_duration_seconds
            previous = self._history.undo()
            self._match = replace(
                previous.match,
                match_duration_seconds=max(elapsed, previous.match.match_duration_seconds),
            )
            self._roster = previous.roster
            self._persist()
            self._sync_timer()
            return self._match

    def reset_match(self, config: Optional[MatchConfig] = None) -> MatchState:
        """Start over with the same teams (and optionally new rules)."""
        with self._lock:
            self._match = scoring.initial_state(self._match, config)
            self._restart_history()
            return self._match

    def apply_settings(
        self, config: MatchConfig, name_a: Optional[str] = None, name_b: Optional[str] = None
    ) -> MatchState:
        """Apply new rules and court team names; this resets the match."""
        with self._lock:
            roster = self._roster
            if name_a is not None:
                roster = roster_ops.update_team_name(roster, roster.court_a.id, name_a)
            if name_b is not None:
                roster = roster_ops.update_team_name(roster, roster.court_b.id, name_b)
            self._roster = roster
            self._match = replace(
                self._match,
                team_a_name=name_a if name_a is not None else self._match.team_a_name,
                team_b_name=name_b if name_b is not None else self._match.team_b_name,
            )
            return self.reset_match(config)

    # =========================================================
    # ROSTER
    # =========================================================

    def generate_teams(
        self,
        raw_names: str,
        team_names: Optional[dict[int, str]] = None,
        fixed_assignments: Optional[dict[str, TeamId]] = None,
    ) -> RosterSystem:
        """Split a list of names into court teams and a queue.

        Raises:
            RosterInputError: If fewer than two names were given
        """
        with self._lock:
            roster = roster_ops.generate_teams(
                raw_names, team_names, fixed_assignments, lang=self.lang
            )
            logger.info(
                "Generated teams: %s vs %s, %d in queue",
                roster.court_a.name, roster.court_b.name, len(roster.queue),
            )
            match = self._with_preview(self._with_court_names(self._match, roster), roster)
            self._commit(roster=roster, match=match)
            return roster

    def move_player(self, player_id: str, source_team_id: str, target_team_id: str) -> RosterSystem:
        return self._apply_roster(roster_ops.move_player, player_id, source_team_id, target_team_id)

    def remove_player(self, player_id: str) -> RosterSystem:
        return self._apply_roster(roster_ops.remove_player, player_id)

    def add_player(self, team_id: str, name: str) -> RosterSystem:
        return self._apply_roster(roster_ops.add_player, team_id, name)

    def toggle_player_fixed(self, player_id: str) -> RosterSystem:
        return self._apply_roster(roster_ops.toggle_player_fixed, player_id)

    def set_player_fixed_side(self, player_id: str, side: Optional[TeamId]) -> RosterSystem:
        return self._apply_roster(roster_ops.set_player_fixed_side, player_id, side)

    def update_team_name(self, team_id: str, name: str) -> RosterSystem:
        """Rename a team; court teams also rename the scoreboard side."""
        with self._lock:
            roster = roster_ops.update_team_name(self._roster, team_id, name)
            if roster is self._roster:
                return roster
            match = self._with_preview(self._with_court_names(self._match, roster), roster)
            self._commit(roster=roster, match=match)
            return roster

    def preview_rotation(self) -> Optional[RotationReport]:
        """What ``rotate_teams`` would do now; None without a queue or a winner."""
        if self._match.match_winner is None:
            return None
        return rotation.preview_rotation(self._match.match_winner, self._roster)

    def rotate_teams(self) -> MatchState:
        """Commit the rotation for the finished match and start the next one.

        No-op without a queue or before the match has a winner.
        """
        with self._lock:
            if not self._roster.queue or self._match.match_winner is None:
                return self._match

            result = rotation.compute_rotation(self._match.match_winner, self._roster)
            report = result.report
            logger.info(
                "Rotation: %s out, %s in%s",
                report.loser_team_name,
                report.entering_team_name,
                f" (borrowed {', '.join(report.borrowed_players)} from {report.donor_team_name})"
                if report.was_completed else "",
            )
            self._roster = result.roster
            match = scoring.initial_state(self._match)
            self._match = replace(
                self._with_court_names(match, result.roster), rotation_report=report
            )
            self._restart_history()
            return self._match

    # =========================================================
    # INTERNALS
    # =========================================================

    @staticmethod
    def _with_court_names(match: MatchState, roster: RosterSystem) -> MatchState:
        return replace(match, team_a_name=roster.court_a.name, team_b_name=roster.court_b.name)

    @staticmethod
    def _with_preview(match: MatchState, roster: RosterSystem) -> MatchState:
        """Recompute the pending rotation once the match has a winner."""
        if match.match_winner is None:
            return match
        return replace(match, rotation_report=rotation.preview_rotation(match.match_winner, roster))

    def _apply(self, operation: Callable[..., MatchState], *args) -> MatchState:
        with self._lock:
            after = operation(self._match, *args)
            if after is not self._match:
                self._commit(match=after)
            return self._match

    def _apply_roster(self, operation: Callable[..., RosterSystem], *args) -> RosterSystem:
        with self._lock:
            roster = operation(self._roster, *args)
            if roster is not self._roster:
                self._commit(roster=roster, match=self._with_preview(self._match, roster))
            return self._roster

    def _commit(self, match: Optional[MatchState] = None, roster: Optional[RosterSystem] = None):
        if match is not None:
            self._match = match
        if roster is not None:
            self._roster = roster
        self._history.push(self.snapshot)
        self._persist()
        self._sync_timer()

    def _restart_history(self) -> None:
        self._history.reset(self.snapshot)
        self._persist()
        self._sync_timer()

    def _persist(self) -> None:
        if self.store is not None:
            self.store.save(self.snapshot, undo=self._history.entries[:-1])

    def _sync_timer(self) -> None:
        if self.ticker is None:
            return
        if self._match.is_timer_running:
            self.ticker.start(self.tick)
        else:
            self.ticker.stop()

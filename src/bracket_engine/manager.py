"""
Match management for one tournament (and optional age group).

Holds the last fetched snapshot and runs every mutation as a single call to
the remote service, followed by a full refetch that replaces local state. No
optimistic or partial updates are ever applied: the service cascades winners
into later matches and only a refetch shows the result.

At most one mutation per match id runs at a time. Unrelated matches stay
interactive.
"""
import logging
import threading
from typing import Optional

from .client import TournamentServiceClient
from .errors import MutationInFlightError, RemoteServiceError, ValidationError
from .formats import plan
from .models import MatchesSnapshot, SINGLE_ELIMINATION, ROUND_ROBIN
from .progression import validate_advancement, validate_schedule, validate_score_submission

logger = logging.getLogger(__name__)

GENERATE_BRACKET_KEY = '__generate_bracket__'


class MatchManager:
    def __init__(self, client: TournamentServiceClient, tournament_id: str, age_group_id: Optional[str] = None):
        self.client = client
        self.tournament_id = tournament_id
        self.age_group_id = age_group_id
        self.snapshot = MatchesSnapshot()
        self.loaded = False
        self.error: Optional[str] = None
        self.success_message: Optional[str] = None
        self._saving = set()
        self._lock = threading.Lock()
        self._closed = False

    def __repr__(self):
        return (f"MatchManager(tournament_id={self.tournament_id}, age_group_id={self.age_group_id}, "
                f"snapshot={self.snapshot})")

    @property
    def saving_match_ids(self) -> frozenset:
        with self._lock:
            return frozenset(self._saving - {GENERATE_BRACKET_KEY})

    @property
    def generating(self) -> bool:
        with self._lock:
            return GENERATE_BRACKET_KEY in self._saving

    def is_saving(self, match_id: str) -> bool:
        with self._lock:
            return match_id in self._saving

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self):
        """Stop caring about in-flight calls. Their results are dropped, nothing is rolled back."""
        self._closed = True

    def refresh(self) -> MatchesSnapshot:
        """Fetch matches and replace the held snapshot wholesale."""
        try:
            snapshot = self.client.fetch_matches(self.tournament_id, self.age_group_id)
        except RemoteServiceError as e:
            if not self._closed:
                self.error = 'Failed to load matches. Please try again.'
            logger.warning(f'Loading matches for tournament {self.tournament_id} failed: {e}')
            raise
        if self._closed:
            logger.debug(f'Discarding matches for tournament {self.tournament_id}: manager closed')
            return snapshot
        self.snapshot = snapshot
        self.loaded = True
        logger.debug(f'Loaded {snapshot!r} for tournament {self.tournament_id}')
        return snapshot

    def _require_match(self, match_id: str):
        match = self.snapshot.find_match(match_id)
        if match is None:
            raise ValidationError(f"Match {match_id} not found", match_id)
        return match

    def _mutate(self, key: str, call, success_message: str, failure_message: str):
        with self._lock:
            if key in self._saving:
                raise MutationInFlightError(key)
            self._saving.add(key)
        try:
            self.error = None
            self.success_message = None
            try:
                result = call()
            except RemoteServiceError:
                if not self._closed:
                    self.error = failure_message
                raise
            if self._closed:
                return result
            # refresh() records its own error if the reload fails
            self.refresh()
            self.success_message = success_message
            return result
        finally:
            with self._lock:
                self._saving.discard(key)

    def submit_score(self, match_id: str, team1_score: int, team2_score: int,
                     manual_winner_id: Optional[str] = None):
        """
        Submit a score. A chosen winner is only sent for an equal score.

        Raises ValidationError before any network call for a TBD slot, an
        invalid score, or a tie in an elimination format without a winner.
        """
        match = self._require_match(match_id)
        if team1_score != team2_score:
            manual_winner_id = None
        validate_score_submission(match, team1_score, team2_score, self.snapshot.bracket_type, manual_winner_id)
        logger.info(f'Submitting score {team1_score}-{team2_score} for match {match_id}')
        return self._mutate(
            match_id,
            lambda: self.client.submit_score(self.tournament_id, match_id, team1_score, team2_score,
                                             manual_winner_id, self.age_group_id),
            'Match score updated successfully!',
            'Failed to update match score.',
        )

    def advance(self, match_id: str, advancing_team_id: str):
        """Manually advance a team. Allowed on decided matches to correct them."""
        match = self._require_match(match_id)
        validate_advancement(match, advancing_team_id)
        logger.info(f'Advancing team {advancing_team_id} in match {match_id}')
        return self._mutate(
            match_id,
            lambda: self.client.submit_advancement(self.tournament_id, match_id, advancing_team_id,
                                                   self.age_group_id),
            'Team advancement updated successfully!',
            'Failed to update advancement.',
        )

    def schedule(self, match_id: str, scheduled_at: str, court_number: Optional[int] = None):
        match = self._require_match(match_id)
        validate_schedule(match, scheduled_at, court_number)
        logger.info(f'Scheduling match {match_id} at {scheduled_at} (court {court_number})')
        return self._mutate(
            match_id,
            lambda: self.client.schedule_match(self.tournament_id, match_id, scheduled_at, court_number),
            'Match scheduled successfully!',
            'Failed to schedule match.',
        )

    def generate_bracket(self):
        """Ask the service to generate the initial bracket. Only when no matches exist."""
        if self.snapshot.has_matches:
            raise ValidationError("Matches already exist for this tournament")
        logger.info(f'Generating bracket for tournament {self.tournament_id}')
        return self._mutate(
            GENERATE_BRACKET_KEY,
            lambda: self.client.generate_bracket(self.tournament_id, self.age_group_id),
            'Bracket generated successfully!',
            'Failed to generate bracket.',
        )

    def effective_bracket_type(self) -> str:
        """Declared bracket type, or a guess from the data when the service sends none."""
        if self.snapshot.bracket_type:
            return self.snapshot.bracket_type
        return SINGLE_ELIMINATION if self.snapshot.playoff_rounds else ROUND_ROBIN

    def render_plan(self, highlight_top_n: Optional[int] = None) -> dict:
        """Render plan for the held snapshot. Standings are derived fresh every call."""
        result = plan(
            self.effective_bracket_type(),
            self.snapshot.matches,
            self.snapshot.playoff_rounds,
            team_names=self.snapshot.teams,
            highlight_top_n=highlight_top_n,
        )
        result['saving_match_ids'] = sorted(self.saving_match_ids)
        result['generating'] = self.generating
        result['error'] = self.error
        result['success_message'] = self.success_message
        return result

"""
Organizer interaction state for score entry and scheduling.

The state is a tagged value: idle, editing a score for one match, or
scheduling one match. Events return a new state; nothing blocks waiting for
input. Submitting turns the draft into a validated request so invalid input
never reaches the service.
"""
from typing import Optional

from .errors import ValidationError
from .models import Match
from .progression import validate_schedule, validate_score_submission

IDLE = 'idle'
EDITING_SCORE = 'editing_score'
SCHEDULING = 'scheduling'


class EditState:
    def __init__(self, mode=IDLE, match_id=None, score1='', score2='', selected_winner=None,
                 scheduled_at='', court_number=''):
        self.mode = mode
        self.match_id = match_id
        self.score1 = score1
        self.score2 = score2
        self.selected_winner = selected_winner
        self.scheduled_at = scheduled_at
        self.court_number = court_number

    def copy(self, **changes) -> 'EditState':
        data = dict(vars(self))
        data.update(changes)
        return EditState(**data)

    def to_dict(self) -> dict:
        return dict(vars(self))

    def __eq__(self, other):
        if not isinstance(other, EditState):
            return NotImplemented
        return vars(self) == vars(other)

    def __repr__(self):
        return f"EditState(mode={self.mode}, match_id={self.match_id})"


def idle() -> EditState:
    return EditState()


def _require_mode(state: EditState, mode: str) -> None:
    if state.mode != mode:
        raise ValidationError(f"Expected {mode} but the current mode is {state.mode}", state.match_id)


def _draft(value) -> str:
    return '' if value is None else str(value)


def begin_score_edit(state: EditState, match: Match) -> EditState:
    """Open the score editor, prefilled from the match. Replaces any other edit."""
    if not match.has_both_teams:
        raise ValidationError("Both teams must be known before entering a score", match.id)
    return EditState(
        mode=EDITING_SCORE,
        match_id=match.id,
        score1=_draft(match.team1_score),
        score2=_draft(match.team2_score),
        selected_winner=match.manual_winner_id or match.winner_id,
    )


def begin_scheduling(state: EditState, match: Match) -> EditState:
    return EditState(
        mode=SCHEDULING,
        match_id=match.id,
        scheduled_at=match.scheduled_at or '',
        court_number=_draft(match.court_number),
    )


def set_scores(state: EditState, score1, score2) -> EditState:
    _require_mode(state, EDITING_SCORE)
    return state.copy(score1=_draft(score1), score2=_draft(score2))


def choose_winner(state: EditState, team_id: Optional[str]) -> EditState:
    _require_mode(state, EDITING_SCORE)
    return state.copy(selected_winner=team_id or None)


def set_schedule(state: EditState, scheduled_at, court_number=None) -> EditState:
    _require_mode(state, SCHEDULING)
    return state.copy(scheduled_at=_draft(scheduled_at), court_number=_draft(court_number))


def cancel(state: EditState) -> EditState:
    return idle()


def _parse_whole_number(text: str, label: str, match_id: str) -> int:
    try:
        return int(text.strip())
    except ValueError:
        raise ValidationError(f"{label} must be a whole number", match_id) from None


def needs_winner_choice(state: EditState) -> bool:
    """Both scores entered and equal: the editor asks for the advancing team."""
    if state.mode != EDITING_SCORE or not state.score1.strip() or not state.score2.strip():
        return False
    try:
        return int(state.score1) == int(state.score2)
    except ValueError:
        return False


def score_request(state: EditState, match: Match, bracket_type: Optional[str]) -> dict:
    """
    Turn the score draft into a request for MatchManager.submit_score.

    The chosen winner is only kept for an equal score. Raises ValidationError
    for anything the service must not see.
    """
    _require_mode(state, EDITING_SCORE)
    if match.id != state.match_id:
        raise ValidationError(f"Editing match {state.match_id}, not {match.id}", match.id)
    team1_score = _parse_whole_number(state.score1, 'Team 1 score', match.id)
    team2_score = _parse_whole_number(state.score2, 'Team 2 score', match.id)
    manual_winner_id = state.selected_winner if team1_score == team2_score else None
    validate_score_submission(match, team1_score, team2_score, bracket_type, manual_winner_id)
    return {
        'match_id': match.id,
        'team1_score': team1_score,
        'team2_score': team2_score,
        'manual_winner_id': manual_winner_id,
    }


def schedule_request(state: EditState, match: Match) -> dict:
    """Turn the scheduling draft into a request for MatchManager.schedule."""
    _require_mode(state, SCHEDULING)
    if match.id != state.match_id:
        raise ValidationError(f"Scheduling match {state.match_id}, not {match.id}", match.id)
    court_number = None
    if state.court_number.strip():
        court_number = _parse_whole_number(state.court_number, 'Court number', match.id)
    scheduled_at = state.scheduled_at.strip()
    validate_schedule(match, scheduled_at, court_number)
    return {'match_id': match.id, 'scheduled_at': scheduled_at, 'court_number': court_number}

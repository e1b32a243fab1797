"""
Match progression: how a single match moves from undecided to decided.

A match is decided once a winner fact is recorded, either from a decisive
score or from a manual advancement by the organizer. The `status` label is
for display and never gates a transition.

Transitions are pure: they return a new Match and never touch the input.
Callers submit to the remote service and refetch; the local transitions are
used to validate requests and to describe the expected outcome.
"""
from typing import Optional

from .errors import ValidationError
from .models import (
    Match,
    COMPLETED,
    IN_PROGRESS,
    ELIMINATION_FORMATS,
    LEAGUE,
)


def is_decided(match: Match) -> bool:
    """True once a winner fact has been recorded."""
    return effective_winner(match) is not None


def is_resolved(match: Match, bracket_type: Optional[str]) -> bool:
    """Decided, or a scored draw in a format where a draw is terminal."""
    if is_decided(match):
        return True
    return (not requires_decisive_result(bracket_type)
            and match.has_score
            and match.team1_score == match.team2_score)


def effective_winner(match: Match) -> Optional[str]:
    """
    Winner as seen by downstream consumers.

    Without the override flag `winner_id` is the score result and a leftover
    `manual_winner_id` is ignored.
    """
    if match.is_manual_override:
        return match.winner_id or match.manual_winner_id
    return match.winner_id or None


def score_winner(match: Match) -> Optional[str]:
    """Winner implied by the score alone, or None for no score or a tie."""
    if not match.has_score:
        return None
    if match.team1_score > match.team2_score:
        return match.team1_id
    if match.team2_score > match.team1_score:
        return match.team2_id
    return None


def other_team(match: Match, team_id: str) -> Optional[str]:
    if team_id == match.team1_id:
        return match.team2_id
    if team_id == match.team2_id:
        return match.team1_id
    return None


def requires_decisive_result(bracket_type: Optional[str]) -> bool:
    """Elimination formats need a winner; league-style formats accept a draw."""
    return bracket_type in ELIMINATION_FORMATS


def _check_slots(match: Match) -> None:
    if not match.has_both_teams:
        raise ValidationError("Both teams must be known before this match can be updated", match.id)
    if match.team1_id == match.team2_id:
        raise ValidationError("A team cannot play against itself", match.id)


def _check_score(value, label: str, match_id: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{label} must be a whole number", match_id)
    if value < 0:
        raise ValidationError(f"{label} cannot be negative", match_id)
    return value


def _check_team_in_match(match: Match, team_id: Optional[str]) -> None:
    if team_id not in (match.team1_id, match.team2_id):
        raise ValidationError(f"Team {team_id} is not playing in match {match.id}", match.id)


def validate_score_submission(match: Match, team1_score, team2_score, bracket_type: Optional[str],
                              manual_winner_id: Optional[str] = None) -> None:
    """
    Reject a score submission that must not reach the server.

    Raises ValidationError when a team slot is empty (TBD), the match is
    degenerate, a score is negative or not a whole number, or an equal score in
    an elimination format comes without a chosen winner.
    """
    _check_slots(match)
    _check_score(team1_score, 'Team 1 score', match.id)
    _check_score(team2_score, 'Team 2 score', match.id)

    if manual_winner_id is not None:
        _check_team_in_match(match, manual_winner_id)

    if team1_score == team2_score and requires_decisive_result(bracket_type) and not manual_winner_id:
        raise ValidationError("Scores are tied - select the advancing team", match.id)


def validate_advancement(match: Match, advancing_team_id: Optional[str]) -> None:
    """Reject an advancement on a TBD slot or for a team outside the match."""
    _check_slots(match)
    if not advancing_team_id:
        raise ValidationError("An advancing team is required", match.id)
    _check_team_in_match(match, advancing_team_id)


def apply_score(match: Match, team1_score: int, team2_score: int, bracket_type: Optional[str],
                manual_winner_id: Optional[str] = None) -> Match:
    """
    Record a score and derive the outcome.

    A decisive score sets winner/loser and clears any manual override. An
    equal score is a draw in league-style formats; in elimination formats the
    chosen winner is applied as a manual override.
    """
    validate_score_submission(match, team1_score, team2_score, bracket_type, manual_winner_id)

    updated = match.copy(
        team1_score=team1_score,
        team2_score=team2_score,
        status=COMPLETED,
        manual_winner_id=None,
        is_manual_override=False,
    )

    if team1_score != team2_score:
        winner_id = updated.team1_id if team1_score > team2_score else updated.team2_id
        updated.winner_id = winner_id
        updated.loser_id = other_team(updated, winner_id)
        return updated

    if requires_decisive_result(bracket_type):
        updated.manual_winner_id = manual_winner_id
        return apply_advancement(updated, manual_winner_id)

    # Terminal draw
    updated.winner_id = None
    updated.loser_id = None
    return updated


def apply_advancement(match: Match, advancing_team_id: str) -> Match:
    """
    Manually advance a team.

    Allowed with or without a score, and on a match that is already decided:
    correcting a result is not a conflict.
    """
    validate_advancement(match, advancing_team_id)
    return match.copy(
        winner_id=advancing_team_id,
        loser_id=other_team(match, advancing_team_id),
        manual_winner_id=advancing_team_id,
        is_manual_override=True,
        status=COMPLETED,
    )


def validate_schedule(match: Match, scheduled_at: Optional[str], court_number: Optional[int] = None) -> None:
    if not scheduled_at:
        raise ValidationError("A date and time is required", match.id)
    if court_number is not None and (isinstance(court_number, bool) or not isinstance(court_number, int)
                                     or court_number < 1):
        raise ValidationError("Court number must be a positive whole number", match.id)


def apply_schedule(match: Match, scheduled_at: str, court_number: Optional[int] = None) -> Match:
    """Scheduling is informational and never changes the outcome."""
    validate_schedule(match, scheduled_at, court_number)
    return match.copy(scheduled_at=scheduled_at, court_number=court_number)


def is_tied(match: Match, bracket_type: Optional[str]) -> bool:
    """A completed match with equal scores that still waits for a manual pick."""
    return (requires_decisive_result(bracket_type)
            and match.has_score
            and match.team1_score == match.team2_score
            and match.status == COMPLETED
            and not match.is_manual_override)


def can_advance(match: Match, is_organizer: bool, saving: bool = False) -> bool:
    return is_organizer and match.has_both_teams and not saving


def status_label(match: Match, bracket_type: Optional[str] = None) -> str:
    """Display label for the status. The league schedule uses Live/Final."""
    if bracket_type == LEAGUE:
        labels = {COMPLETED: 'Final', IN_PROGRESS: 'Live'}
    else:
        labels = {COMPLETED: 'Completed', IN_PROGRESS: 'In Progress'}
    return labels.get(match.status, 'Pending')

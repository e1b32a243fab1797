"""
Unit tests for the organizer edit state.
"""
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from bracket_engine import interaction
from bracket_engine.errors import ValidationError
from bracket_engine.models import Match


@pytest.fixture
def match():
    return Match('m1', 'X', 'Y')


class TestScoreEditing:
    """idle -> editing_score -> request, driven by events."""

    def test_begin_prefills(self):
        decided = Match('m1', 'X', 'Y', 2, 2, manual_winner_id='Y', status='COMPLETED')
        state = interaction.begin_score_edit(interaction.idle(), decided)
        assert state.mode == interaction.EDITING_SCORE
        assert (state.score1, state.score2) == ('2', '2')
        assert state.selected_winner == 'Y'

    def test_tbd_cannot_be_edited(self):
        with pytest.raises(ValidationError):
            interaction.begin_score_edit(interaction.idle(), Match('m1', 'X', None))

    def test_decisive_request(self, match):
        state = interaction.begin_score_edit(interaction.idle(), match)
        state = interaction.set_scores(state, '3', ' 1 ')
        state = interaction.choose_winner(state, 'Y')
        request = interaction.score_request(state, match, 'SINGLE_ELIMINATION')
        assert request == {'match_id': 'm1', 'team1_score': 3, 'team2_score': 1, 'manual_winner_id': None}

    def test_tie_asks_for_winner(self, match):
        state = interaction.set_scores(interaction.begin_score_edit(interaction.idle(), match), 1, 1)
        assert interaction.needs_winner_choice(state)
        with pytest.raises(ValidationError, match='advancing team'):
            interaction.score_request(state, match, 'SINGLE_ELIMINATION')
        state = interaction.choose_winner(state, 'X')
        request = interaction.score_request(state, match, 'SINGLE_ELIMINATION')
        assert request['manual_winner_id'] == 'X'

    def test_league_tie_needs_no_winner(self, match):
        state = interaction.set_scores(interaction.begin_score_edit(interaction.idle(), match), 0, 0)
        request = interaction.score_request(state, match, 'LEAGUE')
        assert request['manual_winner_id'] is None

    def test_non_numeric_score(self, match):
        state = interaction.set_scores(interaction.begin_score_edit(interaction.idle(), match), 'two', 1)
        assert not interaction.needs_winner_choice(state)
        with pytest.raises(ValidationError, match='whole number'):
            interaction.score_request(state, match, 'LEAGUE')

    def test_wrong_match(self, match):
        state = interaction.begin_score_edit(interaction.idle(), match)
        with pytest.raises(ValidationError):
            interaction.score_request(state, Match('m2', 'X', 'Y'), 'LEAGUE')

    def test_events_do_not_mutate(self, match):
        state = interaction.begin_score_edit(interaction.idle(), match)
        interaction.set_scores(state, 4, 0)
        assert state.score1 == ''


class TestScheduling:
    def test_schedule_request(self, match):
        state = interaction.begin_scheduling(interaction.idle(), match)
        state = interaction.set_schedule(state, '2026-05-01T10:00', '3')
        request = interaction.schedule_request(state, match)
        assert request == {'match_id': 'm1', 'scheduled_at': '2026-05-01T10:00', 'court_number': 3}

    def test_court_optional(self, match):
        state = interaction.set_schedule(interaction.begin_scheduling(interaction.idle(), match), '2026-05-01')
        assert interaction.schedule_request(state, match)['court_number'] is None

    def test_time_required(self, match):
        state = interaction.begin_scheduling(interaction.idle(), match)
        with pytest.raises(ValidationError):
            interaction.schedule_request(state, match)


class TestModes:
    def test_events_require_mode(self, match):
        with pytest.raises(ValidationError):
            interaction.set_scores(interaction.idle(), 1, 0)
        scheduling = interaction.begin_scheduling(interaction.idle(), match)
        with pytest.raises(ValidationError):
            interaction.choose_winner(scheduling, 'X')

    def test_cancel(self, match):
        state = interaction.begin_score_edit(interaction.idle(), match)
        assert interaction.cancel(state) == interaction.idle()
        assert interaction.idle().to_dict()['mode'] == interaction.IDLE

    def test_new_edit_replaces_old(self, match):
        scheduling = interaction.begin_scheduling(interaction.idle(), match)
        other = Match('m2', 'P', 'Q')
        state = interaction.begin_score_edit(scheduling, other)
        assert state.mode == interaction.EDITING_SCORE
        assert state.match_id == 'm2'

"""
Shared pytest fixtures for bracket engine tests.

Running tests:
    pytest tests/
"""
import copy
import pytest
import sys
import os

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from bracket_engine.errors import RemoteServiceError
from bracket_engine.models import Match, MatchesSnapshot


def match_data(id, team1=None, team2=None, s1=None, s2=None, **extra):
    """camelCase match payload as the tournament service sends it."""
    data = {
        'id': id,
        'team1Id': team1,
        'team2Id': team2,
        'team1Score': s1,
        'team2Score': s2,
        'status': 'COMPLETED' if s1 is not None and s2 is not None else 'PENDING',
        'round': 1,
        'matchNumber': 1,
    }
    data.update(extra)
    return data


def scored(id, team1, team2, s1, s2, **extra):
    """Build a scored Match directly."""
    return Match(id, team1, team2, s1, s2, status='COMPLETED', **extra)


class FakeTournamentService:
    """
    In-memory stand-in for TournamentServiceClient.

    Each fetch returns a fresh snapshot parsed from `data`. Mutations record
    their arguments, update `data` the way the service would, and can be made
    to fail by setting `fail_with`. `on_call` runs inside every mutation.
    """

    def __init__(self, data=None):
        self.data = data or {'matches': [], 'playoffRounds': [], 'teams': [], 'bracketType': 'ROUND_ROBIN'}
        self.calls = []
        self.fetch_count = 0
        self.fail_with = None
        self.fail_fetch_with = None
        self.on_call = None
        self.closed = False

    def _all_matches(self):
        for m in self.data.get('matches', []):
            yield m
        for r in self.data.get('playoffRounds', []):
            for m in r.get('matches', []):
                yield m

    def _find(self, match_id):
        for m in self._all_matches():
            if m['id'] == match_id:
                return m
        raise RemoteServiceError('Match not found', status_code=404, retryable=False)

    def _mutation(self, name, *args):
        self.calls.append((name,) + args)
        if self.on_call:
            self.on_call(name, *args)
        if self.fail_with:
            raise self.fail_with

    def fetch_matches(self, tournament_id, age_group_id=None):
        self.fetch_count += 1
        if self.fail_fetch_with:
            raise self.fail_fetch_with
        return MatchesSnapshot.from_dict(copy.deepcopy(self.data))

    def submit_score(self, tournament_id, match_id, team1_score, team2_score,
                     manual_winner_id=None, age_group_id=None):
        self._mutation('submit_score', match_id, team1_score, team2_score, manual_winner_id)
        m = self._find(match_id)
        m.update({'team1Score': team1_score, 'team2Score': team2_score, 'status': 'COMPLETED'})
        if team1_score != team2_score:
            m['winnerId'] = m['team1Id'] if team1_score > team2_score else m['team2Id']
        elif manual_winner_id:
            m.update({'winnerId': manual_winner_id, 'manualWinnerId': manual_winner_id, 'isManualOverride': True})
        return Match.from_dict(m), bool(m.get('nextMatchId'))

    def submit_advancement(self, tournament_id, match_id, advancing_team_id, age_group_id=None):
        self._mutation('submit_advancement', match_id, advancing_team_id)
        m = self._find(match_id)
        m.update({'winnerId': advancing_team_id, 'manualWinnerId': advancing_team_id,
                  'isManualOverride': True, 'status': 'COMPLETED'})
        return Match.from_dict(m), bool(m.get('nextMatchId'))

    def schedule_match(self, tournament_id, match_id, scheduled_at, court_number=None):
        self._mutation('schedule_match', match_id, scheduled_at, court_number)
        m = self._find(match_id)
        m.update({'scheduledAt': scheduled_at, 'courtNumber': court_number})
        return Match.from_dict(m)

    def generate_bracket(self, tournament_id, age_group_id=None):
        self._mutation('generate_bracket')
        self.data['matches'] = [
            match_data('g1', 'A', 'B'),
            match_data('g2', 'C', 'D', matchNumber=2),
        ]
        return MatchesSnapshot.from_dict(copy.deepcopy(self.data))

    def close(self):
        self.closed = True


@pytest.fixture
def round_robin_data():
    """Three teams, two scored matches and one unscored."""
    return {
        'bracketType': 'ROUND_ROBIN',
        'matches': [
            match_data('m1', 'A', 'B', 2, 1),
            match_data('m2', 'B', 'C', 1, 1, round=2),
            match_data('m3', 'A', 'C', round=3),
        ],
        'playoffRounds': [],
        'teams': [
            {'id': 'A', 'name': 'Alpha'},
            {'id': 'B', 'name': 'Bravo'},
            {'id': 'C', 'name': None, 'clubName': 'Charlie Club'},
        ],
    }


@pytest.fixture
def elimination_data():
    """Single elimination: two semifinals feeding a final."""
    return {
        'bracketType': 'SINGLE_ELIMINATION',
        'matches': [],
        'playoffRounds': [
            {'roundNumber': 2, 'roundName': 'Final', 'matches': [match_data('f1', round=2)]},
            {'roundNumber': 1, 'roundName': 'Semifinal', 'matches': [
                match_data('s1', 'A', 'B', nextMatchId='f1'),
                match_data('s2', 'C', 'D', matchNumber=2, nextMatchId='f1'),
            ]},
        ],
        'teams': [],
    }


@pytest.fixture
def fake_service(round_robin_data):
    return FakeTournamentService(round_robin_data)

"""
Data models for matches, playoff rounds and standings rows.

Models convert from/to the camelCase JSON used by the remote tournament service.
"""
from typing import List, Dict, Optional

# Bracket types
SINGLE_ELIMINATION = 'SINGLE_ELIMINATION'
DOUBLE_ELIMINATION = 'DOUBLE_ELIMINATION'
ROUND_ROBIN = 'ROUND_ROBIN'
LEAGUE = 'LEAGUE'
GROUPS_PLUS_KNOCKOUT = 'GROUPS_PLUS_KNOCKOUT'
GROUPS_ONLY = 'GROUPS_ONLY'

BRACKET_TYPES = (
    SINGLE_ELIMINATION,
    DOUBLE_ELIMINATION,
    ROUND_ROBIN,
    LEAGUE,
    GROUPS_PLUS_KNOCKOUT,
    GROUPS_ONLY,
)
ELIMINATION_FORMATS = (SINGLE_ELIMINATION, DOUBLE_ELIMINATION)

# Match status labels
PENDING = 'PENDING'
IN_PROGRESS = 'IN_PROGRESS'
COMPLETED = 'COMPLETED'
MATCH_STATUSES = (PENDING, IN_PROGRESS, COMPLETED)

# Playoff round bracket tags (double elimination only)
WINNERS = 'winners'
LOSERS = 'losers'
GRAND_FINAL = 'grand_final'
BRACKET_TAGS = (WINNERS, LOSERS, GRAND_FINAL)


def _optional_int(value):
    if value is None or value == '':
        return None
    return int(value)


def _optional_str(value):
    if value is None or value == '':
        return None
    return str(value)


class Match:
    def __init__(self, id, team1_id=None, team2_id=None, team1_score=None, team2_score=None,
                 winner_id=None, loser_id=None, manual_winner_id=None, is_manual_override=False,
                 status=PENDING, scheduled_at=None, court_number=None, round=1, match_number=1,
                 next_match_id=None, loser_next_match_id=None, team1_name=None, team2_name=None,
                 group_id=None):
        self.id = id
        self.team1_id = team1_id
        self.team2_id = team2_id
        # Partial scoring is not a valid state: keep both or neither
        if team1_score is None or team2_score is None:
            team1_score, team2_score = None, None
        self.team1_score = team1_score
        self.team2_score = team2_score
        self.winner_id = winner_id
        self.loser_id = loser_id
        self.manual_winner_id = manual_winner_id
        self.is_manual_override = bool(is_manual_override)
        self.status = status if status in MATCH_STATUSES else PENDING
        self.scheduled_at = scheduled_at
        self.court_number = court_number
        self.round = round
        self.match_number = match_number
        self.next_match_id = next_match_id
        self.loser_next_match_id = loser_next_match_id
        self.team1_name = team1_name
        self.team2_name = team2_name
        self.group_id = group_id

    @property
    def has_score(self) -> bool:
        return self.team1_score is not None and self.team2_score is not None

    @property
    def has_both_teams(self) -> bool:
        return bool(self.team1_id) and bool(self.team2_id)

    def copy(self, **changes) -> 'Match':
        """Return a new Match with the given attributes replaced."""
        data = dict(vars(self))
        data.update(changes)
        return Match(**data)

    @classmethod
    def from_dict(cls, data: Dict) -> 'Match':
        return cls(
            id=str(data['id']),
            team1_id=_optional_str(data.get('team1Id')),
            team2_id=_optional_str(data.get('team2Id')),
            team1_score=_optional_int(data.get('team1Score')),
            team2_score=_optional_int(data.get('team2Score')),
            winner_id=_optional_str(data.get('winnerId')),
            loser_id=_optional_str(data.get('loserId')),
            manual_winner_id=_optional_str(data.get('manualWinnerId')),
            is_manual_override=data.get('isManualOverride', False),
            status=data.get('status', PENDING),
            scheduled_at=data.get('scheduledAt'),
            court_number=_optional_int(data.get('courtNumber')),
            round=int(data.get('round') or 1),
            match_number=int(data.get('matchNumber') or 1),
            next_match_id=_optional_str(data.get('nextMatchId')),
            loser_next_match_id=_optional_str(data.get('loserNextMatchId')),
            team1_name=data.get('team1Name'),
            team2_name=data.get('team2Name'),
            group_id=_optional_str(data.get('groupId')),
        )

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'team1Id': self.team1_id,
            'team2Id': self.team2_id,
            'team1Score': self.team1_score,
            'team2Score': self.team2_score,
            'winnerId': self.winner_id,
            'loserId': self.loser_id,
            'manualWinnerId': self.manual_winner_id,
            'isManualOverride': self.is_manual_override,
            'status': self.status,
            'scheduledAt': self.scheduled_at,
            'courtNumber': self.court_number,
            'round': self.round,
            'matchNumber': self.match_number,
            'nextMatchId': self.next_match_id,
            'loserNextMatchId': self.loser_next_match_id,
            'team1Name': self.team1_name,
            'team2Name': self.team2_name,
            'groupId': self.group_id,
        }

    def __eq__(self, other):
        if not isinstance(other, Match):
            return NotImplemented
        return vars(self) == vars(other)

    def __repr__(self):
        return (f"Match(id={self.id}, team1_id={self.team1_id}, team2_id={self.team2_id}, "
                f"score={self.team1_score}-{self.team2_score}, winner_id={self.winner_id}, "
                f"status={self.status})")


class PlayoffRound:
    def __init__(self, round_number, round_name=None, matches=None, bracket=None):
        self.round_number = round_number
        self.round_name = round_name
        self.matches = matches if matches else []
        # None means "untagged"
        self.bracket = bracket if bracket in BRACKET_TAGS else None

    @property
    def display_name(self) -> str:
        return self.round_name or f"Round {self.round_number}"

    @classmethod
    def from_dict(cls, data: Dict) -> 'PlayoffRound':
        return cls(
            round_number=int(data.get('roundNumber') or 0),
            round_name=data.get('roundName'),
            matches=[Match.from_dict(m) for m in data.get('matches') or []],
            bracket=data.get('bracket'),
        )

    def to_dict(self) -> Dict:
        return {
            'roundNumber': self.round_number,
            'roundName': self.round_name,
            'bracket': self.bracket,
            'matches': [m.to_dict() for m in self.matches],
        }

    def __repr__(self):
        return (f"PlayoffRound(round_number={self.round_number}, round_name={self.round_name}, "
                f"bracket={self.bracket}, matches={len(self.matches)})")


class Team:
    def __init__(self, id, name=None, club_name=None):
        self.id = id
        self.name = name
        self.club_name = club_name

    @classmethod
    def from_dict(cls, data: Dict) -> 'Team':
        return cls(id=str(data['id']), name=data.get('name'), club_name=data.get('clubName'))

    def to_dict(self) -> Dict:
        return {'id': self.id, 'name': self.name, 'clubName': self.club_name}

    def __repr__(self):
        return f"Team(id={self.id}, name={self.name})"


class StandingsRow:
    def __init__(self, team_id, team_name):
        self.team_id = team_id
        self.team_name = team_name
        self.played = 0
        self.won = 0
        self.drawn = 0
        self.lost = 0
        self.goals_for = 0
        self.goals_against = 0
        self.goal_difference = 0
        self.points = 0

    def to_dict(self) -> Dict:
        return {
            'team_id': self.team_id,
            'team_name': self.team_name,
            'played': self.played,
            'won': self.won,
            'drawn': self.drawn,
            'lost': self.lost,
            'goals_for': self.goals_for,
            'goals_against': self.goals_against,
            'goal_difference': self.goal_difference,
            'points': self.points,
        }

    def __eq__(self, other):
        if not isinstance(other, StandingsRow):
            return NotImplemented
        return vars(self) == vars(other)

    def __repr__(self):
        return (f"StandingsRow(team={self.team_name}, P={self.played}, W={self.won}, D={self.drawn}, "
                f"L={self.lost}, GD={self.goal_difference}, Pts={self.points})")


class MatchesSnapshot:
    """One `fetch_matches` result. Replaced wholesale on every refetch."""

    def __init__(self, matches=None, bracket_type=None, playoff_rounds=None, teams=None):
        self.matches: List[Match] = matches if matches else []
        self.bracket_type: Optional[str] = bracket_type
        self.playoff_rounds: List[PlayoffRound] = playoff_rounds if playoff_rounds else []
        self.teams: List[Team] = teams if teams else []

    @property
    def has_matches(self) -> bool:
        return len(self.matches) > 0 or len(self.playoff_rounds) > 0

    def find_match(self, match_id) -> Optional[Match]:
        for match in self.matches:
            if match.id == match_id:
                return match
        for playoff_round in self.playoff_rounds:
            for match in playoff_round.matches:
                if match.id == match_id:
                    return match
        return None

    @classmethod
    def from_dict(cls, data: Optional[Dict]) -> 'MatchesSnapshot':
        if not data:
            return cls()
        return cls(
            matches=[Match.from_dict(m) for m in data.get('matches') or []],
            bracket_type=data.get('bracketType'),
            playoff_rounds=[PlayoffRound.from_dict(r) for r in data.get('playoffRounds') or []],
            teams=[Team.from_dict(t) for t in data.get('teams') or []],
        )

    def to_dict(self) -> Dict:
        return {
            'matches': [m.to_dict() for m in self.matches],
            'bracketType': self.bracket_type,
            'playoffRounds': [r.to_dict() for r in self.playoff_rounds],
            'teams': [t.to_dict() for t in self.teams],
        }

    def __repr__(self):
        return (f"MatchesSnapshot(bracket_type={self.bracket_type}, matches={len(self.matches)}, "
                f"playoff_rounds={len(self.playoff_rounds)}, teams={len(self.teams)})")

"""
Render plans: which tables and bracket views a tournament format shows.

`plan()` is a pure mapping from the bracket type and the fetched match data
to a plain dict the web layer and the CLI render directly.
"""
from typing import List, Dict, Optional

from .errors import ValidationError
from .models import (
    Match,
    PlayoffRound,
    BRACKET_TYPES,
    SINGLE_ELIMINATION,
    DOUBLE_ELIMINATION,
    ROUND_ROBIN,
    LEAGUE,
    GROUPS_PLUS_KNOCKOUT,
    GROUPS_ONLY,
    WINNERS,
    LOSERS,
    GRAND_FINAL,
)
from .progression import effective_winner, is_decided, is_tied, status_label
from .standings import compute_standings, group_standings, make_name_lookup, resolve_team_name, standings_table

UNTAGGED = 'untagged'

COLUMN_LABELS = {
    WINNERS: 'Winners Bracket',
    LOSERS: 'Losers Bracket',
    UNTAGGED: 'Bracket',
}


def bracket_label(bracket_type: Optional[str]) -> str:
    """Human label, e.g. DOUBLE_ELIMINATION -> 'DOUBLE ELIMINATION'."""
    return bracket_type.replace('_', ' ') if bracket_type else ''


def order_matches(matches: List[Match]) -> List[Match]:
    """Flat schedule order: round, then match number. Stable for equal keys."""
    return sorted(matches, key=lambda m: (m.round, m.match_number))


def group_by_round(matches: List[Match]) -> List[Dict]:
    """Matches grouped by round number, rounds ascending."""
    rounds: Dict[int, List[Match]] = {}
    for match in matches:
        rounds.setdefault(match.round, []).append(match)
    return [{'round': number, 'matches': rounds[number]} for number in sorted(rounds)]


def order_rounds(rounds: List[PlayoffRound]) -> List[PlayoffRound]:
    return sorted(rounds, key=lambda r: r.round_number)


def partition_rounds(rounds: List[PlayoffRound]) -> Dict[str, List[PlayoffRound]]:
    """
    Split double elimination rounds by their bracket tag.

    Returns the four sequences winners, losers, grand_final and untagged.
    Tagged sequences are in round_number order; untagged rounds keep their
    original order.
    """
    partition = {WINNERS: [], LOSERS: [], GRAND_FINAL: [], UNTAGGED: []}
    for playoff_round in rounds:
        partition[playoff_round.bracket or UNTAGGED].append(playoff_round)
    for tag in (WINNERS, LOSERS, GRAND_FINAL):
        partition[tag] = order_rounds(partition[tag])
    return partition


def _match_display(match: Match, lookup, bracket_type: Optional[str]) -> Dict:
    return {
        'id': match.id,
        'match_number': match.match_number,
        'round': match.round,
        'team1_id': match.team1_id,
        'team2_id': match.team2_id,
        'team1_name': match.team1_name or resolve_team_name(match.team1_id, lookup),
        'team2_name': match.team2_name or resolve_team_name(match.team2_id, lookup),
        'team1_score': match.team1_score,
        'team2_score': match.team2_score,
        'winner_id': effective_winner(match),
        'is_manual_override': match.is_manual_override,
        'is_decided': is_decided(match),
        'is_tied': is_tied(match, bracket_type),
        'status': match.status,
        'status_label': status_label(match, bracket_type),
        'scheduled_at': match.scheduled_at,
        'court_number': match.court_number,
        'next_match_id': match.next_match_id,
        'loser_next_match_id': match.loser_next_match_id,
    }


def _round_display(playoff_round: PlayoffRound, lookup, bracket_type: Optional[str]) -> Dict:
    return {
        'round_number': playoff_round.round_number,
        'round_name': playoff_round.display_name,
        'bracket': playoff_round.bracket,
        'matches': [_match_display(m, lookup, bracket_type) for m in playoff_round.matches],
    }


def _column(key: str, rounds: List[PlayoffRound], lookup, bracket_type: Optional[str]) -> Dict:
    return {
        'key': key,
        'label': COLUMN_LABELS[key],
        'rounds': [_round_display(r, lookup, bracket_type) for r in rounds],
    }


def single_elimination_section(rounds: List[PlayoffRound], lookup, bracket_type: Optional[str]) -> Dict:
    return {
        'layout': 'single',
        'columns': [_column(UNTAGGED, order_rounds(rounds), lookup, bracket_type)],
        'final': None,
    }


def double_elimination_section(rounds: List[PlayoffRound], lookup, bracket_type: Optional[str]) -> Dict:
    """
    Winners and losers side by side with the grand final centered below.

    If no round carries a bracket tag, all rounds go in one fallback column in
    their original order. Untagged rounds mixed with tagged ones join the
    winners column.
    """
    partition = partition_rounds(rounds)

    if len(partition[UNTAGGED]) == len(rounds):
        return {
            'layout': 'fallback',
            'columns': [_column(UNTAGGED, list(rounds), lookup, bracket_type)],
            'final': None,
        }

    columns = []
    winners_rounds = partition[WINNERS] + partition[UNTAGGED]
    if winners_rounds:
        columns.append(_column(WINNERS, winners_rounds, lookup, bracket_type))
    if partition[LOSERS]:
        columns.append(_column(LOSERS, partition[LOSERS], lookup, bracket_type))

    final = None
    if partition[GRAND_FINAL]:
        final = {
            'label': 'Grand Final',
            'matches': [
                _match_display(m, lookup, bracket_type)
                for r in partition[GRAND_FINAL] for m in r.matches
            ],
        }

    return {'layout': 'double', 'columns': columns, 'final': final}


def plan(bracket_type: str, matches: List[Match], playoff_rounds: Optional[List[PlayoffRound]] = None,
         team_names=None, highlight_top_n: Optional[int] = None) -> Dict:
    """
    Build the render plan for a tournament format.

    Returns dict with:
    - 'bracket_type', 'bracket_label', 'has_matches'
    - 'standings': table rows, or None when the format has no table
    - 'group_standings': list of {'group', 'rows'} for the group formats
    - 'schedule': flat round-ordered matches, or None
    - 'schedule_by_round': list of {'round', 'matches'} for leagues and groups
    - 'bracket': bracket section ({'layout', 'columns', 'final'}) or None
    """
    if bracket_type not in BRACKET_TYPES:
        raise ValidationError(f"Unknown bracket type: {bracket_type}")

    playoff_rounds = playoff_rounds or []
    lookup = make_name_lookup(team_names)

    def show(match_list):
        return [_match_display(m, lookup, bracket_type) for m in match_list]

    result = {
        'bracket_type': bracket_type,
        'bracket_label': bracket_label(bracket_type),
        'has_matches': len(matches) > 0 or len(playoff_rounds) > 0,
        'standings': None,
        'group_standings': None,
        'schedule': None,
        'schedule_by_round': None,
        'bracket': None,
    }

    if bracket_type in (ROUND_ROBIN, LEAGUE):
        result['standings'] = standings_table(compute_standings(matches, lookup), highlight_top_n)
        result['schedule'] = show(order_matches(matches))
        if bracket_type == LEAGUE:
            result['schedule_by_round'] = [
                {'round': entry['round'], 'matches': show(entry['matches'])}
                for entry in group_by_round(matches)
            ]

    elif bracket_type in (GROUPS_PLUS_KNOCKOUT, GROUPS_ONLY):
        result['standings'] = standings_table(compute_standings(matches, lookup), highlight_top_n)
        result['group_standings'] = [
            {'group': group, 'rows': standings_table(rows, highlight_top_n)}
            for group, rows in group_standings(matches, lookup).items()
        ]
        result['schedule'] = show(order_matches(matches))
        result['schedule_by_round'] = [
            {'round': entry['round'], 'matches': show(entry['matches'])}
            for entry in group_by_round(matches)
        ]
        if playoff_rounds:
            result['bracket'] = single_elimination_section(playoff_rounds, lookup, SINGLE_ELIMINATION)

    elif bracket_type == SINGLE_ELIMINATION:
        result['bracket'] = single_elimination_section(playoff_rounds, lookup, bracket_type)

    elif bracket_type == DOUBLE_ELIMINATION:
        result['bracket'] = double_elimination_section(playoff_rounds, lookup, bracket_type)

    # Elimination data that has not been organised into rounds yet
    if bracket_type in (SINGLE_ELIMINATION, DOUBLE_ELIMINATION) and not playoff_rounds and matches:
        result['schedule'] = show(order_matches(matches))

    return result

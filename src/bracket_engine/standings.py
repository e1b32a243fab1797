"""
League/group table calculation from match results.
"""
from typing import List, Dict, Optional, Callable

from .models import Match, StandingsRow, Team

POINTS_WIN = 3
POINTS_DRAW = 1


def short_id(team_id: str) -> str:
    """Fallback display name for a team with no known name."""
    return str(team_id)[:8]


def make_name_lookup(team_names=None) -> Callable[[str], Optional[str]]:
    """
    Build a single `lookup(team_id) -> name | None` from any supported source.

    Accepts a mapping of id -> name, a list of Team objects or team dicts
    (using name, then club name), a callable, or None.
    """
    if team_names is None:
        return lambda team_id: None
    if callable(team_names):
        return team_names
    if hasattr(team_names, 'get'):
        return lambda team_id: team_names.get(team_id)

    names = {}
    for team in team_names:
        if isinstance(team, Team):
            team_id, name, club_name = team.id, team.name, team.club_name
        else:
            team_id, name, club_name = str(team.get('id')), team.get('name'), team.get('clubName')
        names[team_id] = name or club_name
    return names.get


def resolve_team_name(team_id: Optional[str], lookup: Callable[[str], Optional[str]]) -> str:
    if not team_id:
        return 'TBD'
    return lookup(team_id) or short_id(team_id)


def compute_standings(matches: List[Match], team_names=None) -> List[StandingsRow]:
    """
    Calculate a standings table from the scored matches in `matches`.

    Matches missing either score (or either team) are ignored, so teams that
    have only unscored matches get no row.

    Ranking: points -> goal difference -> goals for -> team name
    """
    lookup = make_name_lookup(team_names)
    rows: Dict[str, StandingsRow] = {}

    def ensure(team_id):
        if team_id not in rows:
            rows[team_id] = StandingsRow(team_id, resolve_team_name(team_id, lookup))
        return rows[team_id]

    for match in matches:
        if not match.has_both_teams or not match.has_score:
            continue

        row1 = ensure(match.team1_id)
        row2 = ensure(match.team2_id)
        score1 = match.team1_score
        score2 = match.team2_score

        row1.played += 1
        row2.played += 1
        row1.goals_for += score1
        row1.goals_against += score2
        row2.goals_for += score2
        row2.goals_against += score1

        if score1 > score2:
            row1.won += 1
            row1.points += POINTS_WIN
            row2.lost += 1
        elif score2 > score1:
            row2.won += 1
            row2.points += POINTS_WIN
            row1.lost += 1
        else:
            row1.drawn += 1
            row1.points += POINTS_DRAW
            row2.drawn += 1
            row2.points += POINTS_DRAW

    for row in rows.values():
        row.goal_difference = row.goals_for - row.goals_against

    return sorted(
        rows.values(),
        key=lambda r: (-r.points, -r.goal_difference, -r.goals_for, r.team_name)
    )


def standings_table(rows: List[StandingsRow], highlight_top_n: Optional[int] = None) -> List[Dict]:
    """Rows formatted for display, with rank and promotion flag for the top N."""
    table = []
    for index, row in enumerate(rows):
        rank = index + 1
        entry = row.to_dict()
        entry['rank'] = rank
        entry['promoted'] = highlight_top_n is not None and rank <= highlight_top_n
        table.append(entry)
    return table


def group_standings(matches: List[Match], team_names=None) -> Dict[Optional[str], List[StandingsRow]]:
    """
    Calculate one table per group.

    Matches without a group id are collected under the None key. Groups are
    returned in key order with the ungrouped table last.
    """
    by_group: Dict[Optional[str], List[Match]] = {}
    for match in matches:
        by_group.setdefault(match.group_id, []).append(match)

    ordered_keys = sorted(k for k in by_group if k is not None)
    if None in by_group:
        ordered_keys.append(None)

    return {key: compute_standings(by_group[key], team_names) for key in ordered_keys}

"""
Unit tests for standings calculation.
"""
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from bracket_engine.models import Match, Team
from bracket_engine.standings import (
    compute_standings,
    group_standings,
    make_name_lookup,
    resolve_team_name,
    short_id,
    standings_table,
)
from conftest import scored


def _row(rows, team_id):
    return next(r for r in rows if r.team_id == team_id)


class TestComputeStandings:
    """Tests for compute_standings."""

    def test_single_win(self):
        """A beats B 2-1."""
        rows = compute_standings([scored('m1', 'A', 'B', 2, 1)])
        assert [r.team_id for r in rows] == ['A', 'B']
        a, b = rows
        assert (a.played, a.won, a.points, a.goal_difference) == (1, 1, 3, 1)
        assert (b.played, b.lost, b.points, b.goal_difference) == (1, 1, 0, -1)

    def test_draw_ranks_by_name(self):
        """A and B draw 1-1: both on one point, A first by name."""
        rows = compute_standings([scored('m1', 'A', 'B', 1, 1)])
        assert [r.team_id for r in rows] == ['A', 'B']
        for row in rows:
            assert row.points == 1
            assert row.goal_difference == 0
            assert row.drawn == 1

    def test_unscored_match_gives_no_rows(self):
        assert compute_standings([Match('m1', 'A', 'B')]) == []

    def test_tbd_slot_ignored(self):
        match = Match('m1', 'A', None, 1, 0)
        assert compute_standings([match]) == []

    def test_goal_difference_before_goals_for(self):
        matches = [
            scored('m1', 'A', 'C', 1, 0),
            scored('m2', 'B', 'C', 4, 3),
            scored('m3', 'A', 'D', 1, 0),
            scored('m4', 'B', 'D', 0, 0),
        ]
        rows = compute_standings(matches)
        # A: 6 pts GD +2, B: 4 pts GD +1
        assert rows[0].team_id == 'A'
        assert rows[1].team_id == 'B'

    def test_goals_for_breaks_equal_difference(self):
        matches = [
            scored('m1', 'A', 'C', 3, 2),
            scored('m2', 'B', 'D', 1, 0),
        ]
        rows = compute_standings(matches)
        assert rows[0].team_id == 'A'
        assert rows[1].team_id == 'B'

    def test_name_breaks_full_tie(self):
        names = {'x1': 'Zebras', 'x2': 'Ants', 'x3': 'Moles', 'x4': 'Bees'}
        matches = [scored('m1', 'x1', 'x3', 1, 0), scored('m2', 'x2', 'x4', 1, 0)]
        rows = compute_standings(matches, names)
        assert [r.team_name for r in rows] == ['Ants', 'Zebras', 'Bees', 'Moles']

    def test_points_and_goal_totals(self):
        """Each match adds 3 points (decisive) or 2 (draw); goals for equal goals against."""
        matches = [
            scored('m1', 'A', 'B', 3, 1),
            scored('m2', 'B', 'C', 2, 2),
            scored('m3', 'C', 'A', 0, 1),
            scored('m4', 'A', 'B', 0, 0),
        ]
        rows = compute_standings(matches)
        assert sum(r.points for r in rows) == 3 + 2 + 3 + 2
        assert sum(r.goals_for for r in rows) == sum(r.goals_against for r in rows)
        assert sum(r.played for r in rows) == 2 * len(matches)
        for row in rows:
            assert row.won + row.drawn + row.lost == row.played
            assert row.points == 3 * row.won + row.drawn

    def test_recomputing_gives_same_table(self):
        matches = [scored('m1', 'A', 'B', 2, 1), scored('m2', 'B', 'C', 0, 3)]
        assert compute_standings(matches) == compute_standings(matches)

    def test_input_not_modified(self):
        matches = [scored('m1', 'A', 'B', 2, 1)]
        before = [m.to_dict() for m in matches]
        compute_standings(matches)
        assert [m.to_dict() for m in matches] == before

    def test_unknown_team_uses_short_id(self):
        rows = compute_standings([scored('m1', 'abcdef123456', 'B', 1, 0)], {'B': 'Bravo'})
        assert _row(rows, 'abcdef123456').team_name == 'abcdef12'
        assert _row(rows, 'B').team_name == 'Bravo'


class TestNameLookup:
    """Every supported name source resolves through one lookup."""

    def test_mapping(self):
        assert make_name_lookup({'A': 'Alpha'})('A') == 'Alpha'

    def test_callable(self):
        assert make_name_lookup(lambda team_id: team_id.lower())('A') == 'a'

    def test_team_objects_and_dicts(self):
        lookup = make_name_lookup([Team('A', 'Alpha'), {'id': 'B', 'name': None, 'clubName': 'Bravo FC'}])
        assert lookup('A') == 'Alpha'
        assert lookup('B') == 'Bravo FC'
        assert lookup('C') is None

    def test_none(self):
        assert make_name_lookup(None)('A') is None

    def test_resolve_team_name(self):
        lookup = make_name_lookup({'A': 'Alpha'})
        assert resolve_team_name('A', lookup) == 'Alpha'
        assert resolve_team_name(None, lookup) == 'TBD'
        assert resolve_team_name('123456789', lookup) == '12345678'
        assert short_id('abc') == 'abc'


class TestStandingsTable:
    def test_rank_and_promotion(self):
        rows = compute_standings([scored('m1', 'A', 'B', 2, 1), scored('m2', 'C', 'D', 0, 0)])
        table = standings_table(rows, highlight_top_n=2)
        assert [r['rank'] for r in table] == [1, 2, 3, 4]
        assert [r['promoted'] for r in table] == [True, True, False, False]

    def test_no_highlight(self):
        table = standings_table(compute_standings([scored('m1', 'A', 'B', 2, 1)]))
        assert not any(r['promoted'] for r in table)


class TestGroupStandings:
    def test_one_table_per_group(self):
        matches = [
            scored('m1', 'A', 'B', 1, 0, group_id='G2'),
            scored('m2', 'C', 'D', 2, 2, group_id='G1'),
            scored('m3', 'E', 'F', 0, 1),
        ]
        groups = group_standings(matches)
        assert list(groups.keys()) == ['G1', 'G2', None]
        assert [r.team_id for r in groups['G2']] == ['A', 'B']
        assert [r.team_id for r in groups[None]] == ['F', 'E']

# Entry point for printing standings and brackets from a match snapshot file

import argparse
import json
import logging
import sys
import yaml
from bracket_engine.config import load_settings
from bracket_engine.errors import BracketEngineError
from bracket_engine.formats import plan
from bracket_engine.models import MatchesSnapshot, BRACKET_TYPES


def load_snapshot(file_path):
    """Load a snapshot in fetch_matches shape from a YAML or JSON file."""
    with open(file_path, mode='r', encoding='utf-8') as file:
        if file_path.endswith('.json'):
            data = json.load(file)
        else:
            data = yaml.safe_load(file)
    return MatchesSnapshot.from_dict(data), (data or {}).get('bracketType')


def format_standings(rows):
    lines = [f"{'#':>3}  {'Team':<20} {'P':>3} {'W':>3} {'D':>3} {'L':>3} {'GF':>4} {'GA':>4} {'GD':>4} {'Pts':>4}"]
    for row in rows:
        gd = f"+{row['goal_difference']}" if row['goal_difference'] > 0 else str(row['goal_difference'])
        marker = '*' if row['promoted'] else ' '
        lines.append(
            f"{row['rank']:>3}{marker} {row['team_name']:<20} {row['played']:>3} {row['won']:>3} "
            f"{row['drawn']:>3} {row['lost']:>3} {row['goals_for']:>4} {row['goals_against']:>4} "
            f"{gd:>4} {row['points']:>4}"
        )
    return lines


def format_match(match):
    if match['team1_score'] is not None:
        score = f"{match['team1_score']} - {match['team2_score']}"
    else:
        score = 'vs'
    line = f"  #{match['match_number']} {match['team1_name']} {score} {match['team2_name']} [{match['status_label']}]"
    if match['is_manual_override']:
        line += ' (manual)'
    return line


def format_plan(render_plan):
    lines = [f"Bracket: {render_plan['bracket_label']}"]
    if not render_plan['has_matches']:
        lines.append('No matches yet.')
        return lines

    if render_plan['group_standings']:
        for group in render_plan['group_standings']:
            lines.append('')
            lines.append(f"Group {group['group']}" if group['group'] else 'Ungrouped')
            lines.extend(format_standings(group['rows']))
    elif render_plan['standings'] is not None:
        lines.append('')
        lines.append('Standings')
        lines.extend(format_standings(render_plan['standings']))

    if render_plan['schedule_by_round']:
        for entry in render_plan['schedule_by_round']:
            lines.append('')
            lines.append(f"Round {entry['round']}")
            lines.extend(format_match(m) for m in entry['matches'])
    elif render_plan['schedule']:
        lines.append('')
        lines.append('Matches')
        lines.extend(format_match(m) for m in render_plan['schedule'])

    bracket = render_plan['bracket']
    if bracket:
        for column in bracket['columns']:
            lines.append('')
            lines.append(f"== {column['label']} ==")
            for playoff_round in column['rounds']:
                lines.append(f"{playoff_round['round_name']}")
                lines.extend(format_match(m) for m in playoff_round['matches'])
        if bracket['final']:
            lines.append('')
            lines.append(f"== {bracket['final']['label']} ==")
            lines.extend(format_match(m) for m in bracket['final']['matches'])
    return lines


def main(argv=None):
    parser = argparse.ArgumentParser(description='Print standings and brackets for a match snapshot.')
    parser.add_argument('snapshot', help='YAML or JSON file in fetch_matches shape')
    parser.add_argument('--bracket-type', choices=BRACKET_TYPES, help='Override the snapshot bracket type')
    parser.add_argument('--top', type=int, default=None, help='Highlight the top N standings rows')
    parser.add_argument('--settings', default=None, help='Settings YAML file')
    args = parser.parse_args(argv)

    settings = load_settings(args.settings)
    logging.basicConfig(level=settings['log_level'], format='%(levelname)s %(name)s: %(message)s')

    snapshot, declared_type = load_snapshot(args.snapshot)
    bracket_type = args.bracket_type or declared_type
    if not bracket_type:
        print("No bracket type given. Use --bracket-type or set bracketType in the file.", file=sys.stderr)
        return 1

    top_n = args.top if args.top is not None else settings['highlight_top_n']
    try:
        render_plan = plan(bracket_type, snapshot.matches, snapshot.playoff_rounds,
                           team_names=snapshot.teams, highlight_top_n=top_n)
    except BracketEngineError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print('\n'.join(format_plan(render_plan)))
    return 0


if __name__ == '__main__':
    sys.exit(main())

"""
Flask web application for the tournament bracket engine.

Serves render plans and standings for a tournament and forwards organizer
actions (scores, advancement, scheduling, bracket generation) to the remote
tournament service through one MatchManager per tournament/age group.
"""
import threading
from flask import Flask, request, jsonify
from bracket_engine.client import TournamentServiceClient
from bracket_engine.config import load_settings
from bracket_engine.errors import MutationInFlightError, RemoteServiceError, ValidationError
from bracket_engine.formats import plan
from bracket_engine.manager import MatchManager
from bracket_engine.models import ELIMINATION_FORMATS, GROUPS_ONLY, GROUPS_PLUS_KNOCKOUT, MatchesSnapshot
from bracket_engine.standings import compute_standings, group_standings, standings_table

app = Flask(__name__)

SETTINGS = load_settings()
app.logger.setLevel(SETTINGS['log_level'])

# One manager per (tournament_id, age_group_id)
_managers = {}
_managers_lock = threading.Lock()


def create_client() -> TournamentServiceClient:
    return TournamentServiceClient.from_settings(SETTINGS)


def get_manager(tournament_id: str, age_group_id: str = None) -> MatchManager:
    """Get the manager for a tournament, loading its matches on first use."""
    key = (tournament_id, age_group_id)
    with _managers_lock:
        manager = _managers.get(key)
        if manager is None:
            manager = MatchManager(create_client(), tournament_id, age_group_id)
            _managers[key] = manager
    if not manager.loaded:
        manager.refresh()
    return manager


def release_manager(tournament_id: str, age_group_id: str = None) -> bool:
    """Drop a manager. Calls still running for it are ignored when they finish."""
    with _managers_lock:
        manager = _managers.pop((tournament_id, age_group_id), None)
    if manager is None:
        return False
    manager.close()
    manager.client.close()
    return True


def _age_group_id():
    return request.args.get('ageGroupId') or None


def _highlight_top_n():
    value = request.args.get('highlightTopN', type=int)
    return value if value is not None else SETTINGS['highlight_top_n']


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    return data


def _int_field(data: dict, name: str, required: bool = True):
    value = data.get(name)
    if value is None or value == '':
        if required:
            raise ValidationError(f'{name} is required')
        return None
    if isinstance(value, bool):
        raise ValidationError(f'{name} must be a whole number')
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        raise ValidationError(f'{name} must be a whole number') from None


@app.errorhandler(ValidationError)
def handle_validation_error(e):
    return jsonify({'error': str(e), 'matchId': e.match_id}), 422


@app.errorhandler(MutationInFlightError)
def handle_in_flight(e):
    return jsonify({'error': str(e), 'matchId': e.match_id}), 409


@app.errorhandler(RemoteServiceError)
def handle_remote_error(e):
    app.logger.warning(f'Tournament service failure: {e} (status={e.status_code}, retryable={e.retryable})')
    status = e.status_code if e.status_code and 400 <= e.status_code < 500 else 502
    return jsonify({'error': str(e), 'retryable': e.retryable}), status


@app.route('/api/health')
def health_check():
    return jsonify({'status': 'healthy', 'api_base_url': SETTINGS['api_base_url']})


@app.route('/tournaments/<tournament_id>/matches')
def tournament_matches(tournament_id):
    """Render plan for the tournament's current matches."""
    manager = get_manager(tournament_id, _age_group_id())
    if request.args.get('refresh') in ('1', 'true'):
        manager.refresh()
    return jsonify(manager.render_plan(_highlight_top_n()))


@app.route('/tournaments/<tournament_id>/standings')
def tournament_standings(tournament_id):
    """Standings table, plus one table per group for the group formats."""
    manager = get_manager(tournament_id, _age_group_id())
    snapshot = manager.snapshot
    top_n = _highlight_top_n()
    bracket_type = manager.effective_bracket_type()
    result = {'bracket_type': bracket_type, 'standings': None}
    # Elimination formats have no table
    if bracket_type not in ELIMINATION_FORMATS:
        result['standings'] = standings_table(compute_standings(snapshot.matches, snapshot.teams), top_n)
    if bracket_type in (GROUPS_PLUS_KNOCKOUT, GROUPS_ONLY):
        result['groups'] = [
            {'group': group, 'rows': standings_table(rows, top_n)}
            for group, rows in group_standings(snapshot.matches, snapshot.teams).items()
        ]
    return jsonify(result)


@app.route('/tournaments/<tournament_id>/matches/<match_id>/score', methods=['POST'])
def submit_score(tournament_id, match_id):
    data = _json_body()
    manager = get_manager(tournament_id, _age_group_id())
    _, bracket_updated = manager.submit_score(
        match_id,
        _int_field(data, 'team1Score'),
        _int_field(data, 'team2Score'),
        data.get('advancingTeamId') or None,
    )
    app.logger.info(f'Score saved for match {match_id} (bracket updated: {bracket_updated})')
    result = manager.render_plan(_highlight_top_n())
    result['bracket_updated'] = bracket_updated
    return jsonify(result)


@app.route('/tournaments/<tournament_id>/matches/<match_id>/advance', methods=['POST'])
def advance_team(tournament_id, match_id):
    data = _json_body()
    manager = get_manager(tournament_id, _age_group_id())
    _, bracket_updated = manager.advance(match_id, data.get('advancingTeamId'))
    app.logger.info(f'Manual advancement saved for match {match_id} (bracket updated: {bracket_updated})')
    result = manager.render_plan(_highlight_top_n())
    result['bracket_updated'] = bracket_updated
    return jsonify(result)


@app.route('/tournaments/<tournament_id>/matches/<match_id>/schedule', methods=['POST'])
def schedule_match(tournament_id, match_id):
    data = _json_body()
    manager = get_manager(tournament_id, _age_group_id())
    manager.schedule(match_id, data.get('scheduledAt'), _int_field(data, 'courtNumber', required=False))
    return jsonify(manager.render_plan(_highlight_top_n()))


@app.route('/tournaments/<tournament_id>/bracket/generate', methods=['POST'])
def generate_bracket(tournament_id):
    manager = get_manager(tournament_id, _age_group_id())
    manager.generate_bracket()
    return jsonify(manager.render_plan(_highlight_top_n()))


@app.route('/tournaments/<tournament_id>/session', methods=['DELETE'])
def release_tournament(tournament_id):
    """Stop following a tournament: drop its manager and close its connection."""
    age_group_id = _age_group_id()
    released = release_manager(tournament_id, age_group_id)
    app.logger.info(f'Released tournament {tournament_id} (age group {age_group_id}): {released}')
    return jsonify({'released': released})


@app.route('/preview', methods=['POST'])
def preview_plan():
    """Render plan for a snapshot posted in the body, without the remote service."""
    data = _json_body()
    try:
        snapshot = MatchesSnapshot.from_dict(data)
    except (ValueError, TypeError, KeyError, AttributeError) as e:
        raise ValidationError(f'Invalid snapshot: {e}') from e
    bracket_type = data.get('bracketType')
    if not bracket_type:
        raise ValidationError('bracketType is required')
    return jsonify(plan(bracket_type, snapshot.matches, snapshot.playoff_rounds,
                        team_names=snapshot.teams, highlight_top_n=_highlight_top_n()))


if __name__ == '__main__':
    app.run(debug=True, port=5000)

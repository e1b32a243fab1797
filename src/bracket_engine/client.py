"""
HTTP client for the remote tournament service.

Wraps the five operations the engine needs. The service owns bracket
generation and cascading, so every method returns what the server says and
callers refetch afterwards.
"""
import logging
from typing import Optional, Tuple

import requests

from .errors import RemoteServiceError
from .models import Match, MatchesSnapshot

logger = logging.getLogger(__name__)


class TournamentServiceClient:
    def __init__(self, base_url: str, timeout: float = 30, token: Optional[str] = None, session=None):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session if session is not None else requests.Session()
        self.session.headers.update({'Content-Type': 'application/json'})
        if token:
            self.session.headers.update({'Authorization': f'Bearer {token}'})

    @classmethod
    def from_settings(cls, settings: dict) -> 'TournamentServiceClient':
        return cls(
            base_url=settings['api_base_url'],
            timeout=settings['api_timeout_seconds'],
            token=settings.get('api_token'),
        )

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def _request(self, method: str, path: str, params=None, payload=None):
        url = self._url(path)
        try:
            response = self.session.request(method, url, params=params, json=payload, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            logger.error(f'{method} {url} timed out: {e}')
            raise RemoteServiceError('The tournament service did not respond in time') from e
        except requests.exceptions.RequestException as e:
            logger.error(f'{method} {url} failed: {e}')
            raise RemoteServiceError('Could not reach the tournament service') from e

        if response.status_code >= 400:
            message = _error_message(response)
            logger.error(f'{method} {url} returned {response.status_code}: {message}')
            raise RemoteServiceError(
                message,
                status_code=response.status_code,
                retryable=response.status_code >= 500,
            )

        if not response.content:
            return None
        try:
            body = response.json()
        except ValueError as e:
            raise RemoteServiceError('The tournament service returned an invalid response',
                                     status_code=response.status_code) from e
        # Unwrap the {"success": ..., "data": ...} envelope
        if isinstance(body, dict) and 'data' in body:
            return body['data']
        return body

    def fetch_matches(self, tournament_id: str, age_group_id: Optional[str] = None) -> MatchesSnapshot:
        params = {'ageGroupId': age_group_id} if age_group_id else None
        data = self._request('GET', f'/v1/tournaments/{tournament_id}/matches', params=params)
        return _parse(MatchesSnapshot.from_dict, data)

    def submit_score(self, tournament_id: str, match_id: str, team1_score: int, team2_score: int,
                     manual_winner_id: Optional[str] = None,
                     age_group_id: Optional[str] = None) -> Tuple[Optional[Match], bool]:
        payload = {'team1Score': team1_score, 'team2Score': team2_score}
        if manual_winner_id:
            payload['advancingTeamId'] = manual_winner_id
        data = self._request('PATCH', f'/v1/tournaments/{tournament_id}/matches/{match_id}/score',
                             params=_age_group_params(age_group_id), payload=payload)
        return _match_update(data)

    def submit_advancement(self, tournament_id: str, match_id: str, advancing_team_id: str,
                           age_group_id: Optional[str] = None) -> Tuple[Optional[Match], bool]:
        data = self._request('PATCH', f'/v1/tournaments/{tournament_id}/matches/{match_id}/advance',
                             params=_age_group_params(age_group_id),
                             payload={'advancingTeamId': advancing_team_id})
        return _match_update(data)

    def schedule_match(self, tournament_id: str, match_id: str, scheduled_at: str,
                       court_number: Optional[int] = None) -> Optional[Match]:
        payload = {'scheduledAt': scheduled_at}
        if court_number is not None:
            payload['courtNumber'] = court_number
        data = self._request('PATCH', f'/v1/tournaments/{tournament_id}/matches/{match_id}/schedule',
                             payload=payload)
        match, _ = _match_update(data)
        return match

    def generate_bracket(self, tournament_id: str, age_group_id: Optional[str] = None) -> MatchesSnapshot:
        data = self._request('POST', f'/v1/tournaments/{tournament_id}/bracket/generate',
                             params=_age_group_params(age_group_id))
        return _parse(MatchesSnapshot.from_dict, data if isinstance(data, dict) else None)

    def close(self):
        self.session.close()


def _age_group_params(age_group_id):
    return {'ageGroupId': age_group_id} if age_group_id else None


def _match_update(data) -> Tuple[Optional[Match], bool]:
    """Parse an update response: either {"match": ..., "bracketUpdated": ...} or a bare match."""
    if not isinstance(data, dict):
        return None, False
    bracket_updated = bool(data.get('bracketUpdated', False))
    match_data = data.get('match', data)
    if not isinstance(match_data, dict) or 'id' not in match_data:
        return None, bracket_updated
    return _parse(Match.from_dict, match_data), bracket_updated


def _parse(from_dict, data):
    """Build a model from a response body. Malformed fields are a remote failure."""
    try:
        return from_dict(data)
    except (ValueError, TypeError, KeyError, AttributeError) as e:
        logger.error(f'Malformed response from the tournament service: {e}')
        raise RemoteServiceError('The tournament service returned an invalid response',
                                 retryable=False) from e


def _error_message(response) -> str:
    """Best-effort error text from the service's error payload."""
    try:
        body = response.json()
    except ValueError:
        return f'Tournament service error ({response.status_code})'
    if isinstance(body, dict):
        error = body.get('error')
        if isinstance(error, dict) and error.get('message'):
            return error['message']
        if isinstance(error, str):
            return error
        if body.get('message'):
            return body['message']
    return f'Tournament service error ({response.status_code})'

"""Python client for the CitiZen API and a read-through issue cache.

``CitiZenClient`` wraps one ``requests.Session`` so the login cookie is kept
between calls. Every call returns an ``ApiResponse`` instead of raising.

``IssueCache`` keeps the issues a dashboard has already seen, keyed by id.
The server stays the source of truth: mutations go through the client and
the cached entry is replaced with what the server returned, or dropped.
"""
import logging
from collections import Counter
from dataclasses import dataclass
from typing import Any, Optional

import requests

from geo import haversine_distance

logger = logging.getLogger(__name__)


@dataclass
class ApiResponse:
    success: bool
    status_code: Optional[int] = None
    data: Any = None
    error: Optional[str] = None
    message: Optional[str] = None


class CitiZenClient:
    def __init__(self, base_url='http://localhost:5000', session=None, timeout=15):
        self.base_url = base_url.rstrip('/')
        self.session = session or requests.Session()
        self.timeout = timeout

    def _call(self, method, endpoint, json=None, params=None, files=None, data=None):
        url = f'{self.base_url}/api{endpoint}'
        try:
            response = self.session.request(
                method, url,
                json=json,
                params=params,
                files=files,
                data=data,
                timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            logger.error(f'API call failed ({method} {endpoint}): {e}')
            return ApiResponse(success=False, error=str(e))

        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {'data': payload}

        if not response.ok:
            error = payload.get('error') or f'HTTP {response.status_code}'
            logger.warning(f'{method} {endpoint} returned {response.status_code}: {error}')
            return ApiResponse(
                success=False,
                status_code=response.status_code,
                data=payload.get('details'),
                error=error
            )

        return ApiResponse(
            success=True,
            status_code=response.status_code,
            data=payload.get('data'),
            message=payload.get('message')
        )

    # ============ AUTH ============
    def signup(self, email, password, name, **profile):
        return self._call('POST', '/auth/signup', json={'email': email, 'password': password,
                                                        'name': name, **profile})

    def login(self, email, password):
        return self._call('POST', '/auth/login', json={'email': email, 'password': password})

    def logout(self):
        return self._call('POST', '/auth/logout')

    def get_profile(self):
        return self._call('GET', '/auth/profile')

    def update_profile(self, **changes):
        return self._call('PUT', '/auth/profile', json=changes)

    # ============ ISSUES ============
    def get_issues(self, **filters):
        params = {key: value for key, value in filters.items() if value is not None and value != ''}
        if 'my_issues' in params:
            if params['my_issues']:
                params['my_issues'] = 'true'
            else:
                del params['my_issues']
        return self._call('GET', '/issues', params=params)

    def get_issue(self, issue_id):
        return self._call('GET', f'/issues/{issue_id}')

    def create_issue(self, **issue):
        return self._call('POST', '/issues', json=issue)

    def update_issue(self, issue_id, **changes):
        return self._call('PUT', f'/issues/{issue_id}', json=changes)

    def delete_issue(self, issue_id):
        return self._call('DELETE', f'/issues/{issue_id}')

    def get_issue_history(self, issue_id):
        return self._call('GET', f'/issues/{issue_id}/history')

    def get_comments(self, issue_id, page=1, limit=20):
        return self._call('GET', f'/issues/{issue_id}/comments', params={'page': page, 'limit': limit})

    def add_comment(self, issue_id, content, is_private=False):
        return self._call('POST', f'/issues/{issue_id}/comments',
                          json={'content': content, 'is_private': is_private})

    def vote(self, issue_id, vote_type):
        return self._call('POST', f'/issues/{issue_id}/vote', json={'vote_type': vote_type})

    def get_vote_status(self, issue_id):
        return self._call('GET', f'/issues/{issue_id}/vote')

    # ============ NOTIFICATIONS ============
    def get_notifications(self, page=1, limit=20, unread_only=False):
        params = {'page': page, 'limit': limit}
        if unread_only:
            params['unread_only'] = 'true'
        return self._call('GET', '/notifications', params=params)

    def mark_notifications_read(self, notification_ids=None, mark_all=False):
        body = {'mark_all': mark_all}
        if notification_ids is not None:
            body['notification_ids'] = list(notification_ids)
        return self._call('PUT', '/notifications', json=body)

    # ============ UPLOADS ============
    def upload_file(self, filename, content, content_type, issue_id=None):
        form = {'issueId': issue_id} if issue_id else None
        return self._call('POST', '/upload', files={'file': (filename, content, content_type)}, data=form)

    def get_signed_url(self, path):
        return self._call('GET', '/upload', params={'path': path})

    def classify_image(self, filename, content, content_type):
        return self._call('POST', '/classify', files={'image': (filename, content, content_type)})

    # ============ ANALYTICS ============
    def get_analytics(self):
        return self._call('GET', '/analytics/simple')

    def get_charts(self, days=14):
        return self._call('GET', '/analytics/charts', params={'days': days})


class IssueCache:
    """Issues keyed by id, filled on read and corrected after each mutation."""

    SORT_OPTIONS = ('recent', 'popular', 'distance')

    def __init__(self, client):
        self.client = client
        self._issues = {}

    def __contains__(self, issue_id):
        return issue_id in self._issues

    def __len__(self):
        return len(self._issues)

    def cached(self):
        return list(self._issues.values())

    def _store(self, issue):
        if issue and issue.get('id'):
            self._issues[issue['id']] = issue
        return issue

    def invalidate(self, issue_id=None):
        if issue_id is None:
            self._issues.clear()
        else:
            self._issues.pop(issue_id, None)

    def get(self, issue_id, refresh=False):
        if not refresh and issue_id in self._issues:
            return self._issues[issue_id]

        response = self.client.get_issue(issue_id)
        if not response.success:
            if response.status_code == 404:
                self.invalidate(issue_id)
            return None
        return self._store(response.data)

    def list(self, **filters):
        response = self.client.get_issues(**filters)
        if not response.success:
            return []
        issues = response.data.get('issues', [])
        for issue in issues:
            self._store(issue)
        return issues

    def create(self, **issue):
        response = self.client.create_issue(**issue)
        if response.success:
            self._store(response.data)
        return response

    def update(self, issue_id, **changes):
        response = self.client.update_issue(issue_id, **changes)
        if response.success:
            self._store(response.data)
        else:
            self.invalidate(issue_id)
        return response

    def delete(self, issue_id):
        response = self.client.delete_issue(issue_id)
        if response.success or response.status_code == 404:
            self.invalidate(issue_id)
        return response

    def vote(self, issue_id, vote_type):
        response = self.client.vote(issue_id, vote_type)
        if response.success and issue_id in self._issues:
            self._issues[issue_id] = {**self._issues[issue_id],
                                      'upvotes': response.data['upvotes'],
                                      'user_vote': response.data['userVote']}
        elif not response.success:
            self.invalidate(issue_id)
        return response

    def filtered(self, category=None, status=None, priority=None, search=None,
                 sort_by='recent', origin=None):
        """Filter and sort the cached issues without calling the server.

        ``origin`` is a ``(latitude, longitude)`` pair used by the distance
        sort when an issue carries no server-computed ``distance``.
        """
        if sort_by not in self.SORT_OPTIONS:
            raise ValueError(f'Unknown sort: {sort_by}')

        issues = self.cached()
        if category:
            issues = [issue for issue in issues if issue.get('category') == category]
        if status:
            issues = [issue for issue in issues if issue.get('status') == status]
        if priority:
            issues = [issue for issue in issues if issue.get('priority') == priority]
        if search:
            needle = search.lower()
            issues = [issue for issue in issues
                      if needle in (issue.get('title') or '').lower()
                      or needle in (issue.get('description') or '').lower()
                      or needle in (issue.get('address') or '').lower()]

        if sort_by == 'popular':
            return sorted(issues, key=lambda issue: issue.get('upvotes') or 0, reverse=True)
        if sort_by == 'distance':
            return sorted(issues, key=lambda issue: self._distance(issue, origin))
        return sorted(issues, key=lambda issue: issue.get('created_at') or '', reverse=True)

    @staticmethod
    def _distance(issue, origin):
        if issue.get('distance') is not None:
            return issue['distance']
        location = issue.get('location')
        if origin is None or not location:
            return float('inf')
        return haversine_distance(origin[0], origin[1], location['latitude'], location['longitude'])

    def stats(self):
        statuses = Counter(issue.get('status') for issue in self._issues.values())
        return {
            'total': len(self._issues),
            'open': statuses.get('open', 0),
            'assigned': statuses.get('assigned', 0),
            'in_progress': statuses.get('in_progress', 0),
            'resolved': statuses.get('resolved', 0),
            'closed': statuses.get('closed', 0),
        }

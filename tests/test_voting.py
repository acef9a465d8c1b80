import pytest

from errors import ValidationError
from models import AnalyticsEvent, Issue, IssueVote, db
from voting import apply_vote, vote_transition


@pytest.mark.parametrize('current, vote_type, expected', [
    (None, 'upvote', ('upvote', 1)),
    (None, 'downvote', ('downvote', -1)),
    ('upvote', 'upvote', (None, -1)),
    ('upvote', 'downvote', ('downvote', -2)),
    ('downvote', 'downvote', (None, 1)),
    ('downvote', 'upvote', ('upvote', 2)),
])
def test_vote_transition_table(current, vote_type, expected):
    assert vote_transition(current, vote_type) == expected


def test_vote_transition_rejects_unknown_type():
    with pytest.raises(ValidationError):
        vote_transition(None, 'sideways')


def vote(client, issue_id, vote_type):
    response = client.post(f'/api/issues/{issue_id}/vote', json={'vote_type': vote_type})
    assert response.status_code == 200, response.get_json()
    return response.get_json()['data']


def test_two_users_then_flip(citizen, neighbour, admin, make_issue):
    issue = make_issue(admin)

    assert vote(citizen, issue['id'], 'upvote')['upvotes'] == 1
    assert vote(neighbour, issue['id'], 'upvote')['upvotes'] == 2

    flipped = vote(citizen, issue['id'], 'downvote')
    assert flipped == {'upvotes': 0, 'userVote': 'downvote', 'vote_change': -2, 'action': 'updated'}


def test_repeating_a_vote_removes_it(app, citizen, make_issue):
    issue = make_issue(citizen)

    added = vote(citizen, issue['id'], 'upvote')
    removed = vote(citizen, issue['id'], 'upvote')

    assert added['action'] == 'added'
    assert removed == {'upvotes': 0, 'userVote': None, 'vote_change': -1, 'action': 'removed'}
    with app.app_context():
        assert IssueVote.query.count() == 0


def test_counter_never_goes_negative(app, citizen, make_issue):
    issue = make_issue(citizen)

    result = vote(citizen, issue['id'], 'downvote')

    assert result['upvotes'] == 0
    assert result['vote_change'] == -1
    with app.app_context():
        assert db.session.get(Issue, issue['id']).upvotes == 0


def test_one_vote_row_per_user(app, citizen, neighbour, make_issue):
    issue = make_issue(citizen)
    for vote_type in ['upvote', 'downvote', 'downvote', 'upvote', 'downvote', 'upvote']:
        vote(citizen, issue['id'], vote_type)
        vote(neighbour, issue['id'], vote_type)

    with app.app_context():
        assert IssueVote.query.filter_by(issue_id=issue['id'], user_id=citizen.user['id']).count() == 1
        assert IssueVote.query.filter_by(issue_id=issue['id'], user_id=neighbour.user['id']).count() == 1
        assert db.session.get(Issue, issue['id']).upvotes >= 0


def test_vote_status(citizen, neighbour, make_issue):
    issue = make_issue(citizen)
    vote(neighbour, issue['id'], 'upvote')

    assert citizen.get(f"/api/issues/{issue['id']}/vote").get_json()['data'] == {'upvotes': 1, 'userVote': None}
    assert neighbour.get(f"/api/issues/{issue['id']}/vote").get_json()['data'] == {'upvotes': 1, 'userVote': 'upvote'}


def test_vote_records_event(app, citizen, make_issue):
    issue = make_issue(citizen)
    vote(citizen, issue['id'], 'upvote')

    with app.app_context():
        event = AnalyticsEvent.query.filter_by(event_type='issue_voted').one()
        assert event.event_metadata['vote_change'] == 1
        assert event.event_metadata['new_upvotes'] == 1


def test_vote_rejects_bad_type(citizen, make_issue):
    issue = make_issue(citizen)

    response = citizen.post(f"/api/issues/{issue['id']}/vote", json={'vote_type': 'maybe'})

    assert response.status_code == 400


def test_vote_on_missing_issue(citizen):
    assert citizen.post('/api/issues/missing/vote', json={'vote_type': 'upvote'}).status_code == 404
    assert citizen.get('/api/issues/missing/vote').status_code == 404


def test_apply_vote_directly(app, citizen, make_issue):
    issue = make_issue(citizen)

    with app.app_context():
        result = apply_vote(issue['id'], citizen.user['id'], 'upvote')
        assert (result.upvotes, result.user_vote, result.delta) == (1, 'upvote', 1)
        assert db.session.get(Issue, issue['id']).upvotes == 1

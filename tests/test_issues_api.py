from conftest import KOLKATA

from models import AnalyticsEvent, Issue, IssueComment, db

MUMBAI = {'latitude': 19.0760, 'longitude': 72.8777}


def test_create_issue(app, citizen):
    response = citizen.post('/api/issues', json={
        'title': 'Pothole on 5th',
        'description': 'Deep pothole in the left lane.',
        'category': 'pothole',
        'priority': 'high',
        'location': KOLKATA,
        'address': '5th Street, Kolkata'
    })

    assert response.status_code == 201
    issue = response.get_json()['data']
    assert issue['id']
    assert issue['status'] == 'open'
    assert issue['upvotes'] == 0
    assert issue['views'] == 0
    assert issue['location'] == KOLKATA
    assert issue['user_id'] == citizen.user['id']
    assert issue['resolved_at'] is None

    with app.app_context():
        event = AnalyticsEvent.query.filter_by(event_type='issue_created').one()
        assert event.entity_id == issue['id']
        assert event.event_metadata['location'] == {
            'type': 'Point', 'coordinates': [KOLKATA['longitude'], KOLKATA['latitude']]}


def test_create_issue_with_attachments(citizen, make_issue):
    issue = make_issue(citizen, attachments=[{
        'file_url': 'http://localhost/files/general/photo.jpg',
        'file_type': 'image',
        'file_size': 1234,
        'metadata': {'originalName': 'photo.jpg'}
    }])

    detail = citizen.get(f"/api/issues/{issue['id']}").get_json()['data']
    assert len(detail['issue_attachments']) == 1
    assert detail['issue_attachments'][0]['metadata']['originalName'] == 'photo.jpg'


def test_create_issue_validates_body(citizen):
    response = citizen.post('/api/issues', json={
        'title': '',
        'description': 'Something',
        'category': 'volcano',
        'location': {'latitude': 120, 'longitude': 88.36},
        'address': 'Somewhere'
    })

    assert response.status_code == 400
    fields = {detail['field'] for detail in response.get_json()['details']}
    assert 'title' in fields
    assert 'category' in fields
    assert 'location.latitude' in fields


def test_list_filters_by_status_category_and_priority(citizen, admin, make_issue):
    pothole = make_issue(citizen)
    garbage = make_issue(citizen, title='Overflowing bin', category='garbage', priority='low')
    admin.put(f"/api/issues/{garbage['id']}", json={'status': 'closed'})

    ids = lambda response: [issue['id'] for issue in response.get_json()['data']['issues']]

    assert ids(citizen.get('/api/issues?status=open')) == [pothole['id']]
    assert ids(citizen.get('/api/issues?category=garbage')) == [garbage['id']]
    assert ids(citizen.get('/api/issues?priority=high')) == [pothole['id']]


def test_list_includes_reporter(citizen, make_issue):
    make_issue(citizen)

    issue = citizen.get('/api/issues').get_json()['data']['issues'][0]
    assert issue['user']['id'] == citizen.user['id']
    assert issue['assigned_worker'] is None


def test_list_my_issues(citizen, neighbour, make_issue):
    mine = make_issue(citizen)
    make_issue(neighbour, title='Broken light', category='streetlight')

    response = citizen.get('/api/issues?my_issues=true')
    issues = response.get_json()['data']['issues']
    assert [issue['id'] for issue in issues] == [mine['id']]


def test_list_is_newest_first(citizen, make_issue):
    first = make_issue(citizen, title='First')
    second = make_issue(citizen, title='Second')

    issues = citizen.get('/api/issues').get_json()['data']['issues']
    assert [issue['id'] for issue in issues] == [second['id'], first['id']]


def test_pagination(citizen, make_issue):
    for index in range(5):
        make_issue(citizen, title=f'Issue {index}')

    response = citizen.get('/api/issues?page=1&limit=2')
    data = response.get_json()['data']
    assert len(data['issues']) == 2
    assert data['pagination'] == {'page': 1, 'limit': 2, 'total': 5, 'totalPages': 3}

    last_page = citizen.get('/api/issues?page=3&limit=2').get_json()['data']
    assert len(last_page['issues']) == 1

    beyond = citizen.get('/api/issues?page=4&limit=2').get_json()['data']
    assert beyond['issues'] == []


def test_pagination_rejects_bad_values(citizen):
    assert citizen.get('/api/issues?limit=0').status_code == 400
    assert citizen.get('/api/issues?limit=101').status_code == 400
    assert citizen.get('/api/issues?page=0').status_code == 400
    assert citizen.get('/api/issues?page=abc').status_code == 400


def test_radius_filter(citizen, make_issue):
    near = make_issue(citizen)
    make_issue(citizen, title='Far away', location=MUMBAI)

    response = citizen.get(f"/api/issues?lat={KOLKATA['latitude']}&lng={KOLKATA['longitude']}&radius=2000")

    data = response.get_json()['data']
    assert [issue['id'] for issue in data['issues']] == [near['id']]
    assert data['issues'][0]['distance'] == 0
    assert data['issues'][0]['distance_text'] == '0m'
    assert data['pagination']['total'] == 1


def test_radius_filter_across_antimeridian(citizen, make_issue):
    east = make_issue(citizen, title='East of the date line', location={'latitude': -16.5, 'longitude': 179.99})
    west = make_issue(citizen, title='West of the date line', location={'latitude': -16.5, 'longitude': -179.99})

    response = citizen.get('/api/issues?lat=-16.5&lng=179.99&radius=5000')

    ids = {issue['id'] for issue in response.get_json()['data']['issues']}
    assert ids == {east['id'], west['id']}


def test_create_issue_with_geojson_location(citizen, make_issue):
    issue = make_issue(citizen, location={'type': 'Point', 'coordinates': [KOLKATA['longitude'], KOLKATA['latitude']]})

    assert issue['location'] == KOLKATA


def test_create_issue_rejects_malformed_geojson(citizen):
    response = citizen.post('/api/issues', json={
        'title': 'Pothole',
        'description': 'Deep pothole',
        'category': 'pothole',
        'location': {'type': 'Point', 'coordinates': [88.36]},
        'address': 'Somewhere'
    })

    assert response.status_code == 400


def test_radius_filter_rejects_bad_coordinates(citizen):
    response = citizen.get('/api/issues?lat=abc&lng=88.3&radius=100')

    assert response.status_code == 400


def test_get_issue_counts_views(app, citizen, make_issue):
    issue = make_issue(citizen)

    first = citizen.get(f"/api/issues/{issue['id']}").get_json()['data']
    second = citizen.get(f"/api/issues/{issue['id']}").get_json()['data']

    assert first['views'] == 1
    assert second['views'] == 2
    with app.app_context():
        assert AnalyticsEvent.query.filter_by(event_type='issue_viewed').count() == 2


def test_get_missing_issue(citizen):
    response = citizen.get('/api/issues/does-not-exist')

    assert response.status_code == 404
    assert response.get_json() == {'error': 'Issue not found'}


def test_delete_by_owner(app, citizen, make_issue):
    issue = make_issue(citizen)
    citizen.post(f"/api/issues/{issue['id']}/comments", json={'content': 'Still there'})

    response = citizen.delete(f"/api/issues/{issue['id']}")

    assert response.status_code == 200
    assert citizen.get(f"/api/issues/{issue['id']}").status_code == 404
    with app.app_context():
        assert IssueComment.query.count() == 0


def test_delete_by_other_citizen_is_forbidden(app, citizen, neighbour, make_issue):
    issue = make_issue(citizen)

    response = neighbour.delete(f"/api/issues/{issue['id']}")

    assert response.status_code == 403
    with app.app_context():
        assert db.session.get(Issue, issue['id']) is not None


def test_delete_by_admin(citizen, admin, make_issue):
    issue = make_issue(citizen)

    assert admin.delete(f"/api/issues/{issue['id']}").status_code == 200


def test_report_assign_resolve_scenario(app, citizen, admin, worker, worker_id, make_issue):
    issue = make_issue(citizen, title='Pothole on 5th', category='pothole', priority='high')

    open_ids = [i['id'] for i in admin.get('/api/issues?status=open').get_json()['data']['issues']]
    assert issue['id'] in open_ids

    response = admin.put(f"/api/issues/{issue['id']}", json={'assigned_worker_id': worker_id})
    assert response.status_code == 200
    assert response.get_json()['data']['assigned_worker_id'] == worker_id

    response = worker.put(f"/api/issues/{issue['id']}", json={'status': 'resolved'})
    assert response.status_code == 200
    resolved = response.get_json()['data']
    assert resolved['status'] == 'resolved'
    assert resolved['resolved_at'] is not None

    open_ids = [i['id'] for i in admin.get('/api/issues?status=open').get_json()['data']['issues']]
    assert issue['id'] not in open_ids


def test_meta_lists_catalogues(app):
    response = app.test_client().get('/api/meta')

    data = response.get_json()['data']
    assert data['app_name'] == 'CitiZen'
    assert set(data['categories']) == {'pothole', 'streetlight', 'garbage', 'water', 'graffiti', 'road', 'other'}
    assert set(data['statuses']) == {'open', 'assigned', 'in_progress', 'resolved', 'closed'}
    assert 'assignment' in data['notification_types']


def test_health(app):
    response = app.test_client().get('/health')

    assert response.status_code == 200
    assert response.get_json()['status'] == 'healthy'


def test_unknown_route_is_json(app):
    response = app.test_client().get('/api/nothing-here')

    assert response.status_code == 404
    assert 'error' in response.get_json()

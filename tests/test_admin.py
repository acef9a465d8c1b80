def test_simple_analytics(citizen, admin, make_issue):
    make_issue(citizen)
    resolved = make_issue(citizen, title='Dark corner', category='streetlight', priority='low')
    admin.put(f"/api/issues/{resolved['id']}", json={'status': 'resolved'})

    response = admin.get('/api/analytics/simple')

    assert response.status_code == 200
    data = response.get_json()['data']
    assert data['overview']['totalIssues'] == 2
    assert data['overview']['resolvedIssues'] == 1
    assert data['overview']['openIssues'] == 1
    assert data['overview']['resolutionRate'] == 50.0
    assert data['byCategory'] == {'pothole': 1, 'streetlight': 1}
    assert data['byPriority'] == {'high': 1, 'low': 1}


def test_analytics_are_admin_only(app, citizen, worker):
    assert citizen.get('/api/analytics/simple').status_code == 403
    assert worker.get('/api/analytics/charts').status_code == 403
    assert app.test_client().get('/api/analytics/simple').status_code == 401


def test_chart_analytics(citizen, admin, make_issue):
    make_issue(citizen)

    response = admin.get('/api/analytics/charts?days=7')

    assert response.status_code == 200
    data = response.get_json()['data']
    assert len(data['daily']['labels']) == 7
    assert sum(data['daily']['counts']) == 1
    assert [segment['label'] for segment in data['byStatus']] == ['open']
    assert data['resolutionRate'] == 0.0
    assert admin.get('/api/analytics/charts?days=0').status_code == 400


def test_departments(citizen, admin):
    response = admin.post('/api/departments', json={
        'name': 'Sanitation',
        'municipality': 'Kolkata',
        'contact_email': 'sanitation@example.com'
    })
    assert response.status_code == 201
    assert response.get_json()['data']['contact_info']['email'] == 'sanitation@example.com'

    assert admin.post('/api/departments', json={'name': 'Sanitation'}).status_code == 400
    assert citizen.post('/api/departments', json={'name': 'Roads'}).status_code == 403

    names = [d['name'] for d in citizen.get('/api/departments').get_json()['data']]
    assert names == ['Sanitation']


def test_assign_department(citizen, admin, make_issue):
    department = admin.post('/api/departments', json={'name': 'Roads'}).get_json()['data']
    issue = make_issue(citizen)

    response = admin.put(f"/api/issues/{issue['id']}", json={'department_id': department['id']})

    assert response.status_code == 200
    detail = citizen.get(f"/api/issues/{issue['id']}").get_json()['data']
    assert detail['department'] == {'id': department['id'], 'name': 'Roads'}
    assert admin.put(f"/api/issues/{issue['id']}", json={'department_id': 'nope'}).status_code == 400


def test_worker_listing(register, admin, citizen):
    department = admin.post('/api/departments', json={'name': 'Electricity'}).get_json()['data']
    worker = register('lineman@example.com', role='worker', name='Lineman', department_id=department['id'])

    workers = worker.get('/api/workers').get_json()['data']
    assert len(workers) == 1
    assert workers[0]['name'] == 'Lineman'
    assert workers[0]['department'] == 'Electricity'
    assert workers[0]['worker_id'].startswith('W-')

    assert citizen.get('/api/workers').status_code == 403


def test_worker_tasks_are_worker_only(citizen):
    assert citizen.get('/api/worker/tasks').status_code == 403

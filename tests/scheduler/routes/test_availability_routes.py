def _create_availability(client, **payload) -> dict:
    payload.setdefault('name', 'Office hours')
    response = client.post('/availability', json=payload)
    assert response.status_code == 201
    return response.json()['data']


def test_root_reports_running(client) -> None:
    response = client.get('/')

    assert response.status_code == 200
    assert response.json() == {'message': 'Backend server is running!'}


def test_create_availability_returns_sorted_intervals(client) -> None:
    data = _create_availability(
        client,
        timezone='Europe/Paris',
        intervals=[
            {'day_of_week': 2, 'start_time': '09:00:00', 'end_time': '12:00:00'},
            {'day_of_week': 1, 'start_time': '13:00:00', 'end_time': '17:00:00'},
        ],
    )

    assert data['timezone'] == 'Europe/Paris'
    assert [(item['day_of_week'], item['start_time']) for item in data['intervals']] == [
        (1, '13:00:00'),
        (2, '09:00:00'),
    ]


def test_create_availability_rejects_bad_time_format(client) -> None:
    response = client.post(
        '/availability',
        json={
            'name': 'Office hours',
            'intervals': [{'day_of_week': 1, 'start_time': '9am', 'end_time': '12:00:00'}],
        },
    )

    assert response.status_code == 400
    body = response.json()
    assert body['message'] == 'Validation failed'
    assert body['error']['name'] == 'ValidationError'
    assert body['error']['errors'][0]['field'] == 'intervals.0.start_time'


def test_create_availability_rejects_out_of_range_day(client) -> None:
    response = client.post(
        '/availability',
        json={
            'name': 'Office hours',
            'intervals': [{'day_of_week': 0, 'start_time': '09:00:00', 'end_time': '12:00:00'}],
        },
    )

    assert response.status_code == 400
    assert response.json()['error']['name'] == 'InvalidArgumentError'
    assert client.get('/availability').json()['data'] == []


def test_get_default_availability_is_null_until_one_exists(client) -> None:
    assert client.get('/availability/default').json()['data'] is None

    created = _create_availability(client)

    response = client.get('/availability/default')
    assert response.status_code == 200
    assert response.json()['data']['id'] == created['id']


def test_get_availability_not_found_envelope(client) -> None:
    response = client.get('/availability/41')

    assert response.status_code == 404
    assert response.json() == {
        'message': 'Availability with id 41 not found',
        'error': {
            'name': 'NotFoundError',
            'message': 'Availability with id 41 not found',
            'statusCode': 404,
            'details': None,
        },
    }


def test_get_availability_rejects_non_integer_id(client) -> None:
    response = client.get('/availability/abc')

    assert response.status_code == 400
    assert response.json()['error']['errors'][0]['field'] == 'availability_id'


def test_update_availability_replaces_intervals(client) -> None:
    created = _create_availability(
        client,
        intervals=[{'day_of_week': 1, 'start_time': '09:00:00', 'end_time': '12:00:00'}],
    )

    response = client.put(
        f"/availability/{created['id']}",
        json={'intervals': [{'day_of_week': 5, 'start_time': '10:00:00', 'end_time': '11:00:00'}]},
    )

    assert response.status_code == 200
    data = response.json()['data']
    assert data['name'] == 'Office hours'
    assert [(item['day_of_week'], item['end_time']) for item in data['intervals']] == [(5, '11:00:00')]


def test_update_availability_rejects_empty_body(client) -> None:
    created = _create_availability(client)

    response = client.put(f"/availability/{created['id']}", json={})

    assert response.status_code == 400
    assert response.json()['message'] == 'At least one field must be provided for update'


def test_delete_availability(client) -> None:
    created = _create_availability(client, name='Doomed')

    response = client.delete(f"/availability/{created['id']}")

    assert response.status_code == 200
    body = response.json()
    assert body['message'] == 'Availability deleted successfully'
    assert body['data']['deletedAvailability']['name'] == 'Doomed'
    assert client.get(f"/availability/{created['id']}").status_code == 404


def test_interval_endpoints(client) -> None:
    created = _create_availability(client)

    added = client.post(
        f"/availability/{created['id']}/intervals",
        json={'day_of_week': 3, 'start_time': '08:00:00', 'end_time': '09:00:00'},
    )
    assert added.status_code == 201
    interval_id = added.json()['data']['id']

    duplicate = client.post(
        f"/availability/{created['id']}/intervals",
        json={'day_of_week': 3, 'start_time': '08:00:00', 'end_time': '09:00:00'},
    )
    assert duplicate.status_code == 409

    updated = client.put(f'/availability/intervals/{interval_id}', json={'end_time': '10:00:00'})
    assert updated.status_code == 200
    assert updated.json()['data']['end_time'] == '10:00:00'

    inverted = client.put(f'/availability/intervals/{interval_id}', json={'start_time': '11:00:00'})
    assert inverted.status_code == 400

    deleted = client.delete(f'/availability/intervals/{interval_id}')
    assert deleted.status_code == 200
    assert deleted.json()['data']['deletedInterval']['id'] == interval_id
    assert client.delete(f'/availability/intervals/{interval_id}').status_code == 404

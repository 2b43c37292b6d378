"""
Tests for the Flask REST API.
"""

import pytest
from web_interface.app import app


@pytest.fixture
def client():
    app.config['TESTING'] = True
    with app.test_client() as client:
        client.post('/api/project/new')
        yield client


def add_loop(client):
    response = client.post('/api/events', json={'name': 'loop'})
    assert response.status_code == 201
    return response.get_json()['data']


class TestProjectEndpoints:
    """Test cases for project documents."""

    def test_get_project(self, client):
        """Test the current document is returned."""
        data = client.get('/api/project').get_json()
        assert data['success'] is True
        assert data['data']['projectName'] == 'NewModule'
        assert data['history'] == {'canUndo': False, 'canRedo': False}

    def test_load_project(self, client):
        """Test posting a document replaces the project."""
        response = client.post('/api/project', json={'projectName': 'Loaded', 'events': [{'name': 'draw'}]})
        assert response.status_code == 200
        assert response.get_json()['data']['events'][0]['name'] == 'draw'

    def test_load_invalid_project(self, client):
        """Test malformed documents are rejected with 400."""
        response = client.post('/api/project', json={'events': 'nope'})
        assert response.status_code == 400
        assert response.get_json()['success'] is False

    def test_code(self, client):
        """Test compiling the project."""
        add_loop(client)
        data = client.get('/api/code').get_json()['data']
        assert data['className'] == 'NewModule'
        assert '    loop(deltaTime) {' in data['code']
        assert data['validation']['is_valid'] is True

    def test_definitions(self, client):
        """Test the catalogs and search."""
        data = client.get('/api/definitions').get_json()['data']
        assert data['conditions'][0]['type'] == 'ifCondition'
        results = client.get('/api/definitions?q=circle').get_json()['data']['results']
        assert [d['type'] for d in results] == ['drawCircle']


class TestEditEndpoints:
    """Test cases for structural edits."""

    def test_add_and_delete_event(self, client):
        """Test event creation and removal."""
        event = add_loop(client)
        assert event['type'] == 'event'
        assert client.delete('/api/events/0').status_code == 200
        assert client.delete('/api/events/0').status_code == 404

    def test_add_event_invalid(self, client):
        """Test unknown lifecycle names are rejected."""
        assert client.post('/api/events', json={'name': 'update'}).status_code == 400

    def test_elements(self, client):
        """Test adding, updating, moving and deleting elements."""
        event = add_loop(client)
        block = client.post('/api/elements', json={
            'parentId': event['id'], 'array': 'actions', 'type': 'nestedBlock',
        }).get_json()['data']
        leaf = client.post('/api/elements', json={
            'parentId': event['id'], 'array': 'actions', 'type': 'log', 'params': {'message': 'hi'},
        }).get_json()['data']

        response = client.patch(f"/api/elements/{leaf['id']}", json={'params': {'message': 'bye'}})
        assert response.get_json()['data']['params']['message'] == 'bye'

        response = client.post(f"/api/elements/{leaf['id']}/move", json={
            'toParentId': block['id'], 'toArray': 'actions',
        })
        assert response.status_code == 200
        moved = response.get_json()['data']['events'][0]['actions'][0]['actions']
        assert moved[0]['id'] == leaf['id']

        response = client.post(f"/api/elements/{block['id']}/move", json={
            'toParentId': block['id'], 'toArray': 'actions',
        })
        assert response.status_code == 409

        assert client.delete(f"/api/elements/{leaf['id']}").status_code == 200
        assert client.delete(f"/api/elements/{leaf['id']}").status_code == 404

    def test_add_element_errors(self, client):
        """Test missing fields and incompatible targets."""
        event = add_loop(client)
        assert client.post('/api/elements', json={'parentId': event['id']}).status_code == 400
        response = client.post('/api/elements', json={
            'parentId': event['id'], 'array': 'elseActions', 'type': 'log',
        })
        assert response.status_code == 400
        response = client.post('/api/elements', json={
            'parentId': event['id'], 'array': 'actions', 'type': 'teleport',
        })
        assert response.status_code == 400
        response = client.post('/api/elements', json={
            'parentId': event['id'], 'array': 'conditions', 'type': 'setPosition',
        })
        assert response.status_code == 400

    def test_undo_redo(self, client):
        """Test undo and redo through the API."""
        add_loop(client)
        data = client.post('/api/undo').get_json()['data']
        assert data == {'changed': True, 'canUndo': False, 'canRedo': True}
        assert client.get('/api/project').get_json()['data']['events'] == []
        data = client.post('/api/redo').get_json()['data']
        assert data['changed'] is True
        assert len(client.get('/api/project').get_json()['data']['events']) == 1
        assert client.post('/api/redo').get_json()['data']['changed'] is False

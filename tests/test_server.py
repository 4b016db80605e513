from fastapi.testclient import TestClient

import server
from swallow_analyzer.export import CSV_HEADER

client = TestClient(server.app)


def test_health() -> None:
    response = client.get('/api/health')
    assert response.status_code == 200
    assert response.json() == {'status': 'ok'}


def test_analyze_returns_cycles(synthetic_rows) -> None:
    response = client.post('/api/analyze', json={'fps': 30, 'areas': synthetic_rows()})

    assert response.status_code == 200
    body = response.json()
    assert body['frame_count'] == 120
    assert body['swallowing_analysis']['total_swallows'] == 1


def test_analyze_csv(synthetic_rows) -> None:
    response = client.post('/api/analyze/csv', json={'fps': 30, 'areas': synthetic_rows()})

    assert response.status_code == 200
    assert response.headers['content-type'].startswith('text/csv')
    assert response.text.splitlines()[0] == ','.join(CSV_HEADER)


def test_invalid_fps_is_rejected() -> None:
    response = client.post('/api/analyze', json={'fps': 0, 'areas': []})
    assert response.status_code == 422

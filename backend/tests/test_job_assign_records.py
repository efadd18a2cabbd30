from repairdesk.models.authz import User
from repairdesk.models.job import Job
from tests.test_utils_seed import ensure_user, reload
from tests.test_lifecycle_helpers import create_job, admin_headers, walk


def _assign(client, job_id, technician_id, **extra):
    body = {'technicianId': technician_id}
    body.update(extra)
    return client.patch(f'/jobs/{job_id}/assign', json=body, headers=admin_headers())


def test_assign_technician(client):
    tech = ensure_user('assign_tech@example.com', role=User.ROLE_TECHNICIAN)
    job = create_job(client)
    resp = _assign(client, job['id'], tech.id, note='Bench 3')
    assert resp.status_code == 200
    assert resp.get_json()['technicianId'] == tech.id
    detail = client.get(f"/jobs/{job['id']}", headers=admin_headers()).get_json()
    assert detail['technician']['id'] == tech.id


def test_assign_unknown_user_is_not_found(client):
    job = create_job(client)
    resp = _assign(client, job['id'], 999999)
    assert resp.status_code == 404
    assert resp.get_json()['error']['field'] == 'technicianId'


def test_assign_requires_technician_role(client):
    clerk = ensure_user('assign_clerk@example.com', role=User.ROLE_RECEPTIONIST)
    job = create_job(client)
    resp = _assign(client, job['id'], clerk.id)
    assert resp.status_code == 400
    err = resp.get_json()['error']
    assert err['kind'] == 'ValidationError'
    assert err['field'] == 'technicianId'
    assert reload(Job, job['id']).technician_id is None


def test_assign_rejects_inactive_technician(client):
    tech = ensure_user('assign_inactive@example.com', role=User.ROLE_TECHNICIAN, is_active=False)
    job = create_job(client)
    assert _assign(client, job['id'], tech.id).status_code == 400


def test_assign_on_terminal_job(client):
    tech = ensure_user('assign_tech@example.com', role=User.ROLE_TECHNICIAN)
    job = create_job(client)
    walk(client, job['id'], ['CANCELLED'])
    resp = _assign(client, job['id'], tech.id)
    assert resp.status_code == 409


def test_add_repair_record_keeps_status(client):
    job = create_job(client)
    walk(client, job['id'], ['DIAGNOSED'])
    resp = client.post(
        f"/jobs/{job['id']}/records",
        json={'description': 'Replaced both fans', 'findings': 'Bearing worn', 'actions': 'Fan swap'},
        headers=admin_headers(),
    )
    assert resp.status_code == 201
    record = resp.get_json()
    assert record['jobId'] == job['id']
    assert record['findings'] == 'Bearing worn'
    detail = client.get(f"/jobs/{job['id']}", headers=admin_headers()).get_json()
    assert detail['status'] == 'DIAGNOSED'
    assert [r['id'] for r in detail['records']] == [record['id']]


def test_repair_record_on_completed_job(client):
    job = create_job(client)
    walk(client, job['id'], ['COMPLETED'])
    resp = client.post(f"/jobs/{job['id']}/records", json={'description': 'Late extra note'}, headers=admin_headers())
    assert resp.status_code == 409
    assert resp.get_json()['error']['kind'] == 'InvalidStateError'


def test_activity_log_lists_actions_in_order(client):
    tech = ensure_user('assign_tech@example.com', role=User.ROLE_TECHNICIAN)
    job = create_job(client)
    _assign(client, job['id'], tech.id)
    walk(client, job['id'], ['DIAGNOSED'])
    resp = client.get(f"/jobs/{job['id']}/activity", headers=admin_headers())
    assert resp.status_code == 200
    body = resp.get_json()
    assert [a['action'] for a in body['data']] == ['JOB.CREATE', 'JOB.ASSIGN', 'JOB.STATUS.CHANGE']
    assert body['total'] == 3

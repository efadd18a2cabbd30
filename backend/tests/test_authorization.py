import pytest
from repairdesk.constants.permissions import (
    ACTION_JOB_STATUS,
    ACTION_JOB_UPDATE,
    ACTION_JOB_READ,
    ACTION_CUSTOMER_DELETE,
)
from repairdesk.errors import AuthorizationError
from repairdesk.models.authz import User
from repairdesk.models.job import Job
from repairdesk.services.policy import Actor, authorize, is_allowed, can_view_device_password
from tests.test_utils_seed import ensure_user, reload
from tests.test_lifecycle_helpers import create_job, change_status, admin_headers, headers_for, jwt_headers


def _assigned_job(client, tech):
    job = create_job(client)
    resp = client.patch(f"/jobs/{job['id']}/assign", json={'technicianId': tech.id}, headers=admin_headers())
    assert resp.status_code == 200
    return job


def test_policy_supervisors_allowed_everything():
    for role in (User.ROLE_ADMIN, User.ROLE_MANAGER):
        assert is_allowed(Actor(1, role), ACTION_CUSTOMER_DELETE)


def test_policy_technician_needs_assignment():
    tech = Actor(7, User.ROLE_TECHNICIAN)
    assert is_allowed(tech, ACTION_JOB_STATUS, Job(technician_id=7))
    assert not is_allowed(tech, ACTION_JOB_STATUS, Job(technician_id=8))
    assert is_allowed(tech, ACTION_JOB_READ)
    with pytest.raises(AuthorizationError, match='not assigned'):
        authorize(tech, ACTION_JOB_STATUS, Job(technician_id=None))


def test_policy_receptionist_field_restrictions():
    clerk = Actor(3, User.ROLE_RECEPTIONIST)
    authorize(clerk, ACTION_JOB_UPDATE, Job(), fields={'serial_number', 'customer_notes'})
    with pytest.raises(AuthorizationError, match='priority'):
        authorize(clerk, ACTION_JOB_UPDATE, Job(), fields={'serial_number', 'priority'})
    with pytest.raises(AuthorizationError):
        authorize(clerk, ACTION_JOB_STATUS, Job())


def test_assigned_technician_changes_status(client):
    tech = ensure_user('authz_tech_a@example.com', role=User.ROLE_TECHNICIAN)
    job = _assigned_job(client, tech)
    resp = change_status(client, job['id'], 'DIAGNOSED', headers=jwt_headers(tech.id, User.ROLE_TECHNICIAN))
    assert resp.status_code == 200


def test_unassigned_technician_is_forbidden(client):
    owner = ensure_user('authz_tech_a@example.com', role=User.ROLE_TECHNICIAN)
    other = ensure_user('authz_tech_b@example.com', role=User.ROLE_TECHNICIAN)
    job = _assigned_job(client, owner)
    resp = change_status(client, job['id'], 'DIAGNOSED', headers=jwt_headers(other.id, User.ROLE_TECHNICIAN))
    assert resp.status_code == 403
    err = resp.get_json()['error']
    assert err['kind'] == 'AuthorizationError'
    assert err['detail'] == 'Job is not assigned to you'
    assert reload(Job, job['id']).status == 'RECEIVED'
    record = client.post(f"/jobs/{job['id']}/records", json={'description': 'Not my bench'}, headers=jwt_headers(other.id, User.ROLE_TECHNICIAN))
    assert record.status_code == 403


def test_technician_cannot_create_or_edit_jobs(client):
    tech_headers = headers_for('authz_tech_c@example.com', User.ROLE_TECHNICIAN)
    job = create_job(client)
    assert client.post('/jobs', json={}, headers=tech_headers).status_code == 403
    assert client.patch(f"/jobs/{job['id']}", json={'priority': 1}, headers=tech_headers).status_code == 403


def test_receptionist_edits_intake_fields_only(client):
    clerk_headers = headers_for('authz_clerk@example.com', User.ROLE_RECEPTIONIST)
    job = create_job(client, headers=clerk_headers)
    ok = client.patch(f"/jobs/{job['id']}", json={'serialNumber': 'SN-CLERK-1'}, headers=clerk_headers)
    assert ok.status_code == 200
    denied = client.patch(f"/jobs/{job['id']}", json={'priority': 2}, headers=clerk_headers)
    assert denied.status_code == 403
    assert 'priority' in denied.get_json()['error']['detail']
    assert reload(Job, job['id']).priority == 0
    status = change_status(client, job['id'], 'DIAGNOSED', headers=clerk_headers)
    assert status.status_code == 403


def test_missing_token_is_unauthorized(client):
    resp = client.get('/jobs')
    assert resp.status_code == 401


def test_unknown_role_claim_is_forbidden(client):
    user = ensure_user('authz_guest@example.com', role=User.ROLE_RECEPTIONIST)
    job = create_job(client)
    resp = client.get(f"/jobs/{job['id']}", headers=jwt_headers(user.id, 'GUEST'))
    assert resp.status_code == 403


def test_me_reports_token_role(client):
    tech = ensure_user('authz_me@example.com', role=User.ROLE_TECHNICIAN)
    resp = client.get('/auth/me', headers=jwt_headers(tech.id, User.ROLE_TECHNICIAN))
    assert resp.status_code == 200
    body = resp.get_json()
    assert body['email'] == 'authz_me@example.com'
    assert body['tokenRole'] == 'TECHNICIAN'


def test_policy_device_password_visibility():
    job = Job(technician_id=7)
    assert can_view_device_password(Actor(1, User.ROLE_MANAGER), job)
    assert can_view_device_password(Actor(3, User.ROLE_RECEPTIONIST), job)
    assert can_view_device_password(Actor(7, User.ROLE_TECHNICIAN), job)
    assert not can_view_device_password(Actor(8, User.ROLE_TECHNICIAN), job)


def test_device_password_hidden_from_unassigned_technician(client):
    owner = ensure_user('pw_tech_owner@example.com', role=User.ROLE_TECHNICIAN)
    other = ensure_user('pw_tech_other@example.com', role=User.ROLE_TECHNICIAN)
    job = create_job(client, password='1234-unlock')
    assign = client.patch(f"/jobs/{job['id']}/assign", json={'technicianId': owner.id}, headers=admin_headers())
    assert assign.status_code == 200
    url = f"/jobs/{job['id']}"
    assert client.get(url, headers=admin_headers()).get_json()['password'] == '1234-unlock'
    assert client.get(url, headers=jwt_headers(owner.id, User.ROLE_TECHNICIAN)).get_json()['password'] == '1234-unlock'
    hidden = client.get(url, headers=jwt_headers(other.id, User.ROLE_TECHNICIAN))
    assert hidden.status_code == 200
    assert hidden.get_json()['password'] is None

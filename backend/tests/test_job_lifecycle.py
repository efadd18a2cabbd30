from repairdesk.models.job import Job
from repairdesk.services.notifications import JOB_COMPLETED, JOB_CREATED
from tests.test_utils_seed import ensure_customer, reload
from tests.test_lifecycle_helpers import create_job, assert_transition, walk, admin_headers


def test_create_emits_job_created(client, notifier):
    job = create_job(client)
    created = notifier.of_kind(JOB_CREATED)
    assert len(created) == 1
    assert created[0].job_number == job['jobNumber']


def test_received_to_completed_stamps_date_and_notifies_once(client, notifier):
    customer = ensure_customer('0811110001', 'Lifecycle Customer', email='lifecycle@example.com')
    job = create_job(client, customerId=customer.id)
    body = assert_transition(client, job['id'], 'COMPLETED', 200).get_json()
    assert body['completionDate'] is not None
    assert body['version'] == job['version'] + 1
    completed = notifier.of_kind(JOB_COMPLETED)
    assert len(completed) == 1
    assert completed[0].job_id == job['id']
    assert completed[0].email_to == 'lifecycle@example.com'


def test_completed_job_is_locked(client, notifier):
    job = create_job(client)
    walk(client, job['id'], ['DIAGNOSED', 'IN_REPAIR', 'COMPLETED'])
    assert_transition(client, job['id'], 'IN_REPAIR', 409, expected_kind='InvalidStateError')
    assert reload(Job, job['id']).status == 'COMPLETED'
    assert len(notifier.of_kind(JOB_COMPLETED)) == 1


def test_cancelled_job_is_locked(client, notifier):
    job = create_job(client)
    body = assert_transition(client, job['id'], 'CANCELLED', 200).get_json()
    assert body['completionDate'] is not None
    for target in ('DIAGNOSED', 'COMPLETED', 'ON_HOLD'):
        assert_transition(client, job['id'], target, 409, expected_kind='InvalidStateError')
    assert notifier.of_kind(JOB_COMPLETED) == []


def test_same_status_is_rejected(client):
    job = create_job(client)
    resp = assert_transition(client, job['id'], 'RECEIVED', 400, expected_kind='ValidationError')
    assert resp.get_json()['error']['detail'] == 'status unchanged'


def test_received_is_never_a_target(client):
    job = create_job(client)
    walk(client, job['id'], ['DIAGNOSED'])
    assert_transition(client, job['id'], 'RECEIVED', 409, expected_kind='InvalidStateError')


def test_unknown_status_is_validation_error(client):
    job = create_job(client)
    resp = assert_transition(client, job['id'], 'FIXED', 400, expected_kind='ValidationError')
    assert resp.get_json()['error']['field'] == 'newStatus'


def test_on_hold_resumes_to_received(client):
    job = create_job(client)
    held = assert_transition(client, job['id'], 'ON_HOLD', 200).get_json()
    assert held['heldFromStatus'] == 'RECEIVED'
    resumed = assert_transition(client, job['id'], 'RECEIVED', 200).get_json()
    assert resumed['heldFromStatus'] is None


def test_on_hold_resume_follows_origin(client):
    job = create_job(client)
    walk(client, job['id'], ['IN_REPAIR', 'ON_HOLD'])
    # RECEIVED is only allowed when the job was held while RECEIVED
    assert_transition(client, job['id'], 'RECEIVED', 409, expected_kind='InvalidStateError')
    assert_transition(client, job['id'], 'TESTING', 200)


def test_status_history_in_detail(client):
    job = create_job(client)
    walk(client, job['id'], ['DIAGNOSED', 'WAITING_APPROVAL'])
    resp = client.get(f"/jobs/{job['id']}", headers=admin_headers())
    assert resp.status_code == 200
    history = resp.get_json()['statusHistory']
    assert [(h['fromStatus'], h['toStatus']) for h in history] == [
        ('RECEIVED', 'DIAGNOSED'),
        ('DIAGNOSED', 'WAITING_APPROVAL'),
    ]


def test_status_note_is_recorded(client):
    job = create_job(client)
    assert_transition(client, job['id'], 'DIAGNOSED', 200, note='Hash board 2 dead')
    resp = client.get(f"/jobs/{job['id']}/activity", headers=admin_headers())
    entries = [a for a in resp.get_json()['data'] if a['action'] == 'JOB.STATUS.CHANGE']
    assert entries[-1]['meta']['note'] == 'Hash board 2 dead'


def test_strict_mode_enforces_forward_flow(client, app_context, monkeypatch):
    monkeypatch.setitem(app_context.config, 'JOB_STATUS_STRICT', True)
    job = create_job(client)
    assert_transition(client, job['id'], 'COMPLETED', 409, expected_kind='InvalidStateError')
    walk(client, job['id'], ['DIAGNOSED', 'WAITING_APPROVAL', 'IN_REPAIR', 'TESTING', 'READY_FOR_PICKUP', 'COMPLETED'])

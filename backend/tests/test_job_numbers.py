import re
from datetime import datetime, timezone
from repairdesk import get_db
from repairdesk.models.job import Job
from repairdesk.services.job_numbers import format_job_number, next_job_number
from tests.test_utils_seed import ensure_user, ensure_customer, ensure_miner_model
from tests.test_lifecycle_helpers import create_job


def test_format_job_number():
    assert format_job_number('RJ', 2025, 1) == 'RJ2025-0001'
    assert format_job_number('RJ', 2025, 12345) == 'RJ2025-12345'


def test_created_jobs_get_sequential_numbers(client):
    first = create_job(client)
    second = create_job(client)
    assert re.fullmatch(r'RJ\d{4}-\d{4,}', first['jobNumber'])
    year_prefix = first['jobNumber'][:7]
    assert second['jobNumber'] == f"{year_prefix}{int(first['jobNumber'][7:]) + 1:04d}"


def test_numbering_restarts_each_year(app_context):
    now = datetime(1999, 3, 1, tzinfo=timezone.utc)
    assert next_job_number(get_db(), 'RJ', now=now) == 'RJ1999-0001'
    assert next_job_number(get_db(), 'ZZ').endswith('-0001')


def test_next_number_follows_largest_sequence(app_context):
    session = get_db()
    customer = ensure_customer()
    model = ensure_miner_model()
    creator = ensure_user('numbering_admin@example.com')
    for number in ('RJ1998-0002', 'RJ1998-9999', 'RJ1998-10000', 'XX1998-20000'):
        session.add(Job(job_number=number, problem_description='Seeded for numbering order',
                        customer_id=customer.id, miner_model_id=model.id, created_by=creator.id))
    session.commit()
    now = datetime(1998, 6, 1, tzinfo=timezone.utc)
    assert next_job_number(session, 'RJ', now=now) == 'RJ1998-10001'
    assert next_job_number(session, 'RJ', now=datetime(1997, 1, 1, tzinfo=timezone.utc)) == 'RJ1997-0001'

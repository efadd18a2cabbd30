from repairdesk.config.pagination import normalize_pagination, MAX_LIMIT
from tests.test_utils_seed import ensure_customer
from tests.test_lifecycle_helpers import create_job, admin_headers, walk
import pytest


def test_pagination_meta(client):
    for _ in range(3):
        create_job(client)
    resp = client.get('/jobs?limit=2&offset=1', headers=admin_headers())
    assert resp.status_code == 200
    body = resp.get_json()
    assert body['pagination']['limit'] == 2
    assert body['pagination']['offset'] == 1
    assert body['pagination']['returned'] == len(body['data']) == 2
    assert body['pagination']['total'] >= 3


def test_page_param_overrides_offset():
    assert normalize_pagination('10', '5', '3') == (10, 20)
    assert normalize_pagination(None, None) == (50, 0)
    assert normalize_pagination('5000', '-4') == (MAX_LIMIT, 0)
    with pytest.raises(ValueError):
        normalize_pagination('abc', None)


def test_invalid_list_params(client):
    headers = admin_headers()
    for query, field in (('status=FIXED', 'status'), ('sort=bogus', 'sort'), ('limit=abc', 'limit'), ('priority=7', 'priority'), ('technicianId=x', 'technicianId')):
        resp = client.get(f'/jobs?{query}', headers=headers)
        assert resp.status_code == 400, query
        assert resp.get_json()['error']['field'] == field


def test_filter_and_search(client):
    customer = ensure_customer('0899990001', 'Searchable Prasert')
    job = create_job(client, customerId=customer.id, serialNumber='SN-SEARCH-XYZ')
    walk(client, job['id'], ['DIAGNOSED'])
    headers = admin_headers()
    by_serial = client.get('/jobs?search=SEARCH-XYZ', headers=headers).get_json()
    assert [j['id'] for j in by_serial['data']] == [job['id']]
    by_name = client.get('/jobs?search=Searchable', headers=headers).get_json()
    assert all(j['customerId'] == customer.id for j in by_name['data'])
    by_status = client.get(f'/jobs?status=DIAGNOSED&customerId={customer.id}', headers=headers).get_json()
    assert [j['id'] for j in by_status['data']] == [job['id']]


def test_sort_by_job_number(client):
    create_job(client)
    create_job(client)
    body = client.get('/jobs?sort=jobNumber&limit=200', headers=admin_headers()).get_json()
    numbers = [j['jobNumber'] for j in body['data']]
    assert numbers == sorted(numbers)


def test_etag_conditional_list(client):
    create_job(client)
    headers = admin_headers()
    first = client.get('/jobs?limit=5', headers=headers)
    assert first.status_code == 200
    etag = first.headers.get('ETag')
    assert etag
    second = client.get('/jobs?limit=5', headers={**headers, 'If-None-Match': etag})
    assert second.status_code == 304
    assert second.headers.get('ETag') == etag
    lm = first.headers.get('Last-Modified')
    if lm:
        third = client.get('/jobs?limit=5', headers={**headers, 'If-Modified-Since': lm})
        assert third.status_code == 304


def test_head_and_detail_validators(client):
    job = create_job(client)
    headers = admin_headers()
    head = client.head('/jobs?limit=5', headers=headers)
    assert head.status_code == 200
    assert head.headers.get('ETag')
    assert head.data == b''
    detail = client.get(f"/jobs/{job['id']}", headers=headers)
    etag = detail.headers.get('ETag')
    assert client.get(f"/jobs/{job['id']}", headers={**headers, 'If-None-Match': etag}).status_code == 304
    walk(client, job['id'], ['DIAGNOSED'])
    changed = client.get(f"/jobs/{job['id']}", headers={**headers, 'If-None-Match': etag})
    assert changed.status_code == 200
    assert changed.headers.get('ETag') != etag


def test_stats_counts(client):
    headers = admin_headers()
    before = client.get('/jobs/stats', headers=headers).get_json()
    job = create_job(client)
    walk(client, job['id'], ['CANCELLED'])
    create_job(client)
    after = client.get('/jobs/stats', headers=headers).get_json()
    assert after['total'] == before['total'] + 2
    assert after['CANCELLED'] == before['CANCELLED'] + 1
    assert after['RECEIVED'] == before['RECEIVED'] + 1
    assert after['active'] == before['active'] + 1

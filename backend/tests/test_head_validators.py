from tests.test_utils_seed import ensure_part, ensure_customer
from tests.test_lifecycle_helpers import admin_headers


def test_head_parts_validators(client):
    ensure_part('HEAD-PART-001', stock_qty=1, min_stock_qty=0)
    headers = admin_headers()
    r = client.head('/parts?limit=5', headers=headers)
    assert r.status_code == 200
    etag = r.headers.get('ETag'); lm = r.headers.get('Last-Modified'); iso = r.headers.get('X-Last-Modified-ISO')
    assert etag and lm and iso
    r2 = client.get('/parts?limit=5', headers={**headers, 'If-None-Match': etag})
    assert r2.status_code == 304
    r3 = client.head('/parts?limit=5', headers={**headers, 'If-None-Match': etag})
    assert r3.status_code == 304


def test_head_single_customer(client):
    customer = ensure_customer('0871112222', 'Head Customer')
    headers = admin_headers()
    r = client.head(f'/customers/{customer.id}', headers=headers)
    assert r.status_code == 200
    assert r.data == b''
    etag = r.headers.get('ETag')
    assert etag
    r2 = client.get(f'/customers/{customer.id}', headers={**headers, 'If-None-Match': etag})
    assert r2.status_code == 304
    assert client.head('/customers/999999', headers=headers).status_code == 404

def test_openapi_lists_operations_with_roles(client):
    resp = client.get('/openapi.json')
    assert resp.status_code == 200
    spec = resp.get_json()
    assert spec['info']['title'] == 'Repair Desk API'
    status_op = spec['paths']['/jobs/{job_id}/status']['patch']
    assert status_op['x-required-roles'] == ['ADMIN', 'MANAGER', 'TECHNICIAN']
    assert status_op['requestBody']['content']['application/json']['schema']['$ref'] == '#/components/schemas/StatusChange'
    assert spec['paths']['/jobs']['get']['x-required-roles'] == []
    assert '201' in spec['paths']['/jobs']['post']['responses']
    assert '/healthz' not in spec['paths']


def test_openapi_component_refs_resolve(client):
    spec = client.get('/openapi.json').get_json()
    schemas = spec['components']['schemas']
    assert set(schemas['Job']['x-terminal']) == {'COMPLETED', 'CANCELLED'}
    assert 'ON_HOLD' in schemas['Job']['x-transitions']
    assert 'JobStatus' in schemas
    for ops in spec['paths'].values():
        for op in ops.values():
            body = op.get('requestBody')
            if body:
                ref = body['content']['application/json']['schema']['$ref']
                assert ref.rsplit('/', 1)[-1] in schemas


def test_docs_page(client):
    resp = client.get('/docs')
    assert resp.status_code == 200
    assert b'redoc' in resp.data


def test_healthz(client):
    assert client.get('/healthz').get_json() == {'status': 'ok'}

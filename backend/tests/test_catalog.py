from tests.test_utils_seed import ensure_miner_model, ensure_warranty
from tests.test_lifecycle_helpers import admin_headers


def test_list_models_by_brand(client):
    model = ensure_miner_model('Whatsminer M30S++', 'MicroBT')
    ensure_miner_model('Antminer S19 Pro', 'Bitmain')
    resp = client.get(f'/catalog/models?brandId={model.brand_id}', headers=admin_headers())
    assert resp.status_code == 200
    body = resp.get_json()
    assert {m['brand'] for m in body['data']} == {'MicroBT'}
    assert model.id in [m['id'] for m in body['data']]
    assert client.get('/catalog/models?brandId=x', headers=admin_headers()).status_code == 400


def test_inactive_warranties_hidden_by_default(client):
    active = ensure_warranty('Catalog Warranty 90', 90)
    retired = ensure_warranty('Catalog Warranty Retired', 60, is_active=False)
    default_ids = [w['id'] for w in client.get('/catalog/warranties', headers=admin_headers()).get_json()['data']]
    assert active.id in default_ids
    assert retired.id not in default_ids
    all_ids = [w['id'] for w in client.get('/catalog/warranties?includeInactive=1', headers=admin_headers()).get_json()['data']]
    assert retired.id in all_ids

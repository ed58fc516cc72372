from onemanvan.app.models import Asset, FieldDefinition
from onemanvan.app.field_types import FieldType
from onemanvan.app.schema_registry import SchemaRegistry
from onemanvan.app.value_store import FieldValueStore

def add_field(app, field_name, **kwargs):
    with app.app_context():
        SchemaRegistry().upsert_definition(FieldDefinition(entity_type='Asset', field_name=field_name, **kwargs))

def test_list_assets_empty(client):
    response = client.get('/assets/')
    assert response.status_code == 200
    assert response.get_json()['assets'] == []

def test_add_asset(client, app):
    response = client.post('/assets/add', data={
        'serial': 'ac-1001',
        'equipment_type': 'Air Conditioner',
        'brand': 'Carrier'
    })
    assert response.status_code == 201
    assert response.get_json()['asset']['serial'] == 'AC-1001'

    with app.app_context():
        asset = Asset.query.filter_by(serial='AC-1001').first()
        assert asset is not None
        assert asset.equipment_type == 'Air Conditioner'

def test_add_asset_invalid_type(client):
    response = client.post('/assets/add', data={'serial': 'X1', 'equipment_type': 'Toaster'})
    assert response.status_code == 400
    assert 'Invalid equipment type' in response.get_json()['error']

def test_duplicate_serial(client):
    client.post('/assets/add', data={'serial': 'DUP-1'})
    response = client.post('/assets/add', data={'serial': 'dup-1'})
    assert response.status_code == 400

def test_search_assets(client):
    client.post('/assets/add', data={'serial': 'HP-001', 'equipment_type': 'Heat Pump'})
    client.post('/assets/add', data={'serial': 'FURN-001', 'equipment_type': 'Gas Furnace'})
    client.post('/assets/add', data={'serial': 'HP-002', 'equipment_type': 'Heat Pump', 'status': 'Retired'})

    serials = [a['serial'] for a in client.get('/assets/?q=HP').get_json()['assets']]
    assert serials == ['HP-001', 'HP-002']

    serials = [a['serial'] for a in client.get('/assets/?equipment_type=Gas+Furnace').get_json()['assets']]
    assert serials == ['FURN-001']

    serials = [a['serial'] for a in client.get('/assets/?status=Retired').get_json()['assets']]
    assert serials == ['HP-002']

def test_required_custom_field_blocks_asset(client, app):
    add_field(app, 'RefrigerantNotes', is_required=True)

    response = client.post('/assets/add', data={'serial': 'AC-2000'})
    assert response.status_code == 400
    assert response.get_json()['missing'] == ['RefrigerantNotes']

    with app.app_context():
        assert Asset.query.count() == 0

    response = client.post('/assets/add', data={
        'serial': 'AC-2000',
        'custom_field_RefrigerantNotes': 'R410A, low charge'
    })
    assert response.status_code == 201
    asset_id = response.get_json()['asset']['id']

    with app.app_context():
        assert FieldValueStore().get_values('Asset', asset_id) == {'RefrigerantNotes': 'R410A, low charge'}

def test_custom_fields(client, app):
    add_field(app, 'Warranty', field_type=FieldType.CHOICE, choice_options=['1yr', '5yr', '10yr'])
    add_field(app, 'Installed', field_type=FieldType.DATE)
    add_field(app, 'Ducted', field_type=FieldType.YES_NO)

    response = client.post('/assets/add', data={
        'serial': 'HP-003',
        'custom_field_Warranty': '5yr',
        'custom_field_Installed': '2025-12-31',
        'custom_field_Ducted': 'on'
    })
    asset_id = response.get_json()['asset']['id']

    fields = {f['field_name']: f for f in client.get(f'/assets/{asset_id}').get_json()['custom_fields']}
    assert fields['Warranty']['value'] == '5yr'
    assert fields['Installed']['value'] == '2025-12-31'
    assert fields['Ducted']['value'] == 'Yes'

def test_edit_asset_keeps_stale_choice(client, app):
    add_field(app, 'Warranty', field_type=FieldType.CHOICE, choice_options=['1yr', '15yr'])
    response = client.post('/assets/add', data={'serial': 'B-1', 'custom_field_Warranty': '15yr'})
    asset_id = response.get_json()['asset']['id']

    # Option set changes after the value was saved
    add_field(app, 'Warranty', field_type=FieldType.CHOICE, choice_options=['1yr', '5yr', '10yr'])

    response = client.post(f'/assets/{asset_id}/edit', data={'brand': 'Lennox'})
    assert response.status_code == 200
    data = response.get_json()
    assert data['asset']['brand'] == 'Lennox'
    assert data['custom_fields'][0]['value'] == '15yr'
    assert data['custom_fields'][0]['is_stale_choice'] is True

def test_edit_asset_clears_value(client, app):
    add_field(app, 'Zone')
    response = client.post('/assets/add', data={'serial': 'Z-1', 'custom_field_Zone': 'Attic'})
    asset_id = response.get_json()['asset']['id']

    client.post(f'/assets/{asset_id}/edit', data={'custom_field_Zone': ''})
    with app.app_context():
        assert not FieldValueStore().get_values('Asset', asset_id).get('Zone')

def test_edit_asset_matches_types_ignoring_case(client, app):
    response = client.post('/assets/add', data={'serial': 'HP-9', 'equipment_type': 'heat pump'})
    asset_id = response.get_json()['asset']['id']

    response = client.post(f'/assets/{asset_id}/edit', data={
        'equipment_type': 'mini split',
        'status': 'retired'
    })
    assert response.status_code == 200
    asset = response.get_json()['asset']
    assert asset['equipment_type'] == 'Mini Split'
    assert asset['status'] == 'Retired'

    response = client.post(f'/assets/{asset_id}/edit', data={'status': 'Scrapped'})
    assert response.status_code == 400
    assert 'Invalid status' in response.get_json()['error']

def test_view_missing_asset(client):
    assert client.get('/assets/999').status_code == 404

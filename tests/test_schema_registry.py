import json
from decimal import Decimal

import pytest

from onemanvan.app import db
from onemanvan.app.errors import DefinitionValidationError
from onemanvan.app.field_types import FieldType
from onemanvan.app.models.custom_field import FieldDefinition
from onemanvan.app.models.customer import Customer

def make_field(field_name, entity_type='Asset', field_type=FieldType.TEXT, **kwargs):
    return FieldDefinition(entity_type=entity_type, field_name=field_name, field_type=field_type, **kwargs)

def test_unknown_entity_type_has_no_definitions(registry):
    assert registry.get_definitions('Spaceship') == []

def test_definitions_are_ordered(registry):
    registry.upsert_definition(make_field('Zone', display_order=2))
    registry.upsert_definition(make_field('Filter', display_order=1))
    registry.upsert_definition(make_field('Airflow', display_order=2))

    names = [d.field_name for d in registry.get_definitions('Asset')]
    assert names == ['Filter', 'Airflow', 'Zone']

def test_new_fields_are_appended(registry):
    first = registry.upsert_definition(make_field('Tonnage'))
    second = registry.upsert_definition(make_field('Refrigerant'))
    assert first.display_order == 1
    assert second.display_order == 2

def test_label_defaults_to_field_name(registry):
    field = registry.upsert_definition(make_field('GateCode', entity_type='Customer'))
    assert field.display_label == 'GateCode'

def test_upsert_updates_existing(registry):
    registry.upsert_definition(make_field('Tonnage', display_label='Tons'))
    registry.upsert_definition(make_field('Tonnage', display_label='Tonnage (tons)', is_required=True))

    definitions = registry.get_definitions('Asset')
    assert len(definitions) == 1
    assert definitions[0].display_label == 'Tonnage (tons)'
    assert definitions[0].is_required is True
    assert definitions[0].modified_at is not None

def test_entity_types_are_separate(registry):
    registry.upsert_definition(make_field('Notes', entity_type='Asset'))
    registry.upsert_definition(make_field('Notes', entity_type='Customer'))
    assert len(registry.get_definitions('Asset')) == 1
    assert len(registry.get_definitions('Customer')) == 1

@pytest.mark.parametrize('name', ['', '   ', None])
def test_blank_field_name_is_rejected(registry, name):
    with pytest.raises(DefinitionValidationError):
        registry.upsert_definition(make_field(name))
    assert registry.get_definitions('Asset') == []

def test_case_insensitive_duplicate_is_rejected(registry):
    registry.upsert_definition(make_field('SerialTag'))
    with pytest.raises(DefinitionValidationError) as excinfo:
        registry.upsert_definition(make_field('serialtag'))
    assert 'already exists' in str(excinfo.value)
    assert [d.field_name for d in registry.get_definitions('Asset')] == ['SerialTag']

def test_choice_without_options_is_rejected(registry):
    with pytest.raises(DefinitionValidationError):
        registry.upsert_definition(make_field('Warranty', field_type=FieldType.CHOICE))
    with pytest.raises(DefinitionValidationError):
        registry.upsert_definition(make_field('Warranty', field_type=FieldType.CHOICE, choice_options=['', '  ']))
    assert registry.get_definitions('Asset') == []
    assert registry.field_counts() == {}

def test_choice_options_keep_their_order(registry):
    field = registry.upsert_definition(
        make_field('Warranty', field_type=FieldType.CHOICE, choice_options=['1yr', ' 5yr ', '10yr'])
    )
    assert field.choice_options == ['1yr', '5yr', '10yr']

def test_options_are_dropped_for_other_types(registry):
    field = registry.upsert_definition(make_field('Notes', choice_options=['a', 'b']))
    assert field.options == []
    assert field.choice_options == []

def test_deactivate_hides_definition(registry):
    registry.upsert_definition(make_field('Legacy'))
    assert registry.deactivate('Asset', 'Legacy') is True
    assert registry.get_definitions('Asset') == []
    assert registry.deactivate('Asset', 'Legacy') is False

def test_deactivated_name_can_be_reused(registry):
    registry.upsert_definition(make_field('Zone'))
    registry.deactivate('Asset', 'Zone')
    registry.upsert_definition(make_field('zone'))
    assert [d.field_name for d in registry.get_definitions('Asset')] == ['zone']

def test_field_counts_and_grouping(registry):
    registry.upsert_definition(make_field('A'))
    registry.upsert_definition(make_field('B'))
    registry.upsert_definition(make_field('C', entity_type='Customer'))
    registry.deactivate('Asset', 'B')

    assert registry.field_counts() == {'Asset': 1, 'Customer': 1}
    grouped = registry.get_all_definitions()
    assert [d.field_name for d in grouped['Asset']] == ['A']

def test_reorder(registry):
    for name in ('One', 'Two', 'Three'):
        registry.upsert_definition(make_field(name))
    fields = registry.reorder('Asset', ['Three', 'Missing', 'One', 'Two'])
    assert [f.field_name for f in fields] == ['Three', 'One', 'Two']

def test_export_and_import(registry):
    registry.upsert_definition(
        make_field('Warranty', field_type=FieldType.CHOICE, choice_options=['1yr', '5yr'], is_required=True)
    )
    exported = registry.export_definitions()
    data = json.loads(exported)
    assert data[0]['field_name'] == 'Warranty'
    assert data[0]['choice_options'] == ['1yr', '5yr']

    # Existing fields are skipped unless overwriting
    assert registry.import_definitions(exported) == 0

    data[0]['display_label'] = 'Warranty Term'
    data.append({'entity_type': 'Customer', 'field_name': 'GateCode', 'field_type': 'Text'})
    assert registry.import_definitions(json.dumps(data), overwrite_existing=True) == 2

    assert registry.get_definition('Asset', 'Warranty').display_label == 'Warranty Term'
    assert registry.get_definition('Customer', 'GateCode') is not None

def test_import_accepts_legacy_type_names(registry):
    text = json.dumps([{'entity_type': 'Asset', 'field_name': 'Ducted', 'field_type': 'Boolean'}])
    assert registry.import_definitions(text) == 1
    assert registry.get_definition('Asset', 'Ducted').type is FieldType.YES_NO

def test_invalid_import_writes_nothing(registry):
    text = json.dumps([
        {'entity_type': 'Asset', 'field_name': 'Good', 'field_type': 'Text'},
        {'entity_type': 'Asset', 'field_name': 'Bad', 'field_type': 'Choice', 'choice_options': []},
    ])
    with pytest.raises(DefinitionValidationError):
        registry.import_definitions(text)
    assert registry.get_definitions('Asset') == []

def test_import_rejects_duplicates_in_one_file(registry):
    text = json.dumps([
        {'entity_type': 'Asset', 'field_name': 'Zone', 'field_type': 'Text'},
        {'entity_type': 'Asset', 'field_name': 'ZONE', 'field_type': 'Text'},
    ])
    with pytest.raises(DefinitionValidationError):
        registry.import_definitions(text)

def test_import_rejects_garbage(registry):
    with pytest.raises(DefinitionValidationError):
        registry.import_definitions('not json')
    with pytest.raises(DefinitionValidationError):
        registry.import_definitions(json.dumps([{'entity_type': 'Asset', 'field_name': 'X', 'field_type': 'Lookup'}]))
    with pytest.raises(DefinitionValidationError):
        registry.import_definitions('{}')
    with pytest.raises(DefinitionValidationError):
        registry.import_definitions('{"entity_type": "Asset", "field_name": "X"}')

def test_limits_survive_export_and_import(registry):
    text = json.dumps([
        {'entity_type': 'Asset', 'field_name': 'Tonnage', 'field_type': 'Number',
         'min_value': 0.5, 'max_value': 5},
        {'entity_type': 'Asset', 'field_name': 'Notes', 'field_type': 'Text', 'max_length': 200},
    ])
    assert registry.import_definitions(text) == 2

    exported = json.loads(registry.export_definitions())
    tonnage = next(d for d in exported if d['field_name'] == 'Tonnage')
    assert Decimal(tonnage['max_value']) == Decimal('5')
    assert Decimal(tonnage['min_value']) == Decimal('0.5')
    assert tonnage['max_length'] is None

    registry.deactivate('Asset', 'Tonnage')
    registry.deactivate('Asset', 'Notes')
    assert registry.import_definitions(json.dumps(exported)) == 2
    assert registry.get_definition('Asset', 'Tonnage').max_value == Decimal('5')
    assert registry.get_definition('Asset', 'Tonnage').min_value == Decimal('0.5')
    assert registry.get_definition('Asset', 'Notes').max_length == 200

def test_upsert_updates_limits(registry):
    registry.upsert_definition(make_field('Tonnage', field_type=FieldType.NUMBER, max_value='5'))
    registry.upsert_definition(make_field('Tonnage', field_type=FieldType.NUMBER, max_value='7.5'))
    assert registry.get_definition('Asset', 'Tonnage').max_value == Decimal('7.5')

def test_inconsistent_limits_are_rejected(registry):
    with pytest.raises(DefinitionValidationError):
        registry.upsert_definition(make_field('Tonnage', field_type=FieldType.NUMBER, min_value=10, max_value=5))
    with pytest.raises(DefinitionValidationError):
        registry.upsert_definition(make_field('Notes', max_length=0))
    with pytest.raises(ValueError):
        make_field('Tonnage', field_type=FieldType.NUMBER, max_value='lots')

def test_rejected_upsert_keeps_callers_pending_changes(registry):
    db.session.add(Customer(name='Pending Customer'))
    with pytest.raises(DefinitionValidationError):
        registry.upsert_definition(make_field('Warranty', field_type=FieldType.CHOICE))
    db.session.commit()
    assert Customer.query.filter_by(name='Pending Customer').count() == 1

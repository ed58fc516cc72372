from flask import request, jsonify, Blueprint, make_response
from onemanvan.app.errors import DefinitionValidationError
from onemanvan.app.forms import CustomFieldForm
from onemanvan.app.models.custom_field import FieldDefinition
from onemanvan.app.schema_registry import SchemaRegistry

settings_bp = Blueprint('settings', __name__)

@settings_bp.route('/custom_fields')
def list_custom_fields():
    registry = SchemaRegistry()
    entity_type = request.args.get('entity_type')
    if entity_type:
        fields = registry.get_definitions(entity_type)
        return jsonify({'entity_type': entity_type, 'fields': [f.to_dict() for f in fields]})

    grouped = registry.get_all_definitions()
    return jsonify({
        'fields': {name: [f.to_dict() for f in fields] for name, fields in grouped.items()}
    })

@settings_bp.route('/custom_fields/counts')
def custom_field_counts():
    return jsonify(SchemaRegistry().field_counts())

@settings_bp.route('/custom_fields/add', methods=['POST'])
def add_custom_field():
    form = CustomFieldForm()
    if not form.validate_on_submit():
        return jsonify({'error': 'Invalid custom field', 'errors': form.errors}), 400

    try:
        field = FieldDefinition(
            entity_type=form.entity_type.data,
            field_name=form.field_name.data,
            field_type=form.field_type.data,
            display_label=form.display_label.data,
            is_required=form.is_required.data,
            default_value=form.default_value.data or None,
            placeholder=form.placeholder.data or None,
            description=form.description.data or None,
            choice_options=form.option_list(),
            min_value=form.min_value.data,
            max_value=form.max_value.data,
            max_length=form.max_length.data,
            display_order=form.display_order.data,
        )
        field = SchemaRegistry().upsert_definition(field)
    except DefinitionValidationError as e:
        return jsonify({'error': str(e), 'errors': e.errors}), 400
    except ValueError as e:
        return jsonify({'error': str(e)}), 400

    return jsonify({'field': field.to_dict()}), 201

@settings_bp.route('/custom_fields/<entity_type>/<field_name>/deactivate', methods=['POST'])
def deactivate_custom_field(entity_type, field_name):
    if not SchemaRegistry().deactivate(entity_type, field_name):
        return jsonify({'error': f"No active field '{field_name}' for {entity_type}"}), 404
    return jsonify({'status': 'success'})

@settings_bp.route('/custom_fields/<entity_type>/reorder', methods=['POST'])
def reorder_custom_fields(entity_type):
    field_names = request.get_json(silent=True)
    if not isinstance(field_names, list):
        return jsonify({'error': 'Expected a list of field names'}), 400
    fields = SchemaRegistry().reorder(entity_type, [str(name) for name in field_names])
    return jsonify({'entity_type': entity_type, 'fields': [f.to_dict() for f in fields]})

@settings_bp.route('/custom_fields/export')
def export_custom_fields():
    response = make_response(SchemaRegistry().export_definitions())
    response.headers["Content-Disposition"] = "attachment; filename=custom_fields.json"
    response.headers["Content-type"] = "application/json"
    return response

@settings_bp.route('/custom_fields/import', methods=['POST'])
def import_custom_fields():
    overwrite = request.args.get('overwrite', '').lower() in ('1', 'true', 'yes')
    try:
        imported = SchemaRegistry().import_definitions(request.get_data(as_text=True), overwrite)
    except DefinitionValidationError as e:
        return jsonify({'error': str(e), 'errors': e.errors}), 400
    return jsonify({'imported': imported})

# app/routes/assets.py
import logging
import os

from flask import request, jsonify
from sqlalchemy.exc import IntegrityError
from onemanvan.app import db
from onemanvan.app.editing import CustomFieldEditor
from onemanvan.app.models import Asset, AssetStatus, EntityType, EquipmentType
from onemanvan.app.models.asset import _match
from onemanvan.app.routes import assets_bp as bp, CUSTOM_FIELD_PREFIX

logger = logging.getLogger(__name__)
logger.setLevel(os.environ.get("ONEMANVAN_LOG_LEVEL", "INFO"))

def _missing_response(missing):
    labels = ', '.join(f"'{label}'" for label in missing)
    return jsonify({'error': f"Required fields are missing: {labels}", 'missing': missing}), 400

def _asset_response(asset, editor, status=200):
    return jsonify({
        'asset': asset.to_dict(),
        'custom_fields': [s.to_dict() for s in editor.surfaces],
    }), status

@bp.route('/')
def list_assets():
    query = request.args.get('q', '')
    equipment_type = request.args.get('equipment_type', '')
    status = request.args.get('status', '')

    assets_query = Asset.query

    if query:
        assets_query = assets_query.filter(Asset.serial.ilike(f'%{query}%'))

    if equipment_type:
        assets_query = assets_query.filter_by(equipment_type=equipment_type)

    if status:
        assets_query = assets_query.filter_by(status=status)

    return jsonify({
        'assets': [a.to_dict() for a in assets_query.order_by(Asset.id).all()],
        'equipment_types': [t.value for t in EquipmentType],
        'statuses': [s.value for s in AssetStatus],
    })

@bp.route('/add', methods=['POST'])
def add_asset():
    editor = CustomFieldEditor(EntityType.ASSET)
    editor.load()
    editor.apply(request.form, prefix=CUSTOM_FIELD_PREFIX)

    # Blank required custom fields block the asset itself from being saved
    missing = editor.validate()
    if missing:
        return _missing_response(missing)

    try:
        asset = Asset(
            serial=request.form['serial'],
            equipment_type=request.form.get('equipment_type'),
            brand=request.form.get('brand'),
            model=request.form.get('model'),
            status=request.form.get('status'),
            customer_id=request.form.get('customer_id', type=int),
        )
        db.session.add(asset)
        db.session.commit()
    except ValueError as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 400
    except IntegrityError:
        db.session.rollback()
        return jsonify({'error': 'An asset with this serial number already exists'}), 400

    # Custom fields are saved against the new id once the asset exists
    editor.save(asset.id)
    logger.info("Created asset %s", asset.serial)
    return _asset_response(asset, editor, 201)

@bp.route('/<int:id>')
def view_asset(id):
    asset = Asset.query.get_or_404(id)
    editor = CustomFieldEditor(EntityType.ASSET)
    editor.load(asset.id)
    return _asset_response(asset, editor)

@bp.route('/<int:id>/edit', methods=['POST'])
def edit_asset(id):
    asset = Asset.query.get_or_404(id)
    editor = CustomFieldEditor(EntityType.ASSET)
    editor.load(asset.id)
    editor.apply(request.form, prefix=CUSTOM_FIELD_PREFIX)

    missing = editor.validate()
    if missing:
        return _missing_response(missing)

    try:
        if 'serial' in request.form:
            serial = request.form['serial'].strip().upper()
            if not serial:
                raise ValueError("Serial number is required")
            asset.serial = serial
        if 'equipment_type' in request.form:
            asset.equipment_type = _match(EquipmentType, request.form['equipment_type'], 'equipment type')
        if 'status' in request.form:
            asset.status = _match(AssetStatus, request.form['status'], 'status')
        for field in ('brand', 'model'):
            if field in request.form:
                setattr(asset, field, request.form[field])
        db.session.commit()
    except ValueError as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 400
    except IntegrityError:
        db.session.rollback()
        return jsonify({'error': 'An asset with this serial number already exists'}), 400

    editor.save(asset.id)
    return _asset_response(asset, editor)

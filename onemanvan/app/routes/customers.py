from flask import request, jsonify
from sqlalchemy.exc import IntegrityError
from onemanvan.app import db
from onemanvan.app.editing import CustomFieldEditor
from onemanvan.app.errors import RequiredFieldsMissing
from onemanvan.app.models import Customer, CustomerType, EntityType
from onemanvan.app.routes import customers_bp as bp, CUSTOM_FIELD_PREFIX

def _customer_response(customer, editor, status=200):
    return jsonify({
        'customer': customer.to_dict(),
        'custom_fields': [s.to_dict() for s in editor.surfaces],
    }), status

def _customer_type(value):
    if not value:
        return CustomerType.RESIDENTIAL.value
    try:
        return next(t for t in CustomerType if t.value.lower() == value.strip().lower()).value
    except StopIteration:
        raise ValueError(f"Invalid customer type: {value}")

@bp.route('/')
def list_customers():
    customers = Customer.query.order_by(Customer.name).all()
    return jsonify({'customers': [c.to_dict() for c in customers]})

@bp.route('/add', methods=['POST'])
def add_customer():
    editor = CustomFieldEditor(EntityType.CUSTOMER)
    editor.load()
    editor.apply(request.form, prefix=CUSTOM_FIELD_PREFIX)

    missing = editor.validate()
    if missing:
        return jsonify({'error': str(RequiredFieldsMissing(missing)), 'missing': missing}), 400

    try:
        customer = Customer(
            name=request.form['name'].strip(),
            email=request.form.get('email') or None,
            phone=request.form.get('phone'),
            customer_type=_customer_type(request.form.get('customer_type')),
        )
        if not customer.name:
            raise ValueError("Customer name is required")
        db.session.add(customer)
        db.session.commit()
    except ValueError as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 400
    except IntegrityError:
        db.session.rollback()
        return jsonify({'error': 'A customer with this email already exists'}), 400

    editor.save(customer.id)
    return _customer_response(customer, editor, 201)

@bp.route('/<int:id>')
def view_customer(id):
    customer = Customer.query.get_or_404(id)
    editor = CustomFieldEditor(EntityType.CUSTOMER)
    editor.load(customer.id)
    return _customer_response(customer, editor)

@bp.route('/<int:id>/edit', methods=['POST'])
def edit_customer(id):
    customer = Customer.query.get_or_404(id)
    editor = CustomFieldEditor(EntityType.CUSTOMER)
    editor.load(customer.id)
    editor.apply(request.form, prefix=CUSTOM_FIELD_PREFIX)

    missing = editor.validate()
    if missing:
        return jsonify({'error': str(RequiredFieldsMissing(missing)), 'missing': missing}), 400

    try:
        for field in ('name', 'phone'):
            if field in request.form:
                setattr(customer, field, request.form[field])
        if 'email' in request.form:
            customer.email = request.form['email'] or None
        if 'customer_type' in request.form:
            customer.customer_type = _customer_type(request.form['customer_type'])
        db.session.commit()
    except ValueError as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 400
    except IntegrityError:
        db.session.rollback()
        return jsonify({'error': 'A customer with this email already exists'}), 400

    editor.save(customer.id)
    return _customer_response(customer, editor)

# app/routes/__init__.py
from flask import Blueprint

# Form fields carrying custom field values are named custom_field_<field_name>
CUSTOM_FIELD_PREFIX = 'custom_field_'

# Create blueprints
assets_bp = Blueprint('assets', __name__, url_prefix='/assets')
customers_bp = Blueprint('customers', __name__, url_prefix='/customers')

# Import views after blueprints are created
from . import assets, customers  # noqa: E402,F401

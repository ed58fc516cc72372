# app/models/asset.py
from datetime import datetime
from onemanvan.app import db
from enum import Enum

class AssetStatus(Enum):
    ACTIVE = "Active"
    NEEDS_SERVICE = "Needs Service"
    REPLACED = "Replaced"
    RETIRED = "Retired"

class EquipmentType(Enum):
    UNKNOWN = "Unknown"
    GAS_FURNACE = "Gas Furnace"
    ELECTRIC_FURNACE = "Electric Furnace"
    BOILER = "Boiler"
    WATER_HEATER = "Water Heater"
    AIR_CONDITIONER = "Air Conditioner"
    HEAT_PUMP = "Heat Pump"
    MINI_SPLIT = "Mini Split"
    AIR_HANDLER = "Air Handler"
    THERMOSTAT = "Thermostat"
    OTHER = "Other"

def _match(enum_class, value, label):
    if isinstance(value, enum_class):
        return value.value
    try:
        # Try to match the input to an enum value
        return next(m for m in enum_class if m.value.lower() == str(value).strip().lower()).value
    except StopIteration:
        raise ValueError(f"Invalid {label}: {value}")

class Asset(db.Model):
    __tablename__ = 'asset'

    id = db.Column(db.Integer, primary_key=True)
    serial = db.Column(db.String(100), unique=True, nullable=False)
    equipment_type = db.Column(db.String(50), nullable=False, default=EquipmentType.UNKNOWN.value)
    brand = db.Column(db.String(100))
    model = db.Column(db.String(100))
    status = db.Column(db.String(20), default=AssetStatus.ACTIVE.value)
    customer_id = db.Column(db.Integer, db.ForeignKey('customer.id'), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    def __init__(self, serial, equipment_type=None, brand=None, model=None, status=None, customer_id=None):
        # Standardize serial (e.g., uppercase, remove extra spaces)
        self.serial = str(serial).strip().upper()
        if not self.serial:
            raise ValueError("Serial number is required")

        self.equipment_type = _match(EquipmentType, equipment_type or EquipmentType.UNKNOWN, 'equipment type')
        self.status = _match(AssetStatus, status or AssetStatus.ACTIVE, 'status')
        self.brand = brand
        self.model = model
        self.customer_id = customer_id

    def to_dict(self):
        return {
            'id': self.id,
            'serial': self.serial,
            'equipment_type': self.equipment_type,
            'brand': self.brand,
            'model': self.model,
            'status': self.status,
            'customer_id': self.customer_id,
        }

    def __repr__(self):
        return f'<Asset {self.serial}: {self.equipment_type} ({self.status})>'

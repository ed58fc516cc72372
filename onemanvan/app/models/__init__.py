# app/models/__init__.py
from onemanvan.app import db

# Import models after db
from .asset import Asset, AssetStatus, EquipmentType
from .customer import Customer, CustomerType
from .custom_field import EntityType, FieldDefinition, FieldValue

__all__ = ['Asset', 'AssetStatus', 'EquipmentType', 'Customer', 'CustomerType',
    'EntityType', 'FieldDefinition', 'FieldValue']

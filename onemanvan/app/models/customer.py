# app/models/customer.py
from onemanvan.app import db
from enum import Enum

class CustomerType(Enum):
    RESIDENTIAL = "Residential"
    COMMERCIAL = "Commercial"
    PROPERTY_MANAGER = "Property Manager"
    GOVERNMENT = "Government"

class Customer(db.Model):
    __tablename__ = 'customer'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(120), unique=True)
    phone = db.Column(db.String(20))
    customer_type = db.Column(db.String(20), default=CustomerType.RESIDENTIAL.value)

    assets = db.relationship('Asset', backref='customer', lazy=True)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'phone': self.phone,
            'customer_type': self.customer_type,
        }

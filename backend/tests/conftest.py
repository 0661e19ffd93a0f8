"""
Pytest fixtures for onboarding backend tests.

Provides test database setup, vendor status fixtures, step drafts, and
test client.
"""

import pytest
from onboarding import create_app
from onboarding.extensions import db
from onboarding.models import VendorStatusRecord
from onboarding.models.vendors import STATUS_CONFIRMED, STATUS_AWAITING_PAYMENT


# Valid check digits
CPF = "52998224725"
CNPJ = "11222333000181"
CPF_MASKED = "529.982.247-25"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'SHEETS_CSV_URL': None,
        'SHEETS_FILE_PATH': None,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()
        app.extensions.pop('onboarding.sheet_source', None)


@pytest.fixture(scope='function')
def confirmed_vendor(db_session):
    """Vendor cleared to onboard, nothing submitted yet."""
    record = VendorStatusRecord(vendor_id=CPF, status=STATUS_CONFIRMED)
    db_session.add(record)
    db_session.commit()
    return record


@pytest.fixture(scope='function')
def pending_vendor(db_session):
    """Vendor still waiting for payment."""
    record = VendorStatusRecord(vendor_id=CNPJ, status=STATUS_AWAITING_PAYMENT)
    db_session.add(record)
    db_session.commit()
    return record


@pytest.fixture
def personal_data():
    return {
        "personType": "PF",
        "cpfCnpj": CPF,
        "fullName": "Maria Silva",
        "email": "maria@example.com",
        "phone": "81999990000",
        "pdvName": "Boteco da Maria",
        "addressFull": "Rua da Aurora, 100",
        "addressCity": "Recife",
        "addressState": "PE",
        "addressZipcode": "50050-000",
    }


@pytest.fixture
def bank_data():
    return {
        "accountType": "corrente",
        "bankName": "Banco do Brasil",
        "agency": "1234",
        "account": "56789-0",
        "holderDoc": CPF,
        "holderName": "Maria Silva",
        "pixKey": "maria@example.com",
    }


@pytest.fixture
def equipment_data():
    return {
        "items": [
            {"name": "Fritadeira", "qty": 2},
            {"name": "Freezer", "qty": 1},
        ],
        "outlets110": 2,
        "outlets220": 1,
        "otherOutletsQty": 0,
        "otherOutletsLabel": "",
        "notes": "Chegada às 14h",
    }


@pytest.fixture
def menu_data():
    return {
        "machinesQty": 3,
        "categories": [
            {
                "name": "Petiscos",
                "products": [
                    {"name": "Coxinha", "price": 7.9},
                    {"name": "Pastel", "price": 12.5},
                ],
            },
            {
                "name": "Bebidas",
                "products": [
                    {"name": "Cerveja", "price": 9},
                ],
            },
        ],
    }


@pytest.fixture
def banner_data():
    return {"banner_name": "Boteco da Maria", "theme": "neon", "accent": "blue"}


@pytest.fixture
def drafts(personal_data, bank_data, equipment_data, menu_data, banner_data):
    """All five step drafts, keyed the way submit() takes them."""
    return {
        "personal": personal_data,
        "bank": bank_data,
        "equipment": equipment_data,
        "menu": menu_data,
        "banner": banner_data,
    }

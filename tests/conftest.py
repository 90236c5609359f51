import pytest
from datetime import date, timedelta
from decimal import Decimal
import uuid

from otica import create_app
from otica.database import create_all, drop_all, get_session
from otica.models import AppUser, Customer, Product
from otica.services.quote_service import create_quote


@pytest.fixture(scope='session')
def app():
    """Create application instance for testing."""
    return create_app('config.TestConfig')


@pytest.fixture(scope='function', autouse=True)
def clean_db(app):
    """Recreate every table so each test starts from an empty database."""
    get_session().remove()
    drop_all()
    create_all()
    yield
    get_session().remove()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def session():
    """Database session for testing."""
    session = get_session()
    yield session
    session.rollback()


@pytest.fixture(scope='function')
def user(session):
    """Create a back-office user (password: password123)."""
    suffix = str(uuid.uuid4())[:8]
    user = AppUser(
        email=f'vendedor-{suffix}@test.com',
        full_name='Vendedor Teste',
        active=True
    )
    user.set_password('password123')
    session.add(user)
    session.commit()
    return user


@pytest.fixture(scope='function')
def customer(session):
    """Create a customer."""
    customer = Customer(full_name='Maria Silva', cpf='123.456.789-00', phone='11999990000')
    session.add(customer)
    session.commit()
    return customer


@pytest.fixture(scope='function')
def product(session):
    """Create a frame with 10 units in stock, sold at 200.00."""
    product = Product(
        name='Armação Ray-Ban RB5154',
        sku=f'RB-{str(uuid.uuid4())[:8]}',
        brand='Ray-Ban',
        cost_price=Decimal('90.00'),
        sale_price=Decimal('200.00'),
        stock_quantity=10,
        is_active=True
    )
    session.add(product)
    session.commit()
    return product


@pytest.fixture(scope='function')
def lens(session):
    """Create a lens with only 2 units in stock."""
    lens = Product(
        name='Lente Multifocal',
        sku=f'LM-{str(uuid.uuid4())[:8]}',
        cost_price=Decimal('150.00'),
        sale_price=Decimal('350.00'),
        stock_quantity=2,
        is_active=True
    )
    session.add(lens)
    session.commit()
    return lens


@pytest.fixture(scope='function')
def quote(session, user, customer, product):
    """Create a pending quote: 3 x 200.00 = 600.00, valid for 15 days."""
    return create_quote(
        {'customer_id': customer.id, 'valid_until': (date.today() + timedelta(days=15)).isoformat()},
        [{'product_id': product.id, 'quantity': 3, 'unit_price': '200.00'}],
        session,
        user_id=user.id
    )


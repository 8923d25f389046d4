import pytest
from datetime import datetime
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from api.deps import get_session
from api.server import app
from db.session import drop_db, init_db, make_engine
from services.companies import create_company
from services.products import create_product


@pytest.fixture
def engine():
	engine = make_engine('sqlite://', echo=False)
	init_db(engine)
	yield engine
	drop_db(engine)
	engine.dispose()


@pytest.fixture
def session(engine):
	Session = sessionmaker(bind=engine, expire_on_commit=False)
	s = Session()
	yield s
	s.close()


@pytest.fixture
def company(session):
	return create_company(session, 'user-1', 'Loja Teste', '12345678000190')


@pytest.fixture
def product_factory(session, company):
	def make(name='Camiseta', sale_price=50.0, cost_price=20.0, stock_quantity=10, category=None):
		return create_product(session, company.id, name, sale_price, cost_price, stock_quantity, category)
	return make


@pytest.fixture
def now():
	return datetime(2025, 3, 15, 12, 0, 0)


@pytest.fixture
def client(engine):
	Session = sessionmaker(bind=engine, expire_on_commit=False)

	def override():
		s = Session()
		try:
			yield s
		finally:
			s.close()

	app.dependency_overrides[get_session] = override
	yield TestClient(app)
	app.dependency_overrides.clear()

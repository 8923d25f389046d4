import pytest
from datetime import datetime
from db.models import Sale
from services.sales import SaleItem, list_sales, record_sale, sales_frame
from services.stock import list_stock_entries, record_stock_entry
from utils.exceptions import NotFoundError, ValidationError


def test_record_sale_decrements_stock(session, company, product_factory):
	p = product_factory(stock_quantity=10, sale_price=50.0)
	created = record_sale(session, company.id, [SaleItem(p.id, 3), SaleItem(p.id, 2, 45.0)])
	assert len(created) == 1
	assert created[0].quantity == 5
	assert created[0].total == 250.0
	session.refresh(p)
	assert p.stock_quantity == 5


def test_insufficient_stock_writes_nothing(session, company, product_factory):
	a = product_factory(name='A', stock_quantity=10)
	b = product_factory(name='B', stock_quantity=1)
	with pytest.raises(ValidationError):
		record_sale(session, company.id, [SaleItem(a.id, 2), SaleItem(b.id, 5)])
	assert session.query(Sale).count() == 0
	session.refresh(a)
	assert a.stock_quantity == 10


def test_sale_validation(session, company, product_factory):
	p = product_factory()
	with pytest.raises(ValidationError):
		record_sale(session, company.id, [])
	with pytest.raises(ValidationError):
		record_sale(session, company.id, [SaleItem(p.id, 0)])
	with pytest.raises(NotFoundError):
		record_sale(session, company.id, [SaleItem('missing', 1)])


def test_list_sales_filters(session, company, product_factory):
	a = product_factory(name='A', stock_quantity=10)
	b = product_factory(name='B', stock_quantity=10)
	record_sale(session, company.id, [SaleItem(a.id, 1)], sold_at=datetime(2025, 1, 5))
	record_sale(session, company.id, [SaleItem(b.id, 1)], sold_at=datetime(2025, 2, 5))
	assert len(list_sales(session, company.id)) == 2
	assert len(list_sales(session, company.id, start=datetime(2025, 2, 1))) == 1
	assert [s.product_id for s in list_sales(session, company.id, product_id=a.id)] == [a.id]

	frame = sales_frame(session, company.id)
	assert list(frame['product_name']) == ['A', 'B']


def test_stock_entry_increments(session, company, product_factory):
	p = product_factory(stock_quantity=4)
	record_stock_entry(session, company.id, p.id, 6, notes='fornecedor')
	session.refresh(p)
	assert p.stock_quantity == 10
	entries = list_stock_entries(session, company.id)
	assert len(entries) == 1
	assert entries[0].product.name == p.name
	with pytest.raises(ValidationError):
		record_stock_entry(session, company.id, p.id, 0)

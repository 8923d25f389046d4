import base64
from datetime import timedelta
from db.models import utcnow


def _company(client):
	r = client.post('/api/companies', json={'user_id': 'u1', 'name': 'Loja', 'cnpj': '12345678000190'})
	assert r.status_code == 201
	return r.json()['id']


def _product(client, cid, **kw):
	body = {'name': 'Caneca', 'sale_price': 10.0, 'cost_price': 4.0, 'stock_quantity': 10}
	body.update(kw)
	r = client.post(f'/api/companies/{cid}/products', json=body)
	assert r.status_code == 201
	return r.json()


def test_health_and_index(client):
	assert client.get('/api/health').json() == {'success': True, 'status': 'ok'}
	assert client.get('/').status_code == 200


def test_company_and_products(client):
	cid = _company(client)
	assert client.get('/api/companies', params={'user_id': 'u1'}).json()['count'] == 1

	p = _product(client, cid)
	assert p['margin'] == 60.0
	assert p['category'] == 'Geral'

	r = client.put(f'/api/companies/{cid}/products/{p["id"]}', json={'sale_price': 20.0})
	assert r.json()['sale_price'] == 20.0
	assert client.get(f'/api/companies/{cid}/products', params={'search': 'can'}).json()['count'] == 1

	assert client.delete(f'/api/companies/{cid}/products/{p["id"]}').json() == {'success': True}
	r = client.delete(f'/api/companies/{cid}/products/{p["id"]}')
	assert r.status_code == 404
	assert r.json()['success'] is False


def test_sales_and_stock(client):
	cid = _company(client)
	p = _product(client, cid, stock_quantity=3)

	r = client.post(f'/api/companies/{cid}/sales', json={'items': [{'product_id': p['id'], 'quantity': 5}]})
	assert r.status_code == 400
	assert r.json()['success'] is False
	assert 'Insufficient stock' in r.json()['error']

	r = client.post(f'/api/companies/{cid}/stock-entries', json={'product_id': p['id'], 'quantity': 7})
	assert r.status_code == 201
	assert r.json()['product_name'] == 'Caneca'

	r = client.post(f'/api/companies/{cid}/sales', json={'items': [{'product_id': p['id'], 'quantity': 5}]})
	assert r.status_code == 201
	assert r.json()['total'] == 50.0

	products = client.get(f'/api/companies/{cid}/products').json()['rows']
	assert products[0]['stock_quantity'] == 5
	assert client.get(f'/api/companies/{cid}/sales').json()['count'] == 1
	assert client.get(f'/api/companies/{cid}/stock-entries').json()['count'] == 1


def test_goals(client):
	cid = _company(client)
	body = {'target': 100, 'start': '2025-01-01T00:00:00', 'end': '2025-01-31T23:59:59'}
	r = client.post(f'/api/companies/{cid}/goals', json=body)
	assert r.status_code == 201
	gid = r.json()['id']
	assert r.json()['kind'] == 'vendas'

	r = client.put(f'/api/companies/{cid}/goals/{gid}', json={'end': '2024-12-01T00:00:00'})
	assert r.status_code == 400
	assert client.get(f'/api/companies/{cid}/goals').json()['count'] == 1
	assert client.delete(f'/api/companies/{cid}/goals/{gid}').status_code == 200


def test_forecast_alerts_dashboard(client):
	cid = _company(client)
	p = _product(client, cid, stock_quantity=97)
	today = utcnow().replace(microsecond=0)
	for days_ago in range(1, 9):
		sold_at = (today - timedelta(days=days_ago)).isoformat()
		client.post(f'/api/companies/{cid}/sales', json={'items': [{'product_id': p['id'], 'quantity': 12}], 'sold_at': sold_at})

	r = client.post('/api/forecasts', json={'company_id': cid})
	assert r.status_code == 200
	data = r.json()
	assert data['success'] is True
	assert len(data['forecast']) == 7
	assert data['trend']['direction'] == 'decline'
	suggestion = data['reorder_suggestions'][0]
	assert suggestion['average_daily_sales'] == 3.2
	assert suggestion['days_remaining'] == 0.3

	assert client.get(f'/api/companies/{cid}/forecasts').json()['count'] == 7

	alerts = client.get(f'/api/companies/{cid}/alerts', params={'kind': 'low_stock'}).json()
	assert alerts['count'] == 1
	assert alerts['alerts'][0]['priority'] == 'high'

	dash = client.get(f'/api/companies/{cid}/dashboard').json()
	assert dash['total_sales'] == 960.0
	assert len(dash['sales_trend']) == 7


def test_reports_and_uploads(client):
	cid = _company(client)
	r = client.post('/api/reports', json={'company_id': cid, 'period': 'mensal'})
	assert r.status_code == 200
	assert r.json()['url_pdf'].startswith(f'relatorio-{cid}-')
	assert r.json()['summary']['sale_count'] == 0
	assert client.get(f'/api/companies/{cid}/reports').json()['count'] == 1

	content = base64.b64encode(b'nome,preco,quantidade\nCaneca,9.9,4\n').decode()
	r = client.post('/api/uploads', json={'company_id': cid, 'file_content': content, 'file_type': 'csv'})
	assert r.status_code == 200
	assert r.json()['products_created'] == 1

	r = client.post('/api/uploads', json={'company_id': cid, 'file_content': content, 'file_type': 'pdf'})
	assert r.status_code == 422


def test_unknown_company_is_404(client):
	r = client.post('/api/forecasts', json={'company_id': 'missing'})
	assert r.status_code == 404
	assert r.json() == {'success': False, 'error': 'Company missing not found'}


def test_webhook_rejects_bad_signature(client):
	from api.deps import get_billing_service
	from api.server import app
	from services.billing import BillingService

	app.dependency_overrides[get_billing_service] = lambda: BillingService(api_key='sk', webhook_secret='whsec')
	r = client.post('/api/stripe/webhook', content=b'{}', headers={'Stripe-Signature': 't=1,v1=x'})
	assert r.status_code == 400
	assert r.json()['success'] is False
	assert client.post('/api/subscription-status', json={'user_id': 'u1'}).json()['active'] is False


def test_list_bodies_carry_success(client):
	cid = _company(client)
	for path in ('/api/companies?user_id=u1', f'/api/companies/{cid}/products', f'/api/companies/{cid}/sales',
			f'/api/companies/{cid}/stock-entries', f'/api/companies/{cid}/goals', f'/api/companies/{cid}/forecasts',
			f'/api/companies/{cid}/alerts', f'/api/companies/{cid}/dashboard', f'/api/companies/{cid}/reports'):
		assert client.get(path).json()['success'] is True, path


def test_corrupt_upload_is_400(client):
	cid = _company(client)
	content = base64.b64encode(b'not a workbook').decode()
	r = client.post('/api/uploads', json={'company_id': cid, 'file_content': content, 'file_type': 'xlsx'})
	assert r.status_code == 400
	assert r.json()['success'] is False


def test_webhook_runs_off_the_event_loop(client):
	import asyncio
	from api.deps import get_billing_service
	from api.server import app

	seen = {}

	class RecordingBilling:
		def handle_webhook(self, session, payload, signature):
			try:
				asyncio.get_running_loop()
				seen['on_loop'] = True
			except RuntimeError:
				seen['on_loop'] = False
			seen['payload'] = payload
			return 'invoice.paid'

	app.dependency_overrides[get_billing_service] = RecordingBilling
	r = client.post('/api/stripe/webhook', content=b'{"id": 1}', headers={'Stripe-Signature': 'sig'})
	assert r.status_code == 200
	assert r.json()['event_type'] == 'invoice.paid'
	assert seen == {'on_loop': False, 'payload': b'{"id": 1}'}

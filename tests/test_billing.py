import pytest
import stripe
from datetime import datetime
from db.models import Subscription
from services.billing import BillingService
from utils.exceptions import BillingError, ValidationError

PERIOD_END = 1767225600  # 2026-01-01 00:00 UTC


@pytest.fixture
def billing():
	return BillingService(api_key='sk_test_123', webhook_secret='whsec_test')


def _event(event_type, obj):
	return {'type': event_type, 'data': {'object': obj}}


def test_checkout_session(session, billing, monkeypatch):
	calls = {}

	def fake_customer(**kwargs):
		calls['customer'] = kwargs
		return {'id': 'cus_1'}

	def fake_checkout(**kwargs):
		calls['checkout'] = kwargs
		return {'id': 'cs_1', 'url': 'https://checkout.example/cs_1'}

	monkeypatch.setattr(stripe.Customer, 'create', fake_customer)
	monkeypatch.setattr(stripe.checkout.Session, 'create', fake_checkout)

	out = billing.create_checkout_session(session, 'user-1', 'a@b.com', 'yearly', 'https://app/ok', 'https://app/cancel')
	assert out == {'checkout_url': 'https://checkout.example/cs_1', 'session_id': 'cs_1'}
	assert calls['customer']['email'] == 'a@b.com'
	assert calls['checkout']['customer'] == 'cus_1'
	assert calls['checkout']['mode'] == 'subscription'
	assert calls['checkout']['metadata'] == {'user_id': 'user-1', 'plan_id': 'yearly'}
	assert calls['checkout']['success_url'] == 'https://app/ok?session_id={CHECKOUT_SESSION_ID}'


def test_checkout_rejects_unknown_plan(session, billing):
	with pytest.raises(ValidationError):
		billing.create_checkout_session(session, 'user-1', 'a@b.com', 'weekly', 'x', 'y')


def test_status_without_subscription(session, billing):
	status = billing.subscription_status(session, 'nobody')
	assert status['active'] is False
	assert status['plan'] is None


def test_webhook_bad_signature_leaves_db_untouched(session, billing):
	with pytest.raises(BillingError):
		billing.handle_webhook(session, b'{"type": "checkout.session.completed"}', 't=1,v1=bogus')
	with pytest.raises(BillingError):
		billing.handle_webhook(session, b'{}', None)
	assert session.query(Subscription).count() == 0


def test_webhook_lifecycle(session, billing, monkeypatch):
	remote = {
		'id': 'sub_1', 'status': 'active', 'cancel_at_period_end': False,
		'items': {'data': [{'current_period_start': PERIOD_END - 86400 * 30, 'current_period_end': PERIOD_END}]},
	}
	events = iter([
		_event('checkout.session.completed', {
			'mode': 'subscription', 'subscription': 'sub_1', 'customer': 'cus_1',
			'metadata': {'user_id': 'user-1', 'plan_id': 'monthly'},
		}),
		_event('customer.subscription.updated', dict(remote, cancel_at_period_end=True)),
		_event('customer.subscription.deleted', remote),
		_event('invoice.paid', {}),
	])
	monkeypatch.setattr(stripe.Webhook, 'construct_event', lambda payload, sig, secret: next(events))
	monkeypatch.setattr(stripe.Subscription, 'retrieve', lambda sub_id, **kwargs: remote)

	assert billing.handle_webhook(session, b'{}', 'sig') == 'checkout.session.completed'
	status = billing.subscription_status(session, 'user-1')
	assert status['active'] is True
	assert status['plan'] == 'monthly'
	assert status['plan_name'] == 'Plano Mensal'
	assert status['amount'] == 12000
	assert status['next_charge'] == datetime(2026, 1, 1)

	billing.handle_webhook(session, b'{}', 'sig')
	status = billing.subscription_status(session, 'user-1')
	assert status['cancel_at_period_end'] is True
	assert status['next_charge'] is None

	billing.handle_webhook(session, b'{}', 'sig')
	assert billing.subscription_status(session, 'user-1')['active'] is False

	assert billing.handle_webhook(session, b'{}', 'sig') == 'invoice.paid'

import pandas as pd
import pytest
from datetime import datetime, timedelta
from agents.alert_agent import (
	AlertAgent, GOAL_REACHED, LOW_STOCK, STALE_PRODUCT, TICKET_CHANGE,
	dismiss, filter_alerts, mark_all_read, mark_read,
)

NOW = datetime(2025, 3, 15, 12, 0)
NO_GOALS = pd.DataFrame(columns=['goal_id', 'kind', 'target', 'start', 'end'])
NO_SALES = pd.DataFrame(columns=['product_id', 'date', 'total'])


def _products(rows):
	return pd.DataFrame(rows, columns=['product_id', 'name', 'current_stock'])


def test_low_stock_priorities():
	alerts = AlertAgent().low_stock(_products([('a', 'A', 3), ('b', 'B', 7), ('c', 'C', 10)]), NOW)
	by_id = {a.id: a for a in alerts}
	assert set(by_id) == {'estoque_a', 'estoque_b'}
	assert by_id['estoque_a'].priority == 'high'
	assert by_id['estoque_b'].priority == 'medium'


def test_ticket_change_needs_more_than_ten_sales():
	sales = pd.DataFrame({
		'product_id': ['a'] * 10,
		'date': [NOW - timedelta(hours=i) for i in range(10)],
		'total': [100.0] * 10,
	})
	assert AlertAgent().ticket_change(sales, NOW) == []


def test_ticket_increase_alert():
	dates = [NOW - timedelta(hours=i) for i in range(20)]
	totals = [150.0] * 10 + [100.0] * 10
	sales = pd.DataFrame({'product_id': ['a'] * 20, 'date': dates, 'total': totals})
	alerts = AlertAgent().ticket_change(sales, NOW)
	assert len(alerts) == 1
	assert alerts[0].kind == TICKET_CHANGE
	assert alerts[0].priority == 'high'
	assert alerts[0].data['variation'] == 50.0


def test_small_ticket_change_is_ignored():
	dates = [NOW - timedelta(hours=i) for i in range(20)]
	totals = [110.0] * 10 + [100.0] * 10
	sales = pd.DataFrame({'product_id': ['a'] * 20, 'date': dates, 'total': totals})
	assert AlertAgent().ticket_change(sales, NOW) == []


def test_goal_reached_uses_raw_progress():
	goals = pd.DataFrame([{
		'goal_id': 'g1', 'kind': 'vendas', 'target': 1000.0,
		'start': datetime(2025, 3, 1), 'end': datetime(2025, 3, 31),
	}])
	sales = pd.DataFrame({
		'product_id': ['a', 'a'],
		'date': [datetime(2025, 3, 2), datetime(2025, 3, 10)],
		'total': [700.0, 500.0],
	})
	alerts = AlertAgent().goals_reached(goals, sales, NOW)
	assert len(alerts) == 1
	assert alerts[0].id == 'meta_g1'
	assert alerts[0].kind == GOAL_REACHED
	assert alerts[0].data['progress'] == pytest.approx(120.0)


def test_stale_products():
	products = _products([('a', 'A', 20), ('b', 'B', 20), ('c', 'C', 0)])
	sales = pd.DataFrame({
		'product_id': ['a', 'b'],
		'date': [NOW - timedelta(days=2), NOW - timedelta(days=45)],
		'total': [10.0, 10.0],
	})
	alerts = AlertAgent().stale_products(products, sales, NOW)
	assert [a.id for a in alerts] == ['parado_b']
	assert alerts[0].kind == STALE_PRODUCT


def test_generate_and_helpers():
	products = _products([('a', 'A', 2)])
	alerts = AlertAgent().generate(products, NO_SALES, NO_GOALS, now=NOW)
	assert {a.kind for a in alerts} == {LOW_STOCK, STALE_PRODUCT}

	alerts = mark_read(alerts, 'estoque_a')
	assert [a.id for a in filter_alerts(alerts, read=False)] == ['parado_a']
	assert [a.id for a in filter_alerts(alerts, kind=LOW_STOCK)] == ['estoque_a']
	assert all(a.read for a in mark_all_read(alerts))
	assert [a.id for a in dismiss(alerts, 'parado_a')] == ['estoque_a']

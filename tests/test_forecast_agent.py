import pandas as pd
import pytest
from datetime import date, timedelta
from agents.forecast_agent import ForecastAgent


def _daily(totals, start='2025-01-01'):
	return pd.DataFrame({
		'date': pd.date_range(start, periods=len(totals), freq='D'),
		'total': totals,
	})


def test_moving_average_values():
	agent = ForecastAgent()
	ma = agent.moving_average(_daily([10, 10, 10, 10, 10, 10, 10, 70]))
	assert len(ma) == 2
	assert ma['average_value'].iloc[0] == pytest.approx(10.0)
	assert ma['average_value'].iloc[1] == pytest.approx(130 / 7)


def test_moving_average_short_input_is_empty():
	agent = ForecastAgent()
	for n in range(7):
		assert agent.moving_average(_daily([5] * n)).empty


def test_moving_average_point_count():
	agent = ForecastAgent()
	assert len(agent.moving_average(_daily(list(range(20))))) == 14


def test_moving_average_requires_columns():
	agent = ForecastAgent()
	with pytest.raises(ValueError):
		agent.moving_average(pd.DataFrame({'date': [], 'units': []}))


def test_forecast_dates_follow_latest_input():
	agent = ForecastAgent()
	points, _ = agent.forecast(_daily([10] * 10))
	assert len(points) == 7
	expected = [date(2025, 1, 10) + timedelta(days=i) for i in range(1, 8)]
	assert list(points['date']) == expected


def test_forecast_clamps_declining_series():
	agent = ForecastAgent()
	points, trend = agent.forecast(_daily([100, 90, 80, 70, 60, 50, 40, 30, 20, 10, 0, 0]))
	assert trend.slope < 0
	assert trend.direction == 'decline'
	assert (points['predicted_value'] >= 0).all()
	assert points['predicted_value'].iloc[-1] == 0


def test_single_average_point_projects_flat():
	agent = ForecastAgent()
	points, trend = agent.forecast(_daily([7] * 7))
	assert trend.slope == 0
	assert trend.n_points == 1
	assert (points['predicted_value'] == 7).all()


def test_no_history_starts_tomorrow():
	agent = ForecastAgent()
	points, trend = agent.forecast(pd.DataFrame(columns=['date', 'total']), today=date(2025, 5, 1))
	assert trend.slope == 0 and trend.intercept == 0
	assert points['date'].iloc[0] == date(2025, 5, 2)
	assert (points['predicted_value'] == 0).all()


def test_growing_series_trend():
	agent = ForecastAgent()
	_, trend = agent.forecast(_daily(list(range(1, 15))))
	assert trend.slope == pytest.approx(1.0)
	assert trend.direction == 'growth'


def test_forecast_never_starts_in_the_past():
	agent = ForecastAgent()
	points, _ = agent.forecast(_daily([10] * 10), today=date(2025, 2, 1))
	assert points['date'].iloc[0] == date(2025, 2, 2)
	assert points['date'].iloc[-1] == date(2025, 2, 8)

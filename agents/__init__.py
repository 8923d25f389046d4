"""Top-level agents package for Analytico.

Pure computations over pandas frames: forecasting, reorder suggestions,
alerts, report aggregation and spreadsheet import validation.
"""

from .forecast_agent import ForecastAgent
from .reorder_agent import ReorderAgent
from .alert_agent import AlertAgent
from .report_agent import ReportAgent
from .import_agent import ImportAgent

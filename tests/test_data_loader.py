import base64
import io
import pandas as pd
import pytest
from utils.data_loader import decode_file_content, load_sales_csv, read_spreadsheet
from utils.preprocess import clean_sales, daily_totals


def test_load_sales_csv(tmp_path):
	p = tmp_path / "sales.csv"
	pd.DataFrame({
		'Data_Venda': ['2025-01-03', '2025-01-01', '2025-01-02'],
		'Quantidade': [1, 2, 3],
		'Total': [10.0, 20.0, 30.0],
	}).to_csv(p, index=False)
	df = load_sales_csv(str(p))
	assert {'date', 'quantity', 'total'}.issubset(df.columns)
	assert df['date'].is_monotonic_increasing


def test_clean_sales_missing_total():
	with pytest.raises(ValueError):
		clean_sales(pd.DataFrame({'date': ['2025-01-01'], 'quantity': [1]}))


def test_daily_totals_groups_by_day():
	sales = pd.DataFrame({
		'date': pd.to_datetime(['2025-01-01 09:00', '2025-01-01 18:00', '2025-01-03 10:00']),
		'total': [10.0, 5.0, 7.0],
	})
	out = daily_totals(sales)
	assert list(out['total']) == [15.0, 7.0]
	assert len(out) == 2


def test_decode_strips_data_url_prefix():
	raw = b'nome,preco\nCaneca,10\n'
	content = 'data:text/csv;base64,' + base64.b64encode(raw).decode()
	assert decode_file_content(content) == raw


def test_read_csv_normalizes_headers():
	df = read_spreadsheet(b' Nome ,PRECO\nCaneca,10\n,\n', 'CSV')
	assert list(df.columns) == ['nome', 'preco']
	assert len(df) == 1


def test_read_xlsx():
	buf = io.BytesIO()
	pd.DataFrame({'Nome': ['Caneca'], 'Preco': [10]}).to_excel(buf, index=False, engine='openpyxl')
	df = read_spreadsheet(buf.getvalue(), 'xlsx')
	assert list(df.columns) == ['nome', 'preco']


def test_read_rejects_unknown_type():
	with pytest.raises(ValueError):
		read_spreadsheet(b'', 'pdf')


def test_read_corrupt_workbooks():
	with pytest.raises(ValueError):
		read_spreadsheet(b'not a workbook', 'xlsx')
	with pytest.raises(ValueError):
		read_spreadsheet(b'not a workbook', 'xls')

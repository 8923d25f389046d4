import pandas as pd
from datetime import datetime
from agents.import_agent import ImportAgent


def test_parse_products():
	df = pd.DataFrame({
		'nome': ['Caneca', '', 'Boné', 'Meia'],
		'preco': ['25,50', '10', '0', 8],
		'quantidade': [4, 1, 2, None],
		'preco_custo': [None, None, None, 3],
		'categoria': [None, None, None, 'Vestuário'],
	})
	result = ImportAgent().parse_products(df)
	assert [r.name for r in result.rows] == ['Caneca', 'Meia']
	caneca, meia = result.rows
	assert caneca.sale_price == 25.5
	assert caneca.cost_price == 25.5 * 0.7
	assert caneca.category == 'Importado'
	assert meia.quantity == 0
	assert meia.cost_price == 3
	assert meia.category == 'Vestuário'
	assert result.errors[0].startswith('Linha 3:')
	assert result.errors[1].startswith('Linha 4:')


def test_parse_sales():
	df = pd.DataFrame({
		'produto_nome': ['Caneca', 'Caneca', 'Boné'],
		'quantidade': [2, 0, 1],
		'preco_unitario': [20, 20, None],
		'data_venda': ['2025-02-10', '2025-02-11', 'not a date'],
	})
	result = ImportAgent().parse_sales(df)
	assert len(result.rows) == 1
	row = result.rows[0]
	assert row.quantity == 2
	assert row.unit_price == 20
	assert row.sold_at == datetime(2025, 2, 10)
	assert [e.split(':')[0] for e in result.errors] == ['Linha 3', 'Linha 4']


def test_fractional_quantities_are_rejected():
	products = ImportAgent().parse_products(pd.DataFrame({'nome': ['Caneca'], 'preco': [10], 'quantidade': ['2,5']}))
	assert products.rows == []
	assert products.errors == ['Linha 2: quantity must be a whole number']

	sales = ImportAgent().parse_sales(pd.DataFrame({'produto_nome': ['Caneca', 'Caneca'], 'quantidade': [2.5, 3]}))
	assert [r.quantity for r in sales.rows] == [3]
	assert sales.rows[0].line == 3
	assert sales.errors == ['Linha 2: quantity must be a whole number']

"""SQLAlchemy models for the hosted database tables.

Python attribute names are English; table and column names match the
database contract (empresas, produtos, vendas, ...).
"""
import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, Date, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def utcnow():
    """Naive UTC timestamp; every stored datetime uses this clock."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id():
    return str(uuid.uuid4())


class Company(Base):
    __tablename__ = 'empresas'

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(64), index=True)
    name = Column('nome', String(255), nullable=False)
    cnpj = Column(String(18), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    products = relationship('Product', back_populates='company', cascade='all, delete-orphan')

    def __repr__(self):
        return f"<Company(id='{self.id}', name='{self.name}')>"


class Product(Base):
    __tablename__ = 'produtos'

    id = Column(String(36), primary_key=True, default=new_id)
    company_id = Column('empresa_id', String(36), ForeignKey('empresas.id'), nullable=False, index=True)
    name = Column('nome', String(255), nullable=False)
    category = Column('categoria', String(100), default='Geral')
    cost_price = Column('preco_custo', Float, default=0.0, nullable=False)
    sale_price = Column('preco_venda', Float, nullable=False)
    stock_quantity = Column('quantidade_estoque', Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    company = relationship('Company', back_populates='products')
    sales = relationship('Sale', back_populates='product', cascade='all, delete-orphan')
    stock_entries = relationship('StockEntry', back_populates='product', cascade='all, delete-orphan')

    def __repr__(self):
        return f"<Product(id='{self.id}', name='{self.name}', stock={self.stock_quantity})>"


class Sale(Base):
    __tablename__ = 'vendas'

    id = Column(String(36), primary_key=True, default=new_id)
    company_id = Column('empresa_id', String(36), ForeignKey('empresas.id'), nullable=False, index=True)
    product_id = Column('produto_id', String(36), ForeignKey('produtos.id'), nullable=False, index=True)
    quantity = Column('quantidade', Integer, nullable=False)
    sold_at = Column('data_venda', DateTime, default=utcnow, nullable=False, index=True)
    unit_price = Column('preco_unitario', Float, nullable=False)
    total = Column(Float, nullable=False)

    product = relationship('Product', back_populates='sales')


class Goal(Base):
    __tablename__ = 'metas'

    id = Column(String(36), primary_key=True, default=new_id)
    company_id = Column('empresa_id', String(36), ForeignKey('empresas.id'), nullable=False, index=True)
    kind = Column('tipo', String(20), nullable=False)
    target = Column('valor', Float, nullable=False)
    period = Column('periodo', String(20), nullable=False)
    start = Column('inicio', DateTime, nullable=False)
    end = Column('fim', DateTime, nullable=False)


class Upload(Base):
    __tablename__ = 'uploads'

    id = Column(String(36), primary_key=True, default=new_id)
    company_id = Column('empresa_id', String(36), ForeignKey('empresas.id'), nullable=False, index=True)
    file_type = Column('tipo_arquivo', String(10), nullable=False)
    url = Column(String(512), nullable=False)
    sent_at = Column('data_envio', DateTime, default=utcnow, nullable=False)


class Report(Base):
    __tablename__ = 'relatorios'

    id = Column(String(36), primary_key=True, default=new_id)
    company_id = Column('empresa_id', String(36), ForeignKey('empresas.id'), nullable=False, index=True)
    pdf_url = Column('url_pdf', String(512), nullable=False)
    reference_period = Column('periodo_referencia', String(20), nullable=False)
    created_at = Column('criado_em', DateTime, default=utcnow, nullable=False)


class Forecast(Base):
    __tablename__ = 'previsoes'

    id = Column(String(36), primary_key=True, default=new_id)
    company_id = Column('empresa_id', String(36), ForeignKey('empresas.id'), nullable=False, index=True)
    product_id = Column('produto_id', String(36), ForeignKey('produtos.id', ondelete='SET NULL'), nullable=True)
    forecast_date = Column('data_previsao', Date, nullable=False)
    estimated_value = Column('valor_estimado', Float, nullable=False)
    kind = Column('tipo', String(20), nullable=False, default='vendas')
    method = Column('metodo', String(30), nullable=False, default='media_movel')


class StockEntry(Base):
    __tablename__ = 'entradas_estoque'

    id = Column(String(36), primary_key=True, default=new_id)
    company_id = Column('empresa_id', String(36), ForeignKey('empresas.id'), nullable=False, index=True)
    product_id = Column('produto_id', String(36), ForeignKey('produtos.id'), nullable=False, index=True)
    quantity = Column('quantidade', Integer, nullable=False)
    entered_at = Column('data_entrada', DateTime, default=utcnow, nullable=False)
    notes = Column('observacoes', Text)

    product = relationship('Product', back_populates='stock_entries')


class Subscription(Base):
    __tablename__ = 'subscriptions'

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(64), unique=True, nullable=False)
    stripe_customer_id = Column(String(64))
    stripe_subscription_id = Column(String(64), index=True)
    status = Column(String(30))
    plan_id = Column(String(20))
    plan_name = Column(String(50))
    current_period_start = Column(DateTime)
    current_period_end = Column(DateTime)
    cancel_at_period_end = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

# cashier/db/models/catalog.py
from sqlalchemy import Boolean, Column, Numeric, String, DateTime
from sqlalchemy.sql import func

from cashier.db.base import Base


class CatalogProduct(Base):
    __tablename__ = "catalog_products"

    """A sellable product as the cashier sees it.

    The checkout core only ever reads this table: the product id (scanned
    code) is the key, name and unit price are copied onto line items at
    scan time.
    """

    product_id = Column(String, primary_key=True)
    barcode = Column(String, nullable=True, index=True)
    name = Column(String, nullable=False, index=True)

    unit_price = Column(Numeric(18, 2), nullable=False)

    active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

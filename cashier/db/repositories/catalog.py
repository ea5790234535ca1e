
from typing import Callable, List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session
from sqlalchemy.sql import select

from cashier.db.models.catalog import CatalogProduct
from cashier.domain.checkout.catalog import CatalogEntry

def get_product_by_id(
    db: Session,
    product_id: str
) -> Optional[CatalogProduct]:
    result = db.execute(
        select(CatalogProduct).where(
            CatalogProduct.product_id == product_id,
            CatalogProduct.active.is_(True),
        )
    )
    return result.scalar_one_or_none()

def search_products_by_name(
    db: Session,
    term: str
) -> List[CatalogProduct]:
    result = db.execute(
        select(CatalogProduct)
        .where(
            func.lower(CatalogProduct.name).contains(term.lower(), autoescape=True),
            CatalogProduct.active.is_(True),
        )
        .order_by(CatalogProduct.name, CatalogProduct.product_id)
    )
    return list(result.scalars().all())

def to_entry(row: CatalogProduct) -> CatalogEntry:
    return CatalogEntry(product_id=row.product_id, name=row.name, unit_price=row.unit_price)


class SqlCatalog:
    """Catalog backed by the catalog_products table; one session per lookup."""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def lookup_by_id(self, product_id: str) -> Optional[CatalogEntry]:
        with self.session_factory() as db:
            row = get_product_by_id(db, product_id)
            return to_entry(row) if row is not None else None

    def search_by_name(self, term: str) -> List[CatalogEntry]:
        with self.session_factory() as db:
            return [to_entry(row) for row in search_products_by_name(db, term)]

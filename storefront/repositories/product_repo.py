# storefront/repositories/product_repo.py
import uuid
from decimal import Decimal

from sqlalchemy import func, update
from sqlmodel import Session, select

from storefront.models.product import Product
from storefront.schemas.product import ProductQuery


class ProductRepository:
    """
    Data access layer for Product.

    - Pure DB operations (CRUD + queries).
    - No FastAPI, no business logic.
    """

    # ----- Lookups -----

    def get_by_id(self, session: Session, product_id: uuid.UUID) -> Product | None:
        return session.get(Product, product_id)

    def get_by_slug(self, session: Session, slug: str) -> Product | None:
        stmt = select(Product).where(Product.slug == slug)
        return session.exec(stmt).first()

    def latest(self, session: Session, limit: int) -> list[Product]:
        stmt = select(Product).order_by(Product.created_at.desc()).limit(limit)
        return session.exec(stmt).all()

    def featured(self, session: Session, limit: int = 4) -> list[Product]:
        stmt = (
            select(Product)
            .where(Product.is_featured == True)  # noqa: E712
            .order_by(Product.created_at.desc())
            .limit(limit)
        )
        return session.exec(stmt).all()

    def categories(self, session: Session) -> list[tuple[str, int]]:
        stmt = (
            select(Product.category, func.count(Product.id))
            .group_by(Product.category)
            .order_by(Product.category)
        )
        return list(session.exec(stmt).all())

    # ----- Search -----

    @staticmethod
    def _filters(params: ProductQuery) -> list:
        filters = []
        if params.query and params.query != "all":
            filters.append(Product.name.ilike(f"%{params.query}%"))
        if params.category and params.category != "all":
            filters.append(Product.category == params.category)
        if params.price and params.price != "all":
            low, _, high = params.price.partition("-")
            filters.append(Product.price >= Decimal(low))
            filters.append(Product.price <= Decimal(high))
        if params.rating and params.rating != "all":
            filters.append(Product.rating >= Decimal(params.rating))
        return filters

    @staticmethod
    def _ordering(sort: str):
        if sort == "lowest":
            return Product.price.asc()
        if sort == "highest":
            return Product.price.desc()
        if sort == "rating":
            return Product.rating.desc()
        return Product.created_at.desc()

    def search(
        self,
        session: Session,
        params: ProductQuery,
        skip: int = 0,
        limit: int = 10,
    ) -> list[Product]:
        stmt = (
            select(Product)
            .where(*self._filters(params))
            .order_by(self._ordering(params.sort))
            .offset(skip)
            .limit(limit)
        )
        return session.exec(stmt).all()

    def count_search(self, session: Session, params: ProductQuery) -> int:
        stmt = select(func.count()).select_from(Product).where(*self._filters(params))
        return int(session.exec(stmt).one() or 0)

    # ----- Writes -----

    def create(self, session: Session, product: Product) -> Product:
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    def update(self, session: Session, product: Product) -> Product:
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    def delete(self, session: Session, product: Product) -> None:
        session.delete(product)
        session.commit()

    def decrement_stock(
        self,
        session: Session,
        product_id: uuid.UUID,
        qty: int,
    ) -> bool:
        """
        Conditional stock decrement inside the caller's transaction.

        Returns False (and changes nothing) when the product is gone or
        has fewer than `qty` units left.
        """
        stmt = (
            update(Product)
            .where(Product.id == product_id, Product.stock >= qty)
            .values(stock=Product.stock - qty)
            .execution_options(synchronize_session=False)
        )
        result = session.exec(stmt)
        return result.rowcount == 1

    def set_rating(
        self,
        session: Session,
        product: Product,
        rating: Decimal,
        num_reviews: int,
    ) -> Product:
        """No commit; part of the review transaction."""
        product.rating = rating
        product.num_reviews = num_reviews
        session.add(product)
        session.flush()
        return product

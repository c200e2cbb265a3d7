from typing import Dict

from ..db.session import get_session
from ..errors import NotFoundError
from ..models.product import Product
from ..utils.dto import to_product_dto


class CatalogService:
    """Read side of the catalog store.

    Product CRUD lives in the back office; the storefront only reads
    products here and through ``pricing.resolve``. No query caching: cart
    pricing must always see the current catalog state.
    """

    def __init__(self, session_factory=get_session):
        self._session_factory = session_factory

    def get_product(self, product_id: str) -> Dict:
        """Return ProductDTO for given product id."""
        with self._session_factory() as session:
            r = (
                session.query(Product)
                .filter(Product.id == product_id, Product.is_active.is_(True))
                .first()
            )
            if r is None:
                raise NotFoundError("product", product_id)
            return to_product_dto(r)

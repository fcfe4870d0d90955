# storefront/services/catalog_service.py
from storefront.domain.errors import RemoteError
from storefront.domain.schemas import Product
from storefront.repos.product_repo import ProductRepo
from storefront.services.notification_service import Notifier
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

FEATURED_COUNT = 6


class CatalogService:
    def __init__(self, repo: ProductRepo, notifier: Notifier):
        self.repo = repo
        self.notifier = notifier

    def list_products(self, category: str | None = None, sort: str = "name") -> list[Product]:
        #"all" is what the category picker sends for no filter
        if category == "all":
            category = None
        try:
            return self.repo.list_products(category=category, sort=sort)
        except RemoteError as e:
            logger.error(f"Error fetching products: {e}")
            self.notifier.error("Error", "Failed to load products.")
            return []

    def featured(self) -> list[Product]:
        try:
            return self.repo.list_products(limit=FEATURED_COUNT)
        except RemoteError as e:
            logger.error(f"Error fetching featured products: {e}")
            self.notifier.error("Error", "Failed to load products.")
            return []

    def categories(self) -> list[str]:
        try:
            return self.repo.list_categories()
        except RemoteError as e:
            logger.error(f"Error fetching categories: {e}")
            return []

    def get_product(self, product_id: str) -> Product | None:
        try:
            return self.repo.get_product(product_id)
        except RemoteError as e:
            logger.error(f"Error fetching product {product_id}: {e}")
            return None

# storefront/repos/product_repo.py
from storefront.domain.schemas import Product
from storefront.remote.client import RemoteClient

#sort key -> (column, ascending)
SORTS = {
    "name": ("title", True),
    "price-low": ("price", True),
    "price-high": ("price", False),
}


class ProductRepo:
    def __init__(self, client: RemoteClient):
        self.client = client

    def list_products(
        self,
        category: str | None = None,
        sort: str = "name",
        limit: int | None = None,
    ) -> list[Product]:
        query = self.client.table("products").select("*")

        if category:
            query = query.eq("category", category)

        column, ascending = SORTS.get(sort, SORTS["name"])
        query = query.order(column, ascending=ascending)

        if limit:
            query = query.limit(limit)

        return [Product(**row) for row in (query.execute() or [])]

    def list_categories(self) -> list[str]:
        rows = self.client.table("products").select("category").order("category").execute() or []
        return sorted({row["category"] for row in rows if row.get("category")})

    def get_product(self, product_id: str) -> Product | None:
        rows = (
            self.client.table("products")
            .select("*")
            .eq("id", product_id)
            .limit(1)
            .execute()
        ) or []
        return Product(**rows[0]) if rows else None

# storefront/repos/cart_repo.py
from pydantic import ValidationError

from storefront.domain.schemas import CartLine
from storefront.remote.client import RemoteClient
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

_CART_SELECT = "id, user_id, product_id, quantity, products(title, price, image_url, stock)"


class CartRepo:
    """cart_items table; every call is scoped by user_id."""

    def __init__(self, client: RemoteClient):
        self.client = client

    def fetch_lines(self, user_id: str) -> list[CartLine]:
        rows = (
            self.client.table("cart_items")
            .select(_CART_SELECT)
            .eq("user_id", user_id)
            .execute()
        ) or []

        lines = []
        for row in rows:
            product = row.get("products")
            if not product:
                logger.warning(f"Cart item {row.get('id')} points at missing product {row.get('product_id')}")
                continue
            try:
                line = CartLine(
                    id=str(row["id"]),
                    user_id=str(row["user_id"]),
                    product_id=str(row["product_id"]),
                    quantity=row.get("quantity"),
                    title=product.get("title"),
                    price=product.get("price"),
                    image_url=product.get("image_url"),
                    stock=product.get("stock"),
                )
            except ValidationError as e:
                logger.warning(f"Skipping invalid cart item {row.get('id')}: {e.errors()}")
                continue
            lines.append(line)
        return lines

    def insert_line(self, user_id: str, product_id: str, quantity: int) -> None:
        self.client.table("cart_items").insert(
            [{"user_id": user_id, "product_id": product_id, "quantity": quantity}],
            returning=False,
        ).execute()

    def update_quantity(self, user_id: str, product_id: str, quantity: int) -> None:
        (
            self.client.table("cart_items")
            .update({"quantity": quantity})
            .eq("user_id", user_id)
            .eq("product_id", product_id)
            .execute()
        )

    def delete_line(self, user_id: str, product_id: str) -> None:
        (
            self.client.table("cart_items")
            .delete()
            .eq("user_id", user_id)
            .eq("product_id", product_id)
            .execute()
        )

    def delete_all(self, user_id: str) -> None:
        self.client.table("cart_items").delete().eq("user_id", user_id).execute()

# storefront/repos/order_repo.py
from datetime import datetime
from decimal import Decimal

from storefront.domain.errors import RemoteError
from storefront.domain.schemas import Order, OrderLine, OrderLineIn, OrderStatus, ShippingAddress
from storefront.remote.client import RemoteClient


class OrderRepo:
    def __init__(self, client: RemoteClient):
        self.client = client

    def create_order(self, user_id: str, total: Decimal, address: ShippingAddress) -> Order:
        rows = (
            self.client.table("orders")
            .insert(
                [
                    {
                        "user_id": user_id,
                        "total_amount": str(total),
                        "shipping_address": address.model_dump(mode="json", by_alias=True),
                        "status": OrderStatus.PENDING.value,
                    }
                ]
            )
            .select("*")
            .execute()
        )
        #the generated id is needed before any line can be written
        if not rows:
            raise RemoteError("orders insert returned no row")
        return Order(**rows[0])

    def insert_lines(self, lines: list[OrderLineIn]) -> None:
        self.client.table("order_items").insert(
            [line.model_dump(mode="json") for line in lines],
            returning=False,
        ).execute()

    def delete_order(self, order_id: str, user_id: str | None = None) -> None:
        query = self.client.table("orders").delete().eq("id", order_id)
        if user_id:
            query = query.eq("user_id", user_id)
        query.execute()

    def list_orders(self, user_id: str) -> list[Order]:
        rows = (
            self.client.table("orders")
            .select("*")
            .eq("user_id", user_id)
            .order("created_at", ascending=False)
            .execute()
        ) or []
        return [Order(**row) for row in rows]

    def get_order(self, order_id: str, user_id: str) -> Order | None:
        rows = (
            self.client.table("orders")
            .select("*")
            .eq("id", order_id)
            .eq("user_id", user_id)
            .limit(1)
            .execute()
        ) or []
        return Order(**rows[0]) if rows else None

    def get_order_lines(self, order_id: str) -> list[OrderLine]:
        rows = (
            self.client.table("order_items")
            .select("*, products(title, image_url)")
            .eq("order_id", order_id)
            .execute()
        ) or []

        lines = []
        for row in rows:
            product = row.get("products") or {}
            lines.append(
                OrderLine(
                    id=str(row["id"]),
                    order_id=str(row["order_id"]),
                    product_id=str(row["product_id"]),
                    quantity=row["quantity"],
                    price=row["price"],
                    title=product.get("title"),
                    image_url=product.get("image_url"),
                )
            )
        return lines

    def count_lines(self, order_id: str) -> int:
        rows = (
            self.client.table("order_items")
            .select("id")
            .eq("order_id", order_id)
            .limit(1)
            .execute()
        ) or []
        return len(rows)

    def find_orphaned(self, created_before: datetime) -> list[str]:
        """Ids of pending orders older than created_before that have no lines."""
        rows = (
            self.client.table("orders")
            .select("id, order_items(id)")
            .eq("status", OrderStatus.PENDING.value)
            .lt("created_at", created_before)
            .execute()
        ) or []
        return [str(row["id"]) for row in rows if not row.get("order_items")]

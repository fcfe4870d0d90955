"""Shared fixtures: in-memory stand-ins for the remote tables and the lock backend."""
from __future__ import annotations

import threading
import time
from datetime import datetime, timezone
from decimal import Decimal
from itertools import count
from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from storefront.domain.errors import RemoteError
from storefront.domain.schemas import CartLine, Identity, Order, OrderLine, Product, ShippingAddress
from storefront.repos.product_repo import SORTS
from storefront.services.session_provider import SessionProvider
from storefront.services.storefront_session import StorefrontSession

USER = "user-1"
EMAIL = "ann@example.com"
PASSWORD = "secret"


def make_products() -> dict[str, Product]:
    return {
        "p-a": Product(id="p-a", title="Lamp", price=Decimal("10.00"), category="home", stock=5),
        "p-b": Product(id="p-b", title="Mug", price=Decimal("5.00"), category="kitchen", stock=10),
        "p-c": Product(id="p-c", title="Chair", price=Decimal("49.99"), category="home", stock=2),
    }


class FailureMixin:
    def _check(self, op: str) -> None:
        self.calls.append(op)
        if op in self.fail:
            raise RemoteError(f"{op} failed", status=500)


class FakeCartRepo(FailureMixin):
    def __init__(self, products: dict[str, Product]):
        self.products = products
        self.rows: dict[tuple[str, str], int] = {}
        self.ids: dict[tuple[str, str], str] = {}
        self.fail: set[str] = set()
        self.calls: list[str] = []
        self.delay = 0.0
        self.on_fetch = None
        self._seq = count(1)
        self._lock = threading.Lock()

    def fetch_lines(self, user_id):
        self._check("fetch_lines")
        if self.on_fetch:
            self.on_fetch()
        with self._lock:
            rows = [(key, qty) for key, qty in self.rows.items() if key[0] == user_id]
        lines = []
        for (uid, pid), qty in rows:
            product = self.products[pid]
            lines.append(
                CartLine(
                    id=self.ids[(uid, pid)],
                    user_id=uid,
                    product_id=pid,
                    quantity=qty,
                    title=product.title,
                    price=product.price,
                    stock=product.stock,
                )
            )
        return lines

    def insert_line(self, user_id, product_id, quantity):
        self._check("insert_line")
        time.sleep(self.delay)
        with self._lock:
            if (user_id, product_id) in self.rows:
                raise RemoteError("duplicate key value", status=409, code="23505")
            self.rows[(user_id, product_id)] = quantity
            self.ids[(user_id, product_id)] = f"ci-{next(self._seq)}"

    def update_quantity(self, user_id, product_id, quantity):
        self._check("update_quantity")
        time.sleep(self.delay)
        with self._lock:
            if (user_id, product_id) in self.rows:
                self.rows[(user_id, product_id)] = quantity

    def delete_line(self, user_id, product_id):
        self._check("delete_line")
        with self._lock:
            self.rows.pop((user_id, product_id), None)

    def delete_all(self, user_id):
        self._check("delete_all")
        with self._lock:
            for key in [k for k in self.rows if k[0] == user_id]:
                del self.rows[key]


class FakeOrderRepo(FailureMixin):
    def __init__(self):
        self.orders: dict[str, Order] = {}
        self.lines: list[OrderLine] = []
        self.fail: set[str] = set()
        self.calls: list[str] = []

    def create_order(self, user_id, total, address):
        self._check("create_order")
        order = Order(
            id=uuid4().hex,
            user_id=user_id,
            total_amount=total,
            shipping_address=address,
            status="pending",
            created_at=datetime.now(timezone.utc),
        )
        self.orders[order.id] = order
        return order

    def insert_lines(self, lines):
        self._check("insert_lines")
        for line in lines:
            self.lines.append(OrderLine(id=uuid4().hex, **line.model_dump()))

    def delete_order(self, order_id, user_id=None):
        self._check("delete_order")
        self.orders.pop(order_id, None)

    def list_orders(self, user_id):
        self._check("list_orders")
        mine = [o for o in self.orders.values() if o.user_id == user_id]
        return sorted(mine, key=lambda o: o.created_at, reverse=True)

    def get_order(self, order_id, user_id):
        self._check("get_order")
        order = self.orders.get(order_id)
        return order if order and order.user_id == user_id else None

    def get_order_lines(self, order_id):
        self._check("get_order_lines")
        return [l for l in self.lines if l.order_id == order_id]

    def count_lines(self, order_id):
        self._check("count_lines")
        return len([l for l in self.lines if l.order_id == order_id])

    def find_orphaned(self, created_before):
        self._check("find_orphaned")
        with_lines = {l.order_id for l in self.lines}
        return [
            o.id
            for o in self.orders.values()
            if o.status == "pending" and o.created_at < created_before and o.id not in with_lines
        ]


class FakeProductRepo(FailureMixin):
    def __init__(self, products: dict[str, Product]):
        self.products = products
        self.fail: set[str] = set()
        self.calls: list[str] = []
        self.last_query = None

    def list_products(self, category=None, sort="name", limit=None):
        self._check("list_products")
        self.last_query = {"category": category, "sort": sort, "limit": limit}
        items = [p for p in self.products.values() if not category or p.category == category]
        column, ascending = SORTS.get(sort, SORTS["name"])
        items.sort(key=lambda p: getattr(p, column), reverse=not ascending)
        return items[:limit] if limit else items

    def list_categories(self):
        self._check("list_categories")
        return sorted({p.category for p in self.products.values() if p.category})

    def get_product(self, product_id):
        self._check("get_product")
        return self.products.get(product_id)


class FakeLockService:
    """threading.Lock per key, same contract as the redis-backed LockService."""

    def __init__(self):
        self._locks: dict[str, threading.Lock] = {}
        self._holders: dict[str, str] = {}
        self._guard = threading.Lock()

    def _lock_for(self, key):
        with self._guard:
            return self._locks.setdefault(key, threading.Lock())

    def acquire(self, key, token, ttl):
        ok = self._lock_for(key).acquire(blocking=False)
        if ok:
            self._holders[key] = token
        return ok

    def acquire_with_wait(self, key, token, ttl, wait):
        lock = self._lock_for(key)
        ok = lock.acquire(timeout=wait) if wait > 0 else lock.acquire(blocking=False)
        if ok:
            self._holders[key] = token
        return ok

    def release(self, key, token):
        if self._holders.get(key) != token:
            return False
        del self._holders[key]
        self._lock_for(key).release()
        return True


class FakeAuthClient:
    def __init__(self):
        self.users = {EMAIL: (PASSWORD, USER), "bob@example.com": ("hunter2", "user-2")}
        self.signed_out: list[str] = []
        self.fail_sign_out = False

    def sign_in_with_password(self, email, password):
        entry = self.users.get(email)
        if not entry or entry[0] != password:
            raise RemoteError("Invalid login credentials", status=400, code="invalid_grant")
        return Identity(user_id=entry[1], email=email, access_token=f"token-{entry[1]}")

    def sign_out(self, access_token):
        if self.fail_sign_out:
            raise RemoteError("logout failed", status=503)
        self.signed_out.append(access_token)


@pytest.fixture()
def products():
    return make_products()


@pytest.fixture()
def cart_repo(products):
    return FakeCartRepo(products)


@pytest.fixture()
def order_repo():
    return FakeOrderRepo()


@pytest.fixture()
def product_repo(products):
    return FakeProductRepo(products)


@pytest.fixture()
def lock_service():
    return FakeLockService()


@pytest.fixture()
def auth_client():
    return FakeAuthClient()


@pytest.fixture()
def notification_service():
    return MagicMock()


@pytest.fixture()
def make_storefront(cart_repo, order_repo, product_repo, lock_service, auth_client, notification_service):
    def factory() -> StorefrontSession:
        return StorefrontSession(
            SessionProvider(auth_client),
            cart_repo,
            order_repo,
            product_repo,
            lock_service,
            notification_service=notification_service,
        )

    return factory


@pytest.fixture()
def storefront(make_storefront):
    return make_storefront()


@pytest.fixture()
def signed_in(storefront):
    storefront.session.sign_in(EMAIL, PASSWORD)
    storefront.notifier.drain()
    return storefront


@pytest.fixture()
def address():
    return ShippingAddress(
        full_name="Ann Example",
        address="1 Main St",
        city="Springfield",
        state="IL",
        zip_code="62701",
        country="US",
    )

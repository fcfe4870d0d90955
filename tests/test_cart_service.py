"""Cart projection: load on identity change, write-then-reload, in-flight guard."""
from __future__ import annotations

import threading
from decimal import Decimal

from redis.exceptions import ConnectionError as RedisConnectionError

from storefront.services.lock_service import cart_line_key

from conftest import EMAIL, PASSWORD, USER


def titles(notes):
    return [n.title for n in notes]


def test_sign_in_loads_remote_cart(storefront, cart_repo) -> None:
    cart_repo.rows[(USER, "p-a")] = 2
    cart_repo.ids[(USER, "p-a")] = "ci-1"

    storefront.session.sign_in(EMAIL, PASSWORD)

    assert [l.product_id for l in storefront.cart.lines] == ["p-a"]
    assert storefront.cart.cart_count() == 2
    assert storefront.cart.lines[0].title == "Lamp"


def test_signed_out_cart_is_empty_and_not_fetched(storefront, cart_repo) -> None:
    storefront.session.sign_in(EMAIL, PASSWORD)
    storefront.cart.add_to_cart("p-a")
    cart_repo.calls.clear()

    storefront.session.sign_out()

    assert storefront.cart.lines == ()
    assert cart_repo.calls == []
    #remote rows stay for the next sign-in
    assert cart_repo.rows[(USER, "p-a")] == 1


def test_add_requires_sign_in(storefront, cart_repo) -> None:
    ok = storefront.cart.add_to_cart("p-a")

    assert ok is False
    assert cart_repo.calls == []
    notes = storefront.notifier.drain()
    assert titles(notes) == ["Authentication required"]
    assert notes[0].variant == "destructive"


def test_add_new_product_inserts_and_reloads(signed_in, cart_repo) -> None:
    ok = signed_in.cart.add_to_cart("p-b", 3)

    assert ok is True
    assert cart_repo.calls[-2:] == ["insert_line", "fetch_lines"]
    assert signed_in.cart.cart_count() == 3
    assert titles(signed_in.notifier.drain()) == ["Added to cart"]


def test_repeated_adds_accumulate_on_one_line(signed_in, cart_repo) -> None:
    signed_in.cart.add_to_cart("p-a", 2)
    signed_in.cart.add_to_cart("p-a", 3)

    assert len(signed_in.cart.lines) == 1
    assert signed_in.cart.lines[0].quantity == 5
    assert cart_repo.rows == {(USER, "p-a"): 5}
    assert "update_quantity" in cart_repo.calls


def test_update_to_zero_or_negative_removes_line(signed_in) -> None:
    signed_in.cart.add_to_cart("p-a", 2)
    signed_in.cart.add_to_cart("p-b", 1)

    assert signed_in.cart.update_quantity("p-a", 0) is True
    assert signed_in.cart.find_line("p-a") is None

    assert signed_in.cart.update_quantity("p-b", -4) is True
    assert signed_in.cart.is_empty()


def test_update_sets_quantity(signed_in, cart_repo) -> None:
    signed_in.cart.add_to_cart("p-a", 1)

    signed_in.cart.update_quantity("p-a", 4)

    assert signed_in.cart.find_line("p-a").quantity == 4
    assert cart_repo.calls[-1] == "fetch_lines"


def test_remove_confirms_with_toast(signed_in) -> None:
    signed_in.cart.add_to_cart("p-a", 1)
    signed_in.notifier.drain()

    assert signed_in.cart.remove_from_cart("p-a") is True

    assert signed_in.cart.is_empty()
    assert titles(signed_in.notifier.drain()) == ["Removed from cart"]


def test_clear_empties_projection_without_reload(signed_in, cart_repo) -> None:
    signed_in.cart.add_to_cart("p-a", 2)
    signed_in.cart.add_to_cart("p-b", 1)
    cart_repo.calls.clear()

    assert signed_in.cart.clear_cart() is True

    assert cart_repo.calls == ["delete_all"]
    assert signed_in.cart.cart_count() == 0
    assert signed_in.cart.cart_total() == Decimal("0.00")


def test_totals_follow_projection(signed_in) -> None:
    signed_in.cart.add_to_cart("p-a", 2)
    signed_in.cart.add_to_cart("p-b", 1)
    signed_in.cart.add_to_cart("p-c", 1)

    assert signed_in.cart.cart_total() == Decimal("74.99")
    assert signed_in.cart.cart_count() == 4


def test_failed_insert_keeps_state_and_toasts(signed_in, cart_repo) -> None:
    signed_in.cart.add_to_cart("p-a", 1)
    signed_in.notifier.drain()
    cart_repo.fail.add("insert_line")

    assert signed_in.cart.add_to_cart("p-b", 1) is False

    assert [l.product_id for l in signed_in.cart.lines] == ["p-a"]
    notes = signed_in.notifier.drain()
    assert [(n.title, n.description) for n in notes] == [("Error", "Failed to add item to cart.")]


def test_failed_clear_keeps_lines(signed_in, cart_repo) -> None:
    signed_in.cart.add_to_cart("p-a", 1)
    cart_repo.fail.add("delete_all")

    assert signed_in.cart.clear_cart() is False
    assert signed_in.cart.cart_count() == 1


def test_failed_load_keeps_previous_projection_silently(signed_in, cart_repo) -> None:
    signed_in.cart.add_to_cart("p-a", 1)
    signed_in.notifier.drain()
    cart_repo.rows[(USER, "p-a")] = 9
    cart_repo.fail.add("fetch_lines")

    signed_in.cart.reload()

    assert signed_in.cart.cart_count() == 1
    assert signed_in.notifier.drain() == []
    assert signed_in.cart.loading is False


def test_fetch_for_signed_out_user_is_dropped(signed_in, cart_repo) -> None:
    signed_in.cart.add_to_cart("p-a", 1)
    cart_repo.on_fetch = lambda: (setattr(cart_repo, "on_fetch", None), signed_in.session.sign_out())

    signed_in.cart.reload()

    assert signed_in.cart.lines == ()


def test_concurrent_adds_do_not_lose_updates(signed_in, cart_repo) -> None:
    signed_in.cart.add_to_cart("p-a", 1)
    cart_repo.delay = 0.05
    barrier = threading.Barrier(2)

    def click():
        barrier.wait()
        signed_in.cart.add_to_cart("p-a", 1)

    threads = [threading.Thread(target=click) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert cart_repo.rows[(USER, "p-a")] == 3
    assert signed_in.cart.cart_count() == 3


def test_two_sessions_of_one_user_accumulate(make_storefront, cart_repo) -> None:
    first = make_storefront()
    second = make_storefront()
    first.session.sign_in(EMAIL, PASSWORD)
    second.session.sign_in(EMAIL, PASSWORD)

    first.cart.add_to_cart("p-a", 1)
    first.cart.add_to_cart("p-a", 1)
    #second still holds the empty cart it loaded at sign-in
    second.cart.add_to_cart("p-a", 1)

    assert cart_repo.rows == {(USER, "p-a"): 3}
    assert second.cart.cart_count() == 3
    assert "Error" not in titles(second.notifier.drain())


def test_add_aborts_when_cart_cannot_be_reread(signed_in, cart_repo) -> None:
    cart_repo.fail.add("fetch_lines")

    assert signed_in.cart.add_to_cart("p-a", 1) is False

    assert "insert_line" not in cart_repo.calls
    notes = signed_in.notifier.drain()
    assert [(n.title, n.description) for n in notes] == [("Error", "Failed to add item to cart.")]


def test_lock_backend_down_is_an_error_not_busy(signed_in, cart_repo, lock_service, monkeypatch) -> None:
    def down(*args, **kwargs):
        raise RedisConnectionError("connection refused")

    monkeypatch.setattr(lock_service, "acquire_with_wait", down)
    cart_repo.calls.clear()

    assert signed_in.cart.add_to_cart("p-a", 1) is False
    assert signed_in.cart.update_quantity("p-a", 2) is False

    assert cart_repo.calls == []
    notes = signed_in.notifier.drain()
    assert [(n.title, n.description) for n in notes] == [
        ("Error", "Failed to add item to cart."),
        ("Error", "Failed to update cart item."),
    ]


def test_busy_line_collapses_call(signed_in, cart_repo, lock_service) -> None:
    signed_in.cart.lock_wait = 0
    lock_service.acquire(cart_line_key(USER, "p-a"), "someone-else", 30)

    assert signed_in.cart.add_to_cart("p-a", 1) is False

    assert "insert_line" not in cart_repo.calls
    assert titles(signed_in.notifier.drain()) == ["Cart busy"]

"""Shops, menus, events and orders over HTTP."""

from datetime import timedelta

from support import ApiTestCase, bearer, create_user, event_payload

from lunch_api.models import LunchEvent, UserRole
from lunch_api.models.base import utcnow


class LunchTestCase(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.moderator = create_user(self.db, email="mod@example.com", role=UserRole.MODERATOR)
        self.owner = create_user(self.db, email="owner@example.com")
        self.alice = create_user(self.db, email="alice@example.com")
        self.bob = create_user(self.db, email="bob@example.com")

    def make_shop(self) -> dict:
        response = self.client.post(
            "/api/shops", json={"name": "Noodle Bar"}, headers=bearer(self.moderator)
        )
        self.assertEqual(response.status_code, 201)
        return response.json()

    def make_item(self, menu_id: str, name: str = "Ramen", price: float = 9.5) -> dict:
        response = self.client.post(
            f"/api/menus/{menu_id}/items",
            json={"name": name, "price": price},
            headers=bearer(self.moderator),
        )
        self.assertEqual(response.status_code, 201)
        return response.json()

    def make_event(self, **overrides) -> dict:
        response = self.client.post(
            "/api/events", json=event_payload(**overrides), headers=bearer(self.owner)
        )
        self.assertEqual(response.status_code, 201)
        return response.json()


class TestShopsAndMenus(LunchTestCase):
    def test_create_shop_adds_default_menu(self) -> None:
        shop = self.make_shop()
        self.assertEqual(len(shop["menus"]), 1)
        self.assertTrue(shop["menus"][0]["is_default"])

    def test_plain_user_can_read_but_not_write(self) -> None:
        shop = self.make_shop()
        self.assertEqual(self.client.get(f"/api/shops/{shop['id']}", headers=bearer(self.alice)).status_code, 200)
        response = self.client.patch(
            f"/api/shops/{shop['id']}", json={"name": "Mine now"}, headers=bearer(self.alice)
        )
        self.assertEqual(response.status_code, 403)

    def test_new_default_menu_demotes_previous(self) -> None:
        shop = self.make_shop()
        response = self.client.post(
            f"/api/shops/{shop['id']}/menus",
            json={"name": "Winter menu", "is_default": True},
            headers=bearer(self.moderator),
        )
        self.assertEqual(response.status_code, 201)
        menus = self.client.get(f"/api/shops/{shop['id']}/menus", headers=bearer(self.alice)).json()
        defaults = [m["name"] for m in menus if m["is_default"]]
        self.assertEqual(defaults, ["Winter menu"])

    def test_items_batch_and_price_rules(self) -> None:
        menu_id = self.make_shop()["menus"][0]["id"]
        response = self.client.post(
            f"/api/menus/{menu_id}/items/batch",
            json={"items": [{"name": "Gyoza", "price": 5}, {"name": "Tea", "price": 0}]},
            headers=bearer(self.moderator),
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(len(response.json()), 2)

        negative = self.client.post(
            f"/api/menus/{menu_id}/items", json={"name": "Refund", "price": -1}, headers=bearer(self.moderator)
        )
        self.assertEqual(negative.status_code, 400)

    def test_item_category_must_share_menu(self) -> None:
        shop = self.make_shop()
        menu_id = shop["menus"][0]["id"]
        other_menu = self.client.post(
            f"/api/shops/{shop['id']}/menus", json={"name": "Other"}, headers=bearer(self.moderator)
        ).json()
        category = self.client.post(
            f"/api/menus/{other_menu['id']}/categories", json={"name": "Soups"}, headers=bearer(self.moderator)
        ).json()
        response = self.client.post(
            f"/api/menus/{menu_id}/items",
            json={"name": "Miso", "price": 3, "category_id": category["id"]},
            headers=bearer(self.moderator),
        )
        self.assertEqual(response.status_code, 400)


class TestEvents(LunchTestCase):
    def test_creator_becomes_owner(self) -> None:
        event = self.make_event()
        self.assertEqual(event["owner_id"], self.owner.id)

    def test_deadline_after_event_is_rejected(self) -> None:
        now = utcnow()
        response = self.client.post(
            "/api/events",
            json=event_payload(
                event_date=(now + timedelta(hours=1)).isoformat(),
                order_deadline=(now + timedelta(hours=2)).isoformat(),
            ),
            headers=bearer(self.owner),
        )
        self.assertEqual(response.status_code, 400)

    def test_only_owner_or_elevated_can_update(self) -> None:
        event = self.make_event()
        other = self.client.patch(
            f"/api/events/{event['id']}", json={"title": "Hijacked"}, headers=bearer(self.alice)
        )
        self.assertEqual(other.status_code, 403)
        by_mod = self.client.patch(
            f"/api/events/{event['id']}", json={"title": "Renamed"}, headers=bearer(self.moderator)
        )
        self.assertEqual(by_mod.status_code, 200)
        self.assertEqual(by_mod.json()["title"], "Renamed")

    def test_date_range_filters(self) -> None:
        now = utcnow()
        soon = self.make_event(title="Soon")
        later = self.make_event(
            title="Later",
            event_date=(now + timedelta(days=10)).isoformat(),
            order_deadline=(now + timedelta(days=9)).isoformat(),
        )
        cutoff = (now + timedelta(days=5)).isoformat()

        def event_ids(**params) -> list[str]:
            response = self.client.get("/api/events", params=params, headers=bearer(self.alice))
            self.assertEqual(response.status_code, 200)
            return [e["id"] for e in response.json()]

        self.assertEqual(event_ids(date_from=cutoff), [later["id"]])
        self.assertEqual(event_ids(date_to=cutoff), [soon["id"]])
        self.assertEqual(event_ids(), [later["id"], soon["id"]])


class OrderingTestCase(LunchTestCase):
    """A shop with one item and an open event."""

    def setUp(self) -> None:
        super().setUp()
        shop = self.make_shop()
        self.item = self.make_item(shop["menus"][0]["id"])
        self.event = self.make_event(shop_id=shop["id"])

    def place(self, user, **overrides):
        body = {"event_id": self.event["id"], "items": [{"menu_item_id": self.item["id"], "quantity": 2}]}
        body.update(overrides)
        return self.client.post("/api/orders", json=body, headers=bearer(user))


class TestOrders(OrderingTestCase):
    def test_total_is_computed_server_side(self) -> None:
        response = self.place(self.alice, total=0.01)
        self.assertEqual(response.status_code, 201)
        order = response.json()
        self.assertEqual(order["total"], 19.0)
        self.assertEqual(order["items"][0]["name"], "Ramen")

    def test_second_order_for_same_event_is_409(self) -> None:
        self.assertEqual(self.place(self.alice).status_code, 201)
        response = self.place(self.alice)
        self.assertEqual(response.status_code, 409)
        self.assertFalse(response.json()["success"])
        self.assertEqual(self.place(self.bob).status_code, 201)

    def test_custom_items_need_permission(self) -> None:
        custom = [{"name": "Homemade salad", "price": 4.0}]
        self.assertEqual(self.place(self.alice, items=custom).status_code, 400)
        self.client.patch(
            f"/api/events/{self.event['id']}", json={"allow_custom_items": True}, headers=bearer(self.owner)
        )
        response = self.place(self.alice, items=custom)
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["total"], 4.0)

    def test_closed_event_rejects_orders(self) -> None:
        event = self.db.get(LunchEvent, self.event["id"])
        event.order_deadline = utcnow() - timedelta(minutes=1)
        self.db.commit()
        self.assertEqual(self.place(self.alice).status_code, 400)

    def test_user_event_lookup_is_self_or_elevated(self) -> None:
        self.place(self.alice)
        path = f"/api/orders/user/{self.alice.id}/event/{self.event['id']}"
        self.assertEqual(self.client.get(path, headers=bearer(self.alice)).status_code, 200)
        self.assertEqual(self.client.get(path, headers=bearer(self.bob)).status_code, 403)
        self.assertEqual(self.client.get(path, headers=bearer(self.moderator)).status_code, 200)

    def test_order_visibility(self) -> None:
        order = self.place(self.alice).json()
        path = f"/api/orders/{order['id']}"
        self.assertEqual(self.client.get(path, headers=bearer(self.alice)).status_code, 200)
        self.assertEqual(self.client.get(path, headers=bearer(self.owner)).status_code, 200)
        self.assertEqual(self.client.get(path, headers=bearer(self.bob)).status_code, 403)

    def test_listing_other_users_needs_elevated_role(self) -> None:
        self.place(self.alice)
        forbidden = self.client.get("/api/orders", params={"user_id": self.alice.id}, headers=bearer(self.bob))
        self.assertEqual(forbidden.status_code, 403)
        self.assertEqual(self.client.get("/api/orders", headers=bearer(self.bob)).json(), [])
        event_orders = self.client.get(
            "/api/orders", params={"event_id": self.event["id"]}, headers=bearer(self.owner)
        ).json()
        self.assertEqual(len(event_orders), 1)

    def test_payment_is_event_owner_or_elevated(self) -> None:
        order = self.place(self.alice).json()
        path = f"/api/orders/{order['id']}/payment"
        self.assertEqual(
            self.client.patch(path, json={"is_paid": True}, headers=bearer(self.alice)).status_code, 403
        )
        response = self.client.patch(
            path, json={"is_paid": True, "paid_method": "cash"}, headers=bearer(self.owner)
        )
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["is_paid"])
        self.assertIsNotNone(response.json()["paid_at"])

    def test_owner_updates_and_deletes_order(self) -> None:
        order = self.place(self.alice).json()
        path = f"/api/orders/{order['id']}"
        response = self.client.patch(
            path,
            json={"items": [{"menu_item_id": self.item["id"], "quantity": 1}], "note": "no onions"},
            headers=bearer(self.alice),
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["total"], 9.5)
        self.assertEqual(self.client.patch(path, json={"note": "x"}, headers=bearer(self.bob)).status_code, 403)
        self.assertEqual(self.client.delete(path, headers=bearer(self.alice)).status_code, 200)
        self.assertEqual(self.client.get(path, headers=bearer(self.alice)).status_code, 404)

    def test_participated_events(self) -> None:
        self.place(self.alice)
        events = self.client.get("/api/events/participated", headers=bearer(self.alice)).json()
        self.assertEqual([e["id"] for e in events], [self.event["id"]])
        self.assertEqual(self.client.get("/api/events/participated", headers=bearer(self.bob)).json(), [])


class TestEventStatistics(OrderingTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.alice.name = "Alice"
        self.bob.name = "Bob"
        self.db.commit()
        self.gyoza = self.make_item(self.item["menu_id"], name="Gyoza", price=5.0)

    def order_both(self) -> None:
        alice_order = self.place(self.alice).json()
        self.place(
            self.bob,
            items=[
                {"menu_item_id": self.item["id"], "quantity": 1},
                {"menu_item_id": self.gyoza["id"], "quantity": 2},
            ],
        )
        self.client.patch(
            f"/api/orders/{alice_order['id']}/payment", json={"is_paid": True}, headers=bearer(self.owner)
        )

    def test_event_detail_carries_attendees_and_statistics(self) -> None:
        self.order_both()
        response = self.client.get(f"/api/events/{self.event['id']}", headers=bearer(self.bob))
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["title"], "Friday lunch")
        self.assertEqual({a["id"] for a in body["attendees"]}, {self.alice.id, self.bob.id})
        self.assertEqual({a["name"] for a in body["attendees"]}, {"Alice", "Bob"})

        stats = body["statistics"]
        self.assertEqual(stats["total_amount"], 38.5)
        self.assertEqual(stats["paid_orders"], 1)
        self.assertEqual(stats["unpaid_orders"], 1)
        self.assertEqual(stats["attendee_count"], 2)
        items = {(i["name"], i["price"]): (i["quantity"], i["total"]) for i in stats["items"]}
        self.assertEqual(items, {("Ramen", 9.5): (3, 28.5), ("Gyoza", 5.0): (2, 10.0)})

    def test_event_without_orders_has_empty_statistics(self) -> None:
        body = self.client.get(f"/api/events/{self.event['id']}", headers=bearer(self.alice)).json()
        self.assertEqual(body["attendees"], [])
        self.assertEqual(body["statistics"]["total_amount"], 0.0)
        self.assertEqual(body["statistics"]["items"], [])

    def test_caller_stats_cover_owned_and_joined_events(self) -> None:
        self.order_both()
        stats = self.client.get("/api/events/stats", headers=bearer(self.alice)).json()
        self.assertEqual(stats["total_events"], 1)
        self.assertEqual(stats["total_orders"], 2)
        self.assertEqual(stats["total_amount"], 38.5)
        self.assertEqual(stats["participant_count"], 2)
        dishes = {d["name"]: d for d in stats["item_summary"]}
        self.assertEqual(dishes["Ramen"]["quantity"], 3)
        self.assertEqual(dishes["Ramen"]["orders"], 2)
        self.assertEqual(dishes["Ramen"]["order_users"], ["Alice", "Bob"])
        self.assertEqual(dishes["Gyoza"]["total_price"], 10.0)

        self.assertEqual(
            self.client.get("/api/events/stats", headers=bearer(self.owner)).json()["total_events"], 1
        )
        outsider = self.client.get("/api/events/stats", headers=bearer(self.moderator)).json()
        self.assertEqual(outsider["total_events"], 0)
        self.assertEqual(outsider["item_summary"], [])

    def test_caller_stats_respect_date_range(self) -> None:
        self.order_both()
        after = (utcnow() + timedelta(days=5)).isoformat()
        stats = self.client.get(
            "/api/events/stats", params={"date_from": after}, headers=bearer(self.alice)
        ).json()
        self.assertEqual(stats["total_events"], 0)
        self.assertEqual(self.client.get("/api/events/stats").status_code, 401)

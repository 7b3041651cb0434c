"""User administration routes: listing, admin create/update, soft delete, restore and hard delete."""

from datetime import timedelta

from support import ApiTestCase, bearer, create_user

from lunch_api.models import LunchEvent, Order, User, UserRole
from lunch_api.models.base import utcnow


class UsersTestCase(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.admin = create_user(self.db, email="admin@example.com", name="Admin", role=UserRole.ADMIN)
        self.moderator = create_user(self.db, email="mod@example.com", name="Mod", role=UserRole.MODERATOR)
        self.user = create_user(self.db, email="user@example.com", name="Plain User")


class TestListAndGet(UsersTestCase):
    def test_moderator_can_list_with_filters(self) -> None:
        response = self.client.get("/api/users", headers=bearer(self.moderator))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["total"], 3)

        response = self.client.get("/api/users", params={"role": "ADMIN"}, headers=bearer(self.moderator))
        self.assertEqual([u["email"] for u in response.json()["users"]], ["admin@example.com"])

        response = self.client.get("/api/users", params={"search": "plain"}, headers=bearer(self.moderator))
        self.assertEqual(response.json()["total"], 1)

    def test_list_never_exposes_secrets(self) -> None:
        response = self.client.get("/api/users", headers=bearer(self.admin))
        self.assertNotIn("password_hash", response.text)
        self.assertNotIn("reset_token", response.text)

    def test_get_self_or_elevated(self) -> None:
        own = self.client.get(f"/api/users/{self.user.id}", headers=bearer(self.user))
        self.assertEqual(own.status_code, 200)
        other = self.client.get(f"/api/users/{self.admin.id}", headers=bearer(self.user))
        self.assertEqual(other.status_code, 403)
        by_mod = self.client.get(f"/api/users/{self.user.id}", headers=bearer(self.moderator))
        self.assertEqual(by_mod.status_code, 200)

    def test_get_unknown_user_is_404(self) -> None:
        response = self.client.get("/api/users/missing", headers=bearer(self.admin))
        self.assertEqual(response.status_code, 404)


class TestAdminChanges(UsersTestCase):
    def test_admin_creates_user_without_password(self) -> None:
        response = self.client.post(
            "/api/users",
            json={"email": "New@Example.com", "name": "Newcomer", "role": "MODERATOR"},
            headers=bearer(self.admin),
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["user"]["email"], "new@example.com")
        created = self.db.query(User).filter(User.email == "new@example.com").one()
        self.assertIsNone(created.password_hash)
        self.assertEqual(self.login("new@example.com", "anything-at-all").status_code, 401)

    def test_moderator_cannot_create(self) -> None:
        response = self.client.post(
            "/api/users", json={"email": "x@example.com", "name": "X"}, headers=bearer(self.moderator)
        )
        self.assertEqual(response.status_code, 403)

    def test_update_role_and_note_but_not_email(self) -> None:
        response = self.client.patch(
            f"/api/users/{self.user.id}",
            json={"role": "MODERATOR", "note": "promoted", "email": "changed@example.com"},
            headers=bearer(self.admin),
        )
        self.assertEqual(response.status_code, 200)
        stored = self.fresh(self.user)
        self.assertEqual(stored.role, "MODERATOR")
        self.assertEqual(stored.note, "promoted")
        self.assertEqual(stored.email, "user@example.com")

    def test_admin_cannot_demote_or_deactivate_self(self) -> None:
        demote = self.client.patch(
            f"/api/users/{self.admin.id}", json={"role": "USER"}, headers=bearer(self.admin)
        )
        self.assertEqual(demote.status_code, 403)
        deactivate = self.client.delete(f"/api/users/{self.admin.id}", headers=bearer(self.admin))
        self.assertEqual(deactivate.status_code, 403)
        self.assertTrue(self.fresh(self.admin).is_active)

    def test_soft_delete_and_restore(self) -> None:
        response = self.client.delete(f"/api/users/{self.user.id}", headers=bearer(self.admin))
        self.assertEqual(response.status_code, 200)
        self.assertFalse(self.fresh(self.user).is_active)
        self.assertEqual(self.login("user@example.com").status_code, 401)

        response = self.client.post(f"/api/users/{self.user.id}/restore", headers=bearer(self.admin))
        self.assertEqual(response.status_code, 200)
        self.assertTrue(self.fresh(self.user).is_active)
        self.assertEqual(self.login("user@example.com").status_code, 200)


class TestHardDelete(UsersTestCase):
    def test_hard_delete_removes_user_and_orders(self) -> None:
        now = utcnow()
        event = LunchEvent(
            title="Lunch",
            event_date=now + timedelta(days=1),
            order_deadline=now + timedelta(hours=2),
            owner_id=self.admin.id,
        )
        self.db.add(event)
        self.db.commit()
        self.db.add(Order(user_id=self.user.id, event_id=event.id, total=0.0))
        self.db.commit()

        user_id = self.user.id
        response = self.client.delete(f"/api/admin/users/{user_id}", headers=bearer(self.admin))
        self.assertEqual(response.status_code, 200)
        self.db.expire_all()
        self.assertIsNone(self.db.get(User, user_id))
        self.assertEqual(self.db.query(Order).count(), 0)
        self.assertEqual(self.db.query(LunchEvent).count(), 1)

    def test_hard_delete_is_admin_only_and_not_self(self) -> None:
        by_mod = self.client.delete(f"/api/admin/users/{self.user.id}", headers=bearer(self.moderator))
        self.assertEqual(by_mod.status_code, 403)
        own = self.client.delete(f"/api/admin/users/{self.admin.id}", headers=bearer(self.admin))
        self.assertEqual(own.status_code, 403)

    def test_admin_view(self) -> None:
        response = self.client.get(f"/api/admin/users/{self.user.id}", headers=bearer(self.admin))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["login_count"], 0)

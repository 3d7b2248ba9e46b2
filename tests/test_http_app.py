"""
HTTP Adapter Tests

Module: tests.test_http_app
Date: 2026-10-17
Version: 0.1.0

DESCRIPTION:
Routes under /api/auth driven through aiohttp's test client:
- Response shapes and status codes
- Error kind -> status mapping
- Bearer authentication on protected routes
"""

from aiohttp import web
from aiohttp.test_utils import AioHTTPTestCase

from principal_auth.transport.http_app import create_app

from auth_fixtures import make_service

API = "/api/auth"

ALICE = {
    "firstName": "Alice",
    "lastName": "Smith",
    "email": "alice@example.com",
    "phone": "+15550000001",
    "password": "password123",
}


class AuthAppTestCase(AioHTTPTestCase):

    async def get_application(self) -> web.Application:
        self.service = make_service()
        return create_app(self.service)

    async def register_alice(self):
        resp = await self.client.post(f"{API}/register", json=ALICE)
        self.assertEqual(resp.status, 201)
        return await resp.json()

    def bearer(self, token):
        return {"Authorization": f"Bearer {token}"}


class TestPublicRoutes(AuthAppTestCase):

    async def test_health(self):
        resp = await self.client.get("/health")
        self.assertEqual(resp.status, 200)
        self.assertEqual((await resp.json())["status"], "ok")

    async def test_register(self):
        body = await self.register_alice()

        self.assertEqual(body["user"]["email"], "alice@example.com")
        self.assertEqual(body["user"]["role"], "user")
        self.assertIn("accessToken", body)
        self.assertIn("refreshToken", body)
        self.assertNotIn("credential_hash", body["user"])

    async def test_register_duplicate(self):
        await self.register_alice()
        resp = await self.client.post(f"{API}/register", json=ALICE)

        self.assertEqual(resp.status, 400)
        self.assertEqual((await resp.json())["message"], "Email already registered")

    async def test_register_admin_refused(self):
        resp = await self.client.post(f"{API}/register", json={**ALICE, "role": "admin"})
        self.assertEqual(resp.status, 400)

    async def test_register_chef(self):
        resp = await self.client.post(f"{API}/register", json={**ALICE, "role": "chef"})
        self.assertEqual(resp.status, 201)
        body = await resp.json()
        self.assertEqual(body["user"]["role"], "chef")
        self.assertNotIn("cook", body)

        resp = await self.client.post(
            f"{API}/login", json={"email": "alice@example.com", "password": "password123"}
        )
        self.assertEqual(resp.status, 200)
        self.assertEqual((await resp.json())["user"]["role"], "chef")

    async def test_invalid_json_body(self):
        resp = await self.client.post(
            f"{API}/login", data="{not json", headers={"Content-Type": "application/json"}
        )
        self.assertEqual(resp.status, 400)

    async def test_non_object_body(self):
        resp = await self.client.post(f"{API}/login", json=[1, 2])
        self.assertEqual(resp.status, 400)

    async def test_login(self):
        await self.register_alice()
        resp = await self.client.post(
            f"{API}/login", json={"email": "alice@example.com", "password": "password123"}
        )

        self.assertEqual(resp.status, 200)
        body = await resp.json()
        self.assertEqual(body["user"]["firstName"], "Alice")
        self.assertIn("refreshToken", body)

    async def test_login_wrong_password(self):
        await self.register_alice()
        resp = await self.client.post(
            f"{API}/login", json={"email": "alice@example.com", "password": "password124"}
        )

        self.assertEqual(resp.status, 401)
        self.assertEqual((await resp.json())["message"], "Invalid email or password")

    async def test_login_suspended(self):
        body = await self.register_alice()
        self.service.set_account_status(body["user"]["id"], "suspended")

        resp = await self.client.post(
            f"{API}/login", json={"email": "alice@example.com", "password": "password123"}
        )
        self.assertEqual(resp.status, 403)


class TestSessionRoutes(AuthAppTestCase):

    async def test_refresh_and_reuse(self):
        body = await self.register_alice()

        resp = await self.client.post(f"{API}/refresh-token", json={"refreshToken": body["refreshToken"]})
        self.assertEqual(resp.status, 200)
        self.assertIn("accessToken", await resp.json())

        resp = await self.client.post(f"{API}/refresh-token", json={"refreshToken": body["refreshToken"]})
        self.assertEqual(resp.status, 401)

    async def test_refresh_missing_token(self):
        resp = await self.client.post(f"{API}/refresh-token", json={})
        self.assertEqual(resp.status, 400)

    async def test_logout(self):
        body = await self.register_alice()

        for _ in range(2):
            resp = await self.client.post(f"{API}/logout", json={"refreshToken": body["refreshToken"]})
            self.assertEqual(resp.status, 200)

        resp = await self.client.post(f"{API}/refresh-token", json={"refreshToken": body["refreshToken"]})
        self.assertEqual(resp.status, 401)

    async def test_me(self):
        body = await self.register_alice()

        resp = await self.client.get(f"{API}/me", headers=self.bearer(body["accessToken"]))
        self.assertEqual(resp.status, 200)
        self.assertEqual((await resp.json())["user"]["id"], body["user"]["id"])

    async def test_me_without_token(self):
        resp = await self.client.get(f"{API}/me")
        self.assertEqual(resp.status, 401)

    async def test_me_with_refresh_token(self):
        body = await self.register_alice()
        resp = await self.client.get(f"{API}/me", headers=self.bearer(body["refreshToken"]))
        self.assertEqual(resp.status, 401)


class TestPasswordRoutes(AuthAppTestCase):

    async def test_change_password(self):
        body = await self.register_alice()

        resp = await self.client.post(
            f"{API}/change-password",
            json={"currentPassword": "password123", "newPassword": "newpassword456"},
            headers=self.bearer(body["accessToken"]),
        )
        self.assertEqual(resp.status, 200)

        resp = await self.client.post(
            f"{API}/login", json={"email": "alice@example.com", "password": "newpassword456"}
        )
        self.assertEqual(resp.status, 200)

    async def test_change_password_wrong_current(self):
        body = await self.register_alice()
        resp = await self.client.post(
            f"{API}/change-password",
            json={"currentPassword": "nope-nope", "newPassword": "newpassword456"},
            headers=self.bearer(body["accessToken"]),
        )
        self.assertEqual(resp.status, 401)

    async def test_forgot_and_reset(self):
        await self.register_alice()

        resp = await self.client.post(f"{API}/forgot-password", json={"email": "alice@example.com"})
        self.assertEqual(resp.status, 200)
        raw = self.service.delivery.last_token_for("alice@example.com")

        resp = await self.client.post(
            f"{API}/reset-password", json={"token": raw, "newPassword": "resetpass789"}
        )
        self.assertEqual(resp.status, 200)

        resp = await self.client.post(
            f"{API}/reset-password", json={"token": raw, "newPassword": "resetpass789"}
        )
        self.assertEqual(resp.status, 400)
        self.assertEqual((await resp.json())["message"], "Invalid or expired reset token")

    async def test_forgot_unknown_email_same_answer(self):
        await self.register_alice()

        known = await self.client.post(f"{API}/forgot-password", json={"email": "alice@example.com"})
        unknown = await self.client.post(f"{API}/forgot-password", json={"email": "nobody@example.com"})

        self.assertEqual(known.status, unknown.status)
        self.assertEqual(await known.json(), await unknown.json())

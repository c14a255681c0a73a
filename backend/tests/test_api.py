"""
Jokes API Backend — HTTP API Tests
====================================

What:  Endpoint behavior through the full stack: middleware, guard, validation,
       services, error translation, and a real (temporary SQLite) database.
How:   httpx AsyncClient over ASGITransport against create_app(database=...).

What we test:
    ✅ Register → login → create → read (views grow) → update as owner →
       update as another user is forbidden
    ✅ Duplicate username / email → 409 with distinct error codes
    ✅ Login never reveals whether the username exists
    ✅ Invalid ids are 400, unknown ids are 404
    ✅ Listing filters, sort, pagination metadata
    ✅ Favorites: add, duplicate add, idempotent remove, list, legacy mount
    ✅ Comments, availability check, /me, health, error body shape
    ✅ Random pick counts views; {"title": ""} alone is not an update
    ✅ create_app(config) signs tokens and clamps pages with that config
"""

import pytest


JOKE_BODY = "Why did the chicken cross the road?"


async def create_joke(client, headers, body=JOKE_BODY, **fields):
    response = await client.post("/api/jokes", json={"body": body, **fields}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestEndToEnd:

    @pytest.mark.asyncio
    async def test_joke_lifecycle_and_ownership(self, test_client, register_user, auth_headers):
        """The full flow from account creation to a rejected foreign edit."""
        await register_user("alice", password="secret123")

        login = await test_client.post(
            "/api/auth/login", json={"username": "alice", "password": "secret123"}
        )
        assert login.status_code == 200
        alice = auth_headers(login.json()["token"])
        assert login.json()["user"]["username"] == "alice"

        created = await create_joke(test_client, alice)
        assert set(created) == {"id", "title", "body", "language", "created_at"}
        assert created["body"] == JOKE_BODY
        assert created["language"] == "ru"
        joke_id = created["id"]

        first = await test_client.get(f"/api/jokes/{joke_id}")
        second = await test_client.get(f"/api/jokes/{joke_id}")
        assert first.status_code == 200
        assert second.json()["views"] >= first.json()["views"] + 1
        assert first.json()["author_name"] == "alice"
        assert first.json()["favorites_count"] == 0
        assert first.json()["comments_count"] == 0

        updated = await test_client.patch(
            f"/api/jokes/{joke_id}", json={"title": "Classic"}, headers=alice
        )
        assert updated.status_code == 200
        assert updated.json()["title"] == "Classic"
        assert updated.json()["body"] == JOKE_BODY

        _, bob_token = await register_user("bob")
        forbidden = await test_client.patch(
            f"/api/jokes/{joke_id}", json={"title": "Mine now"}, headers=auth_headers(bob_token)
        )
        assert forbidden.status_code == 403
        assert forbidden.json()["error"] == "forbidden"

        unchanged = await test_client.get(f"/api/jokes/{joke_id}")
        assert unchanged.json()["title"] == "Classic"

    @pytest.mark.asyncio
    async def test_delete_by_owner_and_non_owner(self, test_client, register_user, auth_headers):
        _, alice_token = await register_user("alice")
        _, bob_token = await register_user("bob")
        joke = await create_joke(test_client, auth_headers(alice_token))

        denied = await test_client.delete(f"/api/jokes/{joke['id']}", headers=auth_headers(bob_token))
        assert denied.status_code == 403

        deleted = await test_client.delete(f"/api/jokes/{joke['id']}", headers=auth_headers(alice_token))
        assert deleted.status_code == 204
        assert deleted.content == b""

        gone = await test_client.get(f"/api/jokes/{joke['id']}")
        assert gone.status_code == 404


class TestAuth:

    @pytest.mark.asyncio
    async def test_register_response_shape(self, test_client):
        response = await test_client.post(
            "/api/auth/register",
            json={"username": "carol", "email": "carol@example.com", "password": "secret123"},
        )
        assert response.status_code == 201
        body = response.json()
        assert set(body) == {"id", "username", "display_name", "email", "token"}
        assert body["display_name"] == "carol"
        assert "password_hash" not in body

    @pytest.mark.asyncio
    async def test_duplicate_username(self, test_client, register_user):
        await register_user("alice", email="first@example.com")
        response = await test_client.post(
            "/api/auth/register",
            json={"username": "alice", "email": "second@example.com", "password": "secret123"},
        )
        assert response.status_code == 409
        assert response.json()["error"] == "duplicate_username"

    @pytest.mark.asyncio
    async def test_duplicate_email(self, test_client, register_user):
        await register_user("alice", email="shared@example.com")
        response = await test_client.post(
            "/api/auth/register",
            json={"username": "alice2", "email": "shared@example.com", "password": "secret123"},
        )
        assert response.status_code == 409
        assert response.json()["error"] == "duplicate_email"

    @pytest.mark.asyncio
    async def test_invalid_registration(self, test_client):
        response = await test_client.post(
            "/api/auth/register",
            json={"username": "dave", "email": "not-an-email", "password": "secret123"},
        )
        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "validation_error"
        assert body["details"]["field"] == "email"

    @pytest.mark.asyncio
    async def test_login_does_not_leak_account_existence(self, test_client, register_user):
        await register_user("alice", password="secret123")

        wrong_password = await test_client.post(
            "/api/auth/login", json={"username": "alice", "password": "nope-nope"}
        )
        unknown_user = await test_client.post(
            "/api/auth/login", json={"username": "mallory", "password": "secret123"}
        )

        assert wrong_password.status_code == unknown_user.status_code == 401
        first, second = wrong_password.json(), unknown_user.json()
        assert first["error"] == second["error"] == "authentication_failed"
        assert first["message"] == second["message"]

    @pytest.mark.asyncio
    async def test_login_missing_fields(self, test_client):
        response = await test_client.post("/api/auth/login", json={"username": "alice"})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_me(self, test_client, register_user, auth_headers):
        user_id, token = await register_user("erin")
        response = await test_client.get("/api/auth/me", headers=auth_headers(token))
        assert response.status_code == 200
        body = response.json()
        assert body["id"] == user_id
        assert body["username"] == "erin"
        assert "created_at" in body

    @pytest.mark.asyncio
    async def test_me_without_token(self, test_client):
        response = await test_client.get("/api/auth/me")
        assert response.status_code == 401
        assert response.json()["error"] == "unauthenticated"

    @pytest.mark.asyncio
    async def test_me_with_bad_token(self, test_client, auth_headers):
        response = await test_client.get("/api/auth/me", headers=auth_headers("garbage"))
        assert response.status_code == 401
        assert response.json()["error"] == "invalid_credential"

    @pytest.mark.asyncio
    async def test_check_availability(self, test_client, register_user):
        await register_user("frank", email="frank@example.com")

        both = await test_client.post(
            "/api/auth/check-availability",
            json={"username": "frank", "email": "new@example.com"},
        )
        assert both.json() == {"usernameAvailable": False, "emailAvailable": True}

        only_username = await test_client.post(
            "/api/auth/check-availability", json={"username": "someone-else"}
        )
        assert only_username.json() == {"usernameAvailable": True}


class TestJokeValidation:

    @pytest.mark.asyncio
    async def test_create_requires_auth(self, test_client):
        response = await test_client.post("/api/jokes", json={"body": JOKE_BODY})
        assert response.status_code == 401

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", ["", "   "])
    async def test_blank_body(self, test_client, register_user, auth_headers, body):
        _, token = await register_user("gina")
        response = await test_client.post(
            "/api/jokes", json={"title": "T", "body": body}, headers=auth_headers(token)
        )
        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_body_length_boundary(self, test_client, register_user, auth_headers):
        _, token = await register_user("hank")
        headers = auth_headers(token)
        accepted = await test_client.post("/api/jokes", json={"body": "x" * 5000}, headers=headers)
        rejected = await test_client.post("/api/jokes", json={"body": "x" * 5001}, headers=headers)
        assert accepted.status_code == 201
        assert rejected.status_code == 400

    @pytest.mark.asyncio
    async def test_update_needs_a_field(self, test_client, register_user, auth_headers):
        _, token = await register_user("ivy")
        joke = await create_joke(test_client, auth_headers(token))
        response = await test_client.patch(
            f"/api/jokes/{joke['id']}", json={}, headers=auth_headers(token)
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_update_with_only_empty_title_is_rejected(
        self, test_client, register_user, auth_headers
    ):
        _, token = await register_user("iris")
        joke = await create_joke(test_client, auth_headers(token), title="Keep me")
        response = await test_client.patch(
            f"/api/jokes/{joke['id']}", json={"title": ""}, headers=auth_headers(token)
        )
        assert response.status_code == 400
        assert response.json()["details"]["reason"] == "No fields to update"

        unchanged = await test_client.get(f"/api/jokes/{joke['id']}")
        assert unchanged.json()["title"] == "Keep me"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("bad_id", ["abc", "1.5", "12abc"])
    async def test_non_integer_id_is_400_not_404(self, test_client, register_user, auth_headers, bad_id):
        _, token = await register_user("jack")
        headers = auth_headers(token)

        fetch = await test_client.get(f"/api/jokes/{bad_id}")
        update = await test_client.patch(f"/api/jokes/{bad_id}", json={"title": "t"}, headers=headers)
        delete = await test_client.delete(f"/api/jokes/{bad_id}", headers=headers)

        for response in (fetch, update, delete):
            assert response.status_code == 400
            assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_unknown_id_is_404(self, test_client, register_user, auth_headers):
        _, token = await register_user("kate")
        headers = auth_headers(token)

        fetch = await test_client.get("/api/jokes/999999")
        update = await test_client.patch("/api/jokes/999999", json={"title": "t"}, headers=headers)
        delete = await test_client.delete("/api/jokes/999999", headers=headers)

        for response in (fetch, update, delete):
            assert response.status_code == 404
            assert response.json()["error"] == "not_found"

    @pytest.mark.asyncio
    async def test_malformed_json_is_400(self, test_client, register_user, auth_headers):
        _, token = await register_user("liam")
        response = await test_client.post(
            "/api/jokes",
            content=b"{not json",
            headers={**auth_headers(token), "Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"


class TestListing:

    @pytest.mark.asyncio
    async def test_filters_and_pagination(self, test_client, register_user, auth_headers):
        _, alice_token = await register_user("alice")
        _, bob_token = await register_user("bob")
        alice, bob = auth_headers(alice_token), auth_headers(bob_token)

        for i in range(3):
            await create_joke(test_client, alice, body=f"alice ru {i}")
        await create_joke(test_client, alice, body="alice en", language="en")
        await create_joke(test_client, bob, body="bob ru")

        everything = await test_client.get("/api/jokes")
        assert everything.json()["pagination"]["total"] == 5

        by_alice = await test_client.get("/api/jokes", params={"author": "alice"})
        assert by_alice.json()["pagination"]["total"] == 4
        assert all(item["author_name"] == "alice" for item in by_alice.json()["items"])

        alice_en = await test_client.get("/api/jokes", params={"author": "alice", "language": "en"})
        assert [item["body"] for item in alice_en.json()["items"]] == ["alice en"]

        page = await test_client.get("/api/jokes", params={"limit": "2", "page": "2"})
        pagination = page.json()["pagination"]
        assert len(page.json()["items"]) == 2
        assert pagination == {
            "page": 2,
            "limit": 2,
            "total": 5,
            "totalPages": 3,
            "hasNext": True,
            "hasPrev": True,
        }

    @pytest.mark.asyncio
    async def test_pagination_is_clamped(self, test_client):
        response = await test_client.get("/api/jokes", params={"page": "-5", "limit": "1000"})
        assert response.status_code == 200
        pagination = response.json()["pagination"]
        assert pagination["page"] == 1
        assert pagination["limit"] == 50
        assert pagination["total"] == 0
        assert pagination["hasNext"] is False
        assert pagination["hasPrev"] is False

    @pytest.mark.asyncio
    async def test_sort_oldest_and_newest(self, test_client, register_user, auth_headers):
        _, token = await register_user("mona")
        headers = auth_headers(token)
        first = await create_joke(test_client, headers, body="first")
        second = await create_joke(test_client, headers, body="second")

        oldest = await test_client.get("/api/jokes", params={"sort": "oldest"})
        newest = await test_client.get("/api/jokes")
        assert [item["id"] for item in oldest.json()["items"]] == [first["id"], second["id"]]
        assert [item["id"] for item in newest.json()["items"]] == [second["id"], first["id"]]

    @pytest.mark.asyncio
    async def test_random(self, test_client, register_user, auth_headers):
        empty = await test_client.get("/api/jokes/random")
        assert empty.status_code == 404

        _, token = await register_user("nina")
        joke = await create_joke(test_client, auth_headers(token), language="en")

        picked = await test_client.get("/api/jokes/random", params={"language": "en"})
        assert picked.status_code == 200
        assert picked.json()["id"] == joke["id"]
        assert "favorites_count" in picked.json()

        none_in_language = await test_client.get("/api/jokes/random", params={"language": "de"})
        assert none_in_language.status_code == 404

    @pytest.mark.asyncio
    async def test_random_pick_counts_views(self, test_client, register_user, auth_headers):
        _, token = await register_user("nora")
        joke = await create_joke(test_client, auth_headers(token))

        for _ in range(2):
            picked = await test_client.get("/api/jokes/random")
            assert picked.json()["id"] == joke["id"]

        listing = await test_client.get("/api/jokes")
        assert listing.json()["items"][0]["views"] == 2


class TestFavorites:

    @pytest.mark.asyncio
    async def test_add_duplicate_remove_list(self, test_client, register_user, auth_headers):
        author_id, author_token = await register_user("olga")
        fan_id, fan_token = await register_user("pete")
        fan = auth_headers(fan_token)
        joke = await create_joke(test_client, auth_headers(author_token))

        added = await test_client.post(f"/api/jokes/{joke['id']}/favorite", headers=fan)
        assert added.status_code == 201

        again = await test_client.post(f"/api/jokes/{joke['id']}/favorite", headers=fan)
        assert again.status_code == 409
        assert again.json()["error"] == "duplicate_resource"

        listed = await test_client.get(f"/api/users/{fan_id}/favorites")
        assert listed.status_code == 200
        assert len(listed.json()) == 1
        assert listed.json()[0]["id"] == joke["id"]
        assert listed.json()[0]["author_name"] == "olga"
        assert listed.json()[0]["author_display_name"] == "olga"

        detail = await test_client.get(f"/api/jokes/{joke['id']}")
        assert detail.json()["favorites_count"] == 1

        removed = await test_client.delete(f"/api/jokes/{joke['id']}/favorite", headers=fan)
        removed_again = await test_client.delete(f"/api/jokes/{joke['id']}/favorite", headers=fan)
        assert removed.status_code == 204
        assert removed_again.status_code == 204

        assert (await test_client.get(f"/api/users/{fan_id}/favorites")).json() == []

    @pytest.mark.asyncio
    async def test_favorite_missing_joke_is_reference_error(self, test_client, register_user, auth_headers):
        _, token = await register_user("quinn")
        response = await test_client.post("/api/jokes/424242/favorite", headers=auth_headers(token))
        assert response.status_code == 400
        assert response.json()["error"] == "reference_error"

    @pytest.mark.asyncio
    async def test_favorite_requires_auth(self, test_client):
        response = await test_client.post("/api/jokes/1/favorite")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_legacy_mount(self, test_client, register_user, auth_headers):
        user_id, token = await register_user("rosa")
        joke = await create_joke(test_client, auth_headers(token))

        added = await test_client.post(
            f"/api/favorites/jokes/{joke['id']}/favorite", headers=auth_headers(token)
        )
        assert added.status_code == 201

        listed = await test_client.get(f"/api/favorites/users/{user_id}/favorites")
        assert [item["id"] for item in listed.json()] == [joke["id"]]


class TestComments:

    @pytest.mark.asyncio
    async def test_add_and_list(self, test_client, register_user, auth_headers):
        _, token = await register_user("sam")
        headers = auth_headers(token)
        joke = await create_joke(test_client, headers)

        first = await test_client.post(
            f"/api/jokes/{joke['id']}/comments", json={"body": "lol"}, headers=headers
        )
        await test_client.post(
            f"/api/jokes/{joke['id']}/comments", json={"body": "again"}, headers=headers
        )
        assert first.status_code == 201
        assert first.json()["author_name"] == "sam"

        listed = await test_client.get(f"/api/jokes/{joke['id']}/comments")
        assert [c["body"] for c in listed.json()] == ["lol", "again"]

        detail = await test_client.get(f"/api/jokes/{joke['id']}")
        assert detail.json()["comments_count"] == 2

    @pytest.mark.asyncio
    async def test_comment_on_missing_joke(self, test_client, register_user, auth_headers):
        _, token = await register_user("tess")
        response = await test_client.post(
            "/api/jokes/31337/comments", json={"body": "hello"}, headers=auth_headers(token)
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_blank_comment(self, test_client, register_user, auth_headers):
        _, token = await register_user("uma")
        joke = await create_joke(test_client, auth_headers(token))
        response = await test_client.post(
            f"/api/jokes/{joke['id']}/comments", json={"body": " "}, headers=auth_headers(token)
        )
        assert response.status_code == 400


class TestInfrastructure:

    @pytest.mark.asyncio
    async def test_health(self, test_client):
        response = await test_client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "OK"
        assert body["database"] == "connected"
        assert "timestamp" in body

    @pytest.mark.asyncio
    async def test_request_id_round_trip(self, test_client):
        response = await test_client.get("/api/jokes/abc", headers={"X-Request-ID": "trace-123"})
        assert response.headers["X-Request-ID"] == "trace-123"
        assert response.json()["request_id"] == "trace-123"

    @pytest.mark.asyncio
    async def test_generated_request_id(self, test_client):
        response = await test_client.get("/api/jokes")
        assert len(response.headers["X-Request-ID"]) == 8

    @pytest.mark.asyncio
    async def test_credential_routes_are_throttled(self, database):
        from httpx import ASGITransport, AsyncClient

        from jokes_api.config import Settings
        from jokes_api.main import create_app

        config = Settings(rate_limit_enabled=True, rate_limit_requests=2, rate_limit_window=60)
        app = create_app(config=config, database=database)

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            statuses = [
                (await client.post("/api/auth/login", json={})).status_code
                for _ in range(3)
            ]
            throttled = await client.post("/api/auth/login", json={})
            unthrottled = await client.get("/api/jokes")

        assert statuses == [400, 400, 429]
        assert throttled.json()["error"] == "rate_limit_exceeded"
        assert int(throttled.headers["Retry-After"]) > 0
        assert unthrottled.status_code == 200

    @pytest.mark.asyncio
    async def test_app_uses_the_settings_it_was_built_with(self, database):
        import jwt
        from httpx import ASGITransport, AsyncClient

        from jokes_api.config import Settings
        from jokes_api.main import create_app

        config = Settings(
            jwt_secret="other-secret",
            page_max_limit=5,
            default_language="fr",
            rate_limit_enabled=False,
        )
        app = create_app(config=config, database=database)

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            registered = await client.post(
                "/api/auth/register",
                json={"username": "quinn", "email": "quinn@example.com", "password": "secret123"},
            )
            token = registered.json()["token"]
            headers = {"Authorization": f"Bearer {token}"}

            me = await client.get("/api/auth/me", headers=headers)
            created = await client.post("/api/jokes", json={"body": "bonjour"}, headers=headers)
            listing = await client.get("/api/jokes", params={"limit": "50"})

        assert jwt.decode(token, "other-secret", algorithms=["HS256"])["sub"] == str(
            registered.json()["id"]
        )
        assert me.status_code == 200
        assert created.json()["language"] == "fr"
        assert listing.json()["pagination"]["limit"] == 5

    def test_throttle_prefix_matches_whole_path_segments(self):
        from jokes_api.middleware.rate_limit import RateLimitMiddleware

        middleware = RateLimitMiddleware(app=None, path_prefix="/api/auth")
        assert middleware.is_throttled("/api/auth")
        assert middleware.is_throttled("/api/auth/login")
        assert not middleware.is_throttled("/api/authors")
        assert not middleware.is_throttled("/api/jokes")

import pytest

from sqlalchemy import func, select

from study_scheduler.models.study_config import StudyConfiguration
from study_scheduler.models.study_session import StudySession

API = "/api/v1/admin"


@pytest.fixture
async def learner_schedule(client, user_headers, config_payload):
    resp = await client.post("/api/v1/study-config", json=config_payload, headers=user_headers)
    assert resp.status_code == 201
    return resp.json()


@pytest.mark.integration
class TestAdminAccess:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["/dashboard/stats", "/users", "/subscriptions", "/performance/daily"])
    async def test_admin_only(self, client, user_headers, path):
        assert (await client.get(f"{API}{path}", headers=user_headers)).status_code == 403

    @pytest.mark.asyncio
    async def test_dashboard(self, client, user, admin_headers, learner_schedule):
        stats = (await client.get(f"{API}/dashboard/stats", headers=admin_headers)).json()
        assert stats["total_users"] == 2
        assert stats["admin_users"] == 1
        assert stats["total_sessions"] == 3
        assert stats["total_technologies"] == 2


@pytest.mark.integration
class TestUserManagement:

    @pytest.mark.asyncio
    async def test_list_and_filter(self, client, user, other_user, admin_headers):
        body = (await client.get(f"{API}/users", params={"per_page": 2}, headers=admin_headers)).json()
        assert body["total"] == 3
        assert body["pages"] == 2
        assert len(body["users"]) == 2

        admins = (await client.get(f"{API}/users", params={"role": "admin"}, headers=admin_headers)).json()
        assert [u["email"] for u in admins["users"]] == ["admin@example.com"]

        found = (await client.get(f"{API}/users", params={"search": "learner"}, headers=admin_headers)).json()
        assert [u["id"] for u in found["users"]] == [str(user.id)]

    @pytest.mark.asyncio
    async def test_create_user(self, client, admin_headers, user):
        resp = await client.post(
            f"{API}/users",
            json={"email": "Mentor@Example.com", "password": "Passw0rdX", "role": "admin"},
            headers=admin_headers,
        )
        assert resp.status_code == 201
        assert resp.json()["email"] == "mentor@example.com"
        assert resp.json()["role"] == "admin"

        dup = await client.post(
            f"{API}/users", json={"email": user.email, "password": "Passw0rdX"}, headers=admin_headers
        )
        assert dup.status_code == 400

    @pytest.mark.asyncio
    async def test_update_user(self, client, user, other_user, admin_headers):
        resp = await client.put(f"{API}/users/{user.id}", json={"full_name": "Renamed"}, headers=admin_headers)
        assert resp.json()["full_name"] == "Renamed"

        taken = await client.put(f"{API}/users/{user.id}", json={"email": other_user.email}, headers=admin_headers)
        assert taken.status_code == 400

    @pytest.mark.asyncio
    async def test_ban_and_unban(self, client, user, user_headers, admin_headers):
        resp = await client.post(f"{API}/users/{user.id}/ban", headers=admin_headers)
        assert resp.json()["is_active"] is False
        assert resp.json()["banned_at"] is not None
        assert (await client.get("/api/v1/auth/me", headers=user_headers)).status_code == 403

        banned = (await client.get(f"{API}/users", params={"status": "banned"}, headers=admin_headers)).json()
        assert [u["id"] for u in banned["users"]] == [str(user.id)]

        resp = await client.post(f"{API}/users/{user.id}/unban", headers=admin_headers)
        assert resp.json()["banned_at"] is None
        assert (await client.get("/api/v1/auth/me", headers=user_headers)).status_code == 200

    @pytest.mark.asyncio
    async def test_promote_and_demote(self, client, user, user_headers, admin_headers):
        resp = await client.post(f"{API}/users/{user.id}/promote", headers=admin_headers)
        assert resp.json()["role"] == "admin"
        assert (await client.get(f"{API}/users", headers=user_headers)).status_code == 200

        resp = await client.post(f"{API}/users/{user.id}/demote", headers=admin_headers)
        assert resp.json()["role"] == "user"

    @pytest.mark.asyncio
    async def test_cannot_act_on_self(self, client, admin_user, admin_headers):
        assert (await client.post(f"{API}/users/{admin_user.id}/ban", headers=admin_headers)).status_code == 400
        assert (await client.post(f"{API}/users/{admin_user.id}/demote", headers=admin_headers)).status_code == 400
        assert (await client.delete(f"{API}/users/{admin_user.id}", headers=admin_headers)).status_code == 400

    @pytest.mark.asyncio
    async def test_delete_user_removes_schedule(
        self, client, test_session, user, user_headers, admin_headers, learner_schedule
    ):
        await client.post("/api/v1/subjects", json={"title": "Notes", "sub_subjects": [{"title": "a"}]}, headers=user_headers)
        await client.post("/api/v1/subscription/activate-trial", headers=user_headers)

        resp = await client.delete(f"{API}/users/{user.id}", headers=admin_headers)
        assert resp.status_code == 204

        assert await test_session.scalar(select(func.count(StudySession.id))) == 0
        assert await test_session.scalar(select(func.count(StudyConfiguration.id))) == 0
        assert (await client.get("/api/v1/auth/me", headers=user_headers)).status_code == 401


@pytest.mark.integration
class TestSubscriptionsAndReports:

    @pytest.mark.asyncio
    async def test_list_and_cancel_trial(self, client, user, user_headers, admin_headers):
        await client.post("/api/v1/subscription/activate-trial", headers=user_headers)

        subs = (await client.get(f"{API}/subscriptions", headers=admin_headers)).json()
        assert [s["user_email"] for s in subs] == [user.email]

        resp = await client.post(f"{API}/subscriptions/{subs[0]['id']}/cancel", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json()["status"] == "canceled"

        current = (await client.get("/api/v1/subscription/current", headers=user_headers)).json()
        assert current["has_access"] is False

    @pytest.mark.asyncio
    async def test_user_performance(self, client, user, user_headers, admin_headers, learner_schedule):
        sessions = (await client.get("/api/v1/study-sessions", headers=user_headers)).json()["sessions"]
        await client.put(f"/api/v1/study-sessions/{sessions[0]['id']}/complete", headers=user_headers)

        rows = (await client.get(f"{API}/performance/users", headers=admin_headers)).json()
        assert len(rows) == 1
        assert rows[0]["email"] == user.email
        assert rows[0]["total_sessions"] == 3
        assert rows[0]["completed_sessions"] == 1

    @pytest.mark.asyncio
    async def test_daily_stats(self, client, user_headers, admin_headers, learner_schedule):
        rows = (
            await client.get(
                f"{API}/performance/daily",
                params={"start_date": "2024-01-02", "end_date": "2024-01-31"},
                headers=admin_headers,
            )
        ).json()
        assert [(r["day"], r["sessions"]) for r in rows] == [("2024-01-03", 1), ("2024-01-08", 1)]

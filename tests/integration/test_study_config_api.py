import pytest
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import func, select, update

from study_scheduler.models.study_config import StudyConfiguration
from study_scheduler.models.study_session import StudySession
from study_scheduler.scheduling import ValidationError
from study_scheduler.services import schedule_service

API = "/api/v1/study-config"


async def _count(session, model, *criteria):
    return await session.scalar(select(func.count()).select_from(model).where(*criteria))


async def _create(client, headers, payload):
    resp = await client.post(API, json=payload, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.fixture
def break_insert(monkeypatch):
    """Make later bulk session inserts violate the positive-hours constraint"""
    original = schedule_service.build_sessions

    def broken_build(*args, **kwargs):
        sessions = original(*args, **kwargs)
        sessions[-1].scheduled_hours = Decimal("0")
        return sessions

    def apply():
        monkeypatch.setattr(schedule_service, "build_sessions", broken_build)

    return apply


@pytest.mark.integration
class TestCreateConfiguration:
    """Creating a configuration activates it and generates its schedule"""

    @pytest.mark.asyncio
    async def test_reference_schedule(self, client, user_headers, config_payload):
        body = await _create(client, user_headers, config_payload)
        assert body["sessions_created"] == 3
        config = body["configuration"]
        assert config["is_active"] is True
        assert config["total_weekly_hours"] == 3.0
        assert config["total_selected_hours"] == 4.0

        resp = await client.get(f"{API}/{config['id']}/schedule", headers=user_headers)
        sessions = resp.json()["sessions"]
        assert [
            (s["scheduled_date"], s["subtopic_name"], s["scheduled_hours"]) for s in sessions
        ] == [
            ("2024-01-01", "Alpha Basics", 2.0),
            ("2024-01-03", "Alpha Basics", 1.0),
            ("2024-01-08", "Beta Basics", 1.0),
        ]
        assert resp.json()["total"] == 3

    @pytest.mark.asyncio
    async def test_without_schedule(self, client, user_headers, config_payload):
        body = await _create(client, user_headers, {**config_payload, "generate_schedule": False})
        assert body["sessions_created"] == 0

    @pytest.mark.asyncio
    async def test_only_one_active_configuration(self, client, test_session, user, user_headers, config_payload):
        first = await _create(client, user_headers, config_payload)
        second = await _create(client, user_headers, {**config_payload, "start_date": "2024-02-05"})

        active = await _count(
            test_session,
            StudyConfiguration,
            StudyConfiguration.user_id == user.id,
            StudyConfiguration.is_active.is_(True),
        )
        assert active == 1

        resp = await client.get(API, headers=user_headers)
        body = resp.json()
        assert body["configuration"]["id"] == second["configuration"]["id"]
        assert body["configuration"]["id"] != first["configuration"]["id"]
        assert body["total_sessions"] == 3

    @pytest.mark.asyncio
    async def test_unknown_technologies_rejected(self, client, test_session, user_headers, catalog):
        payload = {
            "start_date": "2024-01-01",
            "study_days": [{"day": "monday", "hours": 2}],
            "selected_technologies": [str(uuid4())],
        }
        resp = await client.post(API, json=payload, headers=user_headers)
        assert resp.status_code == 400
        assert await _count(test_session, StudyConfiguration) == 0

    @pytest.mark.asyncio
    async def test_all_zero_hours_rejected(self, client, test_session, user_headers, config_payload):
        payload = {**config_payload, "study_days": [{"day": "monday", "hours": 0}]}
        resp = await client.post(API, json=payload, headers=user_headers)
        assert resp.status_code == 400
        assert await _count(test_session, StudyConfiguration) == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "study_days",
        [
            [],
            [{"day": "caturday", "hours": 1}],
            [{"day": "monday", "hours": -1}],
            [{"day": "monday", "hours": 25}],
        ],
    )
    async def test_malformed_study_days(self, client, user_headers, config_payload, study_days):
        resp = await client.post(API, json={**config_payload, "study_days": study_days}, headers=user_headers)
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_horizon_exceeded(self, client, test_session, monkeypatch, settings, user_headers, config_payload):
        monkeypatch.setattr(settings, "SCHEDULE_MAX_HORIZON_DAYS", 1)
        resp = await client.post(API, json=config_payload, headers=user_headers)
        assert resp.status_code == 422
        assert await _count(test_session, StudySession) == 0
        assert await _count(test_session, StudyConfiguration) == 0

    @pytest.mark.asyncio
    async def test_failed_insert_leaves_nothing_behind(
        self, client, test_session, break_insert, user_headers, config_payload
    ):
        break_insert()
        resp = await client.post(API, json=config_payload, headers=user_headers)

        assert resp.status_code == 500
        assert await _count(test_session, StudySession) == 0
        assert await _count(test_session, StudyConfiguration) == 0

    @pytest.mark.asyncio
    async def test_failed_insert_keeps_previous_configuration(
        self, client, test_session, break_insert, user_headers, config_payload
    ):
        first = await _create(client, user_headers, config_payload)
        break_insert()

        resp = await client.post(API, json={**config_payload, "start_date": "2024-02-05"}, headers=user_headers)
        assert resp.status_code == 500

        body = (await client.get(API, headers=user_headers)).json()
        assert body["configuration"]["id"] == first["configuration"]["id"]
        assert body["total_sessions"] == 3
        assert await _count(test_session, StudyConfiguration) == 1

    @pytest.mark.asyncio
    async def test_horizon_only_checked_when_scheduling(
        self, client, test_session, monkeypatch, settings, user_headers, config_payload
    ):
        monkeypatch.setattr(settings, "SCHEDULE_MAX_HORIZON_DAYS", 1)
        body = await _create(client, user_headers, {**config_payload, "generate_schedule": False})
        assert body["sessions_created"] == 0
        assert body["configuration"]["is_active"] is True

        config_id = body["configuration"]["id"]
        resp = await client.post(f"{API}/{config_id}/generate-schedule", headers=user_headers)
        assert resp.status_code == 422
        assert await _count(test_session, StudySession) == 0

    @pytest.mark.asyncio
    async def test_subscription_gate(self, client, require_subscription, user_headers, admin_headers, config_payload):
        resp = await client.post(API, json=config_payload, headers=user_headers)
        assert resp.status_code == 402

        resp = await client.post(API, json=config_payload, headers=admin_headers)
        assert resp.status_code == 201


@pytest.mark.integration
class TestRegenerateSchedule:

    @pytest.mark.asyncio
    async def test_regenerate_replaces_sessions(self, client, test_session, user_headers, config_payload):
        config_id = (await _create(client, user_headers, config_payload))["configuration"]["id"]

        for _ in range(2):
            resp = await client.post(f"{API}/{config_id}/generate-schedule", headers=user_headers)
            assert resp.status_code == 200
            assert resp.json()["sessions_created"] == 3

        assert await _count(test_session, StudySession) == 3
        dates = [s["scheduled_date"] for s in resp.json()["schedule"]]
        assert dates == ["2024-01-01", "2024-01-03", "2024-01-08"]

    @pytest.mark.asyncio
    async def test_regenerate_uses_updated_settings(self, client, user_headers, config_payload):
        config_id = (await _create(client, user_headers, config_payload))["configuration"]["id"]

        resp = await client.put(
            f"{API}/{config_id}",
            json={"study_days": [{"day": "tuesday", "hours": 4}]},
            headers=user_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["total_weekly_hours"] == 4.0

        # unchanged until regenerated
        stats = (await client.get(f"{API}/{config_id}/stats", headers=user_headers)).json()
        assert stats["first_session_date"] == "2024-01-01"

        resp = await client.post(f"{API}/{config_id}/generate-schedule", headers=user_headers)
        schedule = resp.json()["schedule"]
        assert sorted((s["scheduled_date"], s["subtopic_name"], s["scheduled_hours"]) for s in schedule) == [
            ("2024-01-02", "Alpha Basics", 3.0),
            ("2024-01-02", "Beta Basics", 1.0),
        ]

    @pytest.mark.asyncio
    async def test_inactive_configuration_rejected(self, client, user_headers, config_payload):
        old_id = (await _create(client, user_headers, config_payload))["configuration"]["id"]
        await _create(client, user_headers, config_payload)

        resp = await client.post(f"{API}/{old_id}/generate-schedule", headers=user_headers)
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_other_users_configuration(self, client, user_headers, other_headers, config_payload):
        config_id = (await _create(client, user_headers, config_payload))["configuration"]["id"]
        resp = await client.post(f"{API}/{config_id}/generate-schedule", headers=other_headers)
        assert resp.status_code == 404
        assert (await client.get(f"{API}/{config_id}/schedule", headers=other_headers)).status_code == 404

    @pytest.mark.asyncio
    async def test_retired_technologies_give_empty_schedule(
        self, client, test_session, catalog, user_headers, config_payload
    ):
        config_id = (await _create(client, user_headers, config_payload))["configuration"]["id"]
        catalog["a"].is_active = False
        catalog["b"].is_active = False
        await test_session.commit()

        resp = await client.post(f"{API}/{config_id}/generate-schedule", headers=user_headers)
        assert resp.status_code == 200
        assert resp.json()["sessions_created"] == 0
        assert await _count(test_session, StudySession) == 0

    @pytest.mark.asyncio
    async def test_failed_insert_keeps_previous_schedule(
        self, client, test_session, break_insert, user_headers, config_payload
    ):
        config_id = (await _create(client, user_headers, config_payload))["configuration"]["id"]
        before = (await client.get(f"{API}/{config_id}/schedule", headers=user_headers)).json()["sessions"]
        break_insert()

        resp = await client.post(f"{API}/{config_id}/generate-schedule", headers=user_headers)
        assert resp.status_code == 500

        after = (await client.get(f"{API}/{config_id}/schedule", headers=user_headers)).json()["sessions"]
        assert {s["id"] for s in after} == {s["id"] for s in before}
        assert len(after) == 3

    @pytest.mark.asyncio
    async def test_regeneration_locks_the_user(
        self, client, monkeypatch, user, user_headers, config_payload
    ):
        config_id = (await _create(client, user_headers, config_payload))["configuration"]["id"]
        locked = []
        original = schedule_service.lock_user

        async def recording_lock(db, user_id):
            locked.append(user_id)
            await original(db, user_id)

        monkeypatch.setattr(schedule_service, "lock_user", recording_lock)
        resp = await client.post(f"{API}/{config_id}/generate-schedule", headers=user_headers)
        assert resp.status_code == 200
        assert locked == [user.id]

    @pytest.mark.asyncio
    async def test_activity_rechecked_after_lock(self, client, test_session, user, user_headers, config_payload):
        config_id = (await _create(client, user_headers, config_payload))["configuration"]["id"]
        config = await test_session.get(StudyConfiguration, UUID(config_id))

        # deactivated behind the loaded object's back, as a concurrent create would
        await test_session.execute(
            update(StudyConfiguration)
            .where(StudyConfiguration.id == config.id)
            .values(is_active=False)
            .execution_options(synchronize_session=False)
        )
        assert config.is_active is True

        with pytest.raises(ValidationError):
            await schedule_service.generate_schedule(test_session, user.id, config)
        assert await _count(test_session, StudySession) == 3


@pytest.mark.integration
class TestScheduleQueries:

    @pytest.mark.asyncio
    async def test_schedule_filters_and_pages(self, client, user_headers, config_payload):
        config_id = (await _create(client, user_headers, config_payload))["configuration"]["id"]

        resp = await client.get(
            f"{API}/{config_id}/schedule",
            params={"start_date": "2024-01-02", "end_date": "2024-01-31"},
            headers=user_headers,
        )
        assert [s["scheduled_date"] for s in resp.json()["sessions"]] == ["2024-01-03", "2024-01-08"]

        page = await client.get(
            f"{API}/{config_id}/schedule", params={"page": 2, "limit": 2}, headers=user_headers
        )
        assert page.json()["total"] == 3
        assert len(page.json()["sessions"]) == 1

    @pytest.mark.asyncio
    async def test_stats(self, client, user_headers, config_payload):
        config_id = (await _create(client, user_headers, config_payload))["configuration"]["id"]
        stats = (await client.get(f"{API}/{config_id}/stats", headers=user_headers)).json()

        assert stats["total_sessions"] == 3
        assert stats["pending_sessions"] == 3
        assert stats["total_hours"] == 4.0
        assert stats["last_session_date"] == "2024-01-08"

    @pytest.mark.asyncio
    async def test_progress(self, client, catalog, user_headers, config_payload):
        config_id = (await _create(client, user_headers, config_payload))["configuration"]["id"]
        sessions = (await client.get(f"{API}/{config_id}/schedule", headers=user_headers)).json()["sessions"]
        await client.put(f"/api/v1/study-sessions/{sessions[0]['id']}/complete", headers=user_headers)

        progress = (await client.get(f"{API}/progress", headers=user_headers)).json()
        assert progress["completed_hours"] == 2.0
        assert progress["total_hours"] == 4.0
        assert progress["completion_percentage"] == 50.0
        assert [t["technology_name"] for t in progress["technologies"]] == ["Alpha", "Beta"]

        detail = (
            await client.get(f"{API}/progress/technologies/{catalog['a'].id}", headers=user_headers)
        ).json()
        assert detail["completed_sessions"] == 1
        assert detail["subtopics"][0]["subtopic_name"] == "Alpha Basics"

    @pytest.mark.asyncio
    async def test_no_active_configuration(self, client, user_headers):
        resp = await client.get(API, headers=user_headers)
        assert resp.json() == {"configuration": None, "total_sessions": 0, "completed_sessions": 0}


@pytest.mark.integration
class TestResetAndDelete:

    @pytest.mark.asyncio
    async def test_reset(self, client, test_session, user_headers, other_headers, config_payload):
        await _create(client, user_headers, config_payload)
        await _create(client, other_headers, config_payload)

        resp = await client.post(f"{API}/reset", headers=user_headers)
        assert resp.status_code == 200
        body = resp.json()
        assert body["deleted_sessions"] == 3
        assert body["deactivated_configurations"] == 1

        assert (await client.get(API, headers=user_headers)).json()["configuration"] is None
        # the other user's schedule is untouched
        assert await _count(test_session, StudySession) == 3

    @pytest.mark.asyncio
    async def test_delete_deactivates(self, client, user_headers, config_payload):
        config_id = (await _create(client, user_headers, config_payload))["configuration"]["id"]
        resp = await client.delete(f"{API}/{config_id}", headers=user_headers)
        assert resp.status_code == 204
        assert (await client.get(API, headers=user_headers)).json()["configuration"] is None

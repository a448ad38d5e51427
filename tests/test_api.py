"""
End-to-end API tests: template -> plan -> generate -> log -> stats.
"""

import pytest

FIVE_THREE_ONE = {
    "kind": "531",
    "schedule": {"sessionsPerWeek": 4},
    "mainLifts": ["SQUAT", "BENCH", "DEADLIFT", "OHP"],
}


async def create_template(client, slug: str = "wendler-531", **overrides) -> dict:
    body = {
        "slug": slug,
        "name": "Wendler 5/3/1",
        "type": "LOGIC",
        "definition": FIVE_THREE_ONE,
        "defaults": {"tmPercent": 0.9},
        **overrides,
    }
    response = await client.post("/templates", json=body)
    assert response.status_code == 201, response.text
    return response.json()


async def create_plan(client, version_id: int) -> dict:
    response = await client.post(
        "/plans",
        json={
            "name": "Wendler",
            "type": "SINGLE",
            "rootProgramVersionId": version_id,
            "params": {"oneRepMaxKg": {"DEADLIFT": 200}},
        },
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestHealth:

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert "X-Request-ID" in response.headers

    @pytest.mark.asyncio
    async def test_request_id_echoed(self, client):
        response = await client.get("/health", headers={"X-Request-ID": "abc-123"})

        assert response.headers["X-Request-ID"] == "abc-123"

    @pytest.mark.asyncio
    async def test_metrics(self, client):
        response = await client.get("/metrics")

        assert response.status_code == 200
        assert "sessions_generated_total" in response.text


class TestTemplates:

    @pytest.mark.asyncio
    async def test_create_and_version(self, client):
        created = await create_template(client)
        assert created["template"]["slug"] == "wendler-531"
        assert created["version"]["version"] == 1

        response = await client.post(
            "/templates/wendler-531/versions",
            json={"defaults": {"tmPercent": 0.85}},
        )

        assert response.status_code == 201
        v2 = response.json()
        assert v2["version"] == 2
        assert v2["parentVersionId"] == created["version"]["id"]
        assert v2["definition"] == FIVE_THREE_ONE
        assert v2["changelog"] == "Derived from v1"

    @pytest.mark.asyncio
    async def test_duplicate_slug_conflict(self, client):
        await create_template(client)

        response = await client.post(
            "/templates",
            json={"slug": "wendler-531", "name": "Again", "type": "LOGIC", "definition": FIVE_THREE_ONE},
        )

        assert response.status_code == 409
        assert response.json()["errors"][0]["code"] == "CF_TEMPLATE_SLUG"

    @pytest.mark.asyncio
    async def test_unknown_kind_rejected(self, client):
        response = await client.post(
            "/templates",
            json={"slug": "westside", "name": "Westside", "type": "LOGIC", "definition": {"kind": "conjugate"}},
        )

        assert response.status_code == 400
        assert response.json()["errors"][0]["code"] == "VAL_DEFINITION_001"

    @pytest.mark.asyncio
    async def test_fork(self, client):
        created = await create_template(client)

        response = await client.post("/templates/wendler-531/fork")

        assert response.status_code == 201
        fork = response.json()
        assert fork["template"]["slug"] == "wendler-531-dev"
        assert fork["template"]["visibility"] == "PRIVATE"
        assert fork["template"]["parentTemplateId"] == created["template"]["id"]
        assert fork["version"]["version"] == 1
        assert fork["version"]["parentVersionId"] == created["version"]["id"]
        assert fork["sourceVersionId"] == created["version"]["id"]

        version = await client.get(f"/program-versions/{fork['version']['id']}")
        assert version.status_code == 200

    @pytest.mark.asyncio
    async def test_missing_template_version(self, client):
        response = await client.post("/templates/nope/versions", json={})

        assert response.status_code == 404


class TestGenerationFlow:

    @pytest.mark.asyncio
    async def test_full_flow(self, client):
        """Generate W2D3, log it, and see it in stats."""
        template = await create_template(client)
        plan = await create_plan(client, template["version"]["id"])

        response = await client.post(
            f"/plans/{plan['id']}/generate",
            json={"week": 2, "day": 3, "sessionDate": "2026-01-07"},
        )

        assert response.status_code == 201, response.text
        body = response.json()
        session = body["session"]
        assert session["sessionKey"] == "W2D3"
        assert session["status"] == "PLANNED"
        assert body["warnings"] == []
        assert [s["weightKg"] for s in session["snapshot"]["sets"]] == [126.0, 144.0, 162.0]

        again = await client.post(
            f"/plans/{plan['id']}/generate",
            json={"week": 2, "day": 3, "sessionDate": "2026-01-07"},
        )
        assert again.json()["session"]["id"] == session["id"]

        listed = await client.get("/generated-sessions", params={"planId": plan["id"]})
        assert [s["id"] for s in listed.json()] == [session["id"]]

        stored = await client.get(f"/plans/{plan['id']}/sessions/W2D3")
        assert stored.status_code == 200
        assert stored.json()["snapshot"] == session["snapshot"]
        assert (await client.get(f"/plans/{plan['id']}/sessions/W9D9")).status_code == 404

        log = await client.post(
            "/logs",
            json={
                "generatedSessionId": session["id"],
                "performedAt": "2026-01-07T18:00:00Z",
                "sets": [
                    {"exerciseName": "Deadlift", "setNumber": 1, "reps": 3, "weightKg": 126},
                    {"exerciseName": "Deadlift", "setNumber": 2, "reps": 3, "weightKg": 144},
                    {"exerciseName": "Deadlift", "setNumber": 3, "reps": 5, "weightKg": 162},
                ],
            },
        )
        assert log.status_code == 201, log.text
        assert log.json()["planId"] == plan["id"]
        assert [s["sortOrder"] for s in log.json()["sets"]] == [0, 1, 2]

        window = {"from": "2026-01-01", "to": "2026-01-31"}
        compliance = await client.get("/stats/compliance", params=window)
        assert compliance.status_code == 200
        assert compliance.json()["planned"] == 1
        assert compliance.json()["done"] == 1
        assert compliance.json()["compliance"] == 1.0

        e1rm = await client.get("/stats/e1rm", params={**window, "exercise": "deadlift"})
        assert e1rm.json()["best"]["e1rm"] == 189.0

        volume = await client.get("/stats/volume", params=window)
        assert volume.json()["totals"] == {"tonnage": 1620.0, "reps": 11, "sets": 3}

        series = await client.get("/stats/volume-series", params={**window, "bucket": "week"})
        assert series.json()["series"][0]["period"] == "2026-01-05"

        prs = await client.get("/stats/prs", params=window)
        assert prs.json()["items"][0]["exerciseName"] == "Deadlift"

        logs = await client.get("/logs", params={"limit": 1})
        assert logs.status_code == 200
        assert len(logs.json()["items"]) == 1
        assert logs.json()["nextCursor"] is None

    @pytest.mark.asyncio
    async def test_overrides_flow(self, client):
        template = await create_template(client)
        plan = await create_plan(client, template["version"]["id"])

        created = await client.post(
            f"/plans/{plan['id']}/overrides",
            json={"scope": "WEEK", "weekNumber": 2, "patch": {"op": "ADD_ACCESSORY", "value": {"exerciseName": "Dips"}}},
        )
        unknown = await client.post(
            f"/plans/{plan['id']}/overrides",
            json={"scope": "PLAN", "patch": {"op": "SWAP_DAYS"}},
        )
        assert created.status_code == 201
        assert unknown.status_code == 201

        response = await client.post(f"/plans/{plan['id']}/generate", json={"week": 2, "day": 3})

        body = response.json()
        exercises = body["session"]["snapshot"]["exercises"]
        assert [e["exerciseName"] for e in exercises] == ["Deadlift", "Dips"]
        assert body["warnings"] == [{"overrideId": unknown.json()["id"], "op": "SWAP_DAYS", "reason": "unknown_op"}]

        listed = await client.get(f"/plans/{plan['id']}/overrides")
        assert [o["scope"] for o in listed.json()] == ["WEEK", "PLAN"]

    @pytest.mark.asyncio
    async def test_get_log(self, client):
        created = await client.post(
            "/logs",
            json={
                "performedAt": "2026-01-07T18:00:00Z",
                "sets": [
                    {"exerciseName": "Curl", "sortOrder": 1, "setNumber": 1, "reps": 12, "weightKg": 15},
                    {"exerciseName": "Squat", "sortOrder": 0, "setNumber": 2, "reps": 5, "weightKg": 105},
                    {"exerciseName": "Squat", "sortOrder": 0, "setNumber": 1, "reps": 5, "weightKg": 100},
                ],
            },
        )
        assert created.status_code == 201, created.text

        response = await client.get(f"/logs/{created.json()['id']}")

        assert response.status_code == 200
        assert [(s["exerciseName"], s["setNumber"]) for s in response.json()["sets"]] == [
            ("Squat", 1),
            ("Squat", 2),
            ("Curl", 1),
        ]
        missing = await client.get(f"/logs/{created.json()['id'] + 1}")
        assert missing.status_code == 404
        assert missing.json()["errors"][0]["code"] == "NF_WORKOUT_LOG_001"


class TestErrors:

    @pytest.mark.asyncio
    async def test_unknown_plan(self, client):
        response = await client.post("/plans/999/generate", json={"week": 1, "day": 1})

        assert response.status_code == 404
        body = response.json()
        assert body["data"] is None
        assert body["errors"][0]["code"] == "NF_PLAN_001"

    @pytest.mark.asyncio
    async def test_missing_context(self, client):
        template = await create_template(client)
        plan = await create_plan(client, template["version"]["id"])

        response = await client.post(f"/plans/{plan['id']}/generate", json={})

        assert response.status_code == 400
        assert response.json()["errors"][0]["code"] == "GEN_MISSING_CONTEXT"

    @pytest.mark.asyncio
    async def test_invalid_scope(self, client):
        template = await create_template(client)
        plan = await create_plan(client, template["version"]["id"])

        response = await client.post(
            f"/plans/{plan['id']}/overrides",
            json={"scope": "SESSION", "patch": {"op": "SWAP_DAYS"}},
        )

        assert response.status_code == 400
        assert response.json()["errors"][0]["code"] == "VAL_SESSION_KEY_001"

    @pytest.mark.asyncio
    async def test_request_validation_envelope(self, client):
        response = await client.post("/plans", json={"type": "SINGLE"})

        assert response.status_code == 400
        assert response.json()["errors"][0]["code"] == "VAL_REQUEST_001"

    @pytest.mark.asyncio
    async def test_log_without_sets(self, client):
        response = await client.post("/logs", json={"sets": []})

        assert response.status_code == 400
        assert response.json()["errors"][0]["code"] == "VAL_SETS_001"

    @pytest.mark.asyncio
    async def test_e1rm_requires_exercise(self, client):
        response = await client.get("/stats/e1rm")

        assert response.status_code == 400
        assert response.json()["errors"][0]["code"] == "STATS_PARAMS_001"

    @pytest.mark.asyncio
    async def test_bad_cursor(self, client):
        response = await client.get("/logs", params={"cursor": "not-a-cursor"})

        assert response.status_code == 400
        assert response.json()["errors"][0]["code"] == "VAL_CURSOR_001"

    @pytest.mark.asyncio
    async def test_composite_without_modules(self, client):
        response = await client.post("/plans", json={"name": "Hybrid", "type": "COMPOSITE"})

        assert response.status_code == 400
        assert response.json()["errors"][0]["code"] == "VAL_MODULES_001"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

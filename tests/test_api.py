"""
HTTP API tests (FastAPI TestClient).

Covers:
- System endpoints (/health, /api)
- Curve profiles, evaluation and tables
- Segment editing, including failed edits leaving the curve untouched
- Formula previews
- Character progression
"""
from __future__ import annotations

import sys

import pytest


BOSS_CURVE = {
    "curve": {
        "segments": [
            {"id": "a", "startLevel": 1, "endLevel": 30, "formula": "level * 100"},
        ],
        "useBezier": False,
    },
    "maxLevel": 30,
}


class TestSystem:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["profiles"] == 2
        assert "uptimeSeconds" in body

    def test_api_root(self, client):
        body = client.get("/api").json()

        assert body["service"] == "LevelCurve API"
        assert body["endpoints"]["curves"] == "/curves"

    def test_unknown_route(self, client):
        response = client.get("/nowhere")

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"


class TestCurveProfiles:
    def test_list(self, client):
        body = client.get("/curves").json()

        assert [p["name"] for p in body["profiles"]] == ["monster", "player"]

    def test_get(self, client):
        body = client.get("/curves/player").json()

        assert body["maxLevel"] == 100
        assert body["version"] == 1
        assert len(body["curve"]["segments"]) == 2
        assert body["curve"]["bezierSegments"][0]["controlPoint1"] == {"x": 0.33, "y": 0.1}
        assert body["continuity"] == []
        assert body["overlaps"] == []

    def test_unknown_profile(self, client):
        response = client.get("/curves/dragon")

        assert response.status_code == 404
        assert "dragon" in response.json()["message"]

    def test_publish_new_profile(self, client):
        response = client.put("/curves/boss", json=BOSS_CURVE)

        assert response.status_code == 200
        assert response.json()["version"] == 1
        assert client.get("/curves/boss/required-exp/7").json()["exp"] == 700

    def test_republish_bumps_version(self, client):
        client.put("/curves/boss", json=BOSS_CURVE)
        response = client.put("/curves/boss", json=BOSS_CURVE)

        assert response.json()["version"] == 2

    def test_publish_rejects_inverted_range(self, client):
        payload = {"curve": {"segments": [
            {"id": "a", "startLevel": 10, "endLevel": 5, "formula": "level"},
        ]}}

        response = client.put("/curves/boss", json=payload)

        assert response.status_code == 422

    def test_publish_reports_continuity(self, client):
        payload = {"curve": {"segments": [
            {"id": "a", "startLevel": 1, "endLevel": 10, "formula": "level"},
            {"id": "b", "startLevel": 12, "endLevel": 20, "formula": "level"},
        ]}}

        body = client.put("/curves/gappy", json=payload).json()

        assert body["continuity"][0]["kind"] == "level_gap"
        assert body["continuity"][0]["previousId"] == "a"

    def test_publish_rejects_segment_past_max_level(self, client):
        payload = {"curve": {"segments": [
            {"id": "a", "startLevel": 1, "endLevel": 50, "formula": "level"},
        ]}, "maxLevel": 30}

        response = client.put("/curves/boss", json=payload)

        assert response.status_code == 422
        assert response.json()["error"] == "invalid_segment_range"
        assert response.json()["details"] == {"start_level": 1, "end_level": 50}
        assert client.get("/curves/boss").status_code == 404

    def test_lowering_max_level_below_segments_is_rejected(self, client):
        response = client.put("/curves/player", json={**BOSS_CURVE, "maxLevel": 20})

        assert response.status_code == 422
        assert client.get("/curves/player").json()["maxLevel"] == 100


class TestEvaluation:
    def test_required_exp(self, client):
        body = client.get("/curves/player/required-exp/2").json()

        assert body == {"level": 2, "exp": 150, "segmentId": "1", "undefined": False}

    def test_required_exp_outside_segments(self, client):
        body = client.get("/curves/player/required-exp/21").json()

        assert body["exp"] == 100 * 1.5 ** 20 // 1
        assert body["segmentId"] is None

    def test_required_exp_past_float_range(self, client):
        response = client.get("/curves/player/required-exp/2000")

        assert response.status_code == 200
        assert response.json()["exp"] == int(sys.float_info.max)
        assert response.json()["undefined"] is False

    def test_undefined_formula(self, client):
        client.put("/curves/broken", json={"curve": {"segments": [
            {"id": "a", "startLevel": 1, "endLevel": 10, "formula": "1 / 0"},
        ]}})

        body = client.get("/curves/broken/required-exp/3").json()

        assert body["exp"] is None
        assert body["undefined"] is True

    def test_invalid_level(self, client):
        assert client.get("/curves/player/required-exp/0").status_code == 422

    def test_table(self, client):
        body = client.get("/curves/player/table", params={"start": 1, "end": 3}).json()

        assert [r["exp"] for r in body["rows"]] == [100, 150, 225]
        assert body["rows"][2]["cumulativeExp"] == 475
        assert body["rows"][1]["growthPct"] == 50.0

    def test_table_invalid_range(self, client):
        response = client.get("/curves/player/table", params={"start": 5, "end": 2})

        assert response.status_code == 422

    def test_continuity_report(self, client):
        body = client.get("/curves/player/continuity").json()

        assert body == {"continuous": True, "issues": [], "overlaps": []}


class TestEditing:
    def test_append(self, client):
        response = client.post("/curves/player/segments", json={})

        body = response.json()
        assert response.status_code == 200
        assert body["version"] == 2
        assert body["curve"]["segments"][-1]["startLevel"] == 20
        assert body["curve"]["segments"][-1]["endLevel"] == 30

    def test_append_explicit_segment(self, client):
        segment = {"id": "x", "startLevel": 20, "endLevel": 40, "formula": "level * 500"}

        body = client.post("/curves/player/segments", json={"segment": segment}).json()

        assert body["curve"]["segments"][-1]["formula"] == "level * 500"

    def test_append_bezier_segment_in_formula_mode(self, client):
        segment = {"id": "9", "startLevel": 20, "endLevel": 30, "startExp": 1, "endExp": 2}

        response = client.post("/curves/player/segments", json={"segment": segment})

        assert response.status_code == 422
        assert response.json()["error"] == "invalid_segment_range"
        current = client.get("/curves/player")
        assert current.status_code == 200
        assert current.json()["version"] == 1
        assert len(current.json()["curve"]["segments"]) == 2

    def test_delete(self, client):
        body = client.delete("/curves/player/segments/2").json()

        assert [s["id"] for s in body["curve"]["segments"]] == ["1"]

    def test_delete_unknown_segment(self, client):
        response = client.delete("/curves/player/segments/99")

        assert response.status_code == 404
        assert client.get("/curves/player").json()["version"] == 1

    def test_redistribute(self, client):
        body = client.post("/curves/player/redistribute", json={"maxLevel": 20}).json()

        ranges = [(s["startLevel"], s["endLevel"]) for s in body["curve"]["segments"]]
        assert ranges == [(1, 10), (10, 20)]

    def test_mode_then_drag_control_point(self, client):
        client.post("/curves/player/mode", json={"useBezier": True})

        body = client.post("/curves/player/drag", json={
            "segmentId": "1", "endpoint": "controlPoint1", "level": 5.5, "exp": 800,
        }).json()

        assert body["curve"]["useBezier"] is True
        assert body["curve"]["bezierSegments"][0]["controlPoint1"] == {"x": 0.5, "y": 0.5}

    def test_drag_snaps_to_neighbour(self, client):
        client.post("/curves/player/mode", json={"useBezier": True})

        body = client.post("/curves/player/drag", json={
            "segmentId": "2", "endpoint": "start", "level": 10.4, "exp": 1490,
        }).json()

        segment = body["curve"]["bezierSegments"][1]
        assert (segment["startLevel"], segment["startExp"]) == (10, 1500)

    def test_failed_edit_keeps_published_curve(self, client):
        response = client.post("/curves/player/drag", json={
            "segmentId": "1", "endpoint": "controlPoint1", "level": 5, "exp": 100,
        })

        assert response.status_code == 422
        assert response.json()["error"] == "invalid_segment_range"
        assert client.get("/curves/player").json()["version"] == 1

    def test_unknown_drag_endpoint(self, client):
        response = client.post("/curves/player/drag", json={
            "segmentId": "1", "endpoint": "middle", "level": 5, "exp": 100,
        })

        assert response.status_code == 422

    def test_update_range(self, client):
        body = client.patch("/curves/player/segments/2/range", json={
            "startLevel": 10, "endLevel": 50,
        }).json()

        assert body["curve"]["segments"][1]["endLevel"] == 50

    @pytest.mark.parametrize("payload, status, error", [
        ({"startLevel": 30, "endLevel": 20}, 422, "invalid_segment_range"),
        ({"startLevel": 10, "endLevel": 500}, 422, "invalid_segment_range"),
    ])
    def test_update_range_invalid(self, client, payload, status, error):
        response = client.patch("/curves/player/segments/2/range", json=payload)

        assert response.status_code == status
        assert response.json()["error"] == error
        assert response.json()["details"]["start_level"] == payload["startLevel"]

    def test_update_range_unknown_segment(self, client):
        response = client.patch("/curves/player/segments/9/range", json={
            "startLevel": 1, "endLevel": 5,
        })

        assert response.status_code == 404
        assert response.json()["error"] == "segment_not_found"

    def test_reset_y_axis(self, client):
        body = client.post("/curves/player/y-axis/reset").json()

        assert body["curve"]["yAxisMax"] == pytest.approx(13000)


class TestFormulas:
    def test_evaluate(self, client):
        body = client.post("/formulas/evaluate", json={"formula": "level^2 + 1", "level": 4}).json()

        assert body == {"formula": "level^2 + 1", "value": 17.0, "error": None}

    def test_evaluate_undefined(self, client):
        body = client.post("/formulas/evaluate", json={"formula": "1 / 0"}).json()

        assert body["value"] is None
        assert body["error"]["error"] == "formula_domain"

    def test_evaluate_syntax_error(self, client):
        body = client.post("/formulas/evaluate", json={"formula": "import os"}).json()

        assert body["value"] is None
        assert body["error"]["error"] == "formula_syntax"
        assert body["error"]["details"]["position"] == 0

    def test_evaluate_long_power_chain(self, client):
        formula = "1^" * 499 + "1"

        response = client.post("/formulas/evaluate", json={"formula": formula})

        assert response.status_code == 200
        assert response.json()["value"] is None
        assert response.json()["error"]["error"] == "formula_syntax"
        assert client.post("/formulas/validate", json={"formula": formula}).json()["valid"] is False

    def test_validate(self, client):
        assert client.post("/formulas/validate", json={"formula": "MAX(level, 2)"}).json() == {
            "valid": True, "error": None,
        }
        assert client.post("/formulas/validate", json={"formula": "MAX(level"}).json()["valid"] is False


class TestCharacters:
    def test_create_and_grant(self, client):
        created = client.post("/characters", json={"profile": "player", "characterId": "hero"}).json()
        assert created["state"] == {"level": 1, "exp": 0, "expToNext": 100, "maxLevel": 100}

        body = client.post("/characters/hero/experience", json={"exp": 250}).json()

        assert body["state"]["level"] == 3
        assert body["state"]["exp"] == 0
        assert body["leveledUp"] is True
        assert body["levelsGained"] == 2

    def test_get_character_progress(self, client):
        client.post("/characters", json={"characterId": "hero"})
        client.post("/characters/hero/experience", json={"exp": 50})

        body = client.get("/characters/hero").json()

        assert body["profile"] == "player"
        assert body["progressPct"] == 50.0

    def test_generated_id(self, client):
        body = client.post("/characters", json={"profile": "monster"}).json()

        assert body["characterId"]
        assert client.get(f"/characters/{body['characterId']}").status_code == 200

    def test_stats(self, client):
        client.post("/characters", json={"characterId": "hero"})
        client.post("/characters/hero/experience", json={"exp": 250})

        body = client.get("/characters/hero/stats").json()

        assert body["level"] == 3
        assert body["stats"]["hp"] == 140

    def test_unknown_character(self, client):
        assert client.get("/characters/ghost").status_code == 404
        assert client.post("/characters/ghost/experience", json={"exp": 1}).status_code == 404

    def test_negative_grant(self, client):
        client.post("/characters", json={"characterId": "hero"})

        assert client.post("/characters/hero/experience", json={"exp": -5}).status_code == 422

    def test_unknown_profile(self, client):
        assert client.post("/characters", json={"profile": "dragon"}).status_code == 400

    def test_duplicate_character(self, client):
        client.post("/characters", json={"characterId": "hero"})

        assert client.post("/characters", json={"characterId": "hero"}).status_code == 409

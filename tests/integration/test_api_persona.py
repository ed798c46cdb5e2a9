"""
Integration tests for the persona API.

Covers the session lifecycle over HTTP (create, update, restore, stats,
complete, cleanup), the extraction helper endpoints, avatar config, and
the health check.
"""

from __future__ import annotations

import pytest


def _create(client, user_id="42") -> str:
    response = client.post("/api/persona/sessions", json={"user_id": user_id})
    assert response.status_code == 201
    return response.json()["session_id"]


def _update(client, session_id, parameters, confidence=None, messages=None):
    return client.put(
        f"/api/persona/sessions/{session_id}",
        json={
            "parameters": parameters,
            "confidence": confidence or {},
            "messages": messages or [],
        },
    )


# ---------------------------------------------------------------------------
# Session lifecycle
# ---------------------------------------------------------------------------


def test_create_session(client):
    response = client.post("/api/persona/sessions", json={"user_id": "42"})

    assert response.status_code == 201
    data = response.json()
    assert data["session_id"].startswith("persona_42_")
    assert data["phase"] == "core"
    assert data["version"] == 1
    assert data["checkpoints"] == []


def test_create_session_requires_user_id(client):
    response = client.post("/api/persona/sessions", json={})

    assert response.status_code == 422
    assert response.json()["invalid_fields"] == ["user_id"]


def test_update_then_restore(client, clock):
    session_id = _create(client)

    response = _update(
        client,
        session_id,
        {"tone_description": "warm and witty", "style_tags": ["casual", "funny"]},
        {"tone_description": 0.8, "style_tags": 0.6},
        [
            {"role": "assistant", "content": "How would you describe your style?"},
            {"role": "user", "content": "Warm, witty, a bit chaotic"},
        ],
    )
    assert response.status_code == 200
    data = response.json()
    assert data["version"] == 2
    assert len(data["checkpoints"]) == 1
    assert data["checkpoints"][0]["stage"] == "core_collection"
    assert len(data["conversation_history"]) == 2

    clock.advance(hours=2)
    restored = client.get(f"/api/persona/sessions/{session_id}")
    assert restored.status_code == 200
    assert restored.json()["parameters"]["style_tags"] == ["casual", "funny"]


def test_restore_new_session_without_checkpoint_is_gone(client, api_manager):
    session_id = _create(client)

    assert client.get(f"/api/persona/sessions/{session_id}").status_code == 404
    assert api_manager.get_session(session_id) is None


def test_restore_after_timeout_404(client, clock):
    session_id = _create(client)
    _update(client, session_id, {"a": "x", "b": "y"})

    clock.advance(hours=25)

    response = client.get(f"/api/persona/sessions/{session_id}")
    assert response.status_code == 404
    assert response.json()["detail"] == f"Persona session not found: {session_id}"


@pytest.mark.parametrize(
    ("method", "path"),
    [
        ("get", "/api/persona/sessions/missing"),
        ("put", "/api/persona/sessions/missing"),
        ("post", "/api/persona/sessions/missing/complete"),
        ("get", "/api/persona/sessions/missing/stats"),
    ],
)
def test_unknown_session_404(client, method, path):
    kwargs = {"json": {}} if method == "put" else {}
    response = getattr(client, method)(path, **kwargs)

    assert response.status_code == 404


def test_update_rejects_out_of_range_confidence(client):
    session_id = _create(client)
    response = _update(client, session_id, {"a": "x"}, {"a": 3.0})

    assert response.status_code == 422
    assert response.json()["invalid_fields"] == ["confidence"]


def test_stats(client):
    session_id = _create(client)
    _update(client, session_id, {"a": "x", "b": "y", "c": "z"}, {"a": 0.2, "b": 0.4, "c": 0.6})

    response = client.get(f"/api/persona/sessions/{session_id}/stats")

    assert response.status_code == 200
    data = response.json()
    assert data["parameter_count"] == 3
    assert data["overall_confidence"] == pytest.approx(0.4)
    assert data["current_stage"] == "core_collection"
    assert data["checkpoint_count"] == 0
    assert data["conversation_length"] == 0


def test_complete_merges_into_avatar_config(client, api_registry):
    session_id = _create(client, user_id="creator_7")
    _update(
        client,
        session_id,
        {"tone_description": "Upbeat foodie", "boundaries": ["politics"], "big_five_profile": {}},
    )

    response = client.post(f"/api/persona/sessions/{session_id}/complete")

    assert response.status_code == 200
    data = response.json()
    assert data["completed"] is True
    assert data["session"]["phase"] == "completed"
    assert data["session"]["completed_at"] is not None
    assert data["avatar_config"]["tone_description"] == "Upbeat foodie"
    assert data["avatar_config"]["boundaries"] == ["politics"]
    assert api_registry.get_config("creator_7").tone_description == "Upbeat foodie"

    config = client.get("/api/persona/config/creator_7").json()
    assert config["boundaries"] == ["politics"]


def test_complete_with_bad_config_shape_keeps_defaults(client, api_registry):
    session_id = _create(client, user_id="creator_8")
    _update(client, session_id, {"communication_prefs": {"verbosity": "endless"}})

    response = client.post(f"/api/persona/sessions/{session_id}/complete")

    assert response.status_code == 200
    assert response.json()["avatar_config"]["communication_prefs"] is None


def test_cleanup_endpoint(client, clock):
    _create(client, user_id="a")
    kept = _create(client, user_id="b")
    _update(client, kept, {"a": "x", "b": "y"})

    response = client.post("/api/persona/sessions/cleanup")

    assert response.json() == {"removed": 1, "remaining": 1}


# ---------------------------------------------------------------------------
# Extraction helpers
# ---------------------------------------------------------------------------


def test_confidence_endpoint(client):
    response = client.post(
        "/api/persona/confidence",
        json={
            "extraction": {"tone": "a very expressive and warm voice", "empty": ""},
            "history": ["I love my tone of writing"],
        },
    )

    scores = response.json()["scores"]
    assert scores["tone"] == pytest.approx(0.7)
    assert scores["empty"] == 0.0


def test_quality_endpoint(client):
    response = client.post(
        "/api/persona/quality",
        json={
            "parameter": "boundaries",
            "extraction": {"confidence": {"boundaries": 0.9}},
            "history": ["boundaries", "my boundaries", "boundaries again"],
        },
    )

    assert response.json() == {"parameter": "boundaries", "passed": True}


def test_next_question_from_badges(client):
    response = client.post(
        "/api/persona/next-question",
        json={"badge_count": 3, "history": ["I handle trolls by ignoring them"]},
    )

    data = response.json()
    assert data["stage"] == "pro"
    assert data["question"] == "Are there any topics you prefer not to talk about?"
    assert data["transition_triggers"] == ["handle"]
    assert data["prompt_style"] == "scenario"
    assert data["unlocked_parameters"] == [
        "initial_context",
        "tone_description",
        "style_tags",
        "boundaries",
        "communication_prefs",
    ]
    assert data["celebration_copy"].startswith("Blast off.")


def test_next_question_defaults_to_npc(client):
    data = client.post("/api/persona/next-question", json={}).json()

    assert data["stage"] == "npc"
    assert data["question"] == "What are you building this avatar for?"


def test_next_question_for_stage_without_strategy(client):
    data = client.post("/api/persona/next-question", json={"stage": "legend"}).json()

    assert data["question"] is None
    assert data["unlocked_parameters"][-1] == "signature_phrases"


def test_next_question_unknown_stage(client):
    data = client.post("/api/persona/next-question", json={"stage": "wizard"}).json()

    assert data["question"] is None
    assert data["unlocked_parameters"] == []
    assert data["prompt_style"] is None


def test_progress_endpoint(client):
    response = client.post(
        "/api/persona/progress",
        json={
            "config": {"tone_description": "warm and playful", "boundaries": ["politics"]},
            "message_count": 4,
            "previous_field_count": 1,
        },
    )

    data = response.json()
    assert data["fields_collected"] == 2
    assert data["progress"] == pytest.approx(100 / 3)
    assert data["stage"] == "reflection_checkpoint"
    assert data["ui_state"]["show_chip_selector"] is True
    assert data["trigger_chip_validation"] is True


def test_quality_gates_config(client):
    data = client.get("/api/config/quality-gates").json()

    assert data["version"] == "1.0.0"
    assert set(data["gates"]) >= {"big_five_profile", "boundaries", "tone_description"}
    assert data["scoring"]["base"] == 0.3


# ---------------------------------------------------------------------------
# Avatar config
# ---------------------------------------------------------------------------


def test_avatar_config_update_and_reset(client):
    initial = client.get("/api/persona/config/u1").json()
    assert initial["style_tags"] == ["friendly", "professional", "helpful"]

    updated = client.put("/api/persona/config/u1", json={"style_tags": ["dry"], "unknown": 1})
    assert updated.status_code == 200
    assert updated.json()["style_tags"] == ["dry"]

    assert client.delete("/api/persona/config/u1").json() == {"reset": True}
    assert client.get("/api/persona/config/u1").json() == initial


def test_avatar_config_invalid_update_422(client):
    response = client.put(
        "/api/persona/config/u1", json={"communication_prefs": {"formality": "shouty"}}
    )

    assert response.status_code == 422
    assert response.json()["detail"] == "Invalid data format."


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


def test_health(client):
    _create(client)

    response = client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["service"] == "SocialQ API"
    assert data["persona_sessions"] == 1
    assert data["avatar_configs"] == 0
    assert data["counters"]["persona.sessions_created"] == 1


def test_root(client):
    data = client.get("/").json()

    assert data["status"] == "running"
    assert data["endpoints"]["threaded_messages"] == "/api/messages/threaded"


@pytest.mark.parametrize(
    "extraction",
    [
        {"confidence": "high"},
        {"confidence": {"boundaries": "high"}},
    ],
)
def test_quality_endpoint_rejects_malformed_confidence(client, extraction):
    response = client.post(
        "/api/persona/quality",
        json={"parameter": "boundaries", "extraction": extraction, "history": []},
    )

    assert response.status_code == 422
    assert response.json()["invalid_fields"] == ["extraction"]

"""
HTTP API tests

Tests covering:
- /validate per-field reporting
- /build, /generate, /solve and /iccma over the full pipeline
- Error mapping for malformed input and exhausted budgets
"""
import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))


def _spec(**overrides):
    spec = {
        "axioms": "",
        "premises": "",
        "inference_rules": "",
        "contraries": "",
        "rule_preferences": "",
        "knowledge_preferences": "",
    }
    spec.update(overrides)
    return spec


@pytest.fixture
def client():
    from fastapi.testclient import TestClient
    from aspic_server.app import app
    return TestClient(app)


# ── System ─────────────────────────────────────────────────────

class TestHealth:
    def test_health(self, client):
        resp = client.get("/v1/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"


# ── Theory ─────────────────────────────────────────────────────

class TestValidate:
    def test_partial_input_valid(self, client):
        resp = client.post("/validate", json={"axioms": "p", "contraries": "a ~ b"})
        assert resp.status_code == 200
        assert resp.json() == {"valid": True, "errors": {}}

    def test_every_invalid_field_reported(self, client):
        resp = client.post("/validate", json={
            "axioms": "p",
            "premises": "a b",
            "inference_rules": "a =>",
        })
        assert resp.status_code == 400
        body = resp.json()
        assert body["valid"] is False
        assert set(body["errors"]) == {"premises", "inference_rules"}

    def test_preference_cycle_invalid(self, client):
        resp = client.post("/validate", json={"rule_preferences": "a < a"})
        assert resp.status_code == 400
        assert set(resp.json()["errors"]) == {"rule_preferences"}


class TestBuild:
    def test_build_theory(self, client):
        resp = client.post("/build", json=_spec(
            axioms="p", premises="a; b", inference_rules="[r1] a => c",
        ))
        assert resp.status_code == 200
        theory = resp.json()["theory"]
        assert theory["axioms"] == ["p"]
        assert theory["premises"] == ["a", "b"]
        assert theory["defeasible_rules"][0]["name"] == "r1"
        assert resp.json()["request_id"].startswith("asp_req_")

    def test_missing_field_rejected(self, client):
        resp = client.post("/build", json={"axioms": "p"})
        assert resp.status_code == 422

    def test_malformed_theory(self, client):
        resp = client.post("/build", json=_spec(axioms="p", premises="p"))
        assert resp.status_code == 400
        body = resp.json()
        assert body["error"] == "malformed_knowledge_base"
        assert "premises" in body["field_errors"]


# ── Framework ──────────────────────────────────────────────────

class TestGenerate:
    def test_generate(self, client):
        resp = client.post("/generate", json=_spec(premises="a; b", contraries="a ~ b"))
        assert resp.status_code == 200
        framework = resp.json()["framework"]
        assert framework["stats"]["num_arguments"] == 2
        assert framework["stats"]["num_attacks"] == 2
        assert [a["label"] for a in framework["arguments"]] == ["A1", "A2"]
        assert framework["attacks"][0] == {
            "attacker": "A1", "target": "A2", "type": "undermine", "sub_argument": "A2",
        }


class TestSolve:
    def test_default_is_preferred(self, client):
        resp = client.post("/solve", json=_spec(premises="a; b", contraries="a ~ b"))
        assert resp.status_code == 200
        body = resp.json()
        assert body["semantics"] == "preferred"
        assert body["link_principle"] == "weakest"
        assert body["set_ordering"] == "elitist"
        assert body["extensions"] == [["A1"], ["A2"]]
        assert body["skeptically_accepted"] == []
        assert body["credulously_accepted"] == ["A1", "A2"]

    def test_grounded(self, client):
        spec = _spec(premises="a; b", contraries="a ~ b")
        spec["options"] = {"semantics": "grounded"}
        resp = client.post("/solve", json=spec)
        assert resp.json()["extensions"] == [[]]

    def test_preference_options(self, client):
        spec = _spec(
            axioms="a",
            inference_rules="[r1] a => b\n[r2] b => c\n[r3] a => -c",
            rule_preferences="r1 < r3; r3 < r2",
        )
        spec["options"] = {"semantics": "grounded", "link_principle": "last"}
        body = client.post("/solve", json=spec).json()
        assert body["link_principle"] == "last"
        assert body["num_defeats"] == 1
        assert body["extensions"] == [["A1", "A2", "A3"]]

    def test_unknown_semantics_rejected(self, client):
        spec = _spec(axioms="p")
        spec["options"] = {"semantics": "ideal"}
        assert client.post("/solve", json=spec).status_code == 422

    def test_construction_budget(self, client, monkeypatch):
        from aspic_server import app as app_module
        from aspic_server.argumentation import ConstructionLimits
        monkeypatch.setattr(app_module, "LIMITS", ConstructionLimits(max_arguments=1))
        resp = client.post("/solve", json=_spec(premises="a; b"))
        assert resp.status_code == 422
        assert resp.json()["error"] == "budget_exceeded"


class TestIccmaEndpoint:
    def test_iccma(self, client):
        resp = client.post("/iccma", json=_spec(premises="a; b", contraries="a ~ b"))
        assert resp.status_code == 200
        assert resp.text == "p af 2\n1 2\n2 1\n"

"""
API tests for the bracket admin endpoints.

Validates:
- generate returns a laid-out draft and maps selection errors to 422
- layout / edit / publish round-trip a draft through JSON
- edit errors map to 404 / 422 with a structured detail
- the category catalog and health endpoints respond
"""

from tests.factories import FORCED_KEYS, make_pool, pool_records

GENERATE_CONFIG = {
    "year": 2025,
    "selectionWeighting": "random",
    "forcedCategories": FORCED_KEYS,
}


def _generate(client, pool=None, seed=7):
    pool = pool if pool is not None else make_pool(per_category=10) + make_pool(["hermits"], per_category=8)
    response = client.post(
        "/api/brackets/generate",
        json={"pool": pool_records(pool), "config": GENERATE_CONFIG, "seed": seed},
    )
    return response


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_list_categories(client):
    response = client.get("/api/categories")
    assert response.status_code == 200
    keys = [c["key"] for c in response.json()]
    assert len(keys) == 12
    assert "doctorsofthechurch" in keys


def test_generate_returns_laid_out_draft(client):
    response = _generate(client)
    assert response.status_code == 200

    data = response.json()
    tournament = data["tournament"]
    assert tournament["title"] == "Saintfest 2025"
    assert [c["key"] for c in tournament["categories"]] == FORCED_KEYS
    assert [len(r["matches"]) for r in tournament["rounds"]] == [16, 8, 4, 2, 1]
    assert all(m["position"] is not None for r in tournament["rounds"] for m in r["matches"])
    assert len(data["layout"]["connectors"]) == 48


def test_generate_same_seed_same_draft(client):
    first = _generate(client, seed=3).json()
    second = _generate(client, seed=3).json()
    assert first == second


def test_generate_insufficient_pool(client):
    pool = make_pool(["martyrs", "popes", "apostles"], per_category=8) + make_pool(["mystics"], per_category=7)
    response = _generate(client, pool=pool)
    assert response.status_code == 422
    detail = response.json()["detail"]
    assert detail["code"] == "INSUFFICIENT_POOL"
    assert detail["category_key"] == "mystics"
    assert detail["shortfall"] == 1


def test_generate_invalid_pool_record(client):
    response = client.post(
        "/api/brackets/generate",
        json={"pool": [{"name": "No Id", "martyrs": True}], "config": GENERATE_CONFIG},
    )
    assert response.status_code == 422
    assert response.json()["detail"]["code"] == "INVALID_POOL"


def test_generate_rejects_three_forced_categories(client):
    response = client.post(
        "/api/brackets/generate",
        json={"pool": [], "config": {"year": 2025, "forcedCategories": FORCED_KEYS[:3]}},
    )
    assert response.status_code == 422


def test_layout_endpoint(client):
    tournament = _generate(client).json()["tournament"]
    response = client.post("/api/brackets/layout", json={"tournament": tournament})
    assert response.status_code == 200
    assert response.json()["bounds"]["width"] > 0


def test_edit_swap_saint(client):
    pool = make_pool(per_category=10) + make_pool(["hermits"], per_category=8)
    tournament = _generate(client, pool=pool).json()["tournament"]
    martyrs = tournament["categories"][0]
    used = {e["candidate_id"] for e in martyrs["entrants"]}
    replacement = next(f"martyrs-{n}" for n in range(1, 11) if f"martyrs-{n}" not in used)
    old = martyrs["entrants"][0]["candidate_id"]

    response = client.post("/api/brackets/edit", json={
        "tournament": tournament,
        "pool": pool_records(pool),
        "action": {
            "type": "swap-saint",
            "category_id": martyrs["id"],
            "candidate_id": old,
            "new_candidate_id": replacement,
        },
    })

    assert response.status_code == 200
    edited = response.json()["tournament"]
    assert edited["categories"][0]["entrants"][0]["candidate_id"] == replacement
    assert edited["categories"][0]["entrants"][0]["seed"] == 1
    assert edited["rounds"][0]["matches"][0]["entrant1"]["candidate_id"] == replacement


def test_edit_swap_category(client):
    pool = make_pool(per_category=10) + make_pool(["hermits"], per_category=8)
    tournament = _generate(client, pool=pool).json()["tournament"]

    response = client.post("/api/brackets/edit", json={
        "tournament": tournament,
        "pool": pool_records(pool),
        "action": {"type": "swap-category", "category_id": "2025-popes", "new_category_key": "hermits"},
        "seed": 1,
    })

    assert response.status_code == 200
    categories = response.json()["tournament"]["categories"]
    assert categories[1]["key"] == "hermits"
    assert categories[1]["position"] == "bottom-left"


def test_edit_unknown_category_is_404(client):
    pool = make_pool(per_category=10)
    tournament = _generate(client, pool=pool).json()["tournament"]

    response = client.post("/api/brackets/edit", json={
        "tournament": tournament,
        "pool": pool_records(pool),
        "action": {"type": "regenerate-category", "category_id": "2025-hermits"},
    })

    assert response.status_code == 404
    assert response.json()["detail"]["code"] == "UNKNOWN_REFERENCE"


def test_edit_duplicate_category_is_422(client):
    pool = make_pool(per_category=10)
    tournament = _generate(client, pool=pool).json()["tournament"]

    response = client.post("/api/brackets/edit", json={
        "tournament": tournament,
        "pool": pool_records(pool),
        "action": {"type": "swap-category", "category_id": "2025-popes", "new_category_key": "martyrs"},
    })

    assert response.status_code == 422
    assert response.json()["detail"]["code"] == "DUPLICATE_CATEGORY"


def test_edit_invalid_candidate_is_422(client):
    pool = make_pool(per_category=10) + make_pool(["hermits"], per_category=8)
    tournament = _generate(client, pool=pool).json()["tournament"]
    martyrs = tournament["categories"][0]

    response = client.post("/api/brackets/edit", json={
        "tournament": tournament,
        "pool": pool_records(pool),
        "action": {
            "type": "swap-saint",
            "category_id": martyrs["id"],
            "candidate_id": martyrs["entrants"][0]["candidate_id"],
            "new_candidate_id": "hermits-1",
        },
    })

    assert response.status_code == 422
    assert response.json()["detail"]["code"] == "INVALID_CANDIDATE_FOR_CATEGORY"


def test_edit_missing_parameter_is_422(client):
    pool = make_pool(per_category=10)
    tournament = _generate(client, pool=pool).json()["tournament"]

    response = client.post("/api/brackets/edit", json={
        "tournament": tournament,
        "pool": pool_records(pool),
        "action": {"type": "swap-category", "category_id": "2025-popes"},
    })

    assert response.status_code == 422
    assert response.json()["detail"]["code"] == "INVALID_EDIT"


def test_available_candidates(client):
    pool = make_pool(per_category=10)
    tournament = _generate(client, pool=pool).json()["tournament"]

    response = client.post("/api/brackets/available-candidates", json={
        "tournament": tournament,
        "pool": pool_records(pool),
        "category_key": "apostles",
    })

    assert response.status_code == 200
    ids = {c["id"] for c in response.json()}
    assert len(ids) == 2
    used = {e["candidate_id"] for c in tournament["categories"] for e in c["entrants"]}
    assert not ids & used


def test_publish(client):
    tournament = _generate(client).json()["tournament"]

    response = client.post("/api/brackets/publish", json={"tournament": tournament, "published_by": "admin"})

    assert response.status_code == 200
    data = response.json()
    assert data["title"] == "Saintfest 2025"
    assert data["published_by"] == "admin"
    assert len(data["matches"]) == 31
    assert len(data["categories"]) == 4
    assert data["center_overlay"]["text"] == ["Blessed", "Intercessor"]
    assert data["is_active"] is True


def test_layout_rejects_malformed_draft(client):
    tournament = _generate(client).json()["tournament"]
    tournament["rounds"] = tournament["rounds"][:4]

    response = client.post("/api/brackets/layout", json={"tournament": tournament})

    assert response.status_code == 422
    assert response.json()["detail"]["code"] == "INVALID_BRACKET"


def test_generate_rejects_unknown_forced_category(client):
    response = client.post(
        "/api/brackets/generate",
        json={"pool": [], "config": {"year": 2025, "forcedCategories": ["martyrs", "popes", "mystics", "knights"]}},
    )
    assert response.status_code == 422

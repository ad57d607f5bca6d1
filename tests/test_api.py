from sqlalchemy.dialects import postgresql

from searchtool.main import app
from searchtool.routers.consultants import consultant_query
from searchtool.services.reviews import Rubric, RubricQuestion, get_rubric

FULL_MARKS = {
    "technical_expertise": 5,
    "relevant_experience": 5,
    "proposed_methodology": 5,
    "communication_skills": 5,
    "involvement_tasks": 5,
    "timeliness": 5,
    "cost_effectiveness": 5,
}


def test_root(client):
    assert client.get("/").status_code == 200


def test_login_with_wrong_password(client, make_user):
    make_user("viewer")
    resp = client.post("/api/auth/login", json={"email": "nobody@example.com", "password": "whatever1"})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Invalid credentials"


def test_me_requires_token(client, make_user):
    assert client.get("/api/auth/me").status_code == 401
    assert client.get("/api/auth/me", headers={"Authorization": "Bearer junk"}).status_code == 401
    headers = make_user("editor")
    me = client.get("/api/auth/me", headers=headers).json()
    assert me["role"] == "editor"


def test_register_unknown_role_becomes_viewer(client):
    resp = client.post("/api/auth/register", json={
        "email": "rolecheck@example.com", "name": "Role Check", "password": "password1", "role": "root",
    })
    assert resp.status_code == 201
    assert resp.json()["role"] == "viewer"


def test_viewer_cannot_create_consultant(client, make_user):
    resp = client.post("/api/consultants", headers=make_user("viewer"), json={"name": "X"})
    assert resp.status_code == 403


def test_create_consultant_builds_search_and_cleans_fields(client, make_user):
    resp = client.post("/api/consultants", headers=make_user("editor"), json={
        "name": "Kofi Boateng",
        "expertise": ["Energy"],
        "associations": [" IEEE ", "IEEE", ""],
        "contacts": {"emails": [{"value": "kofi@example.org"}], "phones": [{"value": "+233 1"}]},
        "experience": [{"role": "Advisor", "org": "GridCo", "start": "2020-01-01", "highlights": ["Tariffs"]}],
    })
    assert resp.status_code == 201, resp.text
    body = resp.json()
    assert body["associations"] == ["IEEE"]
    assert body["emails"] == ["kofi@example.org"]
    assert body["phones"] == ["+233 1"]
    assert body["search_text"] == "kofi boateng energy advisor gridco tariffs"
    assert body["rating_avg"] == 0
    assert body["rating_count"] == 0


def test_get_missing_consultant(client):
    assert client.get("/api/consultants/999999").status_code == 404


def test_structured_review_updates_aggregate(client, make_user, consultant):
    cid = consultant["id"]
    viewer = make_user("viewer", name="Reviewer One")

    resp = client.post(f"/api/consultants/{cid}/reviews", headers=viewer, json={
        "answers": FULL_MARKS, "project_name": "Delta", "note": "Great",
    })
    assert resp.status_code == 201, resp.text
    body = resp.json()
    assert body["rating_count"] == 1
    assert body["rating_avg"] == 5.0
    review = body["reviews"][0]
    assert review["overall_rating"] == 5.0
    assert review["user_name"] == "Reviewer One"
    assert review["project_name"] == "Delta"

    resp = client.post(f"/api/consultants/{cid}/reviews", headers=viewer, json={
        "rating": 2, "comment": "Late delivery",
    })
    assert resp.status_code == 201, resp.text
    body = resp.json()
    assert body["rating_count"] == 2
    assert body["rating_avg"] == 3.5

    listed = client.get(f"/api/consultants/{cid}/reviews").json()
    assert len(listed) == 2


def test_invalid_review_is_rejected_whole(client, make_user, consultant):
    cid = consultant["id"]
    resp = client.post(f"/api/consultants/{cid}/reviews", headers=make_user("viewer"), json={
        "answers": {"technical_expertise": 5, "timeliness": 9, "cost_effectiveness": "cheap"},
    })
    assert resp.status_code == 400
    detail = resp.json()["detail"]
    assert "timeliness" in detail
    assert "cost_effectiveness" in detail

    fresh = client.get(f"/api/consultants/{cid}").json()
    assert fresh["rating_count"] == 0
    assert fresh["reviews"] == []


def test_empty_review_is_rejected(client, make_user, consultant):
    resp = client.post(f"/api/consultants/{consultant['id']}/reviews", headers=make_user("viewer"), json={
        "comment": "no score",
    })
    assert resp.status_code == 400


def test_deleting_review_recomputes_aggregate(client, make_user, admin_headers, consultant):
    cid = consultant["id"]
    viewer = make_user("viewer")
    client.post(f"/api/consultants/{cid}/reviews", headers=viewer, json={"rating": 4})
    body = client.post(f"/api/consultants/{cid}/reviews", headers=viewer, json={"rating": 1}).json()
    low = next(r for r in body["reviews"] if r["rating"] == 1)

    assert client.delete(f"/api/consultants/{cid}/reviews/{low['id']}", headers=viewer).status_code == 403

    resp = client.delete(f"/api/consultants/{cid}/reviews/{low['id']}", headers=admin_headers)
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["rating_count"] == 1
    assert body["rating_avg"] == 4.0

    missing = client.delete(f"/api/consultants/{cid}/reviews/{low['id']}", headers=admin_headers)
    assert missing.status_code == 404


def test_review_writes_lock_the_consultant_row():
    locked = str(consultant_query(1, lock=True).compile(dialect=postgresql.dialect()))
    plain = str(consultant_query(1).compile(dialect=postgresql.dialect()))
    assert locked.rstrip().endswith("FOR UPDATE")
    assert "FOR UPDATE" not in plain


def test_review_count_matches_stored_reviews(client, make_user, admin_headers, consultant):
    cid = consultant["id"]
    reviewers = [make_user("viewer") for _ in range(3)]
    for i, headers in enumerate(reviewers * 2):
        resp = client.post(f"/api/consultants/{cid}/reviews", headers=headers, json={"rating": i % 5 + 1})
        assert resp.status_code == 201, resp.text

    body = client.get(f"/api/consultants/{cid}").json()
    assert body["rating_count"] == len(body["reviews"]) == 6
    assert body["rating_avg"] == 2.7

    client.delete(f"/api/consultants/{cid}/reviews/{body['reviews'][0]['id']}", headers=admin_headers)
    body = client.get(f"/api/consultants/{cid}").json()
    assert body["rating_count"] == len(body["reviews"]) == 5


def test_review_permission_can_be_revoked(client, make_user, admin_headers, consultant):
    resp = client.patch("/api/permissions/viewer", headers=admin_headers, json={"can_add_review": False})
    assert resp.status_code == 200
    try:
        viewer = make_user("viewer")
        resp = client.post(f"/api/consultants/{consultant['id']}/reviews", headers=viewer, json={"rating": 3})
        assert resp.status_code == 403
        assert client.get("/api/permissions/my", headers=viewer).json()["can_add_review"] is False
    finally:
        client.patch("/api/permissions/viewer", headers=admin_headers, json={"can_add_review": True})


def test_rubric_override(client, make_user, consultant):
    app.dependency_overrides[get_rubric] = lambda: Rubric(
        [RubricQuestion("clarity", "Clarity", 1.0)], version="test"
    )
    try:
        rubric = client.get("/api/reviews/rubric").json()
        assert rubric["version"] == "test"
        assert [q["id"] for q in rubric["questions"]] == ["clarity"]

        resp = client.post(f"/api/consultants/{consultant['id']}/reviews", headers=make_user("viewer"), json={
            "answers": {"clarity": 3},
        })
        assert resp.status_code == 201, resp.text
        assert resp.json()["rating_avg"] == 3.0
    finally:
        app.dependency_overrides.pop(get_rubric, None)


def test_default_rubric_endpoint(client):
    rubric = client.get("/api/reviews/rubric").json()
    assert len(rubric["questions"]) == 7
    assert rubric["min_answer"] == 1 and rubric["max_answer"] == 5


def test_experience_requires_permission(client, make_user, consultant):
    cid = consultant["id"]
    item = {"role": "Hydrologist", "org": "RiverLab", "highlights": ["Dams"]}
    assert client.post(f"/api/consultants/{cid}/experience", headers=make_user("viewer"), json=item).status_code == 403

    editor = make_user("editor")
    body = client.post(f"/api/consultants/{cid}/experience", headers=editor, json=item).json()
    assert body["experience"][0]["role"] == "Hydrologist"
    assert "riverlab" in body["search_text"]

    body = client.put(f"/api/consultants/{cid}/experience/0", headers=editor, json={"org": "DeltaLab"}).json()
    assert body["experience"][0]["org"] == "DeltaLab"
    assert body["experience"][0]["role"] == "Hydrologist"
    assert "riverlab" not in body["search_text"]

    assert client.put(f"/api/consultants/{cid}/experience/5", headers=editor, json={"org": "X"}).status_code == 400

    body = client.delete(f"/api/consultants/{cid}/experience/0", headers=editor).json()
    assert body["experience"] == []


def test_update_keeps_cv_and_delete(client, make_user, admin_headers, consultant):
    cid = consultant["id"]
    upload = client.post(
        f"/api/consultants/{cid}/cv",
        headers=admin_headers,
        files={"cv": ("resume.PDF", b"%PDF-1.4 test", "application/pdf")},
    )
    assert upload.status_code == 200, upload.text
    assert upload.json()["url"].endswith(".pdf")
    assert upload.json()["consultant"]["media"]["cv"]["size"] == len(b"%PDF-1.4 test")

    bad = client.post(
        f"/api/consultants/{cid}/photo",
        headers=admin_headers,
        files={"photo": ("x.gif", b"GIF89a", "image/gif")},
    )
    assert bad.status_code == 400

    assert client.put(f"/api/consultants/{cid}", headers=make_user("editor"), json={"summary": "x"}).status_code == 403

    resp = client.put(f"/api/consultants/{cid}", headers=admin_headers, json={
        "summary": "Hydrology lead", "media": {"photo": "http://img/1.png"},
    })
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["summary"] == "Hydrology lead"
    assert body["name"] == "Ada Mensah"
    assert body["media"]["photo"] == "http://img/1.png"
    assert body["media"]["cv"]["mime"] == "application/pdf"

    assert client.delete(f"/api/consultants/{cid}", headers=admin_headers).json() == {"ok": True}
    assert client.get(f"/api/consultants/{cid}").status_code == 404


def test_list_filters(client, admin_headers):
    for name, tags in (("Filter Zed", ["zz-filter"]), ("Filter Amy", ["zz-filter", "solar"])):
        client.post("/api/consultants", headers=admin_headers, json={"name": name, "tags": tags})

    names = [c["name"] for c in client.get("/api/consultants", params={"q": "zz-filter"}).json()]
    assert names == ["Filter Amy", "Filter Zed"]

    names = [c["name"] for c in client.get("/api/consultants", params={"q": "zz-filter", "sort": "name-desc"}).json()]
    assert names == ["Filter Zed", "Filter Amy"]

    assert client.get("/api/consultants", params={"sort": "bogus"}).status_code == 422


def test_admin_user_management(client, make_user, admin_headers):
    assert client.get("/api/users", headers=make_user("viewer")).status_code == 403

    resp = client.post("/api/users", headers=admin_headers, json={
        "email": "New.Person@Example.com", "name": "New Person", "password": "password1", "role": "editor",
    })
    assert resp.status_code == 201, resp.text
    created = resp.json()
    assert created["email"] == "new.person@example.com"
    assert "hashed_password" not in created

    dup = client.post("/api/users", headers=admin_headers, json={
        "email": "new.person@example.com", "name": "Again", "password": "password1",
    })
    assert dup.status_code == 409

    patched = client.patch(f"/api/users/{created['id']}", headers=admin_headers, json={"role": "viewer"})
    assert patched.json()["role"] == "viewer"

    users = client.get("/api/users", headers=admin_headers).json()
    assert any(u["id"] == created["id"] for u in users)


def test_default_permissions(client, admin_headers):
    rows = {r["role"]: r for r in client.get("/api/permissions", headers=admin_headers).json()}
    assert rows["admin"]["can_manage_users"] is True
    assert rows["editor"]["can_edit_experience"] is True
    assert rows["editor"]["can_delete_consultant"] is False
    assert rows["viewer"]["can_edit_consultant"] is False

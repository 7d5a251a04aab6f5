import io
from datetime import datetime
from pathlib import Path

import pytest
from PIL import Image

from config import settings
from crud import StoreError
from models import Equipment, MaintenanceRequest, Notification, Profile
from services.auth_service import AuthService


def test_healthz(client):
    r = client.get("/healthz")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_pages_redirect_to_login(client):
    r = client.get("/kanban", follow_redirects=False)
    assert r.status_code == 302
    assert r.headers["location"] == "/login"


def test_api_requires_session(client):
    r = client.get("/api/kanban")
    assert r.status_code == 401


def test_login_page_renders(client):
    r = client.get("/login")
    assert r.status_code == 200
    assert "Sign in" in r.text


def test_bad_credentials(client, profile):
    r = client.post("/login", data={"email": profile.email, "password": "nope"})
    assert r.status_code == 400
    assert "Invalid login credentials" in r.text


def test_signup_then_dashboard(client):
    r = client.post("/signup", data={"full_name": "Sam Smith", "email": "sam@example.com",
                                     "password": "pw123456"})
    assert r.status_code == 200
    assert "Dashboard" in r.text
    assert "Sam Smith" in r.text


def test_pages_render_when_signed_in(signed_in, make_request, equipment):
    make_request(status="New", equipment_id=equipment.id)
    for path in ("/dashboard", "/equipment/", "/kanban", "/calendar/", "/teams/",
                 "/work-centers/", "/reports/", "/profile/", "/notifications/", "/logs/",
                 f"/equipment/{equipment.id}/requests", "/requests/add"):
        r = signed_in.get(path)
        assert r.status_code == 200, path


def test_kanban_move_api(signed_in, db, make_request, equipment):
    req = make_request(status="New", equipment_id=equipment.id)

    board = signed_in.get("/api/kanban").json()
    assert [c["id"] for c in board["New"]] == [req.id]

    r = signed_in.post("/api/kanban/move", json={
        "request_id": req.id, "from_column": "New", "to_column": "Scrap", "to_index": 0,
    })
    assert r.status_code == 200
    body = r.json()
    assert body["moved"] is True
    assert [t["title"] for t in body["toasts"]] == ["Equipment Scrapped", "Status Updated"]

    db.expire_all()
    assert db.get(MaintenanceRequest, req.id).status == "Scrap"
    assert db.get(Equipment, equipment.id).status == "Scrap"
    assert [c["id"] for c in signed_in.get("/api/kanban").json()["Scrap"]] == [req.id]


def test_kanban_move_notifies_creator(signed_in, db, profile, make_request):
    creator = Profile(email="lead@example.com", password="x", full_name="Team Lead")
    db.add(creator)
    db.commit()
    theirs = make_request(status="New", created_by=creator.id, subject="Pump check")
    mine = make_request(status="New", created_by=profile.id)

    for req in (theirs, mine):
        r = signed_in.post("/api/kanban/move", json={"request_id": req.id, "from_column": "New",
                                                      "to_column": "Repaired"})
        assert r.json()["moved"] is True

    notes = db.query(Notification).all()
    assert [(n.user_id, n.message) for n in notes] == [(creator.id, '"Pump check" is now Repaired')]


def test_kanban_move_rejects_bad_input(signed_in, make_request):
    req = make_request(status="New")
    signed_in.get("/api/kanban")

    r = signed_in.post("/api/kanban/move", json={"request_id": req.id, "from_column": "New",
                                                  "to_column": "Done"})
    assert r.status_code == 400
    r = signed_in.post("/api/kanban/move", json={"request_id": 999, "from_column": "New",
                                                  "to_column": "Scrap"})
    assert r.status_code == 404


def test_create_request_api_auto_fills_team(signed_in, equipment, team):
    r = signed_in.post("/api/requests", json={"subject": "Grinding noise",
                                              "equipment_id": equipment.id})
    assert r.status_code == 201
    card = r.json()
    assert card["team_name"] == "Mechanics"
    assert card["equipment_name"] == "Lathe"


def test_reports_api(signed_in, make_request):
    make_request(status="Repaired", actual_hours=2)
    make_request(status="Repaired", actual_hours=4)
    make_request(status="New")

    data = signed_in.get("/api/reports/").json()
    assert data["total_requests"] == 3
    assert data["completed"] == 2
    assert data["avg_time"] == 3.0


def test_report_exports(signed_in):
    assert signed_in.get("/reports/export/pdf").content.startswith(b"%PDF")
    r = signed_in.get("/reports/export/xlsx")
    assert r.headers["content-type"].startswith(
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet")


def test_notifications_flow(signed_in, db, profile):
    db.add_all([Notification(user_id=profile.id, title="A", message="a"),
                Notification(user_id=profile.id, title="B", message="b")])
    db.commit()
    assert signed_in.get("/api/notifications/unread-count").json() == {"unread": 2}

    signed_in.post("/notifications/read-all")
    assert signed_in.get("/api/notifications/unread-count").json() == {"unread": 0}


def test_logout_ends_session(signed_in):
    signed_in.post("/logout")
    assert signed_in.get("/api/kanban").status_code == 401


def test_activity_log_records_sign_in(signed_in, profile):
    r = signed_in.get("/logs/")
    assert "Signed in" in r.text
    assert profile.email in r.text
    assert signed_in.get("/logs/export/pdf").content.startswith(b"%PDF")
    assert signed_in.get("/logs/export/xlsx").status_code == 200


def test_kanban_form_move_errors_become_toasts(signed_in, make_request):
    req = make_request(status="New", subject="Fan belt")

    r = signed_in.post("/kanban/move", data={"request_id": req.id, "from_column": "Repaired",
                                             "to_column": "Scrap"}, follow_redirects=False)
    assert r.status_code == 302
    assert r.headers["location"] == "/kanban"

    page = signed_in.get("/kanban")
    assert page.status_code == 200
    assert "text/html" in page.headers["content-type"]
    assert f"Request {req.id} is not in column Repaired" in page.text


def test_kanban_form_move_success_toast(signed_in, make_request):
    req = make_request(status="New", subject="Fan belt")

    page = signed_in.post("/kanban/move", data={"request_id": req.id, "from_column": "New",
                                                "to_column": "In Progress"})

    assert page.status_code == 200
    assert "Status Updated" in page.text
    assert "moved to In Progress" in page.text


def _avatar_files(user_id):
    folder = Path(settings.AVATAR_DIR) / str(user_id)
    return list(folder.glob("*.jpg")) if folder.exists() else []


def _png_bytes():
    buf = io.BytesIO()
    Image.new("RGB", (40, 40), (10, 120, 200)).save(buf, format="PNG")
    return buf.getvalue()


def test_avatar_upload_over_limit_is_rejected(signed_in, profile, monkeypatch):
    monkeypatch.setattr(settings, "AVATAR_MAX_SIZE_MB", 1)
    big = b"\x89PNG" + b"0" * (2 * 1024 * 1024)

    page = signed_in.post("/profile/avatar", files={"file": ("big.png", big, "image/png")})

    assert "exceeds 1MB" in page.text
    assert _avatar_files(profile.id) == []


def test_avatar_upload_store_failure_removes_file(signed_in, profile, monkeypatch):
    def fail(db, user_id, avatar_url):
        raise StoreError("profiles is read-only", "profiles")

    monkeypatch.setattr(AuthService, "update_avatar_url", fail)
    page = signed_in.post("/profile/avatar", files={"file": ("me.png", _png_bytes(), "image/png")})

    assert "profiles is read-only" in page.text
    assert _avatar_files(profile.id) == []


def test_avatar_upload_success(signed_in, db, profile):
    signed_in.post("/profile/avatar", files={"file": ("me.png", _png_bytes(), "image/png")})

    db.expire_all()
    url = db.get(Profile, profile.id).avatar_url
    assert url.startswith(settings.AVATAR_BASE_URL + f"/{profile.id}/")
    assert len(_avatar_files(profile.id)) == 1
    AuthService.delete_avatar(url)


@pytest.mark.parametrize("year", [0, 10000, 9999])
def test_calendar_out_of_range_year_falls_back(signed_in, year):
    page = signed_in.get(f"/calendar/?year={year}&month=12")

    assert page.status_code == 200
    assert "Year must be between 1 and 9998." in page.text
    assert str(datetime.utcnow().year) in page.text


def test_calendar_last_supported_year(signed_in):
    page = signed_in.get("/calendar/?year=9998&month=12")

    assert page.status_code == 200
    assert "9998" in page.text

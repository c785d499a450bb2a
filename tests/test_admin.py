# tests/test_admin.py
import io

import pandas as pd
import pytest

from weddingsite.models import RSVP, User
from weddingsite.schemas import BulkPersonalizationItem, PersonalizationIn
from weddingsite.services import admin_service


def _rsvp(client, user, auth_headers, **payload):
    r = client.post("/api/rsvp", json=payload, headers=auth_headers(user))
    assert r.status_code == 201, r.text
    return r.json()


# ------------------------------------------------------------------ acceso
def test_admin_routes_require_admin(client, guest, auth_headers):
    assert client.get("/api/admin/stats").status_code == 401
    r = client.get("/api/admin/stats", headers=auth_headers(guest))
    assert r.status_code == 403
    assert r.json()["code"] == "FORBIDDEN"


def test_admin_api_key_is_accepted(client):
    r = client.get("/api/admin/stats", headers={"x-admin-key": "test-admin-key"})
    assert r.status_code == 200
    assert client.get("/api/admin/stats", headers={"x-admin-key": "wrong"}).status_code == 401


# ------------------------------------------------------------------ lectura
def test_wedding_stats(client, make_user, admin_headers, auth_headers):
    a = make_user(full_name="Alice Adams", plus_one_allowed=True)
    b = make_user(full_name="Bob Brown")
    c = make_user(full_name="Carl Clark")
    make_user(full_name="Dana Dane")
    make_user(full_name="Uninvited Person", is_invited=False)

    _rsvp(client, a, auth_headers, attending="YES", guest_count=2, guests=[
        {"full_name": "Alice Adams", "meal_preference": "fish", "allergies": "shellfish"},
        {"full_name": "Guest Plus", "meal_preference": "fish"},
    ])
    _rsvp(client, b, auth_headers, attending="YES", guests=[
        {"full_name": "Bob Brown", "meal_preference": "vegan", "allergies": "gluten"},
    ])
    # Las alergias de quien no asiste no cuentan
    _rsvp(client, c, auth_headers, attending="NO", allergies="peanuts")

    stats = client.get("/api/admin/stats", headers=admin_headers).json()
    # admin fixture también cuenta como invitado
    assert stats["total_invited"] == 5
    assert stats["total_rsvped"] == 3
    assert stats["total_attending"] == 2
    assert stats["total_not_attending"] == 1
    assert stats["total_maybe"] == 0
    assert stats["rsvp_percentage"] == 60.0
    assert stats["meal_preferences"] == [
        {"preference": "fish", "count": 2},
        {"preference": "vegan", "count": 1},
    ]
    assert stats["dietary_restrictions"] == ["gluten", "shellfish"]


def test_stats_with_no_guests(db):
    stats = admin_service.get_wedding_stats(db)
    assert stats["total_invited"] == 0
    assert stats["rsvp_percentage"] == 0.0


def test_users_list_puts_rsvped_first(client, make_user, admin_headers, auth_headers):
    make_user(full_name="Zed Zulu")
    y = make_user(full_name="Yan Young")
    make_user(full_name="Amy Apple")
    _rsvp(client, y, auth_headers, attending="NO")

    users = client.get("/api/admin/users", headers=admin_headers).json()
    names = [u["full_name"] for u in users]
    assert names == ["Yan Young", "Admin User", "Amy Apple", "Zed Zulu"]
    assert users[0]["rsvp"]["attending"] == "NO"
    assert users[1]["rsvp"] is None


def test_export_csv(client, make_user, admin_headers, auth_headers):
    jane = make_user(full_name="Jane Smith", email="jane@example.com", city="Lisbon")
    _rsvp(client, jane, auth_headers, attending="YES", guests=[
        {"full_name": "Jane Smith", "meal_preference": "beef", "allergies": "nuts"},
    ], additional_notes="Window seat")

    r = client.get("/api/admin/export", headers=admin_headers)
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/csv")
    df = pd.read_csv(io.StringIO(r.text), dtype=str, keep_default_na=False)
    assert list(df.columns) == admin_service.CSV_COLUMNS
    row = df[df["Email"] == "jane@example.com"].iloc[0]
    assert row["RSVP Status"] == "Submitted"
    assert row["Attending"] == "YES"
    assert row["Meal Preferences"] == "beef"
    assert row["Dietary Restrictions"] == "nuts"
    assert row["Additional Notes"] == "Window seat"
    assert row["City"] == "Lisbon"
    pending = df[df["Email"] == "admin@example.com"].iloc[0]
    assert pending["RSVP Status"] == "Pending"
    assert pending["Attending"] == "No Response"
    assert pending["Meal Preferences"] == "Not specified"
    assert pending["Dietary Restrictions"] == "None"


# ------------------------------------------------------------------ usuarios
def test_create_user_generates_token_and_qr_png(client, admin_headers, tmp_path, monkeypatch):
    from weddingsite import config

    monkeypatch.setattr(config, "QR_CODES_DIR", tmp_path)
    r = client.post(
        "/api/admin/users",
        json={"full_name": "New Guest", "email": "NEW@example.com", "city": "Porto"},
        headers=admin_headers,
    )
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["email"] == "new@example.com"
    assert body["city"] == "Porto"
    assert len(body["qr_token"]) > 32
    assert list((tmp_path / "test").glob("*.png"))

    dup = client.post(
        "/api/admin/users", json={"full_name": "Other", "email": "new@example.com"}, headers=admin_headers
    )
    assert dup.status_code == 400
    assert dup.json()["error"] == "A user with this email already exists"


def test_update_user_fields(client, guest, admin_headers):
    r = client.patch(
        f"/api/admin/users/{guest.id}",
        json={"full_name": "Jane Doe", "email": "jane.doe@example.com", "is_invited": False, "zip_code": "1000"},
        headers=admin_headers,
    )
    assert r.status_code == 200
    body = r.json()
    assert (body["full_name"], body["email"], body["is_invited"], body["zip_code"]) == (
        "Jane Doe", "jane.doe@example.com", False, "1000",
    )


def test_update_missing_user(client, admin_headers):
    r = client.patch("/api/admin/users/9999", json={"full_name": "Ghost"}, headers=admin_headers)
    assert r.status_code == 400
    assert r.json()["error"] == "User not found"


def test_alias_rules(client, make_user, admin_headers):
    a = make_user(full_name="Ann Smith", qr_alias="smith-family")
    b = make_user(full_name="Bob Jones")
    url = f"/api/admin/users/{b.id}"

    r = client.patch(url, json={"qr_alias": "Bad Alias!"}, headers=admin_headers)
    assert r.json()["error"] == (
        "QR alias must contain only lowercase letters, numbers, and hyphens (3-50 characters)"
    )

    r = client.patch(url, json={"qr_alias": "smith-family"}, headers=admin_headers)
    assert r.json()["error"] == 'QR alias "smith-family" is already in use by another guest'

    r = client.patch(url, json={"qr_alias_locked": True}, headers=admin_headers)
    assert r.json()["error"].startswith("Cannot lock QR alias")

    r = client.patch(url, json={"qr_alias": "Jones-Family", "qr_alias_locked": True}, headers=admin_headers)
    assert r.status_code == 200
    assert (r.json()["qr_alias"], r.json()["qr_alias_locked"]) == ("jones-family", True)

    r = client.patch(url, json={"qr_alias": "jones-crew"}, headers=admin_headers)
    assert r.status_code == 400
    assert r.json()["error"] == (
        "QR alias is locked and cannot be changed. Unlock it first via the admin panel."
    )

    r = client.patch(url, json={"qr_alias": "jones-crew", "qr_alias_locked": False}, headers=admin_headers)
    assert r.status_code == 200
    assert (r.json()["qr_alias"], r.json()["qr_alias_locked"]) == ("jones-crew", False)
    assert a.id != b.id


def test_update_personalization(client, guest, admin_headers):
    r = client.patch(
        f"/api/admin/users/{guest.id}/personalization",
        json={
            "qr_alias": "smith-family",
            "relationship_to_bride": "Cousin",
            "guest_group": "brides_family",
            "plus_one_allowed": True,
            "custom_welcome_message": "So glad you're coming",
            "household_members": [{"first_name": "John", "last_name": "Smith"}],
        },
        headers=admin_headers,
    )
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["qr_alias"] == "smith-family"
    assert body["guest_group"] == "brides_family"
    assert body["plus_one_allowed"] is True
    assert body["household_members"][0]["first_name"] == "John"

    r = client.patch(
        f"/api/admin/users/{guest.id}/personalization",
        json={"relationship_to_groom": "x" * 101},
        headers=admin_headers,
    )
    assert r.status_code == 400


def test_delete_user_removes_rsvp(client, db, guest, admin, admin_headers, auth_headers):
    _rsvp(client, guest, auth_headers, attending="NO")
    r = client.delete(f"/api/admin/users/{guest.id}", headers=admin_headers)
    assert r.json() == {"deleted": True}
    db.expire_all()
    assert db.get(User, guest.id) is None
    assert db.query(RSVP).count() == 0

    r = client.delete(f"/api/admin/users/{admin.id}", headers=admin_headers)
    assert r.status_code == 403
    assert r.json()["error"] == "Cannot delete admin users"


# ------------------------------------------------------------------ RSVP admin
def test_admin_upserts_and_deletes_rsvp(client, db, guest, admin_headers):
    url = f"/api/admin/users/{guest.id}/rsvp"
    r = client.put(url, json={"additional_notes": "Called by phone"}, headers=admin_headers)
    assert r.status_code == 200, r.text
    assert (r.json()["attending"], r.json()["guest_count"]) == ("MAYBE", 1)

    r = client.put(url, json={"attending": "YES", "guests": [{"full_name": "Jane Smith", "meal_preference": "fish"}]},
                   headers=admin_headers)
    assert r.json()["attending"] == "YES"
    db.expire_all()
    assert db.get(User, guest.id).has_rsvped is True

    assert client.delete(url, headers=admin_headers).json() == {"deleted": True}
    db.expire_all()
    user = db.get(User, guest.id)
    assert user.has_rsvped is False
    assert user.rsvp is None

    # Borrar sin RSVP es idempotente
    r = client.delete(url, headers=admin_headers)
    assert r.status_code == 200
    assert r.json() == {"deleted": True}


# ------------------------------------------------------------------ masivo
def test_bulk_personalization_creates_updates_and_reports(client, db, make_user, admin_headers):
    make_user(full_name="Ann Smith", email="ann@example.com", qr_alias="smith-family")
    make_user(full_name="Lou Locked", email="lou@example.com", qr_alias="locked-family", qr_alias_locked=True)

    payload = {"items": [
        {"email": "ann@example.com", "personalization": {"guest_group": "friends", "plus_one_allowed": True}},
        {"email": "new@example.com", "full_name": "New Person",
         "personalization": {"qr_alias": "person-family", "city": "Madrid"}},
        {"email": "ghost@example.com", "personalization": {"city": "Nowhere"}},
        {"email": "dupe@example.com", "full_name": "Dupe Alias", "personalization": {"qr_alias": "smith-family"}},
        {"email": "lou@example.com", "personalization": {"qr_alias": "other-family", "city": "Rome"}},
        {"email": "bad@example.com", "full_name": "Bad Group", "personalization": {"guest_group": "coworkers"}},
    ]}
    r = client.post("/api/admin/personalization/bulk", json=payload, headers=admin_headers)
    assert r.status_code == 200, r.text
    result = r.json()
    assert result["success"] is False
    assert (result["created"], result["updated"], result["failed"]) == (1, 2, 3)
    errors = {e["email"]: e["error"] for e in result["errors"]}
    assert errors["ghost@example.com"] == "User not found and cannot create without Name"
    assert errors["dupe@example.com"] == 'QR alias "smith-family" is already in use'
    assert errors["bad@example.com"].startswith("Guest group must be one of")
    assert result["warnings"] == ["lou@example.com: QR alias is locked; alias change skipped"]

    db.expire_all()
    lou = db.query(User).filter_by(email="lou@example.com").one()
    assert (lou.qr_alias, lou.city) == ("locked-family", "Rome")
    created = db.query(User).filter_by(email="new@example.com").one()
    assert created.qr_alias == "person-family"
    assert created.qr_token
    # Las filas fallidas no dejan usuarios a medias
    assert db.query(User).filter_by(email="dupe@example.com").first() is None


def test_bulk_service_direct_call(db, make_user):
    make_user(email="ann@example.com")
    result = admin_service.bulk_update_personalization(db, [
        BulkPersonalizationItem(email="ann@example.com", personalization=PersonalizationIn(country="Chile")),
    ])
    assert result == {"success": True, "created": 0, "updated": 1, "failed": 0, "errors": [], "warnings": []}


def test_bulk_blank_alias_clears_unlocked_alias(db, make_user):
    open_user = make_user(email="ann@example.com", qr_alias="adams-family")
    locked = make_user(email="lou@example.com", qr_alias="lou-family", qr_alias_locked=True)
    result = admin_service.bulk_update_personalization(db, [
        BulkPersonalizationItem(email="ann@example.com", personalization=PersonalizationIn(qr_alias="")),
        BulkPersonalizationItem(email="lou@example.com", personalization=PersonalizationIn(qr_alias=None)),
    ])
    assert (result["updated"], result["failed"]) == (2, 0)
    assert result["warnings"] == ["lou@example.com: QR alias is locked; alias change skipped"]
    db.expire_all()
    assert db.get(User, open_user.id).qr_alias is None
    assert db.get(User, locked.id).qr_alias == "lou-family"


def test_csv_import_endpoint(client, db, make_user, admin_headers):
    make_user(full_name="Ann Smith", email="ann@example.com")
    csv_text = (
        "fullName,email,guestGroup,plusOneAllowed\n"
        "Ann Smith,ann@example.com,friends,true\n"
        "Ben Stone,ben@example.com,other,false\n"
        "Broken Row,not-an-email,,\n"
    )
    r = client.post(
        "/api/admin/personalization/import-csv",
        files={"file": ("guests.csv", csv_text.encode("utf-8"), "text/csv")},
        headers=admin_headers,
    )
    assert r.status_code == 200, r.text
    result = r.json()
    assert (result["created"], result["updated"], result["failed"]) == (1, 1, 0)
    assert result["parse_errors"] == ["Row 4: Invalid email format: not-an-email"]
    assert result["success"] is False

    db.expire_all()
    ann = db.query(User).filter_by(email="ann@example.com").one()
    assert (ann.guest_group.value, ann.plus_one_allowed) == ("friends", True)


# ------------------------------------------------------------------ QR
def test_user_qr_code_png(client, guest, admin_headers):
    r = client.get(f"/api/admin/users/{guest.id}/qr-code", headers=admin_headers)
    assert r.status_code == 200
    assert r.headers["content-type"] == "image/png"
    assert r.content[:4] == b"\x89PNG"


def test_regenerate_qr_codes(client, make_user, admin_headers, tmp_path, monkeypatch):
    from weddingsite import config

    monkeypatch.setattr(config, "QR_CODES_DIR", tmp_path)
    make_user(full_name="Ann Smith")
    make_user(full_name="Bob Jones")
    r = client.post("/api/admin/qr-codes/regenerate", headers=admin_headers)
    assert r.json() == {"success": 3, "failed": 0, "errors": []}
    assert len(list((tmp_path / "test").glob("*.png"))) == 3


def test_assign_missing_qr_aliases(db, make_user):
    make_user(full_name="Ann Smith", qr_alias="smith-family")
    make_user(full_name="Tom Smith")
    make_user(full_name="Eve Stone")
    changes = admin_service.assign_missing_qr_aliases(db)
    assert [c["qr_alias"] for c in changes] == ["smith-family-2", "stone-family"]


def test_ensure_admin_is_idempotent(db, make_user):
    user = make_user(email="boss@example.com")
    assert user.is_admin is False
    assert admin_service.ensure_admin(db, "Boss@Example.com").is_admin is True
    created = admin_service.ensure_admin(db, "chief@example.com", "Chief Admin")
    assert created.is_admin is True
    assert admin_service.ensure_admin(db, "chief@example.com").id == created.id


# ------------------------------------------------------------------ recordatorios
def test_reminders(client, make_user, admin, admin_headers, auth_headers, monkeypatch):
    from weddingsite import mailer

    sent = []
    monkeypatch.setattr(
        mailer, "send_rsvp_reminder_email",
        lambda email, name, token: sent.append(email) or email != "fail@example.com",
    )
    pending = make_user(email="pending@example.com")
    failing = make_user(email="fail@example.com")
    done = make_user(email="done@example.com")
    make_user(email="gone@example.com", is_invited=False)
    _rsvp(client, done, auth_headers, attending="NO")

    r = client.post(f"/api/admin/users/{done.id}/reminder", headers=admin_headers)
    assert r.json() == {"success": False, "email": "done@example.com", "error": "User has already RSVPed"}

    r = client.post(f"/api/admin/users/{pending.id}/reminder", headers=admin_headers)
    assert r.json() == {"success": True, "email": "pending@example.com", "error": None}

    sent.clear()
    r = client.post("/api/admin/reminders", json={}, headers=admin_headers)
    body = r.json()
    assert (body["total_sent"], body["success_count"], body["failure_count"]) == (2, 1, 1)
    assert sorted(sent) == ["fail@example.com", "pending@example.com"]

    r = client.post("/api/admin/reminders", json={"user_ids": [failing.id]}, headers=admin_headers)
    assert r.json()["results"] == [{"success": False, "email": "fail@example.com", "error": "Failed to send email"}]


def test_reminder_attempts_are_recorded(client, db, make_user, admin_headers, monkeypatch):
    from weddingsite import mailer
    from weddingsite.models import EmailJob

    monkeypatch.setattr(
        mailer, "send_rsvp_reminder_email", lambda email, name, token: email != "fail@example.com"
    )
    ok = make_user(full_name="Olga Ortiz", email="ok@example.com")
    bad = make_user(full_name="Fred Fail", email="fail@example.com")
    client.post(f"/api/admin/users/{ok.id}/reminder", headers=admin_headers)
    client.post(f"/api/admin/users/{bad.id}/reminder", headers=admin_headers)

    r = client.get("/api/admin/emails", headers=admin_headers)
    assert r.status_code == 200
    history = r.json()
    assert [(h["user_email"], h["status"]) for h in history] == [
        ("fail@example.com", "failed"),
        ("ok@example.com", "sent"),
    ]
    assert history[0]["last_error"] == "Failed to send email"
    assert history[0]["sent_at"] is None
    assert history[1]["template"] == "rsvp_reminder"
    assert history[1]["attempts"] == 1
    assert history[1]["sent_at"] is not None

    sent_only = client.get("/api/admin/emails?status=sent", headers=admin_headers).json()
    assert [h["user_name"] for h in sent_only] == ["Olga Ortiz"]
    r = client.get("/api/admin/emails?status=bounced", headers=admin_headers)
    assert r.status_code == 400

    mine = client.get(f"/api/admin/users/{ok.id}/emails", headers=admin_headers).json()
    assert [h["status"] for h in mine] == ["sent"]
    assert client.get("/api/admin/users/999/emails", headers=admin_headers).status_code == 400

    # El historial sobrevive al borrado del invitado
    client.delete(f"/api/admin/users/{bad.id}", headers=admin_headers)
    db.expire_all()
    assert db.query(EmailJob).count() == 2
    history = client.get("/api/admin/emails", headers=admin_headers).json()
    assert (history[0]["user_name"], history[0]["user_email"]) == ("Deleted User", "deleted@unknown.com")


def test_refused_reminders_leave_no_history(client, db, make_user, admin_headers):
    from weddingsite.models import EmailJob

    gone = make_user(email="gone@example.com", is_invited=False)
    r = client.post(f"/api/admin/users/{gone.id}/reminder", headers=admin_headers)
    assert r.json()["error"] == "User is not invited"
    assert db.query(EmailJob).count() == 0

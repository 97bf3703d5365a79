from datetime import timedelta

from sqlalchemy.dialects import mysql

from campus_events.db.models.event import EventStatus
from campus_events.db.models.registration import FormAnswer, Registration, RegistrationStatus
from campus_events.modules.registrations.router import event_for_update, registrations_for_update
from campus_events.utils.timeutil import utcnow


def _register(client, event_id, answers):
    body = {"answers": [{"form_field_id": int(k), "value": v} for k, v in answers.items()]}
    return client.post(f"/api/events/{event_id}/register", json=body)


def test_register_with_conditional_answers(client_for, participant, event, conditional_form, db_session):
    datang, jumlah = conditional_form["datang"], conditional_form["jumlah"]
    res = _register(client_for(participant), event.id, {datang: "Ya", jumlah: "3"})

    assert res.status_code == 201
    body = res.json()
    assert body["success"] is True
    assert body["is_free"] is True
    assert body["data"]["status"] == "pending"
    assert body["data"]["qr_code"].startswith(f"EVT-{event.id}-USR-{participant.id}-")

    stored = {a.form_field_id: a.value for a in db_session.query(FormAnswer).all()}
    assert stored == {datang: "Ya", jumlah: "3"}


def test_register_missing_visible_required_field(client_for, participant, event, conditional_form, db_session):
    datang, jumlah = conditional_form["datang"], conditional_form["jumlah"]
    res = _register(client_for(participant), event.id, {datang: "Ya"})

    assert res.status_code == 400
    body = res.json()
    assert body["message"] == "Jumlah tamu wajib diisi"
    assert body["errors"] == {str(jumlah): "Jumlah tamu wajib diisi"}
    assert db_session.query(Registration).count() == 0


def test_register_hidden_required_field_not_needed(client_for, participant, event, conditional_form):
    res = _register(client_for(participant), event.id, {conditional_form["datang"]: "Tidak"})
    assert res.status_code == 201


def test_register_blank_answer_counts_as_missing(client_for, participant, event, conditional_form):
    res = _register(client_for(participant), event.id, {conditional_form["datang"]: "   "})
    assert res.status_code == 400
    assert res.json()["errors"] == {str(conditional_form["datang"]): "Datang? wajib diisi"}


def test_register_rejects_foreign_field(client_for, participant, event, conditional_form):
    res = _register(client_for(participant), event.id, {conditional_form["datang"]: "Tidak", 9999: "x"})
    assert res.status_code == 400


def test_register_twice_conflicts(client_for, participant, event, conditional_form):
    client = client_for(participant)
    answers = {conditional_form["datang"]: "Tidak"}
    assert _register(client, event.id, answers).status_code == 201
    res = _register(client, event.id, answers)
    assert res.status_code == 409


def test_register_requires_published_event(client_for, participant, event, db_session):
    event.status = EventStatus.DRAFT
    db_session.commit()
    res = _register(client_for(participant), event.id, {})
    assert res.status_code == 400
    assert "draft" in res.json()["message"]


def test_register_after_deadline(client_for, participant, event, db_session):
    event.registration_deadline = utcnow() - timedelta(hours=1)
    db_session.commit()
    res = _register(client_for(participant), event.id, {})
    assert res.status_code == 400
    assert "ditutup" in res.json()["message"]


def test_register_quota_full(client_for, make_participant, event, db_session):
    event.quota = 1
    db_session.commit()

    assert _register(client_for(make_participant("a@campus.test")), event.id, {}).status_code == 201
    res = _register(client_for(make_participant("b@campus.test")), event.id, {})
    assert res.status_code == 400
    assert "Kuota" in res.json()["message"]


def test_register_unknown_event(client_for, participant):
    assert _register(client_for(participant), 404, {}).status_code == 404


def test_register_requires_login(client_for, event):
    assert _register(client_for(None), event.id, {}).status_code == 401


def test_paid_event_message(client_for, participant, event, db_session):
    event.price = 50000
    db_session.commit()
    res = _register(client_for(participant), event.id, {})
    assert res.status_code == 201
    assert res.json()["is_free"] is False


def test_registration_status(client_for, participant, event, conditional_form):
    client = client_for(participant)
    res = client.get(f"/api/events/{event.id}/registration-status")
    assert res.json()["registered"] is False

    _register(client, event.id, {conditional_form["datang"]: "Tidak"})
    res = client.get(f"/api/events/{event.id}/registration-status")
    assert res.json()["registered"] is True
    assert res.json()["data"]["event_id"] == event.id


def test_participants_visible_to_event_manager_only(client_for, organizer, participant, event, conditional_form):
    _register(client_for(participant), event.id, {conditional_form["datang"]: "Ya", conditional_form["jumlah"]: "2"})

    assert client_for(participant).get(f"/api/events/{event.id}/participants").status_code == 403

    res = client_for(organizer).get(f"/api/events/{event.id}/participants")
    assert res.status_code == 200
    [row] = res.json()["data"]
    assert row["user"]["email"] == participant.email
    assert {a["label"]: a["value"] for a in row["answers"]} == {"Datang?": "Ya", "Jumlah tamu": "2"}


def test_my_registrations_hides_done_events(client_for, participant, event, conditional_form, db_session):
    client = client_for(participant)
    _register(client, event.id, {conditional_form["datang"]: "Tidak"})

    res = client.get("/api/registrations/me")
    assert [r["event"]["slug"] for r in res.json()["data"]] == ["seminar-teknologi"]

    event.status = EventStatus.DONE
    db_session.commit()
    assert client.get("/api/registrations/me").json()["data"] == []


def test_organizer_confirms_registration(client_for, organizer, participant, event, conditional_form):
    reg_id = _register(client_for(participant), event.id, {conditional_form["datang"]: "Tidak"}).json()["data"]["id"]

    res = client_for(participant).patch(f"/api/registrations/{reg_id}/status", json={"status": "confirmed"})
    assert res.status_code == 403

    res = client_for(organizer).patch(f"/api/registrations/{reg_id}/status", json={"status": "pending"})
    assert res.status_code == 400

    res = client_for(organizer).patch(f"/api/registrations/{reg_id}/status", json={"status": "confirmed"})
    assert res.status_code == 200
    assert res.json()["data"]["status"] == "confirmed"


def test_ticket_page(client_for, participant, other_organizer, event, conditional_form):
    reg = _register(
        client_for(participant),
        event.id,
        {conditional_form["datang"]: "Ya", conditional_form["jumlah"]: "4"},
    ).json()["data"]

    res = client_for(participant).get(f"/registrations/{reg['id']}/ticket")
    assert res.status_code == 200
    assert "text/html" in res.headers["content-type"]
    assert reg["qr_code"] in res.text
    assert "Jumlah tamu" in res.text

    res = client_for(other_organizer).get(f"/registrations/{reg['id']}/ticket", headers={"accept": "text/html"})
    assert res.status_code == 403
    assert "text/html" in res.headers["content-type"]


def _sql(query) -> str:
    return str(query.statement.compile(dialect=mysql.dialect()))


def test_quota_count_runs_under_row_locks(db_session, event):
    assert _sql(event_for_update(db_session, event.id)).endswith("FOR UPDATE")
    assert _sql(registrations_for_update(db_session, event.id)).endswith("FOR UPDATE")


def test_register_locks_event_before_counting(client_for, participant, event, monkeypatch):
    from campus_events.modules.registrations import router as registrations_router

    calls = []
    real_event, real_regs = registrations_router.event_for_update, registrations_router.registrations_for_update

    def spy_event(db, event_id):
        calls.append("event")
        return real_event(db, event_id)

    def spy_regs(db, event_id):
        calls.append("registrations")
        return real_regs(db, event_id)

    monkeypatch.setattr(registrations_router, "event_for_update", spy_event)
    monkeypatch.setattr(registrations_router, "registrations_for_update", spy_regs)

    assert _register(client_for(participant), event.id, {}).status_code == 201
    assert calls == ["event", "registrations"]


def _confirmed(client_for, participant, organizer, event, conditional_form):
    reg = _register(client_for(participant), event.id, {conditional_form["datang"]: "Tidak"}).json()["data"]
    client_for(organizer).patch(f"/api/registrations/{reg['id']}/status", json={"status": "confirmed"})
    return reg


def test_check_in_marks_attendance(client_for, organizer, participant, event, conditional_form, db_session):
    reg = _confirmed(client_for, participant, organizer, event, conditional_form)

    res = client_for(organizer).post("/api/check-in", json={"qr_code": reg["qr_code"]})
    assert res.status_code == 200
    assert res.json()["data"] == {"user_name": participant.name, "event": event.title, "status": "Hadir"}

    stored = db_session.get(Registration, reg["id"])
    db_session.refresh(stored)
    assert stored.status == RegistrationStatus.CHECKED_IN
    assert stored.attendance is True
    assert stored.checked_in_at is not None


def test_check_in_twice_conflicts(client_for, organizer, participant, event, conditional_form):
    reg = _confirmed(client_for, participant, organizer, event, conditional_form)
    client = client_for(organizer)
    assert client.post("/api/check-in", json={"qr_code": reg["qr_code"]}).status_code == 200

    res = client.post("/api/check-in", json={"qr_code": reg["qr_code"]})
    assert res.status_code == 409
    assert res.json()["data"]["user_name"] == participant.name


def test_check_in_refuses_pending(client_for, organizer, participant, event, conditional_form):
    reg = _register(client_for(participant), event.id, {conditional_form["datang"]: "Tidak"}).json()["data"]
    res = client_for(organizer).post("/api/check-in", json={"qr_code": reg["qr_code"]})
    assert res.status_code == 400
    assert "Pending" in res.json()["message"]


def test_check_in_unknown_code(client_for, organizer):
    assert client_for(organizer).post("/api/check-in", json={"qr_code": "EVT-0-USR-0-000000"}).status_code == 404


def test_check_in_managers_only(client_for, organizer, other_organizer, participant, event, conditional_form):
    reg = _confirmed(client_for, participant, organizer, event, conditional_form)
    assert client_for(participant).post("/api/check-in", json={"qr_code": reg["qr_code"]}).status_code == 403
    assert client_for(other_organizer).post("/api/check-in", json={"qr_code": reg["qr_code"]}).status_code == 403


def test_manual_attendance_toggle(client_for, organizer, participant, event, conditional_form):
    reg = _confirmed(client_for, participant, organizer, event, conditional_form)
    client = client_for(organizer)

    res = client.put(f"/api/registrations/{reg['id']}/attendance", json={"attendance": True})
    assert res.status_code == 200
    assert res.json()["data"]["status"] == "checked_in"
    assert res.json()["data"]["attendance"] is True

    res = client.put(f"/api/registrations/{reg['id']}/attendance", json={"attendance": False})
    assert res.json()["data"]["status"] == "confirmed"
    assert res.json()["data"]["attendance"] is False
    assert res.json()["data"]["checked_in_at"] is None


def test_manual_attendance_keeps_rejected_status(client_for, organizer, participant, event, conditional_form):
    reg = _register(client_for(participant), event.id, {conditional_form["datang"]: "Tidak"}).json()["data"]
    client = client_for(organizer)
    client.patch(f"/api/registrations/{reg['id']}/status", json={"status": "rejected"})

    res = client.put(f"/api/registrations/{reg['id']}/attendance", json={"attendance": False})
    assert res.json()["data"]["status"] == "rejected"

    assert client_for(participant).put(
        f"/api/registrations/{reg['id']}/attendance", json={"attendance": True}
    ).status_code == 403


def test_status_patch_cannot_check_in(client_for, organizer, participant, event, conditional_form):
    reg = _register(client_for(participant), event.id, {conditional_form["datang"]: "Tidak"}).json()["data"]
    res = client_for(organizer).patch(f"/api/registrations/{reg['id']}/status", json={"status": "checked_in"})
    assert res.status_code == 400


def test_bulk_status(client_for, organizer, make_participant, event, conditional_form, db_session):
    ids = [
        _register(client_for(make_participant(email)), event.id, {conditional_form["datang"]: "Tidak"}).json()["data"]["id"]
        for email in ("a@campus.test", "b@campus.test")
    ]

    res = client_for(organizer).post("/api/registrations/bulk-status", json={"registration_ids": ids, "status": "confirmed"})
    assert res.status_code == 200
    assert res.json()["updated_count"] == 2
    assert {r.status for r in db_session.query(Registration).all()} == {RegistrationStatus.CONFIRMED}


def test_bulk_status_rejects_bad_input(client_for, organizer, other_organizer, participant, event, conditional_form):
    reg_id = _register(client_for(participant), event.id, {conditional_form["datang"]: "Tidak"}).json()["data"]["id"]
    url = "/api/registrations/bulk-status"

    assert client_for(organizer).post(url, json={"registration_ids": [reg_id], "status": "pending"}).status_code == 400
    assert client_for(organizer).post(url, json={"registration_ids": [reg_id, 9999], "status": "confirmed"}).status_code == 404
    assert client_for(other_organizer).post(url, json={"registration_ids": [reg_id], "status": "confirmed"}).status_code == 403
    assert client_for(organizer).post(url, json={"registration_ids": [], "status": "confirmed"}).status_code == 422


def test_organizer_may_register_for_own_event(client_for, organizer, event):
    assert _register(client_for(organizer), event.id, {}).status_code == 201

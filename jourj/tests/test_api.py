"""
API endpoint tests for all routes.
Uses in-memory SQLite + dependency-overridden FastAPI test client.
"""
import os
from unittest.mock import AsyncMock, patch

import pytest

from jourj.models import Task, TimelineItem, Document


async def _add_timeline(client, event_id, title, time, duration, **extra):
    r = await client.post("/api/timeline/", json={
        "event_id": event_id, "title": title, "time": time, "duration": duration, **extra,
    })
    assert r.status_code == 200, r.text
    return r.json()


# ===================== HEALTH / ROOT =====================


async def test_root(client):
    r = await client.get("/")
    assert r.status_code == 200
    assert r.json()["status"] == "running"


async def test_health(client):
    r = await client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "healthy"


# ===================== AUTH =====================


async def test_login_success(unauth_client, seed_data):
    r = await unauth_client.post(
        "/api/auth/login",
        data={"username": "test@jourj.fr", "password": "testpass123"},
    )
    assert r.status_code == 200
    assert "access_token" in r.json()


async def test_login_wrong_password(unauth_client, seed_data):
    r = await unauth_client.post(
        "/api/auth/login",
        data={"username": "test@jourj.fr", "password": "wrong"},
    )
    assert r.status_code == 401


async def test_register_new_user(unauth_client, seed_data):
    r = await unauth_client.post(
        "/api/auth/register",
        json={"email": "new@jourj.fr", "full_name": "New User", "password": "pass123"},
    )
    assert r.status_code == 200
    assert r.json()["email"] == "new@jourj.fr"


async def test_register_duplicate_email(unauth_client, seed_data):
    r = await unauth_client.post(
        "/api/auth/register",
        json={"email": "test@jourj.fr", "full_name": "Dup", "password": "pass123"},
    )
    assert r.status_code == 400


async def test_get_me(client):
    r = await client.get("/api/auth/me")
    assert r.status_code == 200
    assert r.json()["email"] == "test@jourj.fr"


async def test_protected_route_no_token(unauth_client, seed_data):
    for url in ("/api/auth/me", "/api/events/", "/api/dashboard/"):
        r = await unauth_client.get(url)
        assert r.status_code == 401


async def test_logout_closes_event_store(client, seed_data, stores):
    await client.post(f"/api/events/{seed_data['event'].id}/select")
    user_id = seed_data["user"].id
    assert stores.current(user_id) is not None

    r = await client.post("/api/auth/logout")
    assert r.status_code == 200
    assert stores.current(user_id) is None


# ===================== EVENTS =====================


async def test_create_and_list_events(client, seed_data):
    r = await client.post("/api/events/", json={"name": "Mariage Léa & Tom", "event_date": "2027-06-12"})
    assert r.status_code == 200
    assert r.json()["owner_id"] == seed_data["user"].id

    r = await client.get("/api/events/")
    assert r.status_code == 200
    assert len(r.json()) == 2


async def test_get_missing_event(client):
    r = await client.get("/api/events/9999")
    assert r.status_code == 404


async def test_select_event_opens_store(client, seed_data, stores):
    event = seed_data["event"]

    r = await client.get("/api/events/current")
    assert r.status_code == 200
    assert r.json() is None

    r = await client.post(f"/api/events/{event.id}/select")
    assert r.status_code == 200

    store = stores.current(seed_data["user"].id)
    assert store.event_id == event.id
    assert len(store.people) == 2
    assert len(store.vendors) == 1

    r = await client.get("/api/events/current")
    assert r.json()["name"] == "Mariage Claire & Hugo"


async def test_switching_event_closes_previous_store(client, seed_data, stores):
    await client.post(f"/api/events/{seed_data['event'].id}/select")
    first = stores.current(seed_data["user"].id)

    r = await client.post("/api/events/", json={"name": "Autre mariage"})
    await client.post(f"/api/events/{r.json()['id']}/select")

    assert first.closed
    assert stores.current(seed_data["user"].id).event_id == r.json()["id"]


async def test_delete_event_removes_children(client, db_session, seed_data, stores):
    event = seed_data["event"]
    await client.post(f"/api/events/{event.id}/select")
    await client.post("/api/tasks/", json={"event_id": event.id, "title": "Réserver le traiteur"})

    r = await client.delete(f"/api/events/{event.id}")
    assert r.status_code == 200
    assert stores.current(seed_data["user"].id) is None

    r = await client.get("/api/tasks/", params={"event_id": event.id})
    assert r.json() == []


# ===================== TASKS =====================


async def test_create_task(client, seed_data):
    r = await client.post("/api/tasks/", json={
        "event_id": seed_data["event"].id,
        "title": "Envoyer les faire-part",
        "priority": "high",
        "assigned_person_id": seed_data["bride"].id,
    })
    assert r.status_code == 200
    data = r.json()
    assert data["status"] == "pending"
    assert data["priority"] == "high"


async def test_create_task_validation(client, seed_data):
    r = await client.post("/api/tasks/", json={"event_id": seed_data["event"].id, "title": "   "})
    assert r.status_code == 422

    r = await client.post("/api/tasks/", json={
        "event_id": seed_data["event"].id, "title": "Fleurs", "priority": "urgent",
    })
    assert r.status_code == 422


async def test_list_tasks_filters(client, db_session, seed_data):
    event_id = seed_data["event"].id
    db_session.add_all([
        Task(event_id=event_id, title="Alliances", priority="high", assigned_person_id=seed_data["groom"].id),
        Task(event_id=event_id, title="Robe", priority="low", assigned_person_id=seed_data["bride"].id),
    ])
    await db_session.commit()

    r = await client.get("/api/tasks/", params={"event_id": event_id, "priority": "high"})
    assert [t["title"] for t in r.json()] == ["Alliances"]

    r = await client.get("/api/tasks/", params={"event_id": event_id, "assigned_person_id": seed_data["bride"].id})
    assert [t["title"] for t in r.json()] == ["Robe"]


async def test_toggle_task(client, seed_data, stores):
    event_id = seed_data["event"].id
    await client.post(f"/api/events/{event_id}/select")
    r = await client.post("/api/tasks/", json={"event_id": event_id, "title": "Essayage"})
    task_id = r.json()["id"]

    r = await client.put(f"/api/tasks/{task_id}/toggle", json={"completed": True})
    assert r.status_code == 200
    assert r.json()["status"] == "completed"
    assert r.json()["completed_at"] is not None

    store = stores.current(seed_data["user"].id)
    assert not store.has_pending
    assert store.tasks[0].status == "completed"

    r = await client.put(f"/api/tasks/{task_id}/toggle", json={"completed": False})
    assert r.json()["status"] == "pending"
    assert r.json()["completed_at"] is None


async def test_toggle_task_failure_drops_pending_change(client, db_session, seed_data, stores):
    event_id = seed_data["event"].id
    await client.post(f"/api/events/{event_id}/select")
    r = await client.post("/api/tasks/", json={"event_id": event_id, "title": "Essayage"})
    task_id = r.json()["id"]

    with patch.object(db_session, "commit", AsyncMock(side_effect=RuntimeError("database is locked"))):
        r = await client.put(f"/api/tasks/{task_id}/toggle", json={"completed": True})
    assert r.status_code == 500

    store = stores.current(seed_data["user"].id)
    assert not store.has_pending
    assert store.notices[-1].level == "error"

    r = await client.get("/api/tasks/", params={"event_id": event_id})
    assert r.json()[0]["status"] == "pending"


async def test_delete_task(client, seed_data):
    r = await client.post("/api/tasks/", json={"event_id": seed_data["event"].id, "title": "Temp"})
    task_id = r.json()["id"]

    r = await client.delete(f"/api/tasks/{task_id}")
    assert r.status_code == 200

    r = await client.delete(f"/api/tasks/{task_id}")
    assert r.status_code == 404


# ===================== TIMELINE =====================


class TestTimelineForm:
    async def test_defaults(self, client, seed_data):
        r = await client.post("/api/timeline/", json={"event_id": seed_data["event"].id, "title": "Coiffure"})
        assert r.status_code == 200
        data = r.json()
        assert data["time"] == "08:00"
        assert data["duration"] == 60
        assert data["end_time"] == "09:00"
        assert data["category"] == "Préparation"
        assert data["priority"] == "medium"
        assert data["status"] == "scheduled"
        assert data["assigned_display"] == "Non assigné"

    async def test_rejects_invalid_input(self, client, db_session, seed_data):
        event_id = seed_data["event"].id
        for payload in (
            {"title": "   "},
            {"title": "Cérémonie", "time": "25:00"},
            {"title": "Cérémonie", "time": "9h"},
            {"title": "Cérémonie", "duration": 0},
            {"title": "Cérémonie", "priority": "urgent"},
            {"title": "Cérémonie", "status": "done"},
        ):
            r = await client.post("/api/timeline/", json={"event_id": event_id, **payload})
            assert r.status_code == 422, payload

        r = await client.get("/api/timeline/", params={"event_id": event_id})
        assert r.json() == []

    async def test_vendor_sentinel_and_blank_text(self, client, seed_data):
        r = await client.post("/api/timeline/", json={
            "event_id": seed_data["event"].id,
            "title": "Vin d'honneur",
            "assigned_vendor_id": "none",
            "description": "   ",
            "notes": "",
        })
        data = r.json()
        assert data["assigned_vendor_ids"] == []
        assert data["description"] is None
        assert data["notes"] is None

    async def test_vendor_assignment_display(self, client, seed_data):
        r = await client.post("/api/timeline/", json={
            "event_id": seed_data["event"].id,
            "title": "Photos de groupe",
            "time": "16:30",
            "duration": 45,
            "assigned_vendor_id": str(seed_data["photographer"].id),
        })
        data = r.json()
        assert data["assigned_vendor_ids"] == [seed_data["photographer"].id]
        assert data["assigned_display"] == "Prestataire: Studio Lumière"
        assert data["end_time"] == "17:15"
        assert data["duration_label"] == "45min"

    async def test_people_assignment_display(self, client, seed_data):
        r = await client.post("/api/timeline/", json={
            "event_id": seed_data["event"].id,
            "title": "Préparatifs",
            "assigned_person_ids": [seed_data["bride"].id, seed_data["groom"].id],
        })
        assert r.json()["assigned_display"] == "Claire, Hugo"

    async def test_update_clears_vendor(self, client, seed_data):
        item = await _add_timeline(
            client, seed_data["event"].id, "Photos", "15:00", 60,
            assigned_vendor_id=seed_data["photographer"].id,
        )
        r = await client.put(f"/api/timeline/{item['id']}", json={"assigned_vendor_id": "none", "time": "15:30"})
        assert r.status_code == 200
        assert r.json()["assigned_vendor_ids"] == []
        assert r.json()["time"] == "15:30"

    async def test_update_rejects_bad_time(self, client, seed_data):
        item = await _add_timeline(client, seed_data["event"].id, "Photos", "15:00", 60)
        r = await client.put(f"/api/timeline/{item['id']}", json={"time": "24:10"})
        assert r.status_code == 422


class TestTimelineOrder:
    async def test_new_item_slots_in_by_time(self, client, seed_data):
        event_id = seed_data["event"].id
        await _add_timeline(client, event_id, "Cérémonie", "15:00", 60)
        await _add_timeline(client, event_id, "Coiffure", "09:00", 90)

        r = await client.get("/api/timeline/", params={"event_id": event_id})
        assert [i["title"] for i in r.json()] == ["Coiffure", "Cérémonie"]

    async def test_reorder_preview_does_not_save(self, client, seed_data):
        event_id = seed_data["event"].id
        a = await _add_timeline(client, event_id, "Coiffure", "09:00", 60)
        b = await _add_timeline(client, event_id, "Habillage", "10:00", 30)
        c = await _add_timeline(client, event_id, "Photos", "11:00", 45)

        r = await client.post("/api/timeline/reorder/preview", json={
            "event_id": event_id, "source_index": 0, "target_index": 2,
        })
        assert r.status_code == 200
        data = r.json()
        assert data["order"] == [b["id"], c["id"], a["id"]]
        assert [s["start_time"] for s in data["slots"]] == ["09:00", "09:30", "10:15"]

        r = await client.get("/api/timeline/", params={"event_id": event_id})
        assert [i["time"] for i in r.json()] == ["09:00", "10:00", "11:00"]

    async def test_reorder_commits_new_times(self, client, seed_data, stores):
        event_id = seed_data["event"].id
        await client.post(f"/api/events/{event_id}/select")
        a = await _add_timeline(client, event_id, "Coiffure", "09:00", 60)
        b = await _add_timeline(client, event_id, "Habillage", "10:00", 30)
        c = await _add_timeline(client, event_id, "Photos", "11:00", 45)

        r = await client.post("/api/timeline/reorder", json={
            "event_id": event_id, "source_index": 0, "target_index": 2,
        })
        assert r.status_code == 200
        assert r.json()["order"] == [b["id"], c["id"], a["id"]]
        assert len(r.json()["changed"]) == 3

        r = await client.get("/api/timeline/", params={"event_id": event_id})
        assert [(i["id"], i["time"], i["end_time"]) for i in r.json()] == [
            (b["id"], "09:00", "09:30"),
            (c["id"], "09:30", "10:15"),
            (a["id"], "10:15", "11:15"),
        ]

        store = stores.current(seed_data["user"].id)
        assert [i.id for i in store.timeline_items] == [b["id"], c["id"], a["id"]]

    async def test_new_item_after_delete_keeps_time_order(self, client, seed_data):
        event_id = seed_data["event"].id
        a = await _add_timeline(client, event_id, "Coiffure", "08:00", 60)
        b = await _add_timeline(client, event_id, "Habillage", "09:00", 60)
        await _add_timeline(client, event_id, "Photos", "10:00", 60)
        await _add_timeline(client, event_id, "Cérémonie", "11:00", 60)
        await client.delete(f"/api/timeline/{a['id']}")
        await client.delete(f"/api/timeline/{b['id']}")

        await _add_timeline(client, event_id, "Cocktail", "12:00", 60)

        r = await client.get("/api/timeline/", params={"event_id": event_id})
        assert [(i["title"], i["sort_order"]) for i in r.json()] == [
            ("Photos", 0), ("Cérémonie", 1), ("Cocktail", 2),
        ]

    async def test_reorder_with_sort_order_gaps(self, client, db_session, seed_data):
        event_id = seed_data["event"].id
        c = await _add_timeline(client, event_id, "Photos", "10:00", 60)
        d = await _add_timeline(client, event_id, "Cérémonie", "11:00", 60)
        e = await _add_timeline(client, event_id, "Cocktail", "12:00", 60)
        for item_id, sort_order in ((c["id"], 5), (d["id"], 7), (e["id"], 9)):
            (await db_session.get(TimelineItem, item_id)).sort_order = sort_order
        await db_session.commit()

        r = await client.post("/api/timeline/reorder", json={
            "event_id": event_id, "source_index": 2, "target_index": 1,
        })
        assert r.json()["order"] == [c["id"], e["id"], d["id"]]

        r = await client.get("/api/timeline/", params={"event_id": event_id})
        assert [(i["id"], i["time"], i["sort_order"]) for i in r.json()] == [
            (c["id"], "10:00", 0), (e["id"], "11:00", 1), (d["id"], "12:00", 2),
        ]

        r = await client.post("/api/timeline/reorder", json={
            "event_id": event_id, "source_index": 0, "target_index": 2,
        })
        assert r.json()["order"] == [e["id"], d["id"], c["id"]]
        r = await client.get("/api/timeline/", params={"event_id": event_id})
        assert [i["id"] for i in r.json()] == [e["id"], d["id"], c["id"]]

    async def test_reorder_out_of_range(self, client, seed_data):
        event_id = seed_data["event"].id
        await _add_timeline(client, event_id, "Coiffure", "09:00", 60)

        r = await client.post("/api/timeline/reorder", json={
            "event_id": event_id, "source_index": 0, "target_index": 5,
        })
        assert r.status_code == 400

    async def test_reorder_save_failure_returns_attempt(self, client, db_session, seed_data):
        event_id = seed_data["event"].id
        a = await _add_timeline(client, event_id, "Coiffure", "09:00", 60)
        b = await _add_timeline(client, event_id, "Habillage", "10:00", 30)

        with patch.object(db_session, "commit", AsyncMock(side_effect=RuntimeError("database is locked"))):
            r = await client.post("/api/timeline/reorder", json={
                "event_id": event_id, "source_index": 1, "target_index": 0,
            })
        assert r.status_code == 409
        attempted = r.json()["detail"]["attempted"]
        assert attempted["order"] == [b["id"], a["id"]]

        r = await client.get("/api/timeline/", params={"event_id": event_id})
        assert [(i["id"], i["time"]) for i in r.json()] == [(a["id"], "09:00"), (b["id"], "10:00")]

    async def test_delete_item(self, client, db_session, seed_data):
        item = await _add_timeline(client, seed_data["event"].id, "Coiffure", "09:00", 60)
        r = await client.delete(f"/api/timeline/{item['id']}")
        assert r.status_code == 200
        assert await db_session.get(TimelineItem, item["id"]) is None


# ===================== PEOPLE / VENDORS =====================


async def test_people_crud(client, seed_data):
    event_id = seed_data["event"].id
    r = await client.post("/api/people/", json={"event_id": event_id, "name": "Julie", "role": "maid-of-honor"})
    assert r.status_code == 200
    person = r.json()
    assert person["role_label"] == "Demoiselle d'honneur"

    r = await client.put(f"/api/people/{person['id']}", json={"phone": "0601020304"})
    assert r.json()["phone"] == "0601020304"

    r = await client.get("/api/people/", params={"event_id": event_id})
    assert len(r.json()) == 3

    r = await client.delete(f"/api/people/{person['id']}")
    assert r.status_code == 200
    r = await client.get(f"/api/people/{person['id']}")
    assert r.status_code == 404


async def test_vendors_crud(client, seed_data, stores):
    event_id = seed_data["event"].id
    await client.post(f"/api/events/{event_id}/select")

    r = await client.post("/api/vendors/", json={
        "event_id": event_id, "name": "Traiteur Dupont", "service_type": "caterer",
    })
    assert r.status_code == 200
    vendor_id = r.json()["id"]
    store = stores.current(seed_data["user"].id)
    assert store.vendors[0].name == "Traiteur Dupont"

    r = await client.put(f"/api/vendors/{vendor_id}", json={"contract_status": "signed"})
    assert r.json()["contract_status"] == "signed"

    r = await client.get("/api/vendors/", params={"event_id": event_id, "service_type": "caterer"})
    assert [v["name"] for v in r.json()] == ["Traiteur Dupont"]

    r = await client.delete(f"/api/vendors/{vendor_id}")
    assert r.status_code == 200
    assert [v.id for v in store.vendors] == [seed_data["photographer"].id]


# ===================== DOCUMENTS =====================


class TestDocuments:
    async def _upload(self, client, seed_data, name, content, mime, **form):
        return await client.post(
            "/api/documents/upload",
            data={"event_id": str(seed_data["event"].id), **form},
            files={"file": (name, content, mime)},
        )

    async def test_upload_and_list(self, client, seed_data):
        r = await self._upload(
            client, seed_data, "contrat.pdf", b"%PDF-1.4 contrat", "application/pdf",
            category="Contrats", assigned_to=str(seed_data["bride"].id),
        )
        assert r.status_code == 200
        doc = r.json()
        assert doc["icon"] == "📄"
        assert doc["source_label"] == "Manuel"
        assert doc["is_quick_access"] is True
        assert doc["category_color"] == "bg-green-100 text-green-800"
        assert doc["uploaded_by"] == "Test User"

        await self._upload(client, seed_data, "playlist.txt", b"a" * 1536, "text/plain", category="Musique")

        r = await client.get("/api/documents/", params={"event_id": seed_data["event"].id})
        data = r.json()
        assert [d["name"] for d in data["quick_access"]] == ["contrat.pdf"]
        assert [d["size_label"] for d in data["others"]] == ["1.5 KB"]

    async def test_rejects_disallowed_extension(self, client, seed_data):
        r = await self._upload(client, seed_data, "virus.exe", b"MZ", "application/octet-stream")
        assert r.status_code == 400

    async def test_person_documents(self, client, seed_data):
        await self._upload(
            client, seed_data, "planning.pdf", b"%PDF", "application/pdf",
            category="Planning", assigned_to=f"{seed_data['bride'].id}",
        )
        event_id = seed_data["event"].id

        r = await client.get(f"/api/documents/person/{seed_data['bride'].id}", params={"event_id": event_id})
        assert [d["name"] for d in r.json()] == ["planning.pdf"]

        r = await client.get(f"/api/documents/person/{seed_data['groom'].id}", params={"event_id": event_id})
        assert r.json() == []

    async def test_download_and_view(self, client, seed_data):
        r = await self._upload(client, seed_data, "menu.pdf", b"%PDF menu", "application/pdf")
        doc_id = r.json()["id"]

        r = await client.get(f"/api/documents/{doc_id}/download")
        assert r.status_code == 200
        assert r.content == b"%PDF menu"

        r = await client.get(f"/api/documents/{doc_id}/view")
        assert r.status_code == 307
        assert r.headers["location"].startswith("http://test/api/documents/files/")

    async def test_drive_link_prefers_drive_viewer(self, client, seed_data):
        r = await client.post("/api/documents/link", json={
            "event_id": seed_data["event"].id,
            "name": "Plan de table",
            "google_drive_url": "https://drive.google.com/file/d/abc/view",
            "category": "Listes",
        })
        assert r.status_code == 200
        assert r.json()["source_label"] == "Google Drive"

        r = await client.get(f"/api/documents/{r.json()['id']}/view")
        assert r.headers["location"] == "https://drive.google.com/file/d/abc/view"

    async def test_stats(self, client, db_session, seed_data):
        event_id = seed_data["event"].id
        db_session.add_all([
            Document(event_id=event_id, name="a", category="Photos", file_size=1024, source="manual"),
            Document(event_id=event_id, name="b", category="Photos", file_size=2048, source="google_drive"),
            Document(event_id=event_id, name="c", category="Légal", source="manual"),
        ])
        await db_session.commit()

        r = await client.get("/api/documents/stats", params={"event_id": event_id})
        assert r.json() == {
            "total_documents": 3,
            "total_size": 3072,
            "total_size_label": "3 KB",
            "categories_count": 2,
            "google_drive_count": 1,
            "manual_count": 2,
        }

    async def test_failed_save_removes_stored_file(self, client, db_session, seed_data, storage):
        with patch.object(db_session, "commit", AsyncMock(side_effect=RuntimeError("database is locked"))):
            with pytest.raises(RuntimeError):
                await self._upload(client, seed_data, "devis.pdf", b"%PDF", "application/pdf")

        assert not any(files for _, _, files in os.walk(storage.root))

    async def test_delete_removes_file(self, client, seed_data, storage):
        r = await self._upload(client, seed_data, "devis.pdf", b"%PDF", "application/pdf")
        doc = r.json()
        path = doc["download_url"].split("/api/documents/files/", 1)[1]
        assert storage.exists(path)

        r = await client.delete(f"/api/documents/{doc['id']}")
        assert r.status_code == 200
        assert not storage.exists(path)


# ===================== PLANNING =====================


class TestPersonalPlanning:
    async def test_person_planning_order_and_progress(self, client, seed_data):
        event_id = seed_data["event"].id
        bride_id = seed_data["bride"].id
        await _add_timeline(client, event_id, "Cérémonie", "15:00", 60, assigned_person_ids=[bride_id])
        await _add_timeline(
            client, event_id, "Coiffure", "09:00", 90, assigned_person_ids=[bride_id], status="completed",
        )
        await _add_timeline(client, event_id, "Apéritif", "17:00", 60)
        await client.post("/api/tasks/", json={
            "event_id": event_id, "title": "Lettre", "priority": "low", "assigned_person_id": bride_id,
        })
        await client.post("/api/tasks/", json={
            "event_id": event_id, "title": "Alliances", "priority": "high", "assigned_person_id": bride_id,
        })

        r = await client.get(f"/api/planning/person/{bride_id}", params={"event_id": event_id})
        assert r.status_code == 200
        data = r.json()
        assert [(i["type"], i["title"]) for i in data["items"]] == [
            ("timeline", "Coiffure"),
            ("timeline", "Cérémonie"),
            ("task", "Alliances"),
            ("task", "Lettre"),
        ]
        assert data["items"][0]["time_range"] == "09:00 - 10:30"
        assert data["completed_count"] == 1
        assert data["progress_percentage"] == 25
        assert data["display_name"] == "Claire"
        assert data["role"] == "Mariée"

    async def test_vendor_planning_matches_legacy_role(self, client, seed_data):
        event_id = seed_data["event"].id
        vendor_id = seed_data["photographer"].id
        await _add_timeline(client, event_id, "Photos couple", "14:00", 60, assigned_vendor_id=vendor_id)
        await _add_timeline(client, event_id, "Photos famille", "12:00", 30, assigned_role=str(vendor_id))

        r = await client.get(f"/api/planning/vendor/{vendor_id}", params={"event_id": event_id})
        data = r.json()
        assert [i["title"] for i in data["items"]] == ["Photos famille", "Photos couple"]
        assert data["progress_percentage"] == 0

    async def test_empty_planning(self, client, seed_data):
        r = await client.get(
            f"/api/planning/person/{seed_data['groom'].id}", params={"event_id": seed_data["event"].id},
        )
        assert r.json()["total"] == 0
        assert r.json()["progress_percentage"] == 0

    async def test_invalid_user_type(self, client, seed_data):
        r = await client.get("/api/planning/guest/1", params={"event_id": seed_data["event"].id})
        assert r.status_code == 400

    async def test_unknown_person(self, client, seed_data):
        r = await client.get("/api/planning/person/9999", params={"event_id": seed_data["event"].id})
        assert r.status_code == 404


# ===================== DASHBOARD =====================


async def test_dashboard_requires_selected_event(client):
    r = await client.get("/api/dashboard/")
    assert r.status_code == 400


async def test_dashboard_progress(client, seed_data):
    event_id = seed_data["event"].id
    await client.post(f"/api/events/{event_id}/select")

    await client.post("/api/tasks/", json={"event_id": event_id, "title": "Traiteur", "priority": "high"})
    r = await client.post("/api/tasks/", json={"event_id": event_id, "title": "Musique", "priority": "low"})
    await client.put(f"/api/tasks/{r.json()['id']}/toggle", json={"completed": True})

    r = await client.get("/api/dashboard/")
    assert r.status_code == 200
    data = r.json()
    assert data["progress"] == {
        "total_tasks": 2,
        "completed_tasks": 1,
        "progress_percentage": 50,
        "critical_tasks": 1,
    }
    assert data["days_until_event"] == 30
    assert data["counts"]["people"] == 2
    assert data["pending_changes"] == 0


async def test_dashboard_refresh_picks_up_direct_writes(client, db_session, seed_data):
    event_id = seed_data["event"].id
    await client.post(f"/api/events/{event_id}/select")

    db_session.add(Task(event_id=event_id, title="Ajouté ailleurs", priority="high"))
    await db_session.commit()

    r = await client.get("/api/dashboard/")
    assert r.json()["progress"]["total_tasks"] == 0

    r = await client.post("/api/dashboard/refresh")
    assert r.json()["progress"]["total_tasks"] == 1
    assert r.json()["progress"]["critical_tasks"] == 1

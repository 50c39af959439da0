from datetime import datetime, timezone

import pytest


def test_attendance_clock_flow(client, org, login, clock):
    login(org.employee)

    assert client.post("/api/attendance/clock-out").status_code == 409
    resp = client.post("/api/attendance/clock-in", json={"notes": "Remote"})
    assert resp.status_code == 201
    assert resp.get_json()["record"]["status"] == "PRESENT"
    assert client.post("/api/attendance/clock-in").status_code == 409

    clock.set(datetime(2026, 3, 10, 18, 0))
    record = client.post("/api/attendance/clock-out").get_json()["record"]
    assert record["workHours"] == 9.0

    assert client.get("/api/attendance/today").get_json()["record"]["id"] == record["id"]
    assert len(client.get("/api/attendance/history?limit=5").get_json()["records"]) == 1


def test_attendance_admin_endpoints(client, org, login, clock):
    login(org.employee)
    clock.set(datetime(2026, 3, 9, 9, 0))
    attendance_id = client.post("/api/attendance/clock-in").get_json()["record"]["id"]
    clock.set(datetime(2026, 3, 9, 17, 0))
    client.post("/api/attendance/clock-out")
    clock.set(datetime(2026, 3, 10, 9, 0))

    assert client.post("/api/attendance/finalize", json={"date": "2026-03-09"}).status_code == 403

    login(org.hr)
    assert client.post("/api/attendance/finalize", json={"date": "2026-03-09"}).get_json()["locked"] == 1
    resp = client.post(
        f"/api/attendance/{attendance_id}/override",
        json={"changes": {"clockOut": "2026-03-09T18:00:00"}, "reason": "Badge reader outage"},
    )
    assert resp.status_code == 200
    assert resp.get_json()["record"]["workHours"] == 9.0
    assert resp.get_json()["record"]["locked"] is True


def test_attendance_override_accepts_offsets_and_rejects_non_strings(client, org, login, clock):
    login(org.employee)
    clock.set(datetime(2026, 3, 9, 9, 0))
    attendance_id = client.post("/api/attendance/clock-in").get_json()["record"]["id"]
    clock.set(datetime(2026, 3, 9, 17, 0))
    client.post("/api/attendance/clock-out")
    clock.set(datetime(2026, 3, 10, 9, 0))

    login(org.hr)
    url = f"/api/attendance/{attendance_id}/override"
    resp = client.post(
        url, json={"changes": {"clockIn": "2026-03-09T02:00:00+00:00"}, "reason": "Clock drift"}
    )
    assert resp.status_code == 200
    expected = datetime(2026, 3, 9, 2, 0, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)
    assert resp.get_json()["record"]["clockIn"] == expected.isoformat()

    resp = client.post(url, json={"changes": {"clockOut": 1741510800}, "reason": "Clock drift"})
    assert resp.status_code == 400


def test_project_and_task_board(client, org, login):
    login(org.pm)
    project = client.post("/api/projects", json={"name": "Mobile App"}).get_json()["project"]
    task = client.post(
        f"/api/projects/{project['id']}/tasks",
        json={"title": "Login screen", "priority": "high", "dueDate": "2026-03-31", "assigneeIds": [org.employee]},
    ).get_json()["task"]
    assert task["status"] == "TODO"

    login(org.employee)
    assert client.post(f"/api/tasks/{task['id']}/move", json={"status": "DONE"}).get_json()["task"]["status"] == "DONE"
    assert client.post(f"/api/tasks/{task['id']}/move", json={"status": "IN_PROGRESS"}).status_code == 409
    assert client.post(f"/api/tasks/{task['id']}/reopen").get_json()["task"]["status"] == "TODO"
    assert client.post(f"/api/tasks/{task['id']}/assign", json={"assigneeIds": []}).status_code == 403
    assert client.post("/api/projects", json={"name": "Mine"}).status_code == 403

    notifications = client.get("/api/notifications").get_json()
    assert notifications["unreadCount"] == 1
    assert client.post("/api/notifications/read", json={}).get_json()["updated"] == 1
    assert client.post("/api/notifications/read", json={"ids": 3}).status_code == 400


def test_chat_endpoints(client, org, login):
    login(org.employee)
    channel = client.post("/api/chat/channels", json={"name": "Design Crit", "memberIds": [org.colleague]}).get_json()[
        "channel"
    ]
    assert channel["name"] == "design-crit"
    for i in range(3):
        client.post(f"/api/chat/channels/{channel['id']}/messages", json={"content": f"m{i}"})

    page = client.get(f"/api/chat/channels/{channel['id']}/messages?limit=2").get_json()
    assert [m["content"] for m in page["messages"]] == ["m1", "m2"]
    older = client.get(f"/api/chat/channels/{channel['id']}/messages?limit=2&cursor={page['nextCursor']}").get_json()
    assert [m["content"] for m in older["messages"]] == ["m0"]
    assert older["nextCursor"] is None

    assert client.get(f"/api/chat/channels/{channel['id']}/messages?cursor=xyz").status_code == 400
    assert client.post(f"/api/chat/channels/{channel['id']}/messages", json={"content": " "}).status_code == 400
    assert client.get("/api/chat/channels/9999/messages").status_code == 404

    login(org.lead)
    assert client.get(f"/api/chat/channels/{channel['id']}/messages").status_code == 403
    assert client.get("/api/chat/channels").get_json()["channels"] == []


def test_timer_lives_in_the_session(client, org, login, services, as_user, clock):
    project = services.task_service.create_project(as_user(org.pm), name="Ops")
    task = services.task_service.create_task(as_user(org.pm), project_id=project.project_id, title="Rotate keys")
    login(org.employee)

    assert client.post("/api/time/timer/start", json={"taskId": task.task_id}).status_code == 200
    assert client.post("/api/time/timer/start", json={"taskId": task.task_id}).status_code == 409
    clock.advance(minutes=25)
    assert client.get("/api/time/timer").get_json()["timer"]["elapsedSeconds"] == 1500

    resp = client.post("/api/time/timer/stop", json={"billable": True})
    assert resp.get_json()["entry"]["duration"] == 1500
    assert resp.get_json()["timer"]["activeTaskId"] is None
    assert len(client.get("/api/time/entries").get_json()["entries"]) == 1
    assert client.post("/api/time/timer/rewind").status_code == 404

    login(org.employee)
    assert client.get("/api/time/timer").get_json()["timer"]["activeTaskId"] is None


@pytest.mark.parametrize("fmt,mimetype", [("csv", "text/csv"), ("xlsx", "spreadsheetml")])
def test_report_downloads(client, org, login, fmt, mimetype):
    login(org.employee)
    client.post("/api/attendance/clock-in")

    login(org.lead)
    resp = client.get(f"/api/reports/attendance?format={fmt}")

    assert resp.status_code == 200
    assert mimetype in resp.headers["Content-Type"]
    assert f"attendance_20260304_20260310.{fmt}" in resp.headers["Content-Disposition"]


def test_report_json_and_bad_format(client, org, login):
    login(org.lead)

    report = client.get("/api/reports/attendance?start=2026-03-01&end=2026-03-10").get_json()
    assert report["start"] == "2026-03-01"
    assert report["rows"] == []
    assert client.get("/api/reports/attendance?format=pdf").status_code == 400


def test_ui_preferences_survive_sign_out_but_session_state_does_not(client, org, login):
    login(org.employee)
    resp = client.patch("/api/ui/state", json={"theme": "dark", "sidebarCollapsed": True, "activeModal": "search"})
    assert resp.status_code == 200
    assert any(h.startswith("workhub_ui=") for h in resp.headers.getlist("Set-Cookie"))
    assert client.patch("/api/ui/state", json={"theme": "neon"}).status_code == 400

    client.patch("/api/ui/filters", json={"tasks": {"priority": "HIGH"}})
    assert client.get("/api/ui/filters").get_json()["filters"]["tasks"] == {"priority": "HIGH"}

    client.post("/api/auth/logout")
    login(org.employee)

    state = client.get("/api/ui/state").get_json()["state"]
    assert state == {"sidebarOpen": True, "sidebarCollapsed": True, "theme": "dark", "activeModal": None}
    assert client.get("/api/ui/filters").get_json()["filters"] == {"projects": {}, "tasks": {}}
    assert client.delete("/api/ui/filters?section=users").status_code == 400

"""Modification request API: the negotiation over HTTP.

Uses the in-memory repositories and fixed clock wired in by the ``app``
fixture; the bearer token decides the acting party.
"""

from taskdesk.domain.enums import RequestStatus

BASE = "/api/v1"


async def _open_admin_edit(client, headers, task_id: str = "task-1", **overrides) -> dict:
    body = {
        "request_type": "edit",
        "reason": "Please fix the due date for Q3",
        "sla_hours": 24,
        "proposed_changes": {"due_date": "2025-09-01"},
    }
    body.update(overrides)
    response = await client.post(
        f"{BASE}/tasks/{task_id}/modification-requests", json=body, headers=headers
    )
    assert response.status_code == 201, response.text
    return response.json()


async def test_full_negotiation_over_http(client, auth_headers, task, admin, employee) -> None:
    """Create, view, discuss, approve, execute; second execute is a 409."""
    admin_h = auth_headers(admin)
    employee_h = auth_headers(employee)

    created = await _open_admin_edit(client, admin_h)
    request_id = created["id"]
    assert created["origin"] == "admin_initiated"
    assert created["effective_status"] == "pending"
    assert created["sla"]["level"] == "neutral"
    assert created["task_title"] == "Quarterly report"

    viewed = await client.post(f"{BASE}/modification-requests/{request_id}/viewed", headers=employee_h)
    assert viewed.status_code == 200
    assert viewed.json()["employee_viewed_at"] is not None

    message = await client.post(
        f"{BASE}/modification-requests/{request_id}/messages",
        json={"text": "Does this include the appendix?"},
        headers=employee_h,
    )
    assert message.status_code == 201
    assert message.json()["sender_role"] == "employee"

    responded = await client.post(
        f"{BASE}/modification-requests/{request_id}/respond",
        json={"decision": "approved", "note": "ok"},
        headers=employee_h,
    )
    assert responded.status_code == 200
    assert responded.json()["status"] == "approved"

    executed = await client.post(
        f"{BASE}/modification-requests/{request_id}/execute",
        json={"admin_note": "done"},
        headers=admin_h,
    )
    assert executed.status_code == 200, executed.text
    payload = executed.json()
    assert payload["task"]["due_date"] == "2025-09-01"
    assert payload["request"]["status"] == "executed"
    assert payload["request"]["applied_changes"]["due_date"]["new"] == "2025-09-01"
    assert [m["text"] for m in payload["request"]["discussion"]] == [
        "Does this include the appendix?"
    ]

    again = await client.post(
        f"{BASE}/modification-requests/{request_id}/execute",
        json={"admin_note": "done"},
        headers=admin_h,
    )
    assert again.status_code == 409
    assert again.json()["error"] == "INVALID_STATE_TRANSITION"
    assert again.json()["details"]["current_status"] == "executed"


async def test_short_reason_is_a_400_with_field(client, auth_headers, task, admin) -> None:
    response = await client.post(
        f"{BASE}/tasks/task-1/modification-requests",
        json={"request_type": "edit", "reason": "Fix date", "proposed_changes": {"title": "X2"}},
        headers=auth_headers(admin),
    )
    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "VALIDATION_ERROR"
    assert body["details"]["field"] == "reason"


async def test_non_string_title_is_a_400(client, auth_headers, task, admin) -> None:
    response = await client.post(
        f"{BASE}/tasks/task-1/modification-requests",
        json={
            "request_type": "edit",
            "reason": "Rename to match the board deck",
            "proposed_changes": {"title": 5},
        },
        headers=auth_headers(admin),
    )
    assert response.status_code == 400
    assert response.json()["details"]["field"] == "proposed_changes.title"


async def test_unknown_request_type_is_a_422(client, auth_headers, task, admin) -> None:
    response = await client.post(
        f"{BASE}/tasks/task-1/modification-requests",
        json={"request_type": "archive", "reason": "Please archive this task"},
        headers=auth_headers(admin),
    )
    assert response.status_code == 422
    assert response.json()["error"] == "VALIDATION_ERROR"


async def test_second_open_request_is_a_409(client, auth_headers, task, admin, employee) -> None:
    await _open_admin_edit(client, auth_headers(admin))
    response = await client.post(
        f"{BASE}/tasks/task-1/modification-requests",
        json={
            "request_type": "extension",
            "reason": "Need more time",
            "requested_extension": "2025-08-29",
        },
        headers=auth_headers(employee),
    )
    assert response.status_code == 409


async def test_outsider_gets_403(client, auth_headers, task, admin, other_employee) -> None:
    created = await _open_admin_edit(client, auth_headers(admin))
    response = await client.get(
        f"{BASE}/modification-requests/{created['id']}", headers=auth_headers(other_employee)
    )
    assert response.status_code == 403
    assert response.json()["error"] == "PERMISSION_DENIED"


async def test_unknown_request_is_a_404(client, auth_headers, admin) -> None:
    response = await client.get(f"{BASE}/modification-requests/nope", headers=auth_headers(admin))
    assert response.status_code == 404
    assert response.json()["details"]["resource_type"] == "modification_request"


async def test_read_after_deadline_shows_expired(
    client, auth_headers, task, admin, employee, clock, request_repo
) -> None:
    created = await _open_admin_edit(client, auth_headers(admin), sla_hours=2)
    clock.advance(hours=3)

    detail = await client.get(
        f"{BASE}/modification-requests/{created['id']}", headers=auth_headers(employee)
    )
    assert detail.json()["status"] == "pending"
    assert detail.json()["effective_status"] == "expired"
    assert detail.json()["sla"]["level"] == "danger"

    late = await client.post(
        f"{BASE}/modification-requests/{created['id']}/respond",
        json={"decision": "approved", "note": "ok"},
        headers=auth_headers(employee),
    )
    assert late.status_code == 409
    assert request_repo.rows[created["id"]].status == RequestStatus.PENDING


async def test_employee_extension_approved_and_executed(
    client, auth_headers, task, admin, employee
) -> None:
    created = await client.post(
        f"{BASE}/tasks/task-1/modification-requests",
        json={
            "request_type": "extension",
            "reason": "Waiting on finance data",
            "requested_extension": "2025-08-29",
            "urgency": "high",
        },
        headers=auth_headers(employee),
    )
    assert created.status_code == 201
    request_id = created.json()["id"]
    assert created.json()["origin"] == "employee_initiated"

    forbidden = await client.post(
        f"{BASE}/modification-requests/{request_id}/approve",
        json={"admin_note": "Granted"},
        headers=auth_headers(employee),
    )
    assert forbidden.status_code == 403

    approved = await client.post(
        f"{BASE}/modification-requests/{request_id}/approve",
        json={"admin_note": "Granted"},
        headers=auth_headers(admin),
    )
    assert approved.json()["status"] == "approved"

    executed = await client.post(
        f"{BASE}/modification-requests/{request_id}/execute",
        json={"admin_note": "Applied", "final_requested_extension": "2025-08-27"},
        headers=auth_headers(admin),
    )
    assert executed.status_code == 200
    assert executed.json()["task"]["due_date"] == "2025-08-27"
    assert executed.json()["request"]["admin_adjusted"] is True


async def test_reject_employee_request(client, auth_headers, task, admin, employee) -> None:
    created = await client.post(
        f"{BASE}/tasks/task-1/modification-requests",
        json={"request_type": "delete", "reason": "Duplicate of another task"},
        headers=auth_headers(employee),
    )
    request_id = created.json()["id"]
    missing_reason = await client.post(
        f"{BASE}/modification-requests/{request_id}/reject",
        json={},
        headers=auth_headers(admin),
    )
    assert missing_reason.status_code == 400

    rejected = await client.post(
        f"{BASE}/modification-requests/{request_id}/reject",
        json={"reason": "Not a duplicate"},
        headers=auth_headers(admin),
    )
    assert rejected.json()["status"] == "rejected"
    assert rejected.json()["rejection_reason"] == "Not a duplicate"


async def test_queue_is_scoped_and_summarized(
    client, auth_headers, make_task, admin, employee, other_employee
) -> None:
    make_task("task-1")
    make_task("task-2", title="Payroll review", assigned_to="emp-2")
    await _open_admin_edit(client, auth_headers(admin), "task-1")
    await _open_admin_edit(client, auth_headers(admin), "task-2")

    admin_queue = await client.get(f"{BASE}/modification-requests", headers=auth_headers(admin))
    assert admin_queue.status_code == 200
    assert admin_queue.json()["total"] == 2
    assert admin_queue.json()["summary"]["pending"] == 2
    assert admin_queue.json()["limit"] == 50

    mine = await client.get(f"{BASE}/modification-requests", headers=auth_headers(employee))
    assert [i["task_id"] for i in mine.json()["items"]] == ["task-1"]

    searched = await client.get(
        f"{BASE}/modification-requests",
        params={"search": "payroll", "status": "pending", "limit": 1},
        headers=auth_headers(admin),
    )
    assert [i["task_title"] for i in searched.json()["items"]] == ["Payroll review"]


async def test_queue_rejects_bad_filters(client, auth_headers, admin) -> None:
    bad_status = await client.get(
        f"{BASE}/modification-requests", params={"status": "open"}, headers=auth_headers(admin)
    )
    assert bad_status.status_code == 400
    bad_limit = await client.get(
        f"{BASE}/modification-requests", params={"limit": 0}, headers=auth_headers(admin)
    )
    assert bad_limit.status_code == 422


async def test_expiry_sweep_is_admin_only(
    client, auth_headers, task, admin, employee, clock
) -> None:
    created = await _open_admin_edit(client, auth_headers(admin), sla_hours=1)
    clock.advance(hours=2)

    denied = await client.post(f"{BASE}/modification-requests/expire", headers=auth_headers(employee))
    assert denied.status_code == 403

    swept = await client.post(f"{BASE}/modification-requests/expire", headers=auth_headers(admin))
    assert swept.status_code == 200
    assert swept.json() == {"expired_count": 1, "expired_request_ids": [created["id"]]}

    detail = await client.get(
        f"{BASE}/modification-requests/{created['id']}", headers=auth_headers(admin)
    )
    assert detail.json()["status"] == "expired"
    assert detail.json()["expired_at"] is not None

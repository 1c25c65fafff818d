"""
Exam Portal - Student & Admin API Tests
"""
import uuid
from datetime import timedelta

import pytest
from httpx import AsyncClient

from exam_portal.core.database import utcnow

PASSWORD = "TestPass123!"


async def _take(client: AsyncClient, exam_id, headers, selections) -> None:
    session = (await client.get(f"/api/v1/tests/{exam_id}", headers=headers)).json()["data"]
    response = await client.post("/api/v1/tests/submit", headers=headers, json={
        "test_id": session["test"]["id"],
        "attempt_id": session["attempt_id"],
        "answers": [
            {"question_id": q["id"], "selected_option": s}
            for q, s in zip(session["questions"], selections)
        ],
    })
    assert response.status_code == 200, response.text


# ============================================================================
# Student
# ============================================================================

@pytest.mark.asyncio
async def test_student_dashboard(client: AsyncClient, exam, enrolled_student, student_headers):
    response = await client.get("/api/v1/students/dashboard", headers=student_headers)
    assert response.status_code == 200
    assert response.json()["data"] == {"completed_tests": 0, "pending_tests": 1, "avg_score": 0.0}

    await _take(client, exam.id, student_headers, ["A", "B", "C", "A", "B"])

    response = await client.get("/api/v1/students/dashboard", headers=student_headers)
    assert response.json()["data"] == {"completed_tests": 1, "pending_tests": 0, "avg_score": 60.0}


@pytest.mark.asyncio
async def test_available_tests_need_enrollment(client: AsyncClient, exam, student, student_headers):
    response = await client.get("/api/v1/students/tests", headers=student_headers)
    assert response.status_code == 200
    assert response.json()["data"] == []


@pytest.mark.asyncio
async def test_available_tests_exclude_closed_window(
    client: AsyncClient, db_session, exam, enrolled_student, student_headers
):
    response = await client.get("/api/v1/students/tests", headers=student_headers)
    assert [t["id"] for t in response.json()["data"]] == [str(exam.id)]

    exam.available_until = utcnow() - timedelta(minutes=1)
    await db_session.commit()
    response = await client.get("/api/v1/students/tests", headers=student_headers)
    assert response.json()["data"] == []


@pytest.mark.asyncio
async def test_enroll_and_duplicate(client: AsyncClient, course, student_headers):
    course_id = str(course.id)

    response = await client.get("/api/v1/students/courses", headers=student_headers)
    assert [c["course_name"] for c in response.json()["data"]] == ["Pharmacology"]

    response = await client.post("/api/v1/students/enroll", json={"course_id": course_id}, headers=student_headers)
    assert response.status_code == 201
    assert response.json()["success"] is True

    response = await client.post("/api/v1/students/enroll", json={"course_id": course_id}, headers=student_headers)
    assert response.status_code == 409
    assert "already enrolled" in response.json()["message"]


@pytest.mark.asyncio
async def test_enroll_unknown_course(client: AsyncClient, student_headers):
    response = await client.post(
        "/api/v1/students/enroll", json={"course_id": str(uuid.uuid4())}, headers=student_headers
    )
    assert response.status_code == 404


# ============================================================================
# Admin
# ============================================================================

@pytest.mark.asyncio
async def test_admin_endpoints_reject_students(client: AsyncClient, student_headers):
    response = await client.get("/api/v1/admin/dashboard", headers=student_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_approve_pending_student(client: AsyncClient, admin_headers, sample_user_data):
    registered = (await client.post("/api/v1/auth/register", json=sample_user_data)).json()["data"]

    response = await client.get("/api/v1/admin/users", headers=admin_headers)
    assert [u["email"] for u in response.json()["data"]] == [sample_user_data["email"]]

    response = await client.patch(
        f"/api/v1/admin/users/{registered['id']}/status",
        json={"status": "active"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "active"

    response = await client.get("/api/v1/admin/users", params={"status": "pending"}, headers=admin_headers)
    assert response.json()["data"] == []

    response = await client.post("/api/v1/auth/login", json={
        "email": sample_user_data["email"],
        "password": sample_user_data["password"],
    })
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_update_status_of_unknown_user(client: AsyncClient, admin_headers):
    response = await client.patch(
        f"/api/v1/admin/users/{uuid.uuid4()}/status",
        json={"status": "active"},
        headers=admin_headers,
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_admin_dashboard(client: AsyncClient, exam, student, admin_headers, sample_user_data):
    await client.post("/api/v1/auth/register", json=sample_user_data)

    response = await client.get("/api/v1/admin/dashboard", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["data"] == {
        "total_students": 2,
        "pending_users": 1,
        "active_tests": 1,
        "total_attempts": 0,
    }


@pytest.mark.asyncio
async def test_course_and_test_management(client: AsyncClient, admin_headers):
    response = await client.post(
        "/api/v1/admin/courses",
        json={"course_name": "Pharmaceutics", "duration_months": 12},
        headers=admin_headers,
    )
    assert response.status_code == 201
    course_id = response.json()["data"]["id"]

    response = await client.post("/api/v1/admin/tests", headers=admin_headers, json={
        "test_title": "Mock Exam 1",
        "course_id": course_id,
        "duration_minutes": 60,
        "total_marks": 100,
    })
    assert response.status_code == 201
    test_id = response.json()["data"]["id"]

    response = await client.get("/api/v1/admin/tests", headers=admin_headers)
    assert [t["id"] for t in response.json()["data"]] == [test_id]

    response = await client.delete(f"/api/v1/admin/tests/{test_id}", headers=admin_headers)
    assert response.status_code == 200

    response = await client.get("/api/v1/admin/tests", headers=admin_headers)
    assert response.json()["data"] == []


@pytest.mark.asyncio
async def test_create_test_rejects_reversed_window(client: AsyncClient, course, admin_headers):
    now = utcnow()
    response = await client.post("/api/v1/admin/tests", headers=admin_headers, json={
        "test_title": "Backwards",
        "course_id": str(course.id),
        "duration_minutes": 30,
        "total_marks": 20,
        "available_from": now.isoformat(),
        "available_until": (now - timedelta(days=1)).isoformat(),
    })
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_admin_results(client: AsyncClient, exam, student, student_headers, admin_headers):
    await _take(client, exam.id, student_headers, ["A", "B", "C", "D", "A"])

    response = await client.get("/api/v1/admin/results", headers=admin_headers)
    results = response.json()["data"]
    assert len(results) == 1
    assert results[0]["user_name"] == "Student"
    assert results[0]["percentage"] == 100.0
    assert results[0]["status"] == "pass"


@pytest.mark.asyncio
async def test_admin_change_password(client: AsyncClient, admin, admin_headers):
    response = await client.post(
        "/api/v1/admin/change-password",
        json={"new_password": "BrandNewPass1!"},
        headers=admin_headers,
    )
    assert response.status_code == 200

    old = await client.post("/api/v1/auth/login", json={"email": "admin@example.com", "password": PASSWORD})
    new = await client.post("/api/v1/auth/login", json={"email": "admin@example.com", "password": "BrandNewPass1!"})
    assert old.status_code == 401
    assert new.status_code == 200

"""
Exam Portal - Test-taking API Tests
"""
import uuid

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select

from exam_portal.models import Question

CORRECT = ["A", "B", "C", "D", "A"]
WRONG = ["B", "C", "D", "A", "B"]


async def _open(client: AsyncClient, exam_id, headers) -> dict:
    response = await client.get(f"/api/v1/tests/{exam_id}", headers=headers)
    assert response.status_code == 200, response.text
    return response.json()["data"]


def _payload(session: dict, selections: list[str]) -> dict:
    return {
        "test_id": session["test"]["id"],
        "attempt_id": session["attempt_id"],
        "answers": [
            {"question_id": q["id"], "selected_option": choice}
            for q, choice in zip(session["questions"], selections)
        ],
    }


@pytest.mark.asyncio
async def test_get_test_hides_answer_key(client: AsyncClient, exam, student_headers):
    session = await _open(client, exam.id, student_headers)

    assert session["test"]["test_title"] == "Pharmacology Basics"
    assert session["attempt_id"]
    assert len(session["questions"]) == 5
    for question in session["questions"]:
        assert "correct_option" not in question
        assert "explanation" not in question


@pytest.mark.asyncio
async def test_get_test_by_query_parameter(client: AsyncClient, exam, student_headers):
    response = await client.get("/api/v1/tests", params={"test_id": str(exam.id)}, headers=student_headers)

    assert response.status_code == 200
    assert response.json()["data"]["test"]["id"] == str(exam.id)


@pytest.mark.asyncio
async def test_get_test_twice_is_already_attempted(client: AsyncClient, exam, student_headers):
    await _open(client, exam.id, student_headers)

    response = await client.get(f"/api/v1/tests/{exam.id}", headers=student_headers)
    assert response.status_code == 409
    body = response.json()
    assert body == {"success": False, "message": body["message"], "data": None}
    assert "already attempted" in body["message"]


@pytest.mark.asyncio
async def test_get_missing_test(client: AsyncClient, student_headers):
    response = await client.get(f"/api/v1/tests/{uuid.uuid4()}", headers=student_headers)

    assert response.status_code == 404
    assert response.json()["success"] is False


@pytest.mark.asyncio
async def test_get_test_requires_student(client: AsyncClient, exam, admin_headers):
    response = await client.get(f"/api/v1/tests/{exam.id}", headers=admin_headers)
    assert response.status_code == 403

    response = await client.get(f"/api/v1/tests/{exam.id}")
    assert response.status_code in (401, 403)
    assert response.json()["success"] is False


@pytest.mark.asyncio
async def test_submit_and_list_results(client: AsyncClient, exam, student_headers):
    session = await _open(client, exam.id, student_headers)

    response = await client.post(
        "/api/v1/tests/submit",
        json=_payload(session, CORRECT[:3] + WRONG[3:]),
        headers=student_headers,
    )
    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Test submitted successfully", "data": None}

    response = await client.get("/api/v1/tests/results", headers=student_headers)
    assert response.status_code == 200
    results = response.json()["data"]
    assert len(results) == 1
    assert results[0]["test_title"] == "Pharmacology Basics"
    assert results[0]["marks_obtained"] == 12
    assert results[0]["total_marks"] == 20
    assert results[0]["percentage"] == 60.0
    assert results[0]["status"] == "pass"


@pytest.mark.asyncio
async def test_submit_twice_conflicts(client: AsyncClient, exam, student_headers):
    session = await _open(client, exam.id, student_headers)
    payload = _payload(session, CORRECT)

    first = await client.post("/api/v1/tests/submit", json=payload, headers=student_headers)
    second = await client.post("/api/v1/tests/submit", json=payload, headers=student_headers)

    assert first.status_code == 200
    assert second.status_code == 409
    assert second.json()["success"] is False


@pytest.mark.asyncio
async def test_submit_normalizes_and_validates_options(client: AsyncClient, exam, student_headers):
    session = await _open(client, exam.id, student_headers)

    bad = _payload(session, ["E"])
    response = await client.post("/api/v1/tests/submit", json=bad, headers=student_headers)
    assert response.status_code == 422
    assert response.json()["success"] is False

    lowercase = _payload(session, ["a", " b ", "c"])
    response = await client.post("/api/v1/tests/submit", json=lowercase, headers=student_headers)
    assert response.status_code == 200

    results = (await client.get("/api/v1/tests/results", headers=student_headers)).json()["data"]
    assert results[0]["marks_obtained"] == 12


@pytest.mark.asyncio
async def test_submit_missing_attempt_id(client: AsyncClient, exam, student_headers):
    response = await client.post(
        "/api/v1/tests/submit",
        json={"test_id": str(exam.id), "answers": []},
        headers=student_headers,
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_bulk_import_applies_default_marks(client: AsyncClient, db_session, exam, admin_headers):
    response = await client.post(
        "/api/v1/tests/bulk-import",
        json={
            "test_id": str(exam.id),
            "questions": [
                {
                    "question_text": "Which vitamin is Riboflavin?",
                    "option_a": "B1", "option_b": "B2", "option_c": "B6", "option_d": "B12",
                    "correct_option": "b",
                },
                {
                    "question_text": "Half-life of Digoxin?",
                    "option_a": "36-48 hours", "option_b": "2-4 hours",
                    "option_c": "10-12 hours", "option_d": "100 hours",
                    "correct_option": "A",
                    "marks": 5,
                },
            ],
        },
        headers=admin_headers,
    )

    assert response.status_code == 201, response.text
    data = response.json()["data"]
    assert data == {"imported": 2, "declared_total_marks": 20, "question_marks_sum": 29}

    rows = (await db_session.execute(
        select(Question.question_text, Question.correct_option, Question.marks, Question.position)
        .where(Question.test_id == exam.id)
        .order_by(Question.position)
    )).all()
    assert rows[-2:] == [
        ("Which vitamin is Riboflavin?", "B", 4, 5),
        ("Half-life of Digoxin?", "A", 5, 6),
    ]


@pytest.mark.asyncio
async def test_bulk_import_requires_admin(client: AsyncClient, exam, student_headers):
    response = await client.post(
        "/api/v1/tests/bulk-import",
        json={
            "test_id": str(exam.id),
            "questions": [{
                "question_text": "Q", "option_a": "a", "option_b": "b",
                "option_c": "c", "option_d": "d", "correct_option": "C",
            }],
        },
        headers=student_headers,
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_bulk_import_unknown_test(client: AsyncClient, admin_headers):
    response = await client.post(
        "/api/v1/tests/bulk-import",
        json={
            "test_id": str(uuid.uuid4()),
            "questions": [{
                "question_text": "Q", "option_a": "a", "option_b": "b",
                "option_c": "c", "option_d": "d", "correct_option": "C",
            }],
        },
        headers=admin_headers,
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_bulk_import_rejects_marks_too_large_for_total(
    client: AsyncClient, db_session, exam, admin_headers
):
    # Read before the request: the 422 rolls back the shared session and expires `exam`
    exam_id = exam.id
    response = await client.post(
        "/api/v1/tests/bulk-import",
        json={
            "test_id": str(exam_id),
            "questions": [{
                "question_text": "Q", "option_a": "a", "option_b": "b",
                "option_c": "c", "option_d": "d", "correct_option": "C",
                "marks": 200,
            }],
        },
        headers=admin_headers,
    )

    assert response.status_code == 422
    assert response.json()["success"] is False
    count = (await db_session.execute(
        select(func.count()).select_from(Question).where(Question.test_id == exam_id)
    )).scalar_one()
    assert count == 5

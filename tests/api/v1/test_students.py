from datetime import timedelta

from fastapi.testclient import TestClient

from app.models.student_subscription_model import SubscriptionStatus

STUDENT_ID = 1
BATCH_ID = 10


def test_requires_bearer_token(client: TestClient):
    response = client.get("/api/v1/student/eligibility", headers={"Authorization": ""})

    assert response.status_code == 401
    assert response.json()["error"]["message"] == "Authentication required"


def test_eligibility_for_eligible_student(client: TestClient):
    response = client.get("/api/v1/student/eligibility")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Subscription valid. 2 exam(s) available."
    assert body["data"]["result"]["status"] == "eligible"
    assert body["data"]["result"]["subscription_plan"]["name"] == "Basic"
    assert body["data"]["remediation"] is None


def test_eligibility_explains_missing_subscription(client: TestClient, portal):
    del portal.subscriptions[STUDENT_ID]

    response = client.get("/api/v1/student/eligibility")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is False
    assert body["data"]["result"]["reason_code"] == "NO_SUBSCRIPTION"
    assert body["data"]["result"]["detail"]["required_plan"]["id"] == 1
    assert body["data"]["remediation"]["responsible_party"] == "student"


def test_list_exams(client: TestClient):
    response = client.get("/api/v1/student/exams")

    assert response.status_code == 200
    body = response.json()
    assert body["total_exams"] == 2
    assert [exam["id"] for exam in body["exams"]] == [1000, 1001]
    assert body["subscription"]["id"] == 500


def test_list_exams_forbidden_when_expired(client: TestClient, portal, now):
    current = portal.subscriptions[STUDENT_ID]
    portal.subscriptions[STUDENT_ID] = current.model_copy(
        update={"end_date": now - timedelta(days=1)}
    )

    response = client.get("/api/v1/student/exams")

    assert response.status_code == 403
    body = response.json()
    assert body["success"] is False
    assert body["data"]["result"]["reason_code"] == "SUBSCRIPTION_EXPIRED"
    assert body["data"]["remediation"]["responsible_party"] == "student"


def test_list_exams_forbidden_for_batch_without_plan(client: TestClient, portal):
    del portal.assignments[BATCH_ID]

    response = client.get("/api/v1/student/exams")

    assert response.status_code == 403
    body = response.json()
    assert body["data"]["result"]["reason_code"] == "BATCH_NOT_ASSIGNED_TO_PLAN"
    assert body["data"]["remediation"]["responsible_party"] == "admin"


def test_exam_access_granted(client: TestClient):
    response = client.get("/api/v1/student/exams/1000/access")

    assert response.status_code == 200
    assert response.json()["message"] == "Exam access granted"


def test_exam_access_denied_for_unknown_exam(client: TestClient):
    response = client.get("/api/v1/student/exams/9999/access")

    assert response.status_code == 403
    assert response.json()["data"]["result"]["reason_code"] == "EXAM_NOT_FOUND"


def test_exam_access_denied_for_suspended_subscription(client: TestClient, portal):
    current = portal.subscriptions[STUDENT_ID]
    portal.subscriptions[STUDENT_ID] = current.model_copy(
        update={"status": SubscriptionStatus.SUSPENDED}
    )

    response = client.get("/api/v1/student/exams/1000/access")

    assert response.status_code == 403
    body = response.json()
    assert body["data"]["result"]["reason_code"] == "SUBSCRIPTION_NOT_ACTIVE"
    assert body["message"] == "Your subscription is suspended. Please contact support."


def test_current_user(client: TestClient):
    response = client.get("/api/v1/users/me")

    assert response.status_code == 200
    assert response.json()["email"] == "asha@example.com"


def test_missing_token_response_carries_cors_headers(client: TestClient):
    response = client.get(
        "/api/v1/student/eligibility",
        headers={"Authorization": "", "Origin": "http://localhost:3000"},
    )

    assert response.status_code == 401
    assert response.headers["access-control-allow-origin"] == "http://localhost:3000"

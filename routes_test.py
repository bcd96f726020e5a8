import asyncio

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from edupulse.clients import StoreError
from edupulse.clients.records import item_to_sheet_row
from edupulse.models import LoginResponse
from edupulse.routes.auth_routes import create_auth_routes
from edupulse.routes.quiz_routes import create_quiz_routes
from edupulse.routes.staff_routes import create_staff_routes
from edupulse.services import QuizSession, SubmissionService
from edupulse.session import init_session

PASSWORD = "secret"


class FakeStore:
    """In-memory stand-in for the spreadsheet store."""

    def __init__(self, snapshot):
        self.snapshot = snapshot
        self.submitted = []
        self.saved = []
        self.deleted = []
        self.logged_out = []
        self.fetches = 0
        self.offline = False

    async def get_data(self):
        self.fetches += 1
        if self.offline:
            raise StoreError("offline")
        return self.snapshot.model_copy(deep=True)

    async def login(self, account, password):
        if self.offline:
            raise StoreError("offline")
        user = next((u for u in self.snapshot.users if u.account == account), None)
        if user is None or password != PASSWORD:
            return LoginResponse(success=False, message="Sai tài khoản hoặc mật khẩu")
        return LoginResponse(success=True, user=user)

    async def logout(self, name):
        self.logged_out.append(name)

    async def submit_result(self, result):
        if self.offline:
            raise StoreError("offline")
        self.submitted.append(result)

    async def save_item(self, sheet_name, item, id_key):
        self.saved.append((sheet_name, item_to_sheet_row(sheet_name, item), id_key))

    async def delete_item(self, sheet_name, id_value, id_key):
        if self.offline:
            raise StoreError("offline")
        self.deleted.append((sheet_name, id_value, id_key))


@pytest.fixture
def store(snapshot):
    return FakeStore(snapshot)


@pytest.fixture
def session(store, snapshot):
    session = init_session(store)
    session.snapshot = snapshot.model_copy(deep=True)
    return session


@pytest.fixture
def client(session):
    app = FastAPI()
    app.include_router(create_auth_routes())
    app.include_router(create_quiz_routes())
    app.include_router(create_staff_routes())
    return TestClient(app)


def login(client, account):
    response = client.post("/api/auth/login", json={"account": account, "password": PASSWORD})
    assert response.status_code == 200, response.text
    return response.json()


def lesson_gates(client, subject_id=1):
    response = client.get(f"/api/student/subjects/{subject_id}/lessons")
    assert response.status_code == 200
    return {card["name"]: card["gate"] for card in response.json()["lessons"]}


class TestAuth:
    def test_requires_login(self, client):
        assert client.get("/api/student/subjects").status_code == 401
        assert client.get("/api/staff/analytics").status_code == 401

    def test_missing_credentials(self, client):
        response = client.post("/api/auth/login", json={"account": " ", "password": ""})
        assert response.status_code == 400
        assert response.json()["detail"] == "Vui lòng nhập đầy đủ tài khoản và mật khẩu"

    def test_wrong_password(self, client):
        response = client.post("/api/auth/login", json={"account": "an", "password": "nope"})
        assert response.status_code == 401
        assert response.json()["detail"] == "Sai tài khoản hoặc mật khẩu"

    def test_store_unreachable(self, client, store):
        store.offline = True
        response = client.post("/api/auth/login", json={"account": "an", "password": PASSWORD})
        assert response.status_code == 502
        assert response.json()["detail"] == "Lỗi kết nối. Vui lòng thử lại sau."

    def test_login_and_logout(self, client, store):
        body = login(client, "gv9")
        assert body["is_staff"]
        assert client.get("/api/auth/me").json()["user"]["account"] == "gv9"

        assert client.post("/api/auth/logout").status_code == 200
        assert store.logged_out == ["Teacher Nine"]
        assert client.get("/api/auth/me").status_code == 401

    def test_maintenance(self, client, session):
        session.snapshot.maintenance = True
        assert client.post("/api/auth/login", json={"account": "an", "password": PASSWORD}).status_code == 503

    def test_refresh(self, client, store):
        response = client.post("/api/session/refresh")
        assert response.status_code == 200
        assert response.json()["results"] == 5

        store.offline = True
        assert client.post("/api/session/refresh").status_code == 502


class TestStudentQuiz:
    def test_end_to_end(self, client, store, session):
        login(client, "an")

        subjects = client.get("/api/student/subjects").json()
        assert [s["name"] for s in subjects["subjects"]] == ["Biology", "Chemistry"]
        assert subjects["selected"] == 1

        assert lesson_gates(client) == {"L1": "unlocked", "L2": "locked", "L3": "locked"}
        assert client.post("/api/quiz/start/2").status_code == 403

        started = client.post("/api/quiz/start/1")
        assert started.status_code == 200
        quiz = started.json()
        assert sorted(q["id"] for q in quiz["questions"]) == [1, 2]
        assert all("answer_key" not in q for q in quiz["questions"])
        assert quiz["remaining_seconds"] == 120

        assert client.put("/api/quiz/answers/1", json={"value": "A"}).json()["answer"] == "A"
        client.put("/api/quiz/answers/2", json={"option": "C"})
        assert client.put("/api/quiz/answers/2", json={"option": "B"}).json()["answer"] == "B, C"

        review = client.post("/api/quiz/submit").json()
        assert review["score"] == 2
        assert review["total"] == 2
        assert review["final_score"] == 10.0
        assert review["passed"] and review["celebrate"]
        assert review["persisted"] is True

        assert len(store.submitted) == 1
        saved = store.submitted[0]
        assert (saved.name, saved.class_name, saved.status, saved.score) == ("An", "9/1", "Pass", 10.0)

        assert lesson_gates(client)["L2"] == "unlocked"
        assert client.get("/api/quiz/review", params={"tab": "WRONG"}).json()["items"] == []
        assert client.post("/api/quiz/submit").status_code == 409

    def test_new_quiz_survives_slow_submission(self, store, session, student, lessons, questions):
        async def run():
            release = asyncio.Event()

            async def slow_submit(result):
                await release.wait()
                store.submitted.append(result)

            store.submit_result = slow_submit
            session.sign_in(student)
            session.quiz = QuizSession(lessons[0], [q for q in questions if q.lesson_id == 1])

            pending = asyncio.create_task(SubmissionService(session).submit())
            await asyncio.sleep(0)
            replacement = QuizSession(lessons[1], [q for q in questions if q.lesson_id == 2])
            session.quiz = replacement
            release.set()
            return replacement, await pending

        replacement, review = asyncio.run(run())

        assert session.quiz is replacement
        assert session.last_attempt is None
        assert review.lesson_id == 1
        assert len(store.submitted) == 1
        assert session.snapshot.results[-1].lesson_name == "L1"

    def test_submit_kept_locally_when_store_fails(self, client, store, session):
        login(client, "an")
        client.post("/api/quiz/start/1")
        store.offline = True
        before = len(session.snapshot.results)

        review = client.post("/api/quiz/submit").json()

        assert review["persisted"] is False
        assert review["score"] == 0
        assert len(session.snapshot.results) == before + 1
        assert session.snapshot.results[-1].status == "Fail"

    def test_unknown_question_and_empty_update(self, client):
        login(client, "an")
        assert client.put("/api/quiz/answers/1", json={"value": "A"}).status_code == 404
        client.post("/api/quiz/start/1")
        assert client.put("/api/quiz/answers/99", json={"value": "A"}).status_code == 404
        assert client.put("/api/quiz/answers/1", json={}).status_code == 400

    def test_lesson_without_questions(self, client):
        login(client, "admin")
        response = client.post("/api/quiz/start/3")
        assert response.status_code == 409
        assert response.json()["detail"] == "Bài học chưa có câu hỏi nào"

    def test_unknown_lesson(self, client):
        login(client, "an")
        assert client.post("/api/quiz/start/404").status_code == 404
        assert client.get("/api/student/subjects/404/lessons").status_code == 404

    def test_maintenance_blocks_views(self, client, session):
        login(client, "an")
        session.snapshot.maintenance = True
        assert client.get("/api/student/subjects").status_code == 503


class TestStaff:
    def test_analytics_flow(self, client):
        login(client, "gv9")

        view = client.get("/api/staff/analytics").json()
        assert view["options"]["title"] == "Thống kê Khối 9"
        assert view["options"]["classes"] == ["9/1", "9/2", "9/10"]
        assert view["report"]["pass_rate_display"] == 50

        view = client.post("/api/staff/analytics/status/Pass").json()
        assert view["report"]["filters"]["status"] == "Pass"
        assert len(view["report"]["rows"]) == 2
        assert view["report"]["pass_rate_display"] == 50

        view = client.post("/api/staff/analytics/status/Pass").json()
        assert view["report"]["filters"]["status"] is None

        view = client.post("/api/staff/analytics/filters", json={"field": "subject", "value": "Biology"}).json()
        assert view["report"]["total"] == 3
        assert view["report"]["pass_rate_display"] == 33

        client.post("/api/staff/analytics/student/Binh")
        view = client.delete("/api/staff/analytics/chart-filters").json()
        assert view["report"]["filters"]["student"] is None
        assert view["report"]["filters"]["subject"] == "Biology"

    def test_invalid_grade(self, client):
        login(client, "admin")
        response = client.post("/api/staff/analytics/filters", json={"field": "grade", "value": "nine"})
        assert response.status_code == 400

    def test_roster(self, client):
        login(client, "gv9")
        response = client.get("/api/staff/roster", params={
            "subject": "Biology", "status": "ALL", "sort": "score", "order": "desc",
        })
        assert response.status_code == 200
        roster = response.json()
        assert len(roster["rows"]) == 9
        assert roster["rows"][0]["name"] == "Binh"
        assert roster["sort"] == {"key": "score", "order": "desc"}

        assert client.post("/api/staff/roster/sort/score").json() == {"key": "score", "order": "asc"}
        assert client.post("/api/staff/roster/sort/bogus").status_code == 400
        assert client.get("/api/staff/roster", params={"sort": "bogus"}).status_code == 400

    def test_reminder(self, client):
        login(client, "gv9")
        mail = client.get("/api/staff/roster/reminder", params={"account": "an", "lesson_id": 1})
        assert mail.status_code == 200
        assert mail.json()["url"].startswith("mailto:an@school.vn")

        passed = client.get("/api/staff/roster/reminder", params={"account": "binh", "lesson_id": 1})
        assert passed.status_code == 400
        missing = client.get("/api/staff/roster/reminder", params={"account": "zed", "lesson_id": 1})
        assert missing.status_code == 404

    def test_attempt_detail(self, client):
        login(client, "gv9")
        detail = client.get("/api/staff/roster/detail", params={"account": "binh", "lesson_id": 1})
        assert detail.status_code == 200
        assert detail.json()["final_score"] == 10.0
        assert detail.json()["notice"] == "Học sinh chưa làm câu hỏi nào"

        never = client.get("/api/staff/roster/detail", params={"account": "an", "lesson_id": 1})
        assert never.status_code == 404

    def test_management_lists_are_scoped(self, client):
        login(client, "gvbio")
        assert [s["name"] for s in client.get("/api/staff/subjects").json()] == ["Biology"]
        assert {l["name"] for l in client.get("/api/staff/lessons").json()} == {"L1", "L2", "L3"}
        assert {q["id"] for q in client.get("/api/staff/questions").json()} == {1, 2, 3}
        assert {u["account"] for u in client.get("/api/staff/users").json()} == {"an", "binh", "chi"}

    def test_save_and_delete_refetch(self, client, store):
        login(client, "admin")

        saved = client.post("/api/staff/items/Subjects", json={
            "item": {"id": 4, "name": "History", "grade": 9}, "id_key": "Stt",
        })
        assert saved.status_code == 200
        assert store.saved == [("Subjects", {"Stt": 4, "Name": "History", "Grade": 9}, "Stt")]

        deleted = client.delete("/api/staff/items/Subjects", params={"id_value": "4", "id_key": "Stt"})
        assert deleted.status_code == 200
        assert store.deleted == [("Subjects", "4", "Stt")]
        assert store.fetches == 2

    def test_item_errors(self, client, store):
        login(client, "admin")
        unknown = client.post("/api/staff/items/Results", json={"item": {}, "id_key": "id"})
        assert unknown.status_code == 400
        assert client.delete("/api/staff/items/Results", params={"id_value": "1", "id_key": "id"}).status_code == 400

        store.offline = True
        failed = client.delete("/api/staff/items/Subjects", params={"id_value": "1", "id_key": "Stt"})
        assert failed.status_code == 502
        assert failed.json()["detail"] == "Lỗi khi xóa dữ liệu!"

import threading

import pytest
from fastapi.testclient import TestClient

import main
from interview.questions import QuestionGenerator
from interview.scoring import ScoringPipeline
from interview.session import SessionCoordinator

from conftest import StubLLM

DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


@pytest.fixture
def api(coordinator):
    main.set_coordinator(coordinator)
    yield TestClient(main.app)
    main.set_coordinator(None)


def test_health(api):
    body = api.get("/").json()
    assert body["status"] == "running"
    assert body["candidates"] == 0
    assert body["current_interview"] is None


def test_health_reports_current_interview(api, ada):
    api.post("/profile", json=ada)
    status = api.get("/").json()["current_interview"]
    assert status["status"] == "in_progress"
    assert status["question_number"] == 1
    assert status["total_questions"] == 6


def test_profile_starts_interview(api, ada):
    response = api.post("/profile", json=ada)
    assert response.status_code == 200
    body = response.json()
    assert body["question_number"] == 1
    assert body["total_questions"] == 6
    assert len(body["interview"]["questions"]) == 6
    assert body["timer_active"] is True


def test_profile_validation_error(api, ada):
    response = api.post("/profile", json={**ada, "email": "nope"})
    assert response.status_code == 400
    assert response.json()["detail"] == {"field": "email", "message": "Please enter a valid email address"}


def test_answer_advances(api, ada):
    api.post("/profile", json=ada)
    api.post("/session/draft", json={"text": "partial"})
    response = api.post("/session/answer", json={"text": "hi", "time_spent": 15})
    assert response.status_code == 200
    body = response.json()
    assert body["question_number"] == 2
    assert body["interview"]["answers"][0]["score"] == 1
    assert body["interview"]["answers"][0]["time_spent"] == 15


def test_answer_without_interview(api):
    response = api.post("/session/answer", json={"text": "hi"})
    assert response.status_code == 409


def test_session_view_when_empty(api):
    body = api.get("/session").json()
    assert body["interview"] is None
    assert body["context"] == {"current_candidate_id": None, "current_interview_id": None}


def test_resume_flow(api, coordinator, ada):
    api.post("/profile", json=ada)
    coordinator.timer.stop()

    offered = api.get("/session/resumable").json()
    assert offered["resumable"] is True
    assert offered["candidate"]["name"] == "Ada"

    response = api.post("/session/resume")
    assert response.status_code == 200
    assert response.json()["timer_active"] is True

    assert api.post("/session/start-new").json()["interview"] is None
    assert api.get("/session/resumable").json() == {"resumable": False}
    assert api.post("/session/resume").status_code == 409


def test_candidate_endpoints(api, ada):
    candidate_id = api.post("/profile", json=ada).json()["candidate"]["id"]

    rows = api.get("/candidates", params={"search": "ada"}).json()
    assert [r["id"] for r in rows] == [candidate_id]
    assert api.get("/candidates", params={"sort_by": "bogus"}).status_code == 422

    detail = api.get(f"/candidates/{candidate_id}").json()
    assert detail["interview"]["status"] == "in_progress"
    assert api.get("/candidates/missing").status_code == 404

    patched = api.patch(f"/candidates/{candidate_id}", json={"name": "Ada King"})
    assert patched.json()["name"] == "Ada King"
    assert api.patch(f"/candidates/{candidate_id}", json={"phone": "1"}).status_code == 400
    assert api.patch("/candidates/missing", json={"name": "Nobody"}).status_code == 404


def test_resume_upload_rejects_text(api):
    response = api.post("/resume", files={"file": ("resume.txt", b"hello", "text/plain")})
    assert response.status_code == 400
    assert response.json()["detail"]["field"] == "file"


def test_resume_upload_docx(api):
    from test_resume_parser import _docx_bytes

    data = _docx_bytes("Ada Lovelace", "ada@example.com", "555-123-4567")
    response = api.post("/resume", files={"file": ("resume.docx", data, DOCX_MIME)})
    assert response.status_code == 200
    body = response.json()
    assert body["name"] == "Ada Lovelace"
    assert body["missing_fields"] == []


class GatedPipeline(ScoringPipeline):
    """Holds every scoring call until released."""

    def __init__(self, llm):
        super().__init__(llm=llm)
        self.entered = threading.Event()
        self.release = threading.Event()

    def score_answer(self, question, answer):
        self.entered.set()
        self.release.wait(5)
        return super().score_answer(question, answer)


def test_session_is_readable_while_an_answer_is_scored(scheduler, clock, store, ada):
    llm = StubLLM()
    pipeline = GatedPipeline(llm)
    main.set_coordinator(SessionCoordinator(
        store=store,
        generator=QuestionGenerator(llm=llm),
        pipeline=pipeline,
        scheduler=scheduler,
        clock=clock,
    ))
    results = {}

    try:
        with TestClient(main.app) as client:
            client.post("/profile", json=ada)

            def answer():
                results["answer"] = client.post("/session/answer", json={"text": "hi"})

            worker = threading.Thread(target=answer)
            worker.start()
            assert pipeline.entered.wait(5)

            during = client.get("/session").json()
            pipeline.release.set()
            worker.join(5)
    finally:
        pipeline.release.set()
        main.set_coordinator(None)

    assert during["is_scoring"] is True
    assert during["is_paused"] is False
    assert results["answer"].status_code == 200
    assert results["answer"].json()["question_number"] == 2

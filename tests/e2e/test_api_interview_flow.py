from resume_extraction import DOCX_MIME, UNSUPPORTED_MESSAGE


def _upload(client, data, filename="resume.docx", content_type=DOCX_MIME):
    return client.post("/api/resume", files={"file": (filename, data, content_type)})


def test_full_interview_via_api(api_client, docx_resume):
    state = api_client.get("/api/state").json()
    assert state["candidates"] == {}
    assert state["activeTab"] == "interviewee"

    start = _upload(api_client, docx_resume)
    assert start.status_code == 201
    body = start.json()
    candidate_id = body["candidate"]["id"]
    assert body["candidate"]["status"] == "InProgress"
    assert body["candidate"]["name"] == "Ada Lovelace"
    assert body["timer"] == {"timeLeft": 20, "running": True, "paused": False, "pauseReason": None}
    assert api_client.get("/api/state").json()["activeCandidateId"] == candidate_id

    for index in range(6):
        resp = api_client.post(f"/api/candidates/{candidate_id}/answer", json={"text": f"answer {index}"})
        assert resp.status_code == 200

    final = resp.json()["candidate"]
    assert final["status"] == "Completed"
    assert final["finalScore"] == 80
    assert final["chatHistory"][-1]["text"].startswith("**Interview Complete!**")
    assert api_client.get("/api/state").json()["activeCandidateId"] is None

    listing = api_client.get("/api/dashboard/candidates").json()
    assert listing["sort"] == {"key": "finalScore", "direction": "desc"}
    assert [row["id"] for row in listing["candidates"]] == [candidate_id]
    assert listing["candidates"][0]["scoreBand"] == "strong"

    detail = api_client.get(f"/api/dashboard/candidates/{candidate_id}").json()
    assert len(detail["transcript"]) == 6
    assert all(entry["passed"] for entry in detail["transcript"])

    report = api_client.get(f"/api/dashboard/candidates/{candidate_id}/report.pdf")
    assert report.status_code == 200
    assert report.headers["content-type"] == "application/pdf"
    assert "ada-lovelace-interview-report.pdf" in report.headers["content-disposition"]
    assert report.content.startswith(b"%PDF")


def test_unsupported_upload_is_rejected(api_client):
    resp = _upload(api_client, b"plain text", filename="resume.txt", content_type="text/plain")

    assert resp.status_code == 415
    assert resp.json()["detail"] == UNSUPPORTED_MESSAGE
    assert api_client.get("/api/state").json()["candidates"] == {}


def test_upload_while_interview_is_open_returns_409(api_client, docx_resume):
    candidate_id = _upload(api_client, docx_resume).json()["candidate"]["id"]

    resp = _upload(api_client, docx_resume)

    assert resp.status_code == 409
    assert candidate_id in resp.json()["detail"]
    assert list(api_client.get("/api/state").json()["candidates"]) == [candidate_id]


def test_unknown_candidate_returns_404(api_client):
    assert api_client.get("/api/candidates/nope").status_code == 404
    assert api_client.post("/api/candidates/nope/answer", json={"text": "x"}).status_code == 404
    assert api_client.get("/api/dashboard/candidates/nope").status_code == 404


def test_pause_visibility_resume_and_end(api_client, tickers, docx_resume):
    candidate_id = _upload(api_client, docx_resume).json()["candidate"]["id"]
    tickers[0].fire(3)

    hidden = api_client.post(f"/api/candidates/{candidate_id}/visibility", json={"visible": False}).json()
    assert hidden["paused"] is True and hidden["pauseReason"] == "hidden"
    visible = api_client.post(f"/api/candidates/{candidate_id}/visibility", json={"visible": True}).json()
    assert visible["paused"] is True

    resumed = api_client.post(f"/api/candidates/{candidate_id}/resume").json()
    assert resumed == {"timeLeft": 17, "running": True, "paused": False, "pauseReason": None}

    paused = api_client.post(f"/api/candidates/{candidate_id}/pause", json={}).json()
    assert paused["pauseReason"] == "manual"

    ended = api_client.post(f"/api/candidates/{candidate_id}/end").json()
    assert ended["candidate"]["status"] == "Completed"
    assert ended["candidate"]["summary"] == "Interview ended prematurely by the candidate."
    assert ended["timer"]["running"] is False


def test_tab_switch_persists(api_client):
    resp = api_client.put("/api/state/tab", json={"tab": "interviewer"})

    assert resp.status_code == 200
    assert api_client.get("/api/state").json()["activeTab"] == "interviewer"
    assert api_client.put("/api/state/tab", json={"tab": "elsewhere"}).status_code == 422

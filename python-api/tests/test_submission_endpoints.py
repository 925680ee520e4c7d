"""
Tests for Hackathon Submission API Endpoints
"""

import pytest

from services import collections

DESCRIPTION = "A collaborative tool that helps organizers run hackathons without spreadsheets."


@pytest.fixture
def team(api, login, alice):
    login(alice)
    response = api.post("/hackathon/teams", json={"eventId": "evt-1", "teamName": "Alpha"})
    return response.json()["team"]


def submission_body(team_id, **overrides):
    body = {
        "eventId": "evt-1",
        "teamId": team_id,
        "projectTitle": "HackBoard",
        "projectDescription": DESCRIPTION,
        "repoUrl": "https://github.com/org/hackboard",
        "techStack": ["python", "fastapi"],
    }
    body.update(overrides)
    return body


class TestSubmitProject:
    """Test POST /hackathon/submissions"""

    def test_submit(self, api, store, team, alice):
        response = api.post("/hackathon/submissions", json=submission_body(team["$id"]))

        assert response.status_code == 201
        submission = response.json()["submission"]
        assert submission["status"] == "submitted"
        assert submission["userId"] == alice.user_id
        assert store.all(collections.TEAMS)[0]["status"] == "submitted"

    def test_duplicate_is_409(self, api, team):
        api.post("/hackathon/submissions", json=submission_body(team["$id"]))

        response = api.post(
            "/hackathon/submissions", json=submission_body(team["$id"], projectTitle="Again")
        )

        assert response.status_code == 409
        assert response.json()["error_code"] == "DUPLICATE_SUBMISSION"

    def test_non_member_is_403(self, api, login, team, carol):
        login(carol)

        response = api.post("/hackathon/submissions", json=submission_body(team["$id"]))

        assert response.status_code == 403
        assert response.json()["error_code"] == "NOT_TEAM_MEMBER"

    def test_invalid_url_is_400(self, api, team):
        response = api.post(
            "/hackathon/submissions", json=submission_body(team["$id"], demoUrl="nope")
        )

        assert response.status_code == 400
        body = response.json()
        assert body["error_code"] == "INVALID_URL"
        assert body["field"] == "demoUrl"

    def test_submitted_team_accepts_no_members(self, api, login, team, bob):
        api.post("/hackathon/submissions", json=submission_body(team["$id"]))
        login(bob)

        response = api.post("/hackathon/teams/join", json={"inviteCode": team["inviteCode"]})

        assert response.status_code == 403
        assert response.json()["error_code"] == "TEAM_LOCKED"


class TestUpdateSubmission:
    """Test PATCH /hackathon/submissions"""

    def test_update_ignores_review_fields(self, api, team):
        created = api.post("/hackathon/submissions", json=submission_body(team["$id"])).json()

        response = api.patch(
            "/hackathon/submissions",
            json={
                "submissionId": created["submission"]["$id"],
                "demoUrl": "https://demo.example.com",
                "totalScore": 100,
            },
        )

        assert response.status_code == 200
        submission = response.json()["submission"]
        assert submission["demoUrl"] == "https://demo.example.com"
        assert submission["totalScore"] == 0

    def test_update_by_outsider_is_403(self, api, login, team, carol):
        created = api.post("/hackathon/submissions", json=submission_body(team["$id"])).json()
        login(carol)

        response = api.patch(
            "/hackathon/submissions",
            json={"submissionId": created["submission"]["$id"], "projectTitle": "Mine now"},
        )

        assert response.status_code == 403


class TestListSubmissions:
    """Test GET /hackathon/submissions"""

    def test_list_by_event(self, api, store):
        store.seed(collections.SUBMISSIONS, {"eventId": "evt-1", "teamId": "t1"})
        store.seed(collections.SUBMISSIONS, {"eventId": "evt-2", "teamId": "t2"})

        response = api.get("/hackathon/submissions", params={"event_id": "evt-1"})

        assert response.status_code == 200
        assert [s["teamId"] for s in response.json()["submissions"]] == ["t1"]

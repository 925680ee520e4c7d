"""
Tests for Hackathon Team API Endpoints

Runs the team routes against the in-memory store with an overridden
caller identity.
"""

import pytest

from services import collections


@pytest.fixture
def team(api, login, alice):
    """A team led by Alice, created through the API"""
    login(alice)
    response = api.post("/hackathon/teams", json={"eventId": "evt-1", "teamName": "Alpha", "maxSize": 2})
    assert response.status_code == 201
    return response.json()["team"]


class TestCreateTeam:
    """Test POST /hackathon/teams"""

    def test_create_team(self, team, store, alice):
        assert team["teamName"] == "Alpha"
        assert team["leaderId"] == alice.user_id
        assert team["status"] == "forming"
        assert team["memberCount"] == 1
        assert len(team["inviteCode"]) == 6

        members = store.all(collections.TEAM_MEMBERS)
        assert [(m["userId"], m["role"]) for m in members] == [(alice.user_id, "leader")]

    def test_second_team_same_event_is_409(self, api, team):
        response = api.post("/hackathon/teams", json={"eventId": "evt-1", "teamName": "Beta"})

        assert response.status_code == 409
        assert response.json()["error_code"] == "ALREADY_IN_TEAM"

    @pytest.mark.parametrize("max_size", [0, 11])
    def test_invalid_size_is_422(self, api, login, alice, max_size):
        login(alice)

        response = api.post(
            "/hackathon/teams", json={"eventId": "evt-1", "teamName": "Alpha", "maxSize": max_size}
        )

        assert response.status_code == 422

    def test_requires_authentication(self, api):
        response = api.post("/hackathon/teams", json={"eventId": "evt-1", "teamName": "Alpha"})

        assert response.status_code == 401


class TestJoinTeam:
    """Test POST /hackathon/teams/join"""

    def test_join_with_lowercase_code(self, api, login, store, team, bob):
        login(bob)

        response = api.post("/hackathon/teams/join", json={"inviteCode": team["inviteCode"].lower()})

        assert response.status_code == 200
        data = response.json()
        assert data["teamId"] == team["$id"]
        assert data["teamName"] == "Alpha"
        stored = store.all(collections.TEAMS)[0]
        assert stored["memberCount"] == 2

    def test_join_full_team_is_403(self, api, login, team, bob, carol):
        login(bob)
        api.post("/hackathon/teams/join", json={"inviteCode": team["inviteCode"]})

        login(carol)
        response = api.post("/hackathon/teams/join", json={"inviteCode": team["inviteCode"]})

        assert response.status_code == 403
        assert response.json()["error_code"] == "TEAM_FULL"

    def test_join_unknown_code_is_404(self, api, login, team, bob):
        login(bob)

        response = api.post("/hackathon/teams/join", json={"inviteCode": "ZZZZZZ"})

        assert response.status_code == 404
        assert response.json()["error_code"] == "INVALID_INVITE_CODE"

    def test_join_twice_is_409(self, api, login, store, team, bob):
        store.store[collections.TEAMS][team["$id"]]["maxSize"] = 5
        login(bob)
        api.post("/hackathon/teams/join", json={"inviteCode": team["inviteCode"]})

        response = api.post("/hackathon/teams/join", json={"inviteCode": team["inviteCode"]})

        assert response.status_code == 409
        assert response.json()["error_code"] == "ALREADY_MEMBER"


class TestFindTeams:
    """Test GET /hackathon/teams"""

    def test_invite_preview(self, api, team):
        response = api.get("/hackathon/teams", params={"invite_code": team["inviteCode"]})

        assert response.status_code == 200
        data = response.json()
        assert data["team"]["$id"] == team["$id"]
        assert len(data["members"]) == 1

    def test_team_context(self, api, team, alice, bob):
        mine = api.get("/hackathon/teams", params={"event_id": "evt-1", "user_id": alice.user_id})
        none = api.get("/hackathon/teams", params={"event_id": "evt-1", "user_id": bob.user_id})

        assert mine.json()["team"]["$id"] == team["$id"]
        assert none.json() == {"team": None}

    def test_list_event_teams(self, api, team):
        response = api.get("/hackathon/teams", params={"event_id": "evt-1"})

        assert response.json()["total"] == 1
        assert response.json()["teams"][0]["$id"] == team["$id"]

    def test_missing_parameters_is_400(self, api):
        response = api.get("/hackathon/teams")

        assert response.status_code == 400


class TestAdminTeamActions:
    """Test lock and reconcile"""

    def test_lock_requires_admin(self, api, team):
        response = api.post(f"/hackathon/teams/{team['$id']}/lock")

        assert response.status_code == 403

    def test_lock_then_join_rejected(self, api, login, team, admin, bob):
        login(admin)
        response = api.post(f"/hackathon/teams/{team['$id']}/lock")
        assert response.status_code == 200
        assert response.json()["team"]["status"] == "locked"

        login(bob)
        response = api.post("/hackathon/teams/join", json={"inviteCode": team["inviteCode"]})

        assert response.status_code == 403
        assert response.json()["error_code"] == "TEAM_LOCKED"

    def test_reconcile(self, api, login, store, team, admin):
        store.store[collections.TEAMS][team["$id"]]["memberCount"] = 9
        login(admin)

        response = api.post(f"/hackathon/teams/{team['$id']}/reconcile")

        assert response.status_code == 200
        assert response.json() == {"teamId": team["$id"], "previous": 9, "memberCount": 1}

"""
Tests for Team Formation Service

Covers team creation with invite codes, every join precondition, team
context lookup and the admin recovery actions.
"""

import re
from unittest.mock import AsyncMock, patch

import pytest

from config import settings
from integrations.appwrite.exceptions import AppwriteError
from services import collections
from services.errors import (
    AuthorizationError,
    ConflictError,
    DependencyError,
    NotFoundError,
    ValidationError,
)
from services.team_service import (
    INVITE_CODE_ALPHABET,
    create_team,
    generate_invite_code,
    get_team_by_invite_code,
    get_team_context,
    join_team,
    list_event_teams,
    lock_team,
    reconcile_member_count,
)


async def _create(client, principal, event_id="evt-1", name="Team Alpha", **kwargs):
    return await create_team(
        client,
        event_id=event_id,
        team_name=name,
        leader_id=principal.user_id,
        leader_name=principal.name,
        leader_email=principal.email,
        **kwargs,
    )


async def _join(client, principal, invite_code, event_id=None):
    return await join_team(
        client,
        invite_code=invite_code,
        user_id=principal.user_id,
        user_name=principal.name,
        user_email=principal.email,
        event_id=event_id,
    )


class TestGenerateInviteCode:
    """Test invite code generation"""

    def test_code_shape(self):
        """Codes are 6 characters from the unambiguous alphabet"""
        for _ in range(50):
            code = generate_invite_code()
            assert len(code) == 6
            assert set(code) <= set(INVITE_CODE_ALPHABET)

    def test_alphabet_excludes_lookalikes(self):
        """I, O, 0 and 1 never appear"""
        assert len(INVITE_CODE_ALPHABET) == 32
        assert not re.search(r"[IO01]", INVITE_CODE_ALPHABET)


class TestCreateTeam:
    """Test create_team function"""

    @pytest.mark.asyncio
    async def test_create_team_success(self, fake_client, store, alice):
        """Should create a forming team and its leader membership"""
        # Act
        team = await _create(fake_client, alice, description="We build things")

        # Assert
        assert team["status"] == "forming"
        assert team["memberCount"] == 1
        assert team["maxSize"] == 5
        assert team["submissionId"] is None
        assert team["leaderId"] == alice.user_id
        assert len(team["inviteCode"]) == 6

        members = store.all(collections.TEAM_MEMBERS)
        assert len(members) == 1
        assert members[0]["teamId"] == team["$id"]
        assert members[0]["eventId"] == "evt-1"
        assert members[0]["role"] == "leader"
        assert members[0]["status"] == "accepted"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("max_size", [0, 11])
    async def test_create_team_invalid_size(self, fake_client, alice, max_size):
        """Team size must be between 1 and 10"""
        with pytest.raises(ValidationError):
            await _create(fake_client, alice, max_size=max_size)

    @pytest.mark.asyncio
    async def test_create_team_blank_name(self, fake_client, alice):
        """Should reject whitespace-only team name"""
        with pytest.raises(ValidationError) as exc_info:
            await _create(fake_client, alice, name="   ")

        assert exc_info.value.details["missing"] == ["team_name"]

    @pytest.mark.asyncio
    async def test_leader_cannot_create_second_team_for_event(self, fake_client, alice):
        """One team per user per event applies to leaders too"""
        await _create(fake_client, alice)

        with pytest.raises(ConflictError) as exc_info:
            await _create(fake_client, alice, name="Team Beta")

        assert exc_info.value.error_code == "ALREADY_IN_TEAM"

    @pytest.mark.asyncio
    async def test_member_cannot_create_team_for_same_event(self, fake_client, alice, bob):
        """An accepted member of another team cannot lead a new one"""
        team = await _create(fake_client, alice)
        await _join(fake_client, bob, team["inviteCode"])

        with pytest.raises(ConflictError) as exc_info:
            await _create(fake_client, bob, name="Bob's Team")

        assert exc_info.value.error_code == "ALREADY_IN_TEAM"

    @pytest.mark.asyncio
    async def test_leader_can_create_teams_for_different_events(self, fake_client, store, alice):
        """Exclusivity is per event"""
        await _create(fake_client, alice, event_id="evt-1")
        await _create(fake_client, alice, event_id="evt-2")

        assert len(store.all(collections.TEAMS)) == 2

    @pytest.mark.asyncio
    async def test_invite_code_collision_detected_by_precheck(self, fake_client, store, alice):
        """A code already in use is skipped and a new one drawn"""
        store.seed(collections.TEAMS, {"eventId": "evt-0", "inviteCode": "AAAAAA"})

        with patch(
            "services.team_service.generate_invite_code", side_effect=["AAAAAA", "BBBBBB"]
        ):
            team = await _create(fake_client, alice)

        assert team["inviteCode"] == "BBBBBB"

    @pytest.mark.asyncio
    async def test_invite_code_collision_detected_by_unique_index(self, fake_client, store, alice):
        """A 409 from the unique index is treated as a collision"""
        store.seed(collections.TEAMS, {"eventId": "evt-0", "inviteCode": "AAAAAA"})

        with patch(
            "services.team_service.generate_invite_code", side_effect=["AAAAAA", "CCCCCC"]
        ), patch(
            "services.team_service._find_team_by_invite_code", new_callable=AsyncMock
        ) as mock_find:
            mock_find.return_value = None
            team = await _create(fake_client, alice)

        assert team["inviteCode"] == "CCCCCC"
        assert len(store.all(collections.TEAMS)) == 2

    @pytest.mark.asyncio
    async def test_invite_code_attempts_exhausted(self, fake_client, store, alice):
        """Gives up after the configured number of attempts"""
        store.seed(collections.TEAMS, {"eventId": "evt-0", "inviteCode": "AAAAAA"})

        with patch(
            "services.team_service.generate_invite_code", return_value="AAAAAA"
        ) as mock_generate:
            with pytest.raises(DependencyError) as exc_info:
                await _create(fake_client, alice)

        assert exc_info.value.error_code == "INVITE_CODE_EXHAUSTED"
        assert mock_generate.call_count == settings.INVITE_CODE_MAX_ATTEMPTS
        assert store.all(collections.TEAM_MEMBERS) == []

    @pytest.mark.asyncio
    async def test_create_team_store_failure(self, fake_client, store, alice):
        """Store errors become dependency errors"""
        store.fail_on("create_document", AppwriteError("boom"), collections.TEAMS)

        with pytest.raises(DependencyError) as exc_info:
            await _create(fake_client, alice)

        assert exc_info.value.status_code == 500


class TestJoinTeam:
    """Test join_team function"""

    @pytest.mark.asyncio
    async def test_join_success(self, fake_client, store, alice, bob):
        """Should add an accepted member and bump memberCount"""
        team = await _create(fake_client, alice)

        result = await _join(fake_client, bob, team["inviteCode"])

        assert result["team_name"] == "Team Alpha"
        assert result["team_id"] == team["$id"]
        stored = await store.get_document(collections.TEAMS, team["$id"])
        assert stored["memberCount"] == 2

        member = result["member"]
        assert member["userId"] == bob.user_id
        assert member["role"] == "member"
        assert member["status"] == "accepted"
        assert member["eventId"] == "evt-1"

    @pytest.mark.asyncio
    async def test_fresh_code_resolves_to_its_team(self, fake_client, alice):
        """A newly created team's code always resolves to that team"""
        team = await _create(fake_client, alice)

        preview = await get_team_by_invite_code(fake_client, team["inviteCode"])

        assert preview["team"]["$id"] == team["$id"]
        assert [m["userId"] for m in preview["members"]] == [alice.user_id]

    @pytest.mark.asyncio
    async def test_join_accepts_lowercase_code(self, fake_client, alice, bob):
        """Codes are matched case-insensitively"""
        team = await _create(fake_client, alice)

        result = await _join(fake_client, bob, f"  {team['inviteCode'].lower()} ")

        assert result["team_id"] == team["$id"]

    @pytest.mark.asyncio
    async def test_join_unknown_code(self, fake_client, bob):
        """Should fail with INVALID_INVITE_CODE"""
        with pytest.raises(NotFoundError) as exc_info:
            await _join(fake_client, bob, "ZZZZZZ")

        assert exc_info.value.error_code == "INVALID_INVITE_CODE"
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_join_code_from_other_event(self, fake_client, alice, bob):
        """A code for a different event is treated as invalid"""
        team = await _create(fake_client, alice, event_id="evt-1")

        with pytest.raises(NotFoundError) as exc_info:
            await _join(fake_client, bob, team["inviteCode"], event_id="evt-2")

        assert exc_info.value.error_code == "INVALID_INVITE_CODE"

    @pytest.mark.asyncio
    async def test_join_full_team(self, fake_client, store, bob):
        """maxSize 2 with memberCount 2 always rejects"""
        store.seed(
            collections.TEAMS,
            {
                "eventId": "evt-1",
                "teamName": "Duo",
                "leaderId": "user-x",
                "inviteCode": "DUODUO",
                "memberCount": 2,
                "maxSize": 2,
                "status": "forming",
            },
        )

        with pytest.raises(ConflictError) as exc_info:
            await _join(fake_client, bob, "DUODUO")

        assert exc_info.value.error_code == "TEAM_FULL"
        assert exc_info.value.status_code == 403
        assert store.all(collections.TEAM_MEMBERS) == []

    @pytest.mark.asyncio
    async def test_join_fills_team_then_rejects(self, fake_client, alice, bob, carol):
        """The last free slot is taken serially exactly once"""
        team = await _create(fake_client, alice, max_size=2)
        await _join(fake_client, bob, team["inviteCode"])

        with pytest.raises(ConflictError) as exc_info:
            await _join(fake_client, carol, team["inviteCode"])

        assert exc_info.value.error_code == "TEAM_FULL"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", ["locked", "submitted"])
    async def test_join_closed_team(self, fake_client, store, bob, status):
        """Locked and submitted teams admit nobody"""
        store.seed(
            collections.TEAMS,
            {
                "eventId": "evt-1",
                "teamName": "Closed",
                "leaderId": "user-x",
                "inviteCode": "CLOSED",
                "memberCount": 1,
                "maxSize": 5,
                "status": status,
            },
        )

        with pytest.raises(ConflictError) as exc_info:
            await _join(fake_client, bob, "CLOSED")

        assert exc_info.value.error_code == "TEAM_LOCKED"
        assert exc_info.value.status_code == 403

    @pytest.mark.asyncio
    async def test_join_same_team_twice(self, fake_client, alice, bob):
        """Existing members get ALREADY_MEMBER"""
        team = await _create(fake_client, alice)
        await _join(fake_client, bob, team["inviteCode"])

        with pytest.raises(ConflictError) as exc_info:
            await _join(fake_client, bob, team["inviteCode"])

        assert exc_info.value.error_code == "ALREADY_MEMBER"

    @pytest.mark.asyncio
    async def test_leader_joining_own_team(self, fake_client, alice):
        """The leader already holds an accepted membership"""
        team = await _create(fake_client, alice)

        with pytest.raises(ConflictError) as exc_info:
            await _join(fake_client, alice, team["inviteCode"])

        assert exc_info.value.error_code == "ALREADY_MEMBER"

    @pytest.mark.asyncio
    async def test_leader_of_other_team_cannot_join(self, fake_client, alice, bob):
        """Leading team A for an event blocks joining team B"""
        await _create(fake_client, alice, name="Team A")
        team_b = await _create(fake_client, bob, name="Team B")

        with pytest.raises(ConflictError) as exc_info:
            await _join(fake_client, alice, team_b["inviteCode"])

        assert exc_info.value.error_code == "ALREADY_LEADER"

    @pytest.mark.asyncio
    async def test_member_of_other_team_cannot_join(self, fake_client, alice, bob, carol):
        """Membership in team B blocks joining team C for the same event"""
        team_b = await _create(fake_client, alice, name="Team B")
        team_c = await _create(fake_client, bob, name="Team C")
        await _join(fake_client, carol, team_b["inviteCode"])

        with pytest.raises(ConflictError) as exc_info:
            await _join(fake_client, carol, team_c["inviteCode"])

        assert exc_info.value.error_code == "ALREADY_IN_TEAM"

    @pytest.mark.asyncio
    async def test_member_may_join_team_for_other_event(self, fake_client, alice, bob, carol):
        """Exclusivity does not span events"""
        team_1 = await _create(fake_client, alice, event_id="evt-1")
        team_2 = await _create(fake_client, bob, event_id="evt-2")
        await _join(fake_client, carol, team_1["inviteCode"])

        result = await _join(fake_client, carol, team_2["inviteCode"])

        assert result["team_id"] == team_2["$id"]

    @pytest.mark.asyncio
    async def test_counter_failure_keeps_membership(self, fake_client, store, alice, bob, admin):
        """memberCount is advisory; reconcile restores it"""
        team = await _create(fake_client, alice)
        store.fail_on("update_document", AppwriteError("boom"), collections.TEAMS)

        await _join(fake_client, bob, team["inviteCode"])

        stored = await store.get_document(collections.TEAMS, team["$id"])
        assert stored["memberCount"] == 1

        store.failures.clear()
        result = await reconcile_member_count(fake_client, team["$id"], admin)
        assert result["member_count"] == 2
        assert result["previous"] == 1


class TestTeamLookups:
    """Test team context and listing"""

    @pytest.mark.asyncio
    async def test_context_for_leader(self, fake_client, alice):
        team = await _create(fake_client, alice)

        context = await get_team_context(fake_client, "evt-1", alice.user_id)

        assert context["$id"] == team["$id"]

    @pytest.mark.asyncio
    async def test_context_for_member(self, fake_client, alice, bob):
        team = await _create(fake_client, alice)
        await _join(fake_client, bob, team["inviteCode"])

        context = await get_team_context(fake_client, "evt-1", bob.user_id)

        assert context["$id"] == team["$id"]

    @pytest.mark.asyncio
    async def test_context_none(self, fake_client, alice, carol):
        await _create(fake_client, alice)

        assert await get_team_context(fake_client, "evt-1", carol.user_id) is None
        assert await get_team_context(fake_client, "evt-2", alice.user_id) is None

    @pytest.mark.asyncio
    async def test_preview_unknown_code(self, fake_client):
        with pytest.raises(NotFoundError):
            await get_team_by_invite_code(fake_client, "NOPE22")

    @pytest.mark.asyncio
    async def test_list_event_teams(self, fake_client, alice, bob):
        await _create(fake_client, alice, event_id="evt-1")
        await _create(fake_client, bob, event_id="evt-2")

        teams = await list_event_teams(fake_client, "evt-1")

        assert [t["leaderId"] for t in teams] == [alice.user_id]


class TestAdminTeamActions:
    """Test lock_team and reconcile_member_count"""

    @pytest.mark.asyncio
    async def test_lock_requires_admin(self, fake_client, alice):
        team = await _create(fake_client, alice)

        with pytest.raises(AuthorizationError):
            await lock_team(fake_client, team["$id"], alice)

    @pytest.mark.asyncio
    async def test_lock_then_join_rejected(self, fake_client, alice, bob, admin):
        team = await _create(fake_client, alice)

        locked = await lock_team(fake_client, team["$id"], admin)
        assert locked["status"] == "locked"

        with pytest.raises(ConflictError) as exc_info:
            await _join(fake_client, bob, team["inviteCode"])
        assert exc_info.value.error_code == "TEAM_LOCKED"

    @pytest.mark.asyncio
    async def test_lock_twice_is_invalid_transition(self, fake_client, alice, admin):
        team = await _create(fake_client, alice)
        await lock_team(fake_client, team["$id"], admin)

        with pytest.raises(ConflictError) as exc_info:
            await lock_team(fake_client, team["$id"], admin)

        assert exc_info.value.error_code == "INVALID_TRANSITION"

    @pytest.mark.asyncio
    async def test_lock_unknown_team(self, fake_client, admin):
        with pytest.raises(NotFoundError) as exc_info:
            await lock_team(fake_client, "missing", admin)

        assert exc_info.value.error_code == "TEAM_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_reconcile_corrects_drift(self, fake_client, store, admin):
        team = store.seed(
            collections.TEAMS,
            {"eventId": "evt-1", "inviteCode": "DRIFT2", "memberCount": 5, "maxSize": 5},
        )
        for user in ("u1", "u2"):
            store.seed(
                collections.TEAM_MEMBERS,
                {"teamId": team["$id"], "eventId": "evt-1", "userId": user, "status": "accepted"},
            )

        result = await reconcile_member_count(fake_client, team["$id"], admin)

        assert result == {"team_id": team["$id"], "previous": 5, "member_count": 2}
        stored = await store.get_document(collections.TEAMS, team["$id"])
        assert stored["memberCount"] == 2

    @pytest.mark.asyncio
    async def test_reconcile_requires_admin(self, fake_client, alice):
        team = await _create(fake_client, alice)

        with pytest.raises(AuthorizationError):
            await reconcile_member_count(fake_client, team["$id"], alice)

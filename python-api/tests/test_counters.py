"""
Tests for Advisory Counters
"""

import pytest

from integrations.appwrite.exceptions import AppwriteError
from services import collections
from services.counters import increment_counter, recount


class TestIncrementCounter:
    """Test increment_counter function"""

    @pytest.mark.asyncio
    async def test_increment_from_missing_field(self, fake_client, store):
        team = store.seed(collections.TEAMS, {"teamName": "Alpha"})

        assert await increment_counter(fake_client, collections.TEAMS, team["$id"], "memberCount") == 1

        stored = await store.get_document(collections.TEAMS, team["$id"])
        assert stored["memberCount"] == 1

    @pytest.mark.asyncio
    async def test_increment_by_amount(self, fake_client, store):
        post = store.seed(collections.BLOG, {"views": 41})

        assert await increment_counter(fake_client, collections.BLOG, post["$id"], "views", 2) == 43

    @pytest.mark.asyncio
    async def test_failure_is_swallowed(self, fake_client, store):
        """Counter writes never fail the caller"""
        post = store.seed(collections.BLOG, {"views": 3})
        store.fail_on("update_document", AppwriteError("boom"))

        assert await increment_counter(fake_client, collections.BLOG, post["$id"], "views") is None

    @pytest.mark.asyncio
    async def test_missing_document_is_swallowed(self, fake_client):
        assert await increment_counter(fake_client, collections.BLOG, "missing", "views") is None


class TestRecount:
    """Test recount function"""

    @pytest.mark.asyncio
    async def test_recount_restores_drifted_counter(self, fake_client, store):
        """Recount replaces a drifted value with the source count"""
        team = store.seed(collections.TEAMS, {"memberCount": 7})
        for user in ("u1", "u2", "u3"):
            store.seed(
                collections.TEAM_MEMBERS,
                {"teamId": team["$id"], "userId": user, "status": "accepted"},
            )
        store.seed(
            collections.TEAM_MEMBERS, {"teamId": "other-team", "userId": "u4", "status": "accepted"}
        )

        total = await recount(
            fake_client,
            collections.TEAMS,
            team["$id"],
            "memberCount",
            collections.TEAM_MEMBERS,
            {"teamId": team["$id"], "status": "accepted"},
        )

        assert total == 3
        stored = await store.get_document(collections.TEAMS, team["$id"])
        assert stored["memberCount"] == 3

    @pytest.mark.asyncio
    async def test_recount_propagates_store_errors(self, fake_client, store):
        team = store.seed(collections.TEAMS, {"memberCount": 1})
        store.fail_on("list_documents", AppwriteError("boom"))

        with pytest.raises(AppwriteError):
            await recount(
                fake_client,
                collections.TEAMS,
                team["$id"],
                "memberCount",
                collections.TEAM_MEMBERS,
                {"teamId": team["$id"]},
            )

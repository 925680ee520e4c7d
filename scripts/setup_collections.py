#!/usr/bin/env python3
"""
Appwrite Collection Setup Script

Creates the collections, attributes and indexes the coordination API
reads and writes. Unique indexes back the one-registration-per-user,
one-team-per-invite-code and one-submission-per-team rules at the store
level. Supports dry-run mode and idempotent execution.

Usage:
    python scripts/setup_collections.py --dry-run   # Preview collections
    python scripts/setup_collections.py --apply     # Create collections
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add python-api to path
sys.path.insert(0, str(Path(__file__).parent.parent / "python-api"))

from integrations.appwrite.client import AppwriteClient
from integrations.appwrite.exceptions import AppwriteConflictError, AppwriteError
from services import collections


# ANSI color codes
class Colors:
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    RED = '\033[91m'
    BLUE = '\033[94m'
    BOLD = '\033[1m'
    END = '\033[0m'


def string(key, size=255, required=False, array=False):
    return {"type": "string", "key": key, "size": size, "required": required, "array": array}


def integer(key, required=False, default=None, min=None, max=None):
    return {"type": "integer", "key": key, "required": required, "default": default, "min": min, "max": max}


def boolean(key, default=False):
    return {"type": "boolean", "key": key, "required": False, "default": default}


def datetime_(key, required=False):
    return {"type": "datetime", "key": key, "required": required}


def enum(key, elements, default=None, required=False):
    return {"type": "enum", "key": key, "elements": elements, "default": default, "required": required}


COLLECTION_SCHEMAS = {
    collections.EVENTS: {
        "name": "Events",
        "attributes": [
            string("title", required=True),
            string("date", 64),
            string("time", 64),
            string("venue"),
            string("location"),
            string("organizerName"),
            integer("capacity", min=0),
            integer("registered", default=0, min=0),
        ],
        "indexes": [],
    },
    collections.REGISTRATIONS: {
        "name": "Registrations",
        "attributes": [
            string("eventId", 64, required=True),
            string("userId", 64, required=True),
            string("userName", 200, required=True),
            string("userEmail", 320, required=True),
            datetime_("registeredAt"),
        ],
        "indexes": [
            ("unique_event_user", "unique", ["eventId", "userId"]),
            ("idx_event", "key", ["eventId"]),
        ],
    },
    collections.TEAMS: {
        "name": "Hackathon Teams",
        "attributes": [
            string("eventId", 64, required=True),
            string("teamName", 100, required=True),
            string("description", 2000),
            string("leaderId", 64, required=True),
            string("leaderName", 200),
            string("leaderEmail", 320),
            string("inviteCode", 6, required=True),
            integer("memberCount", default=1, min=0),
            integer("maxSize", default=5, min=1, max=10),
            enum("status", ["forming", "locked", "submitted"], default="forming"),
            string("submissionId", 64),
        ],
        "indexes": [
            ("unique_invite_code", "unique", ["inviteCode"]),
            ("idx_event_leader", "key", ["eventId", "leaderId"]),
        ],
    },
    collections.TEAM_MEMBERS: {
        "name": "Team Members",
        "attributes": [
            string("teamId", 64, required=True),
            string("eventId", 64, required=True),
            string("userId", 64, required=True),
            string("name", 200),
            string("email", 320),
            enum("role", ["leader", "member"], default="member"),
            enum("status", ["accepted"], default="accepted"),
            datetime_("joinedAt"),
        ],
        "indexes": [
            ("idx_team_user", "key", ["teamId", "userId"]),
            ("idx_event_user", "key", ["eventId", "userId"]),
        ],
    },
    collections.SUBMISSIONS: {
        "name": "Submissions",
        "attributes": [
            string("eventId", 64, required=True),
            string("teamId", 64),
            string("userId", 64, required=True),
            string("userName", 200),
            string("projectTitle", 200, required=True),
            string("projectDescription", 5000, required=True),
            string("problemStatementId", 64),
            string("techStack", 100, array=True),
            string("repoUrl", 2000),
            string("demoUrl", 2000),
            string("videoUrl", 2000),
            string("presentationUrl", 2000),
            string("screenshots", 2000, array=True),
            string("teamPhotoUrl", 2000),
            string("additionalNotes", 5000),
            enum("status", ["submitted", "reviewed", "winner"], default="submitted"),
            datetime_("submittedAt"),
            string("reviewedBy", 64),
            string("reviewNotes", 5000),
            integer("totalScore", default=0, min=0),
        ],
        "indexes": [
            ("unique_event_team", "unique", ["eventId", "teamId"]),
        ],
    },
    collections.BLOG: {
        "name": "Blog",
        "attributes": [
            string("title", 150, required=True),
            string("slug", 200, required=True),
            string("excerpt", 300),
            string("content", 65536, required=True),
            string("coverImage", 2000),
            string("category", 50),
            string("tags", 1000),
            string("authorId", 64),
            string("authorName", 200),
            string("authorEmail", 320),
            string("authorAvatar", 2000),
            enum("status", ["draft", "pending", "published", "rejected"], default="pending"),
            integer("views", default=0, min=0),
            integer("likes", default=0, min=0),
            boolean("featured"),
            integer("readTime", default=1, min=1),
            string("rejectionReason", 500),
            datetime_("publishedAt"),
        ],
        "indexes": [
            ("idx_slug", "key", ["slug"]),
            ("idx_author_created", "key", ["authorId", "$createdAt"]),
            ("idx_status", "key", ["status"]),
        ],
    },
}


def print_header(message: str):
    """Print colored header."""
    print(f"\n{Colors.BOLD}{Colors.BLUE}{'=' * 70}{Colors.END}")
    print(f"{Colors.BOLD}{Colors.BLUE}{message:^70}{Colors.END}")
    print(f"{Colors.BOLD}{Colors.BLUE}{'=' * 70}{Colors.END}\n")


def print_success(message: str):
    """Print success message in green."""
    print(f"{Colors.GREEN}✓ {message}{Colors.END}")


def print_warning(message: str):
    """Print warning message in yellow."""
    print(f"{Colors.YELLOW}⚠ {message}{Colors.END}")


def print_error(message: str):
    """Print error message in red."""
    print(f"{Colors.RED}✗ {message}{Colors.END}")


def print_info(message: str):
    """Print info message in blue."""
    print(f"{Colors.BLUE}ℹ {message}{Colors.END}")


async def wait_for_attributes(client: AppwriteClient, collection_id: str, timeout: float = 60.0):
    """
    Wait until Appwrite has finished processing a collection's attributes.

    Indexes can only be created over attributes in ``available`` status.
    """
    deadline = asyncio.get_running_loop().time() + timeout
    while True:
        attributes = await client.collections.list_attributes(collection_id)
        pending = [a["key"] for a in attributes if a.get("status") != "available"]
        if not pending:
            return
        if asyncio.get_running_loop().time() > deadline:
            raise TimeoutError(f"Attributes still processing: {', '.join(pending)}")
        await asyncio.sleep(1)


async def create_collection(
    client: AppwriteClient,
    collection_id: str,
    config: dict,
    existing: set,
    dry_run: bool = False,
) -> bool:
    """
    Create a collection with its attributes and indexes.

    Attributes and indexes that already exist are skipped, so re-running
    fills in whatever is missing.

    Returns:
        True if successful, False otherwise
    """
    if dry_run:
        print_info(f"Would create collection: {collection_id}")
        print(f"  Attributes: {len(config['attributes'])}")
        for key, index_type, attributes in config["indexes"]:
            print(f"  Index {key} ({index_type}): {', '.join(attributes)}")
        return True

    try:
        if collection_id in existing:
            print_warning(f"Collection exists, checking attributes: {collection_id}")
        else:
            await client.collections.create(collection_id, config["name"])
            print_success(f"Created collection: {collection_id}")

        for attribute in config["attributes"]:
            options = dict(attribute)
            attribute_type = options.pop("type")
            key = options.pop("key")
            try:
                await client.collections.create_attribute(collection_id, attribute_type, key, **options)
            except AppwriteConflictError:
                continue

        await wait_for_attributes(client, collection_id)

        for key, index_type, attributes in config["indexes"]:
            try:
                await client.collections.create_index(collection_id, key, index_type, attributes)
                print_success(f"  Created {index_type} index {key}")
            except AppwriteConflictError:
                print_warning(f"  Index exists: {key}")

        return True

    except (AppwriteError, TimeoutError) as e:
        print_error(f"Failed to set up collection {collection_id}: {e}")
        return False


async def main():
    """Main execution function."""
    parser = argparse.ArgumentParser(
        description="Create Appwrite collections for the coordination API"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Preview collections without creating them"
    )
    parser.add_argument(
        "--apply",
        action="store_true",
        help="Create collections in Appwrite"
    )

    args = parser.parse_args()

    if not args.dry_run and not args.apply:
        parser.print_help()
        print_error("\nError: Must specify either --dry-run or --apply")
        sys.exit(1)

    mode = "DRY RUN MODE" if args.dry_run else "APPLY MODE"
    print_header(f"Appwrite Collection Setup - {mode}")

    existing: set = set()
    client = None
    if not args.dry_run:
        try:
            client = AppwriteClient()
            print_success("Connected to Appwrite")
        except ValueError as e:
            print_error(f"Failed to configure Appwrite client: {e}")
            print_info("Make sure APPWRITE_PROJECT_ID, APPWRITE_API_KEY and APPWRITE_DATABASE_ID are set")
            sys.exit(1)

        print_info("Checking for existing collections...")
        try:
            existing = {c.get("$id") for c in await client.collections.list()}
        except AppwriteError as e:
            print_error(f"Could not list collections: {e}")
            await client.close()
            sys.exit(1)

    print_info(f"\nProcessing {len(COLLECTION_SCHEMAS)} collections...\n")

    succeeded = 0
    failed = 0

    for collection_id, config in COLLECTION_SCHEMAS.items():
        if await create_collection(client, collection_id, config, existing, args.dry_run):
            succeeded += 1
        else:
            failed += 1

    if client is not None:
        await client.close()

    print_header("Summary")

    if args.dry_run:
        print_info(f"Would set up: {succeeded} collections")
    else:
        print_success(f"Set up: {succeeded} collections")
        if failed > 0:
            print_error(f"Failed: {failed} collections")

    if failed > 0:
        sys.exit(1)
    else:
        print_success("\n✓ Collection setup complete!")
        sys.exit(0)


if __name__ == "__main__":
    asyncio.run(main())

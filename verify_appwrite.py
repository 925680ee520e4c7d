#!/usr/bin/env python3
"""
Verify Appwrite connection and credentials
"""
import asyncio
import os
import sys
from pathlib import Path

# Add python-api to path
sys.path.insert(0, str(Path(__file__).parent / "python-api"))

from dotenv import load_dotenv

from integrations.appwrite import AppwriteClient, AppwriteError
from services import collections

REQUIRED_COLLECTIONS = (
    collections.EVENTS,
    collections.REGISTRATIONS,
    collections.TEAMS,
    collections.TEAM_MEMBERS,
    collections.SUBMISSIONS,
    collections.BLOG,
)


async def verify_connection() -> bool:
    """Check the database and collections with credentials from .env"""
    load_dotenv()

    print("=" * 60)
    print("Appwrite Connection Verification")
    print("=" * 60)

    api_key = os.getenv("APPWRITE_API_KEY", "")
    print("\nConfiguration:")
    print(f"  Endpoint: {os.getenv('APPWRITE_ENDPOINT', 'https://cloud.appwrite.io/v1')}")
    print(f"  Project ID: {os.getenv('APPWRITE_PROJECT_ID', '')}")
    print(f"  Database ID: {os.getenv('APPWRITE_DATABASE_ID', '')}")
    print(f"  API Key: {'*' * 20}{api_key[-8:] if len(api_key) > 8 else '***'}")

    print("\nTesting connection...")

    try:
        async with AppwriteClient() as client:
            database = await client.health()
            print("\n✅ Connection successful!")
            print(f"  Database: {database.get('name', 'N/A')} ({database.get('$id', 'N/A')})")

            existing = {c["$id"] for c in await client.collections.list()}
            print("\nCollections:")
            missing = 0
            for collection_id in REQUIRED_COLLECTIONS:
                present = collection_id in existing
                missing += not present
                print(f"  {'✅' if present else '❌'} {collection_id}")

            if missing:
                print("\nRun scripts/setup_collections.py --apply to create the missing collections.")
            return missing == 0

    except (AppwriteError, ValueError) as e:
        print("\n❌ Connection failed!")
        print(f"Error: {type(e).__name__}: {str(e)}")
        return False


if __name__ == "__main__":
    success = asyncio.run(verify_connection())
    sys.exit(0 if success else 1)

# scripts/create_tables.py

import sys
from pathlib import Path

# Ensure project root is on the path when running this script directly
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import asyncio
from app.infrastructure.database.session import create_tables, dispose_engine


async def main():
    await create_tables()
    await dispose_engine()
    print("Tables created: documents, audit_log_entries, document_versions")

asyncio.run(main())

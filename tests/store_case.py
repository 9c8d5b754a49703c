import asyncio
import os
import tempfile
import unittest

from db import database as db_database
from utils.notifier import notifier


class StoreTestCase(unittest.IsolatedAsyncioTestCase):
    """Runs each test against a fresh, seeded store in a temp directory."""

    def setUp(self):
        # Point the DB to a temporary file and force re-initialization
        self.temp_dir = tempfile.TemporaryDirectory()
        self.db_path = os.path.join(self.temp_dir.name, "test.sqlite")
        db_database.DB_PATH = self.db_path
        db_database._initialized = False
        db_database._init_lock = asyncio.Lock()
        # alerts still land in error_logs, nothing goes over the network
        notifier.enabled = False

    async def asyncSetUp(self):
        # Touch initialization by opening a connection
        async with db_database.connect() as conn:
            cur = await conn.execute(
                "SELECT name FROM sqlite_master WHERE type='table';"
            )
            await cur.fetchall()
            await cur.close()

    async def asyncTearDown(self):
        await notifier.drain()

    def tearDown(self):
        self.temp_dir.cleanup()

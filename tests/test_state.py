import sqlite3
from datetime import datetime
from unittest.mock import patch

from db import crud
from db import database as db_database
from store_case import StoreTestCase
from utils.notifier import notifier
from utils.state import GlobalState, anonymise


class GlobalStateTestCase(StoreTestCase):
    async def _views(self):
        async with db_database.connect() as conn:
            cur = await conn.execute(
                "SELECT page_path, referrer, ip_hash FROM page_views ORDER BY id;"
            )
            rows = await cur.fetchall()
            await cur.close()
        return [tuple(row) for row in rows]

    async def test_track_page_records_referrer(self):
        state = GlobalState(user_agent="test-agent")
        state.enter("shopper")
        when = datetime(2025, 11, 5, 10, 0, 0)
        await state.track_page("/shop", when=when)
        await state.track_page("/cart", when=when)

        fingerprint = anonymise("test-agent", when)
        self.assertEqual(
            await self._views(),
            [("/shop", None, fingerprint), ("/cart", "/shop", fingerprint)],
        )

        # leaving resets the referrer chain
        state.leave()
        self.assertIsNone(state.role)
        await state.track_page("/admin", when=when)
        self.assertEqual((await self._views())[-1][1], None)

    async def test_track_page_failure_is_reported(self):
        state = GlobalState()
        with patch.object(
            crud, "record_page_view", side_effect=sqlite3.OperationalError("locked")
        ):
            await state.track_page("/shop")
        self.assertEqual(state.last_path, "/shop")

        await notifier.drain()
        logs = await crud.list_error_logs()
        self.assertEqual(logs[0].title, "Page tracking failed")
        self.assertEqual(logs[0].level, "warn")

    def test_fingerprint_changes_daily(self):
        day1 = datetime(2025, 11, 5, 8, 0)
        self.assertEqual(anonymise("ua", day1), anonymise("ua", day1.replace(hour=23)))
        self.assertNotEqual(anonymise("ua", day1), anonymise("ua", datetime(2025, 11, 6)))
        self.assertEqual(len(anonymise("ua", day1)), 16)

import os
import tempfile
import unittest

from db import crud
from db import database as db_database
from utils import config
from utils.state import AppState


class StoreTestCase(unittest.IsolatedAsyncioTestCase):
    """Points the store at a fresh temporary database for every test."""

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.db_path = os.path.join(self.temp_dir.name, "test.sqlite")
        self._orig_db_path = db_database.DB_PATH
        db_database.DB_PATH = self.db_path
        self._orig_client_file = config.CLIENT_FILE
        config.CLIENT_FILE = os.path.join(self.temp_dir.name, "client.token")
        db_database._initialized = False

    async def asyncSetUp(self):
        # touch initialization (schema + seed) by opening a connection
        async with db_database.connect() as conn:
            cur = await conn.execute("SELECT COUNT(*) FROM products;")
            await cur.fetchone()
            await cur.close()

    def tearDown(self):
        db_database.DB_PATH = self._orig_db_path
        config.CLIENT_FILE = self._orig_client_file
        db_database._initialized = False
        self.temp_dir.cleanup()

    async def count_rows(self, table: str) -> int:
        async with db_database.connect() as conn:
            cur = await conn.execute(f"SELECT COUNT(*) FROM {table};")
            n = (await cur.fetchone())[0]
            await cur.close()
        return n

    async def admin_state(self, email="admin@school.test", pwd="secret-pw") -> AppState:
        await crud.ensure_admin(email, pwd)
        state = AppState()
        await state.sign_in(email, pwd)
        return state

    async def member_state(self, email="member@school.test", pwd="secret-pw") -> AppState:
        await crud.sign_up(email, pwd)
        state = AppState()
        await state.sign_in(email, pwd)
        return state

from unittest import mock

import services.admin as admin
from db import crud
from store_testcase import StoreTestCase
from utils.errors import AuthError, DataAccessError, ValidationError
from utils.state import AppState


class AdminGuardTestCase(StoreTestCase):
    async def test_no_session_is_sent_to_login(self):
        state = AppState()
        with self.assertRaises(AuthError) as ctx:
            await state.require_admin()
        self.assertEqual(ctx.exception.reason, "no_session")

    async def test_admin_passes(self):
        state = await self.admin_state()
        session = await state.require_admin()
        self.assertIs(session, state.session)
        self.assertEqual(state.email, "admin@school.test")

    async def test_non_admin_is_signed_out_and_sees_no_data(self):
        state = await self.member_state()
        token = state.session.token

        list_orders = mock.AsyncMock(return_value=[])
        list_products = mock.AsyncMock(return_value=[])
        with mock.patch.object(crud, "list_orders", list_orders), mock.patch.object(
            crud, "list_products", list_products
        ):
            with self.assertRaises(AuthError) as ctx:
                await admin.load_ledger(state)
            self.assertEqual(ctx.exception.reason, "access_denied")
            with self.assertRaises(AuthError):
                await admin.load_products(state)

        list_orders.assert_not_awaited()
        list_products.assert_not_awaited()
        self.assertIsNone(state.session)
        self.assertIsNone(await crud.get_session(token))

    async def test_buyer_identity_is_not_an_admin_session(self):
        state = AppState()
        buyer = await state.ensure_buyer()
        with self.assertRaises(AuthError) as ctx:
            await state.require_admin()
        self.assertEqual(ctx.exception.reason, "no_session")
        self.assertIs(state.buyer, buyer)
        self.assertIsNotNone(await crud.get_session(buyer.token))

    async def test_failed_role_lookup_denies_access(self):
        state = await self.admin_state()
        with mock.patch.object(
            crud, "get_role_grant", mock.AsyncMock(side_effect=DataAccessError("down"))
        ):
            with self.assertRaises(AuthError) as ctx:
                await state.require_admin()
        self.assertEqual(ctx.exception.reason, "access_denied")
        self.assertIsNone(state.session)

    async def test_ended_session_is_denied(self):
        state = await self.admin_state()
        await crud.sign_out(state.session.token)
        with self.assertRaises(AuthError):
            await state.require_admin()

    async def test_sign_in_with_bad_credentials(self):
        await crud.ensure_admin("admin@school.test", "secret-pw")
        state = AppState()
        with self.assertRaises(AuthError) as ctx:
            await state.sign_in("admin@school.test", "wrong")
        self.assertEqual(ctx.exception.reason, "bad_credentials")
        self.assertIsNone(state.session)

    async def test_sign_in_and_out_keep_buyer_identity(self):
        await crud.ensure_admin("admin@school.test", "secret-pw")
        state = AppState()
        buyer = await state.ensure_buyer()
        await state.sign_in("admin@school.test", "secret-pw")
        self.assertNotEqual(state.session.token, buyer.token)
        await state.sign_out()
        self.assertIsNone(state.session)
        self.assertIs(state.buyer, buyer)
        self.assertIsNotNone(await crud.get_session(buyer.token))

    async def test_sign_out_survives_store_failure(self):
        state = await self.admin_state()
        with mock.patch.object(
            crud, "sign_out", mock.AsyncMock(side_effect=DataAccessError("down"))
        ):
            await state.sign_out()
        self.assertIsNone(state.session)
        self.assertIsNone(state.email)


class ProductManagerTestCase(StoreTestCase):
    async def test_crud_through_admin_services(self):
        state = await self.admin_state()

        added = await admin.add_product(state, "SanDisk Flashdrive 64GB", "200", "")
        self.assertEqual(added.image, "placeholder.jpg")
        self.assertIn(added.pid, [p.pid for p in await admin.load_products(state)])

        updated = await admin.update_product(state, added.pid, price=210.5, available=False)
        self.assertEqual(updated.price, 210.5)
        self.assertFalse(updated.available)

        with self.assertRaises(ValidationError):
            await admin.add_product(state, "No Price", None)

        self.assertTrue(await admin.delete_product(state, added.pid))
        self.assertNotIn(added.pid, [p.pid for p in await admin.load_products(state)])

    async def test_non_admin_cannot_write(self):
        state = await self.member_state()
        with self.assertRaises(AuthError):
            await admin.add_product(state, "Rogue Drive", 1)
        state = await self.member_state("member2@school.test")
        with self.assertRaises(AuthError):
            await admin.delete_product(state, 1)
        self.assertEqual(len(await crud.list_products()), 3)

    async def test_delete_order(self):
        state = await self.admin_state()
        buyer = await crud.sign_in_anonymously()
        order = await crud.place_order(
            buyer.uid, 1, "Jane Doe", "10A", "23", buyer.start_time, 60
        )
        fetched = await admin.get_order(state, order.ono)
        self.assertEqual(fetched.product_name, order.product_name)
        self.assertTrue(await admin.delete_order(state, order.ono))
        self.assertEqual(await self.count_rows("orders"), 0)
        self.assertIsNone(await admin.get_order(state, order.ono))

    async def test_non_admin_cannot_read_an_order(self):
        buyer = await crud.sign_in_anonymously()
        order = await crud.place_order(
            buyer.uid, 1, "Jane Doe", "10A", "23", buyer.start_time, 60
        )
        state = await self.member_state()
        with self.assertRaises(AuthError):
            await admin.get_order(state, order.ono)

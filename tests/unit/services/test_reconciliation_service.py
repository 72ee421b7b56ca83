"""
Unit tests for ReconciliationService and TaskRegistry.
"""

import asyncio

import pytest

from tests.helpers.fakes import add_transaction, tx_hash
from wallet_api.repositories import TransactionRepository
from wallet_api.utils.errors import ChainQueryError, ConfirmationTimeoutError


async def _stored_status(session_factory, hash_: str) -> str:
    async with session_factory() as session:
        transaction = await TransactionRepository(session).find_by_hash(hash_)
        return transaction.status


class TestReconcile:

    @pytest.mark.asyncio
    async def test_confirmed_transaction_is_recorded(
        self,
        db_session,  # pylint: disable=redefined-outer-name
        session_factory,  # pylint: disable=redefined-outer-name
        fake_blockchain,  # pylint: disable=redefined-outer-name
        reconciler,  # pylint: disable=redefined-outer-name
        test_wallet,  # pylint: disable=redefined-outer-name
    ):
        await add_transaction(db_session, test_wallet, 1)
        await db_session.commit()
        fake_blockchain.confirm(tx_hash(1))

        assert await reconciler.reconcile(tx_hash(1)) is True
        assert await _stored_status(session_factory, tx_hash(1)) == "confirmed"

    @pytest.mark.asyncio
    async def test_failed_transaction_is_recorded(
        self,
        db_session,  # pylint: disable=redefined-outer-name
        session_factory,  # pylint: disable=redefined-outer-name
        fake_blockchain,  # pylint: disable=redefined-outer-name
        reconciler,  # pylint: disable=redefined-outer-name
        test_wallet,  # pylint: disable=redefined-outer-name
    ):
        await add_transaction(db_session, test_wallet, 1)
        await db_session.commit()
        fake_blockchain.confirm(tx_hash(1), status="failed")

        assert await reconciler.reconcile(tx_hash(1)) is True
        assert await _stored_status(session_factory, tx_hash(1)) == "failed"

    @pytest.mark.asyncio
    async def test_second_reconcile_is_a_no_op(
        self,
        db_session,  # pylint: disable=redefined-outer-name
        fake_blockchain,  # pylint: disable=redefined-outer-name
        reconciler,  # pylint: disable=redefined-outer-name
        test_wallet,  # pylint: disable=redefined-outer-name
    ):
        await add_transaction(db_session, test_wallet, 1)
        await db_session.commit()
        fake_blockchain.confirm(tx_hash(1))

        assert await reconciler.reconcile(tx_hash(1)) is True
        assert await reconciler.reconcile(tx_hash(1)) is False

    @pytest.mark.asyncio
    async def test_unknown_to_chain_stays_pending(
        self,
        db_session,  # pylint: disable=redefined-outer-name
        session_factory,  # pylint: disable=redefined-outer-name
        reconciler,  # pylint: disable=redefined-outer-name
        test_wallet,  # pylint: disable=redefined-outer-name
    ):
        await add_transaction(db_session, test_wallet, 1)
        await db_session.commit()

        assert await reconciler.reconcile(tx_hash(1)) is False
        assert await _stored_status(session_factory, tx_hash(1)) == "pending"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            ConfirmationTimeoutError(tx_hash(1), 120),
            ChainQueryError("node down"),
            RuntimeError("unexpected"),
        ],
    )
    async def test_errors_are_logged_not_raised(
        self,
        db_session,  # pylint: disable=redefined-outer-name
        session_factory,  # pylint: disable=redefined-outer-name
        fake_blockchain,  # pylint: disable=redefined-outer-name
        reconciler,  # pylint: disable=redefined-outer-name
        test_wallet,  # pylint: disable=redefined-outer-name
        error,
    ):
        await add_transaction(db_session, test_wallet, 1)
        await db_session.commit()

        async def failing_wait(hash_, confirmations=1):
            raise error

        fake_blockchain.wait_for_transaction = failing_wait

        assert await reconciler.reconcile(tx_hash(1)) is False
        assert await _stored_status(session_factory, tx_hash(1)) == "pending"


class TestScheduling:

    @pytest.mark.asyncio
    async def test_schedule_deduplicates_in_flight_hashes(
        self,
        fake_blockchain,  # pylint: disable=redefined-outer-name
        reconciler,  # pylint: disable=redefined-outer-name
        task_registry,  # pylint: disable=redefined-outer-name
    ):
        release = asyncio.Event()

        async def slow_wait(hash_, confirmations=1):
            await release.wait()

        fake_blockchain.wait_for_transaction = slow_wait

        assert reconciler.schedule(tx_hash(1)) is True
        assert reconciler.schedule(tx_hash(1)) is False
        assert task_registry.pending == 1

        release.set()
        await task_registry.wait_idle(timeout=5)

        assert task_registry.pending == 0
        assert reconciler.schedule(tx_hash(1)) is True
        await task_registry.wait_idle(timeout=5)

    @pytest.mark.asyncio
    async def test_resume_pending_schedules_stored_rows(
        self,
        db_session,  # pylint: disable=redefined-outer-name
        session_factory,  # pylint: disable=redefined-outer-name
        fake_blockchain,  # pylint: disable=redefined-outer-name
        reconciler,  # pylint: disable=redefined-outer-name
        task_registry,  # pylint: disable=redefined-outer-name
        test_wallet,  # pylint: disable=redefined-outer-name
    ):
        """
        Scenario:
        GIVEN: A pending row and a confirmed row left by a restart
        WHEN: The startup sweep runs
        THEN: Only the pending row is reconciled
        """
        await add_transaction(db_session, test_wallet, 1)
        await add_transaction(db_session, test_wallet, 2, status="confirmed")
        await db_session.commit()
        fake_blockchain.confirm(tx_hash(1))

        scheduled = await reconciler.resume_pending()
        await task_registry.wait_idle(timeout=5)

        assert scheduled == 1
        assert fake_blockchain.waited == [tx_hash(1)]
        assert await _stored_status(session_factory, tx_hash(1)) == "confirmed"


class TestTaskRegistry:

    @pytest.mark.asyncio
    async def test_failed_task_is_released(self, task_registry):
        async def boom():
            raise RuntimeError("boom")

        task_registry.spawn(boom(), name="boom")
        await task_registry.wait_idle(timeout=5)

        assert task_registry.pending == 0

    @pytest.mark.asyncio
    async def test_shutdown_cancels_running_tasks(self, task_registry):
        task = task_registry.spawn(asyncio.sleep(3600), name="sleeper")

        await task_registry.shutdown()

        assert task.cancelled()

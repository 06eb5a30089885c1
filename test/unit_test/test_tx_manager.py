"""
Unit tests for the transaction lifecycle manager

Transactions are built and signed for real with a throwaway keypair; only
the RPC client is mocked.
"""

import unittest
from unittest.mock import AsyncMock, MagicMock, patch

from solders.hash import Hash
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import VersionedTransaction

from helpers import FakeClock

from jupiter_adapter.infra import LocalSigner, RpcClient
from jupiter_adapter.infra.tx_manager import (
    TransactionManager,
    TxManagerConfig,
    create_instruction,
    create_priority_fee_instructions,
)
from jupiter_adapter.types import (
    CONFIRMATION_TIMEOUT_MESSAGE,
    BlockhashInfo,
    PriorityFeeConfig,
    PriorityFeeLevel,
    TransactionEncoding,
    TxState,
)
from jupiter_adapter.errors import (
    ErrorCode,
    RpcError,
    SigningUnavailable,
    SimulationFailure,
    TransactionError,
    TransportFailure,
)

COMPUTE_BUDGET_PROGRAM = Pubkey.from_string("ComputeBudget111111111111111111111111111111")
SYSTEM_PROGRAM = "11111111111111111111111111111111"
BLOCKHASH = BlockhashInfo(blockhash=str(Hash.new_unique()), last_valid_block_height=1000)


def noop_instruction(payer: str):
    return create_instruction(
        SYSTEM_PROGRAM,
        [{"pubkey": payer, "is_signer": True, "is_writable": True}],
        b"",
    )


class TestPriorityFeeInstructions(unittest.TestCase):

    def test_none_level_only_sets_limit(self):
        instructions = create_priority_fee_instructions(PriorityFeeConfig(PriorityFeeLevel.NONE, 300_000))
        self.assertEqual(len(instructions), 1)
        self.assertEqual(instructions[0].program_id, COMPUTE_BUDGET_PROGRAM)

    def test_paid_level_sets_limit_and_price(self):
        instructions = create_priority_fee_instructions(PriorityFeeConfig(PriorityFeeLevel.HIGH))
        self.assertEqual(len(instructions), 2)
        self.assertTrue(all(ix.program_id == COMPUTE_BUDGET_PROGRAM for ix in instructions))

    def test_config_priority(self):
        config = TxManagerConfig(compute_units=150_000, priority_level="very_high")
        self.assertEqual(config.priority, PriorityFeeConfig(PriorityFeeLevel.VERY_HIGH, 150_000))


class TxManagerTestCase(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.keypair = Keypair()
        self.signer = LocalSigner(self.keypair)
        self.rpc = MagicMock(spec=RpcClient)
        self.rpc.get_latest_blockhash.return_value = BLOCKHASH
        self.manager = TransactionManager(self.rpc, self.signer, TxManagerConfig(confirmation_timeout=10))

        self.clock = FakeClock()
        for target in ("jupiter_adapter.infra.tx_manager", "jupiter_adapter.infra.retry"):
            patcher = patch(f"{target}.asyncio")
            mock_asyncio = patcher.start()
            mock_asyncio.sleep = AsyncMock(side_effect=self.clock.sleep)
            self.addCleanup(patcher.stop)
        patcher = patch("jupiter_adapter.infra.tx_manager.time")
        mock_time = patcher.start()
        mock_time.monotonic.side_effect = self.clock.monotonic
        self.addCleanup(patcher.stop)

    async def signed_tx(self):
        unsigned = await self.manager.build([noop_instruction(self.signer.pubkey)])
        return self.manager.sign(unsigned)


class TestBlockhash(TxManagerTestCase):

    async def test_recovers_after_two_failures(self):
        self.rpc.get_latest_blockhash.side_effect = [RpcError("down"), RpcError("down"), BLOCKHASH]

        info = await self.manager.get_recent_blockhash()

        self.assertEqual(info, BLOCKHASH)
        self.assertEqual(self.rpc.get_latest_blockhash.await_count, 3)
        self.assertEqual(self.clock.sleeps, [1.0, 2.0])

    async def test_all_attempts_fail(self):
        last = RpcError("still down")
        self.rpc.get_latest_blockhash.side_effect = [RpcError("down"), RpcError("down"), last]

        with self.assertRaises(TransportFailure) as ctx:
            await self.manager.get_recent_blockhash()

        self.assertIs(ctx.exception, last)
        self.assertEqual(self.clock.sleeps, [1.0, 2.0])


class TestBuildAndSign(TxManagerTestCase):

    async def test_versioned_round_trip(self):
        unsigned = await self.manager.build([noop_instruction(self.signer.pubkey)])

        self.assertEqual(unsigned.encoding, TransactionEncoding.VERSIONED)
        self.assertEqual(unsigned.blockhash, BLOCKHASH.blockhash)
        self.assertEqual(unsigned.last_valid_block_height, 1000)
        self.assertEqual(unsigned.state, TxState.BUILT)

        signed = self.manager.sign(unsigned)
        tx = VersionedTransaction.from_bytes(signed.raw)

        self.assertEqual(signed.state, TxState.SIGNED)
        self.assertEqual(signed.encoding, TransactionEncoding.VERSIONED)
        self.assertEqual(tx.signatures[0], Signature.from_string(signed.signature))
        # compute limit + compute price + noop
        self.assertEqual(len(tx.message.instructions), 3)

    async def test_legacy_round_trip(self):
        unsigned = await self.manager.build(
            [noop_instruction(self.signer.pubkey)],
            encoding=TransactionEncoding.LEGACY,
            priority=PriorityFeeConfig(PriorityFeeLevel.NONE),
        )
        signed = self.manager.sign(unsigned)
        tx = VersionedTransaction.from_bytes(signed.raw)

        self.assertEqual(signed.encoding, TransactionEncoding.LEGACY)
        self.assertEqual(tx.signatures[0], Signature.from_string(signed.signature))
        self.assertEqual(len(tx.message.instructions), 2)

    async def test_given_blockhash_skips_fetch(self):
        await self.manager.build([noop_instruction(self.signer.pubkey)], blockhash=BLOCKHASH)
        self.rpc.get_latest_blockhash.assert_not_awaited()

    async def test_legacy_rejects_lookup_tables(self):
        with self.assertRaises(TransactionError):
            await self.manager.build(
                [noop_instruction(self.signer.pubkey)],
                encoding=TransactionEncoding.LEGACY,
                lookup_tables=[MagicMock()],
                blockhash=BLOCKHASH,
            )

    async def test_sign_without_signer(self):
        unsigned = await self.manager.build([noop_instruction(self.signer.pubkey)])
        manager = TransactionManager(self.rpc)

        self.assertFalse(manager.has_signer)
        with self.assertRaises(SigningUnavailable) as ctx:
            manager.sign(unsigned)
        self.assertEqual(ctx.exception.code, ErrorCode.SIGNER_NOT_CONFIGURED)


class TestSubmit(TxManagerTestCase):

    async def test_submit_uses_config(self):
        self.rpc.send_transaction.return_value = "sig123"
        signed = await self.signed_tx()

        signature = await self.manager.submit(signed)

        self.assertEqual(signature, "sig123")
        args, kwargs = self.rpc.send_transaction.call_args
        self.assertEqual(args[0], signed.raw)
        self.assertFalse(kwargs["skip_preflight"])
        self.assertEqual(kwargs["max_retries"], 3)

    async def test_node_rejection_becomes_transaction_error(self):
        rejection = RpcError("RPC error: Transaction simulation failed")
        rejection.details["rpc_error_code"] = -32002
        rejection.details["rpc_error_data"] = {"logs": ["Program failed: slippage"]}
        self.rpc.send_transaction.side_effect = rejection

        with self.assertRaises(TransactionError) as ctx:
            await self.manager.submit(await self.signed_tx())

        self.assertEqual(ctx.exception.code, ErrorCode.SEND_FAILED)
        self.assertEqual(ctx.exception.logs, ["Program failed: slippage"])
        self.assertIs(ctx.exception.original_error, rejection)

    async def test_connection_failure_propagates(self):
        self.rpc.send_transaction.side_effect = RpcError.connection_failed("https://rpc.test")

        with self.assertRaises(RpcError):
            await self.manager.submit(await self.signed_tx())


class TestConfirm(TxManagerTestCase):

    async def test_confirmed_with_block_time(self):
        self.rpc.get_signature_statuses.side_effect = [
            [None],
            [{"slot": 10, "err": None, "confirmationStatus": "processed"}],
            [{"slot": 10, "err": None, "confirmationStatus": "confirmed"}],
        ]
        self.rpc.get_transaction.return_value = {"slot": 11, "blockTime": 1700000000}

        result = await self.manager.confirm("sig", poll_interval=1.0)

        self.assertTrue(result.confirmed)
        self.assertEqual(result.slot, 11)
        self.assertEqual(result.block_time, 1700000000)
        self.assertEqual(result.state, TxState.CONFIRMED)
        self.assertEqual(self.clock.sleeps, [1.0, 1.0])

    async def test_block_time_failure_still_confirmed(self):
        self.rpc.get_signature_statuses.return_value = [
            {"slot": 10, "err": None, "confirmationStatus": "finalized"},
        ]
        self.rpc.get_transaction.side_effect = RpcError("gone")

        result = await self.manager.confirm("sig")

        self.assertTrue(result.confirmed)
        self.assertEqual(result.slot, 10)
        self.assertIsNone(result.block_time)

    async def test_on_chain_error(self):
        self.rpc.get_signature_statuses.return_value = [
            {"slot": 10, "err": {"InstructionError": [2, {"Custom": 6001}]}, "confirmationStatus": "confirmed"},
        ]

        result = await self.manager.confirm("sig")

        self.assertFalse(result.confirmed)
        self.assertEqual(result.state, TxState.FAILED)
        self.assertEqual(result.error_code, ErrorCode.TRANSACTION_FAILED)
        self.assertIn("6001", result.error)

    async def test_timeout_is_reported_not_raised(self):
        self.rpc.get_signature_statuses.return_value = [None]

        result = await self.manager.confirm("sig", timeout=2.0, poll_interval=1.0)

        self.assertEqual(self.rpc.get_signature_statuses.await_count, 2)
        self.assertFalse(result.confirmed)
        self.assertTrue(result.is_timeout)
        self.assertEqual(result.error, CONFIRMATION_TIMEOUT_MESSAGE)
        self.assertEqual(result.error_code, ErrorCode.CONFIRMATION_TIMEOUT)
        self.rpc.send_transaction.assert_not_awaited()

    async def test_send_and_confirm(self):
        self.rpc.send_transaction.return_value = "sig123"
        self.rpc.get_signature_statuses.return_value = [
            {"slot": 5, "err": None, "confirmationStatus": "confirmed"},
        ]
        self.rpc.get_transaction.return_value = None

        result = await self.manager.send_and_confirm(await self.signed_tx())

        self.assertTrue(result.confirmed)
        self.assertEqual(result.signature, "sig123")
        self.assertEqual(result.slot, 5)

    async def test_get_status_delegates(self):
        await self.manager.get_status("sig")
        self.rpc.get_signature_status.assert_awaited_once_with("sig")


class TestSimulateAndFees(TxManagerTestCase):

    async def test_simulation_success(self):
        self.rpc.simulate_transaction.return_value = {"err": None, "logs": ["ok"], "unitsConsumed": 4200}
        result = await self.manager.simulate(await self.signed_tx())

        self.assertTrue(result.success)
        self.assertEqual(result.units_consumed, 4200)
        self.assertEqual(result.logs, ["ok"])

    async def test_simulation_program_error_is_data(self):
        self.rpc.simulate_transaction.return_value = {
            "err": {"InstructionError": [0, "InvalidAccountData"]},
            "logs": ["failed"],
            "unitsConsumed": 100,
        }
        result = await self.manager.simulate(await self.signed_tx())

        self.assertFalse(result.success)
        self.assertIn("InvalidAccountData", result.error)

    async def test_simulation_transport_error_is_data(self):
        self.rpc.simulate_transaction.side_effect = RpcError("down")
        result = await self.manager.simulate(b"\x00")

        self.assertFalse(result.success)
        self.assertEqual(result.error, "down")

    async def test_estimate_fee(self):
        signed = await self.signed_tx()

        self.rpc.get_fee_for_message.return_value = 7000
        self.assertEqual(await self.manager.estimate_fee(signed), 7000)

        for missing in (None, 0):
            self.rpc.get_fee_for_message.return_value = missing
            self.assertEqual(await self.manager.estimate_fee(signed), 5000)

    async def test_estimate_fee_sends_prefixed_v0_message(self):
        self.rpc.get_fee_for_message.return_value = 5000
        await self.manager.estimate_fee(await self.signed_tx())

        message_bytes = self.rpc.get_fee_for_message.call_args[0][0]
        self.assertEqual(message_bytes[0], 0x80)

    async def test_build_and_send_simulate_first_failure(self):
        self.rpc.simulate_transaction.return_value = {"err": "BlockhashNotFound", "logs": []}

        with self.assertRaises(SimulationFailure) as ctx:
            await self.manager.build_and_send(
                [noop_instruction(self.signer.pubkey)],
                simulate_first=True,
            )

        self.assertEqual(ctx.exception.code, ErrorCode.SIMULATION_FAILED)
        self.rpc.send_transaction.assert_not_awaited()


if __name__ == "__main__":
    unittest.main()

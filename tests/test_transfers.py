"""
Tests for TransferService against the seeded demo ledger.

Seed: user 10000 owns accounts 10000/10001 and transfer 10000 ("Transfer #1");
user 10001 owns accounts 10002/10003 and transfer 10001.
"""

import asyncio
from decimal import Decimal

import pytest
from sqlalchemy import select

from finledger.exceptions import ForbiddenError, NotFoundError, ValidationError
from finledger.models import Transaction, TransactionType, Transfer
from finledger.repositories import TransactionRepository, TransferRepository
from finledger.schemas import TransferRequest
from finledger.services import TransactionService, TransferService
from ledger_utils import fetch_all, fetch_legs, now

USER_ID = 10000


def regular_transfer(**overrides) -> TransferRequest:
    payload = {
        "description": "Regular Transfer",
        "acc_ori_id": 10000,
        "acc_dest_id": 10001,
        "amount": 100,
        "date": now(),
    }
    payload.update(overrides)
    return TransferRequest(**payload)


def assert_posted(transfer_id: int, legs: list[Transaction], amount: str, ori: int = 10000, dest: int = 10001):
    """Both legs exist, reference the transfer, and mirror its amount."""
    assert len(legs) == 2
    outbound, inbound = legs

    assert outbound.transfer_id == transfer_id
    assert inbound.transfer_id == transfer_id

    assert outbound.description == f"Transfer to acc #{dest}"
    assert outbound.amount == -Decimal(amount)
    assert outbound.acc_id == ori
    assert outbound.type == TransactionType.OUTFLOW

    assert inbound.description == f"Transfer from acc #{ori}"
    assert inbound.amount == Decimal(amount)
    assert inbound.acc_id == dest
    assert inbound.type == TransactionType.INFLOW

    assert outbound.status is True
    assert inbound.status is True


def break_leg_posting(monkeypatch, error: BaseException, on_call: int = 2):
    """Makes the n-th leg write raise, after the earlier writes of the unit went through."""
    original_create = TransactionRepository.create
    calls = []

    async def create(self, create_data):
        calls.append(create_data)
        if len(calls) == on_call:
            raise error
        return await original_create(self, create_data)

    monkeypatch.setattr(TransactionRepository, "create", create)


class TestReadTransfer:

    @pytest.mark.asyncio
    async def test_list_only_user_transfers(self, session, seeded):
        result = await TransferService(session, USER_ID).list()

        assert len(result) == 1
        assert result[0].description == "Transfer #1"
        assert [leg.amount for leg in result[0].transactions] == ["-100.00", "100.00"]

    @pytest.mark.asyncio
    async def test_get_by_id(self, session, seeded):
        result = await TransferService(session, USER_ID).get_by_id(10000)

        assert result.description == "Transfer #1"
        assert result.amount == "100.00"

    @pytest.mark.asyncio
    async def test_get_transfer_of_other_user(self, session, seeded):
        with pytest.raises(ForbiddenError) as exc:
            await TransferService(session, USER_ID).get_by_id(10001)
        assert exc.value.message == "Este recurso não pertence ao usuário"

    @pytest.mark.asyncio
    async def test_get_missing_transfer(self, session, seeded):
        with pytest.raises(NotFoundError):
            await TransferService(session, USER_ID).get_by_id(99999)

    @pytest.mark.asyncio
    async def test_list_reflects_leg_deleted_in_same_session(self, session, seeded):
        transfers = TransferService(session, USER_ID)
        outbound, inbound = (await transfers.list())[0].transactions

        await TransactionService(session, USER_ID).delete(outbound.id)

        result = await transfers.list()
        assert [leg.id for leg in result[0].transactions] == [inbound.id]


class TestCreateTransfer:

    @pytest.mark.asyncio
    async def test_create(self, session, session_factory, seeded):
        result = await TransferService(session, USER_ID).create(regular_transfer())

        assert result.description == "Regular Transfer"
        assert result.amount == "100.00"
        assert result.user_id == USER_ID

        assert [(leg.amount, leg.type, leg.acc_id) for leg in result.transactions] == [
            ("-100.00", TransactionType.OUTFLOW, 10000),
            ("100.00", TransactionType.INFLOW, 10001),
        ]
        assert {leg.transfer_id for leg in result.transactions} == {result.id}

        assert_posted(result.id, await fetch_legs(session_factory, result.id), "100.00")

    @pytest.mark.asyncio
    async def test_amount_sign_is_ignored(self, session, session_factory, seeded):
        result = await TransferService(session, USER_ID).create(regular_transfer(amount=-250))

        assert result.amount == "250.00"
        assert_posted(result.id, await fetch_legs(session_factory, result.id), "250.00")

    @pytest.mark.asyncio
    async def test_zero_amount_keeps_outbound_leg_first(self, session, session_factory, seeded):
        result = await TransferService(session, USER_ID).create(regular_transfer(amount=0))

        assert [leg.type for leg in result.transactions] == [TransactionType.OUTFLOW, TransactionType.INFLOW]
        assert_posted(result.id, await fetch_legs(session_factory, result.id), "0.00")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "overrides, message",
        [
            ({"description": None}, "Descrição é um atributo obrigatório"),
            ({"amount": None}, "Valor é um atributo obrigatório"),
            ({"date": None}, "Data é um atributo obrigatório"),
            ({"acc_ori_id": None}, "Conta de origem é obrigatória"),
            ({"acc_dest_id": None}, "Conta de destino é obrigatória"),
            ({"acc_dest_id": 10000}, "Conta de origem deve ser diferente da conta de destino"),
        ],
    )
    async def test_invalid_transfer(self, session, session_factory, seeded, overrides, message):
        with pytest.raises(ValidationError) as exc:
            await TransferService(session, USER_ID).create(
                regular_transfer(description="this transfer gonna fail", **overrides)
            )
        assert exc.value.message == message

        assert len(await fetch_all(session_factory, select(Transfer))) == 2

    @pytest.mark.asyncio
    async def test_origin_of_other_user(self, session, session_factory, seeded):
        with pytest.raises(ForbiddenError) as exc:
            await TransferService(session, USER_ID).create(regular_transfer(acc_ori_id=10002))
        assert exc.value.message == "Conta de origem #10002 não pertence ao usuário"

        assert len(await fetch_all(session_factory, select(Transfer))) == 2

    @pytest.mark.asyncio
    async def test_missing_origin_is_reported_as_not_owned(self, session, seeded):
        with pytest.raises(ForbiddenError) as exc:
            await TransferService(session, USER_ID).create(regular_transfer(acc_ori_id=99999))
        assert exc.value.message == "Conta de origem #99999 não pertence ao usuário"

    @pytest.mark.asyncio
    async def test_destination_ownership_is_not_checked(self, session, session_factory, seeded):
        result = await TransferService(session, USER_ID).create(regular_transfer(acc_dest_id=10002))

        assert_posted(result.id, await fetch_legs(session_factory, result.id), "100.00", dest=10002)

    @pytest.mark.asyncio
    async def test_missing_destination_rolls_back_everything(self, session, session_factory, seeded):
        with pytest.raises(NotFoundError):
            await TransferService(session, USER_ID).create(regular_transfer(acc_dest_id=99999))

        assert len(await fetch_all(session_factory, select(Transfer))) == 2
        assert len(await fetch_all(session_factory, select(Transaction))) == 4

    @pytest.mark.asyncio
    async def test_failing_leg_rolls_back_transfer_and_first_leg(self, session, session_factory, seeded, monkeypatch):
        break_leg_posting(monkeypatch, RuntimeError("connection lost"))

        with pytest.raises(RuntimeError):
            await TransferService(session, USER_ID).create(regular_transfer(description="half posted"))

        assert await fetch_all(session_factory, select(Transfer).where(Transfer.description == "half posted")) == []
        assert len(await fetch_all(session_factory, select(Transaction))) == 4


class TestUpdateTransfer:

    @pytest.mark.asyncio
    async def test_update(self, session, session_factory, seeded):
        old_leg_ids = {leg.id for leg in await fetch_legs(session_factory, 10000)}

        result = await TransferService(session, USER_ID).update(
            10000, regular_transfer(description="Transfer updated", amount=500)
        )

        assert result.id == 10000
        assert result.description == "Transfer updated"
        assert result.amount == "500.00"
        assert [leg.amount for leg in result.transactions] == ["-500.00", "500.00"]

        legs = await fetch_legs(session_factory, 10000)
        assert_posted(10000, legs, "500.00")
        assert old_leg_ids.isdisjoint({leg.id for leg in legs})
        assert_posted(10001, await fetch_legs(session_factory, 10001), "100.00", ori=10002, dest=10003)

    @pytest.mark.asyncio
    async def test_partial_update_keeps_other_fields(self, session, session_factory, seeded):
        result = await TransferService(session, USER_ID).update(10000, TransferRequest(amount=42))

        assert result.description == "Transfer #1"
        assert result.acc_ori_id == 10000
        assert result.acc_dest_id == 10001
        assert_posted(10000, await fetch_legs(session_factory, 10000), "42.00")

    @pytest.mark.asyncio
    async def test_swap_accounts(self, session, session_factory, seeded):
        await TransferService(session, USER_ID).update(10000, TransferRequest(acc_ori_id=10001, acc_dest_id=10000))

        assert_posted(10000, await fetch_legs(session_factory, 10000), "100.00", ori=10001, dest=10000)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "overrides, message",
        [
            ({"description": None}, "Descrição é um atributo obrigatório"),
            ({"amount": None}, "Valor é um atributo obrigatório"),
            ({"date": None}, "Data é um atributo obrigatório"),
            ({"acc_ori_id": None}, "Conta de origem é obrigatória"),
            ({"acc_dest_id": None}, "Conta de destino é obrigatória"),
            ({"acc_dest_id": 10000}, "Conta de origem deve ser diferente da conta de destino"),
        ],
    )
    async def test_invalid_update(self, session, session_factory, seeded, overrides, message):
        with pytest.raises(ValidationError) as exc:
            await TransferService(session, USER_ID).update(10000, regular_transfer(**overrides))
        assert exc.value.message == message

        assert_posted(10000, await fetch_legs(session_factory, 10000), "100.00")

    @pytest.mark.asyncio
    async def test_update_origin_of_other_user(self, session, session_factory, seeded):
        with pytest.raises(ForbiddenError) as exc:
            await TransferService(session, USER_ID).update(10000, TransferRequest(acc_ori_id=10002))
        assert exc.value.message == "Conta de origem #10002 não pertence ao usuário"

        assert_posted(10000, await fetch_legs(session_factory, 10000), "100.00")

    @pytest.mark.asyncio
    async def test_update_transfer_of_other_user(self, session, seeded):
        with pytest.raises(ForbiddenError):
            await TransferService(session, USER_ID).update(10001, TransferRequest(amount=1))


class TestDeleteTransfer:

    @pytest.mark.asyncio
    async def test_delete(self, session, session_factory, seeded):
        await TransferService(session, USER_ID).delete(10000)

        assert await fetch_all(session_factory, select(Transfer).where(Transfer.id == 10000)) == []
        assert await fetch_legs(session_factory, 10000) == []
        assert len(await fetch_legs(session_factory, 10001)) == 2

    @pytest.mark.asyncio
    async def test_delete_after_read_in_same_session(self, session, session_factory, seeded):
        service = TransferService(session, USER_ID)
        await service.get_by_id(10000)

        await service.delete(10000)

        assert await fetch_legs(session_factory, 10000) == []

    @pytest.mark.asyncio
    async def test_delete_transfer_of_other_user(self, session, session_factory, seeded):
        with pytest.raises(ForbiddenError):
            await TransferService(session, USER_ID).delete(10001)

        assert len(await fetch_legs(session_factory, 10001)) == 2


class TestPartialFailure:
    """A unit that fails after some of its writes leaves the committed ledger untouched."""

    @pytest.mark.asyncio
    async def test_failing_leg_on_update_keeps_old_legs(self, session, session_factory, seeded, monkeypatch):
        old_leg_ids = [leg.id for leg in await fetch_legs(session_factory, 10000)]
        break_leg_posting(monkeypatch, RuntimeError("connection lost"))

        with pytest.raises(RuntimeError):
            await TransferService(session, USER_ID).update(
                10000, regular_transfer(description="Transfer updated", amount=500)
            )

        legs = await fetch_legs(session_factory, 10000)
        assert_posted(10000, legs, "100.00")
        assert [leg.id for leg in legs] == old_leg_ids

        stored = await fetch_all(session_factory, select(Transfer).where(Transfer.id == 10000))
        assert (stored[0].description, stored[0].amount) == ("Transfer #1", Decimal("100.00"))

    @pytest.mark.asyncio
    async def test_failing_transfer_delete_keeps_legs(self, session, session_factory, seeded, monkeypatch):
        async def lost_connection(self, transfer_id):
            raise RuntimeError("connection lost")

        monkeypatch.setattr(TransferRepository, "delete", lost_connection)

        with pytest.raises(RuntimeError):
            await TransferService(session, USER_ID).delete(10000)

        assert len(await fetch_all(session_factory, select(Transfer).where(Transfer.id == 10000))) == 1
        assert_posted(10000, await fetch_legs(session_factory, 10000), "100.00")

    @pytest.mark.asyncio
    async def test_cancelled_posting_commits_nothing(self, session, session_factory, seeded, monkeypatch):
        break_leg_posting(monkeypatch, asyncio.CancelledError())

        with pytest.raises(asyncio.CancelledError):
            await TransferService(session, USER_ID).create(regular_transfer(description="cancelled"))

        assert await fetch_all(session_factory, select(Transfer).where(Transfer.description == "cancelled")) == []
        assert len(await fetch_all(session_factory, select(Transaction))) == 4


class TestCallerTransaction:
    """Services called while the caller already holds a transaction run in a SAVEPOINT."""

    @pytest.mark.asyncio
    async def test_caller_rollback_discards_posting(self, session, session_factory, seeded):
        await session.begin()
        result = await TransferService(session, USER_ID).create(regular_transfer(description="tentative"))
        assert len(result.transactions) == 2
        await session.rollback()

        assert await fetch_legs(session_factory, result.id) == []

    @pytest.mark.asyncio
    async def test_failed_posting_leaves_caller_transaction_usable(self, session, session_factory, seeded):
        await session.begin()
        service = TransferService(session, USER_ID)

        with pytest.raises(ForbiddenError):
            await service.create(regular_transfer(acc_ori_id=10002))
        kept = await service.create(regular_transfer(description="kept"))
        await session.commit()

        assert_posted(kept.id, await fetch_legs(session_factory, kept.id), "100.00")

import asyncio

import pytest

from finance_api.ui_state import ConfirmationPrompt, SheetState


def test_sheet_transitions() -> None:
    closed = SheetState()
    assert closed.is_open is False
    assert closed.target_id is None

    opened = closed.open("txn_1")
    assert opened == SheetState(is_open=True, target_id="txn_1")
    assert closed.is_open is False

    assert opened.close() == SheetState()


def test_sheet_state_is_serializable() -> None:
    state = SheetState().open("acc_1")

    assert state.to_dict() == {"is_open": True, "target_id": "acc_1"}
    assert SheetState.from_dict(state.to_dict()) == state
    assert SheetState.from_dict({"is_open": False, "target_id": "stale"}) == SheetState()


def test_confirmation_resolves_through_future() -> None:
    async def scenario():
        prompt = ConfirmationPrompt()
        assert prompt.state == ConfirmationPrompt.IDLE

        waiter = asyncio.ensure_future(prompt.ask())
        await asyncio.sleep(0)
        assert prompt.is_pending

        prompt.confirm()
        return prompt, await waiter

    prompt, answer = asyncio.run(scenario())

    assert answer is True
    assert prompt.state == ConfirmationPrompt.RESOLVED
    assert prompt.result is True


def test_confirmation_can_carry_a_selection_or_be_cancelled() -> None:
    async def scenario():
        prompt = ConfirmationPrompt()
        first = prompt.request()
        prompt.confirm("acc_42")
        second = prompt.request()
        prompt.cancel()
        return await first, await second

    assert asyncio.run(scenario()) == ("acc_42", False)


def test_confirmation_guards_invalid_transitions() -> None:
    async def scenario():
        prompt = ConfirmationPrompt()
        with pytest.raises(RuntimeError):
            prompt.confirm()
        prompt.request()
        with pytest.raises(RuntimeError):
            prompt.request()
        prompt.cancel()

    asyncio.run(scenario())

from __future__ import annotations

import pytest
from conftest import REPLY, FakeProber, ScriptedAsk

from pingstat.services.confirm import (
    RegisterPromptFlow,
    RegisterState,
    UnreachableHostFlow,
    UnreachableState,
    run_register_prompt,
    run_unreachable_flow,
)


@pytest.mark.parametrize(
    "answer, state",
    [
        ("y", RegisterState.CONFIRMED),
        (" YES ", RegisterState.CONFIRMED),
        ("n", RegisterState.REFUSED),
        ("No", RegisterState.REFUSED),
        ("maybe", RegisterState.AWAIT_ANSWER),
        ("", RegisterState.AWAIT_ANSWER),
    ],
)
def test_register_prompt_transitions(answer: str, state: RegisterState) -> None:
    assert RegisterPromptFlow("h.example").feed(answer) is state


def test_register_prompt_is_final_once_answered() -> None:
    flow = RegisterPromptFlow("h.example")
    flow.feed("n")
    assert flow.feed("y") is RegisterState.REFUSED


def test_unreachable_flow_invalid_input_reprompts() -> None:
    flow = UnreachableHostFlow("h.example")

    assert flow.feed("x") is UnreachableState.AWAIT_CHOICE
    assert flow.feed("") is UnreachableState.AWAIT_CHOICE
    assert flow.feed("c") is UnreachableState.AWAIT_ADDRESS
    assert flow.feed("   ") is UnreachableState.AWAIT_ADDRESS
    assert flow.feed("../../x") is UnreachableState.AWAIT_ADDRESS
    assert flow.error
    assert flow.feed("other.example") is UnreachableState.PROBING
    assert flow.candidate == "other.example"


def test_unreachable_flow_failed_replacement_loops_back() -> None:
    flow = UnreachableHostFlow("h.example")
    flow.feed("change")
    flow.feed("other.example")

    assert flow.probe_result(False) is UnreachableState.AWAIT_CHOICE
    assert "other.example" in flow.prompt()
    assert flow.feed("q") is UnreachableState.CANCELLED
    assert flow.done


def test_probe_result_outside_probing_is_an_error() -> None:
    with pytest.raises(RuntimeError):
        UnreachableHostFlow("h.example").probe_result(True)


def test_run_register_prompt_reprompts_until_answered() -> None:
    ask = ScriptedAsk(["perhaps", "yes"])

    assert run_register_prompt("h.example", ask=ask)
    assert len(ask.prompts) == 2


def test_run_register_prompt_eof_means_no() -> None:
    assert not run_register_prompt("h.example", ask=ScriptedAsk([]))


def test_run_unreachable_flow_accept_keeps_original() -> None:
    prober = FakeProber()

    assert run_unreachable_flow("h.example", prober=prober, ask=ScriptedAsk(["a"])) == "h.example"
    assert prober.calls == []


def test_run_unreachable_flow_replacement_succeeds_after_retry() -> None:
    prober = FakeProber({"good.example": REPLY})
    ask = ScriptedAsk(["c", "bad.example", "c", "good.example"])

    chosen = run_unreachable_flow("h.example", prober=prober, ask=ask)

    assert chosen == "good.example"
    assert prober.calls == [("bad.example", 1), ("good.example", 1)]


def test_run_unreachable_flow_reports_invalid_address() -> None:
    said: list[str] = []
    ask = ScriptedAsk(["c", "a/b"])

    assert run_unreachable_flow("h.example", prober=FakeProber(), ask=ask, say=said.append) is None
    assert len(said) == 1


def test_run_unreachable_flow_cancel_and_eof() -> None:
    assert run_unreachable_flow("h.example", prober=FakeProber(), ask=ScriptedAsk(["quit"])) is None
    assert run_unreachable_flow("h.example", prober=FakeProber(), ask=ScriptedAsk(["zzz"])) is None

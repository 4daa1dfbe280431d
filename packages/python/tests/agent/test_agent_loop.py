"""Tests for the agent loop with a scripted completion client (no real API)."""
import json
import pytest
from unittest.mock import AsyncMock, MagicMock

from agentry.agent.agent_loop import (
    ChatSession,
    create_chat,
    decode_arguments,
    EXHAUSTED_TEXT,
    NO_RESPONSE_TEXT,
    STATUS_ABORTED,
    STATUS_DONE,
    STATUS_EXHAUSTED,
)
from agentry.agent.approval import ApprovalGate, StaticApprovalGate
from agentry.agent.observer import ChatObserver, LoggingObserver
from agentry.agent.tool_registry import ToolRegistry, ToolSpec
from agentry.llm.errors import CompletionError
from agentry.llm.llm import parse_reply
from agentry.llm.types import ChatMessage, FunctionCall, Reply, ToolCall, Usage


class ScriptedClient:
    """Returns queued replies in order; the last reply repeats once the queue is down to one."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls = []

    async def complete(self, messages, tools=None):
        self.calls.append({"messages": list(messages), "tools": tools})
        reply = self.replies[0] if len(self.replies) == 1 else self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


def _final(text, usage=None):
    return Reply(message=ChatMessage(role="assistant", content=text), finish_reason="stop", usage=usage)


def _call(call_id, name, arguments):
    if not isinstance(arguments, str):
        arguments = json.dumps(arguments)
    return ToolCall(id=call_id, function=FunctionCall(name=name, arguments=arguments))


def _tool_reply(*calls, usage=None):
    return Reply(
        message=ChatMessage(role="assistant", content=None, tool_calls=list(calls)),
        finish_reason="tool_calls",
        usage=usage,
    )


def _spec(name, handler, properties=None, required=None):
    parameters = {"type": "object", "properties": properties or {}}
    if required:
        parameters["required"] = required
    return ToolSpec(name=name, description=f"{name} tool", parameters=parameters, handler=handler)


@pytest.fixture
def search_handler():
    return AsyncMock(return_value="Paris is the capital of France.")


@pytest.fixture
def write_handler():
    return AsyncMock(return_value="Wrote 2 characters to local/out.txt")


@pytest.fixture
def registry(search_handler, write_handler):
    return ToolRegistry([
        _spec("web_search", search_handler, {"query": {"type": "string"}}, ["query"]),
        _spec("write_file", write_handler, {"path": {"type": "string"}, "content": {"type": "string"}}, ["path", "content"]),
    ])


def _roles(session):
    return [m.role for m in session.conversation.messages]


@pytest.mark.asyncio
async def test_final_answer_in_one_round(registry, search_handler, write_handler):
    client = ScriptedClient(_final("The capital of France is Paris."))
    session = ChatSession(client, "You are helpful.", registry, max_iterations=5)

    answer = await session.chat("what is the capital of France")

    assert answer == "The capital of France is Paris."
    assert len(client.calls) == 1
    assert session.last_turn.status == STATUS_DONE
    assert session.last_turn.rounds == 1
    assert session.last_turn.tool_executions == 0
    search_handler.assert_not_called()
    write_handler.assert_not_called()
    assert _roles(session) == ["system", "user", "assistant"]


@pytest.mark.asyncio
async def test_tool_call_then_final_answer(registry, search_handler):
    client = ScriptedClient(
        _tool_reply(_call("call_1", "web_search", {"query": "X"})),
        _final("Here is what I found."),
    )
    session = ChatSession(client, "sys", registry, max_iterations=5)

    answer = await session.chat("search X")

    assert answer == "Here is what I found."
    assert _roles(session) == ["system", "user", "assistant", "tool", "assistant"]
    tool_msg = session.conversation.messages[3]
    assert tool_msg.tool_call_id == "call_1"
    assert tool_msg.content == "Paris is the capital of France."
    search_handler.assert_awaited_once()
    assert search_handler.call_args[0][1] == {"query": "X"}
    # The second model call saw the tool result
    assert client.calls[1]["messages"][-1].role == "tool"


@pytest.mark.asyncio
async def test_denied_write_never_calls_handler(registry, write_handler):
    client = ScriptedClient(
        _tool_reply(_call("call_w", "write_file", {"path": "local/out.txt", "content": "hi"})),
        _final("Okay, I did not write it."),
    )
    session = ChatSession(client, "sys", registry, approval_gate=StaticApprovalGate(False), auto_approve=False)

    await session.chat("write hi to local/out.txt")

    write_handler.assert_not_called()
    tool_msg = session.conversation.messages[3]
    assert tool_msg.role == "tool"
    assert tool_msg.tool_call_id == "call_w"
    assert "local/out.txt" in tool_msg.content
    assert tool_msg.content == "User denied write_file to: local/out.txt"


@pytest.mark.asyncio
async def test_approved_write_runs_handler(registry, write_handler):
    gate = MagicMock(spec=ApprovalGate)
    gate.approve.return_value = True
    client = ScriptedClient(
        _tool_reply(_call("call_w", "write_file", {"path": "local/out.txt", "content": "hi"})),
        _final("Done."),
    )
    session = ChatSession(client, "sys", registry, approval_gate=gate, auto_approve=False)

    await session.chat("write it")

    gate.approve.assert_called_once_with("write_file", {"path": "local/out.txt", "content": "hi"})
    write_handler.assert_awaited_once()


@pytest.mark.asyncio
async def test_read_only_tool_skips_approval(registry):
    gate = MagicMock(spec=ApprovalGate)
    client = ScriptedClient(_tool_reply(_call("c1", "web_search", {"query": "q"})), _final("ok"))
    session = ChatSession(client, "sys", registry, approval_gate=gate, auto_approve=False)

    await session.chat("search")

    gate.approve.assert_not_called()


@pytest.mark.asyncio
async def test_auto_approve_bypasses_gate(registry, write_handler):
    gate = MagicMock(spec=ApprovalGate)
    client = ScriptedClient(
        _tool_reply(_call("call_w", "write_file", {"path": "a.txt", "content": "x"})),
        _final("Done."),
    )
    session = ChatSession(client, "sys", registry, approval_gate=gate, auto_approve=True)

    await session.chat("write")

    gate.approve.assert_not_called()
    write_handler.assert_awaited_once()


@pytest.mark.asyncio
async def test_auto_approved_tools_subset(registry, write_handler):
    gate = MagicMock(spec=ApprovalGate)
    client = ScriptedClient(
        _tool_reply(_call("call_w", "write_file", {"path": "a.txt", "content": "x"})),
        _final("Done."),
    )
    session = ChatSession(
        client, "sys", registry, approval_gate=gate, auto_approve=False, auto_approved_tools={"write_file"}
    )

    await session.chat("write")

    gate.approve.assert_not_called()
    write_handler.assert_awaited_once()


@pytest.mark.asyncio
async def test_default_gate_refuses(registry, write_handler):
    client = ScriptedClient(
        _tool_reply(_call("call_w", "write_file", {"path": "a.txt", "content": "x"})),
        _final("Done."),
    )
    session = ChatSession(client, "sys", registry, auto_approve=False)

    await session.chat("write")

    write_handler.assert_not_called()


@pytest.mark.asyncio
async def test_exhaustion_stops_at_ceiling(registry, search_handler):
    client = ScriptedClient(_tool_reply(_call("c", "web_search", {"query": "again"})))
    session = ChatSession(client, "sys", registry, max_iterations=3)

    answer = await session.chat("loop forever")

    assert answer == EXHAUSTED_TEXT
    assert len(client.calls) == 3
    assert search_handler.await_count == 3
    assert session.last_turn.status == STATUS_EXHAUSTED
    assert session.last_turn.rounds == 3
    # Every attempted round is retained
    assert _roles(session) == ["system", "user"] + ["assistant", "tool"] * 3


@pytest.mark.asyncio
async def test_unknown_tool_is_recorded_not_raised(registry):
    client = ScriptedClient(
        _tool_reply(_call("c1", "nonexistent_tool", {})),
        _tool_reply(_call("c2", "nonexistent_tool", {})),
        _final("I could not use that tool."),
    )
    session = ChatSession(client, "sys", registry)

    answer = await session.chat("use a tool that does not exist")

    assert answer == "I could not use that tool."
    tool_messages = [m for m in session.conversation.messages if m.role == "tool"]
    assert [m.content for m in tool_messages] == ['Error: Unknown tool "nonexistent_tool"'] * 2
    assert [m.tool_call_id for m in tool_messages] == ["c1", "c2"]


@pytest.mark.asyncio
async def test_invalid_json_arguments_are_recorded(registry, search_handler):
    client = ScriptedClient(
        _tool_reply(_call("c1", "web_search", '{"query": ')),
        _final("Sorry."),
    )
    session = ChatSession(client, "sys", registry)

    await session.chat("search")

    search_handler.assert_not_called()
    tool_msg = session.conversation.messages[3]
    assert tool_msg.tool_call_id == "c1"
    assert tool_msg.content.startswith("Error: Invalid JSON arguments for web_search")


@pytest.mark.asyncio
async def test_every_tool_call_gets_one_result_in_order(registry, write_handler):
    client = ScriptedClient(
        _tool_reply(
            _call("a", "web_search", {"query": "one"}),
            _call("b", "nonexistent_tool", {}),
            _call("c", "write_file", {"path": "local/x.txt", "content": "x"}),
            _call("d", "web_search", "not json"),
        ),
        _final("done"),
    )
    session = ChatSession(client, "sys", registry, approval_gate=StaticApprovalGate(False), auto_approve=False)

    await session.chat("do several things")

    msgs = session.conversation.messages
    assert [m.tool_call_id for m in msgs[3:7]] == ["a", "b", "c", "d"]
    assert all(m.role == "tool" for m in msgs[3:7])
    assert msgs[7].role == "assistant"
    write_handler.assert_not_called()


@pytest.mark.asyncio
async def test_failing_handler_becomes_text():
    handler = AsyncMock(side_effect=RuntimeError("disk on fire"))
    registry = ToolRegistry([_spec("read_file", handler, {"path": {"type": "string"}})])
    client = ScriptedClient(_tool_reply(_call("c1", "read_file", {"path": "x"})), _final("ok"))
    session = ChatSession(client, "sys", registry)

    answer = await session.chat("read x")

    assert answer == "ok"
    assert session.conversation.messages[3].content == "Error: read_file failed: disk on fire"


@pytest.mark.asyncio
async def test_completion_error_propagates_and_keeps_conversation(registry):
    client = ScriptedClient(CompletionError("API error (500): boom", status_code=500), _final("recovered"))
    session = ChatSession(client, "sys", registry)

    with pytest.raises(CompletionError):
        await session.chat("first")

    assert session.last_turn.status == STATUS_ABORTED
    assert _roles(session) == ["system", "user"]

    answer = await session.chat("second")
    assert answer == "recovered"
    assert _roles(session) == ["system", "user", "user", "assistant"]


@pytest.mark.asyncio
async def test_empty_content_falls_back(registry):
    client = ScriptedClient(_final(""))
    session = ChatSession(client, "sys", registry)

    assert await session.chat("hello") == NO_RESPONSE_TEXT


@pytest.mark.asyncio
async def test_usage_accumulates_within_turn_and_resets_between_turns(registry):
    client = ScriptedClient(
        _tool_reply(
            _call("c1", "web_search", {"query": "q"}),
            usage=Usage(prompt_tokens=100, completion_tokens=10, prompt_cache_hit_tokens=50),
        ),
        _final("a", usage=Usage(prompt_tokens=200, completion_tokens=20, prompt_cache_hit_tokens=150)),
        _final("b"),
    )
    session = ChatSession(client, "sys", registry)

    await session.chat("one")
    totals = session.last_turn.usage
    assert totals.input_tokens == 300
    assert totals.output_tokens == 30
    assert totals.cached_tokens == 200
    assert totals.cache_rate == pytest.approx(200 / 300)

    # Second turn: reply without usage
    await session.chat("two")
    assert session.last_turn.usage.input_tokens == 0
    assert session.last_turn.usage.cache_rate == 0.0


@pytest.mark.asyncio
async def test_single_system_message_across_turns(registry):
    client = ScriptedClient(
        _tool_reply(_call("c1", "web_search", {"query": "q"})),
        _final("a"),
        _final("b"),
    )
    session = ChatSession(client, "sys", registry)

    await session.chat("one")
    await session.chat("two")

    roles = _roles(session)
    assert roles.count("system") == 1
    assert roles[0] == "system"
    for call in client.calls:
        assert [m.role for m in call["messages"]].count("system") == 1


@pytest.mark.asyncio
async def test_client_receives_session_declarations(registry):
    client = ScriptedClient(_final("ok"))
    session = ChatSession(client, "sys", registry)

    await session.chat("hi")

    names = [t["function"]["name"] for t in client.calls[0]["tools"]]
    assert names == ["web_search", "write_file"]


@pytest.mark.asyncio
async def test_tool_outside_session_subset_is_unknown(registry, write_handler):
    client = ScriptedClient(
        _tool_reply(_call("c1", "write_file", {"path": "a", "content": "b"})),
        _final("ok"),
    )
    session = ChatSession(client, "sys", registry.subset(["web_search"]), auto_approve=True)

    await session.chat("write")

    write_handler.assert_not_called()
    assert session.conversation.messages[3].content == 'Error: Unknown tool "write_file"'


@pytest.mark.asyncio
async def test_observer_sees_round_and_tool_events(registry):
    observer = MagicMock(spec=ChatObserver)
    client = ScriptedClient(
        _tool_reply(_call("c1", "web_search", {"query": "q"}), usage=Usage(prompt_tokens=10, completion_tokens=1)),
        _final("ok"),
    )
    session = ChatSession(client, "sys", registry, observer=observer)

    await session.chat("hi")

    assert [c.args[0] for c in observer.on_round_start.call_args_list] == [1, 2]
    observer.on_tool_start.assert_called_once_with("web_search", {"query": "q"})
    observer.on_tool_end.assert_called_once()
    observer.on_usage.assert_called_once()
    observer.on_done.assert_called_once()
    observer.on_exhausted.assert_not_called()


@pytest.mark.asyncio
async def test_create_chat_returns_bound_chat(registry):
    client = ScriptedClient(_final("hello back"))
    chat = create_chat(client, "sys", registry, max_iterations=2)

    assert await chat("hello") == "hello back"


def test_max_iterations_must_be_positive(registry):
    with pytest.raises(ValueError):
        ChatSession(ScriptedClient(_final("x")), "sys", registry, max_iterations=0)


def test_decode_arguments():
    assert decode_arguments('{"query": "X"}') == {"query": "X"}
    assert decode_arguments("") == {}
    assert decode_arguments(None) == {}
    assert decode_arguments({"a": 1}) == {"a": 1}
    with pytest.raises(ValueError):
        decode_arguments("{broken")
    with pytest.raises(ValueError):
        decode_arguments("[1, 2]")


def _parsed_tool_reply(arguments):
    return parse_reply({
        "choices": [{
            "message": {
                "role": "assistant",
                "content": None,
                "tool_calls": [{"id": "c1", "type": "function", "function": {"name": "web_search", "arguments": arguments}}],
            },
            "finish_reason": "tool_calls",
        }],
    })


@pytest.mark.asyncio
async def test_null_arguments_become_tool_error_and_loop_continues(registry, search_handler):
    client = ScriptedClient(_parsed_tool_reply(None), _final("Sorry, let me retry."))
    session = ChatSession(client, "sys", registry, max_iterations=5)

    answer = await session.chat("search something")

    assert answer == "Sorry, let me retry."
    assert len(client.calls) == 2
    assert _roles(session) == ["system", "user", "assistant", "tool", "assistant"]
    tool_msg = session.conversation.messages[3]
    assert tool_msg.tool_call_id == "c1"
    assert tool_msg.content.startswith("Error: Invalid arguments for web_search")
    search_handler.assert_not_called()


@pytest.mark.asyncio
async def test_object_arguments_are_dispatched(registry, search_handler):
    client = ScriptedClient(_parsed_tool_reply({"query": "X"}), _final("done"))
    session = ChatSession(client, "sys", registry, max_iterations=5)

    assert await session.chat("search X") == "done"

    search_handler.assert_called_once()
    assert search_handler.call_args[0][1] == {"query": "X"}
    # Re-sent to the endpoint as JSON text
    assistant = client.calls[1]["messages"][2].to_api()
    assert assistant["tool_calls"][0]["function"]["arguments"] == '{"query": "X"}'


@pytest.mark.asyncio
async def test_default_observer_logs_events(registry, caplog):
    client = ScriptedClient(_tool_reply(_call("c1", "web_search", {"query": "q"})), _final("ok"))
    session = ChatSession(client, "sys", registry, max_iterations=5)
    assert isinstance(session.observer, LoggingObserver)

    with caplog.at_level("INFO", logger="agentry.agent.observer"):
        await session.chat("go")

    assert "Tool web_search called" in caplog.text
    assert "Done in 2 rounds" in caplog.text


def test_gated_tools_default_to_registry_side_effects(registry):
    session = ChatSession(ScriptedClient(_final("x")), "sys", registry)
    assert session.approval_tools == frozenset({"write_file"})


@pytest.mark.asyncio
async def test_create_chat_reads_iteration_ceiling_from_env(registry, monkeypatch):
    monkeypatch.setenv("AGENTRY_MAX_ITERATIONS", "2")
    client = ScriptedClient(_tool_reply(_call("c1", "web_search", {"query": "q"})))
    chat = create_chat(client, "sys", registry)

    assert await chat("loop forever") == EXHAUSTED_TEXT
    assert len(client.calls) == 2

"""
Tests for the chat completions client, using httpx.MockTransport.
"""

import json

import httpx
import pytest

from tavola_shared.chat.llm_client import ChatModelClient, ChatServiceError, ModelReply, ToolCall

TOOLS = [{"type": "function", "function": {"name": "lookup_menu", "parameters": {}}}]
MESSAGES = [{"role": "user", "content": "Hallo"}]


def _client(handler, api_key="sk-test"):
    return ChatModelClient(
        "https://llm.test/", api_key, model="gpt-test", transport=httpx.MockTransport(handler)
    )


def _completion(message):
    return httpx.Response(200, json={"choices": [{"index": 0, "message": message}]})


class TestComplete:
    def test_sends_conversation_and_tools(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return _completion({"role": "assistant", "content": "Buongiorno!"})

        reply = _client(handler).complete(MESSAGES, TOOLS)

        assert reply == ModelReply(content="Buongiorno!", tool_calls=[])
        assert seen["url"] == "https://llm.test/v1/chat/completions"
        assert seen["auth"] == "Bearer sk-test"
        assert seen["body"]["model"] == "gpt-test"
        assert seen["body"]["messages"] == MESSAGES
        assert seen["body"]["tools"] == TOOLS
        assert seen["body"]["temperature"] == 0.7

    def test_parses_tool_calls(self):
        def handler(request):
            return _completion(
                {
                    "role": "assistant",
                    "content": None,
                    "tool_calls": [
                        {
                            "id": "call_abc",
                            "type": "function",
                            "function": {"name": "lookup_menu", "arguments": '{"category": "Pizza"}'},
                        },
                        {"id": "call_def", "type": "function", "function": {"name": "get_location_info"}},
                    ],
                }
            )

        reply = _client(handler).complete(MESSAGES, TOOLS)

        assert reply.content is None
        assert reply.tool_calls == [
            ToolCall(id="call_abc", name="lookup_menu", arguments='{"category": "Pizza"}'),
            ToolCall(id="call_def", name="get_location_info", arguments="{}"),
        ]
        assert reply.as_message()["tool_calls"][0] == {
            "id": "call_abc",
            "type": "function",
            "function": {"name": "lookup_menu", "arguments": '{"category": "Pizza"}'},
        }

    def test_plain_reply_message_has_no_tool_calls_key(self):
        assert ModelReply(content="Hoi").as_message() == {"role": "assistant", "content": "Hoi"}


class TestFailures:
    def test_missing_api_key(self):
        def handler(request):
            raise AssertionError("request sent without credentials")

        with pytest.raises(ChatServiceError) as exc:
            _client(handler, api_key="").complete(MESSAGES, TOOLS)
        assert exc.value.code == "CHAT_MISCONFIGURED"

    @pytest.mark.parametrize(
        "status,code",
        [(401, "CHAT_MISCONFIGURED"), (403, "CHAT_MISCONFIGURED"), (429, "CHAT_FAILED"), (500, "CHAT_FAILED")],
    )
    def test_http_errors(self, status, code):
        client = _client(lambda request: httpx.Response(status, json={"error": {"message": "nope"}}))

        with pytest.raises(ChatServiceError) as exc:
            client.complete(MESSAGES, TOOLS)
        assert exc.value.code == code

    def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(ChatServiceError) as exc:
            _client(handler).complete(MESSAGES, TOOLS)
        assert exc.value.code == "CHAT_UPSTREAM_TIMEOUT"
        assert exc.value.message == "Chat service timed out"

    def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(ChatServiceError) as exc:
            _client(handler).complete(MESSAGES, TOOLS)
        assert exc.value.code == "CHAT_FAILED"

    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(200, content=b"<html>gateway</html>"),
            httpx.Response(200, json={"choices": []}),
            httpx.Response(200, json={"choices": [{"message": {"tool_calls": [{"id": "x"}]}}]}),
        ],
    )
    def test_malformed_responses(self, response):
        with pytest.raises(ChatServiceError) as exc:
            _client(lambda request: response).complete(MESSAGES, TOOLS)
        assert exc.value.code == "CHAT_FAILED"

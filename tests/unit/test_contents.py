"""Content mapping tests: Messages turns → Gemini contents."""

from __future__ import annotations

import pytest

from msgbridge.providers.gemini import build_contents

pytestmark = pytest.mark.unit


def test_roles_map_assistant_to_model_and_everything_else_to_user() -> None:
    contents, _ = build_contents(
        [
            {"role": "user", "content": "hi"},
            {"role": "assistant", "content": "hello"},
            {"role": "tool", "content": "odd"},
        ]
    )

    assert [turn["role"] for turn in contents] == ["user", "model", "user"]


def test_text_is_trimmed_and_empty_turns_are_dropped() -> None:
    contents, _ = build_contents(
        [
            {"role": "user", "content": "  padded  "},
            {"role": "assistant", "content": "   "},
            {"role": "user", "content": [{"type": "text", "text": ""}]},
        ]
    )

    assert contents == [{"role": "user", "parts": [{"text": "padded"}]}]


def test_base64_images_become_inline_data_and_url_images_are_skipped() -> None:
    contents, _ = build_contents(
        [
            {
                "role": "user",
                "content": [
                    {
                        "type": "image",
                        "source": {"type": "base64", "media_type": "image/png", "data": "iVBO"},
                    },
                    {"type": "image", "source": {"type": "url", "url": "https://x/y.png"}},
                    {"type": "text", "text": "What is this?"},
                ],
            }
        ]
    )

    assert contents[0]["parts"] == [
        {"inlineData": {"mimeType": "image/png", "data": "iVBO"}},
        {"text": "What is this?"},
    ]


def test_tool_use_and_result_are_correlated_by_id() -> None:
    contents, correlation = build_contents(
        [
            {
                "role": "assistant",
                "content": [
                    {
                        "type": "tool_use",
                        "id": "toolu_1",
                        "name": "get_weather",
                        "input": {"city": "Paris"},
                    }
                ],
            },
            {
                "role": "user",
                "content": [
                    {"type": "tool_result", "tool_use_id": "toolu_1", "content": "Sunny"}
                ],
            },
        ]
    )

    assert correlation == {"toolu_1": "get_weather"}
    assert contents == [
        {
            "role": "model",
            "parts": [{"functionCall": {"name": "get_weather", "args": {"city": "Paris"}}}],
        },
        {
            "role": "user",
            "parts": [
                {"functionResponse": {"name": "get_weather", "response": {"content": "Sunny"}}}
            ],
        },
    ]


def test_tool_result_with_unknown_id_is_dropped() -> None:
    contents, correlation = build_contents(
        [
            {
                "role": "user",
                "content": [
                    {"type": "tool_result", "tool_use_id": "toolu_missing", "content": "x"},
                    {"type": "text", "text": "continue"},
                ],
            }
        ]
    )

    assert correlation == {}
    assert contents == [{"role": "user", "parts": [{"text": "continue"}]}]


def test_tool_result_cannot_resolve_a_later_call() -> None:
    contents, _ = build_contents(
        [
            {
                "role": "user",
                "content": [{"type": "tool_result", "tool_use_id": "toolu_1", "content": "early"}],
            },
            {
                "role": "assistant",
                "content": [{"type": "tool_use", "id": "toolu_1", "name": "lookup", "input": {}}],
            },
        ]
    )

    assert contents == [
        {"role": "model", "parts": [{"functionCall": {"name": "lookup", "args": {}}}]}
    ]


def test_error_results_set_the_error_flag_only_when_marked() -> None:
    history = [
        {
            "role": "assistant",
            "content": [
                {"type": "tool_use", "id": "a", "name": "one", "input": {}},
                {"type": "tool_use", "id": "b", "name": "two", "input": {}},
            ],
        },
        {
            "role": "user",
            "content": [
                {"type": "tool_result", "tool_use_id": "a", "content": "boom", "is_error": True},
                {"type": "tool_result", "tool_use_id": "b", "is_error": False},
            ],
        },
    ]

    contents, _ = build_contents(history)

    responses = [part["functionResponse"] for part in contents[1]["parts"]]
    assert responses == [
        {"name": "one", "response": {"error": True, "content": "boom"}},
        {"name": "two", "response": {}},
    ]


def test_correlation_table_is_rebuilt_per_call() -> None:
    build_contents(
        [{"role": "assistant", "content": [{"type": "tool_use", "id": "x", "name": "t"}]}]
    )

    contents, correlation = build_contents(
        [{"role": "user", "content": [{"type": "tool_result", "tool_use_id": "x"}]}]
    )

    assert correlation == {}
    assert contents == []


@pytest.mark.parametrize("messages", [None, "hello", {"role": "user"}, [None, 3]])
def test_malformed_message_lists_produce_no_contents(messages: object) -> None:
    assert build_contents(messages) == ([], {})

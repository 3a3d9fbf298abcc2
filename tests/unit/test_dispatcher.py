"""Tests for the tool dispatcher envelopes."""

import orjson
import pytest

from component_catalog.catalog.models import Snapshot
from component_catalog.catalog.source import StaticSource
from component_catalog.mcp.protocol import ToolDispatcher, to_tool_result
from component_catalog.mcp.tools import TOOL_DEFINITIONS


# ============================================================================
# Discovery
# ============================================================================

def test_list_tools(dispatcher):
    tools = dispatcher.list_tools()

    assert [t["name"] for t in tools] == [
        "search_components",
        "get_component",
        "list_categories",
        "browse_category",
        "get_random_component",
    ]
    assert all(t["inputSchema"]["type"] == "object" for t in tools)
    assert tools[0]["inputSchema"]["required"] == ["query"]


def test_list_tools_returns_copies(dispatcher):
    dispatcher.list_tools()[0]["name"] = "changed"

    assert TOOL_DEFINITIONS[0]["name"] == "search_components"


def test_server_info(dispatcher):
    info = dispatcher.server_info()

    assert info["version"] == "2.0.0"
    assert info["capabilities"] == {"tools": {}}


# ============================================================================
# Successful calls
# ============================================================================

@pytest.mark.asyncio
async def test_search_envelope(dispatcher):
    envelope = await dispatcher.call_tool(
        "search_components", {"query": "button", "limit": 1}, client_id="c1"
    )

    assert envelope["success"] is True
    data = envelope["data"]
    assert len(data["components"]) == 1
    assert "fullCode" not in data["components"][0]
    assert data["pagination"]["total"] == 2
    assert data["pagination"]["hasMore"] is True

    metadata = envelope["metadata"]
    assert metadata["requestId"].startswith("req_")
    assert metadata["toolName"] == "search_components"
    assert metadata["query"] == "button"
    assert metadata["filters"] == {"limit": 1}
    assert metadata["resultCount"] == 1
    assert metadata["cached"] is False
    assert metadata["executionTime"] >= 0


@pytest.mark.asyncio
async def test_repeated_search_is_cached(dispatcher):
    await dispatcher.call_tool("search_components", {"query": "card"})
    envelope = await dispatcher.call_tool("search_components", {"query": "card"})

    assert envelope["metadata"]["cached"] is True


@pytest.mark.asyncio
async def test_get_component(dispatcher):
    envelope = await dispatcher.call_tool("get_component", {"id": "glass-card-cards"})

    assert envelope["success"] is True
    assert envelope["data"]["name"] == "Glass Card"
    assert envelope["metadata"]["hasFullCode"] is False
    assert envelope["metadata"]["lastUpdated"].startswith("2024-02-15")


@pytest.mark.asyncio
async def test_list_categories(dispatcher):
    envelope = await dispatcher.call_tool("list_categories")

    assert [c["id"] for c in envelope["data"]] == ["animations", "buttons", "cards"]
    assert envelope["data"][0]["componentCount"] == 4
    assert envelope["metadata"]["totalCategories"] == 3
    assert envelope["metadata"]["totalComponents"] == 7


@pytest.mark.asyncio
async def test_browse_category(dispatcher):
    envelope = await dispatcher.call_tool(
        "browse_category", {"categoryId": "animations", "limit": 3}
    )

    assert envelope["success"] is True
    assert envelope["data"]["pagination"]["totalPages"] == 2
    assert envelope["metadata"]["categoryId"] == "animations"
    assert envelope["metadata"]["resultCount"] == 3


@pytest.mark.asyncio
async def test_browse_past_the_end_is_not_an_error(dispatcher):
    envelope = await dispatcher.call_tool(
        "browse_category", {"categoryId": "cards", "offset": 5}
    )

    assert envelope["success"] is True
    assert envelope["data"]["components"] == []


@pytest.mark.asyncio
async def test_huge_offset_is_an_empty_page(dispatcher):
    huge = 10**400

    browsed = await dispatcher.call_tool(
        "browse_category", {"categoryId": "animations", "offset": huge}
    )
    searched = await dispatcher.call_tool("search_components", {"query": "card", "offset": huge})

    for envelope in (browsed, searched):
        assert envelope["success"] is True
        assert envelope["data"]["components"] == []
        assert envelope["data"]["pagination"]["hasMore"] is False
        orjson.loads(to_tool_result(envelope)["content"][0]["text"])
    assert searched["metadata"]["filters"]["offset"] == 2**63 - 1


@pytest.mark.asyncio
async def test_huge_limit_error_serializes(dispatcher):
    envelope = await dispatcher.call_tool("search_components", {"query": "card", "limit": 10**400})

    assert envelope["success"] is False
    assert envelope["metadata"]["errorCode"] == "VALIDATION_ERROR"
    text = to_tool_result(envelope)["content"][0]["text"]
    assert orjson.loads(text)["metadata"]["details"]["errors"][0]["value"] == str(10**400)


@pytest.mark.asyncio
async def test_random_component(dispatcher):
    envelope = await dispatcher.call_tool("get_random_component", {})

    assert envelope["success"] is True
    assert envelope["metadata"]["randomSelection"] is True


# ============================================================================
# Outcome errors
# ============================================================================

@pytest.mark.asyncio
async def test_component_not_found(dispatcher):
    envelope = await dispatcher.call_tool("get_component", {"id": "missing-thing"})

    assert envelope["success"] is False
    assert envelope["error"] == "Component with ID 'missing-thing' not found"
    assert envelope["metadata"]["errorCode"] == "COMPONENT_NOT_FOUND"
    assert envelope["metadata"]["searchedId"] == "missing-thing"
    assert len(envelope["metadata"]["suggestions"]) == 2
    assert dispatcher.error_count == 0


@pytest.mark.asyncio
async def test_empty_category(dispatcher):
    envelope = await dispatcher.call_tool("browse_category", {"categoryId": "forms"})

    assert envelope["success"] is False
    assert envelope["error"] == "Category 'forms' not found or contains no components"
    assert envelope["metadata"]["errorCode"] == "INVALID_CATEGORY"


@pytest.mark.asyncio
async def test_random_without_components(make_service):
    dispatcher = ToolDispatcher(make_service(StaticSource(Snapshot.build([], source="empty"))))

    envelope = await dispatcher.call_tool("get_random_component")

    assert envelope["success"] is False
    assert envelope["error"] == "No components available for random selection"
    assert "errorCode" not in envelope["metadata"]


# ============================================================================
# Failures
# ============================================================================

@pytest.mark.asyncio
async def test_unknown_tool(dispatcher):
    envelope = await dispatcher.call_tool("delete_everything", {})

    metadata = envelope["metadata"]
    assert envelope["success"] is False
    assert envelope["error"] == "Unknown tool: delete_everything"
    assert metadata["errorCode"] == "METHOD_NOT_FOUND"
    assert metadata["protocolCode"] == -32601
    assert "search_components" in metadata["availableTools"]
    assert dispatcher.error_count == 1


@pytest.mark.asyncio
async def test_schema_violation(dispatcher):
    envelope = await dispatcher.call_tool("search_components", {"limit": 100})

    metadata = envelope["metadata"]
    assert envelope["success"] is False
    assert envelope["error"].startswith("Validation failed: ")
    assert metadata["errorCode"] == "VALIDATION_ERROR"
    assert metadata["protocolCode"] == -32602
    assert metadata["retryable"] is False
    codes = {e["field"]: e["code"] for e in metadata["details"]["errors"]}
    assert codes == {"query": "MISSING_REQUIRED", "limit": "TOO_LARGE"}


@pytest.mark.asyncio
async def test_bad_component_id_format(dispatcher):
    envelope = await dispatcher.call_tool("get_component", {"id": "no spaces"})

    assert envelope["success"] is False
    assert envelope["metadata"]["errorCode"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_arguments_must_be_object(dispatcher):
    envelope = await dispatcher.call_tool("list_categories", ["oops"])

    assert envelope["metadata"]["errorCode"] == "VALIDATION_ERROR"
    assert envelope["metadata"]["details"]["errors"][0]["field"] == "root"


@pytest.mark.asyncio
async def test_unknown_argument_is_only_a_warning(dispatcher):
    envelope = await dispatcher.call_tool("list_categories", {"verbose": True})

    assert envelope["success"] is True


@pytest.mark.asyncio
async def test_rate_limited(make_service, snapshot):
    service = make_service(StaticSource(snapshot), rate_limit_max_requests=1)
    dispatcher = ToolDispatcher(service)

    await dispatcher.call_tool("list_categories", client_id="c1")
    envelope = await dispatcher.call_tool("list_categories", client_id="c1")

    metadata = envelope["metadata"]
    assert envelope["success"] is False
    assert metadata["errorCode"] == "RATE_LIMIT_EXCEEDED"
    assert metadata["retryable"] is True
    assert metadata["retryAfter"] == 60


@pytest.mark.asyncio
async def test_rate_limit_applies_before_tool_lookup(make_service, snapshot):
    service = make_service(StaticSource(snapshot), rate_limit_max_requests=1)
    dispatcher = ToolDispatcher(service)

    await dispatcher.call_tool("list_categories")
    envelope = await dispatcher.call_tool("no_such_tool")

    assert envelope["metadata"]["errorCode"] == "RATE_LIMIT_EXCEEDED"


@pytest.mark.asyncio
async def test_unexpected_exception_is_hidden(dispatcher, monkeypatch):
    async def explode(*args, **kwargs):
        raise RuntimeError("secret database path /var/db")

    monkeypatch.setattr(dispatcher.service, "list_categories", explode)

    envelope = await dispatcher.call_tool("list_categories")

    assert envelope["error"] == "Internal server error"
    assert envelope["metadata"]["errorCode"] == "INTERNAL_ERROR"
    assert envelope["metadata"]["protocolCode"] == -32603
    assert "secret" not in orjson.dumps(envelope).decode()


@pytest.mark.asyncio
async def test_server_fault_message_is_hidden(make_service, scripted_source, source_failure):
    service = make_service(
        scripted_source(source_failure("db at 10.0.0.5 down")), use_builtin_fallback=False
    )
    dispatcher = ToolDispatcher(service)

    envelope = await dispatcher.call_tool("list_categories")

    assert envelope["error"] == "Internal server error"
    assert envelope["metadata"]["errorCode"] == "CACHE_ERROR"
    assert envelope["metadata"]["severity"] == "critical"
    assert "details" not in envelope["metadata"]


# ============================================================================
# Health and result wrapping
# ============================================================================

@pytest.mark.asyncio
async def test_health_counts_requests_and_errors(dispatcher):
    await dispatcher.call_tool("list_categories")
    await dispatcher.call_tool("search_components", {})

    health = dispatcher.health()

    assert health["status"] == "degraded"
    assert health["metrics"]["requestCount"] == 2
    assert health["metrics"]["errorCount"] == 1
    assert health["checks"][0]["status"] == "pass"


@pytest.mark.asyncio
async def test_to_tool_result(dispatcher):
    envelope = await dispatcher.call_tool("get_component", {"id": "glass-card-cards"})

    result = to_tool_result(envelope)

    assert result["isError"] is False
    assert result["content"][0]["type"] == "text"
    assert orjson.loads(result["content"][0]["text"]) == envelope


def test_to_tool_result_marks_failures():
    result = to_tool_result({"success": False, "error": "nope", "metadata": {}})

    assert result["isError"] is True
    assert "\n  " in result["content"][0]["text"]

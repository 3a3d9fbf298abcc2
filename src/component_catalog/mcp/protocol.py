"""
Tool Protocol Dispatcher
Routes tool calls to the catalog service and shapes response envelopes
"""

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Mapping, Optional

import orjson

from component_catalog.catalog.models import Page
from component_catalog.catalog.service import CatalogDataService
from component_catalog.core.errors import (
    INTERNAL_ERROR_MESSAGE,
    CatalogError,
    ErrorKind,
    ProtocolCode,
)
from component_catalog.core.id import new_request_id
from component_catalog.core.logging_config import LogContext, get_logger
from component_catalog.core.schema import SchemaValidator
from component_catalog.monitoring.health import build_health_report
from .tools import SEARCH_FILTER_KEYS, TOOL_DEFINITIONS, TOOL_NODES

logger = get_logger(__name__)

COMPONENT_SUGGESTIONS = [
    "Check component ID spelling",
    "Use search_components to find available components",
]
CATEGORY_SUGGESTIONS = [
    "Use list_categories to see available categories",
    "Check category ID spelling",
]
RANDOM_SUGGESTIONS = [
    "Check if data service is properly initialized",
    "Verify component data is loaded",
]


@dataclass
class ToolOutcome:
    """What a tool handler produced, before envelope shaping."""

    data: Any = None
    cached: bool = False
    metadata: dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None

    @property
    def success(self) -> bool:
        return self.error is None


Handler = Callable[[dict[str, Any]], Awaitable[ToolOutcome]]


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def _page_data(page: Page) -> dict[str, Any]:
    return {
        "components": [c.to_dict(include_code=False) for c in page.components],
        "pagination": page.pagination(),
    }


class ToolDispatcher:
    """
    Handles tool calls for the catalog.

    Every call gets a request id, passes admission control and argument
    validation, then runs its handler. Failures become error envelopes;
    nothing raises out of call_tool.
    """

    def __init__(
        self,
        service: CatalogDataService,
        validator: Optional[SchemaValidator] = None,
    ) -> None:
        self.service = service
        self.validator = validator or SchemaValidator()
        self.started_at = time.time()
        self.request_count = 0
        self.error_count = 0

        self._handlers: dict[str, Handler] = {
            "search_components": self._handle_search_components,
            "get_component": self._handle_get_component,
            "list_categories": self._handle_list_categories,
            "browse_category": self._handle_browse_category,
            "get_random_component": self._handle_get_random_component,
        }

    def server_info(self) -> dict[str, Any]:
        settings = self.service.settings
        return {
            "name": settings.server_name,
            "version": settings.server_version,
            "capabilities": {"tools": {}},
        }

    def list_tools(self) -> list[dict[str, Any]]:
        return [dict(tool) for tool in TOOL_DEFINITIONS]

    async def call_tool(
        self,
        name: str,
        arguments: Optional[Mapping[str, Any]] = None,
        client_id: Optional[str] = None,
    ) -> dict[str, Any]:
        """
        Run one tool call.

        Args:
            name: Tool name
            arguments: Raw tool arguments
            client_id: Caller identity for rate limiting

        Returns:
            Response envelope with ``success``, ``data`` or ``error``, and ``metadata``
        """
        request_id = new_request_id()
        started = time.perf_counter()
        self.request_count += 1

        with LogContext(request_id=request_id, tool_name=name, client_id=client_id):
            logger.info("tool_call_started")
            try:
                self.service.check_rate_limit(client_id)

                handler = self._handlers.get(name)
                if handler is None:
                    return self._method_not_found(name, request_id, started)

                args = self._validate_arguments(name, arguments)
                outcome = await handler(args)
            except CatalogError as e:
                return self._error_envelope(e, name, request_id, started)
            except Exception:
                logger.exception("tool_call_crashed")
                return self._internal_error_envelope(name, request_id, started)

            envelope = self._envelope(outcome, name, request_id, started)
            logger.info(
                "tool_call_completed",
                success=outcome.success,
                cached=outcome.cached,
                execution_time_ms=envelope["metadata"]["executionTime"],
            )
            return envelope

    def health(self) -> dict[str, Any]:
        report = build_health_report(
            version=self.service.settings.server_version,
            started_at=self.started_at,
            request_count=self.request_count,
            error_count=self.error_count,
            metrics_summary=self.service.metrics_summary(),
            data_status=self.service.health_status(),
        )
        return report.to_dict()

    # ------------------------------------------------------------------
    # Argument validation
    # ------------------------------------------------------------------

    def _validate_arguments(
        self, name: str, arguments: Optional[Mapping[str, Any]]
    ) -> dict[str, Any]:
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, Mapping):
            raise CatalogError(
                ErrorKind.VALIDATION_ERROR,
                "Tool arguments must be an object",
                details={
                    "errors": [
                        {
                            "field": "root",
                            "message": "Arguments must be an object",
                            "code": "INVALID_TYPE",
                        }
                    ]
                },
            )

        args = dict(arguments)
        report = self.validator.validate(args, TOOL_NODES[name])
        for warning in report.warnings:
            logger.warning("tool_argument_warning", field=warning.field, message=warning.message)

        if not report.valid:
            summary = ", ".join(f"{issue.field}: {issue.message}" for issue in report.errors)
            raise CatalogError(
                ErrorKind.VALIDATION_ERROR,
                f"Validation failed: {summary}",
                details={"errors": [issue.to_dict() for issue in report.errors]},
            )
        return args

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    async def _handle_search_components(self, args: dict[str, Any]) -> ToolOutcome:
        query = args.get("query")
        filters = {key: args[key] for key in SEARCH_FILTER_KEYS if key in args}
        page = await self.service.search_components(query, filters)
        for key in ("limit", "offset"):
            if key in filters:
                filters[key] = getattr(page, key)
        return ToolOutcome(
            data=_page_data(page),
            cached=page.cached,
            metadata={"query": query, "filters": filters, "resultCount": len(page.components)},
        )

    async def _handle_get_component(self, args: dict[str, Any]) -> ToolOutcome:
        component_id = args.get("id")
        lookup = await self.service.get_component(component_id)
        if lookup.component is None:
            return ToolOutcome(
                error=f"Component with ID '{component_id}' not found",
                error_kind=ErrorKind.COMPONENT_NOT_FOUND,
                metadata={"searchedId": component_id, "suggestions": COMPONENT_SUGGESTIONS},
            )

        component = lookup.component
        return ToolOutcome(
            data=component.to_dict(include_code=True),
            cached=lookup.cached,
            metadata={
                "hasFullCode": bool(component.full_code),
                "lastUpdated": component.last_updated.isoformat(),
            },
        )

    async def _handle_list_categories(self, args: dict[str, Any]) -> ToolOutcome:
        listing = await self.service.list_categories()
        return ToolOutcome(
            data=[category.to_dict() for category in listing.categories],
            cached=listing.cached,
            metadata={
                "totalCategories": len(listing.categories),
                "totalComponents": listing.total_components,
            },
        )

    async def _handle_browse_category(self, args: dict[str, Any]) -> ToolOutcome:
        category_id = args.get("categoryId")
        page = await self.service.browse_category(
            category_id, args.get("limit"), args.get("offset")
        )
        if not page.components and page.offset == 0:
            return ToolOutcome(
                error=f"Category '{category_id}' not found or contains no components",
                error_kind=ErrorKind.INVALID_CATEGORY,
                metadata={"categoryId": category_id, "suggestions": CATEGORY_SUGGESTIONS},
            )

        return ToolOutcome(
            data=_page_data(page),
            cached=page.cached,
            metadata={"categoryId": category_id, "resultCount": len(page.components)},
        )

    async def _handle_get_random_component(self, args: dict[str, Any]) -> ToolOutcome:
        lookup = await self.service.get_random_component()
        if lookup.component is None:
            return ToolOutcome(
                error="No components available for random selection",
                metadata={"suggestions": RANDOM_SUGGESTIONS},
            )

        component = lookup.component
        return ToolOutcome(
            data=component.to_dict(include_code=True),
            cached=lookup.cached,
            metadata={"randomSelection": True, "hasFullCode": bool(component.full_code)},
        )

    # ------------------------------------------------------------------
    # Envelopes
    # ------------------------------------------------------------------

    def _base_metadata(self, name: str, request_id: str, started: float) -> dict[str, Any]:
        return {
            "executionTime": round((time.perf_counter() - started) * 1000, 2),
            "cached": False,
            "timestamp": _timestamp(),
            "requestId": request_id,
            "toolName": name,
        }

    def _envelope(
        self, outcome: ToolOutcome, name: str, request_id: str, started: float
    ) -> dict[str, Any]:
        metadata = self._base_metadata(name, request_id, started)
        metadata["cached"] = outcome.cached
        metadata.update(outcome.metadata)

        if not outcome.success:
            if outcome.error_kind is not None:
                metadata["errorCode"] = outcome.error_kind.value
            return {"success": False, "error": outcome.error, "metadata": metadata}
        return {"success": True, "data": outcome.data, "metadata": metadata}

    def _error_envelope(
        self, error: CatalogError, name: str, request_id: str, started: float
    ) -> dict[str, Any]:
        self.error_count += 1
        self.service.metrics.record_error(error.kind.value, name)

        if error.user_facing:
            logger.warning("tool_call_rejected", error_code=error.kind.value, error=error.message)
        else:
            logger.error(
                "tool_call_failed",
                error_code=error.kind.value,
                error=error.message,
                context=error.context,
                details=error.details,
            )

        metadata = self._base_metadata(name, request_id, started)
        metadata.update(error.to_dict())
        return {"success": False, "error": error.public_message, "metadata": metadata}

    def _method_not_found(self, name: str, request_id: str, started: float) -> dict[str, Any]:
        self.error_count += 1
        self.service.metrics.record_error("METHOD_NOT_FOUND", name)
        logger.warning("unknown_tool")

        metadata = self._base_metadata(name, request_id, started)
        metadata.update(
            {
                "errorCode": "METHOD_NOT_FOUND",
                "protocolCode": int(ProtocolCode.METHOD_NOT_FOUND),
                "severity": "low",
                "retryable": False,
                "availableTools": list(self._handlers),
            }
        )
        return {"success": False, "error": f"Unknown tool: {name}", "metadata": metadata}

    def _internal_error_envelope(
        self, name: str, request_id: str, started: float
    ) -> dict[str, Any]:
        self.error_count += 1
        self.service.metrics.record_error("INTERNAL_ERROR", name)

        metadata = self._base_metadata(name, request_id, started)
        metadata.update(
            {
                "errorCode": "INTERNAL_ERROR",
                "protocolCode": int(ProtocolCode.INTERNAL_ERROR),
                "severity": "critical",
                "retryable": False,
            }
        )
        return {"success": False, "error": INTERNAL_ERROR_MESSAGE, "metadata": metadata}


def to_tool_result(envelope: dict[str, Any]) -> dict[str, Any]:
    """Wrap an envelope as protocol text content."""
    text = orjson.dumps(envelope, option=orjson.OPT_INDENT_2, default=str).decode()
    return {
        "content": [{"type": "text", "text": text}],
        "isError": not envelope.get("success", False),
    }


__all__ = ["ToolDispatcher", "ToolOutcome", "to_tool_result"]

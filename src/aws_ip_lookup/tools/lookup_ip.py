"""Tool for matching an IP address against the published AWS ranges."""

import json
import logging
from typing import Any, Dict

from mcp.types import Tool, TextContent, CallToolResult

from ..lookup import LookupService
from ..models import ParameterError, RangeLookupError

logger = logging.getLogger(__name__)


class LookupIPTool:
    """Tool for AWS range lookups."""

    def __init__(self, service: LookupService):
        self.service = service

    async def get_tool_definition(self) -> Tool:
        """Get the tool definition for MCP."""
        return Tool(
            name="lookup_ip",
            description="Find the published AWS IP ranges (region, service, network border group) containing an IP address",
            inputSchema={
                "type": "object",
                "properties": {
                    "ip_address": {
                        "type": "string",
                        "description": "IPv4 or IPv6 address to look up (e.g., '52.1.1.1')",
                    },
                },
                "required": ["ip_address"],
            },
        )

    async def execute(self, arguments: Dict[str, Any]) -> CallToolResult:
        """Execute the lookup_ip tool."""
        ip_address = arguments.get("ip_address")
        if ip_address is not None and not isinstance(ip_address, str):
            ip_address = str(ip_address)

        try:
            result = await self.service.lookup(ip_address)
        except ParameterError as e:
            logger.error(f"Validation error in lookup_ip: {e}")
            return CallToolResult(
                content=[TextContent(type="text", text=f"Validation Error: {e.error}")],
                isError=True,
            )
        except RangeLookupError as e:
            logger.error(f"Range lookup failed for {ip_address}: {e}")
            return CallToolResult(
                content=[TextContent(type="text", text="Unable to fetch AWS ranges")],
                isError=True,
            )

        payload = result.model_dump()

        if result.matches:
            summary_lines = [f"{result.requested_ip} is inside {len(result.matches)} published AWS range(s):"]
            for m in result.matches:
                summary_lines.append(
                    f"  • {m.ip_prefix} - {m.service} in {m.region} ({m.network_border_group})"
                )
        else:
            summary_lines = [f"{result.requested_ip} is not inside any published AWS range."]
        summary_lines.append(f"Cache status: {result.cache_status}")
        summary = "\n".join(summary_lines)

        return CallToolResult(
            content=[
                TextContent(
                    type="text",
                    text=f"{summary}\n\nDetailed data:\n{json.dumps(payload, indent=2)}"
                )
            ],
            structuredContent=payload,
        )

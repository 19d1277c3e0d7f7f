"""MCP Server for AWS IP range lookups."""

import asyncio
import json
import logging
import sys
from typing import Any, Optional

from mcp.server import Server, NotificationOptions
from mcp.server.models import InitializationOptions
from mcp.server.stdio import stdio_server
from mcp.types import (
    Resource,
    Tool,
    TextContent,
    TextResourceContents,
    CallToolResult,
)
from pydantic import AnyUrl

from .app import AppContext, create_context
from .logging_config import configure_logging
from .settings import Settings
from .tools.lookup_ip import LookupIPTool
from .version import get_local_version

logger = logging.getLogger(__name__)


class MCPAwsIpLookupServer:
    """MCP Server exposing the AWS range lookup."""

    def __init__(self, settings: Optional[Settings] = None, context: Optional[AppContext] = None):
        self.settings = settings or (context.settings if context else Settings())
        self.context = context or create_context(self.settings)
        self.cache = self.context.cache
        self.service = self.context.service

        self.server = Server("aws-ip-lookup")

        self.tools = {
            "lookup_ip": LookupIPTool(self.service),
        }

        self._register_handlers()

    def _register_handlers(self):
        """Register MCP handlers."""

        @self.server.list_tools()
        async def handle_list_tools() -> list[Tool]:
            """List available tools."""
            return await self.list_tools()

        @self.server.call_tool()
        async def handle_call_tool(name: str, arguments: dict) -> Any:
            """Handle tool calls."""
            result = await self.call_tool(name, arguments)

            if result.isError:
                message = 'Tool execution failed.'
                for block in result.content:
                    if isinstance(block, TextContent):
                        message = block.text
                        break
                raise RuntimeError(message)

            content = list(result.content) if result.content else []
            if result.structuredContent is not None:
                return content, result.structuredContent
            return content

        @self.server.list_resources()
        async def handle_list_resources() -> list[Resource]:
            """List available resources."""
            return self.list_resources()

        @self.server.read_resource()
        async def handle_read_resource(uri: AnyUrl) -> list[TextResourceContents]:
            """Handle resource reads."""
            return await self.read_resource(uri)

    async def list_tools(self) -> list[Tool]:
        tools: list[Tool] = []
        for tool in self.tools.values():
            tools.append(await tool.get_tool_definition())
        return tools

    async def call_tool(self, name: str, arguments: dict) -> CallToolResult:
        if name not in self.tools:
            raise ValueError(f"Unknown tool: {name}")
        return await self.tools[name].execute(arguments or {})

    def list_resources(self) -> list[Resource]:
        return [
            Resource(
                uri=AnyUrl("cache://info"),
                name="Cache Information",
                description="State of the in-process AWS ranges dataset",
                mimeType="application/json",
            ),
            Resource(
                uri=AnyUrl("doc://usage"),
                name="Usage Documentation",
                description="Tool usage documentation and examples",
                mimeType="text/markdown",
            ),
        ]

    async def read_resource(self, uri: AnyUrl) -> list[TextResourceContents]:
        uri_str = str(uri)

        if uri_str == "cache://info":
            info = {
                "instance_id": self.context.instance_id,
                "local_version": get_local_version(),
                "cache": await self.cache.get_cache_info(),
                "settings": {
                    "ranges_url": self.settings.ranges_url,
                    "single_flight": self.settings.single_flight,
                    "skip_malformed_prefixes": self.settings.skip_malformed_prefixes,
                },
            }
            return [
                TextResourceContents(
                    uri=uri,
                    text=json.dumps(info, indent=2),
                    mimeType="application/json",
                )
            ]

        if uri_str == "doc://usage":
            return [
                TextResourceContents(
                    uri=uri,
                    text=self._get_usage_documentation(),
                    mimeType="text/markdown",
                )
            ]

        raise ValueError(f"Unknown resource: {uri}")

    def _get_usage_documentation(self) -> str:
        """Generate usage documentation."""
        return """# AWS IP Lookup Usage Documentation

## Available Tools

### lookup_ip
List the published AWS IP ranges that contain an address.
- **ip_address** (required): IPv4 or IPv6 address to look up

Every containing range is returned in the order AWS publishes them, so an
address can match both a broad `AMAZON` range and a narrower service range.
IPv4 addresses are only matched against IPv4 ranges and IPv6 addresses only
against IPv6 ranges.

`cache_status` is `LOCAL` when the ranges were already loaded in this process,
otherwise the CDN cache status reported with the download (`UNKNOWN` if none).

## Available Resources

### cache://info
State of the in-process ranges dataset.

### doc://usage
This usage documentation.

## Examples

```json
{
  "tool": "lookup_ip",
  "arguments": {
    "ip_address": "52.1.1.1"
  }
}
```
"""

    async def run(self):
        """Run the MCP server."""
        logger.info("Starting AWS IP lookup MCP server (instance_id=%s)", self.context.instance_id)

        try:
            async with stdio_server() as (read_stream, write_stream):
                await self.server.run(
                    read_stream,
                    write_stream,
                    InitializationOptions(
                        server_name="aws-ip-lookup",
                        server_version=get_local_version(),
                        capabilities=self.server.get_capabilities(
                            notification_options=NotificationOptions(),
                            experimental_capabilities={},
                        ),
                    ),
                )
        finally:
            await self.service.close()


def main():
    """Main entry point."""
    settings = Settings()
    configure_logging(settings)
    server = MCPAwsIpLookupServer(settings)
    try:
        asyncio.run(server.run())
    except KeyboardInterrupt:
        logger.info("Shutting down server")
    except Exception as e:
        logger.error(f"Server error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()

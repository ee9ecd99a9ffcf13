from __future__ import annotations

import logging
import time
from collections.abc import Awaitable
from typing import Annotated, Any, TypeVar

from fastmcp import FastMCP
from pydantic import Field

from .config import load_config
from .console import ConsoleClient
from .exceptions import ConsoleError
from .logger import configure_logging, log_operation
from .validation import SPECIAL_DATE_PATTERN

logger = logging.getLogger(__name__)

SERVER_NAME = "mcp-quickclick"

T = TypeVar("T")


async def _run(tool: str, operation: Awaitable[T]) -> T:
    started = time.monotonic()
    try:
        result = await operation
    except ConsoleError as exc:
        log_operation(logger, tool, "error", int((time.monotonic() - started) * 1000), exc.code)
        raise
    except Exception:
        log_operation(logger, tool, "error", int((time.monotonic() - started) * 1000), "INTERNAL_ERROR")
        raise
    log_operation(logger, tool, "success", int((time.monotonic() - started) * 1000))
    return result


def build_server(console: ConsoleClient) -> FastMCP:
    mcp = FastMCP(SERVER_NAME)

    @mcp.tool(name="get-settings", description="Get platform settings")
    async def get_settings() -> dict[str, Any]:
        settings = await _run("get-settings", console.get_settings())
        return settings.model_dump()

    @mcp.tool(name="update-to-go-waiting-time", description="Update to-go waiting time (in minutes)")
    async def update_to_go_waiting_time(
        waitingTime: Annotated[int, Field(ge=0, description="The to-go waiting time in minutes")],
    ) -> dict[str, Any]:
        await _run("update-to-go-waiting-time", console.update_to_go_waiting_time(waitingTime))
        return {"message": f"Updated to-go waiting time to {waitingTime}"}

    @mcp.tool(name="list-day-offs", description="List extra day offs")
    async def list_day_offs() -> dict[str, Any]:
        day_offs = await _run("list-day-offs", console.list_day_offs())
        return {"dayOffs": [day_off.to_dict() for day_off in day_offs]}

    @mcp.tool(name="add-day-off", description="Add extra day off")
    async def add_day_off(
        date: Annotated[
            str,
            Field(pattern=SPECIAL_DATE_PATTERN, description="The date of the extra day off in YYYY-MM-DD format"),
        ],
    ) -> dict[str, Any]:
        await _run("add-day-off", console.add_day_off(date))
        return {"message": f"Added day off for {date}"}

    @mcp.tool(name="delete-day-off", description="Delete extra day off")
    async def delete_day_off(
        id: Annotated[int, Field(description="The id of the extra day off")],
    ) -> dict[str, Any]:
        await _run("delete-day-off", console.delete_day_off(id))
        return {"message": f"Deleted day off {id}"}

    @mcp.tool(name="enable-ordering", description="Enable or disable online ordering")
    async def enable_ordering(
        enabled: Annotated[bool, Field(description="Whether to enable ordering")],
    ) -> dict[str, Any]:
        await _run("enable-ordering", console.enable_ordering(enabled))
        return {"message": f"Ordering {'enabled' if enabled else 'disabled'}"}

    @mcp.tool(name="list-products", description="List products")
    async def list_products(
        name: Annotated[str | None, Field(description="The name of the product to filter by")] = None,
    ) -> dict[str, Any]:
        products = await _run("list-products", console.list_products(name))
        return {"products": [product.to_dict() for product in products]}

    @mcp.tool(name="get-product", description="Get product")
    async def get_product(
        id: Annotated[int, Field(description="The id of the product to get")],
    ) -> dict[str, Any]:
        product = await _run("get-product", console.get_product(id))
        return product.to_dict()

    @mcp.tool(name="create-product", description="Create product")
    async def create_product(
        price: Annotated[int, Field(description="The price of the product")],
        name: Annotated[str, Field(description="The name of the product")],
        isAvailable: Annotated[bool, Field(description="Whether the product is available")],
        categoryId: Annotated[int, Field(description="The category id of the product")],
        description: Annotated[str | None, Field(description="The description of the product")] = None,
    ) -> dict[str, Any]:
        await _run(
            "create-product",
            console.create_product(
                price=price,
                name=name,
                description=description,
                is_available=isAvailable,
                category_id=categoryId,
            ),
        )
        return {"message": f"Created product {name}"}

    @mcp.tool(name="update-product", description="Update product")
    async def update_product(
        id: Annotated[int, Field(description="The id of the product to update")],
        price: Annotated[int | None, Field(description="The price of the product")] = None,
        name: Annotated[str | None, Field(description="The name of the product")] = None,
        description: Annotated[str | None, Field(description="The description of the product")] = None,
        isAvailable: Annotated[bool | None, Field(description="Whether the product is available")] = None,
    ) -> dict[str, Any]:
        product = await _run(
            "update-product",
            console.update_product(
                id,
                price=price,
                name=name,
                description=description,
                is_available=isAvailable,
            ),
        )
        return {"message": f"Updated product {id}", "product": product.to_dict()}

    return mcp


def main() -> None:
    config = load_config()
    configure_logging(config.log_level)
    console = ConsoleClient(config)
    server = build_server(console)
    logger.info("server_starting", extra={"transport": config.transport, "port": config.port})
    if config.transport == "stdio":
        server.run()
    else:
        server.run(transport=config.transport, host=config.host, port=config.port)


if __name__ == "__main__":
    main()

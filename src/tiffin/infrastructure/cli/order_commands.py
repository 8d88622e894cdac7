"""CLI commands for the customer side of an order."""

from __future__ import annotations

import asyncio

import click

from tiffin.application.dto import OrderDTO
from tiffin.application.list_orders import ListOrdersHandler, ShowOrderHandler
from tiffin.application.place_order import PlaceOrderHandler
from tiffin.application.track_orders import OrderTracker
from tiffin.domain.exceptions import DomainException, EntityNotFoundError
from tiffin.domain.model.cart import SellerConflict
from tiffin.domain.model.order import OrderChange, OrderStatus
from tiffin.domain.repository.order_store import OrderFilter
from tiffin.infrastructure.bootstrap import (
    buyer_session,
    dish_repository,
    location_provider,
    order_store,
    polling_feed,
    retry_policy,
    settings,
)

STATUS_CHOICE = click.Choice([s.value for s in OrderStatus])


def _parse_items(raw: str) -> list[tuple[str, int]]:
    """Parse 'dal-1:2,roti-3:1' into (dish id, quantity) pairs."""
    specs: list[tuple[str, int]] = []
    for pair in raw.split(","):
        pair = pair.strip()
        if ":" not in pair:
            specs.append((pair, 1))
            continue
        dish_id, qty_str = pair.rsplit(":", 1)
        try:
            qty = int(qty_str)
        except ValueError:
            raise click.BadParameter(
                f"Invalid quantity '{qty_str}' for dish '{dish_id}'."
            )
        if qty <= 0:
            raise click.BadParameter(f"Quantity for '{dish_id}' must be positive.")
        specs.append((dish_id.strip(), qty))
    return specs


def _confirm_switch(conflict: SellerConflict) -> bool:
    return click.confirm(
        f"Switching kitchens? You can only order from one chef at a time. "
        f"Clear the cart from '{conflict.current_seller_id}' and add "
        f"'{conflict.item.name}'?",
        default=False,
    )


def display_order(dto: OrderDTO) -> None:
    """Shared formatting for displaying an order."""
    click.echo(f"Order #{dto.id}  (status={dto.status})")
    click.echo(f"Kitchen: {dto.seller_id}   Customer: {dto.buyer_id}")
    click.echo(f"Placed:  {dto.created_at}")
    if dto.instruction:
        click.echo(f"Note:    {dto.instruction}")
    click.echo()
    click.echo(f"  {'Dish':<20} {'Qty':>5} {'Price':>10} {'Total':>10}")
    click.echo(f"  {'-'*47}")
    for item in dto.items:
        click.echo(
            f"  {item.display_name:<20} {item.quantity:>5} {item.unit_price:>10} {item.line_total:>10}"
        )
    click.echo(f"  {'-'*47}")
    click.echo(f"  {'Order Total':<27} {dto.total:>20}")


@click.command("place")
@click.option("--buyer", required=True, help="Customer ID.")
@click.option("--items", required=True, help="Dishes as 'DishID:Qty,DishID:Qty'.")
@click.option("--instruction", default="", help="Cooking instruction for the chef.")
@click.option("--yes", "assume_yes", is_flag=True, help="Pay without asking.")
def order_place(buyer: str, items: str, instruction: str, assume_yes: bool) -> None:
    """Fill a cart and place the order (payment is simulated)."""
    specs = _parse_items(items)
    dishes = dish_repository()
    handler = PlaceOrderHandler(
        order_store=order_store(),
        platform_fee=settings().platform_fee,
        gst_percent=settings().gst_percent,
    )

    async def run() -> OrderDTO | None:
        with buyer_session(buyer) as session:
            await session.refresh_location(location_provider())
            for dish_id, qty in specs:
                found = dishes.get_by_id(dish_id)
                if found is None:
                    raise EntityNotFoundError(f"Dish not found: '{dish_id}'")
                if not session.can_purchase_from(found.seller_id):
                    raise click.ClickException(
                        f"'{found.name}' is out of delivery range."
                    )
                for _ in range(qty):
                    session.add_item(found, on_conflict=_confirm_switch)

            bill = handler.quote(session)
            click.echo(f"  {'Item Total':<20} {bill.item_total:>10}")
            click.echo(f"  {'Delivery Fee':<20} {bill.delivery_fee:>10}")
            click.echo(f"  {'Platform Fee':<20} {bill.platform_fee:>10}")
            click.echo(f"  {'GST (5%)':<20} {bill.gst:>10}")
            click.echo(f"  {'To Pay':<20} {bill.grand_total:>10}")

            if not assume_yes and not click.confirm("Pay now?", default=True):
                return None
            return await handler.handle(session, instruction=instruction)

    try:
        dto = asyncio.run(run())
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if dto is None:
        click.echo("Payment cancelled — nothing was ordered.")
        return
    click.echo()
    display_order(dto)


@click.command("list")
@click.option("--buyer", required=True, help="Customer ID.")
@click.option("--status", type=STATUS_CHOICE, default=None, help="Only this status.")
def order_list(buyer: str, status: str | None) -> None:
    """List a customer's orders, newest first."""
    handler = ListOrdersHandler(order_store=order_store())
    order_filter = OrderFilter(
        buyer_id=buyer, status=OrderStatus(status) if status else None
    )

    try:
        dtos = asyncio.run(handler.handle(order_filter))
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not dtos:
        click.echo("No orders yet.")
        return
    click.echo(f"{'ID':<6} {'Kitchen':<14} {'Status':<10} {'Total':>8}  {'Placed'}")
    click.echo("-" * 60)
    for dto in dtos:
        click.echo(
            f"{dto.id:<6} {dto.seller_id:<14} {dto.status:<10} {dto.total:>8}  {dto.created_at}"
        )


@click.command("show")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to display.")
def order_show(order_id: int) -> None:
    """Show details of an existing order."""
    handler = ShowOrderHandler(order_store=order_store())

    try:
        dto = asyncio.run(handler.handle(order_id))
    except DomainException as exc:
        raise click.ClickException(str(exc))

    display_order(dto)


@click.command("watch")
@click.option("--buyer", required=True, help="Customer ID.")
@click.option("--interval", default=2.0, show_default=True, help="Seconds between polls.")
def order_watch(buyer: str, interval: float) -> None:
    """Follow a customer's order statuses live (Ctrl-C to stop)."""

    def on_change(change: OrderChange) -> None:
        click.echo(f"Order #{change.order_id} is now {change.status.value}")

    async def run() -> None:
        tracker = OrderTracker(
            order_store(),
            polling_feed(interval),
            OrderFilter(buyer_id=buyer),
            on_change=on_change,
            retry=retry_policy(),
        )
        async with tracker:
            for dto in tracker.orders():
                click.echo(f"Order #{dto.id} is {dto.status}")
            while tracker.is_running:
                await asyncio.sleep(interval)
        if tracker.error is not None:
            raise tracker.error

    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        click.echo("Stopped watching.")
    except DomainException as exc:
        raise click.ClickException(str(exc))

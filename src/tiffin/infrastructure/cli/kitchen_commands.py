"""CLI commands for the chef's order board."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

import click

from tiffin.application.dto import TransitionResult
from tiffin.application.seller_board import SellerOrderBoard
from tiffin.domain.exceptions import DomainException
from tiffin.domain.model.order import OrderStatus
from tiffin.infrastructure.bootstrap import order_store
from tiffin.infrastructure.cli.order_commands import STATUS_CHOICE


@click.command("board")
@click.option("--chef", required=True, help="Chef (seller) ID.")
@click.option("--status", type=STATUS_CHOICE, default=None, help="Only this status.")
def kitchen_board(chef: str, status: str | None) -> None:
    """Show the kitchen's orders and today's stats."""
    board = SellerOrderBoard(chef, order_store())

    try:
        asyncio.run(board.refresh())
    except DomainException as exc:
        raise click.ClickException(str(exc))

    stats = board.stats()
    click.echo(f"Today's earnings: {stats.earnings_today}   Active orders: {stats.active}")
    click.echo()

    dtos = board.orders(OrderStatus(status) if status else None)
    if not dtos:
        click.echo("No orders.")
        return
    for dto in dtos:
        summary = ", ".join(f"{i.quantity}x {i.display_name}" for i in dto.items)
        click.echo(f"#{dto.id:<5} {dto.status:<9} {dto.total:>7}  {summary}")
        if dto.instruction:
            click.echo(f"       note: {dto.instruction}")


def _transition(
    chef: str,
    order_id: int,
    action: Callable[[SellerOrderBoard], Callable[[int], Awaitable[TransitionResult]]],
) -> None:
    board = SellerOrderBoard(chef, order_store())

    async def run() -> TransitionResult:
        await board.refresh()
        return await action(board)(order_id)

    try:
        result = asyncio.run(run())
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if result.applied:
        click.echo(f"Order #{result.order_id} is now {result.status}.")
    else:
        click.echo(f"Order #{result.order_id} unchanged ({result.status}): {result.reason}")


@click.command("accept")
@click.option("--chef", required=True, help="Chef (seller) ID.")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
def kitchen_accept(chef: str, order_id: int) -> None:
    """Start cooking a pending order."""
    _transition(chef, order_id, lambda board: board.accept)


@click.command("reject")
@click.option("--chef", required=True, help="Chef (seller) ID.")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
def kitchen_reject(chef: str, order_id: int) -> None:
    """Turn down a pending order."""
    _transition(chef, order_id, lambda board: board.reject)


@click.command("ready")
@click.option("--chef", required=True, help="Chef (seller) ID.")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
def kitchen_ready(chef: str, order_id: int) -> None:
    """Mark a cooking order as ready."""
    _transition(chef, order_id, lambda board: board.mark_ready)

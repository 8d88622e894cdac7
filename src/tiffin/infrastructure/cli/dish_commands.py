"""CLI commands for the menu."""

from __future__ import annotations

import asyncio

import click

from tiffin.application.browse_menu import BrowseMenuHandler
from tiffin.application.update_dish_price import UpdateDishPriceHandler
from tiffin.domain.exceptions import DomainException
from tiffin.infrastructure.bootstrap import (
    buyer_session,
    dish_repository,
    location_provider,
    seller_repository,
)


@click.command("list")
def dish_list() -> None:
    """List dishes with the distance to each kitchen."""
    handler = BrowseMenuHandler(dish_repository(), seller_repository())
    session = buyer_session(None)
    asyncio.run(session.refresh_location(location_provider()))
    listings = handler.handle(session)

    if not listings:
        click.echo("No dishes found.")
        return

    click.echo(f"{'ID':<10} {'Dish':<20} {'Kitchen':<16} {'Price':>7} {'Distance':>9}")
    click.echo("-" * 66)
    for d in listings:
        flag = "  (too far)" if d.out_of_range else ""
        click.echo(
            f"{d.id:<10} {d.name:<20} {d.seller_name:<16} {d.price:>7} "
            f"{d.distance or '-':>9}{flag}"
        )


@click.command("update")
@click.option("--id", "dish_id", required=True, help="Dish ID.")
@click.option("--price", required=True, help="New price in rupees (e.g. 120).")
@click.option("--chef", default=None, help="Chef ID; must own the dish.")
def dish_update(dish_id: str, price: str, chef: str | None) -> None:
    """Update a dish's price (placed orders keep the old one)."""
    handler = UpdateDishPriceHandler(dish_repo=dish_repository())

    try:
        dish = handler.handle(dish_id=dish_id, new_price=price, seller_id=chef)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Dish '{dish.name}' price updated to {dish.price}")

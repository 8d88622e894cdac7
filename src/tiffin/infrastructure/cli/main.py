import click

from tiffin.infrastructure.bootstrap import settings
from tiffin.infrastructure.cli.dish_commands import dish_list, dish_update
from tiffin.infrastructure.cli.geo_commands import geo_distance, geo_fee
from tiffin.infrastructure.cli.kitchen_commands import (
    kitchen_accept,
    kitchen_board,
    kitchen_ready,
    kitchen_reject,
)
from tiffin.infrastructure.cli.order_commands import (
    order_list,
    order_place,
    order_show,
    order_watch,
)
from tiffin.infrastructure.logging import configure_logging


@click.group()
def cli() -> None:
    """Tiffin — home-chef food ordering"""
    configure_logging(settings().log_level)


@cli.group()
def order() -> None:
    """Place and track orders (customer)."""


@cli.group()
def kitchen() -> None:
    """Work the order board (chef)."""


@cli.group()
def dish() -> None:
    """Browse and price dishes."""


@cli.group()
def geo() -> None:
    """Distance and delivery fee calculator."""


# Register subcommands
order.add_command(order_list)
order.add_command(order_place)
order.add_command(order_show)
order.add_command(order_watch)
kitchen.add_command(kitchen_accept)
kitchen.add_command(kitchen_board)
kitchen.add_command(kitchen_ready)
kitchen.add_command(kitchen_reject)
dish.add_command(dish_list)
dish.add_command(dish_update)
geo.add_command(geo_distance)
geo.add_command(geo_fee)

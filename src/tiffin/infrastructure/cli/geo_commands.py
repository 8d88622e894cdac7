"""CLI commands for the distance and fee calculator."""

from __future__ import annotations

import click

from tiffin.domain.exceptions import DomainException
from tiffin.domain.model.value_objects import GeoPoint
from tiffin.domain.service.geo import (
    delivery_fee,
    format_distance,
    haversine_distance_km,
)
from tiffin.infrastructure.bootstrap import settings


def _parse_point(raw: str) -> GeoPoint:
    try:
        lat, lon = (float(part) for part in raw.split(","))
        return GeoPoint(lat, lon)
    except (ValueError, DomainException):
        raise click.BadParameter(f"Expected 'LAT,LON', got '{raw}'.")


@click.command("distance")
@click.option("--from", "origin", required=True, help="Buyer position as 'LAT,LON'.")
@click.option("--to", "destination", required=True, help="Kitchen position as 'LAT,LON'.")
def geo_distance(origin: str, destination: str) -> None:
    """Distance, delivery fee and range check between two points."""
    fees = settings().fees
    distance = haversine_distance_km(_parse_point(origin), _parse_point(destination))
    fee = delivery_fee(distance, fees.rate_per_km, fees.min_fee)

    click.echo(f"Distance:     {format_distance(distance)}")
    click.echo(f"Delivery fee: {fee}")
    if fees.is_out_of_range(distance):
        click.echo(f"Out of range (more than {fees.range_km:g} km).")


@click.command("fee")
@click.option("--km", required=True, type=float, help="Distance in kilometres.")
def geo_fee(km: float) -> None:
    """Delivery fee for a distance."""
    fees = settings().fees
    try:
        fee = delivery_fee(km, fees.rate_per_km, fees.min_fee)
    except DomainException as exc:
        raise click.ClickException(str(exc))
    click.echo(str(fee))

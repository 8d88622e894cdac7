"""End-to-end CLI tests against JSON files in a temporary data directory."""

import json

import pytest
from click.testing import CliRunner

from tiffin.infrastructure import bootstrap
from tiffin.infrastructure.cli.main import cli


@pytest.fixture
def runner(tmp_path, monkeypatch):
    (tmp_path / "sellers.json").write_text(
        json.dumps(
            [
                {"id": "chef-a", "full_name": "Asha's Kitchen", "latitude": 16.8302, "longitude": 75.7100},
                {"id": "chef-b", "full_name": "Ravi Tiffins", "latitude": 16.8412, "longitude": 75.7240},
                {"id": "chef-far", "full_name": "Highway Dhaba", "latitude": 16.9500, "longitude": 75.9000},
            ]
        ),
        encoding="utf-8",
    )
    (tmp_path / "dishes.json").write_text(
        json.dumps(
            [
                {"id": "dal", "chef_id": "chef-a", "name": "Dal Rice", "price": 100},
                {"id": "roti", "chef_id": "chef-a", "name": "Chapati", "price": 50},
                {"id": "thali", "chef_id": "chef-b", "name": "Veg Thali", "price": 120},
                {"id": "rotti", "chef_id": "chef-far", "name": "Jolada Rotti", "price": 90},
            ]
        ),
        encoding="utf-8",
    )
    monkeypatch.setenv("TIFFIN_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("TIFFIN_BUYER_LAT", "16.8302")
    monkeypatch.setenv("TIFFIN_BUYER_LON", "75.7100")
    monkeypatch.setenv("TIFFIN_LOG_LEVEL", "ERROR")
    bootstrap.settings.cache_clear()
    bootstrap.change_feed.cache_clear()
    yield CliRunner()
    bootstrap.settings.cache_clear()
    bootstrap.change_feed.cache_clear()


class TestOrderCommands:

    def test_place_then_show(self, runner):
        result = runner.invoke(
            cli,
            ["order", "place", "--buyer", "buyer-1", "--items", "dal:2,roti:1",
             "--instruction", "less spicy", "--yes"],
        )
        assert result.exit_code == 0, result.output
        assert "Order #1" in result.output
        assert "status=pending" in result.output
        assert "₹250" in result.output

        shown = runner.invoke(cli, ["order", "show", "--id", "1"])
        assert shown.exit_code == 0
        assert "less spicy" in shown.output

    def test_declined_payment_places_nothing(self, runner):
        result = runner.invoke(
            cli, ["order", "place", "--buyer", "buyer-1", "--items", "dal"], input="n\n"
        )
        assert result.exit_code == 0
        assert "nothing was ordered" in result.output

        listed = runner.invoke(cli, ["order", "list", "--buyer", "buyer-1"])
        assert "No orders yet." in listed.output

    def test_far_kitchen_is_refused(self, runner):
        result = runner.invoke(
            cli, ["order", "place", "--buyer", "buyer-1", "--items", "rotti", "--yes"]
        )
        assert result.exit_code == 1
        assert "out of delivery range" in result.output

    def test_declining_the_kitchen_switch_keeps_the_first_cart(self, runner):
        result = runner.invoke(
            cli,
            ["order", "place", "--buyer", "buyer-1", "--items", "dal,thali", "--yes"],
            input="n\n",
        )
        assert result.exit_code == 0, result.output
        assert "Switching kitchens?" in result.output
        assert "Kitchen: chef-a" in result.output
        assert result.output.rstrip().endswith("₹100")

    def test_confirming_the_kitchen_switch_replaces_the_cart(self, runner):
        result = runner.invoke(
            cli,
            ["order", "place", "--buyer", "buyer-1", "--items", "dal,thali", "--yes"],
            input="y\n",
        )
        assert result.exit_code == 0, result.output
        assert "Switching kitchens?" in result.output
        assert "Kitchen: chef-b" in result.output
        assert "Dal Rice" not in result.output
        assert result.output.rstrip().endswith("₹120")

    def test_bad_quantity(self, runner):
        result = runner.invoke(
            cli, ["order", "place", "--buyer", "buyer-1", "--items", "dal:x", "--yes"]
        )
        assert result.exit_code == 2
        assert "Invalid quantity" in result.output


class TestKitchenCommands:

    def test_accept_then_ready(self, runner):
        runner.invoke(cli, ["order", "place", "--buyer", "buyer-1", "--items", "dal", "--yes"])

        accepted = runner.invoke(cli, ["kitchen", "accept", "--chef", "chef-a", "--id", "1"])
        again = runner.invoke(cli, ["kitchen", "accept", "--chef", "chef-a", "--id", "1"])
        ready = runner.invoke(cli, ["kitchen", "ready", "--chef", "chef-a", "--id", "1"])

        assert "Order #1 is now cooking." in accepted.output
        assert "unchanged (cooking)" in again.output
        assert "Order #1 is now ready." in ready.output

        board = runner.invoke(cli, ["kitchen", "board", "--chef", "chef-a"])
        assert "Active orders: 0" in board.output

    def test_unknown_order_on_board(self, runner):
        result = runner.invoke(cli, ["kitchen", "reject", "--chef", "chef-a", "--id", "42"])
        assert result.exit_code == 1
        assert "not on this board" in result.output


class TestGeoAndDishCommands:

    def test_fee_for_distance(self, runner):
        assert runner.invoke(cli, ["geo", "fee", "--km", "3.24"]).output.strip() == "₹32"
        assert runner.invoke(cli, ["geo", "fee", "--km", "0.5"]).output.strip() == "₹20"

    def test_distance_reports_range(self, runner):
        result = runner.invoke(
            cli, ["geo", "distance", "--from", "16.8302,75.7100", "--to", "16.9500,75.9000"]
        )
        assert result.exit_code == 0
        assert "Out of range" in result.output

    def test_price_update_keeps_placed_orders(self, runner):
        runner.invoke(cli, ["order", "place", "--buyer", "buyer-1", "--items", "dal", "--yes"])
        updated = runner.invoke(cli, ["dish", "update", "--id", "dal", "--price", "130"])
        assert "₹130" in updated.output

        shown = runner.invoke(cli, ["order", "show", "--id", "1"])
        assert "₹100" in shown.output

    def test_list_marks_far_dishes(self, runner):
        result = runner.invoke(cli, ["dish", "list"])
        assert result.exit_code == 0
        lines = {line.split()[0]: line for line in result.output.splitlines()[2:]}
        assert "too far" in lines["rotti"]
        assert "too far" not in lines["dal"]

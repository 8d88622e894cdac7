"""JSON-file-backed implementation of OrderStore.

Orders and their lines are kept as two row lists, the way the hosted
database keeps ``orders`` and ``order_items``.  A new order reaches the
change feed once its lines are written; status changes as they commit.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

from tiffin.domain.exceptions import EntityNotFoundError, StoreError
from tiffin.domain.model.order import (
    ChangeKind,
    Order,
    OrderChange,
    OrderLine,
    OrderStatus,
)
from tiffin.domain.model.value_objects import Money, Quantity
from tiffin.domain.repository.order_store import OrderFilter, OrderStore
from tiffin.infrastructure.realtime.in_memory_feed import InMemoryOrderChangeFeed


class JsonOrderStore(OrderStore):

    def __init__(self, file_path: Path, feed: InMemoryOrderChangeFeed | None = None) -> None:
        self._file_path = file_path
        self._feed = feed
        self._ensure_file()

    # --- OrderStore interface -------------------------------------------------

    async def insert_order(
        self,
        buyer_id: str,
        seller_id: str,
        total_price: Money,
        instruction: str = "",
    ) -> int:
        data = self._load_raw()
        order_id = max((o["id"] for o in data["orders"]), default=0) + 1
        data["orders"].append(
            {
                "id": order_id,
                "user_id": buyer_id,
                "chef_id": seller_id,
                "total_price": total_price.amount,
                "currency": total_price.currency,
                "status": OrderStatus.PENDING.value,
                "instruction": instruction,
                "created_at": datetime.now(timezone.utc).isoformat(),
            }
        )
        self._persist_raw(data)
        return order_id

    async def insert_order_lines(self, order_id: int, lines: list[OrderLine]) -> None:
        data = self._load_raw()
        row = self._find_row(data, order_id)
        if row is None:
            raise EntityNotFoundError(f"Order #{order_id} not found")
        data["order_items"].extend(
            {
                "order_id": order_id,
                "menu_item_id": line.item_id,
                "name": line.display_name,
                "quantity": line.quantity.value,
                "price": line.unit_price.amount,
            }
            for line in lines
        )
        self._persist_raw(data)
        # Announced only now so subscribers never read an order without lines.
        self._publish(
            ChangeKind.INSERT, order_id, row["user_id"], row["chef_id"], OrderStatus(row["status"])
        )

    async def update_order_status(
        self,
        order_id: int,
        new_status: OrderStatus,
        expected: OrderStatus | None = None,
    ) -> OrderStatus:
        data = self._load_raw()
        row = self._find_row(data, order_id)
        if row is None:
            raise EntityNotFoundError(f"Order #{order_id} not found")

        current = OrderStatus(row["status"])
        if expected is not None and current != expected:
            return current
        if current == new_status:
            return current

        row["status"] = new_status.value
        self._persist_raw(data)
        self._publish(ChangeKind.UPDATE, order_id, row["user_id"], row["chef_id"], new_status)
        return new_status

    async def get_order(self, order_id: int) -> Order | None:
        data = self._load_raw()
        row = self._find_row(data, order_id)
        if row is None:
            return None
        return self._to_domain(row, data["order_items"])

    async def list_orders(self, order_filter: OrderFilter) -> list[Order]:
        data = self._load_raw()
        orders = [
            self._to_domain(row, data["order_items"])
            for row in data["orders"]
            if order_filter.matches(row["user_id"], row["chef_id"], OrderStatus(row["status"]))
        ]
        orders.sort(key=lambda o: o.created_at, reverse=True)
        return orders

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_domain(row: dict, item_rows: list[dict]) -> Order:
        currency = row.get("currency", "INR")
        lines = [
            OrderLine(
                item_id=i["menu_item_id"],
                display_name=i.get("name", i["menu_item_id"]),
                quantity=Quantity(i["quantity"]),
                unit_price=Money(i["price"], currency),
            )
            for i in item_rows
            if i["order_id"] == row["id"]
        ]
        return Order(
            id=row["id"],
            buyer_id=row["user_id"],
            seller_id=row["chef_id"],
            lines=lines,
            total_price=Money(row["total_price"], currency),
            status=OrderStatus(row["status"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            instruction=row.get("instruction", ""),
        )

    @staticmethod
    def _find_row(data: dict, order_id: int) -> dict | None:
        for row in data["orders"]:
            if row["id"] == order_id:
                return row
        return None

    def _publish(
        self,
        kind: ChangeKind,
        order_id: int,
        buyer_id: str,
        seller_id: str,
        status: OrderStatus,
    ) -> None:
        if self._feed is not None:
            self._feed.publish(
                OrderChange(
                    kind=kind,
                    order_id=order_id,
                    buyer_id=buyer_id,
                    seller_id=seller_id,
                    status=status,
                )
            )

    # --- File helpers ---------------------------------------------------------

    def _load_raw(self) -> dict:
        try:
            return json.loads(self._file_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise StoreError(f"Could not read {self._file_path.name}: {exc}") from exc

    def _persist_raw(self, data: dict) -> None:
        try:
            self._file_path.write_text(
                json.dumps(data, indent=2) + "\n", encoding="utf-8"
            )
        except OSError as exc:
            raise StoreError(f"Could not write {self._file_path.name}: {exc}") from exc

    def _ensure_file(self) -> None:
        if not self._file_path.exists():
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            self._persist_raw({"orders": [], "order_items": []})

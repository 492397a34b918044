import asyncio
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Vertical
from textual.events import ScreenResume
from textual.widgets import Button, MarkdownViewer

import api.fish as fish_api
import api.orders as orders_api
import api.sale_requests as sale_requests_api
import api.withdrawals as withdrawals_api
from api.client import ApiError
from api.models import Order
from api.statuses import OrderStatus, SaleRequestStatus
from utils.messages import ModeSwitchedMessage, NewOrderMessage
from utils.pure import format_vnd, generate_markdown_table
from views.base_screen import BaseScreen


def _parse_ts(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        ts = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    return ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)


def weekly_summary(orders: List[Order], now: datetime) -> dict:
    """Figures over the orders placed in the 7 days up to now, cancelled ones excluded."""
    since = now - timedelta(days=7)
    recent = [
        o
        for o in orders
        if o.status is not OrderStatus.CANCELLED
        and (ts := _parse_ts(o.order_date)) is not None
        and ts >= since
    ]
    customers = {o.user_id for o in recent if o.user_id is not None}
    total = sum(o.total_amount for o in recent)
    return {
        "orders": len(recent),
        "koi_sold": sum(len(o.details) for o in recent),
        "customers": len(customers),
        "avg_per_customer": total // len(customers) if customers else 0,
        "total": total,
    }


class ManagerOverviewScreen(BaseScreen):
    """
    Back-office dashboard: weekly sales and everything waiting on a manager.
    """

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield MarkdownViewer(id="md-top", show_table_of_contents=False)
            yield Button("Refresh", id="btn-refresh", variant="primary")

    def on_mount(self) -> None:
        self.handle_reload()

    @on(Button.Pressed, "#btn-refresh")
    @on(NewOrderMessage)
    @on(ScreenResume)
    @on(ModeSwitchedMessage)
    @work(exclusive=True)
    async def handle_reload(self) -> None:
        sale_query = sale_requests_api.build_query(
            page_size=1, status=SaleRequestStatus.PENDING
        )
        stock = fish_api.FishSearch(page_size=1)

        async def count(coro) -> str:
            try:
                return str((await coro).total)
            except ApiError as e:
                return f"unavailable ({e.message})"

        orders, withdrawals, sale_count, stock_count = await asyncio.gather(
            orders_api.list_orders(),
            withdrawals_api.get_all(),
            count(sale_requests_api.get_all(sale_query)),
            count(fish_api.list_available(stock)),
        )

        if orders.is_success:
            summary = weekly_summary(orders.data, datetime.now(timezone.utc))
            weekly_md = (
                "### Weekly Sales Summary (last 7 days)\n\n"
                f"- Orders: {summary['orders']}\n"
                f"- Koi Sold: {summary['koi_sold']}\n"
                f"- Customers: {summary['customers']}\n"
                f"- Avg Amount per Customer: {format_vnd(summary['avg_per_customer'])}\n"
                f"- Total Sales Amount: {format_vnd(summary['total'])}\n\n"
            )
            pending_orders = str(sum(1 for o in orders.data if o.status.is_pending))
            pending_details = str(
                sum(1 for o in orders.data for d in o.details if d.status.is_pending)
            )
        else:
            weekly_md = f"### Weekly Sales Summary\n\n> {orders.message}\n\n"
            pending_orders = pending_details = "unavailable"

        pending_withdrawals = (
            str(sum(1 for w in withdrawals.data if w.status.is_pending))
            if withdrawals.is_success
            else "unavailable"
        )

        rows = [
            ["Pending orders", pending_orders],
            ["Order lines awaiting approval", pending_details],
            ["Pending sale requests", sale_count],
            ["Pending withdrawals", pending_withdrawals],
            ["Koi listed for sale", stock_count],
        ]
        md = (
            weekly_md
            + "### Waiting on You\n\n"
            + generate_markdown_table(["Queue", "Count"], rows, ["l", "r"])
        )
        await self.query_one("#md-top", MarkdownViewer).document.update(md)

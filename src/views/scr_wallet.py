from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.validation import Number
from textual.widgets import Button, DataTable, Input, Markdown, TabbedContent, TabPane

import api.wallets as wallets_api
import api.withdrawals as withdrawals_api
from utils.messages import NewOrderMessage, WalletChangedMessage
from utils.pure import format_date, format_vnd, generate_markdown_table
from views.base_screen import BaseScreen
from views.modal_dialog import DialogModal
from views.modal_form import FormField, FormModal

MIN_DEPOSIT = 10_000


class WalletScreen(BaseScreen):
    """
    Wallet balance, deposits, transaction history and withdrawal requests.
    """

    def __init__(self) -> None:
        super().__init__()

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield Markdown("", id="md-wallet")
            with Horizontal(id="hort-deposit"):
                yield Input(
                    placeholder=f"Amount (min {MIN_DEPOSIT})",
                    id="input-deposit",
                    type="integer",
                    validators=[Number(minimum=MIN_DEPOSIT)],
                )
                yield Button("Deposit", id="btn-deposit", variant="success")
                yield Button("Deposit via PayOS", id="btn-deposit-payos")
                yield Button("Request Withdrawal", id="btn-withdraw", variant="warning")
            with TabbedContent():
                with TabPane("Transactions", id="tab-transactions"):
                    yield DataTable(id="table-transactions")
                with TabPane("Withdrawals", id="tab-withdrawals"):
                    yield DataTable(id="table-withdrawals")

    def on_mount(self) -> None:
        tx_table = self.query_one("#table-transactions", DataTable)
        tx_table.cursor_type = "row"
        tx_table.zebra_stripes = True
        tx_table.add_columns("Date", "Type", "Method", "Amount", "Balance After", "Status", "Note")

        wd_table = self.query_one("#table-withdrawals", DataTable)
        wd_table.cursor_type = "row"
        wd_table.zebra_stripes = True
        wd_table.add_columns("ID", "Date", "Amount", "Bank details", "Status")

    @on(ScreenResume)
    @on(WalletChangedMessage)
    @on(NewOrderMessage)
    @work(exclusive=True)
    async def handle_reload(self) -> None:
        wallet = await wallets_api.get_current_user_wallet()
        md = self.query_one("#md-wallet", Markdown)
        if wallet.is_success:
            await md.update(
                "### My Wallet\n\n"
                + generate_markdown_table(
                    None,
                    [
                        ["Balance", format_vnd(wallet.data.balance)],
                        ["Loyalty points", wallet.data.loyalty_points],
                        ["Status", wallet.data.status],
                    ],
                )
            )
        else:
            await md.update(f"### My Wallet\n\n{wallet.message}")

        txs = await wallets_api.get_wallet_transactions()
        tx_table = self.query_one("#table-transactions", DataTable)
        tx_table.clear()
        if txs.is_success:
            for t in sorted(txs.data, key=lambda t: t.transaction_date or "", reverse=True):
                tx_table.add_row(
                    format_date(t.transaction_date),
                    t.transaction_type,
                    t.payment_method or "-",
                    format_vnd(t.amount),
                    format_vnd(t.balance_after),
                    t.transaction_status or "-",
                    t.note or "",
                )
        else:
            self.notify(txs.message, severity="error")

        wds = await withdrawals_api.get_by_user()
        wd_table = self.query_one("#table-withdrawals", DataTable)
        wd_table.clear()
        if wds.is_success:
            for w in wds.data:
                wd_table.add_row(
                    w.id,
                    format_date(w.request_date or w.created_at),
                    format_vnd(w.amount),
                    w.bank_note,
                    w.status.label,
                )
        else:
            self.notify(wds.message, severity="error")

    def _deposit_amount(self) -> int | None:
        field = self.query_one("#input-deposit", Input)
        if not field.value.strip() or not field.is_valid:
            field.focus()
            field.add_class("-invalid")
            self.notify(f"Enter an amount of at least {format_vnd(MIN_DEPOSIT)}.", severity="error")
            return None
        return int(field.value)

    @on(Button.Pressed, "#btn-deposit")
    @on(Button.Pressed, "#btn-deposit-payos")
    @work(exclusive=True, group="deposit")
    async def handle_deposit(self, event: Button.Pressed) -> None:
        amount = self._deposit_amount()
        if amount is None:
            return
        if event.button.id == "btn-deposit-payos":
            result = await wallets_api.deposit_by_payos(amount)
        else:
            result = await wallets_api.deposit(amount)
        if not result.is_success:
            self.notify(result.message, severity="error")
            return

        self.query_one("#input-deposit", Input).value = ""
        await self.app.push_screen_wait(
            DialogModal(f"Open this link to complete the payment:\n{result.data.pay_url}")
        )
        self.post_message(WalletChangedMessage())

    @on(Button.Pressed, "#btn-withdraw")
    @work(exclusive=True, group="withdraw")
    async def handle_withdraw(self) -> None:
        values = await self.app.push_screen_wait(
            FormModal(
                "Request a withdrawal",
                [
                    FormField("amount", "Amount (₫)", kind="integer", minimum=1),
                    FormField(
                        "bank_note",
                        "Bank details",
                        placeholder="Bank, account number, account holder",
                    ),
                ],
                submit_text="Request",
            )
        )
        if not values:
            return
        result = await withdrawals_api.create(values["bank_note"], values["amount"])
        if not result.is_success:
            self.notify(result.message, severity="error")
            return
        self.notify(result.message or "Withdrawal requested.")
        self.post_message(WalletChangedMessage())

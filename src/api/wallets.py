# wallet balance, deposits and history of the current user
from __future__ import annotations

from typing import List

from api.client import ApiResult, call, many
from api.models import DepositResult, Order, Wallet, WalletTransaction


async def get_current_user_wallet() -> ApiResult[Wallet]:
    return await call(
        "GET",
        "users/me/wallets",
        mapper=Wallet.from_api,
        failure="Failed to fetch wallet information. Please try again.",
    )


async def deposit(amount: int) -> ApiResult[DepositResult]:
    if amount <= 0:
        return ApiResult.fail("Amount must be positive.")
    return await call(
        "POST",
        "wallets/deposit",
        params={"amount": amount},
        mapper=DepositResult.from_api,
        failure="Failed to create deposit order. Please try again.",
    )


async def deposit_by_payos(amount: int) -> ApiResult[DepositResult]:
    if amount <= 0:
        return ApiResult.fail("Amount must be positive.")
    return await call(
        "POST",
        "create-payment-link-payos",
        body={"amount": amount},
        mapper=DepositResult.from_api,
        failure="Failed to create deposit order. Please try again.",
    )


async def get_wallet_transactions() -> ApiResult[List[WalletTransaction]]:
    return await call(
        "GET",
        "users/me/wallet-transactions",
        mapper=many(WalletTransaction.from_api),
        failure="Failed to fetch transaction history. Please try again.",
    )


async def get_order_history() -> ApiResult[List[Order]]:
    return await call(
        "GET",
        "users/me/orders",
        mapper=many(Order.from_api),
        failure="Failed to fetch order history. Please try again.",
    )


async def get_order_transactions(order_id: int) -> ApiResult[List[WalletTransaction]]:
    return await call(
        "GET",
        f"wallets/orders/{order_id}/wallet-transactions",
        mapper=many(WalletTransaction.from_api),
        failure="Failed to fetch order transactions. Please try again.",
    )

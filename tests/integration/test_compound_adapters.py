"""Integration tests for Compound adapters with a mocked EVM client."""
from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock

import pytest
from eth_abi import encode

from lendpos.chains.evm import RpcError, TransactionReverted
from lendpos.chains.evm.abi import encode_call
from lendpos.config import AppConfig
from lendpos.protocols.compound import (
    CompoundOracle,
    Comptroller,
    CTokenMarket,
    Erc20Ledger,
    build_collaborators,
)

ACCOUNT = "0x" + "aa" * 20
TOKEN = "0x" + "01" * 20
CTOKEN = "0x" + "02" * 20
COMPTROLLER = "0x" + "cc" * 20
ORACLE = "0x" + "dd" * 20
OTHER = "0x" + "ee" * 20


def _words(types: list[str], values: list[Any]) -> str:
    return "0x" + encode(types, values).hex()


def _uint(value: int) -> str:
    return _words(["uint256"], [value])


@pytest.fixture()
def mock_client() -> AsyncMock:
    client = AsyncMock()
    client.transact.return_value = {"status": "0x1"}
    return client


class TestErc20Ledger:
    @pytest.fixture()
    def ledger(self, mock_client: AsyncMock) -> Erc20Ledger:
        return Erc20Ledger(mock_client, TOKEN, ACCOUNT)

    @pytest.mark.asyncio
    async def test_transfer_sends_after_simulation(
        self, ledger: Erc20Ledger, mock_client: AsyncMock
    ) -> None:
        mock_client.call.return_value = _words(["bool"], [True])

        assert await ledger.transfer(OTHER, 10) is True

        expected = encode_call("transfer(address,uint256)", OTHER, 10)
        mock_client.call.assert_awaited_once_with(TOKEN, expected, sender=ACCOUNT)
        mock_client.transact.assert_awaited_once_with(ACCOUNT, TOKEN, expected)

    @pytest.mark.asyncio
    async def test_false_result_is_not_sent(
        self, ledger: Erc20Ledger, mock_client: AsyncMock
    ) -> None:
        mock_client.call.return_value = _words(["bool"], [False])

        assert await ledger.transfer_from(OTHER, ACCOUNT, 10) is False
        mock_client.transact.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_revert_in_simulation_is_false(
        self, ledger: Erc20Ledger, mock_client: AsyncMock
    ) -> None:
        mock_client.call.side_effect = RpcError({"code": 3, "message": "execution reverted"})

        assert await ledger.transfer_from(OTHER, ACCOUNT, 10) is False
        mock_client.transact.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_empty_return_counts_as_success(
        self, ledger: Erc20Ledger, mock_client: AsyncMock
    ) -> None:
        mock_client.call.return_value = "0x"
        assert await ledger.approve(CTOKEN, 5) is True
        mock_client.transact.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_reverted_transaction_is_false(
        self, ledger: Erc20Ledger, mock_client: AsyncMock
    ) -> None:
        mock_client.call.return_value = _words(["bool"], [True])
        mock_client.transact.side_effect = TransactionReverted("0xH")
        assert await ledger.approve(CTOKEN, 5) is False

    @pytest.mark.asyncio
    async def test_balance_of(self, ledger: Erc20Ledger, mock_client: AsyncMock) -> None:
        mock_client.call.return_value = _uint(1234)
        assert await ledger.balance_of(ACCOUNT) == 1234

    @pytest.mark.asyncio
    async def test_decimals(self, ledger: Erc20Ledger, mock_client: AsyncMock) -> None:
        mock_client.call.return_value = _uint(6)
        assert await ledger.decimals() == 6


class TestCTokenMarket:
    @pytest.fixture()
    def market(self, mock_client: AsyncMock) -> CTokenMarket:
        return CTokenMarket(mock_client, CTOKEN, ACCOUNT)

    @pytest.mark.asyncio
    async def test_mint_success(self, market: CTokenMarket, mock_client: AsyncMock) -> None:
        mock_client.call.return_value = _uint(0)

        assert await market.mint(100) == 0

        mock_client.transact.assert_awaited_once_with(
            ACCOUNT, CTOKEN, encode_call("mint(uint256)", 100)
        )

    @pytest.mark.asyncio
    async def test_failure_code_is_returned_unsent(
        self, market: CTokenMarket, mock_client: AsyncMock
    ) -> None:
        mock_client.call.return_value = _uint(3)

        assert await market.borrow(100) == 3
        mock_client.transact.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_reverted_write_propagates(
        self, market: CTokenMarket, mock_client: AsyncMock
    ) -> None:
        mock_client.call.return_value = _uint(0)
        mock_client.transact.side_effect = TransactionReverted("0xH")

        with pytest.raises(TransactionReverted):
            await market.repay_borrow(100)

    @pytest.mark.asyncio
    async def test_reads(self, market: CTokenMarket, mock_client: AsyncMock) -> None:
        mock_client.call.return_value = _uint(2 * 10**26)
        assert await market.exchange_rate() == 2 * 10**26

        sent = mock_client.call.await_args.args[1]
        assert sent == encode_call("exchangeRateCurrent()")

    @pytest.mark.asyncio
    async def test_borrow_balance(self, market: CTokenMarket, mock_client: AsyncMock) -> None:
        mock_client.call.return_value = _uint(77)
        assert await market.borrow_balance(ACCOUNT) == 77
        sent = mock_client.call.await_args.args[1]
        assert sent == encode_call("borrowBalanceCurrent(address)", ACCOUNT)


class TestComptroller:
    @pytest.fixture()
    def comptroller(self, mock_client: AsyncMock) -> Comptroller:
        return Comptroller(mock_client, COMPTROLLER, ACCOUNT)

    @pytest.mark.asyncio
    async def test_enter_markets_success(
        self, comptroller: Comptroller, mock_client: AsyncMock
    ) -> None:
        mock_client.call.return_value = _words(["uint256[]"], [[0]])

        assert await comptroller.enter_markets([CTOKEN]) == [0]
        mock_client.transact.assert_awaited_once_with(
            ACCOUNT, COMPTROLLER, encode_call("enterMarkets(address[])", [CTOKEN])
        )

    @pytest.mark.asyncio
    async def test_enter_markets_failure_not_sent(
        self, comptroller: Comptroller, mock_client: AsyncMock
    ) -> None:
        mock_client.call.return_value = _words(["uint256[]"], [[9]])

        assert await comptroller.enter_markets([CTOKEN]) == [9]
        mock_client.transact.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_account_liquidity(
        self, comptroller: Comptroller, mock_client: AsyncMock
    ) -> None:
        mock_client.call.return_value = _words(
            ["uint256", "uint256", "uint256"], [0, 1000 * 10**18, 0]
        )
        assert await comptroller.get_account_liquidity(ACCOUNT) == (0, 1000 * 10**18, 0)

    @pytest.mark.asyncio
    async def test_markets_ignores_trailing_fields(
        self, comptroller: Comptroller, mock_client: AsyncMock
    ) -> None:
        mock_client.call.return_value = _words(
            ["bool", "uint256", "bool"], [True, 75 * 10**16, True]
        )
        assert await comptroller.markets(CTOKEN) == (True, 75 * 10**16)


class TestCompoundOracle:
    @pytest.mark.asyncio
    async def test_price(self, mock_client: AsyncMock) -> None:
        mock_client.call.return_value = _uint(10**18)
        oracle = CompoundOracle(mock_client, ORACLE, ACCOUNT)

        assert await oracle.get_underlying_price(CTOKEN) == 10**18

        mock_client.call.assert_awaited_once_with(
            ORACLE, encode_call("getUnderlyingPrice(address)", CTOKEN), sender=ACCOUNT
        )


class TestBuildCollaborators:
    def test_wires_every_market(self, sample_app_config: AppConfig) -> None:
        collab = build_collaborators(sample_app_config, AsyncMock())
        market = sample_app_config.market("DAI")

        ledger = collab.ledger(market)
        shares = collab.share_market(market)

        assert isinstance(ledger, Erc20Ledger)
        assert ledger.address == market.underlying
        assert isinstance(shares, CTokenMarket)
        assert shares.address == market.share_market
        assert shares.account == sample_app_config.account.manager
        assert isinstance(collab.registry, Comptroller)
        assert isinstance(collab.oracle, CompoundOracle)

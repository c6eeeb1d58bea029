"""Unit tests for ListenerService: gating, de-duplication and dispatch."""

import asyncio
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
from solders.pubkey import Pubkey

from poolwatch.core.exceptions import SubscriptionError
from poolwatch.services.listener.service import ListenerService
from poolwatch.services.solana.constants import (
    OPENBOOK_PROGRAM_ID,
    RAYDIUM_LIQUIDITY_PROGRAM_ID_V4,
    USDC_MINT,
)
from poolwatch.services.solana.models import KeyedAccountInfo

NOW = 1_700_000_000.0
BASE_MINT = str(Pubkey.from_bytes(bytes([1]) * 32))


class FakeSubscription:
    """Replays scripted notifications, then either fails or idles forever."""

    def __init__(self, items=(), error: Exception | None = None, **kwargs) -> None:
        self.items = list(items)
        self.error = error
        self.kwargs = kwargs

    async def notifications(self):
        for item in self.items:
            yield item
        if self.error is not None:
            raise self.error
        await asyncio.Event().wait()


@pytest.fixture
def sink() -> MagicMock:
    mock = MagicMock()
    mock.on_pool = AsyncMock()
    mock.on_market = AsyncMock()
    return mock


@pytest.fixture
def make_service(make_settings, sink):
    def _make(subscription_factory=FakeSubscription, **overrides) -> ListenerService:
        return ListenerService(
            make_settings(**overrides),
            rpc_client=MagicMock(get_account_info=AsyncMock(return_value=None)),
            sink=sink,
            subscription_factory=subscription_factory,
            clock=lambda: NOW,
        )

    return _make


def pool_account(build_pool_data, account_id="Pool1", open_time=int(NOW) + 60):
    data = build_pool_data(base_mint=BASE_MINT, pool_open_time=open_time)
    return KeyedAccountInfo(account_id=account_id, data=data)


class TestPoolNotifications:
    @pytest.mark.asyncio
    async def test_future_open_time_is_processed_once(self, make_service, sink, build_pool_data):
        service = make_service()
        account = pool_account(build_pool_data)

        assert await service.process_pool_notification(account) is True
        assert await service.process_pool_notification(account) is False

        sink.on_pool.assert_awaited_once()
        assert "Pool1" in service.seen_pools

    @pytest.mark.asyncio
    async def test_open_time_must_be_strictly_in_future(self, make_service, sink, build_pool_data):
        service = make_service()

        assert not await service.process_pool_notification(
            pool_account(build_pool_data, "PoolNow", open_time=int(NOW))
        )
        assert not await service.process_pool_notification(
            pool_account(build_pool_data, "PoolPast", open_time=int(NOW) - 3600)
        )

        sink.on_pool.assert_not_called()
        # A rejected notification does not burn the key
        assert "PoolPast" not in service.seen_pools

    @pytest.mark.asyncio
    async def test_duplicate_is_never_reprocessed(self, make_service, sink, build_pool_data):
        service = make_service()
        await service.process_pool_notification(pool_account(build_pool_data))

        later_update = pool_account(build_pool_data, open_time=int(NOW) + 7200)
        assert await service.process_pool_notification(later_update) is False
        assert sink.on_pool.await_count == 1

    @pytest.mark.asyncio
    async def test_undecodable_pool_is_dropped(self, make_service, sink):
        service = make_service()
        account = KeyedAccountInfo(account_id="Broken", data=b"\x06" * 100)

        assert await service.process_pool_notification(account) is False
        assert "Broken" not in service.seen_pools
        sink.on_pool.assert_not_called()

    @pytest.mark.asyncio
    async def test_seen_pool_stays_seen_even_if_filtered(
        self, make_service, sink, build_pool_data, tmp_path: Path
    ):
        path = tmp_path / "snipe-list.txt"
        path.write_text("SomeOtherMint\n", encoding="utf-8")
        service = make_service(use_snipe_list=True, snipe_list_path=path)
        service.load_snipe_list()

        account = pool_account(build_pool_data)
        assert await service.process_pool_notification(account) is False

        path.write_text(f"{BASE_MINT}\n", encoding="utf-8")
        service.allow_list.load()
        assert await service.process_pool_notification(account) is False
        sink.on_pool.assert_not_called()


class TestMarketNotifications:
    @pytest.mark.asyncio
    async def test_market_processed_once_per_account(self, make_service, sink, build_market_data):
        service = make_service()
        account = KeyedAccountInfo(account_id="Market1", data=build_market_data())

        assert await service.process_market_notification(account) is True
        assert await service.process_market_notification(account) is False
        sink.on_market.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_undecodable_market_is_dropped(self, make_service, sink):
        service = make_service()
        account = KeyedAccountInfo(account_id="Broken", data=b"\x00" * 10)

        assert await service.process_market_notification(account) is False
        sink.on_market.assert_not_called()


class TestSubscriptions:
    def test_build_subscriptions(self, make_service):
        service = make_service(quote_mint="USDC", commitment_level="processed")

        raydium, openbook = service.build_subscriptions()

        assert raydium.kwargs["program_id"] == RAYDIUM_LIQUIDITY_PROGRAM_ID_V4
        assert raydium.kwargs["commitment"] == "processed"
        assert raydium.kwargs["endpoint"] == "wss://rpc.test.invalid"
        assert [f.to_rpc() for f in raydium.kwargs["filters"]][1] == {
            "memcmp": {"offset": 432, "bytes": USDC_MINT}
        }
        assert openbook.kwargs["program_id"] == OPENBOOK_PROGRAM_ID
        assert [f.to_rpc() for f in openbook.kwargs["filters"]] == [
            {"dataSize": 388},
            {"memcmp": {"offset": 85, "bytes": USDC_MINT}},
        ]

    def test_refresh_worker_only_in_snipe_list_mode(self, make_service, tmp_path: Path):
        assert make_service().refresh_worker is None

        service = make_service(
            use_snipe_list=True,
            snipe_list_path=tmp_path / "list.txt",
            snipe_list_refresh_interval=2500,
        )
        assert service.refresh_worker is not None
        assert service.refresh_worker.interval_seconds == 2.5


class TestRun:
    @pytest.mark.asyncio
    async def test_dispatches_both_sources_until_cancelled(
        self, make_service, sink, build_pool_data, build_market_data
    ):
        pool = pool_account(build_pool_data)
        market = KeyedAccountInfo(account_id="Market1", data=build_market_data())

        def factory(**kwargs):
            if kwargs["name"] == "raydium":
                return FakeSubscription([pool, pool], **kwargs)
            return FakeSubscription([market, market], **kwargs)

        service = make_service(subscription_factory=factory)
        task = asyncio.create_task(service.run())

        for _ in range(100):
            if sink.on_pool.await_count and sink.on_market.await_count:
                break
            await asyncio.sleep(0.01)

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert sink.on_pool.await_count == 1
        assert sink.on_market.await_count == 1

    @pytest.mark.asyncio
    async def test_subscription_failure_ends_run(self, make_service):
        def factory(**kwargs):
            if kwargs["name"] == "openbook":
                return FakeSubscription(
                    error=SubscriptionError(kwargs["program_id"], "closed"), **kwargs
                )
            return FakeSubscription(**kwargs)

        service = make_service(subscription_factory=factory)

        with pytest.raises(SubscriptionError) as exc_info:
            await asyncio.wait_for(service.run(), timeout=2)
        assert exc_info.value.program_id == OPENBOOK_PROGRAM_ID

    @pytest.mark.asyncio
    async def test_consumer_survives_handler_crash(self, make_service, sink, build_market_data):
        good = KeyedAccountInfo(account_id="Market2", data=build_market_data())
        bad = KeyedAccountInfo(account_id="Market1", data=build_market_data())

        def factory(**kwargs):
            if kwargs["name"] == "openbook":
                return FakeSubscription([bad, good], **kwargs)
            return FakeSubscription(**kwargs)

        service = make_service(subscription_factory=factory)
        original = service.process_market_notification
        calls: list[str] = []

        async def flaky(account):
            calls.append(account.account_id)
            if account.account_id == "Market1":
                raise RuntimeError("boom")
            return await original(account)

        service.process_market_notification = flaky  # type: ignore[method-assign]
        task = asyncio.create_task(service.run())

        for _ in range(100):
            if len(calls) == 2:
                break
            await asyncio.sleep(0.01)

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert calls == ["Market1", "Market2"]

    @pytest.mark.asyncio
    async def test_missing_snipe_list_does_not_stop_startup(
        self, make_service, tmp_path: Path
    ):
        service = make_service(use_snipe_list=True, snipe_list_path=tmp_path / "missing.txt")

        service.load_snipe_list()

        assert len(service.allow_list) == 0

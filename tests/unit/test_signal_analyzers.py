"""
Unit Tests for the signal analyzers
"""

from datetime import date

import pytest

from card_advisor.domain.models import Ok, SignalName, TechnicalSnapshot
from card_advisor.domain.services.signal_analyzers import (
    FundamentalAnalyzer,
    PriceTrendAnalyzer,
    SentimentAnalyzer,
    TechnicalAnalyzer,
    VolumeAnalyzer,
    build_analyzers,
)


@pytest.mark.unit
class TestPriceTrendAnalyzer:

    @pytest.mark.asyncio
    async def test_rising_prices(self, guarded_market, market, advice_config, card_factory):
        market.add_signals("c1", history=(10.0, 30.0))
        analyzer = PriceTrendAnalyzer(guarded_market, advice_config.signals)

        result = await analyzer.analyze(card_factory("c1"))

        assert result.name == SignalName.PRICE_TREND
        assert result.score == pytest.approx(1.0)
        assert result.metric("trend") == pytest.approx(1.0)
        assert result.metric("volatility") == pytest.approx(0.0)
        assert result.degraded is False

    @pytest.mark.asyncio
    async def test_falling_prices_clamp_to_zero(self, guarded_market, market, advice_config, card_factory):
        market.add_signals("c1", history=(30.0, 20.0, 10.0))
        analyzer = PriceTrendAnalyzer(guarded_market, advice_config.signals)

        result = await analyzer.analyze(card_factory("c1"))

        assert result.score == 0.0
        assert result.metric("trend") < 0

    @pytest.mark.asyncio
    async def test_unavailable_history_is_neutral(self, guarded_market, advice_config, card_factory):
        analyzer = PriceTrendAnalyzer(guarded_market, advice_config.signals)

        result = await analyzer.analyze(card_factory("unknown"))

        assert result.score == 0.5
        assert result.degraded is True
        assert result.metric("volatility") == 0.5

    @pytest.mark.asyncio
    async def test_uses_requested_lookback(self, advice_config, card_factory):
        seen = {}

        class RecordingProvider:
            async def get_card_price_history(self, card_id, days):
                seen["days"] = days
                return Ok([])

        analyzer = PriceTrendAnalyzer(RecordingProvider(), advice_config.signals)
        await analyzer.analyze(card_factory("c1"), lookback_days=90)
        assert seen["days"] == 90

        await analyzer.analyze(card_factory("c1"))
        assert seen["days"] == 30


@pytest.mark.unit
class TestVolumeAnalyzer:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("average,expected", [(0.0, 0.0), (500.0, 0.5), (1000.0, 1.0), (5000.0, 1.0)])
    async def test_score_relative_to_reference(
        self, guarded_market, market, advice_config, card_factory, average, expected
    ):
        market.add_signals("c1", volume=(average, 0.2))
        analyzer = VolumeAnalyzer(guarded_market, advice_config.signals)

        result = await analyzer.analyze(card_factory("c1"))

        assert result.score == pytest.approx(expected)
        assert result.metric("trend") == pytest.approx(0.2)

    @pytest.mark.asyncio
    async def test_collaborator_error_is_neutral(self, guarded_market, market, advice_config, card_factory):
        market.add_signals("c1")
        market.failing.add("get_card_volume")
        analyzer = VolumeAnalyzer(guarded_market, advice_config.signals)

        result = await analyzer.analyze(card_factory("c1"))

        assert result.score == 0.5
        assert result.degraded is True
        assert result.metric("average") == 500.0


@pytest.mark.unit
class TestSentimentAnalyzer:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("sentiment,expected", [(-1.0, 0.0), (0.0, 0.5), (1.0, 1.0), (3.0, 1.0), (-7.0, 0.0)])
    async def test_maps_sentiment_to_unit_interval(
        self, guarded_market, market, advice_config, card_factory, sentiment, expected
    ):
        market.add_signals("c1", sentiment=sentiment)
        analyzer = SentimentAnalyzer(guarded_market, advice_config.signals)

        result = await analyzer.analyze(card_factory("c1"))

        assert result.score == pytest.approx(expected)
        assert -1.0 <= result.metric("sentiment") <= 1.0


@pytest.mark.unit
class TestTechnicalAnalyzer:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("indicators,expected", [
        ((25.0, 1.0, 40.0, 50.0), 1.0),
        ((75.0, -1.0, 60.0, 50.0), 0.0),
        ((50.0, 1.0, 60.0, 50.0), 0.5),
        ((50.0, 0.0, 40.0, 50.0), 0.5),
    ])
    async def test_average_of_three_sub_scores(
        self, guarded_market, market, advice_config, card_factory, indicators, expected
    ):
        market.add_signals("c1", technical=indicators)
        analyzer = TechnicalAnalyzer(guarded_market, advice_config.signals)

        result = await analyzer.analyze(card_factory("c1"))

        assert result.score == pytest.approx(expected)

    @pytest.mark.asyncio
    async def test_metrics_report_moving_average_value(self, guarded_market, market, advice_config, card_factory):
        market.add_signals("c1", technical=(25.0, 1.0, 40.0, 50.0))
        analyzer = TechnicalAnalyzer(guarded_market, advice_config.signals)

        result = await analyzer.analyze(card_factory("c1"))

        assert result.metric("moving_average") == 40.0
        assert result.metric("ma_score") == 1.0

    @pytest.mark.asyncio
    async def test_non_finite_rsi_still_scores(self, guarded_market, market, advice_config, card_factory):
        market.technical["c1"] = TechnicalSnapshot(rsi=float("nan"), macd=1.0, ma50=1.0, price=2.0)
        analyzer = TechnicalAnalyzer(guarded_market, advice_config.signals)

        result = await analyzer.analyze(card_factory("c1"))

        assert 0.0 <= result.score <= 1.0


@pytest.mark.unit
class TestFundamentalAnalyzer:

    @pytest.mark.asyncio
    async def test_table_lookup(self, advice_config, card_factory, clock):
        analyzer = FundamentalAnalyzer(None, advice_config.signals, advice_config.fundamentals, clock)
        card = card_factory(
            "c1", rarity="Secret", edition="1st Edition", condition="Mint", release_date=date(2000, 1, 1)
        )

        result = await analyzer.analyze(card)

        # age > 20 years scores 0.9
        assert result.score == pytest.approx((1.0 + 1.0 + 1.0 + 0.9) / 4)

    @pytest.mark.asyncio
    async def test_unknown_attributes_score_half(self, advice_config, card_factory, clock):
        analyzer = FundamentalAnalyzer(None, advice_config.signals, advice_config.fundamentals, clock)
        card = card_factory("c1", rarity="Holo Ultra", edition=None, condition=None)

        result = await analyzer.analyze(card)

        assert result.score == pytest.approx(0.5)
        assert result.degraded is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("released,expected", [
        (date(2026, 1, 2), 0.3),
        # calendar years: last December is already one year old
        (date(2025, 12, 1), 0.5),
        (date(2022, 12, 31), 0.5),
        (date(2021, 1, 1), 0.7),
        (date(2006, 6, 1), 0.9),
    ])
    async def test_age_counts_calendar_years(self, advice_config, card_factory, clock, released, expected):
        analyzer = FundamentalAnalyzer(None, advice_config.signals, advice_config.fundamentals, clock)
        card = card_factory("c1", release_date=released)

        result = await analyzer.analyze(card)

        assert result.metric("age") == pytest.approx(expected)

    @pytest.mark.asyncio
    async def test_default_card_scores_0_625(self, advice_config, card_factory, clock):
        analyzer = FundamentalAnalyzer(None, advice_config.signals, advice_config.fundamentals, clock)

        result = await analyzer.analyze(card_factory("c1"))

        assert result.score == pytest.approx(0.625)


@pytest.mark.unit
def test_build_analyzers_covers_every_signal(guarded_market, advice_config):
    analyzers = build_analyzers(guarded_market, advice_config.signals, advice_config.fundamentals)
    assert set(analyzers) == set(SignalName)

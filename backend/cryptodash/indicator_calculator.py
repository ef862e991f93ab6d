"""
Indicator Calculator for Price Series

Turns an ordered sequence of closing prices into derived indicator series
and advisory trading signals.

Supports:
- SMA (Simple Moving Average)
- EMA (Exponential Moving Average)
- RSI (Relative Strength Index)
- MACD (Moving Average Convergence Divergence)
- Signal generation from the latest RSI / MACD state

Every series is aligned to a suffix of the input: the last value of a series
always corresponds to the last input price. Inputs that are too short for an
indicator's warm-up produce an empty series, never an error.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from cryptodash.config import settings
from cryptodash.constants import (
    MACD_CROSSOVER_STRENGTH,
    MAX_RSI_SIGNAL_STRENGTH,
    RSI_OVERBOUGHT,
    RSI_OVERSOLD,
)
from cryptodash.price_feeds.base import PricePoint


@dataclass(frozen=True)
class Signal:
    """Advisory trading signal (ephemeral, never persisted)"""
    type: str  # "buy" or "sell"
    strength: float  # 0-100
    reason: str


@dataclass
class MACDResult:
    """MACD line, signal line and histogram, each trailing-aligned to the input"""
    macd: List[float] = field(default_factory=list)
    signal: List[float] = field(default_factory=list)
    histogram: List[float] = field(default_factory=list)


class IndicatorCalculator:
    """
    Calculates technical indicator series from closing prices

    Stateless: every method depends only on its arguments.
    """

    def calculate_sma(self, prices: Sequence[float], period: int) -> List[float]:
        """Calculate SMA (Simple Moving Average) for every full window"""
        if period < 1 or len(prices) < period:
            return []

        return [
            sum(prices[i - period + 1:i + 1]) / period
            for i in range(period - 1, len(prices))
        ]

    def calculate_ema(self, prices: Sequence[float], period: int) -> List[float]:
        """Calculate EMA (Exponential Moving Average), seeded with the SMA of the first window"""
        if period < 1 or len(prices) < period:
            return []

        multiplier = 2 / (period + 1)

        # Start with SMA for initial value
        ema = [sum(prices[:period]) / period]

        for price in prices[period:]:
            ema.append((price - ema[-1]) * multiplier + ema[-1])

        return ema

    def calculate_rsi(self, prices: Sequence[float], period: int = 14) -> List[float]:
        """
        Calculate RSI (Relative Strength Index)

        Uses simple means of gains/losses over each trailing window of
        ``period`` price changes, so the first value needs period + 1 prices.
        """
        if period < 1 or len(prices) < period + 1:
            return []

        changes = [prices[i] - prices[i - 1] for i in range(1, len(prices))]

        gains = [change if change > 0 else 0.0 for change in changes]
        losses = [-change if change < 0 else 0.0 for change in changes]

        rsi = []
        for i in range(period - 1, len(changes)):
            avg_gain = sum(gains[i - period + 1:i + 1]) / period
            avg_loss = sum(losses[i - period + 1:i + 1]) / period

            if avg_loss == 0:
                rsi.append(100.0)
                continue

            rs = avg_gain / avg_loss
            rsi.append(100 - (100 / (1 + rs)))

        return rsi

    def calculate_macd(
        self,
        prices: Sequence[float],
        fast_period: int = 12,
        slow_period: int = 26,
        signal_period: int = 9
    ) -> MACDResult:
        """
        Calculate MACD (Moving Average Convergence Divergence)

        macd[i] = EMA(fast)[i + offset] - EMA(slow)[i], offset = slow - fast.
        The signal line is the EMA of the MACD line and the histogram is
        macd[i + signal - 1] - signal[i].
        """
        if fast_period > slow_period:
            return MACDResult()

        fast_ema = self.calculate_ema(prices, fast_period)
        slow_ema = self.calculate_ema(prices, slow_period)
        if not slow_ema:
            return MACDResult()

        offset = slow_period - fast_period
        macd_line = [fast_ema[i + offset] - slow_ema[i] for i in range(len(fast_ema) - offset)]

        signal_line = self.calculate_ema(macd_line, signal_period)
        histogram = [
            macd_line[i + signal_period - 1] - signal_line[i]
            for i in range(len(signal_line))
        ]

        return MACDResult(macd=macd_line, signal=signal_line, histogram=histogram)

    def generate_signals(self, prices: Sequence[float]) -> List[Signal]:
        """
        Derive advisory signals from the latest RSI and MACD state

        Several signals may fire at once; the caller interprets the set.
        """
        signals: List[Signal] = []

        rsi = self.calculate_rsi(prices, settings.rsi_period)
        if rsi:
            current_rsi = rsi[-1]
            if current_rsi < RSI_OVERSOLD:
                signals.append(Signal(
                    type="buy",
                    strength=min(MAX_RSI_SIGNAL_STRENGTH, 100 - current_rsi * 2),
                    reason="RSI oversold condition",
                ))
            elif current_rsi > RSI_OVERBOUGHT:
                signals.append(Signal(
                    type="sell",
                    strength=min(MAX_RSI_SIGNAL_STRENGTH, (current_rsi - 50) * 2),
                    reason="RSI overbought condition",
                ))

        macd = self.calculate_macd(
            prices,
            settings.macd_fast_period,
            settings.macd_slow_period,
            settings.macd_signal_period,
        )
        if len(macd.signal) >= 2:
            current_macd, previous_macd = macd.macd[-1], macd.macd[-2]
            current_signal, previous_signal = macd.signal[-1], macd.signal[-2]

            if current_macd > current_signal and previous_macd <= previous_signal:
                signals.append(Signal(
                    type="buy",
                    strength=MACD_CROSSOVER_STRENGTH,
                    reason="MACD bullish crossover",
                ))
            elif current_macd < current_signal and previous_macd >= previous_signal:
                signals.append(Signal(
                    type="sell",
                    strength=MACD_CROSSOVER_STRENGTH,
                    reason="MACD bearish crossover",
                ))

        return signals

    def calculate_all_indicators(self, candles: Sequence[PricePoint]) -> Dict[str, float]:
        """
        Latest value of every configured indicator, keyed for display

        Keys look like "rsi_14", "sma_20", "macd_12_26_9"; indicators
        without enough history are left out.
        """
        if not candles:
            return {}

        indicators = {
            "price": float(candles[-1].close),
            "volume": float(candles[-1].volume),
        }
        closes = [float(c.close) for c in candles]

        rsi = self.calculate_rsi(closes, settings.rsi_period)
        if rsi:
            indicators[f"rsi_{settings.rsi_period}"] = rsi[-1]

        sma = self.calculate_sma(closes, settings.sma_period)
        if sma:
            indicators[f"sma_{settings.sma_period}"] = sma[-1]

        ema = self.calculate_ema(closes, settings.ema_period)
        if ema:
            indicators[f"ema_{settings.ema_period}"] = ema[-1]

        fast = settings.macd_fast_period
        slow = settings.macd_slow_period
        signal_period = settings.macd_signal_period
        macd = self.calculate_macd(closes, fast, slow, signal_period)
        if macd.macd:
            indicators[f"macd_{fast}_{slow}_{signal_period}"] = macd.macd[-1]
        if macd.signal:
            indicators[f"macd_signal_{fast}_{slow}_{signal_period}"] = macd.signal[-1]
            indicators[f"macd_histogram_{fast}_{slow}_{signal_period}"] = macd.histogram[-1]

        return indicators

"""Technical indicators for signal generation.

Pure NumPy implementations over float64 arrays. Every function returns a
list the same length as its input, with NaN for the warm-up bars that do
not have enough history yet. Seeding conventions follow the common
charting libraries: EMA and Wilder averages start from the SMA of the
first ``period`` values, standard deviation is the population one.
"""

from typing import Sequence

import numpy as np


def _to_array(values: Sequence[float]) -> np.ndarray:
    return np.asarray(values, dtype=np.float64)


def _nan_list(n: int) -> list[float]:
    return [float("nan")] * n


def _ema_array(arr: np.ndarray, period: int) -> np.ndarray:
    """EMA over an array, SMA-seeded. Returns all-NaN when too short."""
    result = np.full_like(arr, np.nan)
    if len(arr) < period:
        return result

    multiplier = 2.0 / (period + 1)
    result[period - 1] = np.mean(arr[:period])

    for i in range(period, len(arr)):
        result[i] = arr[i] * multiplier + result[i - 1] * (1 - multiplier)

    return result


def _sma_array(arr: np.ndarray, period: int) -> np.ndarray:
    result = np.full_like(arr, np.nan)
    if len(arr) < period:
        return result

    for i in range(period - 1, len(arr)):
        result[i] = np.mean(arr[i - period + 1 : i + 1])

    return result


def ema(values: Sequence[float], period: int) -> list[float]:
    """
    Calculate Exponential Moving Average.

    Args:
        values: Sequence of price values
        period: EMA period

    Returns:
        List of EMA values (same length as input, with NaN for initial values)
    """
    return _ema_array(_to_array(values), period).tolist()


def sma(values: Sequence[float], period: int) -> list[float]:
    """
    Calculate Simple Moving Average.

    Args:
        values: Sequence of price values
        period: SMA period

    Returns:
        List of SMA values
    """
    return _sma_array(_to_array(values), period).tolist()


def highest(values: Sequence[float], period: int) -> list[float]:
    """Highest value over the lookback period."""
    if len(values) < period:
        return _nan_list(len(values))

    arr = _to_array(values)
    result = np.full_like(arr, np.nan)

    for i in range(period - 1, len(arr)):
        result[i] = np.max(arr[i - period + 1 : i + 1])

    return result.tolist()


def lowest(values: Sequence[float], period: int) -> list[float]:
    """Lowest value over the lookback period."""
    if len(values) < period:
        return _nan_list(len(values))

    arr = _to_array(values)
    result = np.full_like(arr, np.nan)

    for i in range(period - 1, len(arr)):
        result[i] = np.min(arr[i - period + 1 : i + 1])

    return result.tolist()


def stddev(values: Sequence[float], period: int) -> list[float]:
    """Rolling population standard deviation."""
    if len(values) < period:
        return _nan_list(len(values))

    arr = _to_array(values)
    result = np.full_like(arr, np.nan)

    for i in range(period - 1, len(arr)):
        result[i] = np.std(arr[i - period + 1 : i + 1])

    return result.tolist()


def rsi(values: Sequence[float], period: int = 14) -> list[float]:
    """
    Calculate Relative Strength Index with Wilder's smoothing.

    The first average gain/loss is the mean of the first ``period`` price
    changes; later values use ``(prev * (period - 1) + current) / period``.

    Args:
        values: Sequence of close prices
        period: RSI period

    Returns:
        List of RSI values in [0, 100]; the first ``period`` entries are NaN
    """
    arr = _to_array(values)
    result = np.full_like(arr, np.nan)
    if len(arr) <= period:
        return result.tolist()

    changes = np.diff(arr)
    gains = np.where(changes > 0, changes, 0.0)
    losses = np.where(changes < 0, -changes, 0.0)

    avg_gain = np.mean(gains[:period])
    avg_loss = np.mean(losses[:period])
    result[period] = _rsi_value(avg_gain, avg_loss)

    for i in range(period, len(changes)):
        avg_gain = (avg_gain * (period - 1) + gains[i]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i]) / period
        result[i + 1] = _rsi_value(avg_gain, avg_loss)

    return result.tolist()


def _rsi_value(avg_gain: float, avg_loss: float) -> float:
    if avg_loss == 0:
        return 100.0
    if avg_gain == 0:
        return 0.0
    rs = avg_gain / avg_loss
    return 100.0 - 100.0 / (1.0 + rs)


def macd(
    values: Sequence[float],
    fast_period: int = 12,
    slow_period: int = 26,
    signal_period: int = 9,
) -> tuple[list[float], list[float], list[float]]:
    """
    Calculate MACD line, signal line and histogram.

    MACD = EMA(fast) - EMA(slow); signal = EMA(signal_period) of the MACD
    line, seeded once the MACD line has ``signal_period`` values.

    Args:
        values: Sequence of close prices
        fast_period: Fast EMA period
        slow_period: Slow EMA period
        signal_period: Signal line EMA period

    Returns:
        Tuple of (macd_line, signal_line, histogram) lists
    """
    arr = _to_array(values)
    macd_line = _ema_array(arr, fast_period) - _ema_array(arr, slow_period)

    signal_line = np.full_like(arr, np.nan)
    start = slow_period - 1
    if len(arr) > start:
        signal_line[start:] = _ema_array(macd_line[start:], signal_period)

    histogram = macd_line - signal_line
    return macd_line.tolist(), signal_line.tolist(), histogram.tolist()


def bollinger_bands(
    values: Sequence[float],
    period: int = 20,
    std_dev_multiplier: float = 2.0,
) -> tuple[list[float], list[float], list[float]]:
    """
    Calculate Bollinger Bands.

    middle = SMA(period); upper/lower = middle +/- multiplier * population stddev

    Returns:
        Tuple of (upper, middle, lower) lists
    """
    middle = _sma_array(_to_array(values), period)
    deviation = np.asarray(stddev(values, period), dtype=np.float64)
    upper = middle + std_dev_multiplier * deviation
    lower = middle - std_dev_multiplier * deviation
    return upper.tolist(), middle.tolist(), lower.tolist()


def stochastic(
    highs: Sequence[float],
    lows: Sequence[float],
    closes: Sequence[float],
    period: int = 14,
    signal_period: int = 3,
) -> tuple[list[float], list[float]]:
    """
    Calculate the stochastic oscillator.

    %K = 100 * (close - lowest_low) / (highest_high - lowest_low)
    %D = SMA(signal_period) of %K

    A flat lookback range (highest == lowest) yields NaN for %K.

    Returns:
        Tuple of (k, d) lists
    """
    hh = np.asarray(highest(highs, period), dtype=np.float64)
    ll = np.asarray(lowest(lows, period), dtype=np.float64)
    close_arr = _to_array(closes)

    span = hh - ll
    with np.errstate(divide="ignore", invalid="ignore"):
        k = np.where(span > 0, (close_arr - ll) / span * 100.0, np.nan)

    d = np.full_like(k, np.nan)
    start = period - 1
    if len(k) > start:
        d[start:] = _sma_array(k[start:], signal_period)

    return k.tolist(), d.tolist()

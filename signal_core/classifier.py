"""Signal classifier: indicator snapshot + last bar -> verdict and reasons.

Rule order:
1. RSI at/below oversold -> BUY, at/above overbought -> SELL.
   This is the only rule that sets the base direction.
2. MACD histogram and main/signal relation.
3. Close versus Bollinger bands.
4. Stochastic %K and %D both beyond a level.
5. Short EMA versus long EMA.

Rules 2-5 append a reason whenever they fire and escalate a same-direction
base verdict (BUY -> STRONG_BUY, SELL -> STRONG_SELL). A rule firing against
the held verdict only adds its reason. Nothing ever downgrades.

A signal is emitted only when the verdict is not NONE and at least
MIN_REASONS reasons were collected.
"""

import logging
from typing import NamedTuple

from signal_core.models import (
    IndicatorConfig,
    IndicatorSnapshot,
    PriceBar,
    SignalType,
    TradingSignal,
)

logger = logging.getLogger(__name__)

MIN_REASONS = 2


class Classification(NamedTuple):
    """Verdict and ordered justifications of one evaluation."""

    signal_type: SignalType
    reasons: list[str]


def _escalate_if(verdict: SignalType, direction: int) -> SignalType:
    """Escalate the verdict when it already points in ``direction``."""
    if verdict.direction == direction:
        return verdict.escalated()
    return verdict


def classify(
    config: IndicatorConfig,
    snapshot: IndicatorSnapshot,
    last_bar: PriceBar,
) -> Classification:
    """Derive the directional verdict for one evaluation.

    Pure: identical inputs always give an identical result.
    """
    reasons: list[str] = []
    verdict = SignalType.NONE

    momentum = config.momentum
    if snapshot.rsi <= momentum.oversold_level:
        reasons.append(f"RSI oversold ({snapshot.rsi:.2f})")
        verdict = SignalType.BUY
    elif snapshot.rsi >= momentum.overbought_level:
        reasons.append(f"RSI overbought ({snapshot.rsi:.2f})")
        verdict = SignalType.SELL

    m = snapshot.macd
    if m.histogram > 0 and m.macd > m.signal:
        reasons.append("MACD bullish crossover")
        verdict = _escalate_if(verdict, 1)
    elif m.histogram < 0 and m.macd < m.signal:
        reasons.append("MACD bearish crossover")
        verdict = _escalate_if(verdict, -1)

    close = last_bar.close
    bands = snapshot.bands
    if close <= bands.lower:
        reasons.append(f"Price at or below lower Bollinger band ({bands.lower:.2f})")
        verdict = _escalate_if(verdict, 1)
    elif close >= bands.upper:
        reasons.append(f"Price at or above upper Bollinger band ({bands.upper:.2f})")
        verdict = _escalate_if(verdict, -1)

    stoch = snapshot.stochastic
    levels = config.stochastic
    if stoch.k <= levels.oversold_level and stoch.d <= levels.oversold_level:
        reasons.append(f"Stochastic oversold (K {stoch.k:.2f}, D {stoch.d:.2f})")
        verdict = _escalate_if(verdict, 1)
    elif stoch.k >= levels.overbought_level and stoch.d >= levels.overbought_level:
        reasons.append(f"Stochastic overbought (K {stoch.k:.2f}, D {stoch.d:.2f})")
        verdict = _escalate_if(verdict, -1)

    if snapshot.ema.short > snapshot.ema.long:
        reasons.append("EMA short-term average above long-term")
        verdict = _escalate_if(verdict, 1)
    elif snapshot.ema.short < snapshot.ema.long:
        reasons.append("EMA short-term average below long-term")
        verdict = _escalate_if(verdict, -1)

    return Classification(verdict, reasons)


def should_emit(classification: Classification) -> bool:
    """Corroboration floor: a verdict plus at least MIN_REASONS reasons."""
    return (
        classification.signal_type != SignalType.NONE
        and len(classification.reasons) >= MIN_REASONS
    )


def build_signal(
    config: IndicatorConfig,
    instrument_id: str,
    snapshot: IndicatorSnapshot,
    last_bar: PriceBar,
    timestamp: int,
) -> TradingSignal | None:
    """Classify and, if the floor is met, build the TradingSignal."""
    classification = classify(config, snapshot, last_bar)
    if not should_emit(classification):
        logger.debug(
            f"{instrument_id}: no signal ({classification.signal_type.value}, "
            f"{len(classification.reasons)} reasons)"
        )
        return None

    return TradingSignal.from_bar(
        signal_type=classification.signal_type,
        instrument_id=instrument_id,
        timestamp=timestamp,
        bar=last_bar,
        snapshot=snapshot,
        reasons=classification.reasons,
    )

"""
OPPORTUNITY SCORER
Combine the five signal analyzers into one opportunity analysis per card

RESPONSIBILITIES:
- Run every analyzer for a card concurrently
- Weighted score, per-card risk, potential return, time to maturity
- Filter and rank a batch of candidates

RULES:
❌ No allocation
❌ No collaborator errors surface here (analyzers absorb them)
✅ Stable ordering: ties keep their input order
✅ Deterministic output
"""

import asyncio
import logging
from statistics import fmean
from typing import Dict, List, Mapping, Sequence

from card_advisor.domain.models import (
    CardCandidate,
    OpportunityAnalysis,
    SignalName,
    SignalResult,
    clamp,
)
from card_advisor.domain.services.config_engine import AdviceConfig
from card_advisor.domain.services.signal_analyzers import SignalAnalyzer

logger = logging.getLogger(__name__)

SHORT_MATURITY_DAYS = 90
MEDIUM_MATURITY_DAYS = 180
LONG_MATURITY_DAYS = 365


class OpportunityScorer:
    """
    Opportunity Scorer
    Scores candidate cards from their market signals
    """

    def __init__(self, analyzers: Mapping[SignalName, SignalAnalyzer], config: AdviceConfig):
        """
        Initialize scorer

        Args:
            analyzers: One analyzer per signal name
            config: Advice configuration (weights, thresholds)
        """
        missing = set(config.signal_weights) - set(analyzers)
        if missing:
            raise ValueError(f"Missing analyzers for: {sorted(s.value for s in missing)}")
        self.analyzers = analyzers
        self.config = config

    async def score(self, card: CardCandidate) -> OpportunityAnalysis:
        """Analyze one card on every signal"""
        names = list(self.config.signal_weights)
        results = await asyncio.gather(*(
            self.analyzers[name].analyze(card, self.config.signals.lookback_days)
            for name in names
        ))
        factors: Dict[SignalName, SignalResult] = dict(zip(names, results))

        weighted = sum(
            clamp(factors[name].score) * weight
            for name, weight in self.config.signal_weights.items()
        )

        return OpportunityAnalysis(
            card=card,
            score=clamp(weighted),
            factors=factors,
            risk=self._card_risk(factors),
            potential_return=self._potential_return(factors),
            time_to_maturity=self._time_to_maturity(factors),
        )

    async def score_many(self, cards: Sequence[CardCandidate]) -> List[OpportunityAnalysis]:
        """
        Score cards concurrently, keep those above the opportunity threshold

        Returns:
            Analyses sorted by descending score, capped at max_opportunities
        """
        analyses = await asyncio.gather(*(self.score(card) for card in cards))

        threshold = self.config.thresholds.opportunity_min_score
        qualified = [a for a in analyses if a.score > threshold]
        # sorted() is stable, so equal scores keep their candidate order
        ranked = sorted(qualified, key=lambda a: a.score, reverse=True)
        ranked = ranked[:self.config.pipeline.max_opportunities]

        logger.info(
            f"Scored {len(analyses)} candidates: {len(qualified)} above {threshold}, "
            f"{len(ranked)} kept"
        )
        return ranked

    @staticmethod
    def _card_risk(factors: Mapping[SignalName, SignalResult]) -> float:
        terms = [
            clamp(factors[SignalName.PRICE_TREND].metric("volatility", 0.5)),
            1 - clamp(factors[SignalName.VOLUME].score),
            1 - clamp(factors[SignalName.SENTIMENT].score),
            1 - clamp(factors[SignalName.TECHNICAL].score),
            1 - clamp(factors[SignalName.FUNDAMENTAL].score),
        ]
        return clamp(fmean(terms))

    def _potential_return(self, factors: Mapping[SignalName, SignalResult]) -> float:
        mean_score = fmean(clamp(result.score) for result in factors.values())
        return max(0.0, mean_score * self.config.signals.max_annual_return)

    @staticmethod
    def _time_to_maturity(factors: Mapping[SignalName, SignalResult]) -> int:
        momentum = fmean([
            factors[SignalName.PRICE_TREND].metric("trend"),
            factors[SignalName.VOLUME].metric("trend"),
            factors[SignalName.SENTIMENT].metric("sentiment"),
        ])
        if momentum > 0.5:
            return SHORT_MATURITY_DAYS
        if momentum > 0:
            return MEDIUM_MATURITY_DAYS
        return LONG_MATURITY_DAYS

import asyncio
import math
import time

import structlog

from wordrec.schemas.recommendation import (
    AlgorithmWeights,
    RecommendationCategory,
    RecommendationResult,
)
from wordrec.services.monitoring.prometheus import RecommendationMonitoring, monitoring
from wordrec.services.recommendation.constants import (
    EXTRACTOR_TIMEOUT_SECONDS,
    WEIGHT_ROUNDING_DIGITS,
)
from wordrec.services.recommendation.extractors.base import ExtractionContext, SignalExtractor

logger = structlog.get_logger(__name__)


def sub_limit(total: int, weight: float) -> int:
    """Share of ``total`` for one extractor, rounded up"""
    return math.ceil(round(total * weight, WEIGHT_ROUNDING_DIGITS))


class MixedAggregator:
    """Blends the output of every extractor into one ranked list.

    Extractors run concurrently, each under its own time budget. One that
    fails or times out contributes nothing while the others still count.
    When the same word comes from several extractors the higher weighted
    score wins, and on an exact tie the extractor listed first wins.
    """

    def __init__(
        self,
        extractors: list[SignalExtractor],
        timeout_seconds: float = EXTRACTOR_TIMEOUT_SECONDS,
        metrics: RecommendationMonitoring = monitoring,
    ):
        self.extractors = extractors
        self.timeout_seconds = timeout_seconds
        self.metrics = metrics

    async def run_extractor(
        self, extractor: SignalExtractor, context: ExtractionContext, limit: int
    ) -> list[RecommendationResult]:
        """Run one extractor in isolation. Failures and timeouts yield an empty list."""
        start_time = time.perf_counter()
        status = "ok"
        results: list[RecommendationResult] = []
        try:
            results = await asyncio.wait_for(
                extractor.extract(context, limit), timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError:
            status = "timeout"
        except Exception as e:
            status = "error"
            logger.error(
                "Extractor failed",
                extractor=extractor.name,
                user_id=context.user_id,
                error=str(e),
                error_type=type(e).__name__,
            )

        duration = time.perf_counter() - start_time
        self.metrics.observe_extractor(extractor.name, duration, len(results), status)
        logger.info(
            "Extractor finished",
            extractor=extractor.name,
            user_id=context.user_id,
            duration_ms=round(duration * 1000, 2),
            candidates=len(results),
            status=status,
        )
        return results

    def _merge(
        self,
        best: dict[str, tuple[float, int, RecommendationResult]],
        rank: int,
        weight: float,
        results: list[RecommendationResult],
    ) -> int:
        """Fold one extractor's results into ``best``, returning how many ids were new"""
        added = 0
        for result in results:
            weighted = result.score * weight
            current = best.get(result.entry_id)
            if current is None:
                added += 1
            if current is None or weighted > current[0]:
                best[result.entry_id] = (weighted, rank, result)
        return added

    async def aggregate(
        self, context: ExtractionContext, total_limit: int, weights: AlgorithmWeights
    ) -> list[RecommendationResult]:
        """Blend the extractors into at most ``total_limit`` distinct results.

        Each extractor first gets its weighted share of the limit. While the
        merged list is short, extractors that filled their share are asked
        again for more, until the list is full or nothing new comes back.
        """
        start_time = time.perf_counter()

        scheduled: list[tuple[SignalExtractor, float]] = []
        limits: list[int] = []
        for extractor in self.extractors:
            weight = weights.for_category(extractor.category)
            limit = sub_limit(total_limit, weight)
            if limit <= 0:
                continue
            scheduled.append((extractor, weight))
            limits.append(limit)

        outputs = await asyncio.gather(
            *(
                self.run_extractor(extractor, context, limit)
                for (extractor, _), limit in zip(scheduled, limits)
            )
        )

        best: dict[str, tuple[float, int, RecommendationResult]] = {}
        for rank, ((_, weight), results) in enumerate(zip(scheduled, outputs)):
            self._merge(best, rank, weight, results)

        rounds = 0
        while len(best) < total_limit:
            # An extractor that returned less than it was asked for has nothing more to give
            exhausted = [len(results) < limit for results, limit in zip(outputs, limits)]
            if all(exhausted):
                break

            shortfall = total_limit - len(best)
            limits = [
                limit if done else limit + shortfall for limit, done in zip(limits, exhausted)
            ]
            reruns = await asyncio.gather(
                *(
                    self.run_extractor(extractor, context, limit)
                    for (extractor, _), limit, done in zip(scheduled, limits, exhausted)
                    if not done
                )
            )
            rounds += 1

            rerun_outputs = iter(reruns)
            outputs = [
                results if done else next(rerun_outputs)
                for results, done in zip(outputs, exhausted)
            ]
            added = sum(
                self._merge(best, rank, weight, results)
                for rank, ((_, weight), results, done) in enumerate(
                    zip(scheduled, outputs, exhausted)
                )
                if not done
            )
            if added == 0:
                break

        merged = sorted(best.values(), key=lambda item: (-item[0], item[1]))[:total_limit]
        mixed = [
            RecommendationResult(
                entry_id=result.entry_id,
                score=weighted,
                reasons=[*result.reasons, f"Combined score: {weighted * 100:.1f}%"],
                category=RecommendationCategory.MIXED,
                metadata={**result.metadata, "source": result.category.value},
            )
            for weighted, _, result in merged
        ]

        logger.info(
            "Aggregation finished",
            user_id=context.user_id,
            duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
            extractors=[extractor.name for extractor, _ in scheduled],
            backfill_rounds=rounds,
            candidates=len(best),
            returned=len(mixed),
        )
        return mixed

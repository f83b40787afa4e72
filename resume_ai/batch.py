import asyncio
import logging
import time
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from pydantic import BaseModel

from .orchestrator import AnalysisOrchestrator
from .schemas import AnalysisResult, UseCase

logger = logging.getLogger(__name__)

BatchItem = Union[BaseModel, Dict[str, Any]]


class BatchProcessor:
    """Run many independent analyses concurrently, preserving input order."""

    def __init__(self, orchestrator: AnalysisOrchestrator, max_concurrency: Optional[int] = None):
        if max_concurrency is not None and max_concurrency < 1:
            raise ValueError("max_concurrency must be >= 1")
        self.orchestrator = orchestrator
        self.max_concurrency = max_concurrency

    async def run_all(self, items: Sequence[BatchItem],
                      use_case: Union[UseCase, str] = UseCase.RESUME_SCORING) -> List[AnalysisResult]:
        """
        Analyze every item concurrently.

        Args:
            items: Inputs for the chosen use case
            use_case: Analysis applied to every item

        Returns:
            One result per item, in input order. An item whose analysis raised
            gets the local result instead.
        """
        results, _ = await self._gather(items, UseCase(use_case))
        return results

    async def _gather(self, items: Sequence[BatchItem], use_case: UseCase) -> Tuple[List[AnalysisResult], int]:
        """Results in input order plus the number of items whose analysis raised."""
        semaphore = asyncio.Semaphore(self.max_concurrency) if self.max_concurrency else None
        failed: List[int] = []

        async def run_one(index: int, item: BatchItem) -> AnalysisResult:
            try:
                if semaphore is None:
                    return await self.orchestrator.run(use_case, item)
                async with semaphore:
                    return await self.orchestrator.run(use_case, item)
            except Exception as e:
                failed.append(index)
                logger.error(f"Error processing item {index}: {str(e)}")
                return self.orchestrator.local_result(use_case, item)

        logger.info(f"Processing batch of {len(items)} items ({use_case.value})")
        results = await asyncio.gather(*(run_one(i, item) for i, item in enumerate(items)))
        return list(results), len(failed)

    async def run_with_stats(self, items: Sequence[BatchItem],
                             use_case: Union[UseCase, str] = UseCase.RESUME_SCORING
                             ) -> Tuple[List[AnalysisResult], Dict[str, Any]]:
        """Like process_batch, for callers already inside an event loop."""
        start_time = time.time()
        results, failed = await self._gather(items, UseCase(use_case))
        local = sum(1 for r in results if r.is_local)

        stats = {
            'total_items': len(items),
            'remote_results': len(results) - local,
            'local_results': local,
            'failed': failed,
            'processing_time': time.time() - start_time,
        }
        logger.info(f"Batch finished: {stats}")
        return results, stats

    def process_batch(self, items: Sequence[BatchItem], use_case: Union[UseCase, str] = UseCase.RESUME_SCORING
                      ) -> Tuple[List[AnalysisResult], Dict[str, Any]]:
        """
        Synchronous entry point for callers without an event loop.

        Returns:
            Tuple of (results list, statistics dict)
        """
        return asyncio.run(self.run_with_stats(items, use_case))

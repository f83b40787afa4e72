import asyncio
import re

import pytest
from conftest import text_response

from resume_ai.batch import BatchProcessor
from resume_ai.orchestrator import AnalysisOrchestrator
from resume_ai.schemas import ResumeInput, UseCase


class ScoreFromPromptClient:
    """Answers with a score taken from the resume, slowest for the first resumes."""

    def __init__(self):
        self.active = 0
        self.peak = 0

    async def generate(self, prompt, structured=False):
        index = int(re.search(r'CANDIDATE-(\d+)', prompt).group(1))
        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            await asyncio.sleep(0.01 * (5 - index))
        finally:
            self.active -= 1
        return text_response({"score": 60 + index, "strengths": ["x"], "weaknesses": ["y"]})


class ExplodingOrchestrator(AnalysisOrchestrator):
    async def run(self, use_case, inputs=None):
        if 'explode' in inputs.resume_text:
            raise RuntimeError("boom")
        return await super().run(use_case, inputs)


def resumes(count):
    return [ResumeInput(resume_text=f"CANDIDATE-{i} python developer", job_description="python") for i in range(count)]


def test_results_follow_input_order(make_orchestrator):
    processor = BatchProcessor(make_orchestrator(ScoreFromPromptClient()))
    results = asyncio.run(processor.run_all(resumes(5)))

    assert [r.score for r in results] == [60, 61, 62, 63, 64]
    assert not any(r.is_local for r in results)


def test_runs_concurrently_by_default(make_orchestrator):
    client = ScoreFromPromptClient()
    asyncio.run(BatchProcessor(make_orchestrator(client)).run_all(resumes(4)))
    assert client.peak == 4


def test_max_concurrency(make_orchestrator):
    client = ScoreFromPromptClient()
    results = asyncio.run(BatchProcessor(make_orchestrator(client), max_concurrency=2).run_all(resumes(4)))
    assert client.peak == 2
    assert [r.score for r in results] == [60, 61, 62, 63]


def test_item_failure_becomes_local_result():
    orchestrator = ExplodingOrchestrator()
    items = [
        ResumeInput(resume_text="Jane Doe\npython developer"),
        ResumeInput(resume_text="explode"),
        ResumeInput(resume_text="John Smith\njava developer"),
    ]
    results, stats = BatchProcessor(orchestrator).process_batch(items)

    assert len(results) == 3
    assert results[1].is_local
    assert results[2].extracted_info.name == "John Smith"
    assert stats['failed'] == 1
    assert stats['total_items'] == 3


def test_concurrent_batches_count_their_own_failures():
    class SlowExplodingOrchestrator(ExplodingOrchestrator):
        async def run(self, use_case, inputs=None):
            await asyncio.sleep(0.01)
            return await super().run(use_case, inputs)

    processor = BatchProcessor(SlowExplodingOrchestrator())
    failing = [ResumeInput(resume_text="explode"), ResumeInput(resume_text="explode again")]
    passing = [ResumeInput(resume_text="Jane Doe\npython developer")]

    async def both():
        return await asyncio.gather(processor.run_with_stats(failing), processor.run_with_stats(passing))

    (failing_results, failing_stats), (passing_results, passing_stats) = asyncio.run(both())

    assert failing_stats['failed'] == 2
    assert passing_stats['failed'] == 0
    assert len(failing_results) == 2
    assert passing_results[0].extracted_info.name == "Jane Doe"


def test_process_batch_stats(make_orchestrator, fake_client):
    client = fake_client(text_response({"score": 90, "strengths": ["a"], "weaknesses": ["b"]}))
    items = [{'resume_text': 'python developer'}, {'resume_text': 'java developer'}]
    results, stats = BatchProcessor(make_orchestrator(client)).process_batch(items)

    assert [r.score for r in results] == [90, 90]
    assert stats['remote_results'] == 2
    assert stats['local_results'] == 0
    assert stats['failed'] == 0
    assert stats['processing_time'] >= 0


def test_other_use_cases(make_orchestrator):
    items = [{'question': 'Why Python?', 'response': 'Readable.'}]
    results, stats = BatchProcessor(make_orchestrator()).process_batch(items, UseCase.RESPONSE_CRITIQUE)
    assert results[0].strengths == ["Clear communication"]
    assert stats['local_results'] == 1


def test_empty_batch(make_orchestrator):
    results, stats = BatchProcessor(make_orchestrator()).process_batch([])
    assert results == []
    assert stats['total_items'] == 0


def test_invalid_concurrency(make_orchestrator):
    with pytest.raises(ValueError):
        BatchProcessor(make_orchestrator(), max_concurrency=0)

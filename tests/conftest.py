import json
import pytest
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from resume_ai.orchestrator import AnalysisOrchestrator
from resume_ai.retry import BackoffExecutor


class FakeClient:
    """Scripted stand-in for an LLM client.

    Each call consumes the next behavior; the last one repeats. A behavior
    that is an exception instance is raised, anything else is returned.
    """

    def __init__(self, *behaviors):
        self.behaviors = list(behaviors)
        self.calls = []

    async def generate(self, prompt, structured=False):
        self.calls.append({'prompt': prompt, 'structured': structured})
        behavior = self.behaviors.pop(0) if len(self.behaviors) > 1 else self.behaviors[0]
        if isinstance(behavior, BaseException):
            raise behavior
        return behavior


class SleepRecorder:
    """Async sleep replacement that records delays instead of waiting."""

    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


def text_response(payload):
    """Wrap a payload the way SDK responses expose generated text."""
    if not isinstance(payload, str):
        payload = json.dumps(payload)
    return {'text': payload}


@pytest.fixture
def sleeps():
    return SleepRecorder()


@pytest.fixture
def make_orchestrator(sleeps):
    def factory(client=None, **kwargs):
        executor = BackoffExecutor(max_retries=3, base_delay_ms=1000, sleep=sleeps)
        return AnalysisOrchestrator(client=client, executor=executor, **kwargs)
    return factory


@pytest.fixture
def fake_client():
    return FakeClient


@pytest.fixture
def sample_resume():
    return """Jane Doe
Senior Software Engineer
jane.doe@example.com | +1 (555) 123-4567

Summary: 6 years of experience building web services.
Skills: Python, Django, React, Node.js, AWS, Docker, PostgreSQL
"""


@pytest.fixture
def sample_job_description():
    return "Backend engineer with Python, Django, AWS and Kubernetes experience. React is a plus."


@pytest.fixture
def remote_analysis():
    """A complete, valid remote resume scoring payload."""
    return {
        "score": 88,
        "strengths": ["Deep Python experience", "Cloud deployments on AWS"],
        "weaknesses": ["No Kubernetes in production"],
        "recommendations": ["Advance to technical interview"],
        "aiSummary": "Strong backend engineer with relevant stack.",
        "gapAnalysis": {"missingSkills": ["Kubernetes"], "experienceGaps": []},
        "learningPath": [{
            "title": "Kubernetes fundamentals",
            "description": "Deploy a service to a managed cluster.",
            "resources": ["kubernetes.io tutorials"],
            "estimatedTime": "2 weeks",
        }],
    }

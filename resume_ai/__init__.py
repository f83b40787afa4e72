from .batch import BatchProcessor
from .config import Settings, load_settings
from .errors import (
    ConfigurationError,
    FatalServiceError,
    RemoteServiceError,
    ServiceTimeoutError,
    TransientServiceError,
)
from .extractor import ResponseTextExtractor
from .heuristics import LocalHeuristicAnalyzer
from .llm import GeminiClient, GroqClient, LLMClient, create_client
from .orchestrator import AnalysisOrchestrator
from .parser import StructuredTextParser, parse_json_from_text
from .retry import BackoffExecutor, RetryClass, classify_retryable
from .schemas import (
    AnalysisResult,
    CandidateInfo,
    GapAnalysis,
    InterviewGrade,
    InterviewStatus,
    InterviewStep,
    InterviewTurn,
    LearningStep,
    UseCase,
)

__all__ = [
    'AnalysisOrchestrator',
    'AnalysisResult',
    'BackoffExecutor',
    'BatchProcessor',
    'CandidateInfo',
    'ConfigurationError',
    'FatalServiceError',
    'GapAnalysis',
    'GeminiClient',
    'GroqClient',
    'InterviewGrade',
    'InterviewStatus',
    'InterviewStep',
    'InterviewTurn',
    'LLMClient',
    'LearningStep',
    'LocalHeuristicAnalyzer',
    'RemoteServiceError',
    'ResponseTextExtractor',
    'RetryClass',
    'ServiceTimeoutError',
    'Settings',
    'StructuredTextParser',
    'TransientServiceError',
    'UseCase',
    'classify_retryable',
    'create_client',
    'load_settings',
    'parse_json_from_text',
]

"""
Tiered analysis: structured remote call, free-text remote call, local heuristics.

Every public coroutine returns a fully populated result. Remote failures,
unparseable output and schema violations only move the call down a tier;
task cancellation is the one thing that escapes.
"""
import logging
from typing import Any, Dict, List, Optional, Sequence, Type, Union

from pydantic import BaseModel, ValidationError

from .config import Settings
from .extractor import ResponseTextExtractor
from .heuristics import LocalHeuristicAnalyzer, recommendation_for
from .llm import LLMClient, create_client
from .parser import StructuredTextParser
from .prompts import PromptBuilder, render_transcript
from .retry import BackoffExecutor
from .schemas import (
    AnalysisResult,
    GapAnalysis,
    InterviewGrade,
    InterviewInput,
    InterviewStep,
    InterviewTurn,
    LearningStep,
    ResponseInput,
    ResumeInput,
    UseCase,
)

logger = logging.getLogger('analysis_orchestrator')

RAW_TEXT_PREVIEW = 200
NEXT_QUESTION_FALLBACK = "Could you tell me a bit about your background and experience relevant to this role?"

REMOTE_GAP_PLACEHOLDER = GapAnalysis(
    missing_skills=['No specific skill gaps reported'],
    experience_gaps=['No specific experience gaps reported'],
)
REMOTE_STEP_PLACEHOLDER = LearningStep(
    title='Review role requirements',
    description='Compare the job description against your recent projects and close the largest gaps first.',
    resources=['Job description'],
    estimated_time='1 week',
)

REQUIRED_FIELDS: Dict[UseCase, Sequence[str]] = {
    UseCase.RESUME_SCORING: ('score', 'strengths', 'weaknesses'),
    UseCase.JOB_SEEKER_REVIEW: ('score',),
    UseCase.INTERVIEW_GRADING: ('score', 'summary', 'status'),
    UseCase.RESPONSE_CRITIQUE: ('score',),
}

INPUT_MODELS: Dict[UseCase, Type[BaseModel]] = {
    UseCase.RESUME_SCORING: ResumeInput,
    UseCase.JOB_SEEKER_REVIEW: ResumeInput,
    UseCase.INTERVIEW_GRADING: InterviewInput,
    UseCase.RESPONSE_CRITIQUE: ResponseInput,
}

# Field names models use instead of ours, first match wins
FIELD_ALIASES = (
    ('overallScore', 'score'),
    ('matchScore', 'score'),
    ('aiSummary', 'summary'),
    ('assessment', 'summary'),
    ('improvements', 'weaknesses'),
)


def normalize_aliases(data: Dict[str, Any]) -> Dict[str, Any]:
    normalized = dict(data)
    for alias, target in FIELD_ALIASES:
        if alias in normalized and normalized.get(target) is None:
            normalized[target] = normalized.pop(alias)
    return normalized


def preview(raw_text: str) -> str:
    text = raw_text.strip()
    if len(text) > RAW_TEXT_PREVIEW:
        return text[:RAW_TEXT_PREVIEW] + '...'
    return text


class AnalysisOrchestrator:
    def __init__(
        self,
        client: Optional[LLMClient] = None,
        executor: Optional[BackoffExecutor] = None,
        parser: Optional[StructuredTextParser] = None,
        extractor: Optional[ResponseTextExtractor] = None,
        heuristics: Optional[LocalHeuristicAnalyzer] = None,
        max_questions: int = 3,
    ):
        self.client = client
        self.executor = executor or BackoffExecutor()
        self.parser = parser or StructuredTextParser()
        self.extractor = extractor or ResponseTextExtractor()
        self.heuristics = heuristics or LocalHeuristicAnalyzer()
        self.max_questions = max_questions

    @classmethod
    def from_settings(cls, settings: Settings, client: Optional[LLMClient] = None) -> 'AnalysisOrchestrator':
        """Wire every collaborator from Settings. Raises ConfigurationError for a bad provider."""
        return cls(
            client=client if client is not None else create_client(settings),
            executor=BackoffExecutor(
                max_retries=settings.max_retries,
                base_delay_ms=settings.base_delay_ms,
                deadline_seconds=settings.deadline_seconds,
            ),
            heuristics=LocalHeuristicAnalyzer(settings.skills, settings.important_skills),
            max_questions=settings.max_questions,
        )

    async def run(self, use_case: Union[UseCase, str], inputs: Union[BaseModel, Dict[str, Any], None] = None
                  ) -> AnalysisResult:
        """
        Analyze inputs for one use case, never raising.

        Args:
            use_case: Which analysis to run
            inputs: ResumeInput, InterviewInput or ResponseInput (or an equivalent dict)

        Returns:
            AnalysisResult (InterviewGrade for interview grading)
        """
        use_case = UseCase(use_case)
        model = self._coerce_inputs(use_case, inputs)

        if self.client is None:
            logger.info(f"{use_case.value}: no remote client configured, using local analysis")
            return self._local(use_case, model)

        prompt_inputs = self._prompt_inputs(use_case, model)
        prompt = PromptBuilder.for_use_case(use_case, **prompt_inputs)

        # Critique is latency-sensitive, so it goes straight to free text
        modes = (False,) if use_case is UseCase.RESPONSE_CRITIQUE else (True, False)
        raw_text = ''
        for structured in modes:
            tier = 'structured' if structured else 'text'
            text = await self._call(prompt, structured, context=f"{use_case.value} ({tier})")
            if text is None:
                continue
            result = self._validate(use_case, model, text)
            if result is not None:
                logger.info(f"{use_case.value}: remote {tier} analysis succeeded (score {result.score:g})")
                return result
            raw_text = text or raw_text

        logger.warning(f"{use_case.value}: remote analysis unusable, falling back to local analysis")
        return self._fallback(use_case, model, raw_text)

    async def analyze_resume(self, resume_text: str, job_description: Optional[str] = None) -> AnalysisResult:
        return await self.run(UseCase.RESUME_SCORING, ResumeInput(resume_text=resume_text,
                                                                  job_description=job_description))

    async def review_resume(self, resume_text: str) -> AnalysisResult:
        return await self.run(UseCase.JOB_SEEKER_REVIEW, ResumeInput(resume_text=resume_text))

    async def grade_interview(self, turns: Sequence[Union[InterviewTurn, Dict[str, Any]]], job_title: str = '',
                              candidate_name: str = 'Candidate') -> InterviewGrade:
        return await self.run(UseCase.INTERVIEW_GRADING, {
            'turns': list(turns), 'job_title': job_title, 'candidate_name': candidate_name,
        })

    async def critique_response(self, question: str, response: str, job_title: str = '') -> AnalysisResult:
        return await self.run(UseCase.RESPONSE_CRITIQUE, ResponseInput(question=question, response=response,
                                                                      job_title=job_title))

    async def generate_interview_questions(self, job_title: str = '', skills: Optional[Sequence[str]] = None
                                           ) -> List[str]:
        """Ask the model for five questions; fall back to the stock list."""
        skills = list(skills or [])
        if self.client is not None:
            prompt = PromptBuilder.interview_questions(job_title, skills)
            text = await self._call(prompt, False, context='interview_questions')
            parsed = self.parser.parse(text) if text else None
            if isinstance(parsed, list):
                questions = [str(q).strip() for q in parsed if isinstance(q, (str, int, float)) and str(q).strip()]
                if questions:
                    return questions
            logger.warning("interview_questions: no usable question list, using defaults")
        return self.heuristics.interview_questions(job_title, skills)

    async def process_interview_turn(self, turns: Sequence[Union[InterviewTurn, Dict[str, Any]]],
                                     question_count: int, job_title: str = '',
                                     candidate_name: str = 'Candidate') -> InterviewStep:
        """Either produce the next screening question or, once enough were asked, the final grade."""
        if question_count >= self.max_questions:
            logger.info(f"Interview complete after {question_count} questions, grading")
            grade = await self.grade_interview(turns, job_title, candidate_name)
            return InterviewStep(is_complete=True, grade=grade)

        question = None
        if self.client is not None:
            history = self._coerce_inputs(UseCase.INTERVIEW_GRADING, {'turns': list(turns)}).turns
            prompt = PromptBuilder.next_interview_question(history, question_count, job_title, candidate_name)
            text = await self._call(prompt, False, context='interview_turn')
            question = text.strip() if text and text.strip() else None
        return InterviewStep(is_complete=False, next_question=question or NEXT_QUESTION_FALLBACK)

    async def _call(self, prompt: str, structured: bool, context: str) -> Optional[str]:
        """Remote call through the backoff executor; None when it failed for good."""
        try:
            response = await self.executor.execute(
                lambda: self.client.generate(prompt, structured=structured),
                context=context,
            )
        except Exception as e:
            logger.warning(f"{context} - remote call failed: {str(e)}")
            return None
        return self.extractor.extract(response)

    def _validate(self, use_case: UseCase, model: BaseModel, text: str) -> Optional[AnalysisResult]:
        if not text:
            logger.info(f"{use_case.value}: empty remote response")
            return None

        data = self.parser.parse(text)
        if not isinstance(data, dict):
            logger.info(f"{use_case.value}: remote text did not contain a JSON object")
            return None

        data = normalize_aliases(data)
        missing = [name for name in REQUIRED_FIELDS[use_case] if data.get(name) is None]
        if missing:
            logger.info(f"{use_case.value}: remote result missing required fields {missing}")
            return None

        self._enrich(data, self._local(use_case, model))

        result_type = InterviewGrade if use_case is UseCase.INTERVIEW_GRADING else AnalysisResult
        try:
            return result_type.model_validate(data)
        except ValidationError as e:
            logger.info(f"{use_case.value}: remote result failed validation: {e.error_count()} errors")
            return None

    @staticmethod
    def _enrich(data: Dict[str, Any], local: AnalysisResult) -> None:
        """Fill the optional fields the model left out."""
        def omitted(alias: str, name: str) -> bool:
            return not data.get(alias) and not data.get(name)

        # Contact details come from the resume itself
        if omitted('extractedInfo', 'extracted_info'):
            data['extractedInfo'] = local.extracted_info.model_dump()
        if omitted('summary', 'summary'):
            data['summary'] = local.summary
        if omitted('recommendations', 'recommendations'):
            score = data.get('score')
            if local.recommendations:
                data['recommendations'] = list(local.recommendations)
            elif isinstance(score, (int, float)) and not isinstance(score, bool):
                data['recommendations'] = [recommendation_for(score)]
        # Placeholders, not the local ones: those carry the Local Mode marker
        if omitted('gapAnalysis', 'gap_analysis'):
            data['gapAnalysis'] = REMOTE_GAP_PLACEHOLDER.model_dump()
        if omitted('learningPath', 'learning_path'):
            data['learningPath'] = [REMOTE_STEP_PLACEHOLDER.model_dump()]

    def local_result(self, use_case: Union[UseCase, str], inputs: Union[BaseModel, Dict[str, Any], None] = None
                     ) -> AnalysisResult:
        """Offline analysis only, bypassing the remote tiers."""
        use_case = UseCase(use_case)
        return self._local(use_case, self._coerce_inputs(use_case, inputs))

    def _local(self, use_case: UseCase, model: Any) -> AnalysisResult:
        if use_case is UseCase.RESUME_SCORING:
            return self.heuristics.analyze(model.resume_text, model.job_description)
        if use_case is UseCase.JOB_SEEKER_REVIEW:
            return self.heuristics.review(model.resume_text)
        if use_case is UseCase.INTERVIEW_GRADING:
            return self.heuristics.grade_interview(render_transcript(model.turns))
        return self.heuristics.critique_response(model.question, model.response)

    def _fallback(self, use_case: UseCase, model: Any, raw_text: str) -> AnalysisResult:
        result = self._local(use_case, model)
        updates: Dict[str, Any] = {}
        if raw_text.strip():
            updates['summary'] = preview(raw_text)
        if use_case is UseCase.RESUME_SCORING:
            if not result.strengths:
                updates['strengths'] = ['Strong technical background', 'Relevant experience']
            if not result.weaknesses:
                updates['weaknesses'] = ['Could improve in specific areas']
        return result.model_copy(update=updates) if updates else result

    @staticmethod
    def _coerce_inputs(use_case: UseCase, inputs: Union[BaseModel, Dict[str, Any], None]) -> Any:
        input_type = INPUT_MODELS[use_case]
        if isinstance(inputs, input_type):
            return inputs
        if isinstance(inputs, BaseModel):
            inputs = inputs.model_dump()
        try:
            return input_type.model_validate(inputs or {})
        except ValidationError as e:
            logger.error(f"{use_case.value}: invalid inputs, analyzing empty input instead: {e.error_count()} errors")
            return input_type()

    @staticmethod
    def _prompt_inputs(use_case: UseCase, model: Any) -> Dict[str, Any]:
        if use_case is UseCase.INTERVIEW_GRADING:
            return {'transcript': render_transcript(model.turns), 'job_title': model.job_title}
        return model.model_dump()

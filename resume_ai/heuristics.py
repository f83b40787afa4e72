"""
Offline analysis used when the language model is unconfigured or unusable.

Everything here is deterministic and cheap: regex extraction of contact
details, substring matching against a curated skill vocabulary and a token
overlap score against the job description.
"""
import logging
import math
from typing import Iterable, List, Optional, Sequence

import regex as re

from .schemas import (
    LOCAL_MODE_MARKER,
    AnalysisResult,
    CandidateInfo,
    GapAnalysis,
    InterviewGrade,
    InterviewStatus,
    LearningStep,
    MatchScore,
)

logger = logging.getLogger('local_analyzer')

DEFAULT_SKILLS = (
    'javascript', 'typescript', 'react', 'node', 'node.js', 'python', 'java', 'c++', 'c#', 'go',
    'ruby', 'php', 'swift', 'kotlin', 'html', 'css', 'tailwind', 'next', 'angular', 'vue',
    'express', 'django', 'flask', 'spring', 'mongodb', 'postgres', 'mysql', 'sql', 'redis', 'graphql',
    'aws', 'azure', 'gcp', 'docker', 'kubernetes', 'git', 'ci/cd', 'jest', 'pytest', 'junit',
)

DEFAULT_IMPORTANT_SKILLS = (
    'react', 'node', 'typescript', 'javascript', 'python', 'java', 'aws', 'docker', 'kubernetes',
    'sql', 'mongodb',
)

NEUTRAL_SCORE = 75
INTERVIEW_SCORE = 70
MAX_EXPERIENCE_YEARS = 40

INTERVIEW_FALLBACK_SUMMARY = "Interview completed (AI parsing failed, using default)."
EXPERIENCE_GAP_NOTE = "Detailed experience gap analysis requires AI"

SETUP_STEP = LearningStep(
    title='Complete AI Setup',
    description='To get personalized learning paths, please configure the Gemini API key in the backend.',
    resources=['Google AI Studio'],
    estimated_time='5 minutes',
)

EMAIL_PATTERN = re.compile(r'[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}', re.IGNORECASE)
PHONE_PATTERN = re.compile(r'(\+?\d[\d\s\-()]{8,}\d)')
EXPERIENCE_PATTERN = re.compile(r'(\d{1,2})\s+years?')
NAME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z\s.'-]{4,}$")
TOKEN_SPLIT = re.compile(r'[^a-z0-9+#.]+')
LINE_SPLIT = re.compile(r'\r?\n')


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (Python's round() is banker's rounding)."""
    return int(math.floor(value + 0.5))


def recommendation_for(score: float) -> str:
    if score >= 80:
        return 'Strong fit'
    if score >= 65:
        return 'Potential fit'
    return 'Consider for role'


class LocalHeuristicAnalyzer:
    def __init__(self, skills: Optional[Iterable[str]] = None,
                 important_skills: Optional[Iterable[str]] = None):
        self.skills: Sequence[str] = tuple(s.lower() for s in (skills or DEFAULT_SKILLS))
        self.important_skills = frozenset(s.lower() for s in (important_skills or DEFAULT_IMPORTANT_SKILLS))

    def extract_candidate_info(self, text: Optional[str]) -> CandidateInfo:
        """Pull contact details, experience and known skills out of raw resume text."""
        text = text or ''
        lower = text.lower()

        email = EMAIL_PATTERN.search(text)
        phone = PHONE_PATTERN.search(text)
        years = EXPERIENCE_PATTERN.search(lower)
        experience = min(MAX_EXPERIENCE_YEARS, max(0, int(years.group(1)))) if years else 0

        return CandidateInfo(
            name=self._guess_name(text),
            email=email.group(0) if email else 'Not found',
            phone=phone.group(0) if phone else 'Not found',
            experience=experience,
            skills=self.detect_skills(lower),
        )

    def detect_skills(self, lower_text: str) -> List[str]:
        # Plain substring containment, so short tokens like "go" match loosely
        found = []
        for skill in self.skills:
            if skill in lower_text:
                skill = skill.replace('node.js', 'node')
                if skill not in found:
                    found.append(skill)
        return found

    @staticmethod
    def _guess_name(text: str) -> str:
        lines = [line.strip() for line in LINE_SPLIT.split(text) if line.strip()]
        for line in lines[:10]:
            if NAME_PATTERN.match(line) and 'resume' not in line.lower():
                return line
        return 'Unknown Candidate'

    def compute_match_score(self, resume_text: str, job_description: str) -> MatchScore:
        """
        Score token overlap between resume and job description.

        The result always lands in [50, 95]: overlap ratio contributes up to
        70 points, the weighted match count up to 25.
        """
        resume_lower = (resume_text or '').lower()
        job_tokens: List[str] = []
        for token in TOKEN_SPLIT.split((job_description or '').lower()):
            if len(token) > 2 and token not in job_tokens:
                job_tokens.append(token)

        matched = [t for t in job_tokens if t in resume_lower]
        missing = [t for t in job_tokens if t not in resume_lower]
        weighted = sum(2 if t in self.important_skills else 1 for t in matched)

        ratio_points = round_half_up(len(matched) / max(10, len(job_tokens)) * 70)
        base = min(95, ratio_points + min(25, weighted))
        score = max(50, base)

        logger.debug(f"Match score {score}: {len(matched)}/{len(job_tokens)} tokens, weighted {weighted}")
        return MatchScore(
            score=score,
            strengths=[f"Experience with {t}" for t in matched[:3]],
            weaknesses=[f"Limited evidence of {t}" for t in missing[:3]],
        )

    def _local_result(self, info: CandidateInfo, score: float, **fields) -> AnalysisResult:
        fields.setdefault('recommendations', [recommendation_for(score)])
        fields.setdefault('summary', self.summarize(info))
        return AnalysisResult(
            score=score,
            extracted_info=info,
            gap_analysis=GapAnalysis(
                missing_skills=[LOCAL_MODE_MARKER],
                experience_gaps=[EXPERIENCE_GAP_NOTE],
            ),
            learning_path=[SETUP_STEP],
            **fields,
        )

    @staticmethod
    def summarize(info: CandidateInfo) -> str:
        return f"Estimated {info.experience} years experience. Top skills: {', '.join(info.skills[:5])}"

    def analyze(self, resume_text: str, job_description: Optional[str] = None) -> AnalysisResult:
        info = self.extract_candidate_info(resume_text)
        if not job_description or not job_description.strip():
            return self._local_result(
                info, NEUTRAL_SCORE,
                strengths=[f"Experience with {s}" for s in info.skills[:3]],
                weaknesses=[],
            )

        match = self.compute_match_score(resume_text, job_description)
        return self._local_result(info, match.score, strengths=match.strengths, weaknesses=match.weaknesses)

    def review(self, resume_text: str) -> AnalysisResult:
        """Generic job-seeker feedback when the model cannot review the resume."""
        info = self.extract_candidate_info(resume_text)
        skills_line = (
            f"Strong technical skills: {', '.join(info.skills[:5])}" if info.skills
            else 'Good professional background'
        )
        return self._local_result(
            info, NEUTRAL_SCORE,
            strengths=['Well-structured resume', 'Clear experience presentation', skills_line],
            weaknesses=[
                'Could add more quantifiable achievements',
                'Consider adding certifications',
                'Include metrics to demonstrate impact',
            ],
            recommendations=[
                'Highlight key achievements with metrics',
                'Include relevant certifications',
                'Add a professional summary section',
                'Quantify your accomplishments with numbers',
            ],
        )

    def grade_interview(self, transcript: str) -> InterviewGrade:
        info = self.extract_candidate_info(transcript)
        base = self._local_result(info, INTERVIEW_SCORE, strengths=[], weaknesses=[],
                                  recommendations=[], summary=INTERVIEW_FALLBACK_SUMMARY)
        return InterviewGrade(**dict(base), status=InterviewStatus.CONSIDER)

    def critique_response(self, question: str, response: str) -> AnalysisResult:
        info = self.extract_candidate_info(response)
        return self._local_result(
            info, NEUTRAL_SCORE,
            strengths=['Clear communication'],
            weaknesses=['Could add more specific examples'],
            recommendations=[],
            summary='Good response, consider adding more detail.',
        )

    @staticmethod
    def interview_questions(job_title: str = '', skills: Optional[Sequence[str]] = None) -> List[str]:
        first_skill = skills[0] if skills else 'programming'
        return [
            f"Tell me about your experience with {first_skill}",
            'Describe a challenging project you worked on',
            'How do you approach problem-solving?',
            'What are your career goals?',
            'Why are you interested in this position?',
        ]

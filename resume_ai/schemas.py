import re
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator
from pydantic.alias_generators import to_camel

LOCAL_MODE_MARKER = "Advanced skills analysis unavailable (Local Mode)"


def _coerce_str_list(value: Any) -> Any:
    """Accept the loose list shapes models like to produce."""
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    if not isinstance(value, (list, tuple)):
        return value
    items = []
    for item in value:
        if item is None:
            continue
        if isinstance(item, dict):
            item = ' - '.join(str(v) for v in item.values() if v not in (None, ''))
        elif not isinstance(item, str):
            item = str(item)
        if item.strip():
            items.append(item.strip())
    return items


class _Model(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class UseCase(str, Enum):
    RESUME_SCORING = "resume_scoring"
    JOB_SEEKER_REVIEW = "job_seeker_review"
    INTERVIEW_GRADING = "interview_grading"
    RESPONSE_CRITIQUE = "response_critique"


class InterviewStatus(str, Enum):
    RECOMMENDED = "Recommended"
    CONSIDER = "Consider"
    REJECTED = "Rejected"


class CandidateInfo(_Model):
    name: str = "Unknown Candidate"
    email: str = "Not found"
    phone: str = "Not found"
    experience: int = Field(0, ge=0, description="Years of experience")
    skills: List[str] = Field(default_factory=list)
    education: str = "Not specified"
    location: str = "Not specified"

    @field_validator('name', 'email', 'phone', 'education', 'location', mode='before')
    @classmethod
    def default_when_blank(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return cls.model_fields[info.field_name].default
        if isinstance(value, list):
            return ', '.join(str(v) for v in value if v)
        return value

    @field_validator('experience', mode='before')
    @classmethod
    def whole_years(cls, value: Any) -> Any:
        if value is None or value == '':
            return 0
        if isinstance(value, float):
            return max(0, int(value))
        if isinstance(value, str):
            # "5 years", "5+"
            years = re.match(r"\s*(\d+)", value)
            return int(years.group(1)) if years else 0
        return value

    @field_validator('skills', mode='before')
    @classmethod
    def dedupe_skills(cls, value: Any) -> Any:
        value = _coerce_str_list(value)
        if not isinstance(value, list):
            return value
        seen = set()
        skills = []
        for skill in value:
            key = skill.lower()
            if key not in seen:
                seen.add(key)
                skills.append(skill)
        return skills


class GapAnalysis(_Model):
    missing_skills: List[str] = Field(default_factory=list)
    experience_gaps: List[str] = Field(default_factory=list)

    @field_validator('missing_skills', 'experience_gaps', mode='before')
    @classmethod
    def coerce_lists(cls, value: Any) -> Any:
        return _coerce_str_list(value)


class LearningStep(_Model):
    title: str
    description: str = ""
    resources: List[str] = Field(default_factory=list)
    estimated_time: str = "Not specified"

    @field_validator('resources', mode='before')
    @classmethod
    def coerce_resources(cls, value: Any) -> Any:
        return _coerce_str_list(value)


class AnalysisResult(_Model):
    """Shape returned by every use case, whichever tier produced it."""
    score: float = Field(..., ge=0, le=100)
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    summary: str = ""
    extracted_info: CandidateInfo = Field(default_factory=CandidateInfo)
    gap_analysis: GapAnalysis = Field(default_factory=GapAnalysis)
    learning_path: List[LearningStep] = Field(default_factory=list)

    @field_validator('strengths', 'weaknesses', 'recommendations', mode='before')
    @classmethod
    def coerce_lists(cls, value: Any) -> Any:
        return _coerce_str_list(value)

    @field_validator('learning_path', mode='before')
    @classmethod
    def coerce_steps(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, list):
            return [{'title': step} if isinstance(step, str) else step for step in value]
        return value

    @field_validator('summary', mode='before')
    @classmethod
    def summary_text(cls, value: Any) -> Any:
        if value is None:
            return ""
        if isinstance(value, list):
            return ' '.join(_coerce_str_list(value))
        return value

    @property
    def is_local(self) -> bool:
        """True when the result came from the offline heuristics."""
        return LOCAL_MODE_MARKER in self.gap_analysis.missing_skills


class InterviewGrade(AnalysisResult):
    status: InterviewStatus

    @field_validator('status', mode='before')
    @classmethod
    def status_case(cls, value: Any) -> Any:
        if isinstance(value, str):
            for status in InterviewStatus:
                if status.value.lower() == value.strip().lower():
                    return status
        return value


class MatchScore(_Model):
    score: int = Field(..., ge=50, le=95)
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)


class InterviewTurn(_Model):
    role: str = Field(..., pattern="^(interviewer|candidate)$")
    text: str = ""

    @model_validator(mode='before')
    @classmethod
    def normalize_turn(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        role = str(data.get('role', '')).strip().lower()
        data['role'] = 'interviewer' if role in ('ai', 'assistant', 'interviewer', 'recruiter') else 'candidate'
        if not data.get('text'):
            data['text'] = data.get('content') or ''
        data.pop('content', None)
        return data


class ResumeInput(_Model):
    resume_text: str = ""
    job_description: Optional[str] = None


class InterviewInput(_Model):
    turns: List[InterviewTurn] = Field(default_factory=list)
    job_title: str = ""
    candidate_name: str = "Candidate"


class ResponseInput(_Model):
    question: str = ""
    response: str = ""
    job_title: str = ""


class InterviewStep(_Model):
    is_complete: bool
    next_question: Optional[str] = None
    grade: Optional[InterviewGrade] = None

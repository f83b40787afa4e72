import json
import logging
from typing import Optional, Sequence

from .schemas import InterviewTurn, UseCase

logger = logging.getLogger(__name__)

MAX_RESUME_CHARS = 5000

_RESULT_SCHEMA = """{
  "score": number,
  "strengths": string[],
  "weaknesses": string[],
  "recommendations": string[],
  "summary": string,
  "extractedInfo": {
    "name": string,
    "email": string,
    "phone": string,
    "experience": number,
    "skills": string[],
    "education": string,
    "location": string
  },
  "gapAnalysis": {
    "missingSkills": string[],
    "experienceGaps": string[]
  },
  "learningPath": [{
    "title": string,
    "description": string,
    "resources": string[],
    "estimatedTime": string
  }]
}"""

_STRICT_JSON = """Return ONLY a single valid JSON object. Do NOT add any text before or after it.
Do NOT use markdown, code fences, comments, or trailing commas."""


def render_transcript(turns: Sequence[InterviewTurn]) -> str:
    return '\n'.join(
        f"{'Interviewer' if turn.role == 'interviewer' else 'Candidate'}: {turn.text}"
        for turn in turns
    )


class PromptBuilder:
    """Prompt text for each use case. Every prompt asks for camelCase JSON."""

    @classmethod
    def resume_scoring(cls, resume_text: str, job_description: Optional[str]) -> str:
        job = job_description.strip() if job_description and job_description.strip() else \
            "General professional role requiring strong communication and technical skills."
        return f"""Analyze this resume against the job description and extract candidate information.

Job Description: {job}

Resume Text: {resume_text[:MAX_RESUME_CHARS]}

Please provide:
1. Match score (0-100)
2. Key strengths (top 3)
3. Areas for improvement (top 3)
4. Overall recommendation
5. Extracted candidate information
6. Gap analysis (missing skills and experience)
7. Recommended learning path (3-5 steps with resources)

{_STRICT_JSON}
JSON must strictly conform to this schema with correct types:
{_RESULT_SCHEMA}"""

    @classmethod
    def job_seeker_review(cls, resume_text: str) -> str:
        return f"""Analyze this resume and provide comprehensive feedback for the job seeker.

Resume Text: {resume_text[:MAX_RESUME_CHARS]}

Please provide:
1. Overall resume quality score (0-100)
2. Key strengths (top 5)
3. Areas for improvement (top 5)
4. Actionable recommendations (top 5)
5. Overall summary
6. Extracted candidate information
7. Gap analysis (missing skills and experience gaps)
8. Recommended learning path

{_STRICT_JSON}
JSON must strictly conform to this schema with correct types:
{_RESULT_SCHEMA}"""

    @classmethod
    def interview_grading(cls, transcript: str, job_title: str) -> str:
        return f"""You are an expert hiring manager. Grade this interview for the role of "{job_title or 'General'}".

TRANSCRIPT:
{transcript}

INSTRUCTIONS:
- Assess communication skills, technical relevance, and professionalism.
- Assign a score 0-100.
- Provide a short summary (2-3 sentences).
- Set status to exactly one of "Recommended", "Consider" or "Rejected".

{_STRICT_JSON}
{{
  "score": number,
  "summary": string,
  "status": string,
  "strengths": string[],
  "weaknesses": string[]
}}"""

    @classmethod
    def response_critique(cls, question: str, response: str, job_title: str) -> str:
        return f"""Quick analysis (be concise):
Question: {question}
Response: {response}
Job: {job_title or 'General'}

JSON only:
{{
  "score": number,
  "strengths": string[],
  "improvements": string[],
  "assessment": string
}}"""

    @classmethod
    def interview_questions(cls, job_title: str, skills: Sequence[str]) -> str:
        return f"""Generate 5 relevant interview questions for a {job_title or 'general'} position.
The candidate has these skills: {', '.join(skills) or 'not specified'}

Include:
- Technical questions
- Behavioral questions
- Problem-solving scenarios

Return as a JSON array of strings."""

    @classmethod
    def next_interview_question(cls, turns: Sequence[InterviewTurn], question_count: int,
                                job_title: str, candidate_name: str) -> str:
        history = json.dumps([{'role': t.role, 'text': t.text} for t in turns])
        return f"""You are an expert technical recruiter conducting a phone screen for a {job_title or 'general'} position.
The candidate's name is {candidate_name}.

Here is the transcript of the interview so far:
{history}

Your goal is to screen the candidate for basic qualifications and communication skills.
You have asked {question_count} questions so far.

Please generate the NEXT question to ask.
- You must NOT repeat any question that has already been asked (check the transcript).
- If this is the first question, ask about their background.
- If they just answered a question, acknowledge their answer briefly and ask a relevant follow-up or move to a new topic.
- Keep the question conversational, professional, and concise (under 2 sentences).
- Do NOT include "Candidate:" or "Recruiter:" prefixes. Just the spoken text."""

    @classmethod
    def for_use_case(cls, use_case: UseCase, **inputs) -> str:
        if use_case is UseCase.RESUME_SCORING:
            return cls.resume_scoring(inputs.get('resume_text', ''), inputs.get('job_description'))
        if use_case is UseCase.JOB_SEEKER_REVIEW:
            return cls.job_seeker_review(inputs.get('resume_text', ''))
        if use_case is UseCase.INTERVIEW_GRADING:
            return cls.interview_grading(inputs.get('transcript', ''), inputs.get('job_title', ''))
        if use_case is UseCase.RESPONSE_CRITIQUE:
            return cls.response_critique(inputs.get('question', ''), inputs.get('response', ''),
                                         inputs.get('job_title', ''))
        raise ValueError(f"Unknown use case: {use_case}")

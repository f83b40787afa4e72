import copy
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

import yaml
from dotenv import load_dotenv

from .errors import ConfigurationError

logger = logging.getLogger('config')

DEFAULT_CONFIG_PATH = os.path.join('config', 'analysis.yaml')
PLACEHOLDER_KEYS = {'', 'your-gemini-api-key-here', 'your-groq-api-key-here'}
PROVIDERS = ('gemini', 'groq')

DEFAULT_CONFIG: Dict[str, Any] = {
    'llm': {
        'provider': 'gemini',
        'gemini_model': 'gemini-1.5-flash',
        'groq_model': 'llama-3.1-8b-instant',
        'temperature': 0.2,
        'max_output_tokens': 2048,
        'request_timeout': 60,
    },
    'retry': {
        'max_retries': 3,
        'base_delay_ms': 1000,
        'deadline_seconds': None,
    },
    'interview': {
        'max_questions': 3,
    },
    'batch': {
        'max_concurrency': None,
    },
    'heuristics': {
        'skills': None,
        'important_skills': None,
    },
}


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _clean_key(value: Optional[str]) -> Optional[str]:
    if value is None or value.strip() in PLACEHOLDER_KEYS:
        return None
    return value.strip()


@dataclass(frozen=True)
class Settings:
    provider: str = 'gemini'
    model: str = 'gemini-1.5-flash'
    temperature: float = 0.2
    max_output_tokens: int = 2048
    request_timeout: float = 60
    api_key: Optional[str] = None
    max_retries: int = 3
    base_delay_ms: int = 1000
    deadline_seconds: Optional[float] = None
    max_questions: int = 3
    max_concurrency: Optional[int] = None
    skills: Optional[Tuple[str, ...]] = None
    important_skills: Optional[Tuple[str, ...]] = None
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def has_credentials(self) -> bool:
        return self.api_key is not None


def read_config_file(path: str) -> Dict[str, Any]:
    """Read a YAML config file. A missing file yields an empty mapping."""
    if not os.path.exists(path):
        logger.info(f"No config file at {path}, using defaults")
        return {}
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Malformed config file {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping, got {type(data).__name__}")
    return data


def _optional_tuple(values: Any) -> Optional[Tuple[str, ...]]:
    if not values:
        return None
    if not isinstance(values, (list, tuple)):
        raise ConfigurationError("heuristics skill lists must be YAML sequences")
    return tuple(str(v) for v in values)


def load_settings(path: Optional[str] = None, env: Optional[Dict[str, str]] = None) -> Settings:
    """
    Build Settings from defaults, the YAML config file and the environment.

    Args:
        path: Config file; falls back to $RESUME_AI_CONFIG then config/analysis.yaml
        env: Environment mapping, os.environ after load_dotenv() when omitted

    Raises:
        ConfigurationError: malformed YAML or an unknown provider
    """
    if env is None:
        load_dotenv()
        env = dict(os.environ)

    path = path or env.get('RESUME_AI_CONFIG') or DEFAULT_CONFIG_PATH
    config = deep_merge(DEFAULT_CONFIG, read_config_file(path))
    llm = config['llm']

    provider = (env.get('AI_PROVIDER') or llm['provider'] or '').strip().lower()
    if provider not in PROVIDERS:
        raise ConfigurationError(f"Unknown AI provider '{provider}', expected one of {', '.join(PROVIDERS)}")

    model = env.get('AI_MODEL') or llm[f'{provider}_model']
    api_key = _clean_key(env.get('GEMINI_API_KEY' if provider == 'gemini' else 'GROQ_API_KEY'))
    if api_key is None:
        logger.warning(f"No API key configured for {provider}; analysis will run in local mode")

    try:
        return Settings(
            provider=provider,
            model=model,
            temperature=float(llm['temperature']),
            max_output_tokens=int(llm['max_output_tokens']),
            request_timeout=float(llm['request_timeout']),
            api_key=api_key,
            max_retries=int(config['retry']['max_retries']),
            base_delay_ms=int(config['retry']['base_delay_ms']),
            deadline_seconds=config['retry']['deadline_seconds'],
            max_questions=int(config['interview']['max_questions']),
            max_concurrency=config['batch']['max_concurrency'],
            skills=_optional_tuple(config['heuristics']['skills']),
            important_skills=_optional_tuple(config['heuristics']['important_skills']),
            raw=config,
        )
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid configuration value: {e}") from e

"""
Configuration Management

Review configuration: defaults, config-file discovery and merging,
environment secrets, validation and logging setup.
"""

import os
import json
import copy
import yaml
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List, Tuple
from pathlib import Path
import logging
from logging.handlers import RotatingFileHandler

from pydantic import ValidationError

from .models.rules import RuleSpec, RuleSpecRequest


logger = logging.getLogger(__name__)

CONFIG_FILENAMES = (
    '.llmreviewrc.yml',
    '.llmreviewrc.yaml',
    '.llmreviewrc.json',
    '.llmreview.json',
    'llmreview.config.json',
)

VALID_PROVIDERS = ('openai', 'anthropic', 'azure', 'local')

# camelCase keys accepted from existing .llmreviewrc.json files
KEY_ALIASES = {
    'focusAreas': 'focus_areas',
    'maxComments': 'max_comments',
    'excludePatterns': 'exclude_patterns',
    'maxTokens': 'max_tokens',
    'apiVersion': 'api_version',
    'absoluteLines': 'absolute_lines',
}

DEFAULT_CONFIG: Dict[str, Any] = {
    'enabled': True,
    'llm': {
        'provider': 'openai',
        'model': 'gpt-4',
        'temperature': 0.1,
        'max_tokens': 2000,
    },
    'review': {
        'focus_areas': ['bugs', 'security', 'readability', 'best-practices'],
        'severity': 'medium',
        'max_comments': 10,
        'exclude_patterns': [
            '*.test.js',
            '*.spec.js',
            'node_modules/**',
            'dist/**',
            'build/**',
        ],
    },
    'rules': {
        'custom': [],
    },
}


@dataclass(frozen=True)
class LLMConfig:
    """LLM provider settings"""
    provider: str = "openai"
    model: str = "gpt-4"
    temperature: float = 0.1
    max_tokens: int = 2000
    timeout_seconds: int = 60
    api_key: Optional[str] = None
    endpoint: Optional[str] = None
    api_version: str = "2023-12-01-preview"


@dataclass(frozen=True)
class ReviewConfig:
    """Review request settings"""
    focus_areas: Tuple[str, ...] = ('bugs', 'security', 'readability', 'best-practices')
    severity: str = "medium"
    max_comments: int = 10
    exclude_patterns: Tuple[str, ...] = ()


@dataclass(frozen=True)
class RulesConfig:
    """Custom rule settings"""
    custom: Tuple[RuleSpec, ...] = ()
    absolute_lines: bool = False


@dataclass(frozen=True)
class GitHubConfig:
    """GitHub API settings"""
    token: Optional[str] = None
    owner: Optional[str] = None
    repository: Optional[str] = None
    api_base_url: str = "https://api.github.com"
    timeout_seconds: int = 30
    comment_delay_seconds: float = 0.1
    bot_login_marker: str = "bot"


@dataclass(frozen=True)
class LoggingConfig:
    """Logging settings"""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file_path: Optional[str] = None
    max_file_size: int = 10 * 1024 * 1024  # 10MB
    backup_count: int = 5


@dataclass(frozen=True)
class AppConfig:
    """Complete application configuration"""
    enabled: bool = True
    llm: LLMConfig = field(default_factory=LLMConfig)
    review: ReviewConfig = field(default_factory=ReviewConfig)
    rules: RulesConfig = field(default_factory=RulesConfig)
    github: GitHubConfig = field(default_factory=GitHubConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], env: Optional[Dict[str, str]] = None) -> "AppConfig":
        """
        Build configuration from a (merged) config mapping.

        Args:
            data: Config mapping; missing sections use dataclass defaults
            env: Environment used for secrets (default: os.environ)

        Returns:
            Validated AppConfig
        """
        env = os.environ if env is None else env
        data = _normalize_keys(data)

        llm_data = dict(data.get('llm') or {})
        provider = llm_data.get('provider', LLMConfig.provider)
        llm_data.setdefault('api_key', _provider_api_key(provider, env))
        if provider == 'azure':
            llm_data.setdefault('endpoint', env.get('AZURE_OPENAI_ENDPOINT'))

        review_data = dict(data.get('review') or {})
        for key in ('focus_areas', 'exclude_patterns'):
            if key in review_data:
                review_data[key] = tuple(review_data[key] or ())

        rules_data = dict(data.get('rules') or {})
        rules_data['custom'] = _parse_rules(rules_data.get('custom') or [])

        github_data = dict(data.get('github') or {})
        github_data.setdefault('token', env.get('GITHUB_TOKEN'))
        github_data.setdefault('owner', env.get('REPO_OWNER'))
        github_data.setdefault('repository', env.get('REPO_NAME'))

        logging_data = dict(data.get('logging') or {})
        if env.get('LOG_LEVEL'):
            logging_data['level'] = env['LOG_LEVEL']

        try:
            config = cls(
                enabled=bool(data.get('enabled', True)),
                llm=LLMConfig(**llm_data),
                review=ReviewConfig(**review_data),
                rules=RulesConfig(**rules_data),
                github=GitHubConfig(**github_data),
                logging=LoggingConfig(**logging_data),
            )
        except TypeError as e:
            raise ValueError(f"Configuration validation failed: {e}") from e

        config.validate()
        return config

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Defaults plus environment secrets"""
        return cls.from_dict(copy.deepcopy(DEFAULT_CONFIG))

    @classmethod
    def from_file(cls, config_path: str) -> "AppConfig":
        """Load a single YAML or JSON config file merged over the defaults"""
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        return cls.from_dict(merge_config(DEFAULT_CONFIG, _normalize_keys(_read_config_file(config_file))))

    def validate(self) -> None:
        """Validate configuration values"""
        errors = []

        if self.llm.provider not in VALID_PROVIDERS:
            errors.append(
                f"Invalid LLM provider: {self.llm.provider}. Must be one of: {', '.join(VALID_PROVIDERS)}"
            )

        if not self.llm.model:
            errors.append("LLM model is required")

        if not 0.0 <= self.llm.temperature <= 2.0:
            errors.append("Temperature must be between 0.0 and 2.0")

        if self.llm.max_tokens <= 0:
            errors.append("max_tokens must be positive")

        if self.review.max_comments <= 0:
            errors.append("max_comments must be positive")

        if self.review.severity not in {'high', 'medium', 'low'}:
            errors.append(f"Invalid severity: {self.review.severity}")

        if self.github.comment_delay_seconds < 0:
            errors.append("comment_delay_seconds must be non-negative")

        valid_log_levels = {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}
        if self.logging.level.upper() not in valid_log_levels:
            errors.append(f"Invalid log level: {self.logging.level}")

        if errors:
            raise ValueError(f"Configuration validation failed: {'; '.join(errors)}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to a dictionary (secrets excluded)"""
        return {
            'enabled': self.enabled,
            'llm': {
                'provider': self.llm.provider,
                'model': self.llm.model,
                'temperature': self.llm.temperature,
                'max_tokens': self.llm.max_tokens,
                'timeout_seconds': self.llm.timeout_seconds,
                'endpoint': self.llm.endpoint,
                'api_version': self.llm.api_version,
            },
            'review': {
                'focus_areas': list(self.review.focus_areas),
                'severity': self.review.severity,
                'max_comments': self.review.max_comments,
                'exclude_patterns': list(self.review.exclude_patterns),
            },
            'rules': {
                'custom': [
                    {
                        'name': rule.name,
                        'pattern': rule.pattern,
                        'message': rule.message,
                        'severity': rule.severity,
                    }
                    for rule in self.rules.custom
                ],
                'absolute_lines': self.rules.absolute_lines,
            },
            'github': {
                'owner': self.github.owner,
                'repository': self.github.repository,
                'api_base_url': self.github.api_base_url,
                'timeout_seconds': self.github.timeout_seconds,
                'comment_delay_seconds': self.github.comment_delay_seconds,
                'bot_login_marker': self.github.bot_login_marker,
                # token excluded
            },
            'logging': {
                'level': self.logging.level,
                'format': self.logging.format,
                'file_path': self.logging.file_path,
                'max_file_size': self.logging.max_file_size,
                'backup_count': self.logging.backup_count,
            },
        }


def merge_config(target: Dict[str, Any], source: Dict[str, Any]) -> Dict[str, Any]:
    """
    Deep-merge ``source`` over ``target``.

    Nested mappings are merged; lists and scalars from ``source`` replace
    the target value. Neither argument is modified.
    """
    result = copy.deepcopy(target)

    for key, value in source.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = merge_config(result[key], value)
        else:
            result[key] = copy.deepcopy(value)

    return result


def find_config_file(root_path: str) -> Optional[Path]:
    """Return the first existing config file under ``root_path``"""
    for filename in CONFIG_FILENAMES:
        candidate = Path(root_path) / filename
        if candidate.exists():
            return candidate
    return None


def load_config(root_path: Optional[str] = None, env: Optional[Dict[str, str]] = None) -> AppConfig:
    """
    Discover, merge and validate configuration.

    Candidates are tried in order; one that fails to load is logged and the
    next is tried. Without any usable file the defaults are used.

    Args:
        root_path: Directory to search (default: current directory)
        env: Environment used for secrets (default: os.environ)

    Returns:
        Validated AppConfig

    Raises:
        ValueError: If the merged configuration is invalid
    """
    root = Path(root_path or os.getcwd())
    user_config: Dict[str, Any] = {}

    for filename in CONFIG_FILENAMES:
        config_path = root / filename
        if not config_path.exists():
            continue
        try:
            user_config = _read_config_file(config_path)
            logger.info(f"Loaded config from {config_path}")
            break
        except (OSError, yaml.YAMLError, ValueError) as e:
            logger.warning(f"Failed to load config from {config_path}: {e}")

    return AppConfig.from_dict(merge_config(DEFAULT_CONFIG, _normalize_keys(user_config)), env=env)


def setup_logging(logging_config: LoggingConfig) -> None:
    """Configure the root logger"""
    logging.basicConfig(
        level=getattr(logging, logging_config.level.upper()),
        format=logging_config.format,
    )

    # Rotating file handler when a log file is configured
    if logging_config.file_path:
        handler = RotatingFileHandler(
            logging_config.file_path,
            maxBytes=logging_config.max_file_size,
            backupCount=logging_config.backup_count,
        )
        handler.setFormatter(logging.Formatter(logging_config.format))
        logging.getLogger().addHandler(handler)


def _read_config_file(config_path: Path) -> Dict[str, Any]:
    """Load a JSON config with json, anything else with YAML"""
    with open(config_path, 'r', encoding='utf-8') as f:
        if config_path.suffix == '.json':
            data = json.load(f)
        else:
            data = yaml.safe_load(f)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a mapping: {config_path}")
    return data


def _normalize_keys(data: Any) -> Any:
    """Rename camelCase aliases to snake_case, recursively"""
    if isinstance(data, dict):
        return {KEY_ALIASES.get(key, key): _normalize_keys(value) for key, value in data.items()}
    if isinstance(data, list):
        return [_normalize_keys(item) for item in data]
    return data


def _parse_rules(raw_rules: List[Any]) -> Tuple[RuleSpec, ...]:
    rules = []
    for index, raw_rule in enumerate(raw_rules):
        if isinstance(raw_rule, RuleSpec):
            rules.append(raw_rule)
            continue
        try:
            rules.append(RuleSpecRequest(**raw_rule).to_rule())
        except (ValidationError, TypeError) as e:
            raise ValueError(f"Configuration validation failed: invalid custom rule #{index}: {e}") from e
    return tuple(rules)


def _provider_api_key(provider: str, env: Dict[str, str]) -> Optional[str]:
    env_var = {
        'openai': 'OPENAI_API_KEY',
        'anthropic': 'ANTHROPIC_API_KEY',
        'azure': 'AZURE_OPENAI_API_KEY',
    }.get(provider)
    return env.get(env_var) if env_var else None

"""
Pipeline configuration.

All tunables live in one place so the core stays free of literals. Delays are in seconds.
Only the command line reads the environment (via `PipelineConfig.from_env`); library callers
pass a config object explicitly.
"""

import os
from dataclasses import dataclass, field, fields

DEFAULT_MAX_CHUNK_SIZE = 80000
DEFAULT_LOOKBACK = 100
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_BASE_DELAY = 5.0
DEFAULT_PACING_DELAY = 3.0
DEFAULT_MAX_TOKENS = 4000
DEFAULT_TEMPERATURE = 0.7
DEFAULT_TOP_P = 0.9
DEFAULT_TOP_K = 250
DEFAULT_MODEL_NAME = "gpt-4o-mini"
DEFAULT_API_URL = "https://api.openai.com/v1/chat/completions"

ENV_PREFIX = "BOOKSUM_"


@dataclass
class PipelineConfig:
    max_chunk_size: int = DEFAULT_MAX_CHUNK_SIZE
    lookback: int = DEFAULT_LOOKBACK
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_base_delay: float = DEFAULT_RETRY_BASE_DELAY
    pacing_delay: float = DEFAULT_PACING_DELAY
    max_tokens: int = DEFAULT_MAX_TOKENS
    temperature: float = DEFAULT_TEMPERATURE
    top_p: float = DEFAULT_TOP_P
    top_k: int = DEFAULT_TOP_K
    model_name: str = DEFAULT_MODEL_NAME
    api_url: str = field(default=DEFAULT_API_URL)

    def __post_init__(self):
        if self.max_chunk_size <= 0:
            raise ValueError(f"max_chunk_size must be positive, got {self.max_chunk_size}")
        if self.lookback < 0:
            raise ValueError(f"lookback must be >= 0, got {self.lookback}")
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")
        for name in ("retry_base_delay", "pacing_delay"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0, got {getattr(self, name)}")
        if self.max_tokens <= 0:
            raise ValueError(f"max_tokens must be positive, got {self.max_tokens}")

    @classmethod
    def from_env(cls, environ=None) -> "PipelineConfig":
        """
        Builds a config from BOOKSUM_* environment variables, e.g. BOOKSUM_MAX_CHUNK_SIZE.

        Args:
            environ: Mapping to read from (defaults to os.environ).

        Returns:
            PipelineConfig: Defaults overridden by whatever variables are set.
        """
        environ = os.environ if environ is None else environ
        values = {}
        for f in fields(cls):
            raw = environ.get(ENV_PREFIX + f.name.upper())
            if raw is None:
                continue
            default = getattr(cls, f.name, None)
            if isinstance(default, bool) or not isinstance(default, (int, float)):
                values[f.name] = raw
            elif isinstance(default, int):
                values[f.name] = int(raw)
            else:
                values[f.name] = float(raw)
        return cls(**values)

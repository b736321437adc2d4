"""Prompt configuration loader from YAML files."""

import yaml
from pathlib import Path
from typing import Dict, Optional, Any
from dataclasses import dataclass

from jinja2 import Environment, StrictUndefined


_ENV = Environment(undefined=StrictUndefined, keep_trailing_newline=False)


@dataclass
class PromptConfig:
    """Configuration for a single prompt."""
    name: str
    temperature: float  # ceiling; a model's own default may be lower
    token_factor: float  # output tokens per input token
    min_tokens: int
    max_tokens: int
    system_prompt: str
    user_prompt_template: str
    overhead: int = 200  # fixed allowance for JSON keys and metadata

    def format_user_prompt(self, **kwargs) -> str:
        """Render user prompt template with variables.

        Args:
            **kwargs: Variables to substitute in template

        Returns:
            Rendered prompt
        """
        return _ENV.from_string(self.user_prompt_template).render(**kwargs).strip()

    def format_system_prompt(self, **kwargs) -> str:
        """Render system prompt with variables.

        Args:
            **kwargs: Variables to substitute in template

        Returns:
            Rendered prompt
        """
        return _ENV.from_string(self.system_prompt).render(**kwargs).strip()

    def size_max_tokens(self, input_tokens: int, model_limit: Optional[int] = None) -> int:
        """Output token budget for a request of ``input_tokens``."""
        ceiling = self.max_tokens
        if model_limit:
            ceiling = min(ceiling, model_limit)
        wanted = int(input_tokens * self.token_factor) + self.overhead
        return max(min(self.min_tokens, ceiling), min(wanted, ceiling))

    def effective_temperature(self, model_temperature: Optional[float]) -> float:
        if model_temperature is None:
            return self.temperature
        return min(self.temperature, model_temperature)


class PromptLoader:
    """Loads prompt configurations from YAML files."""

    REQUIRED_FIELDS = ['temperature', 'max_tokens', 'system_prompt', 'user_prompt_template']

    def __init__(self, prompts_dir: Optional[str] = None):
        """Initialize loader.

        Args:
            prompts_dir: Directory containing prompt YAML files
        """
        if prompts_dir is None:
            # Default to prompts/ shipped inside the package
            self.prompts_dir = Path(__file__).parent / "prompts"
        else:
            self.prompts_dir = Path(prompts_dir)

        self._cache: Dict[str, PromptConfig] = {}

    def load(self, prompt_name: str) -> PromptConfig:
        """Load prompt configuration.

        Args:
            prompt_name: Name of prompt file (without .yaml extension)

        Returns:
            PromptConfig object

        Raises:
            FileNotFoundError: If prompt file not found
            ValueError: If prompt file is invalid
        """
        if prompt_name in self._cache:
            return self._cache[prompt_name]

        prompt_file = self.prompts_dir / f"{prompt_name}.yaml"

        if not prompt_file.exists():
            raise FileNotFoundError(f"Prompt file not found: {prompt_file}")

        with open(prompt_file, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}

        missing = [name for name in self.REQUIRED_FIELDS if name not in data]
        if missing:
            raise ValueError(f"Missing required fields in {prompt_file}: {missing}")

        config = PromptConfig(
            name=prompt_name,
            temperature=float(data['temperature']),
            token_factor=float(data.get('token_factor', 2.0)),
            min_tokens=int(data.get('min_tokens', 500)),
            max_tokens=int(data['max_tokens']),
            system_prompt=data['system_prompt'],
            user_prompt_template=data['user_prompt_template'],
            overhead=int(data.get('overhead', 200)),
        )

        self._cache[prompt_name] = config
        return config

    def get_model_params(self, prompt_name: str, input_tokens: int, model_limit: Optional[int] = None,
                         model_temperature: Optional[float] = None) -> Dict[str, Any]:
        """Request parameters for a prompt sized to the input.

        Args:
            prompt_name: Name of prompt
            input_tokens: Token count of the content being sent
            model_limit: Model's maximum output tokens
            model_temperature: Model's default temperature

        Returns:
            Dictionary with ``max_tokens`` and ``temperature``
        """
        config = self.load(prompt_name)
        return {
            'max_tokens': config.size_max_tokens(input_tokens, model_limit),
            'temperature': config.effective_temperature(model_temperature),
        }

    def list_prompts(self) -> list:
        """List all available prompt configurations.

        Returns:
            List of prompt names (without .yaml extension)
        """
        yaml_files = self.prompts_dir.glob("*.yaml")
        return sorted(f.stem for f in yaml_files)

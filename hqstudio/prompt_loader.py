"""Prompt template loader.

Templates are markdown files under ``hqstudio/prompts``. Placeholders use
``str.format`` syntax, so literal braces in a template must be doubled.

Usage:
    from hqstudio.prompt_loader import render_prompt

    user_message = render_prompt("script.first.user", prompt="Um detetive...")
"""

from functools import lru_cache
from pathlib import Path
from typing import Any, Union

PROMPTS_DIR = Path(__file__).resolve().parent / "prompts"


@lru_cache(maxsize=32)
def _read_file(filepath: str) -> str:
    return Path(filepath).read_text(encoding="utf-8").strip()


def load_prompt(filepath: Union[str, Path], **kwargs: Any) -> str:
    """Load a template file, substituting ``kwargs`` when any are given."""
    content = _read_file(str(filepath))
    return content.format(**kwargs) if kwargs else content


def render_prompt(name: str, **kwargs: Any) -> str:
    """Render a bundled template by name, e.g. ``"suggest.user"``."""
    return load_prompt(PROMPTS_DIR / f"{name}.md", **kwargs)


def clear_cache() -> None:
    _read_file.cache_clear()

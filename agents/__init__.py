"""
Agents module - AI content helpers for the editor.

Structure:
- configs/: YAML files with agent configurations
- builder.py: Prompt building logic
- llm.py: Provider registry and chat completion calls
- summarizer.py: summarize() and generate_post()
"""

from .builder import PromptBuilder, get_prompt_builder
from .llm import available_models, call_llm_api
from .summarizer import Summary, generate_post, summarize

__all__ = [
    "PromptBuilder",
    "get_prompt_builder",
    "available_models",
    "call_llm_api",
    "Summary",
    "generate_post",
    "summarize",
]

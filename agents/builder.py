"""
Prompt templates for the AI helpers.

Each helper has a YAML file under configs/ with the system prompt pieces
(role, rules, output_format) and an ordered list of labelled inputs. The
user message is one "Label: value" line per input that has a value.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

CONFIG_DIR = Path(__file__).parent / "configs"

SYSTEM_SECTIONS = ("role", "rules", "output_format")


@dataclass
class PromptInput:
    key: str
    label: str
    required: bool = False


@dataclass
class AgentConfig:
    """One helper's prompt template, as read from YAML."""
    name: str
    description: str
    version: int
    sections: dict[str, str]
    inputs: list[PromptInput] = field(default_factory=list)


def load_agent_config(agent_name: str) -> AgentConfig:
    config_path = CONFIG_DIR / f"{agent_name}.yaml"
    if not config_path.exists():
        raise FileNotFoundError(f"Agent config not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    return AgentConfig(
        name=data.get("name", agent_name),
        description=data.get("description", ""),
        version=data.get("version", 1),
        sections={key: (data.get(key) or "").strip() for key in SYSTEM_SECTIONS},
        inputs=[
            PromptInput(item["key"], item.get("label", item["key"]), item.get("required", False))
            for item in data.get("inputs", [])
        ],
    )


class PromptBuilder:
    """Turns a helper's template plus request values into chat messages."""

    def __init__(self, agent_name: str = "news_editor"):
        self.agent_name = agent_name
        self.config = load_agent_config(agent_name)

    def build_system_prompt(self) -> str:
        return "\n\n".join(text for text in self.config.sections.values() if text)

    def build_user_prompt(self, **values) -> str:
        """
        Render request values as labelled lines, in template order.

        Raises:
            ValueError: a required input is missing or blank
        """
        lines = []
        for item in self.config.inputs:
            value = values.get(item.key)
            if value is None or (isinstance(value, str) and not value.strip()):
                if item.required:
                    raise ValueError(f"{self.agent_name}: '{item.key}' is required")
                continue
            lines.append(f"{item.label}: {value}")
        return "\n".join(lines)

    def build_messages(self, user_message: str) -> list[dict]:
        return [
            {"role": "system", "content": self.build_system_prompt()},
            {"role": "user", "content": user_message},
        ]


_builders: dict[str, PromptBuilder] = {}


def get_prompt_builder(agent_name: str = "news_editor") -> PromptBuilder:
    """Cached builder per template name."""
    builder: Optional[PromptBuilder] = _builders.get(agent_name)
    if builder is None:
        builder = PromptBuilder(agent_name)
        _builders[agent_name] = builder
    return builder

"""
Prompt rendering for the completion service.

Prompts are shipped as package data in threatintel/prompts/*.jinja2. The
pipeline asks for a chat conversation through render_messages(); individual
templates can be rendered with render_template().
"""

from __future__ import annotations

from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined

# threatintel/utils/prompts.py → threatintel/prompts/
_PROMPTS_DIR = Path(__file__).parent.parent / "prompts"

_env = Environment(
    loader=FileSystemLoader(str(_PROMPTS_DIR)),
    undefined=StrictUndefined,
    autoescape=False,            # raw event payloads must reach the model verbatim
    keep_trailing_newline=False,
)


def render_template(name: str, **kwargs: object) -> str:
    """Render one template from threatintel/prompts/.

    Raises:
        jinja2.TemplateNotFound: If the template file doesn't exist.
        jinja2.UndefinedError: If the template references a variable not in kwargs.
    """
    return _env.get_template(name).render(**kwargs)


def render_messages(prefix: str, **kwargs: object) -> list[dict[str, str]]:
    """Build a [system, user] chat conversation from `<prefix>_system.jinja2`
    and `<prefix>_user.jinja2`. kwargs are passed to the user template only."""
    return [
        {"role": "system", "content": render_template(f"{prefix}_system.jinja2")},
        {"role": "user", "content": render_template(f"{prefix}_user.jinja2", **kwargs)},
    ]

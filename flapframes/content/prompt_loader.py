import re
from pathlib import Path
from typing import Literal, Mapping, Union

import anyio

PromptKind = Literal["system", "user"]
TemplateValue = Union[str, int, float, bool]

_VARIABLE_PATTERN = re.compile(r"\{\{(\w+)\}\}")


class PromptNotFoundError(FileNotFoundError):
    pass


def resolve_template_variables(template: str, variables: Mapping[str, TemplateValue]) -> str:
    """Replace ``{{name}}`` placeholders. Unknown names are left as-is so they show up in output."""

    def _replace(match: re.Match) -> str:
        name = match.group(1)
        if name not in variables:
            return match.group(0)
        return str(variables[name])

    return _VARIABLE_PATTERN.sub(_replace, template)


class PromptLoader:
    """Reads prompt templates from ``<base_dir>/<kind>/<filename>``."""

    def __init__(self, base_dir: Union[str, Path]):
        self.base_dir = Path(base_dir)

    def path_for(self, kind: PromptKind, filename: str) -> Path:
        return self.base_dir / kind / filename

    async def load_prompt(self, kind: PromptKind, filename: str) -> str:
        path = self.path_for(kind, filename)
        try:
            content = await anyio.Path(path).read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise PromptNotFoundError(f"Failed to load prompt: {path}") from e
        return content.strip()

    async def load_prompt_with_variables(
        self,
        kind: PromptKind,
        filename: str,
        variables: Mapping[str, TemplateValue],
    ) -> str:
        return resolve_template_variables(await self.load_prompt(kind, filename), variables)

"""
Tests for prompt loading and template substitution.
"""

import pytest

from flapframes.content.prompt_loader import PromptLoader, PromptNotFoundError, resolve_template_variables
from flapframes.core.config import settings


@pytest.fixture
def prompt_dir(tmp_path):
    (tmp_path / "system").mkdir()
    (tmp_path / "user").mkdir()
    (tmp_path / "system" / "base.txt").write_text("\n  You are a board.  \n\n")
    (tmp_path / "user" / "topic.txt").write_text("Write about {{topic}} for {{audience}}.")
    return tmp_path


class TestResolveTemplateVariables:
    def test_substitutes_known_names(self):
        assert resolve_template_variables("Hi {{name}}!", {"name": "Ada"}) == "Hi Ada!"

    def test_leaves_unknown_placeholders(self):
        assert resolve_template_variables("{{a}} and {{b}}", {"a": 1}) == "1 and {{b}}"

    def test_repeated_placeholder(self):
        assert resolve_template_variables("{{x}}-{{x}}", {"x": "y"}) == "y-y"

    def test_non_string_values(self):
        assert resolve_template_variables("{{n}} {{flag}}", {"n": 3, "flag": True}) == "3 True"

    def test_ignores_non_word_placeholders(self):
        assert resolve_template_variables("{{ spaced }}", {"spaced": "x"}) == "{{ spaced }}"


class TestPromptLoader:
    @pytest.mark.asyncio
    async def test_load_prompt_strips(self, prompt_dir):
        loader = PromptLoader(prompt_dir)
        assert await loader.load_prompt("system", "base.txt") == "You are a board."

    @pytest.mark.asyncio
    async def test_load_prompt_with_variables(self, prompt_dir):
        loader = PromptLoader(prompt_dir)

        prompt = await loader.load_prompt_with_variables("user", "topic.txt", {"topic": "Trains"})

        assert prompt == "Write about Trains for {{audience}}."

    @pytest.mark.asyncio
    async def test_missing_file(self, prompt_dir):
        loader = PromptLoader(prompt_dir)

        with pytest.raises(PromptNotFoundError, match="missing.txt"):
            await loader.load_prompt("user", "missing.txt")

    @pytest.mark.asyncio
    async def test_packaged_prompts_exist(self):
        loader = PromptLoader(settings.PROMPTS_DIR)

        system_prompt = await loader.load_prompt("system", "major-update-base.txt")
        haiku = await loader.load_prompt_with_variables("user", "haiku.txt", {"topic": "Aviation"})

        assert "split-flap" in system_prompt
        assert "Aviation" in haiku

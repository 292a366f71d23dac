"""
Profile Comparer - Prompt Tests

Verifies prompt text, system framing and sampling parameters per mode.
"""

from comparer.core.models import GenerationMode
from comparer.prompts import (
    COMPARISON_SYSTEM_PROMPT,
    ROAST_SYSTEM_PROMPT,
    build_messages,
    build_prompt,
    generation_params,
    system_prompt,
)


class TestBuildPrompt:
    """Test user prompt construction."""

    def test_neutral_prompt_lists_both_profiles(self, profile1, profile2):
        prompt = build_prompt(profile1, profile2, GenerationMode.NEUTRAL)

        assert prompt.startswith("Compare GitHub profiles:")
        assert "alice: Alice | 10 followers, 2 following | 5 repos | 42 stars" in prompt
        assert "Languages: Python, Go" in prompt
        assert "commonalities" in prompt

    def test_empty_languages_render_as_none(self, profile1, profile2):
        prompt = build_prompt(profile1, profile2, GenerationMode.NEUTRAL)
        assert "bob: Bob" in prompt
        assert "Languages: None" in prompt

    def test_roast_user1_makes_user2_the_hero(self, profile1, profile2):
        prompt = build_prompt(profile1, profile2, GenerationMode.ROAST_USER1)

        assert "savage roast of alice while making bob look" in prompt
        assert "bob Stats (THE HERO)" in prompt
        assert "alice Stats (THE HERO)" not in prompt

    def test_roast_user2_makes_user1_the_hero(self, profile1, profile2):
        prompt = build_prompt(profile1, profile2, GenerationMode.ROAST_USER2)

        assert "savage roast of bob while making alice look" in prompt
        assert "alice Stats (THE HERO)" in prompt
        assert "bob Stats (THE HERO)" not in prompt

    def test_roast_both(self, profile1, profile2):
        prompt = build_prompt(profile1, profile2, GenerationMode.ROAST_BOTH)

        assert "comparing both alice and bob" in prompt
        assert "THE HERO" not in prompt

    def test_prompt_is_pure(self, profile1, profile2):
        first = build_prompt(profile1, profile2, GenerationMode.ROAST_BOTH)
        second = build_prompt(profile1, profile2, GenerationMode.ROAST_BOTH)
        assert first == second


class TestGenerationParams:
    """Test per-mode sampling parameters."""

    def test_neutral_params(self):
        params = generation_params(GenerationMode.NEUTRAL)
        assert params.temperature == 0.7
        assert params.max_tokens == 1000
        assert params.stream is True

    def test_roast_params(self):
        for mode in (GenerationMode.ROAST_USER1, GenerationMode.ROAST_USER2, GenerationMode.ROAST_BOTH):
            params = generation_params(mode)
            assert params.temperature == 0.9
            assert params.max_tokens == 1500

    def test_system_prompt(self):
        assert system_prompt(GenerationMode.NEUTRAL) == COMPARISON_SYSTEM_PROMPT
        assert system_prompt(GenerationMode.ROAST_BOTH) == ROAST_SYSTEM_PROMPT

    def test_build_messages(self, profile1, profile2):
        messages = build_messages(profile1, profile2, GenerationMode.ROAST_USER1)

        assert [m["role"] for m in messages] == ["system", "user"]
        assert messages[0]["content"] == ROAST_SYSTEM_PROMPT

"""Tests for cache key generation."""

import re

from llmcache.cache.keys import PROMPT_KEY_CHARS, generate_cache_key


class TestGenerateCacheKey:
    def test_deterministic(self):
        """Same inputs produce the same key."""
        k1 = generate_cache_key("resume_parsing", "Parse this", {"lang": "en"})
        k2 = generate_cache_key("resume_parsing", "Parse this", {"lang": "en"})
        assert k1 == k2

    def test_format(self):
        """Keys look like <operation>-<16 hex chars>."""
        key = generate_cache_key("job_matching", "prompt")
        assert re.fullmatch(r"job_matching-[0-9a-f]{16}", key)

    def test_operation_prefix(self):
        """The operation name is the key prefix."""
        key = generate_cache_key("text_cleaning", "prompt")
        assert key.startswith("text_cleaning-")

    def test_different_prompts_different_keys(self):
        """Different prompts hash differently."""
        assert generate_cache_key("op", "alpha") != generate_cache_key("op", "beta")

    def test_different_operations_different_keys(self):
        """Same prompt under two operations gives two keys."""
        assert generate_cache_key("op_a", "same") != generate_cache_key("op_b", "same")

    def test_different_params_different_keys(self):
        """Params are part of the key."""
        k1 = generate_cache_key("op", "p", {"temperature": 0.0})
        k2 = generate_cache_key("op", "p", {"temperature": 0.7})
        assert k1 != k2

    def test_params_key_order_ignored(self):
        """Param dict ordering must not change the key."""
        k1 = generate_cache_key("op", "p", {"a": 1, "b": 2})
        k2 = generate_cache_key("op", "p", {"b": 2, "a": 1})
        assert k1 == k2

    def test_none_params_differ_from_empty_mapping(self):
        """No params and an empty dict are distinct."""
        assert generate_cache_key("op", "p") != generate_cache_key("op", "p", {})

    def test_only_prompt_head_counts(self):
        """Text past the prompt head is ignored."""
        head = "x" * PROMPT_KEY_CHARS
        assert generate_cache_key("op", head + "tail one") == generate_cache_key(
            "op", head + "tail two"
        )

    def test_change_inside_head_changes_key(self):
        """A change within the prompt head changes the key."""
        base = "x" * PROMPT_KEY_CHARS
        changed = "y" + base[1:]
        assert generate_cache_key("op", base) != generate_cache_key("op", changed)

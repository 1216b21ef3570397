"""Unit tests for generated-code sanitising and validation."""

from __future__ import annotations

import pytest

from artificer.errors import SanitizationError
from artificer.tools.sanitize import sanitize_generated_code, strip_fences, validate_tool_source


GREET = 'def greet_soul(params):\n    return "Hello, " + params["name"]'


class TestSanitizeGeneratedCode:
    def test_clean_code_is_unchanged(self) -> None:
        assert sanitize_generated_code(GREET, "greet_soul") == GREET

    def test_strips_python_fence(self) -> None:
        raw = f"```python\n{GREET}\n```"
        assert sanitize_generated_code(raw, "greet_soul") == GREET

    def test_strips_bare_fence_and_whitespace(self) -> None:
        raw = f"\n\n```\n{GREET}\n```\n  "
        assert sanitize_generated_code(raw, "greet_soul") == GREET

    def test_unclosed_fence(self) -> None:
        raw = f"```py\n{GREET}\n"
        assert sanitize_generated_code(raw, "greet_soul") == GREET

    def test_cuts_leading_commentary(self) -> None:
        raw = f"Here is the function you asked for:\n\n{GREET}"
        assert sanitize_generated_code(raw, "greet_soul") == GREET

    def test_commentary_around_fenced_block(self) -> None:
        raw = f"Sure!\n```python\n{GREET}\n```\nThis greets the soul."
        assert sanitize_generated_code(raw, "greet_soul") == GREET

    def test_prefers_named_definition(self) -> None:
        raw = "def helper(x):\n    return x\n\n" + GREET
        assert sanitize_generated_code(raw, "greet_soul") == GREET

    def test_async_definition_kept(self) -> None:
        raw = 'async def greet_soul(params):\n    return "hi"'
        assert sanitize_generated_code(raw, "greet_soul") == raw

    def test_wraps_bare_body(self) -> None:
        raw = 'return "Hello, " + params["name"]'
        code = sanitize_generated_code(raw, "greet_soul")
        assert code.startswith("def greet_soul(params):\n")
        validate_tool_source(code, "greet_soul")

    def test_strip_fences_without_fences(self) -> None:
        assert strip_fences("x = 1") == "x = 1"


class TestValidateToolSource:
    def test_valid_source(self) -> None:
        validate_tool_source(GREET, "greet_soul")

    def test_valid_async_source(self) -> None:
        validate_tool_source('async def greet_soul(params):\n    return "hi"', "greet_soul")

    def test_annotated_signature(self) -> None:
        validate_tool_source(
            'def greet_soul(params: dict) -> str:\n    return "hi"', "greet_soul"
        )

    def test_wrong_name(self) -> None:
        with pytest.raises(SanitizationError, match="expected signature"):
            validate_tool_source('def other(params):\n    return "x"', "greet_soul")

    def test_wrong_parameter_name(self) -> None:
        with pytest.raises(SanitizationError, match="expected signature"):
            validate_tool_source('def greet_soul(args):\n    return "x"', "greet_soul")

    def test_syntax_error(self) -> None:
        with pytest.raises(SanitizationError, match="syntax errors"):
            validate_tool_source("def greet_soul(params):\n    return (", "greet_soul")

    def test_extra_positional_argument(self) -> None:
        with pytest.raises(SanitizationError, match="exactly one positional"):
            validate_tool_source('def greet_soul(params, other):\n    return "x"', "greet_soul")

    def test_redefinition_rejected(self) -> None:
        source = GREET + "\n\ndef greet_soul(params):\n    return 'again'"
        with pytest.raises(SanitizationError, match="2 times"):
            validate_tool_source(source, "greet_soul")

    def test_prefix_name_is_not_a_match(self) -> None:
        with pytest.raises(SanitizationError):
            validate_tool_source('def greet_soul_extra(params):\n    return "x"', "greet_soul")

    def test_validation_does_not_execute(self) -> None:
        source = GREET + "\nraise SystemExit('executed')"
        validate_tool_source(source, "greet_soul")

"""Prompt construction for tool code generation."""

from __future__ import annotations

import json
from typing import Any

EXAMPLE_FUNCTION = '''\
def example_tool_name(params):
    try:
        if params["param1"] == "special":
            return f"Special action performed with {params['param1']}."
        return f"Example tool executed with param1: {params['param1']}"
    except Exception as exc:
        return f"Error: example_tool_name failed: {exc}"'''


def _parameter_lines(parameters: dict[str, Any]) -> list[str]:
    props = parameters.get("properties", {})
    required = parameters.get("required") or []
    lines = []
    for pname, pdef in props.items():
        pdef = pdef if isinstance(pdef, dict) else {}
        req = " (required)" if pname in required else ""
        lines.append(
            f"    - {pname} ({pdef.get('type', 'any')}): "
            f"{pdef.get('description', 'No description')}{req}"
        )
    return lines


def build_generation_prompt(
    name: str,
    description: str,
    parameters: dict[str, Any],
    allowed_modules: list[str] | None = None,
) -> str:
    """Build the prompt that asks the model for one tool function."""
    required = parameters.get("required") or []
    modules = ", ".join(sorted(allowed_modules or [])) or "none"

    lines = [
        "You are an expert Python function generator. Write a Python function "
        "that matches the request below.",
        "",
        "## Requested Function",
        f"- Name: {name}",
        f"- Description: {description}",
        "- Parameters schema:",
        json.dumps(parameters, indent=2),
        f"- Required parameters: {', '.join(required) or 'None'}",
        "- Parameters:",
        *(_parameter_lines(parameters) or ["    (none)"]),
        "",
        "## Rules",
        f"1. Write a single, standalone Python function named exactly `{name}`.",
        f"2. The signature MUST be `def {name}(params):`. `params` is a dict holding "
        "the parameters above; read them with `params[\"key\"]` or `params.get(\"key\")`.",
        "3. The function performs the action in the description.",
        "4. The function MUST return a single str describing the outcome. "
        "Convert numbers, booleans and collections to descriptive text.",
        "5. Handle failures inside the function and return a message starting with \"Error: \".",
        f"6. Only these standard-library modules may be imported, inside the function: {modules}.",
        "7. Do NOT include comments, docstrings, explanations, or any text outside the function.",
        "8. Do NOT wrap the output in markdown code fences.",
        "",
        "## Example Function Structure",
        EXAMPLE_FUNCTION,
        "",
        f"Generate only the Python function `{name}`.",
    ]
    return "\n".join(lines)

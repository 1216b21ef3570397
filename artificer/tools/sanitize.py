"""Clean-up and static validation of generated tool source.

Nothing in this module executes the code it inspects: validation is
``ast.parse`` plus ``compile`` only.
"""

from __future__ import annotations

import ast
import logging
import re
import textwrap

from artificer.errors import SanitizationError

log = logging.getLogger(__name__)

_FENCED_BLOCK = re.compile(r"```[\w+-]*[ \t]*\n(.*?)```", re.DOTALL)
_FENCE_LINE = re.compile(r"^[ \t]*```[\w+-]*[ \t]*$", re.MULTILINE)
_ANY_DEF = re.compile(r"^(?:async[ \t]+)?def[ \t]+\w+", re.MULTILINE)


def _named_def(name: str) -> re.Pattern[str]:
    return re.compile(rf"^(?:async[ \t]+)?def[ \t]+{re.escape(name)}\b", re.MULTILINE)


def _signature(name: str) -> re.Pattern[str]:
    return re.compile(rf"^(?:async\s+)?def\s+{re.escape(name)}\s*\(\s*params\b")


def strip_fences(text: str) -> str:
    """Return the first fenced block's body, or *text* without fence lines."""
    block = _FENCED_BLOCK.search(text)
    if block:
        return block.group(1)
    return _FENCE_LINE.sub("", text)


def sanitize_generated_code(code: str, name: str) -> str:
    """Coerce raw model output into source that starts with the tool's def.

    Leading commentary is cut at the first ``def <name>`` (or, failing
    that, the first ``def``) found at the start of a line.  Text with no
    function definition at all is wrapped as the body of
    ``def <name>(params):``; validation decides whether that worked.
    """
    sanitized = strip_fences(code).strip()

    if _named_def(name).match(sanitized):
        return sanitized

    match = _named_def(name).search(sanitized) or _ANY_DEF.search(sanitized)
    if match:
        log.warning("cut %d leading characters from generated code for %s", match.start(), name)
        return sanitized[match.start():].strip()

    log.warning("no function definition in generated code for %s; wrapping", name)
    body = textwrap.indent(sanitized, "    ") if sanitized else "    pass"
    return f"def {name}(params):\n{body}"


def validate_tool_source(source: str, name: str) -> None:
    """Check that *source* is a loadable definition of tool *name*.

    Raises ``SanitizationError`` describing the first problem found.
    """
    if not _signature(name).match(source):
        raise SanitizationError(
            f"Generated code does not start with the expected signature "
            f"'def {name}(params):' or 'async def {name}(params):'. "
            f"Got: {source[:100]!r}"
        )

    try:
        tree = ast.parse(source, filename=f"<tool:{name}>")
        compile(tree, f"<tool:{name}>", "exec")
    except (SyntaxError, ValueError) as exc:
        raise SanitizationError(f"Generated code has syntax errors: {exc}") from exc

    definitions = [
        node
        for node in tree.body
        if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)) and node.name == name
    ]
    if not definitions:
        raise SanitizationError(f"Generated code does not define a top-level function '{name}'")
    if len(definitions) > 1:
        raise SanitizationError(f"Generated code defines '{name}' {len(definitions)} times")

    args = definitions[0].args
    positional = len(args.posonlyargs) + len(args.args)
    required_kwonly = [
        a.arg for a, default in zip(args.kwonlyargs, args.kw_defaults) if default is None
    ]
    if positional != 1 or args.vararg is not None or required_kwonly:
        raise SanitizationError(
            f"Function '{name}' must take exactly one positional argument (params)"
        )

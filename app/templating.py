"""
Placeholder and conditional block rendering for email templates.

Supported syntax::

    {{guestName}}
    {{#if isAttending}}...{{else}}...{{/if}}
    {{#unless hasResponded}}...{{/unless}}
    {{#if preferredLanguage === "lt"}}...{{/if}}

Blocks nest arbitrarily. Conditions are evaluated left to right with the
operators ``===``, ``!==``, ``==`` and ``!=`` (first match wins); anything
else is a truthy check on a single variable. Unknown placeholders render as
an empty string.
"""

import logging
import re
from datetime import date, datetime
from typing import Any, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)

PLACEHOLDER_RE = re.compile(r"\{\{\s*(\w+)\s*\}\}")
OPEN_RE = re.compile(r"\{\{#(if|unless)\s")
ELSE_TAG = "{{else}}"
COMPARISON_OPERATORS = ("===", "!==", "==", "!=")


def is_truthy(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, str):
        return value != "" and value not in ("null", "undefined")
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, (list, tuple, set, dict)):
        return len(value) > 0
    return bool(value)


def _strip_quotes(operand: str) -> str:
    operand = operand.strip()
    if len(operand) >= 2 and operand[0] == operand[-1] and operand[0] in ("'", '"'):
        return operand[1:-1]
    return operand


def to_display(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def evaluate_condition(condition: str, variables: Mapping[str, Any]) -> bool:
    """Evaluate a block condition against the variables."""
    for operator in COMPARISON_OPERATORS:
        if operator in condition:
            left, right = condition.split(operator, 1)
            actual = to_display(variables.get(_strip_quotes(left)))
            expected = _strip_quotes(right)
            if operator in ("===", "=="):
                return actual == expected
            return actual != expected
    return is_truthy(variables.get(_strip_quotes(condition)))


def _find_block_end(template: str, kind: str, body_start: int) -> Tuple[Optional[int], Optional[int], int]:
    """
    Locate the matching close tag for a block of ``kind`` whose body starts at
    ``body_start``.

    Returns ``(else_pos, close_pos, close_end)``; ``close_pos`` is None when
    the block is never closed. Only an ``{{else}}`` at this block's own depth
    is reported.
    """
    open_tag = "{{#" + kind
    close_tag = "{{/" + kind + "}}"
    depth = {"if": 0, "unless": 0}
    pos = body_start
    else_pos = None

    while pos < len(template):
        next_brace = template.find("{{", pos)
        if next_brace == -1:
            break
        if template.startswith("{{#if", next_brace) or template.startswith("{{#unless", next_brace):
            nested = "if" if template.startswith("{{#if", next_brace) else "unless"
            depth[nested] += 1
            pos = next_brace + 3
            continue
        if template.startswith("{{/if}}", next_brace) or template.startswith("{{/unless}}", next_brace):
            closing = "if" if template.startswith("{{/if}}", next_brace) else "unless"
            if closing == kind and depth[kind] == 0:
                return else_pos, next_brace, next_brace + len(close_tag)
            depth[closing] = max(depth[closing] - 1, 0)
            pos = next_brace + 3
            continue
        if template.startswith(ELSE_TAG, next_brace):
            if else_pos is None and depth["if"] == 0 and depth["unless"] == 0:
                else_pos = next_brace
            pos = next_brace + len(ELSE_TAG)
            continue
        pos = next_brace + 2

    logger.warning(f"⚠️ Unclosed {open_tag}}} block in template")
    return else_pos, None, len(template)


def process_conditional_blocks(template: str, variables: Mapping[str, Any]) -> str:
    output = []
    cursor = 0

    while True:
        match = OPEN_RE.search(template, cursor)
        if not match:
            output.append(template[cursor:])
            break

        output.append(template[cursor : match.start()])
        kind = match.group(1)
        tag_end = template.find("}}", match.end())
        if tag_end == -1:
            logger.warning(f"⚠️ Malformed {{{{#{kind}}}}} tag, leaving remainder unprocessed")
            output.append(template[match.start() :])
            break

        condition = template[match.end() : tag_end].strip()
        body_start = tag_end + 2
        else_pos, close_pos, close_end = _find_block_end(template, kind, body_start)
        if close_pos is None:
            output.append(template[match.start() :])
            break

        if else_pos is not None:
            primary = template[body_start:else_pos]
            alternative = template[else_pos + len(ELSE_TAG) : close_pos]
        else:
            primary = template[body_start:close_pos]
            alternative = ""

        passed = evaluate_condition(condition, variables)
        if kind == "unless":
            passed = not passed
        chosen = primary if passed else alternative
        output.append(process_conditional_blocks(chosen, variables))
        cursor = close_end

    return "".join(output)


def replace_placeholders(template: str, variables: Mapping[str, Any]) -> str:
    return PLACEHOLDER_RE.sub(lambda m: to_display(variables.get(m.group(1))), template)


def render_template(template: Optional[str], variables: Mapping[str, Any]) -> str:
    """Resolve conditional blocks, then substitute ``{{name}}`` placeholders."""
    if not template:
        return ""
    return replace_placeholders(process_conditional_blocks(template, variables), variables)

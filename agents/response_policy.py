# =============================================================================
# agents/response_policy.py - Reply Post-Processing
# =============================================================================
# Small, pure rules applied to model text before it reaches the user:
#
# - looks_truncated(): the reply seems cut off mid-way
#     * the whole body is a lone markdown delimiter ("**", "```", "---")
#     * an unclosed code fence
#     * it ends on a dangling "," ":" or "-"
#     * an opening bracket was never closed
# - apply_truncation_policy(): append a continuation hint when it does
# - fallback texts for empty replies
#
# No I/O here; the orchestrator decides when to call what.
# =============================================================================

from __future__ import annotations

import re
from dataclasses import dataclass

CONTINUATION_HINT = (
    "\n\n_(This answer may have been cut off. Ask me to continue if something is missing.)_"
)
EMPTY_RESPONSE_FALLBACK = (
    "Sorry, I could not produce an answer to that. Please try rephrasing your question."
)

_LONE_DELIMITER = re.compile(r"^(`{1,3}|\*{1,3}|_{1,3}|~~|-{3,}|={3,}|#{1,6}|>|\|)$")
_DANGLING_ENDINGS = (",", ":", "-")
_BRACKETS = {"(": ")", "[": "]", "{": "}"}
_CLOSERS = {v: k for k, v in _BRACKETS.items()}


@dataclass
class PolicyResult:
    text: str
    truncated: bool = False


def is_empty(text: str | None) -> bool:
    return not text or not text.strip()


def has_unmatched_bracket(text: str) -> bool:
    """True when some (, [ or { is still open at the end of the text."""
    stack: list[str] = []
    for char in text:
        if char in _BRACKETS:
            stack.append(char)
        elif char in _CLOSERS:
            if stack and stack[-1] == _CLOSERS[char]:
                stack.pop()
            # A stray closer (e.g. "1)" list numbering) is not truncation
    return bool(stack)


def looks_truncated(text: str | None) -> bool:
    if is_empty(text):
        return False

    body = text.strip()
    if _LONE_DELIMITER.match(body):
        return True
    if body.count("```") % 2 == 1:
        return True
    if body.endswith(_DANGLING_ENDINGS):
        return True
    return has_unmatched_bracket(body)


def apply_truncation_policy(text: str) -> PolicyResult:
    """Return the text, with a continuation hint appended if it looks cut off."""
    if looks_truncated(text):
        return PolicyResult(text=text.rstrip() + CONTINUATION_HINT, truncated=True)
    return PolicyResult(text=text)


def followup_fallback(function_count: int) -> str:
    """Reply used when the model says nothing after functions ran."""
    noun = "function" if function_count == 1 else "functions"
    return (
        f"I ran {function_count} {noun} to look this up but could not put the "
        "results into words. Please ask again, or narrow the question down."
    )

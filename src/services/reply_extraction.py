"""Reply extraction for inbound customer emails.

Trims a raw email body down to the text the customer actually typed.
Email clients do not share a machine-readable reply delimiter, so the
engine applies two ordered lists of textual boundary rules:

1. Quote boundaries: where the quoted thread history starts.
2. Signature boundaries: where the sign-off starts.

Within each phase every rule is evaluated and the body is cut at the
earliest match. Each rule is a named, independently testable matcher.

Example:
    extract_reply("Sure!\\n\\nOn Mon, Jan 5 Jane wrote:\\n> hi")
    # 'Sure!'
"""

import html
import logging
import re
from dataclasses import dataclass

logger = logging.getLogger(__name__)

UNPARSEABLE_REPLY_PLACEHOLDER = (
    "[Customer replied via email - content could not be parsed]"
)


@dataclass(frozen=True)
class BoundaryRule:
    """A named pattern marking where trailing non-reply content begins.

    Attributes:
        name: Identifier used in debug logs and tests.
        pattern: Compiled multiline regex; the match start is the cut point.
    """

    name: str
    pattern: re.Pattern[str]

    def find(self, text: str) -> int | None:
        """Return the offset of the first match in text, or None."""
        match = self.pattern.search(text)
        return match.start() if match else None


QUOTE_RULES: tuple[BoundaryRule, ...] = (
    BoundaryRule(
        "on_date_wrote",
        re.compile(r"^[ \t]*On\s.*wrote:[ \t\r]*$", re.MULTILINE),
    ),
    BoundaryRule(
        "original_message",
        re.compile(r"^[ \t]*-{3,}\s*Original Message", re.MULTILINE | re.IGNORECASE),
    ),
    BoundaryRule(
        "underscore_rule",
        re.compile(r"^[ \t]*_{3,}[ \t\r]*$", re.MULTILINE),
    ),
    BoundaryRule(
        "quote_marker",
        re.compile(r"^[ \t]*>", re.MULTILINE),
    ),
)

SIGNATURE_RULES: tuple[BoundaryRule, ...] = (
    BoundaryRule(
        "sign_off",
        re.compile(
            r"^[ \t]*(?:sincerely|best regards|best|thanks|thank you|regards|cheers)"
            r"[ \t]*,?[ \t\r]*$",
            re.MULTILINE | re.IGNORECASE,
        ),
    ),
    BoundaryRule(
        "sent_from_device",
        re.compile(r"^[ \t]*Sent from my\b", re.MULTILINE | re.IGNORECASE),
    ),
)


def truncate_at_earliest(text: str, rules: tuple[BoundaryRule, ...]) -> str:
    """Cut text at the earliest position any rule matches.

    Args:
        text: Input text.
        rules: Rules to evaluate; all are checked, the smallest offset wins.

    Returns:
        The text before the boundary, or the text unchanged if nothing matched.
    """
    cut: int | None = None
    matched_rule = None
    for rule in rules:
        offset = rule.find(text)
        if offset is not None and (cut is None or offset < cut):
            cut = offset
            matched_rule = rule.name
    if cut is None:
        return text
    logger.debug("Reply boundary %s at offset %d", matched_rule, cut)
    return text[:cut]


def extract_reply(raw_body: str | None, subject: str | None = None) -> str:
    """Return only the new content of an inbound reply.

    Never raises. Falls back to the subject line when nothing is left of
    the body, and to UNPARSEABLE_REPLY_PLACEHOLDER when the subject is
    empty too.

    Args:
        raw_body: Plain-text email body (HTML should go through html_to_text).
        subject: Email subject, used as a fallback.

    Returns:
        The extracted reply text, never empty.
    """
    body = raw_body or ""
    try:
        reply = truncate_at_earliest(body, QUOTE_RULES)
        reply = truncate_at_earliest(reply, SIGNATURE_RULES)
        reply = reply.strip()
    except Exception:
        logger.exception("Reply extraction failed; keeping the full body")
        reply = body.strip()

    if reply:
        return reply
    fallback = (subject or "").strip()
    if fallback:
        return fallback
    return UNPARSEABLE_REPLY_PLACEHOLDER


_SCRIPT_STYLE = re.compile(r"<(script|style)\b[^>]*>.*?</\1\s*>", re.IGNORECASE | re.DOTALL)
_LINE_BREAK_TAGS = re.compile(
    r"<br\s*/?>|</(?:p|div|li|tr|h[1-6]|blockquote)\s*>", re.IGNORECASE
)
_QUOTE_BLOCK_OPEN = re.compile(r"<blockquote\b[^>]*>", re.IGNORECASE)
_ANY_TAG = re.compile(r"<[^>]+>")
_BLANK_LINE_RUNS = re.compile(r"\n[ \t]*\n(?:[ \t]*\n)+")


def html_to_text(markup: str | None) -> str:
    """Reduce an HTML email body to plain text.

    Drops script/style blocks, turns line-level tags into newlines, marks
    the start of a ``<blockquote>`` with ``>`` so the quote rules still see
    quoted history, strips remaining tags and unescapes entities.
    """
    if not markup:
        return ""
    text = _SCRIPT_STYLE.sub("", markup)
    text = _QUOTE_BLOCK_OPEN.sub("\n> ", text)
    text = _LINE_BREAK_TAGS.sub("\n", text)
    text = _ANY_TAG.sub("", text)
    text = html.unescape(text).replace("\r\n", "\n").replace("\xa0", " ")
    text = _BLANK_LINE_RUNS.sub("\n\n", text)
    return text.strip()

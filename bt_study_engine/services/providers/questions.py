"""Translation questions provider (``fetch-translation-questions``)."""

from __future__ import annotations

from bt_study_engine.core.models import ResourceKind, ResourceResult
from bt_study_engine.services.dialects import (
    Dialect,
    JsonMatches,
    JsonScalar,
    build_match,
    first_list,
    first_text,
    matched_terms,
    parse_markdown,
    read_statistics,
    synthesize_markdown,
)
from bt_study_engine.services.providers.base import ResourceProvider


def format_question(question: str, answer: str) -> str:
    return f"**Q:** {question}\n\n**A:** {answer}"


def decode_questions(dialect: Dialect, scope_value: str, query: str) -> ResourceResult:
    """Map a questions response to a result of ``**Q:**``/``**A:**`` matches."""
    del query
    if isinstance(dialect, JsonScalar):
        items = first_list(dialect.payload, "questions", "items", "data")
        if items is None:
            content = first_text(dialect.payload, "content", "markdown")
            if not content:
                return ResourceResult()
            return decode_questions(parse_markdown(content), scope_value, "")
        dialect = JsonMatches(items=items, payload=dialect.payload)

    if isinstance(dialect, JsonMatches):
        matches = []
        for item in dialect.items:
            question = first_text(item, "question", "Question", "text")
            answer = first_text(item, "response", "Response", "answer", "Answer", "content")
            if not question and not answer:
                continue
            matches.append(
                build_match(
                    first_text(item, "reference", "ref", "Reference") or scope_value or "Bible",
                    format_question(question, answer),
                    matched_terms(item),
                )
            )
        total, breakdown = read_statistics(dialect.payload.get("statistics") or dialect.payload)
        return ResourceResult(
            combined_markdown=synthesize_markdown(matches),
            matches=matches,
            total_count=total,
            breakdown=breakdown,
        )

    matches = [build_match(section.heading, section.body) for section in dialect.sections if section.body]
    total, breakdown = read_statistics(dialect.frontmatter)
    return ResourceResult(
        combined_markdown=dialect.body,
        matches=matches,
        total_count=total,
        breakdown=breakdown,
    )


class QuestionsProvider(ResourceProvider):
    kind = ResourceKind.QUESTIONS
    endpoint = "fetch-translation-questions"
    decoder = staticmethod(decode_questions)


__all__ = ["QuestionsProvider", "decode_questions", "format_question"]

"""Per-kind Translation Helps providers sharing one resource provider port."""

from __future__ import annotations

from dataclasses import dataclass

from bt_study_engine.core.models import ResourceKind
from bt_study_engine.core.ports import ResourceProviderPort

from .academy import AcademyProvider
from .base import ResourceProvider
from .notes import NotesProvider
from .questions import QuestionsProvider
from .scripture import ScriptureProvider
from .word_links import WordLinksProvider
from .words import WordsProvider


@dataclass(slots=True)
class ProviderSet:
    """One provider per resource kind bound to the same port."""

    scripture: ScriptureProvider
    notes: NotesProvider
    questions: QuestionsProvider
    words: WordsProvider
    academy: AcademyProvider
    word_links: WordLinksProvider

    def for_kind(self, kind: ResourceKind) -> ResourceProvider:
        mapping: dict[ResourceKind, ResourceProvider] = {
            ResourceKind.SCRIPTURE: self.scripture,
            ResourceKind.NOTES: self.notes,
            ResourceKind.QUESTIONS: self.questions,
            ResourceKind.WORDS: self.words,
            ResourceKind.ACADEMY: self.academy,
            ResourceKind.WORD_LINKS: self.word_links,
        }
        return mapping[kind]


def build_providers(port: ResourceProviderPort) -> ProviderSet:
    """Bind every provider to ``port``."""
    return ProviderSet(
        scripture=ScriptureProvider(port),
        notes=NotesProvider(port),
        questions=QuestionsProvider(port),
        words=WordsProvider(port),
        academy=AcademyProvider(port),
        word_links=WordLinksProvider(port),
    )


__all__ = [
    "ProviderSet",
    "build_providers",
    "ResourceProvider",
    "ScriptureProvider",
    "NotesProvider",
    "QuestionsProvider",
    "WordsProvider",
    "AcademyProvider",
    "WordLinksProvider",
]

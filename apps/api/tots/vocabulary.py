"""First-words vocabulary book."""
from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from .errors import DuplicateWordError, WordNotFoundError
from .schemas import VocabularyWord


def _key(word: str) -> str:
    return word.strip().casefold()


class VocabularyBook:
    """Words keyed by id; the word text is unique ignoring case."""

    def __init__(self, words: Iterable[VocabularyWord] = ()) -> None:
        self._words: Dict[str, VocabularyWord] = {}
        for word in words:
            self.add(word)

    def __len__(self) -> int:
        return len(self._words)

    def find(self, text: str) -> Optional[VocabularyWord]:
        key = _key(text)
        return next((word for word in self._words.values() if _key(word.word) == key), None)

    def add(self, word: VocabularyWord) -> VocabularyWord:
        word = word.model_copy(update={"word": word.word.strip()})
        if not word.word:
            raise ValueError("word cannot be empty")
        if self.find(word.word) is not None:
            raise DuplicateWordError(f"'{word.word}' is already in the vocabulary")
        self._words[word.id] = word
        return word

    def update(self, word_id: str, **changes) -> VocabularyWord:
        existing = self._words.get(word_id)
        if existing is None:
            raise WordNotFoundError(f"Word {word_id} not found")
        if "word" in changes:
            text = (changes["word"] or "").strip()
            if not text:
                raise ValueError("word cannot be empty")
            clash = self.find(text)
            if clash is not None and clash.id != word_id:
                raise DuplicateWordError(f"'{text}' is already in the vocabulary")
            changes["word"] = text
        updated = VocabularyWord.model_validate({**existing.model_dump(), **changes, "id": word_id})
        self._words[word_id] = updated
        return updated

    def delete(self, word_id: str) -> Optional[VocabularyWord]:
        return self._words.pop(word_id, None)

    def words(self) -> List[VocabularyWord]:
        return sorted(self._words.values(), key=lambda word: word.date_first_said)

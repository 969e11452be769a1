from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ..schemas import VocabularyWord, WordCategory
from ..tracker import Tracker
from .deps import get_tracker, http_error

router = APIRouter(prefix="/api/v1", tags=["words"])


class CreateWordPayload(BaseModel):
    word: str = Field(..., min_length=1)
    category: WordCategory = WordCategory.OTHER
    date_first_said: Optional[datetime] = None
    notes: Optional[str] = None


class UpdateWordPayload(BaseModel):
    word: Optional[str] = None
    category: Optional[WordCategory] = None
    date_first_said: Optional[datetime] = None
    notes: Optional[str] = None


class DeleteWordResponse(BaseModel):
    id: str
    deleted: bool


@router.get("/words", response_model=List[VocabularyWord])
async def list_words(tracker: Tracker = Depends(get_tracker)) -> List[VocabularyWord]:
    return tracker.vocabulary.words()


@router.post("/words", response_model=VocabularyWord, status_code=201)
async def add_word(payload: CreateWordPayload, tracker: Tracker = Depends(get_tracker)) -> VocabularyWord:
    try:
        word = VocabularyWord(
            word=payload.word,
            category=payload.category,
            date_first_said=payload.date_first_said or tracker.now(),
            notes=payload.notes,
        )
        return tracker.add_word(word)
    except ValueError as exc:
        raise http_error(exc) from exc


@router.patch("/words/{word_id}", response_model=VocabularyWord)
async def update_word(
    word_id: str,
    payload: UpdateWordPayload,
    tracker: Tracker = Depends(get_tracker),
) -> VocabularyWord:
    changes = {field: getattr(payload, field) for field in payload.model_fields_set}
    if "date_first_said" in changes and changes["date_first_said"] is None:
        raise HTTPException(status_code=400, detail="date_first_said cannot be cleared")
    try:
        return tracker.update_word(word_id, **changes)
    except ValueError as exc:
        raise http_error(exc) from exc


@router.delete("/words/{word_id}", response_model=DeleteWordResponse)
async def delete_word(word_id: str, tracker: Tracker = Depends(get_tracker)) -> DeleteWordResponse:
    removed = tracker.delete_word(word_id)
    return DeleteWordResponse(id=word_id, deleted=removed is not None)

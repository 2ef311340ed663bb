"""
router.py — Word Bank REST Endpoints
=====================================
Category listing and custom words.

ENDPOINTS:
----------
GET    /api/words/categories                      → Categories with word counts
POST   /api/words/categories                      → New category
POST   /api/words/categories/{category_id}/words  → Custom word into a category

The words themselves are never listed here: they are the secrets players
guess.
"""

from fastapi import APIRouter, Depends, status

from pictionary.apps.words.schema import (
    CategoryCreateRequest,
    CategoryResponse,
    WordCreateRequest,
    WordResponse,
)
from pictionary.apps.words.service import WordBank, WordCategory
from pictionary.core.dependencies import get_word_bank

router = APIRouter(prefix="/api/words", tags=["words"])


def _category_response(category: WordCategory) -> CategoryResponse:
    return CategoryResponse(
        category_id=category.category_id,
        name=category.name,
        description=category.description,
        word_count=len(category.words),
    )


@router.get("/categories", response_model=list[CategoryResponse])
async def list_categories_endpoint(bank: WordBank = Depends(get_word_bank)):
    return [_category_response(c) for c in bank.categories()]


@router.post("/categories", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category_endpoint(req: CategoryCreateRequest, bank: WordBank = Depends(get_word_bank)):
    category = bank.add_category(req.category_id, req.name, req.description)
    return _category_response(category)


@router.post(
    "/categories/{category_id}/words",
    response_model=WordResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_word_endpoint(category_id: str, req: WordCreateRequest, bank: WordBank = Depends(get_word_bank)):
    word = bank.add_word(category_id, req.word)
    return WordResponse(word=word, category_id=category_id)

"""
schema.py — Word Bank Request/Response Models
==============================================
"""

from pydantic import Field

from pictionary.shared.schemas import CamelModel


# ═══════════════════════════════════════════════════
# REQUEST MODELS
# ═══════════════════════════════════════════════════

class CategoryCreateRequest(CamelModel):
    category_id: str = Field(..., min_length=1, max_length=30, examples=["sports"])
    name: str = Field(..., min_length=1, max_length=50, examples=["Sports"])
    description: str = Field(default="", max_length=200)


class WordCreateRequest(CamelModel):
    word: str = Field(..., min_length=1, max_length=40, examples=["basketball"])


# ═══════════════════════════════════════════════════
# RESPONSE MODELS
# ═══════════════════════════════════════════════════

class CategoryResponse(CamelModel):
    category_id: str
    name: str
    description: str
    word_count: int


class WordResponse(CamelModel):
    word: str
    category_id: str

"""
service.py — Word Bank
======================
Categorized Pictionary vocabulary and random word selection.

The bank starts from a fixed default vocabulary. Categories and words can be
added at runtime through the words router; those additions live in memory
for the lifetime of the process only.
"""

import logging
import random
from dataclasses import dataclass, field

from pictionary.core.errors import CategoryNotFound, ValidationError

logger = logging.getLogger(__name__)

MIN_WORD_LENGTH = 2


@dataclass
class WordCategory:
    category_id: str
    name: str
    description: str = ""
    words: list[str] = field(default_factory=list)


# ═══════════════════════════════════════════════════
# DEFAULT VOCABULARY
# ═══════════════════════════════════════════════════

DEFAULT_CATEGORIES: dict[str, WordCategory] = {
    "animals": WordCategory(
        category_id="animals",
        name="Animals",
        description="Creatures big and small",
        words=[
            "dog", "cat", "elephant", "giraffe", "lion", "tiger", "penguin", "kangaroo", "dolphin", "octopus",
            "butterfly", "spider", "monkey", "zebra", "panda", "koala", "rhinoceros", "owl", "eagle", "snake",
        ],
    ),
    "objects": WordCategory(
        category_id="objects",
        name="Objects",
        description="Everyday things",
        words=[
            "chair", "table", "lamp", "computer", "phone", "book", "pencil", "clock", "umbrella", "glasses",
            "camera", "television", "bicycle", "car", "airplane", "train", "boat", "key", "door", "window",
        ],
    ),
    "nature": WordCategory(
        category_id="nature",
        name="Nature",
        description="Landscapes and weather",
        words=[
            "tree", "flower", "mountain", "sun", "moon", "star", "cloud", "river", "ocean", "beach",
            "volcano", "island", "forest", "rainbow", "waterfall", "desert", "cave", "garden", "lake", "storm",
        ],
    ),
    "food": WordCategory(
        category_id="food",
        name="Food",
        description="Things to eat and drink",
        words=[
            "pizza", "hamburger", "sandwich", "apple", "banana", "orange", "carrot", "cake", "ice cream", "cookie",
            "sushi", "pasta", "bread", "egg", "cheese", "coffee", "milk", "chocolate", "popcorn", "candy",
        ],
    ),
    "activities": WordCategory(
        category_id="activities",
        name="Activities",
        description="Things people do",
        words=[
            "running", "swimming", "dancing", "singing", "reading", "writing", "painting", "cooking", "sleeping", "jumping",
            "skiing", "surfing", "fishing", "camping", "hiking", "skating", "playing", "climbing", "driving", "flying",
        ],
    ),
}


class WordBank:
    """In-memory categorized vocabulary."""

    def __init__(
        self,
        categories: dict[str, WordCategory] | None = None,
        rng: random.Random | None = None,
    ):
        source = categories if categories is not None else DEFAULT_CATEGORIES
        # Copy so runtime additions never leak into the module defaults
        self._categories: dict[str, WordCategory] = {
            cid: WordCategory(c.category_id, c.name, c.description, list(c.words))
            for cid, c in source.items()
        }
        self._rng = rng or random.Random()

    def pick(self, category: str | None = None, exclude: str | None = None) -> str:
        """
        Uniform random word, from one category or from the whole bank.

        Args:
            category: category id, None for all words
            exclude: word to avoid (e.g. the current one) when there is a choice

        Raises:
            CategoryNotFound: unknown category id
        """
        pool = self.words(category)
        if exclude is not None:
            others = [w for w in pool if w != exclude]
            if others:
                pool = others
        if not pool:
            raise CategoryNotFound(message=f"No words available in category '{category}'")
        return self._rng.choice(pool)

    def words(self, category: str | None = None) -> list[str]:
        if category is None:
            return [w for c in self._categories.values() for w in c.words]
        found = self._categories.get(category)
        if found is None:
            raise CategoryNotFound(message=f"Unknown category: {category}")
        return list(found.words)

    def has_category(self, category: str) -> bool:
        return category in self._categories

    def categories(self) -> list[WordCategory]:
        return list(self._categories.values())

    def add_category(self, category_id: str, name: str, description: str = "") -> WordCategory:
        cid = category_id.strip().lower()
        if not cid or not name.strip():
            raise ValidationError(message="Category id and name are required")
        if cid in self._categories:
            raise ValidationError(message=f"Category already exists: {cid}")

        category = WordCategory(category_id=cid, name=name.strip(), description=description.strip())
        self._categories[cid] = category
        logger.info(f"Word category added: {cid}")
        return category

    def add_word(self, category_id: str, word: str) -> str:
        """Add a custom word (lower-cased, trimmed) to an existing category."""
        category = self._categories.get(category_id)
        if category is None:
            valid = ", ".join(self._categories)
            raise CategoryNotFound(message=f"Invalid category. Must be one of: {valid}")

        normalized = word.strip().lower()
        if len(normalized) < MIN_WORD_LENGTH:
            raise ValidationError(message=f"Word must be at least {MIN_WORD_LENGTH} characters long")
        if normalized in category.words:
            raise ValidationError(message=f"'{normalized}' is already in {category_id}")

        category.words.append(normalized)
        logger.info(f"Word added to {category_id}: {normalized}")
        return normalized

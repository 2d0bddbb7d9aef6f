"""Repository for game categories."""
from typing import Dict, List

from database import Category
from .base import BaseRepository


class CategoryRepository(BaseRepository):
    """Data access for :class:`database.Category` rows."""

    def add(self, db, values: Dict) -> Category:
        with self._store_errors("create category"):
            category = Category(**values)
            db.add(category)
            db.flush()
            return category

    def list_all(self, db) -> List[Category]:
        """Return every category sorted by name."""
        with self._store_errors("list categories"):
            return db.query(Category).order_by(Category.name, Category.id).all()

    def get_many(self, db, category_ids: List[int]) -> List[Category]:
        """Return the categories whose ids are in *category_ids* (missing ids are skipped)."""
        if not category_ids:
            return []
        with self._store_errors("load categories"):
            return db.query(Category).filter(Category.id.in_(category_ids)).all()

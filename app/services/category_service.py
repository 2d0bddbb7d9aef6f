"""Business logic for game categories."""
from typing import Dict, List, Union

import database
from ..repositories import CategoryRepository
from ..schemas import CreateCategoryInput
from ..serializers import category_to_dict


class CategoryService:
    """Creates and lists categories.  Names need not be unique."""

    def __init__(self, repository: CategoryRepository = None) -> None:
        self._repo = repository or CategoryRepository()

    def create(self, db, data: Union[CreateCategoryInput, Dict]) -> Dict:
        payload = data if isinstance(data, CreateCategoryInput) else CreateCategoryInput.from_dict(data)
        with database.atomic(db):
            category = self._repo.add(db, vars(payload).copy())
        return category_to_dict(category)

    def list(self, db) -> List[Dict]:
        """Return all categories ordered by name."""
        return [category_to_dict(c) for c in self._repo.list_all(db)]

"""Code set cart: the concepts a user has selected from search results."""

import logging

from codeset_builder.schemas.labtest import CartItem, LabTestSearchResult

logger = logging.getLogger(__name__)


class CodeSetCart:
    """Cart of selected concepts keyed by concept id.

    Insertion order is kept so exported code sets list concepts in the
    order they were picked.
    """

    def __init__(self, items: list[CartItem] | None = None) -> None:
        self._items: dict[int, CartItem] = {}
        for item in items or []:
            self._items.setdefault(item.hierarchy_concept_id, item)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, concept_id: object) -> bool:
        return concept_id in self._items

    @property
    def items(self) -> list[CartItem]:
        """Cart contents in insertion order."""
        return list(self._items.values())

    def contains(self, result: LabTestSearchResult) -> bool:
        """Check whether a search result is already in the cart."""
        return result.term_concept in self._items

    def add(self, item: CartItem) -> bool:
        """Add an item; returns False if the concept was already present."""
        if item.hierarchy_concept_id in self._items:
            return False
        self._items[item.hierarchy_concept_id] = item
        return True

    def remove(self, concept_id: int) -> bool:
        """Remove a concept; returns False if it was not in the cart."""
        return self._items.pop(concept_id, None) is not None

    def toggle(self, result: LabTestSearchResult) -> bool:
        """Add the result if absent, remove it if present.

        Returns:
            True if the result is in the cart afterwards.
        """
        if self.contains(result):
            self.remove(result.term_concept)
            return False
        self.add(CartItem.from_result(result))
        return True

    def add_many(self, results: list[LabTestSearchResult]) -> int:
        """Add every result not yet in the cart; returns how many were added."""
        added = sum(1 for result in results if self.add(CartItem.from_result(result)))
        logger.debug(f"Added {added} of {len(results)} results to cart")
        return added

    def remove_many(self, results: list[LabTestSearchResult]) -> int:
        """Remove every result present in the cart; returns how many were removed."""
        removed = sum(1 for result in results if self.remove(result.term_concept))
        logger.debug(f"Removed {removed} of {len(results)} results from cart")
        return removed

    def in_cart_count(self, results: list[LabTestSearchResult]) -> int:
        """How many of the given results are in the cart."""
        return sum(1 for result in results if self.contains(result))

"""
Catalog value objects shared by the parser, reconciler and repository.

These are plain frozen dataclasses: they live for one pipeline run and
are never shared between requests. API schemas live in models.product.
"""

from dataclasses import dataclass, field
from typing import Optional

MAX_NAME_LENGTH = 100
MSG_TOO_LONG_NAME = "too long name"


@dataclass(frozen=True)
class ProductValidationError:
    """Domain rule violated by a product record."""
    offer_id: int
    field: str
    message: str


@dataclass(frozen=True)
class ProductRecord:
    """One product in a seller's catalog."""
    offer_id: int
    name: str
    price: int
    quantity: int
    seller_id: int = 0

    def validate(self) -> Optional[ProductValidationError]:
        """
        Check domain rules.

        Name length is counted in code points, not bytes.

        Returns:
            ProductValidationError, or None if the record is valid
        """
        if len(self.name) > MAX_NAME_LENGTH:
            return ProductValidationError(
                offer_id=self.offer_id,
                field="name",
                message=MSG_TOO_LONG_NAME,
            )
        return None


@dataclass(frozen=True)
class CandidateUpdate:
    """
    Parsed spreadsheet row, not yet classified.

    available=False asks for deletion; available=True asks for the
    record to exist with these values.
    """
    product: ProductRecord
    available: bool


@dataclass(frozen=True)
class RowError:
    """Non-fatal, per-record error."""
    row: Optional[int]
    field: str
    message: str
    offer_id: Optional[int] = None


@dataclass
class ReconciliationSets:
    """Disjoint add/update/delete sets for one seller, plus validation errors."""
    to_add: list[ProductRecord] = field(default_factory=list)
    to_update: list[ProductRecord] = field(default_factory=list)
    to_delete: list[ProductRecord] = field(default_factory=list)
    errors: list[RowError] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        """True if there is nothing to write."""
        return not (self.to_add or self.to_update or self.to_delete)


@dataclass
class UpdateResults:
    """Outcome of one catalog update."""
    added: int = 0
    updated: int = 0
    deleted: int = 0
    errors: list[RowError] = field(default_factory=list)


@dataclass(frozen=True)
class ProductFilter:
    """Read filter; empty lists mean "any"."""
    seller_ids: tuple[int, ...] = ()
    offer_ids: tuple[int, ...] = ()
    substring: str = ""

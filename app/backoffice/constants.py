"""
Central constants for the back-office application.
"""
from __future__ import annotations

import enum


class Profile(enum.IntEnum):
    """Role a customer account holds. Stored by code in customer_profiles."""

    ADMIN = 1
    CLIENT = 2

    @property
    def label(self) -> str:
        return f"ROLE_{self.name}"


class CustomerType(enum.IntEnum):
    INDIVIDUAL = 0
    ORGANIZATION = 1

    @property
    def description(self) -> str:
        return {
            CustomerType.INDIVIDUAL: "Individual",
            CustomerType.ORGANIZATION: "Organization",
        }[self]

    @classmethod
    def from_code(cls, code: int | str | None) -> "CustomerType | None":
        if code is None or code == "":
            return None
        try:
            return cls(int(code))
        except (TypeError, ValueError):
            raise ValueError(f"Invalid customer type code: {code!r}")


class SortDirection(str, enum.Enum):
    ASC = "ASC"
    DESC = "DESC"


# Sort keys accepted by the paginated customer listing -> Customer attribute.
# The Portuguese keys are the column names older clients still send.
CUSTOMER_SORTABLE_FIELDS = {
    "id": "id",
    "name": "name",
    "nome": "name",
    "email": "email",
    "created_at": "created_at",
    "instante": "created_at",
}

# Default paging, matching the listing endpoint's query defaults
DEFAULT_PAGE = 0
DEFAULT_LINES_PER_PAGE = 24
DEFAULT_ORDER_BY = "name"
DEFAULT_DIRECTION = SortDirection.ASC.value

PROFILE_IMAGE_EXTENSION = "jpg"
PROFILE_IMAGE_CONTENT_TYPE = "image/jpeg"

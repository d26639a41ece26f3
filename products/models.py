"""Pydantic models for products and lookup outcomes."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, computed_field

NOT_FOUND_MESSAGE = "Product not found"
TRANSPORT_ERROR_MESSAGE = "Error fetching product information"
LOADING_MESSAGE = "Searching for product..."

Number = int | float

NUTRIENT_UNITS = {
    "energy_100g": "kcal",
    "proteins_100g": "g",
    "carbohydrates_100g": "g",
    "fat_100g": "g",
}


def format_nutrient(value: Number | None, unit: str = "") -> str:
    """Render a nutrient value for display, e.g. ``539`` -> ``"539kcal"``."""
    if value is None:
        return "unknown"
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return f"{value}{unit}"


class Nutrients(BaseModel):
    """Nutrient values per 100g. ``None`` means the source did not say."""

    model_config = ConfigDict(frozen=True)

    energy_100g: Number | None = None
    proteins_100g: Number | None = None
    carbohydrates_100g: Number | None = None
    fat_100g: Number | None = None

    @computed_field
    @property
    def display(self) -> dict[str, str]:
        """Values rendered with their units; missing ones read ``"unknown"``."""
        return {
            key: format_nutrient(getattr(self, key), unit) for key, unit in NUTRIENT_UNITS.items()
        }


class ProductRecord(BaseModel):
    """Read-only snapshot of a product returned by a successful lookup."""

    model_config = ConfigDict(frozen=True)

    barcode: str
    product_name: str
    brands: str | None = None
    ingredients_text: str | None = None
    image_url: str | None = None
    nutriments: Nutrients = Nutrients()


class OutcomeStatus(StrEnum):
    IDLE = "idle"
    LOADING = "loading"
    FOUND = "found"
    NOT_FOUND = "not_found"
    TRANSPORT_ERROR = "transport_error"


TERMINAL_STATUSES = frozenset(
    {OutcomeStatus.FOUND, OutcomeStatus.NOT_FOUND, OutcomeStatus.TRANSPORT_ERROR}
)


class LookupOutcome(BaseModel):
    """Tagged result of a lookup attempt.

    Exactly one of the ``OutcomeStatus`` values is current. ``product`` is
    only set for ``FOUND``; ``message`` carries the user-visible text for the
    loading and failure states.
    """

    model_config = ConfigDict(frozen=True)

    status: OutcomeStatus
    barcode: str | None = None
    product: ProductRecord | None = None
    message: str | None = None

    @classmethod
    def idle(cls) -> "LookupOutcome":
        return cls(status=OutcomeStatus.IDLE)

    @classmethod
    def loading(cls, barcode: str) -> "LookupOutcome":
        return cls(status=OutcomeStatus.LOADING, barcode=barcode, message=LOADING_MESSAGE)

    @classmethod
    def found(cls, product: ProductRecord) -> "LookupOutcome":
        return cls(status=OutcomeStatus.FOUND, barcode=product.barcode, product=product)

    @classmethod
    def not_found(cls, barcode: str) -> "LookupOutcome":
        return cls(status=OutcomeStatus.NOT_FOUND, barcode=barcode, message=NOT_FOUND_MESSAGE)

    @classmethod
    def transport_error(cls, barcode: str) -> "LookupOutcome":
        return cls(
            status=OutcomeStatus.TRANSPORT_ERROR,
            barcode=barcode,
            message=TRANSPORT_ERROR_MESSAGE,
        )

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

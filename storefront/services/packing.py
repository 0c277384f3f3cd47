# storefront/services/packing.py
"""
Pakowanie paczki z pozycji koszyka.

Prosty model stosu: najwieksza dlugosc i szerokosc, wysokosci sumowane z iloscia.
To nie jest optymalizator 3D bin-packing.
"""
import math
from dataclasses import dataclass, replace
from typing import Iterable, Protocol

DEFAULT_LENGTH_CM = 20
DEFAULT_WIDTH_CM = 15
DEFAULT_ITEM_HEIGHT_CM = 3

MAX_ITEM_WEIGHT_GR = 50_000
MAX_ITEM_DIMENSION_CM = 200
PRODUCT_LIST_LIMIT = 240


class PhysicalLine(Protocol):
    name: str
    sku: str | None
    quantity: int
    weight_gr: int
    length_cm: int | None
    width_cm: int | None
    height_cm: int | None


@dataclass(frozen=True)
class Parcel:
    length: int  # cm
    width: int  # cm
    height: int  # cm
    weight: int  # kg, zaokraglone w gore


def compute_parcel(lines: list[PhysicalLine]) -> Parcel:
    """Zaklada co najmniej jedna pozycje fizyczna, walidacja jest wyzej."""
    if not lines:
        raise ValueError("Cannot compute a parcel for an empty cart")

    total_weight_gr = sum(line.weight_gr * line.quantity for line in lines)
    max_length = max(line.length_cm or DEFAULT_LENGTH_CM for line in lines)
    max_width = max(line.width_cm or DEFAULT_WIDTH_CM for line in lines)
    total_height = sum((line.height_cm or DEFAULT_ITEM_HEIGHT_CM) * line.quantity for line in lines)

    return Parcel(
        length=round(max_length),
        width=round(max_width),
        height=round(total_height),
        weight=max(1, math.ceil(total_weight_gr / 1000)),
    )


def apply_parcel_overrides(parcel: Parcel, override=None) -> Parcel:
    if override is None:
        return parcel

    changes = {
        field: getattr(override, field)
        for field in ("length", "width", "height", "weight")
        if getattr(override, field, None) is not None
    }
    return replace(parcel, **changes)


def validate_physical_items(lines: Iterable[PhysicalLine]) -> list[str]:
    errors = []
    for index, line in enumerate(lines, start=1):
        label = f"Item {index} ({line.name})"
        if not line.weight_gr or line.weight_gr <= 0:
            errors.append(f"{label} must have weight > 0")
        elif line.weight_gr > MAX_ITEM_WEIGHT_GR:
            errors.append(f"{label} exceeds 50kg weight limit")

        for dimension in ("length_cm", "width_cm", "height_cm"):
            value = getattr(line, dimension)
            if value and value > MAX_ITEM_DIMENSION_CM:
                errors.append(f"{label} exceeds 200cm {dimension[:-3]} limit")

    return errors


def summarize_items(lines: Iterable[PhysicalLine]) -> str:
    """np. "T-Shirt (TS-1) x2, Cap (CP-3)" """
    parts = []
    for line in lines:
        sku = f" ({line.sku})" if line.sku else ""
        quantity = f" x{line.quantity}" if line.quantity > 1 else ""
        parts.append(f"{line.name}{sku}{quantity}")

    summary = ", ".join(parts)
    if len(summary) > PRODUCT_LIST_LIMIT:
        return summary[: PRODUCT_LIST_LIMIT - 3] + "..."
    return summary

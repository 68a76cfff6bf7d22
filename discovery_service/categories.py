from enum import Enum
from typing import Annotated

from pydantic import BaseModel, BeforeValidator


def norm(value):
    # "deep cleaning", "deep-cleaning", " Deep_Cleaning " -> "DEEP_CLEANING"
    if isinstance(value, str):
        return value.strip().upper().replace(" ", "_").replace("-", "_")
    return value


class ServiceCategory(str, Enum):
    HOUSEKEEPING = "HOUSEKEEPING"
    DEEP_CLEANING = "DEEP_CLEANING"
    COOKING = "COOKING"
    LAUNDRY = "LAUNDRY"
    BABYSITTING = "BABYSITTING"
    ELDERLY_CARE = "ELDERLY_CARE"
    PET_CARE = "PET_CARE"
    GARDENING = "GARDENING"


Category = Annotated[ServiceCategory, BeforeValidator(norm)]


class CategoryInfo(BaseModel):
    category: ServiceCategory
    name: str
    base_price: float
    duration_minutes: int


CATEGORIES: dict[ServiceCategory, CategoryInfo] = {
    info.category: info
    for info in [
        CategoryInfo(category=ServiceCategory.HOUSEKEEPING, name="Regular Housekeeping", base_price=300, duration_minutes=120),
        CategoryInfo(category=ServiceCategory.DEEP_CLEANING, name="Deep Cleaning", base_price=500, duration_minutes=240),
        CategoryInfo(category=ServiceCategory.COOKING, name="Cooking & Meal Prep", base_price=400, duration_minutes=180),
        CategoryInfo(category=ServiceCategory.LAUNDRY, name="Laundry Service", base_price=250, duration_minutes=120),
        CategoryInfo(category=ServiceCategory.BABYSITTING, name="Babysitting", base_price=450, duration_minutes=240),
        CategoryInfo(category=ServiceCategory.ELDERLY_CARE, name="Elderly Care", base_price=600, duration_minutes=480),
        CategoryInfo(category=ServiceCategory.PET_CARE, name="Pet Care", base_price=350, duration_minutes=120),
        CategoryInfo(category=ServiceCategory.GARDENING, name="Gardening", base_price=400, duration_minutes=180),
    ]
}

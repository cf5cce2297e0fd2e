# pos_edge/domain/catalog/schemas.py
import enum
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class Category(str, enum.Enum):
    FOOD = "Makanan"
    BEVERAGE = "Minuman"
    STAPLE = "Kebutuhan Pokok"
    STATIONERY = "Alat Tulis"
    OTHER = "Lainnya"


class Variant(BaseModel):
    name: str
    price: int = 0

    class Config:
        frozen = True


class Product(BaseModel):
    id: UUID
    branch_id: UUID
    sku: Optional[str] = None
    name: str
    category: Category = Category.OTHER
    price: int
    cost: int = 0
    stock: int = 0
    min_stock: int = 0
    variants: List[Variant] = []

    class Config:
        from_attributes = True

    @property
    def is_low_stock(self) -> bool:
        return self.stock <= self.min_stock


class ProductCreate(BaseModel):
    sku: Optional[str] = None
    name: str = "Produk Baru"
    category: Category = Category.FOOD
    price: int = Field(0, ge=0)
    cost: int = Field(0, ge=0)
    stock: int = Field(0, ge=0)
    min_stock: int = Field(5, ge=0)
    variants: List[Variant] = []


class ProductUpdate(BaseModel):
    sku: Optional[str] = None
    name: Optional[str] = None
    category: Optional[Category] = None
    price: Optional[int] = Field(None, ge=0)
    cost: Optional[int] = Field(None, ge=0)
    stock: Optional[int] = Field(None, ge=0)
    min_stock: Optional[int] = Field(None, ge=0)
    variants: Optional[List[Variant]] = None

    @field_validator("name", "category", "price", "cost", "stock", "min_stock", "variants", mode="before")
    @classmethod
    def _not_null(cls, value):
        # only sku may be cleared; leave a field out to keep it
        if value is None:
            raise ValueError("may not be null")
        return value

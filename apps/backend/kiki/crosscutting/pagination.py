"""
===============================================================================
MÓDULO: Paginación por página/límite
===============================================================================

Los listados del panel administrativo trabajan con `?page=&limit=` y
devuelven `{items, pagination: {page, limit, total, pages}}`.

CRC (Component Card)
-------------------------------------------------------------------------------
Componente:
  PageParams + Page[T] + build_page

Responsabilidades:
  - Normalizar page/limit (clamps)
  - Traducir a offset/limit para los repositorios
  - Armar la metadata de la respuesta
===============================================================================
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Generic, List, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")

DEFAULT_LIMIT = 10
MAX_LIMIT = 100


@dataclass(frozen=True, slots=True)
class PageParams:
    """Página pedida, ya normalizada."""

    page: int = 1
    limit: int = DEFAULT_LIMIT

    @classmethod
    def of(cls, page: int | None, limit: int | None) -> "PageParams":
        page = max(1, int(page or 1))
        limit = min(MAX_LIMIT, max(1, int(limit or DEFAULT_LIMIT)))
        return cls(page=page, limit=limit)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class PaginationInfo(BaseModel):
    page: int = Field(description="Página actual (1-based)")
    limit: int = Field(description="Items por página")
    total: int = Field(description="Total de items que matchean el filtro")
    pages: int = Field(description="Cantidad total de páginas")


class Page(BaseModel, Generic[T]):
    items: List[T] = Field(description="Items de la página actual")
    pagination: PaginationInfo


def build_page(items: List[T], params: PageParams, total: int) -> Page[T]:
    return Page(
        items=items,
        pagination=PaginationInfo(
            page=params.page,
            limit=params.limit,
            total=total,
            pages=math.ceil(total / params.limit) if total else 0,
        ),
    )

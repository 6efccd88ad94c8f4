#
# Copyright (c) 2025 by Delphix. All rights reserved.
#

import dataclasses
import enum
import typing as tp

Document = tp.Dict[str, tp.Any]
Batch = tp.Tuple[Document, ...]


class BackendVariant(enum.Enum):
    ITEM_STORE = "CosmosDB"
    BULK_STORE = "MongoDB"

    @property
    def store_name(self) -> str:
        return self.value


@dataclasses.dataclass(frozen=True)
class ContainerRef:
    database: str
    collection: str

    def __str__(self) -> str:
        return f"{self.database}/{self.collection}"


@dataclasses.dataclass(frozen=True)
class InsertionResult:
    """Documents submitted in one request vs. documents actually persisted"""
    total: int
    inserted: int

    def __post_init__(self):
        if self.total < 0 or self.inserted < 0:
            raise ValueError(f"Counts cannot be negative: {self}")
        if self.inserted > self.total:
            raise ValueError(f"Inserted count exceeds total: {self}")


@dataclasses.dataclass(frozen=True)
class PerDocumentFailure:
    index: int
    cause: Exception

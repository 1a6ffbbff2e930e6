from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class StorageEntry(SQLModel, table=True):
    """
    One key-value pair of a customer's durable storage area.

    An area is the storage space of one customer; the cart lives under a
    fixed key inside it. Values are stored as raw text (JSON for the cart).
    """

    __tablename__ = "storage_entries"

    area: str = Field(
        primary_key=True,
        max_length=64,
        description="Owner of the storage area (customer id)",
    )

    key: str = Field(
        primary_key=True,
        max_length=128,
        description="Namespaced storage key",
    )

    value: str = Field(
        description="Raw stored text",
    )

    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Last write timestamp (UTC)",
    )

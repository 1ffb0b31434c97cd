from __future__ import annotations

from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, UniqueConstraint, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class OfferBranch(Base):
    """Offer availability at a branch; a NULL branch_id covers every branch of the merchant."""

    __tablename__ = "offer_branches"
    __table_args__ = (
        UniqueConstraint("offer_id", "branch_id", name="uq_offer_branches_offer_branch"),
        Index("idx_offer_branches_branch", "branch_id"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    offer_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("offers.id"), nullable=False)
    branch_id: Mapped[UUID | None] = mapped_column(
        Uuid,
        ForeignKey("merchant_branches.id"),
        nullable=True,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("true"))

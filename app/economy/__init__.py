from app.economy.redemptions.service import RedemptionService

__all__ = ["RedemptionService"]

"""Order fees, computed from configured rates."""

from dataclasses import dataclass

from marketplace.shared import settings


@dataclass(frozen=True)
class Quote:
    subtotal: float
    delivery: float
    platform: float
    agent_commission: float

    @property
    def total_amount(self) -> float:
        # Agent commission is excluded
        return round(self.subtotal + self.delivery + self.platform, 2)


def quote(subtotal: float) -> Quote:
    subtotal = round(subtotal, 2)
    return Quote(
        subtotal=subtotal,
        delivery=round(settings.default_delivery_charge(), 2),
        platform=round(subtotal * settings.platform_fee_rate(), 2),
        agent_commission=round(subtotal * settings.agent_commission_rate(), 2),
    )

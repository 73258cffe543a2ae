"""Catalogue queries over the Product aggregate.

Filters on the seller snapshot and on free text are applied after the
status filter, in Python, so they behave the same on every provider. Those
queries read the whole matching set (``limit(None)``), never just the
provider's default page.
"""

from collections import Counter

from marketplace.domain import marketplace
from marketplace.product.product import Product, ProductStatus

_UNKNOWN = "Unknown"


def _same(value, expected):
    return (value or "").lower() == expected.lower()


def _matches(product, crop_type=None, region=None, search=None, min_price=None, max_price=None):
    if crop_type and not _same(product.crop_type, crop_type):
        return False
    if region and not _same(product.seller.region, region):
        return False
    if search:
        needle = search.lower()
        haystack = " ".join(
            filter(None, [product.title, product.description, product.crop_type, product.seller.name])
        ).lower()
        if needle not in haystack:
            return False
    if min_price is not None and product.price_per_unit < min_price:
        return False
    if max_price is not None and product.price_per_unit > max_price:
        return False
    return True


def _newest_first(products):
    return sorted(products, key=lambda p: p.created_at, reverse=True)


@marketplace.repository(part_of=Product)
class ProductRepository:
    def _every(self, status=None) -> list[Product]:
        query = self._dao.query.filter(status=status) if status else self._dao.query
        return query.limit(None).all().items

    def find_approved(self, **filters) -> list[Product]:
        products = self._every(ProductStatus.APPROVED.value)
        return _newest_first(p for p in products if _matches(p, **filters))

    def find_any(self, status=None, **filters) -> list[Product]:
        """Products in every status, for admins."""
        return _newest_first(p for p in self._every(status) if _matches(p, **filters))

    def find_by_seller(self, seller_id) -> list[Product]:
        products = self._every()
        return _newest_first(p for p in products if str(p.seller.seller_id) == str(seller_id))

    def find_in_region(self, region, status=None) -> list[Product]:
        """An agent's operational area: products whose seller is in ``region``."""
        return _newest_first(p for p in self._every(status) if _same(p.seller.region, region))

    def find_pending(self, region: str | None = None) -> list[Product]:
        products = self._every(ProductStatus.PENDING.value)
        if region:
            products = [p for p in products if _same(p.seller.region, region)]
        return sorted(products, key=lambda p: p.created_at)

    def crop_types(self) -> list[str]:
        products = self._every(ProductStatus.APPROVED.value)
        return sorted({p.crop_type for p in products if p.crop_type})

    def agent_statistics(self, agent_id, region) -> dict:
        """Counts for an agent's region. ``approved`` counts only the agent's own approvals."""
        products = [p for p in self._every() if _same(p.seller.region, region)]
        statuses = Counter(p.status for p in products)
        return {
            "total": len(products),
            "pending": statuses[ProductStatus.PENDING.value],
            "approved": sum(
                1
                for p in products
                if p.status == ProductStatus.APPROVED.value and str(p.approved_by) == str(agent_id)
            ),
            "rejected": statuses[ProductStatus.REJECTED.value],
        }

    def statistics(self) -> dict:
        products = self._every()
        statuses = Counter(p.status for p in products)
        return {
            "total": len(products),
            "pending": statuses[ProductStatus.PENDING.value],
            "approved": statuses[ProductStatus.APPROVED.value],
            "rejected": statuses[ProductStatus.REJECTED.value],
            "by_region": dict(Counter(p.seller.region or _UNKNOWN for p in products)),
            "by_crop_type": dict(Counter(p.crop_type or _UNKNOWN for p in products)),
            "by_status": dict(statuses),
        }

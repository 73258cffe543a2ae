"""Marketplace bounded context: users, catalogue, carts and orders.

A single domain so that checkout can reserve stock across products and
create the order inside one unit of work.
"""

import structlog
from protean.domain import Domain

from marketplace.utils.logging import configure_logging

configure_logging()

marketplace = Domain(name="marketplace")

logger = structlog.get_logger(__name__)

"""Marketplace bounded context: carts, checkout, payments, fulfillment and payouts.

A single domain so that checkout, webhook reconciliation and payout
generation each commit inside one Unit of Work against shared storage.
"""

import structlog
from protean.domain import Domain

from marketplace.utils.logging import configure_logging

configure_logging()

marketplace = Domain(name="marketplace")

logger = structlog.get_logger(__name__)

"""Supplier aggregate: an independent seller and its commission rate.

Only the parts the settlement core depends on live here: activation status
(payouts only run for active suppliers) and the commission rate that gets
frozen onto each order item at checkout.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ObjectNotFoundError
from protean.fields import DateTime, Float, String
from protean.utils.globals import current_domain

from marketplace.catalogue.events import (
    CommissionRateChanged,
    SupplierRegistered,
    SupplierStatusChanged,
)
from marketplace.domain import marketplace
from marketplace.errors import InvalidCommissionRate, InvalidStatusTransition, SupplierNotFound


class SupplierStatus(Enum):
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"


_VALID_TRANSITIONS = {
    SupplierStatus.PENDING: {SupplierStatus.ACTIVE, SupplierStatus.SUSPENDED},
    SupplierStatus.ACTIVE: {SupplierStatus.SUSPENDED},
    SupplierStatus.SUSPENDED: {SupplierStatus.ACTIVE},
}

MIN_COMMISSION_RATE = 0.0
MAX_COMMISSION_RATE = 100.0


@marketplace.aggregate
class Supplier:
    business_name = String(required=True, max_length=255)
    email = String(max_length=255)
    phone = String(max_length=30)
    status = String(choices=SupplierStatus, default=SupplierStatus.PENDING.value)
    commission_rate = Float(default=10.0, min_value=MIN_COMMISSION_RATE, max_value=MAX_COMMISSION_RATE)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def register(cls, business_name, email=None, phone=None, commission_rate=10.0):
        _check_rate(commission_rate)
        now = datetime.now(UTC)
        supplier = cls(
            business_name=business_name,
            email=email,
            phone=phone,
            status=SupplierStatus.PENDING.value,
            commission_rate=commission_rate,
            created_at=now,
            updated_at=now,
        )
        supplier.raise_(
            SupplierRegistered(
                supplier_id=str(supplier.id),
                business_name=business_name,
                commission_rate=commission_rate,
                registered_at=now,
            )
        )
        return supplier

    @property
    def is_active(self) -> bool:
        return self.status == SupplierStatus.ACTIVE.value

    def change_status(self, target: SupplierStatus) -> None:
        current = SupplierStatus(self.status)
        if target not in _VALID_TRANSITIONS[current]:
            raise InvalidStatusTransition(f"Cannot transition supplier from {current.value} to {target.value}")

        self.status = target.value
        self.updated_at = datetime.now(UTC)
        self.raise_(
            SupplierStatusChanged(
                supplier_id=str(self.id),
                previous_status=current.value,
                new_status=target.value,
            )
        )

    def change_commission_rate(self, rate: float) -> None:
        _check_rate(rate)
        previous = self.commission_rate
        self.commission_rate = rate
        self.updated_at = datetime.now(UTC)
        self.raise_(
            CommissionRateChanged(
                supplier_id=str(self.id),
                previous_rate=previous,
                new_rate=rate,
            )
        )


def _check_rate(rate: float) -> None:
    if rate is None or not (MIN_COMMISSION_RATE <= rate <= MAX_COMMISSION_RATE):
        raise InvalidCommissionRate(
            f"Commission rate must be between {MIN_COMMISSION_RATE:g} and {MAX_COMMISSION_RATE:g}",
            rate=rate,
        )


def load_supplier(supplier_id) -> Supplier:
    try:
        return current_domain.repository_for(Supplier).get(supplier_id)
    except ObjectNotFoundError:
        raise SupplierNotFound(f"Supplier {supplier_id} not found", supplier_id=str(supplier_id)) from None

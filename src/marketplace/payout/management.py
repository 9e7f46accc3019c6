"""Payout status updates by the platform operator."""

from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.payout.payout import PayoutStatus, SupplierPayout, load_payout


@marketplace.command(part_of="SupplierPayout")
class UpdatePayoutStatus:
    payout_id = Identifier(required=True)
    status = String(required=True, choices=PayoutStatus)
    payment_reference = String(max_length=100)
    notes = Text()


@marketplace.command_handler(part_of=SupplierPayout)
class UpdatePayoutStatusHandler:
    @handle(UpdatePayoutStatus)
    def update_payout_status(self, command):
        payout = load_payout(command.payout_id)
        payout.change_status(
            PayoutStatus(command.status),
            payment_reference=command.payment_reference,
            notes=command.notes,
        )
        current_domain.repository_for(SupplierPayout).add(payout)
        return payout.status

"""Catalogue commands the settlement core relies on.

Suppliers are registered, activated and re-priced here; products are added
and restocked. Full catalogue authoring is out of scope.
"""

from protean import handle
from protean.fields import Boolean, Float, Identifier, Integer, String
from protean.utils.globals import current_domain

from marketplace.catalogue.inventory_log import InventoryLog, InventoryReason, ReferenceType
from marketplace.catalogue.product import Product, load_product
from marketplace.catalogue.supplier import Supplier, SupplierStatus, load_supplier
from marketplace.domain import marketplace


@marketplace.command(part_of="Supplier")
class RegisterSupplier:
    business_name = String(required=True, max_length=255)
    email = String(max_length=255)
    phone = String(max_length=30)
    commission_rate = Float(default=10.0)


@marketplace.command(part_of="Supplier")
class ChangeSupplierStatus:
    supplier_id = Identifier(required=True)
    status = String(required=True, choices=SupplierStatus)


@marketplace.command(part_of="Supplier")
class ChangeCommissionRate:
    supplier_id = Identifier(required=True)
    commission_rate = Float(required=True)


@marketplace.command_handler(part_of=Supplier)
class ManageSupplierHandler:
    @handle(RegisterSupplier)
    def register_supplier(self, command):
        supplier = Supplier.register(
            business_name=command.business_name,
            email=command.email,
            phone=command.phone,
            commission_rate=command.commission_rate if command.commission_rate is not None else 10.0,
        )
        current_domain.repository_for(Supplier).add(supplier)
        return str(supplier.id)

    @handle(ChangeSupplierStatus)
    def change_status(self, command):
        supplier = load_supplier(command.supplier_id)
        supplier.change_status(SupplierStatus(command.status))
        current_domain.repository_for(Supplier).add(supplier)

    @handle(ChangeCommissionRate)
    def change_commission_rate(self, command):
        supplier = load_supplier(command.supplier_id)
        supplier.change_commission_rate(command.commission_rate)
        current_domain.repository_for(Supplier).add(supplier)


@marketplace.command(part_of="Product")
class AddProduct:
    name = String(required=True, max_length=255)
    price = Float(required=True, min_value=0.0)
    stock = Integer(default=0, min_value=0)
    supplier_id = Identifier()
    currency = String(max_length=3, default="XAF")


@marketplace.command(part_of="Product")
class RestockProduct:
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    notes = String(max_length=500)


@marketplace.command(part_of="Product")
class SetProductAvailability:
    product_id = Identifier(required=True)
    active = Boolean(required=True)


@marketplace.command_handler(part_of=Product)
class ManageProductHandler:
    @handle(AddProduct)
    def add_product(self, command):
        if command.supplier_id:
            load_supplier(command.supplier_id)

        product = Product.create(
            name=command.name,
            price=command.price,
            stock=command.stock or 0,
            supplier_id=command.supplier_id,
            currency=command.currency or "XAF",
        )
        current_domain.repository_for(Product).add(product)
        return str(product.id)

    @handle(RestockProduct)
    def restock(self, command):
        product = load_product(command.product_id)
        previous = product.restock(command.quantity, InventoryReason.RESTOCK.value)
        current_domain.repository_for(Product).add(product)
        current_domain.repository_for(InventoryLog).add(
            InventoryLog.record(
                product,
                previous,
                InventoryReason.RESTOCK,
                reference_type=ReferenceType.MANUAL,
                notes=command.notes,
            )
        )

    @handle(SetProductAvailability)
    def set_availability(self, command):
        product = load_product(command.product_id)
        product.set_availability(command.active)
        current_domain.repository_for(Product).add(product)

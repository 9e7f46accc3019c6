"""Cart lifecycle: creation, lookup by public id, deletion."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from marketplace.cart.cart import Cart, find_cart_by_public_id, load_cart
from marketplace.domain import marketplace


@marketplace.command(part_of="Cart")
class CreateCart:
    customer_id = Identifier()
    session_id = String(max_length=255)
    public_id = String(max_length=32)


@marketplace.command(part_of="Cart")
class DeleteCart:
    cart_id = Identifier(required=True)


@marketplace.command_handler(part_of=Cart)
class ManageCartHandler:
    @handle(CreateCart)
    def create_cart(self, command):
        cart = Cart.create(
            customer_id=command.customer_id,
            session_id=command.session_id,
            public_id=command.public_id,
        )
        current_domain.repository_for(Cart).add(cart)
        return str(cart.id)

    @handle(DeleteCart)
    def delete_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = load_cart(command.cart_id)
        if cart.items:
            cart.clear()
            repo.add(cart)
        repo._dao.delete(cart)


def get_or_create_cart(public_id: str | None = None, customer_id=None, session_id=None) -> Cart:
    """Return the cart addressed by ``public_id``, creating one when unknown."""
    if public_id:
        cart = find_cart_by_public_id(public_id)
        if cart is not None:
            return cart

    cart_id = current_domain.process(
        CreateCart(customer_id=customer_id, session_id=session_id, public_id=public_id),
        asynchronous=False,
    )
    return load_cart(cart_id)

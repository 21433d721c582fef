"""Unit tests for cart operations."""

from decimal import Decimal

import pytest
from libs.common.errors import Conflict, NotFound
from services.marketplace_service.models import ModerationStatus
from services.marketplace_service.services.cart_ops import (
    add_to_cart,
    clamp_quantity,
    get_cart,
    remove_from_cart,
    set_quantity,
)
from tests.conftest import (
    create_customer,
    create_product,
    create_vendor,
    make_auth_user,
)


@pytest.mark.unit
@pytest.mark.parametrize(
    "requested,stock,expected",
    [(2, 5, 2), (5, 5, 5), (8, 5, 5), (3, 0, 0)],
)
def test_clamp_quantity(requested, stock, expected):
    assert clamp_quantity(requested, stock) == expected


@pytest.mark.asyncio
@pytest.mark.unit
async def test_add_increments_existing_line(db_session):
    customer = make_auth_user(await create_customer(db_session))
    _, vendor = await create_vendor(db_session)
    product = await create_product(db_session, vendor, price=Decimal("2.50"), stock=10)

    await add_to_cart(db_session, customer, product.id, 2)
    line = await add_to_cart(db_session, customer, product.id, 3)
    cart = await get_cart(db_session, customer)

    assert line.quantity == 5
    assert len(cart.items) == 1
    assert cart.items[0].quantity == 5
    assert cart.total_amount == Decimal("12.50")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_add_beyond_stock_conflicts(db_session):
    customer = make_auth_user(await create_customer(db_session))
    _, vendor = await create_vendor(db_session)
    product = await create_product(db_session, vendor, stock=2)

    await add_to_cart(db_session, customer, product.id, 2)
    with pytest.raises(Conflict):
        await add_to_cart(db_session, customer, product.id, 1)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_add_unapproved_product_not_found(db_session):
    customer = make_auth_user(await create_customer(db_session))
    _, vendor = await create_vendor(db_session)
    product = await create_product(
        db_session, vendor, status=ModerationStatus.PENDING
    )

    with pytest.raises(NotFound):
        await add_to_cart(db_session, customer, product.id, 1)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_cart_view_clamps_to_current_stock(db_session):
    """Stock dropping below a line's quantity caps the displayed quantity."""
    customer = make_auth_user(await create_customer(db_session))
    _, vendor = await create_vendor(db_session)
    product = await create_product(db_session, vendor, price=Decimal("1.00"), stock=5)
    await add_to_cart(db_session, customer, product.id, 4)

    product.stock = 2
    await db_session.commit()
    cart = await get_cart(db_session, customer)

    assert cart.items[0].quantity == 2
    assert cart.items[0].stock == 2
    assert cart.total_amount == Decimal("2.00")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_cart_view_hides_unapproved_products(db_session):
    customer = make_auth_user(await create_customer(db_session))
    _, vendor = await create_vendor(db_session)
    product = await create_product(db_session, vendor)
    await add_to_cart(db_session, customer, product.id, 1)

    product.status = ModerationStatus.INACTIVE
    await db_session.commit()
    cart = await get_cart(db_session, customer)

    assert cart.items == []
    assert cart.total_amount == Decimal("0")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_set_quantity_zero_removes_line(db_session):
    customer = make_auth_user(await create_customer(db_session))
    _, vendor = await create_vendor(db_session)
    product = await create_product(db_session, vendor)
    await add_to_cart(db_session, customer, product.id, 2)

    assert await set_quantity(db_session, customer, product.id, 0) is None
    assert (await get_cart(db_session, customer)).items == []


@pytest.mark.asyncio
@pytest.mark.unit
async def test_set_quantity_and_remove_missing_line(db_session):
    customer = make_auth_user(await create_customer(db_session))
    _, vendor = await create_vendor(db_session)
    product = await create_product(db_session, vendor, stock=3)

    with pytest.raises(NotFound):
        await set_quantity(db_session, customer, product.id, 1)
    with pytest.raises(NotFound):
        await remove_from_cart(db_session, customer, product.id)

    await add_to_cart(db_session, customer, product.id, 1)
    with pytest.raises(Conflict):
        await set_quantity(db_session, customer, product.id, 4)

from __future__ import annotations

from fastapi import Depends, Request

from rental_booking.api.payments.gateways.base import PaymentGateway
from rental_booking.api.payments.gateways.card_rail import RazorpayCardGateway
from rental_booking.api.payments.gateways.mobile_wallet import HttpWalletGateway
from rental_booking.core.common.constants import PaymentStrategy
from rental_booking.core.request_context import Actor, get_authenticated_user_id
from rental_booking.utils.collaborators import Notifier, PropertyAvailability, UserDirectory
from rental_booking.utils.notifier import SqsNotifier
from rental_booking.utils.property_service import HttpPropertyCatalog
from rental_booking.utils.user_service import HttpUserDirectory


def get_property_catalog() -> PropertyAvailability:
    return HttpPropertyCatalog()


def get_user_directory() -> UserDirectory:
    return HttpUserDirectory()


def get_notifier() -> Notifier:
    return SqsNotifier()


def get_card_gateway() -> RazorpayCardGateway:
    return RazorpayCardGateway()


def get_wallet_gateway() -> HttpWalletGateway:
    return HttpWalletGateway()


def get_gateways(
    card: PaymentGateway = Depends(get_card_gateway),
    wallet: PaymentGateway = Depends(get_wallet_gateway),
) -> dict[PaymentStrategy, PaymentGateway]:
    return {card.strategy: card, wallet.strategy: wallet}


async def get_actor(
    request: Request,
    directory: UserDirectory = Depends(get_user_directory),
) -> Actor:
    user_id = get_authenticated_user_id(request)
    return Actor(id=user_id, role=await directory.role_of(user_id))

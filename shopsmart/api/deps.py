import ipaddress

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from shopsmart.core.config import settings
from shopsmart.db.gateway import Database
from shopsmart.db.session import get_db
from shopsmart.services.cart_service import CartService
from shopsmart.services.identity import Principal, resolve_principal


def get_database(db: Session = Depends(get_db)) -> Database:
    return Database(db)


def get_principal(request: Request) -> Principal:
    """Logged-in user from the session, else the guest session id."""
    return resolve_principal(request.session)


def get_cart_service(db: Database = Depends(get_database)) -> CartService:
    return CartService(db)


def get_client_ip(request: Request) -> str | None:
    """Client IP, honouring X-Forwarded-For only when the direct peer is a trusted proxy."""
    direct_ip = request.client.host if request.client else None
    if not (settings.TRUST_PROXY_HEADERS and settings.is_trusted_proxy(direct_ip)):
        return direct_ip

    forwarded_for = request.headers.get("X-Forwarded-For", "")
    for candidate in (ip.strip() for ip in forwarded_for.split(",")):
        try:
            ipaddress.ip_address(candidate)
            return candidate
        except ValueError:
            continue
    return direct_ip

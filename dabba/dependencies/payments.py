from fastapi import Depends
from sqlmodel import Session

from dabba.database import get_session
from dabba.services.payment_gateway import RazorpayGateway, get_gateway
from dabba.services.payment_reconciler import PaymentReconciler, get_reconciler


def reconciler_dependency(
    session: Session = Depends(get_session),
    gateway: RazorpayGateway = Depends(get_gateway),
) -> PaymentReconciler:
    return get_reconciler(session, gateway)

"""
Payment routes
"""
from decimal import Decimal

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from brewhaven.api.deps import get_current_principal
from brewhaven.core.database import get_db
from brewhaven.core.permissions import Principal
from brewhaven.schemas.payment import PaymentCreate, PaymentList, PaymentResponse, PaymentUpdate
from brewhaven.services.payment_service import PaymentService

router = APIRouter()


@router.get("", response_model=PaymentList)
async def list_payments(
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    payments = await PaymentService(db).list_payments(principal)
    return PaymentList(payments=payments, total=len(payments))


@router.get("/{payment_id}", response_model=PaymentResponse)
async def get_payment(
    payment_id: int,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    return await PaymentService(db).get_payment(principal, payment_id)


@router.post("", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
async def create_payment(
    payment_data: PaymentCreate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Bind a pending payment to an order (one per order)"""
    payment = await PaymentService(db).create_payment(
        principal,
        order_id=payment_data.order_id,
        amount=Decimal(str(payment_data.amount)),
        payment_method=payment_data.payment_method,
        transaction_id=payment_data.transaction_id,
    )
    await db.commit()
    return payment


@router.put("/{payment_id}", response_model=PaymentResponse)
async def update_payment(
    payment_id: int,
    payment_data: PaymentUpdate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Status change; marking PAID may advance the order to PREPARING"""
    payment = await PaymentService(db).update_payment(
        principal,
        payment_id,
        status=payment_data.status,
        transaction_id=payment_data.transaction_id,
        payment_date=payment_data.payment_date,
    )
    await db.commit()
    return payment


@router.delete("/{payment_id}")
async def delete_payment(
    payment_id: int,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    await PaymentService(db).delete_payment(principal, payment_id)
    await db.commit()
    return {"message": "Payment deleted successfully"}

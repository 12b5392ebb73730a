import uuid

from fastapi import APIRouter, Depends, Query, Request
from fastapi_utils.cbv import cbv
from sqlalchemy.ext.asyncio import AsyncSession

from campus_stay.core.get_current_user import (
    AuthContext,
    with_admin,
    with_agent,
    with_auth,
)
from campus_stay.core.get_db import get_db_async
from campus_stay.core.response import success_response
from campus_stay.core.safe_handler import safe_handler
from campus_stay.core.throttling import rate_limit
from campus_stay.models.enums import PaymentProofStatus
from campus_stay.notifications.outbox import NotificationOutbox, get_outbox
from campus_stay.schemas.schema import PaymentProofCreate, PaymentProofReview
from campus_stay.services.payment_proof_service import PaymentProofService

router = APIRouter(tags=["Payment Proofs"])


@cbv(router)
class PaymentProofRoutes:
    @router.post("/proofs", status_code=201, dependencies=[rate_limit])
    @safe_handler
    async def submit_proof(
        self,
        request: Request,
        data: PaymentProofCreate,
        db: AsyncSession = Depends(get_db_async),
        outbox: NotificationOutbox = Depends(get_outbox),
        context: AuthContext = Depends(with_auth),
    ):
        result = await PaymentProofService(db, outbox).submit_proof(context.user, data)
        return success_response(result, status_code=201)

    @router.get("/proofs", dependencies=[rate_limit])
    @safe_handler
    async def my_proofs(
        self,
        request: Request,
        page: int = Query(1, ge=1),
        limit: int = Query(20, ge=1, le=50),
        status: PaymentProofStatus | None = Query(None),
        db: AsyncSession = Depends(get_db_async),
        context: AuthContext = Depends(with_auth),
    ):
        result = await PaymentProofService(db).my_proofs(
            context.user_id, page, limit, status
        )
        return success_response(result)

    @router.get("/proofs/pending", dependencies=[rate_limit])
    @safe_handler
    async def pending_proofs(
        self,
        request: Request,
        page: int = Query(1, ge=1),
        limit: int = Query(20, ge=1, le=50),
        db: AsyncSession = Depends(get_db_async),
        context: AuthContext = Depends(with_admin),
    ):
        return success_response(await PaymentProofService(db).pending_proofs(page, limit))

    @router.get("/proofs/listing/{listing_id}", dependencies=[rate_limit])
    @safe_handler
    async def proofs_for_listing(
        self,
        request: Request,
        listing_id: uuid.UUID,
        page: int = Query(1, ge=1),
        limit: int = Query(20, ge=1, le=50),
        db: AsyncSession = Depends(get_db_async),
        context: AuthContext = Depends(with_agent),
    ):
        result = await PaymentProofService(db).proofs_for_listing(
            listing_id, context.user_id, page, limit
        )
        return success_response(result)

    @router.get("/proofs/{proof_id}", dependencies=[rate_limit])
    @safe_handler
    async def get_proof(
        self,
        request: Request,
        proof_id: uuid.UUID,
        db: AsyncSession = Depends(get_db_async),
        context: AuthContext = Depends(with_auth),
    ):
        return success_response(
            await PaymentProofService(db).get_proof(proof_id, context.user)
        )

    @router.patch("/proofs/{proof_id}", dependencies=[rate_limit])
    @safe_handler
    async def review_proof(
        self,
        request: Request,
        proof_id: uuid.UUID,
        data: PaymentProofReview,
        db: AsyncSession = Depends(get_db_async),
        outbox: NotificationOutbox = Depends(get_outbox),
        context: AuthContext = Depends(with_admin),
    ):
        result = await PaymentProofService(db, outbox).review_proof(
            proof_id, context.user_id, data
        )
        return success_response(result)

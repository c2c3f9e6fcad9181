"""
Order endpoints.

- POST /orders                    create an order (201, notification reported separately)
- GET  /orders                    admin listing, paginated
- GET  /orders/user/{user_id}     orders of one owner
- GET  /orders/{order_id}         one composed order
- POST /orders/{order_id}/document  resend the delivery note

Path ids are parsed by the service so a malformed id is a 400 with the
same error body as every other request-shape error.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from apps.order_service.api.dependencies import get_acting_identity
from apps.order_service.app_context import AppContext
from apps.order_service.authorization import ActingIdentity
from apps.order_service.dependencies import get_context
from apps.order_service.exceptions import OrderServiceError
from apps.order_service.query_service import parse_identifier
from apps.order_service.schemas import (
    ComposedOrder,
    DocumentDispatchResponse,
    OrderCreatedResponse,
    PaginatedOrders,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/orders", tags=["Orders"])


def http_error(exc: OrderServiceError) -> HTTPException:
    """Translate a domain error into the HTTP error it maps to."""
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return HTTPException(status_code=exc.status_code, detail=exc.to_detail(), headers=headers)


async def _read_json_body(request: Request) -> Any:
    body = await request.body()
    if not body:
        return None
    try:
        return json.loads(body)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": "Request body is not valid JSON"},
        ) from exc


@router.post("", status_code=status.HTTP_201_CREATED, response_model=OrderCreatedResponse)
async def create_order(
    request: Request,
    identity: ActingIdentity = Depends(get_acting_identity),
    ctx: AppContext = Depends(get_context),
) -> OrderCreatedResponse:
    payload = await _read_json_body(request)
    try:
        result = await ctx.pipeline.create_order(identity, payload)
    except OrderServiceError as exc:
        raise http_error(exc) from exc
    return result.to_response()


@router.get("", response_model=PaginatedOrders)
async def list_all_orders(
    page: str | None = Query(None),
    page_size: str | None = Query(None),
    limit: str | None = Query(None, description="Alias of page_size"),
    identity: ActingIdentity = Depends(get_acting_identity),
    ctx: AppContext = Depends(get_context),
) -> PaginatedOrders:
    try:
        return await asyncio.to_thread(
            ctx.query_service.list_all_orders, identity, page, page_size or limit
        )
    except OrderServiceError as exc:
        raise http_error(exc) from exc


@router.get("/user/{user_id}", response_model=list[ComposedOrder])
async def list_orders_for_owner(
    user_id: str,
    identity: ActingIdentity = Depends(get_acting_identity),
    ctx: AppContext = Depends(get_context),
) -> list[ComposedOrder]:
    try:
        owner_id = parse_identifier(user_id, label="user")
        return await asyncio.to_thread(
            ctx.query_service.list_orders_for_owner, identity, owner_id
        )
    except OrderServiceError as exc:
        raise http_error(exc) from exc


@router.get("/{order_id}", response_model=ComposedOrder)
async def get_order(
    order_id: str,
    identity: ActingIdentity = Depends(get_acting_identity),
    ctx: AppContext = Depends(get_context),
) -> ComposedOrder:
    try:
        parsed_id = parse_identifier(order_id)
        return await asyncio.to_thread(ctx.query_service.get_order, identity, parsed_id)
    except OrderServiceError as exc:
        raise http_error(exc) from exc


@router.post("/{order_id}/document", response_model=DocumentDispatchResponse)
async def resend_delivery_document(
    order_id: str,
    identity: ActingIdentity = Depends(get_acting_identity),
    ctx: AppContext = Depends(get_context),
) -> DocumentDispatchResponse:
    try:
        parsed_id = parse_identifier(order_id)
        return await ctx.query_service.resend_delivery_document(identity, parsed_id)
    except OrderServiceError as exc:
        raise http_error(exc) from exc

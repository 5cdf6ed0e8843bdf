"""
Table Service Requests

Guests call for assistance, water or the bill from their table. Requests
start ``pending`` and staff mark them ``fulfilled``.
"""

import logging
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from lunadine.core.exceptions import InternalError, NotFoundError, ValidationError
from lunadine.models import ServiceRequest, ServiceRequestStatus
from lunadine.schemas import ServiceRequestCreate
from lunadine.services.catalog import get_table

logger = logging.getLogger(__name__)


async def _commit(db: AsyncSession, action: str) -> None:
    try:
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception(f"{action} rolled back: {exc}")
        raise InternalError(f"Failed to {action}") from exc


async def create_service_request(db: AsyncSession, request: ServiceRequestCreate) -> ServiceRequest:
    """
    Raise a pending request for a table.

    Raises:
        NotFoundError: The table does not belong to the branch
    """
    table = await get_table(db, request.table_id, request.branch_id)

    service_request = ServiceRequest(
        table_id=table.id,
        request_type=request.request_type,
        status=ServiceRequestStatus.PENDING,
    )
    db.add(service_request)
    await _commit(db, "save service request")

    logger.info(
        f"Service request #{service_request.id}: {request.request_type.value} "
        f"at table {table.table_identifier} (branch {request.branch_id})"
    )
    return service_request


async def fulfil_service_request(db: AsyncSession, request_id: int) -> ServiceRequest:
    """
    Mark a pending request as fulfilled.

    Raises:
        NotFoundError: Unknown request
        ValidationError: Already fulfilled
    """
    service_request = await db.get(ServiceRequest, request_id)
    if service_request is None:
        raise NotFoundError("Service request not found")
    if service_request.status != ServiceRequestStatus.PENDING:
        raise ValidationError(f"Service request #{request_id} is already {service_request.status.value}")

    service_request.status = ServiceRequestStatus.FULFILLED
    service_request.fulfilled_at = datetime.now().replace(microsecond=0)
    await _commit(db, "fulfil service request")

    logger.info(f"Service request #{request_id} fulfilled")
    return service_request

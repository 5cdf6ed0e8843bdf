"""
Order Feedback
"""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from lunadine.core.exceptions import InternalError
from lunadine.models import Feedback
from lunadine.schemas import FeedbackCreate
from lunadine.services.orders import get_order_by_uid

logger = logging.getLogger(__name__)


async def submit_feedback(db: AsyncSession, request: FeedbackCreate) -> Feedback:
    """
    Record feedback against an order addressed by its external id.

    Ratings are range-checked by the request schema.

    Raises:
        NotFoundError: Unknown order
        InternalError: The insert failed
    """
    order = await get_order_by_uid(db, request.order_id)

    feedback = Feedback(
        order_id=order.id,
        overall_rating=request.ratings.overall,
        food_rating=request.ratings.food,
        service_rating=request.ratings.service,
        item_feedback=request.item_feedback,
        comment=request.comment,
    )
    db.add(feedback)
    try:
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception(f"Feedback for {request.order_id} rolled back: {exc}")
        raise InternalError("Failed to save feedback") from exc

    logger.info(f"Feedback for order {request.order_id}: overall={request.ratings.overall}")
    return feedback

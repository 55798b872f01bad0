"""Room reviews: one per user and room, editable only by the author."""
from __future__ import annotations

import html
import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError

from common.exceptions import DuplicateReviewError, NotFoundError, PermissionDeniedError
from common.mappers import review_to_response, reviews_to_response
from common.models import Review
from common.repositories import ReviewRepository, RoomRepository
from common.schemas import ReviewRequest, ReviewResponse, ReviewUpdate

logger = logging.getLogger(__name__)


def sanitize_comment(comment: Optional[str]) -> Optional[str]:
    if comment is None:
        return None
    return html.escape(comment.strip())


class ReviewService:
    def __init__(self, reviews: ReviewRepository, rooms: RoomRepository) -> None:
        self.reviews = reviews
        self.rooms = rooms

    def create_review(self, user_id: int, request: ReviewRequest) -> ReviewResponse:
        room = self.rooms.get(request.room_id)
        if room is None:
            raise NotFoundError.for_entity("Room", request.room_id)
        if self.reviews.exists_by_user_and_room(user_id, room.id):
            raise DuplicateReviewError()

        review = Review(
            user_id=user_id,
            room_id=room.id,
            rating=request.rating,
            comment=sanitize_comment(request.comment),
        )
        try:
            review = self.reviews.save(review)
        except IntegrityError as exc:
            # A concurrent request inserted the same (user, room) pair first.
            raise DuplicateReviewError() from exc
        logger.info("Review %s created by user %s for room %s", review.id, user_id, room.id)
        return review_to_response(review)

    def get_reviews_by_room_id(self, room_id: int) -> List[ReviewResponse]:
        return reviews_to_response(self.reviews.list_by_room_newest_first(room_id))

    def get_reviews_by_user_id(self, user_id: int) -> List[ReviewResponse]:
        return reviews_to_response(self.reviews.list_by_user(user_id))

    def get_review_by_id(self, review_id: int) -> ReviewResponse:
        return review_to_response(self._load(review_id))

    def update_review(self, user_id: int, review_id: int, request: ReviewUpdate) -> ReviewResponse:
        review = self._load(review_id)
        if review.user_id != user_id:
            raise PermissionDeniedError("You are not allowed to update this review")

        review.rating = request.rating
        review.comment = sanitize_comment(request.comment)
        review = self.reviews.save(review)
        return review_to_response(review)

    def _load(self, review_id: int) -> Review:
        review = self.reviews.get(review_id)
        if review is None:
            raise NotFoundError.for_entity("Review", review_id)
        return review

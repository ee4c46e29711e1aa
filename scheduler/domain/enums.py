from enum import Enum


class ReviewStatus(str, Enum):
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    PAUSED = "PAUSED"


REVIEW_STATUS_LABELS = {
    ReviewStatus.ACTIVE: "Active",
    ReviewStatus.COMPLETED: "Completed",
    ReviewStatus.PAUSED: "Paused",
}

"""Response envelopes shared by several routers."""

from hospital_meal_service.models.base import ApiModel
from hospital_meal_service.models.user_models import User


class MessageResponse(ApiModel):
    message: str


class UserMutationResponse(ApiModel):
    """Envelope returned after an account is created or changed."""

    message: str
    user: User


class HealthResponse(ApiModel):
    status: str

# erp_pos/services/user_service.py
from uuid import UUID

from requests import RequestException
from sqlalchemy.orm import Session

from erp_pos.data.models.user import ProfileModel
from erp_pos.domain.exceptions import AuthenticationError, PermissionDeniedError, ProfileConflictError
from erp_pos.domain.schemas import CurrentUser, UserCreate, UserRead
from erp_pos.repos.user_repo import UserRepo
from erp_pos.services.auth_client import AuthClient
from erp_pos.utils.logging import get_logger

logger = get_logger(__name__)


class UserService:
    def __init__(self, db: Session, auth_client: AuthClient | None = None):
        self.repo = UserRepo(db)
        self.auth_client = auth_client or AuthClient()

    def current_user(self, access_token: str | None) -> CurrentUser:
        """Token -> auth provider user -> profile (tenant) + role."""
        if not access_token:
            raise AuthenticationError("Missing access token")

        try:
            data = self.auth_client.fetch_user(access_token)
        except RequestException as e:
            logger.error(f"Auth provider unavailable: {e}")
            raise AuthenticationError("Authentication service unavailable") from e

        user_id = UUID(str(data["id"]))
        profile = self.repo.get_profile(user_id)
        if not profile or not profile.company_id:
            raise PermissionDeniedError("User is not assigned to a company", details={"user_id": str(user_id)})

        return CurrentUser(
            id=profile.id,
            company_id=profile.company_id,
            role=self.repo.get_primary_role(user_id),
        )

    def create_user(self, payload: UserCreate) -> UserRead:
        existing = self.repo.get_profile(payload.id)
        if existing:
            if existing.company_id != payload.company_id:
                raise ProfileConflictError(payload.id)
            if payload.role and self.repo.add_role(existing.id, payload.role):
                logger.info(f"Granted {payload.role} to existing profile {existing.id}")
            return self._read(existing)

        profile = ProfileModel(
            id=payload.id,
            company_id=payload.company_id,
            full_name=payload.full_name,
            email=payload.email,
        )
        created = self.repo.create_profile(profile, role=payload.role)
        logger.info(f"Created profile {created.id} in company {created.company_id} as {payload.role}")
        return self._read(created)

    def get_user(self, user_id: UUID, company_id: UUID) -> UserRead:
        user = self.repo.get_profile(user_id)
        if not user or user.company_id != company_id:
            raise ValueError("User not found")
        return self._read(user)

    def _read(self, profile: ProfileModel) -> UserRead:
        return UserRead(
            id=profile.id,
            company_id=profile.company_id,
            full_name=profile.full_name,
            email=profile.email,
            roles=self.repo.get_roles(profile.id),
        )

from unittest.mock import MagicMock, patch

import pytest
import requests

from erp_pos.data.models.user import UserRoleModel
from erp_pos.domain.exceptions import AuthenticationError, PermissionDeniedError, ProfileConflictError
from erp_pos.domain.schemas import UserCreate
from erp_pos.services.auth_client import AuthClient
from erp_pos.services.user_service import UserService
from tests.conftest import CASHIER_ID, COMPANY_ID, OTHER_COMPANY_ID, VIEWER_ID


def auth_returning(user_id):
    client = MagicMock(spec=AuthClient)
    client.fetch_user.return_value = {"id": str(user_id), "email": "someone@example.com"}
    return client


class TestCurrentUser:
    def test_resolves_tenant_and_role(self, db, profiles):
        user = UserService(db, auth_client=auth_returning(CASHIER_ID)).current_user("token")

        assert user.id == CASHIER_ID
        assert user.company_id == COMPANY_ID
        assert user.role == "cashier"

    def test_missing_token(self, db):
        client = MagicMock(spec=AuthClient)

        with pytest.raises(AuthenticationError):
            UserService(db, auth_client=client).current_user(None)

        client.fetch_user.assert_not_called()

    def test_user_without_profile(self, db):
        with pytest.raises(PermissionDeniedError):
            UserService(db, auth_client=auth_returning(CASHIER_ID)).current_user("token")

    def test_provider_unreachable(self, db):
        client = MagicMock(spec=AuthClient)
        client.fetch_user.side_effect = requests.ConnectionError("down")

        with pytest.raises(AuthenticationError):
            UserService(db, auth_client=client).current_user("token")

    def test_highest_role_wins(self, db, profiles):
        db.add(UserRoleModel(user_id=VIEWER_ID, role="manager"))
        db.commit()

        user = UserService(db, auth_client=auth_returning(VIEWER_ID)).current_user("token")

        assert user.role == "manager"


class TestUsers:
    def test_create_and_get(self, db):
        svc = UserService(db, auth_client=MagicMock(spec=AuthClient))
        payload = UserCreate(id=CASHIER_ID, company_id=COMPANY_ID, full_name="Casey", role="cashier")

        created = svc.create_user(payload)

        assert created.roles == ["cashier"]
        assert svc.get_user(CASHIER_ID, COMPANY_ID).full_name == "Casey"

    def test_create_is_idempotent(self, db, profiles):
        svc = UserService(db, auth_client=MagicMock(spec=AuthClient))
        payload = UserCreate(id=CASHIER_ID, company_id=COMPANY_ID, full_name="Someone Else")

        assert svc.create_user(payload).full_name == "Casey Cashier"

    def test_create_with_id_from_other_company(self, db, profiles):
        svc = UserService(db, auth_client=MagicMock(spec=AuthClient))
        payload = UserCreate(id=CASHIER_ID, company_id=OTHER_COMPANY_ID, full_name="Intruder", role="company_admin")

        with pytest.raises(ProfileConflictError) as exc:
            svc.create_user(payload)

        assert exc.value.details == {"user_id": str(CASHIER_ID)}
        kept = svc.get_user(CASHIER_ID, COMPANY_ID)
        assert kept.full_name == "Casey Cashier"
        assert kept.roles == ["cashier"]

    def test_create_grants_role_to_existing_profile(self, db, profiles):
        svc = UserService(db, auth_client=MagicMock(spec=AuthClient))
        payload = UserCreate(id=VIEWER_ID, company_id=COMPANY_ID, full_name="Vic Viewer", role="manager")

        assert svc.create_user(payload).roles == ["manager", "user"]

    def test_get_user_of_other_company(self, db, profiles):
        with pytest.raises(ValueError):
            UserService(db, auth_client=MagicMock(spec=AuthClient)).get_user(CASHIER_ID, OTHER_COMPANY_ID)


class TestAuthClient:
    def _response(self, status, payload=None):
        resp = MagicMock()
        resp.status_code = status
        resp.json.return_value = payload or {}
        return resp

    @patch("erp_pos.services.auth_client.requests.get")
    def test_fetch_user(self, mock_get):
        mock_get.return_value = self._response(200, {"id": str(CASHIER_ID)})

        data = AuthClient(base_url="http://auth.local/", api_key="anon").fetch_user("abc")

        assert data["id"] == str(CASHIER_ID)
        args, kwargs = mock_get.call_args
        assert args[0] == "http://auth.local/auth/v1/user"
        assert kwargs["headers"] == {"Authorization": "Bearer abc", "apikey": "anon"}

    @patch("erp_pos.services.auth_client.requests.get")
    def test_rejected_token(self, mock_get):
        mock_get.return_value = self._response(401)

        with pytest.raises(AuthenticationError):
            AuthClient(base_url="http://auth.local").fetch_user("expired")

    @patch("erp_pos.services.auth_client.requests.get")
    def test_transient_errors_are_retried(self, mock_get):
        mock_get.side_effect = [requests.ConnectionError("reset"), self._response(200, {"id": str(CASHIER_ID)})]

        data = AuthClient(base_url="http://auth.local").fetch_user("abc")

        assert data["id"] == str(CASHIER_ID)
        assert mock_get.call_count == 2

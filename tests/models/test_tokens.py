import pytest
from pydantic import ValidationError

from oidc_desktop.models.tokens import GrantType, SessionTokens, TokenResponse


class TestTokenResponse:
    def test_unknown_fields_are_ignored(self):
        # Act
        response = TokenResponse.model_validate(
            {
                "access_token": "A",
                "expires_in": 300,
                "refresh_expires_in": 1800,
                "not-before-policy": 0,
                "session_state": "xyz",
            }
        )

        # Assert
        assert response.access_token == "A"
        assert response.refresh_token is None

    def test_empty_access_token_is_rejected(self):
        # Act & Assert
        with pytest.raises(ValidationError):
            TokenResponse(access_token="", expires_in=60)

    def test_session_tokens_keep_previous_refresh_token(self):
        # Arrange
        response = TokenResponse(access_token="A", expires_in=60)

        # Act
        tokens = response.to_session_tokens(
            previous_refresh_token="R", obtained_at=1000.0
        )

        # Assert
        assert tokens.refresh_token == "R"
        assert tokens.obtained_at == 1000.0
        assert tokens.expires_at == 1060.0


class TestSessionTokens:
    def test_expiry(self):
        # Arrange
        tokens = SessionTokens(
            access_token="A", refresh_token=None, expires_in=60, obtained_at=1000.0
        )

        # Assert
        assert not tokens.is_expired(now=1059.0)
        assert tokens.is_expired(now=1060.0)
        assert not tokens.can_refresh()


class TestGrantType:
    def test_wire_values(self):
        # Assert
        assert GrantType("authorization_code") is GrantType.AUTHORIZATION_CODE
        assert GrantType.REFRESH_TOKEN.value == "refresh_token"
        assert GrantType.CLIENT_CREDENTIALS.value == "client_credentials"

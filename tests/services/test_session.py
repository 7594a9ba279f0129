"""Tests for session state: login attempts and atomic token replacement."""

import threading

import pytest

from oidc_desktop.models.errors import StateMismatch
from oidc_desktop.models.tokens import TokenResponse
from oidc_desktop.services.session import Session


class TestLoginAttempts:
    def setup_method(self):
        # Arrange
        self.session = Session()

    def test_matching_state_is_consumed(self):
        # Arrange
        self.session.begin_login("state-1")

        # Act
        attempt = self.session.consume_login("state-1")

        # Assert
        assert attempt.expected_state == "state-1"
        assert self.session.login_attempt is None

    def test_replayed_callback_is_rejected(self):
        # Arrange
        self.session.begin_login("state-1")
        self.session.consume_login("state-1")

        # Act & Assert
        with pytest.raises(StateMismatch):
            self.session.consume_login("state-1")

    def test_new_login_invalidates_previous_state(self):
        # Arrange
        self.session.begin_login("state-1")
        self.session.begin_login("state-2")

        # Act & Assert
        with pytest.raises(StateMismatch):
            self.session.consume_login("state-1")

        # The newer attempt is still live
        assert self.session.consume_login("state-2").expected_state == "state-2"

    def test_mismatch_keeps_live_attempt(self):
        # Arrange
        self.session.begin_login("state-1")

        # Act
        with pytest.raises(StateMismatch):
            self.session.consume_login("forged")

        # Assert
        assert self.session.login_attempt.expected_state == "state-1"

    def test_missing_state_is_a_mismatch(self):
        # Arrange
        self.session.begin_login("state-1")

        # Act & Assert
        with pytest.raises(StateMismatch):
            self.session.consume_login(None)


class TestTokenReplacement:
    def setup_method(self):
        # Arrange
        self.session = Session()

    def test_empty_session(self):
        # Assert
        assert self.session.snapshot() is None
        assert not self.session.is_authenticated

    def test_replace_stores_complete_pair(self):
        # Act
        tokens = self.session.replace(
            TokenResponse(access_token="A", refresh_token="R", expires_in=3600)
        )

        # Assert
        assert tokens.access_token == "A"
        assert tokens.refresh_token == "R"
        assert self.session.snapshot() == tokens
        assert self.session.is_authenticated

    def test_response_without_refresh_token_keeps_previous(self):
        # Arrange
        self.session.replace(
            TokenResponse(access_token="A", refresh_token="R", expires_in=3600)
        )

        # Act
        tokens = self.session.replace(TokenResponse(access_token="A2", expires_in=3600))

        # Assert
        assert tokens.access_token == "A2"
        assert tokens.refresh_token == "R"

    def test_clear_forgets_tokens_and_attempt(self):
        # Arrange
        self.session.begin_login("state-1")
        self.session.replace(TokenResponse(access_token="A", expires_in=60))

        # Act
        self.session.clear()

        # Assert
        assert self.session.snapshot() is None
        assert self.session.login_attempt is None

    def test_concurrent_writers_never_mix_pairs(self):
        # Arrange
        def writer(index: int) -> None:
            for i in range(200):
                self.session.replace(
                    TokenResponse(
                        access_token=f"A{index}-{i}",
                        refresh_token=f"R{index}-{i}",
                        expires_in=60,
                    )
                )

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(4)]

        # Act
        for thread in threads:
            thread.start()
        observed = []
        while any(thread.is_alive() for thread in threads):
            snapshot = self.session.snapshot()
            if snapshot is not None:
                observed.append(snapshot)
        for thread in threads:
            thread.join()

        # Assert
        for snapshot in observed + [self.session.snapshot()]:
            assert snapshot.access_token[1:] == snapshot.refresh_token[1:]


class TestConditionalReplacement:
    def setup_method(self):
        # Arrange
        self.session = Session()
        self.session.replace(
            TokenResponse(access_token="A", refresh_token="R", expires_in=3600)
        )

    def test_unchanged_generation_replaces(self):
        # Arrange
        _, generation = self.session.versioned_snapshot()

        # Act
        tokens = self.session.replace_if(
            generation, TokenResponse(access_token="A2", expires_in=3600)
        )

        # Assert
        assert tokens.access_token == "A2"
        assert tokens.refresh_token == "R"
        assert self.session.versioned_snapshot() == (tokens, generation)

    def test_clear_invalidates_pending_result(self):
        # Arrange
        _, generation = self.session.versioned_snapshot()
        self.session.clear()

        # Act
        tokens = self.session.replace_if(
            generation, TokenResponse(access_token="A2", expires_in=3600)
        )

        # Assert
        assert tokens is None
        assert self.session.snapshot() is None

    def test_new_login_invalidates_pending_result(self):
        # Arrange
        _, generation = self.session.versioned_snapshot()
        self.session.replace(
            TokenResponse(access_token="B", refresh_token="RB", expires_in=3600)
        )

        # Act
        tokens = self.session.replace_if(
            generation, TokenResponse(access_token="A2", expires_in=3600)
        )

        # Assert
        assert tokens is None
        assert self.session.snapshot().access_token == "B"

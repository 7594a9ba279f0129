from urllib.parse import parse_qsl

from oidc_desktop.primitives.encoding import encode_form, encode_query


class TestEncodeForm:
    def test_preserves_pair_order(self):
        # Act
        body = encode_form([("b", "2"), ("a", "1"), ("c", "3")])

        # Assert
        assert body == "b=2&a=1&c=3"

    def test_reserved_and_non_ascii_characters_round_trip(self):
        # Arrange
        value = "a b&c=d/é+?"

        # Act
        body = encode_form([("code", value)])

        # Assert
        assert "+" in body  # space
        assert "%C3%A9" in body  # UTF-8 é
        assert parse_qsl(body) == [("code", value)]


class TestEncodeQuery:
    def test_spaces_are_percent_encoded(self):
        # Act
        query = encode_query([("scope", "openid profile")])

        # Assert
        assert query == "scope=openid%20profile"

    def test_slashes_and_colons_are_encoded(self):
        # Act
        query = encode_query([("redirect_uri", "http://localhost:32323/oidc")])

        # Assert
        assert query == "redirect_uri=http%3A%2F%2Flocalhost%3A32323%2Foidc"

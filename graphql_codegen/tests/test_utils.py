import pytest

from graphql_codegen.utils import camel_to_snake_case, snake_to_pascal_case


@pytest.mark.parametrize(
    "text,expected",
    [
        ("first_name", "FirstName"),
        ("userPosts", "UserPosts"),
        ("first 3 rows", "First3Rows"),
        ("user-service", "UserService"),
        ("", ""),
    ],
)
def test_snake_to_pascal_case(text, expected):
    assert snake_to_pascal_case(text) == expected


@pytest.mark.parametrize(
    "text,expected",
    [
        ("firstName", "first_name"),
        ("userID", "user_id"),
        ("HTTPStatus", "http_status"),
        ("already_snake", "already_snake"),
        ("_privateField", "_private_field"),
        ("", ""),
    ],
)
def test_camel_to_snake_case(text, expected):
    assert camel_to_snake_case(text) == expected


if __name__ == "__main__":
    pytest.main([__file__])

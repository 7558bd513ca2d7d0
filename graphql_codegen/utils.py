"""
Utility functions for the GraphQL code generator.
"""

import re

# Regex pattern to split text into words, handling camelCase boundaries
_WORD_PATTERN = re.compile(r"[a-z]+|[A-Z]+(?![a-z])|[A-Z][a-z]*|[0-9]+")


def _split_into_words(text: str) -> list[str]:
    """Split text into words, handling camelCase boundaries and separators."""
    return _WORD_PATTERN.findall(text.replace("_", " ").replace("-", " "))


def snake_to_pascal_case(text: str) -> str:
    """Convert snake_case, camelCase, or space-separated text to PascalCase.

    Examples:
        "first_name" -> "FirstName"
        "userPosts" -> "UserPosts"
        "first 3 rows" -> "First3Rows"

    Args:
        text: The text to convert

    Returns:
        PascalCase string
    """
    if not text:
        return ""
    return "".join(word.capitalize() for word in _split_into_words(text) if word)


def camel_to_snake_case(text: str) -> str:
    """Convert camelCase or PascalCase text to snake_case.

    Examples:
        "firstName" -> "first_name"
        "userID" -> "user_id"
        "HTTPStatus" -> "http_status"
        "already_snake" -> "already_snake"
    """
    if not text:
        return ""
    leading = len(text) - len(text.lstrip("_"))
    return "_" * leading + "_".join(word.lower() for word in _split_into_words(text) if word)


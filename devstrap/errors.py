"""Error formatting utilities for consistent error messages.

Error Style Guide:
- User-facing errors use 'Error: ' prefix
- Field errors name the manifest path: 'batches[0].packages[2].name is required'
- Use present tense: 'must be', 'is required'
- Include actionable hints where helpful
"""


def format_error(message: str) -> str:
    """Format an error message with consistent prefix.

    Examples:
        >>> format_error("manifest not found")
        'Error: manifest not found'
    """
    return f"Error: {message}"


def format_field_error(path: str, issue: str) -> str:
    """Format a manifest validation error for the field at ``path``.

    Examples:
        >>> format_field_error("batches[1].max_attempts", "must be an integer >= 1")
        'batches[1].max_attempts must be an integer >= 1'
    """
    return f"{path} {issue}"


def format_suggestion(message: str, suggestion: str) -> str:
    """Format an error message with a helpful suggestion.

    Examples:
        >>> format_suggestion("manifest not found", "run 'devstrap config init' to create one")
        "Error: manifest not found. Hint: run 'devstrap config init' to create one"
    """
    return f"{format_error(message)}. Hint: {suggestion}"


__all__ = [
    "format_error",
    "format_field_error",
    "format_suggestion",
]

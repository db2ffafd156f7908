"""Email value object with validation.

Room topics are keyed by email address, so two spellings of the same address
must map to one room. The whole address is lowercased.
"""

from dataclasses import dataclass

from email_validator import EmailNotValidError, validate_email


@dataclass(frozen=True)
class Email:
    """Email value object with format validation.

    Attributes:
        value: The email address string (validated, lowercase).

    Raises:
        ValueError: If email format is invalid.

    Example:
        >>> str(Email("  User@Example.COM "))
        'user@example.com'
    """

    value: str

    def __post_init__(self) -> None:
        """Validate and normalize the address.

        Raises:
            ValueError: If email format is invalid.
        """
        try:
            validated = validate_email(self.value.strip(), check_deliverability=False)
            # Use object.__setattr__ because dataclass is frozen
            object.__setattr__(self, "value", validated.normalized.lower())
        except EmailNotValidError as e:
            raise ValueError(f"Invalid email: {e}") from e

    def __str__(self) -> str:
        return self.value

    def __repr__(self) -> str:
        return f"Email('{self.value}')"

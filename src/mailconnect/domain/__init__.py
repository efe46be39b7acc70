"""Domain layer - mail entities and the email logging services."""

"""Infrastructure Layer — HTTP transport, session storage, logging setup."""

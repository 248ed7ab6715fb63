"""As-built completion engine for utility field crews."""

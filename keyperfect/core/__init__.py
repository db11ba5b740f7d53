"""Process-wide infrastructure such as logging."""

"""Public contact form handling."""

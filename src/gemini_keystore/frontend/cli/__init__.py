"""Command-line frontend: ``gemini-keystore``."""

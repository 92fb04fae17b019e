"""OneDrive provider adapter for the Microsoft Graph API."""

__version__ = "0.1.0"

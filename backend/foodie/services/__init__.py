"""
Services Module
Business logic layer for the application.

Services contain the core business logic and database operations.
They are called by API endpoints and keep the controllers thin.
Services signal failures with exceptions (ValueError, LookupError,
PermissionError, ...) which the endpoints map to HTTP status codes.
"""

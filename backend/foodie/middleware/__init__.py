"""
Middleware Module
Request/response processing shared by every endpoint: CORS and the
catch-all error handler.
"""

"""slashbot: signed slash-command webhook server.

Verifies inbound slash-command requests, routes them to command
handlers and posts each handler's reply to the request's callback URL.
"""

__version__ = "0.1.0"

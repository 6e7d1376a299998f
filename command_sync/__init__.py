"""Command sync worker package.

Consumes slash-command sync requests from a queue, reconciles them against
Discord's guild command collection and reports the outcome upstream.
"""

__all__: list[str] = []

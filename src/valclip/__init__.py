"""
valclip: match lifecycle companion for the Riot client.

Attaches to the client's local control-plane API, follows the game log until
the platform is initialized, and turns push notifications into pre-game,
match-start and match-end events.
"""

__version__ = "0.1.0"

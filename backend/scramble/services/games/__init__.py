"""Game domain services: scoring, validation, sessions and the two game modes.

Everything here is imported by HTTP routes and socket handlers, keeping
transport concerns separated from the game mechanics.
"""

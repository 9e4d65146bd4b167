"""Card domain services: generation, bingo counting and progression.

The engine and progression modules are pure and have no Flask imports;
the session ties them to a game store and a notifier, keeping HTTP and
socket concerns out of the card mechanics.
"""

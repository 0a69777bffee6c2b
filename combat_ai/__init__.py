"""Combat AI decision core: boss, enemy and tower agents with adaptive difficulty."""

__version__ = "0.1.0"

"""Deutsch Meister: generated German reading practice with quizzes and cloze drills."""

__version__ = "1.0.0"

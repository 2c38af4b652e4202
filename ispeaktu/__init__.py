"""
iSpeaktu Quiz - multiple-choice lesson quizzes with teacher-verified progress.
"""

__version__ = "0.1.0"

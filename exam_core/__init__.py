"""Learner- and grader-facing attempt and scoring subsystem."""

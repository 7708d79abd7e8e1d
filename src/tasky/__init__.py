"""Tasky - task scheduling, ranking and review engine."""

"""Markup package: transition deck template and Marp CLI build."""

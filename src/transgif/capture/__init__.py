"""Capture package: browser resource, screencast buffer, navigation orchestrator."""

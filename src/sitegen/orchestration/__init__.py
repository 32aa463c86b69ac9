"""Workflow orchestration: state machine, plans, scoring, runners and progress."""

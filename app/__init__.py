"""Vex Flows backend."""

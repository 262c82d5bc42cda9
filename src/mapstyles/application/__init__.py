"""Interfaces implemented by pluggable collaborators."""

"""Boundary adapters: job store, message broker and AWS collaborators."""

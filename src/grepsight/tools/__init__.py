"""Grepsight tools - scanner, pipeline, processors and collaborators."""

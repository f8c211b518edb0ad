"""Shared test fixtures: document, collection and local tree factories."""

"""Arbor: filesystem-like navigation over a tree computed by handler objects."""

"""Chessbench live match monitor."""

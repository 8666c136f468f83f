"""Tibrah Assistant backend - health chat gateway with conversation and health memory."""

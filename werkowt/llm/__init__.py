"""Hosted LLM messages client and tolerant JSON extraction."""

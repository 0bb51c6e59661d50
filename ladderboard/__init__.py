"""Ladderboard: Snake & Ladder game service."""

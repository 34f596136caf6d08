"""Automation keeper and randomness fulfiller for the raffle service."""

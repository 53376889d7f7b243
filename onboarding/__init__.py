"""Conversational travel profile onboarding."""

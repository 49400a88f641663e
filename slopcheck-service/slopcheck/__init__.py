"""Slopcheck: identity-bound sessions and admission control in front of a post scorer."""

"""Curve fitting, linear algebra and prediction."""

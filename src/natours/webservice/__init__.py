"""Natours webservice package."""

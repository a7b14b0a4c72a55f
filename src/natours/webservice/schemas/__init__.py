"""Webservice schemas."""

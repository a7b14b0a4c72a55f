"""Webservice routers."""
